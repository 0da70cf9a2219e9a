"""
Component Models

Contains the FoodComponent catalog and the MealComponent join used by
build-your-own meals (one protein, one or two vegetables, one carb).
"""

from .base import db


class FoodComponent(db.Model):
    """A building block of a component-based meal, sized per person."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    name_en = db.Column(db.String(100), nullable=True)
    category = db.Column(db.String(20), nullable=False, default='OTHER', index=True)
    default_quantity = db.Column(db.Float, nullable=False, default=1.0)  # per person
    unit = db.Column(db.String(20), nullable=False)
    shopping_category = db.Column(db.String(50), nullable=False, default='produce')
    allergens = db.Column(db.JSON, default=list, nullable=False)

    kosher_category = db.Column(db.String(20), nullable=True)
    halal_friendly = db.Column(db.Boolean, default=True, nullable=False)
    vegetarian = db.Column(db.Boolean, default=True, nullable=False)
    vegan = db.Column(db.Boolean, default=False, nullable=False)
    pescatarian = db.Column(db.Boolean, default=False, nullable=False)
    gluten_free = db.Column(db.Boolean, default=True, nullable=False)
    lactose_free = db.Column(db.Boolean, default=True, nullable=False)

    # System components are shared; custom ones belong to one family
    is_system = db.Column(db.Boolean, default=False, nullable=False)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=True, index=True)

    def __repr__(self):
        return f"<FoodComponent {self.id}: {self.name} ({self.category})>"


class MealComponent(db.Model):
    """A component placed on a meal, with the per-person quantity used for shopping."""
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    component_id = db.Column(db.Integer, db.ForeignKey('food_component.id', ondelete='CASCADE'), nullable=False)
    role = db.Column(db.String(30), nullable=False, default='OTHER')
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)
    component = db.relationship('FoodComponent')
