"""
Shopping Models

Contains the ShoppingList and ShoppingItem models, regenerated wholesale
from a plan, and the InventoryItem model for stock the family already has.
"""

from .base import db, utcnow


class ShoppingList(db.Model):
    """The shopping list of one plan (1:1). Never patched, always rebuilt."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    weekly_plan_id = db.Column(
        db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'),
        nullable=False, unique=True
    )
    generated_at = db.Column(db.DateTime, default=utcnow)
    items = db.relationship(
        'ShoppingItem', backref='shopping_list', lazy=True,
        cascade='all, delete-orphan', order_by='ShoppingItem.order'
    )


class ShoppingItem(db.Model):
    """Aggregated, rounded shopping line with its provenance."""
    id = db.Column(db.Integer, primary_key=True)
    shopping_list_id = db.Column(db.Integer, db.ForeignKey('shopping_list.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    name_en = db.Column(db.String(200), nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), nullable=False, default='Other')  # already translated
    alternatives = db.Column(db.JSON, default=list, nullable=False)
    recipe_names = db.Column(db.JSON, default=list, nullable=False)
    checked = db.Column(db.Boolean, default=False, nullable=False)
    in_stock = db.Column(db.Boolean, default=False, nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)


class InventoryItem(db.Model):
    """Stock on hand, deducted from the shopping list by case-insensitive name."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), nullable=False, default='pantry')
