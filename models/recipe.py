"""
Recipe Models

Contains the Recipe and Ingredient models. A recipe is either system-wide
(family_id is NULL) or private to one family.
"""

from .base import db


class Recipe(db.Model):
    """Recipe with compliance flags and planning hints."""
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    title_en = db.Column(db.String(200), nullable=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=True, index=True)
    category = db.Column(db.String(50), nullable=False, default='other', index=True)  # used for repeat avoidance
    servings = db.Column(db.Integer, default=4)

    # Compliance flags, mirroring DietProfile
    kosher_category = db.Column(db.String(20), nullable=True)  # meat, dairy, parve
    halal_friendly = db.Column(db.Boolean, default=True, nullable=False)
    vegetarian = db.Column(db.Boolean, default=False, nullable=False)
    vegan = db.Column(db.Boolean, default=False, nullable=False)
    pescatarian = db.Column(db.Boolean, default=False, nullable=False)
    gluten_free = db.Column(db.Boolean, default=False, nullable=False)
    lactose_free = db.Column(db.Boolean, default=False, nullable=False)

    is_favorite = db.Column(db.Boolean, default=False, nullable=False)
    is_novelty = db.Column(db.Boolean, default=False, nullable=False)
    is_component_based = db.Column(db.Boolean, default=False, nullable=False)

    ingredients = db.relationship(
        'Ingredient', backref='recipe', lazy=True,
        cascade='all, delete-orphan', order_by='Ingredient.order'
    )

    @property
    def allergens(self):
        """Union of the allergens of every ingredient."""
        found = set()
        for ingredient in self.ingredients:
            found.update(ingredient.allergens or [])
        return found

    def __repr__(self):
        return f"<Recipe {self.id}: {self.title}>"


class Ingredient(db.Model):
    """One line of a recipe: quantity and unit for the recipe's declared servings."""
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    name_en = db.Column(db.String(200), nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), nullable=False, default='pantry')  # shopping category
    contains_gluten = db.Column(db.Boolean, default=False, nullable=False)
    contains_lactose = db.Column(db.Boolean, default=False, nullable=False)
    allergens = db.Column(db.JSON, default=list, nullable=False)
    alternatives = db.Column(db.JSON, default=list, nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)
