"""
Diet Compliance Service

Filters recipe and component catalogs down to what a family's diet profile
allows. Every active constraint must hold (they are combined with AND).
"""

from models import db, Recipe, FoodComponent

# Diet profile flag -> item flag that must be true when the profile flag is set
FLAG_REQUIREMENTS = (
    ('halal', 'halal_friendly'),
    ('vegetarian', 'vegetarian'),
    ('vegan', 'vegan'),
    ('pescatarian', 'pescatarian'),
    ('gluten_free', 'gluten_free'),
    ('lactose_free', 'lactose_free'),
)


def _normalize_allergens(values):
    return {str(v).strip().lower() for v in (values or []) if str(v).strip()}


def is_compliant(profile, item):
    """
    Check one recipe or component against a diet profile.

    Recipes expose the allergens of their ingredients through
    Recipe.allergens; components carry their own list.
    """
    if profile is None:
        return True

    if profile.kosher and not item.kosher_category:
        return False

    for profile_flag, item_flag in FLAG_REQUIREMENTS:
        if getattr(profile, profile_flag) and not getattr(item, item_flag):
            return False

    allergies = _normalize_allergens(profile.allergies)
    if allergies and allergies & _normalize_allergens(item.allergens):
        return False

    return True


def filter_compliant(profile, items):
    """Return the items the profile allows, in input order."""
    return [item for item in items if is_compliant(profile, item)]


def load_compliant_recipes(family):
    """System-wide recipes plus the family's own, filtered by its diet profile."""
    recipes = Recipe.query.filter(
        db.or_(Recipe.family_id.is_(None), Recipe.family_id == family.id)
    ).order_by(Recipe.id).all()
    return filter_compliant(family.diet_profile, recipes)


def load_compliant_components(family):
    """System components plus the family's custom ones, filtered by its diet profile."""
    components = FoodComponent.query.filter(
        db.or_(FoodComponent.is_system.is_(True), FoodComponent.family_id == family.id)
    ).order_by(FoodComponent.id).all()
    return filter_compliant(family.diet_profile, components)
