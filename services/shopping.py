"""
Shopping List Service

Derives a purchase-ready shopping list from a weekly plan: aggregates
recipe ingredients and meal components, scales them for portions and
guests, adds diet alternatives, deducts inventory and rounds to what a
shop actually sells.
"""

import math
import time

from constants import (
    CATEGORY_TRANSLATIONS,
    CHILD_PORTION_FACTOR,
    DEFAULT_RECIPE_SERVINGS,
    GLUTEN_FREE_ALTERNATIVE,
    GRAM_MARKER,
    KILOGRAM_MARKER,
    LACTOSE_FREE_ALTERNATIVE,
    LITRE_MARKER,
    MILLILITRE_MARKER,
    PIECE_UNITS,
    ROUNDING_STEPS,
)
from models import db, FamilyMember, ShoppingList, ShoppingItem, WeeklyPlan
from utils.errors import NotFound, ValidationError
from utils.logger import get_logger
from .cutoff import ensure_member_of
from .effects import SideEffectOutcome

logger = get_logger(__name__)


def unit_class(unit):
    """
    Map a free-form unit onto a rounding class.

    Units are matched by substring on the lowercased value, so 'kg' must be
    tested before 'g' and 'ml' before 'l'. Piece-like units match exactly.
    """
    unit = (unit or '').strip().lower()

    if unit in PIECE_UNITS:
        return 'piece'
    if KILOGRAM_MARKER in unit:
        return 'kilogram'
    if MILLILITRE_MARKER in unit:
        return 'millilitre'
    if GRAM_MARKER in unit:
        return 'gram'
    if LITRE_MARKER in unit:
        return 'litre'
    return 'other'


def _increment_for(quantity, steps):
    for bound, increment in steps:
        if bound is None or quantity < bound:
            return increment
    return steps[-1][1]


def round_quantity(quantity, unit):
    """
    Round a quantity up to the next purchasable increment for its unit.

    Rounding never goes down and is idempotent. Zero stays zero.

    >>> round_quantity(120, 'g')
    125
    >>> round_quantity(0.3, 'kg')
    0.5
    """
    if quantity <= 0:
        return 0

    increment = _increment_for(quantity, ROUNDING_STEPS[unit_class(unit)])
    # round() first so 0.3 / 0.1 does not become 3.0000000000000004 and ceil to 4
    steps = math.ceil(round(quantity / increment, 6))
    rounded = round(steps * increment, 6)

    if rounded == int(rounded):
        return int(rounded)
    return rounded


def translate_category(category):
    """Display category for a raw ingredient category; unknown ones pass through."""
    if not category:
        return 'Other'
    return CATEGORY_TRANSLATIONS.get(category.lower(), category)


def total_guests(meal):
    """Guests at a meal in adult equivalents."""
    return sum(g.adults + g.children * CHILD_PORTION_FACTOR for g in meal.guests)


def _add(aggregated, name, name_en, quantity, unit, category, alternatives,
         contains_gluten, contains_lactose, recipe_title=None):
    key = (name, unit, category)
    item = aggregated.get(key)

    if item is None:
        item = {
            'name': name,
            'name_en': name_en,
            'quantity': 0.0,
            'unit': unit,
            'category': category,
            'alternatives': list(alternatives or []),
            'contains_gluten': contains_gluten,
            'contains_lactose': contains_lactose,
            'recipe_names': [],
        }
        aggregated[key] = item

    item['quantity'] += quantity
    if recipe_title and recipe_title not in item['recipe_names']:
        item['recipe_names'].append(recipe_title)


def aggregate_meals(meals, profile, inventory):
    """
    Aggregate the meals of a plan into shopping items.

    Args:
        meals: Meal rows of one plan
        profile: the family DietProfile (may be None)
        inventory: InventoryItem rows of the family

    Returns:
        List of item dicts (name, name_en, quantity, unit, category,
        alternatives, recipe_names, in_stock, order) sorted by category
        then name
    """
    aggregated = {}

    for meal in meals:
        if meal.is_skipped or meal.is_school_meal or meal.is_external:
            continue

        guests = total_guests(meal)

        if meal.recipe is not None:
            recipe = meal.recipe
            serving_factor = meal.portions / (recipe.servings or DEFAULT_RECIPE_SERVINGS)
            final_factor = serving_factor * (1 + guests / meal.portions)

            for ingredient in recipe.ingredients:
                _add(
                    aggregated,
                    ingredient.name,
                    ingredient.name_en,
                    ingredient.quantity * final_factor,
                    ingredient.unit,
                    translate_category(ingredient.category),
                    ingredient.alternatives,
                    ingredient.contains_gluten,
                    ingredient.contains_lactose,
                    recipe_title=recipe.title,
                )

        # Component quantities are per person
        servings = meal.portions + guests
        for meal_component in meal.meal_components:
            component = meal_component.component
            _add(
                aggregated,
                component.name,
                component.name_en,
                meal_component.quantity * servings,
                meal_component.unit,
                translate_category(component.shopping_category),
                [],
                not component.gluten_free,
                not component.lactose_free,
            )

    items = sorted(aggregated.values(), key=lambda i: (i['category'], i['name']))

    stock = {}
    for inv in inventory:
        stock.setdefault(inv.name.lower(), inv)

    result = []
    for order, item in enumerate(items):
        alternatives = list(item['alternatives'])
        if profile is not None and profile.gluten_free and item['contains_gluten']:
            alternatives.insert(0, GLUTEN_FREE_ALTERNATIVE)
        if profile is not None and profile.lactose_free and item['contains_lactose']:
            alternatives.insert(0, LACTOSE_FREE_ALTERNATIVE)

        quantity = item['quantity']
        in_stock = False
        stock_item = stock.get(item['name'].lower())
        if stock_item is not None and stock_item.quantity > 0:
            # Same 6-digit tolerance as round_quantity so float noise is not left to buy
            quantity = max(0, round(quantity - stock_item.quantity, 6))
            in_stock = quantity == 0

        result.append({
            'name': item['name'],
            'name_en': item['name_en'],
            'quantity': round_quantity(quantity, item['unit']),
            'unit': item['unit'],
            'category': item['category'],
            'alternatives': alternatives,
            'recipe_names': item['recipe_names'],
            'in_stock': in_stock,
            'order': order,
        })

    return result


def generate_shopping_list(plan_id):
    """
    Rebuild the shopping list of a plan from its current meals.

    The previous list, if any, is deleted and replaced in one commit.

    Raises:
        NotFound: if the plan does not exist
    """
    started = time.monotonic()

    plan = db.session.get(WeeklyPlan, plan_id)
    if plan is None:
        raise NotFound('Weekly plan not found', plan_id=plan_id)

    family = plan.family
    items = aggregate_meals(plan.meals, family.diet_profile, family.inventory)

    existing = ShoppingList.query.filter_by(weekly_plan_id=plan.id).first()
    if existing is not None:
        db.session.delete(existing)
        db.session.flush()

    shopping_list = ShoppingList(family_id=plan.family_id, weekly_plan_id=plan.id)
    for data in items:
        shopping_list.items.append(ShoppingItem(**data))

    db.session.add(shopping_list)
    db.session.commit()

    logger.info(
        'Shopping list generated for plan %s: %d items from %d meals, %d inventory items checked in %.1f ms',
        plan.id, len(items), len(plan.meals), len(family.inventory),
        (time.monotonic() - started) * 1000,
    )
    return shopping_list


def refresh_shopping_list(plan_id):
    """Regenerate after a mutation. Failures are logged, never raised."""
    try:
        generate_shopping_list(plan_id)
    except Exception:
        db.session.rollback()
        logger.error('Shopping list regeneration failed for plan %s', plan_id, exc_info=True)
        return SideEffectOutcome.FAILED
    return SideEffectOutcome.APPLIED


def get_shopping_list(plan_id):
    """Return the stored list of a plan, or None if it was never generated."""
    return ShoppingList.query.filter_by(weekly_plan_id=plan_id).first()


def _load_item(item_id, member_id):
    """A shopping item of the acting member's family."""
    item = db.session.get(ShoppingItem, item_id)
    if item is None:
        raise NotFound('Shopping item not found', item_id=item_id)
    member = db.session.get(FamilyMember, member_id) if member_id is not None else None
    if member is None:
        raise NotFound('Family member not found', member_id=member_id)
    ensure_member_of(item.shopping_list.family_id, member)
    return item


def toggle_item_checked(item_id, member_id):
    """Tick or untick an item while shopping."""
    item = _load_item(item_id, member_id)
    item.checked = not item.checked
    db.session.commit()
    logger.debug('Shopping item %s checked=%s', item.id, item.checked)
    return item


def update_shopping_item(item_id, member_id, quantity=None, unit=None, checked=None, in_stock=None):
    """
    Edit one item by hand. Fields left as None are unchanged.

    Manual edits last until the list is next regenerated.

    Raises:
        ValidationError: non-positive quantity, empty unit or non-boolean flags
    """
    item = _load_item(item_id, member_id)

    if quantity is not None:
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity < 0:
            raise ValidationError('Quantity must be a non-negative number', value=quantity)
    if unit is not None and not str(unit).strip():
        raise ValidationError('Unit cannot be empty')
    for field, value in (('checked', checked), ('inStock', in_stock)):
        if value is not None and not isinstance(value, bool):
            raise ValidationError(f'{field} must be true or false', value=value)

    if quantity is not None:
        item.quantity = quantity
    if unit is not None:
        item.unit = str(unit).strip()
    if checked is not None:
        item.checked = checked
    if in_stock is not None:
        item.in_stock = in_stock
    db.session.commit()
    return item
