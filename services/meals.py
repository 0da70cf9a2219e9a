"""
Meal Service

Every change a family member can make to one meal of a plan: portions,
recipe swaps, locks, skip/restore, guests, attendance, votes, comments
and components.

Each operation follows the same steps: check the cutoff/lock guard, commit
the change, then record it in the change log and, when the shopping list
depends on it, regenerate the list. The return value is an
OperationResult carrying the side effect outcomes.
"""

from constants import (
    ATTENDANCE_STATUSES, COMPONENT_ROLES, MAX_LENGTHS, PRIVILEGED_ROLES, VOTE_TYPES,
)
from models import (
    db, atomic, Attendance, FoodComponent, Guest, Ingredient, Meal,
    MealComment, MealComponent, Recipe, Vote,
)
from utils.errors import Conflict, Forbidden, NotFound, ValidationError
from utils.logger import get_logger
from utils.sanitizer import sanitize_note, sanitize_recipe_name, sanitize_text
from utils.validators import (
    parse_count, parse_portions, validate_comment, validate_day, validate_meal_type,
)
from .audit import record_change
from .cutoff import ensure_can_mutate, require_privileged
from .effects import OperationResult
from .planning import family_portions, load_meal, load_member, load_plan
from .shopping import refresh_shopping_list

logger = get_logger(__name__)


def _meal_context(plan_id, meal_id, member_id):
    plan = load_plan(plan_id)
    member = load_member(member_id)
    meal = load_meal(plan, meal_id)
    return plan, meal, member


def _finish(plan, subject, member, change_type, meal=None, refresh=False, **audit):
    effects = {'audit': record_change(plan.id, change_type, member=member, meal=meal, **audit)}
    if refresh:
        effects['shopping_list'] = refresh_shopping_list(plan.id)
    return OperationResult(subject, effects)


def _visible_recipe(recipe_id, family_id):
    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None or recipe.family_id not in (None, family_id):
        raise NotFound('Recipe not found', recipe_id=recipe_id)
    return recipe


def _visible_component(component_id, family_id):
    component = db.session.get(FoodComponent, component_id)
    if component is None or not (component.is_system or component.family_id == family_id):
        raise NotFound('Food component not found', component_id=component_id)
    return component


def _require_draft(plan, action):
    if plan.status != 'DRAFT':
        raise ValidationError(f'Can only {action} in draft plans', plan_id=plan.id)


def _recipe_title(recipe):
    return recipe.title if recipe is not None else 'None'


# --- Slot content ---

def add_meal(plan_id, member_id, day_of_week, meal_type, recipe_id=None, portions=None):
    """
    Add a slot to a DRAFT plan, optionally with a recipe.

    Raises:
        ValidationError: plan not in DRAFT, bad day, meal type or portions
        Conflict: the slot already exists
    """
    plan = load_plan(plan_id)
    member = load_member(member_id)
    ensure_can_mutate(plan, member)
    _require_draft(plan, 'add meals')

    day_of_week = validate_day(day_of_week)
    meal_type = validate_meal_type(meal_type)
    portions = parse_portions(portions) if portions is not None else family_portions(plan.family)
    recipe = _visible_recipe(recipe_id, plan.family_id) if recipe_id is not None else None

    existing = Meal.query.filter_by(
        weekly_plan_id=plan.id, day_of_week=day_of_week, meal_type=meal_type
    ).first()
    if existing is not None:
        raise Conflict('A meal already exists for this day and meal type',
                       plan_id=plan.id, day=day_of_week, meal_type=meal_type)

    with atomic():
        meal = Meal(
            weekly_plan_id=plan.id,
            day_of_week=day_of_week,
            meal_type=meal_type,
            recipe_id=recipe.id if recipe is not None else None,
            portions=portions,
        )
        db.session.add(meal)

    return _finish(
        plan, meal, member, 'MEAL_ADDED', meal=meal, refresh=True,
        new_value=f'{day_of_week} {meal_type}', day=day_of_week, meal_type=meal_type,
    )


def adjust_portions(plan_id, meal_id, member_id, portions):
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    portions = parse_portions(portions)

    old_portions = meal.portions
    with atomic():
        meal.portions = portions

    return _finish(
        plan, meal, member, 'PORTIONS_CHANGED', meal=meal, refresh=True,
        old_value=old_portions, new_value=portions,
        old_portions=old_portions, new_portions=portions,
    )


def swap_recipe(plan_id, meal_id, member_id, recipe_id):
    """
    Put another recipe on a meal.

    Components and the school-meal flag are cleared so only the recipe
    stays active. A skipped meal must be restored first.
    """
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    if meal.is_skipped:
        raise ValidationError('Restore the meal before changing its recipe', meal_id=meal.id)

    recipe = _visible_recipe(recipe_id, plan.family_id)
    old_title = _recipe_title(meal.recipe)

    with atomic():
        meal.meal_components.clear()
        meal.recipe = recipe
        meal.is_school_meal = False

    return _finish(
        plan, meal, member, 'RECIPE_CHANGED', meal=meal, refresh=True,
        old_value=old_title, new_value=recipe.title,
        old_recipe=old_title, new_recipe=recipe.title,
    )


def set_meal_lock(plan_id, meal_id, member_id, locked):
    """Lock or unlock a meal (ADMIN and PARENT only)."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal, check_meal_lock=False)
    require_privileged(member, 'lock meals')

    if not isinstance(locked, bool):
        raise ValidationError('locked must be true or false', value=locked)
    with atomic():
        meal.locked = locked

    return _finish(
        plan, meal, member, 'MEAL_LOCKED' if locked else 'MEAL_UNLOCKED', meal=meal,
        new_value=locked,
    )


def skip_meal(plan_id, meal_id, member_id, reason=None):
    """
    Skip a meal without deleting it: recipe and components are cleared,
    the slot stays so it can be restored.
    """
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    _require_draft(plan, 'skip meals')

    old_value = meal.label
    if meal.recipe is not None:
        old_value = f'{old_value}: {meal.recipe.title}'

    with atomic():
        meal.meal_components.clear()
        meal.recipe = None
        meal.is_skipped = True
        meal.skip_reason = sanitize_note(reason, MAX_LENGTHS['skip_reason'])

    return _finish(
        plan, meal, member, 'MEAL_REMOVED', meal=meal, refresh=True,
        old_value=old_value, day=meal.day_of_week, meal_type=meal.meal_type,
    )


def restore_meal(plan_id, meal_id, member_id):
    """Bring a skipped meal back as an empty slot."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    _require_draft(plan, 'restore meals')
    if not meal.is_skipped:
        raise ValidationError('Meal is not skipped', meal_id=meal.id)

    with atomic():
        meal.is_skipped = False
        meal.skip_reason = None

    return _finish(
        plan, meal, member, 'MEAL_RESTORED', meal=meal, refresh=True,
        new_value=meal.label, day=meal.day_of_week, meal_type=meal.meal_type,
    )


# --- Family input ---

def add_guests(plan_id, meal_id, member_id, adults=0, children=0, note=None):
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)

    adults = parse_count(adults, 'adults')
    children = parse_count(children, 'children')
    if adults + children == 0:
        raise ValidationError('At least one adult or child guest is required')

    with atomic():
        guest = Guest(
            meal_id=meal.id,
            adults=adults,
            children=children,
            note=sanitize_note(note, MAX_LENGTHS['guest_note']),
        )
        db.session.add(guest)

    return _finish(
        plan, guest, member, 'GUESTS_CHANGED', meal=meal, refresh=True,
        new_value={'adults': adults, 'children': children},
    )


def set_attendance(plan_id, meal_id, member_id, status, target_member_id=None):
    """
    Record whether a member eats this meal.

    Members set their own attendance; ADMIN and PARENT may set anyone's
    in the family.
    """
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)

    status = str(status or '').upper()
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError(f'Invalid attendance status: {status}')

    target = member
    if target_member_id is not None and target_member_id != member.id:
        require_privileged(member, "set another member's attendance")
        target = load_member(target_member_id)
        if target.family_id != plan.family_id:
            raise NotFound('Family member not found', member_id=target_member_id)

    attendance = Attendance.query.filter_by(meal_id=meal.id, member_id=target.id).first()
    old_status = attendance.status if attendance is not None else None

    with atomic():
        if attendance is None:
            attendance = Attendance(meal_id=meal.id, member_id=target.id)
            db.session.add(attendance)
        attendance.status = status

    return _finish(
        plan, attendance, member, 'ATTENDANCE_CHANGED', meal=meal,
        old_value=old_status, new_value=status,
    )


def cast_vote(plan_id, meal_id, member_id, vote_type, comment=None):
    """One vote per member and meal; voting again changes the vote."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)

    vote_type = str(vote_type or '').upper()
    if vote_type not in VOTE_TYPES:
        raise ValidationError(f'Invalid vote type: {vote_type}')

    vote = Vote.query.filter_by(meal_id=meal.id, member_id=member.id).first()
    old_type = vote.type if vote is not None else None

    with atomic():
        if vote is None:
            vote = Vote(meal_id=meal.id, member_id=member.id)
            db.session.add(vote)
        vote.type = vote_type
        vote.comment = sanitize_note(comment, 500)

    return _finish(
        plan, vote, member, 'VOTE_ADDED' if old_type is None else 'VOTE_CHANGED', meal=meal,
        old_value=old_type, new_value=vote_type,
    )


# --- Comments ---

def _load_comment(meal, comment_id):
    comment = db.session.get(MealComment, comment_id)
    if comment is None:
        raise NotFound('Comment not found', comment_id=comment_id)
    if comment.meal_id != meal.id:
        raise ValidationError('Comment does not belong to this meal', comment_id=comment_id)
    return comment


def add_comment(plan_id, meal_id, member_id, content):
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal, comment=True)
    content = sanitize_text(validate_comment(content), max_length=MAX_LENGTHS['comment'])

    with atomic():
        comment = MealComment(meal_id=meal.id, member_id=member.id, content=content)
        db.session.add(comment)

    return _finish(plan, comment, member, 'COMMENT_ADDED', meal=meal, new_value=content)


def edit_comment(plan_id, meal_id, member_id, comment_id, content):
    """Members can only edit their own comments."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal, comment=True)
    comment = _load_comment(meal, comment_id)
    if comment.member_id != member.id:
        raise Forbidden('You can only edit your own comments', comment_id=comment.id)

    content = sanitize_text(validate_comment(content), max_length=MAX_LENGTHS['comment'])
    old_content = comment.content
    with atomic():
        comment.content = content
        comment.is_edited = True

    return _finish(
        plan, comment, member, 'COMMENT_EDITED', meal=meal,
        old_value=old_content, new_value=content,
    )


def delete_comment(plan_id, meal_id, member_id, comment_id):
    """Authors delete their own comments; ADMIN and PARENT delete any."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal, comment=True)
    comment = _load_comment(meal, comment_id)
    if comment.member_id != member.id and member.role not in PRIVILEGED_ROLES:
        raise Forbidden('You can only delete your own comments', comment_id=comment.id)

    old_content = comment.content
    with atomic():
        db.session.delete(comment)

    return _finish(plan, None, member, 'COMMENT_DELETED', meal=meal, old_value=old_content)


# --- Components ---

def add_meal_component(plan_id, meal_id, member_id, component_id, role='OTHER',
                       quantity=None, unit=None):
    """
    Add a food component to an empty or component-based meal.

    Quantity is per person and defaults to the component's default.
    """
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    if meal.recipe_id is not None or meal.is_school_meal or meal.is_skipped:
        raise ValidationError('Only empty or component-based meals can take components',
                              meal_id=meal.id)

    component = _visible_component(component_id, plan.family_id)
    role = str(role or 'OTHER').upper()
    if role not in COMPONENT_ROLES:
        raise ValidationError(f'Invalid component role: {role}')

    if quantity is None:
        quantity = component.default_quantity
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
        raise ValidationError('Quantity must be a positive number', value=quantity)

    with atomic():
        meal_component = MealComponent(
            component_id=component.id,
            role=role,
            quantity=float(quantity),
            unit=unit or component.unit,
            order=len(meal.meal_components),
        )
        meal.meal_components.append(meal_component)

    return _finish(
        plan, meal_component, member, 'COMPONENT_ADDED', meal=meal, refresh=True,
        new_value={'component': component.name, 'role': role},
    )


def remove_meal_component(plan_id, meal_id, member_id, meal_component_id):
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)

    meal_component = db.session.get(MealComponent, meal_component_id)
    if meal_component is None or meal_component.meal_id != meal.id:
        raise NotFound('Meal component not found', meal_component_id=meal_component_id)

    old_value = {'component': meal_component.component.name, 'role': meal_component.role}
    with atomic():
        meal.meal_components.remove(meal_component)

    return _finish(
        plan, None, member, 'COMPONENT_REMOVED', meal=meal, refresh=True, old_value=old_value,
    )


def update_meal_component(plan_id, meal_id, member_id, meal_component_id, quantity=None,
                          unit=None, role=None):
    """Change the per-person quantity, unit or role of a component already on a meal."""
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)

    meal_component = db.session.get(MealComponent, meal_component_id)
    if meal_component is None or meal_component.meal_id != meal.id:
        raise NotFound('Meal component not found', meal_component_id=meal_component_id)
    if quantity is None and unit is None and role is None:
        raise ValidationError('Nothing to update')

    if quantity is not None and (
        isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0
    ):
        raise ValidationError('Quantity must be a positive number', value=quantity)
    if unit is not None and (not isinstance(unit, str) or not unit.strip()):
        raise ValidationError('Unit must be a non-empty string', value=unit)
    if role is not None:
        role = str(role).upper()
        if role not in COMPONENT_ROLES:
            raise ValidationError(f'Invalid component role: {role}')

    old_value = {
        'quantity': meal_component.quantity,
        'unit': meal_component.unit,
        'role': meal_component.role,
    }
    with atomic():
        if quantity is not None:
            meal_component.quantity = float(quantity)
        if unit is not None:
            meal_component.unit = unit.strip()
        if role is not None:
            meal_component.role = role

    return _finish(
        plan, meal_component, member, 'COMPONENT_CHANGED', meal=meal, refresh=True,
        old_value=old_value,
        new_value={
            'quantity': meal_component.quantity,
            'unit': meal_component.unit,
            'role': meal_component.role,
        },
    )


def _shared_kosher_category(components):
    categories = {c.kosher_category for c in components}
    if len(categories) == 1:
        return categories.pop()
    return None


def save_component_meal_as_recipe(plan_id, meal_id, member_id, name=None, name_en=None):
    """
    Turn a component-based meal into a family recipe and put it on the meal.

    The recipe serves the meal's portions, so its ingredient quantities
    are the per-person quantities times portions and the shopping list
    does not change. Compliance flags hold only if every component has them.

    Raises:
        ValidationError: the meal has a recipe or no components
    """
    plan, meal, member = _meal_context(plan_id, meal_id, member_id)
    ensure_can_mutate(plan, member, meal=meal)
    if meal.recipe_id is not None:
        raise ValidationError('Meal already has a recipe', meal_id=meal.id)
    if not meal.meal_components:
        raise ValidationError('Meal has no components to save as recipe', meal_id=meal.id)

    components = [mc.component for mc in meal.meal_components]
    default_title = ' avec '.join(c.name for c in components)
    default_title_en = ' with '.join(c.name_en or c.name for c in components)

    with atomic():
        recipe = Recipe(
            title=sanitize_recipe_name(name, default_title),
            title_en=sanitize_recipe_name(name_en, default_title_en),
            family_id=plan.family_id,
            category='other',
            servings=meal.portions,
            kosher_category=_shared_kosher_category(components),
            halal_friendly=all(c.halal_friendly for c in components),
            vegetarian=all(c.vegetarian for c in components),
            vegan=all(c.vegan for c in components),
            pescatarian=all(c.pescatarian for c in components),
            gluten_free=all(c.gluten_free for c in components),
            lactose_free=all(c.lactose_free for c in components),
            is_component_based=True,
        )
        for order, mc in enumerate(meal.meal_components):
            recipe.ingredients.append(Ingredient(
                name=mc.component.name,
                name_en=mc.component.name_en or mc.component.name,
                quantity=mc.quantity * meal.portions,
                unit=mc.unit,
                category=mc.component.shopping_category,
                contains_gluten=not mc.component.gluten_free,
                contains_lactose=not mc.component.lactose_free,
                allergens=list(mc.component.allergens or []),
                order=order,
            ))
        db.session.add(recipe)
        meal.meal_components.clear()
        meal.recipe = recipe

    logger.info('Meal %s saved as recipe %s', meal.id, recipe.id)

    return _finish(
        plan, recipe, member, 'RECIPE_CHANGED', meal=meal, refresh=True,
        old_value='None', new_value=recipe.title, old_recipe='None', new_recipe=recipe.title,
    )
