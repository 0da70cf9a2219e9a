"""
Planning Service

Generates weekly plans and moves them through their lifecycle
(DRAFT -> IN_VALIDATION -> VALIDATED -> LOCKED). Plan, meals and meal
components are written in one transaction; the change log, the
notification and the shopping list follow as best-effort side effects.
"""

import time
from datetime import datetime, timedelta

from constants import DEFAULT_TEMPLATE_NAME, PLAN_STATUSES
from models import (
    db, atomic, Family, FamilyMember, Meal, MealComponent,
    MealScheduleTemplate, SchoolMenu, WeeklyPlan,
)
from utils.errors import Conflict, NotFound, ValidationError
from utils.logger import get_logger
from utils.validators import parse_cutoff_time, parse_date
from .audit import record_change
from .composer import compose_express_week, compose_week
from .cutoff import ensure_can_mutate, ensure_member_of, require_privileged
from .diet import load_compliant_components, load_compliant_recipes
from .effects import OperationResult
from .notifications import LoggingNotifier, notify_plan_created
from .selection import make_random
from .shopping import refresh_shopping_list

logger = get_logger(__name__)


# --- Lookups ---

def load_family(family_id):
    family = db.session.get(Family, family_id)
    if family is None:
        raise NotFound('Family not found', family_id=family_id)
    return family


def load_member(member_id):
    member = db.session.get(FamilyMember, member_id) if member_id is not None else None
    if member is None:
        raise NotFound('Family member not found', member_id=member_id)
    return member


def load_plan(plan_id):
    plan = db.session.get(WeeklyPlan, plan_id)
    if plan is None:
        raise NotFound('Weekly plan not found', plan_id=plan_id)
    return plan


def load_meal(plan, meal_id):
    """A meal of the given plan; meals of other plans are not visible."""
    meal = db.session.get(Meal, meal_id)
    if meal is None or meal.weekly_plan_id != plan.id:
        raise NotFound('Meal not found', plan_id=plan.id, meal_id=meal_id)
    return meal


def week_info(week_start):
    """(ISO week number, year) of a plan's start date."""
    return week_start.isocalendar()[1], week_start.year


def family_portions(family):
    """Default portions of a generated meal: one per family member."""
    return max(1, len(family.members))


def resolve_template(family, template_id=None, default_name=DEFAULT_TEMPLATE_NAME):
    """
    Pick the schedule template of a generation.

    An explicit template must be a system template or one of the family's.
    Without one, the family default is used, then the system template
    called default_name.

    Raises:
        NotFound: if no template can be resolved
    """
    if template_id is not None:
        template = db.session.get(MealScheduleTemplate, template_id)
        if template is None or not (template.is_system or template.family_id == family.id):
            raise NotFound('Template not found', template_id=template_id)
        return template

    if family.default_template is not None:
        return family.default_template

    template = MealScheduleTemplate.query.filter_by(is_system=True, name=default_name).first()
    if template is None:
        raise NotFound('No meal schedule template found', family_id=family.id)
    return template


def school_menus_for_week(family, week_start):
    week_end = week_start + timedelta(days=7)
    return SchoolMenu.query.filter(
        SchoolMenu.family_id == family.id,
        SchoolMenu.date >= week_start,
        SchoolMenu.date < week_end,
    ).all()


def persist_drafts(plan, drafts):
    """Add one Meal (and its MealComponents) per draft to the session."""
    meals = []
    for draft in drafts:
        meal = Meal(
            day_of_week=draft.day_of_week,
            meal_type=draft.meal_type,
            recipe_id=draft.recipe.id if draft.recipe is not None else None,
            portions=draft.portions,
            is_school_meal=draft.is_school_meal,
        )
        for order, (component, role) in enumerate(draft.components):
            meal.meal_components.append(MealComponent(
                component_id=component.id,
                role=role,
                quantity=component.default_quantity,
                unit=component.unit,
                order=order,
            ))
        plan.meals.append(meal)
        meals.append(meal)
    return meals


def _after_generation(plan, member, notifier):
    effects = {
        'audit': record_change(plan.id, 'PLAN_CREATED', member=member),
        'notification': notify_plan_created(
            notifier, plan.family_id, plan.id, plan.week_start_date, member.name
        ),
        'shopping_list': refresh_shopping_list(plan.id),
    }
    return OperationResult(plan, effects)


def _create_plan(family, template, week_start, drafts):
    week_number, year = week_info(week_start)
    with atomic():
        plan = WeeklyPlan(
            family_id=family.id,
            template_id=template.id if template is not None else None,
            week_start_date=week_start,
            week_number=week_number,
            year=year,
            status='DRAFT',
        )
        db.session.add(plan)
        persist_drafts(plan, drafts)
    return plan


# --- Generation ---

def generate_auto_plan(family_id, member_id, week_start, template_id=None, rng=None,
                       notifier=None, default_template_name=DEFAULT_TEMPLATE_NAME):
    """
    Generate a DRAFT plan for a week from a schedule template.

    Args:
        family_id: family to plan for
        member_id: acting member (must belong to the family)
        week_start: first day (Monday) of the week, date or ISO string
        template_id: optional explicit template
        rng: random source; a fresh unseeded one by default
        notifier: receives the draft-plan event (LoggingNotifier by default)
        default_template_name: system template used as last resort

    Returns:
        OperationResult(plan, effects)

    Raises:
        NotFound, Forbidden, InsufficientCatalog
    """
    started = time.monotonic()
    week_start = parse_date(week_start, 'weekStartDate')
    family = load_family(family_id)
    member = load_member(member_id)
    ensure_member_of(family.id, member)

    template = resolve_template(family, template_id, default_name=default_template_name)
    recipes = load_compliant_recipes(family)
    components = load_compliant_components(family)
    logger.debug(
        'Generating plan for family %s: %d compliant recipes, %d compliant components',
        family.id, len(recipes), len(components),
    )

    drafts = compose_week(
        template.schedule,
        week_start,
        recipes,
        components,
        school_menus_for_week(family, week_start),
        family.diet_profile,
        family_portions(family),
        rng or make_random(),
    )
    plan = _create_plan(family, template, week_start, drafts)

    sources = {}
    for draft in drafts:
        sources[draft.source] = sources.get(draft.source, 0) + 1
    logger.info(
        'Generated plan %s for family %s (week %s, template %s): %d meals %s in %.1f ms',
        plan.id, family.id, week_start.isoformat(), template.name, len(drafts), sources,
        (time.monotonic() - started) * 1000,
    )

    return _after_generation(plan, member, notifier or LoggingNotifier())


def generate_express_plan(family_id, member_id, week_start, rng=None, notifier=None):
    """
    Generate a DRAFT plan from favorites only: lunch and dinner every day.

    No template is involved and school menus are ignored.

    Raises:
        NotFound, Forbidden, NoFavoritesAvailable
    """
    week_start = parse_date(week_start, 'weekStartDate')
    family = load_family(family_id)
    member = load_member(member_id)
    ensure_member_of(family.id, member)

    recipes = load_compliant_recipes(family)
    drafts = compose_express_week(recipes, family_portions(family), rng or make_random())
    plan = _create_plan(family, None, week_start, drafts)

    logger.info('Generated express plan %s for family %s (week %s)',
                plan.id, family.id, week_start.isoformat())

    return _after_generation(plan, member, notifier or LoggingNotifier())


def switch_template(plan_id, member_id, template_id, rng=None):
    """
    Replace every meal of a DRAFT plan by recomposing it from another template.

    Raises:
        ValidationError: if the plan is not a draft
    """
    plan = load_plan(plan_id)
    member = load_member(member_id)
    ensure_can_mutate(plan, member)
    if plan.status != 'DRAFT':
        raise ValidationError('Can only switch the template of draft plans', plan_id=plan.id)

    family = plan.family
    template = resolve_template(family, template_id)
    old_template_id = plan.template_id

    drafts = compose_week(
        template.schedule,
        plan.week_start_date,
        load_compliant_recipes(family),
        load_compliant_components(family),
        school_menus_for_week(family, plan.week_start_date),
        family.diet_profile,
        family_portions(family),
        rng or make_random(),
    )

    with atomic():
        for meal in list(plan.meals):
            plan.meals.remove(meal)
        db.session.flush()
        plan.template_id = template.id
        persist_drafts(plan, drafts)

    logger.info('Plan %s switched to template %s (%d meals)', plan.id, template.name, len(drafts))

    effects = {
        'audit': record_change(
            plan.id, 'TEMPLATE_SWITCHED', member=member,
            old_value=old_template_id, new_value=template.id,
        ),
        'shopping_list': refresh_shopping_list(plan.id),
    }
    return OperationResult(plan, effects)


# --- Status ---

def _advance(plan_id, member_id, target, before_commit=None):
    plan = load_plan(plan_id)
    member = load_member(member_id)
    ensure_member_of(plan.family_id, member)
    require_privileged(member, 'change the plan status')

    old_status = plan.status
    if PLAN_STATUSES.index(target) <= PLAN_STATUSES.index(old_status):
        raise Conflict(
            f'Cannot move a plan from {old_status} to {target}',
            plan_id=plan.id, status=old_status,
        )

    with atomic():
        if before_commit is not None:
            before_commit(plan)
        plan.status = target

    logger.info('Plan %s moved from %s to %s', plan.id, old_status, target)

    effects = {
        'audit': record_change(
            plan.id, 'PLAN_STATUS_CHANGED', member=member,
            old_value=old_status, new_value=target,
            old_status=old_status, new_status=target,
        ),
    }
    return OperationResult(plan, effects)


def submit_for_validation(plan_id, member_id):
    return _advance(plan_id, member_id, 'IN_VALIDATION')


def _skip_empty_meals(plan):
    skipped = 0
    for meal in plan.meals:
        if meal.is_empty:
            meal.is_skipped = True
            meal.skip_reason = None
            skipped += 1
    if skipped:
        logger.info('Auto-skipped %d empty meals of plan %s', skipped, plan.id)
    plan.validated_at = datetime.utcnow()


def validate_plan(plan_id, member_id):
    """Validate a plan. Empty meals are skipped in the same transaction."""
    return _advance(plan_id, member_id, 'VALIDATED', before_commit=_skip_empty_meals)


def lock_plan(plan_id, member_id):
    return _advance(plan_id, member_id, 'LOCKED')


def set_cutoff(plan_id, member_id, cutoff_date, cutoff_time, allow_comments_after_cutoff=None):
    """
    Configure the modification deadline of a plan (ADMIN or PARENT only).

    Passing None for both date and time removes the cutoff.
    """
    plan = load_plan(plan_id)
    member = load_member(member_id)
    ensure_can_mutate(plan, member)
    require_privileged(member, 'change the cutoff')

    if (cutoff_date is None) != (cutoff_time is None):
        raise ValidationError('Cutoff date and time must be given together')

    old_value = {
        'cutoffDate': plan.cutoff_date.isoformat() if plan.cutoff_date else None,
        'cutoffTime': plan.cutoff_time,
    }

    with atomic():
        if cutoff_date is None:
            plan.cutoff_date = None
            plan.cutoff_time = None
        else:
            plan.cutoff_date = parse_date(cutoff_date, 'cutoffDate')
            plan.cutoff_time = parse_cutoff_time(cutoff_time).strftime('%H:%M')
        if allow_comments_after_cutoff is not None:
            plan.allow_comments_after_cutoff = bool(allow_comments_after_cutoff)

    new_value = {
        'cutoffDate': plan.cutoff_date.isoformat() if plan.cutoff_date else None,
        'cutoffTime': plan.cutoff_time,
    }
    effects = {
        'audit': record_change(
            plan.id, 'CUTOFF_CHANGED', member=member, old_value=old_value, new_value=new_value,
        ),
    }
    return OperationResult(plan, effects)
