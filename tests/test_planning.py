"""
Plan generation, template resolution, status lifecycle and cutoff settings
"""

from datetime import date

import pytest

from models import db, Meal, PlanChangeLog, WeeklyPlan
from services.effects import SideEffectOutcome
from services.meals import adjust_portions
from services.planning import (
    generate_auto_plan,
    generate_express_plan,
    lock_plan,
    resolve_template,
    set_cutoff,
    submit_for_validation,
    switch_template,
    validate_plan,
)
from services.shopping import get_shopping_list
from tests.conftest import WEEK_START
from tests.factories import (
    ScriptedRandom, make_component, make_family, make_recipe, make_school_menu,
    make_template, member_with_role,
)
from utils.errors import (
    Conflict, Forbidden, NoCompliantCatalog, NoFavoritesAvailable, NotFound, ValidationError,
)


@pytest.fixture()
def admin(family):
    return member_with_role(family, 'ADMIN')


@pytest.fixture()
def plan(family, admin, catalog, rng, notifier):
    return generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier).subject


def test_standard_week_plan(family, admin, catalog, rng, notifier):
    result = generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier)
    plan = result.subject

    assert plan.status == 'DRAFT'
    assert plan.template.name == 'Standard Work Week'
    assert (plan.week_number, plan.year) == (43, 2026)
    assert len(plan.meals) == 9
    assert {m.portions for m in plan.meals} == {3}
    assert result.effects == {
        'audit': SideEffectOutcome.APPLIED,
        'notification': SideEffectOutcome.APPLIED,
        'shopping_list': SideEffectOutcome.APPLIED,
    }
    assert PlanChangeLog.query.filter_by(change_type='PLAN_CREATED').count() == 1


def test_week_start_accepts_iso_strings(family, admin, catalog, rng, notifier):
    plan = generate_auto_plan(family.id, admin.id, '2026-10-19', rng=rng, notifier=notifier).subject
    assert plan.week_start_date == WEEK_START


def test_novelties_are_capped(plan, catalog):
    novelty_meals = [m for m in plan.meals if m.recipe_id == catalog['novelty'].id]
    assert len(novelty_meals) == 2


def test_shopping_list_is_generated_with_the_plan(plan):
    items = get_shopping_list(plan.id).items

    # Two curry dinners and seven roast chickens for three people
    assert [(i.name, i.quantity, i.unit, i.category) for i in items] == [
        ('Poulet', 6.5, 'kg', 'Butcher'),
        ('Lentilles', 400, 'g', 'Pantry'),
    ]
    assert items[1].recipe_names == ['Curry de lentilles']


def test_school_lunch_leaves_the_slot_empty(family, admin, catalog, rng, notifier):
    make_school_menu(family, date(2026, 10, 24), category='pasta')

    plan = generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier).subject

    saturday_lunch = next(m for m in plan.meals
                          if (m.day_of_week, m.meal_type) == ('SATURDAY', 'LUNCH'))
    assert saturday_lunch.is_school_meal
    assert saturday_lunch.recipe_id is None


def test_diet_profile_filters_the_catalog(admin, rng, notifier):
    vegan_family = make_family('Dupont', vegan=True)
    member = member_with_role(vegan_family, 'ADMIN')
    make_recipe('Poulet basquaise', category='meat')
    make_recipe('Dahl', vegan=True, vegetarian=True)

    plan = generate_auto_plan(vegan_family.id, member.id, WEEK_START, rng=rng, notifier=notifier).subject

    assert {m.recipe.title for m in plan.meals} == {'Dahl'}


def test_component_meals_are_persisted_with_default_quantities(family, admin, catalog, notifier):
    make_component('Saumon', 'PROTEIN', default_quantity=150)
    make_component('Brocoli', 'VEGETABLE')
    make_component('Riz', 'CARB', default_quantity=80)
    rng = ScriptedRandom([0.1, 0.1], default_random=0.99)

    plan = generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier).subject

    first = plan.meals[0]
    assert first.recipe_id is None
    assert [(mc.component.name, mc.role, mc.quantity) for mc in first.meal_components] == [
        ('Saumon', 'MAIN_PROTEIN', 150),
        ('Brocoli', 'PRIMARY_VEGETABLE', 100),
        ('Riz', 'BASE_CARB', 80),
    ]


def test_empty_catalog_creates_nothing(family, admin, rng, notifier):
    with pytest.raises(NoCompliantCatalog):
        generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier)

    assert Meal.query.count() == 0


def test_outsider_cannot_generate(family, catalog, rng, notifier):
    outsider = member_with_role(make_family('Other'), 'ADMIN')
    with pytest.raises(Forbidden):
        generate_auto_plan(family.id, outsider.id, WEEK_START, rng=rng, notifier=notifier)


def test_unknown_family(admin, rng):
    with pytest.raises(NotFound):
        generate_auto_plan(999, admin.id, WEEK_START, rng=rng)


# --- Templates ---

def test_resolve_explicit_family_default_then_system(family):
    weekend = make_template('Mine', [{'dayOfWeek': 'SUNDAY', 'mealTypes': ['LUNCH']}], family=family)
    assert resolve_template(family).name == 'Standard Work Week'

    family.default_template_id = weekend.id
    db.session.commit()
    assert resolve_template(family).id == weekend.id

    assert resolve_template(family, default_name='Full Week').id == weekend.id


def test_template_of_another_family_is_not_found(family):
    other = make_family('Other')
    theirs = make_template('Theirs', [{'dayOfWeek': 'MONDAY', 'mealTypes': ['DINNER']}], family=other)

    with pytest.raises(NotFound):
        resolve_template(family, theirs.id)


def test_missing_default_template(family):
    with pytest.raises(NotFound, match='No meal schedule template found'):
        resolve_template(family, default_name='Does Not Exist')


def test_switch_template_recomposes_the_plan(plan, admin, rng):
    full_week = resolve_template(plan.family, default_name='Full Week')

    result = switch_template(plan.id, admin.id, full_week.id, rng=rng)

    assert result.subject.template_id == full_week.id
    assert len(result.subject.meals) == 14
    assert result.effects['audit'] is SideEffectOutcome.APPLIED


def test_switch_template_only_on_drafts(plan, admin, rng):
    submit_for_validation(plan.id, admin.id)
    with pytest.raises(ValidationError):
        switch_template(plan.id, admin.id, None, rng=rng)


# --- Express ---

def test_express_plan(family, admin, catalog, notifier):
    plan = generate_express_plan(family.id, admin.id, WEEK_START,
                                 rng=ScriptedRandom(ranges=[5]), notifier=notifier).subject

    assert plan.template_id is None
    assert len(plan.meals) == 14
    novelty_meals = [m for m in plan.meals if m.recipe_id == catalog['novelty'].id]
    assert [(m.day_of_week, m.meal_type) for m in novelty_meals] == [('WEDNESDAY', 'DINNER')]


def test_express_plan_needs_favorites(family, admin, rng):
    make_recipe('Soupe')
    with pytest.raises(NoFavoritesAvailable):
        generate_express_plan(family.id, admin.id, WEEK_START, rng=rng)


# --- Status ---

def test_status_moves_forward(plan, admin):
    assert submit_for_validation(plan.id, admin.id).subject.status == 'IN_VALIDATION'
    validated = validate_plan(plan.id, admin.id).subject
    assert validated.status == 'VALIDATED'
    assert validated.validated_at is not None
    assert lock_plan(plan.id, admin.id).subject.status == 'LOCKED'

    entries = PlanChangeLog.query.filter_by(change_type='PLAN_STATUS_CHANGED').count()
    assert entries == 3


def test_status_may_skip_ahead_but_never_back(plan, admin):
    lock_plan(plan.id, admin.id)
    with pytest.raises(Conflict):
        validate_plan(plan.id, admin.id)


def test_same_status_is_a_conflict(plan, admin):
    submit_for_validation(plan.id, admin.id)
    with pytest.raises(Conflict):
        submit_for_validation(plan.id, admin.id)


def test_children_cannot_change_status(plan, family):
    child = member_with_role(family, 'CHILD')
    with pytest.raises(Forbidden):
        submit_for_validation(plan.id, child.id)


def test_validation_skips_empty_meals(plan, admin):
    empty = Meal(weekly_plan_id=plan.id, day_of_week='MONDAY', meal_type='LUNCH', portions=3)
    db.session.add(empty)
    db.session.commit()

    validate_plan(plan.id, admin.id)

    assert db.session.get(Meal, empty.id).is_skipped
    assert not any(m.is_skipped for m in plan.meals if m.id != empty.id)


# --- Cutoff ---

def test_set_and_clear_cutoff(plan, admin):
    result = set_cutoff(plan.id, admin.id, '2026-10-18', '9:30', allow_comments_after_cutoff=False)
    assert result.subject.cutoff_date == date(2026, 10, 18)
    assert result.subject.cutoff_time == '09:30'
    assert result.subject.allow_comments_after_cutoff is False

    cleared = set_cutoff(plan.id, admin.id, None, None).subject
    assert cleared.cutoff_date is None and cleared.cutoff_time is None


def test_cutoff_needs_date_and_time(plan, admin):
    with pytest.raises(ValidationError):
        set_cutoff(plan.id, admin.id, '2026-10-18', None)
    with pytest.raises(ValidationError):
        set_cutoff(plan.id, admin.id, '2026-10-18', '25:00')


def test_only_privileged_members_set_the_cutoff(plan, family):
    with pytest.raises(Forbidden):
        set_cutoff(plan.id, member_with_role(family, 'CHILD').id, '2026-10-18', '18:00')


# --- Transactions and side effects ---

def test_failed_meal_insert_rolls_back_the_plan(family, admin, catalog, rng, notifier, monkeypatch):
    def broken_persist(plan, drafts):
        plan.meals.append(Meal(day_of_week='MONDAY', meal_type='DINNER', portions=3))
        raise RuntimeError('disk full')

    monkeypatch.setattr('services.planning.persist_drafts', broken_persist)

    with pytest.raises(RuntimeError):
        generate_auto_plan(family.id, admin.id, WEEK_START, rng=rng, notifier=notifier)

    assert WeeklyPlan.query.count() == 0
    assert Meal.query.count() == 0


def test_failed_template_switch_keeps_the_old_meals(plan, admin, rng, monkeypatch):
    full_week = resolve_template(plan.family, default_name='Full Week')

    def broken_persist(plan, drafts):
        raise RuntimeError('disk full')

    monkeypatch.setattr('services.planning.persist_drafts', broken_persist)

    with pytest.raises(RuntimeError):
        switch_template(plan.id, admin.id, full_week.id, rng=rng)

    assert Meal.query.filter_by(weekly_plan_id=plan.id).count() == 9
    assert db.session.get(WeeklyPlan, plan.id).template.name == 'Standard Work Week'


def test_shopping_list_failure_does_not_undo_the_edit(plan, admin, monkeypatch):
    meal_id = plan.meals[0].id

    def broken_generate(plan_id):
        raise RuntimeError('aggregation failed')

    monkeypatch.setattr('services.shopping.generate_shopping_list', broken_generate)

    result = adjust_portions(plan.id, meal_id, admin.id, 6)

    assert result.effects == {
        'audit': SideEffectOutcome.APPLIED,
        'shopping_list': SideEffectOutcome.FAILED,
    }
    db.session.expire_all()
    assert db.session.get(Meal, meal_id).portions == 6
