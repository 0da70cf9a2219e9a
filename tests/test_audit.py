"""
Change log descriptions, recording and the notification side effect
"""

from datetime import date

import pytest

from models import PlanChangeLog, WeeklyPlan, db
from services.audit import describe_change, list_changes, record_change
from services.effects import SideEffectOutcome
from services.notifications import NullNotifier, notify_plan_created
from tests.conftest import WEEK_START
from tests.factories import member_with_role
from utils.errors import ValidationError


@pytest.fixture()
def plan(family):
    plan = WeeklyPlan(family_id=family.id, week_start_date=WEEK_START,
                      week_number=43, year=2026, status='DRAFT')
    db.session.add(plan)
    db.session.commit()
    return plan


def test_descriptions_in_three_languages():
    text = describe_change('PORTIONS_CHANGED', 'Alice', old_portions=2, new_portions=4)

    assert text == {
        'description': 'Alice a changé les portions de 2 à 4',
        'description_en': 'Alice changed portions from 2 to 4',
        'description_nl': 'Alice heeft de porties gewijzigd van 2 naar 4',
    }


def test_missing_member_is_the_system():
    assert describe_change('PLAN_CREATED')['description_en'] == 'System created the plan'


def test_missing_details_render_as_placeholder():
    text = describe_change('RECIPE_CHANGED', 'Bob', new_recipe='Soupe')
    assert text['description_en'] == 'Bob changed recipe from "?" to "Soupe"'


def test_unknown_change_type_is_rejected():
    with pytest.raises(ValidationError):
        describe_change('PLAN_EXPLODED')


def test_record_change_writes_an_entry(plan, family):
    admin = member_with_role(family, 'ADMIN')

    outcome = record_change(plan.id, 'PLAN_STATUS_CHANGED', member=admin,
                            old_value='DRAFT', new_value='IN_VALIDATION',
                            old_status='DRAFT', new_status='IN_VALIDATION')

    assert outcome is SideEffectOutcome.APPLIED
    entry = PlanChangeLog.query.one()
    assert entry.member_id == admin.id
    assert entry.old_value == 'DRAFT'
    assert entry.description_en == 'Admin Martin changed status from DRAFT to IN_VALIDATION'


def test_record_change_failure_is_reported_not_raised(plan, caplog):
    outcome = record_change(plan.id, 'NOT_A_CHANGE')

    assert outcome is SideEffectOutcome.FAILED
    assert not outcome.ok
    assert PlanChangeLog.query.count() == 0
    assert 'Failed to record NOT_A_CHANGE' in caplog.text


def test_list_changes_newest_first(plan):
    for change_type in ('PLAN_CREATED', 'MEAL_LOCKED', 'MEAL_UNLOCKED'):
        record_change(plan.id, change_type)

    assert [c.change_type for c in list_changes(plan.id)] == [
        'MEAL_UNLOCKED', 'MEAL_LOCKED', 'PLAN_CREATED',
    ]
    assert len(list_changes(plan.id, limit=2)) == 2


class BrokenNotifier:
    def draft_plan_created(self, family_id, plan_id, week_start_date, created_by):
        raise RuntimeError('mail server down')


def test_notification_outcomes():
    args = (1, 2, date(2026, 10, 19), 'Alice')

    assert notify_plan_created(NullNotifier(), *args) is SideEffectOutcome.APPLIED
    assert notify_plan_created(None, *args) is SideEffectOutcome.SKIPPED
    assert notify_plan_created(BrokenNotifier(), *args) is SideEffectOutcome.FAILED
