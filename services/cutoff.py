"""
Cutoff & Lock Enforcement

Decides whether a family member may still change a plan or one of its
meals, based on plan status, meal lock, the cutoff deadline and the
member's role.
"""

from datetime import datetime

from constants import PRIVILEGED_ROLES
from utils.errors import Forbidden
from utils.validators import parse_cutoff_time

PLAN_LOCKED_MESSAGE = 'This plan is locked and cannot be modified'
MEAL_LOCKED_MESSAGE = 'Meal is locked and cannot be modified'
CUTOFF_PASSED_MESSAGE = (
    'The cutoff deadline for modifications has passed. '
    'Please contact a family administrator.'
)


def is_after_cutoff(cutoff_date, cutoff_time, now=None):
    """
    True once the plan's cutoff instant is in the past.

    No cutoff (missing date or time) means never after cutoff. Times are
    compared as naive local times.
    """
    if not cutoff_date or not cutoff_time:
        return False

    deadline = datetime.combine(cutoff_date, parse_cutoff_time(cutoff_time))
    return (now or datetime.now()) > deadline


def can_edit_after_cutoff(role):
    return role in PRIVILEGED_ROLES


def ensure_member_of(family_id, member):
    if member is None or member.family_id != family_id:
        raise Forbidden('You are not a member of this family', family_id=family_id)


def require_privileged(member, action='perform this action'):
    """Only ADMIN and PARENT members may lock meals or move plan status."""
    if member.role not in PRIVILEGED_ROLES:
        raise Forbidden(f'You do not have permission to {action}', member_id=member.id)


def ensure_can_mutate(plan, member, meal=None, comment=False, now=None, check_meal_lock=True):
    """
    Gate a mutation of a plan or one of its meals.

    Checks run in order: membership, plan LOCKED, meal locked (skipped for
    comments and for lock/unlock itself via check_meal_lock=False), then the
    cutoff. After cutoff only ADMIN and PARENT may change anything; comments
    stay open to everyone when the plan allows comments after cutoff.

    Raises:
        Forbidden: with the reason the mutation is refused
    """
    ensure_member_of(plan.family_id, member)

    if plan.status == 'LOCKED':
        raise Forbidden(PLAN_LOCKED_MESSAGE, plan_id=plan.id)

    if meal is not None and meal.locked and check_meal_lock and not comment:
        raise Forbidden(MEAL_LOCKED_MESSAGE, plan_id=plan.id, meal_id=meal.id)

    if is_after_cutoff(plan.cutoff_date, plan.cutoff_time, now=now):
        if comment and plan.allow_comments_after_cutoff:
            return
        if not can_edit_after_cutoff(member.role):
            raise Forbidden(CUTOFF_PASSED_MESSAGE, plan_id=plan.id)


def check_can_modify_meal(plan, member, meal, now=None):
    """
    Read-side variant of ensure_can_mutate() for a meal.

    Returns:
        (allowed, reason) where reason is None when allowed
    """
    try:
        ensure_can_mutate(plan, member, meal=meal, now=now)
    except Forbidden as e:
        return False, e.message
    return True, None
