"""
Notification Service

Tells the family a draft plan is ready. Delivery (email, push) lives
outside this package; a notifier only has to implement
draft_plan_created(). Notification failures never break plan generation.
"""

from utils.logger import get_logger
from .effects import SideEffectOutcome

logger = get_logger(__name__)


class LoggingNotifier:
    """Default notifier: records the event in the application log."""

    def draft_plan_created(self, family_id, plan_id, week_start_date, created_by):
        logger.info(
            'Draft plan %s for week of %s created by %s (family %s)',
            plan_id, week_start_date.isoformat(), created_by, family_id,
        )


class NullNotifier:
    """Notifier that drops every event."""

    def draft_plan_created(self, family_id, plan_id, week_start_date, created_by):
        pass


def notify_plan_created(notifier, family_id, plan_id, week_start_date, created_by):
    """Hand a draft-plan event to the notifier. Never raises."""
    if notifier is None:
        return SideEffectOutcome.SKIPPED

    try:
        notifier.draft_plan_created(family_id, plan_id, week_start_date, created_by)
    except Exception:
        logger.error('Failed to send draft plan notification for plan %s', plan_id, exc_info=True)
        return SideEffectOutcome.FAILED
    return SideEffectOutcome.APPLIED
