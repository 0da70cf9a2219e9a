"""
Audit Service

Append-only change log for weekly plans. Every mutation leaves one entry
described in French, English and Dutch. Writing an entry is best effort:
a failure is logged and reported, the mutation itself stands.
"""

from constants import CHANGE_TYPES
from models import db, PlanChangeLog
from utils.errors import ValidationError
from utils.logger import get_logger
from .effects import SideEffectOutcome

logger = get_logger(__name__)

# change type -> (fr, en, nl)
DESCRIPTIONS = {
    'PLAN_CREATED': (
        '{member} a créé le plan',
        '{member} created the plan',
        '{member} heeft het plan aangemaakt',
    ),
    'PLAN_STATUS_CHANGED': (
        '{member} a changé le statut de {old_status} à {new_status}',
        '{member} changed status from {old_status} to {new_status}',
        '{member} heeft de status gewijzigd van {old_status} naar {new_status}',
    ),
    'MEAL_ADDED': (
        '{member} a ajouté {meal_type} pour {day}',
        '{member} added {meal_type} for {day}',
        '{member} heeft {meal_type} toegevoegd voor {day}',
    ),
    'MEAL_REMOVED': (
        '{member} a supprimé {meal_type} du {day}',
        '{member} removed {meal_type} from {day}',
        '{member} heeft {meal_type} verwijderd van {day}',
    ),
    'MEAL_RESTORED': (
        '{member} a rétabli {meal_type} du {day}',
        '{member} restored {meal_type} on {day}',
        '{member} heeft {meal_type} hersteld op {day}',
    ),
    'RECIPE_CHANGED': (
        '{member} a changé la recette de "{old_recipe}" à "{new_recipe}"',
        '{member} changed recipe from "{old_recipe}" to "{new_recipe}"',
        '{member} heeft het recept gewijzigd van "{old_recipe}" naar "{new_recipe}"',
    ),
    'PORTIONS_CHANGED': (
        '{member} a changé les portions de {old_portions} à {new_portions}',
        '{member} changed portions from {old_portions} to {new_portions}',
        '{member} heeft de porties gewijzigd van {old_portions} naar {new_portions}',
    ),
    'MEAL_LOCKED': (
        '{member} a verrouillé le repas',
        '{member} locked the meal',
        '{member} heeft de maaltijd vergrendeld',
    ),
    'MEAL_UNLOCKED': (
        '{member} a déverrouillé le repas',
        '{member} unlocked the meal',
        '{member} heeft de maaltijd ontgrendeld',
    ),
    'COMPONENT_ADDED': (
        '{member} a ajouté un composant',
        '{member} added a component',
        '{member} heeft een component toegevoegd',
    ),
    'COMPONENT_REMOVED': (
        '{member} a supprimé un composant',
        '{member} removed a component',
        '{member} heeft een component verwijderd',
    ),
    'COMPONENT_CHANGED': (
        '{member} a modifié un composant',
        '{member} modified a component',
        '{member} heeft een component gewijzigd',
    ),
    'COMMENT_ADDED': (
        '{member} a ajouté un commentaire',
        '{member} added a comment',
        '{member} heeft een opmerking toegevoegd',
    ),
    'COMMENT_EDITED': (
        '{member} a modifié son commentaire',
        '{member} edited their comment',
        '{member} heeft hun opmerking bewerkt',
    ),
    'COMMENT_DELETED': (
        '{member} a supprimé un commentaire',
        '{member} deleted a comment',
        '{member} heeft een opmerking verwijderd',
    ),
    'VOTE_ADDED': (
        '{member} a voté pour le repas',
        '{member} voted on the meal',
        '{member} heeft gestemd op de maaltijd',
    ),
    'VOTE_CHANGED': (
        '{member} a changé son vote',
        '{member} changed their vote',
        '{member} heeft hun stem gewijzigd',
    ),
    'TEMPLATE_SWITCHED': (
        '{member} a changé le modèle de planification',
        '{member} switched the planning template',
        '{member} heeft het planningstemplate gewijzigd',
    ),
    'CUTOFF_CHANGED': (
        '{member} a modifié la date limite',
        '{member} changed the cutoff date',
        '{member} heeft de uiterste datum gewijzigd',
    ),
    'ATTENDANCE_CHANGED': (
        '{member} a modifié sa présence',
        '{member} changed their attendance',
        '{member} heeft hun aanwezigheid gewijzigd',
    ),
    'GUESTS_CHANGED': (
        '{member} a modifié les invités',
        '{member} changed the guests',
        '{member} heeft de gasten gewijzigd',
    ),
}


class _Details(dict):
    def __missing__(self, key):
        return '?'


def describe_change(change_type, member_name=None, **details):
    """
    Build the three localized descriptions of a change.

    Returns:
        dict with description (fr), description_en and description_nl
    """
    if change_type not in CHANGE_TYPES:
        raise ValidationError(f'Unknown change type: {change_type}')

    values = _Details(details)
    values['member'] = member_name or 'System'
    fr, en, nl = (template.format_map(values) for template in DESCRIPTIONS[change_type])
    return {'description': fr, 'description_en': en, 'description_nl': nl}


def record_change(plan_id, change_type, member=None, meal=None, old_value=None,
                  new_value=None, descriptions=None, **details):
    """
    Append a change log entry in its own commit.

    Call after the mutation has been committed. Never raises: failures
    roll back the audit write only, are logged with context and reported
    as SideEffectOutcome.FAILED.
    """
    meal_id = meal.id if meal is not None else None
    member_id = member.id if member is not None else None

    try:
        if descriptions is None:
            descriptions = describe_change(
                change_type, member.name if member is not None else None, **details
            )
        entry = PlanChangeLog(
            weekly_plan_id=plan_id,
            meal_id=meal_id,
            member_id=member_id,
            change_type=change_type,
            old_value=old_value,
            new_value=new_value,
            **descriptions,
        )
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error(
            'Failed to record %s for plan %s (meal=%s, member=%s)',
            change_type, plan_id, meal_id, member_id, exc_info=True,
        )
        return SideEffectOutcome.FAILED

    logger.debug('Recorded %s for plan %s', change_type, plan_id)
    return SideEffectOutcome.APPLIED


def list_changes(plan_id, limit=None):
    """Change log of a plan, newest first."""
    query = PlanChangeLog.query.filter_by(weekly_plan_id=plan_id).order_by(
        PlanChangeLog.created_at.desc(), PlanChangeLog.id.desc()
    )
    if limit:
        query = query.limit(limit)
    return query.all()
