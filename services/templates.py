"""
Schedule Template Service

Family templates can be created and deleted; system templates are seeded
once and are read-only.
"""

from constants import MAX_LENGTHS, SYSTEM_TEMPLATES
from models import db, atomic, Family, MealScheduleTemplate
from utils.errors import Conflict, Forbidden, NotFound, ValidationError
from utils.logger import get_logger
from utils.sanitizer import sanitize_text
from utils.validators import validate_schedule
from .cutoff import ensure_member_of
from .planning import load_family, load_member

logger = get_logger(__name__)


def seed_system_templates():
    """Insert the missing system templates. Returns how many were added."""
    existing = {t.name for t in MealScheduleTemplate.query.filter_by(is_system=True).all()}
    added = 0
    for name, data in SYSTEM_TEMPLATES.items():
        if name in existing:
            continue
        db.session.add(MealScheduleTemplate(
            name=name,
            description=data['description'],
            is_system=True,
            schedule=data['schedule'],
        ))
        added += 1
    db.session.commit()
    if added:
        logger.info('Seeded %d system schedule templates', added)
    return added


def list_templates(family_id):
    """System templates first, then the family's own, each by name."""
    return MealScheduleTemplate.query.filter(
        db.or_(MealScheduleTemplate.is_system.is_(True), MealScheduleTemplate.family_id == family_id)
    ).order_by(MealScheduleTemplate.is_system.desc(), MealScheduleTemplate.name).all()


def create_template(family_id, member_id, name, schedule, description=None):
    """
    Save a family schedule template.

    Raises:
        ValidationError: missing name or malformed schedule
    """
    family = load_family(family_id)
    ensure_member_of(family.id, load_member(member_id))

    name = sanitize_text(name, max_length=MAX_LENGTHS['template_name'])
    if not name:
        raise ValidationError('Template name is required')
    schedule = validate_schedule(schedule)

    with atomic():
        template = MealScheduleTemplate(
            name=name,
            description=sanitize_text(description, max_length=300) or None,
            is_system=False,
            family_id=family.id,
            schedule=schedule,
        )
        db.session.add(template)

    logger.info('Family %s created template %s with %d slots', family.id, template.name, template.slot_count)
    return template


def delete_template(template_id, member_id):
    """
    Delete a family template.

    Raises:
        NotFound: unknown template or one of another family
        Forbidden: system templates are read-only
        Conflict: the template is still some family's default
    """
    template = db.session.get(MealScheduleTemplate, template_id)
    if template is None:
        raise NotFound('Template not found', template_id=template_id)
    if template.is_system:
        raise Forbidden('System templates cannot be deleted', template_id=template_id)

    member = load_member(member_id)
    if template.family_id != member.family_id:
        raise NotFound('Template not found', template_id=template_id)

    if Family.query.filter_by(default_template_id=template.id).first() is not None:
        raise Conflict('Template is the family default; choose another default first',
                       template_id=template_id)

    with atomic():
        db.session.delete(template)
    logger.info('Deleted template %s', template_id)
