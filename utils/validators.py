"""
Input validation utilities

Strict parsers for values coming from the JSON routes. Unlike the lenient
form helpers these raise ValidationError instead of falling back to a default.
"""

import re
from datetime import date, datetime, time

from constants import DAYS_OF_WEEK, VALID_MEAL_TYPES, MAX_LENGTHS, MAX_PORTIONS
from .errors import ValidationError

CUTOFF_TIME_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')


def parse_portions(value):
    """Portions must be a positive integer (booleans and floats rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('Portions must be a positive integer', value=value)
    if value < 1:
        raise ValidationError('Portions must be a positive integer', value=value)
    if value > MAX_PORTIONS:
        raise ValidationError(f'Portions must be at most {MAX_PORTIONS}', value=value)
    return value


def parse_count(value, field, default=0):
    """Parse a non-negative integer count such as guest adults or children."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f'{field} must be a non-negative integer', value=value)
    return value


def validate_comment(content):
    """Comments are required and limited in length. Returns the stripped text."""
    if not content or not isinstance(content, str) or not content.strip():
        raise ValidationError('Comment content is required')
    if len(content) > MAX_LENGTHS['comment']:
        raise ValidationError(f"Comment must be less than {MAX_LENGTHS['comment']} characters")
    return content.strip()


def parse_cutoff_time(value):
    """Parse an 'HH:MM' cutoff time into a datetime.time."""
    if isinstance(value, time):
        return value
    match = CUTOFF_TIME_RE.match(str(value or '').strip())
    if not match:
        raise ValidationError('Cutoff time must use the HH:MM format', value=value)
    return time(int(match.group(1)), int(match.group(2)))


def parse_date(value, field='date'):
    """Parse an ISO date (YYYY-MM-DD); datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD)', value=value)


def validate_day(day):
    day = str(day or '').upper()
    if day not in DAYS_OF_WEEK:
        raise ValidationError(f'Invalid day of week: {day}')
    return day


def validate_meal_type(meal_type):
    meal_type = str(meal_type or '').upper()
    if meal_type not in VALID_MEAL_TYPES:
        raise ValidationError(f'Invalid meal type: {meal_type}')
    return meal_type


def validate_schedule(schedule):
    """
    Validate a meal schedule template.

    A schedule is an ordered list of {dayOfWeek, mealTypes[]} entries covering
    1 to 7 distinct days, each with at least one distinct meal type.

    Returns:
        The normalized schedule (upper-cased names, same order)
    """
    if not isinstance(schedule, list) or not 1 <= len(schedule) <= 7:
        raise ValidationError('A schedule must contain between 1 and 7 days')

    normalized = []
    seen_days = set()
    for entry in schedule:
        if not isinstance(entry, dict):
            raise ValidationError('Each schedule entry must be an object')
        day = validate_day(entry.get('dayOfWeek'))
        if day in seen_days:
            raise ValidationError(f'Day {day} appears twice in the schedule')
        seen_days.add(day)

        meal_types = entry.get('mealTypes')
        if not isinstance(meal_types, list) or not meal_types:
            raise ValidationError(f'Day {day} needs at least one meal type')
        meal_types = [validate_meal_type(mt) for mt in meal_types]
        if len(set(meal_types)) != len(meal_types):
            raise ValidationError(f'Day {day} lists a meal type twice')

        normalized.append({'dayOfWeek': day, 'mealTypes': meal_types})
    return normalized
