"""
Constants Package

Lookup tables and enumerations shared by the models and services.
"""

from .units import (
    KILOGRAM_MARKER,
    GRAM_MARKER,
    MILLILITRE_MARKER,
    LITRE_MARKER,
    PIECE_UNITS,
    ROUNDING_STEPS,
    CATEGORY_TRANSLATIONS,
    DEFAULT_RECIPE_SERVINGS,
    CHILD_PORTION_FACTOR,
)
from .ingredients import GLUTEN_FREE_ALTERNATIVE, LACTOSE_FREE_ALTERNATIVE
from .planning import (
    COMPONENT_MEAL_PROBABILITY,
    SINGLE_VEGETABLE_PROBABILITY,
    NOVELTY_CAP,
    RECENT_PROTEIN_HISTORY,
    SYSTEM_TEMPLATES,
    DEFAULT_TEMPLATE_NAME,
)
from .validation import (
    DAYS_OF_WEEK,
    VALID_MEAL_TYPES,
    PLAN_STATUSES,
    PRIVILEGED_ROLES,
    COMPONENT_ROLES,
    ATTENDANCE_STATUSES,
    VOTE_TYPES,
    MAX_LENGTHS,
    MAX_PORTIONS,
    CHANGE_TYPES,
)
