"""
Validation Constants

Contains whitelist values for validating user input and the enumerations
shared by the planning services.
"""

# Days of the week, in plan order
DAYS_OF_WEEK = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')

# Valid meal types for meal planning
VALID_MEAL_TYPES = {'BREAKFAST', 'LUNCH', 'DINNER', 'SNACK'}

# Plan statuses, in the only order a plan may move through them
PLAN_STATUSES = ('DRAFT', 'IN_VALIDATION', 'VALIDATED', 'LOCKED')

# Roles allowed to move status, set the cutoff and moderate comments
PRIVILEGED_ROLES = {'ADMIN', 'PARENT'}

# Roles a component plays inside a component-based meal
COMPONENT_ROLES = {
    'MAIN_PROTEIN', 'SECONDARY_PROTEIN', 'PRIMARY_VEGETABLE', 'SECONDARY_VEGETABLE',
    'BASE_CARB', 'SIDE_CARB', 'SAUCE', 'GARNISH', 'OTHER'
}

# Attendance and vote values
ATTENDANCE_STATUSES = {'PRESENT', 'ABSENT', 'MAYBE'}
VOTE_TYPES = {'LIKE', 'DISLIKE', 'LOVE'}

# Maximum field lengths
MAX_LENGTHS = {
    'comment': 2000,
    'skip_reason': 200,
    'guest_note': 200,
    'recipe_name': 200,
    'template_name': 100,
}

# Upper bound for portions on a single meal
MAX_PORTIONS = 50

# Change log entry types
CHANGE_TYPES = (
    'PLAN_CREATED', 'PLAN_STATUS_CHANGED',
    'MEAL_ADDED', 'MEAL_REMOVED', 'MEAL_RESTORED',
    'RECIPE_CHANGED', 'PORTIONS_CHANGED',
    'MEAL_LOCKED', 'MEAL_UNLOCKED',
    'COMPONENT_ADDED', 'COMPONENT_REMOVED', 'COMPONENT_CHANGED',
    'COMMENT_ADDED', 'COMMENT_EDITED', 'COMMENT_DELETED',
    'VOTE_ADDED', 'VOTE_CHANGED',
    'TEMPLATE_SWITCHED', 'CUTOFF_CHANGED',
    'ATTENDANCE_CHANGED', 'GUESTS_CHANGED',
)
