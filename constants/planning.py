"""
Planning Constants

Contains the tuning values of the plan composer and the system meal
schedule templates seeded into a new database.
"""

# Chance that a regular slot is built from components instead of a recipe
COMPONENT_MEAL_PROBABILITY = 0.3

# Chance that a component-based meal gets a single vegetable (else two)
SINGLE_VEGETABLE_PROBABILITY = 0.6

# Hard ceiling on novelties per generated week, whatever the diet profile says
NOVELTY_CAP = 2

# How many recent proteins a component-based meal tries not to repeat
RECENT_PROTEIN_HISTORY = 2

# System template used when neither a template nor a family default is given
DEFAULT_TEMPLATE_NAME = 'Standard Work Week'

WEEKDAYS = ['MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY']

# System templates (read-only, visible to every family)
SYSTEM_TEMPLATES = {
    'Standard Work Week': {
        'description': 'Dinners on weekdays, lunch and dinner on the weekend',
        'schedule': (
            [{'dayOfWeek': day, 'mealTypes': ['DINNER']} for day in WEEKDAYS] +
            [{'dayOfWeek': day, 'mealTypes': ['LUNCH', 'DINNER']} for day in ('SATURDAY', 'SUNDAY')]
        ),
    },
    'Full Week': {
        'description': 'Lunch and dinner every day',
        'schedule': [
            {'dayOfWeek': day, 'mealTypes': ['LUNCH', 'DINNER']}
            for day in WEEKDAYS + ['SATURDAY', 'SUNDAY']
        ],
    },
    'Weekend Family': {
        'description': 'Family meals on the weekend only',
        'schedule': [
            {'dayOfWeek': 'SATURDAY', 'mealTypes': ['LUNCH', 'DINNER']},
            {'dayOfWeek': 'SUNDAY', 'mealTypes': ['LUNCH', 'DINNER']},
        ],
    },
}
