"""
Unit Constants and Rounding Tables

Contains the unit classes, purchase increments and shopping category
translations used when turning aggregated quantities into a shopping list.
"""

# Unit classes, matched by substring on the lowercased unit.
# Order matters: 'kg' before 'g', and 'ml' before 'l'.
KILOGRAM_MARKER = 'kg'
GRAM_MARKER = 'g'
MILLILITRE_MARKER = 'ml'
LITRE_MARKER = 'l'

# Piece-like units are matched exactly (after lowercasing)
PIECE_UNITS = {
    'piece', 'pieces', 'pièce', 'pièces', 'pc', 'pcs',
    'unit', 'units', 'unité', 'unités', 'ea', 'each',
    'gousse', 'gousses', 'feuille', 'feuilles', 'tranche', 'tranches',
    'botte', 'bottes', 'brin', 'brins', 'sachet', 'sachets', 'boîte', 'boîtes',
    'clove', 'cloves', 'slice', 'slices', 'leaf', 'leaves',
}

# Purchase increments per unit class: list of (upper bound, increment).
# The first bound the quantity falls under wins; None means "any".
ROUNDING_STEPS = {
    'kilogram': [(None, 0.25)],
    'gram': [(50, 10), (200, 25), (None, 50)],
    'millilitre': [(100, 10), (None, 50)],
    'litre': [(0.5, 0.1), (None, 0.25)],
    'piece': [(None, 1)],
    'other': [(None, 0.01)],
}

# Shopping category translations (ingredient category -> display category)
CATEGORY_TRANSLATIONS = {
    'meat': 'Butcher',
    'fish': 'Fishmonger',
    'produce': 'Produce',
    'dairy': 'Dairy',
    'pantry': 'Pantry',
    'bakery': 'Bakery',
    'frozen': 'Frozen',
    'beverages': 'Beverages',
    'spices': 'Spices',
}

# Default servings when a recipe does not declare any
DEFAULT_RECIPE_SERVINGS = 4

# A child guest eats roughly 70% of an adult portion
CHILD_PORTION_FACTOR = 0.7
