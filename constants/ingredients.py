"""
Ingredient Constants

Contains the dietary substitution hints added to shopping items.
"""

# Alternatives prepended to a shopping item when the family diet excludes it.
# Hints only: quantities are never changed by a substitution.
GLUTEN_FREE_ALTERNATIVE = 'Gluten-free version'
LACTOSE_FREE_ALTERNATIVE = 'Lactose-free version (plant milk, soy cream)'
