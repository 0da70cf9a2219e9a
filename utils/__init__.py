# Utility modules for the meal planner
from .errors import (
    PlannerError, NotFound, Forbidden, ValidationError, Conflict,
    InsufficientCatalog, NoCompliantCatalog, NoFavoritesAvailable
)
from .logger import get_logger, set_log_level
from .sanitizer import sanitize_text, sanitize_note, sanitize_recipe_name
