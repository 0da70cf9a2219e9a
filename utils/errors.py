"""
Planner Error Taxonomy

Exceptions raised by the planning services. Each carries the HTTP status
code the JSON routes answer with.
"""


class PlannerError(Exception):
    """Base class for expected, user-facing planner errors."""
    status_code = 500

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFound(PlannerError):
    """Referenced plan, meal, family, template or component is missing or not visible."""
    status_code = 404


class Forbidden(PlannerError):
    """Role lacks privilege, or the cutoff/lock guard rejected the request."""
    status_code = 403


class ValidationError(PlannerError):
    """Malformed or out-of-range input."""
    status_code = 400


class Conflict(PlannerError):
    """Duplicate slot, template still in use, or an illegal status move."""
    status_code = 409


class InsufficientCatalog(PlannerError):
    """The diet-compliant catalog is empty for a required bucket."""
    status_code = 422


class NoCompliantCatalog(InsufficientCatalog):
    """No recipe survives the diet filter for a slot."""
    pass


class NoFavoritesAvailable(InsufficientCatalog):
    """Express generation needs at least one favorite recipe."""
    pass
