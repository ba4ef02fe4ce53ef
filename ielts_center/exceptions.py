"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; the API translates them to
HTTPException responses at the router seam.
"""


class IeltsCenterError(Exception):
    """Base class for domain errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(IeltsCenterError):
    """Raised when a test, section, question, quiz or submission does not exist."""
    status_code = 404

    def __init__(self, entity: str, entity_id: int | str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(IeltsCenterError):
    """Raised when the acting user may not touch the resource."""
    status_code = 403


class SubmissionConflictError(IeltsCenterError):
    """Raised when a user submits twice to a single-attempt test or quiz."""
    status_code = 409


class BusinessRuleError(IeltsCenterError):
    """Raised for business validation failures (closed quiz, bad scores, ...)."""
    status_code = 400
