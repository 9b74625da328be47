"""Domain errors raised by the services and rendered by the handlers in main.py."""


class BoardError(Exception):
    """Base exception for all board errors."""

    status_code = 500
    code = "error"

    def __init__(self, message: str = "An application error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(BoardError):
    """Raised when a referenced project, column, task or user does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str = "Resource", identifier=None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} '{identifier}' not found"
        self.resource = resource
        super().__init__(message)


class DeniedError(BoardError):
    """Raised when the caller's project role does not allow the operation."""

    status_code = 403
    code = "denied"

    def __init__(self, message: str = "You do not have access to this project"):
        super().__init__(message)


class ValidationFailure(BoardError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, message: str = "Validation failed", field: str = None):
        self.field = field
        super().__init__(message)


class ConflictError(BoardError):
    status_code = 409
    code = "conflict"

    def __init__(self, message: str = "The resource was modified concurrently"):
        super().__init__(message)


class InsightsUnavailableError(BoardError):
    """Raised when the insights generator cannot be reached or is not configured."""

    status_code = 503
    code = "insights_unavailable"

    def __init__(self, message: str = "Project insights are unavailable"):
        super().__init__(message)
