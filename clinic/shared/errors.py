"""Typed application errors.

Services raise these; the handlers registered in main.py turn them into the
standard error envelope with the matching HTTP status.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 500
    error_type = "SERVER_ERROR"

    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed or missing input; details is a list of {field, message, value}"""

    status_code = 400
    error_type = "VALIDATION_ERROR"

    def __init__(self, details: Optional[list[dict]] = None, message: str = "Validation failed"):
        super().__init__(message, details)

    @classmethod
    def for_field(cls, field: str, message: str, value: Any = None) -> "ValidationError":
        return cls([{"field": field, "message": message, "value": value}])


class NotFoundError(AppError):
    status_code = 404
    error_type = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    status_code = 409
    error_type = "CONFLICT"

    def __init__(self, message: str = "Conflict", details: Optional[Any] = None):
        super().__init__(message, details)


class ForbiddenError(AppError):
    status_code = 403
    error_type = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class UnauthorizedError(AppError):
    status_code = 401
    error_type = "UNAUTHORIZED"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)
