"""Domain exceptions.

Raised by the service layer where a problem is detected and rendered by
the application's exception handler with a fixed HTTP status per class.
"""

from fastapi import status


class TaskhubError(Exception):
    """Base exception for domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "TASKHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TaskhubError):
    """Malformed or out-of-range input, e.g. an unknown task status."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class AuthenticationError(TaskhubError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, code="AUTHENTICATION_ERROR")


class ForbiddenError(TaskhubError):
    """Authenticated but not permitted to perform the action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str):
        super().__init__(message, code="FORBIDDEN")


class NotFoundError(TaskhubError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str):
        super().__init__(message, code="NOT_FOUND")


class ConflictError(TaskhubError):
    """Duplicate value for a unique field (client name, project code)."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")
