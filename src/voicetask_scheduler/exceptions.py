"""
Error taxonomy for the scheduling core
"""


class SchedulerError(Exception):
    """Base exception for scheduling errors"""

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class AuthenticationMissingError(SchedulerError):
    """Raised when no authenticated user is available for the request"""

    def __init__(self, message: str = "Authenticated user is required"):
        super().__init__(message, "AUTHENTICATION_MISSING")


class DataFetchError(SchedulerError):
    """Raised when the task, todo or preference collaborator fails"""

    def __init__(self, source: str, message: str):
        self.source = source
        full_message = f"{source} collaborator failed: {message}"
        super().__init__(full_message, "DATA_FETCH_FAILURE")


class MalformedPreferencesError(SchedulerError):
    """Raised when stored preferences fail shape validation"""

    def __init__(self, message: str):
        super().__init__(f"Malformed preferences: {message}", "MALFORMED_PREFERENCES")


class SchedulerValidationError(SchedulerError):
    """Raised when caller input is invalid"""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, "VALIDATION_ERROR")


class PreferencesValidationError(SchedulerValidationError):
    """Raised when a preference update produces an invalid record"""


def require_user_id(user_id: str | None) -> str:
    """Return the caller's user id or raise when no user is authenticated"""
    if user_id is None or not str(user_id).strip():
        raise AuthenticationMissingError()
    return str(user_id)
