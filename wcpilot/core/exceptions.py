from typing import Optional, Any


class WCPilotError(Exception):
    """
    Base exception for WCPilot application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ResourceNotFoundError(WCPilotError):
    """
    Raised when a requested resource (tenant record) is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class AuthenticationError(WCPilotError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class ValidationError(WCPilotError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class AccessDeniedError(WCPilotError):
    """
    Raised when an operation targets an instance the caller does not own.
    Also used when the instance does not exist at all.
    """
    def __init__(self, message: str = "Access denied to this instance", details: Optional[Any] = None):
        super().__init__(message, code="ACCESS_DENIED", status_code=403, details=details)


class QuotaExceededError(WCPilotError):
    """
    Raised when a plan limit is reached or a downgrade is blocked.
    """
    def __init__(self, message: str = "Plan limit reached", details: Optional[Any] = None):
        super().__init__(message, code="QUOTA_EXCEEDED", status_code=403, details=details)


class ConflictError(WCPilotError):
    """
    Raised when a unique value (e.g. email) is already taken.
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="CONFLICT", status_code=409, details=details)


class ProviderError(WCPilotError):
    """
    Raised when the messaging provider fails or is unreachable.
    """
    def __init__(self, message: str = "Messaging provider error", details: Optional[Any] = None):
        super().__init__(message, code="PROVIDER_ERROR", status_code=502, details=details)


class PartialUpdateError(ProviderError):
    """
    Raised when some sub-updates of a multi-field update failed.
    `details` lists the failed fields.
    """
    def __init__(self, message: str = "Some updates failed", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "PARTIAL_UPDATE_FAILED"
