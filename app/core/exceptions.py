from typing import Optional, Any

class GSTComplianceError(Exception):
    """
    Base exception for the GST compliance application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ValidationError(GSTComplianceError):
    """
    Raised when a request breaks a business rule (bad GSTIN, short password, ...).
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class AuthenticationError(GSTComplianceError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", code: str = "AUTHENTICATION_FAILED", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=401, details=details)

class PermissionDeniedError(GSTComplianceError):
    """
    Raised when the caller is authenticated but not allowed to do this (plan limits, filed returns).
    """
    def __init__(self, message: str = "Permission denied", code: str = "FORBIDDEN", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=403, details=details)

class ResourceNotFoundError(GSTComplianceError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class ConflictError(GSTComplianceError):
    """
    Raised when a unique business key is already taken or a one-time action was already done.
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="CONFLICT", status_code=409, details=details)

class ExternalServiceError(GSTComplianceError):
    """
    Raised when an outside service (the SMTP relay) is unconfigured or fails.
    """
    def __init__(self, message: str = "External service error", code: str = "EXTERNAL_SERVICE_ERROR", status_code: int = 502, details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=status_code, details=details)
