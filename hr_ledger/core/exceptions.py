from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationFailure(AppException):
    """Rejected before any write; nothing has been mutated."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        error_code: str = "VALIDATION_FAILED"
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details
        )

class OverlapConflict(ValidationFailure):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, status_code=409, error_code="OVERLAP_CONFLICT")

class QuotaExceeded(ValidationFailure):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, error_code="QUOTA_EXCEEDED")

class WorkflowNotConfigured(ValidationFailure):
    def __init__(self, message: str = "No approval workflow is configured for this user."):
        super().__init__(message, error_code="WORKFLOW_NOT_CONFIGURED")

class InvalidTransition(ValidationFailure):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, status_code=409, error_code="INVALID_TRANSITION")

class InvariantViolation(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: str = "INVARIANT_VIOLATION"):
        super().__init__(
            message=message,
            status_code=422,
            error_code=error_code,
            details=details
        )

class BaseOutOfRange(InvariantViolation):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, error_code="BASE_OUT_OF_RANGE")

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details
        )

class CollaboratorFailure(AppException):
    """A storage call failed. The original error is chained as __cause__."""
    def __init__(self, message: str = "Storage is currently unavailable."):
        super().__init__(
            message=message,
            status_code=503,
            error_code="COLLABORATOR_FAILURE"
        )
