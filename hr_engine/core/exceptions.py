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

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details
        )

class InvalidRangeError(AppException):
    """End date lies before start date."""
    def __init__(self, message: str = "Start date must be before or equal to end date"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_RANGE"
        )

class OverlapError(AppException):
    def __init__(self, message: str = "Leave request overlaps with existing leave request"):
        super().__init__(
            message=message,
            status_code=409,
            error_code="LEAVE_OVERLAP"
        )

class InsufficientBalanceError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INSUFFICIENT_BALANCE",
            details=details
        )

class InvalidStateError(AppException):
    """Operation attempted against a record that is not in the required status."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INVALID_STATE",
            details=details
        )

class ConflictError(AppException):
    """Natural-key collision (employee+month, employee+day, employee+type+year)."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details
        )

class ValidationError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details
        )
