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

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not resolve the acting identity"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

# --- Leave lifecycle errors ---

class ValidationError(AppException):
    """Malformed input at submit/edit/decide time. The caller should re-prompt."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="LEAVE_VALIDATION_FAILED",
            details=details
        )

class NotAuthorizedError(AppException):
    def __init__(self, message: str = "You are not allowed to decide on this leave request"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="LEAVE_NOT_AUTHORIZED"
        )

class InvalidTransitionError(AppException):
    def __init__(
        self,
        message: str,
        error_code: str = "LEAVE_INVALID_TRANSITION",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=409,
            error_code=error_code,
            details=details
        )

class NotEditableError(InvalidTransitionError):
    def __init__(self, message: str = "Only your own requests pending manager approval can be edited"):
        super().__init__(message=message, error_code="LEAVE_NOT_EDITABLE")

class NotWithdrawableError(InvalidTransitionError):
    def __init__(self, message: str = "Only your own requests pending manager approval can be withdrawn"):
        super().__init__(message=message, error_code="LEAVE_NOT_WITHDRAWABLE")

class NoEligibleApproverError(AppException):
    def __init__(self, message: str = "Select an approving manager before submitting"):
        super().__init__(
            message=message,
            status_code=422,
            error_code="LEAVE_NO_ELIGIBLE_APPROVER"
        )

class LeaveRequestNotFoundError(AppException):
    def __init__(self, request_id: str):
        super().__init__(
            message=f"Leave request {request_id} not found",
            status_code=404,
            error_code="LEAVE_NOT_FOUND",
            details={"request_id": request_id}
        )

class CollaboratorFailure(AppException):
    """A store, directory or notifier call failed. Wraps the original error."""
    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(
            message=f"{operation} failed: {type(cause).__name__}: {cause}",
            status_code=502,
            error_code="COLLABORATOR_FAILURE",
            details={"operation": operation}
        )
