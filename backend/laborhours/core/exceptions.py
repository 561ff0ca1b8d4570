"""
Custom Exceptions for Labor Hours
=================================

Per-item failures inside a bulk operation are captured into the result
lists and never raised. These exceptions are for failures that abort a
whole request (authorization, malformed input, precondition violations)
and for the single-user operations.

Usage:
    from laborhours.core.exceptions import UserNotFoundError, QuotaViolationError

    if not profile:
        raise UserNotFoundError(user_id)
"""

from typing import Optional, Any, Dict, List


class LaborHoursError(Exception):
    """Base exception for all Labor Hours errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(LaborHoursError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(LaborHoursError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(LaborHoursError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class ProcessNotFoundError(ResourceNotFoundError):
    """Leaf process not found"""

    def __init__(self, f4_index: str):
        super().__init__("Process", f4_index)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(LaborHoursError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class CsvFormatError(ValidationError):
    """Uploaded batch file is not in the expected format"""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.code = "INVALID_CSV"
        if line is not None:
            self.details["line"] = line


class DuplicateConflictError(LaborHoursError):
    """Email already belongs to an existing identity"""

    status_code = 400

    def __init__(self, email: str):
        super().__init__(
            "A user with this email already exists",
            code="DUPLICATE_EMAIL",
            details={"email": email}
        )


class ResponsesLockedError(LaborHoursError):
    """Responses were already submitted and can no longer change"""

    status_code = 409

    def __init__(self, message: str = "Responses have already been submitted"):
        super().__init__(message, code="RESPONSES_LOCKED")


# ============================================
# Provisioning Errors
# ============================================

class ProvisioningError(LaborHoursError):
    """The store rejected one of the user creation steps"""

    status_code = 400

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message, code="PROVISIONING_FAILED")
        if step:
            self.details["step"] = step


class QuotaViolationError(LaborHoursError):
    """Bulk delete would remove the last administrator"""

    status_code = 400

    def __init__(self, blocked_admins: List[str]):
        super().__init__(
            "Cannot delete all administrators. At least one administrator must remain.",
            code="ADMIN_QUOTA_VIOLATION",
            details={"blocked_admins": list(blocked_admins)}
        )
        self.blocked_admins = list(blocked_admins)


# ============================================
# Email Errors
# ============================================

class NotificationError(LaborHoursError):
    """Mail sender failed"""

    status_code = 502

    def __init__(self, message: str, recipient: Optional[str] = None):
        super().__init__(message, code="NOTIFICATION_FAILED")
        if recipient:
            self.details["recipient"] = recipient


class EmailConfigurationError(NotificationError):
    """SMTP settings or the invitation template are missing"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "EMAIL_NOT_CONFIGURED"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: LaborHoursError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
