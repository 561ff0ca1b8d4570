# Re-export all models for convenient imports
from laborhours.models.user import User, AppRole, UserRoleAssignment
from laborhours.models.profile import Profile
from laborhours.models.user_access import UserAccess
from laborhours.models.process import Process1, Process2, Process3, Process4, System
from laborhours.models.user_response import UserResponse
from laborhours.models.email import SmtpSettings, EmailTemplate, EmailLog
from laborhours.models.audit_log import AdminAuditLog
from laborhours.models.interface_setting import InterfaceSetting

__all__ = [
    # Identity
    "User",
    "AppRole",
    "UserRoleAssignment",
    "Profile",
    "UserAccess",
    # Reference data
    "Process1",
    "Process2",
    "Process3",
    "Process4",
    "System",
    # Questionnaire
    "UserResponse",
    # Email
    "SmtpSettings",
    "EmailTemplate",
    "EmailLog",
    # Admin
    "AdminAuditLog",
    "InterfaceSetting",
]
