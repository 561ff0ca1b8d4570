from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from laborhours.models import AppRole


# ==================== User Management Schemas ====================

class AdminUserResponse(BaseModel):
    """User row in the admin user list"""
    id: str
    email: str
    full_name: Optional[str] = None
    invitation_sent_at: Optional[datetime] = None
    questionnaire_completed: bool = False
    created_at: Optional[datetime] = None
    roles: List[str] = []
    access: List[str] = []


class AdminUsersResponse(BaseModel):
    items: List[AdminUserResponse]
    total: int


class CreateUserRequest(BaseModel):
    """Create a single user"""
    email: str
    password: Optional[str] = Field(None, min_length=6, description="Generated when omitted")
    full_name: Optional[str] = None
    role: AppRole = AppRole.USER
    processes: List[str] = []
    send_invitation: bool = False


class CreateUserResponse(BaseModel):
    success: bool
    user_id: str
    email: str
    password: str
    role: str
    processes: List[str]
    invitation_sent: Optional[bool] = None
    invitation_error: Optional[str] = None


# ==================== Bulk Create Schemas ====================

class BulkUserItem(BaseModel):
    """One row of a bulk create request; a missing email is reported per row"""
    email: Optional[str] = None
    full_name: Optional[str] = None
    processes: List[str] = []

    @field_validator("processes", mode="before")
    @classmethod
    def split_processes(cls, v):
        # Rows pasted from a spreadsheet arrive as "1.1,1.2"
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v or []


class BulkCreateRequest(BaseModel):
    users: List[BulkUserItem] = Field(..., min_length=1)
    send_invitations: bool = False


class BulkValidateRequest(BaseModel):
    users: List[BulkUserItem] = Field(..., min_length=1)


class CreatedUser(BaseModel):
    email: str
    user_id: str
    password: str
    invitation_sent: Optional[bool] = None
    invitation_error: Optional[str] = None


class DuplicateUser(BaseModel):
    email: str
    reason: str


class FailedUser(BaseModel):
    email: str
    error: str


class BulkCreateResults(BaseModel):
    created: List[CreatedUser]
    duplicates: List[DuplicateUser]
    errors: List[FailedUser]


class BulkCreateSummary(BaseModel):
    total: int
    created: int
    duplicates: int
    errors: int


class BulkCreateResponse(BaseModel):
    success: bool
    results: BulkCreateResults
    summary: BulkCreateSummary


class ValidatedUser(BaseModel):
    email: str
    full_name: Optional[str] = None
    processes: List[str]


class BulkValidateSummary(BaseModel):
    total: int
    valid: int
    duplicates: int
    errors: int


class BulkValidateResponse(BaseModel):
    valid: List[ValidatedUser]
    duplicates: List[DuplicateUser]
    errors: List[FailedUser]
    summary: BulkValidateSummary


# ==================== Bulk Delete Schemas ====================

class BulkDeleteRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)


class FailedDeletion(BaseModel):
    user_id: str
    error: str


class BulkDeleteResults(BaseModel):
    deleted: List[str]
    failed: List[FailedDeletion]
    blocked_admins: List[str]


class BulkDeleteSummary(BaseModel):
    total: int
    deleted: int
    failed: int
    blocked: int


class BulkDeleteResponse(BaseModel):
    success: bool
    results: BulkDeleteResults
    summary: BulkDeleteSummary


# ==================== Invitation Schemas ====================

class ResendInvitationResponse(BaseModel):
    user_id: str
    email: str
    sent: bool
    password: str
    error: Optional[str] = None


class BulkResendRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)


class ResendFailure(BaseModel):
    user_id: str
    email: Optional[str] = None
    password: Optional[str] = None  # set when the password was rotated
    error: Optional[str] = None


class BulkResendResults(BaseModel):
    sent: List[ResendInvitationResponse]
    failed: List[ResendFailure]


class BulkResendSummary(BaseModel):
    total: int
    sent: int
    failed: int


class BulkResendResponse(BaseModel):
    success: bool
    results: BulkResendResults
    summary: BulkResendSummary


# ==================== Access & Impersonation ====================

class UpdateAccessRequest(BaseModel):
    processes: List[str]


class UpdateAccessResponse(BaseModel):
    user_id: str
    processes: List[str]


class ImpersonateResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: str
    email: str


# ==================== Email Settings ====================

class SmtpSettingsUpdate(BaseModel):
    host: str = Field(..., min_length=1)
    port: int = Field(587, ge=1, le=65535)
    username: str = Field(..., min_length=1)
    from_email: str = Field(..., min_length=3)
    from_name: str = Field(..., min_length=1)
    use_tls: bool = True


class SmtpSettingsResponse(BaseModel):
    host: str
    port: int
    username: str
    from_email: str
    from_name: str
    use_tls: bool
    is_active: bool = True
    password_configured: bool
    updated_at: Optional[datetime] = None


class SmtpTestResponse(BaseModel):
    success: bool
    message: str


class EmailTemplateUpdate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=500)
    html_template: str = Field(..., min_length=1)


class EmailTemplateResponse(BaseModel):
    subject: str
    html_template: str
    placeholders: List[str] = ["{{full_name}}", "{{email}}", "{{password}}", "{{login_url}}"]
    updated_at: Optional[datetime] = None


# ==================== Interface Settings ====================

class InterfaceSettingsUpdate(BaseModel):
    settings: Dict[str, Any] = Field(..., min_length=1)
