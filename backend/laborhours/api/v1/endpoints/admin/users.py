"""
Admin User Management endpoints.

Single and bulk creation, guarded bulk deletion, invitation resend,
access editing and impersonation.
"""
from fastapi import APIRouter, Depends, File, UploadFile, Form
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import timedelta

from laborhours.core.config import settings
from laborhours.core.database import get_db
from laborhours.core.exceptions import (
    AuthorizationError,
    CsvFormatError,
    QuotaViolationError,
    UserNotFoundError,
    ValidationError,
    error_response,
)
from laborhours.core.logging_config import logger
from laborhours.core.security import create_access_token
from laborhours.models import AppRole, User
from laborhours.modules.auth.dependencies import get_current_admin
from laborhours.schemas.admin import (
    AdminUsersResponse,
    CreateUserRequest, CreateUserResponse,
    BulkCreateRequest, BulkCreateResponse,
    BulkValidateRequest, BulkValidateResponse,
    BulkDeleteRequest, BulkDeleteResponse,
    ResendInvitationResponse,
    BulkResendRequest, BulkResendResponse,
    UpdateAccessRequest, UpdateAccessResponse,
    ImpersonateResponse,
)
from laborhours.services.bulk_user_service import BulkUserService
from laborhours.services.csv_import import parse_users_csv, build_template_csv
from laborhours.services.deletion_guard import BulkDeletionService
from laborhours.services.invitation_service import InvitationService
from laborhours.services.summary import build_delete_response
from laborhours.services.user_store import UserStore
from laborhours.services.user_validator import BatchItem, parse_categories

router = APIRouter()


def _to_batch(users) -> list:
    return [
        BatchItem(email=u.email, full_name=u.full_name, categories=list(u.processes))
        for u in users
    ]


@router.get("", response_model=AdminUsersResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All users with their roles and category access"""
    items = await UserStore(db).list_users()
    return {"items": items, "total": len(items)}


@router.post("", response_model=CreateUserResponse)
async def create_user(
    payload: CreateUserRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Create one user. Administrators get access to every category."""
    return await BulkUserService(db).create_user(
        email=payload.email,
        full_name=payload.full_name,
        role=payload.role,
        processes=payload.processes,
        password=payload.password,
        send_invitation=payload.send_invitation,
        admin_id=str(current_admin.id),
    )


@router.post("/bulk-create", response_model=BulkCreateResponse)
async def bulk_create_users(
    payload: BulkCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Create many users.

    Rows are processed in order; duplicate and invalid rows are reported,
    not raised. Generated passwords are only ever returned here.
    """
    return await BulkUserService(db).bulk_create(
        _to_batch(payload.users),
        send_invitations=payload.send_invitations,
        admin_id=str(current_admin.id),
    )


@router.post("/bulk-create/csv", response_model=BulkCreateResponse)
async def bulk_create_users_from_csv(
    file: UploadFile = File(...),
    send_invitations: bool = Form(False),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Create users from an uploaded CSV (email,full_name,processes)"""
    content = await file.read()
    if len(content) > settings.MAX_CSV_UPLOAD_SIZE:
        raise CsvFormatError(
            f"File too large (max {settings.MAX_CSV_UPLOAD_SIZE // 1024 // 1024}MB)"
        )
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise CsvFormatError("CSV file must be UTF-8 encoded")

    items = parse_users_csv(text)
    logger.info(f"[BulkCreate] Parsed {len(items)} rows from {file.filename}")

    return await BulkUserService(db).bulk_create(
        items,
        send_invitations=send_invitations,
        admin_id=str(current_admin.id),
    )


@router.post("/bulk-validate", response_model=BulkValidateResponse)
async def bulk_validate_users(
    payload: BulkValidateRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Preview how a batch would be classified; creates nothing"""
    return await BulkUserService(db).validate(_to_batch(payload.users))


@router.get("/bulk-template")
async def download_bulk_template(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """CSV template using the currently active categories"""
    categories = await UserStore(db).all_category_ids()
    return Response(
        content=build_template_csv(categories),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="bulk_users_template.csv"'},
    )


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_users(
    payload: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Delete many users.

    Rejected as a whole, before anything is deleted, when it would leave
    no administrator.
    """
    try:
        return await BulkDeletionService(db).delete_users(
            payload.user_ids, admin_id=str(current_admin.id)
        )
    except QuotaViolationError as e:
        body = build_delete_response(payload.user_ids, [], [], e.blocked_admins, success=False)
        body.update(error_response(e))
        return JSONResponse(status_code=e.status_code, content=body)


@router.post("/bulk-resend", response_model=BulkResendResponse)
async def bulk_resend_invitations(
    payload: BulkResendRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Rotate passwords and resend invitations"""
    result = await InvitationService(db).bulk_resend(payload.user_ids)
    logger.log_admin_action("bulk_resend", str(current_admin.id), result["summary"])
    await UserStore(db).record_audit(
        str(current_admin.id), "bulk_resend", metadata={"summary": result["summary"]}
    )
    return result


@router.post("/{user_id}/resend-invitation", response_model=ResendInvitationResponse)
async def resend_invitation(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Rotate the user's password and resend the invitation.

    The new password is returned even when sending failed.
    """
    result = await InvitationService(db).resend_invitation(user_id)
    logger.log_admin_action(
        "resend_invitation", str(current_admin.id), target_user_id=user_id, sent=result.sent
    )
    await UserStore(db).record_audit(
        str(current_admin.id), "resend_invitation", target_user_id=user_id,
        metadata={"sent": result.sent},
    )
    return result.to_dict()


@router.put("/{user_id}/access", response_model=UpdateAccessResponse)
async def update_user_access(
    user_id: str,
    payload: UpdateAccessRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Replace the user's category access"""
    store = UserStore(db)
    if await store.get_identity(user_id) is None:
        raise UserNotFoundError(user_id)

    categories = parse_categories(payload.processes)
    valid = await store.valid_category_ids()
    unknown = [c for c in categories if c not in valid]
    if unknown:
        raise ValidationError(f"Invalid processes: {', '.join(unknown)}", field="processes")

    processes = await store.replace_access(user_id, categories)
    await store.record_audit(
        str(current_admin.id), "update_access", target_user_id=user_id,
        metadata={"processes": processes},
    )
    return {"user_id": user_id, "processes": processes}


@router.post("/{user_id}/impersonate", response_model=ImpersonateResponse)
async def impersonate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Short-lived access token acting as a regular user"""
    admin_id = str(current_admin.id)
    if user_id == admin_id:
        raise ValidationError("Cannot impersonate yourself", field="user_id")

    store = UserStore(db)
    target = await store.get_identity(user_id)
    if target is None:
        raise UserNotFoundError(user_id)
    if await store.has_role(user_id, AppRole.ADMIN):
        raise AuthorizationError("Cannot impersonate an administrator")

    expires_minutes = settings.IMPERSONATION_TOKEN_EXPIRE_MINUTES
    token = create_access_token(
        {"sub": str(target.id), "email": target.email, "impersonated_by": admin_id},
        expires_delta=timedelta(minutes=expires_minutes),
    )

    logger.log_admin_action("impersonate", admin_id, target_user_id=user_id, target_email=target.email)
    await store.record_audit(admin_id, "impersonate", target_user_id=user_id,
                             metadata={"target_email": target.email})

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": expires_minutes * 60,
        "user_id": str(target.id),
        "email": target.email,
    }
