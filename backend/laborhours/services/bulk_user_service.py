"""
Bulk User Service
=================
Create pipeline: classify each row, provision valid ones in order,
optionally send invitations, report per-item outcomes with counts.

Existing emails and valid categories are read once per batch. The email
set is extended after every successful creation, so a repeated email
later in the same batch is reported as a duplicate.
"""

from typing import List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.exceptions import (
    DuplicateConflictError,
    ProvisioningError,
    ValidationError,
)
from laborhours.core.logging_config import logger
from laborhours.models import AppRole
from laborhours.services.invitation_service import InvitationService
from laborhours.services.provisioner import (
    UserProvisioner,
    build_provision_request,
)
from laborhours.services.summary import build_create_response
from laborhours.services.user_store import UserStore
from laborhours.services.user_validator import (
    BatchItem,
    RowStatus,
    classify_batch,
    classify_row,
    is_valid_email,
    normalize_email,
    parse_categories,
    INVALID_EMAIL_MESSAGE,
    NO_PROCESSES_MESSAGE,
)


class BulkUserService:
    """User creation entry points used by the admin API"""

    def __init__(self, db: AsyncSession, invitation_service: Optional[InvitationService] = None):
        self.db = db
        self.store = UserStore(db)
        self.provisioner = UserProvisioner(self.store)
        self.invitations = invitation_service or InvitationService(db)

    @staticmethod
    def _check_batch_size(items: List[BatchItem]) -> None:
        if not items:
            raise ValidationError("No users provided", field="users")
        if len(items) > settings.BULK_MAX_USERS:
            raise ValidationError(
                f"Too many users in one request (max {settings.BULK_MAX_USERS})",
                field="users",
            )

    async def bulk_create(
        self,
        items: List[BatchItem],
        send_invitations: bool = False,
        admin_id: Optional[str] = None,
    ) -> dict:
        """
        Create users from a batch.

        Raises:
            ValidationError: empty or oversized batch
        """
        self._check_batch_size(items)

        existing_emails: Set[str] = await self.store.existing_emails()
        valid_categories = await self.store.valid_category_ids()
        all_categories = await self.store.all_category_ids()

        created: List[dict] = []
        duplicates: List[dict] = []
        errors: List[dict] = []

        for item in items:
            row = classify_row(item, valid_categories, existing_emails)

            if row.status == RowStatus.DUPLICATE:
                duplicates.append({"email": row.email, "reason": row.message})
                continue
            if row.status == RowStatus.INVALID:
                errors.append({"email": row.email, "error": row.message})
                continue

            request = build_provision_request(
                email=row.item.email,
                categories=row.item.categories,
                all_categories=all_categories,
                full_name=row.item.full_name,
            )
            outcome = await self.provisioner.provision(request)
            if not outcome.success:
                errors.append({"email": outcome.email, "error": outcome.error})
                continue

            existing_emails.add(outcome.email)
            entry = {
                "email": outcome.email,
                "user_id": outcome.user_id,
                "password": outcome.password,
            }
            if send_invitations:
                invitation = await self.invitations.send_invitation(
                    outcome.user_id, outcome.email, outcome.password, request.full_name
                )
                entry["invitation_sent"] = invitation.sent
                if invitation.error:
                    entry["invitation_error"] = invitation.error
            created.append(entry)

        response = build_create_response(created, duplicates, errors)
        if admin_id:
            logger.log_admin_action("bulk_create", admin_id, response["summary"])
            await self.store.record_audit(
                admin_id,
                "bulk_create",
                metadata={
                    "summary": response["summary"],
                    "send_invitations": send_invitations,
                    "created": [entry["email"] for entry in created],
                },
            )
        return response

    async def validate(self, items: List[BatchItem]) -> dict:
        """Preview classification of a batch; writes nothing"""
        self._check_batch_size(items)
        result = classify_batch(
            items,
            await self.store.valid_category_ids(),
            await self.store.existing_emails(),
        )
        return {
            "valid": [
                {"email": item.email, "full_name": item.full_name, "processes": item.categories}
                for item in result.valid
            ],
            "duplicates": result.duplicates,
            "errors": result.errors,
            "summary": {
                "total": result.total,
                "valid": len(result.valid),
                "duplicates": len(result.duplicates),
                "errors": len(result.errors),
            },
        }

    async def create_user(
        self,
        email: str,
        full_name: Optional[str] = None,
        role: AppRole = AppRole.USER,
        processes: Optional[List[str]] = None,
        password: Optional[str] = None,
        send_invitation: bool = False,
        admin_id: Optional[str] = None,
    ) -> dict:
        """
        Create a single user.

        Raises:
            ValidationError: bad email or categories
            DuplicateConflictError: email already registered
            ProvisioningError: a create step failed and was rolled back
        """
        role = AppRole(role)
        normalized = normalize_email(email)
        if not is_valid_email(normalized):
            raise ValidationError(INVALID_EMAIL_MESSAGE, field="email")
        if normalized in await self.store.existing_emails():
            raise DuplicateConflictError(normalized)

        all_categories = await self.store.all_category_ids()
        categories = parse_categories(processes)
        if role == AppRole.USER:
            if not categories:
                raise ValidationError(NO_PROCESSES_MESSAGE, field="processes")
            unknown = [category for category in categories if category not in all_categories]
            if unknown:
                raise ValidationError(f"Invalid processes: {', '.join(unknown)}", field="processes")

        request = build_provision_request(
            email=normalized,
            categories=categories,
            all_categories=all_categories,
            full_name=(full_name or "").strip() or None,
            role=role,
            password=password,
        )
        outcome = await self.provisioner.provision(request)
        if not outcome.success:
            if outcome.email_taken:
                raise DuplicateConflictError(normalized)
            raise ProvisioningError(outcome.error, step=outcome.failed_step)

        result = {
            "success": True,
            "user_id": outcome.user_id,
            "email": outcome.email,
            "password": outcome.password,
            "role": role.value,
            "processes": request.categories,
        }
        if send_invitation:
            invitation = await self.invitations.send_invitation(
                outcome.user_id, outcome.email, outcome.password, request.full_name
            )
            result["invitation_sent"] = invitation.sent
            if invitation.error:
                result["invitation_error"] = invitation.error

        if admin_id:
            logger.log_admin_action("create_user", admin_id, target_email=outcome.email, role=role.value)
            await self.store.record_audit(
                admin_id, "create_user", target_user_id=outcome.user_id, metadata={"role": role.value}
            )
        return result
