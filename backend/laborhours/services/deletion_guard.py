"""
Bulk deletion with an administrator quota.

At least one administrator must remain after a bulk delete. The check
runs against the whole administrator population before anything is
deleted; a violation rejects the entire request.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Set

from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.exceptions import QuotaViolationError, ValidationError
from laborhours.core.logging_config import logger
from laborhours.models import AppRole
from laborhours.services.summary import build_delete_response
from laborhours.services.user_store import UserStore

MIN_ADMINS = 1


@dataclass
class DeletionPlan:
    user_ids: List[str]
    admin_count: int
    requested_admins: List[str] = field(default_factory=list)
    proceed: bool = True

    @property
    def blocked_admins(self) -> List[str]:
        """Requested administrators that block a rejected plan"""
        return [] if self.proceed else list(self.requested_admins)

    @property
    def remaining_admins(self) -> int:
        return self.admin_count - len(self.requested_admins)


class DeletionGuard:
    """Decides whether a bulk delete may run"""

    @staticmethod
    def check(user_ids: Iterable[str], admin_ids: Set[str]) -> DeletionPlan:
        requested = list(dict.fromkeys(str(user_id) for user_id in user_ids))
        admin_ids = {str(admin_id) for admin_id in admin_ids}
        requested_admins = [user_id for user_id in requested if user_id in admin_ids]

        plan = DeletionPlan(
            user_ids=requested,
            admin_count=len(admin_ids),
            requested_admins=requested_admins,
        )
        plan.proceed = plan.remaining_admins >= MIN_ADMINS
        return plan


class BulkDeletionService:
    """Guarded bulk delete of identities"""

    def __init__(self, db: AsyncSession):
        self.store = UserStore(db)

    async def delete_users(self, user_ids: List[str], admin_id: str = None) -> dict:
        """
        Delete users after the quota check.

        Each identity is deleted on its own; one failure does not stop the
        rest.

        Raises:
            ValidationError: empty request
            QuotaViolationError: the request would remove every administrator
        """
        if not user_ids:
            raise ValidationError("No users specified", field="user_ids")

        admin_ids = await self.store.user_ids_with_role(AppRole.ADMIN)
        plan = DeletionGuard.check(user_ids, admin_ids)

        if not plan.proceed:
            logger.warning(
                f"[BulkDelete] Rejected: would remove all {plan.admin_count} administrators "
                f"(blocked: {plan.blocked_admins})"
            )
            raise QuotaViolationError(plan.blocked_admins)

        deleted: List[str] = []
        failed: List[dict] = []
        for user_id in plan.user_ids:
            try:
                if await self.store.delete_identity(user_id):
                    deleted.append(user_id)
                else:
                    failed.append({"user_id": user_id, "error": "User not found"})
            except Exception as e:
                logger.error(f"[BulkDelete] Failed to delete {user_id}: {e}")
                failed.append({"user_id": user_id, "error": str(e)})

        # total counts ids as submitted, repeats included
        response = build_delete_response(list(user_ids), deleted, failed, [])
        if admin_id:
            logger.log_admin_action("bulk_delete", admin_id, response["summary"])
            await self.store.record_audit(
                admin_id, "bulk_delete", metadata={"summary": response["summary"], "deleted": deleted}
            )
        return response
