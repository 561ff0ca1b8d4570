"""
User Provisioner
================
Creates a user in four steps: identity, profile, role, access grants.

The steps commit separately. When step 2, 3 or 4 fails, the identity from
step 1 is deleted again and the outcome carries the underlying error
prefixed with the failing step. Nothing is raised to the caller, so a
batch keeps going after a failed item.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from laborhours.core.exceptions import LaborHoursError, DuplicateConflictError
from laborhours.core.logging_config import logger
from laborhours.core.security import generate_password
from laborhours.models import AppRole
from laborhours.services.user_store import UserStore


STEP_IDENTITY = "identity"
STEP_PROFILE = "profile"
STEP_ROLE = "role"
STEP_ACCESS = "access"

STEP_ERROR_PREFIX = {
    STEP_PROFILE: "Profile creation failed: ",
    STEP_ROLE: "Role assignment failed: ",
    STEP_ACCESS: "Access assignment failed: ",
}


@dataclass
class ProvisionRequest:
    email: str
    password: str
    role: AppRole = AppRole.USER
    full_name: Optional[str] = None
    categories: List[str] = field(default_factory=list)


@dataclass
class ProvisionOutcome:
    email: str
    success: bool
    user_id: Optional[str] = None
    password: Optional[str] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None
    email_taken: bool = False


def build_provision_request(
    email: str,
    categories: Iterable[str],
    all_categories: Iterable[str],
    full_name: Optional[str] = None,
    role: AppRole = AppRole.USER,
    password: Optional[str] = None,
) -> ProvisionRequest:
    """
    Build a provisioning request.

    Administrators always get every known category, whatever was asked for.
    A password is generated when none is supplied.
    """
    role = AppRole(role)
    if role == AppRole.ADMIN:
        categories = list(all_categories)
    return ProvisionRequest(
        email=email.strip().lower(),
        password=password or generate_password(),
        role=role,
        full_name=full_name,
        categories=list(dict.fromkeys(categories)),
    )


def _describe(error: Exception) -> str:
    if isinstance(error, LaborHoursError):
        return error.message
    return str(error) or type(error).__name__


class UserProvisioner:
    """Runs the create steps for one request against a UserStore"""

    def __init__(self, store: UserStore):
        self.store = store

    async def provision(self, request: ProvisionRequest) -> ProvisionOutcome:
        try:
            user = await self.store.create_identity(request.email, request.password)
        except Exception as e:
            logger.warning(f"[Provision] Identity creation failed for {request.email}: {_describe(e)}")
            return ProvisionOutcome(
                email=request.email,
                success=False,
                error=_describe(e),
                failed_step=STEP_IDENTITY,
                email_taken=isinstance(e, DuplicateConflictError),
            )

        user_id = str(user.id)
        step = STEP_PROFILE
        try:
            await self.store.insert_profile(user_id, request.email, request.full_name)
            step = STEP_ROLE
            await self.store.insert_role(user_id, request.role)
            step = STEP_ACCESS
            if request.categories:
                await self.store.insert_access(user_id, request.categories)
        except Exception as e:
            error = STEP_ERROR_PREFIX[step] + _describe(e)
            logger.warning(f"[Provision] {request.email}: {error}")
            await self._compensate(user_id, request.email)
            return ProvisionOutcome(
                email=request.email,
                success=False,
                error=error,
                failed_step=step,
            )

        logger.info(
            f"[Provision] Created {request.email} ({request.role.value}, "
            f"{len(request.categories)} categories)"
        )
        return ProvisionOutcome(
            email=request.email,
            success=True,
            user_id=user_id,
            password=request.password,
        )

    async def _compensate(self, user_id: str, email: str) -> None:
        """Delete the half-created identity; failures here are only logged"""
        try:
            await self.store.delete_identity(user_id)
            logger.info(f"[Provision] Rolled back identity {user_id} for {email}")
        except Exception as e:
            logger.error(f"[Provision] Rollback of identity {user_id} for {email} failed: {e}")
