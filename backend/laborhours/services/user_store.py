"""
User Store
==========
Async persistence operations for identities and their dependent rows.

Each write commits on its own. The provisioning flow relies on this: a
failed step leaves the earlier steps persisted, and the provisioner undoes
them by deleting the identity.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.exceptions import DuplicateConflictError, UserNotFoundError
from laborhours.core.logging_config import logger
from laborhours.core.security import get_password_hash
from laborhours.models import (
    User,
    Profile,
    AppRole,
    UserRoleAssignment,
    UserAccess,
    UserResponse,
    Process1,
    EmailLog,
    AdminAuditLog,
)


class UserStore:
    """Identity store plus the profile/role/access tables keyed by identity id"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ==================== Reference data ====================

    async def existing_emails(self) -> Set[str]:
        """Lowercased emails of every identity"""
        result = await self.db.execute(select(User.email))
        return {email.lower() for email in result.scalars().all()}

    async def valid_category_ids(self) -> Set[str]:
        """Level-1 process identifiers that are currently active"""
        return set(await self.all_category_ids())

    async def all_category_ids(self) -> List[str]:
        """Active level-1 process identifiers in display order"""
        result = await self.db.execute(
            select(Process1.f1_index)
            .where(Process1.is_active == True)  # noqa: E712
            .order_by(Process1.sort, Process1.f1_index)
        )
        return list(result.scalars().all())

    async def user_ids_with_role(self, role: AppRole) -> Set[str]:
        result = await self.db.execute(
            select(UserRoleAssignment.user_id).where(UserRoleAssignment.role == role)
        )
        return {str(user_id) for user_id in result.scalars().all()}

    async def has_role(self, user_id: str, role: AppRole) -> bool:
        result = await self.db.execute(
            select(UserRoleAssignment.id).where(
                UserRoleAssignment.user_id == str(user_id),
                UserRoleAssignment.role == role,
            )
        )
        return result.scalar_one_or_none() is not None

    # ==================== Identity ====================

    async def get_identity(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    async def get_identity_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def create_identity(self, email: str, password: str) -> User:
        """
        Create a confirmed identity.

        Raises:
            DuplicateConflictError: the email is already taken
        """
        now = datetime.utcnow()
        user = User(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            email_confirmed_at=now,
            created_at=now,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateConflictError(email)
        except Exception:
            # Leaves the session usable for the next row of a batch
            await self.db.rollback()
            raise
        await self.db.refresh(user)
        return user

    async def delete_identity(self, user_id: str) -> bool:
        """
        Delete an identity and every row that depends on it.

        Safe to call for an id that no longer exists.

        Returns:
            True if an identity row was removed
        """
        user_id = str(user_id)
        try:
            await self.db.execute(delete(UserResponse).where(UserResponse.user_id == user_id))
            await self.db.execute(delete(UserAccess).where(UserAccess.user_id == user_id))
            await self.db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id))
            await self.db.execute(delete(Profile).where(Profile.id == user_id))
            await self.db.execute(
                update(EmailLog).where(EmailLog.user_id == user_id).values(user_id=None)
            )
            result = await self.db.execute(delete(User).where(User.id == user_id))
        except Exception:
            await self.db.rollback()
            raise
        await self._commit()
        return result.rowcount > 0

    async def update_credential(self, user_id: str, password: str) -> None:
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == str(user_id))
                .values(hashed_password=get_password_hash(password), updated_at=datetime.utcnow())
            )
        except Exception:
            await self.db.rollback()
            raise
        if result.rowcount == 0:
            await self.db.rollback()
            raise UserNotFoundError(str(user_id))
        await self._commit()

    async def touch_last_sign_in(self, user: User) -> None:
        user.last_sign_in_at = datetime.utcnow()
        await self._commit()

    # ==================== Profile / role / access ====================

    async def insert_profile(self, user_id: str, email: str, full_name: Optional[str]) -> Profile:
        """Profile row; the display name falls back to the email"""
        email = email.strip().lower()
        profile = Profile(id=str(user_id), email=email, full_name=(full_name or "").strip() or email)
        self.db.add(profile)
        await self._commit()
        return profile

    async def insert_role(self, user_id: str, role: AppRole) -> UserRoleAssignment:
        assignment = UserRoleAssignment(user_id=str(user_id), role=role)
        self.db.add(assignment)
        await self._commit()
        return assignment

    async def insert_access(self, user_id: str, categories: Iterable[str]) -> List[UserAccess]:
        """Insert one access row per category in a single commit"""
        rows = [UserAccess(user_id=str(user_id), f1_index=f1_index) for f1_index in categories]
        self.db.add_all(rows)
        await self._commit()
        return rows

    async def replace_access(self, user_id: str, categories: Iterable[str]) -> List[str]:
        user_id = str(user_id)
        categories = list(dict.fromkeys(categories))
        try:
            await self.db.execute(delete(UserAccess).where(UserAccess.user_id == user_id))
        except Exception:
            await self.db.rollback()
            raise
        self.db.add_all([UserAccess(user_id=user_id, f1_index=f1_index) for f1_index in categories])
        await self._commit()
        return categories

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == str(user_id)))
        return result.scalar_one_or_none()

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        ids = [str(user_id) for user_id in user_ids]
        if not ids:
            return {}
        result = await self.db.execute(select(Profile).where(Profile.id.in_(ids)))
        return {str(profile.id): profile for profile in result.scalars().all()}

    async def get_roles(self, user_id: str) -> List[AppRole]:
        result = await self.db.execute(
            select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == str(user_id))
        )
        return list(result.scalars().all())

    async def get_access(self, user_id: str) -> List[str]:
        result = await self.db.execute(
            select(UserAccess.f1_index)
            .where(UserAccess.user_id == str(user_id))
            .order_by(UserAccess.f1_index)
        )
        return list(result.scalars().all())

    async def list_users(self) -> List[Dict]:
        """Profiles with their roles and access, newest first"""
        profiles = (
            await self.db.execute(select(Profile).order_by(Profile.created_at.desc()))
        ).scalars().all()

        roles: Dict[str, List[str]] = {}
        for user_id, role in (
            await self.db.execute(select(UserRoleAssignment.user_id, UserRoleAssignment.role))
        ).all():
            roles.setdefault(str(user_id), []).append(AppRole(role).value)

        access: Dict[str, List[str]] = {}
        for user_id, f1_index in (
            await self.db.execute(
                select(UserAccess.user_id, UserAccess.f1_index).order_by(UserAccess.f1_index)
            )
        ).all():
            access.setdefault(str(user_id), []).append(f1_index)

        return [
            {
                "id": str(profile.id),
                "email": profile.email,
                "full_name": profile.full_name,
                "invitation_sent_at": profile.invitation_sent_at,
                "questionnaire_completed": profile.questionnaire_completed,
                "created_at": profile.created_at,
                "roles": roles.get(str(profile.id), []),
                "access": access.get(str(profile.id), []),
            }
            for profile in profiles
        ]

    async def mark_invitation_sent(self, user_id: str) -> None:
        try:
            await self.db.execute(
                update(Profile)
                .where(Profile.id == str(user_id))
                .values(invitation_sent_at=datetime.utcnow())
            )
        except Exception:
            await self.db.rollback()
            raise
        await self._commit()

    # ==================== Audit ====================

    async def record_audit(
        self,
        admin_user_id: str,
        action: str,
        target_user_id: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> None:
        """Write an admin audit row. Never fails the calling operation."""
        try:
            self.db.add(AdminAuditLog(
                admin_user_id=str(admin_user_id),
                target_user_id=str(target_user_id) if target_user_id else None,
                action=action,
                action_metadata=metadata or {},
            ))
            await self._commit()
        except Exception as e:
            logger.error(f"[Audit] Failed to record {action} by {admin_user_id}: {e}")
