"""
Questionnaire service: process tree, systems, and a user's responses.

Users only see, and may only answer, the parts of the tree below the
level-1 processes they have access to. Submitting is one-way: afterwards
the responses are read-only.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.exceptions import (
    AuthorizationError,
    ProcessNotFoundError,
    ResponsesLockedError,
    ValidationError,
)
from laborhours.core.logging_config import logger
from laborhours.models import (
    Process1,
    Process2,
    Process3,
    Process4,
    Profile,
    System,
    UserAccess,
    UserResponse,
)


def _ordered(rows, index_attr: str) -> list:
    """Order by ``sort`` with unsorted rows last, then by index"""
    return sorted(
        rows,
        key=lambda row: (row.sort is None, row.sort or 0, getattr(row, index_attr)),
    )


def _response_dict(response: UserResponse) -> dict:
    return {
        "f4_index": response.f4_index,
        "system_id": response.system_id,
        "labor_hours": response.labor_hours,
        "notes": response.notes,
        "is_submitted": response.is_submitted,
        "submitted_at": response.submitted_at,
        "updated_at": response.updated_at,
    }


class QuestionnaireService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def accessible_categories(self, user_id: str) -> List[str]:
        result = await self.db.execute(
            select(UserAccess.f1_index).where(UserAccess.user_id == str(user_id))
        )
        return list(result.scalars().all())

    async def get_tree(self, user_id: str) -> List[dict]:
        """Active four-level tree restricted to the user's categories"""
        categories = await self.accessible_categories(user_id)
        if not categories:
            return []

        level1 = (await self.db.execute(
            select(Process1).where(Process1.f1_index.in_(categories), Process1.is_active == True)  # noqa: E712
        )).scalars().all()
        f1_ids = [p.f1_index for p in level1]

        level2 = (await self.db.execute(
            select(Process2).where(Process2.f1_index.in_(f1_ids), Process2.is_active == True)  # noqa: E712
        )).scalars().all() if f1_ids else []
        f2_ids = [p.f2_index for p in level2]

        level3 = (await self.db.execute(
            select(Process3).where(Process3.f2_index.in_(f2_ids), Process3.is_active == True)  # noqa: E712
        )).scalars().all() if f2_ids else []
        f3_ids = [p.f3_index for p in level3]

        level4 = (await self.db.execute(
            select(Process4).where(Process4.f3_index.in_(f3_ids), Process4.is_active == True)  # noqa: E712
        )).scalars().all() if f3_ids else []

        children4: Dict[str, List[dict]] = {}
        for p in _ordered(level4, "f4_index"):
            children4.setdefault(p.f3_index, []).append(
                {"f4_index": p.f4_index, "name": p.f4_name, "note": p.note}
            )

        children3: Dict[str, List[dict]] = {}
        for p in _ordered(level3, "f3_index"):
            children3.setdefault(p.f2_index, []).append({
                "f3_index": p.f3_index,
                "name": p.f3_name,
                "note": p.note,
                "children": children4.get(p.f3_index, []),
            })

        children2: Dict[str, List[dict]] = {}
        for p in _ordered(level2, "f2_index"):
            children2.setdefault(p.f1_index, []).append({
                "f2_index": p.f2_index,
                "name": p.f2_name,
                "note": p.note,
                "children": children3.get(p.f2_index, []),
            })

        return [
            {
                "f1_index": p.f1_index,
                "name": p.f1_name,
                "note": p.note,
                "children": children2.get(p.f1_index, []),
            }
            for p in _ordered(level1, "f1_index")
        ]

    async def get_systems(self) -> List[dict]:
        result = await self.db.execute(
            select(System).where(System.is_active == True).order_by(System.system_name)  # noqa: E712
        )
        return [
            {"system_id": s.system_id, "system_name": s.system_name}
            for s in result.scalars().all()
        ]

    async def get_responses(self, user_id: str) -> List[dict]:
        result = await self.db.execute(
            select(UserResponse)
            .where(UserResponse.user_id == str(user_id))
            .order_by(UserResponse.f4_index)
        )
        return [_response_dict(r) for r in result.scalars().all()]

    async def _category_of(self, f4_index: str) -> Optional[str]:
        """Walk a leaf process up to its level-1 identifier"""
        result = await self.db.execute(
            select(Process2.f1_index)
            .join(Process3, Process3.f2_index == Process2.f2_index)
            .join(Process4, Process4.f3_index == Process3.f3_index)
            .where(Process4.f4_index == f4_index)
        )
        return result.scalar_one_or_none()

    async def _is_completed(self, user_id: str) -> bool:
        result = await self.db.execute(
            select(Profile.questionnaire_completed).where(Profile.id == str(user_id))
        )
        return bool(result.scalar_one_or_none())

    async def save_response(
        self,
        user_id: str,
        f4_index: str,
        system_id: Optional[int] = None,
        labor_hours: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> dict:
        """
        Create or update the response for one leaf process.

        Raises:
            ProcessNotFoundError: unknown or inactive leaf process
            AuthorizationError: leaf is outside the user's categories
            ResponsesLockedError: responses were already submitted
            ValidationError: negative hours or unknown system
        """
        user_id = str(user_id)

        leaf = (await self.db.execute(
            select(Process4).where(Process4.f4_index == f4_index, Process4.is_active == True)  # noqa: E712
        )).scalar_one_or_none()
        if leaf is None:
            raise ProcessNotFoundError(f4_index)

        if await self._category_of(f4_index) not in await self.accessible_categories(user_id):
            raise AuthorizationError("No access to this process")

        if labor_hours is not None and labor_hours < 0:
            raise ValidationError("Labor hours cannot be negative", field="labor_hours")

        if system_id is not None:
            system = await self.db.get(System, system_id)
            if system is None or not system.is_active:
                raise ValidationError("Unknown system", field="system_id")

        if await self._is_completed(user_id):
            raise ResponsesLockedError()

        response = (await self.db.execute(
            select(UserResponse).where(
                UserResponse.user_id == user_id,
                UserResponse.f4_index == f4_index,
            )
        )).scalar_one_or_none()

        if response is None:
            response = UserResponse(user_id=user_id, f4_index=f4_index)
            self.db.add(response)
        elif response.is_submitted:
            raise ResponsesLockedError()

        response.system_id = system_id
        response.labor_hours = labor_hours
        response.notes = notes
        response.updated_at = datetime.utcnow()

        await self.db.commit()
        await self.db.refresh(response)
        return _response_dict(response)

    async def submit(self, user_id: str) -> dict:
        """
        Submit all responses of a user.

        Raises:
            ResponsesLockedError: already submitted
            ValidationError: no hours were entered
        """
        user_id = str(user_id)
        if await self._is_completed(user_id):
            raise ResponsesLockedError()

        responses = (await self.db.execute(
            select(UserResponse).where(UserResponse.user_id == user_id)
        )).scalars().all()

        total_hours = sum(r.labor_hours or 0 for r in responses)
        if total_hours <= 0:
            raise ValidationError("Total labor hours must be greater than 0", field="labor_hours")

        now = datetime.utcnow()
        for response in responses:
            response.is_submitted = True
            response.submitted_at = now

        await self.db.execute(
            update(Profile)
            .where(Profile.id == user_id)
            .values(questionnaire_completed=True, questionnaire_completed_at=now)
        )
        await self.db.commit()

        logger.info(f"[Questionnaire] {user_id} submitted {len(responses)} responses ({total_hours}h)")
        return {
            "success": True,
            "submitted": len(responses),
            "total_hours": total_hours,
            "submitted_at": now,
        }
