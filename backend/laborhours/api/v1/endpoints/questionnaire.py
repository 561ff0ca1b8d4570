"""
Questionnaire endpoints: the caller's process tree, IT systems, and
labor-hour responses.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from laborhours.core.database import get_db
from laborhours.models import User
from laborhours.modules.auth.dependencies import get_current_user
from laborhours.schemas.questionnaire import (
    Level1, SystemResponse, ResponseItem, ResponseUpdate, SubmitResponse
)
from laborhours.services.questionnaire_service import QuestionnaireService

router = APIRouter()


@router.get("/tree", response_model=List[Level1])
async def get_tree(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active process tree limited to the caller's categories"""
    return await QuestionnaireService(db).get_tree(current_user.id)


@router.get("/systems", response_model=List[SystemResponse])
async def get_systems(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuestionnaireService(db).get_systems()


@router.get("/responses", response_model=List[ResponseItem])
async def get_responses(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuestionnaireService(db).get_responses(current_user.id)


@router.put("/responses/{f4_index}", response_model=ResponseItem)
async def save_response(
    f4_index: str,
    payload: ResponseUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create or update the answer for one leaf process"""
    return await QuestionnaireService(db).save_response(
        current_user.id,
        f4_index,
        system_id=payload.system_id,
        labor_hours=payload.labor_hours,
        notes=payload.notes,
    )


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Submit all responses; they are read-only afterwards"""
    return await QuestionnaireService(db).submit(current_user.id)
