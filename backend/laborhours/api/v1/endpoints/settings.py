"""
Public branding settings.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.database import get_db
from laborhours.services.settings_service import get_interface_settings

router = APIRouter()


@router.get("/interface")
async def read_interface_settings(db: AsyncSession = Depends(get_db)):
    """Branding shown on every page, including the login page"""
    return await get_interface_settings(db)
