"""
Admin branding settings.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.database import get_db
from laborhours.models import User
from laborhours.modules.auth.dependencies import get_current_admin
from laborhours.schemas.admin import InterfaceSettingsUpdate
from laborhours.services.settings_service import update_interface_settings
from laborhours.services.user_store import UserStore

router = APIRouter()


@router.put("/interface")
async def put_interface_settings(
    payload: InterfaceSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Update branding keys (app_title, logo_url, primary_color, ...)"""
    values = await update_interface_settings(db, payload.settings, admin_id=str(current_admin.id))
    await UserStore(db).record_audit(
        str(current_admin.id), "update_interface_settings",
        metadata={"keys": sorted(payload.settings)},
    )
    return values
