"""Branding settings stored as key/value rows"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.exceptions import ValidationError
from laborhours.models import InterfaceSetting

INTERFACE_KEYS = ("app_title", "app_subtitle", "logo_url", "primary_color", "footer_text")

DEFAULT_INTERFACE_SETTINGS: Dict[str, Any] = {
    "app_title": settings.APP_NAME,
    "app_subtitle": None,
    "logo_url": None,
    "primary_color": None,
    "footer_text": None,
}


async def get_interface_settings(db: AsyncSession) -> Dict[str, Any]:
    """Defaults overlaid with whatever is stored"""
    values = dict(DEFAULT_INTERFACE_SETTINGS)
    result = await db.execute(select(InterfaceSetting))
    for row in result.scalars().all():
        values[row.key] = row.value
    return values


async def update_interface_settings(
    db: AsyncSession,
    updates: Dict[str, Any],
    admin_id: Optional[str] = None,
) -> Dict[str, Any]:
    unknown = sorted(set(updates) - set(INTERFACE_KEYS))
    if unknown:
        raise ValidationError(f"Unknown settings: {', '.join(unknown)}", field="settings")

    existing = {
        row.key: row
        for row in (
            await db.execute(select(InterfaceSetting).where(InterfaceSetting.key.in_(list(updates))))
        ).scalars().all()
    }

    for key, value in updates.items():
        row = existing.get(key)
        if row is None:
            db.add(InterfaceSetting(key=key, value=value, updated_by=admin_id))
        else:
            row.value = value
            row.updated_by = admin_id
            row.updated_at = datetime.utcnow()

    await db.commit()
    return await get_interface_settings(db)
