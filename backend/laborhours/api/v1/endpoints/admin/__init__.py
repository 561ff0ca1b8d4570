"""
Admin API endpoints. All require the admin role.
"""
from fastapi import APIRouter

from laborhours.api.v1.endpoints.admin import users, email, settings

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(email.router, prefix="/email", tags=["Admin Email"])
admin_router.include_router(settings.router, prefix="/settings", tags=["Admin Settings"])
