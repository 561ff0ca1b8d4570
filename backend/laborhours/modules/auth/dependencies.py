"""
Authentication dependencies.

Access tokens carry the user id in ``sub``. Tokens issued by the
impersonation endpoint also carry ``impersonated_by``; those act as the
target user and never as an administrator.
"""
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.database import get_db
from laborhours.core.logging_config import set_user_id
from laborhours.core.security import decode_token
from laborhours.models import User, AppRole
from laborhours.services.user_store import UserStore

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    user_id = payload.get("sub")
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        raise _unauthorized("Invalid token subject")

    user = await UserStore(db).get_identity(user_id)
    if user is None:
        raise _unauthorized("User not found")

    user.impersonated_by = payload.get("impersonated_by")
    set_user_id(str(user.id))
    return user


async def get_current_admin(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Caller must hold the admin role and must not be impersonating"""
    if current_user.impersonated_by or not await UserStore(db).has_role(current_user.id, AppRole.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
