"""
Authentication endpoints: password login and the current user.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.database import get_db
from laborhours.core.exceptions import AuthenticationError
from laborhours.core.logging_config import logger, set_user_id
from laborhours.core.rate_limiter import login_rate_limit
from laborhours.core.security import verify_password, create_access_token
from laborhours.models import AppRole, User
from laborhours.modules.auth.dependencies import get_current_user
from laborhours.schemas.auth import UserLogin, Token, CurrentUserResponse
from laborhours.services.user_store import UserStore

router = APIRouter()


@router.post("/login", response_model=Token)
@login_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password (rate limited)"""
    client_ip = request.client.host if request.client else "unknown"
    store = UserStore(db)

    user = await store.get_identity_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise AuthenticationError("Incorrect email or password")

    await store.touch_last_sign_in(user)
    set_user_id(str(user.id))

    access_token = create_access_token({"sub": str(user.id), "email": user.email})

    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Identity, profile and roles of the caller"""
    store = UserStore(db)
    profile = await store.get_profile(current_user.id)
    roles = [AppRole(role).value for role in await store.get_roles(current_user.id)]

    return CurrentUserResponse(
        id=str(current_user.id),
        email=current_user.email,
        full_name=profile.full_name if profile else None,
        roles=roles,
        access=await store.get_access(current_user.id),
        is_admin=AppRole.ADMIN.value in roles,
        questionnaire_completed=bool(profile and profile.questionnaire_completed),
        last_sign_in_at=current_user.last_sign_in_at,
        impersonated_by=current_user.impersonated_by,
    )
