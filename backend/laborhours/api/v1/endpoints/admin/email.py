"""
Admin email configuration: SMTP server and invitation template.

The SMTP password is not accepted or returned here; it comes from the
SMTP_PASSWORD setting.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from datetime import datetime

from laborhours.core.config import settings
from laborhours.core.database import get_db
from laborhours.core.logging_config import logger
from laborhours.models import User, SmtpSettings, EmailTemplate
from laborhours.modules.auth.dependencies import get_current_admin
from laborhours.schemas.admin import (
    SmtpSettingsUpdate, SmtpSettingsResponse, SmtpTestResponse,
    EmailTemplateUpdate, EmailTemplateResponse,
)
from laborhours.services.email_service import EmailService, SmtpConfig
from laborhours.services.invitation_service import DEFAULT_SUBJECT, DEFAULT_HTML_TEMPLATE
from laborhours.services.user_store import UserStore

router = APIRouter()


@router.get("/smtp", response_model=SmtpSettingsResponse)
async def get_smtp_settings(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Active SMTP settings, or the environment defaults"""
    result = await db.execute(
        select(SmtpSettings)
        .where(SmtpSettings.is_active == True)  # noqa: E712
        .order_by(SmtpSettings.updated_at.desc())
        .limit(1)
    )
    row = result.scalar_one_or_none()
    if row:
        return SmtpSettingsResponse(
            host=row.host,
            port=row.port,
            username=row.username,
            from_email=row.from_email,
            from_name=row.from_name,
            use_tls=row.use_tls,
            is_active=row.is_active,
            password_configured=bool(settings.SMTP_PASSWORD),
            updated_at=row.updated_at,
        )

    config = SmtpConfig.from_settings()
    return SmtpSettingsResponse(
        host=config.host,
        port=config.port,
        username=config.username,
        from_email=config.from_email,
        from_name=config.from_name,
        use_tls=config.use_tls,
        is_active=False,
        password_configured=bool(config.password),
    )


@router.put("/smtp", response_model=SmtpSettingsResponse)
async def update_smtp_settings(
    payload: SmtpSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Store new SMTP settings and make them the active row"""
    await db.execute(update(SmtpSettings).values(is_active=False))
    row = SmtpSettings(**payload.model_dump(), is_active=True)
    db.add(row)
    await db.commit()
    await db.refresh(row)

    logger.log_admin_action("update_smtp", str(current_admin.id), host=row.host, port=row.port)
    await UserStore(db).record_audit(
        str(current_admin.id), "update_smtp", metadata={"host": row.host, "port": row.port}
    )

    return SmtpSettingsResponse(
        host=row.host,
        port=row.port,
        username=row.username,
        from_email=row.from_email,
        from_name=row.from_name,
        use_tls=row.use_tls,
        is_active=row.is_active,
        password_configured=bool(settings.SMTP_PASSWORD),
        updated_at=row.updated_at,
    )


@router.post("/smtp/test", response_model=SmtpTestResponse)
async def test_smtp_connection(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Connect and authenticate with the active settings; sends nothing"""
    success, message = await EmailService(db).test_connection()
    return {"success": success, "message": message}


@router.get("/template", response_model=EmailTemplateResponse)
async def get_email_template(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    result = await db.execute(
        select(EmailTemplate).order_by(EmailTemplate.updated_at.desc()).limit(1)
    )
    template = result.scalar_one_or_none()
    if template is None:
        return EmailTemplateResponse(subject=DEFAULT_SUBJECT, html_template=DEFAULT_HTML_TEMPLATE)
    return EmailTemplateResponse(
        subject=template.subject,
        html_template=template.html_template,
        updated_at=template.updated_at,
    )


@router.put("/template", response_model=EmailTemplateResponse)
async def update_email_template(
    payload: EmailTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Replace the invitation template"""
    result = await db.execute(
        select(EmailTemplate).order_by(EmailTemplate.updated_at.desc()).limit(1)
    )
    template = result.scalar_one_or_none()
    if template is None:
        template = EmailTemplate(subject=payload.subject, html_template=payload.html_template)
        db.add(template)
    else:
        template.subject = payload.subject
        template.html_template = payload.html_template
        template.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(template)

    await UserStore(db).record_audit(str(current_admin.id), "update_email_template")
    return EmailTemplateResponse(
        subject=template.subject,
        html_template=template.html_template,
        updated_at=template.updated_at,
    )
