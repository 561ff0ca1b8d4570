"""
Invitation Dispatcher
=====================
Sends login credentials to provisioned users.

A failed send never undoes provisioning; it is returned to the caller and
written to ``email_logs`` so the administrator can resend later. Resending
rotates the password first, so the new password is always returned.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.exceptions import (
    LaborHoursError,
    EmailConfigurationError,
    NotificationError,
    UserNotFoundError,
)
from laborhours.core.logging_config import logger
from laborhours.core.security import generate_password
from laborhours.models import EmailTemplate, EmailLog
from laborhours.services.email_service import EmailService
from laborhours.services.summary import summarize_resend
from laborhours.services.user_store import UserStore

EMAIL_TYPE_INVITATION = "invitation"
EMAIL_TYPE_RESEND = "invitation_resend"

DEFAULT_SUBJECT = "Your Labor Hours account"
DEFAULT_HTML_TEMPLATE = """<html>
<body style="font-family: Arial, sans-serif;">
  <p>Hello {{full_name}},</p>
  <p>An account has been created for you.</p>
  <p>Email: <strong>{{email}}</strong><br>
     Temporary password: <strong>{{password}}</strong></p>
  <p><a href="{{login_url}}">Sign in</a> to fill in your labor hours.</p>
</body>
</html>"""


@dataclass
class InvitationResult:
    user_id: str
    email: str
    sent: bool
    password: Optional[str] = None  # set on resend
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"user_id": self.user_id, "email": self.email, "sent": self.sent}
        if self.password is not None:
            data["password"] = self.password
        if self.error:
            data["error"] = self.error
        return data


def render_template(template: str, variables: Dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders"""
    for key, value in variables.items():
        template = template.replace("{{" + key + "}}", value or "")
    return template


class InvitationService:
    """Renders the invitation template and hands it to the mail sender"""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.store = UserStore(db)
        self.email_service = email_service or EmailService(db)

    async def get_template(self) -> EmailTemplate:
        result = await self.db.execute(
            select(EmailTemplate).order_by(EmailTemplate.updated_at.desc()).limit(1)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise EmailConfigurationError("Invitation email template is not configured")
        return template

    async def send_invitation(
        self,
        user_id: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        email_type: str = EMAIL_TYPE_INVITATION,
    ) -> InvitationResult:
        """Send one invitation. Never raises; the outcome is in the result."""
        user_id = str(user_id)
        error = None
        try:
            template = await self.get_template()
            variables = {
                "full_name": full_name or email,
                "email": email,
                "password": password,
                "login_url": settings.LOGIN_URL,
            }
            sent = await self.email_service.send_email(
                email,
                render_template(template.subject, variables),
                render_template(template.html_template, variables),
            )
            if not sent:
                raise NotificationError("Failed to send email", recipient=email)
            await self.store.mark_invitation_sent(user_id)
        except LaborHoursError as e:
            error = e.message
        except Exception as e:
            logger.log_error_with_context(e, "send_invitation", recipient=email)
            error = str(e)

        await self._log_attempt(user_id, email_type, error)

        if error:
            logger.warning(f"[Invitation] Not sent to {email}: {error}")
            return InvitationResult(user_id=user_id, email=email, sent=False, error=error)

        logger.info(f"[Invitation] Sent {email_type} to {email}")
        return InvitationResult(user_id=user_id, email=email, sent=True)

    async def resend_invitation(self, user_id: str) -> InvitationResult:
        """
        Rotate the user's password and send a new invitation.

        The password is changed before sending. The returned result always
        carries the new password, including when the send failed.

        Raises:
            UserNotFoundError: no profile for user_id
        """
        profile = await self.store.get_profile(user_id)
        if profile is None:
            raise UserNotFoundError(str(user_id))

        password = generate_password()
        await self.store.update_credential(user_id, password)

        result = await self.send_invitation(
            user_id,
            profile.email,
            password,
            profile.full_name,
            email_type=EMAIL_TYPE_RESEND,
        )
        result.password = password
        return result

    async def bulk_resend(self, user_ids: List[str]) -> dict:
        """Resend to each user independently"""
        sent: List[dict] = []
        failed: List[dict] = []

        for user_id in dict.fromkeys(str(user_id) for user_id in user_ids):
            try:
                result = await self.resend_invitation(user_id)
            except LaborHoursError as e:
                failed.append({"user_id": user_id, "error": e.message})
                continue
            except Exception as e:
                logger.log_error_with_context(e, "bulk_resend", target_user_id=user_id)
                failed.append({"user_id": user_id, "error": str(e)})
                continue

            if result.sent:
                sent.append(result.to_dict())
            else:
                failed.append(result.to_dict())

        return {
            "success": True,
            "results": {"sent": sent, "failed": failed},
            "summary": summarize_resend(sent, failed).to_dict(),
        }

    async def _log_attempt(self, user_id: str, email_type: str, error: Optional[str]) -> None:
        try:
            self.db.add(EmailLog(
                user_id=user_id,
                email_type=email_type,
                status="failed" if error else "success",
                error_message=error,
            ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[Invitation] Could not write email log for {user_id}: {e}")
