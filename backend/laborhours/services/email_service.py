"""
Email Service for Labor Hours
=============================
Mail delivery for invitation emails.

Supports SendGrid (when an API key is configured) and SMTP. SMTP connection
details come from the active ``smtp_settings`` row, falling back to the
SMTP_* environment settings. The SMTP password is always taken from
configuration.
"""

import asyncio
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Tuple

import aiosmtplib
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.exceptions import EmailConfigurationError
from laborhours.core.logging_config import logger
from laborhours.models import SmtpSettings

IMPLICIT_TLS_PORT = 465


@dataclass
class SmtpConfig:
    """Resolved SMTP connection parameters"""
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str
    use_tls: bool = True

    @classmethod
    def from_settings(cls) -> "SmtpConfig":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_email=settings.EMAIL_FROM,
            from_name=settings.EMAIL_FROM_NAME,
            use_tls=settings.SMTP_USE_TLS,
        )

    @classmethod
    def from_row(cls, row: SmtpSettings) -> "SmtpConfig":
        return cls(
            host=row.host,
            port=row.port,
            username=row.username,
            password=settings.SMTP_PASSWORD,
            from_email=row.from_email,
            from_name=row.from_name,
            use_tls=row.use_tls,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)

    def connection_kwargs(self) -> dict:
        # Port 465 speaks TLS from the first byte; other ports upgrade with STARTTLS
        implicit_tls = self.port == IMPLICIT_TLS_PORT
        return {
            "hostname": self.host,
            "port": self.port,
            "use_tls": implicit_tls,
            "start_tls": self.use_tls and not implicit_tls,
            "timeout": settings.SMTP_TIMEOUT,
        }


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self, db: Optional[AsyncSession] = None):
        self.db = db
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

    async def get_smtp_config(self) -> SmtpConfig:
        """Active smtp_settings row, else environment settings"""
        if self.db is not None:
            result = await self.db.execute(
                select(SmtpSettings)
                .where(SmtpSettings.is_active == True)  # noqa: E712
                .order_by(SmtpSettings.updated_at.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            if row:
                return SmtpConfig.from_row(row)
        return SmtpConfig.from_settings()

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.

        Raises:
            EmailConfigurationError: neither SendGrid nor SMTP is configured
        """
        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content)

        config = await self.get_smtp_config()
        if not config.is_complete:
            logger.warning("[Email] SMTP not configured, cannot send email")
            raise EmailConfigurationError("SMTP is not configured")
        return await self._send_via_smtp(config, to_email, subject, html_content, text_content)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(settings.EMAIL_FROM, settings.EMAIL_FROM_NAME),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if text_content:
                message.add_content(Content("text/plain", text_content))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid client is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in [200, 201, 202]:
                logger.info(f"[Email/SendGrid] Successfully sent email to {to_email}: {subject}")
                return True
            else:
                logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
                return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        config: SmtpConfig,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{config.from_name} <{config.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                username=config.username,
                password=config.password,
                **config.connection_kwargs()
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def test_connection(self, config: Optional[SmtpConfig] = None) -> Tuple[bool, str]:
        """
        Connect and authenticate without sending anything.

        Returns:
            (success, message)
        """
        config = config or await self.get_smtp_config()
        if not config.is_complete:
            return False, "SMTP host, username and SMTP_PASSWORD must all be set"

        client = aiosmtplib.SMTP(**config.connection_kwargs())
        try:
            await client.connect()
            await client.login(config.username, config.password)
        except aiosmtplib.SMTPAuthenticationError as e:
            logger.warning(f"[Email/SMTP] Authentication failed for {config.username}@{config.host}: {e}")
            return False, f"Authentication failed: {e.message}"
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning(f"[Email/SMTP] Connection to {config.host}:{config.port} failed: {e}")
            return False, f"Connection failed: {e}"
        finally:
            if client.is_connected:
                try:
                    await client.quit()
                except aiosmtplib.SMTPException:
                    client.close()

        logger.info(f"[Email/SMTP] Connection test to {config.host}:{config.port} succeeded")
        return True, "Connection successful"
