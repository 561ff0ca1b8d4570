"""
Unit Tests for the mail sender
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import aiosmtplib

from laborhours.core.exceptions import EmailConfigurationError
from laborhours.models import SmtpSettings
from laborhours.services.email_service import EmailService, SmtpConfig


def make_config(**overrides) -> SmtpConfig:
    values = dict(
        host="smtp.example.com",
        port=587,
        username="mailer",
        password="secret",
        from_email="noreply@example.com",
        from_name="Labor Hours",
        use_tls=True,
    )
    values.update(overrides)
    return SmtpConfig(**values)


class TestSmtpConfig:

    def test_starttls_on_submission_port(self):
        kwargs = make_config(port=587).connection_kwargs()

        assert kwargs["start_tls"] is True
        assert kwargs["use_tls"] is False

    def test_implicit_tls_on_465(self):
        kwargs = make_config(port=465).connection_kwargs()

        assert kwargs["use_tls"] is True
        assert kwargs["start_tls"] is False

    def test_incomplete_without_password(self):
        assert not make_config(password="").is_complete

    async def test_active_row_preferred(self, db_session):
        db_session.add(SmtpSettings(
            host="db.example.com", port=2525, username="dbuser",
            from_email="db@example.com", from_name="DB", use_tls=False,
        ))
        await db_session.commit()

        config = await EmailService(db_session).get_smtp_config()

        assert config.host == "db.example.com"
        assert config.port == 2525

    async def test_environment_fallback(self, db_session):
        config = await EmailService(db_session).get_smtp_config()

        assert config == SmtpConfig.from_settings()


class TestSendEmail:

    async def test_sends_via_smtp(self):
        service = EmailService()
        with patch.object(service, "get_smtp_config", AsyncMock(return_value=make_config())), \
                patch("laborhours.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
            ok = await service.send_email("to@example.com", "Subject", "<p>Hi</p>")

        assert ok is True
        message = send.await_args.args[0]
        assert message["To"] == "to@example.com"
        assert send.await_args.kwargs["hostname"] == "smtp.example.com"
        assert send.await_args.kwargs["password"] == "secret"

    async def test_smtp_failure_returns_false(self):
        service = EmailService()
        with patch.object(service, "get_smtp_config", AsyncMock(return_value=make_config())), \
                patch("laborhours.services.email_service.aiosmtplib.send",
                      AsyncMock(side_effect=aiosmtplib.SMTPException("refused"))):
            ok = await service.send_email("to@example.com", "Subject", "<p>Hi</p>")

        assert ok is False

    async def test_unconfigured_raises(self):
        service = EmailService()
        with patch.object(service, "get_smtp_config", AsyncMock(return_value=make_config(password=""))):
            with pytest.raises(EmailConfigurationError):
                await service.send_email("to@example.com", "Subject", "<p>Hi</p>")


class TestConnectionCheck:

    async def test_success(self):
        client = MagicMock()
        client.connect = AsyncMock()
        client.login = AsyncMock()
        client.quit = AsyncMock()
        client.is_connected = True

        with patch("laborhours.services.email_service.aiosmtplib.SMTP", return_value=client):
            ok, message = await EmailService().test_connection(make_config())

        assert ok is True
        client.login.assert_awaited_once_with("mailer", "secret")
        client.quit.assert_awaited_once()

    async def test_bad_credentials(self):
        client = MagicMock()
        client.connect = AsyncMock()
        client.login = AsyncMock(side_effect=aiosmtplib.SMTPAuthenticationError(535, "bad credentials"))
        client.quit = AsyncMock()
        client.is_connected = True

        with patch("laborhours.services.email_service.aiosmtplib.SMTP", return_value=client):
            ok, message = await EmailService().test_connection(make_config())

        assert ok is False
        assert message.startswith("Authentication failed")

    async def test_incomplete_config(self):
        ok, message = await EmailService().test_connection(make_config(username=""))

        assert ok is False
