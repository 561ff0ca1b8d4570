"""
Admin email and branding settings API tests
"""
import pytest
from unittest.mock import AsyncMock, patch
from httpx import AsyncClient

from laborhours.services.email_service import EmailService
from laborhours.services.invitation_service import DEFAULT_SUBJECT

SMTP_PAYLOAD = {
    "host": "smtp.example.com",
    "port": 587,
    "username": "mailer",
    "from_email": "noreply@example.com",
    "from_name": "Labor Hours",
    "use_tls": True,
}


class TestSmtpSettings:

    async def test_defaults_when_nothing_stored(self, client: AsyncClient, admin_auth_headers):
        response = await client.get("/api/v1/admin/email/smtp", headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is False
        assert "password" not in data

    async def test_update_then_read(self, client: AsyncClient, admin_auth_headers):
        response = await client.put("/api/v1/admin/email/smtp", json=SMTP_PAYLOAD, headers=admin_auth_headers)
        assert response.status_code == 200

        response = await client.get("/api/v1/admin/email/smtp", headers=admin_auth_headers)
        data = response.json()
        assert data["host"] == "smtp.example.com"
        assert data["is_active"] is True

    async def test_password_field_ignored(self, client: AsyncClient, admin_auth_headers):
        payload = dict(SMTP_PAYLOAD, password="secret")

        response = await client.put("/api/v1/admin/email/smtp", json=payload, headers=admin_auth_headers)

        assert response.status_code == 200
        assert "password" not in response.json()

    async def test_invalid_port(self, client: AsyncClient, admin_auth_headers):
        payload = dict(SMTP_PAYLOAD, port=70000)

        response = await client.put("/api/v1/admin/email/smtp", json=payload, headers=admin_auth_headers)

        assert response.status_code == 422

    async def test_connection_test(self, client: AsyncClient, admin_auth_headers):
        with patch.object(
            EmailService, "test_connection", AsyncMock(return_value=(False, "Authentication failed: denied"))
        ):
            response = await client.post("/api/v1/admin/email/smtp/test", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Authentication failed: denied"}

    async def test_requires_admin(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/admin/email/smtp", headers=auth_headers)

        assert response.status_code == 403


class TestEmailTemplate:

    async def test_default_template(self, client: AsyncClient, admin_auth_headers):
        response = await client.get("/api/v1/admin/email/template", headers=admin_auth_headers)

        data = response.json()
        assert data["subject"] == DEFAULT_SUBJECT
        assert "{{password}}" in data["placeholders"]

    async def test_update_template(self, client: AsyncClient, admin_auth_headers, email_template):
        response = await client.put(
            "/api/v1/admin/email/template",
            json={"subject": "Hello {{full_name}}", "html_template": "<p>{{password}}</p>"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 200
        response = await client.get("/api/v1/admin/email/template", headers=admin_auth_headers)
        assert response.json()["subject"] == "Hello {{full_name}}"


class TestInterfaceSettings:

    async def test_public_read(self, client: AsyncClient, process_tree):
        response = await client.get("/api/v1/settings/interface")

        assert response.status_code == 200
        assert set(response.json()) >= {"app_title", "logo_url", "primary_color"}

    async def test_admin_update(self, client: AsyncClient, admin_auth_headers):
        response = await client.put(
            "/api/v1/admin/settings/interface",
            json={"settings": {"app_title": "Hours 2026", "primary_color": "#004488"}},
            headers=admin_auth_headers,
        )
        assert response.status_code == 200

        response = await client.get("/api/v1/settings/interface")
        data = response.json()
        assert data["app_title"] == "Hours 2026"
        assert data["primary_color"] == "#004488"

    async def test_unknown_key_rejected(self, client: AsyncClient, admin_auth_headers):
        response = await client.put(
            "/api/v1/admin/settings/interface",
            json={"settings": {"theme": "dark"}},
            headers=admin_auth_headers,
        )

        assert response.status_code == 400
