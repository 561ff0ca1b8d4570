import pytest
from httpx import AsyncClient

USER_PASSWORD = "Test#pass1"


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user):
    """Test successful login"""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": USER_PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["expires_in"] > 0


@pytest.mark.asyncio
async def test_login_email_case_insensitive(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email.upper(), "password": USER_PASSWORD}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, test_user):
    """Test login with invalid credentials"""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": "wrongpassword"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_FAILED"


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, test_user, auth_headers):
    """Test getting current user info"""
    response = await client.get("/api/v1/auth/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == test_user.email
    assert data["roles"] == ["user"]
    assert data["access"] == ["1.1", "1.2"]
    assert data["is_admin"] is False


@pytest.mark.asyncio
async def test_get_current_admin(client: AsyncClient, admin_auth_headers):
    response = await client.get("/api/v1/auth/me", headers=admin_auth_headers)

    data = response.json()
    assert data["is_admin"] is True
    assert data["access"] == ["1.1", "1.2", "2.1"]


@pytest.mark.asyncio
async def test_unauthorized_access(client: AsyncClient):
    """Test accessing protected route without auth"""
    response = await client.get("/api/v1/auth/me")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.headers["X-Request-ID"]
