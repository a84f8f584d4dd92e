"""
Integration tests for authentication endpoints.
"""
import pytest
from httpx import AsyncClient

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"


def _registration(**overrides) -> dict:
    payload = {
        "username": "newuser",
        "email": "newuser@example.com",
        "password": "Test123!@#",
        "firstName": "New",
        "lastName": "User",
    }
    payload.update(overrides)
    return payload


@pytest.mark.integration
@pytest.mark.asyncio
class TestAuthEndpoints:
    """Test authentication endpoints."""

    async def test_register_user(self, client: AsyncClient):
        """Test user registration."""
        response = await client.post(REGISTER, json=_registration())

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "newuser"
        assert data["email"] == "newuser@example.com"
        assert data["firstName"] == "New"
        assert data["lastName"] == "User"
        assert data["role"] == "user"
        assert "id" in data
        assert "password" not in data
        assert "passwordHash" not in data

    async def test_register_duplicate_username(self, client: AsyncClient, test_user):
        """Test registration with existing username."""
        response = await client.post(REGISTER, json=_registration(username="testuser"))

        assert response.status_code == 409
        assert response.json()["detail"] == "Username or email already exists"

    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        """Test registration with existing email."""
        response = await client.post(REGISTER, json=_registration(email="testuser@example.com"))

        assert response.status_code == 409
        login = await client.post(LOGIN, json={"username": "newuser", "password": "Test123!@#"})
        assert login.status_code == 401

    async def test_register_weak_password(self, client: AsyncClient):
        """Test registration with weak password."""
        response = await client.post(REGISTER, json=_registration(password="weakpass"))

        assert response.status_code == 400
        assert "uppercase" in response.json()["detail"]

    async def test_register_invalid_fields(self, client: AsyncClient):
        """Malformed input is reported per field."""
        response = await client.post(
            REGISTER, json=_registration(username="no spaces!", email="not-an-email")
        )

        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "Validation failed"
        fields = {e["field"] for e in data["errors"]}
        assert {"username", "email"} <= fields

    async def test_register_missing_names(self, client: AsyncClient):
        payload = _registration()
        del payload["firstName"]

        response = await client.post(REGISTER, json=payload)

        assert response.status_code == 400

    async def test_login_success(self, client: AsyncClient, test_user):
        """Test successful login."""
        response = await client.post(LOGIN, json={"username": "testuser", "password": "Test123!@#"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["tokenType"] == "bearer"
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["user"]["username"] == "testuser"
        assert data["user"]["firstName"] == "Testuser"

    async def test_login_with_email(self, client: AsyncClient, test_user):
        """The username field also accepts the account's email."""
        response = await client.post(
            LOGIN, json={"username": "testuser@example.com", "password": "Test123!@#"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        """Test login with wrong password."""
        response = await client.post(LOGIN, json={"username": "testuser", "password": "Wrong123!@#"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    async def test_login_unknown_user(self, client: AsyncClient):
        """Unknown users fail exactly like wrong passwords."""
        response = await client.post(LOGIN, json={"username": "ghost", "password": "Test123!@#"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post(LOGIN, json={"username": "testuser"})

        assert response.status_code == 400

    async def test_register_then_login(self, client: AsyncClient):
        await client.post(REGISTER, json=_registration())

        response = await client.post(LOGIN, json={"username": "newuser", "password": "Test123!@#"})

        assert response.status_code == 200

    async def test_refresh_token(self, client: AsyncClient, test_user):
        """A refresh token buys a new access token that works."""
        login = await client.post(LOGIN, json={"username": "testuser", "password": "Test123!@#"})
        refresh_token = login.json()["refreshToken"]

        response = await client.post("/api/v1/auth/refresh", json={"refreshToken": refresh_token})

        assert response.status_code == 200
        access_token = response.json()["accessToken"]
        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "testuser"

    async def test_refresh_rejects_access_token(self, client: AsyncClient, user_token):
        response = await client.post("/api/v1/auth/refresh", json={"refreshToken": user_token})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token type"

    async def test_refresh_token_cannot_authenticate(self, client: AsyncClient, test_user):
        login = await client.post(LOGIN, json={"username": "testuser", "password": "Test123!@#"})
        refresh_token = login.json()["refreshToken"]

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {refresh_token}"})

        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
class TestSession:
    """Test the authenticated identity and logout."""

    async def test_me(self, client: AsyncClient, test_user, user_token):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_user.id
        assert data["email"] == "testuser@example.com"

    async def test_me_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    async def test_me_with_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    async def test_status_anonymous(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/status")

        assert response.status_code == 200
        assert response.json() == {"authenticated": False, "user": None}

    async def test_status_authenticated(self, client: AsyncClient, user_token):
        response = await client.get("/api/v1/auth/status", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["user"]["username"] == "testuser"

    async def test_logout_revokes_token(self, client: AsyncClient, user_token):
        """Test logout."""
        headers = {"Authorization": f"Bearer {user_token}"}

        response = await client.post("/api/v1/auth/logout", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"
        me = await client.get("/api/v1/auth/me", headers=headers)
        assert me.status_code == 401
        assert me.json()["detail"] == "Token has been revoked"

    async def test_logout_without_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/logout")

        assert response.status_code == 200

    async def test_token_of_deleted_user(self, client: AsyncClient, db_session, test_user, user_token):
        await db_session.delete(test_user)
        await db_session.commit()

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
class TestHealthAndHeaders:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "test"

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "Strict-Transport-Security" not in response.headers
