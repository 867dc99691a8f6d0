import pytest
from sqlalchemy.exc import OperationalError

from src.infrastructure.dependency_injection.auth_dependencies import get_token_issuer

JOHN_DOE = {
    "first_name": "John",
    "last_name": "Doe",
    "role": 3,
    "email": "john@gmail.com",
    "password": "Password123!",
    "latitude": 40.7128,
    "longitude": -74.006,
    "date_of_birth": "1990-01-01",
    "timezone": "America/New_York",
}


async def _register(client, payload=None):
    return await client.post("/api/auth/register", json=payload or JOHN_DOE)


@pytest.mark.asyncio
async def test_register_returns_token_and_user(async_client):
    response = await _register(async_client)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "Registration successful"
    assert body["data"]["token"]
    assert body["data"]["token_type"] == "Bearer"

    user = body["data"]["user"]
    assert user["email"] == "john@gmail.com"
    assert user["full_name"] == "John Doe"
    assert user["role_name"] == "Agent"
    assert user["location"] == {"latitude": 40.7128, "longitude": -74.006}
    assert user["date_of_birth"] == "1990-01-01"
    assert "password" not in user


@pytest.mark.asyncio
async def test_register_with_equivalent_email_is_rejected(async_client):
    await _register(async_client)
    response = await _register(async_client, {**JOHN_DOE, "email": "J.O.H.N+promo@Gmail.com"})

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"
    assert body["errors"] == {"email": ["The email has already been taken."]}


@pytest.mark.asyncio
async def test_register_reports_every_invalid_field(async_client):
    response = await _register(async_client, {"email": "bad", "role": 7})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["email"] == ["The email must be a valid email address."]
    assert errors["first_name"] == ["The first name field is required."]
    assert "role" in errors and "timezone" in errors


@pytest.mark.asyncio
async def test_login_with_wrong_password_does_not_reveal_account(async_client):
    await _register(async_client)

    wrong_password = await async_client.post(
        "/api/auth/login", json={"email": "john@gmail.com", "password": "Nope1234!"}
    )
    unknown_email = await async_client.post(
        "/api/auth/login", json={"email": "ghost@gmail.com", "password": "Nope1234!"}
    )

    assert wrong_password.status_code == unknown_email.status_code == 422
    assert wrong_password.json() == unknown_email.json() == {
        "status": "error",
        "message": "Validation failed",
        "errors": {"email": ["The provided credentials are incorrect."]},
    }


@pytest.mark.asyncio
async def test_login_requires_fields(async_client):
    response = await async_client.post("/api/auth/login", json={})

    assert response.status_code == 422
    assert response.json()["errors"] == {
        "email": ["The email field is required."],
        "password": ["The password field is required."],
    }


@pytest.mark.asyncio
async def test_malformed_json_is_a_validation_error(async_client):
    response = await async_client.post(
        "/api/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert response.json()["status"] == "error"
    assert "general" in response.json()["errors"]


@pytest.mark.asyncio
async def test_session_lifecycle(async_client):
    await _register(async_client)
    login = await async_client.post(
        "/api/auth/login", json={"email": "John@Gmail.com", "password": "Password123!"}
    )
    assert login.status_code == 200
    assert login.json()["message"] == "Login successful"
    token = login.json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = await async_client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["message"] == "User data retrieved successfully"
    assert me.json()["data"]["email"] == "john@gmail.com"

    refresh = await async_client.post("/api/auth/refresh", headers=headers)
    assert refresh.status_code == 200
    assert refresh.json()["message"] == "Token refreshed successfully"
    new_headers = {"Authorization": f"Bearer {refresh.json()['data']['token']}"}

    stale = await async_client.get("/api/auth/me", headers=headers)
    assert stale.status_code == 401

    logout = await async_client.post("/api/auth/logout", headers=new_headers)
    assert logout.status_code == 200
    assert logout.json() == {"status": "success", "message": "Logout successful"}

    again = await async_client.post("/api/auth/logout", headers=new_headers)
    assert again.status_code == 401


@pytest.mark.asyncio
async def test_login_revokes_token_from_registration(async_client):
    registered = await _register(async_client)
    first_token = registered.json()["data"]["token"]

    await async_client.post("/api/auth/login", json={"email": "john@gmail.com", "password": "Password123!"})

    response = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {first_token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Bearer nope"}, {"Authorization": "Basic dXNlcjpwYXNz"}],
)
async def test_me_requires_valid_bearer_token(async_client, headers):
    response = await async_client.get("/api/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {"status": "error", "message": "Unauthenticated."}


@pytest.mark.asyncio
async def test_register_rejects_gmail_address_that_folds_to_nothing(async_client):
    response = await _register(async_client, {**JOHN_DOE, "email": "+tag@gmail.com"})

    assert response.status_code == 422
    assert response.json()["errors"] == {"email": ["The email must be a valid email address."]}


@pytest.mark.asyncio
async def test_token_store_timeout_is_retryable(app, async_client):
    class LockedTokenStore:
        async def authenticate(self, token):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

    app.dependency_overrides[get_token_issuer] = lambda: LockedTokenStore()

    response = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer abc"})

    assert response.status_code == 503
    assert response.json()["status"] == "error"
    assert response.headers["retry-after"] == "1"
    assert response.headers["x-content-type-options"] == "nosniff"
