import pytest
from httpx import ASGITransport, AsyncClient

from authcore.main import app
from authcore.models import TokenPurpose


pytestmark = pytest.mark.asyncio


async def register_user(client, email: str, password: str, first_name: str = "Test", last_name: str = "User"):
    return await client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "firstName": first_name, "lastName": last_name},
    )


async def login_user(client, email: str, password: str):
    return await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


async def test_register_and_login_flow(client):
    email = "route.user@example.com"
    password = "StrongPass!23"

    resp = await register_user(client, email, password)
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["user"]["email"] == email
    assert body["data"]["user"]["isEmailVerified"] is False
    assert body["data"]["user"]["roles"] == ["user"]
    assert "passwordHash" not in body["data"]["user"]
    assert body["data"]["accessToken"]

    # Duplicate email should fail
    dup_resp = await register_user(client, email.upper(), password)
    assert dup_resp.status_code == 409
    assert dup_resp.json()["error"]["code"] == "EMAIL_EXISTS"

    # Successful login
    login_resp = await login_user(client, email, password)
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert login_body["success"] is True
    assert "accessToken" in login_body["data"]
    assert "accessToken" in login_resp.cookies

    # Invalid password
    bad_login = await login_user(client, email, "wrong")
    assert bad_login.status_code == 401
    assert bad_login.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"

    # Unknown account looks identical
    unknown = await login_user(client, "nobody@example.com", "wrong")
    assert unknown.status_code == 401
    assert unknown.json() == bad_login.json()


async def test_register_validation_error(client):
    resp = await register_user(client, "not-an-email", "StrongPass!23")
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["message"]


async def test_me_change_password_and_logout(client):
    email = "me@example.com"
    password = "UserInit#123"
    new_password = "UserNew#456"
    await register_user(client, email, password)

    login_resp = await login_user(client, email, password)
    token = login_resp.json()["data"]["accessToken"]
    headers = {"Authorization": f"Bearer {token}"}

    me_resp = await client.get("/api/v1/auth/me", headers=headers)
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["email"] == email

    change_resp = await client.post(
        "/api/v1/auth/change-password",
        json={"currentPassword": password, "newPassword": new_password},
        headers=headers,
    )
    assert change_resp.status_code == 200
    assert change_resp.json()["data"]["ok"] is True

    # Old password should fail, new password succeeds
    old_login = await login_user(client, email, password)
    assert old_login.status_code == 401
    new_login = await login_user(client, email, new_password)
    assert new_login.status_code == 200

    logout_resp = await client.post("/api/v1/auth/logout", headers=headers)
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True


async def test_verify_email_route(client, delivery):
    await register_user(client, "verify.route@example.com", "StrongPass!23")
    token = delivery.last_token(TokenPurpose.VERIFY_EMAIL)

    resp = await client.post("/api/v1/auth/verify-email", json={"token": token})
    assert resp.status_code == 200
    assert resp.json()["data"]["ok"] is True

    again = await client.post("/api/v1/auth/verify-email", json={"token": token})
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "INVALID_TOKEN"

    login_resp = await login_user(client, "verify.route@example.com", "StrongPass!23")
    assert login_resp.json()["data"]["user"]["isEmailVerified"] is True


async def test_forgot_and_reset_password_flow(client, delivery):
    email = "reset.route@example.com"
    await register_user(client, email, "ResetMe#12")

    known = await client.post("/api/v1/auth/forgot-password", json={"email": email})
    unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()

    token = delivery.last_token(TokenPurpose.RESET_PASSWORD, email)

    weak = await client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "short"})
    assert weak.status_code == 422

    reset_resp = await client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "ResetDone#34"})
    assert reset_resp.status_code == 200
    assert reset_resp.json()["data"]["ok"] is True

    replay = await client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "ResetAgain#56"})
    assert replay.status_code == 400
    assert replay.json()["error"]["code"] == "INVALID_TOKEN"

    assert (await login_user(client, email, "ResetMe#12")).status_code == 401
    assert (await login_user(client, email, "ResetDone#34")).status_code == 200


async def test_auth_requires_token(client):
    unauth_me = await client.get("/api/v1/auth/me")
    assert unauth_me.status_code == 401
    assert unauth_me.json()["detail"] == "AUTH_REQUIRED"

    bad_token = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert bad_token.status_code == 401
    assert bad_token.json()["error"]["code"] == "AUTH_INVALID_TOKEN"

    unauth_change = await client.post(
        "/api/v1/auth/change-password", json={"currentPassword": "x", "newPassword": "Test1234"}
    )
    assert unauth_change.status_code == 401


async def test_cookie_session_is_accepted(client):
    await register_user(client, "cookie@example.com", "CookiePass#1")
    await login_user(client, "cookie@example.com", "CookiePass#1")
    assert "accessToken" in client.cookies

    # No Authorization header: the cookie set by login is used
    me_resp = await client.get("/api/v1/auth/me")
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["email"] == "cookie@example.com"


async def test_healthz(client):
    resp = await client.get("/healthz")
    assert resp.json() == {"ok": True}


async def test_internal_failure_returns_opaque_error(auth_flow, monkeypatch):
    async def broken_find_by_email(email):
        raise RuntimeError("connection to db-primary:5432 refused")

    monkeypatch.setattr(auth_flow.store, "find_by_email", broken_find_by_email)
    app.state.auth_flow = auth_flow
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as failing_client:
            resp = await login_user(failing_client, "someone@example.com", "Whatever#1")
    finally:
        app.state.auth_flow = None

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert body["error"]["message"]
    assert "db-primary" not in resp.text
    assert "RuntimeError" not in resp.text
