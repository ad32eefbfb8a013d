import uuid

import pytest

from marefa.models.session import UserSession
from marefa.models.user import User


pytestmark = pytest.mark.asyncio


async def register_user(client, username: str, email: str, password: str):
    resp = await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    return resp


async def login_user(client, email: str, password: str):
    return await client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
    )


async def test_register_and_login_flow(client):
    username = f"user_{uuid.uuid4().hex[:6]}"
    email = f"{username}@example.com"
    password = "StrongPass!23"

    resp = await register_user(client, username, email, password)
    body = resp.json()
    assert resp.status_code == 201
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["username"] == username
    assert user["role"] == "user"
    assert user["subscriptionTier"] == "free"
    assert user["messageCount"] == 0
    assert user["remainingMessages"] == 50
    assert "passwordHash" not in user and "password_hash" not in user
    assert "accessToken" in resp.cookies

    # Successful login
    client.cookies.clear()
    login_resp = await login_user(client, email, password)
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert login_body["success"] is True
    assert "accessToken" in login_body["data"]
    assert "accessToken" in login_resp.cookies

    # Invalid password
    bad_login = await login_user(client, email, "wrong-password")
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"

    # Unknown email gives the same answer
    unknown = await login_user(client, "nobody@example.com", password)
    assert unknown.status_code == 401
    assert unknown.json()["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_register_duplicate_email_creates_nothing(client):
    password = "StrongPass!23"
    first = await register_user(client, "first_user", "taken@example.com", password)
    assert first.status_code == 201

    dup = await register_user(client, "second_user", "Taken@Example.com", password)
    assert dup.status_code == 400
    assert dup.json()["detail"]["code"] == "EMAIL_EXISTS"
    assert await User.filter(username="second_user").count() == 0
    assert await User.all().count() == 1


async def test_register_duplicate_username(client):
    password = "StrongPass!23"
    await register_user(client, "samename", "one@example.com", password)
    dup = await register_user(client, "samename", "two@example.com", password)
    assert dup.status_code == 400
    assert dup.json()["detail"]["code"] == "USERNAME_EXISTS"


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "validname", "email": "not-an-email", "password": "StrongPass!23"},
        {"username": "ab", "email": "short@example.com", "password": "StrongPass!23"},
        {"username": "validname", "email": "short@example.com", "password": "123"},
    ],
)
async def test_register_rejects_invalid_payload(client, payload):
    resp = await client.post("/api/auth/register", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert await User.all().count() == 0


async def test_me_is_stable_across_calls(client):
    await register_user(client, "stable_user", "stable@example.com", "StrongPass!23")
    login_resp = await login_user(client, "stable@example.com", "StrongPass!23")
    headers = {"Authorization": f"Bearer {login_resp.json()['data']['accessToken']}"}
    client.cookies.clear()

    first = await client.get("/api/auth/me", headers=headers)
    second = await client.get("/api/auth/me", headers=headers)
    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["data"]["email"] == "stable@example.com"


async def test_me_accepts_session_cookie(client):
    await register_user(client, "cookie_user", "cookie@example.com", "StrongPass!23")
    me_resp = await client.get("/api/auth/me")
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["username"] == "cookie_user"


async def test_me_requires_auth(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_REQUIRED"

    bad = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "AUTH_INVALID_TOKEN"


async def test_logout_invalidates_session(client):
    await register_user(client, "leaving_user", "leaving@example.com", "StrongPass!23")
    login_resp = await login_user(client, "leaving@example.com", "StrongPass!23")
    token = login_resp.json()["data"]["accessToken"]
    headers = {"Authorization": f"Bearer {token}"}
    client.cookies.clear()

    sessions_before = await UserSession.all().count()
    logout_resp = await client.post("/api/auth/logout", headers=headers)
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True
    assert await UserSession.all().count() == sessions_before - 1

    # Token is still unexpired, but its session is gone
    after = await client.get("/api/auth/me", headers=headers)
    assert after.status_code == 401


async def test_logout_without_session_succeeds(client):
    resp = await client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "Logged out successfully"


async def test_change_password(client):
    email = "changer@example.com"
    password = "UserInit#123"
    new_password = "UserNew#456"
    await register_user(client, "changer", email, password)
    login_resp = await login_user(client, email, password)
    headers = {"Authorization": f"Bearer {login_resp.json()['data']['accessToken']}"}
    client.cookies.clear()

    wrong = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": "nope-nope", "newPassword": new_password},
        headers=headers,
    )
    assert wrong.status_code == 401

    change_resp = await client.post(
        "/api/auth/change-password",
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
