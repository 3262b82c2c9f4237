"""Auth module test suite — login, JWT validation, role gate, password change."""

from __future__ import annotations

from jose import jwt

from constructerp.auth.security import hash_password, verify_password
from constructerp.common.constants import UserRole
from constructerp.config import settings
from tests.conftest import (
    TEST_PASSWORD,
    TestSessionFactory,
    _make_auth_headers,
    create_access_token,
)

BASE = "/api/auth"


# ── Password hashing ────────────────────────────────────────────────


def test_password_hash_round_trip():
    hashed = hash_password("secret")
    assert hashed != "secret"
    assert verify_password("secret", hashed)
    assert not verify_password("Secret", hashed)


def test_verify_against_garbage_hash():
    assert not verify_password("secret", "not-a-bcrypt-hash")
    assert not verify_password("secret", None)


# ── Login ───────────────────────────────────────────────────────────


async def test_login_returns_user_and_token(client, foreman):
    resp = await client.post(
        f"{BASE}/login", json={"username": "foreman", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["username"] == "foreman"
    assert data["user"]["role"] == "foreman"
    assert data["user"]["siteId"] == str(foreman.site_id)
    assert "passwordHash" not in data["user"]

    claims = jwt.decode(data["token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == str(foreman.id)
    assert claims["role"] == "foreman"
    assert claims["username"] == "foreman"


async def test_login_wrong_password(client, foreman):
    resp = await client.post(f"{BASE}/login", json={"username": "foreman", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid username or password"}


async def test_login_unknown_user(client):
    resp = await client.post(f"{BASE}/login", json={"username": "ghost", "password": "x"})
    assert resp.status_code == 401


async def test_login_missing_fields(client):
    resp = await client.post(f"{BASE}/login", json={"username": "foreman"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Username and password are required"


async def test_login_inactive_user(client, db, foreman):
    foreman.is_active = False
    db.add(foreman)
    await db.commit()

    resp = await client.post(
        f"{BASE}/login", json={"username": "foreman", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 401


# ── Current user ────────────────────────────────────────────────────


async def test_current_user(client, incharge):
    resp = await client.get(f"{BASE}/user", headers=_make_auth_headers(incharge))
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == str(incharge.id)
    assert resp.json()["data"]["role"] == "site_incharge"


async def test_missing_token(client):
    resp = await client.get(f"{BASE}/user")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "No token provided"}


async def test_expired_token(client, admin):
    token = create_access_token(admin.id, UserRole.admin, expired=True)
    resp = await client.get(f"{BASE}/user", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid token"


async def test_token_with_wrong_secret(client, admin):
    token = jwt.encode({"sub": str(admin.id)}, "another-secret", algorithm="HS256")
    resp = await client.get(f"{BASE}/user", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ── Change password ─────────────────────────────────────────────────


async def test_change_password(client, foreman):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"currentPassword": TEST_PASSWORD, "newPassword": "brick99"},
        headers=_make_auth_headers(foreman),
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Password updated successfully"}

    from constructerp.core.models import User

    async with TestSessionFactory() as session:
        stored = await session.get(User, foreman.id)
    assert verify_password("brick99", stored.password_hash)


async def test_change_password_wrong_current(client, foreman):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"currentPassword": "wrong", "newPassword": "brick99"},
        headers=_make_auth_headers(foreman),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Current password is incorrect"


async def test_change_password_too_short(client, foreman):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"currentPassword": TEST_PASSWORD, "newPassword": "abc"},
        headers=_make_auth_headers(foreman),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Password must be at least 4 characters"
