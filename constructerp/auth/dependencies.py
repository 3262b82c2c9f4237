"""Auth dependencies — JWT validation, role enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.auth.security import decode_access_token
from constructerp.common.constants import UserRole
from constructerp.common.exceptions import UnauthorizedException
from constructerp.core.models import User
from constructerp.database import get_db


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("No token provided")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the JWT and return the active ``User`` it names."""
    token = _extract_bearer(request)

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise UnauthorizedException("Invalid token")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedException("User not found")

    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that admits only *allowed_roles*.

    Roles are flat: an admin is not implicitly a foreman. A mismatch is a
    401 ``Unauthorized``, same as a missing token.
    """

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed_roles:
            raise UnauthorizedException()
        return user

    return _check
