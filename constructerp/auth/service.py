"""Auth service — credential check, token issue, password change."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.auth.security import (
    create_access_token,
    hash_password,
    verify_password,
)
from constructerp.common.constants import MIN_PASSWORD_LENGTH
from constructerp.common.exceptions import UnauthorizedException, ValidationException
from constructerp.core.models import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def login(db: AsyncSession, username: str | None, password: str | None) -> tuple[User, str]:
    """Return ``(user, token)`` for valid credentials.

    Raises:
        ValidationException: username or password missing.
        UnauthorizedException: unknown user, inactive account or wrong password.
    """
    if not username or not password:
        raise ValidationException("Username and password are required")

    user = await get_user_by_username(db, username)
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", username)
        raise UnauthorizedException(INVALID_CREDENTIALS)

    token = create_access_token(user.id, user.username, user.role)
    logger.info("User %s logged in (%s)", user.username, user.role.value)
    return user, token


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str | None,
    new_password: str | None,
) -> None:
    if not current_password or not new_password:
        raise ValidationException("Missing required fields")
    if not verify_password(current_password, user.password_hash):
        raise ValidationException("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    user.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("Password changed for %s", user.username)
