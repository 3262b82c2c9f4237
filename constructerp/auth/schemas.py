"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from constructerp.common.constants import UserRole


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(_CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(_CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# ── Responses ───────────────────────────────────────────────────────

class UserResponse(_CamelModel):
    """Public view of an account; never carries the password hash."""

    id: uuid.UUID
    username: str
    role: UserRole
    name: str
    father_name: Optional[str] = None
    email: Optional[str] = None
    site_id: Optional[uuid.UUID] = None
    is_active: bool = True


class LoginResponse(_CamelModel):
    user: UserResponse
    token: str
