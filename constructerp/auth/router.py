"""Auth router — login, current user, password change."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.auth import service
from constructerp.auth.dependencies import get_current_user
from constructerp.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    UserResponse,
)
from constructerp.common.audit import create_audit_entry
from constructerp.common.responses import ApiResponse, MessageResponse
from constructerp.core.models import User
from constructerp.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user, token = await service.login(db, body.username, body.password)

    ip = request.client.host if request.client else None
    await create_audit_entry(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=ip,
    )

    return ApiResponse(
        data=LoginResponse(user=UserResponse.model_validate(user), token=token),
    )


# ── GET /user ───────────────────────────────────────────────────────

@router.get("/user", response_model=ApiResponse[UserResponse])
async def current_user(user: User = Depends(get_current_user)):
    return ApiResponse(data=UserResponse.model_validate(user))


# ── POST /change-password ───────────────────────────────────────────

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.change_password(db, user, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")
