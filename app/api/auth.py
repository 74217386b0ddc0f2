"""
app/api/auth.py

Purpose: Authentication endpoints

- POST /auth/register, /auth/login
- GET /auth/me, POST /auth/logout, POST /auth/change-password (bearer token)
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user
from app.schemas.auth import RegisterRequest, LoginRequest, ChangePasswordRequest
from app.schemas.response import MessageResponse
from app.services import auth_service

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=201)
async def register(payload: RegisterRequest):
    return await auth_service.register(payload)


@router.post("/login")
async def login(payload: LoginRequest):
    return await auth_service.login(payload.email, payload.password)


@router.get("/me")
async def me(user: Dict[str, Any] = Depends(get_current_user)):
    return await auth_service.get_profile(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(user: Dict[str, Any] = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    return MessageResponse(message="Logged out successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    user: Dict[str, Any] = Depends(get_current_user),
):
    await auth_service.change_password(user, payload.old_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")
