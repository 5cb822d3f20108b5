from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends
from orgauth.core.security import get_current_user, get_admin_user
from orgauth.models.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    PasswordUpdate,
    PasswordResetRequest,
    PasswordReset,
    MessageResponse,
)
from orgauth.services import users as users_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
async def create_user(data: UserCreate):
    return await users_service.create_user(data.name, data.email, data.password)


@router.get("", response_model=List[UserResponse])
async def list_users(admin=Depends(get_admin_user)):
    return await users_service.list_users()


@router.get("/profile", response_model=UserResponse)
async def get_profile(user=Depends(get_current_user)):
    return await users_service.get_user(user["id"])


@router.put("/profile", response_model=UserResponse)
async def update_profile(data: UserUpdate, user=Depends(get_current_user)):
    return await users_service.update_user(user["id"], data.model_dump(exclude_unset=True))


@router.delete("/profile", response_model=MessageResponse)
async def deactivate_profile(user=Depends(get_current_user)):
    return await users_service.deactivate_user(user["id"])


@router.patch("/password", response_model=MessageResponse)
async def update_password(data: PasswordUpdate, user=Depends(get_current_user)):
    return await users_service.update_password(user["id"], data.current_password, data.new_password)


@router.post("/password-reset-request", response_model=MessageResponse)
async def request_password_reset(data: PasswordResetRequest):
    return await users_service.request_password_reset(data.email)


@router.post("/password-reset", response_model=MessageResponse)
async def reset_password(data: PasswordReset):
    return await users_service.reset_password(data.token, data.new_password)


@router.post("/verify-email/{token}", response_model=MessageResponse)
async def verify_email(token: str):
    return await users_service.verify_email(token)


@router.put("/preferences", response_model=Dict[str, Any])
async def update_preferences(preferences: Dict[str, Any] = Body(...), user=Depends(get_current_user)):
    return await users_service.update_preferences(user["id"], preferences)
