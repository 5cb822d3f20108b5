from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, Dict, Any


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    avatar: Optional[str] = None


class PasswordUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=8)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    new_password: str = Field(alias="newPassword", min_length=8)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    is_email_verified: bool = False
    is_active: bool = True
    avatar: Optional[str] = None
    preferences: Dict[str, Any] = {}
    last_login: Optional[str] = None
    created_at: str
    updated_at: str


class MessageResponse(BaseModel):
    message: str
