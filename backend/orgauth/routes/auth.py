from fastapi import APIRouter
from orgauth.models.auth import RefreshTokenRequest, TokenResponse
from orgauth.models.user import UserCreate, UserLogin, MessageResponse
from orgauth.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=MessageResponse)
async def signup(data: UserCreate):
    return await auth_service.signup(data.name, data.email, data.password)


@router.post("/signin", response_model=TokenResponse)
async def signin(data: UserLogin):
    return await auth_service.signin(data.email, data.password)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(data: RefreshTokenRequest):
    return await auth_service.refresh_token(data.refresh_token)
