import hashlib
import uuid
from datetime import datetime, timezone, timedelta
import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from orgauth.core.config import (
    JWT_SECRET,
    JWT_REFRESH_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from orgauth.core.database import db

security = HTTPBearer()


# ── Passwords ──

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# ── Refresh token digests ──
# Refresh tokens are signed, high-entropy JWTs, so a sha256 digest is enough
# to keep them out of the database and lets refresh match with one query.

def refresh_token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ── JWT ──

def _encode(user_id: str, email: str, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def create_access_token(user_id: str, email: str) -> str:
    return _encode(user_id, email, JWT_SECRET, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: str, email: str) -> str:
    return _encode(user_id, email, JWT_REFRESH_SECRET, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def create_token_pair(user_id: str, email: str) -> dict:
    """Issue an access/refresh pair for the user. Each token has its own secret and lifetime."""
    return {
        "access_token": create_access_token(user_id, email),
        "refresh_token": create_refresh_token(user_id, email),
    }


def decode_access_token(token: str) -> dict:
    """Verify an access token. Raises jwt.InvalidTokenError on any failure."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["sub", "exp"]})


def decode_refresh_token(token: str) -> dict:
    """Verify a refresh token. Raises jwt.InvalidTokenError on any failure."""
    return jwt.decode(token, JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["sub", "exp"]})


# ── Dependencies ──

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = await db.users.find_one({"id": payload["sub"]}, {"_id": 0})
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="User is deactivated")
    return user


async def get_admin_user(user=Depends(get_current_user)):
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
