"""
Signup, signin and refresh-token rotation.

Signin and refresh both issue a fresh access/refresh pair and append the
refresh token's sha256 digest to the user's `refresh_tokens`. A refresh token
is accepted only while its digest is still stored, so clearing the list (password
change or reset) revokes every outstanding refresh token.
"""
import logging
from datetime import datetime, timezone
import jwt
from fastapi import HTTPException
from orgauth.core.cache import cache
from orgauth.core.database import db
from orgauth.core.security import (
    verify_password,
    create_token_pair,
    decode_refresh_token,
    refresh_token_digest,
)
from orgauth.services import email
from orgauth.services.users import insert_user, user_cache_key

logger = logging.getLogger(__name__)


async def _store_refresh_token(user_id: str, refresh_token: str, **extra_fields):
    # TODO: cap refresh_tokens to the most recent N digests; the list only shrinks on password change/reset.
    update = {"$push": {"refresh_tokens": refresh_token_digest(refresh_token)}}
    if extra_fields:
        update["$set"] = extra_fields
    await db.users.update_one({"id": user_id}, update)


async def signup(name: str, email_address: str, password: str) -> dict:
    user_doc = await insert_user(name, email_address, password)
    email.send_verification_email(user_doc["email"], name, user_doc["email_verification_token"])
    return {"message": "User created successfully"}


async def signin(email_address: str, password: str) -> dict:
    user = await db.users.find_one({"email": email_address.strip().lower()}, {"_id": 0})
    if not user or not verify_password(password, user["password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    tokens = create_token_pair(user["id"], user["email"])
    await _store_refresh_token(
        user["id"],
        tokens["refresh_token"],
        last_login=datetime.now(timezone.utc).isoformat(),
    )
    await cache.delete(user_cache_key(user["id"]))
    logger.info(f"User signed in: {user['id']}")
    return {"message": "Logged in successfully", **tokens}


async def refresh_token(token: str) -> dict:
    try:
        payload = decode_refresh_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = await db.users.find_one(
        {"id": payload["sub"], "refresh_tokens": refresh_token_digest(token)},
        {"_id": 0, "id": 1, "email": 1, "is_active": 1},
    )
    if not user or not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    tokens = create_token_pair(user["id"], user["email"])
    await _store_refresh_token(user["id"], tokens["refresh_token"])
    return {"message": "Token refreshed successfully", **tokens}
