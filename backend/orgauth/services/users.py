"""
User account operations: creation, cached profile reads, profile and
preference updates, password change/reset, email verification and soft
deactivation.

Reads go through the Redis cache (`user:{id}` and `users:all`, 5 minute
TTL); every write that changes a cached projection deletes the affected
keys afterwards.
"""
import uuid
import logging
from datetime import datetime, timezone, timedelta
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError
from orgauth.core.cache import cache
from orgauth.core.config import CACHE_TTL_SECONDS, PASSWORD_RESET_EXPIRE_HOURS
from orgauth.core.database import db
from orgauth.core.security import hash_password, verify_password
from orgauth.services import email

logger = logging.getLogger(__name__)

USERS_LIST_KEY = "users:all"

# Fields stripped from every user document the API returns.
PUBLIC_PROJECTION = {
    "_id": 0,
    "password": 0,
    "refresh_tokens": 0,
    "email_verification_token": 0,
    "password_reset_token": 0,
    "password_reset_expires": 0,
}


def user_cache_key(user_id: str) -> str:
    return f"user:{user_id}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def public_user(user_doc: dict) -> dict:
    return {k: v for k, v in user_doc.items() if k not in PUBLIC_PROJECTION}


async def find_by_email(email_address: str, projection: dict = None):
    return await db.users.find_one({"email": email_address.strip().lower()}, projection or {"_id": 0})


async def insert_user(name: str, email_address: str, password: str) -> dict:
    """Persist a new user with a hashed password and a fresh verification token.

    Raises 409 if the (case-insensitive) email is already registered.
    """
    normalized = email_address.strip().lower()
    if await db.users.find_one({"email": normalized}, {"_id": 1}):
        raise HTTPException(status_code=409, detail="Email already exists")

    now = _now()
    user_doc = {
        "id": str(uuid.uuid4()),
        "name": name,
        "email": normalized,
        "password": hash_password(password),
        "refresh_tokens": [],
        "is_email_verified": False,
        "email_verification_token": str(uuid.uuid4()),
        "password_reset_token": None,
        "password_reset_expires": None,
        "role": "user",
        "is_active": True,
        "last_login": None,
        "avatar": None,
        "preferences": {},
        "created_at": now,
        "updated_at": now,
    }
    try:
        await db.users.insert_one(user_doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Email already exists")
    user_doc.pop("_id", None)
    logger.info(f"User created: {user_doc['id']} ({normalized})")
    return user_doc


async def create_user(name: str, email_address: str, password: str) -> dict:
    user_doc = await insert_user(name, email_address, password)
    email.send_welcome_email(user_doc["email"], name)
    await cache.delete(USERS_LIST_KEY)
    return public_user(user_doc)


async def get_user(user_id: str) -> dict:
    key = user_cache_key(user_id)
    cached = await cache.get_json(key)
    if cached is not None:
        return cached

    user = await db.users.find_one({"id": user_id}, PUBLIC_PROJECTION)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    await cache.set_json(key, user, CACHE_TTL_SECONDS)
    return user


async def list_users() -> list:
    cached = await cache.get_json(USERS_LIST_KEY)
    if cached is not None:
        return cached

    users = await db.users.find({}, PUBLIC_PROJECTION).sort("created_at", 1).to_list(None)
    await cache.set_json(USERS_LIST_KEY, users, CACHE_TTL_SECONDS)
    return users


async def update_user(user_id: str, fields: dict) -> dict:
    updates = {k: v for k, v in fields.items() if v is not None}
    updates["updated_at"] = _now()
    result = await db.users.update_one({"id": user_id}, {"$set": updates})
    if not result.matched_count:
        raise HTTPException(status_code=404, detail="User not found")

    await cache.delete(user_cache_key(user_id), USERS_LIST_KEY)
    return await db.users.find_one({"id": user_id}, PUBLIC_PROJECTION)


async def update_password(user_id: str, current_password: str, new_password: str) -> dict:
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "password": 1})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not verify_password(current_password, user["password"]):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    # Clearing refresh_tokens signs out every other session.
    await db.users.update_one(
        {"id": user_id},
        {"$set": {
            "password": hash_password(new_password),
            "refresh_tokens": [],
            "updated_at": _now(),
        }},
    )
    await cache.delete(user_cache_key(user_id))
    logger.info(f"Password changed for user {user_id}")
    return {"message": "Password updated successfully"}


async def request_password_reset(email_address: str) -> dict:
    user = await find_by_email(email_address, {"_id": 0, "id": 1, "name": 1, "email": 1})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    token = str(uuid.uuid4())
    expires = datetime.now(timezone.utc) + timedelta(hours=PASSWORD_RESET_EXPIRE_HOURS)
    await db.users.update_one(
        {"id": user["id"]},
        {"$set": {
            "password_reset_token": token,
            "password_reset_expires": expires.isoformat(),
        }},
    )
    email.send_password_reset_email(user["email"], user.get("name", ""), token, PASSWORD_RESET_EXPIRE_HOURS)
    return {"message": "Password reset email sent"}


async def reset_password(token: str, new_password: str) -> dict:
    user = await db.users.find_one(
        {"password_reset_token": token},
        {"_id": 0, "id": 1, "password_reset_expires": 1},
    )
    if not user or not user.get("password_reset_expires"):
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    if _now() >= user["password_reset_expires"]:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    await db.users.update_one(
        {"id": user["id"]},
        {"$set": {
            "password": hash_password(new_password),
            "password_reset_token": None,
            "password_reset_expires": None,
            "refresh_tokens": [],
            "updated_at": _now(),
        }},
    )
    await cache.delete(user_cache_key(user["id"]))
    logger.info(f"Password reset for user {user['id']}")
    return {"message": "Password reset successfully"}


async def verify_email(token: str) -> dict:
    user = await db.users.find_one({"email_verification_token": token}, {"_id": 0, "id": 1})
    if not user:
        raise HTTPException(status_code=400, detail="Invalid verification token")

    await db.users.update_one(
        {"id": user["id"]},
        {"$set": {
            "is_email_verified": True,
            "email_verification_token": None,
            "updated_at": _now(),
        }},
    )
    await cache.delete(user_cache_key(user["id"]), USERS_LIST_KEY)
    return {"message": "Email verified successfully"}


async def deactivate_user(user_id: str) -> dict:
    result = await db.users.update_one(
        {"id": user_id},
        {"$set": {"is_active": False, "updated_at": _now()}},
    )
    if not result.matched_count:
        raise HTTPException(status_code=404, detail="User not found")

    await cache.delete(user_cache_key(user_id), USERS_LIST_KEY)
    logger.info(f"User deactivated: {user_id}")
    return {"message": "User deactivated successfully"}


async def update_preferences(user_id: str, preferences: dict) -> dict:
    result = await db.users.update_one(
        {"id": user_id},
        {"$set": {"preferences": preferences, "updated_at": _now()}},
    )
    if not result.matched_count:
        raise HTTPException(status_code=404, detail="User not found")

    await cache.delete(user_cache_key(user_id))
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "preferences": 1})
    return user.get("preferences", {})
