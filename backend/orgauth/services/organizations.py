"""
Organization CRUD with role-scoped membership and invitations.

Visibility: an organization is only visible to its members. A non-member
gets 404, the same as for a missing organization, so existence is never
leaked. Mutations (update, delete, invite) require the requester to hold
the "admin" access level in that organization, else 401.

Caching is per requester because the membership filter depends on who is
asking:
  organization:{id}:{requester_id}                 detail view
  organizations:{requester_id}:{page}:{limit}      list page
Writes only invalidate the acting requester's detail view; other members'
cached copies expire with the TTL.
"""
import math
import uuid
import logging
from datetime import datetime, timezone
from fastapi import HTTPException
from orgauth.core.cache import cache
from orgauth.core.config import CACHE_TTL_SECONDS
from orgauth.core.database import db
from orgauth.services import email

logger = logging.getLogger(__name__)


def organization_cache_key(org_id: str, requester_id: str) -> str:
    return f"organization:{org_id}:{requester_id}"


def organizations_page_key(requester_id: str, page: int, limit: int) -> str:
    return f"organizations:{requester_id}:{page}:{limit}"


def _member_filter(org_id: str, user_id: str) -> dict:
    return {"id": org_id, "members.user_id": user_id, "is_deleted": False}


def _admin_filter(org_id: str, user_id: str) -> dict:
    # $elemMatch so user id and access level must hold on the same member entry
    return {
        "id": org_id,
        "members": {"$elemMatch": {"user_id": user_id, "access_level": "admin"}},
        "is_deleted": False,
    }


async def _resolve_members(orgs: list) -> list:
    """Replace each member's user_id with the user's id/name/email."""
    user_ids = {m["user_id"] for org in orgs for m in org.get("members", [])}
    users = {}
    if user_ids:
        docs = await db.users.find(
            {"id": {"$in": list(user_ids)}},
            {"_id": 0, "id": 1, "name": 1, "email": 1},
        ).to_list(len(user_ids))
        users = {u["id"]: u for u in docs}

    result = []
    for org in orgs:
        members = [
            {
                "user": users.get(m["user_id"]),
                "access_level": m["access_level"],
                "joined_at": m["joined_at"],
            }
            for m in org.get("members", [])
        ]
        result.append({
            "id": org["id"],
            "name": org["name"],
            "description": org.get("description", ""),
            "members": members,
            "created_at": org["created_at"],
            "updated_at": org["updated_at"],
        })
    return result


async def create_organization(name: str, description: str, creator_id: str) -> dict:
    now = datetime.now(timezone.utc).isoformat()
    org_id = str(uuid.uuid4())
    await db.organizations.insert_one({
        "id": org_id,
        "name": name,
        "description": description or "",
        "members": [
            {"user_id": creator_id, "access_level": "admin", "joined_at": now},
        ],
        "is_deleted": False,
        "created_at": now,
        "updated_at": now,
    })
    logger.info(f"Organization created: {org_id} by {creator_id}")
    return {"organization_id": org_id, "message": "Organization created successfully"}


async def get_organization(org_id: str, requester_id: str) -> dict:
    key = organization_cache_key(org_id, requester_id)
    cached = await cache.get_json(key)
    if cached is not None:
        return cached

    org = await db.organizations.find_one(_member_filter(org_id, requester_id), {"_id": 0})
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")

    result = (await _resolve_members([org]))[0]
    await cache.set_json(key, result, CACHE_TTL_SECONDS)
    return result


async def list_organizations(requester_id: str, page: int = 1, limit: int = 10) -> dict:
    key = organizations_page_key(requester_id, page, limit)
    cached = await cache.get_json(key)
    if cached is not None:
        return cached

    query = {"members.user_id": requester_id, "is_deleted": False}
    skip = (page - 1) * limit
    orgs = await db.organizations.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit).to_list(limit)
    total = await db.organizations.count_documents(query)

    result = {
        "organizations": await _resolve_members(orgs),
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit),
        },
    }
    await cache.set_json(key, result, CACHE_TTL_SECONDS)
    return result


async def update_organization(org_id: str, fields: dict, requester_id: str) -> dict:
    org = await db.organizations.find_one(_admin_filter(org_id, requester_id), {"_id": 0, "id": 1})
    if not org:
        raise HTTPException(status_code=401, detail="Not authorized to update this organization")

    updates = {k: v for k, v in fields.items() if v is not None}
    updates["updated_at"] = datetime.now(timezone.utc).isoformat()
    await db.organizations.update_one({"id": org_id}, {"$set": updates})

    await cache.delete(organization_cache_key(org_id, requester_id))
    logger.info(f"Organization updated: {org_id} by {requester_id}")
    updated = await db.organizations.find_one({"id": org_id}, {"_id": 0})
    return (await _resolve_members([updated]))[0]


async def remove_organization(org_id: str, requester_id: str) -> dict:
    org = await db.organizations.find_one(_admin_filter(org_id, requester_id), {"_id": 0, "id": 1})
    if not org:
        raise HTTPException(status_code=401, detail="Not authorized to delete this organization")

    await db.organizations.update_one(
        {"id": org_id},
        {"$set": {"is_deleted": True, "updated_at": datetime.now(timezone.utc).isoformat()}},
    )

    await cache.delete(organization_cache_key(org_id, requester_id))
    logger.info(f"Organization deleted: {org_id} by {requester_id}")
    return {"message": "Organization deleted successfully"}


async def invite_user(org_id: str, invitee_email: str, inviter_id: str) -> dict:
    org = await db.organizations.find_one(_admin_filter(org_id, inviter_id), {"_id": 0})
    if not org:
        raise HTTPException(status_code=401, detail="Not authorized to invite users")

    invitee = await db.users.find_one(
        {"email": invitee_email.strip().lower(), "is_active": True},
        {"_id": 0, "id": 1, "email": 1},
    )
    if not invitee:
        raise HTTPException(status_code=404, detail="User not found")

    if any(m["user_id"] == invitee["id"] for m in org.get("members", [])):
        raise HTTPException(status_code=400, detail="User is already a member")

    now = datetime.now(timezone.utc).isoformat()
    await db.organizations.update_one(
        {"id": org_id},
        {
            "$push": {"members": {"user_id": invitee["id"], "access_level": "member", "joined_at": now}},
            "$set": {"updated_at": now},
        },
    )
    logger.info(f"User {invitee['id']} invited to organization {org_id} by {inviter_id}")

    inviter = await db.users.find_one({"id": inviter_id}, {"_id": 0, "name": 1, "email": 1})
    inviter_name = (inviter.get("name") or inviter["email"]) if inviter else "An administrator"
    email.send_organization_invite(invitee["email"], org["name"], inviter_name, org_id)

    await cache.delete(organization_cache_key(org_id, inviter_id))
    return {"message": "User invited successfully"}
