from fastapi import APIRouter, Depends, Query
from orgauth.core.security import get_current_user
from orgauth.models.organization import (
    OrganizationCreate,
    OrganizationUpdate,
    OrganizationResponse,
    OrganizationCreated,
    OrganizationListResponse,
    OrgInvite,
)
from orgauth.models.user import MessageResponse
from orgauth.services import organizations as org_service

router = APIRouter(prefix="/organization", tags=["organizations"])


@router.post("", response_model=OrganizationCreated)
async def create_organization(data: OrganizationCreate, user=Depends(get_current_user)):
    return await org_service.create_organization(data.name, data.description, user["id"])


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user=Depends(get_current_user),
):
    return await org_service.list_organizations(user["id"], page, limit)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(org_id: str, user=Depends(get_current_user)):
    return await org_service.get_organization(org_id, user["id"])


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(org_id: str, data: OrganizationUpdate, user=Depends(get_current_user)):
    return await org_service.update_organization(org_id, data.model_dump(exclude_unset=True), user["id"])


@router.delete("/{org_id}", response_model=MessageResponse)
async def remove_organization(org_id: str, user=Depends(get_current_user)):
    return await org_service.remove_organization(org_id, user["id"])


@router.post("/{org_id}/invite", response_model=MessageResponse)
async def invite_user(org_id: str, data: OrgInvite, user=Depends(get_current_user)):
    return await org_service.invite_user(org_id, data.user_email, user["id"])
