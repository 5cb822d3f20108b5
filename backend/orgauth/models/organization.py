from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, Literal

AccessLevel = Literal["admin", "member", "viewer"]


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = ""


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class OrgInvite(BaseModel):
    user_email: EmailStr


class MemberUser(BaseModel):
    id: str
    name: str
    email: str


class MemberResponse(BaseModel):
    user: Optional[MemberUser] = None
    access_level: AccessLevel
    joined_at: str


class OrganizationResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = ""
    members: List[MemberResponse] = []
    created_at: str
    updated_at: str


class OrganizationCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organization_id: str = Field(serialization_alias="organizationId")
    message: str


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")


class OrganizationListResponse(BaseModel):
    organizations: List[OrganizationResponse]
    meta: PaginationMeta
