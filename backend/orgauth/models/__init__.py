# Models exports
from orgauth.models.user import (
    UserCreate, UserLogin, UserUpdate, UserResponse,
    PasswordUpdate, PasswordResetRequest, PasswordReset, MessageResponse
)
from orgauth.models.auth import RefreshTokenRequest, TokenResponse
from orgauth.models.organization import (
    OrganizationCreate, OrganizationUpdate, OrganizationResponse, OrganizationCreated,
    OrganizationListResponse, PaginationMeta, MemberResponse, MemberUser, OrgInvite
)
