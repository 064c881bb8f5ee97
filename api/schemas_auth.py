"""Authentication schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PasswordLoginIn(BaseModel):
    """Email/password login request."""
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    role: str
    user_id: int
    organization_id: Optional[int] = None
    name: str
    must_change_password: bool = False


class TokenRefreshIn(BaseModel):
    """Refresh token request."""
    refresh_token: str


class AccountOut(BaseModel):
    """Authenticated account."""
    id: int
    email: str
    role: str
    organization_id: Optional[int] = None
    is_active: bool
    must_change_password: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CurrentUserOut(BaseModel):
    """Current user info response."""
    account: AccountOut
    name: str
    profile_id: Optional[int] = None  # managers.id / workers.id


class ChangePasswordIn(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=255)
    new_password: str = Field(..., min_length=1, max_length=255)


class RegisterOrganizationIn(BaseModel):
    """Organization signup: creates the organization and its first manager."""
    organization_name: str = Field(..., min_length=2, max_length=255)
    company_number: Optional[str] = Field(None, max_length=50)
    manager_name: str
    email: str
    phone: Optional[str] = None
    password: str = Field(..., min_length=1, max_length=255)
