"""User and auth schemas."""
from uuid import UUID
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict

from agora.validation import Role, TenantDomain, is_valid_email, is_valid_password


def _check_email(v: str) -> str:
    if not is_valid_email(v):
        raise ValueError("invalid email address")
    return v


def _check_password(v: str) -> str:
    if not is_valid_password(v):
        raise ValueError(
            "password needs 8+ characters with lowercase, uppercase, digit and special character"
        )
    return v


Email = Annotated[str, AfterValidator(_check_email)]
Password = Annotated[str, AfterValidator(_check_password)]


class UserBase(BaseModel):
    """Base user schema."""
    name: str
    email: str
    role: Role = Role.CUSTOMER


class UserCreate(UserBase):
    """Create user request (admin)."""
    email: Email
    tenant_id: UUID | None = None
    username: str | None = None
    password: Password | None = None


class UserUpdate(BaseModel):
    """Update user request. role and tenant_id are admin-only."""
    name: str | None = None
    email: Email | None = None
    image: str | None = None
    username: str | None = None
    bio: str | None = None
    role: Role | None = None
    tenant_id: UUID | None = None


class UserRead(UserBase):
    """User response."""
    id: UUID
    tenant_id: UUID | None = None
    username: str | None = None
    bio: str | None = None
    image: str | None = None
    email_verified: bool = False
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SignUpRequest(BaseModel):
    name: str
    email: Email
    password: Password
    tenant_domain: TenantDomain


class SignInRequest(BaseModel):
    email: str
    password: str
    tenant_domain: TenantDomain


class SessionRead(BaseModel):
    id: UUID
    user_id: UUID
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResult(BaseModel):
    """Sign-in / sign-up response."""
    session: SessionRead
    user: UserRead
    access_token: str
    token_type: str = "bearer"


class SessionInfo(BaseModel):
    session: SessionRead
    user: UserRead

