"""Tenant schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator

from agora.validation import TenantDomain, is_valid_slug


class TenantSettings(BaseModel):
    """Display and branding configuration."""
    site_name: str
    site_description: str
    logo_url: str | None = None
    favicon_url: str | None = None
    primary_color: str
    secondary_color: str
    custom_domain: str | None = None


class TenantBase(BaseModel):
    """Base tenant schema."""
    name: str
    slug: str
    domain: TenantDomain
    settings: TenantSettings


class TenantCreate(TenantBase):
    """Create tenant request."""
    stripe_account_id: str | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        if not is_valid_slug(v):
            raise ValueError("slug must be lowercase alphanumeric words separated by hyphens")
        return v


class TenantUpdate(BaseModel):
    """Update tenant request."""
    name: str | None = None
    slug: str | None = None
    settings: TenantSettings | None = None
    stripe_account_id: str | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_slug(v):
            raise ValueError("slug must be lowercase alphanumeric words separated by hyphens")
        return v


class TenantRead(TenantBase):
    """Tenant response."""
    id: UUID
    stripe_account_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
