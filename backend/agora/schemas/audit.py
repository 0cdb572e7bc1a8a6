"""Audit log schemas."""
from uuid import UUID
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AuditLogQuery(BaseModel):
    """Filters for browsing the audit trail."""
    start_date: datetime | None = None
    end_date: datetime | None = None
    event_types: list[str] | None = None
    user_id: str | None = None
    tenant_id: UUID | None = None
    limit: int = Field(100, ge=1, le=1000)


class AuditLogRead(BaseModel):
    id: UUID
    event_type: str
    action: str
    status: str
    user_id: str | None = None
    tenant_id: UUID | None = None
    resource_id: str | None = None
    resource_type: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] = {}
    timestamp: datetime
    retention_days: int
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditExportRequest(BaseModel):
    start_date: datetime
    end_date: datetime
    format: Literal["json", "csv"] = "json"


class CleanupResult(BaseModel):
    deleted: int


class PlatformStats(BaseModel):
    """Counts for the admin console."""
    user_count: int
    product_count: int
    order_count: int
    post_count: int
    revenue: float
