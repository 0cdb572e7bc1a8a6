"""Admin console router: platform stats, audit trail and maintenance."""
from datetime import datetime
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from agora.context import Context
from agora.routers.deps import get_context
from agora.schemas.audit import (
    AuditExportRequest, AuditLogQuery, AuditLogRead, CleanupResult, PlatformStats,
)
from agora.services import audit, sessions, stats
from agora.services.authorization import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])

EXPORT_MEDIA_TYPES = {"json": "application/json", "csv": "text/csv"}


@router.get("/stats", response_model=PlatformStats)
def platform_stats(tenant_id: UUID | None = None, ctx: Context = Depends(get_context)):
    return stats.get_stats(ctx, tenant_id)


# ============ Audit Trail ============

@router.get("/audit-logs", response_model=List[AuditLogRead])
def list_audit_logs(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    event_types: List[str] | None = Query(None),
    user_id: str | None = None,
    tenant_id: UUID | None = None,
    limit: int = Query(100, ge=1, le=1000),
    ctx: Context = Depends(get_context),
):
    filters = AuditLogQuery(
        start_date=start_date,
        end_date=end_date,
        event_types=event_types,
        user_id=user_id,
        tenant_id=tenant_id,
        limit=limit,
    )
    return audit.get_audit_logs(ctx, filters)


@router.post("/audit-logs/export")
def export_audit_logs(request: AuditExportRequest, ctx: Context = Depends(get_context)):
    """Download the audit trail for a time range as JSON or CSV."""
    content = audit.export_audit_logs(ctx, request.start_date, request.end_date, request.format)
    return Response(
        content=content,
        media_type=EXPORT_MEDIA_TYPES[request.format],
        headers={"Content-Disposition": f'attachment; filename="audit-logs.{request.format}"'},
    )


@router.post("/audit-logs/cleanup", response_model=CleanupResult)
def cleanup_audit_logs(ctx: Context = Depends(get_context)):
    """Purge entries past their retention period."""
    require_admin(ctx)
    return CleanupResult(deleted=audit.cleanup_old_audit_logs(ctx))


# ============ Maintenance ============

@router.post("/sessions/cleanup", response_model=CleanupResult)
def cleanup_sessions(ctx: Context = Depends(get_context)):
    require_admin(ctx)
    return CleanupResult(deleted=sessions.cleanup_expired_sessions(ctx))
