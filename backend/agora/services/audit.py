"""
Audit logging for sensitive operations.

Entries are written to the append-only ``audit_logs`` table and echoed to the
``agora.audit`` logger. Each entry carries a retention class derived from its
event type; the scheduled purge deletes entries once ``expires_at`` has passed.
"""
import csv
import functools
import inspect
import io
import json
import logging
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder

from agora.context import Context
from agora.errors import ValidationError
from agora.models.audit import AuditLog
from agora.models.user import User
from agora.schemas.audit import AuditLogQuery
from agora.services.authorization import require_admin

logger = logging.getLogger("agora.audit")


class AuditEventType(str, Enum):
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    USER_ROLE_CHANGED = "user.role_changed"
    TENANT_CREATED = "tenant.created"
    TENANT_UPDATED = "tenant.updated"
    PRODUCT_CREATED = "product.created"
    PRODUCT_UPDATED = "product.updated"
    PRODUCT_DELETED = "product.deleted"
    ORDER_CREATED = "order.created"
    ORDER_STATUS_UPDATED = "order.status_updated"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_REFUNDED = "order.refunded"
    FORUM_POST_CREATED = "forum.post.created"
    FORUM_POST_UPDATED = "forum.post.updated"
    FORUM_POST_DELETED = "forum.post.deleted"
    FORUM_POST_PINNED = "forum.post.pinned"
    FORUM_POST_LOCKED = "forum.post.locked"
    FORUM_COMMENT_CREATED = "forum.comment.created"
    FORUM_COMMENT_UPDATED = "forum.comment.updated"
    FORUM_COMMENT_DELETED = "forum.comment.deleted"
    ADMIN_LOGIN = "admin.login"
    ADMIN_FAILED_ACTION = "admin.failed_action"
    ADMIN_DATA_EXPORT = "admin.data_export"
    ADMIN_SETTINGS_CHANGED = "admin.settings_changed"
    SECURITY_SUSPICIOUS_ACTIVITY = "security.suspicious_activity"
    SECURITY_AUTH_FAILURE = "security.auth_failure"


class AuditRetention:
    """Retention periods in days."""
    CRITICAL = 2555  # 7 years
    HIGH = 1095  # 3 years
    MEDIUM = 365
    LOW = 90


RESOURCE_TYPES = {"user", "tenant", "product", "order", "post", "comment"}

REDACT_KEYS = {"password", "hashed_password", "token", "access_token", "secret", "card", "cvv", "pin"}

AUDITABLE_ACTIONS = [
    "create_user",
    "update_user",
    "delete_user",
    "create_tenant",
    "update_tenant",
    "delete_product",
    "update_order_status",
    "delete_forum_post",
    "pin_post",
    "lock_post",
    "delete_comment",
    "get_stats",
    "get_users",
]


def _event_name(event_type) -> str:
    return event_type.value if isinstance(event_type, AuditEventType) else str(event_type)


def get_action_from_event_type(event_type) -> str:
    name = _event_name(event_type)
    if "created" in name:
        return "create"
    if "updated" in name or "changed" in name:
        return "update"
    if "deleted" in name:
        return "delete"
    if "login" in name:
        return "login"
    if "logout" in name:
        return "logout"
    if "failed" in name:
        return "failed"
    if "export" in name:
        return "export"
    return "read"


def get_retention_days(event_type) -> int:
    """Retention class from event-type substrings."""
    name = _event_name(event_type)
    if "admin" in name or "security" in name or "deleted" in name:
        return AuditRetention.CRITICAL
    if "role_changed" in name or "updated" in name or "cancelled" in name:
        return AuditRetention.HIGH
    if "created" in name:
        return AuditRetention.MEDIUM
    return AuditRetention.LOW


def requires_audit(action: str) -> bool:
    return any(a in action for a in AUDITABLE_ACTIONS)


def _redact(value):
    if isinstance(value, dict):
        return {
            k: "***" if str(k).lower() in REDACT_KEYS else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _sanitize(details: Dict[str, Any]) -> Dict[str, Any]:
    return _redact(jsonable_encoder(details or {}))


def _resolve_tenant_id(ctx: Context, subject: str):
    try:
        user = ctx.db.get(User, uuid.UUID(subject))
    except ValueError:
        user = None
    return user.tenant_id if user else None


def log_audit_event(
    ctx: Context,
    event_type,
    details: Optional[Dict[str, Any]] = None,
    resource_id=None,
    resource_type: Optional[str] = None,
    status: str = "success",
) -> str:
    """Persist one audit entry and return its id."""
    if resource_type is not None and resource_type not in RESOURCE_TYPES:
        raise ValueError(f"Unknown audit resource type: {resource_type}")

    name = _event_name(event_type)
    identity = ctx.get_user_identity()
    user_id = identity.subject if identity else None
    tenant_id = _resolve_tenant_id(ctx, user_id) if user_id else None

    audit_id = uuid.uuid4()
    timestamp = ctx.system_time()
    retention_days = get_retention_days(name)

    entry = AuditLog(
        id=audit_id,
        event_type=name,
        action=get_action_from_event_type(name),
        status=status,
        user_id=user_id,
        tenant_id=tenant_id,
        resource_id=str(resource_id) if resource_id is not None else None,
        resource_type=resource_type,
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
        details=_sanitize(details or {}),
        timestamp=timestamp,
        retention_days=retention_days,
        expires_at=timestamp + timedelta(days=retention_days),
    )
    ctx.db.add(entry)
    ctx.db.commit()

    logger.info("[AUDIT] %s", json.dumps({
        "id": str(audit_id),
        "event_type": name,
        "status": status,
        "user_id": user_id,
        "tenant_id": str(tenant_id) if tenant_id else None,
        "resource_id": entry.resource_id,
        "resource_type": resource_type,
        "timestamp": timestamp.isoformat(),
    }))
    return str(audit_id)


def with_audit_logging(event_type, resource_type: Optional[str] = None, id_arg: str = "id"):
    """
    Wrap a service function so every call leaves an audit entry.

    Success logs ``event_type`` with the call arguments. A raised error rolls
    back the session, logs ``<event_type>.failed`` and is re-raised unchanged.
    """
    name = _event_name(event_type)

    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(ctx: Context, *args, **kwargs):
            call_args = dict(signature.bind(ctx, *args, **kwargs).arguments)
            call_args.pop("ctx", None)
            resource_id = call_args.get(id_arg)

            try:
                result = func(ctx, *args, **kwargs)
            except Exception as exc:
                ctx.db.rollback()
                log_audit_event(
                    ctx,
                    f"{name}.failed",
                    {"error": str(exc)},
                    resource_id,
                    resource_type,
                    status="failure",
                )
                raise

            if resource_id is None:
                resource_id = getattr(result, "id", None)
            log_audit_event(ctx, name, call_args, resource_id, resource_type)
            return result

        return wrapper

    return decorator


def log_admin_action(ctx: Context, action: str, details: Optional[Dict[str, Any]] = None) -> str:
    return log_audit_event(ctx, f"admin.{action}", details)


def log_security_event(ctx: Context, event_type: AuditEventType, details: Optional[Dict[str, Any]] = None) -> str:
    if not _event_name(event_type).startswith("security."):
        raise ValueError(f"Not a security event: {_event_name(event_type)}")
    return log_audit_event(ctx, event_type, details)


def log_data_access(ctx: Context, data_type: str, details: Optional[Dict[str, Any]] = None) -> str:
    """Record a compliance-relevant bulk read."""
    return log_audit_event(
        ctx,
        AuditEventType.ADMIN_DATA_EXPORT,
        {**(details or {}), "data_type": data_type, "accessed_at": ctx.system_time()},
    )


def audit_read(ctx: Context, action: str, data_type: str, details: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Log a data access only for actions on the audit allow-list."""
    if not requires_audit(action):
        return None
    return log_data_access(ctx, data_type, {**(details or {}), "action": action})


def get_audit_logs(ctx: Context, filters: AuditLogQuery) -> list[AuditLog]:
    require_admin(ctx)

    query = ctx.db.query(AuditLog)
    if filters.start_date:
        query = query.filter(AuditLog.timestamp >= filters.start_date)
    if filters.end_date:
        query = query.filter(AuditLog.timestamp <= filters.end_date)
    if filters.event_types:
        query = query.filter(AuditLog.event_type.in_(filters.event_types))
    if filters.user_id:
        query = query.filter(AuditLog.user_id == filters.user_id)
    if filters.tenant_id:
        query = query.filter(AuditLog.tenant_id == filters.tenant_id)

    entries = query.order_by(AuditLog.timestamp.desc()).limit(filters.limit).all()

    log_audit_event(ctx, AuditEventType.ADMIN_DATA_EXPORT, {
        "filters": filters.model_dump(mode="json"),
        "reason": "Audit log query",
    })
    return entries


EXPORT_COLUMNS = [
    "id", "event_type", "action", "status", "user_id", "tenant_id",
    "resource_id", "resource_type", "ip_address", "timestamp", "details",
]


def export_audit_logs(ctx: Context, start_date: datetime, end_date: datetime, fmt: str = "json") -> str:
    """Render all entries in [start_date, end_date] as JSON or CSV text."""
    require_admin(ctx)

    if start_date >= end_date:
        raise ValidationError("start_date must be before end_date")
    if fmt not in ("json", "csv"):
        raise ValidationError(f"Unsupported export format: {fmt}")

    entries = ctx.db.query(AuditLog).filter(
        AuditLog.timestamp >= start_date,
        AuditLog.timestamp <= end_date,
    ).order_by(AuditLog.timestamp).all()

    rows = [
        jsonable_encoder({col: getattr(e, col) for col in EXPORT_COLUMNS})
        for e in entries
    ]

    log_audit_event(ctx, AuditEventType.ADMIN_DATA_EXPORT, {
        "filters": {"start_date": start_date, "end_date": end_date},
        "format": fmt,
        "count": len(rows),
    })

    if fmt == "json":
        return json.dumps(rows)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow({**row, "details": json.dumps(row["details"])})
    return buffer.getvalue()


def cleanup_old_audit_logs(ctx: Context) -> int:
    """Delete entries whose retention period has elapsed."""
    now = ctx.system_time()
    deleted = ctx.db.query(AuditLog).filter(
        AuditLog.expires_at < now
    ).delete(synchronize_session=False)
    ctx.db.commit()

    log_admin_action(ctx, "settings_changed", {"action": "audit_cleanup", "deleted": deleted})
    logger.info(f"Purged {deleted} expired audit log entries")
    return deleted
