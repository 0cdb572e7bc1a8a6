"""Append-only audit trail."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, JSON, Uuid, event

from agora.database import Base


class AuditLog(Base):
    """One sensitive state change. Rows are inserted and purged, never edited."""

    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_type = Column(String(80), nullable=False, index=True)
    action = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="success")

    # No foreign keys: entries must outlive the users and resources they mention
    user_id = Column(String(120), nullable=True, index=True)  # identity subject
    tenant_id = Column(Uuid, nullable=True, index=True)
    resource_id = Column(String(120), nullable=True)
    resource_type = Column(String(20), nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    details = Column(JSON, nullable=False, default=dict)

    timestamp = Column(DateTime, nullable=False, index=True)
    retention_days = Column(Integer, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(event_type={self.event_type}, status={self.status})>"


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ValueError("Audit log entries are append-only")
