"""Tests for the audit trail."""
import csv
import io
import json
from datetime import timedelta

import pytest

from agora.errors import AuthorizationError, NotFoundError


class TestEventTaxonomy:
    """Action and retention derivation."""

    @pytest.mark.parametrize("event_type,action", [
        ("user.created", "create"),
        ("order.status_updated", "update"),
        ("user.role_changed", "update"),
        ("product.deleted", "delete"),
        ("admin.login", "login"),
        ("admin.failed_action", "failed"),
        ("admin.data_export", "export"),
        ("security.suspicious_activity", "read"),
    ])
    def test_action_from_event_type(self, event_type, action):
        from agora.services.audit import get_action_from_event_type

        assert get_action_from_event_type(event_type) == action

    def test_failed_suffix_keeps_base_action(self):
        from agora.services.audit import get_action_from_event_type

        assert get_action_from_event_type("product.deleted.failed") == "delete"

    @pytest.mark.parametrize("event_type,days", [
        ("admin.login", 2555),
        ("security.auth_failure", 2555),
        ("forum.post.deleted", 2555),
        ("user.role_changed", 1095),
        ("order.cancelled", 1095),
        ("product.updated", 1095),
        ("tenant.created", 365),
        ("forum.post.pinned", 90),
    ])
    def test_retention(self, event_type, days):
        from agora.services.audit import get_retention_days

        assert get_retention_days(event_type) == days

    def test_requires_audit(self):
        from agora.services.audit import requires_audit

        assert requires_audit("delete_product")
        assert requires_audit("admin_get_stats")
        assert not requires_audit("get_products")


class TestLogAuditEvent:
    """Durable audit rows."""

    def test_row_is_persisted_with_retention(self, customer_ctx, customer, tenant, clock):
        from agora.models.audit import AuditLog
        from agora.services.audit import log_audit_event

        audit_id = log_audit_event(customer_ctx, "user.updated", {"name": "New"}, customer.id, "user")

        entry = customer_ctx.db.query(AuditLog).one()
        assert str(entry.id) == audit_id
        assert entry.action == "update"
        assert entry.status == "success"
        assert entry.user_id == str(customer.id)
        assert entry.tenant_id == tenant.id
        assert entry.resource_id == str(customer.id)
        assert entry.ip_address == "127.0.0.1"
        assert entry.timestamp == clock()
        assert entry.retention_days == 1095
        assert entry.expires_at == clock() + timedelta(days=1095)

    def test_anonymous_event_has_no_user(self, anon_ctx):
        from agora.models.audit import AuditLog
        from agora.services.audit import log_audit_event

        log_audit_event(anon_ctx, "security.auth_failure", {"email": "x@y.z"})
        entry = anon_ctx.db.query(AuditLog).one()
        assert entry.user_id is None
        assert entry.tenant_id is None

    def test_sensitive_details_are_redacted(self, admin_ctx):
        from agora.models.audit import AuditLog
        from agora.services.audit import log_audit_event

        log_audit_event(admin_ctx, "user.created", {"data": {"email": "a@b.c", "password": "hunter2"}})
        entry = admin_ctx.db.query(AuditLog).one()
        assert entry.details["data"]["password"] == "***"
        assert entry.details["data"]["email"] == "a@b.c"

    def test_unknown_resource_type_rejected(self, admin_ctx):
        from agora.services.audit import log_audit_event

        with pytest.raises(ValueError):
            log_audit_event(admin_ctx, "user.created", resource_type="spaceship")

    def test_rows_are_append_only(self, admin_ctx):
        from agora.models.audit import AuditLog
        from agora.services.audit import log_audit_event

        log_audit_event(admin_ctx, "admin.login")
        entry = admin_ctx.db.query(AuditLog).one()
        entry.status = "tampered"
        with pytest.raises(ValueError, match="append-only"):
            admin_ctx.db.commit()
        admin_ctx.db.rollback()

    def test_security_event_requires_security_prefix(self, admin_ctx):
        from agora.services.audit import AuditEventType, log_security_event

        with pytest.raises(ValueError):
            log_security_event(admin_ctx, AuditEventType.USER_CREATED)


class TestAuditDecorator:
    """with_audit_logging wraps service calls."""

    def test_success_and_failure_entries(self, admin_ctx):
        from agora.models.audit import AuditLog
        from agora.services.audit import with_audit_logging

        @with_audit_logging("product.deleted", "product", id_arg="product_id")
        def remove(ctx, product_id, fail=False):
            if fail:
                raise NotFoundError("Product", product_id)
            return None

        remove(admin_ctx, "p-1")
        with pytest.raises(NotFoundError):
            remove(admin_ctx, "p-2", fail=True)

        entries = admin_ctx.db.query(AuditLog).order_by(AuditLog.resource_id).all()
        assert [(e.event_type, e.status, e.resource_id) for e in entries] == [
            ("product.deleted", "success", "p-1"),
            ("product.deleted.failed", "failure", "p-2"),
        ]
        assert entries[0].details == {"product_id": "p-1"}
        assert "not found" in entries[1].details["error"]


class TestAuditQueries:
    """Admin-only access to the trail."""

    def test_get_audit_logs_filters(self, admin_ctx, customer_ctx):
        from agora.schemas.audit import AuditLogQuery
        from agora.services.audit import get_audit_logs, log_audit_event

        log_audit_event(customer_ctx, "forum.post.created")
        log_audit_event(customer_ctx, "order.created")

        entries = get_audit_logs(admin_ctx, AuditLogQuery(event_types=["order.created"]))
        assert [e.event_type for e in entries] == ["order.created"]

    def test_get_audit_logs_is_admin_only(self, customer_ctx):
        from agora.schemas.audit import AuditLogQuery
        from agora.services.audit import get_audit_logs

        with pytest.raises(AuthorizationError):
            get_audit_logs(customer_ctx, AuditLogQuery())

    def test_query_is_itself_audited(self, admin_ctx):
        from agora.models.audit import AuditLog
        from agora.schemas.audit import AuditLogQuery
        from agora.services.audit import get_audit_logs

        get_audit_logs(admin_ctx, AuditLogQuery())
        assert admin_ctx.db.query(AuditLog).filter(AuditLog.event_type == "admin.data_export").count() == 1

    def test_export_json_and_csv(self, admin_ctx, clock):
        from agora.services.audit import export_audit_logs, log_audit_event

        log_audit_event(admin_ctx, "tenant.created", {"slug": "acme"})
        start, end = clock() - timedelta(hours=1), clock() + timedelta(hours=2)
        clock.advance(minutes=1)

        rows = json.loads(export_audit_logs(admin_ctx, start, end, "json"))
        assert [r["event_type"] for r in rows] == ["tenant.created"]

        reader = csv.DictReader(io.StringIO(export_audit_logs(admin_ctx, start, end, "csv")))
        events = [r["event_type"] for r in reader]
        # The JSON export above is itself recorded
        assert events == ["tenant.created", "admin.data_export"]

    def test_cleanup_removes_only_expired(self, admin_ctx, clock):
        from agora.models.audit import AuditLog
        from agora.services.audit import cleanup_old_audit_logs, log_audit_event

        log_audit_event(admin_ctx, "forum.post.pinned")  # 90 days
        log_audit_event(admin_ctx, "tenant.created")  # 365 days

        clock.advance(days=91)
        assert cleanup_old_audit_logs(admin_ctx) == 1

        remaining = {e.event_type for e in admin_ctx.db.query(AuditLog).all()}
        assert remaining == {"tenant.created", "admin.settings_changed"}
