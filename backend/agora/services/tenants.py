"""Tenant queries and mutations."""
from typing import List, Optional
from uuid import UUID

from agora.context import Context
from agora.errors import ConflictError, NotFoundError
from agora.models.tenant import Tenant
from agora.schemas.tenant import TenantCreate, TenantUpdate
from agora.services.audit import AuditEventType, with_audit_logging
from agora.services.authorization import require_admin, same_id
from agora.validation import TenantDomain


def get_tenants(ctx: Context) -> List[Tenant]:
    return ctx.db.query(Tenant).order_by(Tenant.created_at).all()


def get_tenant_by_id(ctx: Context, tenant_id: UUID) -> Optional[Tenant]:
    return ctx.db.get(Tenant, tenant_id)


def get_tenant_by_slug(ctx: Context, slug: str) -> Optional[Tenant]:
    return ctx.db.query(Tenant).filter(Tenant.slug == slug).first()


def get_tenant_by_domain(ctx: Context, domain: TenantDomain) -> Optional[Tenant]:
    return ctx.db.query(Tenant).filter(Tenant.domain == TenantDomain(domain).value).first()


def _ensure_unique_slug(ctx: Context, slug: str, exclude_id=None):
    existing = get_tenant_by_slug(ctx, slug)
    if existing and not same_id(existing.id, exclude_id):
        raise ConflictError(f"Tenant slug already exists: {slug}")


@with_audit_logging(AuditEventType.TENANT_CREATED, "tenant")
def create_tenant(ctx: Context, data: TenantCreate) -> Tenant:
    require_admin(ctx)
    _ensure_unique_slug(ctx, data.slug)

    now = ctx.system_time()
    tenant = Tenant(
        name=data.name,
        slug=data.slug,
        domain=data.domain.value,
        settings=data.settings.model_dump(),
        stripe_account_id=data.stripe_account_id,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(tenant)
    ctx.db.commit()
    ctx.db.refresh(tenant)
    return tenant


@with_audit_logging(AuditEventType.TENANT_UPDATED, "tenant", id_arg="tenant_id")
def update_tenant(ctx: Context, tenant_id: UUID, update: TenantUpdate) -> Tenant:
    require_admin(ctx)

    tenant = ctx.db.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant", tenant_id)

    update_data = update.model_dump(exclude_unset=True, exclude_none=True)
    if "slug" in update_data:
        _ensure_unique_slug(ctx, update_data["slug"], exclude_id=tenant.id)

    for field, value in update_data.items():
        setattr(tenant, field, value)
    tenant.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(tenant)
    return tenant
