"""Tenant router. Lookups are public; writes are admin-only."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.tenant import TenantCreate, TenantRead, TenantUpdate
from agora.services import tenants
from agora.validation import TenantDomain

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=List[TenantRead])
def list_tenants(ctx: Context = Depends(get_context)):
    return tenants.get_tenants(ctx)


@router.get("/by-slug/{slug}", response_model=TenantRead)
def get_tenant_by_slug(slug: str, ctx: Context = Depends(get_context)):
    tenant = tenants.get_tenant_by_slug(ctx, slug)
    if tenant is None:
        raise NotFoundError("Tenant", slug)
    return tenant


@router.get("/by-domain/{domain}", response_model=TenantRead)
def get_tenant_by_domain(domain: TenantDomain, ctx: Context = Depends(get_context)):
    tenant = tenants.get_tenant_by_domain(ctx, domain)
    if tenant is None:
        raise NotFoundError("Tenant for domain", domain.value)
    return tenant


@router.get("/{tenant_id}", response_model=TenantRead)
def get_tenant(tenant_id: UUID, ctx: Context = Depends(get_context)):
    tenant = tenants.get_tenant_by_id(ctx, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant", tenant_id)
    return tenant


@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
def create_tenant(data: TenantCreate, ctx: Context = Depends(get_context)):
    return tenants.create_tenant(ctx, data)


@router.patch("/{tenant_id}", response_model=TenantRead)
def update_tenant(tenant_id: UUID, update: TenantUpdate, ctx: Context = Depends(get_context)):
    return tenants.update_tenant(ctx, tenant_id, update)
