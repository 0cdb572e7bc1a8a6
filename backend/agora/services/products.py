"""Product catalogue."""
import logging
from typing import List, Optional
from uuid import UUID

from agora.context import Context
from agora.errors import AuthorizationError, NotFoundError, ValidationError
from agora.models.commerce import Product
from agora.models.tenant import Tenant
from agora.models.user import User
from agora.schemas.commerce import ProductCreate, ProductUpdate
from agora.services.audit import AuditEventType, log_audit_event, with_audit_logging
from agora.services.authorization import (
    is_admin, is_seller, require_admin, require_product_access, require_role, require_tenant_access, same_id,
)
from agora.validation import ProductStatus, Role

logger = logging.getLogger(__name__)

ENUM_FIELDS = {"currency", "status"}


def get_products(
    ctx: Context,
    tenant_id: Optional[UUID] = None,
    seller_id: Optional[UUID] = None,
    status: Optional[ProductStatus] = None,
) -> List[Product]:
    """Tenant catalogues are public; the cross-tenant listing is admin-only."""
    if tenant_id is None:
        require_admin(ctx)

    query = ctx.db.query(Product)
    if tenant_id is not None:
        query = query.filter(Product.tenant_id == tenant_id)
    if seller_id is not None:
        query = query.filter(Product.seller_id == seller_id)
    if status is not None:
        query = query.filter(Product.status == ProductStatus(status).value)
    return query.order_by(Product.created_at.desc()).all()


def get_product_by_id(ctx: Context, product_id: UUID) -> Optional[Product]:
    return ctx.db.get(Product, product_id)


def create_product(ctx: Context, data: ProductCreate) -> Product:
    caller = require_role(ctx, [Role.SELLER, Role.ADMIN])
    require_tenant_access(ctx, data.tenant_id)

    if ctx.db.get(Tenant, data.tenant_id) is None:
        raise NotFoundError("Tenant", data.tenant_id)

    if is_admin(caller):
        seller_id = data.seller_id or caller.id
        if not same_id(seller_id, caller.id):
            seller = ctx.db.get(User, seller_id)
            if seller is None:
                raise NotFoundError("User", seller_id)
            if not is_seller(seller) or not same_id(seller.tenant_id, data.tenant_id):
                raise ValidationError("seller_id must name a seller of the product's tenant")
    else:
        if data.seller_id is not None and str(data.seller_id) != str(caller.id):
            raise AuthorizationError("Access denied. Sellers can only create their own products.")
        seller_id = caller.id

    now = ctx.system_time()
    product = Product(
        tenant_id=data.tenant_id,
        seller_id=seller_id,
        name=data.name,
        description=data.description,
        price=data.price,
        currency=data.currency.value,
        images=data.images,
        category=data.category,
        tags=data.tags,
        stock=data.stock,
        status=data.status.value,
        metadata_=data.metadata,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(product)
    ctx.db.commit()
    ctx.db.refresh(product)

    log_audit_event(ctx, AuditEventType.PRODUCT_CREATED, {"name": product.name}, product.id, "product")
    logger.info(f"Product {product.id} created by seller {seller_id}")
    return product


def update_product(ctx: Context, product_id: UUID, update: ProductUpdate) -> Product:
    product = ctx.db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)

    require_product_access(ctx, product)

    update_data = update.model_dump(exclude_unset=True, exclude_none=True)
    for field in ENUM_FIELDS & update_data.keys():
        update_data[field] = update_data[field].value
    if "metadata" in update_data:
        update_data["metadata_"] = update_data.pop("metadata")

    for field, value in update_data.items():
        setattr(product, field, value)
    product.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(product)

    log_audit_event(ctx, AuditEventType.PRODUCT_UPDATED, {"fields": sorted(update_data)}, product.id, "product")
    return product


@with_audit_logging(AuditEventType.PRODUCT_DELETED, "product", id_arg="product_id")
def delete_product(ctx: Context, product_id: UUID) -> None:
    product = ctx.db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)

    require_product_access(ctx, product)

    ctx.db.delete(product)
    ctx.db.commit()
