"""Platform-wide counters for the admin dashboard."""
from typing import Optional
from uuid import UUID

from sqlalchemy import func

from agora.context import Context
from agora.models.commerce import Order, Product
from agora.models.forum import ForumPost
from agora.models.user import User
from agora.schemas.audit import PlatformStats
from agora.services.audit import audit_read
from agora.services.authorization import require_admin


def _count(ctx: Context, model, tenant_id: Optional[UUID]) -> int:
    query = ctx.db.query(func.count(model.id))
    if tenant_id is not None:
        query = query.filter(model.tenant_id == tenant_id)
    return query.scalar()


def get_stats(ctx: Context, tenant_id: Optional[UUID] = None) -> PlatformStats:
    """User, product, order and post counts plus order revenue, optionally for one tenant."""
    require_admin(ctx)

    revenue_query = ctx.db.query(func.coalesce(func.sum(Order.total), 0.0))
    if tenant_id is not None:
        revenue_query = revenue_query.filter(Order.tenant_id == tenant_id)

    stats = PlatformStats(
        user_count=_count(ctx, User, tenant_id),
        product_count=_count(ctx, Product, tenant_id),
        order_count=_count(ctx, Order, tenant_id),
        post_count=_count(ctx, ForumPost, tenant_id),
        revenue=float(revenue_query.scalar()),
    )

    audit_read(ctx, "get_stats", "stats", {"tenant_id": tenant_id})
    return stats
