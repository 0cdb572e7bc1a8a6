"""
Orders and the order status state machine.

Legal transitions:

    pending    -> processing | cancelled
    processing -> shipped | cancelled
    shipped    -> delivered
    delivered  -> refunded

cancelled and refunded are terminal.
"""
import logging
from typing import List, Optional
from uuid import UUID

from agora.context import Context
from agora.errors import AuthorizationError, NotFoundError, ValidationError
from agora.models.commerce import Order, Product
from agora.models.user import User
from agora.schemas.commerce import OrderCreate, OrderStatusUpdate
from agora.services.audit import AuditEventType, log_audit_event
from agora.services.authorization import (
    is_admin, is_customer, is_seller, require_tenant_access, require_user, same_id,
)
from agora.validation import OrderStatus

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


def validate_order_transition(current: OrderStatus, target: OrderStatus) -> None:
    current, target = OrderStatus(current), OrderStatus(target)
    if current == target:
        raise ValidationError(f"Order is already {current.value}")
    if not can_transition(current, target):
        raise ValidationError(
            f"Invalid order status transition: {current.value} -> {target.value}"
        )


def _status_event(target: OrderStatus) -> AuditEventType:
    if target == OrderStatus.CANCELLED:
        return AuditEventType.ORDER_CANCELLED
    if target == OrderStatus.REFUNDED:
        return AuditEventType.ORDER_REFUNDED
    return AuditEventType.ORDER_STATUS_UPDATED


def get_orders(
    ctx: Context,
    tenant_id: Optional[UUID] = None,
    customer_id: Optional[UUID] = None,
    status: Optional[OrderStatus] = None,
) -> List[Order]:
    """
    Customers see their own orders, sellers the orders of their tenant and
    admins everything. Filters narrow further within that scope.
    """
    caller = require_user(ctx)
    query = ctx.db.query(Order)

    if is_admin(caller):
        pass
    elif is_seller(caller):
        if tenant_id is not None:
            require_tenant_access(ctx, tenant_id)
        query = query.filter(Order.tenant_id == caller.tenant_id)
    else:
        if customer_id is not None and not same_id(customer_id, caller.id):
            raise AuthorizationError("Access denied. You can only view your own orders.")
        query = query.filter(Order.customer_id == caller.id)

    if tenant_id is not None:
        query = query.filter(Order.tenant_id == tenant_id)
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    if status is not None:
        query = query.filter(Order.status == OrderStatus(status).value)
    return query.order_by(Order.created_at.desc()).all()


def _require_order_visible(ctx: Context, order: Order):
    caller = require_user(ctx)
    if is_admin(caller):
        return caller
    if is_seller(caller) and same_id(caller.tenant_id, order.tenant_id):
        return caller
    if same_id(caller.id, order.customer_id):
        return caller
    raise AuthorizationError("Access denied. You do not have permission to access this order.")


def get_order_by_id(ctx: Context, order_id: UUID) -> Optional[Order]:
    order = ctx.db.get(Order, order_id)
    if order is None:
        return None
    _require_order_visible(ctx, order)
    return order


def create_order(ctx: Context, data: OrderCreate) -> Order:
    """Place an order. Line items snapshot the stored product name and price."""
    caller = require_tenant_access(ctx, data.tenant_id)

    if is_admin(caller):
        customer_id = data.customer_id or caller.id
        if not same_id(customer_id, caller.id):
            customer = ctx.db.get(User, customer_id)
            if customer is None:
                raise NotFoundError("User", customer_id)
            if not is_customer(customer) or not same_id(customer.tenant_id, data.tenant_id):
                raise ValidationError("customer_id must name a customer of the order's tenant")
    else:
        if data.customer_id is not None and not same_id(data.customer_id, caller.id):
            raise AuthorizationError("Access denied. You can only place orders for yourself.")
        customer_id = caller.id

    items = []
    for item in data.items:
        product = ctx.db.get(Product, item.product_id)
        if product is None:
            raise NotFoundError("Product", item.product_id)
        if not same_id(product.tenant_id, data.tenant_id):
            raise ValidationError(f"Product {product.id} does not belong to this tenant")
        items.append({
            "product_id": str(product.id),
            "name": product.name,
            "price": product.price,
            "quantity": item.quantity,
        })

    total = round(sum(i["price"] * i["quantity"] for i in items), 2)

    now = ctx.system_time()
    order = Order(
        tenant_id=data.tenant_id,
        customer_id=customer_id,
        items=items,
        total=total,
        currency=data.currency.value,
        status=OrderStatus.PENDING.value,
        stripe_payment_intent_id=data.stripe_payment_intent_id,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(order)
    ctx.db.commit()
    ctx.db.refresh(order)

    log_audit_event(ctx, AuditEventType.ORDER_CREATED, {"total": total, "items": len(items)}, order.id, "order")
    logger.info(f"Order {order.id} placed by {customer_id}: {total} {order.currency}")
    return order


def update_order_status(ctx: Context, order_id: UUID, update: OrderStatusUpdate) -> Order:
    order = ctx.db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)

    caller = require_user(ctx)
    target = OrderStatus(update.status)

    if is_admin(caller):
        pass
    elif is_seller(caller):
        require_tenant_access(ctx, order.tenant_id)
    elif is_customer(caller) and same_id(caller.id, order.customer_id):
        if target != OrderStatus.CANCELLED:
            raise AuthorizationError("Access denied. Customers can only cancel their orders.")
    else:
        raise AuthorizationError("Access denied. You do not have permission to update this order.")

    previous = order.status
    try:
        validate_order_transition(previous, target)
    except ValidationError as exc:
        log_audit_event(
            ctx,
            f"{_status_event(target).value}.failed",
            {"from": previous, "to": target.value, "error": exc.message},
            order.id,
            "order",
            status="failure",
        )
        raise

    order.status = target.value
    if update.stripe_payment_intent_id is not None:
        order.stripe_payment_intent_id = update.stripe_payment_intent_id
    order.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(order)

    log_audit_event(ctx, _status_event(target), {"from": previous, "to": target.value}, order.id, "order")
    return order

