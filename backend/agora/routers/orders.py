"""Order router."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.commerce import OrderCreate, OrderRead, OrderStatusUpdate
from agora.services import orders
from agora.validation import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderRead])
def list_orders(
    tenant_id: UUID | None = None,
    customer_id: UUID | None = None,
    status: OrderStatus | None = None,
    ctx: Context = Depends(get_context),
):
    """Orders visible to the caller, optionally narrowed by the filters."""
    return orders.get_orders(ctx, tenant_id, customer_id, status)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: UUID, ctx: Context = Depends(get_context)):
    order = orders.get_order_by_id(ctx, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(data: OrderCreate, ctx: Context = Depends(get_context)):
    return orders.create_order(ctx, data)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: UUID, update: OrderStatusUpdate, ctx: Context = Depends(get_context)):
    """Move an order along its status state machine."""
    return orders.update_order_status(ctx, order_id, update)
