"""Product and order schemas."""
from uuid import UUID
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from agora.validation import (
    Currency, OrderStatus, ProductStatus, is_valid_amount, is_valid_stock_quantity,
)


def _check_amount(v: float) -> float:
    if not is_valid_amount(v):
        raise ValueError("amount must be greater than 0 and less than 1,000,000")
    return v


def _check_stock(v: int) -> int:
    if not is_valid_stock_quantity(v):
        raise ValueError("stock must be an integer between 0 and 999,999")
    return v


Amount = Annotated[float, AfterValidator(_check_amount)]
StockQuantity = Annotated[int, AfterValidator(_check_stock)]


# ============ Products ============

class ProductCreate(BaseModel):
    """Create product request. seller_id defaults to the caller."""
    tenant_id: UUID
    seller_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    price: Amount
    currency: Currency = Currency.USD
    images: list[str] = []
    category: str = ""
    tags: list[str] = []
    stock: StockQuantity = 0
    status: ProductStatus = ProductStatus.DRAFT
    metadata: dict[str, Any] | None = None


class ProductUpdate(BaseModel):
    """Patch a product; only supplied fields change."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: Amount | None = None
    currency: Currency | None = None
    images: list[str] | None = None
    category: str | None = None
    tags: list[str] | None = None
    stock: StockQuantity | None = None
    status: ProductStatus | None = None
    metadata: dict[str, Any] | None = None


class ProductRead(BaseModel):
    id: UUID
    tenant_id: UUID
    seller_id: UUID
    name: str
    description: str
    price: float
    currency: Currency
    images: list[str] = []
    category: str
    tags: list[str] = []
    stock: int
    status: ProductStatus
    metadata: dict[str, Any] | None = Field(None, validation_alias="metadata_")
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============ Orders ============

class OrderItem(BaseModel):
    product_id: UUID
    name: str
    price: Amount
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    """Create order request. customer_id defaults to the caller."""
    tenant_id: UUID
    customer_id: UUID | None = None
    items: list[OrderItem]
    currency: Currency = Currency.USD
    stripe_payment_intent_id: str | None = None

    @field_validator("items")
    @classmethod
    def check_items(cls, v: list[OrderItem]) -> list[OrderItem]:
        if not v:
            raise ValueError("an order needs at least one item")
        return v


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    stripe_payment_intent_id: str | None = None


class OrderRead(BaseModel):
    id: UUID
    tenant_id: UUID
    customer_id: UUID
    items: list[OrderItem]
    total: float
    currency: Currency
    status: OrderStatus
    stripe_payment_intent_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
