"""Marketplace models: products and orders."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Float, Text, JSON, Uuid

from agora.database import Base


class Product(Base):
    """Product listed by a seller inside one tenant."""

    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    seller_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    images = Column(JSON, nullable=False, default=list)
    category = Column(String(100), nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft, active, archived
    metadata_ = Column("metadata", JSON, nullable=True)  # renamed to avoid conflict with Base.metadata

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Order(Base):
    """Customer order. Line items are denormalized snapshots of product name and price."""

    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    items = Column(JSON, nullable=False, default=list)  # [{"product_id", "name", "price", "quantity"}]
    total = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="pending", index=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
