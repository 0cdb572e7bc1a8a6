"""Tenant model for multi-tenancy."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship

from agora.database import Base


class Tenant(Base):
    """A storefront or community partition; every scoped row carries its id."""

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    domain = Column(String(20), nullable=False, index=True)  # marketplace, forum, admin, seller
    stripe_account_id = Column(String(255), nullable=True)
    settings = Column(JSON, nullable=False, default=dict)  # branding: site_name, colors, logo...
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    users = relationship("User", back_populates="tenant")

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug={self.slug})>"
