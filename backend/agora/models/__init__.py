"""Database models."""
from agora.models.tenant import Tenant
from agora.models.user import User, UserSession
from agora.models.commerce import Product, Order
from agora.models.forum import (
    ForumPost, ForumComment, ForumCategory, ForumPostLike, ForumBookmark,
    UserReputation, ForumCampaign, CampaignParticipant,
)
from agora.models.audit import AuditLog

__all__ = [
    "Tenant",
    "User",
    "UserSession",
    "Product",
    "Order",
    "ForumPost",
    "ForumComment",
    "ForumCategory",
    "ForumPostLike",
    "ForumBookmark",
    "UserReputation",
    "ForumCampaign",
    "CampaignParticipant",
    "AuditLog",
]
