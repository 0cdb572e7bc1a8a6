"""Pydantic schemas for API request/response."""
from agora.schemas.tenant import TenantCreate, TenantRead, TenantUpdate, TenantSettings
from agora.schemas.user import (
    UserCreate, UserRead, UserUpdate, SignUpRequest, SignInRequest,
    SessionRead, SessionInfo, AuthResult,
)
from agora.schemas.commerce import (
    ProductCreate, ProductRead, ProductUpdate,
    OrderItem, OrderCreate, OrderRead, OrderStatusUpdate,
)
from agora.schemas.forum import (
    ForumPostCreate, ForumPostRead, ForumPostUpdate, ForumPostWithAuthor, ForumPostPage,
    ForumCommentCreate, ForumCommentRead, ForumCommentUpdate,
    ForumCategoryRead, ForumCategoryWithCount, LikeState, BookmarkState,
    ReputationRead, LeaderboardEntry, ForumStats,
)
from agora.schemas.campaign import (
    CampaignCreate, CampaignRead, CampaignUpdate, CampaignProgress, ParticipationState,
)
from agora.schemas.audit import (
    AuditLogQuery, AuditLogRead, AuditExportRequest, CleanupResult, PlatformStats,
)

__all__ = [
    "TenantCreate", "TenantRead", "TenantUpdate", "TenantSettings",
    "UserCreate", "UserRead", "UserUpdate", "SignUpRequest", "SignInRequest",
    "SessionRead", "SessionInfo", "AuthResult",
    "ProductCreate", "ProductRead", "ProductUpdate",
    "OrderItem", "OrderCreate", "OrderRead", "OrderStatusUpdate",
    "ForumPostCreate", "ForumPostRead", "ForumPostUpdate", "ForumPostWithAuthor", "ForumPostPage",
    "ForumCommentCreate", "ForumCommentRead", "ForumCommentUpdate",
    "ForumCategoryRead", "ForumCategoryWithCount", "LikeState", "BookmarkState",
    "ReputationRead", "LeaderboardEntry", "ForumStats",
    "CampaignCreate", "CampaignRead", "CampaignUpdate", "CampaignProgress", "ParticipationState",
    "AuditLogQuery", "AuditLogRead", "AuditExportRequest", "CleanupResult", "PlatformStats",
]
