"""Forum schemas."""
from uuid import UUID
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from agora.schemas.user import UserRead
from agora.validation import ForumCategory, ReputationLevel


# ============ Posts ============

class ForumPostCreate(BaseModel):
    tenant_id: UUID
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    category: ForumCategory
    tags: list[str] = []
    preview_image: str | None = None


class ForumPostUpdate(BaseModel):
    """Content fields for the author; pinned/locked for admins."""
    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    category: ForumCategory | None = None
    tags: list[str] | None = None
    preview_image: str | None = None
    pinned: bool | None = None
    locked: bool | None = None


class ForumPostRead(BaseModel):
    id: UUID
    tenant_id: UUID
    author_id: UUID
    title: str
    content: str
    category: str
    tags: list[str] = []
    likes: int
    views: int
    pinned: bool
    locked: bool
    ai_summary: str | None = None
    preview_image: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ForumPostWithAuthor(ForumPostRead):
    author: UserRead | None = None
    comment_count: int = 0


class ForumPostPage(BaseModel):
    """One page of the forum feed."""
    posts: list[ForumPostWithAuthor]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


SortOrder = Literal["hot", "new", "top"]


# ============ Comments ============

class ForumCommentCreate(BaseModel):
    content: str = Field(min_length=1)
    parent_id: UUID | None = None


class ForumCommentUpdate(BaseModel):
    content: str = Field(min_length=1)


class ForumCommentRead(BaseModel):
    id: UUID
    post_id: UUID
    author_id: UUID
    parent_id: UUID | None = None
    content: str
    likes: int
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============ Categories ============

class ForumCategoryRead(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    slug: str
    description: str | None = None
    icon: str
    color: str
    order: int

    model_config = ConfigDict(from_attributes=True)


class ForumCategoryWithCount(ForumCategoryRead):
    post_count: int = 0


# ============ Toggles ============

class LikeState(BaseModel):
    liked: bool
    likes: int


class BookmarkState(BaseModel):
    bookmarked: bool


# ============ Reputation / Stats ============

class ReputationRead(BaseModel):
    user_id: UUID
    tenant_id: UUID
    points: int
    level: ReputationLevel
    posts_created: int
    comments_created: int
    likes_received: int

    model_config = ConfigDict(from_attributes=True)


class LeaderboardEntry(ReputationRead):
    user: UserRead | None = None


class ForumStats(BaseModel):
    members: int
    discussions: int
    comments: int
