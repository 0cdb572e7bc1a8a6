"""Forum models: posts, comments, categories, toggle relations and reputation."""
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Integer, Text, Boolean, JSON, Uuid, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from agora.database import Base


class ForumPost(Base):
    """Discussion thread inside a forum tenant."""

    __tablename__ = "forum_posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)

    # Counters: likes is derived from forum_post_likes, views is incremented in SQL
    likes = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)

    pinned = Column(Boolean, nullable=False, default=False)
    locked = Column(Boolean, nullable=False, default=False)
    ai_summary = Column(Text, nullable=True)
    preview_image = Column(String(1024), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    comments = relationship("ForumComment", back_populates="post", cascade="all, delete-orphan")
    like_rows = relationship("ForumPostLike", cascade="all, delete-orphan")
    bookmark_rows = relationship("ForumBookmark", cascade="all, delete-orphan")


class ForumComment(Base):
    """Comment on a post. parent_id is a flat reference, not a tree constraint."""

    __tablename__ = "forum_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("forum_posts.id"), nullable=False, index=True)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(Uuid, nullable=True, index=True)

    content = Column(Text, nullable=False)
    likes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    post = relationship("ForumPost", back_populates="comments")


class ForumCategory(Base):
    """Sidebar category with icon and color."""

    __tablename__ = "forum_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=False)  # lucide icon name
    color = Column(String(50), nullable=False)  # css class
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ForumPostLike(Base):
    """Presence means the user likes the post."""

    __tablename__ = "forum_post_likes"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_post_like"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(Uuid, ForeignKey("forum_posts.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ForumBookmark(Base):
    """Presence means the user bookmarked the post."""

    __tablename__ = "forum_bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_bookmark"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(Uuid, ForeignKey("forum_posts.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserReputation(Base):
    """Per (user, tenant) leaderboard standing."""

    __tablename__ = "user_reputation"
    __table_args__ = (UniqueConstraint("user_id", "tenant_id", name="uq_reputation"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)

    points = Column(Integer, nullable=False, default=0, index=True)
    level = Column(String(20), nullable=False, default="bronze")
    posts_created = Column(Integer, nullable=False, default=0)
    comments_created = Column(Integer, nullable=False, default=0)
    likes_received = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ForumCampaign(Base):
    """Time-bounded gamification campaign."""

    __tablename__ = "forum_campaigns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    prize = Column(String(255), nullable=False, default="")
    target_points = Column(Integer, nullable=False)
    current_progress = Column(Integer, nullable=False, default=0)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    participants = relationship("CampaignParticipant", cascade="all, delete-orphan")


class CampaignParticipant(Base):
    """Presence means the user joined the campaign."""

    __tablename__ = "campaign_participants"
    __table_args__ = (UniqueConstraint("user_id", "campaign_id", name="uq_campaign_participant"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    campaign_id = Column(Uuid, ForeignKey("forum_campaigns.id"), nullable=False, index=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
