"""
Forum service: posts, comments, categories, likes, bookmarks and reputation.

Counters are never read-modify-write. ``views`` and comment ``likes`` are
incremented in SQL; post ``likes`` is recounted from ``forum_post_likes`` in
the same UPDATE that follows the toggle.
"""
import logging
import math
from datetime import timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from agora.context import Context
from agora.errors import AuthorizationError, NotFoundError, ValidationError
from agora.models.forum import (
    ForumBookmark, ForumCategory, ForumComment, ForumPost, ForumPostLike, UserReputation,
)
from agora.models.user import User
from agora.schemas.forum import (
    BookmarkState, ForumCategoryWithCount, ForumCommentCreate, ForumCommentUpdate,
    ForumPostCreate, ForumPostPage, ForumPostUpdate, ForumPostWithAuthor, ForumStats,
    LeaderboardEntry, LikeState, SortOrder,
)
from agora.schemas.user import UserRead
from agora.services.audit import AuditEventType, log_audit_event, with_audit_logging
from agora.services.authorization import (
    is_admin, require_admin, require_ownership, require_post_access, require_tenant_access,
    require_user, same_id,
)
from agora.validation import sanitize_pagination, sanitize_search_query

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
CONTENT_FIELDS = {"title", "content", "category", "tags", "preview_image"}
MODERATION_FIELDS = {"pinned", "locked"}


def _get_post(ctx: Context, post_id: UUID) -> ForumPost:
    post = ctx.db.get(ForumPost, post_id)
    if post is None:
        raise NotFoundError("Post", post_id)
    return post


def _get_comment(ctx: Context, comment_id: UUID) -> ForumComment:
    comment = ctx.db.get(ForumComment, comment_id)
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    return comment


# ============ Posts ============

def get_forum_posts(
    ctx: Context,
    tenant_id: Optional[UUID] = None,
    author_id: Optional[UUID] = None,
    category: Optional[str] = None,
) -> List[ForumPost]:
    """Tenant forums are public; the cross-tenant listing is admin-only."""
    if tenant_id is None:
        require_admin(ctx)

    query = ctx.db.query(ForumPost)
    if tenant_id is not None:
        query = query.filter(ForumPost.tenant_id == tenant_id)
    if author_id is not None:
        query = query.filter(ForumPost.author_id == author_id)
    if category:
        query = query.filter(ForumPost.category == category)
    return query.order_by(ForumPost.pinned.desc(), ForumPost.created_at.desc()).all()


def get_forum_post_by_id(ctx: Context, post_id: UUID) -> Optional[ForumPost]:
    return ctx.db.get(ForumPost, post_id)


def create_forum_post(ctx: Context, data: ForumPostCreate) -> ForumPost:
    author = require_tenant_access(ctx, data.tenant_id)

    now = ctx.system_time()
    post = ForumPost(
        tenant_id=data.tenant_id,
        author_id=author.id,
        title=data.title,
        content=data.content,
        category=data.category.value,
        tags=data.tags,
        preview_image=data.preview_image,
        likes=0,
        views=0,
        pinned=False,
        locked=False,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(post)
    ctx.db.commit()
    ctx.db.refresh(post)

    log_audit_event(ctx, AuditEventType.FORUM_POST_CREATED, {"title": post.title}, post.id, "post")
    return post


def update_forum_post(ctx: Context, post_id: UUID, update: ForumPostUpdate) -> ForumPost:
    """Authors and admins edit content; only admins pin or lock."""
    post = _get_post(ctx, post_id)
    caller = require_user(ctx)

    update_data = update.model_dump(exclude_unset=True, exclude_none=True)
    content_changes = {k: v for k, v in update_data.items() if k in CONTENT_FIELDS}
    moderation_changes = {k: v for k, v in update_data.items() if k in MODERATION_FIELDS}

    if content_changes and not (is_admin(caller) or same_id(caller.id, post.author_id)):
        raise AuthorizationError("Access denied. Only the author can edit this post.")
    if moderation_changes and not is_admin(caller):
        raise AuthorizationError("Access denied. Only admins can pin or lock posts.")

    if "category" in content_changes:
        content_changes["category"] = content_changes["category"].value

    previous = {"pinned": post.pinned, "locked": post.locked}
    for field, value in {**content_changes, **moderation_changes}.items():
        setattr(post, field, value)
    post.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(post)

    if content_changes:
        log_audit_event(
            ctx, AuditEventType.FORUM_POST_UPDATED, {"fields": sorted(content_changes)}, post.id, "post"
        )
    if "pinned" in moderation_changes and previous["pinned"] != post.pinned:
        log_audit_event(ctx, AuditEventType.FORUM_POST_PINNED, {"pinned": post.pinned}, post.id, "post")
    if "locked" in moderation_changes and previous["locked"] != post.locked:
        log_audit_event(ctx, AuditEventType.FORUM_POST_LOCKED, {"locked": post.locked}, post.id, "post")
    return post


@with_audit_logging(AuditEventType.FORUM_POST_DELETED, "post", id_arg="post_id")
def delete_forum_post(ctx: Context, post_id: UUID) -> None:
    """Delete a post together with its comments, likes and bookmarks."""
    post = _get_post(ctx, post_id)
    require_ownership(ctx, post.author_id)

    ctx.db.delete(post)
    ctx.db.commit()
    logger.info(f"Deleted post {post_id} with its comments, likes and bookmarks")


def increment_post_views(ctx: Context, post_id: UUID) -> int:
    result = ctx.db.execute(
        update(ForumPost)
        .where(ForumPost.id == post_id)
        .values(views=ForumPost.views + 1)
        .returning(ForumPost.views)
        .execution_options(synchronize_session=False)
    ).first()
    if result is None:
        ctx.db.rollback()
        raise NotFoundError("Post", post_id)
    ctx.db.commit()
    return result.views


def _hot_score(post: ForumPost) -> int:
    created_ms = int(post.created_at.replace(tzinfo=timezone.utc).timestamp() * 1000)
    return post.likes + created_ms // 10_000_000


def get_forum_posts_paginated(
    ctx: Context,
    tenant_id: UUID,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: SortOrder = "hot",
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> ForumPostPage:
    """
    One page of a tenant's feed.

    ``hot`` ranks by likes plus a recency bucket (creation time in ms divided
    by 10^7), ``new`` by creation time and ``top`` by likes. ``search``
    matches title or content case-insensitively.
    """
    pagination = sanitize_pagination(page, page_size or DEFAULT_PAGE_SIZE)

    query = ctx.db.query(ForumPost).filter(ForumPost.tenant_id == tenant_id)
    if category:
        query = query.filter(ForumPost.category == category)

    term = sanitize_search_query(search or "")
    if term:
        pattern = f"%{term.lower()}%"
        query = query.filter(or_(
            func.lower(ForumPost.title).like(pattern),
            func.lower(ForumPost.content).like(pattern),
        ))

    posts = query.all()
    if sort == "new":
        posts.sort(key=lambda p: p.created_at, reverse=True)
    elif sort == "top":
        posts.sort(key=lambda p: p.likes, reverse=True)
    else:
        posts.sort(key=_hot_score, reverse=True)

    total = len(posts)
    total_pages = math.ceil(total / pagination.limit)
    page_posts = posts[pagination.offset:pagination.offset + pagination.limit]

    counts = _comment_counts(ctx, [p.id for p in page_posts])
    authors = _users_by_id(ctx, {p.author_id for p in page_posts})

    return ForumPostPage(
        posts=[
            ForumPostWithAuthor.model_validate(p).model_copy(update={
                "author": authors.get(p.author_id),
                "comment_count": counts.get(p.id, 0),
            })
            for p in page_posts
        ],
        total=total,
        page=pagination.page,
        page_size=pagination.limit,
        total_pages=total_pages,
        has_more=pagination.page < total_pages,
    )


def _comment_counts(ctx: Context, post_ids) -> dict:
    if not post_ids:
        return {}
    rows = ctx.db.execute(
        select(ForumComment.post_id, func.count(ForumComment.id))
        .where(ForumComment.post_id.in_(post_ids))
        .group_by(ForumComment.post_id)
    ).all()
    return {post_id: count for post_id, count in rows}


def _users_by_id(ctx: Context, user_ids) -> dict:
    if not user_ids:
        return {}
    users = ctx.db.query(User).filter(User.id.in_(user_ids)).all()
    return {u.id: UserRead.model_validate(u) for u in users}


# ============ Comments ============

def get_comments_by_post_id(ctx: Context, post_id: UUID) -> List[ForumComment]:
    return ctx.db.query(ForumComment).filter(
        ForumComment.post_id == post_id
    ).order_by(ForumComment.created_at).all()


def get_comment_count(ctx: Context, post_id: UUID) -> int:
    return ctx.db.query(func.count(ForumComment.id)).filter(ForumComment.post_id == post_id).scalar()


def create_comment(ctx: Context, post_id: UUID, data: ForumCommentCreate) -> ForumComment:
    post = _get_post(ctx, post_id)
    author = require_post_access(ctx, post)

    if post.locked:
        raise ValidationError("Post is locked")

    if data.parent_id is not None:
        parent = ctx.db.get(ForumComment, data.parent_id)
        if parent is None or not same_id(parent.post_id, post.id):
            raise ValidationError("Parent comment does not belong to this post")

    now = ctx.system_time()
    comment = ForumComment(
        post_id=post.id,
        author_id=author.id,
        parent_id=data.parent_id,
        content=data.content,
        likes=0,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(comment)
    ctx.db.commit()
    ctx.db.refresh(comment)

    log_audit_event(ctx, AuditEventType.FORUM_COMMENT_CREATED, {"post_id": post.id}, comment.id, "comment")
    return comment


def update_comment(ctx: Context, comment_id: UUID, data: ForumCommentUpdate) -> ForumComment:
    comment = _get_comment(ctx, comment_id)
    require_ownership(ctx, comment.author_id)

    comment.content = data.content
    comment.updated_at = ctx.system_time()
    ctx.db.commit()
    ctx.db.refresh(comment)

    log_audit_event(ctx, AuditEventType.FORUM_COMMENT_UPDATED, {"post_id": comment.post_id}, comment.id, "comment")
    return comment


@with_audit_logging(AuditEventType.FORUM_COMMENT_DELETED, "comment", id_arg="comment_id")
def delete_comment(ctx: Context, comment_id: UUID) -> None:
    comment = _get_comment(ctx, comment_id)
    require_ownership(ctx, comment.author_id)

    ctx.db.delete(comment)
    ctx.db.commit()


def toggle_comment_like(ctx: Context, comment_id: UUID, increment: bool) -> int:
    """Atomically add or remove one like; the count never drops below zero."""
    comment = _get_comment(ctx, comment_id)
    require_post_access(ctx, _get_post(ctx, comment.post_id))

    if increment:
        new_value = ForumComment.likes + 1
    else:
        new_value = case((ForumComment.likes > 0, ForumComment.likes - 1), else_=0)

    likes = ctx.db.execute(
        update(ForumComment)
        .where(ForumComment.id == comment_id)
        .values(likes=new_value)
        .returning(ForumComment.likes)
        .execution_options(synchronize_session=False)
    ).scalar_one()
    ctx.db.commit()
    return likes


# ============ Categories ============

def get_forum_categories(ctx: Context, tenant_id: UUID) -> List[ForumCategoryWithCount]:
    """Categories ordered by ``order``, each with its number of posts."""
    categories = ctx.db.query(ForumCategory).filter(
        ForumCategory.tenant_id == tenant_id
    ).order_by(ForumCategory.order).all()

    counts = dict(ctx.db.execute(
        select(ForumPost.category, func.count(ForumPost.id))
        .where(ForumPost.tenant_id == tenant_id)
        .group_by(ForumPost.category)
    ).all())

    return [
        ForumCategoryWithCount.model_validate(c).model_copy(update={"post_count": counts.get(c.slug, 0)})
        for c in categories
    ]


def get_forum_category_by_slug(ctx: Context, slug: str, tenant_id: Optional[UUID] = None) -> Optional[ForumCategory]:
    query = ctx.db.query(ForumCategory).filter(ForumCategory.slug == slug)
    if tenant_id is not None:
        query = query.filter(ForumCategory.tenant_id == tenant_id)
    return query.first()


# ============ Likes / Bookmarks ============

def recount_post_likes(ctx: Context, post_id: UUID) -> int:
    like_count = (
        select(func.count(ForumPostLike.id))
        .where(ForumPostLike.post_id == post_id)
        .scalar_subquery()
    )
    return ctx.db.execute(
        update(ForumPost)
        .where(ForumPost.id == post_id)
        .values(likes=like_count)
        .returning(ForumPost.likes)
        .execution_options(synchronize_session=False)
    ).scalar_one()


def _find_like(ctx: Context, user_id: UUID, post_id: UUID) -> Optional[ForumPostLike]:
    return ctx.db.query(ForumPostLike).filter(
        ForumPostLike.user_id == user_id,
        ForumPostLike.post_id == post_id,
    ).first()


def _find_bookmark(ctx: Context, user_id: UUID, post_id: UUID) -> Optional[ForumBookmark]:
    return ctx.db.query(ForumBookmark).filter(
        ForumBookmark.user_id == user_id,
        ForumBookmark.post_id == post_id,
    ).first()


def toggle_post_like(ctx: Context, post_id: UUID) -> LikeState:
    post = _get_post(ctx, post_id)
    user = require_post_access(ctx, post)
    user_id, post_id = user.id, post.id

    existing = _find_like(ctx, user_id, post_id)

    if existing:
        ctx.db.delete(existing)
        liked = False
    else:
        ctx.db.add(ForumPostLike(user_id=user_id, post_id=post_id, created_at=ctx.system_time()))
        liked = True
    try:
        ctx.db.flush()
    except IntegrityError:
        # Another request inserted the same like first
        ctx.db.rollback()
        liked = ctx.db.query(ForumPostLike.id).filter(
            ForumPostLike.user_id == user_id,
            ForumPostLike.post_id == post_id,
        ).first() is not None

    likes = recount_post_likes(ctx, post_id)
    ctx.db.commit()
    return LikeState(liked=liked, likes=likes)


def is_post_liked_by_user(ctx: Context, post_id: UUID) -> bool:
    user = require_user(ctx)
    return ctx.db.query(ForumPostLike.id).filter(
        ForumPostLike.user_id == user.id,
        ForumPostLike.post_id == post_id,
    ).first() is not None


def toggle_bookmark(ctx: Context, post_id: UUID) -> BookmarkState:
    post = _get_post(ctx, post_id)
    user = require_post_access(ctx, post)
    user_id, post_id = user.id, post.id

    existing = _find_bookmark(ctx, user_id, post_id)

    if existing:
        ctx.db.delete(existing)
        bookmarked = False
    else:
        ctx.db.add(ForumBookmark(user_id=user_id, post_id=post_id, created_at=ctx.system_time()))
        bookmarked = True
    try:
        ctx.db.commit()
    except IntegrityError:
        ctx.db.rollback()
        bookmarked = ctx.db.query(ForumBookmark.id).filter(
            ForumBookmark.user_id == user_id,
            ForumBookmark.post_id == post_id,
        ).first() is not None
    return BookmarkState(bookmarked=bookmarked)


def is_post_bookmarked(ctx: Context, post_id: UUID) -> bool:
    user = require_user(ctx)
    return ctx.db.query(ForumBookmark.id).filter(
        ForumBookmark.user_id == user.id,
        ForumBookmark.post_id == post_id,
    ).first() is not None


def get_user_bookmarks(ctx: Context) -> List[ForumPost]:
    """The caller's bookmarked posts, most recently bookmarked first."""
    user = require_user(ctx)
    return ctx.db.query(ForumPost).join(
        ForumBookmark, ForumBookmark.post_id == ForumPost.id
    ).filter(
        ForumBookmark.user_id == user.id
    ).order_by(ForumBookmark.created_at.desc()).all()


# ============ Reputation / Stats ============

def get_leaderboard(ctx: Context, tenant_id: UUID, limit: int = 10) -> List[LeaderboardEntry]:
    limit = sanitize_pagination(1, limit).limit
    reputations = ctx.db.query(UserReputation).filter(
        UserReputation.tenant_id == tenant_id
    ).order_by(UserReputation.points.desc()).limit(limit).all()

    users = _users_by_id(ctx, {r.user_id for r in reputations})
    return [
        LeaderboardEntry.model_validate(r).model_copy(update={"user": users.get(r.user_id)})
        for r in reputations
    ]


def get_user_reputation(ctx: Context, user_id: UUID, tenant_id: UUID) -> Optional[UserReputation]:
    return ctx.db.query(UserReputation).filter(
        UserReputation.user_id == user_id,
        UserReputation.tenant_id == tenant_id,
    ).first()


def get_forum_stats(ctx: Context, tenant_id: UUID) -> ForumStats:
    members = ctx.db.query(func.count(User.id)).filter(User.tenant_id == tenant_id).scalar()
    discussions = ctx.db.query(func.count(ForumPost.id)).filter(ForumPost.tenant_id == tenant_id).scalar()
    comments = ctx.db.query(func.count(ForumComment.id)).join(
        ForumPost, ForumPost.id == ForumComment.post_id
    ).filter(ForumPost.tenant_id == tenant_id).scalar()
    return ForumStats(members=members, discussions=discussions, comments=comments)
