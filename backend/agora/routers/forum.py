"""Forum router: posts, comments, categories, toggles and reputation."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.forum import (
    BookmarkState, ForumCategoryRead, ForumCategoryWithCount, ForumCommentCreate,
    ForumCommentRead, ForumCommentUpdate, ForumPostCreate, ForumPostPage, ForumPostRead,
    ForumPostUpdate, ForumStats, LeaderboardEntry, LikeState, ReputationRead, SortOrder,
)
from agora.services import forum

router = APIRouter(prefix="/forum", tags=["forum"])


# ============ Posts ============

@router.get("/posts", response_model=List[ForumPostRead])
def list_posts(
    tenant_id: UUID | None = None,
    author_id: UUID | None = None,
    category: str | None = None,
    ctx: Context = Depends(get_context),
):
    return forum.get_forum_posts(ctx, tenant_id, author_id, category)


@router.get("/posts/feed", response_model=ForumPostPage)
def post_feed(
    tenant_id: UUID,
    category: str | None = None,
    search: str | None = None,
    sort: SortOrder = "hot",
    page: int = 1,
    page_size: int = 10,
    ctx: Context = Depends(get_context),
):
    """Paginated feed with author and comment count."""
    return forum.get_forum_posts_paginated(ctx, tenant_id, category, search, sort, page, page_size)


@router.get("/posts/{post_id}", response_model=ForumPostRead)
def get_post(post_id: UUID, ctx: Context = Depends(get_context)):
    post = forum.get_forum_post_by_id(ctx, post_id)
    if post is None:
        raise NotFoundError("Post", post_id)
    return post


@router.post("/posts", response_model=ForumPostRead, status_code=status.HTTP_201_CREATED)
def create_post(data: ForumPostCreate, ctx: Context = Depends(get_context)):
    return forum.create_forum_post(ctx, data)


@router.patch("/posts/{post_id}", response_model=ForumPostRead)
def update_post(post_id: UUID, update: ForumPostUpdate, ctx: Context = Depends(get_context)):
    return forum.update_forum_post(ctx, post_id, update)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: UUID, ctx: Context = Depends(get_context)):
    forum.delete_forum_post(ctx, post_id)


@router.post("/posts/{post_id}/views")
def increment_views(post_id: UUID, ctx: Context = Depends(get_context)):
    return {"views": forum.increment_post_views(ctx, post_id)}


@router.post("/posts/{post_id}/like", response_model=LikeState)
def toggle_like(post_id: UUID, ctx: Context = Depends(get_context)):
    return forum.toggle_post_like(ctx, post_id)


@router.get("/posts/{post_id}/like")
def is_liked(post_id: UUID, ctx: Context = Depends(get_context)):
    return {"liked": forum.is_post_liked_by_user(ctx, post_id)}


@router.post("/posts/{post_id}/bookmark", response_model=BookmarkState)
def toggle_bookmark(post_id: UUID, ctx: Context = Depends(get_context)):
    return forum.toggle_bookmark(ctx, post_id)


@router.get("/posts/{post_id}/bookmark", response_model=BookmarkState)
def is_bookmarked(post_id: UUID, ctx: Context = Depends(get_context)):
    return BookmarkState(bookmarked=forum.is_post_bookmarked(ctx, post_id))


@router.get("/bookmarks", response_model=List[ForumPostRead])
def list_bookmarks(ctx: Context = Depends(get_context)):
    return forum.get_user_bookmarks(ctx)


# ============ Comments ============

@router.get("/posts/{post_id}/comments", response_model=List[ForumCommentRead])
def list_comments(post_id: UUID, ctx: Context = Depends(get_context)):
    return forum.get_comments_by_post_id(ctx, post_id)


@router.get("/posts/{post_id}/comments/count")
def count_comments(post_id: UUID, ctx: Context = Depends(get_context)):
    return {"count": forum.get_comment_count(ctx, post_id)}


@router.post("/posts/{post_id}/comments", response_model=ForumCommentRead, status_code=status.HTTP_201_CREATED)
def create_comment(post_id: UUID, data: ForumCommentCreate, ctx: Context = Depends(get_context)):
    return forum.create_comment(ctx, post_id, data)


@router.patch("/comments/{comment_id}", response_model=ForumCommentRead)
def update_comment(comment_id: UUID, data: ForumCommentUpdate, ctx: Context = Depends(get_context)):
    return forum.update_comment(ctx, comment_id, data)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: UUID, ctx: Context = Depends(get_context)):
    forum.delete_comment(ctx, comment_id)


@router.post("/comments/{comment_id}/like")
def toggle_comment_like(comment_id: UUID, increment: bool = True, ctx: Context = Depends(get_context)):
    return {"likes": forum.toggle_comment_like(ctx, comment_id, increment)}


# ============ Categories ============

@router.get("/categories", response_model=List[ForumCategoryWithCount])
def list_categories(tenant_id: UUID, ctx: Context = Depends(get_context)):
    return forum.get_forum_categories(ctx, tenant_id)


@router.get("/categories/{slug}", response_model=ForumCategoryRead)
def get_category(slug: str, tenant_id: UUID | None = None, ctx: Context = Depends(get_context)):
    category = forum.get_forum_category_by_slug(ctx, slug, tenant_id)
    if category is None:
        raise NotFoundError("Category", slug)
    return category


# ============ Reputation / Stats ============

@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def leaderboard(tenant_id: UUID, limit: int = 10, ctx: Context = Depends(get_context)):
    return forum.get_leaderboard(ctx, tenant_id, limit)


@router.get("/reputation/{user_id}", response_model=ReputationRead)
def get_reputation(user_id: UUID, tenant_id: UUID, ctx: Context = Depends(get_context)):
    reputation = forum.get_user_reputation(ctx, user_id, tenant_id)
    if reputation is None:
        raise NotFoundError("Reputation", user_id)
    return reputation


@router.get("/stats", response_model=ForumStats)
def forum_stats(tenant_id: UUID, ctx: Context = Depends(get_context)):
    return forum.get_forum_stats(ctx, tenant_id)
