"""Tests for the forum service."""
import pytest

from agora.errors import AuthorizationError, NotFoundError, ValidationError


def _new_post(ctx, tenant, title, category="general", content="Body text"):
    from agora.schemas.forum import ForumPostCreate
    from agora.services.forum import create_forum_post

    return create_forum_post(ctx, ForumPostCreate(
        tenant_id=tenant.id, title=title, content=content, category=category,
    ))


class TestPosts:
    """Post CRUD and moderation."""

    def test_create_post(self, customer_ctx, customer, tenant, clock):
        from agora.models.audit import AuditLog

        post = _new_post(customer_ctx, tenant, "Shipping times?", category="support")
        assert post.author_id == customer.id
        assert (post.likes, post.views, post.pinned, post.locked) == (0, 0, False, False)
        assert post.created_at == clock()
        assert customer_ctx.db.query(AuditLog).one().event_type == "forum.post.created"

    def test_cannot_post_in_other_tenant(self, outsider_ctx, tenant):
        with pytest.raises(AuthorizationError):
            _new_post(outsider_ctx, tenant, "Hi")

    def test_unknown_category_rejected_by_schema(self, tenant):
        from pydantic import ValidationError as SchemaError

        with pytest.raises(SchemaError):
            _new_post(None, tenant, "Hi", category="memes")

    def test_list_posts_pinned_first(self, customer_ctx, admin_ctx, tenant, clock):
        from agora.schemas.forum import ForumPostUpdate
        from agora.services.forum import get_forum_posts, update_forum_post

        old = _new_post(customer_ctx, tenant, "Old")
        clock.advance(hours=1)
        new = _new_post(customer_ctx, tenant, "New")
        update_forum_post(admin_ctx, old.id, ForumPostUpdate(pinned=True))

        assert [p.title for p in get_forum_posts(customer_ctx, tenant.id)] == ["Old", "New"]
        assert [p.id for p in get_forum_posts(customer_ctx, tenant.id, category="support")] == []
        assert new.id in {p.id for p in get_forum_posts(admin_ctx)}

    def test_unfiltered_listing_is_admin_only(self, customer_ctx):
        from agora.services.forum import get_forum_posts

        with pytest.raises(AuthorizationError):
            get_forum_posts(customer_ctx)

    def test_author_edits_content(self, customer_ctx, post):
        from agora.models.audit import AuditLog
        from agora.schemas.forum import ForumPostUpdate
        from agora.services.forum import update_forum_post

        updated = update_forum_post(customer_ctx, post.id, ForumPostUpdate(title="Edited", category="showcase"))
        assert updated.title == "Edited"
        assert updated.category == "showcase"
        assert customer_ctx.db.query(AuditLog).one().event_type == "forum.post.updated"

    def test_other_member_cannot_edit(self, seller_ctx, post):
        from agora.schemas.forum import ForumPostUpdate
        from agora.services.forum import update_forum_post

        with pytest.raises(AuthorizationError):
            update_forum_post(seller_ctx, post.id, ForumPostUpdate(title="Mine now"))

    def test_author_cannot_pin_or_lock(self, customer_ctx, post):
        from agora.schemas.forum import ForumPostUpdate
        from agora.services.forum import update_forum_post

        with pytest.raises(AuthorizationError):
            update_forum_post(customer_ctx, post.id, ForumPostUpdate(pinned=True))
        with pytest.raises(AuthorizationError):
            update_forum_post(customer_ctx, post.id, ForumPostUpdate(locked=True))

    def test_admin_pins_and_locks(self, admin_ctx, post):
        from agora.models.audit import AuditLog
        from agora.schemas.forum import ForumPostUpdate
        from agora.services.forum import update_forum_post

        updated = update_forum_post(admin_ctx, post.id, ForumPostUpdate(pinned=True, locked=True))
        assert updated.pinned and updated.locked

        events = {e.event_type for e in admin_ctx.db.query(AuditLog).all()}
        assert events == {"forum.post.pinned", "forum.post.locked"}

    def test_delete_cascades(self, customer_ctx, post):
        from agora.models.forum import ForumBookmark, ForumComment, ForumPost, ForumPostLike
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment, delete_forum_post, toggle_bookmark, toggle_post_like

        post_id = post.id
        create_comment(customer_ctx, post_id, ForumCommentCreate(content="Reply"))
        toggle_post_like(customer_ctx, post_id)
        toggle_bookmark(customer_ctx, post_id)

        delete_forum_post(customer_ctx, post_id)

        db = customer_ctx.db
        assert db.get(ForumPost, post_id) is None
        assert db.query(ForumComment).count() == 0
        assert db.query(ForumPostLike).count() == 0
        assert db.query(ForumBookmark).count() == 0

    def test_admin_deletes_member_post_and_is_audited(self, admin_ctx, post):
        from agora.models.audit import AuditLog
        from agora.models.forum import ForumPost
        from agora.services.forum import delete_forum_post

        post_id = post.id
        delete_forum_post(admin_ctx, post_id)

        assert admin_ctx.db.get(ForumPost, post_id) is None
        entry = admin_ctx.db.query(AuditLog).one()
        assert entry.event_type == "forum.post.deleted"
        assert entry.status == "success"
        assert entry.resource_type == "post"
        assert entry.resource_id == str(post_id)

    def test_delete_by_other_member_is_denied_and_audited(self, seller_ctx, post):
        from agora.models.audit import AuditLog
        from agora.services.forum import delete_forum_post

        with pytest.raises(AuthorizationError):
            delete_forum_post(seller_ctx, post.id)
        entry = seller_ctx.db.query(AuditLog).one()
        assert entry.event_type == "forum.post.deleted.failed"
        assert entry.retention_days == 2555

    def test_increment_views(self, anon_ctx, post):
        from agora.services.forum import increment_post_views

        assert increment_post_views(anon_ctx, post.id) == 1
        assert increment_post_views(anon_ctx, post.id) == 2
        anon_ctx.db.refresh(post)
        assert post.views == 2

    def test_increment_views_missing_post(self, anon_ctx):
        import uuid
        from agora.services.forum import increment_post_views

        with pytest.raises(NotFoundError):
            increment_post_views(anon_ctx, uuid.uuid4())


class TestFeed:
    """Paginated, sorted and searched feed."""

    @pytest.fixture
    def feed(self, customer_ctx, seller_ctx, tenant, clock):
        from agora.services.forum import toggle_post_like

        posts = {}
        for title in ("Alpha launch", "Beta notes", "Gamma question"):
            posts[title] = _new_post(customer_ctx, tenant, title)
            clock.advance(days=1)
        # Two likes on the oldest post
        toggle_post_like(customer_ctx, posts["Alpha launch"].id)
        toggle_post_like(seller_ctx, posts["Alpha launch"].id)
        return posts

    def test_new_sort(self, anon_ctx, tenant, feed):
        from agora.services.forum import get_forum_posts_paginated

        page = get_forum_posts_paginated(anon_ctx, tenant.id, sort="new")
        assert [p.title for p in page.posts] == ["Gamma question", "Beta notes", "Alpha launch"]

    def test_top_sort(self, anon_ctx, tenant, feed):
        from agora.services.forum import get_forum_posts_paginated

        page = get_forum_posts_paginated(anon_ctx, tenant.id, sort="top")
        assert page.posts[0].title == "Alpha launch"
        assert page.posts[0].likes == 2

    def test_hot_sort_favours_recency_over_a_few_likes(self, anon_ctx, tenant, feed):
        from agora.services.forum import get_forum_posts_paginated

        # One day is roughly eight recency buckets, more than two likes
        page = get_forum_posts_paginated(anon_ctx, tenant.id)
        assert page.posts[0].title == "Gamma question"

    def test_pagination(self, anon_ctx, tenant, feed):
        from agora.services.forum import get_forum_posts_paginated

        first = get_forum_posts_paginated(anon_ctx, tenant.id, sort="new", page=1, page_size=2)
        assert (first.total, first.total_pages, first.has_more) == (3, 2, True)
        assert len(first.posts) == 2

        second = get_forum_posts_paginated(anon_ctx, tenant.id, sort="new", page=2, page_size=2)
        assert [p.title for p in second.posts] == ["Alpha launch"]
        assert not second.has_more

    def test_search_is_case_insensitive(self, anon_ctx, tenant, feed):
        from agora.services.forum import get_forum_posts_paginated

        page = get_forum_posts_paginated(anon_ctx, tenant.id, search="  BETA ")
        assert [p.title for p in page.posts] == ["Beta notes"]

    def test_posts_carry_author_and_comment_count(self, customer_ctx, customer, tenant, feed):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment, get_forum_posts_paginated

        create_comment(customer_ctx, feed["Beta notes"].id, ForumCommentCreate(content="+1"))
        page = get_forum_posts_paginated(customer_ctx, tenant.id, search="beta")
        assert page.posts[0].author.email == customer.email
        assert page.posts[0].comment_count == 1

    def test_empty_feed(self, anon_ctx, tenant):
        from agora.services.forum import get_forum_posts_paginated

        page = get_forum_posts_paginated(anon_ctx, tenant.id)
        assert (page.posts, page.total, page.total_pages, page.has_more) == ([], 0, 0, False)


class TestComments:
    """Comments, threading and comment likes."""

    def test_create_and_list(self, customer_ctx, seller_ctx, post, clock):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment, get_comment_count, get_comments_by_post_id

        first = create_comment(customer_ctx, post.id, ForumCommentCreate(content="First"))
        clock.advance(minutes=1)
        reply = create_comment(seller_ctx, post.id, ForumCommentCreate(content="Reply", parent_id=first.id))

        assert [c.id for c in get_comments_by_post_id(customer_ctx, post.id)] == [first.id, reply.id]
        assert reply.parent_id == first.id
        assert get_comment_count(customer_ctx, post.id) == 2

    def test_outsider_cannot_comment(self, outsider_ctx, post):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment

        with pytest.raises(AuthorizationError):
            create_comment(outsider_ctx, post.id, ForumCommentCreate(content="Hi"))

    def test_locked_post_rejects_comments(self, admin_ctx, customer_ctx, post):
        from agora.schemas.forum import ForumCommentCreate, ForumPostUpdate
        from agora.services.forum import create_comment, update_forum_post

        update_forum_post(admin_ctx, post.id, ForumPostUpdate(locked=True))
        with pytest.raises(ValidationError, match="locked"):
            create_comment(customer_ctx, post.id, ForumCommentCreate(content="Too late"))

    def test_parent_must_belong_to_same_post(self, customer_ctx, tenant, post):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment

        other = _new_post(customer_ctx, tenant, "Elsewhere")
        foreign = create_comment(customer_ctx, other.id, ForumCommentCreate(content="There"))
        with pytest.raises(ValidationError):
            create_comment(customer_ctx, post.id, ForumCommentCreate(content="Here", parent_id=foreign.id))

    def test_update_and_delete_own_comment(self, customer_ctx, seller_ctx, post):
        from agora.models.forum import ForumComment
        from agora.schemas.forum import ForumCommentCreate, ForumCommentUpdate
        from agora.services.forum import create_comment, delete_comment, update_comment

        comment = create_comment(customer_ctx, post.id, ForumCommentCreate(content="Typo"))
        with pytest.raises(AuthorizationError):
            update_comment(seller_ctx, comment.id, ForumCommentUpdate(content="Hijack"))

        assert update_comment(customer_ctx, comment.id, ForumCommentUpdate(content="Fixed")).content == "Fixed"

        comment_id = comment.id
        delete_comment(customer_ctx, comment_id)
        assert customer_ctx.db.get(ForumComment, comment_id) is None

    def test_comment_likes_never_go_negative(self, customer_ctx, post):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment, toggle_comment_like

        comment = create_comment(customer_ctx, post.id, ForumCommentCreate(content="Like me"))
        assert toggle_comment_like(customer_ctx, comment.id, increment=True) == 1
        assert toggle_comment_like(customer_ctx, comment.id, increment=False) == 0
        assert toggle_comment_like(customer_ctx, comment.id, increment=False) == 0


class TestLikesAndBookmarks:
    """Toggle semantics."""

    def test_like_toggle_recounts(self, customer_ctx, seller_ctx, post):
        from agora.services.forum import is_post_liked_by_user, toggle_post_like

        assert toggle_post_like(customer_ctx, post.id).model_dump() == {"liked": True, "likes": 1}
        assert toggle_post_like(seller_ctx, post.id).likes == 2
        assert is_post_liked_by_user(customer_ctx, post.id)

        assert toggle_post_like(customer_ctx, post.id).model_dump() == {"liked": False, "likes": 1}
        assert not is_post_liked_by_user(customer_ctx, post.id)

        customer_ctx.db.refresh(post)
        assert post.likes == 1

    def test_toggles_from_separate_sessions(self, database, customer, clock, post):
        from agora.context import Context, Identity
        from agora.models.forum import ForumPost
        from agora.services.forum import toggle_post_like

        identity = Identity(subject=str(customer.id), email=customer.email, name=customer.name)
        post_id = post.id
        states = []
        for _ in range(2):
            session = database.session()
            try:
                ctx = Context(db=session, identity=identity, clock=clock)
                states.append(toggle_post_like(ctx, post_id).model_dump())
            finally:
                session.close()

        assert states == [{"liked": True, "likes": 1}, {"liked": False, "likes": 0}]
        with database.session() as session:
            assert session.get(ForumPost, post_id).likes == 0

    def test_duplicate_like_row_is_rejected(self, db_session, customer, post):
        from sqlalchemy.exc import IntegrityError
        from agora.models.forum import ForumPostLike

        db_session.add(ForumPostLike(user_id=customer.id, post_id=post.id))
        db_session.commit()

        db_session.add(ForumPostLike(user_id=customer.id, post_id=post.id))
        with pytest.raises(IntegrityError, match="(?i)unique"):
            db_session.commit()
        db_session.rollback()
        assert db_session.query(ForumPostLike).count() == 1

    def test_like_survives_losing_an_insert_race(self, customer_ctx, post, monkeypatch):
        from agora.models.forum import ForumPostLike
        from agora.services import forum

        forum.toggle_post_like(customer_ctx, post.id)
        # The second toggle does not see the row the first one committed
        monkeypatch.setattr(forum, "_find_like", lambda ctx, user_id, post_id: None)

        state = forum.toggle_post_like(customer_ctx, post.id)

        assert state.model_dump() == {"liked": True, "likes": 1}
        assert customer_ctx.db.query(ForumPostLike).count() == 1

    def test_bookmark_survives_losing_an_insert_race(self, customer_ctx, post, monkeypatch):
        from agora.models.forum import ForumBookmark
        from agora.services import forum

        forum.toggle_bookmark(customer_ctx, post.id)
        monkeypatch.setattr(forum, "_find_bookmark", lambda ctx, user_id, post_id: None)

        assert forum.toggle_bookmark(customer_ctx, post.id).bookmarked
        assert customer_ctx.db.query(ForumBookmark).count() == 1

    def test_outsider_cannot_like(self, outsider_ctx, post):
        from agora.services.forum import toggle_post_like

        with pytest.raises(AuthorizationError):
            toggle_post_like(outsider_ctx, post.id)

    def test_bookmarks(self, customer_ctx, tenant, post, clock):
        from agora.services.forum import get_user_bookmarks, is_post_bookmarked, toggle_bookmark

        later = _new_post(customer_ctx, tenant, "Later")
        assert toggle_bookmark(customer_ctx, post.id).bookmarked
        clock.advance(minutes=1)
        toggle_bookmark(customer_ctx, later.id)

        assert [p.id for p in get_user_bookmarks(customer_ctx)] == [later.id, post.id]
        assert is_post_bookmarked(customer_ctx, post.id)

        assert not toggle_bookmark(customer_ctx, post.id).bookmarked
        assert not is_post_bookmarked(customer_ctx, post.id)


class TestCategoriesAndStats:
    """Categories, reputation and aggregate counts."""

    @pytest.fixture
    def categories(self, db_session, tenant):
        from agora.models.forum import ForumCategory

        rows = [
            ForumCategory(tenant_id=tenant.id, name="Support", slug="support", icon="life-buoy", color="blue", order=2),
            ForumCategory(tenant_id=tenant.id, name="General", slug="general", icon="message", color="gray", order=1),
        ]
        db_session.add_all(rows)
        db_session.commit()
        return rows

    def test_categories_with_post_counts(self, anon_ctx, tenant, categories, post):
        from agora.services.forum import get_forum_categories

        result = get_forum_categories(anon_ctx, tenant.id)
        assert [(c.slug, c.post_count) for c in result] == [("general", 1), ("support", 0)]

    def test_category_by_slug(self, anon_ctx, tenant, other_tenant, categories):
        from agora.services.forum import get_forum_category_by_slug

        assert get_forum_category_by_slug(anon_ctx, "support").name == "Support"
        assert get_forum_category_by_slug(anon_ctx, "support", tenant.id) is not None
        assert get_forum_category_by_slug(anon_ctx, "support", other_tenant.id) is None

    def test_leaderboard_and_reputation(self, anon_ctx, db_session, tenant, customer, seller):
        from agora.models.forum import UserReputation
        from agora.services.forum import get_leaderboard, get_user_reputation

        db_session.add_all([
            UserReputation(user_id=customer.id, tenant_id=tenant.id, points=40, level="silver"),
            UserReputation(user_id=seller.id, tenant_id=tenant.id, points=120, level="gold"),
        ])
        db_session.commit()

        board = get_leaderboard(anon_ctx, tenant.id)
        assert [(e.user.email, e.points) for e in board] == [(seller.email, 120), (customer.email, 40)]
        assert len(get_leaderboard(anon_ctx, tenant.id, limit=1)) == 1
        assert get_user_reputation(anon_ctx, customer.id, tenant.id).level == "silver"

    def test_forum_stats(self, customer_ctx, seller, outsider, tenant, post):
        from agora.schemas.forum import ForumCommentCreate
        from agora.services.forum import create_comment, get_forum_stats

        create_comment(customer_ctx, post.id, ForumCommentCreate(content="One"))
        create_comment(customer_ctx, post.id, ForumCommentCreate(content="Two"))

        stats = get_forum_stats(customer_ctx, tenant.id)
        assert stats.model_dump() == {"members": 2, "discussions": 1, "comments": 2}
