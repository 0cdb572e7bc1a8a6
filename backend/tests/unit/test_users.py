"""Tests for user and tenant services."""
import pytest

from agora.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError


class TestUserQueries:
    """Visibility of user records."""

    def test_get_users_requires_admin_without_tenant(self, customer_ctx, admin_ctx, customer):
        from agora.services.users import get_users

        with pytest.raises(AuthorizationError):
            get_users(customer_ctx)
        assert customer.id in {u.id for u in get_users(admin_ctx)}

    def test_get_users_for_own_tenant(self, customer_ctx, seller, customer, outsider, tenant, other_tenant):
        from agora.services.users import get_users

        ids = {u.id for u in get_users(customer_ctx, tenant.id)}
        assert {seller.id, customer.id} <= ids
        assert outsider.id not in ids
        with pytest.raises(AuthorizationError):
            get_users(customer_ctx, other_tenant.id)

    def test_get_users_is_audited(self, admin_ctx):
        from agora.models.audit import AuditLog
        from agora.services.users import get_users

        get_users(admin_ctx)
        entry = admin_ctx.db.query(AuditLog).one()
        assert entry.event_type == "admin.data_export"
        assert entry.details["data_type"] == "users"

    def test_get_user_by_email(self, customer_ctx, admin_ctx, seller, customer):
        from agora.services.users import get_user_by_email

        assert get_user_by_email(customer_ctx, customer.email).id == customer.id
        assert get_user_by_email(admin_ctx, seller.email).id == seller.id
        with pytest.raises(AuthorizationError):
            get_user_by_email(customer_ctx, seller.email)

    def test_get_user_by_id(self, customer_ctx, outsider_ctx, seller):
        from agora.services.users import get_user_by_id

        assert get_user_by_id(customer_ctx, seller.id).id == seller.id
        with pytest.raises(AuthorizationError):
            get_user_by_id(outsider_ctx, seller.id)


class TestUserMutations:
    """Creating, updating and deleting users."""

    def test_create_user_as_admin(self, admin_ctx, tenant):
        from agora.models.audit import AuditLog
        from agora.schemas.user import UserCreate
        from agora.services.users import create_user

        user = create_user(admin_ctx, UserCreate(
            name="New Seller", email="new@acme.test", role="seller", tenant_id=tenant.id,
        ))
        assert user.role == "seller"
        entry = admin_ctx.db.query(AuditLog).one()
        assert entry.event_type == "user.created"
        assert entry.resource_id == str(user.id)

    def test_create_user_requires_admin(self, customer_ctx):
        from agora.models.audit import AuditLog
        from agora.schemas.user import UserCreate
        from agora.services.users import create_user

        with pytest.raises(AuthorizationError):
            create_user(customer_ctx, UserCreate(name="X", email="x@acme.test"))
        entry = customer_ctx.db.query(AuditLog).one()
        assert entry.event_type == "user.created.failed"
        assert entry.status == "failure"

    def test_duplicate_email_conflicts(self, admin_ctx, customer):
        from agora.schemas.user import UserCreate
        from agora.services.users import create_user

        with pytest.raises(ConflictError):
            create_user(admin_ctx, UserCreate(name="Dup", email=customer.email))

    def test_invalid_email_rejected_by_schema(self):
        from pydantic import ValidationError as SchemaError
        from agora.schemas.user import UserCreate

        with pytest.raises(SchemaError):
            UserCreate(name="Bad", email="not-an-email")

    def test_owner_updates_profile(self, customer_ctx, customer, clock):
        from agora.schemas.user import UserUpdate
        from agora.services.users import update_user

        clock.advance(minutes=5)
        user = update_user(customer_ctx, customer.id, UserUpdate(bio="Hello", username="cust"))
        assert user.bio == "Hello"
        assert user.username == "cust"
        assert user.updated_at == clock()

    def test_owner_cannot_change_role(self, customer_ctx, customer):
        from agora.schemas.user import UserUpdate
        from agora.services.users import update_user

        with pytest.raises(AuthorizationError):
            update_user(customer_ctx, customer.id, UserUpdate(role="admin"))

    def test_admin_role_change_is_audited(self, admin_ctx, customer):
        from agora.models.audit import AuditLog
        from agora.schemas.user import UserUpdate
        from agora.services.users import update_user

        update_user(admin_ctx, customer.id, UserUpdate(role="seller"))
        events = {e.event_type for e in admin_ctx.db.query(AuditLog).all()}
        assert events == {"user.updated", "user.role_changed"}

    def test_cannot_edit_someone_else(self, customer_ctx, seller):
        from agora.schemas.user import UserUpdate
        from agora.services.users import update_user

        with pytest.raises(AuthorizationError):
            update_user(customer_ctx, seller.id, UserUpdate(bio="hacked"))

    def test_delete_user(self, admin_ctx, make_user, tenant):
        from agora.models.user import User
        from agora.services.users import delete_user

        doomed_id = make_user("doomed@acme.test", tenant=tenant).id
        delete_user(admin_ctx, doomed_id)
        assert admin_ctx.db.get(User, doomed_id) is None

    def test_delete_user_recounts_post_likes(self, admin_ctx, make_user, ctx_for, tenant, post):
        from agora.models.forum import ForumPostLike
        from agora.services.forum import toggle_post_like
        from agora.services.users import delete_user

        fan = make_user("fan@acme.test", tenant=tenant)
        assert toggle_post_like(ctx_for(fan), post.id).likes == 1

        delete_user(admin_ctx, fan.id)

        admin_ctx.db.refresh(post)
        assert admin_ctx.db.query(ForumPostLike).count() == 0
        assert post.likes == 0

    def test_delete_self_refused(self, admin_ctx, admin):
        from agora.services.users import delete_user

        with pytest.raises(ValidationError):
            delete_user(admin_ctx, admin.id)

    def test_delete_user_with_content_conflicts(self, admin_ctx, seller, product):
        from agora.services.users import delete_user

        with pytest.raises(ConflictError):
            delete_user(admin_ctx, seller.id)

    def test_delete_missing_user(self, admin_ctx):
        import uuid
        from agora.services.users import delete_user

        with pytest.raises(NotFoundError):
            delete_user(admin_ctx, uuid.uuid4())


class TestTenants:
    """Tenant lookups and admin writes."""

    def _payload(self, slug):
        from agora.schemas.tenant import TenantCreate

        return TenantCreate(
            name="Initech",
            slug=slug,
            domain="seller",
            settings={
                "site_name": "Initech",
                "site_description": "TPS reports",
                "primary_color": "#000",
                "secondary_color": "#fff",
            },
        )

    def test_lookups(self, anon_ctx, tenant):
        from agora.services.tenants import get_tenant_by_domain, get_tenant_by_id, get_tenant_by_slug, get_tenants

        assert get_tenant_by_slug(anon_ctx, "acme").id == tenant.id
        assert get_tenant_by_domain(anon_ctx, "marketplace").id == tenant.id
        assert get_tenant_by_id(anon_ctx, tenant.id).slug == "acme"
        assert [t.slug for t in get_tenants(anon_ctx)] == ["acme"]

    def test_create_tenant(self, admin_ctx):
        from agora.services.tenants import create_tenant

        created = create_tenant(admin_ctx, self._payload("initech"))
        assert created.settings["site_name"] == "Initech"

    def test_create_tenant_requires_admin(self, seller_ctx):
        from agora.services.tenants import create_tenant

        with pytest.raises(AuthorizationError):
            create_tenant(seller_ctx, self._payload("initech"))

    def test_duplicate_slug_conflicts(self, admin_ctx, tenant):
        from agora.services.tenants import create_tenant

        with pytest.raises(ConflictError):
            create_tenant(admin_ctx, self._payload("acme"))

    def test_invalid_slug_rejected_by_schema(self):
        from pydantic import ValidationError as SchemaError

        with pytest.raises(SchemaError):
            self._payload("Not A Slug")

    def test_update_tenant(self, admin_ctx, tenant):
        from agora.schemas.tenant import TenantUpdate
        from agora.services.tenants import update_tenant

        updated = update_tenant(admin_ctx, tenant.id, TenantUpdate(name="Acme Corp"))
        assert updated.name == "Acme Corp"
        assert updated.slug == "acme"
