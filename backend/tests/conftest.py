"""Pytest configuration and fixtures."""
from datetime import datetime, timedelta

import pytest

from agora.config import Settings
from agora.context import Context, Identity
from agora.database import Database


DEFAULT_SETTINGS = {
    "site_name": "Acme",
    "site_description": "Acme storefront",
    "primary_color": "#111111",
    "secondary_color": "#eeeeee",
}


class FrozenClock:
    """Injectable clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(scope="session")
def settings():
    """Test settings."""
    return Settings(
        database_url="sqlite:///:memory:",
        redis_url="redis://localhost:6379/0",
        secret_key="test-secret-key",
        debug=True,
    )


@pytest.fixture(scope="function")
def database(settings):
    """A fresh in-memory database per test."""
    database = Database.from_settings(settings)
    database.create_all()

    yield database

    database.drop_all()
    database.dispose()


@pytest.fixture(scope="function")
def db_session(database):
    """Create a test database session."""
    session = database.session()

    yield session

    session.close()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 15, 12, 0, 0))


def _make_tenant(db_session, slug, domain):
    from agora.models.tenant import Tenant

    tenant = Tenant(
        name=slug.title(),
        slug=slug,
        domain=domain,
        settings={**DEFAULT_SETTINGS, "site_name": slug.title()},
    )
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def tenant(db_session):
    """Primary marketplace tenant."""
    return _make_tenant(db_session, "acme", "marketplace")


@pytest.fixture
def other_tenant(db_session):
    """A second tenant nobody in the primary tenant belongs to."""
    return _make_tenant(db_session, "globex", "forum")


@pytest.fixture
def make_user(db_session):
    """Factory for users; only users that need to sign in get a bcrypt hash."""
    from agora.models.user import User
    from agora.security import get_password_hash

    def _make(email, role="customer", tenant=None, password=None, **extra):
        user = User(
            name=email.split("@")[0].title(),
            email=email,
            role=role,
            tenant_id=tenant.id if tenant else None,
            hashed_password=get_password_hash(password) if password else None,
            **extra,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user, tenant):
    return make_user("admin@acme.test", role="admin", tenant=tenant)


@pytest.fixture
def seller(make_user, tenant):
    return make_user("seller@acme.test", role="seller", tenant=tenant)


@pytest.fixture
def customer(make_user, tenant):
    return make_user("customer@acme.test", role="customer", tenant=tenant)


@pytest.fixture
def outsider(make_user, other_tenant):
    return make_user("outsider@globex.test", role="customer", tenant=other_tenant)


@pytest.fixture
def ctx_for(db_session, clock):
    """Build a Context acting as the given user (None for anonymous)."""

    def _ctx(user=None):
        identity = Identity(subject=str(user.id), email=user.email, name=user.name) if user else None
        return Context(db=db_session, identity=identity, clock=clock, ip_address="127.0.0.1", user_agent="pytest")

    return _ctx


@pytest.fixture
def anon_ctx(ctx_for):
    return ctx_for(None)


@pytest.fixture
def admin_ctx(ctx_for, admin):
    return ctx_for(admin)


@pytest.fixture
def seller_ctx(ctx_for, seller):
    return ctx_for(seller)


@pytest.fixture
def customer_ctx(ctx_for, customer):
    return ctx_for(customer)


@pytest.fixture
def outsider_ctx(ctx_for, outsider):
    return ctx_for(outsider)


@pytest.fixture
def product(db_session, tenant, seller):
    from agora.models.commerce import Product

    product = Product(
        tenant_id=tenant.id,
        seller_id=seller.id,
        name="Widget",
        description="A widget",
        price=19.99,
        currency="USD",
        stock=10,
        status="active",
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def post(db_session, tenant, customer, clock):
    from agora.models.forum import ForumPost

    post = ForumPost(
        tenant_id=tenant.id,
        author_id=customer.id,
        title="Hello forum",
        content="First post content",
        category="general",
        created_at=clock(),
        updated_at=clock(),
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture
def client(settings, database):
    """API client bound to the test database; the lifespan does not run."""
    from fastapi.testclient import TestClient
    from agora.main import create_app

    app = create_app(settings)
    app.state.database = database
    return TestClient(app)
