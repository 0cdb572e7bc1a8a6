"""
Authentication and authorization helpers.

Every helper takes the request Context and either returns the verified
caller or raises. Failures are never reported as a falsy return value:
AuthError means there is no identity, AuthorizationError means the
identity is not allowed.
"""
from typing import Iterable, Optional
from uuid import UUID

from agora.context import Context, Identity
from agora.errors import AuthError, AuthorizationError
from agora.models.user import User
from agora.validation import Role, is_valid_role


def same_id(a, b) -> bool:
    """Compare ids that may arrive as UUID or str."""
    if a is None or b is None:
        return False
    return str(a) == str(b)


def get_current_identity(ctx: Context) -> Optional[Identity]:
    """The caller's identity, or None when anonymous."""
    return ctx.get_user_identity()


def require_auth(ctx: Context) -> Identity:
    identity = ctx.get_user_identity()
    if identity is None:
        raise AuthError("Authentication required. Please sign in.")
    return identity


def require_user(ctx: Context) -> User:
    """Resolve the identity to its stored user record (looked up by email)."""
    identity = require_auth(ctx)

    if not identity.email:
        raise AuthError("Identity must have an email address")

    user = ctx.db.query(User).filter(User.email == identity.email).first()
    if user is None:
        raise AuthorizationError("User not found in database. Please complete registration.")
    return user


def require_role(ctx: Context, allowed_roles: Iterable[Role | str]) -> User:
    user = require_user(ctx)

    if not is_valid_role(user.role):
        raise AuthorizationError(f"Invalid user role: {user.role}")

    allowed = [Role(r).value for r in allowed_roles]
    if user.role not in allowed:
        raise AuthorizationError(f"Access denied. Required role: {' or '.join(allowed)}")
    return user


def require_admin(ctx: Context) -> User:
    return require_role(ctx, [Role.ADMIN])


def require_tenant_access(ctx: Context, tenant_id: UUID) -> User:
    """Admins may access any tenant; everyone else only their own."""
    user = require_user(ctx)

    if is_admin(user):
        return user

    if not same_id(user.tenant_id, tenant_id):
        raise AuthorizationError(
            "Access denied. You do not have permission to access this tenant."
        )
    return user


def require_ownership(ctx: Context, resource_owner_id: UUID) -> User:
    user = require_user(ctx)

    if is_admin(user):
        return user

    if not same_id(user.id, resource_owner_id):
        raise AuthorizationError(
            "Access denied. You do not have permission to access this resource."
        )
    return user


def require_product_access(ctx: Context, product) -> User:
    """Admins, or the seller who owns the product."""
    user = require_user(ctx)

    if is_admin(user):
        return user

    if is_seller(user) and same_id(user.id, product.seller_id):
        return user

    raise AuthorizationError(
        "Access denied. You do not have permission to modify this product."
    )


def require_post_access(ctx: Context, post) -> User:
    """Admins, the author, or any member of the post's tenant."""
    user = require_user(ctx)

    if is_admin(user):
        return user

    if same_id(user.id, post.author_id):
        return user

    if same_id(user.tenant_id, post.tenant_id):
        return user

    raise AuthorizationError(
        "Access denied. You do not have permission to access this post."
    )


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.ADMIN.value


def is_seller(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.SELLER.value


def is_customer(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.CUSTOMER.value
