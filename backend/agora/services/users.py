"""User queries and mutations."""
import logging
from typing import List, Optional
from uuid import UUID

from agora.context import Context
from agora.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from agora.models.commerce import Order, Product
from agora.models.forum import (
    CampaignParticipant, ForumBookmark, ForumComment, ForumPost, ForumPostLike, UserReputation,
)
from agora.models.tenant import Tenant
from agora.models.user import User
from agora.schemas.user import UserCreate, UserUpdate
from agora.security import get_password_hash
from agora.services.audit import AuditEventType, audit_read, log_audit_event, with_audit_logging
from agora.services.authorization import (
    is_admin, require_admin, require_ownership, require_tenant_access, require_user, same_id,
)
from agora.services.forum import recount_post_likes

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"image", "username", "bio", "tenant_id"}


def get_user_by_email(ctx: Context, email: str) -> Optional[User]:
    """Callers may look themselves up; admins may look anyone up."""
    caller = require_user(ctx)
    if caller.email != email and not is_admin(caller):
        raise AuthorizationError("Access denied. You may only look up your own account.")
    return ctx.db.query(User).filter(User.email == email).first()


def get_user_by_id(ctx: Context, user_id: UUID) -> Optional[User]:
    """Visible to the user, admins, and members of the same tenant."""
    caller = require_user(ctx)
    user = ctx.db.get(User, user_id)
    if user is None:
        return None
    if not (is_admin(caller) or same_id(caller.id, user.id) or same_id(caller.tenant_id, user.tenant_id)):
        raise AuthorizationError("Access denied. You do not have permission to access this user.")
    return user


def get_users(ctx: Context, tenant_id: Optional[UUID] = None) -> List[User]:
    """List users of one tenant, or of every tenant for admins."""
    if tenant_id is None:
        require_admin(ctx)
        users = ctx.db.query(User).order_by(User.created_at).all()
    else:
        require_tenant_access(ctx, tenant_id)
        users = ctx.db.query(User).filter(User.tenant_id == tenant_id).order_by(User.created_at).all()

    audit_read(ctx, "get_users", "users", {"tenant_id": tenant_id, "count": len(users)})
    return users


def _ensure_unique(ctx: Context, email: Optional[str], username: Optional[str], exclude_id=None):
    if email:
        existing = ctx.db.query(User).filter(User.email == email).first()
        if existing and not same_id(existing.id, exclude_id):
            raise ConflictError("Email already registered")
    if username:
        existing = ctx.db.query(User).filter(User.username == username).first()
        if existing and not same_id(existing.id, exclude_id):
            raise ConflictError("Username already taken")


def _ensure_tenant(ctx: Context, tenant_id: Optional[UUID]):
    if tenant_id is not None and ctx.db.get(Tenant, tenant_id) is None:
        raise NotFoundError("Tenant", tenant_id)


@with_audit_logging(AuditEventType.USER_CREATED, "user")
def create_user(ctx: Context, data: UserCreate) -> User:
    require_admin(ctx)
    _ensure_tenant(ctx, data.tenant_id)
    _ensure_unique(ctx, data.email, data.username)

    now = ctx.system_time()
    user = User(
        name=data.name,
        email=data.email,
        role=data.role.value,
        tenant_id=data.tenant_id,
        username=data.username,
        hashed_password=get_password_hash(data.password) if data.password else None,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(user)
    ctx.db.commit()
    ctx.db.refresh(user)
    logger.info(f"Created user {user.id} ({user.role})")
    return user


@with_audit_logging(AuditEventType.USER_UPDATED, "user", id_arg="user_id")
def update_user(ctx: Context, user_id: UUID, update: UserUpdate) -> User:
    """Patch a profile. Only admins may change role or tenant."""
    user = ctx.db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    caller = require_ownership(ctx, user.id)

    update_data = {
        k: v for k, v in update.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    if ("role" in update_data or "tenant_id" in update_data) and not is_admin(caller):
        raise AuthorizationError("Access denied. Only admins can change roles or tenants.")

    _ensure_unique(ctx, update_data.get("email"), update_data.get("username"), exclude_id=user.id)
    if update_data.get("tenant_id") is not None:
        _ensure_tenant(ctx, update_data["tenant_id"])

    old_role = user.role
    if "role" in update_data:
        update_data["role"] = update_data["role"].value

    for field, value in update_data.items():
        setattr(user, field, value)
    user.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(user)

    if user.role != old_role:
        log_audit_event(
            ctx,
            AuditEventType.USER_ROLE_CHANGED,
            {"from": old_role, "to": user.role},
            user.id,
            "user",
        )
    return user


@with_audit_logging(AuditEventType.USER_DELETED, "user", id_arg="user_id")
def delete_user(ctx: Context, user_id: UUID) -> None:
    admin = require_admin(ctx)

    user = ctx.db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if same_id(user.id, admin.id):
        raise ValidationError("Cannot delete yourself")

    owns_content = (
        ctx.db.query(Product.id).filter(Product.seller_id == user.id).first()
        or ctx.db.query(Order.id).filter(Order.customer_id == user.id).first()
        or ctx.db.query(ForumPost.id).filter(ForumPost.author_id == user.id).first()
        or ctx.db.query(ForumComment.id).filter(ForumComment.author_id == user.id).first()
    )
    if owns_content:
        raise ConflictError("User still owns products, orders or forum content")

    liked_post_ids = [
        post_id for (post_id,) in
        ctx.db.query(ForumPostLike.post_id).filter(ForumPostLike.user_id == user.id).all()
    ]

    # Join rows go with the user; they carry no content of their own
    for model in (ForumPostLike, ForumBookmark, CampaignParticipant, UserReputation):
        ctx.db.query(model).filter(model.user_id == user.id).delete(synchronize_session=False)

    for post_id in liked_post_ids:
        recount_post_likes(ctx, post_id)

    ctx.db.delete(user)
    ctx.db.commit()
