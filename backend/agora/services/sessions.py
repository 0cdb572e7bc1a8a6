"""Sign-up, sign-in and session lifecycle."""
import logging
from dataclasses import replace
from datetime import timedelta
from typing import Optional
from uuid import UUID

from agora.config import get_settings
from agora.context import Context, Identity
from agora.errors import AuthError, ConflictError, NotFoundError
from agora.models.tenant import Tenant
from agora.models.user import User, UserSession
from agora.schemas.user import AuthResult, SessionInfo, SessionRead, SignInRequest, SignUpRequest, UserRead
from agora.security import create_access_token, get_password_hash, verify_password
from agora.services.audit import AuditEventType, log_admin_action, log_security_event
from agora.services.authorization import is_admin, require_ownership
from agora.validation import Role

logger = logging.getLogger(__name__)


def _tenant_for_domain(ctx: Context, domain) -> Tenant:
    tenant = ctx.db.query(Tenant).filter(Tenant.domain == domain.value).first()
    if tenant is None:
        raise NotFoundError("Tenant for domain", domain.value)
    return tenant


def _open_session(ctx: Context, user: User) -> AuthResult:
    settings = get_settings()
    session = UserSession(
        user_id=user.id,
        expires_at=ctx.system_time() + timedelta(days=settings.session_ttl_days),
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
        created_at=ctx.system_time(),
    )
    ctx.db.add(session)
    ctx.db.commit()
    ctx.db.refresh(session)

    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "sid": str(session.id),
            "tenant_id": str(user.tenant_id) if user.tenant_id else None,
            "role": user.role,
        },
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )
    return AuthResult(
        session=SessionRead.model_validate(session),
        user=UserRead.model_validate(user),
        access_token=access_token,
    )


def sign_up(ctx: Context, data: SignUpRequest) -> AuthResult:
    """Register a customer in the tenant serving ``tenant_domain`` and sign them in."""
    if ctx.db.query(User).filter(User.email == data.email).first():
        raise ConflictError("User already exists")

    tenant = _tenant_for_domain(ctx, data.tenant_domain)

    now = ctx.system_time()
    user = User(
        name=data.name,
        email=data.email,
        hashed_password=get_password_hash(data.password),
        role=Role.CUSTOMER.value,
        tenant_id=tenant.id,
        email_verified=False,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(user)
    ctx.db.commit()
    ctx.db.refresh(user)

    logger.info(f"User signed up: {user.id} in tenant {tenant.slug}")
    return _open_session(ctx, user)


def sign_in(ctx: Context, data: SignInRequest) -> AuthResult:
    user = ctx.db.query(User).filter(User.email == data.email).first()

    if user is None or not user.hashed_password or not verify_password(data.password, user.hashed_password):
        log_security_event(ctx, AuditEventType.SECURITY_AUTH_FAILURE, {
            "email": data.email,
            "reason": "invalid credentials",
        })
        raise AuthError("Invalid email or password")

    # Validates the domain even though admins are not bound to it
    _tenant_for_domain(ctx, data.tenant_domain)

    result = _open_session(ctx, user)
    if is_admin(user):
        # The caller is anonymous until now; attribute the entry to the admin
        admin_ctx = replace(ctx, identity=Identity(
            subject=str(user.id), email=user.email, name=user.name, session_id=result.session.id,
        ))
        log_admin_action(admin_ctx, "login", {"session_id": result.session.id})
    return result


def get_session(ctx: Context, session_id: UUID) -> Optional[SessionInfo]:
    """Session plus its user, or None when expired or orphaned."""
    session = ctx.db.get(UserSession, session_id)
    if session is None or session.expires_at < ctx.system_time():
        return None

    user = ctx.db.get(User, session.user_id)
    if user is None:
        return None

    return SessionInfo(
        session=SessionRead.model_validate(session),
        user=UserRead.model_validate(user),
    )


def sign_out(ctx: Context, session_id: UUID) -> None:
    session = ctx.db.get(UserSession, session_id)
    if session is None:
        raise NotFoundError("Session", session_id)

    require_ownership(ctx, session.user_id)

    ctx.db.delete(session)
    ctx.db.commit()


def cleanup_expired_sessions(ctx: Context) -> int:
    """Delete every session whose expiry has passed; returns the count."""
    deleted = ctx.db.query(UserSession).filter(
        UserSession.expires_at < ctx.system_time()
    ).delete(synchronize_session=False)
    ctx.db.commit()

    logger.info(f"Removed {deleted} expired sessions")
    return deleted
