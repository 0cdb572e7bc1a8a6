"""Shared router dependencies: bearer identity and the request Context."""
from datetime import datetime
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from agora.context import Context, Identity
from agora.database import get_db
from agora.errors import AuthError
from agora.models.user import UserSession
from agora.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/sign-in", auto_error=False)


def get_identity(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Identity | None:
    """
    Resolve the bearer token to an Identity.

    No token means an anonymous caller. A token that fails verification, or
    whose session was signed out or has expired, is rejected.
    """
    if token is None:
        return None

    payload = decode_access_token(token)
    if payload is None or not payload.get("sub") or not payload.get("sid"):
        raise AuthError("Could not validate credentials")

    try:
        session_id = UUID(payload["sid"])
    except ValueError:
        raise AuthError("Could not validate credentials")

    session = db.get(UserSession, session_id)
    if session is None or session.expires_at < datetime.utcnow():
        raise AuthError("Session expired. Please sign in again.")

    # The stored user is authoritative; the email claim goes stale on a profile change
    user = session.user
    if user is None or payload["sub"] != str(session.user_id):
        raise AuthError("Could not validate credentials")

    return Identity(
        subject=str(user.id),
        email=user.email,
        name=user.name,
        session_id=session_id,
    )


def get_context(
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
) -> Context:
    return Context(
        db=db,
        identity=identity,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
