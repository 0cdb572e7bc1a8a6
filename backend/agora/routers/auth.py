"""Authentication router: sign-up, sign-in and sessions."""
from uuid import UUID

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import AuthError
from agora.routers.deps import get_context
from agora.schemas.user import AuthResult, SessionInfo, SignInRequest, SignUpRequest
from agora.services import sessions
from agora.services.authorization import require_auth

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/sign-up", response_model=AuthResult, status_code=status.HTTP_201_CREATED)
def sign_up(data: SignUpRequest, ctx: Context = Depends(get_context)):
    """Register a customer and open a session."""
    return sessions.sign_up(ctx, data)


@router.post("/sign-in", response_model=AuthResult)
def sign_in(data: SignInRequest, ctx: Context = Depends(get_context)):
    """Verify credentials and open a session."""
    return sessions.sign_in(ctx, data)


@router.get("/session", response_model=SessionInfo)
def current_session(ctx: Context = Depends(get_context)):
    """The session behind the bearer token."""
    identity = require_auth(ctx)
    info = sessions.get_session(ctx, identity.session_id)
    if info is None:
        raise AuthError("Session expired. Please sign in again.")
    return info


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(ctx: Context = Depends(get_context)):
    """End the session behind the bearer token."""
    identity = require_auth(ctx)
    sessions.sign_out(ctx, identity.session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_session(session_id: UUID, ctx: Context = Depends(get_context)):
    """End one of the caller's sessions (any session for admins)."""
    sessions.sign_out(ctx, session_id)
