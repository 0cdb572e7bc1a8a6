"""Execution context handed to every service operation."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session


@dataclass
class Identity:
    """An already verified caller identity."""
    subject: str
    email: Optional[str] = None
    name: Optional[str] = None
    session_id: Optional[UUID] = None


@dataclass
class Context:
    """
    Request-scoped bundle of the document store and the identity provider.

    Services never reach for globals: the session, the caller and the clock
    all come from here.
    """
    db: Session
    identity: Optional[Identity] = None
    clock: Callable[[], datetime] = field(default=datetime.utcnow)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def get_user_identity(self) -> Optional[Identity]:
        return self.identity

    def system_time(self) -> datetime:
        return self.clock()
