"""Database setup with SQLAlchemy."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.pool import StaticPool
from fastapi import Request

from agora.config import Settings


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class Database:
    """Engine and session factory owned by one application (or worker) lifetime."""

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, pool_pre_ping=True, **engine_kwargs)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        if settings.database_url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in settings.database_url:
                kwargs["poolclass"] = StaticPool
            return cls(settings.database_url, **kwargs)
        return cls(settings.database_url, pool_size=10, max_overflow=20)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self):
        """Create all tables registered on the declarative base."""
        import agora.models  # noqa: F401  register mappers

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    """Dependency for database session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
