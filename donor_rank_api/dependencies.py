"""FastAPI dependencies for dependency injection."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Annotated, cast

from fastapi import Depends, HTTPException, Path
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from donor_rank_api.config import Settings
from donor_rank_api.services.organization import OrganizationContext, resolve_organization_context

# Global engine and session factory (created once at startup)
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_db(settings: Settings) -> None:
    """Initialize database engine and session factory.

    Should be called once at application startup, and by the batch command.
    """
    global _engine, _session_factory

    engine_options: dict = {"pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        engine_options.update(pool_size=5, max_overflow=10)

    _engine = create_engine(settings.database_url, **engine_options)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)


def _new_session() -> Session:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() at startup.")

    # Type cast after None check - we know it's not None here
    return cast(sessionmaker[Session], _session_factory)()


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session.

    Yields a SQLAlchemy session and ensures it's closed after use.
    """
    session = _new_session()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session for use outside request handling, rolled back on error."""
    session = _new_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_db() -> None:
    """Close database connections.

    Should be called at application shutdown.
    """
    global _engine, _session_factory
    if _engine:
        _engine.dispose()
    _engine = None
    _session_factory = None


# Type alias for dependency injection
DBSession = Annotated[Session, Depends(get_db)]


def get_organization_context(
        db: DBSession,
        organization_id: Annotated[int, Path(ge=1, description="Organization ID")],
) -> OrganizationContext:
    """Resolve the organization once per request; unknown organizations are a 404."""
    context = resolve_organization_context(db, organization_id)
    if context is None:
        raise HTTPException(status_code=404, detail=f"Organization {organization_id} not found")
    return context


OrgContext = Annotated[OrganizationContext, Depends(get_organization_context)]
