"""
Database Configuration Module

SQLAlchemy 2.0 (synchronous) with PostgreSQL via psycopg2.

Session Management Pattern
==========================
"Session per request":
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends

Background jobs (view-count flush, ranking refresh) open their own
sessions from SessionLocal.

Soft Delete
===========
Rows that inherit SoftDeleteMixin are never physically removed. A
Session-wide ``do_orm_execute`` hook adds ``deleted_at IS NULL`` criteria
for every soft-deletable entity in every ORM SELECT, so read paths only
ever see active rows. Pass ``execution_options(include_deleted=True)`` on a
statement to see deleted rows as well.
"""

from collections.abc import Generator
from datetime import UTC, datetime

from sqlalchemy import DateTime, create_engine, event
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    ORMExecuteState,
    Session,
    mapped_column,
    sessionmaker,
    with_loader_criteria,
)

from reviewhub.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# - pool_pre_ping: test connection health before using
# - echo: log SQL in debug mode

engine = create_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    echo=settings.debug,
)


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


def utcnow() -> datetime:
    """Timezone-aware current time, used as the Python-side column default."""
    return datetime.now(UTC)


# =============================================================================
# Soft Delete
# =============================================================================
class SoftDeleteMixin:
    """
    Soft-delete state for a model: Active while ``deleted_at`` is NULL,
    Deleted(at) once it is set.

    Queries never need to filter on ``deleted_at`` themselves; see
    _exclude_soft_deleted below.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
        comment="Soft-delete timestamp (NULL while active)"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, at: datetime | None = None) -> None:
        """Move the row to the Deleted state. Deleting twice keeps the first timestamp."""
        if self.deleted_at is None:
            self.deleted_at = at or utcnow()


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
            )
        )


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, the route uses it, and the
    finally block closes it even if the handler raised.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Development and tests only; production schema changes go through Alembic.
    """
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables. Never use in production."""
    Base.metadata.drop_all(bind=engine)
