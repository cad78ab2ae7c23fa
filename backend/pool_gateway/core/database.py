"""
Async engine factory and ORM base.

Rules enforced:
  • Every DB call goes through AsyncSession.
  • The engine is NOT a module-level singleton: the Store builds one per
    location and is the only owner of it.
  • The declarative Base is shared across all models so schema setup
    works from a single metadata object.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


# ── ORM Base ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Shared declarative base for all SQLAlchemy models."""


# ── Engine ──────────────────────────────────────────────────
def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for one store location.

    Connecting is lazy — nothing touches the file until the first
    connection is checked out.
    """
    return create_async_engine(url, echo=echo)


# ── Session factory ─────────────────────────────────────────
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # rows are converted to records after commit
    )
