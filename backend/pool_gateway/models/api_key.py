"""
API key model — a caller-presented credential.

Security notes:
  • key_hash (SHA-256 hex) is the only thing authentication compares.
    It is UNIQUE and indexed; the hash lookup is the hot read path.
  • key_full keeps the plaintext for one-time display in a management UI.
    It is informational only and defaults to '' for keys created before
    the column existed (see services/migrations.py).
  • key_prefix / key_suffix identify a key to humans without exposing it.
  • Deletion is a hard delete; disabling is done through `enabled`.
"""

import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from pool_gateway.core.database import Base
from pool_gateway.schemas.api_key import DEFAULT_KEY_PREFIX
from pool_gateway.utils.datetime import utcnow


class ApiKeyRow(Base):
    """Hashed API key."""

    __tablename__ = "api_keys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    key_hash: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    key_full: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default="",
    )
    key_prefix: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_KEY_PREFIX,
        server_default=DEFAULT_KEY_PREFIX,
    )
    key_suffix: Mapped[str] = mapped_column(Text, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("1"))
    last_used_at: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_api_keys_key_hash", "key_hash"),
        Index("idx_api_keys_enabled", "enabled"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<ApiKeyRow id={self.id} prefix={self.key_prefix!r} "
            f"suffix={self.key_suffix!r} enabled={self.enabled}>"
        )
