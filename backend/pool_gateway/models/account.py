"""
Account model — one upstream identity in the pool.

Design notes:
  • id is AUTOINCREMENT so a deleted account's id is never handed out again.
  • request_count only ever moves through `request_count + 1` in SQL,
    never through a read-modify-write in Python.
  • weight and enabled are hints for the external balancer; nothing here
    interprets them beyond the enabled filter.
  • The enabled index backs list_enabled_accounts().
"""

import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from pool_gateway.core.database import Base
from pool_gateway.schemas.account import DEFAULT_AGENT_MODE
from pool_gateway.utils.datetime import utcnow


class AccountRow(Base):
    """Session material and usage counters for one upstream account."""

    __tablename__ = "accounts"

    # ── Identity ────────────────────────────────────────────
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Session material ────────────────────────────────────
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
    client_cookie: Mapped[str] = mapped_column(Text, nullable=False)
    client_uat: Mapped[str] = mapped_column(Text, nullable=False)
    project_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    agent_mode: Mapped[str] = mapped_column(
        Text,
        default=DEFAULT_AGENT_MODE,
        server_default=DEFAULT_AGENT_MODE,
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Balancer hints ──────────────────────────────────────
    weight: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"))
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("1"))

    # ── Usage ───────────────────────────────────────────────
    request_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    last_used_at: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)

    # ── Timestamps ──────────────────────────────────────────
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_accounts_enabled", "enabled"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<AccountRow id={self.id} name={self.name!r} "
            f"enabled={self.enabled} requests={self.request_count}>"
        )
