"""
Setting model — one global key/value pair.

The UNIQUE constraint on `key` is what set_setting() upserts against
(INSERT … ON CONFLICT(key) DO UPDATE).
"""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from pool_gateway.core.database import Base


class SettingRow(Base):
    """Global configuration entry."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = ({"sqlite_autoincrement": True},)

    def __repr__(self) -> str:
        return f"<SettingRow key={self.key!r}>"
