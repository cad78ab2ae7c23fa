"""Datetime helpers.

SQLite has no timezone-aware timestamp type, so the store keeps UTC as
naive datetimes. ``utcnow()`` is the one place that convention lives.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)
