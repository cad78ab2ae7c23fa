"""
Pydantic v2 record for API keys.

Field visibility differs per read path:
  • create_api_key      — everything, including key_full (shown once).
  • list_api_keys       — key_full, never key_hash.
  • get_api_key_by_hash — key_hash, no key_full.
  • get_api_key         — neither.

key_hash is excluded from serialization regardless, so a record can be
returned from an HTTP handler without leaking it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_KEY_PREFIX = "sk-"


class ApiKey(BaseModel):
    """Caller-presented credential, identified by its SHA-256 hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    name: str = Field(..., examples=["ci-runner"])
    key_hash: str | None = Field(
        default=None,
        exclude=True,
        description="SHA-256 hex digest. Internal lookups only.",
    )
    key_full: str | None = Field(
        default=None,
        description="Plaintext, kept for display. Not authoritative.",
    )
    key_prefix: str = DEFAULT_KEY_PREFIX
    key_suffix: str = Field(..., examples=["3f9a"])
    enabled: bool = True
    last_used_at: datetime | None = None
    created_at: datetime | None = None
