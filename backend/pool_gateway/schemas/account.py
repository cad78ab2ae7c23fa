"""
Pydantic v2 record for pool accounts.

The Store accepts and returns `Account`; ORM rows never leave the Store.
Server-owned fields (id, request_count, last_used_at, created_at,
updated_at) are ignored on create and overwritten on read.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AGENT_MODE = "claude-opus-4.5"


class Account(BaseModel):
    """One upstream identity available to the external balancer."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(
        default=None,
        description="Store-assigned identity; ignored on create.",
    )
    name: str = Field(..., examples=["primary"])
    session_id: str
    client_cookie: str
    client_uat: str
    project_id: str
    user_id: str
    agent_mode: str = DEFAULT_AGENT_MODE
    email: str = Field(..., examples=["ops@example.com"])
    weight: int = Field(
        default=1,
        description="Selection hint for the balancer. Not validated here.",
    )
    enabled: bool = True

    # ── Server-owned ────────────────────────────────────────
    request_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
