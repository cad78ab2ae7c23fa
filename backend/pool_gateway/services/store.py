"""
Persistent store for accounts, global settings and API keys.

One Store instance owns one SQLite file through one AsyncEngine. Nothing
outside this module touches the engine or its sessions.

Concurrency:
  • A single ReadWriteLock covers all three tables. Reads share it,
    writes hold it exclusively. There are no per-table locks, so there is
    no lock ordering to get wrong.
  • Each operation runs in its own short-lived AsyncSession.

Errors:
  • Medium-level failures (SQLAlchemyError) are re-raised as StoreError,
    prefixed with the operation name.
  • get_setting / get_api_key_by_hash / get_api_key return ""/None for
    absent records — that is an expected outcome of untrusted input.
  • get_account / set_api_key_enabled / delete_api_key raise NotFoundError,
    because the caller asserted the record exists.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, select, text, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from pool_gateway.core.database import build_engine, build_session_factory
from pool_gateway.core.locks import ReadWriteLock
from pool_gateway.models.account import AccountRow
from pool_gateway.models.api_key import ApiKeyRow
from pool_gateway.models.setting import SettingRow
from pool_gateway.schemas.account import Account
from pool_gateway.schemas.api_key import ApiKey
from pool_gateway.services.errors import NotFoundError, StoreError, StoreUnavailableError
from pool_gateway.services.migrations import ensure_schema
from pool_gateway.utils.datetime import utcnow

logger = logging.getLogger(__name__)


class Store:
    """Concurrency-safe CRUD over Account, Setting and ApiKey records."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = build_session_factory(engine)
        self._lock = ReadWriteLock()

    # ── Lifecycle ───────────────────────────────────────────
    @classmethod
    async def open(cls, url: str, *, echo: bool = False) -> Store:
        """
        Connect to the store at ``url`` and bring its schema up to date.

        Raises:
            StoreUnavailableError: the location cannot be opened.
            StoreError: table/index creation failed.
        """
        engine: AsyncEngine | None = None
        location = url

        try:
            # Bad URLs and sync drivers fail here, before any connection
            engine = build_engine(url, echo=echo)
            location = engine.url.database or url
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            if engine is not None:
                await engine.dispose()
            raise StoreUnavailableError(f"cannot open store at {location}: {exc}") from exc

        try:
            await ensure_schema(engine)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StoreError(f"schema setup: {exc}") from exc

        logger.info("Store opened at %s ✓", location)
        return cls(engine)

    async def close(self) -> None:
        """Release the storage handle."""
        await self._engine.dispose()
        logger.info("Store closed ✓")

    # ── Session helpers ─────────────────────────────────────
    @asynccontextmanager
    async def _reading(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self._lock.read():
            async with self._session_factory() as session:
                try:
                    yield session
                except SQLAlchemyError as exc:
                    raise StoreError(f"{operation}: {exc}") from exc

    @asynccontextmanager
    async def _writing(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self._lock.write():
            async with self._session_factory() as session:
                try:
                    yield session
                except SQLAlchemyError as exc:
                    await session.rollback()
                    raise StoreError(f"{operation}: {exc}") from exc

    # ── Accounts ────────────────────────────────────────────
    async def create_account(self, account: Account) -> int:
        """Insert ``account`` and return its new id. Input id is ignored."""
        async with self._writing("create_account") as session:
            row = AccountRow(
                name=account.name,
                session_id=account.session_id,
                client_cookie=account.client_cookie,
                client_uat=account.client_uat,
                project_id=account.project_id,
                user_id=account.user_id,
                agent_mode=account.agent_mode,
                email=account.email,
                weight=account.weight,
                enabled=account.enabled,
            )
            session.add(row)
            await session.commit()
            return row.id

    async def update_account(self, account: Account) -> None:
        """
        Overwrite every mutable field of the account with ``account.id``.

        No existence check: updating an unknown id affects zero rows.
        """
        async with self._writing("update_account") as session:
            stmt = (
                update(AccountRow)
                .where(AccountRow.id == account.id)
                .values(
                    name=account.name,
                    session_id=account.session_id,
                    client_cookie=account.client_cookie,
                    client_uat=account.client_uat,
                    project_id=account.project_id,
                    user_id=account.user_id,
                    agent_mode=account.agent_mode,
                    email=account.email,
                    weight=account.weight,
                    enabled=account.enabled,
                    updated_at=utcnow(),
                )
            )
            await session.execute(stmt)
            await session.commit()

    async def delete_account(self, account_id: int) -> None:
        """Hard delete. Deleting an unknown id is not an error."""
        async with self._writing("delete_account") as session:
            await session.execute(delete(AccountRow).where(AccountRow.id == account_id))
            await session.commit()

    async def get_account(self, account_id: int) -> Account:
        """Raises NotFoundError if there is no such account."""
        async with self._reading("get_account") as session:
            row = await session.get(AccountRow, account_id)
            if row is None:
                raise NotFoundError("account", account_id)
            return Account.model_validate(row)

    async def list_accounts(self) -> list[Account]:
        """All accounts, ascending id."""
        async with self._reading("list_accounts") as session:
            rows = await session.scalars(select(AccountRow).order_by(AccountRow.id.asc()))
            return [Account.model_validate(row) for row in rows]

    async def list_enabled_accounts(self) -> list[Account]:
        """Accounts with enabled = true, ascending id."""
        async with self._reading("list_enabled_accounts") as session:
            stmt = (
                select(AccountRow)
                .where(AccountRow.enabled.is_(True))
                .order_by(AccountRow.id.asc())
            )
            rows = await session.scalars(stmt)
            return [Account.model_validate(row) for row in rows]

    async def increment_usage(self, account_id: int) -> None:
        """request_count += 1 and last_used_at = now, in one statement."""
        now = utcnow()
        async with self._writing("increment_usage") as session:
            stmt = (
                update(AccountRow)
                .where(AccountRow.id == account_id)
                .values(
                    request_count=AccountRow.request_count + 1,
                    last_used_at=now,
                    updated_at=now,
                )
            )
            await session.execute(stmt)
            await session.commit()

    # ── Settings ────────────────────────────────────────────
    async def get_setting(self, key: str) -> str:
        """Value for ``key``, or "" if it was never set."""
        async with self._reading("get_setting") as session:
            value = await session.scalar(select(SettingRow.value).where(SettingRow.key == key))
            return value if value is not None else ""

    async def set_setting(self, key: str, value: str) -> None:
        """Insert or overwrite, in a single statement."""
        async with self._writing("set_setting") as session:
            stmt = sqlite_insert(SettingRow).values(key=key, value=value)
            stmt = stmt.on_conflict_do_update(
                index_elements=["key"],
                set_={"value": stmt.excluded.value},
            )
            await session.execute(stmt)
            await session.commit()

    # ── API keys ────────────────────────────────────────────
    async def create_api_key(self, api_key: ApiKey) -> ApiKey:
        """
        Persist a key produced by the key-generation collaborator.

        Returns the stored record, re-read after commit so enabled and
        the timestamps reflect what the database actually holds.
        """
        async with self._writing("create_api_key") as session:
            row = ApiKeyRow(
                name=api_key.name,
                key_hash=api_key.key_hash,
                key_full=api_key.key_full or "",
                key_prefix=api_key.key_prefix,
                key_suffix=api_key.key_suffix,
                enabled=api_key.enabled,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return ApiKey.model_validate(row)

    async def list_api_keys(self) -> list[ApiKey]:
        """All keys, ascending id. key_hash is never selected."""
        async with self._reading("list_api_keys") as session:
            stmt = select(
                ApiKeyRow.id,
                ApiKeyRow.name,
                ApiKeyRow.key_full,
                ApiKeyRow.key_prefix,
                ApiKeyRow.key_suffix,
                ApiKeyRow.enabled,
                ApiKeyRow.last_used_at,
                ApiKeyRow.created_at,
            ).order_by(ApiKeyRow.id.asc())
            result = await session.execute(stmt)
            return [ApiKey.model_validate(row) for row in result]

    async def get_api_key_by_hash(self, key_hash: str) -> ApiKey | None:
        """Authentication lookup. None when no key has this hash."""
        async with self._reading("get_api_key_by_hash") as session:
            stmt = select(
                ApiKeyRow.id,
                ApiKeyRow.name,
                ApiKeyRow.key_hash,
                ApiKeyRow.key_prefix,
                ApiKeyRow.key_suffix,
                ApiKeyRow.enabled,
                ApiKeyRow.last_used_at,
                ApiKeyRow.created_at,
            ).where(ApiKeyRow.key_hash == key_hash)
            row = (await session.execute(stmt)).one_or_none()
            return ApiKey.model_validate(row) if row is not None else None

    async def get_api_key(self, api_key_id: int) -> ApiKey | None:
        """Management lookup. None when missing; no hash, no plaintext."""
        async with self._reading("get_api_key") as session:
            stmt = select(
                ApiKeyRow.id,
                ApiKeyRow.name,
                ApiKeyRow.key_prefix,
                ApiKeyRow.key_suffix,
                ApiKeyRow.enabled,
                ApiKeyRow.last_used_at,
                ApiKeyRow.created_at,
            ).where(ApiKeyRow.id == api_key_id)
            row = (await session.execute(stmt)).one_or_none()
            return ApiKey.model_validate(row) if row is not None else None

    async def set_api_key_enabled(self, api_key_id: int, enabled: bool) -> None:
        """Raises NotFoundError if no row was affected."""
        async with self._writing("set_api_key_enabled") as session:
            result = await session.execute(
                update(ApiKeyRow).where(ApiKeyRow.id == api_key_id).values(enabled=enabled)
            )
            if result.rowcount == 0:
                raise NotFoundError("api key", api_key_id)
            await session.commit()

    async def touch_api_key(self, api_key_id: int) -> None:
        """Set last_used_at = now. Called fire-and-forget by the gateway."""
        async with self._writing("touch_api_key") as session:
            await session.execute(
                update(ApiKeyRow).where(ApiKeyRow.id == api_key_id).values(last_used_at=utcnow())
            )
            await session.commit()

    async def delete_api_key(self, api_key_id: int) -> None:
        """Hard delete. Raises NotFoundError if no row was affected."""
        async with self._writing("delete_api_key") as session:
            result = await session.execute(delete(ApiKeyRow).where(ApiKeyRow.id == api_key_id))
            if result.rowcount == 0:
                raise NotFoundError("api key", api_key_id)
            await session.commit()
