"""Unit tests for the API key gateway.

Tests credential extraction and the allow/deny decision against a real
store, plus the fire-and-forget last_used_at write.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pool_gateway.auth.errors import INVALID_API_KEY, MISSING_API_KEY, AuthenticationError
from pool_gateway.auth.gateway import ApiKeyGateway, extract_api_key
from pool_gateway.core.background import BackgroundRunner
from pool_gateway.services.errors import StoreError
from pool_gateway.services.store import Store
from tests.factories import make_api_key

SECRET = "sk-abc123"


class TestExtractApiKey:
    """Header precedence and trimming."""

    def test_x_api_key(self):
        assert extract_api_key({"x-api-key": SECRET}) == SECRET

    def test_x_api_key_trimmed(self):
        assert extract_api_key({"x-api-key": f"  {SECRET}\t"}) == SECRET

    def test_bearer(self):
        assert extract_api_key({"Authorization": f"Bearer {SECRET}"}) == SECRET

    def test_bearer_token_trimmed(self):
        assert extract_api_key({"Authorization": f"  Bearer   {SECRET}  "}) == SECRET

    def test_x_api_key_wins_over_bearer(self):
        headers = {"x-api-key": "sk-from-header", "Authorization": "Bearer sk-from-bearer"}
        assert extract_api_key(headers) == "sk-from-header"

    def test_blank_x_api_key_falls_through_to_bearer(self):
        headers = {"x-api-key": "   ", "Authorization": f"Bearer {SECRET}"}
        assert extract_api_key(headers) == SECRET

    def test_non_bearer_scheme_ignored(self):
        assert extract_api_key({"Authorization": f"Basic {SECRET}"}) == ""

    def test_scheme_is_case_sensitive(self):
        assert extract_api_key({"Authorization": f"bearer {SECRET}"}) == ""

    def test_bearer_without_token(self):
        assert extract_api_key({"Authorization": "Bearer"}) == ""
        assert extract_api_key({"Authorization": "Bearer    "}) == ""

    def test_no_headers(self):
        assert extract_api_key({}) == ""


class TestAuthenticate:
    """The allow/deny decision."""

    async def test_x_api_key_accepted(self, store, runner, gateway):
        """Scenario 1: enabled key via x-api-key is accepted."""
        created = await store.create_api_key(make_api_key(SECRET))

        api_key = await gateway.authenticate({"x-api-key": SECRET})

        assert api_key.id == created.id

    async def test_bearer_accepted(self, store, runner, gateway):
        """Scenario 2: the same key via Authorization: Bearer is accepted."""
        created = await store.create_api_key(make_api_key(SECRET))

        api_key = await gateway.authenticate({"Authorization": f"Bearer {SECRET}"})

        assert api_key.id == created.id

    async def test_missing_credential(self):
        """Scenario 3: no credential → missing, and the store is never consulted."""
        store = MagicMock(spec=Store)
        gateway = ApiKeyGateway(store, BackgroundRunner())

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.authenticate({})

        assert exc_info.value.message == MISSING_API_KEY
        assert store.mock_calls == []

    async def test_unknown_key(self, store, gateway):
        """Scenario 4: well-formed but unknown key → invalid."""
        await store.create_api_key(make_api_key(SECRET))

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.authenticate({"x-api-key": "sk-unknown"})

        assert exc_info.value.message == INVALID_API_KEY

    async def test_disabled_key_same_as_unknown(self, store, gateway):
        """Scenario 5: a disabled key is rejected exactly like an unknown one."""
        created = await store.create_api_key(make_api_key(SECRET))
        await store.set_api_key_enabled(created.id, False)

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.authenticate({"x-api-key": SECRET})

        assert exc_info.value.message == INVALID_API_KEY

    async def test_deleted_key_rejected(self, store, gateway):
        """Deleting a key then presenting its secret → invalid."""
        created = await store.create_api_key(make_api_key(SECRET))
        await gateway.authenticate({"x-api-key": SECRET})
        await store.delete_api_key(created.id)

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.authenticate({"x-api-key": SECRET})

        assert exc_info.value.message == INVALID_API_KEY

    async def test_store_failure_is_generic_rejection(self):
        """A lookup error never escapes; the caller sees invalid api key."""
        store = MagicMock(spec=Store)
        store.get_api_key_by_hash = AsyncMock(side_effect=StoreError("get_api_key_by_hash: boom"))
        gateway = ApiKeyGateway(store, BackgroundRunner())

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.authenticate({"x-api-key": SECRET})

        assert exc_info.value.message == INVALID_API_KEY
        assert "boom" not in exc_info.value.message


class TestLastUsedBookkeeping:
    """Exactly one background write per accepted request, none on rejection."""

    async def test_one_write_per_success(self, store, runner, gateway, monkeypatch):
        created = await store.create_api_key(make_api_key(SECRET))
        touch = AsyncMock()
        monkeypatch.setattr(store, "touch_api_key", touch)

        await gateway.authenticate({"x-api-key": SECRET})
        await runner.drain()

        touch.assert_awaited_once_with(created.id)

    async def test_no_write_on_rejection(self, store, runner, gateway, monkeypatch):
        created = await store.create_api_key(make_api_key(SECRET))
        await store.set_api_key_enabled(created.id, False)
        touch = AsyncMock()
        monkeypatch.setattr(store, "touch_api_key", touch)

        for headers in ({}, {"x-api-key": "sk-unknown"}, {"x-api-key": SECRET}):
            with pytest.raises(AuthenticationError):
                await gateway.authenticate(headers)
        await runner.drain()

        touch.assert_not_awaited()
        assert runner.pending == 0

    async def test_write_not_awaited_by_request(self, store, runner, gateway):
        """authenticate() returns while the write is still pending."""
        await store.create_api_key(make_api_key(SECRET))

        await gateway.authenticate({"x-api-key": SECRET})

        assert runner.pending == 1
        await runner.drain()

    async def test_last_used_at_recorded(self, store, runner, gateway):
        created = await store.create_api_key(make_api_key(SECRET))

        await gateway.authenticate({"Authorization": f"Bearer {SECRET}"})
        await runner.drain()

        assert (await store.get_api_key(created.id)).last_used_at is not None

    async def test_write_failure_does_not_affect_decision(self, store, runner, gateway, monkeypatch):
        created = await store.create_api_key(make_api_key(SECRET))
        monkeypatch.setattr(
            store, "touch_api_key", AsyncMock(side_effect=StoreError("touch_api_key: locked"))
        )

        api_key = await gateway.authenticate({"x-api-key": SECRET})
        await runner.drain()

        assert api_key.id == created.id
