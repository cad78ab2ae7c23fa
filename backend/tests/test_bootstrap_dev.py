"""Tests for the dev bootstrap script."""

from __future__ import annotations

import pytest

from pool_gateway.auth.hashing import hash_api_key
from pool_gateway.core.config import Settings
from pool_gateway.services.store import Store
from scripts import bootstrap_dev


@pytest.mark.asyncio
async def test_creates_key_and_prints_it_once(db_url: str, monkeypatch, capsys):
    monkeypatch.setattr(bootstrap_dev, "settings", Settings(DATABASE_URL=db_url))

    await bootstrap_dev.main("ci")

    output = capsys.readouterr().out
    raw_key = next(
        line.split(":", 1)[1].strip()
        for line in output.splitlines()
        if line.strip().startswith("API Key:")
    )

    store = await Store.open(db_url)
    try:
        stored = await store.get_api_key_by_hash(hash_api_key(raw_key))
    finally:
        await store.close()

    assert raw_key.startswith("sk-")
    assert stored is not None
    assert stored.name == "ci"
    assert stored.enabled is True
    assert stored.key_suffix == raw_key[-4:]
