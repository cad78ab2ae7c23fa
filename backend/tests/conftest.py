"""Shared fixtures: an isolated on-disk store per test."""

from __future__ import annotations

from pathlib import Path

import pytest

from pool_gateway.auth.gateway import ApiKeyGateway
from pool_gateway.core.background import BackgroundRunner
from pool_gateway.services.store import Store
from tests.factories import sqlite_url


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return sqlite_url(tmp_path / "pool.db")


@pytest.fixture
async def store(db_url: str):
    """Open a fresh store on a temporary file."""
    store = await Store.open(db_url)
    yield store
    await store.close()


@pytest.fixture
async def runner():
    runner = BackgroundRunner()
    yield runner
    await runner.drain()


@pytest.fixture
def gateway(store: Store, runner: BackgroundRunner) -> ApiKeyGateway:
    return ApiKeyGateway(store, runner)
