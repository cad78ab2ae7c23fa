"""Unit tests for the fire-and-forget BackgroundRunner."""

from __future__ import annotations

import asyncio
import logging

import pytest

from pool_gateway.core.background import BackgroundRunner


class TestBackgroundRunner:

    async def test_submit_does_not_wait(self):
        """submit() returns before the task body runs."""
        runner = BackgroundRunner()
        gate = asyncio.Event()
        done = []

        async def job() -> None:
            await gate.wait()
            done.append(True)

        runner.submit(job(), name="job")

        assert runner.pending == 1
        assert done == []

        gate.set()
        await runner.drain()

        assert done == [True]
        assert runner.pending == 0

    async def test_failure_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture):
        runner = BackgroundRunner()

        async def failing() -> None:
            raise RuntimeError("disk full")

        with caplog.at_level(logging.WARNING, logger="pool_gateway.core.background"):
            runner.submit(failing(), name="touch-api-key-7")
            await runner.drain()

        assert "touch-api-key-7" in caplog.text
        assert runner.pending == 0

    async def test_failure_does_not_affect_other_tasks(self):
        runner = BackgroundRunner()
        results = []

        async def ok(n: int) -> None:
            await asyncio.sleep(0)
            results.append(n)

        async def failing() -> None:
            raise ValueError("nope")

        runner.submit(ok(1))
        runner.submit(failing())
        runner.submit(ok(2))
        await runner.drain()

        assert sorted(results) == [1, 2]

    async def test_drain_with_nothing_pending(self):
        await BackgroundRunner().drain()
