"""
Fire-and-forget background work.

The request path hands bookkeeping writes (e.g. an API key's last_used_at)
to a BackgroundRunner and moves on immediately:
  • submit() never awaits anything — it only schedules a task.
  • The runner keeps a strong reference to each task until it finishes,
    otherwise the event loop may garbage-collect it mid-flight.
  • A failing task is logged and dropped; there is no result channel.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundRunner:
    """Tracks detached asyncio tasks for bookkeeping side effects."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of tasks submitted but not yet finished."""
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> None:
        """Schedule ``coro`` and return immediately. Requires a running loop."""
        task = asyncio.create_task(self._run(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every in-flight task. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @staticmethod
    async def _run(coro: Coroutine[Any, Any, Any], name: str | None) -> None:
        try:
            await coro
        except Exception:
            logger.warning("Background task %s failed", name or "<unnamed>", exc_info=True)
