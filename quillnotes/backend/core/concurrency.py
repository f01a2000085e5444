"""
Concurrency Infrastructure.

Thread pool and semaphore management, plus per-entity mutation versioning.
Pools are created lazily on first access and cleaned up during shutdown.

Pools:
    _io_pool - TracedThreadPoolExecutor for blocking work (OCR)

Semaphores:
    Created per-dependency to limit concurrent access to external services.
    Sizing is configured in config/settings/concurrency.yaml.

Usage:
    from quillnotes.backend.core.concurrency import get_io_pool, get_semaphore

    result = await loop.run_in_executor(get_io_pool(), blocking_fn, arg)

    async with get_semaphore("llm"):
        response = await client.post(url, json=payload)
"""

import asyncio
import contextvars
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Hashable

from quillnotes.backend.core.logging import get_logger

logger = get_logger(__name__)

_io_pool: ThreadPoolExecutor | None = None
_semaphores: dict[str, asyncio.Semaphore] = {}
_semaphore_capacities: dict[str, int] = {}


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Copies the current context before dispatching so structlog context
    (request_id and friends) is preserved in worker-thread logs.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking operations."""
    global _io_pool
    if _io_pool is None:
        from quillnotes.backend.core.config import get_app_config
        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers)
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


def get_semaphore(name: str) -> asyncio.Semaphore:
    """Get a named semaphore for concurrency-limiting external calls.

    The capacity is read from concurrency.yaml under `semaphores.<name>`.
    If the name is not configured, defaults to 20.
    """
    if name not in _semaphores:
        from quillnotes.backend.core.config import get_app_config
        semaphore_config = get_app_config().concurrency.semaphores
        capacity = getattr(semaphore_config, name, 20)
        _semaphores[name] = asyncio.Semaphore(capacity)
        _semaphore_capacities[name] = capacity
        logger.debug("Semaphore created", extra={"name": name, "capacity": capacity})
    return _semaphores[name]


async def shutdown_pools() -> None:
    """Shut down the thread pool and drop semaphores. Called on app shutdown."""
    global _io_pool

    if _io_pool is not None:
        await asyncio.to_thread(_io_pool.shutdown, wait=True)
        logger.info("Thread pool shut down")
        _io_pool = None

    _semaphores.clear()
    _semaphore_capacities.clear()


class MutationVersions:
    """
    Monotonic version counter per entity key.

    Each mutation takes a token with begin(); a later begin() (or
    invalidate()) for the same key makes every earlier token stale, so a
    slow result can be checked with is_current() before it is applied.
    """

    def __init__(self) -> None:
        self._versions: defaultdict[Hashable, int] = defaultdict(int)

    def begin(self, key: Hashable) -> int:
        self._versions[key] += 1
        return self._versions[key]

    def invalidate(self, key: Hashable) -> None:
        self._versions[key] += 1

    def is_current(self, key: Hashable, token: int) -> bool:
        return self._versions[key] == token

    def current(self, key: Hashable) -> int:
        return self._versions[key]
