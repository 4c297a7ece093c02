"""Bridge for calling async job code from synchronous entrypoints."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

import anyio

T = TypeVar("T")


def run_async(
    func: Callable[..., Awaitable[T]],
    *args: object,
    timeout: float | None = None,
) -> T:
    """
    Run ``func(*args)`` to completion from sync code (CLI, scripts).

    Must not be called while an event loop is running in this thread;
    anyio raises RuntimeError in that case.
    """

    async def _runner() -> T:
        if timeout is None:
            return await func(*args)
        with anyio.fail_after(timeout):
            return await func(*args)

    return anyio.run(_runner)
