"""Background asyncio loop shared by every page of one browser session."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _apply(func: Callable[..., T], *args: Any) -> T:
    return func(*args)


class AsyncLoopHost:
    """Own one event loop on a daemon thread.

    Streamlit reruns the page script on its own thread; all generation
    coroutines are funnelled onto this single loop so they interleave
    cooperatively and never run in parallel.
    """

    def __init__(self, name: str = "stock-studio-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive() and not self._loop.is_closed()

    def submit(self, coro: Awaitable[T]) -> "concurrent.futures.Future[T]":
        """Schedule *coro* without waiting for it."""

        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Schedule *coro* and block the calling thread until it finishes."""

        return self.submit(coro).result(timeout)

    def invoke(
        self, func: Callable[..., T], *args: Any, timeout: Optional[float] = None
    ) -> T:
        """Run *func* on the loop thread between awaits and return its result.

        Queue and prompt state must only change here, never from the
        Streamlit script thread.
        """

        return self.run(_apply(func, *args), timeout)

    def call(self, func: Callable[..., Any], *args: Any) -> None:
        """Run a plain callable on the loop thread."""

        self._loop.call_soon_threadsafe(func, *args)

    def stop(self, timeout: float = 5.0) -> None:
        if not self.is_alive:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if not self._thread.is_alive():
            self._loop.close()
        else:  # pragma: no cover - loop wedged by a blocking callback
            logger.warning("Async loop thread did not stop within %.1fs", timeout)
