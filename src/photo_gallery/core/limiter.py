"""Bounded admission of thumbnail tasks onto an executor or event loop."""

import asyncio
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Optional

from .exceptions import ConfigurationError
from .logging_config import get_logger

DoneCallback = Callable[[Future], None]


def _check_budget(budget: int) -> int:
    if not isinstance(budget, int) or isinstance(budget, bool) or budget < 1:
        raise ConfigurationError(f"Concurrency budget must be an integer >= 1, got {budget!r}")
    return budget


class ConcurrencyLimiter:
    """
    Admit at most ``budget`` tasks at a time onto an executor.

    ``schedule`` blocks the caller while the budget is exhausted. The slot is
    returned from a done-callback, so it is released on success and on
    failure alike; a failing task never cancels its siblings. ``join`` is the
    completion barrier: it returns once every admitted task has finished and
    its ``on_done`` callback has run.

    Args:
        budget: Maximum number of admitted, not yet completed tasks
        executor: Executor running the tasks. A ThreadPoolExecutor sized to
            the budget is created (and owned) when omitted.
    """

    def __init__(self, budget: int, executor: Optional[Executor] = None):
        self.budget = _check_budget(budget)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.budget, thread_name_prefix="thumbnail"
        )
        self._slots = threading.BoundedSemaphore(self.budget)
        self._idle = threading.Condition()
        self._active = 0
        self._peak_active = 0
        self._submitted = 0
        self._logger = get_logger("limiter")

    @property
    def active(self) -> int:
        with self._idle:
            return self._active

    @property
    def peak_active(self) -> int:
        with self._idle:
            return self._peak_active

    @property
    def submitted(self) -> int:
        with self._idle:
            return self._submitted

    def schedule(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_done: Optional[DoneCallback] = None,
    ) -> Future:
        """Submit ``fn(*args)`` once a slot is free and return its future.

        ``on_done(future)`` runs when the task has finished, before its slot
        is handed to the next task.
        """
        self._slots.acquire()
        with self._idle:
            self._active += 1
            self._submitted += 1
            self._peak_active = max(self._peak_active, self._active)

        try:
            future = self._executor.submit(fn, *args)
        except BaseException:
            self._release()
            raise

        future.add_done_callback(lambda done: self._on_done(done, on_done))
        return future

    def _on_done(self, future: Future, on_done: Optional[DoneCallback]) -> None:
        try:
            if on_done is not None:
                on_done(future)
        except Exception:
            self._logger.error("Task completion callback failed", exc_info=True)
        finally:
            self._release()

    def _release(self) -> None:
        with self._idle:
            self._active -= 1
            if self._active == 0:
                self._idle.notify_all()
        self._slots.release()

    def join(self) -> None:
        """Block until no admitted task is in flight."""
        with self._idle:
            self._idle.wait_for(lambda: self._active == 0)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor if this limiter created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ConcurrencyLimiter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.shutdown(wait=True)
        return False


class AsyncConcurrencyLimiter:
    """
    Coroutine flavour of ConcurrencyLimiter built on ``asyncio.Semaphore``.

    Admission and release happen on the event loop thread only, which keeps
    the counters consistent without a lock.
    """

    def __init__(self, budget: int):
        self.budget = _check_budget(budget)
        self._semaphore: Optional[asyncio.Semaphore] = None
        self.active = 0
        self.peak_active = 0
        self.submitted = 0

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Created lazily so the semaphore binds to the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.budget)
        return self._semaphore

    async def _run(self, coro_fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        async with self._get_semaphore():
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
            try:
                return await coro_fn(*args)
            finally:
                self.active -= 1

    def schedule(self, coro_fn: Callable[..., Awaitable[Any]], *args: Any) -> "asyncio.Task":
        """Create a task that runs ``coro_fn(*args)`` once a slot is free."""
        self.submitted += 1
        return asyncio.ensure_future(self._run(coro_fn, *args))

    @staticmethod
    async def join(*tasks: "asyncio.Future") -> list:
        """Wait for every task; failures are returned as values, never cancel siblings."""
        return await asyncio.gather(*tasks, return_exceptions=True)
