"""
Bounded fan-out/join over a thread pool.

A ``TaskScope`` owns one unit of work per submitted call and does not let
its caller continue until every one of them has finished or been cancelled.
"""

import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .constants import default_worker_count, get_logger


T = TypeVar("T")

logger = get_logger()


class ScopeCancelled(RuntimeError):
    """Raised when submitting to a scope that has already been cancelled."""


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success or failure of one unit of work."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TaskScope:
    """Run blocking calls in parallel and join them as a group.

    Args:
        max_workers: Pool size; hardware parallelism minus one when None
        cancel_on_failure: When True, the first unexpected exception cancels
            pending siblings, refuses new submissions, and is re-raised by
            ``join``. When False, failures are only reported as outcomes.
    """

    def __init__(self, max_workers: Optional[int] = None, cancel_on_failure: bool = True):
        self.max_workers = max_workers or default_worker_count()
        self.cancel_on_failure = cancel_on_failure
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []
        self._lock = threading.Lock()
        self._failure: Optional[BaseException] = None
        self._cancelled = threading.Event()

    def __enter__(self) -> "TaskScope":
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.cancel()
        self._executor.shutdown(wait=True)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> "Future[T]":
        """Schedule one unit of work in this scope."""
        if self._executor is None:
            raise RuntimeError("TaskScope must be entered before submitting work")
        if self.cancelled:
            raise ScopeCancelled("Scope was cancelled after a failed task")

        future = self._executor.submit(fn, *args, **kwargs)
        with self._lock:
            self._futures.append(future)
        future.add_done_callback(self._on_done)
        return future

    def cancel(self) -> None:
        """Cancel every unit of work that has not started yet."""
        self._cancelled.set()
        with self._lock:
            pending = list(self._futures)
        for future in pending:
            future.cancel()

    def _on_done(self, future: Future) -> None:
        if future.cancelled() or future.exception() is None:
            return
        with self._lock:
            if self._failure is None:
                self._failure = future.exception()
        if self.cancel_on_failure:
            self.cancel()

    def join(self) -> List[Outcome]:
        """Wait for all submitted work and return one outcome per submission.

        Outcomes are in submission order. Under ``cancel_on_failure`` the
        first failure is re-raised instead.
        """
        with self._lock:
            futures = list(self._futures)
        wait(futures)

        if self.cancel_on_failure:
            # Done-callbacks may still be in flight, so look at the futures too
            failure = self._failure or next(
                (f.exception() for f in futures if not f.cancelled() and f.exception() is not None),
                None
            )
            if failure is not None:
                raise failure

        outcomes: List[Outcome] = []
        for future in futures:
            try:
                outcomes.append(Outcome(value=future.result()))
            except CancelledError as e:
                outcomes.append(Outcome(error=e))
            except Exception as e:
                logger.debug(f"Task failed: {e}")
                outcomes.append(Outcome(error=e))
        return outcomes
