"""Observability utilities: progress reporting and operation timing."""

import threading
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, List, Optional

from tqdm import tqdm

from .logging_config import get_logger


class TqdmProgressSink:
    """Console progress bar fed with one event per completed thumbnail."""

    def __init__(self, desc: str = "Thumbnails", unit: str = "photos", **tqdm_kwargs: Any):
        self._desc = desc
        self._unit = unit
        self._tqdm_kwargs = tqdm_kwargs
        self._bar: Optional[tqdm] = None

    def start(self, total: int) -> None:
        self._bar = tqdm(total=total, desc=self._desc, unit=self._unit, **self._tqdm_kwargs)

    def advance(self) -> None:
        if self._bar is not None:
            self._bar.update(1)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class NullProgressSink:
    """Progress sink that ignores every event."""

    def start(self, total: int) -> None:
        pass

    def advance(self) -> None:
        pass

    def close(self) -> None:
        pass


class CountingProgressSink:
    """Progress sink that only counts events, safe to call from any thread."""

    def __init__(self):
        self.total: Optional[int] = None
        self.completed = 0
        self.closed = False
        self._lock = threading.Lock()

    def start(self, total: int) -> None:
        self.total = total

    def advance(self) -> None:
        with self._lock:
            self.completed += 1

    def close(self) -> None:
        self.closed = True


def timed_operation(operation_name: str, logger_name: str = "pipeline"):
    """Decorator logging the start, end and duration of an operation."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(logger_name)
            start_time = time.time()
            logger.info(f"Starting {operation_name}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {operation_name} after {time.time() - start_time:.2f}s: {e}"
                )
                raise
            logger.info(f"Completed {operation_name} in {time.time() - start_time:.2f}s")
            return result

        return wrapper

    return decorator


@dataclass
class BatchStats:
    """Bookkeeping filled in by a processor while it runs a batch."""

    peak_active: int = 0
    completed: int = 0
    failure_order: List[int] = field(default_factory=list)
    started: float = 0.0
    elapsed: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_completion(self, position: int, failed: bool) -> None:
        """Count one finished task; failures are kept in completion order."""
        with self._lock:
            self.completed += 1
            if failed:
                self.failure_order.append(position)
