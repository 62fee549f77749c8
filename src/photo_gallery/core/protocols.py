"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Protocol, Union

from .models import GalleryConfig, IndexEntry
from .observability import BatchStats


class ProgressSinkProtocol(Protocol):
    """Receives one event per finished thumbnail task."""

    def start(self, total: int) -> None:
        """Announce the number of tasks."""
        ...

    def advance(self) -> None:
        """Report one completed task."""
        ...

    def close(self) -> None:
        """Release any console resources."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...


Outcome = Union[IndexEntry, BaseException]


class BatchProcessorProtocol(Protocol):
    """Signature shared by every ``processors.*.process_batch``."""

    def __call__(
        self,
        paths: List[str],
        config: GalleryConfig,
        progress: Optional[ProgressSinkProtocol] = None,
        stats: Optional[BatchStats] = None,
    ) -> List[Outcome]:
        ...


class FileDiscoveryService(ABC):
    """Abstract service for discovering files to process."""

    @abstractmethod
    def discover_files(self, root: str) -> List[str]:
        """Discover files to process."""
        ...
