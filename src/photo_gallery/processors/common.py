"""Common functions shared across all processor implementations."""

import time
from concurrent.futures import Future
from typing import Callable, List, Optional

from ..core import (
    GalleryConfig,
    ThumbnailRecord,
    get_logger,
)
from ..core.observability import BatchStats, NullProgressSink
from ..core.protocols import Outcome, ProgressSinkProtocol
from ..core.services import ThumbnailService

ThumbnailTask = Callable[[str, GalleryConfig], ThumbnailRecord]


def thumbnail_task(path: str, config: GalleryConfig) -> ThumbnailRecord:
    """Default task run for every enumerated path. Module level so it pickles."""
    logger = get_logger("processor")
    logger.debug(f"[{path}] Generating {config.thumb_width}x{config.thumb_height} thumbnail")
    record = ThumbnailService.from_config(config).create_record(path)
    logger.debug(f"[{path}] Thumbnail ready ({len(record.image)} bytes, etag {record.etag[:12]})")
    return record


class OutcomeCollector:
    """
    Positional result slots for one batch.

    ``slot_writer(i)`` returns the completion callback of task ``i``: it
    stores the task's result or exception in slot ``i`` only, then reports
    progress. Slots are disjoint, so concurrent callbacks never contend.
    """

    def __init__(
        self,
        total: int,
        progress: Optional[ProgressSinkProtocol] = None,
        stats: Optional[BatchStats] = None,
    ):
        self.outcomes: List[Optional[Outcome]] = [None] * total
        self.progress = progress or NullProgressSink()
        self.stats = stats if stats is not None else BatchStats()

    def store(self, position: int, outcome: Outcome) -> None:
        self.outcomes[position] = outcome
        self.stats.record_completion(position, isinstance(outcome, BaseException))
        self.progress.advance()

    def slot_writer(self, position: int) -> Callable[[Future], None]:
        def _write(future: Future) -> None:
            exc = future.exception()
            self.store(position, exc if exc is not None else future.result())

        return _write

    def results(self) -> List[Outcome]:
        missing = [i for i, outcome in enumerate(self.outcomes) if outcome is None]
        if missing:
            raise RuntimeError(f"Barrier released with unfilled slots: {missing}")
        return list(self.outcomes)  # type: ignore[arg-type]


def start_batch(
    paths: List[str],
    progress: Optional[ProgressSinkProtocol],
    stats: Optional[BatchStats],
) -> OutcomeCollector:
    """Announce the batch to the progress sink and prepare its result slots."""
    collector = OutcomeCollector(len(paths), progress, stats)
    collector.progress.start(len(paths))
    collector.stats.started = time.time()
    return collector


def finish_batch(collector: OutcomeCollector, processor_name: str) -> List[Outcome]:
    """Close progress reporting and return the outcomes in enumeration order."""
    collector.progress.close()
    collector.stats.elapsed = time.time() - collector.stats.started
    outcomes = collector.results()
    log_batch_statistics(processor_name, collector.stats, len(outcomes))
    return outcomes


def log_batch_statistics(processor_name: str, stats: BatchStats, total: int) -> None:
    """Log final processing statistics for one batch."""
    logger = get_logger("processor")
    failed = len(stats.failure_order)
    rate = total / stats.elapsed if stats.elapsed > 0 else 0
    logger.info(
        f"{processor_name}: {total - failed}/{total} thumbnails in {stats.elapsed:.1f}s "
        f"({rate:.1f} photos/sec, peak concurrency {stats.peak_active}, errors {failed})"
    )
