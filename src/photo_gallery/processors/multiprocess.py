"""Multiprocess processor implementation - uses a bounded process pool."""

from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional, Tuple

from ..core import GalleryConfig, ThumbnailRecord, configure_multiprocessing_logging
from ..core.limiter import ConcurrencyLimiter
from ..core.protocols import Outcome, ProgressSinkProtocol
from .common import BatchStats, ThumbnailTask, finish_batch, start_batch, thumbnail_task


def process_single_path_worker(args: Tuple[ThumbnailTask, str, GalleryConfig]) -> ThumbnailRecord:
    """
    Worker function designed for use with a `ProcessPoolExecutor`.

    Configures logging for the current process, then runs the task for one
    path. Exceptions travel back to the parent through the future.

    Args:
        args: A tuple `(task, path, config)`; `task` must be picklable.

    Returns:
        The `ThumbnailRecord` produced by `task`.
    """
    task, path, config = args
    configure_multiprocessing_logging()
    return task(path, config)


def process_batch(
    paths: List[str],
    config: GalleryConfig,
    progress: Optional[ProgressSinkProtocol] = None,
    task: ThumbnailTask = thumbnail_task,
    stats: Optional[BatchStats] = None,
) -> List[Outcome]:
    """
    Generates thumbnails in worker processes, at most `config.concurrency` at once.

    Records and exceptions are pickled back to the parent, where the
    completion callbacks fill the positional slots.

    Args:
        paths: Enumerated source paths.
        config: `GalleryConfig` with the budget and thumbnail settings.
        progress: Optional sink receiving one event per finished path.
        task: Module-level function producing the record for one path.
        stats: Optional `BatchStats` to fill in.

    Returns:
        One outcome per path, in the order of `paths`.
    """
    collector = start_batch(paths, progress, stats)
    max_workers = max(1, min(config.concurrency, len(paths)))

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        limiter = ConcurrencyLimiter(config.concurrency, executor)
        for position, path in enumerate(paths):
            limiter.schedule(
                process_single_path_worker,
                (task, path, config),
                on_done=collector.slot_writer(position),
            )
        limiter.join()

    collector.stats.peak_active = limiter.peak_active if paths else 0
    return finish_batch(collector, "Multiprocess")
