"""Multithreaded processor implementation - uses a bounded thread pool."""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..core import GalleryConfig
from ..core.limiter import ConcurrencyLimiter
from ..core.protocols import Outcome, ProgressSinkProtocol
from .common import BatchStats, ThumbnailTask, finish_batch, start_batch, thumbnail_task


def process_batch(
    paths: List[str],
    config: GalleryConfig,
    progress: Optional[ProgressSinkProtocol] = None,
    task: ThumbnailTask = thumbnail_task,
    stats: Optional[BatchStats] = None,
) -> List[Outcome]:
    """
    Generate thumbnails on a thread pool, at most `config.concurrency` at once.

    Pillow releases the GIL while decoding, resampling and encoding, so
    threads give real parallelism for this workload.

    Args:
        paths: Enumerated source paths
        config: Gallery configuration (budget and thumbnail settings)
        progress: Optional sink receiving one event per finished path
        task: Function producing the record for one path
        stats: Optional `BatchStats` to fill in

    Returns:
        One outcome per path, in the order of `paths`
    """
    collector = start_batch(paths, progress, stats)
    max_workers = max(1, min(config.concurrency, len(paths)))

    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="thumbnail"
    ) as executor:
        limiter = ConcurrencyLimiter(config.concurrency, executor)
        for position, path in enumerate(paths):
            limiter.schedule(
                task, path, config, on_done=collector.slot_writer(position)
            )
        limiter.join()

    collector.stats.peak_active = limiter.peak_active if paths else 0
    return finish_batch(collector, "Multithreaded")
