"""Serial processor implementation - generates thumbnails one by one."""

from typing import List, Optional

from ..core import GalleryConfig
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
    Generates thumbnails serially in the current thread.

    The concurrency budget is ignored; at most one task is ever active.
    A failing path does not stop the remaining ones, its exception is
    stored in its slot instead.

    Args:
        paths: Enumerated source paths.
        config: `GalleryConfig` with thumbnail settings.
        progress: Optional sink receiving one event per finished path.
        task: Function producing the record for one path.
        stats: Optional `BatchStats` to fill in.

    Returns:
        One outcome per path, in the order of `paths`.
    """
    collector = start_batch(paths, progress, stats)

    for position, path in enumerate(paths):
        collector.stats.peak_active = 1
        try:
            outcome = task(path, config)
        except Exception as e:
            outcome = e
        collector.store(position, outcome)

    return finish_batch(collector, "Serial")
