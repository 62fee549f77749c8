"""AsyncIO processor implementation - semaphore-bounded tasks over worker threads."""

import asyncio
from typing import List, Optional

from ..core import GalleryConfig, get_logger
from ..core.limiter import AsyncConcurrencyLimiter
from ..core.protocols import Outcome, ProgressSinkProtocol
from .common import (
    BatchStats,
    OutcomeCollector,
    ThumbnailTask,
    finish_batch,
    start_batch,
    thumbnail_task,
)


async def process_single_path_async(
    collector: OutcomeCollector,
    position: int,
    path: str,
    config: GalleryConfig,
    task: ThumbnailTask,
) -> None:
    """Run the CPU-bound task in a worker thread and store its outcome in slot `position`."""
    logger = get_logger("asyncio-processor")
    try:
        outcome = await asyncio.to_thread(task, path, config)
    except Exception as e:
        logger.debug(f"[{path}] Thumbnail generation failed: {e}")
        outcome = e
    collector.store(position, outcome)


async def process_batch_async(
    paths: List[str],
    config: GalleryConfig,
    collector: OutcomeCollector,
    task: ThumbnailTask,
) -> int:
    """Schedule every path through the limiter and wait for all of them."""
    limiter = AsyncConcurrencyLimiter(config.concurrency)
    tasks = [
        limiter.schedule(process_single_path_async, collector, position, path, config, task)
        for position, path in enumerate(paths)
    ]
    await limiter.join(*tasks)
    return limiter.peak_active


def process_batch(
    paths: List[str],
    config: GalleryConfig,
    progress: Optional[ProgressSinkProtocol] = None,
    task: ThumbnailTask = thumbnail_task,
    stats: Optional[BatchStats] = None,
) -> List[Outcome]:
    """
    Generate thumbnails with asyncio.

    This is the synchronous wrapper that runs the async batch in a fresh
    event loop; it must not be called from inside a running loop.

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
    collector.stats.peak_active = asyncio.run(
        process_batch_async(paths, config, collector, task)
    )
    return finish_batch(collector, "AsyncIO")
