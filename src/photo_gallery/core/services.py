"""Service implementations for the thumbnail pipeline and its driver."""

import time
from typing import List, Optional

from .error_handling import BatchOperationContextManager
from .exceptions import IndexBuildError, PipelineStateError
from .image_utils import find_jpeg_files, hash_image, make_thumbnail
from .logging_config import get_logger
from .models import (
    BuildSummary,
    GalleryConfig,
    IndexEntry,
    PhotoIndex,
    PipelineState,
    ThumbnailFailure,
    ThumbnailRecord,
    check_transition,
)
from .observability import BatchStats, timed_operation
from .protocols import (
    BatchProcessorProtocol,
    FileDiscoveryService,
    LoggerProtocol,
    ProgressSinkProtocol,
)


class LocalFileDiscoveryService(FileDiscoveryService):
    """Service for discovering JPEG files on the local filesystem."""

    def __init__(self, logger: Optional[LoggerProtocol] = None):
        self._logger = logger or get_logger("discovery")

    def discover_files(self, root: str) -> List[str]:
        """Discover JPEG files below ``root`` in a deterministic order."""
        self._logger.debug(f"Discovering files in {root}")
        return find_jpeg_files(root)


class ThumbnailService:
    """Pure thumbnail service: decode, orient, contain-fit, encode, hash."""

    def __init__(self, width: int = 300, height: int = 200, quality: int = 80):
        self.width = width
        self.height = height
        self.quality = quality

    @classmethod
    def from_config(cls, config: GalleryConfig) -> "ThumbnailService":
        return cls(config.thumb_width, config.thumb_height, config.jpeg_quality)

    def create_record(self, path: str) -> ThumbnailRecord:
        """Generate the thumbnail of one source image with its validation token."""
        image = make_thumbnail(path, self.width, self.height, self.quality)
        return ThumbnailRecord(
            source_path=path,
            image=image,
            width=self.width,
            height=self.height,
            etag=hash_image(image),
        )


class IndexBuilder:
    """
    Pipeline driver: Enumerate → fan out through the processor → barrier.

    Owns the startup state machine
    ``IDLE → ENUMERATING → PROCESSING → READY → SERVING`` (any step may end
    in ``FAILED``) and is the only writer of the resulting PhotoIndex.
    A builder runs exactly once.
    """

    def __init__(
        self,
        config: GalleryConfig,
        process_batch: BatchProcessorProtocol,
        discovery: Optional[FileDiscoveryService] = None,
        progress: Optional[ProgressSinkProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        processor_name: str = "",
    ):
        self._config = config
        self._process_batch = process_batch
        self._discovery = discovery or LocalFileDiscoveryService()
        self._progress = progress
        self._logger = logger or get_logger("pipeline")
        self._processor_name = processor_name or config.processor
        self._state = PipelineState.IDLE
        self.summary: Optional[BuildSummary] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    def _transition(self, target: PipelineState) -> None:
        check_transition(self._state, target)
        self._logger.debug(f"Pipeline {self._state.value} -> {target.value}")
        self._state = target

    @timed_operation("photo index build")
    def build(self, root: Optional[str] = None) -> PhotoIndex:
        """
        Build the photo index for ``root`` (defaults to the configured directory).

        Blocks until every enumerated path has an outcome.

        Raises:
            DirectoryAccessError: If the root cannot be read
            IndexBuildError: Under the strict policy, if any thumbnail failed
            PipelineStateError: If the builder already ran
        """
        root = root or self._config.photo_directory
        self._transition(PipelineState.ENUMERATING)
        start_time = time.time()
        try:
            paths = self._discovery.discover_files(root)
            index = PhotoIndex(paths)
            self._transition(PipelineState.PROCESSING)
            self._logger.info(
                f"Generating {len(paths)} thumbnails using {self._processor_name} "
                f"(concurrency {self._config.concurrency}, {self._config.failure_policy} policy)"
            )

            stats = BatchStats()
            outcomes = self._process_batch(paths, self._config, self._progress, stats=stats)
            self._fill_index(index, paths, outcomes, stats.failure_order)

            self.summary = BuildSummary(
                total=len(paths),
                succeeded=len(index.records()),
                failed=len(index.failures()),
                elapsed=time.time() - start_time,
                peak_concurrency=stats.peak_active,
                processor=self._processor_name,
            )
            self._transition(PipelineState.READY)
            return index
        except BaseException:
            self._state = PipelineState.FAILED
            raise

    def _fill_index(
        self,
        index: PhotoIndex,
        paths: List[str],
        outcomes: list,
        failure_order: List[int],
    ) -> None:
        if len(outcomes) != len(paths):
            raise PipelineStateError(
                f"Processor returned {len(outcomes)} outcomes for {len(paths)} paths"
            )

        with BatchOperationContextManager("Thumbnail generation") as batch:
            failed = [i for i, outcome in enumerate(outcomes) if isinstance(outcome, BaseException)]
            for position in failed:
                batch.add_error(str(outcomes[position]), item_identifier=paths[position])

            if failed and self._config.failure_policy == "strict":
                # First failure in completion order, positional order as fallback
                first = next((i for i in failure_order if i in failed), failed[0])
                cause = outcomes[first]
                raise IndexBuildError(
                    f"Thumbnail generation failed for {paths[first]}: {cause}",
                    cause=cause,
                    failed_paths=[paths[i] for i in failed],
                    completed=len(outcomes) - len(failed),
                    total=len(paths),
                ) from cause

            for position, outcome in enumerate(outcomes):
                entry: IndexEntry
                if isinstance(outcome, BaseException):
                    entry = ThumbnailFailure(
                        source_path=paths[position],
                        error_type=type(outcome).__name__,
                        message=str(outcome),
                    )
                else:
                    entry = outcome
                index.assign(position, entry)

    def mark_serving(self) -> None:
        """Record that the HTTP layer accepts requests (``READY → SERVING``)."""
        self._transition(PipelineState.SERVING)


class GalleryContext:
    """
    Application context shared by the CLI and the web layer.

    Built explicitly, initialised once with ``initialize()``, then passed by
    reference. Nothing is read from module globals.
    """

    def __init__(self, config: GalleryConfig, builder: IndexBuilder):
        self.config = config
        self._builder = builder
        self.index: Optional[PhotoIndex] = None

    @property
    def state(self) -> PipelineState:
        return self._builder.state

    @property
    def summary(self) -> Optional[BuildSummary]:
        return self._builder.summary

    @property
    def photo_count(self) -> int:
        return len(self.index) if self.index is not None else 0

    def initialize(self) -> "GalleryContext":
        """Run the thumbnail pipeline. May only be called once."""
        if self._builder.state is not PipelineState.IDLE:
            raise PipelineStateError(
                f"Gallery already initialised (state {self._builder.state.value})"
            )
        self.index = self._builder.build(self.config.photo_directory)
        return self

    def mark_serving(self) -> None:
        if self.index is None:
            raise PipelineStateError("Cannot serve before the photo index is built")
        self._builder.mark_serving()

    def photo(self, number: int) -> Optional[IndexEntry]:
        """Index entry for ``number``, None when out of range or not built."""
        if self.index is None:
            return None
        return self.index.get(number)

