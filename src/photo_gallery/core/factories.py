"""Factory functions for creating configured pipeline instances."""

from typing import Any, Optional

from ..processors import PROCESSORS
from .models import GalleryConfig, PhotoIndex
from .observability import NullProgressSink, TqdmProgressSink
from .protocols import FileDiscoveryService, LoggerProtocol, ProgressSinkProtocol
from .services import GalleryContext, IndexBuilder


class ProgressSinkFactory:
    """Factory for creating progress sinks."""

    @staticmethod
    def create_progress_sink(enabled: bool = True) -> ProgressSinkProtocol:
        """Console bar when enabled, a sink that drops events otherwise."""
        if enabled:
            return TqdmProgressSink()
        return NullProgressSink()


class IndexBuilderFactory:
    """Factory for creating the pipeline driver with the configured processor."""

    @staticmethod
    def create_builder(
        config: GalleryConfig,
        progress: Optional[ProgressSinkProtocol] = None,
        discovery: Optional[FileDiscoveryService] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> IndexBuilder:
        """Create an IndexBuilder running ``config.processor``."""
        processor_name, process_batch = PROCESSORS[config.processor]

        if progress is None:
            progress = ProgressSinkFactory.create_progress_sink(config.progress)

        return IndexBuilder(
            config,
            process_batch,
            discovery=discovery,
            progress=progress,
            logger=logger,
            processor_name=processor_name,
        )


def create_context(
    config: GalleryConfig, progress: Optional[ProgressSinkProtocol] = None
) -> GalleryContext:
    """Create an uninitialised application context for ``config``."""
    return GalleryContext(config, IndexBuilderFactory.create_builder(config, progress))


def build_index(
    root_directory: str,
    concurrency_budget: int,
    progress: Optional[ProgressSinkProtocol] = None,
    **config_values: Any,
) -> PhotoIndex:
    """
    Build the photo index for ``root_directory``.

    Blocks until every thumbnail is generated or raises the fatal startup
    error. Extra keyword arguments are GalleryConfig fields (processor,
    failure_policy, thumbnail size, ...).
    """
    # No server runs here, so no credential is generated or reported
    config = GalleryConfig.create(
        photo_directory=root_directory,
        concurrency=concurrency_budget,
        password=config_values.pop("password", "-"),
        progress=config_values.pop("progress", False),
        **config_values,
    )
    builder = IndexBuilderFactory.create_builder(config, progress)
    return builder.build(root_directory)
