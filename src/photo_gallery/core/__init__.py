"""Core utilities and shared components for the photo gallery."""

from .image_utils import (
    find_jpeg_files,
    hash_image,
    image_dimensions,
    make_thumbnail,
    scale_image,
)
from .logging_config import (
    configure_multiprocessing_logging,
    get_logger,
    setup_logger,
)
from .exceptions import (
    GalleryError,
    ConfigurationError,
    DirectoryAccessError,
    DecodeError,
    ImageReadError,
    PipelineStateError,
    IndexBuildError,
)
from .limiter import AsyncConcurrencyLimiter, ConcurrencyLimiter
from .models import (
    BuildSummary,
    GalleryConfig,
    PhotoIndex,
    PipelineState,
    ThumbnailFailure,
    ThumbnailRecord,
)

__all__ = [
    "GalleryConfig",
    "ThumbnailRecord",
    "ThumbnailFailure",
    "PhotoIndex",
    "PipelineState",
    "BuildSummary",
    "ConcurrencyLimiter",
    "AsyncConcurrencyLimiter",
    "find_jpeg_files",
    "hash_image",
    "image_dimensions",
    "make_thumbnail",
    "scale_image",
    "setup_logger",
    "get_logger",
    "configure_multiprocessing_logging",
    "GalleryError",
    "ConfigurationError",
    "DirectoryAccessError",
    "DecodeError",
    "ImageReadError",
    "PipelineStateError",
    "IndexBuildError",
]
