"""Custom exceptions for the photo gallery."""

from __future__ import annotations

from typing import List, Optional


class GalleryError(Exception):
    """Base exception for all photo gallery errors."""


class ConfigurationError(GalleryError):
    """Error raised for invalid configuration options."""


class DirectoryAccessError(GalleryError):
    """Error raised when the photo directory cannot be read."""


class DecodeError(GalleryError):
    """Error raised when a source file is not a decodable JPEG image."""


class ImageReadError(GalleryError, OSError):
    """Error raised when a source file becomes unreadable after enumeration."""


class PipelineStateError(GalleryError):
    """Error raised for an illegal pipeline state transition or slot overwrite."""


class IndexBuildError(GalleryError):
    """Error raised when the thumbnail pipeline fails under the strict policy.

    Carries the first failure (in completion order) together with metadata
    about the partial results that were produced before the barrier released.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        failed_paths: Optional[List[str]] = None,
        completed: int = 0,
        total: int = 0,
    ):
        super().__init__(message)
        self.cause = cause
        self.failed_paths = list(failed_paths or [])
        self.completed = completed
        self.total = total
