# src/photo_gallery/core/error_handling.py

import functools
import logging

from PIL import Image, UnidentifiedImageError

from .exceptions import DecodeError, GalleryError, ImageReadError


def with_error_handling(func):
    """
    A decorator to wrap image functions with standardized error handling.

    Pillow failures are mapped onto DecodeError, filesystem failures onto
    ImageReadError. Errors are logged and always re-raised.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + '.' + func.__name__)
        try:
            return func(*args, **kwargs)
        except GalleryError:
            raise
        except Exception as e:
            logger.error(
                f"Error in '{func.__name__}': {e}",
                exc_info=True
            )
            if isinstance(e, (UnidentifiedImageError, SyntaxError, Image.DecompressionBombError)):
                raise DecodeError(f"Failed to decode image in {func.__name__}: {e}") from e
            if isinstance(e, (FileNotFoundError, PermissionError, IsADirectoryError)):
                raise ImageReadError(f"Failed to read image in {func.__name__}: {e}") from e
            if isinstance(e, OSError):
                # Pillow reports truncated and corrupt JPEG data as a bare OSError
                if e.errno is None:
                    raise DecodeError(f"Failed to decode image in {func.__name__}: {e}") from e
                raise ImageReadError(f"Failed to read image in {func.__name__}: {e}") from e
            if isinstance(e, ValueError):
                raise DecodeError(f"Invalid image data in {func.__name__}: {e}") from e
            raise
    return wrapper


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logging.getLogger(self.__class__.__module__ + '.' + self.__class__.__name__)

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                item_identifier = error_detail.get('item', 'Unknown item')
                error_message = error_detail.get('error', 'Unknown error')
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item '{item_identifier}': {error_message}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress: the caller decides what a failure means
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Call this method within the 'with' block to report an error for a specific item.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g., a file path).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")
