"""Image processing utilities for the photo gallery."""

import hashlib
import io
import os
from typing import List, Tuple

from PIL import Image, ImageOps
from PIL.JpegImagePlugin import JpegImageFile

from .error_handling import with_error_handling
from .exceptions import DirectoryAccessError
from .logging_config import get_logger

JPEG_SUFFIXES = (".jpg",)
LETTERBOX_COLOR = (0, 0, 0)


def find_jpeg_files(root: str) -> List[str]:
    """
    Recursively list the JPEG files below ``root``.

    Matching is case-insensitive on the ``.jpg`` suffix. Directory entries
    are sorted at every level so that repeated runs over an unchanged tree
    yield the same order.

    Args:
        root: Directory to scan

    Returns:
        Absolute paths of the matching files

    Raises:
        DirectoryAccessError: If ``root`` is missing, not a directory or unreadable
    """
    logger = get_logger("enumerator")
    root = os.path.abspath(root)

    if not os.path.isdir(root):
        raise DirectoryAccessError(f"Photo directory not found: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise DirectoryAccessError(f"Photo directory is not readable: {root}")

    def _on_error(error: OSError) -> None:
        if os.path.abspath(error.filename or "") == root:
            raise DirectoryAccessError(
                f"Photo directory is not readable: {root}: {error}"
            ) from error
        logger.warning(f"Skipping unreadable directory {error.filename}: {error}")

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.lower().endswith(JPEG_SUFFIXES):
                files.append(os.path.join(dirpath, filename))

    logger.info(f"Found {len(files)} JPEG files in {root}")
    return files


def _contain(image: "Image.Image", width: int, height: int) -> "Image.Image":
    image = ImageOps.exif_transpose(image)
    if image.mode != "RGB":
        image = image.convert("RGB")
    return ImageOps.pad(
        image,
        (width, height),
        method=Image.Resampling.LANCZOS,
        color=LETTERBOX_COLOR,
    )


def _encode_jpeg(image: "Image.Image", quality: int) -> bytes:
    output = io.BytesIO()
    image.save(output, format="JPEG", quality=quality)
    return output.getvalue()


@with_error_handling
def make_thumbnail(path: str, width: int, height: int, quality: int = 80) -> bytes:
    """
    Create a letterboxed JPEG thumbnail of exactly ``width`` x ``height``.

    The stored EXIF orientation is applied before resizing so the pixels
    match the intended display orientation.
    """
    with Image.open(path) as image:
        image.load()
        # Camera files carrying MPF data open as MpoImageFile, a JpegImageFile subclass
        if not isinstance(image, JpegImageFile):
            raise ValueError(f"{path} is {image.format}, not JPEG")
        thumbnail = _contain(image, width, height)
    return _encode_jpeg(thumbnail, quality)


@with_error_handling
def scale_image(path: str, width: int, height: int, quality: int = 80) -> bytes:
    """Rescale a full image to fit ``width`` x ``height`` (contain fit)."""
    with Image.open(path) as image:
        image.load()
        scaled = _contain(image, width, height)
    return _encode_jpeg(scaled, quality)


def hash_image(image_bytes: bytes) -> str:
    """SHA-256 hex digest of encoded image bytes, used as the ETag."""
    hasher = hashlib.sha256()
    hasher.update(image_bytes)
    return hasher.hexdigest()


def image_dimensions(image_bytes: bytes) -> Tuple[int, int]:
    """Width and height of an encoded image buffer."""
    with Image.open(io.BytesIO(image_bytes)) as image:
        return image.size
