"""Testing utilities and fakes for the photo gallery."""

from .fakes import (
    FakeFileDiscoveryService,
    FakeLogger,
    RecordingTask,
    create_test_image,
    setup_test_photo_directory,
    write_test_image,
)

__all__ = [
    "FakeFileDiscoveryService",
    "FakeLogger",
    "RecordingTask",
    "create_test_image",
    "setup_test_photo_directory",
    "write_test_image",
]
