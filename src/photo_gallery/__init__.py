"""Photo gallery: startup thumbnail pipeline and authenticated web gallery."""

__version__ = "0.1.0"

from .core.factories import build_index, create_context  # noqa: E402

__all__ = ["__version__", "build_index", "create_context"]
