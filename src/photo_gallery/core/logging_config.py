"""Centralized logging configuration for the photo gallery."""

import os
import sys
import logging
from typing import Optional, Set

# Level forced by set_debug_logging, ahead of LOG_LEVEL
_level_override: Optional[int] = None
_configured_loggers: Set[str] = set()


def _resolve_level(level: Optional[str]) -> int:
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    if _level_override is not None:
        return _level_override
    env_level = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, env_level, logging.INFO)


def setup_logger(
    name: str = "photo-gallery",
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Setup centralized logging with environment variable configuration.

    Args:
        name: Logger name (defaults to "photo-gallery")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple")
    """
    logger = logging.getLogger(name)

    logger.setLevel(_resolve_level(level))
    _configured_loggers.add(name)

    # Avoid duplicate handlers
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)

        env_format = os.getenv("LOG_FORMAT", format_type).lower()

        if env_format == "structured":
            formatter = logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)-8s | "
                "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = "photo-gallery") -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return setup_logger(name)


def set_debug_logging(enabled: bool = True) -> None:
    """
    Switch every logger handed out by setup_logger to DEBUG.

    Loggers created afterwards start at DEBUG too. Disabling restores the
    LOG_LEVEL configuration. The process environment is left untouched.
    """
    global _level_override
    _level_override = logging.DEBUG if enabled else None
    for name in sorted(_configured_loggers):
        logging.getLogger(name).setLevel(_resolve_level(None))
    logging.getLogger().setLevel(logging.DEBUG if enabled else logging.INFO)


def configure_multiprocessing_logging() -> None:
    """
    Configure logging for multiprocessing to avoid log interleaving.
    Call this in multiprocessing worker functions.
    """
    import multiprocessing

    process_name = multiprocessing.current_process().name
    logger_name = f"photo-gallery.{process_name}"

    setup_logger(logger_name)


# Create default logger instance
logger = setup_logger()
