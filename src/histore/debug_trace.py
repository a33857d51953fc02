"""Logging and performance tracing for histore.

Enable console output with HISTORE_DEBUG=1 and timing logs with
HISTORE_PERF=1.

Usage:
    from .debug_trace import logger, perf_timer

    logger.debug("Starting operation")

    with perf_timer("apply_patches", item_count=len(patches)):
        do_expensive_work()
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager

from .settings import HistoreSettings

# Package logger; every module logs through this one
logger = logging.getLogger("histore")

_settings = HistoreSettings.from_env()


def get_settings() -> HistoreSettings:
    """Get the active settings."""
    return _settings


def setup_debug_logging(settings: HistoreSettings | None = None) -> None:
    """Configure the package logger.

    Installs a console handler only in debug mode and only once.

    Args:
        settings: Settings to apply. Defaults to the ones read from the environment.
    """
    global _settings
    if settings is not None:
        _settings = settings

    logger.setLevel(_settings.effective_level)

    if not _settings.debug or logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


@contextmanager
def perf_timer(operation: str, item_count: int | None = None):
    """Context manager for timing operations.

    Args:
        operation: Name of the operation being timed
        item_count: Optional patch/entry count for context

    Example:
        with perf_timer("apply_patches", item_count=12):
            apply_patches(value, patches)
    """
    if not _settings.perf_tracing:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if item_count is not None:
            logger.debug(f"PERF: {operation} ({item_count} items) took {elapsed_ms:.2f}ms")
        else:
            logger.debug(f"PERF: {operation} took {elapsed_ms:.2f}ms")


# Initialize logging when module is imported
setup_debug_logging()
