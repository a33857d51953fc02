"""Runtime settings for histore.

Settings are read once from the environment when the package is imported.
Hosts that want different behavior can build their own HistoreSettings and
pass it to setup_debug_logging().
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class HistoreSettings:
    """Logging and tracing configuration.

    Attributes:
        debug: Send log output to the console at DEBUG level.
        perf_tracing: Log timings from perf_timer.
        log_level: Level name used when debug is off.
    """

    debug: bool = False
    perf_tracing: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> HistoreSettings:
        """Build settings from HISTORE_DEBUG, HISTORE_PERF and HISTORE_LOG_LEVEL."""
        return cls(
            debug=_env_flag("HISTORE_DEBUG"),
            perf_tracing=_env_flag("HISTORE_PERF"),
            log_level=os.environ.get("HISTORE_LOG_LEVEL", "WARNING").strip().upper(),
        )

    @property
    def effective_level(self) -> int:
        """Get the numeric logging level these settings ask for."""
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.WARNING
