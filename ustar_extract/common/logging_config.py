"""Logging setup for ustar_extract.

The library never configures the root logger. Records go through the
`ustar_extract` logger, which carries a `NullHandler` so that nothing is
printed unless the host application configures logging. The environment
variable `USTAR_LOG_LEVEL` (e.g. `DEBUG`) sets that logger's level.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

PACKAGE_LOGGER = "ustar_extract"


def _level_from_env() -> Optional[int]:
    value = (os.environ.get("USTAR_LOG_LEVEL") or "").strip().upper()
    if not value:
        return None
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a package logger, applying `USTAR_LOG_LEVEL` to the package root."""
    package = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, logging.NullHandler) for h in package.handlers):
        package.addHandler(logging.NullHandler())
    level = _level_from_env()
    if level is not None:
        package.setLevel(level)

    if name and not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name or PACKAGE_LOGGER)


__all__ = ["get_logger"]
