"""Settings for extraction runs, resolved from the environment.

Recognised variables:
    - `USTAR_SKIP_UNKNOWN_ENTRIES`: read and discard the content blocks of
      entries that are neither files nor directories (default: on)
    - `USTAR_DESTINATION`: directory entries are extracted under
      (default: the current working directory)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}


def env_bool(environ: Mapping[str, str], key: str, default: bool = False) -> bool:
    value = environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def env_str(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True)
class ExtractSettings:
    """Typed extraction settings."""

    skip_unknown_entries: bool = True
    destination: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExtractSettings":
        environ = os.environ if environ is None else environ
        return cls(
            skip_unknown_entries=env_bool(environ, "USTAR_SKIP_UNKNOWN_ENTRIES", True),
            destination=env_str(environ, "USTAR_DESTINATION"),
        )
