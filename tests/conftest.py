"""Test configuration: project import path and a stable temp directory on WSL."""

from __future__ import annotations

import os
import platform
import sys
import tempfile

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def _is_wsl() -> bool:
    release = platform.release().lower()
    version = platform.version().lower()
    return "microsoft" in release or "microsoft" in version


if _is_wsl() and os.path.isdir("/tmp"):
    os.environ["TMPDIR"] = "/tmp"
    os.environ["TEMP"] = "/tmp"
    os.environ["TMP"] = "/tmp"
    tempfile.tempdir = "/tmp"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("USTAR_SKIP_UNKNOWN_ENTRIES", raising=False)
    monkeypatch.delenv("USTAR_DESTINATION", raising=False)
    monkeypatch.delenv("USTAR_LOG_LEVEL", raising=False)

