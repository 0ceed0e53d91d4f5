"""Pytest configuration for test isolation.

The CLI configures the ``fiscal_import`` package logger once per process and
reads ``FISCAL_IMPORT_*`` environment variables (possibly from a developer's
local ``.env``). Both would leak between tests, so an autouse fixture resets
the logging flag and clears the variables for each test.
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from fiscal_import.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def _isolate_logging_and_env(monkeypatch: pytest.MonkeyPatch):
    for var in ("FISCAL_IMPORT_LOG_LEVEL", "FISCAL_IMPORT_MAX_WORKERS"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[..., Path]:
    """Write dedented ``text`` to ``tmp_path / name`` and return the path."""

    def _write(name: str, text: str, *, encoding: str = "utf-8", dedent: bool = True) -> Path:
        path = tmp_path / name
        body = textwrap.dedent(text).lstrip("\n") if dedent else text
        path.write_bytes(body.encode(encoding))
        return path

    return _write
