"""Shared fixtures for CLI tests.

Provides universe files for the common outcomes: a resolvable install,
an update of an installed package, an unsatisfiable request and a
malformed file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

HTTP_UNIVERSE = """\
packages:
  - name: acme/http
    version: 1.2.0
    requires: {acme/log: "^1.0"}
  - name: acme/log
    version: 1.0.0
  - name: acme/log
    version: 1.1.0
request:
  - install: acme/http
"""


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def write_universe(tmp_path: Path):
    """Return a helper that writes universe text to a file and returns its path."""
    def _write(text: str, filename: str = "universe.yaml") -> Path:
        path = tmp_path / filename
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def http_universe_text() -> str:
    """Universe text for the acme/http example, without a policy section."""
    return HTTP_UNIVERSE


@pytest.fixture
def http_universe(write_universe) -> Path:
    """acme/http requires acme/log ^1.0; two acme/log versions available."""
    return write_universe(HTTP_UNIVERSE)


@pytest.fixture
def update_universe(write_universe) -> Path:
    """acme/log 1.0.0 installed, update requested."""
    return write_universe(
        "packages:\n"
        "  - {name: acme/log, version: 1.0.0}\n"
        "  - {name: acme/log, version: 1.1.0}\n"
        "installed: [acme/log@1.0.0]\n"
        "request:\n"
        "  - update: acme/log\n"
    )


@pytest.fixture
def conflict_universe(write_universe) -> Path:
    """Two packages that conflict, both requested."""
    return write_universe(
        "packages:\n"
        "  - name: a\n"
        "    version: 1.0.0\n"
        "    conflicts: {b: '*'}\n"
        "  - {name: b, version: 1.0.0}\n"
        "request:\n"
        "  - install: a\n"
        "  - install: b\n"
    )


@pytest.fixture
def malformed_universe(write_universe) -> Path:
    """A packages section holding a bare string instead of a mapping."""
    return write_universe("packages:\n  - oops\n")


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo any root logger changes made by ``--verbose``."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
