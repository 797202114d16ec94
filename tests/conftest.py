"""Shared fixtures for pkgsat tests."""

from __future__ import annotations

import pytest

from pkgsat.core.pool import Pool
from tests.helpers import pkg


@pytest.fixture
def simple_pool() -> Pool:
    """a@1.0 requires b ^1.0; b exists at 1.0 and 2.0."""
    return Pool([
        pkg("a", "1.0", requires={"b": "^1.0"}),
        pkg("b", "1.0"),
        pkg("b", "2.0"),
    ])


@pytest.fixture
def versions_pool() -> Pool:
    """Two versions of a single package."""
    return Pool([pkg("a", "1.0"), pkg("a", "2.0")])
