"""Tests for Request / Job construction."""

from __future__ import annotations

import logging

import pytest

from pkgsat.core.pool import ANY, Pool
from pkgsat.core.solver import JobKind, Request


class TestRequest:
    """Jobs are anchored to their candidates when added."""

    def test_install_resolves_candidates_in_pool_order(self, simple_pool: Pool) -> None:
        """Candidates are the pool's providers, newest first."""
        request = Request(simple_pool)
        job = request.install("b")
        assert job.kind is JobKind.INSTALL
        assert job.candidates == (3, 2)
        assert job.constraint == ANY

    def test_constraint_narrows_candidates(self, simple_pool: Pool) -> None:
        """A constraint string is parsed and applied."""
        job = Request(simple_pool).update("B", "^1.0")
        assert job.name == "b"
        assert job.candidates == (2,)
        assert str(job) == "update b ^1.0"

    def test_job_order_is_preserved(self, simple_pool: Pool) -> None:
        """Iteration follows the order jobs were added."""
        request = Request(simple_pool)
        request.install("a")
        request.remove("b")
        assert [job.kind for job in request] == [JobKind.INSTALL, JobKind.REMOVE]
        assert len(request) == 2
        assert request.jobs[1].candidates == (3, 2)
        assert request.pool is simple_pool

    def test_missing_candidates_logs_warning(
        self, simple_pool: Pool, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A job matching nothing is kept, with a warning."""
        with caplog.at_level(logging.WARNING, logger="pkgsat.core.solver.request"):
            job = Request(simple_pool).install("ghost")
        assert job.candidates == ()
        assert "install ghost" in caplog.text

    def test_job_str_without_constraint(self, simple_pool: Pool) -> None:
        """Jobs without a constraint print just kind and name."""
        assert str(Request(simple_pool).remove("a")) == "remove a"
