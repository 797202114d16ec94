"""Tests for universe file parsing.

Verifies:
    - A full universe parses into pool, installed ids, request and policy.
    - JSON files load through the same loader.
    - Every malformed shape raises UniverseError with a useful message.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkgsat.cli.universe import load_universe, parse_universe
from pkgsat.core.solver import JobKind
from pkgsat.exceptions import UniverseError


def _packages(*entries: dict) -> dict:
    return {"packages": list(entries)}


class TestParseUniverse:
    """Tests for well-formed universes."""

    def test_full_universe(self) -> None:
        universe = parse_universe({
            "packages": [
                {"name": "acme/http", "version": "1.2.0", "requires": {"acme/log": "^1.0"},
                 "autoload": {"Acme\\Http\\": "src/"}},
                {"name": "acme/log", "version": "1.0.0"},
            ],
            "installed": ["acme/log@1.0.0"],
            "request": [{"install": "acme/http", "constraint": "^1.0"}, {"remove": "acme/log"}],
            "policy": {"prefer_lowest": True},
        })
        assert len(universe.pool) == 2
        assert universe.installed == [2]
        assert [job.kind for job in universe.request] == [JobKind.INSTALL, JobKind.REMOVE]
        assert universe.policy.prefer_lowest is True
        assert universe.pool.package(1).autoload == (("Acme\\Http\\", "src/"),)

    def test_quoted_versions_stay_distinct(self, tmp_path: Path) -> None:
        """Quoted ``"1.10"`` and ``"1.1"`` are two releases."""
        path = tmp_path / "universe.yaml"
        path.write_text(
            "packages:\n"
            "  - {name: a, version: \"1.10\"}\n"
            "  - {name: a, version: \"1.1\"}\n"
            "  - {name: b, version: \"1.0\", requires: {a: \"1.10\"}}\n"
        )
        universe = load_universe(path)
        assert [package.version for package in universe.pool] == ["1.10", "1.1", "1.0"]
        assert universe.pool.what_provides("a", "1.10") == [1]

    def test_empty_sections(self) -> None:
        universe = parse_universe({"packages": []})
        assert len(universe.pool) == 0
        assert universe.installed == []
        assert len(universe.request) == 0

    def test_load_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "universe.json"
        path.write_text(json.dumps({
            "packages": [{"name": "a", "version": "1.0"}],
            "request": [{"install": "a"}],
        }))
        universe = load_universe(path)
        assert universe.request.jobs[0].candidates == (1,)


class TestMalformedUniverse:
    """Every malformed shape is reported as UniverseError."""

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            (["not", "a", "mapping"], "must be a mapping"),
            ({"packages": "a"}, "'packages' must be a list"),
            (_packages("a"), "packages[0] must be a mapping"),
            (_packages({"name": "a"}), "needs a name and a version"),
            (_packages({"name": "a", "version": "1.0", "colour": "red"}), "unknown key(s): colour"),
            (_packages({"name": "a", "version": "one"}), "Invalid version"),
            (_packages({"name": "a", "version": "1.0", "requires": {"b": ">>1"}}), "Invalid constraint"),
        ],
    )
    def test_bad_packages(self, data, message: str) -> None:
        with pytest.raises(UniverseError) as excinfo:
            parse_universe(data)
        assert message in str(excinfo.value)

    def test_unquoted_version_is_rejected(self, tmp_path: Path) -> None:
        """``version: 1.10`` would silently become 1.1; it is refused."""
        path = tmp_path / "universe.yaml"
        path.write_text(
            "packages:\n"
            "  - {name: a, version: 1.10}\n"
            "  - {name: a, version: 1.1}\n"
        )
        with pytest.raises(UniverseError, match=r"packages\[0\]\.version must be a quoted string"):
            load_universe(path)

    def test_unquoted_link_constraint_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "universe.yaml"
        path.write_text(
            "packages:\n"
            "  - {name: b, version: \"1.0\", requires: {a: 1.10}}\n"
        )
        with pytest.raises(UniverseError, match=r"packages\[0\]\.requires\.a must be a quoted string"):
            load_universe(path)

    def test_unquoted_job_constraint_is_rejected(self) -> None:
        with pytest.raises(UniverseError, match=r"request\[0\]\.constraint"):
            parse_universe({
                **_packages({"name": "a", "version": "1.10"}),
                "request": [{"install": "a", "constraint": 1.1}],
            })

    def test_duplicate_package(self) -> None:
        with pytest.raises(UniverseError):
            parse_universe(_packages({"name": "a", "version": "1.0"}, {"name": "a", "version": "1.0"}))

    def test_installed_without_version(self) -> None:
        with pytest.raises(UniverseError, match="name@version"):
            parse_universe({**_packages({"name": "a", "version": "1.0"}), "installed": ["a"]})

    def test_installed_not_declared(self) -> None:
        with pytest.raises(UniverseError, match="not declared"):
            parse_universe({**_packages({"name": "a", "version": "1.0"}), "installed": ["a@2.0"]})

    def test_job_with_two_kinds(self) -> None:
        with pytest.raises(UniverseError, match="exactly one of"):
            parse_universe({"packages": [], "request": [{"install": "a", "remove": "a"}]})

    def test_job_not_a_mapping(self) -> None:
        with pytest.raises(UniverseError, match=r"request\[0\] must be a mapping"):
            parse_universe({"packages": [], "request": ["install a"]})

    def test_unknown_policy_option(self) -> None:
        with pytest.raises(UniverseError, match="fastest"):
            parse_universe({"packages": [], "policy": {"fastest": True}})

    def test_negative_budget(self) -> None:
        with pytest.raises(UniverseError, match="max_decisions"):
            parse_universe({"packages": [], "policy": {"max_decisions": -1}})

    def test_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("packages: [\n")
        with pytest.raises(UniverseError, match="Cannot read universe"):
            load_universe(path)
