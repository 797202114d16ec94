"""Loading package universes from YAML or JSON files.

A universe file describes one resolution problem::

    packages:
      - name: acme/http
        version: 1.2.0
        requires: {acme/log: "^1.0"}
        autoload: {"Acme\\\\Http\\\\": src/}
      - name: acme/log
        version: 1.0.0
    installed: [acme/log@1.0.0]
    request:
      - install: acme/http
        constraint: "^1.0"
    policy:
      prefer_lowest: false

JSON is a subset of YAML, so one loader reads both.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pkgsat.core.pool import Package, Pool
from pkgsat.core.solver import Request, SolverPolicy
from pkgsat.exceptions import ConstraintError, PoolError, UniverseError

_PACKAGE_KEYS = frozenset({
    "name", "version", "requires", "conflicts", "provides", "replaces",
    "repository", "priority", "autoload",
})
_JOB_KINDS = ("install", "update", "remove")


@dataclass
class Universe:
    """A parsed universe file: pool, installed ids, request and policy."""

    pool: Pool
    installed: list[int]
    request: Request
    policy: SolverPolicy


def _text(value: Any, where: str) -> str:
    """Return *value* if it is a string.

    YAML reads an unquoted ``1.10`` as the float ``1.1``, so numbers are
    refused instead of converted.
    """
    if not isinstance(value, str):
        raise UniverseError(
            f"{where} must be a quoted string, got {value!r} (write versions as \"1.10\")"
        )
    return value


def _check_links(value: Any, where: str) -> None:
    if isinstance(value, dict):
        for name, constraint in value.items():
            if constraint is not None:
                _text(constraint, f"{where}.{name}")
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, (list, tuple)) and len(item) > 1 and item[1] is not None:
                _text(item[1], f"{where}.{item[0]}")


def _package(entry: Any, position: int) -> Package:
    if not isinstance(entry, dict):
        raise UniverseError(f"packages[{position}] must be a mapping")
    unknown = sorted(set(entry) - _PACKAGE_KEYS)
    if unknown:
        raise UniverseError(f"packages[{position}] has unknown key(s): {', '.join(unknown)}")
    if "name" not in entry or "version" not in entry:
        raise UniverseError(f"packages[{position}] needs a name and a version")
    fields = dict(entry)
    fields["name"] = str(fields["name"])
    fields["version"] = _text(fields["version"], f"packages[{position}].version")
    for key in ("requires", "conflicts", "provides", "replaces"):
        _check_links(fields.get(key), f"packages[{position}].{key}")
    return Package(**fields)


def _installed_id(pool: Pool, spec: Any) -> int:
    if not isinstance(spec, str) or "@" not in spec:
        raise UniverseError(f"Installed entry {spec!r} must look like name@version")
    name, _, version = spec.rpartition("@")
    package_id = pool.find(name, version)
    if package_id is None:
        raise UniverseError(f"Installed package {spec} is not declared under packages")
    return package_id


def _add_job(request: Request, entry: Any, position: int) -> None:
    if not isinstance(entry, dict):
        raise UniverseError(f"request[{position}] must be a mapping")
    kinds = [kind for kind in _JOB_KINDS if kind in entry]
    if len(kinds) != 1:
        raise UniverseError(f"request[{position}] needs exactly one of: {', '.join(_JOB_KINDS)}")
    kind = kinds[0]
    constraint = entry.get("constraint")
    if constraint is not None:
        constraint = _text(constraint, f"request[{position}].constraint")
    getattr(request, kind)(str(entry[kind]), constraint)


def parse_universe(data: Any) -> Universe:
    """Build a ``Universe`` from already-decoded YAML/JSON data.

    Raises:
        UniverseError: If the data does not describe a valid universe.
    """
    if not isinstance(data, dict):
        raise UniverseError("Universe must be a mapping with a 'packages' section")
    packages = data.get("packages") or []
    if not isinstance(packages, list):
        raise UniverseError("'packages' must be a list")

    try:
        pool = Pool(_package(entry, position) for position, entry in enumerate(packages))
        installed = [_installed_id(pool, spec) for spec in data.get("installed") or []]
        request = Request(pool)
        for position, entry in enumerate(data.get("request") or []):
            _add_job(request, entry, position)
        policy = SolverPolicy.from_mapping(data.get("policy"))
    except (ConstraintError, PoolError) as exc:
        raise UniverseError(str(exc)) from exc
    except (TypeError, ValueError) as exc:
        raise UniverseError(f"Invalid universe: {exc}") from exc

    return Universe(pool=pool, installed=installed, request=request, policy=policy)


def load_universe(path: Path) -> Universe:
    """Read and parse a universe file.

    Args:
        path: YAML or JSON file.

    Raises:
        UniverseError: If the file cannot be read, decoded or parsed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, yaml.YAMLError, UnicodeDecodeError) as exc:
        raise UniverseError(f"Cannot read universe {path}: {exc}") from exc
    return parse_universe(data)
