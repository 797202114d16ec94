"""Where selected packages live, and which of them provide a capability.

This is the narrow interface the resolver core exposes to an autoload
generator: it never writes files, it only answers questions about the
resolved package set.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from typing import Protocol

from pkgsat.core.autoload.prefix_index import PrefixIndex
from pkgsat.core.pool import ConstraintLike, Package, Pool

logger = logging.getLogger(__name__)


class InstallPathResolver(Protocol):
    """Maps a package to the directory it is installed into."""

    def install_path(self, package: Package) -> str: ...


class VendorPathResolver:
    """Installs every package under ``<vendor_dir>/<name>``.

    Args:
        vendor_dir: Base directory, relative to the project root.
    """

    def __init__(self, vendor_dir: str = "vendor") -> None:
        self.vendor_dir = vendor_dir.rstrip("/")

    def install_path(self, package: Package) -> str:
        return posixpath.join(self.vendor_dir, package.name)


def _join(base: str, relative: str) -> str:
    if not base:
        return posixpath.normpath(relative) if relative else "."
    return posixpath.normpath(posixpath.join(base, relative))


def build_prefix_index(
    pool: Pool,
    package_ids: Iterable[int],
    paths: InstallPathResolver,
    root: Package | None = None,
) -> PrefixIndex:
    """Register the autoload mapping of every selected package.

    Packages are visited by name then version, so the paths of one prefix
    are listed in a stable order. The optional *root* package is mapped
    relative to the project root itself.

    Args:
        pool: The package universe.
        package_ids: The resolved (selected) ids.
        paths: Install location strategy.
        root: The project's own package, if it declares autoload entries.

    Returns:
        The populated ``PrefixIndex``.
    """
    index = PrefixIndex()
    packages = sorted((pool.package(pid) for pid in package_ids), key=lambda p: p.sort_key)
    located = [(package, paths.install_path(package)) for package in packages]
    if root is not None:
        located.append((root, ""))
    for package, base in located:
        for prefix, relative in package.autoload:
            index.register(prefix, _join(base, relative))
    logger.debug("Autoload index holds %d prefix(es) from %d package(s)", len(index), len(located))
    return index


def locate(
    pool: Pool,
    package_ids: Iterable[int],
    name: str,
    constraint: ConstraintLike,
    paths: InstallPathResolver,
) -> list[str]:
    """Install locations of the selected packages that provide ``name``.

    Providers come back in pool index order (priority, then newest first).
    """
    selected = set(package_ids)
    return [
        paths.install_path(pool.package(pid))
        for pid in pool.what_provides(name, constraint)
        if pid in selected
    ]
