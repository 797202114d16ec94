"""Autoload lookup over a resolved package set.

Answers two questions for an autoload generator: where each selected
package lives, and which source directories a symbol prefix maps to.
"""

from pkgsat.core.autoload.locator import (
    InstallPathResolver,
    VendorPathResolver,
    build_prefix_index,
    locate,
)
from pkgsat.core.autoload.prefix_index import PrefixIndex

__all__ = [
    "InstallPathResolver",
    "PrefixIndex",
    "VendorPathResolver",
    "build_prefix_index",
    "locate",
]
