"""pkgsat exception hierarchy.

All public exceptions inherit from PkgSatError, giving callers a single
base class to catch when they want to handle any pkgsat-specific failure
without swallowing unrelated errors.

Unsatisfiable requests and aborted searches are *not* exceptions: the
resolver reports them as result values (see ``Resolution``).
"""


class PkgSatError(Exception):
    """Base exception for all pkgsat errors."""


class ConstraintError(PkgSatError, ValueError):
    """Raised when a version or version constraint cannot be parsed.

    Covers malformed version strings on package records and malformed
    constraint strings on links and jobs. Always raised at construction
    time, never during the search.
    """


class PoolError(PkgSatError):
    """Raised when a package universe cannot be indexed.

    Covers duplicate package records and installed-package ids that do not
    belong to the pool.
    """


class UniverseError(PkgSatError):
    """Raised when a universe file handed to the CLI is malformed.

    Covers missing sections, wrong value types and references to packages
    that the file does not declare.
    """
