"""Package records, version constraints and the indexed package Pool.

Formal Definition
-----------------
A package universe is a triple U = (P, V, L) where:

- **P** = finite set of package records, each with a stable id in the Pool
- **V**: P -> Versions = the version of each record, totally ordered
- **L**: P -> 2^(Kind x Name x Constraint) = declared links, with
  Kind in {requires, conflicts, provides, replaces}

``Pool.what_provides(name, constraint)`` answers the provider query
{p in P | p provides name at some version allowed by constraint}.
"""

from pkgsat.core.pool.constraints import (
    ANY,
    AnyConstraint,
    ComparisonConstraint,
    ConstraintLike,
    Constraint,
    ExactConstraint,
    Interval,
    RangeConstraint,
    UnionConstraint,
    WildcardConstraint,
    compare_versions,
    is_valid_version,
    parse_constraint,
    version_key,
)
from pkgsat.core.pool.package import Link, Package, normalize_name
from pkgsat.core.pool.pool import Pool

__all__ = [
    "ANY",
    "AnyConstraint",
    "ComparisonConstraint",
    "ConstraintLike",
    "Constraint",
    "ExactConstraint",
    "Interval",
    "Link",
    "Package",
    "Pool",
    "RangeConstraint",
    "UnionConstraint",
    "WildcardConstraint",
    "compare_versions",
    "is_valid_version",
    "normalize_name",
    "parse_constraint",
    "version_key",
]
