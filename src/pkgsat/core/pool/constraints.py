"""Version ordering and the version-constraint algebra.

This module provides the foundational data types for declaring which
versions of a capability a package accepts. Every constraint denotes a set
of versions, stored as a normalized union of intervals over the total
version order; ``matches`` and ``intersects`` are interval tests.

Constraint syntax follows Composer / SemVer conventions: exact match
(``1.0``, ``=1.0``, ``==1.0``), comparisons (``>=``, ``<=``, ``>``, ``<``,
``!=``), caret (``^``), tilde (``~``), wildcard (``1.2.*``), hyphen ranges
(``1.0 - 2.0``), conjunctions (``>=1.0,<2.0`` or ``>=1.0 <2.0``) and
disjunctions (``^1.0 || ^2.0``).

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property, total_ordering
from typing import Union

from pkgsat.exceptions import ConstraintError


# ---------------------------------------------------------------------------
# Version ordering
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(
    r"^v?(?P<nums>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<pre>[0-9A-Za-z][0-9A-Za-z.\-]*)|(?P<tag>[A-Za-z][0-9A-Za-z.\-]*))?"
    r"(?:\+[0-9A-Za-z.\-]+)?$"
)

_IDENTIFIER_RE = re.compile(r"\d+|[A-Za-z]+")

# Known pre-release tags rank by stability; unknown tags sort after them.
_STABILITY = {"dev": 0, "alpha": 1, "a": 1, "beta": 2, "b": 2, "rc": 3}

_NUMERIC_WIDTH = 4

VersionKey = tuple


def _split_version(version: str) -> tuple[tuple[int, ...], tuple]:
    """Split a version string into its numeric parts and pre-release key.

    Raises:
        ConstraintError: If the string is not a valid version.
    """
    m = _VERSION_RE.match(version.strip())
    if not m:
        raise ConstraintError(f"Invalid version: {version!r}")
    nums = tuple(int(part) for part in m.group("nums").split("."))
    pre_text = m.group("pre") or m.group("tag") or ""
    pre: list[tuple[int, int, str]] = []
    for ident in _IDENTIFIER_RE.findall(pre_text):
        if ident.isdigit():
            pre.append((0, int(ident), ""))
        else:
            lowered = ident.lower()
            pre.append((1, _STABILITY.get(lowered, len(_STABILITY)), lowered))
    return nums, tuple(pre)


def _pad(nums: tuple[int, ...]) -> tuple[int, ...]:
    return nums + (0,) * (_NUMERIC_WIDTH - len(nums))


def version_key(version: str) -> VersionKey:
    """Sort key for version strings under the total version order.

    Numeric parts are padded to four components so ``1.0`` == ``1.0.0``.
    A pre-release sorts before its release; pre-release identifiers compare
    numerically when numeric, by stability tag otherwise.

    Raises:
        ConstraintError: If *version* is not a valid version string.
    """
    nums, pre = _split_version(version)
    return _pad(nums) + ((0, pre) if pre else (1, ()))


def _floor_key(nums: tuple[int, ...]) -> VersionKey:
    """Smallest key carrying the numeric parts *nums*, pre-releases included."""
    return _pad(nums) + (0, ())


def _release_key(nums: tuple[int, ...]) -> VersionKey:
    return _pad(nums) + (1, ())


def compare_versions(left: str, right: str) -> int:
    """Three-way comparison of two version strings (-1, 0 or 1)."""
    a, b = version_key(left), version_key(right)
    return (a > b) - (a < b)


def is_valid_version(version: str) -> bool:
    """Return True if *version* parses as a version string."""
    return _VERSION_RE.match(version.strip()) is not None


# ---------------------------------------------------------------------------
# Intervals over the version order
# ---------------------------------------------------------------------------


@total_ordering
@dataclass(frozen=True)
class Interval:
    """A contiguous range of version keys; ``None`` bounds are unbounded."""

    low: VersionKey | None = None
    low_inclusive: bool = False
    high: VersionKey | None = None
    high_inclusive: bool = False

    @property
    def is_empty(self) -> bool:
        if self.low is None or self.high is None:
            return False
        if self.low > self.high:
            return True
        return self.low == self.high and not (self.low_inclusive and self.high_inclusive)

    def contains(self, key: VersionKey) -> bool:
        if self.low is not None:
            if key < self.low or (key == self.low and not self.low_inclusive):
                return False
        if self.high is not None:
            if key > self.high or (key == self.high and not self.high_inclusive):
                return False
        return True

    def intersect(self, other: Interval) -> Interval:
        if self.low is None:
            low, low_inc = other.low, other.low_inclusive
        elif other.low is None or self.low > other.low:
            low, low_inc = self.low, self.low_inclusive
        elif other.low > self.low:
            low, low_inc = other.low, other.low_inclusive
        else:
            low, low_inc = self.low, self.low_inclusive and other.low_inclusive

        if self.high is None:
            high, high_inc = other.high, other.high_inclusive
        elif other.high is None or self.high < other.high:
            high, high_inc = self.high, self.high_inclusive
        elif other.high < self.high:
            high, high_inc = other.high, other.high_inclusive
        else:
            high, high_inc = self.high, self.high_inclusive and other.high_inclusive
        return Interval(low, low_inc, high, high_inc)

    def _sort_key(self) -> tuple:
        if self.low is None:
            return (0,)
        return (1, self.low, 0 if self.low_inclusive else 1)

    def __lt__(self, other: Interval) -> bool:
        return self._sort_key() < other._sort_key()


_UNBOUNDED = Interval()


def _touches(left: Interval, right: Interval) -> bool:
    """True if *right* (sorted after *left*) overlaps or abuts *left*."""
    if left.high is None or right.low is None:
        return True
    if right.low < left.high:
        return True
    return right.low == left.high and (right.low_inclusive or left.high_inclusive)


def _normalize(intervals) -> tuple[Interval, ...]:
    """Sort, drop empty intervals and merge overlapping ones."""
    merged: list[Interval] = []
    for interval in sorted(i for i in intervals if not i.is_empty):
        if merged and _touches(merged[-1], interval):
            last = merged[-1]
            if last.high is None or interval.high is None:
                high, high_inc = None, False
            elif interval.high > last.high:
                high, high_inc = interval.high, interval.high_inclusive
            elif interval.high < last.high:
                high, high_inc = last.high, last.high_inclusive
            else:
                high, high_inc = last.high, last.high_inclusive or interval.high_inclusive
            merged[-1] = Interval(last.low, last.low_inclusive, high, high_inc)
        else:
            merged.append(interval)
    return tuple(merged)


def _intersect_all(left, right) -> tuple[Interval, ...]:
    return _normalize(a.intersect(b) for a in left for b in right)


# ---------------------------------------------------------------------------
# Constraint variants
# ---------------------------------------------------------------------------


class Constraint:
    """A predicate over versions.

    Concrete variants are frozen dataclasses; ``intervals`` is the
    normalized set of versions each denotes.
    """

    @property
    def intervals(self) -> tuple[Interval, ...]:  # pragma: no cover - abstract
        raise NotImplementedError

    def matches(self, version: str) -> bool:
        """Check whether a version string satisfies this constraint.

        Raises:
            ConstraintError: If *version* is not a valid version.
        """
        key = version_key(version)
        return any(interval.contains(key) for interval in self.intervals)

    def intersects(self, other: Constraint) -> bool:
        """Check whether some version satisfies both constraints."""
        return bool(_intersect_all(self.intervals, other.intervals))


@dataclass(frozen=True)
class AnyConstraint(Constraint):
    """Matches every version (``*``)."""

    @property
    def intervals(self) -> tuple[Interval, ...]:
        return (_UNBOUNDED,)

    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True)
class ExactConstraint(Constraint):
    """Matches one version; ``1.0`` and ``1.0.0`` are the same version."""

    version: str

    def __post_init__(self) -> None:
        version_key(self.version)

    @cached_property
    def intervals(self) -> tuple[Interval, ...]:
        key = version_key(self.version)
        return (Interval(key, True, key, True),)

    def __str__(self) -> str:
        return f"=={self.version}"


_OPERATORS = (">=", "<=", "!=", ">", "<")


@dataclass(frozen=True)
class ComparisonConstraint(Constraint):
    """A single comparison such as ``>=1.2`` or ``!=2.0``."""

    operator: str
    version: str

    def __post_init__(self) -> None:
        if self.operator not in _OPERATORS:
            raise ConstraintError(f"Unknown operator: {self.operator!r}")
        version_key(self.version)

    @cached_property
    def intervals(self) -> tuple[Interval, ...]:
        nums, pre = _split_version(self.version)
        key = version_key(self.version)
        op = self.operator
        if op == ">=":
            return (Interval(key if pre else _release_key(nums), True, None, False),)
        if op == ">":
            return (Interval(key, False, None, False),)
        if op == "<=":
            return (Interval(None, False, key, True),)
        if op == "<":
            return (Interval(None, False, key if pre else _floor_key(nums), False),)
        return (Interval(None, False, key, False), Interval(key, False, None, False))

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"


@dataclass(frozen=True)
class WildcardConstraint(Constraint):
    """Matches every version under a numeric prefix, e.g. ``1.2.*``."""

    prefix: str

    def __post_init__(self) -> None:
        if not re.fullmatch(r"\d+(?:\.\d+){0,2}", self.prefix):
            raise ConstraintError(f"Invalid wildcard prefix: {self.prefix!r}")

    @cached_property
    def intervals(self) -> tuple[Interval, ...]:
        nums = tuple(int(part) for part in self.prefix.split("."))
        upper = nums[:-1] + (nums[-1] + 1,)
        return (Interval(_floor_key(nums), True, _floor_key(upper), False),)

    def __str__(self) -> str:
        return f"{self.prefix}.*"


@dataclass(frozen=True)
class RangeConstraint(Constraint):
    """Conjunction of constraints; every member must hold.

    Caret, tilde and hyphen ranges compile into a range and keep the text
    they were written as in ``label``.
    """

    constraints: tuple[Constraint, ...]
    label: str | None = field(default=None, compare=False)

    @cached_property
    def intervals(self) -> tuple[Interval, ...]:
        result: tuple[Interval, ...] = (_UNBOUNDED,)
        for constraint in self.constraints:
            result = _intersect_all(result, constraint.intervals)
        return result

    def __str__(self) -> str:
        return self.label or ",".join(str(c) for c in self.constraints)


@dataclass(frozen=True)
class UnionConstraint(Constraint):
    """Disjunction of constraints; any member may hold (``||``)."""

    constraints: tuple[Constraint, ...]
    label: str | None = field(default=None, compare=False)

    @cached_property
    def intervals(self) -> tuple[Interval, ...]:
        return _normalize(i for c in self.constraints for i in c.intervals)

    def __str__(self) -> str:
        return self.label or " || ".join(str(c) for c in self.constraints)


ANY = AnyConstraint()

ConstraintLike = Union[Constraint, str, None]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_VERSION_TEXT = r"v?\d+(?:\.\d+){0,3}(?:-[0-9A-Za-z][0-9A-Za-z.\-]*|[A-Za-z][0-9A-Za-z.\-]*)?"

_ATOM_RE = re.compile(rf"^(?P<op>>=|<=|!=|==|=|>|<)?(?P<ver>{_VERSION_TEXT})$")
_CARET_RE = re.compile(rf"^\^(?P<ver>{_VERSION_TEXT})$")
_TILDE_RE = re.compile(rf"^~(?P<ver>{_VERSION_TEXT})$")
_WILDCARD_RE = re.compile(r"^v?(?P<prefix>\d+(?:\.\d+){0,2})\.\*$")
_HYPHEN_RE = re.compile(rf"^(?P<low>{_VERSION_TEXT})\s+-\s+(?P<high>{_VERSION_TEXT})$")
_OPERATOR_SPACE_RE = re.compile(r"(>=|<=|!=|==|=|>|<|\^|~)\s+")


def _format_nums(nums) -> str:
    return ".".join(str(n) for n in nums)


def _caret(version: str, text: str) -> Constraint:
    nums, _ = _split_version(version)
    index = next((i for i, n in enumerate(nums) if n != 0), len(nums) - 1)
    upper = nums[:index] + (nums[index] + 1,)
    return RangeConstraint(
        (ComparisonConstraint(">=", version), ComparisonConstraint("<", _format_nums(upper))),
        label=text,
    )


def _tilde(version: str, text: str) -> Constraint:
    nums, _ = _split_version(version)
    if len(nums) == 1:
        upper = (nums[0] + 1,)
    else:
        upper = nums[:-2] + (nums[-2] + 1,)
    return RangeConstraint(
        (ComparisonConstraint(">=", version), ComparisonConstraint("<", _format_nums(upper))),
        label=text,
    )


def _parse_atom(atom: str) -> Constraint:
    if atom == "*":
        return ANY
    m = _WILDCARD_RE.match(atom)
    if m:
        return WildcardConstraint(m.group("prefix"))
    m = _CARET_RE.match(atom)
    if m:
        return _caret(m.group("ver"), atom)
    m = _TILDE_RE.match(atom)
    if m:
        return _tilde(m.group("ver"), atom)
    m = _ATOM_RE.match(atom)
    if m:
        op, ver = m.group("op"), m.group("ver")
        if op in (None, "=", "=="):
            return ExactConstraint(ver)
        return ComparisonConstraint(op, ver)
    raise ConstraintError(f"Invalid constraint atom: {atom!r}")


def _parse_conjunction(text: str) -> Constraint:
    m = _HYPHEN_RE.match(text)
    if m:
        return RangeConstraint(
            (ComparisonConstraint(">=", m.group("low")), ComparisonConstraint("<=", m.group("high"))),
            label=text,
        )
    normalized = _OPERATOR_SPACE_RE.sub(r"\1", text)
    atoms = [a for a in re.split(r"\s*,\s*|\s+", normalized) if a]
    if not atoms:
        raise ConstraintError(f"Empty constraint in {text!r}")
    if len(atoms) == 1:
        return _parse_atom(atoms[0])
    return RangeConstraint(tuple(_parse_atom(a) for a in atoms), label=text)


def parse_constraint(text: ConstraintLike) -> Constraint:
    """Parse a constraint string into a ``Constraint`` value.

    ``None``, ``""`` and ``"*"`` all mean "any version". Constraint
    instances are returned unchanged.

    Raises:
        ConstraintError: If the string is not a valid constraint.
    """
    if text is None:
        return ANY
    if isinstance(text, Constraint):
        return text
    if not isinstance(text, str):
        raise ConstraintError(f"Constraint must be a string, got {type(text).__name__}")
    raw = text.strip()
    if raw in ("", "*"):
        return ANY
    alternatives = [a.strip() for a in re.split(r"\|\|?", raw)]
    if len(alternatives) > 1:
        if not all(alternatives):
            raise ConstraintError(f"Empty alternative in constraint {text!r}")
        return UnionConstraint(tuple(_parse_conjunction(a) for a in alternatives), label=raw)
    return _parse_conjunction(raw)
