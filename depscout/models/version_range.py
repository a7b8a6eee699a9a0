"""
Version range model for depscout.

Parses NuGet version-range expressions into :class:`VersionRange` objects
and tests versions for containment.

Supported syntax::

    1.0                  1.0 <= x
    [1.0]                x == 1.0
    (1.0, )              1.0 <  x
    [1.0, 2.0)           1.0 <= x < 2.0
    (, 2.0]              x <= 2.0
    1.*  1.2.*  *        floating release components
    1.0.0-*  1.0.0-rc*   floating prerelease labels
    1.*-*  *-*  *-rc*    floating release and prerelease together

A floating expression may also appear as the lower bound of an interval,
e.g. ``[1.*, 2.0)``. Every range exposes a minimum version; expressions
without a lower bound use ``0.0.0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from depscout.exceptions import InvalidConstraintError, InvalidVersionError
from depscout.models.version import NuGetVersion

# Public API
__all__ = [
    "FloatBehavior",
    "FloatRange",
    "VersionRange",
    "parse_range",
    "satisfies",
]

_ZERO = NuGetVersion(0)

_LABEL_PATTERN = re.compile(r"^[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*$")


class FloatBehavior(Enum):
    """Which part of a version a floating range tracks."""

    NONE = "none"
    PRERELEASE = "prerelease"
    REVISION = "revision"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    ABSOLUTE_LATEST = "absolute_latest"
    PRERELEASE_REVISION = "prerelease_revision"
    PRERELEASE_PATCH = "prerelease_patch"
    PRERELEASE_MINOR = "prerelease_minor"


# Number of fixed release components -> behavior when the label floats too
_PRERELEASE_RELEASE_FLOATS = {
    1: FloatBehavior.PRERELEASE_MINOR,
    2: FloatBehavior.PRERELEASE_PATCH,
    3: FloatBehavior.PRERELEASE_REVISION,
}

# Number of fixed release components -> behavior for stable floats
_RELEASE_FLOATS = {
    1: FloatBehavior.MINOR,
    2: FloatBehavior.PATCH,
    3: FloatBehavior.REVISION,
}


@dataclass(frozen=True)
class FloatRange:
    """
    The floating part of a version range.

    Attributes:
        float_behavior: Which component floats.
        min_version: Lowest version the float can resolve to.
        release_prefix: Prerelease label prefix for label floats
            (``"rc"`` for ``1.0.0-rc*``).
        original_string: The expression this float was parsed from.
    """

    float_behavior: FloatBehavior
    min_version: NuGetVersion
    release_prefix: str = ""
    original_string: str = ""

    @classmethod
    def parse(cls, text: str) -> "FloatRange":
        """
        Parse a floating (or plain) version expression.

        Args:
            text: Expression such as ``"1.*"``, ``"1.0.0-beta*"`` or ``"2.1"``.

        Returns:
            The parsed float range; ``float_behavior`` is ``NONE`` for a
            plain version.

        Raises:
            InvalidConstraintError: If *text* is not a valid expression.
        """
        expr = text.strip()

        if not expr.endswith("*"):
            return cls(FloatBehavior.NONE, _parse_bound(expr, text), "", expr)

        if expr == "*":
            return cls(FloatBehavior.MAJOR, _ZERO, "", expr)

        dash = expr.find("-")
        if dash == -1:
            fixed = _fixed_release(expr, text)
            return cls(
                _RELEASE_FLOATS[len(fixed)],
                _release_version(fixed),
                "",
                expr,
            )

        release_part = expr[:dash]
        label_prefix = expr[dash + 1 : -1]

        if release_part == "*" or release_part.endswith(".*"):
            if release_part == "*":
                return cls(
                    FloatBehavior.ABSOLUTE_LATEST,
                    NuGetVersion(0, release_labels=_min_labels(label_prefix, text)),
                    label_prefix,
                    expr,
                )
            fixed = _fixed_release(release_part, text)
            return cls(
                _PRERELEASE_RELEASE_FLOATS[len(fixed)],
                _release_version(fixed, _min_labels(label_prefix, text)),
                label_prefix,
                expr,
            )

        base = _parse_bound(release_part, text)
        if base.is_prerelease or base.metadata:
            raise InvalidConstraintError(
                f"Invalid floating range: {text!r}",
                constraint=text,
            )
        return cls(
            FloatBehavior.PRERELEASE,
            NuGetVersion(
                base.major,
                base.minor,
                base.patch,
                base.revision,
                release_labels=_min_labels(label_prefix, text),
            ),
            label_prefix,
            expr,
        )

    @property
    def is_floating(self) -> bool:
        return self.float_behavior is not FloatBehavior.NONE

    def satisfies(self, version: NuGetVersion) -> bool:
        """
        Check whether *version* matches the floating pattern itself.

        This is pattern matching only (``1.*`` matches any stable ``1.x``);
        interval containment is :meth:`VersionRange.satisfies`.
        """
        behavior = self.float_behavior
        low = self.min_version

        if behavior is FloatBehavior.ABSOLUTE_LATEST:
            if not version.is_prerelease:
                return True
            return version.release_label.lower().startswith(
                self.release_prefix.lower()
            )
        if behavior is FloatBehavior.MAJOR:
            return not version.is_prerelease
        if behavior is FloatBehavior.PRERELEASE_REVISION:
            return version.release[:3] == low.release[:3]
        if behavior is FloatBehavior.PRERELEASE_PATCH:
            return version.release[:2] == low.release[:2]
        if behavior is FloatBehavior.PRERELEASE_MINOR:
            return version.major == low.major
        if behavior is FloatBehavior.PRERELEASE:
            if not version.same_base(low):
                return False
            if not version.is_prerelease:
                return True
            return version.release_label.lower().startswith(
                self.release_prefix.lower()
            )

        # Everything below floats stable versions only
        if version.is_prerelease:
            return False
        if behavior is FloatBehavior.REVISION:
            return version.release[:3] == low.release[:3]
        if behavior is FloatBehavior.PATCH:
            return version.release[:2] == low.release[:2]
        if behavior is FloatBehavior.MINOR:
            return version.major == low.major
        return version == low


@dataclass(frozen=True)
class VersionRange:
    """
    A parsed version range.

    Attributes:
        min_version: Lower bound; ``0.0.0`` when the expression has none.
        is_min_inclusive: Whether ``min_version`` itself is in range.
        max_version: Upper bound, or ``None`` when unbounded.
        is_max_inclusive: Whether ``max_version`` itself is in range.
        has_lower_bound: ``False`` when the expression omitted a minimum.
        float_range: Floating part of the lower bound, if any.
        original_string: The expression this range was parsed from.
    """

    min_version: NuGetVersion
    is_min_inclusive: bool = True
    max_version: Optional[NuGetVersion] = None
    is_max_inclusive: bool = False
    has_lower_bound: bool = True
    float_range: Optional[FloatRange] = None
    original_string: str = ""

    @classmethod
    def parse(cls, constraint: str) -> "VersionRange":
        """Parse a range expression (see :func:`parse_range`)."""
        return parse_range(constraint)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def float_behavior(self) -> FloatBehavior:
        """The float behavior, ``FloatBehavior.NONE`` when not floating."""
        if self.float_range is None:
            return FloatBehavior.NONE
        return self.float_range.float_behavior

    @property
    def is_floating(self) -> bool:
        return self.float_behavior is not FloatBehavior.NONE

    @property
    def has_upper_bound(self) -> bool:
        return self.max_version is not None

    def satisfies(self, version: NuGetVersion) -> bool:
        """
        Check whether *version* lies inside the interval.

        Floating tags do not take part; ``1.*`` contains every version
        from ``1.0.0`` upwards, including ``2.0.0``.
        """
        if self.has_lower_bound:
            if self.is_min_inclusive:
                if version < self.min_version:
                    return False
            elif version <= self.min_version:
                return False

        if self.max_version is not None:
            if self.is_max_inclusive:
                if version > self.max_version:
                    return False
            elif version >= self.max_version:
                return False

        return True

    def __str__(self) -> str:
        return self.original_string


def parse_range(constraint: str) -> VersionRange:
    """
    Parse a NuGet version-range expression.

    Args:
        constraint: Range text such as ``"[1.0, 2.0)"`` or ``"1.*"``.

    Returns:
        The parsed :class:`VersionRange`.

    Raises:
        InvalidConstraintError: If *constraint* is empty or malformed.

    Example::

        >>> r = parse_range("[1.0.0, )")
        >>> str(r.min_version)
        '1.0.0'
        >>> r.satisfies(NuGetVersion.parse("1.1.0"))
        True
    """
    if not isinstance(constraint, str) or not constraint.strip():
        raise InvalidConstraintError(
            "Version constraint must not be empty",
            constraint=constraint if isinstance(constraint, str) else None,
        )

    expr = constraint.strip()

    if expr[0] not in "[(":
        floating = FloatRange.parse(expr)
        return VersionRange(
            min_version=floating.min_version,
            float_range=floating if floating.is_floating else None,
            original_string=expr,
        )

    if expr[-1] not in "])":
        raise InvalidConstraintError(
            f"Unterminated version range: {constraint!r}",
            constraint=constraint,
        )

    is_min_inclusive = expr[0] == "["
    is_max_inclusive = expr[-1] == "]"
    parts = [p.strip() for p in expr[1:-1].split(",")]

    if len(parts) == 1:
        return _parse_exact(parts[0], is_min_inclusive, is_max_inclusive, constraint)

    if len(parts) != 2 or not (parts[0] or parts[1]):
        raise InvalidConstraintError(
            f"Invalid version range: {constraint!r}",
            constraint=constraint,
        )

    low_text, high_text = parts
    floating: Optional[FloatRange] = None

    if low_text:
        floating = FloatRange.parse(low_text)
        min_version = floating.min_version
        if not floating.is_floating:
            floating = None
    else:
        min_version = _ZERO

    max_version = _parse_bound(high_text, constraint) if high_text else None

    if low_text and max_version is not None:
        if max_version < min_version:
            raise InvalidConstraintError(
                f"Upper bound is below lower bound: {constraint!r}",
                constraint=constraint,
            )
        if max_version == min_version and not (is_min_inclusive and is_max_inclusive):
            raise InvalidConstraintError(
                f"Version range is empty: {constraint!r}",
                constraint=constraint,
            )

    return VersionRange(
        min_version=min_version,
        is_min_inclusive=is_min_inclusive,
        max_version=max_version,
        is_max_inclusive=is_max_inclusive,
        has_lower_bound=bool(low_text),
        float_range=floating,
        original_string=expr,
    )


def satisfies(version_range: VersionRange, version: NuGetVersion) -> bool:
    """Return whether *version* lies inside *version_range*."""
    return version_range.satisfies(version)


# ---------------------------------------------------------------------------
# Parsing helpers (private)
# ---------------------------------------------------------------------------


def _parse_exact(
    text: str,
    is_min_inclusive: bool,
    is_max_inclusive: bool,
    constraint: str,
) -> VersionRange:
    """Parse the single-version ``[1.0]`` form."""
    if not text or not (is_min_inclusive and is_max_inclusive):
        raise InvalidConstraintError(
            f"Exact version ranges must use square brackets: {constraint!r}",
            constraint=constraint,
        )

    version = _parse_bound(text, constraint)
    return VersionRange(
        min_version=version,
        is_min_inclusive=True,
        max_version=version,
        is_max_inclusive=True,
        original_string=constraint.strip(),
    )


def _parse_bound(text: str, constraint: str) -> NuGetVersion:
    """Parse one bound, re-raising version errors as constraint errors."""
    try:
        return NuGetVersion.parse(text)
    except InvalidVersionError as exc:
        raise InvalidConstraintError(
            f"Invalid version {text!r} in range {constraint!r}",
            constraint=constraint,
        ) from exc


def _fixed_release(text: str, constraint: str) -> Tuple[int, ...]:
    """Return the numeric components before a trailing ``.*``."""
    head = text[:-2] if text.endswith(".*") else ""
    pieces = head.split(".") if head else []

    if not pieces or len(pieces) > 3 or not all(p.isdigit() for p in pieces):
        raise InvalidConstraintError(
            f"Invalid floating range: {constraint!r}",
            constraint=constraint,
        )
    return tuple(int(p) for p in pieces)


def _release_version(
    fixed: Tuple[int, ...],
    labels: Tuple[str, ...] = (),
) -> NuGetVersion:
    padded = list(fixed) + [0] * (4 - len(fixed))
    return NuGetVersion(*padded, release_labels=labels)


def _min_labels(prefix: str, constraint: str) -> Tuple[str, ...]:
    """Lowest label list matching a floating prerelease prefix."""
    if not prefix:
        return ("0",)

    text = prefix + "0" if prefix.endswith(".") else prefix
    labels = tuple(text.split("."))
    if not _LABEL_PATTERN.match(text):
        raise InvalidConstraintError(
            f"Invalid prerelease prefix in {constraint!r}",
            constraint=constraint,
        )
    try:
        NuGetVersion(0, release_labels=labels)
    except InvalidVersionError as exc:
        raise InvalidConstraintError(
            f"Invalid prerelease prefix in {constraint!r}",
            constraint=constraint,
        ) from exc
    return labels
