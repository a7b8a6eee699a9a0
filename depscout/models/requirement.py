"""
Version requirement rules for depscout.

Requirements are the predicates used by ignore-lists and vulnerability
advisories. Two notations are accepted:

- comparator lists joined with commas, all of which must hold::

      ">= 1.0, < 2.0"     "!= 1.2.3"     "~> 1.4"     "2.0.1"

- NuGet range syntax, when the text starts with a bracket::

      "[1.0, 2.0)"        "[1.1.0]"

The pessimistic operator ``~>`` bumps the second-to-last component that was
written: ``~> 1.2.3`` means ``>= 1.2.3, < 1.3.0`` and ``~> 1.2`` means
``>= 1.2, < 2.0``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from depscout.exceptions import InvalidConstraintError, InvalidVersionError
from depscout.models.version import NuGetVersion
from depscout.models.version_range import VersionRange, parse_range

_COMPARATOR_PATTERN = re.compile(r"^(~>|>=|<=|!=|==|=|>|<)?\s*(\S+)$")

_OPERATORS: Dict[str, Callable[[NuGetVersion, NuGetVersion], bool]] = {
    "=": lambda v, r: v == r,
    "!=": lambda v, r: v != r,
    ">": lambda v, r: v > r,
    ">=": lambda v, r: v >= r,
    "<": lambda v, r: v < r,
    "<=": lambda v, r: v <= r,
}


class Requirement(ABC):
    """A predicate over versions."""

    @abstractmethod
    def is_satisfied_by(self, version: NuGetVersion) -> bool:
        """Return ``True`` when *version* meets this requirement."""

    @staticmethod
    def parse(text: str) -> "Requirement":
        """
        Parse a requirement in comparator or range notation.

        Args:
            text: Requirement text.

        Returns:
            A :class:`RangeRequirement`, :class:`IndividualRequirement` or
            :class:`MultiPartRequirement`.

        Raises:
            InvalidConstraintError: If *text* is empty or malformed.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidConstraintError(
                "Requirement must not be empty",
                constraint=text if isinstance(text, str) else None,
            )

        stripped = text.strip()
        if stripped[0] in "[(":
            return RangeRequirement(parse_range(stripped))

        parts = [p.strip() for p in stripped.split(",")]
        if not all(parts):
            raise InvalidConstraintError(
                f"Invalid requirement: {text!r}",
                constraint=text,
            )

        individual = [_parse_comparator(part, text) for part in parts]
        if len(individual) == 1:
            return individual[0]
        return MultiPartRequirement(tuple(individual))


@dataclass(frozen=True)
class IndividualRequirement(Requirement):
    """
    A single ``operator version`` comparison.

    Attributes:
        operator: One of ``=``, ``!=``, ``>``, ``>=``, ``<``, ``<=``, ``~>``.
        version: Version operand.
        segments: Number of release components written in the rule; only
            meaningful for ``~>``.
    """

    operator: str
    version: NuGetVersion
    segments: int = 3

    def is_satisfied_by(self, version: NuGetVersion) -> bool:
        if self.operator == "~>":
            return self.version <= version < self._pessimistic_limit()
        return _OPERATORS[self.operator](version, self.version)

    def _pessimistic_limit(self) -> NuGetVersion:
        """Exclusive upper bound of a ``~>`` rule."""
        release = list(self.version.release)
        index = max(self.segments - 2, 0)
        release[index] += 1
        for i in range(index + 1, len(release)):
            release[i] = 0
        return NuGetVersion(*release)

    def __str__(self) -> str:
        return f"{self.operator} {self.version}"


@dataclass(frozen=True)
class MultiPartRequirement(Requirement):
    """Several comparisons that must all hold."""

    parts: Tuple[IndividualRequirement, ...]

    def is_satisfied_by(self, version: NuGetVersion) -> bool:
        return all(part.is_satisfied_by(version) for part in self.parts)

    def __str__(self) -> str:
        return ", ".join(str(part) for part in self.parts)


@dataclass(frozen=True)
class RangeRequirement(Requirement):
    """A requirement expressed in NuGet range syntax."""

    version_range: VersionRange

    def is_satisfied_by(self, version: NuGetVersion) -> bool:
        return self.version_range.satisfies(version)

    def __str__(self) -> str:
        return str(self.version_range)


def _parse_comparator(part: str, text: str) -> IndividualRequirement:
    match = _COMPARATOR_PATTERN.match(part)
    if not match:
        raise InvalidConstraintError(f"Invalid requirement: {text!r}", constraint=text)

    operator = match.group(1) or "="
    if operator == "==":
        operator = "="
    operand = match.group(2)

    try:
        version = NuGetVersion.parse(operand)
    except InvalidVersionError as exc:
        raise InvalidConstraintError(
            f"Invalid version {operand!r} in requirement {text!r}",
            constraint=text,
        ) from exc

    segments = len(operand.split("-", 1)[0].split("+", 1)[0].split("."))
    return IndividualRequirement(operator, version, segments)
