"""
Dependency descriptor model for depscout.

This module defines the immutable input of a version resolution: the
package identifier, its current version constraint, and the rules that
exclude candidate versions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from depscout.models.requirement import Requirement
from depscout.models.vulnerability import SecurityVulnerability


@dataclass(frozen=True)
class DependencyInfo:
    """
    A dependency whose upgrade candidates should be resolved.

    Attributes:
        name: Package identifier as published on the feeds.
        version: Current version constraint, in NuGet range syntax.
        ignored_versions: Rules for versions that must never be offered.
        vulnerabilities: Known advisories affecting this package.
    """

    name: str
    version: str
    ignored_versions: Tuple[Requirement, ...] = ()
    vulnerabilities: Tuple[SecurityVulnerability, ...] = ()

    @classmethod
    def create(
        cls,
        name: str,
        version: str,
        *,
        ignored_versions: Iterable[str] = (),
        vulnerabilities: Iterable[SecurityVulnerability] = (),
    ) -> "DependencyInfo":
        """
        Build a descriptor, parsing ignore rules from strings.

        Args:
            name: Package identifier.
            version: Version constraint.
            ignored_versions: Requirement strings (see
                :meth:`Requirement.parse`).
            vulnerabilities: Known advisories.

        Raises:
            InvalidConstraintError: If an ignore rule is malformed.

        Example::

            >>> dep = DependencyInfo.create("Foo", "[1.0.0, )", ignored_versions=["= 1.1.0"])
            >>> len(dep.ignored_versions)
            1
        """
        return cls(
            name=name,
            version=version,
            ignored_versions=tuple(Requirement.parse(rule) for rule in ignored_versions),
            vulnerabilities=tuple(vulnerabilities),
        )
