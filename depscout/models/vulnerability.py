"""
Security advisory model for depscout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from depscout.models.requirement import Requirement
from depscout.models.version import NuGetVersion


@dataclass(frozen=True)
class SecurityVulnerability:
    """
    A known vulnerability affecting some versions of a package.

    Attributes:
        dependency_name: Affected package identifier.
        vulnerable_versions: Requirements describing affected versions.
        safe_versions: Requirements describing patched versions; a version
            matching any of these is never reported as vulnerable.
        advisory_id: Optional advisory identifier (GHSA, CVE, ...).
    """

    dependency_name: str
    vulnerable_versions: Tuple[Requirement, ...] = ()
    safe_versions: Tuple[Requirement, ...] = ()
    advisory_id: Optional[str] = None

    @classmethod
    def from_strings(
        cls,
        dependency_name: str,
        vulnerable_versions: Iterable[str] = (),
        safe_versions: Iterable[str] = (),
        advisory_id: Optional[str] = None,
    ) -> "SecurityVulnerability":
        """Build an advisory from requirement strings.

        Raises:
            InvalidConstraintError: If any requirement is malformed.
        """
        return cls(
            dependency_name=dependency_name,
            vulnerable_versions=tuple(Requirement.parse(r) for r in vulnerable_versions),
            safe_versions=tuple(Requirement.parse(r) for r in safe_versions),
            advisory_id=advisory_id,
        )

    def is_vulnerable(self, version: NuGetVersion) -> bool:
        """Return ``True`` when *version* is affected by this advisory."""
        if any(safe.is_satisfied_by(version) for safe in self.safe_versions):
            return False
        return any(vuln.is_satisfied_by(version) for vuln in self.vulnerable_versions)
