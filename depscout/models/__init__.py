"""
Unified data model exports for depscout.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``depscout.models`` instead of individual submodules.

Example:
    >>> from depscout.models import NuGetVersion, VersionRange, DependencyInfo
"""

from __future__ import annotations

from depscout.models.version import NuGetVersion
from depscout.models.version_range import (
    FloatBehavior,
    FloatRange,
    VersionRange,
    parse_range,
    satisfies,
)
from depscout.models.requirement import (
    IndividualRequirement,
    MultiPartRequirement,
    RangeRequirement,
    Requirement,
)
from depscout.models.vulnerability import SecurityVulnerability
from depscout.models.dependency import DependencyInfo
from depscout.models.source import PackageSource

__all__ = [
    "NuGetVersion",
    "FloatBehavior",
    "FloatRange",
    "VersionRange",
    "parse_range",
    "satisfies",
    "Requirement",
    "IndividualRequirement",
    "MultiPartRequirement",
    "RangeRequirement",
    "SecurityVulnerability",
    "DependencyInfo",
    "PackageSource",
]
