"""
depscout: NuGet feed version discovery

depscout answers one question for a dependency: which versions published
across the configured package feeds are legal upgrade targets for its
current version constraint?

Features include:
    • NuGet version and range parsing, including floating ranges
    • Package source mapping (per-package feed restrictions)
    • Ignore-lists and known-vulnerability exclusion
    • Concurrent, cancellable queries across NuGet V3 feeds
    • A small CLI for ad-hoc lookups

Typical usage::

    from depscout import DependencyInfo, PackageSource, resolve_versions

    result = await resolve_versions(dependency, sources, mapping, feed_client)
"""

from __future__ import annotations

from depscout.__version__ import __version__
from depscout.core import (
    CancellationToken,
    PackageSourceMapping,
    VersionFinder,
    VersionResult,
    create_version_filter,
    resolve_versions,
)
from depscout.models import (
    DependencyInfo,
    FloatBehavior,
    NuGetVersion,
    PackageSource,
    Requirement,
    SecurityVulnerability,
    VersionRange,
)

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depscout Contributors"
__license__ = "Apache-2.0"
__description__ = "Find eligible upgrade versions for NuGet dependencies across feeds."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
    "CancellationToken",
    "DependencyInfo",
    "FloatBehavior",
    "NuGetVersion",
    "PackageSource",
    "PackageSourceMapping",
    "Requirement",
    "SecurityVulnerability",
    "VersionFinder",
    "VersionRange",
    "VersionResult",
    "create_version_filter",
    "resolve_versions",
]
