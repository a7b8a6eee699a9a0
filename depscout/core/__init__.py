"""
Core functionality exports for depscout.

This module provides convenient access to the core subsystems of depscout.
Importing from here keeps user-facing imports clean and stable:

    from depscout.core import VersionFinder, PackageSourceMapping
"""

from __future__ import annotations

from depscout.core.cancellation import CancellationToken
from depscout.core.eligibility import create_version_filter
from depscout.core.feed import FeedClient, FeedHandle
from depscout.core.nuget_feed import NuGetRegistrationFeed, NuGetV3FeedClient
from depscout.core.source_mapping import (
    PackageSourceMapping,
    SourceMappingPolicy,
    effective_sources,
)
from depscout.core.version_finder import VersionFinder, resolve_versions
from depscout.core.version_result import VersionResult, VersionResultAccumulator

__all__ = [
    "CancellationToken",
    "create_version_filter",
    "FeedClient",
    "FeedHandle",
    "NuGetRegistrationFeed",
    "NuGetV3FeedClient",
    "PackageSourceMapping",
    "SourceMappingPolicy",
    "effective_sources",
    "VersionFinder",
    "resolve_versions",
    "VersionResult",
    "VersionResultAccumulator",
]
