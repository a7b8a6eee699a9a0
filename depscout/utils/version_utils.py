"""
Version comparison utilities for depscout.

This module classifies the distance between a current version and an
upgrade candidate, for display next to eligible versions.
"""

from __future__ import annotations

from typing import Optional

from depscout.models.version import NuGetVersion


def get_update_type(
    current_version: Optional[NuGetVersion],
    target_version: Optional[NuGetVersion],
) -> str:
    """Determine the semantic update type between two versions.

    Args:
        current_version: Current version, or ``None`` if unknown.
        target_version: Candidate version to compare against.

    Returns:
        One of:
            - ``"new"``       : No current version exists
            - ``"same"``      : Versions are identical
            - ``"downgrade"`` : Target version is lower than current
            - ``"major"``     : Major version change
            - ``"minor"``     : Minor version change
            - ``"patch"``     : Patch or revision change
            - ``"update"``    : Same release, different prerelease label
            - ``"unknown"``   : No target version

    Examples:
        >>> get_update_type(NuGetVersion.parse("1.0.0"), NuGetVersion.parse("2.0.0"))
        'major'
        >>> get_update_type(None, NuGetVersion.parse("1.0.0"))
        'new'
    """
    if target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    if target_version == current_version:
        return "same"

    if target_version < current_version:
        return "downgrade"

    if current_version.major != target_version.major:
        return "major"

    if current_version.minor != target_version.minor:
        return "minor"

    if current_version.release != target_version.release:
        return "patch"

    # Covers pre-release -> release or label-only updates
    return "update"
