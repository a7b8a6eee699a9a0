"""
Package source model for depscout.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PackageSource:
    """
    A configured package feed.

    Attributes:
        name: Feed name used by source mapping rules (e.g. ``"nuget.org"``).
        uri: Feed address; for NuGet V3 feeds the service index URL.
    """

    name: str
    uri: str

    def __str__(self) -> str:
        return self.name
