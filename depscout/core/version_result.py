"""Aggregated result of a version resolution.

:class:`VersionResultAccumulator` is owned by a single resolution call and
collects, per feed, the eligible versions found and whether the feed lists
the current version. :meth:`VersionResultAccumulator.snapshot` freezes it
into the :class:`VersionResult` returned to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from depscout.models.source import PackageSource
from depscout.models.version import NuGetVersion

# Public API
__all__ = ["VersionResult", "VersionResultAccumulator"]


@dataclass(frozen=True)
class VersionResult:
    """Immutable snapshot of a resolution.

    Attributes:
        current_version: Minimum version of the dependency's constraint.
        per_source_versions: Eligible versions per feed, in configured feed
            order. Only feeds that were reached and list the package appear.
        current_version_sources: Feeds listing ``current_version``.
    """

    current_version: NuGetVersion
    per_source_versions: Mapping[PackageSource, FrozenSet[NuGetVersion]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    current_version_sources: FrozenSet[PackageSource] = frozenset()

    def get_versions(self) -> List[NuGetVersion]:
        """Every eligible version found on any feed, newest first."""
        found: Set[NuGetVersion] = set()
        for versions in self.per_source_versions.values():
            found.update(versions)
        return sorted(found, reverse=True)

    def get_package_sources(self, version: NuGetVersion) -> Tuple[PackageSource, ...]:
        """Feeds a version can be fetched from, in configured order.

        For the current version this is :attr:`current_version_sources`, which
        also covers feeds where the current version itself was filtered out.
        """
        if version == self.current_version:
            ordered = [s for s in self.per_source_versions if s in self.current_version_sources]
            extra = sorted(
                (s for s in self.current_version_sources if s not in self.per_source_versions),
                key=lambda s: s.name,
            )
            return tuple(ordered + extra)

        return tuple(
            source
            for source, versions in self.per_source_versions.items()
            if version in versions
        )


class VersionResultAccumulator:
    """Mutable builder for :class:`VersionResult`.

    Versions are deduplicated within a feed but never across feeds.
    """

    def __init__(self, current_version: NuGetVersion) -> None:
        self.current_version = current_version
        self._per_source: Dict[PackageSource, Set[NuGetVersion]] = {}
        self._current_sources: Set[PackageSource] = set()

    def add_current_version_source(self, source: PackageSource) -> None:
        self._current_sources.add(source)

    def add_range(self, source: PackageSource, versions: Iterable[NuGetVersion]) -> None:
        """Record eligible *versions* for *source*.

        A feed that was queried successfully gets an entry even when none of
        its versions is eligible.
        """
        self._per_source.setdefault(source, set()).update(versions)

    def snapshot(self) -> VersionResult:
        """Freeze the accumulated state."""
        return VersionResult(
            current_version=self.current_version,
            per_source_versions=MappingProxyType(
                {source: frozenset(vs) for source, vs in self._per_source.items()}
            ),
            current_version_sources=frozenset(self._current_sources),
        )
