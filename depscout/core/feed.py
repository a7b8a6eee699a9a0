"""Feed interfaces consumed by the version finder.

The resolution core never talks to the network directly. It depends on two
small protocols:

- :class:`FeedClient` turns a configured :class:`PackageSource` into a
  :class:`FeedHandle`, or ``None`` when the feed cannot serve metadata;
- :class:`FeedHandle` answers existence and version-list queries for one
  feed.

:mod:`depscout.core.nuget_feed` provides the NuGet V3 implementation; tests
use in-memory fakes.
"""

from __future__ import annotations

from typing import FrozenSet, Optional, Protocol

from depscout.core.cancellation import CancellationToken
from depscout.models.source import PackageSource
from depscout.models.version import NuGetVersion


class FeedHandle(Protocol):
    """Metadata access for a single resolved feed."""

    async def exists(
        self,
        package_id: str,
        include_prerelease: bool,
        include_unlisted: bool = False,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bool:
        """Return whether the feed lists any matching version of *package_id*."""
        ...

    async def get_versions(
        self,
        package_id: str,
        include_prerelease: bool,
        include_unlisted: bool = False,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> FrozenSet[NuGetVersion]:
        """Return every matching version of *package_id* on the feed."""
        ...


class FeedClient(Protocol):
    """Factory resolving configured sources into feed handles."""

    async def resolve(self, source: PackageSource) -> Optional[FeedHandle]:
        """Return a handle for *source*, or ``None`` when it is unavailable."""
        ...
