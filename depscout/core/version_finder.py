"""Version discovery across package feeds.

This module provides the primary interface for determining which versions
of a dependency are eligible upgrade targets. All feed I/O goes through a
:class:`~depscout.core.feed.FeedClient`, so the same algorithm runs against
NuGet V3 feeds or in-memory fakes.

For each dependency the finder:

1. **Parses** the version constraint; its minimum version is the current
   version, and prereleases are requested from feeds only when the current
   version is itself a prerelease.
2. **Selects** the feeds allowed by package source mapping.
3. **Queries** every selected feed concurrently: resolve the feed, check
   that the package exists, list its versions. A feed that fails at any of
   these steps is skipped without affecting the others.
4. **Filters** each feed's versions through
   :func:`~depscout.core.eligibility.create_version_filter` and records
   which feeds list the current version.

Typical usage::

    from depscout.utils.http import HTTPClient
    from depscout.core.nuget_feed import NuGetV3FeedClient
    from depscout.core.version_finder import VersionFinder

    async with HTTPClient() as http:
        finder = VersionFinder(NuGetV3FeedClient(http))
        result = await finder.get_versions(dependency, sources, mapping)

        for source, versions in result.per_source_versions.items():
            print(source.name, sorted(versions))
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, FrozenSet, List, Optional, Sequence

from depscout.core.cancellation import CancellationToken
from depscout.core.eligibility import VersionFilter, create_version_filter
from depscout.core.feed import FeedClient
from depscout.core.source_mapping import SourceMappingPolicy, effective_sources
from depscout.core.version_result import VersionResult, VersionResultAccumulator
from depscout.exceptions import OperationCancelledError
from depscout.models.dependency import DependencyInfo
from depscout.models.source import PackageSource
from depscout.models.version import NuGetVersion
from depscout.models.version_range import VersionRange
from depscout.utils.logger import get_logger

logger = get_logger("version_finder")

# Public API
__all__ = ["VersionFinder", "resolve_versions"]


@dataclass(frozen=True)
class _SourceOutcome:
    """What one feed contributed to a resolution."""

    source: PackageSource
    has_current_version: bool
    eligible_versions: FrozenSet[NuGetVersion]


class VersionFinder:
    """Async version finder backed by a :class:`FeedClient`.

    Args:
        feed_client: Resolves configured sources into feed handles.
            **Required**.

    Raises:
        TypeError: If *feed_client* is ``None``.

    Example::

        >>> finder = VersionFinder(feed_client)
        >>> result = await finder.get_versions(
        ...     DependencyInfo("Newtonsoft.Json", "[12.0.1, )"),
        ...     [PackageSource("nuget.org", "https://api.nuget.org/v3/index.json")],
        ...     PackageSourceMapping.empty(),
        ... )
        >>> str(result.current_version)
        '12.0.1'
    """

    def __init__(self, feed_client: FeedClient) -> None:
        if feed_client is None:
            raise TypeError("feed_client must not be None; pass a FeedClient instance")

        self.feed_client: FeedClient = feed_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_versions(
        self,
        dependency: DependencyInfo,
        sources: Sequence[PackageSource],
        source_mapping: SourceMappingPolicy,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> VersionResult:
        """Find the eligible versions of *dependency* on every allowed feed.

        Args:
            dependency: The dependency to resolve.
            sources: Configured feeds, in priority order.
            source_mapping: Per-package feed restrictions.
            cancellation_token: Optional token; when it fires, in-flight feed
                queries are cancelled.

        Returns:
            A :class:`VersionResult` snapshot.

        Raises:
            InvalidConstraintError: ``dependency.version`` cannot be parsed.
                No feed is queried in that case.
            OperationCancelledError: *cancellation_token* fired before the
                resolution completed.
        """
        token = cancellation_token or CancellationToken()
        package_id = dependency.name

        version_range = VersionRange.parse(dependency.version)
        current_version = version_range.min_version
        include_prerelease = current_version.is_prerelease

        version_filter = create_version_filter(dependency, version_range)
        accumulator = VersionResultAccumulator(current_version)

        selected = effective_sources(package_id, sources, source_mapping)
        logger.debug(
            "Resolving %s %s on %d of %d source(s) (prerelease=%s)",
            package_id,
            version_range,
            len(selected),
            len(sources),
            include_prerelease,
        )

        token.raise_if_cancelled(package_id)
        outcomes = await self._run_queries(
            [
                self._query_source(
                    source,
                    package_id,
                    current_version,
                    include_prerelease,
                    version_filter,
                    token,
                )
                for source in selected
            ],
            token,
            package_id,
        )

        # Merge in configured order, independent of completion order
        for outcome in outcomes:
            if outcome is None:
                continue
            if outcome.has_current_version:
                accumulator.add_current_version_source(outcome.source)
            accumulator.add_range(outcome.source, outcome.eligible_versions)

        return accumulator.snapshot()

    async def does_version_exist(
        self,
        package_id: str,
        version: NuGetVersion,
        sources: Sequence[PackageSource],
        source_mapping: SourceMappingPolicy,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bool:
        """Check whether any allowed feed lists exactly *version*.

        Feed failures count as "not listed". Prereleases are requested only
        when *version* is a prerelease.

        Raises:
            OperationCancelledError: *cancellation_token* fired first.
        """
        token = cancellation_token or CancellationToken()
        selected = effective_sources(package_id, sources, source_mapping)

        token.raise_if_cancelled(package_id)
        outcomes = await self._run_queries(
            [
                self._query_source(
                    source,
                    package_id,
                    version,
                    version.is_prerelease,
                    lambda _: False,
                    token,
                )
                for source in selected
            ],
            token,
            package_id,
        )
        return any(o is not None and o.has_current_version for o in outcomes)

    # ------------------------------------------------------------------
    # Task management (private)
    # ------------------------------------------------------------------

    async def _run_queries(
        self,
        coroutines: List[Awaitable[Optional[_SourceOutcome]]],
        token: CancellationToken,
        package_id: str,
    ) -> List[Optional[_SourceOutcome]]:
        """Run per-source queries concurrently, honouring *token*.

        Returns:
            One outcome per coroutine, in input order.

        Raises:
            OperationCancelledError: *token* fired before all queries finished.
        """
        if not coroutines:
            return []

        tasks = [asyncio.ensure_future(coro) for coro in coroutines]
        gathered = asyncio.gather(*tasks)
        waiter = asyncio.ensure_future(token.wait())

        try:
            await asyncio.wait({gathered, waiter}, return_when=asyncio.FIRST_COMPLETED)

            if token.is_cancelled:
                raise OperationCancelledError(package_id=package_id)

            return list(gathered.result())
        finally:
            waiter.cancel()
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            if gathered.done() and not gathered.cancelled():
                # Mark any stored exception as retrieved
                gathered.exception()

    async def _query_source(
        self,
        source: PackageSource,
        package_id: str,
        current_version: NuGetVersion,
        include_prerelease: bool,
        version_filter: VersionFilter,
        token: CancellationToken,
    ) -> Optional[_SourceOutcome]:
        """Run the resolve / exists / list sequence against one feed.

        Returns:
            The feed's contribution, or ``None`` when the feed is skipped.

        Raises:
            OperationCancelledError: *token* fired during the sequence.
        """
        try:
            feed = await self.feed_client.resolve(source)
            if feed is None:
                logger.debug("Skipping %s: feed metadata is unavailable", source.name)
                return None

            token.raise_if_cancelled(package_id)
            exists = await feed.exists(
                package_id,
                include_prerelease,
                include_unlisted=False,
                cancellation_token=token,
            )
            if not exists:
                logger.debug("Skipping %s: '%s' not found", source.name, package_id)
                return None

            token.raise_if_cancelled(package_id)
            feed_versions = frozenset(
                await feed.get_versions(
                    package_id,
                    include_prerelease,
                    include_unlisted=False,
                    cancellation_token=token,
                )
            )
        except OperationCancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Skipping %s for '%s': %s",
                source.name,
                package_id,
                exc,
            )
            return None

        eligible = frozenset(v for v in feed_versions if version_filter(v))
        logger.debug(
            "%s lists %d version(s) of '%s', %d eligible",
            source.name,
            len(feed_versions),
            package_id,
            len(eligible),
        )
        return _SourceOutcome(
            source=source,
            has_current_version=current_version in feed_versions,
            eligible_versions=eligible,
        )


async def resolve_versions(
    dependency: DependencyInfo,
    configured_sources: Sequence[PackageSource],
    source_mapping: SourceMappingPolicy,
    feed_client: FeedClient,
    cancellation_token: Optional[CancellationToken] = None,
) -> VersionResult:
    """Resolve the eligible versions of *dependency*.

    Convenience wrapper around :meth:`VersionFinder.get_versions`.

    Raises:
        InvalidConstraintError: The dependency's constraint is malformed.
        OperationCancelledError: *cancellation_token* fired first.
    """
    finder = VersionFinder(feed_client)
    return await finder.get_versions(
        dependency,
        configured_sources,
        source_mapping,
        cancellation_token,
    )
