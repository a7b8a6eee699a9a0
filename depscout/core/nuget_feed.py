"""NuGet V3 feed client for depscout.

Implements the :class:`~depscout.core.feed.FeedClient` and
:class:`~depscout.core.feed.FeedHandle` protocols on top of the NuGet V3
protocol, using the shared :class:`~depscout.utils.http.HTTPClient`.

Resolution of a feed reads its service index and picks the registration
resource (``RegistrationsBaseUrl/3.6.0`` preferred, since it is the only
one that includes SemVer 2.0.0 packages). Version lists come from the
package's registration index::

    {base}{package-id-lowercase}/index.json

Registration pages that are not inlined in the index are fetched by their
``@id``. Each leaf contributes its ``catalogEntry.version`` and
``catalogEntry.listed`` flag.

Both caches (resolved feeds and registration leaves) are per-process and
use double-checked locking, so that ``exists`` followed by ``get_versions``
costs a single registration fetch.

Typical usage::

    async with HTTPClient() as http:
        client = NuGetV3FeedClient(http)
        feed = await client.resolve(PackageSource("nuget.org", NUGET_ORG_V3_INDEX))
        if feed is not None:
            versions = await feed.get_versions("Newtonsoft.Json", include_prerelease=False)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from depscout.constants import DEFAULT_CONCURRENT_LIMIT, REGISTRATION_RESOURCE_TYPES
from depscout.core.cancellation import CancellationToken
from depscout.exceptions import DepScoutError, FeedError
from depscout.models.source import PackageSource
from depscout.models.version import NuGetVersion
from depscout.utils.http import HTTPClient
from depscout.utils.logger import get_logger

logger = get_logger("nuget_feed")

# Public API
__all__ = ["NuGetV3FeedClient", "NuGetRegistrationFeed", "RegistrationLeaf"]


@dataclass(frozen=True)
class RegistrationLeaf:
    """One version entry of a registration index."""

    version: NuGetVersion
    listed: bool = True


class NuGetRegistrationFeed:
    """Version metadata for one NuGet V3 feed.

    Args:
        http_client: Shared HTTP client.
        source: The feed this handle serves.
        registration_base: Registration base URL, ending with ``/``.
        semaphore: Limits concurrent registration fetches.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        source: PackageSource,
        registration_base: str,
        semaphore: asyncio.Semaphore,
    ) -> None:
        self.http_client = http_client
        self.source = source
        self.registration_base = registration_base
        self._semaphore = semaphore

        # lower-cased package id -> every leaf the registration lists
        self._leaves: Dict[str, Tuple[RegistrationLeaf, ...]] = {}

    # ------------------------------------------------------------------
    # FeedHandle protocol
    # ------------------------------------------------------------------

    async def exists(
        self,
        package_id: str,
        include_prerelease: bool,
        include_unlisted: bool = False,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bool:
        """Return whether any version matching the flags is listed."""
        versions = await self.get_versions(
            package_id,
            include_prerelease,
            include_unlisted,
            cancellation_token,
        )
        return bool(versions)

    async def get_versions(
        self,
        package_id: str,
        include_prerelease: bool,
        include_unlisted: bool = False,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> FrozenSet[NuGetVersion]:
        """Return the versions of *package_id* matching the flags.

        Raises:
            NetworkError: The registration could not be fetched.
            OperationCancelledError: *cancellation_token* fired.
        """
        leaves = await self._get_leaves(package_id, cancellation_token)
        return frozenset(
            leaf.version
            for leaf in leaves
            if (include_prerelease or not leaf.version.is_prerelease)
            and (include_unlisted or leaf.listed)
        )

    # ------------------------------------------------------------------
    # Registration fetching (private)
    # ------------------------------------------------------------------

    async def _get_leaves(
        self,
        package_id: str,
        cancellation_token: Optional[CancellationToken],
    ) -> Tuple[RegistrationLeaf, ...]:
        key = package_id.lower()

        # Fast path: already cached
        if key in self._leaves:
            return self._leaves[key]

        async with self._semaphore:
            # Another coroutine may have filled the cache while we waited
            if key in self._leaves:
                return self._leaves[key]

            leaves = await self._fetch_registration(package_id, cancellation_token)
            self._leaves[key] = leaves
            return leaves

    async def _fetch_registration(
        self,
        package_id: str,
        cancellation_token: Optional[CancellationToken],
    ) -> Tuple[RegistrationLeaf, ...]:
        """Fetch and flatten the registration index of *package_id*.

        A 404 means the feed does not know the package and yields no leaves.
        """
        url = f"{self.registration_base}{package_id.lower()}/index.json"

        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled(package_id)

        try:
            index = await self.http_client.get_json(url)
        except FeedError as exc:
            if exc.status_code == 404:
                logger.debug("'%s' not found on %s", package_id, self.source.name)
                return ()
            raise

        pages: List[Dict[str, Any]] = [
            page for page in index.get("items") or [] if isinstance(page, dict)
        ]

        remote = [page for page in pages if "items" not in page and page.get("@id")]
        if remote:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled(package_id)
            fetched = await asyncio.gather(
                *(self.http_client.get_json(page["@id"]) for page in remote)
            )
            pages = [page for page in pages if "items" in page] + list(fetched)

        leaves: List[RegistrationLeaf] = []
        for page in pages:
            for item in page.get("items") or []:
                leaf = _parse_leaf(item)
                if leaf is not None:
                    leaves.append(leaf)

        logger.debug(
            "Fetched %d registration leaves for '%s' from %s",
            len(leaves),
            package_id,
            self.source.name,
        )
        return tuple(leaves)


class NuGetV3FeedClient:
    """Resolves configured sources into :class:`NuGetRegistrationFeed` handles.

    Args:
        http_client: A pre-configured :class:`HTTPClient` instance (owns
            connection pool / session).
        concurrent_limit: Maximum number of metadata fetches that may be
            in-flight at once. Defaults to ``10``.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT,
    ) -> None:
        self.http_client = http_client
        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._fetch_semaphore = asyncio.Semaphore(concurrent_limit)
        self._feeds: Dict[PackageSource, Optional[NuGetRegistrationFeed]] = {}

    async def resolve(self, source: PackageSource) -> Optional[NuGetRegistrationFeed]:
        """Return a handle for *source*, or ``None`` when it is unavailable.

        The outcome, including ``None``, is cached per source.
        """
        if source in self._feeds:
            return self._feeds[source]

        async with self._semaphore:
            if source in self._feeds:
                return self._feeds[source]

            feed = await self._create_feed(source)
            self._feeds[source] = feed
            return feed

    async def _create_feed(self, source: PackageSource) -> Optional[NuGetRegistrationFeed]:
        try:
            index = await self.http_client.get_json(source.uri)
        except DepScoutError as exc:
            logger.warning("Cannot read service index of %s: %s", source.name, exc)
            return None

        base = _find_registration_base(index)
        if base is None:
            logger.warning("%s exposes no registration resource", source.name)
            return None

        logger.debug("Using registration base %s for %s", base, source.name)
        return NuGetRegistrationFeed(
            self.http_client,
            source,
            base,
            self._fetch_semaphore,
        )


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _find_registration_base(index: Dict[str, Any]) -> Optional[str]:
    """Pick the most preferred registration resource from a service index."""
    resources = [r for r in index.get("resources") or [] if isinstance(r, dict)]

    for wanted in REGISTRATION_RESOURCE_TYPES:
        for resource in resources:
            types = resource.get("@type")
            if isinstance(types, str):
                types = [types]
            if wanted in (types or []) and resource.get("@id"):
                base = str(resource["@id"])
                return base if base.endswith("/") else base + "/"

    return None


def _parse_leaf(item: Any) -> Optional[RegistrationLeaf]:
    """Turn a registration leaf into a :class:`RegistrationLeaf`.

    Leaves without a parseable version are skipped.
    """
    if not isinstance(item, dict):
        return None

    entry = item.get("catalogEntry")
    if not isinstance(entry, dict):
        return None

    version = NuGetVersion.try_parse(str(entry.get("version", "")))
    if version is None:
        logger.debug("Skipping unparseable version %r", entry.get("version"))
        return None

    return RegistrationLeaf(version=version, listed=bool(entry.get("listed", True)))
