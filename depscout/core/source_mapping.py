"""Package source mapping and effective-source selection.

Source mapping restricts which feeds a package may be fetched from. Each
configured feed name lists package id patterns: an exact id
(``Contoso.Core``) or a prefix ending in ``*`` (``Contoso.*``, ``*``).
For a given package the most specific matching pattern wins; every feed
that lists that pattern is allowed.

:func:`effective_sources` applies the restriction. A package that is mapped
only to feeds missing from the configuration resolves to **no** feeds; there
is no fallback to querying every feed.
"""

from __future__ import annotations

from typing import (
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from depscout.models.source import PackageSource
from depscout.utils.logger import get_logger

logger = get_logger("source_mapping")

# Public API
__all__ = ["SourceMappingPolicy", "PackageSourceMapping", "effective_sources"]


class SourceMappingPolicy(Protocol):
    """Anything that can name the feeds allowed for a package."""

    def configured_sources(self, package_id: str) -> FrozenSet[str]:
        """Return allowed feed names; an empty set means no restriction."""
        ...


class PackageSourceMapping:
    """Pattern-based source mapping.

    Args:
        patterns: Mapping of feed name to the package id patterns it serves.

    Example::

        >>> mapping = PackageSourceMapping({
        ...     "nuget.org": ["*"],
        ...     "contoso": ["Contoso.*", "Newtonsoft.Json"],
        ... })
        >>> sorted(mapping.configured_sources("Contoso.Core"))
        ['contoso']
        >>> sorted(mapping.configured_sources("Serilog"))
        ['nuget.org']
    """

    def __init__(self, patterns: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        # pattern (lower-cased) -> feed names listing it
        self._exact: Dict[str, List[str]] = {}
        self._prefixes: Dict[str, List[str]] = {}

        for source_name, source_patterns in (patterns or {}).items():
            for pattern in source_patterns:
                key = pattern.strip().lower()
                if not key:
                    continue
                if key.endswith("*"):
                    self._prefixes.setdefault(key[:-1], []).append(source_name)
                else:
                    self._exact.setdefault(key, []).append(source_name)

    @classmethod
    def empty(cls) -> "PackageSourceMapping":
        """A mapping that never restricts any package."""
        return cls()

    @property
    def is_enabled(self) -> bool:
        """True when at least one pattern is configured."""
        return bool(self._exact or self._prefixes)

    def configured_sources(self, package_id: str) -> FrozenSet[str]:
        """Return the feed names allowed for *package_id*.

        Exact id patterns beat prefixes, and longer prefixes beat shorter
        ones. Matching is case-insensitive.

        Returns:
            Allowed feed names, or an empty set when no pattern applies.
        """
        key = package_id.lower()

        if key in self._exact:
            return frozenset(self._exact[key])

        best: Optional[str] = None
        for prefix in self._prefixes:
            if key.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix

        if best is None:
            return frozenset()
        return frozenset(self._prefixes[best])

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"exact={len(self._exact)}, prefixes={len(self._prefixes)})"
        )


def effective_sources(
    package_id: str,
    configured_sources: Sequence[PackageSource],
    mapping_policy: SourceMappingPolicy,
) -> Tuple[PackageSource, ...]:
    """Narrow *configured_sources* to the feeds allowed for *package_id*.

    Args:
        package_id: Package identifier.
        configured_sources: Feeds in configuration order.
        mapping_policy: Source mapping to apply.

    Returns:
        All configured feeds when the mapping names none; otherwise the
        configured feeds whose name is mapped, in configuration order. The
        result is empty when none of the mapped names is configured.
    """
    restricted = mapping_policy.configured_sources(package_id)
    if not restricted:
        return tuple(configured_sources)

    selected = tuple(s for s in configured_sources if s.name in restricted)
    if not selected:
        logger.debug(
            "Package '%s' is mapped to %s but none of them is configured",
            package_id,
            sorted(restricted),
        )
    return selected
