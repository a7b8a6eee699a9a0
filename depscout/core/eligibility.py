"""Eligibility filtering of candidate versions.

:func:`create_version_filter` builds the predicate that decides whether a
version published on a feed is a legal upgrade target for a dependency.
The predicate is built only from its arguments and has no side effects, so
it can be shared between concurrently running feed queries.
"""

from __future__ import annotations

from typing import Callable, Optional

from depscout.models.dependency import DependencyInfo
from depscout.models.version import NuGetVersion
from depscout.models.version_range import FloatBehavior, VersionRange

VersionFilter = Callable[[NuGetVersion], bool]


def create_version_filter(
    dependency: DependencyInfo,
    version_range: VersionRange,
) -> VersionFilter:
    """Build the eligibility predicate for *dependency*.

    A version is eligible when all of the following hold:

    1. it lies inside *version_range*;
    2. if the dependency is pinned to a prerelease, a prerelease candidate
       must share the pinned version's release components (``1.2.3-beta``
       admits ``1.2.3-rc`` but not ``1.3.0-beta``); stable candidates always
       pass. Floating to the absolute latest version (``*-*``) disables this
       rule;
    3. no ignore rule matches it;
    4. no known vulnerability affects it.

    Args:
        dependency: The dependency being resolved.
        version_range: The parsed form of ``dependency.version``.

    Returns:
        A predicate over :class:`NuGetVersion`.

    Example::

        >>> dep = DependencyInfo("Foo", "1.2.3-beta")
        >>> is_eligible = create_version_filter(dep, VersionRange.parse(dep.version))
        >>> is_eligible(NuGetVersion.parse("1.2.3-rc"))
        True
        >>> is_eligible(NuGetVersion.parse("1.3.0-beta"))
        False
    """
    pinned: Optional[NuGetVersion] = (
        None
        if version_range.float_behavior is FloatBehavior.ABSOLUTE_LATEST
        else version_range.min_version
    )
    ignored_versions = tuple(dependency.ignored_versions)
    vulnerabilities = tuple(dependency.vulnerabilities)

    def is_eligible(version: NuGetVersion) -> bool:
        return (
            version_range.satisfies(version)
            and (
                pinned is None
                or not pinned.is_prerelease
                or not version.is_prerelease
                or version.same_base(pinned)
            )
            and not any(rule.is_satisfied_by(version) for rule in ignored_versions)
            and not any(vuln.is_vulnerable(version) for vuln in vulnerabilities)
        )

    return is_eligible
