"""
NuGet version model for depscout.

This module defines :class:`NuGetVersion`, the version type used by every
feed, range and rule in depscout. It follows NuGet's flavour of Semantic
Versioning:

- one to four numeric release components (``1``, ``1.2``, ``1.2.3``,
  ``1.2.3.4``); missing components are zero;
- an optional dot-separated prerelease label list (``-beta.2``);
- optional build metadata (``+sha.5114f85``), ignored for ordering.

Prerelease labels, build metadata and SemVer precedence are handled by
``semantic_version``. The fourth (revision) component has no SemVer
counterpart and is compared between the patch component and the labels.
Labels are lower-cased before comparison, since NuGet compares them
case-insensitively.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import semantic_version

from depscout.exceptions import InvalidVersionError

_RELEASE_PATTERN = re.compile(r"^(?P<release>[0-9]+(?:\.[0-9]+){0,3})(?P<suffix>[-+].*)?$")


@dataclass(frozen=True, eq=False)
class NuGetVersion:
    """
    A parsed NuGet version.

    Attributes:
        major: First release component.
        minor: Second release component.
        patch: Third release component.
        revision: Fourth release component (legacy four-part versions).
        release_labels: Prerelease labels, empty for stable versions.
        metadata: Build metadata without the ``+`` prefix.
        original: Text the version was parsed from, if any.
    """

    major: int
    minor: int = 0
    patch: int = 0
    revision: int = 0
    release_labels: Tuple[str, ...] = ()
    metadata: Optional[str] = None
    original: Optional[str] = field(default=None, compare=False, repr=False)

    _semver: semantic_version.Version = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            semver = semantic_version.Version(
                major=self.major,
                minor=self.minor,
                patch=self.patch,
                prerelease=tuple(label.lower() for label in self.release_labels),
            )
        except ValueError as exc:
            raise InvalidVersionError(
                f"Invalid prerelease labels: {self.release_labels!r}",
                version=self.original,
            ) from exc
        object.__setattr__(self, "_semver", semver)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> "NuGetVersion":
        """
        Parse a version string.

        Args:
            text: Version text such as ``"1.2.3-beta.1"``.

        Returns:
            The parsed version.

        Raises:
            InvalidVersionError: If *text* is not a valid NuGet version.
        """
        if not isinstance(text, str):
            raise InvalidVersionError(
                f"Version must be a string, got {type(text).__name__}",
            )

        stripped = text.strip()
        match = _RELEASE_PATTERN.match(stripped)
        if not match:
            raise InvalidVersionError(
                f"Invalid version string: {text!r}",
                version=text,
            )

        labels: Tuple[str, ...] = ()
        metadata: Optional[str] = None
        suffix = match.group("suffix")
        if suffix:
            # Let semantic_version validate the labels and metadata
            try:
                tail = semantic_version.Version("0.0.0" + suffix)
            except ValueError as exc:
                raise InvalidVersionError(
                    f"Invalid version string: {text!r}",
                    version=text,
                ) from exc
            labels = tuple(tail.prerelease)
            metadata = ".".join(tail.build) or None

        parts = [int(p) for p in match.group("release").split(".")]
        parts.extend([0] * (4 - len(parts)))

        return cls(
            major=parts[0],
            minor=parts[1],
            patch=parts[2],
            revision=parts[3],
            release_labels=labels,
            metadata=metadata,
            original=stripped,
        )

    @classmethod
    def try_parse(cls, text: str) -> Optional["NuGetVersion"]:
        """Parse *text*, returning ``None`` instead of raising."""
        try:
            return cls.parse(text)
        except InvalidVersionError:
            return None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def release(self) -> Tuple[int, int, int, int]:
        """The four numeric release components."""
        return (self.major, self.minor, self.patch, self.revision)

    @property
    def is_prerelease(self) -> bool:
        """True when the version carries prerelease labels."""
        return bool(self.release_labels)

    @property
    def release_label(self) -> str:
        """Prerelease labels joined with dots (empty for stable versions)."""
        return ".".join(self.release_labels)

    @property
    def normalized(self) -> str:
        """
        NuGet's normalized string form.

        At least three release components are shown; the revision only when
        it is non-zero. Build metadata is dropped.
        """
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.release_labels:
            text += f"-{self.release_label}"
        return text

    def same_base(self, other: "NuGetVersion") -> bool:
        """
        Check whether *other* has the same release components.

        Prerelease labels and metadata are ignored, so ``1.2.3-beta`` and
        ``1.2.3-rc.1`` share a base while ``1.3.0-beta`` does not.
        """
        return self.release == other.release

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _sort_key(self) -> Tuple[semantic_version.Version, int, semantic_version.Version]:
        # The core decides first, then the revision, then SemVer label precedence
        return (self._semver.truncate(), self.revision, self._semver)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __le__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._sort_key() <= other._sort_key()

    def __gt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._sort_key() > other._sort_key()

    def __ge__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._sort_key() >= other._sort_key()

    def __str__(self) -> str:
        return self.normalized
