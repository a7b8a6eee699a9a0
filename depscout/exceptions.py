"""
Custom exception hierarchy for depscout.

This module defines structured exception types used across depscout.
All exceptions inherit from :class:`DepScoutError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class DepScoutError(Exception):
    """Base exception for all depscout errors.

    All depscout-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class InvalidVersionError(DepScoutError):
    """Raised when a single version string cannot be parsed.

    Args:
        message: Error description.
        version: The offending version text.
    """

    __slots__ = ("version",)

    def __init__(self, message: str, *, version: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "version", version)

        super().__init__(message, details)

        self.version = version


class InvalidConstraintError(DepScoutError):
    """Raised when a version range or requirement expression is malformed.

    Args:
        message: Error description.
        constraint: The offending constraint text.
    """

    __slots__ = ("constraint",)

    def __init__(self, message: str, *, constraint: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "constraint", constraint)

        super().__init__(message, details)

        self.constraint = constraint


class NetworkError(DepScoutError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class FeedError(NetworkError):
    """Raised for failures related to a package feed.

    Args:
        message: Error description.
        source: Name of the feed involved.
        package_id: Package identifier involved, if any.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("source", "package_id")

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        package_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.source = source
        self.package_id = package_id
        if source is not None:
            self.details["source"] = source
        if package_id is not None:
            self.details["package"] = package_id


class ConfigError(DepScoutError):
    """Raised when a configuration file is missing, unreadable or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class OperationCancelledError(DepScoutError):
    """Raised when a resolution is cancelled through its cancellation token.

    Args:
        message: Error description.
        package_id: Package whose resolution was cancelled.
    """

    __slots__ = ("package_id",)

    def __init__(
        self,
        message: str = "Operation was cancelled",
        *,
        package_id: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "package", package_id)

        super().__init__(message, details)

        self.package_id = package_id
