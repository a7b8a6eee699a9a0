"""
Centralized constants for depscout.

This module defines immutable configuration values used across depscout,
including network settings, NuGet protocol identifiers, configuration
defaults, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "depscout/{version} (+httpx)"
)

# ---------------------------------------------------------------------------
# NuGet endpoints and protocol
# ---------------------------------------------------------------------------

#: Name of the default public feed.
NUGET_ORG_SOURCE_NAME: Final[str] = "nuget.org"

#: Service index of the default public feed.
NUGET_ORG_V3_INDEX: Final[str] = "https://api.nuget.org/v3/index.json"

#: Registration resource types, most preferred first. ``3.6.0`` is the
#: only one that includes SemVer 2.0.0 packages.
REGISTRATION_RESOURCE_TYPES: Final[Sequence[str]] = (
    "RegistrationsBaseUrl/3.6.0",
    "RegistrationsBaseUrl/3.4.0",
    "RegistrationsBaseUrl/3.0.0-rc",
    "RegistrationsBaseUrl/3.0.0-beta",
    "RegistrationsBaseUrl",
)

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Maximum number of feed requests in flight at once.
DEFAULT_CONCURRENT_LIMIT: Final[int] = 10

# ---------------------------------------------------------------------------
# Configuration files
# ---------------------------------------------------------------------------

#: Dedicated configuration file name.
CONFIG_FILE_NAME: Final[str] = "depscout.toml"

#: Environment variable holding an explicit configuration path.
CONFIG_ENV_VAR: Final[str] = "DEPSCOUT_CONFIG"

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
