"""Configuration file loader for depscout.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``depscout.toml``: settings under ``[depscout]`` table
- ``pyproject.toml``: settings under ``[tool.depscout]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPSCOUT_CONFIG``
2. ``depscout.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.depscout]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``depscout.toml``)::

    [depscout]
    timeout = 20
    concurrent_limit = 8

    [[depscout.sources]]
    name = "nuget.org"
    url = "https://api.nuget.org/v3/index.json"

    [[depscout.sources]]
    name = "contoso"
    url = "https://pkgs.contoso.example/nuget/v3/index.json"

    [depscout.package_source_mapping]
    "nuget.org" = ["*"]
    contoso = ["Contoso.*"]
"""

from __future__ import annotations


import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from depscout.exceptions import ConfigError
from depscout.models.source import PackageSource
from depscout.utils.logger import get_logger
from depscout.core.source_mapping import PackageSourceMapping
from depscout.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CONCURRENT_LIMIT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    NUGET_ORG_SOURCE_NAME,
    NUGET_ORG_V3_INDEX,
)

logger = get_logger("config")


def _default_sources() -> List[PackageSource]:
    return [PackageSource(NUGET_ORG_SOURCE_NAME, NUGET_ORG_V3_INDEX)]


@dataclass
class DepScoutConfig:
    """Parsed and validated depscout configuration.

    Contains settings from ``depscout.toml`` or ``pyproject.toml``.
    All fields have defaults, so empty config files are valid.

    Attributes:
        sources: Package feeds in priority order. Defaults to nuget.org.
        package_source_mapping: Feed name to package id patterns.
        timeout: HTTP timeout in seconds.
        max_retries: HTTP retry count.
        concurrent_limit: Maximum concurrent feed requests.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    sources: List[PackageSource] = field(default_factory=_default_sources)
    package_source_mapping: Dict[str, List[str]] = field(default_factory=dict)
    timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def package_sources(self) -> Tuple[PackageSource, ...]:
        """Configured feeds as an immutable tuple."""
        return tuple(self.sources)

    def source_mapping(self) -> PackageSourceMapping:
        """Build the :class:`PackageSourceMapping` for this configuration."""
        return PackageSourceMapping(self.package_source_mapping)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            "sources": [f"{s.name}={s.uri}" for s in self.sources],
            "package_source_mapping": dict(self.package_source_mapping),
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "concurrent_limit": self.concurrent_limit,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``DEPSCOUT_CONFIG``)
    2. ``depscout.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.depscout]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    dedicated = cwd / CONFIG_FILE_NAME
    if dedicated.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, dedicated)
        return dedicated

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_depscout_section(pyproject_toml):
        logger.debug("Found [tool.depscout] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depscout_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.depscout] section.

    An unreadable or invalid pyproject.toml counts as "no section".
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "depscout" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> DepScoutConfig:
    """Load and validate depscout configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DepScoutConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepScoutConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depscout", {})
    else:
        section = raw.get("depscout", {})

    if not section:
        logger.debug("Config file found but no depscout section, using defaults")
        return DepScoutConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


_KNOWN_KEYS = {
    "sources",
    "package_source_mapping",
    "timeout",
    "max_retries",
    "concurrent_limit",
}


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> DepScoutConfig:
    """Parse and validate the ``[depscout]`` or ``[tool.depscout]`` table.

    Raises:
        ConfigError: Unknown keys, incorrect types, or inconsistent values.
    """
    config = DepScoutConfig()

    unknown = set(section.keys()) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    if "sources" in section:
        config.sources = _parse_sources(section["sources"], config_path)

    if "package_source_mapping" in section:
        config.package_source_mapping = _parse_mapping(
            section["package_source_mapping"],
            {s.name for s in config.sources},
            config_path,
        )

    config.timeout = _parse_int(section, "timeout", config.timeout, 1, config_path)
    config.max_retries = _parse_int(
        section, "max_retries", config.max_retries, 0, config_path
    )
    config.concurrent_limit = _parse_int(
        section, "concurrent_limit", config.concurrent_limit, 1, config_path
    )

    return config


def _parse_sources(value: Any, config_path: str) -> List[PackageSource]:
    if not isinstance(value, list):
        raise ConfigError(
            f"sources must be an array of tables, got {type(value).__name__}",
            config_path=config_path,
            option="sources",
        )

    sources: List[PackageSource] = []
    seen = set()
    for entry in value:
        if (
            not isinstance(entry, dict)
            or set(entry.keys()) != {"name", "url"}
            or not all(isinstance(entry[k], str) and entry[k].strip() for k in ("name", "url"))
        ):
            raise ConfigError(
                "Each source needs exactly a non-empty 'name' and 'url'",
                config_path=config_path,
                option="sources",
            )
        name = entry["name"].strip()
        if name in seen:
            raise ConfigError(
                f"Duplicate source name: {name}",
                config_path=config_path,
                option="sources",
            )
        seen.add(name)
        sources.append(PackageSource(name, entry["url"].strip()))

    return sources


def _parse_mapping(
    value: Any,
    source_names: set,
    config_path: str,
) -> Dict[str, List[str]]:
    if not isinstance(value, dict):
        raise ConfigError(
            f"package_source_mapping must be a table, got {type(value).__name__}",
            config_path=config_path,
            option="package_source_mapping",
        )

    mapping: Dict[str, List[str]] = {}
    for name, patterns in value.items():
        if name not in source_names:
            raise ConfigError(
                f"package_source_mapping refers to unknown source: {name}",
                config_path=config_path,
                option="package_source_mapping",
            )
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ConfigError(
                f"Patterns for source {name} must be an array of strings",
                config_path=config_path,
                option="package_source_mapping",
            )
        mapping[name] = list(patterns)

    return mapping


def _parse_int(
    section: Dict[str, Any],
    key: str,
    default: int,
    minimum: int,
    config_path: str,
) -> int:
    if key not in section:
        return default

    val = section[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(val, bool) or not isinstance(val, int):
        raise ConfigError(
            f"{key} must be an integer, got {type(val).__name__}",
            config_path=config_path,
            option=key,
        )
    if val < minimum:
        raise ConfigError(
            f"{key} must be at least {minimum}, got {val}",
            config_path=config_path,
            option=key,
        )
    return val
