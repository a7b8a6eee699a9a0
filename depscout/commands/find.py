"""Find command implementation for depscout.

Resolves the upgrade candidates of a single NuGet dependency across the
configured package feeds and prints them per feed.

The command wires together:

1. **DependencyInfo** built from the command line (constraint, ignore
   rules, vulnerable-version rules).
2. **NuGetV3FeedClient** sharing one :class:`HTTPClient` for every feed.
3. **VersionFinder** querying the feeds allowed by package source mapping
   concurrently and filtering their versions.

Typical usage::

    # Eligible upgrades of a pinned dependency
    $ depscout find Newtonsoft.Json 12.0.1

    # Skip a known-bad release and a vulnerable range
    $ depscout find Serilog "[2.10.0, )" --ignore "= 2.11.0" --vulnerable "< 2.12.0"

    # Query an ad-hoc feed, machine-readable output
    $ depscout find Foo "1.*" --source local=https://feed.example/v3/index.json -f json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from typing import Any, Dict, List, Sequence, Tuple

from depscout.config import DepScoutConfig
from depscout.context import pass_context, DepScoutContext
from depscout.core import NuGetV3FeedClient, VersionFinder, VersionResult
from depscout.exceptions import DepScoutError
from depscout.models import DependencyInfo, PackageSource, SecurityVulnerability
from depscout.utils import (
    HTTPClient,
    get_logger,
    get_update_type,
    print_error,
    print_success,
    print_table,
    print_warning,
    get_raw_console,
    colorize_update_type,
)

logger = get_logger("commands.find")


def _parse_source_option(
    ctx: click.Context,
    param: click.Parameter,
    value: Sequence[str],
) -> Tuple[PackageSource, ...]:
    """Turn ``NAME=URL`` option values into :class:`PackageSource` objects."""
    sources: List[PackageSource] = []
    for raw in value:
        name, sep, url = raw.partition("=")
        if not sep or not name.strip() or not url.strip():
            raise click.BadParameter(f"expected NAME=URL, got {raw!r}", param=param)
        sources.append(PackageSource(name.strip(), url.strip()))
    return tuple(sources)


@click.command()
@click.argument("package")
@click.argument("constraint")
@click.option(
    "--ignore",
    "ignore_rules",
    multiple=True,
    metavar="RULE",
    help="Never offer versions matching RULE (e.g. '>= 3.0.0'). Repeatable.",
)
@click.option(
    "--vulnerable",
    "vulnerable_rules",
    multiple=True,
    metavar="RULE",
    help="Treat versions matching RULE as vulnerable. Repeatable.",
)
@click.option(
    "--source",
    "sources",
    multiple=True,
    metavar="NAME=URL",
    callback=_parse_source_option,
    help="Query this V3 feed instead of the configured ones. Repeatable.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def find(
    ctx: DepScoutContext,
    package: str,
    constraint: str,
    ignore_rules: Tuple[str, ...],
    vulnerable_rules: Tuple[str, ...],
    sources: Tuple[PackageSource, ...],
    format: str,
) -> None:
    """Find eligible upgrade versions of PACKAGE.

    CONSTRAINT is the dependency's current version constraint in NuGet
    range syntax: ``1.2.3``, ``[1.0, 2.0)``, ``1.*`` and so on. Its lower
    bound is taken as the current version.

    Exits:
        0 on success, 1 if the constraint or a rule is malformed or the
        command failed.
    """
    try:
        result = asyncio.run(
            _find_async(
                ctx.config,
                package,
                constraint,
                ignore_rules,
                vulnerable_rules,
                sources,
            )
        )
    except DepScoutError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format == "json":
        _display_json(package, constraint, result)
    else:
        _display_table(package, result)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _find_async(
    config: DepScoutConfig,
    package: str,
    constraint: str,
    ignore_rules: Sequence[str],
    vulnerable_rules: Sequence[str],
    sources: Sequence[PackageSource],
) -> VersionResult:
    """Build the dependency and resolve it against the feeds.

    Raises:
        DepScoutError: A rule or the constraint is malformed.
    """
    vulnerabilities = []
    if vulnerable_rules:
        vulnerabilities.append(
            SecurityVulnerability.from_strings(package, vulnerable_versions=vulnerable_rules)
        )

    dependency = DependencyInfo.create(
        package,
        constraint,
        ignored_versions=ignore_rules,
        vulnerabilities=vulnerabilities,
    )
    feeds = tuple(sources) or config.package_sources()

    logger.info("Resolving %s %s on %d source(s)", package, constraint, len(feeds))

    async with HTTPClient(
        timeout=config.timeout,
        max_retries=config.max_retries,
        max_concurrency=config.concurrent_limit,
    ) as http:
        finder = VersionFinder(NuGetV3FeedClient(http, config.concurrent_limit))
        return await finder.get_versions(dependency, feeds, config.source_mapping())


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(package: str, result: VersionResult) -> None:
    """Render the result as a summary line plus one Rich table row per version.

    Example::

        Newtonsoft.Json 12.0.1 (found on: nuget.org)
        ┏━━━━━━━━━━━┳━━━━━━━━━┳━━━━━━━━━━━━━┓
        ┃ Source    ┃ Version ┃ Update Type ┃
        ┡━━━━━━━━━━━╇━━━━━━━━━╇━━━━━━━━━━━━━┩
        │ nuget.org │ 13.0.3  │ major       │
        │ nuget.org │ 12.0.3  │ patch       │
        └───────────┴─────────┴─────────────┘
    """
    console = get_raw_console()
    current = result.current_version
    found_on = ", ".join(s.name for s in result.get_package_sources(current))
    console.print(
        f"[bold]{package}[/bold] {current} "
        f"[dim](found on: {found_on or 'no source'})[/dim]"
    )

    if not result.per_source_versions:
        print_warning("No source returned versions for this package")
        return

    data: List[Dict[str, str]] = []
    for source, versions in result.per_source_versions.items():
        if not versions:
            data.append(
                {"Source": source.name, "Version": "[dim]-[/dim]", "Update Type": "[dim]-[/dim]"}
            )
            continue
        for version in sorted(versions, reverse=True):
            data.append(
                {
                    "Source": source.name,
                    "Version": str(version),
                    "Update Type": colorize_update_type(get_update_type(current, version)),
                }
            )

    print_table(
        data,
        title="Eligible Versions",
        column_styles={
            "Source": {"style": "source", "no_wrap": True},
            "Version": {"justify": "center", "no_wrap": True},
            "Update Type": {"justify": "center"},
        },
    )

    upgrades = [v for v in result.get_versions() if v > current]
    if upgrades:
        print_warning(f"{len(upgrades)} newer version(s) available, latest {upgrades[0]}")
    else:
        print_success("No newer eligible version")


def _display_json(package: str, constraint: str, result: VersionResult) -> None:
    """Render the result as formatted JSON for machine consumption.

    Example::

        {
          "package": "Foo",
          "constraint": "[1.0.0, )",
          "current_version": "1.0.0",
          "current_version_sources": ["nuget.org"],
          "sources": [
            {"name": "nuget.org", "url": "...", "versions": [...]}
          ]
        }
    """
    current = result.current_version
    data: Dict[str, Any] = {
        "package": package,
        "constraint": constraint,
        "current_version": str(current),
        "current_version_sources": [s.name for s in result.get_package_sources(current)],
        "sources": [
            {
                "name": source.name,
                "url": source.uri,
                "versions": [
                    {
                        "version": str(version),
                        "update_type": get_update_type(current, version),
                    }
                    for version in sorted(versions, reverse=True)
                ],
            }
            for source, versions in result.per_source_versions.items()
        ],
    }
    print(json.dumps(data, indent=2))
