"""
depscout version information.

This module provides a single source of truth for the package version,
used by packaging metadata, the CLI ``--version`` flag and the HTTP
User-Agent header.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Main version (single source of truth)
# ---------------------------------------------------------------------------

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Human-readable version (for CLI)
# ---------------------------------------------------------------------------

VERSION_STRING = f"depscout {__version__}"
