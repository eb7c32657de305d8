"""Source unit discovery."""

from __future__ import annotations

from type_deps.scanner.source_scanner import Discovery, SourceScanner, discover_units

__all__ = [
    "Discovery",
    "SourceScanner",
    "discover_units",
]
