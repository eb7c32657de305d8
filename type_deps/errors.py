"""Exceptions raised by the analysis pipeline."""

from __future__ import annotations

from pathlib import Path


class AnalysisError(Exception):
    """Base class for analysis failures.

    ``unit`` identifies the offending source file when the failure is
    tied to a single unit.
    """

    def __init__(self, message: str, unit: Path | None = None):
        super().__init__(message)
        self.unit = unit


class InvalidRoot(AnalysisError):
    """Root path is missing or not a directory."""


class UnreadableSource(AnalysisError):
    """A unit's bytes could not be read."""


class UnparsableSource(AnalysisError):
    """The parser rejected a unit's text."""

    def __init__(self, message: str, unit: Path | None = None, line: int = -1):
        super().__init__(message, unit)
        self.line = line


class UnitTimeout(AnalysisError):
    """Classifying a unit took longer than the configured timeout."""


class TypeUnresolved(AnalysisError):
    """A written type name could not be mapped to a qualified name.

    Only raised by the resolver; the classifier falls back to the
    written name.
    """

    def __init__(self, name: str):
        super().__init__(f"Cannot resolve type {name!r}")
        self.name = name


class CapacityExceeded(AnalysisError):
    """More units in flight than the backpressure limit allows."""

    def __init__(self, limit: int, unit: Path | None = None):
        super().__init__(
            f"Backpressure limit of {limit} in-flight units exceeded", unit,
        )
        self.limit = limit
