"""Dependency classification."""

from __future__ import annotations

from type_deps.analysis.classifier import classify
from type_deps.analysis.exclusion import ExclusionPolicy, is_array_type

__all__ = [
    "ExclusionPolicy",
    "classify",
    "is_array_type",
]
