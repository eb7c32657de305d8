"""Java type resolution backed by tree-sitter."""

from __future__ import annotations

from type_deps.resolver.java_resolver import (
    ImportTable,
    JavaTypeResolver,
    ParsedUnit,
    PRIMITIVE_TYPES,
    written_type_name,
)
from type_deps.resolver.symbols import SymbolIndex

__all__ = [
    "ImportTable",
    "JavaTypeResolver",
    "ParsedUnit",
    "PRIMITIVE_TYPES",
    "SymbolIndex",
    "written_type_name",
]
