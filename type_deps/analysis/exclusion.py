"""Which referenced type names become dependency edges."""

from __future__ import annotations

from dataclasses import dataclass

from type_deps.models import DEFAULT_EXCLUDED_PREFIXES, AnalysisConfig
from type_deps.resolver import PRIMITIVE_TYPES


@dataclass(frozen=True)
class ExclusionPolicy:
    """Inclusion predicate for dependency targets.

    ``should_include`` returns True for names that are kept. Edges are
    emitted only for kept names.
    """
    excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES
    include_imports: bool = False

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> ExclusionPolicy:
        return cls(
            excluded_prefixes=tuple(config.excluded_prefixes),
            include_imports=config.include_imports,
        )

    def should_include(self, type_name: str | None, source_type: str) -> bool:
        if not type_name:
            return False
        if type_name == "void" or type_name in PRIMITIVE_TYPES:
            return False
        if is_array_type(type_name):
            return False
        for prefix in self.excluded_prefixes:
            if prefix and type_name.startswith(prefix):
                return False
        return type_name != source_type

    def with_prefixes(self, *prefixes: str) -> ExclusionPolicy:
        return ExclusionPolicy(
            excluded_prefixes=self.excluded_prefixes + tuple(prefixes),
            include_imports=self.include_imports,
        )


def is_array_type(type_name: str) -> bool:
    return type_name.endswith("[]")
