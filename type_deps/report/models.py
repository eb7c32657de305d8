"""Three-level dependency reports: unit, grouping and whole tree.

Reports are plain data holders. They never do I/O and are not safe for
concurrent mutation: the orchestrator is the single writer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from type_deps.models import DependencyEdge, DependencyKind


@dataclass(frozen=True)
class UnitReport:
    """Dependencies of one unit (the type a source file declares)."""
    unit_name: str
    edges: frozenset[DependencyEdge] = field(default_factory=frozenset)

    def __post_init__(self):
        edges = frozenset(self.edges)
        for edge in edges:
            if edge.source_type != self.unit_name:
                raise ValueError(
                    f"Edge source {edge.source_type!r} does not match unit {self.unit_name!r}"
                )
            if edge.target_type == self.unit_name:
                raise ValueError(f"Unit {self.unit_name!r} cannot depend on itself")
        object.__setattr__(self, "edges", edges)

    def dependency_count(self) -> int:
        return len(self.edges)

    def targets(self) -> set[str]:
        return {edge.target_type for edge in self.edges}

    def edges_by_kind(self) -> dict[DependencyKind, list[DependencyEdge]]:
        grouped: dict[DependencyKind, list[DependencyEdge]] = {}
        for edge in sorted(self.edges, key=_edge_sort_key):
            grouped.setdefault(edge.kind, []).append(edge)
        return grouped

    def to_dict(self) -> dict:
        return {
            "unit": self.unit_name,
            "dependency_count": self.dependency_count(),
            "edges": [e.to_dict() for e in sorted(self.edges, key=_edge_sort_key)],
        }


class GroupingReport:
    """Unit reports of one grouping (a package directory)."""

    def __init__(self, grouping_name: str):
        self.grouping_name = grouping_name
        self._units: dict[str, UnitReport] = {}

    @property
    def units(self) -> Mapping[str, UnitReport]:
        return MappingProxyType(self._units)

    def add_unit(self, report: UnitReport) -> None:
        """Add a unit report, replacing any report with the same unit name."""
        self._units[report.unit_name] = report

    def unit_count(self) -> int:
        return len(self._units)

    def total_dependency_count(self) -> int:
        return sum(u.dependency_count() for u in self._units.values())

    def referenced_groupings(self) -> set[str]:
        """Groupings referenced by any unit, derived from edge targets."""
        referenced: set[str] = set()
        for unit in self._units.values():
            for edge in unit.edges:
                prefix, sep, _ = edge.target_type.rpartition(".")
                if sep and prefix != self.grouping_name:
                    referenced.add(prefix)
        return referenced

    def to_dict(self) -> dict:
        return {
            "grouping": self.grouping_name,
            "unit_count": self.unit_count(),
            "dependency_count": self.total_dependency_count(),
            "referenced_groupings": sorted(self.referenced_groupings()),
            "units": [self._units[name].to_dict() for name in sorted(self._units)],
        }

    def __repr__(self) -> str:
        return f"GroupingReport({self.grouping_name!r}, units={self.unit_count()})"


class WholeTreeReport:
    """Grouping reports of a whole source tree."""

    def __init__(self, tree_name: str):
        self.tree_name = tree_name
        self._groupings: dict[str, GroupingReport] = {}

    @property
    def groupings(self) -> Mapping[str, GroupingReport]:
        return MappingProxyType(self._groupings)

    def add_grouping(self, report: GroupingReport) -> None:
        """Add a grouping report, replacing any report with the same name."""
        self._groupings[report.grouping_name] = report

    def grouping_count(self) -> int:
        return len(self._groupings)

    def unit_count(self) -> int:
        return sum(g.unit_count() for g in self._groupings.values())

    def total_dependency_count(self) -> int:
        return sum(g.total_dependency_count() for g in self._groupings.values())

    def dependency_graph(self) -> dict[str, set[str]]:
        return {
            name: grouping.referenced_groupings()
            for name, grouping in self._groupings.items()
        }

    def find_unit(self, unit_name: str) -> UnitReport | None:
        for grouping in self._groupings.values():
            report = grouping.units.get(unit_name)
            if report is not None:
                return report
        return None

    def to_dict(self) -> dict:
        graph = self.dependency_graph()
        return {
            "tree": self.tree_name,
            "grouping_count": self.grouping_count(),
            "unit_count": self.unit_count(),
            "dependency_count": self.total_dependency_count(),
            "graph": {name: sorted(graph[name]) for name in sorted(graph)},
            "groupings": [self._groupings[n].to_dict() for n in sorted(self._groupings)],
        }

    def __repr__(self) -> str:
        return f"WholeTreeReport({self.tree_name!r}, groupings={self.grouping_count()})"


def _edge_sort_key(edge: DependencyEdge):
    return (edge.kind.value, edge.target_type, edge.line, edge.snippet)
