"""Plain-text rendering of reports, used by the CLI and log output."""

from __future__ import annotations

from type_deps.report.models import GroupingReport, UnitReport, WholeTreeReport

_RULE = "-" * 23


def _section(label: str) -> tuple[str, str]:
    return f"{_RULE}{label}{_RULE}", f"{_RULE}END-{label}{_RULE}"


def _indent(lines: list[str], prefix: str = "\t") -> list[str]:
    return [prefix + line if line else line for line in lines]


def unit_lines(report: UnitReport) -> list[str]:
    start, end = _section("UNIT")
    lines = [
        start,
        f"Unit Name: {report.unit_name}",
        f"Dependency Count: {report.dependency_count()}",
    ]
    for kind, edges in report.edges_by_kind().items():
        lines.append(f"\t{kind.name}:")
        lines.extend(f"\t\t{edge}" for edge in edges)
    lines.append(end)
    return lines


def grouping_lines(report: GroupingReport) -> list[str]:
    start, end = _section("GROUPING")
    lines = [
        start,
        f"Grouping Name: {report.grouping_name}",
        f"Unit Count: {report.unit_count()}",
        f"Total Dependencies: {report.total_dependency_count()}",
        "Unit Reports:",
    ]
    for name in sorted(report.units):
        lines.extend(_indent(unit_lines(report.units[name])))
    lines.append(end)
    return lines


def tree_lines(report: WholeTreeReport) -> list[str]:
    start, end = _section("TREE")
    lines = [
        start,
        f"Tree Name: {report.tree_name}",
        f"Grouping Count: {report.grouping_count()}",
        f"Unit Count: {report.unit_count()}",
        f"Total Dependencies: {report.total_dependency_count()}",
        "",
        "Grouping dependency graph:",
    ]
    lines.extend(graph_lines(report))
    lines.append("Grouping Reports:")
    for name in sorted(report.groupings):
        lines.extend(_indent(grouping_lines(report.groupings[name])))
    lines.append(end)
    return lines


def graph_lines(report: WholeTreeReport) -> list[str]:
    graph = report.dependency_graph()
    return [
        f"  {name} -> {', '.join(sorted(graph[name])) or '(none)'}"
        for name in sorted(graph)
    ]


def render_unit(report: UnitReport) -> str:
    return "\n".join(unit_lines(report))


def render_grouping(report: GroupingReport) -> str:
    return "\n".join(grouping_lines(report))


def render_tree(report: WholeTreeReport) -> str:
    return "\n".join(tree_lines(report))
