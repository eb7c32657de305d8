"""Dependency classifier: one traversal of a parsed unit -> typed dependency edges."""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from type_deps.analysis.exclusion import ExclusionPolicy
from type_deps.errors import TypeUnresolved
from type_deps.models import DependencyEdge, DependencyKind
from type_deps.report.models import UnitReport
from type_deps.resolver.java_resolver import (
    TYPE_NODES,
    ParsedUnit,
    node_line,
    node_text,
    parse_import,
    type_child,
    written_type_name,
)

logger = logging.getLogger(__name__)

_SNIPPET_LIMIT = 80

# (written type name, kind, snippet, line)
Occurrence = tuple[str, DependencyKind, str, int]

# Declarations that introduce type variables for everything below them
_TYPE_PARAMETER_SCOPES = {
    "class_declaration", "interface_declaration", "record_declaration",
    "method_declaration", "constructor_declaration",
}


def _clause_types(clause) -> Iterator:
    for child in clause.named_children:
        if child.type == "type_list":
            yield from (c for c in child.named_children if c.type in TYPE_NODES)
        elif child.type in TYPE_NODES:
            yield child


def _supertypes(node) -> Iterator[Occurrence]:
    for clause in node.named_children:
        if clause.type in ("superclass", "extends_interfaces"):
            kind, keyword = DependencyKind.EXTENDS, "extends"
        elif clause.type == "super_interfaces":
            kind, keyword = DependencyKind.IMPLEMENTS, "implements"
        else:
            continue
        for type_node in _clause_types(clause):
            written = written_type_name(type_node)
            if written:
                yield written, kind, f"{keyword} {node_text(type_node)}", node_line(type_node)


def _fields(node) -> Iterator[Occurrence]:
    type_node = type_child(node)
    if type_node is None:
        return
    written = written_type_name(type_node)
    if not written:
        return
    for declarator in node.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        name = node_text(name_node) if name_node is not None else ""
        declared = written
        if declarator.child_by_field_name("dimensions") is not None:
            declared += "[]"
        yield (
            declared, DependencyKind.FIELD,
            f"{node_text(type_node)} {name}", node_line(declarator),
        )


def _method(node) -> Iterator[Occurrence]:
    name_node = node.child_by_field_name("name")
    name = node_text(name_node) if name_node is not None else ""

    return_type = node.child_by_field_name("type")
    if return_type is not None:
        written = written_type_name(return_type)
        if written:
            yield (
                written, DependencyKind.METHOD_RETURN,
                f"{node_text(return_type)} {name}()", node_line(return_type),
            )

    parameters = node.child_by_field_name("parameters")
    if parameters is None:
        return
    for param in parameters.named_children:
        if param.type not in ("formal_parameter", "spread_parameter"):
            continue
        type_node = type_child(param)
        if type_node is None:
            continue
        written = written_type_name(type_node)
        if not written:
            continue
        if param.child_by_field_name("dimensions") is not None:
            written += "[]"
        yield written, DependencyKind.METHOD_PARAMETER, node_text(param), node_line(param)


def _instantiation(node) -> Iterator[Occurrence]:
    type_node = type_child(node)
    if type_node is None:
        return
    written = written_type_name(type_node)
    if written:
        yield (
            written, DependencyKind.INSTANTIATION,
            f"new {node_text(type_node)}()", node_line(node),
        )


def _import(node) -> Iterator[Occurrence]:
    parsed = parse_import(node)
    if parsed is None:
        return
    name, is_static, wildcard = parsed
    if is_static or wildcard:
        return
    yield name, DependencyKind.IMPORT, f"import {name}", node_line(node)


# Node kind -> dependency occurrences. Each construct's kind mapping lives here.
_HANDLERS: dict[str, Callable[..., Iterator[Occurrence]]] = {
    "class_declaration": _supertypes,
    "interface_declaration": _supertypes,
    "enum_declaration": _supertypes,
    "record_declaration": _supertypes,
    "field_declaration": _fields,
    "constant_declaration": _fields,
    "method_declaration": _method,
    "object_creation_expression": _instantiation,
    "import_declaration": _import,
}


def _type_parameters(node) -> frozenset[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        params = next((c for c in node.named_children if c.type == "type_parameters"), None)
    if params is None:
        return frozenset()
    names = set()
    for param in params.named_children:
        if param.type != "type_parameter":
            continue
        for child in param.named_children:
            if child.type in ("type_identifier", "identifier"):
                names.add(node_text(child))
                break
    return frozenset(names)


def _snippet(text: str) -> str:
    text = " ".join(text.split())
    if len(text) > _SNIPPET_LIMIT:
        text = text[:_SNIPPET_LIMIT - 3] + "..."
    return text


class _EdgeCollector:
    def __init__(self, unit: ParsedUnit, policy: ExclusionPolicy):
        self.unit = unit
        self.policy = policy
        self.edges: set[DependencyEdge] = set()

    def add(self, occurrence: Occurrence, type_vars: frozenset[str]) -> None:
        written, kind, snippet, line = occurrence
        if kind is DependencyKind.IMPORT and not self.policy.include_imports:
            return
        if written in type_vars:
            return
        try:
            target = self.unit.qualify(written)
        except TypeUnresolved:
            target = written
        if not self.policy.should_include(target, self.unit.unit_name):
            return
        self.edges.add(DependencyEdge(
            source_type=self.unit.unit_name,
            target_type=target,
            kind=kind,
            snippet=_snippet(snippet),
            line=line,
        ))


def classify(unit: ParsedUnit, policy: ExclusionPolicy | None = None) -> UnitReport:
    """Walk ``unit`` once and build its report."""
    collector = _EdgeCollector(unit, policy or ExclusionPolicy())

    stack: list[tuple[object, frozenset[str]]] = [(unit.root, frozenset())]
    while stack:
        node, type_vars = stack.pop()
        if node.type in _TYPE_PARAMETER_SCOPES:
            type_vars = type_vars | _type_parameters(node)
        handler = _HANDLERS.get(node.type)
        if handler is not None:
            for occurrence in handler(node):
                collector.add(occurrence, type_vars)
        stack.extend((child, type_vars) for child in reversed(node.named_children))

    report = UnitReport(unit.unit_name, frozenset(collector.edges))
    logger.debug("Classified %s: %d dependencies", unit.unit_name, report.dependency_count())
    return report
