"""Tree-sitter Java parser with lightweight type-name resolution."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from type_deps.errors import TypeUnresolved, UnparsableSource, UnreadableSource
from type_deps.resolver.jdk import JDK_TYPES
from type_deps.resolver.symbols import SymbolIndex

try:
    from tree_sitter_language_pack import get_parser
except ImportError as _err:
    raise ImportError(
        "tree-sitter-language-pack is required. Install with: "
        "pip install tree-sitter-language-pack"
    ) from _err

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = frozenset({
    "byte", "short", "int", "long", "float", "double", "boolean", "char",
})

TYPE_DECLARATIONS = {
    "class_declaration", "interface_declaration", "enum_declaration",
    "record_declaration", "annotation_type_declaration",
}
_MEMBER_CONTAINERS = {
    "class_body", "interface_body", "enum_body", "enum_body_declarations",
    "annotation_type_body",
}

_REFERENCE_TYPES = {"type_identifier", "scoped_type_identifier"}
_PRIMITIVE_NODES = {"integral_type", "floating_point_type", "boolean_type", "void_type"}
TYPE_NODES = _REFERENCE_TYPES | _PRIMITIVE_NODES | {
    "generic_type", "array_type", "annotated_type",
}


def node_text(node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


def node_line(node) -> int:
    return node.start_point[0] + 1


def written_type_name(node) -> str | None:
    """Literal name of a type node with type arguments and annotations removed.

    Returns None when the node is not a type the classifier understands.
    """
    kind = node.type
    if kind == "type_identifier":
        return node_text(node)
    if kind in _PRIMITIVE_NODES:
        return node_text(node)
    if kind == "scoped_type_identifier":
        parts = []
        for child in node.named_children:
            if child.type in _REFERENCE_TYPES or child.type == "generic_type":
                part = written_type_name(child)
                if part:
                    parts.append(part)
        return ".".join(parts) or None
    if kind == "generic_type":
        for child in node.named_children:
            if child.type in _REFERENCE_TYPES:
                return written_type_name(child)
        return None
    if kind == "annotated_type":
        for child in reversed(node.named_children):
            if child.type in TYPE_NODES:
                return written_type_name(child)
        return None
    if kind == "array_type":
        element = node.child_by_field_name("element")
        dims = node.child_by_field_name("dimensions")
        base = written_type_name(element) if element is not None else None
        if base is None:
            return "".join(node_text(node).split())
        return base + "[]" * max(1, node_text(dims).count("[") if dims else 1)
    return None


def type_child(node):
    """The type node of a declaration, parameter or creation expression."""
    type_node = node.child_by_field_name("type")
    if type_node is not None:
        return type_node
    for child in node.named_children:
        if child.type in TYPE_NODES:
            return child
    return None


@dataclass(frozen=True)
class ImportTable:
    single: dict[str, str] = field(default_factory=dict)
    on_demand: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedUnit:
    """A parsed compilation unit plus everything needed to qualify its names."""
    path: Path | None
    root: object
    package: str
    unit_name: str
    imports: ImportTable
    declared: dict[str, str]
    index: SymbolIndex

    def qualify(self, written: str) -> str:
        """Map a written type name to its qualified name.

        Primitives, ``void`` and arrays are returned unchanged. Raises
        ``TypeUnresolved`` for simple names that match nothing.
        """
        if not written or written == "void" or written in PRIMITIVE_TYPES:
            return written
        if written.endswith("]"):
            return written
        head, _, rest = written.partition(".")
        if rest:
            try:
                return f"{self._qualify_simple(head)}.{rest}"
            except TypeUnresolved:
                # Already package-qualified.
                return written
        return self._qualify_simple(written)

    def _qualify_simple(self, name: str) -> str:
        if name in self.declared:
            return self.declared[name]
        if name in self.imports.single:
            return self.imports.single[name]
        candidate = f"{self.package}.{name}" if self.package else name
        if candidate in self.index:
            return candidate
        for package in self.imports.on_demand:
            candidate = f"{package}.{name}"
            if candidate in self.index or name in JDK_TYPES.get(package, ()):
                return candidate
        if name in JDK_TYPES["java.lang"]:
            return f"java.lang.{name}"
        raise TypeUnresolved(name)


class JavaTypeResolver:
    """Parses Java sources and builds resolvable ``ParsedUnit`` objects.

    The symbol index is fixed at construction. Each worker thread gets its
    own tree-sitter parser, so one resolver can be shared by concurrent
    classification tasks.
    """

    grammar = "java"

    def __init__(self, index: SymbolIndex | None = None):
        self._index = index if index is not None else SymbolIndex()
        self._local = threading.local()

    @classmethod
    def configure(cls, root: Path, unit_paths: Iterable[Path]) -> JavaTypeResolver:
        """Build a resolver that knows every unit under ``root``."""
        index = SymbolIndex.build(root, unit_paths)
        logger.debug("Configured resolver for %s with %d indexed names", root, len(index))
        return cls(index)

    @property
    def index(self) -> SymbolIndex:
        return self._index

    def load(self, path: Path) -> ParsedUnit:
        """Read and parse one unit."""
        path = Path(path)
        try:
            source = path.read_bytes()
        except OSError as e:
            raise UnreadableSource(f"Error reading file {path.name}: {e}", unit=path) from e
        return self.parse(source, path)

    def parse(self, source: bytes, path: Path | None = None) -> ParsedUnit:
        tree = self._get_parser().parse(source)
        root = tree.root_node
        if root.has_error:
            bad = _first_error(root)
            line = node_line(bad) if bad is not None else -1
            name = path.name if path is not None else "<source>"
            raise UnparsableSource(
                f"Failed to parse {name}: syntax error at line {line}",
                unit=path, line=line,
            )

        package = _package_name(root)
        declared: dict[str, str] = {}
        top_level: list[str] = []
        for child in root.named_children:
            if child.type in TYPE_DECLARATIONS:
                name = _declaration_name(child)
                if name:
                    top_level.append(name)
                    _collect_declared(child, _join(package, name), declared)

        if top_level:
            unit_name = _join(package, top_level[0])
        else:
            stem = path.stem if path is not None else "UnknownClass"
            unit_name = _join(package, stem)

        return ParsedUnit(
            path=path,
            root=root,
            package=package,
            unit_name=unit_name,
            imports=_import_table(root),
            declared=declared,
            index=self._index,
        )

    def infer_package(self, directory: Path, extensions: tuple[str, ...] = (".java",)) -> str:
        """Package declared by the first unit in ``directory``, else its name."""
        directory = Path(directory)
        units = sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix in extensions
        )
        if units:
            try:
                tree = self._get_parser().parse(units[0].read_bytes())
            except OSError:
                logger.debug("Cannot read %s to infer its package", units[0])
            else:
                package = _package_name(tree.root_node)
                if package:
                    return package
        return directory.name

    def _get_parser(self):
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = get_parser(self.grammar)
            self._local.parser = parser
        return parser


def _join(package: str, name: str) -> str:
    return f"{package}.{name}" if package else name


def _declaration_name(node) -> str | None:
    name_node = node.child_by_field_name("name")
    if name_node is not None and name_node.text:
        return node_text(name_node)
    return None


def _collect_declared(node, qualified: str, declared: dict[str, str]) -> None:
    """Register a type declaration and every type nested in its body."""
    simple = qualified.rsplit(".", 1)[-1]
    declared.setdefault(simple, qualified)
    body = node.child_by_field_name("body")
    if body is None:
        return
    stack = [body]
    while stack:
        container = stack.pop()
        for member in container.named_children:
            if member.type in TYPE_DECLARATIONS:
                name = _declaration_name(member)
                if name:
                    _collect_declared(member, f"{qualified}.{name}", declared)
            elif member.type in _MEMBER_CONTAINERS:
                stack.append(member)


def _package_name(root) -> str:
    for child in root.named_children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("scoped_identifier", "identifier"):
                    return node_text(part)
    return ""


def _import_table(root) -> ImportTable:
    single: dict[str, str] = {}
    on_demand: list[str] = []
    for child in root.named_children:
        if child.type != "import_declaration":
            continue
        parsed = parse_import(child)
        if parsed is None:
            continue
        name, is_static, wildcard = parsed
        if is_static:
            continue
        if wildcard:
            on_demand.append(name)
        else:
            single.setdefault(name.rsplit(".", 1)[-1], name)
    return ImportTable(single=single, on_demand=tuple(on_demand))


def parse_import(node) -> tuple[str, bool, bool] | None:
    """``(name, is_static, is_wildcard)`` for an import declaration."""
    name = None
    for child in node.named_children:
        if child.type in ("scoped_identifier", "identifier"):
            name = node_text(child)
            break
    if not name:
        return None
    is_static = any(c.type == "static" for c in node.children)
    wildcard = any(c.type == "asterisk" for c in node.children)
    return name, is_static, wildcard


def _first_error(root):
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None
