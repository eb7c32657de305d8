"""Tests for dependency classification."""

import pytest
from pathlib import Path

from type_deps.models import AnalysisConfig, DependencyEdge, DependencyKind
from type_deps.resolver.symbols import SymbolIndex

FIXTURES = Path(__file__).parent / "fixtures"
JAVA = FIXTURES / "java"

# Only run if tree-sitter is installed
try:
    from type_deps.analysis import ExclusionPolicy, classify, is_array_type
    from type_deps.resolver import JavaTypeResolver
    HAS_TREESITTER = True
except ImportError:
    HAS_TREESITTER = False

pytestmark = pytest.mark.skipif(not HAS_TREESITTER, reason="tree-sitter not installed")


# ── Helpers ───────────────────────────────────────────────────

def _classify(source, names=(), policy=None):
    resolver = JavaTypeResolver(SymbolIndex(names=frozenset(names)))
    return classify(resolver.parse(source.encode()), policy)


def _pairs(report):
    return {(e.target_type, e.kind) for e in report.edges}


# ── Exclusion policy ──────────────────────────────────────────

class TestExclusionPolicy:
    def test_default_prefixes(self):
        policy = ExclusionPolicy()
        assert not policy.should_include("java.lang.String", "a.A")
        assert not policy.should_include("java.util.List", "a.A")
        assert policy.should_include("com.acme.Order", "a.A")

    def test_primitives_void_and_arrays(self):
        policy = ExclusionPolicy()
        assert not policy.should_include("int", "a.A")
        assert not policy.should_include("void", "a.A")
        assert not policy.should_include("com.acme.Order[]", "a.A")
        assert is_array_type("int[][]")

    def test_empty_and_self(self):
        policy = ExclusionPolicy()
        assert not policy.should_include("", "a.A")
        assert not policy.should_include(None, "a.A")
        assert not policy.should_include("a.A", "a.A")

    def test_prefix_match_is_raw(self):
        policy = ExclusionPolicy(excluded_prefixes=("std.",))
        assert not policy.should_include("std.Vector", "A")
        assert policy.should_include("stdlib.Vector", "A")
        assert policy.should_include("java.lang.String", "A")

    def test_from_config(self):
        config = AnalysisConfig(excluded_prefixes=["std."], include_imports=True)
        policy = ExclusionPolicy.from_config(config)
        assert policy.excluded_prefixes == ("std.",)
        assert policy.include_imports is True
        assert not policy.should_include("std.Vector", "A")

    def test_with_prefixes(self):
        policy = ExclusionPolicy().with_prefixes("org.slf4j")
        assert not policy.should_include("org.slf4j.Logger", "a.A")
        assert not policy.should_include("java.io.File", "a.A")


# ── Edge kinds ────────────────────────────────────────────────

class TestKinds:
    def test_extends_and_implements(self):
        report = _classify(
            "package p;\nclass A extends Base implements Left, Right {}\n",
            names=["p.Base", "p.Left", "p.Right"],
        )
        assert _pairs(report) == {
            ("p.Base", DependencyKind.EXTENDS),
            ("p.Left", DependencyKind.IMPLEMENTS),
            ("p.Right", DependencyKind.IMPLEMENTS),
        }
        snippets = {e.snippet for e in report.edges}
        assert "extends Base" in snippets
        assert "implements Left" in snippets

    def test_interface_extends(self):
        report = _classify("package p;\ninterface A extends B, C {}\n", names=["p.B", "p.C"])
        assert _pairs(report) == {
            ("p.B", DependencyKind.EXTENDS),
            ("p.C", DependencyKind.EXTENDS),
        }

    def test_field(self):
        report = _classify("package p;\nclass A {\n    private B b;\n}\n", names=["p.B"])
        (edge,) = report.edges
        assert edge == DependencyEdge("p.A", "p.B", DependencyKind.FIELD, "B b", 3)

    def test_one_edge_per_declarator(self):
        report = _classify("class A {\n    B left, right;\n}\n", names=["B"])
        assert {e.snippet for e in report.edges} == {"B left", "B right"}

    def test_method_return_and_parameters(self):
        source = (
            "package p;\n"
            "class A {\n"
            "    Result run(Input in, Options... opts) { return null; }\n"
            "}\n"
        )
        report = _classify(source, names=["p.Result", "p.Input", "p.Options"])
        assert _pairs(report) == {
            ("p.Result", DependencyKind.METHOD_RETURN),
            ("p.Input", DependencyKind.METHOD_PARAMETER),
            ("p.Options", DependencyKind.METHOD_PARAMETER),
        }
        by_kind = {e.kind: e for e in report.edges if e.target_type != "p.Options"}
        assert by_kind[DependencyKind.METHOD_RETURN].snippet == "Result run()"
        assert by_kind[DependencyKind.METHOD_PARAMETER].snippet == "Input in"

    def test_instantiation(self):
        source = "package p;\nclass A {\n    void go() {\n        Object o = new Worker();\n    }\n}\n"
        report = _classify(source, names=["p.Worker"])
        (edge,) = report.edges
        assert edge.target_type == "p.Worker"
        assert edge.kind is DependencyKind.INSTANTIATION
        assert edge.snippet == "new Worker()"
        assert edge.line == 4

    def test_constructor_parameters_are_not_edges(self):
        report = _classify("class A {\n    A(B b) {}\n}\n", names=["B"])
        assert report.edges == frozenset()

    def test_imports_only_when_enabled(self):
        source = "package p;\nimport q.Helper;\nclass A {}\n"
        assert _classify(source).edges == frozenset()
        report = _classify(source, policy=ExclusionPolicy(include_imports=True))
        (edge,) = report.edges
        assert edge.kind is DependencyKind.IMPORT
        assert edge.target_type == "q.Helper"
        assert edge.snippet == "import q.Helper"


# ── Filtering ─────────────────────────────────────────────────

class TestFiltering:
    def test_generics_are_erased(self):
        source = "package p;\nimport java.util.List;\nclass A {\n    List<Item> items;\n}\n"
        assert _classify(source, names=["p.Item"]).edges == frozenset()

    def test_arrays_are_excluded(self):
        source = "class A {\n    B[] many;\n    B grid[];\n    void m(B[] xs) {}\n}\n"
        assert _classify(source, names=["B"]).edges == frozenset()

    def test_primitives_and_void(self):
        source = "class A {\n    int n;\n    void m(long x, boolean flag) {}\n    double d() { return 0; }\n}\n"
        assert _classify(source).edges == frozenset()

    def test_type_variables_are_skipped(self):
        source = (
            "class Box<T> {\n"
            "    T value;\n"
            "    <R> R map(T in) { return null; }\n"
            "}\n"
        )
        assert _classify(source).edges == frozenset()

    def test_self_reference_is_excluded(self):
        source = "package p;\nclass Node {\n    Node next;\n    Node copy() { return new Node(); }\n}\n"
        assert _classify(source).edges == frozenset()

    def test_unresolved_names_use_written_name(self):
        report = _classify("class A {\n    Mystery m;\n}\n")
        assert _pairs(report) == {("Mystery", DependencyKind.FIELD)}

    def test_duplicate_occurrences_collapse(self):
        source = "class A {\n    void m() { use(new B()); use(new B()); }\n}\n"
        report = _classify(source, names=["B"])
        assert report.dependency_count() == 1

    def test_custom_prefixes(self):
        source = "import std.Vector;\nclass A {\n    Vector v;\n    Other o;\n}\n"
        report = _classify(source, names=["Other"], policy=ExclusionPolicy(excluded_prefixes=("std.",)))
        assert _pairs(report) == {("Other", DependencyKind.FIELD)}


# ── Fixture tree ──────────────────────────────────────────────

def test_order_fixture():
    from type_deps.scanner import discover_units
    discovery = discover_units(JAVA)
    resolver = JavaTypeResolver.configure(JAVA, discovery.iter_units())
    report = classify(resolver.load(JAVA / "com" / "acme" / "shop" / "Order.java"))

    assert report.unit_name == "com.acme.shop.Order"
    assert _pairs(report) == {
        ("com.acme.shop.BaseEntity", DependencyKind.EXTENDS),
        ("com.acme.shop.Auditable", DependencyKind.IMPLEMENTS),
        ("com.acme.shop.Customer", DependencyKind.FIELD),
        ("com.acme.billing.Invoice", DependencyKind.METHOD_RETURN),
        ("com.acme.shop.Customer", DependencyKind.METHOD_PARAMETER),
        ("com.acme.billing.Invoice", DependencyKind.INSTANTIATION),
        ("com.acme.shop.OrderLine", DependencyKind.METHOD_PARAMETER),
    }
    assert report.dependency_count() == 7


def test_two_unit_example():
    """A has a field of type B and extends Base; B has no dependencies."""
    policy = ExclusionPolicy(excluded_prefixes=("std.",))
    a = _classify("class A extends Base {\n    B b;\n}\n", names=["A", "B"], policy=policy)
    b = _classify("class B {}\n", names=["A", "B"], policy=policy)
    assert _pairs(a) == {
        ("Base", DependencyKind.EXTENDS),
        ("B", DependencyKind.FIELD),
    }
    assert b.edges == frozenset()
