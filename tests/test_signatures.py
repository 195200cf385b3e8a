"""Tests for canonical signatures and wildcard equivalence."""

from __future__ import annotations

from j2c.ast_nodes import ConstructorDecl
from j2c.signatures import (
    declaration_signature,
    find_declaration,
    make_signature,
    signature_name,
    signatures_equivalent,
)
from j2c.types import INT, NULL_TYPE, UNKNOWN, ArrayType, ClassType
from tests.helpers import method, parse_class


class TestMakeSignature:
    def test_no_params(self):
        assert make_signature("run", []) == "run"

    def test_params_joined_with_dash(self):
        assert make_signature("compute", [INT, ArrayType(INT, 1)]) == "compute-int-int[]"

    def test_wildcards(self):
        assert make_signature("f", [NULL_TYPE, UNKNOWN]) == "f-null-?"

    def test_signature_name(self):
        assert signature_name("compute-int-int[]") == "compute"
        assert signature_name("run") == "run"


class TestDeclarationSignature:
    def test_method(self):
        decl = parse_class("class K { int[][] compute(int N, int[] a) { return null; } }")
        assert declaration_signature(method(decl, "compute")) == "compute-int-int[]"

    def test_constructor(self):
        decl = parse_class("class P { P(double x, Foo f) {} }")
        ctor = decl.members[0]
        assert isinstance(ctor, ConstructorDecl)
        assert declaration_signature(ctor) == "P-double-Foo"


class TestEquivalence:
    def test_identical(self):
        assert signatures_equivalent("f-int", "f-int")

    def test_null_matches_any(self):
        assert signatures_equivalent("f-Foo", "f-null")

    def test_unknown_matches_any(self):
        assert signatures_equivalent("f-?-int", "f-double-int")

    def test_arity_differs(self):
        assert not signatures_equivalent("f-int", "f-int-int")

    def test_name_differs(self):
        assert not signatures_equivalent("f-int", "g-int")

    def test_type_differs(self):
        assert not signatures_equivalent("f-int", "f-long")

    def test_symmetric(self):
        assert signatures_equivalent("f-null", "f-Foo")


class TestFindDeclaration:
    SOURCE = """
    class K {
        void f(int a) {}
        void f(Foo a) {}
        void f(Bar a) {}
        K() {}
    }
    """

    def test_exact_match_wins(self):
        decl = parse_class(self.SOURCE)
        found = find_declaration(decl, "f-Bar")
        assert declaration_signature(found) == "f-Bar"

    def test_first_equivalent_in_source_order(self):
        decl = parse_class(self.SOURCE)
        found = find_declaration(decl, "f-null")
        assert declaration_signature(found) == "f-int"

    def test_constructor(self):
        decl = parse_class(self.SOURCE)
        assert isinstance(find_declaration(decl, "K"), ConstructorDecl)

    def test_missing(self):
        decl = parse_class(self.SOURCE)
        assert find_declaration(decl, "f-int-int") is None
        assert find_declaration(decl, "g") is None

    def test_class_type_token(self):
        assert make_signature("f", [ClassType("Foo")]) == "f-Foo"
