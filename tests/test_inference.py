"""Tests for expression type inference."""

from __future__ import annotations

import pytest

from j2c.ast_nodes import ReturnStmt
from j2c.errors import ResolutionError, SubsetError
from j2c.inference import TypeInferencer
from j2c.models import ClassModel, MethodModel
from j2c.signatures import declaration_signature
from j2c.type_env import class_env, method_env
from j2c.types import (
    BOOLEAN,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    NULL_TYPE,
    STRING,
    UNKNOWN,
    VOID,
    ArrayType,
    ClassType,
)
from tests.helpers import method, parse_class

TEMPLATE = """
class K {
    int i;
    double d;
    int[][] grid;
    String s;
    Other o;
    int m(long l, float f, boolean b) {
        return %s;
    }
}
"""


def _infer(expr: str):
    """Infer the returned expression; returns (type, inferencer)."""
    decl = parse_class(TEMPLATE % expr)
    cls = ClassModel("K", decl)
    cls.type_env = class_env(decl)
    kernel = method(decl, "m")
    model = cls.add_declared_method(declaration_signature(kernel), kernel)
    model.type_env = method_env(cls.type_env, kernel)

    other = ClassModel("Other")
    other.methods["g"] = MethodModel(other, "g")

    inferencer = TypeInferencer(model, {"K": cls, "Other": other})
    (stmt,) = kernel.body.stmts
    assert isinstance(stmt, ReturnStmt)
    return inferencer.infer(stmt.value), inferencer


def _type(expr: str):
    return _infer(expr)[0]


class TestLiterals:
    @pytest.mark.parametrize("text,expected", [
        ("1", INT),
        ("10L", LONG),
        ("1.5f", FLOAT),
        ("2.0", DOUBLE),
        ("'c'", CHAR),
        ('"text"', STRING),
        ("true", BOOLEAN),
        ("null", NULL_TYPE),
    ])
    def test_literal(self, text, expected):
        assert _type(text) == expected


class TestNamesAndAccess:
    def test_parameter(self):
        assert _type("l") == LONG

    def test_field(self):
        assert _type("d") == DOUBLE

    def test_this(self):
        assert _type("this") == ClassType("K")

    def test_array_access(self):
        assert _type("grid[0]") == ArrayType(INT, 1)
        assert _type("grid[0][1]") == INT

    def test_array_length(self):
        assert _type("grid.length") == INT

    def test_field_of_unresolved_class(self):
        assert _type("o.x") == UNKNOWN

    def test_unknown_variable(self):
        ty, inferencer = _infer("zzz")
        assert ty is None
        assert inferencer.diagnostics[0].code == "E202"

    def test_super_without_base(self):
        ty, inferencer = _infer("super.i")
        assert ty is None
        assert inferencer.diagnostics[0].code == "E202"


class TestOperators:
    def test_promotion(self):
        assert _type("i + d") == DOUBLE
        assert _type("i + l") == LONG
        assert _type("l * f") == FLOAT

    def test_string_concatenation(self):
        assert _type("s + i") == STRING

    def test_comparison_is_boolean(self):
        assert _type("i < d") == BOOLEAN

    def test_not(self):
        assert _type("!b") == BOOLEAN

    def test_negation_keeps_type(self):
        assert _type("-f") == FLOAT

    def test_incompatible_operands(self):
        ty, inferencer = _infer("b & s")
        assert ty is None
        assert inferencer.diagnostics[0].code == "E203"

    def test_cast(self):
        assert _type("(float) i") == FLOAT

    def test_parenthesized(self):
        assert _type("(i)") == INT

    def test_assignment_is_void(self):
        assert _type("i = 2") == VOID


class TestCreation:
    def test_object(self):
        assert _type("new Other()") == ClassType("Other")

    def test_array_with_empty_dims(self):
        assert _type("new int[3][]") == ArrayType(INT, 2)


class TestCalls:
    def test_own_method_returns_declared_type(self):
        assert _type("m(l, f, b)") == INT

    def test_unresolved_method_is_unknown(self):
        assert _type("o.g()") == UNKNOWN

    def test_missing_method(self):
        with pytest.raises(ResolutionError) as exc:
            _type("o.h()")
        assert exc.value.code == "E102"

    def test_synthetic_module_call_is_void(self):
        assert _type("SYNTHETIC_MODULE.barrier()") == VOID

    def test_call_on_primitive(self):
        with pytest.raises(SubsetError) as exc:
            _type("i.foo()")
        assert exc.value.code == "E311"

    def test_math(self):
        assert _type("Math.sqrt(i)") == DOUBLE
        assert _type("Math.abs(i)") == INT
        assert _type("Math.max(i, d)") == DOUBLE
        assert _type("Math.round(f)") == INT
        assert _type("Math.round(d)") == LONG

    def test_lambda_has_no_type(self):
        ty, inferencer = _infer("x -> x")
        assert ty is None
        assert inferencer.diagnostics[0].code == "E204"
