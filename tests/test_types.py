"""Tests for resolved types, promotion and the C type mapping."""

from __future__ import annotations

import pytest

from j2c.c_types import map_type, map_type_ref, mangle_class_name
from j2c.errors import SubsetError
from j2c.types import (
    BOOLEAN,
    BYTE,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    NULL_TYPE,
    SHORT,
    STRING,
    UNKNOWN,
    VOID,
    ArrayType,
    ClassType,
    array_of,
    class_name_of,
    element_type,
    from_type_ref,
    promote,
    type_name,
)
from tests.helpers import parse_class


def _field_ref(text: str):
    decl = parse_class(f"class K {{ {text} f; }}")
    return decl.field_decls[0].type


class TestTypeName:
    def test_primitive(self):
        assert type_name(INT) == "int"

    def test_array(self):
        assert type_name(ArrayType(DOUBLE, 2)) == "double[][]"

    def test_generic_class(self):
        assert type_name(ClassType("List", (ClassType("Foo"),))) == "List<Foo>"

    def test_unknown(self):
        assert type_name(UNKNOWN) == "?"

    def test_void(self):
        assert type_name(VOID) == "void"


class TestArrays:
    def test_array_of_flattens(self):
        assert array_of(ArrayType(INT, 1), 2) == ArrayType(INT, 3)

    def test_array_of_zero_dims(self):
        assert array_of(INT, 0) == INT

    def test_element_type(self):
        assert element_type(ArrayType(INT, 2)) == ArrayType(INT, 1)
        assert element_type(ArrayType(INT, 1)) == INT


class TestFromTypeRef:
    def test_primitive_array(self):
        assert from_type_ref(_field_ref("int[][]")) == ArrayType(INT, 2)

    def test_extra_dims(self):
        assert from_type_ref(_field_ref("int"), 1) == ArrayType(INT, 1)

    def test_generic_with_wildcard(self):
        ty = from_type_ref(_field_ref("Box<?>"))
        assert ty == ClassType("Box", (ClassType("?"),))

    def test_class_name_of(self):
        assert class_name_of(ClassType("Foo")) == "Foo"
        assert class_name_of(NULL_TYPE) is None
        assert class_name_of(INT) is None
        assert class_name_of(None) is None


class TestPromote:
    def test_same_type(self):
        assert promote(STRING, STRING) == STRING

    def test_double_wins(self):
        assert promote(INT, DOUBLE) == DOUBLE
        assert promote(DOUBLE, LONG) == DOUBLE

    def test_float_over_long(self):
        assert promote(LONG, FLOAT) == FLOAT

    def test_long_over_int(self):
        assert promote(INT, LONG) == LONG

    def test_small_integrals_give_int(self):
        assert promote(BYTE, SHORT) == INT
        assert promote(CHAR, BYTE) == INT

    def test_incompatible(self):
        assert promote(BOOLEAN, STRING) is None


class TestMapType:
    def test_boolean_lowers_to_char(self):
        assert map_type(BOOLEAN) == "char"

    def test_byte(self):
        assert map_type(BYTE) == "signed char"

    def test_one_star_per_dimension(self):
        assert map_type(ArrayType(INT, 2)) == "int**"
        assert map_type(ArrayType(ClassType("String"), 1)) == "String*"

    def test_class_kept(self):
        assert map_type(ClassType("Point")) == "Point"

    def test_generic_mangled(self):
        assert mangle_class_name(ClassType("List", (ClassType("Foo"),))) == "List_Foo"
        assert mangle_class_name(ClassType("Box", (ArrayType(INT, 1),))) == "Box_intptr"

    def test_unknown_rejected(self):
        with pytest.raises(SubsetError) as exc:
            map_type(UNKNOWN)
        assert exc.value.code == "E308"

    def test_map_type_ref(self):
        assert map_type_ref(_field_ref("double[]")) == "double*"
        assert map_type_ref(_field_ref("boolean"), 1) == "char*"

    def test_wildcard_argument_rejected(self):
        with pytest.raises(SubsetError):
            map_type_ref(_field_ref("Box<? extends Number>"))

    def test_nested_class_type_rejected(self):
        with pytest.raises(SubsetError) as exc:
            map_type_ref(_field_ref("Outer.Inner"))
        assert exc.value.code == "E302"
