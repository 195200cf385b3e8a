"""Resolved type representations.

These are distinct from the AST ``TypeRef`` nodes (which are syntactic).
Resolved types populate type environments and feed canonical signatures.
"""

from __future__ import annotations

from dataclasses import dataclass

from j2c.ast_nodes import (
    ArrayTypeRef,
    ClassTypeRef,
    PrimitiveTypeRef,
    TypeRef,
    VoidTypeRef,
    WildcardTypeRef,
)

# ── Resolved types ──────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class ClassType:
    name: str
    args: tuple[Type, ...] = ()


@dataclass(frozen=True)
class ArrayType:
    element: Type  # never an ArrayType
    dims: int = 1


@dataclass(frozen=True)
class VoidType:
    pass


@dataclass(frozen=True)
class UnknownType:
    """Placeholder for the result of a call whose target is still unresolved."""
    pass


Type = PrimitiveType | ClassType | ArrayType | VoidType | UnknownType


# ── Built-in type constants ─────────────────────────────────────

BOOLEAN = PrimitiveType("boolean")
BYTE = PrimitiveType("byte")
CHAR = PrimitiveType("char")
SHORT = PrimitiveType("short")
INT = PrimitiveType("int")
LONG = PrimitiveType("long")
FLOAT = PrimitiveType("float")
DOUBLE = PrimitiveType("double")
VOID = VoidType()
UNKNOWN = UnknownType()
STRING = ClassType("String")
NULL_TYPE = ClassType("null")

# Reserved binding present in every environment; calls on it are no-ops.
SYNTHETIC_MODULE = "SYNTHETIC_MODULE"
SYNTHETIC_TYPE = ClassType(SYNTHETIC_MODULE)

UNKNOWN_TOKEN = "?"

PRIMITIVES: dict[str, PrimitiveType] = {
    p.name: p for p in (BOOLEAN, BYTE, CHAR, SHORT, INT, LONG, FLOAT, DOUBLE)
}

# Library classes that are referenced by name but never enter the closure.
BUILTIN_CLASSES = frozenset({
    "Object", "String", "Math", "System", "StringBuilder",
    "Integer", "Long", "Short", "Byte", "Character", "Boolean",
    "Float", "Double", "Number",
})

# Promotion ladder for mixed binary expressions, widest first.
_PROMOTION_LADDER = (DOUBLE, FLOAT, LONG, INT)

_NUMERIC = frozenset({"byte", "short", "char", "int", "long", "float", "double"})


# ── Type utilities ──────────────────────────────────────────────


def type_name(ty: Type) -> str:
    """Canonical text token used in signatures and diagnostics."""
    if isinstance(ty, PrimitiveType):
        return ty.name
    if isinstance(ty, ClassType):
        if ty.args:
            args = ",".join(type_name(a) for a in ty.args)
            return f"{ty.name}<{args}>"
        return ty.name
    if isinstance(ty, ArrayType):
        return type_name(ty.element) + "[]" * ty.dims
    if isinstance(ty, VoidType):
        return "void"
    return UNKNOWN_TOKEN


def array_of(element: Type, dims: int) -> Type:
    """Add *dims* array dimensions to *element*."""
    if dims <= 0:
        return element
    if isinstance(element, ArrayType):
        return ArrayType(element.element, element.dims + dims)
    return ArrayType(element, dims)


def element_type(ty: ArrayType) -> Type:
    """Type of ``a[i]`` for ``a`` of type *ty*."""
    if ty.dims == 1:
        return ty.element
    return ArrayType(ty.element, ty.dims - 1)


def class_name_of(ty: Type | None) -> str | None:
    """Return the class name when *ty* is a class type, else None."""
    if isinstance(ty, ClassType) and ty != NULL_TYPE:
        return ty.name
    return None


def is_numeric(ty: Type) -> bool:
    return isinstance(ty, PrimitiveType) and ty.name in _NUMERIC


def from_type_ref(ref: TypeRef, extra_dims: int = 0) -> Type | None:
    """Convert a syntactic type to a resolved type.

    Wildcard, union and intersection types have no resolved form and yield
    None; the caller decides whether that is an error.
    """
    result: Type | None
    if isinstance(ref, PrimitiveTypeRef):
        result = PRIMITIVES[ref.name]
    elif isinstance(ref, VoidTypeRef):
        result = VOID
    elif isinstance(ref, ClassTypeRef):
        args: list[Type] = []
        for arg in ref.args:
            if isinstance(arg, WildcardTypeRef):
                args.append(ClassType(UNKNOWN_TOKEN))
                continue
            converted = from_type_ref(arg)
            if converted is None:
                return None
            args.append(converted)
        result = ClassType(ref.name, tuple(args))
    elif isinstance(ref, ArrayTypeRef):
        element = from_type_ref(ref.element)
        if element is None:
            return None
        result = array_of(element, ref.dims)
    else:
        return None
    return array_of(result, extra_dims)


def promote(left: Type, right: Type) -> Type | None:
    """Result type of an arithmetic binary expression.

    Identical operand types give that type; otherwise the first rung of the
    ladder double > float > long > int held by either operand wins. Two
    numeric primitives below the ladder (byte, short, char) give int.
    Any other combination has no result type.
    """
    if left == right:
        return left
    for rung in _PROMOTION_LADDER:
        if left == rung or right == rung:
            return rung
    if is_numeric(left) and is_numeric(right):
        return INT
    return None
