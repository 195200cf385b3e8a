"""Java type -> C type mapping."""

from __future__ import annotations

from j2c.ast_nodes import (
    ArrayTypeRef,
    ClassTypeRef,
    IntersectionTypeRef,
    PrimitiveTypeRef,
    TypeRef,
    UnionTypeRef,
    VoidTypeRef,
    WildcardTypeRef,
)
from j2c.errors import SubsetError
from j2c.types import (
    ArrayType,
    ClassType,
    PrimitiveType,
    Type,
    UnknownType,
    VoidType,
    from_type_ref,
)

_PRIMITIVE_MAP: dict[str, str] = {
    "boolean": "char",
    "byte": "signed char",
    "char": "char",
    "short": "short",
    "int": "int",
    "long": "long",
    "float": "float",
    "double": "double",
}


def map_type(ty: Type) -> str:
    """Map a resolved type to its C spelling; one ``*`` per array dimension."""
    if isinstance(ty, PrimitiveType):
        return _PRIMITIVE_MAP[ty.name]
    if isinstance(ty, ClassType):
        return mangle_class_name(ty)
    if isinstance(ty, ArrayType):
        return map_type(ty.element) + "*" * ty.dims
    if isinstance(ty, VoidType):
        return "void"
    if isinstance(ty, UnknownType):
        raise SubsetError.from_message(
            "E308", "a type that depends on an unresolved call cannot be lowered")
    return "void"


def mangle_class_name(ty: ClassType) -> str:
    """``List<Foo>`` -> ``List_Foo``; plain class names are kept."""
    if not ty.args:
        return ty.name
    parts = [ty.name]
    for arg in ty.args:
        parts.append(map_type(arg).replace("*", "ptr").replace(" ", "_"))
    return "_".join(parts)


def map_type_ref(ref: TypeRef, extra_dims: int = 0) -> str:
    """Map a syntactic type, rejecting forms with no flat equivalent."""
    _check_translatable(ref)
    ty = from_type_ref(ref, extra_dims)
    if ty is None:
        raise SubsetError.from_message("E308", "type cannot be lowered", ref.span)
    return map_type(ty)


def _check_translatable(ref: TypeRef) -> None:
    if isinstance(ref, WildcardTypeRef):
        raise SubsetError.from_message("E308", "wildcard types are not supported", ref.span)
    if isinstance(ref, UnionTypeRef):
        raise SubsetError.from_message("E308", "union types are not supported", ref.span)
    if isinstance(ref, IntersectionTypeRef):
        raise SubsetError.from_message(
            "E308", "intersection types are not supported", ref.span)
    if isinstance(ref, ArrayTypeRef):
        _check_translatable(ref.element)
    elif isinstance(ref, ClassTypeRef):
        if ref.scope is not None:
            raise SubsetError.from_message(
                "E302", f"nested class type '{ref.qualified_name}' is not supported",
                ref.span)
        for arg in ref.args:
            _check_translatable(arg)
    elif isinstance(ref, (PrimitiveTypeRef, VoidTypeRef)):
        return
