"""Canonical method signatures and the wildcard-aware equivalence rule.

A signature is the method name followed by one type token per parameter,
joined with ``-``: ``compute-int-int[]``. Call-site signatures use the
inferred argument types, so an argument whose type is not yet known shows
up as ``?`` and a ``null`` literal as ``null``. Both match any declared
type at the same position.
"""

from __future__ import annotations

from j2c.ast_nodes import CallableDecl, ClassDecl
from j2c.types import NULL_TYPE, UNKNOWN_TOKEN, Type, from_type_ref, type_name

SEPARATOR = "-"

WILDCARD_TOKENS = frozenset({type_name(NULL_TYPE), UNKNOWN_TOKEN})


def make_signature(name: str, param_types: list[Type]) -> str:
    return SEPARATOR.join([name, *(type_name(t) for t in param_types)])


def declaration_signature(decl: CallableDecl) -> str:
    """Signature of a method or constructor from its declared parameter types."""
    tokens = [decl.name]
    for param in decl.params:
        ty = from_type_ref(param.type)
        tokens.append(type_name(ty) if ty is not None else UNKNOWN_TOKEN)
    return SEPARATOR.join(tokens)


def signature_name(signature: str) -> str:
    return signature.split(SEPARATOR, 1)[0]


def signatures_equivalent(left: str, right: str) -> bool:
    """Compare token by token; wildcard tokens match anything at their position."""
    left_tokens = left.split(SEPARATOR)
    right_tokens = right.split(SEPARATOR)
    if len(left_tokens) != len(right_tokens):
        return False
    for a, b in zip(left_tokens, right_tokens):
        if a == b or a in WILDCARD_TOKENS or b in WILDCARD_TOKENS:
            continue
        return False
    return True


def find_declaration(decl: ClassDecl, signature: str) -> CallableDecl | None:
    """Method or constructor of *decl* matching *signature*.

    An exact match wins; otherwise the first equivalent declaration in
    source order.
    """
    candidates = [(declaration_signature(m), m) for m in decl.callables]
    for sig, member in candidates:
        if sig == signature:
            return member
    for sig, member in candidates:
        if signatures_equivalent(sig, signature):
            return member
    return None
