"""Flat name -> type environments for classes and methods."""

from __future__ import annotations

from typing import Iterator

from j2c.ast_nodes import (
    CallableDecl,
    ClassDecl,
    LocalClassStmt,
    ObjectCreation,
    Parameter,
    VarDeclExpr,
    iter_child_nodes,
)
from j2c.types import SYNTHETIC_MODULE, SYNTHETIC_TYPE, Type, from_type_ref

TypeEnv = dict[str, Type]


class TypeEnvBuilder:
    """Adds the names a declaration introduces to an environment.

    The environment is flat: a name keeps the first type bound to it, so
    running the builder again over the same scope changes nothing. The
    synthetic module binding is always present.
    """

    def __init__(self, env: TypeEnv | None = None) -> None:
        self.env: TypeEnv = env if env is not None else {}
        self.bind(SYNTHETIC_MODULE, SYNTHETIC_TYPE)

    def bind(self, name: str, ty: Type | None) -> bool:
        """Bind *name* unless it is already bound. Returns True if added."""
        if ty is None or name in self.env:
            return False
        self.env[name] = ty
        return True

    def add_class(self, decl: ClassDecl) -> TypeEnv:
        """Bind every field declarator of the class."""
        for field_decl in decl.field_decls:
            for declarator in field_decl.declarators:
                self.bind(declarator.name, from_type_ref(field_decl.type, declarator.extra_dims))
        return self.env

    def add_callable(self, decl: CallableDecl) -> TypeEnv:
        """Bind parameters and every local declared anywhere in the body."""
        for param in decl.params:
            self.bind(param.name, from_type_ref(param.type))
        if decl.body is not None:
            for node in _scope_nodes(decl.body):
                if isinstance(node, VarDeclExpr):
                    for declarator in node.declarators:
                        self.bind(declarator.name,
                                  from_type_ref(node.type, declarator.extra_dims))
                elif isinstance(node, Parameter):
                    self.bind(node.name, from_type_ref(node.type))
        return self.env


def class_env(decl: ClassDecl) -> TypeEnv:
    return TypeEnvBuilder().add_class(decl)


def method_env(class_environment: TypeEnv, decl: CallableDecl) -> TypeEnv:
    """The class environment overlaid with the method's own names.

    Parameters and locals shadow fields of the same name.
    """
    own = TypeEnvBuilder().add_callable(decl)
    return {**class_environment, **own}


def declared_names(decl: CallableDecl) -> set[str]:
    """Names the method binds itself: parameters and locals."""
    names = {param.name for param in decl.params}
    if decl.body is not None:
        for node in _scope_nodes(decl.body):
            if isinstance(node, VarDeclExpr):
                names.update(d.name for d in node.declarators)
            elif isinstance(node, Parameter):
                names.add(node.name)
    return names


def _scope_nodes(node: object) -> Iterator[object]:
    """Walk a body without entering local or anonymous class bodies."""
    yield node
    if isinstance(node, LocalClassStmt):
        return
    if isinstance(node, ObjectCreation):
        for arg in node.args:
            yield from _scope_nodes(arg)
        return
    for child in iter_child_nodes(node):
        yield from _scope_nodes(child)
