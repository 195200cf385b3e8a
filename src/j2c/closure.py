"""Closure of the kernel: every class, method and field it transitively uses.

The closure is a worklist fixpoint. Traversing a resolved method body
registers the classes, methods and fields it references; new placeholders
and new signatures go to the next iteration's frontier. Each iteration
resolves the placeholders of its frontier against the source resolver and
traverses the newly resolved bodies. The run ends when an iteration
produces no class with pending work.
"""

from __future__ import annotations

import logging
from typing import Protocol

from j2c.ast_nodes import (
    ArrayCreation,
    ArrayTypeRef,
    CastExpr,
    CatchClause,
    ClassDecl,
    ClassTypeRef,
    ConstructorDecl,
    ExplicitConstructorCall,
    Expr,
    FieldAccess,
    InstanceOfExpr,
    LambdaExpr,
    LocalClassStmt,
    MethodCall,
    MethodDecl,
    MethodReference,
    NameExpr,
    ObjectCreation,
    Parameter,
    SuperExpr,
    ThisExpr,
    ThrowStmt,
    TypeRef,
    VarDeclExpr,
    iter_child_nodes,
)
from j2c.errors import (
    Diagnostic,
    InferenceError,
    ResolutionError,
    SubsetError,
)
from j2c.inference import TypeInferencer
from j2c.models import ClassModel, MethodModel, Program, SyntheticClassModel
from j2c.signatures import declaration_signature, find_declaration, make_signature
from j2c.source import Span
from j2c.type_env import class_env, declared_names, method_env
from j2c.types import (
    BUILTIN_CLASSES,
    SYNTHETIC_MODULE,
    ArrayType,
    Type,
    UnknownType,
    class_name_of,
    type_name,
)

logger = logging.getLogger(__name__)


class ClassResolver(Protocol):
    """Locates the declaration of a class by name."""

    def resolve(self, name: str) -> ClassDecl: ...


class ClosureBuilder:
    """Computes the closure of one kernel method."""

    def __init__(self, resolver: ClassResolver, entry_decl: ClassDecl,
                 kernel_decl: MethodDecl) -> None:
        self.resolver = resolver
        self.entry_decl = entry_decl
        self.kernel_decl = kernel_decl
        self.classes: dict[str, ClassModel] = {
            SYNTHETIC_MODULE: SyntheticClassModel(SYNTHETIC_MODULE),
        }
        self._next: dict[str, ClassModel] = {}

    # ── Driver ───────────────────────────────────────────────────

    def build(self) -> Program:
        entry = ClassModel(self.entry_decl.name, self.entry_decl)
        self.classes[entry.name] = entry
        self._setup_class(entry)

        kernel = entry.add_declared_method(
            declaration_signature(self.kernel_decl), self.kernel_decl)
        kernel.is_kernel = True
        entry.kernel = kernel
        logger.info("kernel %s.%s", entry.name, kernel.signature)
        self._traverse(kernel)

        iterations = 0
        frontier = self._take_frontier()
        while frontier:
            iterations += 1
            logger.info("closure iteration %d: %s", iterations, ", ".join(frontier))
            for cls in frontier.values():
                if not cls.is_resolved:
                    self._resolve_class(cls)
                self._resolve_methods(cls)
            frontier = self._take_frontier()

        logger.info("closure complete after %d iteration(s), %d class(es)",
                    iterations, len(self.classes) - 1)
        return Program(entry, dict(self.classes), iterations)

    def _take_frontier(self) -> dict[str, ClassModel]:
        pending = {name: cls for name, cls in self._next.items() if cls.has_pending_work()}
        self._next = {}
        return pending

    def _touch(self, cls: ClassModel) -> None:
        self._next.setdefault(cls.name, cls)

    # ── Registration ─────────────────────────────────────────────

    def get_or_add_class(self, name: str) -> ClassModel:
        existing = self.classes.get(name)
        if existing is not None:
            return existing
        cls = ClassModel(name)
        self.classes[name] = cls
        self._touch(cls)
        logger.debug("new class placeholder %s", name)
        return cls

    def register_method(self, cls: ClassModel, signature: str) -> MethodModel:
        existing = cls.methods.get(signature)
        if existing is not None:
            return existing
        method = MethodModel(cls, signature)
        cls.methods[signature] = method
        self._touch(cls)
        logger.debug("new method placeholder %s.%s", cls.name, signature)
        return method

    def register_field(self, cls: ClassModel, name: str, span: Span | None = None) -> None:
        """Record field *name* as used on whichever class in the chain declares it."""
        owner = cls.find_field_owner(name)
        if owner is None:
            raise ResolutionError.from_message(
                "E103", f"cannot find field '{name}' in class '{cls.name}' or its bases", span)
        owner.add_field(name, owner.type_env[name])

    # ── Resolution ───────────────────────────────────────────────

    def _resolve_class(self, cls: ClassModel) -> None:
        decl = self.resolver.resolve(cls.name)
        cls.resolve(decl)
        logger.info("resolved class %s", cls.name)
        self._setup_class(cls)

    def _setup_class(self, cls: ClassModel) -> None:
        decl = cls.decl
        cls.type_env = class_env(decl)
        if len(decl.extends) > 1:
            raise SubsetError.from_message(
                "E301", f"'{cls.name}' extends more than one type; only single inheritance "
                "is supported", decl.span)
        if decl.extends and decl.extends[0].name not in BUILTIN_CLASSES:
            base = self.get_or_add_class(decl.extends[0].name)
            if not base.is_resolved:
                self._resolve_class(base)
            cls.bases = [base]
        cls.interfaces = [ref.name for ref in decl.implements]
        for name in list(cls.requested_fields):
            self.register_field(cls, name)
        cls.requested_fields.clear()

    def _resolve_methods(self, cls: ClassModel) -> None:
        """Resolve and traverse every pending method of *cls*, including new ones."""
        while True:
            pending = [m for m in cls.methods.values() if not m.is_resolved]
            if not pending:
                return
            for method in pending:
                self._resolve_method(cls, method)

    def _resolve_method(self, cls: ClassModel, method: MethodModel) -> None:
        signature = method.signature
        decl = find_declaration(cls.decl, signature)
        if decl is None:
            del cls.methods[signature]
            owner = self._declaring_ancestor(cls, signature)
            if owner is not None:
                logger.debug("%s.%s is inherited from %s", cls.name, signature, owner.name)
                self.register_method(owner, signature)
                return
            if self._is_implicit_constructor(cls, signature):
                return
            raise ResolutionError.from_message(
                "E102", f"cannot find method '{signature}' in class '{cls.name}'")

        normalized = declaration_signature(decl)
        if normalized != signature:
            del cls.methods[signature]
            if normalized in cls.methods:
                logger.debug("%s.%s already registered as %s", cls.name, signature, normalized)
                return
            logger.debug("normalized %s.%s -> %s", cls.name, signature, normalized)
            method.signature = normalized
            cls.methods[normalized] = method
        method.resolve(decl)
        self._traverse(method)

    def _declaring_ancestor(self, cls: ClassModel, signature: str) -> ClassModel | None:
        for ancestor in cls.ancestors():
            if ancestor.is_resolved and find_declaration(ancestor.decl, signature) is not None:
                return ancestor
        return None

    @staticmethod
    def _is_implicit_constructor(cls: ClassModel, signature: str) -> bool:
        if signature != cls.decl.name:
            return False
        return not any(isinstance(m, ConstructorDecl) for m in cls.decl.callables)

    def _traverse(self, method: MethodModel) -> None:
        decl = method.decl
        method.type_env = method_env(method.owner.type_env, decl)
        method.local_names = declared_names(decl)
        logger.debug("traversing %s.%s", method.owner.name, method.signature)
        MethodVisitor(self, method).visit_method()


class MethodVisitor:
    """Walks one method body and registers everything it references."""

    def __init__(self, builder: ClosureBuilder, method: MethodModel) -> None:
        self.builder = builder
        self.method = method
        self.cls = method.owner
        self.inferencer = TypeInferencer(method, builder.classes)
        decl = method.decl
        self._type_params = {tp.name for tp in decl.type_params}
        self._type_params.update(tp.name for tp in self.cls.decl.type_params)

    def visit_method(self) -> None:
        decl = self.method.decl
        for param in decl.params:
            self._use_type(param.type)
        if isinstance(decl, MethodDecl):
            self._use_type(decl.return_type)
        if decl.body is not None:
            self.visit(decl.body)

    def visit(self, node: object) -> None:
        if isinstance(node, (LambdaExpr, MethodReference, LocalClassStmt, CatchClause,
                             ThrowStmt)):
            return
        if isinstance(node, MethodCall):
            self._visit_call(node)
            return
        if isinstance(node, ObjectCreation):
            self._visit_creation(node)
            return
        if isinstance(node, ExplicitConstructorCall):
            self._visit_constructor_call(node)
            return
        if isinstance(node, FieldAccess):
            self._visit_field_access(node)
            return
        if isinstance(node, NameExpr):
            self._visit_name(node)
            return
        if isinstance(node, (VarDeclExpr, Parameter, CastExpr, InstanceOfExpr)):
            self._use_type(node.type)
        elif isinstance(node, ArrayCreation):
            self._use_type(node.element)
        for child in iter_child_nodes(node):
            self.visit(child)

    # ── References ───────────────────────────────────────────────

    def _use_type(self, ref: TypeRef) -> None:
        """Register the class a declared type refers to."""
        if isinstance(ref, ArrayTypeRef):
            ref = ref.element
        if not isinstance(ref, ClassTypeRef) or ref.scope is not None:
            return
        if ref.name in BUILTIN_CLASSES or ref.name in self._type_params:
            return
        self.builder.get_or_add_class(ref.name)

    def _visit_name(self, node: NameExpr) -> None:
        if node.name in self.method.local_names:
            return
        owner = self.cls.find_field_owner(node.name)
        if owner is not None:
            owner.add_field(node.name, owner.type_env[node.name])

    def _visit_field_access(self, node: FieldAccess) -> None:
        scope = node.scope
        self.visit(scope)
        if isinstance(scope, ThisExpr) and scope.qualifier is None:
            self.builder.register_field(self.cls, node.name, node.span)
            return
        if isinstance(scope, SuperExpr):
            base = self.cls.base
            if base is None:
                raise ResolutionError.from_message(
                    "E106", f"'super' used in class '{self.cls.name}' which has no base class",
                    scope.span)
            self.builder.register_field(base, node.name, node.span)
            return

        ty = self._require(self.inferencer.scope_type(scope), scope.span,
                           f"cannot determine the type holding field '{node.name}'")
        if isinstance(ty, ArrayType):
            if node.name == "length":
                raise SubsetError.from_message(
                    "E310", "array length is not available in the generated code; "
                    "pass the length explicitly", node.span)
            raise ResolutionError.from_message(
                "E103", f"arrays have no field '{node.name}'", node.span)
        if isinstance(ty, UnknownType):
            raise InferenceError.from_message(
                "E201", f"the object holding field '{node.name}' depends on an unresolved call",
                node.span)
        name = class_name_of(ty)
        if name is None:
            raise SubsetError.from_message(
                "E311", f"field access on a value of type '{type_name(ty)}'", node.span)
        if name in BUILTIN_CLASSES:
            return
        target = self.builder.get_or_add_class(name)
        if target.is_resolved:
            self.builder.register_field(target, node.name, node.span)
        else:
            target.requested_fields[node.name] = None

    def _visit_call(self, node: MethodCall) -> None:
        if node.scope is not None:
            self.visit(node.scope)
        for arg in node.args:
            self.visit(arg)
        target = self.inferencer.call_target(node)
        if target == SYNTHETIC_MODULE or target in BUILTIN_CLASSES:
            return
        signature = self._call_signature(node.name, node.args, node.span)
        self.builder.register_method(self.builder.get_or_add_class(target), signature)

    def _visit_creation(self, node: ObjectCreation) -> None:
        for arg in node.args:
            self.visit(arg)
        if node.body is not None:
            raise SubsetError.from_message(
                "E302", "anonymous classes are not supported", node.span)
        self._use_type(node.type)
        name = node.type.name
        if name in BUILTIN_CLASSES or node.type.scope is not None:
            return
        signature = self._call_signature(name, node.args, node.span)
        self.builder.register_method(self.builder.get_or_add_class(name), signature)

    def _visit_constructor_call(self, node: ExplicitConstructorCall) -> None:
        for arg in node.args:
            self.visit(arg)
        if node.qualifier is not None:
            raise SubsetError.from_message(
                "E301", "qualified superclass constructor calls are not supported", node.span)
        if node.is_this:
            target = self.cls
        else:
            base = self.cls.base
            if base is None:
                raise ResolutionError.from_message(
                    "E106", f"'super' used in class '{self.cls.name}' which has no base class",
                    node.span)
            target = base
        signature = self._call_signature(target.name, node.args, node.span)
        self.builder.register_method(target, signature)

    # ── Helpers ──────────────────────────────────────────────────

    def _call_signature(self, name: str, args: list[Expr], span: Span) -> str:
        types: list[Type] = []
        for index, arg in enumerate(args, start=1):
            mark = len(self.inferencer.diagnostics)
            ty = self.inferencer.infer(arg)
            if ty is None:
                cause = self.inferencer.diagnostics[mark:]
                raise InferenceError([
                    Diagnostic.error(
                        "E201", f"cannot infer the type of argument {index} in call to '{name}'",
                        arg.span),
                    *cause,
                ])
            types.append(ty)
        return make_signature(name, types)

    def _require(self, ty: Type | None, span: Span, message: str) -> Type:
        if ty is None:
            raise InferenceError([Diagnostic.error("E201", message, span),
                                  *self.inferencer.diagnostics])
        return ty
