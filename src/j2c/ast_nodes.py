"""AST node definitions for the Java subset."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Iterator, Union

from j2c.source import Span
from j2c.tokens import Comment

# ── Type references ──────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveTypeRef:
    name: str
    span: Span


@dataclass(frozen=True)
class VoidTypeRef:
    span: Span


@dataclass(frozen=True)
class ClassTypeRef:
    name: str
    args: list[TypeRef]
    scope: ClassTypeRef | None
    span: Span

    @property
    def qualified_name(self) -> str:
        if self.scope is None:
            return self.name
        return f"{self.scope.qualified_name}.{self.name}"


@dataclass(frozen=True)
class ArrayTypeRef:
    element: TypeRef
    dims: int
    span: Span


@dataclass(frozen=True)
class WildcardTypeRef:
    bound: TypeRef | None
    upper: bool  # ``? extends`` when True, ``? super`` otherwise
    span: Span


@dataclass(frozen=True)
class UnionTypeRef:
    alternatives: list[TypeRef]
    span: Span


@dataclass(frozen=True)
class IntersectionTypeRef:
    members: list[TypeRef]
    span: Span


TypeRef = Union[
    PrimitiveTypeRef, VoidTypeRef, ClassTypeRef, ArrayTypeRef,
    WildcardTypeRef, UnionTypeRef, IntersectionTypeRef,
]


# ── Annotations and modifiers ────────────────────────────────────


@dataclass(frozen=True)
class Annotation:
    name: str
    span: Span


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class IntegerLit:
    value: str
    span: Span


@dataclass(frozen=True)
class LongLit:
    value: str
    span: Span


@dataclass(frozen=True)
class FloatLit:
    value: str
    span: Span


@dataclass(frozen=True)
class DoubleLit:
    value: str
    span: Span


@dataclass(frozen=True)
class CharLit:
    value: str  # escape sequences kept as written
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str  # escape sequences kept as written
    span: Span


@dataclass(frozen=True)
class BooleanLit:
    value: bool
    span: Span


@dataclass(frozen=True)
class NullLit:
    span: Span


@dataclass(frozen=True)
class NameExpr:
    name: str
    span: Span


@dataclass(frozen=True)
class ThisExpr:
    qualifier: str | None
    span: Span


@dataclass(frozen=True)
class SuperExpr:
    qualifier: str | None
    span: Span


@dataclass(frozen=True)
class FieldAccess:
    scope: Expr
    name: str
    span: Span


@dataclass(frozen=True)
class ArrayAccess:
    array: Expr
    index: Expr
    span: Span


@dataclass(frozen=True)
class MethodCall:
    scope: Expr | None
    name: str
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class ObjectCreation:
    type: ClassTypeRef
    args: list[Expr]
    body: list[Member] | None  # anonymous class body
    span: Span


@dataclass(frozen=True)
class ArrayInitializer:
    values: list[Expr]
    span: Span


@dataclass(frozen=True)
class ArrayCreation:
    element: TypeRef
    dimensions: list[Expr]
    extra_dims: int  # trailing ``[]`` without a size
    initializer: ArrayInitializer | None
    span: Span

    @property
    def total_dims(self) -> int:
        return len(self.dimensions) + self.extra_dims


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expr
    postfix: bool
    span: Span


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span


@dataclass(frozen=True)
class AssignExpr:
    target: Expr
    op: str
    value: Expr
    span: Span


@dataclass(frozen=True)
class ConditionalExpr:
    condition: Expr
    then_expr: Expr
    else_expr: Expr
    span: Span


@dataclass(frozen=True)
class CastExpr:
    type: TypeRef
    expr: Expr
    span: Span


@dataclass(frozen=True)
class InstanceOfExpr:
    expr: Expr
    type: TypeRef
    span: Span


@dataclass(frozen=True)
class EnclosedExpr:
    inner: Expr
    span: Span


@dataclass(frozen=True)
class ClassLiteral:
    type: TypeRef
    span: Span


@dataclass(frozen=True)
class LambdaExpr:
    params: list[str]
    body: Expr | Block
    span: Span


@dataclass(frozen=True)
class MethodReference:
    scope: Expr | TypeRef
    name: str
    span: Span


@dataclass(frozen=True)
class VariableDeclarator:
    name: str
    extra_dims: int  # C-style ``int a[]``
    init: Expr | None
    span: Span


@dataclass(frozen=True)
class VarDeclExpr:
    """Local variable declaration; also the init of ``for`` and resources."""

    modifiers: list[str]
    annotations: list[Annotation]
    type: TypeRef
    declarators: list[VariableDeclarator]
    span: Span


Expr = Union[
    IntegerLit, LongLit, FloatLit, DoubleLit, CharLit, StringLit,
    BooleanLit, NullLit, NameExpr, ThisExpr, SuperExpr, FieldAccess,
    ArrayAccess, MethodCall, ObjectCreation, ArrayInitializer, ArrayCreation,
    UnaryExpr, BinaryExpr, AssignExpr, ConditionalExpr, CastExpr,
    InstanceOfExpr, EnclosedExpr, ClassLiteral, LambdaExpr, MethodReference,
    VarDeclExpr,
]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Block:
    stmts: list[Stmt]
    span: Span
    comments: list[Comment] = field(default_factory=list)
    end_comments: list[Comment] = field(default_factory=list)  # before the closing brace


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class IfStmt:
    condition: Expr
    then_stmt: Stmt
    else_stmt: Stmt | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class WhileStmt:
    condition: Expr
    body: Stmt
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class DoStmt:
    body: Stmt
    condition: Expr
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ForStmt:
    init: list[Expr]
    condition: Expr | None
    update: list[Expr]
    body: Stmt
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ForEachStmt:
    variable: VarDeclExpr
    iterable: Expr
    body: Stmt
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ReturnStmt:
    value: Expr | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class BreakStmt:
    label: str | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ContinueStmt:
    label: str | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ThrowStmt:
    expr: Expr
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class CatchClause:
    param: Parameter
    body: Block
    span: Span


@dataclass(frozen=True)
class TryStmt:
    resources: list[Expr]
    body: Block
    catches: list[CatchClause]
    finally_block: Block | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class SwitchEntry:
    labels: list[Expr]  # empty for ``default``
    stmts: list[Stmt]
    span: Span


@dataclass(frozen=True)
class SwitchStmt:
    selector: Expr
    entries: list[SwitchEntry]
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class SynchronizedStmt:
    lock: Expr
    body: Block
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class LabeledStmt:
    label: str
    stmt: Stmt
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class AssertStmt:
    check: Expr
    message: Expr | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class EmptyStmt:
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ExplicitConstructorCall:
    """``this(...)``, ``super(...)`` or ``outer.super(...)``."""

    is_this: bool
    qualifier: Expr | None
    args: list[Expr]
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class LocalClassStmt:
    decl: TypeDecl
    span: Span
    comments: list[Comment] = field(default_factory=list)


Stmt = Union[
    Block, ExprStmt, IfStmt, WhileStmt, DoStmt, ForStmt, ForEachStmt,
    ReturnStmt, BreakStmt, ContinueStmt, ThrowStmt, TryStmt, SwitchStmt,
    SynchronizedStmt, LabeledStmt, AssertStmt, EmptyStmt,
    ExplicitConstructorCall, LocalClassStmt,
]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeParam:
    name: str
    bounds: list[TypeRef]
    span: Span


@dataclass(frozen=True)
class Parameter:
    modifiers: list[str]
    annotations: list[Annotation]
    type: TypeRef
    name: str
    varargs: bool
    span: Span


@dataclass(frozen=True)
class FieldDecl:
    modifiers: list[str]
    annotations: list[Annotation]
    type: TypeRef
    declarators: list[VariableDeclarator]
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class MethodDecl:
    modifiers: list[str]
    annotations: list[Annotation]
    type_params: list[TypeParam]
    return_type: TypeRef
    name: str
    params: list[Parameter]
    extra_dims: int  # ``int foo()[]``
    throws: list[TypeRef]
    body: Block | None
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ConstructorDecl:
    modifiers: list[str]
    annotations: list[Annotation]
    type_params: list[TypeParam]
    name: str
    params: list[Parameter]
    throws: list[TypeRef]
    body: Block
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class InitializerDecl:
    is_static: bool
    body: Block
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class EmptyMember:
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class ClassDecl:
    modifiers: list[str]
    annotations: list[Annotation]
    name: str
    type_params: list[TypeParam]
    extends: list[ClassTypeRef]
    implements: list[ClassTypeRef]
    members: list[Member]
    is_interface: bool
    span: Span
    comments: list[Comment] = field(default_factory=list)
    orphan_comments: list[Comment] = field(default_factory=list)

    @property
    def field_decls(self) -> list[FieldDecl]:
        return [m for m in self.members if isinstance(m, FieldDecl)]

    @property
    def callables(self) -> list[MethodDecl | ConstructorDecl]:
        return [m for m in self.members
                if isinstance(m, (MethodDecl, ConstructorDecl))]


@dataclass(frozen=True)
class EnumConstant:
    name: str
    args: list[Expr]
    body: list[Member] | None
    span: Span


@dataclass(frozen=True)
class EnumDecl:
    modifiers: list[str]
    annotations: list[Annotation]
    name: str
    implements: list[ClassTypeRef]
    constants: list[EnumConstant]
    members: list[Member]
    span: Span
    comments: list[Comment] = field(default_factory=list)


@dataclass(frozen=True)
class AnnotationDecl:
    modifiers: list[str]
    name: str
    span: Span
    comments: list[Comment] = field(default_factory=list)


TypeDecl = Union[ClassDecl, EnumDecl, AnnotationDecl]

Member = Union[
    FieldDecl, MethodDecl, ConstructorDecl, InitializerDecl, EmptyMember,
    ClassDecl, EnumDecl, AnnotationDecl,
]

CallableDecl = Union[MethodDecl, ConstructorDecl]


@dataclass(frozen=True)
class ImportDecl:
    name: str
    is_static: bool
    on_demand: bool
    span: Span


@dataclass(frozen=True)
class CompilationUnit:
    package: str | None
    imports: list[ImportDecl]
    types: list[TypeDecl]
    span: Span

    def find_class(self, name: str) -> ClassDecl | None:
        """Find a top-level class or interface by simple name."""
        for decl in self.types:
            if isinstance(decl, ClassDecl) and decl.name == name:
                return decl
        return None


# ── Traversal ────────────────────────────────────────────────────

_NOT_CHILDREN = frozenset({"span", "comments", "end_comments", "orphan_comments"})


def iter_child_nodes(node: object) -> Iterator[object]:
    """Yield the direct AST children of *node*, in field order."""
    for f in fields(node):  # type: ignore[arg-type]
        if f.name in _NOT_CHILDREN:
            continue
        value = getattr(node, f.name)
        if isinstance(value, list):
            for item in value:
                if hasattr(item, "__dataclass_fields__"):
                    yield item
        elif hasattr(value, "__dataclass_fields__"):
            yield value
