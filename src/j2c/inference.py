"""Expression type inference over a method's type environment.

Unsupported expressions produce a diagnostic and an absent (None) type so
the caller can decide how fatal that is. A call whose target method is
registered but not yet resolved yields the unknown placeholder, which is
how provisional signatures come about.
"""

from __future__ import annotations

from collections.abc import Mapping

from j2c.ast_nodes import (
    ArrayAccess,
    ArrayCreation,
    ArrayInitializer,
    AssignExpr,
    BinaryExpr,
    BooleanLit,
    CastExpr,
    CharLit,
    ClassLiteral,
    ConditionalExpr,
    DoubleLit,
    EnclosedExpr,
    Expr,
    FieldAccess,
    FloatLit,
    InstanceOfExpr,
    IntegerLit,
    LambdaExpr,
    LongLit,
    MethodCall,
    MethodReference,
    NameExpr,
    NullLit,
    ObjectCreation,
    StringLit,
    SuperExpr,
    ThisExpr,
    UnaryExpr,
    VarDeclExpr,
)
from j2c.errors import Diagnostic, InferenceError, ResolutionError, SubsetError
from j2c.models import ClassModel, MethodModel
from j2c.signatures import make_signature
from j2c.source import Span
from j2c.types import (
    BOOLEAN,
    BUILTIN_CLASSES,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    NULL_TYPE,
    STRING,
    SYNTHETIC_MODULE,
    UNKNOWN,
    VOID,
    ArrayType,
    ClassType,
    Type,
    UnknownType,
    array_of,
    class_name_of,
    element_type,
    from_type_ref,
    promote,
    type_name,
)

_BOOLEAN_OPS = frozenset({'==', '!=', '<', '>', '<=', '>=', '&&', '||'})

# Math functions whose result type follows their arguments.
_MATH_ARG_TYPED = frozenset({"abs", "max", "min"})

MATH_CLASS = "Math"


class TypeInferencer:
    """Infers expression types inside one resolved method."""

    def __init__(self, method: MethodModel, classes: Mapping[str, ClassModel]) -> None:
        self.method = method
        self.cls = method.owner
        self.env = method.type_env
        self.classes = classes
        self.diagnostics: list[Diagnostic] = []

    def _error(self, code: str, message: str, span: Span) -> None:
        self.diagnostics.append(Diagnostic.error(code, message, span))

    # ── Entry point ──────────────────────────────────────────────

    def infer(self, expr: Expr) -> Type | None:
        """Return the type of *expr*, or None after recording a diagnostic."""
        if isinstance(expr, IntegerLit):
            return INT
        if isinstance(expr, LongLit):
            return LONG
        if isinstance(expr, FloatLit):
            return FLOAT
        if isinstance(expr, DoubleLit):
            return DOUBLE
        if isinstance(expr, CharLit):
            return CHAR
        if isinstance(expr, StringLit):
            return STRING
        if isinstance(expr, BooleanLit):
            return BOOLEAN
        if isinstance(expr, NullLit):
            return NULL_TYPE
        if isinstance(expr, NameExpr):
            return self._infer_name(expr)
        if isinstance(expr, ThisExpr):
            if expr.qualifier is not None:
                return ClassType(expr.qualifier.rsplit(".", 1)[-1])
            return ClassType(self.cls.name)
        if isinstance(expr, SuperExpr):
            base = self.cls.base
            if base is None:
                self._error("E202", f"class '{self.cls.name}' has no base class", expr.span)
                return None
            return ClassType(base.name)
        if isinstance(expr, FieldAccess):
            return self._infer_field_access(expr)
        if isinstance(expr, ArrayAccess):
            array = self.infer(expr.array)
            if array is None:
                return None
            if isinstance(array, ArrayType):
                return element_type(array)
            if isinstance(array, UnknownType):
                return UNKNOWN
            self._error("E203", f"indexing a value of type '{type_name(array)}'", expr.span)
            return None
        if isinstance(expr, MethodCall):
            return self._infer_call(expr)
        if isinstance(expr, ObjectCreation):
            return ClassType(expr.type.name)
        if isinstance(expr, ArrayCreation):
            element = from_type_ref(expr.element)
            if element is None:
                self._error("E204", "unsupported array element type", expr.span)
                return None
            return array_of(element, expr.total_dims)
        if isinstance(expr, ArrayInitializer):
            if not expr.values:
                self._error("E204", "cannot infer the type of an empty array initializer",
                            expr.span)
                return None
            return self.infer(expr.values[0])
        if isinstance(expr, UnaryExpr):
            if expr.op == '!':
                return BOOLEAN
            return self.infer(expr.operand)
        if isinstance(expr, BinaryExpr):
            return self._infer_binary(expr)
        if isinstance(expr, AssignExpr):
            return VOID
        if isinstance(expr, (ConditionalExpr, InstanceOfExpr)):
            return BOOLEAN
        if isinstance(expr, CastExpr):
            target = from_type_ref(expr.type)
            if target is None:
                self._error("E204", "unsupported cast target type", expr.span)
            return target
        if isinstance(expr, EnclosedExpr):
            return self.infer(expr.inner)
        if isinstance(expr, VarDeclExpr):
            return VOID
        if isinstance(expr, (LambdaExpr, MethodReference)):
            self._error("E204", "lambda expressions and method references have no type here",
                        expr.span)
            return None
        if isinstance(expr, ClassLiteral):
            self._error("E204", "class literals are not supported", expr.span)
            return None
        self._error("E204", f"unsupported expression: {type(expr).__name__}", expr.span)
        return None

    # ── Names and fields ─────────────────────────────────────────

    def _infer_name(self, expr: NameExpr) -> Type | None:
        ty = self.env.get(expr.name)
        if ty is not None:
            return ty
        owner = self.cls.find_field_owner(expr.name)
        if owner is not None:
            return self._register_field(owner, expr.name)
        self._error("E202", f"cannot resolve variable '{expr.name}'", expr.span)
        return None

    def _register_field(self, owner: ClassModel, name: str) -> Type | None:
        ty = owner.type_env.get(name)
        if ty is not None:
            owner.add_field(name, ty)
        return ty

    def field_type(self, cls: ClassModel, name: str, span: Span) -> Type | None:
        """Type of field *name* on *cls* or its ancestors, registered on its owner."""
        if not cls.is_resolved:
            return UNKNOWN
        owner = cls.find_field_owner(name)
        if owner is None:
            raise ResolutionError.from_message(
                "E103", f"cannot find field '{name}' in class '{cls.name}' or its bases", span)
        return self._register_field(owner, name)

    def scope_type(self, scope: Expr) -> Type | None:
        """Type of a member-access scope; an unbound bare name denotes a class."""
        if (isinstance(scope, NameExpr) and scope.name not in self.env
                and self.cls.find_field_owner(scope.name) is None):
            return ClassType(scope.name)
        return self.infer(scope)

    def _infer_field_access(self, expr: FieldAccess) -> Type | None:
        scope = self.scope_type(expr.scope)
        if scope is None:
            return None
        if isinstance(scope, ArrayType):
            if expr.name == "length":
                return INT
            self._error("E203", f"arrays have no field '{expr.name}'", expr.span)
            return None
        if isinstance(scope, UnknownType):
            return UNKNOWN
        name = class_name_of(scope)
        if name is None:
            self._error("E203", f"field access on a value of type '{type_name(scope)}'",
                        expr.span)
            return None
        if name in BUILTIN_CLASSES:
            self._error("E204", f"fields of library class '{name}' are not supported",
                        expr.span)
            return None
        cls = self.classes.get(name)
        if cls is None:
            return UNKNOWN
        return self.field_type(cls, expr.name, expr.span)

    # ── Calls ────────────────────────────────────────────────────

    def call_target(self, call: MethodCall) -> str:
        """Name of the class whose method table receives *call*.

        The scope chain is walked back through calls that have a scope of
        their own; the first non-call link decides the class.
        """
        scope = call.scope
        while isinstance(scope, MethodCall) and scope.scope is not None:
            scope = scope.scope
        if scope is None or isinstance(scope, MethodCall):
            return self.cls.name
        if isinstance(scope, ThisExpr):
            if scope.qualifier is not None:
                return scope.qualifier.rsplit(".", 1)[-1]
            return self.cls.name
        if isinstance(scope, SuperExpr):
            base = self.cls.base
            if base is None:
                raise ResolutionError.from_message(
                    "E106", f"'super' used in class '{self.cls.name}' which has no base class",
                    scope.span)
            return base.name
        receiver = self.scope_type(scope)
        if receiver is None:
            raise InferenceError(self.diagnostics or [Diagnostic.error(
                "E201", f"cannot determine the receiver of call to '{call.name}'", call.span)])
        if isinstance(receiver, UnknownType):
            raise InferenceError.from_message(
                "E201", f"the receiver of call to '{call.name}' depends on an unresolved call",
                call.span)
        name = class_name_of(receiver)
        if name is None:
            raise SubsetError.from_message(
                "E311", f"method call '{call.name}' on a value of type '{type_name(receiver)}'",
                call.span)
        return name

    def _infer_call(self, call: MethodCall) -> Type | None:
        target = self.call_target(call)
        if target == SYNTHETIC_MODULE:
            return VOID
        if target == MATH_CLASS:
            return self._infer_math(call)
        if target in BUILTIN_CLASSES:
            self._error("E204", f"calls into library class '{target}' are not supported",
                        call.span)
            return None
        arg_types = [self.infer(arg) for arg in call.args]
        known = [t for t in arg_types if t is not None]
        if len(known) != len(arg_types):
            return None
        signature = make_signature(call.name, known)
        cls = self.classes.get(target)
        method = cls.find_method(signature) if cls is not None else None
        if method is None:
            raise ResolutionError.from_message(
                "E102", f"cannot find method '{signature}' in class '{target}'", call.span)
        if not method.is_resolved or method.is_constructor:
            return UNKNOWN
        decl = method.decl
        return from_type_ref(decl.return_type, decl.extra_dims)  # type: ignore[union-attr]

    def _infer_math(self, call: MethodCall) -> Type | None:
        arg_types = [self.infer(arg) for arg in call.args]
        known = [t for t in arg_types if t is not None]
        if len(known) != len(arg_types):
            return None
        if call.name in _MATH_ARG_TYPED and known:
            result = known[0]
            for ty in known[1:]:
                result = promote(result, ty) or result
            return result
        if call.name == "round":
            return INT if known and known[0] == FLOAT else LONG
        return DOUBLE

    # ── Operators ────────────────────────────────────────────────

    def _infer_binary(self, expr: BinaryExpr) -> Type | None:
        if expr.op in _BOOLEAN_OPS:
            return BOOLEAN
        left = self.infer(expr.left)
        right = self.infer(expr.right)
        if left is None or right is None:
            return None
        if expr.op == '+' and (left == STRING or right == STRING):
            return STRING
        result = promote(left, right)
        if result is None:
            self._error(
                "E203",
                f"operator '{expr.op}' is not supported between "
                f"'{type_name(left)}' and '{type_name(right)}'",
                expr.span,
            )
        return result
