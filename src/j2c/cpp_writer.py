"""Lower a kernel closure to a C-like declarations unit and implementation unit.

Every class the closure reached, except the entry class, goes to the
declarations unit with only its used fields and methods. The entry class is
flattened into free functions in the implementation unit: its used fields
become trailing parameters and the kernel returns through a ``<name>_ret``
parameter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from j2c.ast_nodes import (
    Annotation,
    AnnotationDecl,
    ArrayAccess,
    ArrayCreation,
    ArrayInitializer,
    AssertStmt,
    AssignExpr,
    BinaryExpr,
    Block,
    BooleanLit,
    BreakStmt,
    CallableDecl,
    CastExpr,
    CharLit,
    ClassDecl,
    ClassLiteral,
    ConditionalExpr,
    ConstructorDecl,
    ContinueStmt,
    DoStmt,
    DoubleLit,
    EmptyStmt,
    EnclosedExpr,
    EnumDecl,
    ExplicitConstructorCall,
    Expr,
    ExprStmt,
    FieldAccess,
    FieldDecl,
    FloatLit,
    ForEachStmt,
    ForStmt,
    IfStmt,
    InitializerDecl,
    InstanceOfExpr,
    IntegerLit,
    LabeledStmt,
    LambdaExpr,
    LocalClassStmt,
    LongLit,
    MethodCall,
    MethodDecl,
    MethodReference,
    NameExpr,
    NullLit,
    ObjectCreation,
    Parameter,
    ReturnStmt,
    Stmt,
    StringLit,
    SuperExpr,
    SwitchStmt,
    SynchronizedStmt,
    ThisExpr,
    ThrowStmt,
    TryStmt,
    TypeParam,
    TypeRef,
    UnaryExpr,
    VarDeclExpr,
    VariableDeclarator,
    VoidTypeRef,
    WhileStmt,
)
from j2c.c_types import map_type, map_type_ref
from j2c.config import Attributes
from j2c.errors import ConfigError, Diagnostic, SubsetError
from j2c.inference import MATH_CLASS
from j2c.models import ClassModel, MethodModel, Program
from j2c.source import Span
from j2c.types import ArrayType, Type, element_type, from_type_ref
from j2c.tokens import Comment

_MATH_CONSTANTS = {"PI": "M_PI", "E": "M_E"}

# Java operators without a C spelling of their own.
_UNSIGNED_SHIFTS = {">>>": ">>", ">>>=": ">>="}


@dataclass
class CppOutput:
    """The two generated units."""

    header: str
    source: str
    warnings: list[Diagnostic] = field(default_factory=list)


class CppWriter:
    """Emit the declarations and implementation units for a Program."""

    def __init__(self, program: Program, attributes: Attributes | None = None,
                 *, header_name: str | None = None) -> None:
        self.program = program
        self.entry = program.entry
        self.attributes: Attributes = attributes or {}
        self.header_name = header_name
        self.warnings: list[Diagnostic] = []
        self._warned: set[tuple[str, Span]] = set()
        self._out: list[str] = []
        self._indent = 0
        self._needs_assert = False
        self._cls: ClassModel = program.entry
        self._method: MethodModel = program.kernel
        self._env: dict[str, Type] = {}
        self._locals: set[str] = set()

    # ── Public API ─────────────────────────────────────────────

    def write(self) -> CppOutput:
        classes = self._render(self._emit_classes)
        functions = self._render(self._emit_entry)

        header = self._includes() + [""] + classes
        source = self._includes()
        if self.header_name is not None:
            source.append(f'#include "{self.header_name}"')
        source += [""] + functions
        return CppOutput(_join(header), _join(source), list(self.warnings))

    # ── Output helpers ─────────────────────────────────────────

    def _render(self, emit) -> list[str]:
        self._out = []
        self._indent = 0
        emit()
        return self._out

    def _line(self, text: str) -> None:
        if text:
            self._out.append("    " * self._indent + text)
        else:
            self._out.append("")

    def _comments(self, comments: list[Comment]) -> None:
        for comment in comments:
            for text in _comment_lines(comment.text):
                self._line(text)

    def _includes(self) -> list[str]:
        lines = ["#include <math.h>", "#include <string.h>"]
        if self._needs_assert:
            lines.append("#include <assert.h>")
        return lines

    def _warn(self, code: str, message: str, span: Span) -> None:
        # Prototypes and definitions visit the same declarations.
        if (code, span) in self._warned:
            return
        self._warned.add((code, span))
        self.warnings.append(Diagnostic.warning(code, message, span))

    # ── Classes ────────────────────────────────────────────────

    def _emit_classes(self) -> None:
        for cls in self.program.emitted_classes():
            self._emit_class(cls)
            self._line("")

    def _emit_class(self, cls: ClassModel) -> None:
        self._cls = cls
        decl = cls.decl
        self._check_members(decl)
        self._annotations(decl.annotations)
        self._comments(decl.comments)

        self._template(decl.type_params)
        header = f"class {cls.name}"
        if cls.base is not None:
            header += f" : public {cls.base.name}"
        self._line(header + " {")
        self._line("public:")
        self._indent += 1

        used = _used_methods(cls)
        emitted: set[int] = set()
        for member in decl.members:
            if isinstance(member, FieldDecl):
                self._scope(cls.type_env)
                if self._emit_field(cls, member):
                    emitted.add(id(member))
            elif isinstance(member, (MethodDecl, ConstructorDecl)) and id(member) in used:
                if emitted:
                    self._line("")
                self._emit_definition(member, used[id(member)])
                emitted.add(id(member))

        self._indent -= 1
        self._line("};")
        self._warn_orphans(decl, emitted)

    def _check_members(self, decl: ClassDecl) -> None:
        for member in decl.members:
            if isinstance(member, ClassDecl):
                raise SubsetError.from_message(
                    "E302", f"nested class '{member.name}' in '{decl.name}' is not supported",
                    member.span)
            if isinstance(member, EnumDecl):
                raise SubsetError.from_message(
                    "E302", f"enum '{member.name}' inside '{decl.name}' is not supported",
                    member.span)
            if isinstance(member, AnnotationDecl):
                raise SubsetError.from_message(
                    "E307", f"annotation declaration '{member.name}' is not supported",
                    member.span)
            if isinstance(member, InitializerDecl):
                self._warn("W105", "initializer block ignored", member.span)

    def _warn_orphans(self, decl: ClassDecl, emitted: set[int]) -> None:
        """Report comments that had no statement or member to travel with.

        Comments inside members that are not emitted go away with them.
        """
        for comment in decl.orphan_comments:
            owner = next((m for m in decl.members if _encloses(m.span, comment.span)), None)
            if owner is None or id(owner) in emitted:
                self._warn("W107", "comment has no statement or declaration to follow "
                           "and was dropped", comment.span)

    def _emit_field(self, cls: ClassModel, decl: FieldDecl) -> bool:
        used = [d for d in decl.declarators if d.name in cls.fields]
        if not used:
            return False
        self._comments(decl.comments)
        self._annotations(decl.annotations)
        prefix = "static " if "static" in decl.modifiers else ""
        parts = ", ".join(self._declarator(d, decl.type) for d in used)
        self._line(f"{prefix}{map_type_ref(decl.type)} {parts};")
        return True

    # ── Entry class ────────────────────────────────────────────

    def _emit_entry(self) -> None:
        entry = self.entry
        self._cls = entry
        decl = entry.decl
        self._check_members(decl)
        self._annotations(decl.annotations)
        self._comments(decl.comments)

        used = _used_methods(entry)
        callables = [m for m in decl.callables if id(m) in used]
        for member in callables:
            if isinstance(member, ConstructorDecl):
                raise SubsetError.from_message(
                    "E313", f"the kernel class '{entry.name}' cannot be instantiated",
                    member.span)

        for member in callables:
            self._method = used[id(member)]
            self._template(member.type_params)
            self._line(self._signature(member) + ";")
        for member in callables:
            self._line("")
            self._emit_definition(member, used[id(member)])
        self._warn_orphans(decl, {id(m) for m in callables})

    # ── Methods ────────────────────────────────────────────────

    def _scope(self, env: dict[str, Type], local_names: set[str] | None = None) -> None:
        self._env = env
        self._locals = local_names or set()

    def _emit_definition(self, decl: CallableDecl, method: MethodModel) -> None:
        self._method = method
        self._scope(method.type_env, method.local_names)
        self._comments(decl.comments)
        self._template(decl.type_params)
        signature = self._signature(decl)
        if decl.body is None:
            self._line(signature + ";")
            return

        body = decl.body
        stmts = body.stmts
        leading: list[Comment] = []
        if isinstance(decl, ConstructorDecl) and stmts and isinstance(
                stmts[0], ExplicitConstructorCall):
            signature += " : " + self._constructor_call(stmts[0])
            leading = stmts[0].comments
            stmts = stmts[1:]
        self._line(signature + " {")
        self._indent += 1
        self._comments(leading)
        self._emit_stmts(stmts, body.end_comments)
        self._indent -= 1
        self._line("}")

    def _signature(self, decl: CallableDecl) -> str:
        self._annotations(decl.annotations)
        if decl.throws:
            self._warn("W103", f"throws clause of '{decl.name}' ignored", decl.throws[0].span)
        params = [self._param(p) for p in decl.params]
        if isinstance(decl, ConstructorDecl):
            return f"{decl.name}({', '.join(params)})"

        if decl.extra_dims:
            raise SubsetError.from_message(
                "E312", f"method '{decl.name}' declares array dimensions after its "
                "parameter list", decl.span)
        if self._method.is_kernel:
            ret = "void"
            if not isinstance(decl.return_type, VoidTypeRef):
                params.append(f"{map_type_ref(decl.return_type)} {decl.name}_ret")
        else:
            ret = map_type_ref(decl.return_type)

        prefix = ""
        if self._cls is self.entry:
            params += [f"{map_type(f.type)} {f.name}" for f in self.entry.fields.values()]
        elif "static" in decl.modifiers:
            prefix = "static "
        return f"{prefix}{ret} {decl.name}({', '.join(params)})"

    def _param(self, param: Parameter) -> str:
        if param.varargs:
            raise SubsetError.from_message(
                "E306", f"varargs parameter '{param.name}' is not supported", param.span)
        self._annotations(param.annotations)
        return f"{map_type_ref(param.type)} {param.name}"

    def _template(self, type_params: list[TypeParam]) -> None:
        if type_params:
            names = ", ".join(f"typename {tp.name}" for tp in type_params)
            self._line(f"template <{names}>")

    def _annotations(self, annotations: list[Annotation]) -> None:
        for annotation in annotations:
            self._warn("W104", f"annotation '@{annotation.name}' ignored", annotation.span)

    def _constructor_call(self, call: ExplicitConstructorCall) -> str:
        if call.qualifier is not None:
            raise SubsetError.from_message(
                "E301", "qualified superclass constructor calls are not supported", call.span)
        if call.is_this:
            target = self._cls.name
        else:
            base = self._cls.base
            if base is None:
                raise SubsetError.from_message(
                    "E316", f"'{self._cls.name}' has no base class to construct", call.span)
            target = base.name
        return f"{target}({self._args(call.args)})"

    # ── Statements ─────────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        self._comments(stmt.comments)
        if isinstance(stmt, Block):
            self._emit_block(stmt)
        elif isinstance(stmt, ExprStmt):
            self._line(self._expr(stmt.expr) + ";")
        elif isinstance(stmt, IfStmt):
            self._emit_if(stmt)
        elif isinstance(stmt, WhileStmt):
            self._emit_clause(f"while ({self._expr(stmt.condition)})", stmt.body)
        elif isinstance(stmt, DoStmt):
            self._emit_do(stmt)
        elif isinstance(stmt, ForStmt):
            self._emit_for(stmt)
        elif isinstance(stmt, ForEachStmt):
            raise SubsetError.from_message(
                "E310", "for-each loops need the array length, which the generated code "
                "does not carry", stmt.span)
        elif isinstance(stmt, ReturnStmt):
            self._emit_return(stmt)
        elif isinstance(stmt, (BreakStmt, ContinueStmt)):
            keyword = "break" if isinstance(stmt, BreakStmt) else "continue"
            if stmt.label is not None:
                raise SubsetError.from_message(
                    "E315", f"labeled {keyword} has no C equivalent", stmt.span)
            self._line(f"{keyword};")
        elif isinstance(stmt, ThrowStmt):
            self._warn("W101", "throw statement dropped", stmt.span)
            self._line(";")
        elif isinstance(stmt, TryStmt):
            self._emit_try(stmt)
        elif isinstance(stmt, SwitchStmt):
            self._emit_switch(stmt)
        elif isinstance(stmt, SynchronizedStmt):
            raise SubsetError.from_message(
                "E304", "synchronized blocks are not supported", stmt.span)
        elif isinstance(stmt, LabeledStmt):
            self._line(f"{stmt.label}:")
            self._emit_stmt(stmt.stmt)
        elif isinstance(stmt, AssertStmt):
            self._needs_assert = True
            self._line(f"assert({self._expr(stmt.check)});")
        elif isinstance(stmt, EmptyStmt):
            self._line(";")
        elif isinstance(stmt, ExplicitConstructorCall):
            raise SubsetError.from_message(
                "E316", "a constructor call must be the first statement of a constructor",
                stmt.span)
        elif isinstance(stmt, LocalClassStmt):
            raise SubsetError.from_message(
                "E302", "local classes are not supported", stmt.span)
        else:
            raise SubsetError.from_message(
                "E300", f"unsupported statement: {type(stmt).__name__}", stmt.span)

    def _emit_block(self, block: Block) -> None:
        self._line("{")
        self._indent += 1
        self._emit_stmts(block.stmts, block.end_comments)
        self._indent -= 1
        self._line("}")

    def _emit_stmts(self, stmts: list[Stmt], end_comments: list[Comment]) -> None:
        for stmt in stmts:
            self._emit_stmt(stmt)
        self._comments(end_comments)

    def _emit_clause(self, header: str, body: Stmt) -> None:
        """A statement header followed by a block or one indented statement."""
        if isinstance(body, Block):
            self._line(header + " {")
            self._indent += 1
            self._comments(body.comments)
            self._emit_stmts(body.stmts, body.end_comments)
            self._indent -= 1
            self._line("}")
        else:
            self._line(header)
            self._indent += 1
            self._emit_stmt(body)
            self._indent -= 1

    def _emit_if(self, stmt: IfStmt, keyword: str = "if") -> None:
        self._emit_clause(f"{keyword} ({self._expr(stmt.condition)})", stmt.then_stmt)
        other = stmt.else_stmt
        if other is None:
            return
        if isinstance(other, IfStmt):
            self._emit_if(other, "else if")
        else:
            self._emit_clause("else", other)

    def _emit_do(self, stmt: DoStmt) -> None:
        condition = self._expr(stmt.condition)
        if isinstance(stmt.body, Block):
            self._line("do {")
            self._indent += 1
            self._comments(stmt.body.comments)
            self._emit_stmts(stmt.body.stmts, stmt.body.end_comments)
            self._indent -= 1
            self._line(f"}} while ({condition});")
        else:
            self._emit_clause("do", stmt.body)
            self._line(f"while ({condition});")

    def _emit_for(self, stmt: ForStmt) -> None:
        init = ", ".join(self._expr(e) for e in stmt.init)
        condition = f" {self._expr(stmt.condition)}" if stmt.condition is not None else ""
        update = ", ".join(self._expr(e) for e in stmt.update)
        update = f" {update}" if update else ""
        self._emit_clause(f"for ({init};{condition};{update})", stmt.body)

    def _emit_return(self, stmt: ReturnStmt) -> None:
        if stmt.value is None:
            self._line("return;")
        elif self._method.is_kernel:
            self._line(f"{self._method.name}_ret = {self._expr(stmt.value)};")
        else:
            self._line(f"return {self._expr(stmt.value)};")

    def _emit_try(self, stmt: TryStmt) -> None:
        if stmt.resources:
            raise SubsetError.from_message(
                "E305", "try-with-resources is not supported", stmt.span)
        for clause in stmt.catches:
            self._warn("W102", "catch clause dropped", clause.span)
        self._emit_block(stmt.body)
        if stmt.finally_block is not None:
            self._emit_block(stmt.finally_block)

    def _emit_switch(self, stmt: SwitchStmt) -> None:
        self._line(f"switch ({self._expr(stmt.selector)}) {{")
        self._indent += 1
        for entry in stmt.entries:
            if entry.labels:
                for label in entry.labels:
                    self._line(f"case {self._expr(label)}:")
            else:
                self._line("default:")
            self._indent += 1
            for inner in entry.stmts:
                self._emit_stmt(inner)
            self._indent -= 1
        self._indent -= 1
        self._line("}")

    # ── Expressions ────────────────────────────────────────────

    def _expr(self, expr: Expr) -> str:
        if isinstance(expr, (IntegerLit, LongLit, FloatLit)):
            return expr.value.replace("_", "")
        if isinstance(expr, DoubleLit):
            return expr.value.replace("_", "").rstrip("dD")
        if isinstance(expr, CharLit):
            return f"'{expr.value}'"
        if isinstance(expr, StringLit):
            return f'"{expr.value}"'
        if isinstance(expr, BooleanLit):
            return "true" if expr.value else "false"
        if isinstance(expr, NullLit):
            return "NULL"
        if isinstance(expr, NameExpr):
            return expr.name
        if isinstance(expr, ThisExpr):
            if expr.qualifier is not None:
                raise SubsetError.from_message(
                    "E302", f"'{expr.qualifier}.this' refers to an enclosing class", expr.span)
            return "this"
        if isinstance(expr, SuperExpr):
            return "this"
        if isinstance(expr, FieldAccess):
            return self._field_access(expr)
        if isinstance(expr, ArrayAccess):
            return f"{self._expr(expr.array)}[{self._expr(expr.index)}]"
        if isinstance(expr, MethodCall):
            return self._call(expr)
        if isinstance(expr, ObjectCreation):
            return self._object_creation(expr)
        if isinstance(expr, ArrayInitializer):
            return self._initializer_values(expr)
        if isinstance(expr, ArrayCreation):
            return self._array_creation(expr)
        if isinstance(expr, UnaryExpr):
            operand = self._expr(expr.operand)
            return f"{operand}{expr.op}" if expr.postfix else f"{expr.op}{operand}"
        if isinstance(expr, BinaryExpr):
            op = self._operator(expr.op, expr.span)
            return f"{self._expr(expr.left)} {op} {self._expr(expr.right)}"
        if isinstance(expr, AssignExpr):
            op = self._operator(expr.op, expr.span)
            value = self._value(expr.value, _assigned_name(expr.target))
            return f"{self._expr(expr.target)} {op} {value}"
        if isinstance(expr, ConditionalExpr):
            return (f"{self._expr(expr.condition)} ? {self._expr(expr.then_expr)} : "
                    f"{self._expr(expr.else_expr)}")
        if isinstance(expr, CastExpr):
            return f"({map_type_ref(expr.type)}) {self._expr(expr.expr)}"
        if isinstance(expr, EnclosedExpr):
            return f"({self._expr(expr.inner)})"
        if isinstance(expr, VarDeclExpr):
            self._annotations(expr.annotations)
            parts = ", ".join(self._declarator(d, expr.type) for d in expr.declarators)
            return f"{map_type_ref(expr.type)} {parts}"
        if isinstance(expr, InstanceOfExpr):
            raise SubsetError.from_message(
                "E314", "instanceof needs runtime type information", expr.span)
        if isinstance(expr, ClassLiteral):
            raise SubsetError.from_message(
                "E309", "class literals are not supported", expr.span)
        if isinstance(expr, (LambdaExpr, MethodReference)):
            raise SubsetError.from_message(
                "E303", "lambda expressions and method references are not supported",
                expr.span)
        raise SubsetError.from_message(
            "E300", f"unsupported expression: {type(expr).__name__}", expr.span)

    def _operator(self, op: str, span: Span) -> str:
        lowered = _UNSIGNED_SHIFTS.get(op)
        if lowered is None:
            return op
        self._warn("W106", f"unsigned shift '{op}' emitted as '{lowered}'", span)
        return lowered

    def _args(self, args: list[Expr]) -> str:
        return ", ".join(self._expr(a) for a in args)

    def _is_class_name(self, name: str) -> bool:
        """A bare name that is neither a local, a parameter nor a field."""
        return (name not in self._env
                and name not in self._locals
                and self._cls.find_field_owner(name) is None)

    def _is_own_scope(self, scope: Expr | None) -> bool:
        if scope is None:
            return True
        if isinstance(scope, ThisExpr):
            return scope.qualifier is None
        return (isinstance(scope, NameExpr) and scope.name == self._cls.name
                and self._is_class_name(scope.name))

    def _field_access(self, node: FieldAccess) -> str:
        scope = node.scope
        in_entry = self._cls is self.entry
        if self._is_own_scope(scope):
            if in_entry:
                return node.name
            if isinstance(scope, ThisExpr):
                return f"this->{node.name}"
            return f"{self._cls.name}::{node.name}"
        if isinstance(scope, SuperExpr):
            return f"{self._base_name(scope)}::{node.name}"
        if isinstance(scope, NameExpr) and self._is_class_name(scope.name):
            if scope.name == MATH_CLASS:
                return _MATH_CONSTANTS.get(node.name, node.name)
            return f"{scope.name}::{node.name}"
        return f"{self._expr(scope)}.{node.name}"

    def _call(self, node: MethodCall) -> str:
        scope = node.scope
        args = [self._expr(a) for a in node.args]
        if self._is_own_scope(scope):
            if self._cls is self.entry:
                args += list(self.entry.fields)
                prefix = ""
            else:
                prefix = "this->" if isinstance(scope, ThisExpr) else ""
        elif isinstance(scope, SuperExpr):
            prefix = f"{self._base_name(scope)}::"
        elif isinstance(scope, NameExpr) and self._is_class_name(scope.name):
            prefix = "" if scope.name == MATH_CLASS else f"{scope.name}::"
        else:
            prefix = f"{self._expr(scope)}."
        return f"{prefix}{node.name}({', '.join(args)})"

    def _base_name(self, scope: SuperExpr) -> str:
        base = self._cls.base
        if base is None:
            raise SubsetError.from_message(
                "E316", f"'super' used in '{self._cls.name}' which has no base class",
                scope.span)
        return base.name

    def _object_creation(self, node: ObjectCreation) -> str:
        if node.body is not None:
            raise SubsetError.from_message(
                "E302", "anonymous classes are not supported", node.span)
        if node.type.name == self.entry.name and node.type.scope is None:
            raise SubsetError.from_message(
                "E313", f"the kernel class '{self.entry.name}' cannot be instantiated",
                node.span)
        return f"new {map_type_ref(node.type)}({self._args(node.args)})"

    # ── Arrays and declarators ─────────────────────────────────

    def _declarator(self, decl: VariableDeclarator, type_ref: TypeRef) -> str:
        text = "*" * decl.extra_dims + decl.name
        if decl.init is None:
            return text
        declared = from_type_ref(type_ref, decl.extra_dims)
        return f"{text} = {self._value(decl.init, decl.name, declared)}"

    def _value(self, value: Expr, target: str | None, declared: Type | None = None) -> str:
        """An initializer or assigned value; array creation may take overrides."""
        if isinstance(value, ArrayCreation):
            return self._array_creation(value, target)
        if isinstance(value, ArrayInitializer) and isinstance(declared, ArrayType):
            element = map_type(element_type(declared))
            return f"new {element}[{len(value.values)}] {self._initializer_values(value)}"
        return self._expr(value)

    def _array_creation(self, node: ArrayCreation, target: str | None = None) -> str:
        if not node.dimensions:
            if node.initializer is None:
                raise SubsetError.from_message(
                    "E300", "array creation without dimensions or initializer", node.span)
            element = map_type_ref(node.element, node.extra_dims - 1)
            values = self._initializer_values(node.initializer)
            return f"new {element}[{len(node.initializer.values)}] {values}"

        element = map_type_ref(node.element, node.extra_dims)
        sizes = [self._expr(d) for d in node.dimensions]
        override = self.attributes.get(target, {}).get("length") if target else None
        if override is not None:
            lengths = [part.strip() for part in override.split(",")]
            if len(lengths) != len(sizes):
                raise ConfigError.from_message(
                    "E403", f"length override for '{target}' has {len(lengths)} "
                    f"entr{'y' if len(lengths) == 1 else 'ies'} but the array is created "
                    f"with {len(sizes)} dimension(s)", node.span)
            sizes = lengths
        return f"new {element}" + "".join(f"[{size}]" for size in sizes)

    def _initializer_values(self, init: ArrayInitializer) -> str:
        if not init.values:
            return "{}"
        return "{ " + ", ".join(self._expr(v) for v in init.values) + " }"


def _used_methods(cls: ClassModel) -> dict[int, MethodModel]:
    """Resolved method models keyed by the identity of their declaration."""
    return {id(m.decl): m for m in cls.methods.values() if m.is_resolved}


def _assigned_name(target: Expr) -> str | None:
    if isinstance(target, NameExpr):
        return target.name
    if isinstance(target, FieldAccess):
        return target.name
    return None


def _join(lines: list[str]) -> str:
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n"


def _comment_lines(text: str) -> list[str]:
    """Comment text as output lines; ``*`` continuation lines keep one leading space."""
    lines = [line.strip() for line in text.splitlines()]
    return lines[:1] + [f" {line}" if line.startswith("*") else line for line in lines[1:]]


def _encloses(outer: Span, inner: Span) -> bool:
    return ((outer.start_line, outer.start_col) <= (inner.start_line, inner.start_col)
            and (inner.end_line, inner.end_col) <= (outer.end_line, outer.end_col))
