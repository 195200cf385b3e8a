"""Tests for the Java parser."""

from __future__ import annotations

import pytest

from j2c.ast_nodes import (
    ArrayAccess,
    ArrayCreation,
    ArrayInitializer,
    ArrayTypeRef,
    AssignExpr,
    BinaryExpr,
    Block,
    CastExpr,
    ClassDecl,
    ClassTypeRef,
    ConditionalExpr,
    ConstructorDecl,
    EnumDecl,
    ExplicitConstructorCall,
    ExprStmt,
    FieldAccess,
    FieldDecl,
    ForEachStmt,
    ForStmt,
    IntegerLit,
    LabeledStmt,
    LambdaExpr,
    MethodCall,
    NameExpr,
    ObjectCreation,
    PrimitiveTypeRef,
    ReturnStmt,
    SwitchStmt,
    ThisExpr,
    TryStmt,
    UnaryExpr,
    VarDeclExpr,
    WildcardTypeRef,
    iter_child_nodes,
)
from j2c.errors import CompileError
from j2c.tokens import Comment
from tests.helpers import method, parse, parse_class


def _body(stmts: str) -> list:
    decl = parse_class(f"class K {{ void m() {{ {stmts} }} }}")
    body = method(decl, "m").body
    assert body is not None
    return body.stmts


def _expr(text: str):
    (stmt,) = _body(f"x = {text};")
    assert isinstance(stmt, ExprStmt)
    assert isinstance(stmt.expr, AssignExpr)
    return stmt.expr.value


class TestCompilationUnit:
    def test_package_and_imports(self):
        unit = parse("package a.b; import java.util.List; import static x.Y.*; class K {}")
        assert unit.package == "a.b"
        assert [i.name for i in unit.imports] == ["java.util.List", "x.Y"]
        assert unit.imports[1].is_static
        assert unit.imports[1].on_demand

    def test_find_class(self):
        unit = parse("class A {} class B {}")
        assert unit.find_class("B").name == "B"
        assert unit.find_class("C") is None

    def test_syntax_error_is_e020(self):
        with pytest.raises(CompileError) as exc:
            parse("class K { void m( }")
        assert exc.value.code == "E020"


class TestDeclarations:
    def test_extends_and_implements(self):
        decl = parse_class("class D extends B implements I, J {}")
        assert [e.name for e in decl.extends] == ["B"]
        assert [i.name for i in decl.implements] == ["I", "J"]
        assert not decl.is_interface

    def test_interface(self):
        decl = parse_class("interface I { int f(int a); }")
        assert decl.is_interface
        assert method(decl, "f").body is None

    def test_fields_with_several_declarators(self):
        decl = parse_class("class K { private int a, b = 2; }")
        (field,) = decl.field_decls
        assert isinstance(field, FieldDecl)
        assert field.modifiers == ["private"]
        assert [d.name for d in field.declarators] == ["a", "b"]
        assert isinstance(field.declarators[1].init, IntegerLit)

    def test_constructor(self):
        decl = parse_class("class K { K(int v) { this.v = v; } int v; }")
        (ctor,) = [m for m in decl.members if isinstance(m, ConstructorDecl)]
        assert ctor.name == "K"
        assert [p.name for p in ctor.params] == ["v"]

    def test_param_dims_folded_into_array_type(self):
        decl = parse_class("class K { void m(int a[][], String[] s) {} }")
        a, s = method(decl, "m").params
        assert isinstance(a.type, ArrayTypeRef) and a.type.dims == 2
        assert isinstance(s.type, ArrayTypeRef) and s.type.dims == 1

    def test_varargs(self):
        decl = parse_class("class K { void m(int... xs) {} }")
        assert method(decl, "m").params[0].varargs

    def test_throws_and_annotations(self):
        decl = parse_class("class K { @Override public void m() throws E {} }")
        m = method(decl, "m")
        assert [a.name for a in m.annotations] == ["Override"]
        assert [t.name for t in m.throws] == ["E"]

    def test_type_params(self):
        decl = parse_class("class Box<T extends Number> { T get() { return null; } }")
        (param,) = decl.type_params
        assert param.name == "T"
        assert param.bounds[0].name == "Number"

    def test_nested_generics(self):
        decl = parse_class("class K { java.util.List<java.util.List<? extends K>> xs; }")
        field_type = decl.field_decls[0].type
        assert isinstance(field_type, ClassTypeRef)
        assert field_type.name == "List"
        assert field_type.scope is None
        inner = field_type.args[0]
        assert isinstance(inner.args[0], WildcardTypeRef)

    def test_enum(self):
        unit = parse("enum Color { RED, GREEN; int x; }")
        (decl,) = unit.types
        assert isinstance(decl, EnumDecl)
        assert [c.name for c in decl.constants] == ["RED", "GREEN"]

    def test_nested_class_member(self):
        decl = parse_class("class K { static class Inner {} }")
        assert isinstance(decl.members[0], ClassDecl)


class TestStatements:
    def test_local_var_decl(self):
        (stmt,) = _body("int[][] b = new int[N][N + 10];")
        assert isinstance(stmt, ExprStmt)
        var = stmt.expr
        assert isinstance(var, VarDeclExpr)
        assert isinstance(var.type, ArrayTypeRef)
        creation = var.declarators[0].init
        assert isinstance(creation, ArrayCreation)
        assert isinstance(creation.element, PrimitiveTypeRef)
        assert len(creation.dimensions) == 2
        assert creation.extra_dims == 0
        assert creation.initializer is None

    def test_for(self):
        (stmt,) = _body("for (int i = 0; i < n; i++) s += i;")
        assert isinstance(stmt, ForStmt)
        assert isinstance(stmt.init[0], VarDeclExpr)
        assert isinstance(stmt.condition, BinaryExpr)
        assert isinstance(stmt.update[0], UnaryExpr)
        assert isinstance(stmt.body, ExprStmt)

    def test_for_each(self):
        (stmt,) = _body("for (int v : values) s += v;")
        assert isinstance(stmt, ForEachStmt)
        assert stmt.variable.declarators[0].name == "v"

    def test_explicit_constructor_calls(self):
        decl = parse_class("class K extends B { K() { super(1); } K(int a) { this(); } }")
        first, second = [m for m in decl.members if isinstance(m, ConstructorDecl)]
        call = first.body.stmts[0]
        assert isinstance(call, ExplicitConstructorCall)
        assert not call.is_this
        assert second.body.stmts[0].is_this

    def test_try_catch_finally(self):
        (stmt,) = _body("try { a(); } catch (E e) { b(); } finally { c(); }")
        assert isinstance(stmt, TryStmt)
        assert stmt.catches[0].param.name == "e"
        assert isinstance(stmt.finally_block, Block)

    def test_try_without_handlers_rejected(self):
        with pytest.raises(CompileError):
            _body("try { a(); }")

    def test_switch(self):
        (stmt,) = _body("switch (k) { case 1: a(); break; default: b(); }")
        assert isinstance(stmt, SwitchStmt)
        assert len(stmt.entries) == 2
        assert stmt.entries[1].labels == []

    def test_labeled(self):
        (stmt,) = _body("outer: while (true) { break outer; }")
        assert isinstance(stmt, LabeledStmt)
        assert stmt.label == "outer"

    def test_return(self):
        (stmt,) = _body("return;")
        assert isinstance(stmt, ReturnStmt)
        assert stmt.value is None


class TestExpressions:
    def test_precedence(self):
        expr = _expr("a + b * c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == "+"
        assert isinstance(expr.right, BinaryExpr) and expr.right.op == "*"

    def test_shifts_rebuilt(self):
        assert _expr("a >> 2").op == ">>"
        assert _expr("a >>> 2").op == ">>>"

    def test_compound_shift_assignment(self):
        (stmt,) = _body("a >>= 1;")
        assert stmt.expr.op == ">>="

    def test_relational_greater(self):
        assert _expr("a > b").op == ">"

    def test_field_access_and_call(self):
        expr = _expr("this.v.get(1)")
        assert isinstance(expr, MethodCall)
        assert expr.name == "get"
        assert isinstance(expr.scope, FieldAccess)
        assert isinstance(expr.scope.scope, ThisExpr)

    def test_static_call_scope_is_name(self):
        expr = _expr("Math.sqrt(y)")
        assert isinstance(expr, MethodCall)
        assert expr.scope == NameExpr("Math", expr.scope.span)

    def test_array_access(self):
        expr = _expr("a[i][j]")
        assert isinstance(expr, ArrayAccess)
        assert isinstance(expr.array, ArrayAccess)

    def test_primitive_cast(self):
        expr = _expr("(int) d")
        assert isinstance(expr, CastExpr)
        assert expr.type.name == "int"

    def test_reference_cast(self):
        assert isinstance(_expr("(Base) obj"), CastExpr)

    def test_parenthesized_is_not_cast(self):
        expr = _expr("(a) + b")
        assert isinstance(expr, BinaryExpr)

    def test_object_creation(self):
        expr = _expr("new Point(1, 2)")
        assert isinstance(expr, ObjectCreation)
        assert expr.type.name == "Point"
        assert len(expr.args) == 2
        assert expr.body is None

    def test_anonymous_class(self):
        expr = _expr("new Runnable() { public void run() {} }")
        assert isinstance(expr, ObjectCreation)
        assert expr.body is not None

    def test_array_creation_with_initializer(self):
        expr = _expr("new int[] {1, 2, 3}")
        assert isinstance(expr, ArrayCreation)
        assert expr.dimensions == []
        assert expr.extra_dims == 1
        assert isinstance(expr.initializer, ArrayInitializer)
        assert len(expr.initializer.values) == 3

    def test_lambda(self):
        expr = _expr("(p, q) -> p + q")
        assert isinstance(expr, LambdaExpr)
        assert expr.params == ["p", "q"]

    def test_conditional(self):
        expr = _expr("c ? 1 : 2")
        assert isinstance(expr, ConditionalExpr)


class TestTraversal:
    def test_children_skip_plain_fields(self):
        expr = _expr("a + 1")
        children = list(iter_child_nodes(expr))
        assert [type(c) for c in children] == [NameExpr, IntegerLit]

    def test_children_of_lists(self):
        (stmt,) = _body("foo(a, b, c);")
        call = stmt.expr
        assert isinstance(call, MethodCall)
        assert [c.name for c in iter_child_nodes(call)] == ["a", "b", "c"]


class TestComments:
    SOURCE = """
/** Kernel holder. */
class K {
    // counter
    int n;

    /**
     * Adds one.
     */
    void m() {
        // bump
        n = n + /* inline */ 1;
        if (n > 2) {
            n = 0;
            // reset done
        }
    }
}
"""

    def _texts(self, node) -> list[str]:
        return [c.text for c in node.comments]

    def test_type_and_member_comments(self):
        decl = parse_class(self.SOURCE)
        assert self._texts(decl) == ["/** Kernel holder. */"]
        field, bump = decl.members
        assert isinstance(field, FieldDecl)
        assert self._texts(field) == ["// counter"]
        assert bump.comments[0].text.startswith("/**\n")

    def test_statement_and_block_end_comments(self):
        decl = parse_class(self.SOURCE)
        assign, branch = method(decl, "m").body.stmts
        assert self._texts(assign) == ["// bump"]
        assert [c.text for c in branch.then_stmt.end_comments] == ["// reset done"]
        assert branch.then_stmt.stmts[0].comments == []

    def test_comment_inside_expression_is_orphan(self):
        decl = parse_class(self.SOURCE)
        assert [c.text for c in decl.orphan_comments] == ["/* inline */"]

    def test_comments_are_not_children(self):
        decl = parse_class("class K { void m() { /* a */ x = 1; } }")
        (stmt,) = method(decl, "m").body.stmts
        assert stmt.comments
        assert not any(isinstance(child, Comment) for child in iter_child_nodes(stmt))
