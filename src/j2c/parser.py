"""Parser for Java source.

Transforms a token stream into an AST using recursive descent for
declarations and statements and binding powers for binary operators.
Constructs outside the translatable subset are still parsed so that the
generator can reject them with a precise diagnostic.
"""

from __future__ import annotations

from j2c.ast_nodes import (
    Annotation,
    AnnotationDecl,
    ArrayAccess,
    ArrayCreation,
    ArrayInitializer,
    ArrayTypeRef,
    AssertStmt,
    AssignExpr,
    BinaryExpr,
    Block,
    BooleanLit,
    BreakStmt,
    CastExpr,
    CatchClause,
    CharLit,
    ClassDecl,
    ClassLiteral,
    ClassTypeRef,
    CompilationUnit,
    ConditionalExpr,
    ConstructorDecl,
    ContinueStmt,
    DoStmt,
    DoubleLit,
    EmptyMember,
    EmptyStmt,
    EnclosedExpr,
    EnumConstant,
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
    ImportDecl,
    InitializerDecl,
    InstanceOfExpr,
    IntegerLit,
    IntersectionTypeRef,
    LabeledStmt,
    LambdaExpr,
    LocalClassStmt,
    LongLit,
    Member,
    MethodCall,
    MethodDecl,
    MethodReference,
    NameExpr,
    NullLit,
    ObjectCreation,
    Parameter,
    PrimitiveTypeRef,
    ReturnStmt,
    Stmt,
    StringLit,
    SuperExpr,
    SwitchEntry,
    SwitchStmt,
    SynchronizedStmt,
    ThisExpr,
    ThrowStmt,
    TryStmt,
    TypeDecl,
    TypeParam,
    TypeRef,
    UnaryExpr,
    UnionTypeRef,
    VarDeclExpr,
    VariableDeclarator,
    VoidTypeRef,
    WhileStmt,
    WildcardTypeRef,
)
from j2c.errors import CompileError, Diagnostic
from j2c.lexer import Lexer
from j2c.source import Span
from j2c.tokens import MODIFIER_KINDS, PRIMITIVE_KINDS, Comment, Token, TokenKind

# ── Binding powers ───────────────────────────────────────────────

# (left_bp, right_bp) for binary operators, keyed by operator text
_INFIX_BP: dict[str, tuple[int, int]] = {
    '||': (3, 4),
    '&&': (5, 6),
    '|': (7, 8),
    '^': (9, 10),
    '&': (11, 12),
    '==': (13, 14),
    '!=': (13, 14),
    '<': (15, 16),
    '>': (15, 16),
    '<=': (15, 16),
    '>=': (15, 16),
    'instanceof': (15, 16),
    '<<': (17, 18),
    '>>': (17, 18),
    '>>>': (17, 18),
    '+': (19, 20),
    '-': (19, 20),
    '*': (21, 22),
    '/': (21, 22),
    '%': (21, 22),
}

_BINARY_TOKENS: dict[TokenKind, str] = {
    TokenKind.OR: '||', TokenKind.AND: '&&',
    TokenKind.PIPE: '|', TokenKind.CARET: '^', TokenKind.AMP: '&',
    TokenKind.EQUAL: '==', TokenKind.NOT_EQUAL: '!=',
    TokenKind.LESS: '<', TokenKind.LESS_EQUAL: '<=',
    TokenKind.GREATER_EQUAL: '>=', TokenKind.INSTANCEOF: 'instanceof',
    TokenKind.SHL: '<<',
    TokenKind.PLUS: '+', TokenKind.MINUS: '-',
    TokenKind.STAR: '*', TokenKind.SLASH: '/', TokenKind.PERCENT: '%',
}

_ASSIGN_TOKENS: dict[TokenKind, str] = {
    TokenKind.ASSIGN: '=',
    TokenKind.PLUS_ASSIGN: '+=', TokenKind.MINUS_ASSIGN: '-=',
    TokenKind.STAR_ASSIGN: '*=', TokenKind.SLASH_ASSIGN: '/=',
    TokenKind.PERCENT_ASSIGN: '%=', TokenKind.AMP_ASSIGN: '&=',
    TokenKind.PIPE_ASSIGN: '|=', TokenKind.CARET_ASSIGN: '^=',
    TokenKind.SHL_ASSIGN: '<<=',
}

_PREFIX_OPS: dict[TokenKind, str] = {
    TokenKind.PLUS: '+', TokenKind.MINUS: '-',
    TokenKind.BANG: '!', TokenKind.TILDE: '~',
    TokenKind.PLUS_PLUS: '++', TokenKind.MINUS_MINUS: '--',
}

_LITERALS = frozenset({
    TokenKind.INTEGER_LIT, TokenKind.LONG_LIT, TokenKind.FLOAT_LIT,
    TokenKind.DOUBLE_LIT, TokenKind.CHAR_LIT, TokenKind.STRING_LIT,
    TokenKind.BOOLEAN_LIT, TokenKind.NULL_LIT,
})

# Tokens that may follow ``(Type)`` when it is a reference-type cast.
_CAST_FOLLOWERS = _LITERALS | {
    TokenKind.IDENTIFIER, TokenKind.LPAREN, TokenKind.BANG, TokenKind.TILDE,
    TokenKind.THIS, TokenKind.SUPER, TokenKind.NEW,
}

# Tokens allowed inside ``<...>`` while scanning ahead for a type.
_TYPE_ARG_TOKENS = PRIMITIVE_KINDS | {
    TokenKind.IDENTIFIER, TokenKind.DOT, TokenKind.COMMA, TokenKind.QUESTION,
    TokenKind.EXTENDS, TokenKind.SUPER, TokenKind.LBRACKET,
    TokenKind.RBRACKET, TokenKind.AMP,
}


def parse_source(source: str, filename: str = "<stdin>") -> CompilationUnit:
    """Lex and parse a complete Java compilation unit."""
    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename).parse()


class Parser:
    """Parses a list of tokens into a Java AST."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []
        self._last = tokens[0]
        self._placed: set[Comment] = set()

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _kind_at(self, idx: int) -> TokenKind:
        if idx < len(self.tokens):
            return self.tokens[idx].kind
        return TokenKind.EOF

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        self._last = tok
        return tok

    def _expect(self, kind: TokenKind) -> Token:
        if self._current().kind == kind:
            return self._advance()
        tok = self._current()
        self._error(f"expected {kind.name}, got {tok.kind.name} ({tok.value!r})", tok.span)
        raise _ParseError

    def _accept(self, kind: TokenKind) -> bool:
        if self._at(kind):
            self._advance()
            return True
        return False

    def _error(self, message: str, span: Span) -> None:
        self.diagnostics.append(Diagnostic.error("E020", message, span))

    def _span_from(self, start: Span) -> Span:
        """Span from *start* to the end of the last consumed token."""
        return start.to(self._last.span)

    @staticmethod
    def _adjacent(left: Token, right: Token) -> bool:
        return (left.span.end_line == right.span.start_line
                and left.span.end_col + 1 == right.span.start_col)

    # ── Comments ─────────────────────────────────────────────────

    def _fresh(self, comments: tuple[Comment, ...]) -> list[Comment]:
        return [c for c in comments if c not in self._placed]

    def _attach(self, node, comments: tuple[Comment, ...]):
        """Give *node* the comments written directly before it."""
        fresh = self._fresh(comments)
        node.comments.extend(fresh)
        self._placed.update(fresh)
        return node

    def _unplaced(self, first: int) -> list[Comment]:
        """Comments inside tokens[first:pos] that no declaration or statement took."""
        return [c for tok in self.tokens[first:self.pos] for c in tok.comments
                if c not in self._placed]

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> CompilationUnit:
        """Parse the entire token stream into a CompilationUnit."""
        start = self._current().span
        package: str | None = None
        imports: list[ImportDecl] = []
        types: list[TypeDecl] = []

        try:
            if self._accept(TokenKind.PACKAGE):
                package = self._parse_qualified_name()
                self._expect(TokenKind.SEMICOLON)
            while self._at(TokenKind.IMPORT):
                imports.append(self._parse_import())
            while not self._at(TokenKind.EOF):
                if self._accept(TokenKind.SEMICOLON):
                    continue
                first = self.pos
                comments = self._current().comments
                decl = self._attach(self._parse_type_decl(), comments)
                if isinstance(decl, ClassDecl):
                    decl.orphan_comments.extend(self._unplaced(first))
                types.append(decl)
        except _ParseError:
            if not self.diagnostics:
                self._error("invalid syntax", self._current().span)

        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return CompilationUnit(package, imports, types, self._span_from(start))

    def _parse_qualified_name(self) -> str:
        parts = [self._expect(TokenKind.IDENTIFIER).value]
        while self._at(TokenKind.DOT) and self._peek(1).kind == TokenKind.IDENTIFIER:
            self._advance()
            parts.append(self._advance().value)
        return ".".join(parts)

    def _parse_import(self) -> ImportDecl:
        start = self._advance().span
        is_static = self._accept(TokenKind.STATIC)
        name = self._parse_qualified_name()
        on_demand = False
        if self._accept(TokenKind.DOT):
            self._expect(TokenKind.STAR)
            on_demand = True
        self._expect(TokenKind.SEMICOLON)
        return ImportDecl(name, is_static, on_demand, self._span_from(start))

    # ── Modifiers and annotations ────────────────────────────────

    def _parse_modifiers(self) -> tuple[list[str], list[Annotation]]:
        modifiers: list[str] = []
        annotations: list[Annotation] = []
        while True:
            tok = self._current()
            if tok.kind in MODIFIER_KINDS:
                # ``default`` inside a switch is a label, never reached here
                modifiers.append(self._advance().value)
            elif tok.kind == TokenKind.AT and self._peek(1).kind != TokenKind.INTERFACE:
                annotations.append(self._parse_annotation())
            else:
                return modifiers, annotations

    def _parse_annotation(self) -> Annotation:
        start = self._advance().span  # @
        name = self._parse_qualified_name()
        if self._at(TokenKind.LPAREN):
            self._skip_balanced(TokenKind.LPAREN, TokenKind.RPAREN)
        return Annotation(name, self._span_from(start))

    def _skip_balanced(self, open_kind: TokenKind, close_kind: TokenKind) -> None:
        depth = 0
        while not self._at(TokenKind.EOF):
            tok = self._advance()
            if tok.kind == open_kind:
                depth += 1
            elif tok.kind == close_kind:
                depth -= 1
                if depth == 0:
                    return
        self._error("unbalanced brackets", self._current().span)
        raise _ParseError

    # ── Type declarations ────────────────────────────────────────

    def _parse_type_decl(self) -> TypeDecl:
        start = self._current().span
        modifiers, annotations = self._parse_modifiers()
        tok = self._current()
        if tok.kind in (TokenKind.CLASS, TokenKind.INTERFACE):
            return self._parse_class_decl(modifiers, annotations, start)
        if tok.kind == TokenKind.ENUM:
            return self._parse_enum_decl(modifiers, annotations, start)
        if tok.kind == TokenKind.AT:
            return self._parse_annotation_decl(modifiers, start)
        self._error(f"expected a type declaration, got {tok.value!r}", tok.span)
        raise _ParseError

    def _parse_class_decl(self, modifiers: list[str], annotations: list[Annotation],
                          start: Span) -> ClassDecl:
        is_interface = self._advance().kind == TokenKind.INTERFACE
        name = self._expect(TokenKind.IDENTIFIER).value
        type_params = self._parse_type_params()
        extends: list[ClassTypeRef] = []
        implements: list[ClassTypeRef] = []
        if self._accept(TokenKind.EXTENDS):
            extends = self._parse_class_type_list()
        if self._accept(TokenKind.IMPLEMENTS):
            implements = self._parse_class_type_list()
        members = self._parse_class_body(name)
        return ClassDecl(
            modifiers, annotations, name, type_params, extends, implements,
            members, is_interface, self._span_from(start),
        )

    def _parse_enum_decl(self, modifiers: list[str], annotations: list[Annotation],
                         start: Span) -> EnumDecl:
        self._advance()  # enum
        name = self._expect(TokenKind.IDENTIFIER).value
        implements: list[ClassTypeRef] = []
        if self._accept(TokenKind.IMPLEMENTS):
            implements = self._parse_class_type_list()
        self._expect(TokenKind.LBRACE)
        constants: list[EnumConstant] = []
        while True:
            self._parse_modifiers()
            if not self._at(TokenKind.IDENTIFIER):
                break
            c_start = self._current().span
            c_name = self._advance().value
            args = self._parse_arguments() if self._at(TokenKind.LPAREN) else []
            body = self._parse_class_body(c_name) if self._at(TokenKind.LBRACE) else None
            constants.append(EnumConstant(c_name, args, body, self._span_from(c_start)))
            if not self._accept(TokenKind.COMMA):
                break
        members: list[Member] = []
        if self._accept(TokenKind.SEMICOLON):
            while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
                members.append(self._parse_member(name))
        self._expect(TokenKind.RBRACE)
        return EnumDecl(modifiers, annotations, name, implements, constants,
                        members, self._span_from(start))

    def _parse_annotation_decl(self, modifiers: list[str], start: Span) -> AnnotationDecl:
        self._expect(TokenKind.AT)
        self._expect(TokenKind.INTERFACE)
        name = self._expect(TokenKind.IDENTIFIER).value
        self._skip_balanced(TokenKind.LBRACE, TokenKind.RBRACE)
        return AnnotationDecl(modifiers, name, self._span_from(start))

    def _parse_class_type_list(self) -> list[ClassTypeRef]:
        types = [self._parse_class_type()]
        while self._accept(TokenKind.COMMA):
            types.append(self._parse_class_type())
        return types

    def _parse_type_params(self) -> list[TypeParam]:
        if not self._at(TokenKind.LESS):
            return []
        self._advance()
        params: list[TypeParam] = []
        while True:
            self._parse_modifiers()
            start = self._current().span
            name = self._expect(TokenKind.IDENTIFIER).value
            bounds: list[TypeRef] = []
            if self._accept(TokenKind.EXTENDS):
                bounds.append(self._parse_type())
                while self._accept(TokenKind.AMP):
                    bounds.append(self._parse_type())
            params.append(TypeParam(name, bounds, self._span_from(start)))
            if not self._accept(TokenKind.COMMA):
                break
        self._expect(TokenKind.GREATER)
        return params

    # ── Class members ────────────────────────────────────────────

    def _parse_class_body(self, class_name: str) -> list[Member]:
        self._expect(TokenKind.LBRACE)
        members: list[Member] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            members.append(self._parse_member(class_name))
        self._expect(TokenKind.RBRACE)
        return members

    def _parse_member(self, class_name: str) -> Member:
        comments = self._current().comments
        return self._attach(self._parse_bare_member(class_name), comments)

    def _parse_bare_member(self, class_name: str) -> Member:
        start = self._current().span
        if self._accept(TokenKind.SEMICOLON):
            return EmptyMember(start)
        if self._at(TokenKind.LBRACE):
            body = self._parse_block()
            return InitializerDecl(False, body, self._span_from(start))
        if self._at(TokenKind.STATIC) and self._peek(1).kind == TokenKind.LBRACE:
            self._advance()
            body = self._parse_block()
            return InitializerDecl(True, body, self._span_from(start))

        modifiers, annotations = self._parse_modifiers()
        tok = self._current()
        if tok.kind in (TokenKind.CLASS, TokenKind.INTERFACE):
            return self._parse_class_decl(modifiers, annotations, start)
        if tok.kind == TokenKind.ENUM:
            return self._parse_enum_decl(modifiers, annotations, start)
        if tok.kind == TokenKind.AT:
            return self._parse_annotation_decl(modifiers, start)

        type_params = self._parse_type_params()
        if self._at(TokenKind.IDENTIFIER) and self._peek(1).kind == TokenKind.LPAREN:
            return self._parse_constructor(modifiers, annotations, type_params, start)

        type_ = self._parse_type()
        name_tok = self._expect(TokenKind.IDENTIFIER)
        if self._at(TokenKind.LPAREN):
            return self._parse_method(modifiers, annotations, type_params, type_,
                                      name_tok.value, start)

        declarators = [self._finish_declarator(name_tok)]
        while self._accept(TokenKind.COMMA):
            declarators.append(self._parse_declarator())
        self._expect(TokenKind.SEMICOLON)
        return FieldDecl(modifiers, annotations, type_, declarators, self._span_from(start))

    def _parse_constructor(self, modifiers: list[str], annotations: list[Annotation],
                           type_params: list[TypeParam], start: Span) -> ConstructorDecl:
        name = self._advance().value
        params = self._parse_params()
        throws = self._parse_throws()
        body = self._parse_block()
        return ConstructorDecl(modifiers, annotations, type_params, name, params,
                               throws, body, self._span_from(start))

    def _parse_method(self, modifiers: list[str], annotations: list[Annotation],
                      type_params: list[TypeParam], return_type: TypeRef,
                      name: str, start: Span) -> MethodDecl:
        params = self._parse_params()
        extra_dims = self._parse_dims()
        throws = self._parse_throws()
        body: Block | None = None
        if self._at(TokenKind.LBRACE):
            body = self._parse_block()
        else:
            if self._accept(TokenKind.DEFAULT):
                self._parse_expression()
            self._expect(TokenKind.SEMICOLON)
        return MethodDecl(modifiers, annotations, type_params, return_type, name,
                          params, extra_dims, throws, body, self._span_from(start))

    def _parse_params(self) -> list[Parameter]:
        self._expect(TokenKind.LPAREN)
        params: list[Parameter] = []
        while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
            start = self._current().span
            modifiers, annotations = self._parse_modifiers()
            type_ = self._parse_type()
            varargs = self._accept(TokenKind.ELLIPSIS)
            if self._at(TokenKind.THIS):
                # receiver parameter, carries no value
                self._advance()
            else:
                name = self._expect(TokenKind.IDENTIFIER).value
                type_ = _with_dims(type_, self._parse_dims())
                params.append(Parameter(modifiers, annotations, type_, name, varargs,
                                        self._span_from(start)))
            if not self._accept(TokenKind.COMMA):
                break
        self._expect(TokenKind.RPAREN)
        return params

    def _parse_throws(self) -> list[TypeRef]:
        if not self._accept(TokenKind.THROWS):
            return []
        throws: list[TypeRef] = list(self._parse_class_type_list())
        return throws

    def _parse_declarator(self) -> VariableDeclarator:
        return self._finish_declarator(self._expect(TokenKind.IDENTIFIER))

    def _finish_declarator(self, name_tok: Token) -> VariableDeclarator:
        extra_dims = self._parse_dims()
        init: Expr | None = None
        if self._accept(TokenKind.ASSIGN):
            if self._at(TokenKind.LBRACE):
                init = self._parse_array_initializer()
            else:
                init = self._parse_expression()
        return VariableDeclarator(name_tok.value, extra_dims, init,
                                  self._span_from(name_tok.span))

    # ── Types ────────────────────────────────────────────────────

    def _parse_type(self) -> TypeRef:
        while self._at(TokenKind.AT):
            self._parse_annotation()
        tok = self._current()
        base: TypeRef
        if tok.kind in PRIMITIVE_KINDS:
            self._advance()
            base = PrimitiveTypeRef(tok.value, tok.span)
        elif tok.kind == TokenKind.VOID:
            self._advance()
            return VoidTypeRef(tok.span)
        elif tok.kind == TokenKind.IDENTIFIER:
            base = self._parse_class_type()
        else:
            self._error(f"expected a type, got {tok.value!r}", tok.span)
            raise _ParseError
        return _with_dims(base, self._parse_dims())

    def _parse_dims(self) -> int:
        dims = 0
        while self._at(TokenKind.LBRACKET) and self._peek(1).kind == TokenKind.RBRACKET:
            self._advance()
            self._advance()
            dims += 1
        return dims

    def _parse_class_type(self) -> ClassTypeRef:
        """Parse ``a.b.Outer<T>.Inner``; lower-case leading segments are packages."""
        first = self._expect(TokenKind.IDENTIFIER)
        start = first.span
        name = first.value
        args = self._parse_type_args()
        ref: ClassTypeRef | None = None
        in_package = name[:1].islower() and not args
        while self._at(TokenKind.DOT) and self._peek(1).kind == TokenKind.IDENTIFIER:
            self._advance()
            seg = self._advance()
            if not in_package:
                ref = ClassTypeRef(name, args, ref, self._span_from(start))
            name = seg.value
            args = self._parse_type_args()
            in_package = in_package and name[:1].islower() and not args
        return ClassTypeRef(name, args, ref, self._span_from(start))

    def _parse_type_args(self) -> list[TypeRef]:
        if not self._at(TokenKind.LESS):
            return []
        self._advance()
        args: list[TypeRef] = []
        if self._accept(TokenKind.GREATER):
            return args  # diamond
        while True:
            if self._at(TokenKind.QUESTION):
                start = self._advance().span
                bound: TypeRef | None = None
                upper = True
                if self._accept(TokenKind.EXTENDS):
                    bound = self._parse_type()
                elif self._accept(TokenKind.SUPER):
                    bound = self._parse_type()
                    upper = False
                args.append(WildcardTypeRef(bound, upper, self._span_from(start)))
            else:
                args.append(self._parse_type())
            if not self._accept(TokenKind.COMMA):
                break
        self._expect(TokenKind.GREATER)
        return args

    # ── Lookahead scanning ───────────────────────────────────────

    def _scan_type(self, idx: int) -> int | None:
        """Return the index just past a type starting at *idx*, or None."""
        kind = self._kind_at(idx)
        if kind in PRIMITIVE_KINDS:
            idx += 1
        elif kind == TokenKind.IDENTIFIER:
            scanned = self._scan_type_args(idx + 1)
            while (scanned is not None and self._kind_at(scanned) == TokenKind.DOT
                   and self._kind_at(scanned + 1) == TokenKind.IDENTIFIER):
                scanned = self._scan_type_args(scanned + 2)
            if scanned is None:
                return None
            idx = scanned
        else:
            return None
        while (self._kind_at(idx) == TokenKind.LBRACKET
               and self._kind_at(idx + 1) == TokenKind.RBRACKET):
            idx += 2
        return idx

    def _scan_type_args(self, idx: int) -> int | None:
        if self._kind_at(idx) != TokenKind.LESS:
            return idx
        depth = 0
        while True:
            kind = self._kind_at(idx)
            if kind == TokenKind.LESS:
                depth += 1
            elif kind == TokenKind.GREATER:
                depth -= 1
                if depth == 0:
                    return idx + 1
            elif kind not in _TYPE_ARG_TOKENS:
                return None
            idx += 1

    def _matching_paren(self, idx: int) -> int:
        depth = 0
        while idx < len(self.tokens):
            kind = self.tokens[idx].kind
            if kind == TokenKind.LPAREN:
                depth += 1
            elif kind == TokenKind.RPAREN:
                depth -= 1
                if depth == 0:
                    return idx
            elif kind == TokenKind.EOF:
                break
            idx += 1
        return len(self.tokens) - 1

    def _is_local_var_decl(self) -> bool:
        kind = self._current().kind
        if kind in (TokenKind.FINAL, TokenKind.AT):
            return True
        end = self._scan_type(self.pos)
        if end is None or self._kind_at(end) != TokenKind.IDENTIFIER:
            return False
        return self._kind_at(end + 1) in (
            TokenKind.ASSIGN, TokenKind.SEMICOLON, TokenKind.COMMA,
            TokenKind.LBRACKET, TokenKind.COLON,
        )

    def _is_lambda_start(self) -> bool:
        if self._at(TokenKind.IDENTIFIER):
            return self._peek(1).kind == TokenKind.ARROW
        if self._at(TokenKind.LPAREN):
            close = self._matching_paren(self.pos)
            return self._kind_at(close + 1) == TokenKind.ARROW
        return False

    def _is_cast(self) -> bool:
        """At ``(``: decide between a cast and a parenthesized expression."""
        if self._kind_at(self.pos + 1) in PRIMITIVE_KINDS:
            end = self._scan_type(self.pos + 1)
            return end is not None and self._kind_at(end) == TokenKind.RPAREN
        end = self._scan_type(self.pos + 1)
        while end is not None and self._kind_at(end) == TokenKind.AMP:
            end = self._scan_type(end + 1)
        if end is None or self._kind_at(end) != TokenKind.RPAREN:
            return False
        return self._kind_at(end + 1) in _CAST_FOLLOWERS

    # ── Statements ───────────────────────────────────────────────

    def _parse_block(self) -> Block:
        start = self._expect(TokenKind.LBRACE).span
        stmts: list[Stmt] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            stmts.append(self._parse_statement())
        end = self._fresh(self._current().comments) if self._at(TokenKind.RBRACE) else []
        self._expect(TokenKind.RBRACE)
        self._placed.update(end)
        return Block(stmts, self._span_from(start), end_comments=end)

    def _parse_statement(self) -> Stmt:
        comments = self._current().comments
        return self._attach(self._parse_bare_statement(), comments)

    def _parse_bare_statement(self) -> Stmt:
        tok = self._current()
        start = tok.span
        kind = tok.kind

        if kind == TokenKind.LBRACE:
            return self._parse_block()
        if kind == TokenKind.SEMICOLON:
            self._advance()
            return EmptyStmt(start)
        if kind == TokenKind.IF:
            return self._parse_if()
        if kind == TokenKind.WHILE:
            self._advance()
            condition = self._parse_paren_expression()
            body = self._parse_statement()
            return WhileStmt(condition, body, self._span_from(start))
        if kind == TokenKind.DO:
            self._advance()
            body = self._parse_statement()
            self._expect(TokenKind.WHILE)
            condition = self._parse_paren_expression()
            self._expect(TokenKind.SEMICOLON)
            return DoStmt(body, condition, self._span_from(start))
        if kind == TokenKind.FOR:
            return self._parse_for()
        if kind == TokenKind.RETURN:
            self._advance()
            value = None if self._at(TokenKind.SEMICOLON) else self._parse_expression()
            self._expect(TokenKind.SEMICOLON)
            return ReturnStmt(value, self._span_from(start))
        if kind in (TokenKind.BREAK, TokenKind.CONTINUE):
            self._advance()
            label = self._advance().value if self._at(TokenKind.IDENTIFIER) else None
            self._expect(TokenKind.SEMICOLON)
            if kind == TokenKind.BREAK:
                return BreakStmt(label, self._span_from(start))
            return ContinueStmt(label, self._span_from(start))
        if kind == TokenKind.THROW:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenKind.SEMICOLON)
            return ThrowStmt(expr, self._span_from(start))
        if kind == TokenKind.TRY:
            return self._parse_try()
        if kind == TokenKind.SWITCH:
            return self._parse_switch()
        if kind == TokenKind.SYNCHRONIZED and self._peek(1).kind == TokenKind.LPAREN:
            self._advance()
            lock = self._parse_paren_expression()
            body = self._parse_block()
            return SynchronizedStmt(lock, body, self._span_from(start))
        if kind == TokenKind.ASSERT:
            self._advance()
            check = self._parse_expression()
            message = self._parse_expression() if self._accept(TokenKind.COLON) else None
            self._expect(TokenKind.SEMICOLON)
            return AssertStmt(check, message, self._span_from(start))
        if kind in (TokenKind.THIS, TokenKind.SUPER) and self._peek(1).kind == TokenKind.LPAREN:
            self._advance()
            args = self._parse_arguments()
            self._expect(TokenKind.SEMICOLON)
            return ExplicitConstructorCall(kind == TokenKind.THIS, None, args,
                                           self._span_from(start))
        if kind == TokenKind.IDENTIFIER and self._peek(1).kind == TokenKind.COLON:
            self._advance()
            self._advance()
            inner = self._parse_statement()
            return LabeledStmt(tok.value, inner, self._span_from(start))
        if kind in (TokenKind.CLASS, TokenKind.INTERFACE, TokenKind.ENUM, TokenKind.ABSTRACT,
                    TokenKind.STATIC):
            return LocalClassStmt(self._parse_type_decl(), self._span_from(start))
        if self._is_local_var_decl():
            modifiers, annotations = self._parse_modifiers()
            if self._at_any(TokenKind.CLASS, TokenKind.INTERFACE, TokenKind.ENUM):
                decl = self._parse_class_decl(modifiers, annotations, start) \
                    if not self._at(TokenKind.ENUM) \
                    else self._parse_enum_decl(modifiers, annotations, start)
                return LocalClassStmt(decl, self._span_from(start))
            var = self._parse_var_decl(modifiers, annotations, start)
            self._expect(TokenKind.SEMICOLON)
            return ExprStmt(var, self._span_from(start))

        expr = self._parse_expression()
        self._expect(TokenKind.SEMICOLON)
        if isinstance(expr, ExplicitConstructorCall):
            return expr
        return ExprStmt(expr, self._span_from(start))

    def _parse_var_decl(self, modifiers: list[str], annotations: list[Annotation],
                        start: Span) -> VarDeclExpr:
        type_ = self._parse_type()
        declarators = [self._parse_declarator()]
        while self._accept(TokenKind.COMMA):
            declarators.append(self._parse_declarator())
        return VarDeclExpr(modifiers, annotations, type_, declarators, self._span_from(start))

    def _parse_paren_expression(self) -> Expr:
        self._expect(TokenKind.LPAREN)
        expr = self._parse_expression()
        self._expect(TokenKind.RPAREN)
        return expr

    def _parse_if(self) -> IfStmt:
        start = self._advance().span
        condition = self._parse_paren_expression()
        then_stmt = self._parse_statement()
        else_stmt = self._parse_statement() if self._accept(TokenKind.ELSE) else None
        return IfStmt(condition, then_stmt, else_stmt, self._span_from(start))

    def _parse_for(self) -> ForStmt | ForEachStmt:
        start = self._advance().span
        self._expect(TokenKind.LPAREN)
        init: list[Expr] = []
        if not self._at(TokenKind.SEMICOLON):
            if self._is_local_var_decl():
                v_start = self._current().span
                modifiers, annotations = self._parse_modifiers()
                type_ = self._parse_type()
                name_tok = self._expect(TokenKind.IDENTIFIER)
                if self._accept(TokenKind.COLON):
                    declarator = VariableDeclarator(name_tok.value, 0, None, name_tok.span)
                    var = VarDeclExpr(modifiers, annotations, type_, [declarator],
                                      v_start.to(name_tok.span))
                    iterable = self._parse_expression()
                    self._expect(TokenKind.RPAREN)
                    body = self._parse_statement()
                    return ForEachStmt(var, iterable, body, self._span_from(start))
                declarators = [self._finish_declarator(name_tok)]
                while self._accept(TokenKind.COMMA):
                    declarators.append(self._parse_declarator())
                init.append(VarDeclExpr(modifiers, annotations, type_, declarators,
                                        self._span_from(v_start)))
            else:
                init = self._parse_expression_list(TokenKind.SEMICOLON)
        self._expect(TokenKind.SEMICOLON)
        condition = None if self._at(TokenKind.SEMICOLON) else self._parse_expression()
        self._expect(TokenKind.SEMICOLON)
        update = self._parse_expression_list(TokenKind.RPAREN)
        self._expect(TokenKind.RPAREN)
        body = self._parse_statement()
        return ForStmt(init, condition, update, body, self._span_from(start))

    def _parse_expression_list(self, terminator: TokenKind) -> list[Expr]:
        exprs: list[Expr] = []
        if self._at(terminator):
            return exprs
        exprs.append(self._parse_expression())
        while self._accept(TokenKind.COMMA):
            exprs.append(self._parse_expression())
        return exprs

    def _parse_try(self) -> TryStmt:
        start = self._advance().span
        resources: list[Expr] = []
        if self._accept(TokenKind.LPAREN):
            while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
                r_start = self._current().span
                if self._is_local_var_decl():
                    modifiers, annotations = self._parse_modifiers()
                    resources.append(self._parse_var_decl(modifiers, annotations, r_start))
                else:
                    resources.append(self._parse_expression())
                if not self._accept(TokenKind.SEMICOLON):
                    break
            self._expect(TokenKind.RPAREN)
        body = self._parse_block()
        catches: list[CatchClause] = []
        while self._at(TokenKind.CATCH):
            c_start = self._advance().span
            self._expect(TokenKind.LPAREN)
            p_start = self._current().span
            modifiers, annotations = self._parse_modifiers()
            types = [self._parse_type()]
            while self._accept(TokenKind.PIPE):
                types.append(self._parse_type())
            type_: TypeRef = types[0] if len(types) == 1 else UnionTypeRef(
                types, self._span_from(p_start))
            name = self._expect(TokenKind.IDENTIFIER).value
            param = Parameter(modifiers, annotations, type_, name, False,
                              self._span_from(p_start))
            self._expect(TokenKind.RPAREN)
            catch_body = self._parse_block()
            catches.append(CatchClause(param, catch_body, self._span_from(c_start)))
        finally_block = self._parse_block() if self._accept(TokenKind.FINALLY) else None
        if not catches and finally_block is None and not resources:
            self._error("try without catch or finally", start)
            raise _ParseError
        return TryStmt(resources, body, catches, finally_block, self._span_from(start))

    def _parse_switch(self) -> SwitchStmt:
        start = self._advance().span
        selector = self._parse_paren_expression()
        self._expect(TokenKind.LBRACE)
        entries: list[SwitchEntry] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            e_start = self._current().span
            labels: list[Expr] = []
            if self._accept(TokenKind.CASE):
                labels.append(self._parse_conditional())
                while self._accept(TokenKind.COMMA):
                    labels.append(self._parse_conditional())
            else:
                self._expect(TokenKind.DEFAULT)
            self._expect(TokenKind.COLON)
            stmts: list[Stmt] = []
            while not self._at_any(TokenKind.CASE, TokenKind.DEFAULT, TokenKind.RBRACE,
                                   TokenKind.EOF):
                stmts.append(self._parse_statement())
            entries.append(SwitchEntry(labels, stmts, self._span_from(e_start)))
        self._expect(TokenKind.RBRACE)
        return SwitchStmt(selector, entries, self._span_from(start))

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expression(self) -> Expr:
        """Parse an expression including assignment and lambdas."""
        if self._is_lambda_start():
            return self._parse_lambda()
        start = self._current().span
        left = self._parse_conditional()
        op = self._peek_assign_op()
        if op is None:
            return left
        text, count = op
        for _ in range(count):
            self._advance()
        if self._at(TokenKind.LBRACE):
            value: Expr = self._parse_array_initializer()
        else:
            value = self._parse_expression()
        return AssignExpr(left, text, value, self._span_from(start))

    def _peek_assign_op(self) -> tuple[str, int] | None:
        tok = self._current()
        if tok.kind in _ASSIGN_TOKENS:
            return _ASSIGN_TOKENS[tok.kind], 1
        if tok.kind != TokenKind.GREATER:
            return None
        second = self._peek(1)
        if second.kind == TokenKind.GREATER_EQUAL and self._adjacent(tok, second):
            return '>>=', 2
        third = self._peek(2)
        if (second.kind == TokenKind.GREATER and third.kind == TokenKind.GREATER_EQUAL
                and self._adjacent(tok, second) and self._adjacent(second, third)):
            return '>>>=', 3
        return None

    def _peek_binary_op(self) -> tuple[str, int] | None:
        tok = self._current()
        if tok.kind in _BINARY_TOKENS:
            return _BINARY_TOKENS[tok.kind], 1
        if tok.kind != TokenKind.GREATER:
            return None
        if self._peek_assign_op() is not None:
            return None
        second = self._peek(1)
        if second.kind != TokenKind.GREATER or not self._adjacent(tok, second):
            return '>', 1
        third = self._peek(2)
        if third.kind == TokenKind.GREATER and self._adjacent(second, third):
            return '>>>', 3
        return '>>', 2

    def _parse_conditional(self) -> Expr:
        start = self._current().span
        condition = self._parse_binary(0)
        if not self._accept(TokenKind.QUESTION):
            return condition
        then_expr = self._parse_expression()
        self._expect(TokenKind.COLON)
        if self._is_lambda_start():
            else_expr = self._parse_lambda()
        else:
            else_expr = self._parse_conditional()
        return ConditionalExpr(condition, then_expr, else_expr, self._span_from(start))

    def _parse_binary(self, min_bp: int) -> Expr:
        start = self._current().span
        left = self._parse_unary()
        while True:
            op = self._peek_binary_op()
            if op is None:
                break
            text, count = op
            left_bp, right_bp = _INFIX_BP[text]
            if left_bp < min_bp:
                break
            for _ in range(count):
                self._advance()
            if text == 'instanceof':
                self._accept(TokenKind.FINAL)
                type_ = self._parse_type()
                left = InstanceOfExpr(left, type_, self._span_from(start))
                continue
            right = self._parse_binary(right_bp)
            left = BinaryExpr(left, text, right, self._span_from(start))
        return left

    def _parse_unary(self) -> Expr:
        tok = self._current()
        if tok.kind in _PREFIX_OPS:
            self._advance()
            operand = self._parse_unary()
            return UnaryExpr(_PREFIX_OPS[tok.kind], operand, False, self._span_from(tok.span))
        if tok.kind == TokenKind.LPAREN and self._is_cast():
            self._advance()
            types = [self._parse_type()]
            while self._accept(TokenKind.AMP):
                types.append(self._parse_type())
            self._expect(TokenKind.RPAREN)
            cast_type: TypeRef = types[0] if len(types) == 1 else IntersectionTypeRef(
                types, self._span_from(tok.span))
            if self._is_lambda_start():
                operand = self._parse_lambda()
            else:
                operand = self._parse_unary()
            return CastExpr(cast_type, operand, self._span_from(tok.span))
        return self._parse_postfix(self._parse_primary())

    def _parse_primary(self) -> Expr:
        tok = self._current()
        kind = tok.kind
        if kind in _LITERALS:
            self._advance()
            return _literal(tok)
        if kind == TokenKind.THIS:
            self._advance()
            return ThisExpr(None, tok.span)
        if kind == TokenKind.SUPER:
            self._advance()
            return SuperExpr(None, tok.span)
        if kind == TokenKind.LPAREN:
            self._advance()
            inner = self._parse_expression()
            self._expect(TokenKind.RPAREN)
            return EnclosedExpr(inner, self._span_from(tok.span))
        if kind == TokenKind.NEW:
            return self._parse_creation()
        if kind == TokenKind.LBRACE:
            return self._parse_array_initializer()
        if kind == TokenKind.IDENTIFIER:
            self._advance()
            if self._at(TokenKind.LPAREN):
                args = self._parse_arguments()
                return MethodCall(None, tok.value, args, self._span_from(tok.span))
            return NameExpr(tok.value, tok.span)
        if kind in PRIMITIVE_KINDS or kind == TokenKind.VOID:
            type_ = self._parse_type()
            if self._accept(TokenKind.COLON_COLON):
                name = self._advance().value
                return MethodReference(type_, name, self._span_from(tok.span))
            self._expect(TokenKind.DOT)
            self._expect(TokenKind.CLASS)
            return ClassLiteral(type_, self._span_from(tok.span))
        self._error(f"expected an expression, got {tok.value!r}", tok.span)
        raise _ParseError

    def _parse_postfix(self, left: Expr) -> Expr:
        start = left.span
        while True:
            tok = self._current()
            if tok.kind == TokenKind.DOT:
                self._advance()
                nxt = self._current()
                if nxt.kind == TokenKind.LESS:
                    self._parse_type_args()  # explicit generic method arguments
                    nxt = self._current()
                if nxt.kind == TokenKind.IDENTIFIER:
                    self._advance()
                    if self._at(TokenKind.LPAREN):
                        args = self._parse_arguments()
                        left = MethodCall(left, nxt.value, args, self._span_from(start))
                    else:
                        left = FieldAccess(left, nxt.value, self._span_from(start))
                elif nxt.kind == TokenKind.THIS:
                    self._advance()
                    left = ThisExpr(_dotted_name(left), self._span_from(start))
                elif nxt.kind == TokenKind.CLASS:
                    self._advance()
                    left = ClassLiteral(_name_to_type(left), self._span_from(start))
                elif nxt.kind == TokenKind.SUPER:
                    self._advance()
                    if self._at(TokenKind.LPAREN):
                        args = self._parse_arguments()
                        return ExplicitConstructorCall(  # type: ignore[return-value]
                            False, left, args, self._span_from(start))
                    left = SuperExpr(_dotted_name(left), self._span_from(start))
                elif nxt.kind == TokenKind.NEW:
                    left = self._parse_creation()
                else:
                    self._error(f"unexpected {nxt.value!r} after '.'", nxt.span)
                    raise _ParseError
                continue
            if tok.kind == TokenKind.LBRACKET:
                if self._peek(1).kind == TokenKind.RBRACKET:
                    type_ = _with_dims(_name_to_type(left), self._parse_dims())
                    if self._accept(TokenKind.COLON_COLON):
                        name = self._advance().value
                        return MethodReference(type_, name, self._span_from(start))
                    self._expect(TokenKind.DOT)
                    self._expect(TokenKind.CLASS)
                    left = ClassLiteral(type_, self._span_from(start))
                    continue
                self._advance()
                index = self._parse_expression()
                self._expect(TokenKind.RBRACKET)
                left = ArrayAccess(left, index, self._span_from(start))
                continue
            if tok.kind in (TokenKind.PLUS_PLUS, TokenKind.MINUS_MINUS):
                self._advance()
                left = UnaryExpr(tok.value, left, True, self._span_from(start))
                continue
            if tok.kind == TokenKind.COLON_COLON:
                self._advance()
                name_tok = self._advance()
                left = MethodReference(left, name_tok.value, self._span_from(start))
                continue
            return left

    def _parse_arguments(self) -> list[Expr]:
        self._expect(TokenKind.LPAREN)
        args = self._parse_expression_list(TokenKind.RPAREN)
        self._expect(TokenKind.RPAREN)
        return args

    def _parse_creation(self) -> Expr:
        start = self._expect(TokenKind.NEW).span
        if self._at(TokenKind.LESS):
            self._parse_type_args()
        element: TypeRef
        tok = self._current()
        if tok.kind in PRIMITIVE_KINDS:
            self._advance()
            element = PrimitiveTypeRef(tok.value, tok.span)
        else:
            element = self._parse_class_type()

        if self._at(TokenKind.LBRACKET):
            dimensions: list[Expr] = []
            extra_dims = 0
            while self._at(TokenKind.LBRACKET):
                self._advance()
                if self._accept(TokenKind.RBRACKET):
                    extra_dims += 1
                    continue
                if extra_dims:
                    self._error("array dimension after an empty dimension", self._current().span)
                    raise _ParseError
                dimensions.append(self._parse_expression())
                self._expect(TokenKind.RBRACKET)
            initializer = None
            if self._at(TokenKind.LBRACE):
                initializer = self._parse_array_initializer()
            return ArrayCreation(element, dimensions, extra_dims, initializer,
                                 self._span_from(start))

        if not isinstance(element, ClassTypeRef):
            self._error("expected '[' after primitive type in 'new'", self._current().span)
            raise _ParseError
        args = self._parse_arguments()
        body = self._parse_class_body(element.name) if self._at(TokenKind.LBRACE) else None
        return ObjectCreation(element, args, body, self._span_from(start))

    def _parse_array_initializer(self) -> ArrayInitializer:
        start = self._expect(TokenKind.LBRACE).span
        values: list[Expr] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            if self._at(TokenKind.LBRACE):
                values.append(self._parse_array_initializer())
            else:
                values.append(self._parse_expression())
            if not self._accept(TokenKind.COMMA):
                break
        self._expect(TokenKind.RBRACE)
        return ArrayInitializer(values, self._span_from(start))

    def _parse_lambda(self) -> LambdaExpr:
        start = self._current().span
        params: list[str] = []
        if self._at(TokenKind.IDENTIFIER):
            params.append(self._advance().value)
        else:
            close = self._matching_paren(self.pos)
            for idx in range(self.pos + 1, close):
                if (self.tokens[idx].kind == TokenKind.IDENTIFIER
                        and self._kind_at(idx + 1) in (TokenKind.COMMA, TokenKind.RPAREN)):
                    params.append(self.tokens[idx].value)
            while self.pos <= close:
                self._advance()
        self._expect(TokenKind.ARROW)
        body: Expr | Block
        if self._at(TokenKind.LBRACE):
            body = self._parse_block()
        else:
            body = self._parse_expression()
        return LambdaExpr(params, body, self._span_from(start))


# ── Helpers ──────────────────────────────────────────────────────


def _with_dims(type_: TypeRef, extra: int) -> TypeRef:
    if extra == 0:
        return type_
    if isinstance(type_, ArrayTypeRef):
        return ArrayTypeRef(type_.element, type_.dims + extra, type_.span)
    return ArrayTypeRef(type_, extra, type_.span)


def _literal(tok: Token) -> Expr:
    kind = tok.kind
    if kind == TokenKind.INTEGER_LIT:
        return IntegerLit(tok.value, tok.span)
    if kind == TokenKind.LONG_LIT:
        return LongLit(tok.value, tok.span)
    if kind == TokenKind.FLOAT_LIT:
        return FloatLit(tok.value, tok.span)
    if kind == TokenKind.DOUBLE_LIT:
        return DoubleLit(tok.value, tok.span)
    if kind == TokenKind.CHAR_LIT:
        return CharLit(tok.value, tok.span)
    if kind == TokenKind.STRING_LIT:
        return StringLit(tok.value, tok.span)
    if kind == TokenKind.BOOLEAN_LIT:
        return BooleanLit(tok.value == "true", tok.span)
    return NullLit(tok.span)


def _dotted_name(expr: Expr) -> str:
    if isinstance(expr, NameExpr):
        return expr.name
    if isinstance(expr, FieldAccess):
        return f"{_dotted_name(expr.scope)}.{expr.name}"
    raise _ParseError


def _name_to_type(expr: Expr) -> ClassTypeRef:
    if isinstance(expr, NameExpr):
        return ClassTypeRef(expr.name, [], None, expr.span)
    if isinstance(expr, FieldAccess):
        scope = _name_to_type(expr.scope)
        if scope.scope is None and scope.name[:1].islower():
            return ClassTypeRef(expr.name, [], None, expr.span)
        return ClassTypeRef(expr.name, [], scope, expr.span)
    raise _ParseError


class _ParseError(Exception):
    """Internal exception for parser error recovery."""
