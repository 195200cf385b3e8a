"""Lexer for Java source.

Produces a flat token stream. Each comment rides on the token that follows
it. Literal text is kept exactly as written so the generator can re-emit it.
Every ``>`` is a token of its own so that nested generic closers parse.
"""

from __future__ import annotations

from j2c.errors import CompileError, Diagnostic
from j2c.source import Span
from j2c.tokens import KEYWORDS, Comment, Token, TokenKind

# Longest first; ``>>``, ``>>>`` and their assignments are rebuilt by the parser.
_OPERATORS: tuple[tuple[str, TokenKind], ...] = (
    ('<<=', TokenKind.SHL_ASSIGN),
    ('...', TokenKind.ELLIPSIS),
    ('==', TokenKind.EQUAL),
    ('!=', TokenKind.NOT_EQUAL),
    ('<=', TokenKind.LESS_EQUAL),
    ('>=', TokenKind.GREATER_EQUAL),
    ('&&', TokenKind.AND),
    ('||', TokenKind.OR),
    ('++', TokenKind.PLUS_PLUS),
    ('--', TokenKind.MINUS_MINUS),
    ('+=', TokenKind.PLUS_ASSIGN),
    ('-=', TokenKind.MINUS_ASSIGN),
    ('*=', TokenKind.STAR_ASSIGN),
    ('/=', TokenKind.SLASH_ASSIGN),
    ('%=', TokenKind.PERCENT_ASSIGN),
    ('&=', TokenKind.AMP_ASSIGN),
    ('|=', TokenKind.PIPE_ASSIGN),
    ('^=', TokenKind.CARET_ASSIGN),
    ('<<', TokenKind.SHL),
    ('::', TokenKind.COLON_COLON),
    ('->', TokenKind.ARROW),
    ('=', TokenKind.ASSIGN),
    ('+', TokenKind.PLUS),
    ('-', TokenKind.MINUS),
    ('*', TokenKind.STAR),
    ('/', TokenKind.SLASH),
    ('%', TokenKind.PERCENT),
    ('<', TokenKind.LESS),
    ('>', TokenKind.GREATER),
    ('!', TokenKind.BANG),
    ('~', TokenKind.TILDE),
    ('&', TokenKind.AMP),
    ('|', TokenKind.PIPE),
    ('^', TokenKind.CARET),
    ('?', TokenKind.QUESTION),
    (':', TokenKind.COLON),
    ('(', TokenKind.LPAREN),
    (')', TokenKind.RPAREN),
    ('{', TokenKind.LBRACE),
    ('}', TokenKind.RBRACE),
    ('[', TokenKind.LBRACKET),
    (']', TokenKind.RBRACKET),
    (';', TokenKind.SEMICOLON),
    (',', TokenKind.COMMA),
    ('.', TokenKind.DOT),
    ('@', TokenKind.AT),
)

_HEX_DIGITS = frozenset('0123456789abcdefABCDEF_')


class Lexer:
    """Tokenizes Java source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []
        self.comments: list[Comment] = []
        self._pending: list[Comment] = []
        self.diagnostics: list[Diagnostic] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in ' \t\r\n\f':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                self._lex_line_comment()
            elif ch == '/' and self._peek(1) == '*':
                self._lex_block_comment()
            elif ch == '"':
                self._lex_quoted('"', TokenKind.STRING_LIT, "string")
            elif ch == "'":
                self._lex_quoted("'", TokenKind.CHAR_LIT, "character")
            elif ch.isdigit() or (ch == '.' and self._peek(1).isdigit()):
                self._lex_number()
            elif ch.isalpha() or ch in '_$':
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        self._emit(TokenKind.EOF, "", self.line, self.col)

        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span, tuple(self._pending))
        self._pending = []
        self.tokens.append(tok)
        return tok

    def _error(self, message: str, line: int, col: int) -> None:
        span = Span(self.filename, line, col, line, col)
        self.diagnostics.append(Diagnostic.error("E010", message, span))

    # ── Comments ─────────────────────────────────────────────────

    def _lex_line_comment(self) -> None:
        start, start_line, start_col = self.pos, self.line, self.col
        while self.pos < len(self.source) and self.source[self.pos] != '\n':
            self._advance()
        self._add_comment(start, start_line, start_col)

    def _lex_block_comment(self) -> None:
        start, start_line, start_col = self.pos, self.line, self.col
        self._advance()
        self._advance()
        while self.pos < len(self.source):
            if self.source[self.pos] == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                self._add_comment(start, start_line, start_col)
                return
            self._advance()
        self._error("unterminated block comment", start_line, start_col)

    def _add_comment(self, start: int, start_line: int, start_col: int) -> None:
        span = Span(self.filename, start_line, start_col, self.line, max(1, self.col - 1))
        comment = Comment(self.source[start:self.pos], span)
        self.comments.append(comment)
        self._pending.append(comment)

    # ── Literals ─────────────────────────────────────────────────

    def _lex_quoted(self, quote: str, kind: TokenKind, what: str) -> None:
        """Lex a string or char literal, keeping escape sequences verbatim."""
        start_line = self.line
        start_col = self.col
        self._advance()  # opening quote
        text: list[str] = []
        while self.pos < len(self.source) and self.source[self.pos] != quote:
            ch = self.source[self.pos]
            if ch == '\n':
                break
            if ch == '\\':
                text.append(self._advance())
                if self.pos >= len(self.source):
                    break
            text.append(self._advance())

        if self.pos >= len(self.source) or self.source[self.pos] != quote:
            self._error(f"unterminated {what} literal", start_line, start_col)
            return
        self._advance()  # closing quote
        if kind == TokenKind.CHAR_LIT and not text:
            self._error("empty character literal", start_line, start_col)
        self._emit(kind, ''.join(text), start_line, start_col)

    def _lex_number(self) -> None:
        start_line = self.line
        start_col = self.col
        text: list[str] = []

        if self.source[self.pos] == '0' and self._peek(1) in ('x', 'X', 'b', 'B'):
            text.append(self._advance())
            radix = self._advance()
            text.append(radix)
            digits = _HEX_DIGITS if radix in 'xX' else frozenset('01_')
            while self.pos < len(self.source) and self.source[self.pos] in digits:
                text.append(self._advance())
            kind = TokenKind.INTEGER_LIT
            if self._peek() in ('l', 'L'):
                text.append(self._advance())
                kind = TokenKind.LONG_LIT
            self._emit(kind, ''.join(text), start_line, start_col)
            return

        is_floating = False
        self._take_digits(text)
        if self._peek() == '.' and self._peek(1).isdigit():
            is_floating = True
            text.append(self._advance())
            self._take_digits(text)
        if self._peek() in ('e', 'E'):
            is_floating = True
            text.append(self._advance())
            if self._peek() in ('+', '-'):
                text.append(self._advance())
            self._take_digits(text)

        suffix = self._peek()
        if suffix in ('l', 'L'):
            text.append(self._advance())
            kind = TokenKind.LONG_LIT
        elif suffix in ('f', 'F'):
            text.append(self._advance())
            kind = TokenKind.FLOAT_LIT
        elif suffix in ('d', 'D'):
            text.append(self._advance())
            kind = TokenKind.DOUBLE_LIT
        elif is_floating:
            kind = TokenKind.DOUBLE_LIT
        else:
            kind = TokenKind.INTEGER_LIT
        self._emit(kind, ''.join(text), start_line, start_col)

    def _take_digits(self, text: list[str]) -> None:
        while self.pos < len(self.source) and (
                self.source[self.pos].isdigit() or self.source[self.pos] == '_'):
            text.append(self._advance())

    # ── Identifiers and Keywords ─────────────────────────────────

    def _lex_identifier(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []
        while self.pos < len(self.source) and (
                self.source[self.pos].isalnum() or self.source[self.pos] in '_$'):
            text.append(self._advance())
        word = ''.join(text)
        self._emit(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, start_line, start_col)

    # ── Operators and Punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line = self.line
        start_col = self.col
        for text, kind in _OPERATORS:
            if self.source.startswith(text, self.pos):
                for _ in text:
                    self._advance()
                self._emit(kind, text, start_line, start_col)
                return
        ch = self._advance()
        self._error(f"unexpected character: {ch!r}", start_line, start_col)
