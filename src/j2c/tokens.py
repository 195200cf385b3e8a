"""Token kinds and token representation for the Java lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from j2c.source import Span


class TokenKind(Enum):
    # Declarations
    PACKAGE = auto()
    IMPORT = auto()
    CLASS = auto()
    INTERFACE = auto()
    ENUM = auto()
    EXTENDS = auto()
    IMPLEMENTS = auto()
    THROWS = auto()

    # Modifiers
    PUBLIC = auto()
    PROTECTED = auto()
    PRIVATE = auto()
    STATIC = auto()
    FINAL = auto()
    ABSTRACT = auto()
    NATIVE = auto()
    SYNCHRONIZED = auto()
    TRANSIENT = auto()
    VOLATILE = auto()
    STRICTFP = auto()
    DEFAULT = auto()

    # Primitive types
    BOOLEAN = auto()
    BYTE = auto()
    CHAR = auto()
    SHORT = auto()
    INT = auto()
    LONG = auto()
    FLOAT = auto()
    DOUBLE = auto()
    VOID = auto()

    # Statements
    IF = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()
    DO = auto()
    SWITCH = auto()
    CASE = auto()
    BREAK = auto()
    CONTINUE = auto()
    RETURN = auto()
    THROW = auto()
    TRY = auto()
    CATCH = auto()
    FINALLY = auto()
    ASSERT = auto()

    # Expressions
    NEW = auto()
    THIS = auto()
    SUPER = auto()
    INSTANCEOF = auto()

    # Literals
    INTEGER_LIT = auto()
    LONG_LIT = auto()
    FLOAT_LIT = auto()
    DOUBLE_LIT = auto()
    CHAR_LIT = auto()
    STRING_LIT = auto()
    BOOLEAN_LIT = auto()
    NULL_LIT = auto()

    # Operators
    ASSIGN = auto()
    PLUS_ASSIGN = auto()
    MINUS_ASSIGN = auto()
    STAR_ASSIGN = auto()
    SLASH_ASSIGN = auto()
    PERCENT_ASSIGN = auto()
    AMP_ASSIGN = auto()
    PIPE_ASSIGN = auto()
    CARET_ASSIGN = auto()
    SHL_ASSIGN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    PLUS_PLUS = auto()
    MINUS_MINUS = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    AND = auto()
    OR = auto()
    BANG = auto()
    TILDE = auto()
    AMP = auto()
    PIPE = auto()
    CARET = auto()
    SHL = auto()
    QUESTION = auto()
    COLON = auto()
    COLON_COLON = auto()
    ARROW = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    ELLIPSIS = auto()
    AT = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Comment:
    """A line, block or doc comment, kept verbatim with its delimiters."""

    text: str
    span: Span


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span
    comments: tuple[Comment, ...] = ()  # comments between the previous token and this one


KEYWORDS: dict[str, TokenKind] = {
    "package": TokenKind.PACKAGE,
    "import": TokenKind.IMPORT,
    "class": TokenKind.CLASS,
    "interface": TokenKind.INTERFACE,
    "enum": TokenKind.ENUM,
    "extends": TokenKind.EXTENDS,
    "implements": TokenKind.IMPLEMENTS,
    "throws": TokenKind.THROWS,
    "public": TokenKind.PUBLIC,
    "protected": TokenKind.PROTECTED,
    "private": TokenKind.PRIVATE,
    "static": TokenKind.STATIC,
    "final": TokenKind.FINAL,
    "abstract": TokenKind.ABSTRACT,
    "native": TokenKind.NATIVE,
    "synchronized": TokenKind.SYNCHRONIZED,
    "transient": TokenKind.TRANSIENT,
    "volatile": TokenKind.VOLATILE,
    "strictfp": TokenKind.STRICTFP,
    "default": TokenKind.DEFAULT,
    "boolean": TokenKind.BOOLEAN,
    "byte": TokenKind.BYTE,
    "char": TokenKind.CHAR,
    "short": TokenKind.SHORT,
    "int": TokenKind.INT,
    "long": TokenKind.LONG,
    "float": TokenKind.FLOAT,
    "double": TokenKind.DOUBLE,
    "void": TokenKind.VOID,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "for": TokenKind.FOR,
    "while": TokenKind.WHILE,
    "do": TokenKind.DO,
    "switch": TokenKind.SWITCH,
    "case": TokenKind.CASE,
    "break": TokenKind.BREAK,
    "continue": TokenKind.CONTINUE,
    "return": TokenKind.RETURN,
    "throw": TokenKind.THROW,
    "try": TokenKind.TRY,
    "catch": TokenKind.CATCH,
    "finally": TokenKind.FINALLY,
    "assert": TokenKind.ASSERT,
    "new": TokenKind.NEW,
    "this": TokenKind.THIS,
    "super": TokenKind.SUPER,
    "instanceof": TokenKind.INSTANCEOF,
    "true": TokenKind.BOOLEAN_LIT,
    "false": TokenKind.BOOLEAN_LIT,
    "null": TokenKind.NULL_LIT,
}

PRIMITIVE_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.BOOLEAN,
    TokenKind.BYTE,
    TokenKind.CHAR,
    TokenKind.SHORT,
    TokenKind.INT,
    TokenKind.LONG,
    TokenKind.FLOAT,
    TokenKind.DOUBLE,
})

MODIFIER_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.PUBLIC,
    TokenKind.PROTECTED,
    TokenKind.PRIVATE,
    TokenKind.STATIC,
    TokenKind.FINAL,
    TokenKind.ABSTRACT,
    TokenKind.NATIVE,
    TokenKind.SYNCHRONIZED,
    TokenKind.TRANSIENT,
    TokenKind.VOLATILE,
    TokenKind.STRICTFP,
    TokenKind.DEFAULT,
})
