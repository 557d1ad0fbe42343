"""
Lexer for the policy DSL.

Turns DSL source text into a stream of tokens in a single pass, tracking
line and column for error reporting.

Recognized input:
    - Strings: "..." or '...' with escapes \\n \\t \\\\ \\" \\'
    - Numbers: a digit followed by digits and dots (42, 3.14)
    - Identifiers and dotted paths: actor.type, resource.attributes.size
    - Keywords (case-insensitive): true false and or not in contains matches exists
    - Operators: == != > >= < <= && || ! =>
    - Punctuation: ( ) { } : ,
    - Comments: # to end of line

Anything else is a hard DslSyntaxError; nothing is silently skipped.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Literal, get_args

from policydsl.errors import (
    InvalidNumberError,
    UnexpectedCharacterError,
    UnterminatedStringError,
)
from policydsl.schema import LogicalOperator, PolicyOperator


class TokenKind(str, Enum):
    """Kinds of tokens produced by the lexer."""

    IDENTIFIER = "Identifier"
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    OPERATOR = "Operator"
    LOGICAL = "Logical"
    LPAREN = "LParen"
    RPAREN = "RParen"
    LBRACE = "LBrace"
    RBRACE = "RBrace"
    COLON = "Colon"
    COMMA = "Comma"
    ARROW = "Arrow"
    EOF = "Eof"


# =============================================================================
# Tokens
# =============================================================================


@dataclass(frozen=True)
class IdentifierToken:
    name: str
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.IDENTIFIER


@dataclass(frozen=True)
class StringToken:
    value: str
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.STRING


@dataclass(frozen=True)
class NumberToken:
    value: int | float
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.NUMBER


@dataclass(frozen=True)
class BooleanToken:
    value: bool
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.BOOLEAN


@dataclass(frozen=True)
class OperatorToken:
    operator: PolicyOperator
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.OPERATOR


@dataclass(frozen=True)
class LogicalToken:
    operator: LogicalOperator
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.LOGICAL


PunctuationKind = Literal[
    TokenKind.LPAREN,
    TokenKind.RPAREN,
    TokenKind.LBRACE,
    TokenKind.RBRACE,
    TokenKind.COLON,
    TokenKind.COMMA,
    TokenKind.ARROW,
]


@dataclass(frozen=True)
class PunctuationToken:
    """Parentheses, braces, colon, comma and arrow."""

    kind: PunctuationKind
    line: int
    column: int

    def __post_init__(self) -> None:
        if self.kind not in get_args(PunctuationKind):
            raise ValueError(f"{self.kind!r} is not a punctuation kind")


@dataclass(frozen=True)
class EofToken:
    line: int
    column: int
    kind: ClassVar[TokenKind] = TokenKind.EOF


Token = (
    IdentifierToken
    | StringToken
    | NumberToken
    | BooleanToken
    | OperatorToken
    | LogicalToken
    | PunctuationToken
    | EofToken
)


# Keyword lookup (lowercased identifier -> token factory arguments)
KEYWORDS: dict[str, bool | LogicalOperator | PolicyOperator] = {
    "true": True,
    "false": False,
    "and": LogicalOperator.AND,
    "or": LogicalOperator.OR,
    "not": LogicalOperator.NOT,
    "in": PolicyOperator.IN,
    "contains": PolicyOperator.CONTAINS,
    "matches": PolicyOperator.MATCHES,
    "exists": PolicyOperator.EXISTS,
}

PUNCTUATION: dict[str, PunctuationKind] = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_PART = _IDENT_START | frozenset("0123456789.")
_DIGITS = frozenset("0123456789")
_NUMBER_PART = _DIGITS | frozenset(".")


class PolicyLexer:
    """
    Single-pass scanner over DSL source text.

    Usage:
        tokens = PolicyLexer('actor.type == "user"').tokenize()

    A lexer instance holds scan position and is meant for one tokenize()
    call; use the module-level tokenize() helper for one-off calls.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        """
        Scan the whole source.

        Returns:
            Tokens in source order, always terminated by an EofToken

        Raises:
            UnexpectedCharacterError: On a character that starts no token
            UnterminatedStringError: On a string without closing quote
            InvalidNumberError: On a malformed numeric literal
        """
        tokens: list[Token] = []

        while self._pos < len(self.source):
            char = self.source[self._pos]

            if char.isspace():
                self._advance()
                continue

            if char == "#":
                while self._pos < len(self.source) and self.source[self._pos] != "\n":
                    self._advance()
                continue

            if char in ('"', "'"):
                tokens.append(self._read_string(char))
            elif char in _DIGITS:
                tokens.append(self._read_number())
            elif char in _IDENT_START:
                tokens.append(self._read_identifier())
            elif char in PUNCTUATION:
                tokens.append(PunctuationToken(PUNCTUATION[char], self._line, self._column))
                self._advance()
            else:
                tokens.append(self._read_operator(char))

        tokens.append(EofToken(self._line, self._column))
        return tokens

    def _peek(self) -> str:
        """Return the character after the current one ("" at end)."""
        if self._pos + 1 < len(self.source):
            return self.source[self._pos + 1]
        return ""

    def _advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.source[self._pos] == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
            self._pos += 1

    def _read_operator(self, char: str) -> Token:
        """Read a one- or two-character operator starting at char."""
        line, column = self._line, self._column
        pair = char + self._peek()

        two_char: dict[str, Token] = {
            "==": OperatorToken(PolicyOperator.EQ, line, column),
            "!=": OperatorToken(PolicyOperator.NE, line, column),
            ">=": OperatorToken(PolicyOperator.GTE, line, column),
            "<=": OperatorToken(PolicyOperator.LTE, line, column),
            "&&": LogicalToken(LogicalOperator.AND, line, column),
            "||": LogicalToken(LogicalOperator.OR, line, column),
            "=>": PunctuationToken(TokenKind.ARROW, line, column),
        }
        if pair in two_char:
            self._advance(2)
            return two_char[pair]

        one_char: dict[str, Token] = {
            ">": OperatorToken(PolicyOperator.GT, line, column),
            "<": OperatorToken(PolicyOperator.LT, line, column),
            "!": LogicalToken(LogicalOperator.NOT, line, column),
        }
        if char in one_char:
            self._advance()
            return one_char[char]

        raise UnexpectedCharacterError(
            character=char,
            line=line,
            column=column,
            source=self.source,
        )

    def _read_string(self, quote: str) -> StringToken:
        line, column = self._line, self._column
        self._advance()  # opening quote

        chars: list[str] = []
        while self._pos < len(self.source) and self.source[self._pos] != quote:
            char = self.source[self._pos]
            if char == "\\":
                self._advance()
                if self._pos >= len(self.source):
                    break
                escaped = self.source[self._pos]
                chars.append(ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)
            self._advance()

        if self._pos >= len(self.source):
            raise UnterminatedStringError(line=line, column=column, source=self.source)

        self._advance()  # closing quote
        return StringToken("".join(chars), line, column)

    def _read_number(self) -> NumberToken:
        line, column = self._line, self._column
        start = self._pos
        while self._pos < len(self.source) and self.source[self._pos] in _NUMBER_PART:
            self._advance()

        literal = self.source[start:self._pos]
        try:
            value: int | float = float(literal) if "." in literal else int(literal)
        except ValueError:
            raise InvalidNumberError(
                literal=literal,
                line=line,
                column=column,
                source=self.source,
            ) from None
        return NumberToken(value, line, column)

    def _read_identifier(self) -> Token:
        line, column = self._line, self._column
        start = self._pos
        while self._pos < len(self.source) and self.source[self._pos] in _IDENT_PART:
            self._advance()

        text = self.source[start:self._pos]
        keyword = KEYWORDS.get(text.lower())
        if isinstance(keyword, bool):
            return BooleanToken(keyword, line, column)
        if isinstance(keyword, LogicalOperator):
            return LogicalToken(keyword, line, column)
        if isinstance(keyword, PolicyOperator):
            return OperatorToken(keyword, line, column)
        return IdentifierToken(text, line, column)


def tokenize(source: str) -> list[Token]:
    """Tokenize DSL source text (see PolicyLexer.tokenize)."""
    return PolicyLexer(source).tokenize()


def describe_token(token: Token) -> str:
    """Short human-readable description of a token for error messages."""
    match token:
        case IdentifierToken(name=name):
            return f"Identifier '{name}'"
        case StringToken(value=value):
            return f"String {value!r}"
        case NumberToken(value=value) | BooleanToken(value=value):
            return f"{token.kind.value} {value!r}"
        case OperatorToken(operator=op) | LogicalToken(operator=op):
            return f"{token.kind.value} '{op.value}'"
        case _:
            return token.kind.value
