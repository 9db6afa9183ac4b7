"""Lexer/tokenizer for the Zy language.

Converts source text into a stream of tokens for the parser. Tokens are
produced lazily, one per call to next_token(); the end of input is a real
EOF token so the parser can always inspect the current token.

Token types:
- Literals: NUMBER, STRING, BOOLEAN
- Identifiers and keywords: IDENTIFIER, FN, LET, IN, IF, THEN, ELSE, AND, END
- Operators: arithmetic, comparison, logical, pipe, concat, sequence
- Punctuation: LPAREN, RPAREN, LBRACKET, RBRACKET, DOUBLE_COLON, COMMA
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from zy.errors import Position, Severity, ZyError


class TokenType(Enum):
    """Types of tokens in the Zy language."""

    # Literals
    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    FN = auto()
    LET = auto()
    IN = auto()
    IF = auto()
    THEN = auto()
    ELSE = auto()
    AND = auto()
    END = auto()

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # /

    # Comparison operators
    EQ = auto()          # =
    NEQ = auto()         # !=
    LT = auto()          # <
    LTE = auto()         # <=
    GT = auto()          # >
    GTE = auto()         # >=

    # Logical operators
    AND_AND = auto()     # &&
    OR_OR = auto()       # ||
    NOT = auto()         # !

    # Pipe, concat and sequencing
    PIPE = auto()        # .
    CONCAT = auto()      # ..
    SEMICOLON = auto()   # ;

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    LBRACKET = auto()    # [
    RBRACKET = auto()    # ]
    DOUBLE_COLON = auto()  # ::
    COMMA = auto()       # ,

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token type
        value: The token's value (number, string content, identifier name, etc.)
        position: Character offset in the source string
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    type: TokenType
    value: str | float | bool | None
    position: int
    line: int = 1
    column: int = 1

    @property
    def location(self) -> Position:
        return Position(self.line, self.column)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(ZyError):
    """Error during lexical analysis. Always fatal."""

    def __init__(self, message: str, position: int, line: int = 1, column: int = 1):
        self.offset = position
        super().__init__(message, Position(line, column), Severity.FATAL)


# Token patterns (order matters - longer matches first)
TOKEN_PATTERNS = [
    # Whitespace and line comments (skip)
    (r"\s+", None),
    (r"'[^\n]*", None),

    # Keywords and identifiers
    (r"[a-zA-Z_][a-zA-Z0-9_]*", TokenType.IDENTIFIER),

    # Numbers (integer or decimal)
    (r"\d+(\.\d+)?", TokenType.NUMBER),

    # Strings (double quoted, no escapes, may span lines)
    (r'"[^"]*"', TokenType.STRING),

    # Multi-character operators (before their single character prefixes)
    (r"!=", TokenType.NEQ),
    (r"<=", TokenType.LTE),
    (r">=", TokenType.GTE),
    (r"&&", TokenType.AND_AND),
    (r"\|\|", TokenType.OR_OR),
    (r"\.\.", TokenType.CONCAT),
    (r"::", TokenType.DOUBLE_COLON),

    # Single character operators
    (r"\+", TokenType.PLUS),
    (r"-", TokenType.MINUS),
    (r"\*", TokenType.MULTIPLY),
    (r"/", TokenType.DIVIDE),
    (r"=", TokenType.EQ),
    (r"<", TokenType.LT),
    (r">", TokenType.GT),
    (r"!", TokenType.NOT),
    (r"\.", TokenType.PIPE),
    (r";", TokenType.SEMICOLON),

    # Punctuation
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r"\[", TokenType.LBRACKET),
    (r"\]", TokenType.RBRACKET),
    (r",", TokenType.COMMA),
]

# Keywords that map to specific token types
KEYWORDS = {
    "fn": (TokenType.FN, "fn"),
    "let": (TokenType.LET, "let"),
    "in": (TokenType.IN, "in"),
    "if": (TokenType.IF, "if"),
    "then": (TokenType.THEN, "then"),
    "else": (TokenType.ELSE, "else"),
    "and": (TokenType.AND, "and"),
    "end": (TokenType.END, "end"),
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
}

_COMPILED_PATTERNS = [
    (re.compile(pattern), token_type) for pattern, token_type in TOKEN_PATTERNS
]


class Lexer:
    """Tokenizer for Zy source text.

    Usage:
        lexer = Lexer('let x :: 1 in x + 2')
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self.line = 1
        self.column = 1

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source, ending with EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def next_token(self) -> Token:
        """Get the next token from the source."""
        while self.position < len(self.source):
            for pattern, token_type in _COMPILED_PATTERNS:
                match = pattern.match(self.source, self.position)
                if match:
                    break
            else:
                raise LexerError(
                    f"Unexpected character '{self.source[self.position]}'",
                    self.position,
                    self.line,
                    self.column,
                )

            value = match.group()
            start_pos = self.position
            start_line = self.line
            start_column = self.column
            self._advance(len(value))

            if token_type is None:
                continue

            token_value: str | float | bool | None = value

            if token_type == TokenType.NUMBER:
                token_value = float(value)

            elif token_type == TokenType.STRING:
                token_value = value[1:-1]

            elif token_type == TokenType.IDENTIFIER and value in KEYWORDS:
                token_type, token_value = KEYWORDS[value]

            return Token(token_type, token_value, start_pos, start_line, start_column)

        return Token(TokenType.EOF, None, self.position, self.line, self.column)

    def _advance(self, count: int) -> None:
        """Advance position by count characters, updating line/column."""
        for _ in range(count):
            if self.position < len(self.source):
                if self.source[self.position] == "\n":
                    self.line += 1
                    self.column = 1
                else:
                    self.column += 1
                self.position += 1

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)
