"""
Lox token vocabulary
Lexical categories, the keyword table and the immutable Token record
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Optional

from values import Value, FALSE, NIL, TRUE


class TokenType(Enum):
    """Lexical categories produced by the scanner"""
    # Single-character tokens
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    EOF = auto()


KEYWORDS: Dict[str, TokenType] = {
    'and': TokenType.AND,
    'class': TokenType.CLASS,
    'else': TokenType.ELSE,
    'false': TokenType.FALSE,
    'for': TokenType.FOR,
    'fun': TokenType.FUN,
    'if': TokenType.IF,
    'nil': TokenType.NIL,
    'or': TokenType.OR,
    'print': TokenType.PRINT,
    'return': TokenType.RETURN,
    'super': TokenType.SUPER,
    'this': TokenType.THIS,
    'true': TokenType.TRUE,
    'var': TokenType.VAR,
    'while': TokenType.WHILE,
}

# Operators and punctuation, keyed by lexeme
SYMBOLS: Dict[str, TokenType] = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '/': TokenType.SLASH,
    '*': TokenType.STAR,
    '!': TokenType.BANG,
    '!=': TokenType.BANG_EQUAL,
    '=': TokenType.EQUAL,
    '==': TokenType.EQUAL_EQUAL,
    '>': TokenType.GREATER,
    '>=': TokenType.GREATER_EQUAL,
    '<': TokenType.LESS,
    '<=': TokenType.LESS_EQUAL,
}

LITERAL_KINDS: FrozenSet[TokenType] = frozenset({
    TokenType.STRING,
    TokenType.NUMBER,
    TokenType.TRUE,
    TokenType.FALSE,
    TokenType.NIL,
})

# Literal values carried by the keyword literals
KEYWORD_LITERALS: Dict[TokenType, Value] = {
    TokenType.TRUE: TRUE,
    TokenType.FALSE: FALSE,
    TokenType.NIL: NIL,
}


@dataclass(frozen=True)
class Token:
    """Lox token with source information"""
    kind: TokenType
    lexeme: str
    literal: Optional[Value]
    line: int
    column: int = 0

    def __post_init__(self):
        if (self.kind in LITERAL_KINDS) != (self.literal is not None):
            raise ValueError(f"Token {self.kind.name} has inconsistent literal {self.literal!r}")

    @property
    def is_literal(self) -> bool:
        return self.kind in LITERAL_KINDS

    def __str__(self) -> str:
        if self.literal is not None:
            return f"{self.kind.name} {self.lexeme} {self.literal!r}"
        return f"{self.kind.name} {self.lexeme}"


def make_keyword_token(kind: TokenType, line: int) -> Token:
    """Build a synthetic keyword token (used when desugaring)"""
    lexeme = next(word for word, word_kind in KEYWORDS.items() if word_kind is kind)
    return Token(kind, lexeme, KEYWORD_LITERALS.get(kind), line)
