"""
Lox scanner
Single left-to-right pass over the source, built from pyparsing token expressions
"""

import sys
from typing import List, Optional, Tuple

from pyparsing import MatchFirst, ParserElement, Regex, col, one_of

from error_handling import LexError
from tokens import KEYWORD_LITERALS, KEYWORDS, SYMBOLS, Token, TokenType
from values import make_number, make_string


def _tagged(tag: str):
    """Parse action wrapping the matched text as a (tag, text) pair"""
    return lambda t: (tag, t[0])


def build_lexeme_grammar() -> ParserElement:
    """Build the token grammar, one alternative per lexical category.

    Order matters: comments before '/', complete strings before unterminated
    ones, malformed numbers before numbers. The final alternative matches any
    single character so unrecognized input is reported instead of skipped.
    """
    comment = Regex(r'//[^\n]*').set_parse_action(_tagged("COMMENT"))
    string = Regex(r'"[^"]*"').set_parse_action(_tagged("STRING"))
    unterminated_string = Regex(r'"[^"]*').set_parse_action(_tagged("UNTERMINATED_STRING"))
    unterminated_number = Regex(r'[0-9]+\.(?![0-9])').set_parse_action(_tagged("UNTERMINATED_NUMBER"))
    number = Regex(r'[0-9]+(?:\.[0-9]+)?').set_parse_action(_tagged("NUMBER"))
    identifier = Regex(r'[A-Za-z_][A-Za-z0-9_-]*').set_parse_action(_tagged("IDENTIFIER"))
    symbol = one_of(list(SYMBOLS)).set_parse_action(_tagged("SYMBOL"))
    unexpected = Regex(r'[\s\S]').set_parse_action(_tagged("UNEXPECTED"))

    lexeme = MatchFirst([
        comment,
        string,
        unterminated_string,
        unterminated_number,
        number,
        identifier,
        symbol,
        unexpected,
    ])
    # Keep tabs so match locations are offsets into the untouched text
    return lexeme.parse_with_tabs()


class Scanner:
    """Turns Lox source text into tokens plus any lexical errors"""

    def __init__(self, filename: str = "<input>", debug: bool = False):
        self.filename = filename
        self.debug = debug
        self.grammar = build_lexeme_grammar()

    def scan(self, source: str) -> Tuple[List[Token], List[LexError]]:
        """Scan the whole source; errors are collected, never raised"""
        tokens: List[Token] = []
        errors: List[LexError] = []
        line = 1
        last_end = 0

        for match, start, end in self.grammar.scan_string(source):
            line += source.count('\n', last_end, start)
            tag, text = match[0]
            column = col(start, source)

            token, error = self._classify(tag, text, line, column)
            if token is not None:
                tokens.append(token)
            if error is not None:
                errors.append(error)

            line += source.count('\n', start, end)
            last_end = end

        line += source.count('\n', last_end)
        tokens.append(Token(TokenType.EOF, "", None, line, 0))

        if self.debug:
            print(f"Scanned {len(tokens)} tokens ({len(errors)} errors) from {self.filename}", file=sys.stderr)

        return tokens, errors

    def _classify(self, tag: str, text: str, line: int, column: int) -> Tuple[Optional[Token], Optional[LexError]]:
        if tag == "COMMENT":
            return None, None

        if tag == "STRING":
            return Token(TokenType.STRING, text, make_string(text[1:-1]), line, column), None

        if tag == "NUMBER":
            return Token(TokenType.NUMBER, text, make_number(float(text)), line, column), None

        if tag == "IDENTIFIER":
            kind = KEYWORDS.get(text, TokenType.IDENTIFIER)
            return Token(kind, text, KEYWORD_LITERALS.get(kind), line, column), None

        if tag == "SYMBOL":
            return Token(SYMBOLS[text], text, None, line, column), None

        if tag == "UNTERMINATED_STRING":
            return None, LexError("Unterminated string.", line, column, text)

        if tag == "UNTERMINATED_NUMBER":
            return None, LexError("Unterminated number.", line, column, text)

        return None, LexError(f"Unexpected character '{text}'.", line, column, text)


def scan(source: str, filename: str = "<input>") -> Tuple[List[Token], List[LexError]]:
    """Scan source text into (tokens, lex_errors)"""
    return Scanner(filename).scan(source)

