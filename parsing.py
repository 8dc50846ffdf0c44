"""
Lox parser
Precedence-climbing recursive descent from tokens to statements, with
synchronize-and-continue error recovery and a bounded nesting depth
"""

import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from error_handling import ParseError
from syntax import (
    Assignment, Binary, Block, Declaration, Expr, ExpressionStatement, Grouping, If,
    Literal, Logical, Print, Stmt, Unary, Variable, While,
)
from tokens import Token, TokenType, make_keyword_token


MAX_NESTING_DEPTH = 64

# Tokens that begin a statement; synchronization stops in front of them
STATEMENT_KEYWORDS = frozenset({
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
})

LITERAL_TOKENS = (
    TokenType.FALSE,
    TokenType.TRUE,
    TokenType.NIL,
    TokenType.NUMBER,
    TokenType.STRING,
)


class Parser:
    """Lox parser over a token list with one token of lookahead"""

    def __init__(self, tokens: List[Token], max_depth: int = MAX_NESTING_DEPTH, debug: bool = False):
        if not tokens or tokens[-1].kind is not TokenType.EOF:
            raise ValueError("Token stream must end with an EOF token")
        self.tokens = tokens
        self.max_depth = max_depth
        self.debug = debug
        self.current = 0
        self.depth = 0
        self.errors: List[ParseError] = []

    def parse(self) -> Tuple[List[Stmt], List[ParseError]]:
        """program → declaration* EOF"""
        statements: List[Stmt] = []
        while not self._is_at_end():
            try:
                statement = self._declaration()
            except RecursionError:
                # max_depth set above what the Python stack can hold
                self.errors.append(ParseError("Too much nesting.", self._peek()))
                self._synchronize()
                continue
            if statement is not None:
                statements.append(statement)
                if self.debug:
                    print(f"Parsed statement: {type(statement).__name__}", file=sys.stderr)
        return statements, self.errors

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _declaration(self) -> Optional[Stmt]:
        """declaration → var-decl | statement

        Recovery point: a malformed statement is reported and skipped.
        """
        try:
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError as error:
            self.errors.append(error)
            self._synchronize()
            return None

    def _var_declaration(self) -> Stmt:
        """var-decl → "var" IDENTIFIER ( "=" expression )? ";" """
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")

        if self._match(TokenType.EQUAL):
            initializer = self._expression()
        else:
            initializer = Literal(make_keyword_token(TokenType.NIL, name.line))

        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Declaration(name, initializer)

    def _statement(self) -> Stmt:
        with self._nested():
            if self._match(TokenType.PRINT):
                return self._print_statement()
            if self._match(TokenType.LEFT_BRACE):
                return Block(tuple(self._block()))
            if self._match(TokenType.IF):
                return self._if_statement()
            if self._match(TokenType.WHILE):
                return self._while_statement()
            if self._match(TokenType.FOR):
                return self._for_statement()
            return self._expression_statement()

    def _print_statement(self) -> Stmt:
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def _expression_statement(self) -> Stmt:
        expression = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStatement(expression)

    def _block(self) -> List[Stmt]:
        """block → "{" declaration* "}" """
        statements: List[Stmt] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            statement = self._declaration()
            if statement is not None:
                statements.append(statement)

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _if_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._statement()

        return If(condition, then_branch, else_branch)

    def _while_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self._statement()
        return While(condition, body)

    def _for_statement(self) -> Stmt:
        """for-stmt → "for" "(" ( var-decl | expr-stmt | ";" ) expression? ";" expression? ")" statement

        Desugared here into while and block nodes.
        """
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        if increment is not None:
            body = Block((body, ExpressionStatement(increment)))
        if condition is None:
            condition = Literal(make_keyword_token(TokenType.TRUE, keyword.line))
        loop: Stmt = While(condition, body)
        if initializer is not None:
            loop = Block((initializer, loop))
        return loop

    # ------------------------------------------------------------------
    # Expressions, loosest to tightest
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        """assignment → IDENTIFIER "=" assignment | logic_or"""
        expr = self._logic_or()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            with self._nested():
                value = self._assignment()

            if isinstance(expr, Variable):
                return Assignment(expr.name, value)

            raise ParseError("Invalid assignment target.", equals)

        return expr

    def _logic_or(self) -> Expr:
        expr = self._logic_and()
        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def _logic_and(self) -> Expr:
        expr = self._equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._equality()
            expr = Logical(expr, operator, right)
        return expr

    def _equality(self) -> Expr:
        return self._binary_level(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> Expr:
        return self._binary_level(
            self._addition,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
        )

    def _addition(self) -> Expr:
        return self._binary_level(self._multiplication, TokenType.MINUS, TokenType.PLUS)

    def _multiplication(self) -> Expr:
        return self._binary_level(self._unary, TokenType.SLASH, TokenType.STAR)

    def _binary_level(self, operand, *operators: TokenType) -> Expr:
        """Left-associative loop shared by every binary precedence level"""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(expr, operator, right)
        return expr

    def _unary(self) -> Expr:
        """unary → ( "!" | "-" ) unary | primary"""
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            with self._nested():
                right = self._unary()
            return Unary(operator, right)
        return self._primary()

    def _primary(self) -> Expr:
        """primary → NUMBER | STRING | "true" | "false" | "nil" | IDENTIFIER | "(" expression ")" """
        if self._match(*LITERAL_TOKENS):
            return Literal(self._previous())

        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())

        if self._match(TokenType.LEFT_PAREN):
            with self._nested():
                expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise ParseError("Expect expression.", self._peek())

    # ------------------------------------------------------------------
    # Cursor helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise ParseError("Too much nesting.", self._peek())
            yield
        finally:
            self.depth -= 1

    def _synchronize(self) -> None:
        """Skip to the next statement boundary"""
        self._advance()
        while not self._is_at_end():
            if self._previous().kind is TokenType.SEMICOLON:
                return
            if self._peek().kind in STATEMENT_KEYWORDS:
                return
            self._advance()

    def _match(self, *kinds: TokenType) -> bool:
        for kind in kinds:
            if self._check(kind):
                self._advance()
                return True
        return False

    def _consume(self, kind: TokenType, message: str) -> Token:
        if self._check(kind):
            return self._advance()
        raise ParseError(message, self._peek())

    def _check(self, kind: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().kind is kind

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().kind is TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]


def parse(tokens: List[Token], max_depth: int = MAX_NESTING_DEPTH) -> Tuple[List[Stmt], List[ParseError]]:
    """Parse tokens into (statements, parse_errors)"""
    return Parser(tokens, max_depth).parse()
