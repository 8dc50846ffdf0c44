"""
Lox abstract syntax tree
Expression and statement node shapes, plus a debug printer
"""

from dataclasses import dataclass, fields
from typing import List, Optional, Tuple, Union

from tokens import Token
from values import Value


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Expr:
    """Base class for expression nodes"""


@dataclass(frozen=True)
class Literal(Expr):
    token: Token

    @property
    def value(self) -> Value:
        return self.token.literal


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Assignment(Expr):
    name: Token
    value: Expr


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Stmt:
    """Base class for statement nodes"""


@dataclass(frozen=True)
class ExpressionStatement(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Declaration(Stmt):
    name: Token
    initializer: Expr


@dataclass(frozen=True)
class Block(Stmt):
    statements: Tuple[Stmt, ...]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt


Node = Union[Expr, Stmt]


def node_line(node: Node) -> int:
    """Line of the leftmost token under node, or 0 if it holds none"""
    # Explicit stack, no Python recursion
    pending = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, Token):
            return item.line
        if isinstance(item, tuple):
            pending.extend(reversed(item))
        elif isinstance(item, (Expr, Stmt)):
            pending.extend(reversed([getattr(item, field.name) for field in fields(item)]))
    return 0


# ============================================================================
# DEBUG PRINTING
# ============================================================================

def _parenthesize(name: str, *parts: Node) -> str:
    return f"({name} {' '.join(pretty_print_ast(part) for part in parts)})"


def pretty_print_ast(node: Node) -> str:
    """Render a node in prefix form, e.g. (+ 1 (* 2 3))"""
    if isinstance(node, Literal):
        return node.token.lexeme
    if isinstance(node, Grouping):
        return _parenthesize("group", node.expression)
    if isinstance(node, Unary):
        return _parenthesize(node.operator.lexeme, node.right)
    if isinstance(node, (Binary, Logical)):
        return _parenthesize(node.operator.lexeme, node.left, node.right)
    if isinstance(node, Variable):
        return node.name.lexeme
    if isinstance(node, Assignment):
        return f"(= {node.name.lexeme} {pretty_print_ast(node.value)})"

    if isinstance(node, ExpressionStatement):
        return _parenthesize(";", node.expression)
    if isinstance(node, Print):
        return _parenthesize("print", node.expression)
    if isinstance(node, Declaration):
        return f"(var {node.name.lexeme} {pretty_print_ast(node.initializer)})"
    if isinstance(node, Block):
        if not node.statements:
            return "(block)"
        return _parenthesize("block", *node.statements)
    if isinstance(node, If):
        if node.else_branch is None:
            return _parenthesize("if", node.condition, node.then_branch)
        return _parenthesize("if-else", node.condition, node.then_branch, node.else_branch)
    if isinstance(node, While):
        return _parenthesize("while", node.condition, node.body)

    raise TypeError(f"Unknown node type: {type(node).__name__}")


def pretty_print_program(statements: List[Stmt]) -> str:
    return '\n'.join(pretty_print_ast(statement) for statement in statements)
