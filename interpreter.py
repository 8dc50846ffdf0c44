"""
Lox Interpreter - tree-walking evaluation
Statements run against an explicit Environment arena; all session state lives
in an Interpreter value instead of module globals
"""

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from environment import GLOBAL_SCOPE, Environment
from error_handling import ErrorHandler, ErrorSink, LexError, LoxError, LoxRuntimeError, ParseError
from parsing import MAX_NESTING_DEPTH, Parser
from scanning import Scanner
from syntax import (
  Assignment, Binary, Block, Declaration, Expr, ExpressionStatement, Grouping, If,
  Literal, Logical, Print, Stmt, Unary, Variable, While, node_line,
)
from tokens import Token, TokenType
from values import NIL, Value, apply_binary, is_truthy, logical_not, negate, stringify


OutputSink = Callable[[str], None]
StepHook = Callable[[], None]


# ============================================================================
# EVALUATOR
# ============================================================================

class Evaluator:
  """Executes statements and evaluates expressions against an Environment"""

  def __init__(self, environment: Environment, output: OutputSink = print,
               step_hook: Optional[StepHook] = None, debug: bool = False):
    self.environment = environment
    self.output = output
    self.step_hook = step_hook
    self.debug = debug

  def evaluate(self, expression: Expr, scope: int = GLOBAL_SCOPE) -> Value:
    if self.debug:
      print(f"Evaluating: {type(expression).__name__}", file=sys.stderr)

    if isinstance(expression, Literal):
      return self._eval_literal(expression, scope)
    elif isinstance(expression, Grouping):
      return self._eval_grouping(expression, scope)
    elif isinstance(expression, Unary):
      return self._eval_unary(expression, scope)
    elif isinstance(expression, Binary):
      return self._eval_binary(expression, scope)
    elif isinstance(expression, Logical):
      return self._eval_logical(expression, scope)
    elif isinstance(expression, Variable):
      return self._eval_variable(expression, scope)
    elif isinstance(expression, Assignment):
      return self._eval_assignment(expression, scope)
    else:
      raise LoxRuntimeError(f"Cannot evaluate {type(expression).__name__} node.")

  def execute(self, statement: Stmt, scope: int = GLOBAL_SCOPE) -> Optional[Value]:
    """Run one statement; only expression statements produce a value"""
    if self.debug:
      print(f"Executing: {type(statement).__name__}", file=sys.stderr)

    if isinstance(statement, ExpressionStatement):
      return self._exec_expression(statement, scope)
    elif isinstance(statement, Print):
      self._exec_print(statement, scope)
    elif isinstance(statement, Declaration):
      self._exec_declaration(statement, scope)
    elif isinstance(statement, Block):
      self._exec_block(statement, scope)
    elif isinstance(statement, If):
      self._exec_if(statement, scope)
    elif isinstance(statement, While):
      self._exec_while(statement, scope)
    else:
      raise LoxRuntimeError(f"Cannot execute {type(statement).__name__} node.")
    return None

  # ==================== EXPRESSIONS ====================

  def _eval_literal(self, expr: Literal, scope: int) -> Value:
    return expr.value

  def _eval_grouping(self, expr: Grouping, scope: int) -> Value:
    return self.evaluate(expr.expression, scope)

  def _eval_unary(self, expr: Unary, scope: int) -> Value:
    right = self.evaluate(expr.right, scope)

    if expr.operator.kind is TokenType.MINUS:
      return negate(expr.operator, right)
    if expr.operator.kind is TokenType.BANG:
      return logical_not(right)
    raise LoxRuntimeError(f"Unknown unary operator '{expr.operator.lexeme}'.", expr.operator)

  def _eval_binary(self, expr: Binary, scope: int) -> Value:
    # Left operand first; the order is observable through assignments
    left = self.evaluate(expr.left, scope)
    right = self.evaluate(expr.right, scope)
    return apply_binary(expr.operator, left, right)

  def _eval_logical(self, expr: Logical, scope: int) -> Value:
    left = self.evaluate(expr.left, scope)

    if expr.operator.kind is TokenType.OR:
      if is_truthy(left):
        return left
    elif expr.operator.kind is TokenType.AND:
      if not is_truthy(left):
        return left
    else:
      raise LoxRuntimeError(f"Unknown logical operator '{expr.operator.lexeme}'.", expr.operator)

    return self.evaluate(expr.right, scope)

  def _eval_variable(self, expr: Variable, scope: int) -> Value:
    return self.environment.get(scope, expr.name)

  def _eval_assignment(self, expr: Assignment, scope: int) -> Value:
    value = self.evaluate(expr.value, scope)
    self.environment.assign(scope, expr.name, value)
    return value

  # ==================== STATEMENTS ====================

  def _exec_expression(self, stmt: ExpressionStatement, scope: int) -> Value:
    return self.evaluate(stmt.expression, scope)

  def _exec_print(self, stmt: Print, scope: int) -> None:
    value = self.evaluate(stmt.expression, scope)
    self.output(stringify(value))

  def _exec_declaration(self, stmt: Declaration, scope: int) -> None:
    value = self.evaluate(stmt.initializer, scope)
    self.environment.define(scope, stmt.name.lexeme, value)

  def _exec_block(self, stmt: Block, scope: int) -> None:
    with self.environment.enclosed(scope) as inner:
      for statement in stmt.statements:
        if self.step_hook is not None:
          self.step_hook()
        self.execute(statement, inner)

  def _exec_if(self, stmt: If, scope: int) -> None:
    if is_truthy(self.evaluate(stmt.condition, scope)):
      self.execute(stmt.then_branch, scope)
    elif stmt.else_branch is not None:
      self.execute(stmt.else_branch, scope)

  def _exec_while(self, stmt: While, scope: int) -> None:
    while True:
      if self.step_hook is not None:
        self.step_hook()
      if not is_truthy(self.evaluate(stmt.condition, scope)):
        break
      self.execute(stmt.body, scope)


# ============================================================================
# PROGRAM EXECUTION
# ============================================================================

def execute_program(evaluator: Evaluator, statements: List[Stmt]) -> Tuple[Optional[Value], List[LoxRuntimeError]]:
  """
  Execute top-level statements in order in the global scope.
  Returns (value of the last expression statement, runtime errors).
  The first runtime error stops the run.
  """
  value = None
  try:
    for statement in statements:
      result = evaluator.execute(statement, GLOBAL_SCOPE)
      if isinstance(statement, ExpressionStatement):
        value = result
  except LoxRuntimeError as error:
    return value, [error]
  except RecursionError:
    return value, [LoxRuntimeError("Maximum evaluation depth exceeded.", line=node_line(statement))]

  return value, []


def run(statements: List[Stmt], environment: Environment, output: OutputSink = print,
        step_hook: Optional[StepHook] = None, debug: bool = False) -> List[LoxRuntimeError]:
  """Run parsed statements against an environment and return any runtime errors"""
  evaluator = Evaluator(environment, output, step_hook, debug)
  _, errors = execute_program(evaluator, statements)
  return errors


# ============================================================================
# SESSION
# ============================================================================

@dataclass
class RunResult:
  """Outcome of running one piece of source text"""
  lex_errors: List[LexError] = field(default_factory=list)
  parse_errors: List[ParseError] = field(default_factory=list)
  runtime_errors: List[LoxRuntimeError] = field(default_factory=list)
  statements: List[Stmt] = field(default_factory=list)
  value: Optional[Value] = None

  @property
  def had_error(self) -> bool:
    """True when lexing or parsing failed (evaluation was skipped)"""
    return bool(self.lex_errors or self.parse_errors)

  @property
  def had_runtime_error(self) -> bool:
    return bool(self.runtime_errors)

  @property
  def errors(self) -> List[LoxError]:
    return [*self.lex_errors, *self.parse_errors, *self.runtime_errors]


class Interpreter:
  """An interpreter session owning the global Environment.

  The same session can run many pieces of source, one after another. This is
  how the REPL keeps variables between lines.
  """

  def __init__(self, output: Optional[OutputSink] = None, error_output: Optional[ErrorSink] = None,
               debug: bool = False, max_depth: int = MAX_NESTING_DEPTH,
               step_hook: Optional[StepHook] = None, filename: str = "<input>"):
    self.output = output or print
    self.error_output = error_output
    self.debug = debug
    self.max_depth = max_depth
    self.step_hook = step_hook
    self.filename = filename
    self.scanner = Scanner(filename, debug)
    self.reset()

  def reset(self) -> None:
    """Drop every binding and start from an empty global scope"""
    self.environment = Environment()
    self.evaluator = Evaluator(self.environment, self.output, self.step_hook, self.debug)

  def scan(self, source: str) -> Tuple[List[Token], List[LexError]]:
    return self.scanner.scan(source)

  def parse(self, tokens: List[Token]) -> Tuple[List[Stmt], List[ParseError]]:
    return Parser(tokens, self.max_depth, self.debug).parse()

  def run_source(self, source: str) -> RunResult:
    """Scan, parse and run source text, reporting every diagnostic"""
    report = self.error_output or ErrorHandler(source, self.filename)

    tokens, lex_errors = self.scan(source)
    statements, parse_errors = self.parse(tokens)
    result = RunResult(lex_errors, parse_errors, statements=statements)

    if self.debug:
      print(f"Parsed {len(statements)} statements", file=sys.stderr)

    for error in result.errors:
      report(error)
    if result.had_error:
      return result

    result.value, result.runtime_errors = execute_program(self.evaluator, statements)
    for error in result.runtime_errors:
      report(error)
    return result

  def globals(self) -> Dict[str, Value]:
    return self.environment.bindings(GLOBAL_SCOPE)

  def lookup(self, name: str) -> Value:
    """Value of a global variable, or NIL when it is not defined"""
    return self.globals().get(name, NIL)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, **options) -> Interpreter:
  """Factory function returning an interpreter session"""
  return Interpreter(debug=debug, **options)


def create_debug_interpreter(**options) -> Interpreter:
  """Factory function returning a tracing interpreter session"""
  return create_interpreter(debug=True, **options)
