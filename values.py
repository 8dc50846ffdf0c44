"""
Lox runtime values
One closed variant type with every coercion, arithmetic and comparison rule kept here
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Union

from error_handling import LoxRuntimeError


class ValueKind(Enum):
  STRING = "String"
  NUMBER = "Number"
  BOOLEAN = "Boolean"
  NIL = "Nil"


Payload = Union[str, float, bool, None]


@dataclass(frozen=True, eq=False)
class Value:
  """An immutable runtime value: a kind tag plus its Python payload"""
  kind: ValueKind
  payload: Payload = None

  def __eq__(self, other: Any) -> bool:
    if not isinstance(other, Value):
      return NotImplemented
    return values_equal(self, other)

  def __hash__(self) -> int:
    return hash((self.kind, self.payload))

  def __repr__(self) -> str:
    if self.kind is ValueKind.NIL:
      return "Nil"
    return f"{self.kind.value}({self.payload!r})"

  def __str__(self) -> str:
    return stringify(self)


NIL = Value(ValueKind.NIL)
TRUE = Value(ValueKind.BOOLEAN, True)
FALSE = Value(ValueKind.BOOLEAN, False)


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def make_number(number: float) -> Value:
  return Value(ValueKind.NUMBER, float(number))


def make_string(text: str) -> Value:
  return Value(ValueKind.STRING, text)


def make_boolean(flag: bool) -> Value:
  return TRUE if flag else FALSE


# ============================================================================
# PREDICATES AND FORMATTING
# ============================================================================

def is_number(value: Value) -> bool:
  return value.kind is ValueKind.NUMBER


def is_string(value: Value) -> bool:
  return value.kind is ValueKind.STRING


def is_truthy(value: Value) -> bool:
  """Only false and nil are falsy"""
  if value.kind is ValueKind.NIL:
    return False
  if value.kind is ValueKind.BOOLEAN:
    return bool(value.payload)
  return True


def values_equal(left: Value, right: Value) -> bool:
  """Structural equality; values of different kinds are never equal"""
  if left.kind is not right.kind:
    return False
  if left.kind is ValueKind.NIL:
    return True
  return left.payload == right.payload


def format_number(number: float) -> str:
  if math.isnan(number):
    return "NaN"
  if math.isinf(number):
    return "inf" if number > 0 else "-inf"
  # Shortest round-trip digits, always written positionally
  text = format(Decimal(repr(number)), "f")
  if text.endswith(".0"):
    text = text[:-2]
  return text


def stringify(value: Value) -> str:
  """Render a value the way print shows it"""
  if value.kind is ValueKind.NIL:
    return "nil"
  if value.kind is ValueKind.BOOLEAN:
    return "true" if value.payload else "false"
  if value.kind is ValueKind.NUMBER:
    return format_number(value.payload)
  return value.payload


# ============================================================================
# OPERATORS
# ============================================================================

def _divide(left: float, right: float) -> float:
  # Python raises on a zero divisor; Lox follows IEEE-754 instead
  if right == 0:
    if left == 0 or math.isnan(left):
      return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)
  return left / right


ARITHMETIC: Dict[str, Callable[[float, float], float]] = {
  '-': lambda left, right: left - right,
  '*': lambda left, right: left * right,
  '/': _divide,
}

COMPARISON: Dict[str, Callable[[float, float], bool]] = {
  '>': lambda left, right: left > right,
  '>=': lambda left, right: left >= right,
  '<': lambda left, right: left < right,
  '<=': lambda left, right: left <= right,
}


def check_number_operand(operator, operand: Value) -> None:
  if not is_number(operand):
    raise LoxRuntimeError("Operand must be a number.", operator)


def check_number_operands(operator, left: Value, right: Value) -> None:
  if not (is_number(left) and is_number(right)):
    raise LoxRuntimeError("Operands must be numbers.", operator)


def negate(operator, operand: Value) -> Value:
  """Unary minus"""
  check_number_operand(operator, operand)
  return make_number(-operand.payload)


def logical_not(operand: Value) -> Value:
  return make_boolean(not is_truthy(operand))


def add(operator, left: Value, right: Value) -> Value:
  """Overloaded +: numeric addition or string concatenation"""
  if is_number(left) and is_number(right):
    return make_number(left.payload + right.payload)
  if is_string(left) and is_string(right):
    return make_string(left.payload + right.payload)
  raise LoxRuntimeError("Operands must be two numbers or two strings.", operator)


def apply_binary(operator, left: Value, right: Value) -> Value:
  """Apply a binary operator token to two already-evaluated operands"""
  symbol = operator.lexeme

  if symbol == '+':
    return add(operator, left, right)
  if symbol in ARITHMETIC:
    check_number_operands(operator, left, right)
    return make_number(ARITHMETIC[symbol](left.payload, right.payload))
  if symbol in COMPARISON:
    check_number_operands(operator, left, right)
    return make_boolean(COMPARISON[symbol](left.payload, right.payload))
  if symbol == '==':
    return make_boolean(values_equal(left, right))
  if symbol == '!=':
    return make_boolean(not values_equal(left, right))

  raise LoxRuntimeError(f"Unknown binary operator '{symbol}'.", operator)
