"""
Lox environments
An arena of scopes addressed by index; each scope stores its parent's index
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from error_handling import LoxRuntimeError
from tokens import Token
from values import Value


GLOBAL_SCOPE = 0


class Scope:
  """One frame of name bindings"""
  __slots__ = ("bindings", "parent")

  def __init__(self, parent: Optional[int] = None):
    self.bindings: Dict[str, Value] = {}
    self.parent = parent

  def __repr__(self) -> str:
    return f"Scope(parent={self.parent}, bindings={self.bindings})"


class Environment:
  """Scope-chain variable storage for one interpreter session.

  Scopes are created per block execution and released when the block
  finishes, so they are always released in LIFO order. The global scope
  lives at index 0 for the whole session.
  """

  def __init__(self):
    self.scopes: List[Scope] = [Scope()]

  @property
  def depth(self) -> int:
    """Number of live scopes, including the global one"""
    return len(self.scopes)

  # ==================== SCOPE LIFETIME ====================

  def enclose(self, parent: int) -> int:
    """Create a child scope of parent and return its index"""
    self._check_scope(parent)
    self.scopes.append(Scope(parent))
    return len(self.scopes) - 1

  def release(self, scope: int) -> None:
    if scope == GLOBAL_SCOPE:
      raise ValueError("The global scope cannot be released")
    if scope != len(self.scopes) - 1:
      raise ValueError(f"Scope {scope} released out of order (innermost is {len(self.scopes) - 1})")
    self.scopes.pop()

  @contextmanager
  def enclosed(self, parent: int) -> Iterator[int]:
    """Child scope that is released on every exit path"""
    scope = self.enclose(parent)
    try:
      yield scope
    finally:
      self.release(scope)

  # ==================== BINDINGS ====================

  def define(self, scope: int, name: str, value: Value) -> None:
    """Bind in exactly this scope, shadowing any outer binding"""
    self._check_scope(scope)
    self.scopes[scope].bindings[name] = value

  def get(self, scope: int, name: Token) -> Value:
    resolved = self._resolve(scope, name.lexeme)
    if resolved is None:
      raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)
    return self.scopes[resolved].bindings[name.lexeme]

  def assign(self, scope: int, name: Token, value: Value) -> None:
    """Overwrite the nearest existing binding; never creates one"""
    resolved = self._resolve(scope, name.lexeme)
    if resolved is None:
      raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)
    self.scopes[resolved].bindings[name.lexeme] = value

  def bindings(self, scope: int = GLOBAL_SCOPE) -> Dict[str, Value]:
    """Snapshot of the bindings held directly by scope"""
    self._check_scope(scope)
    return dict(self.scopes[scope].bindings)

  def _resolve(self, scope: Optional[int], name: str) -> Optional[int]:
    """Index of the innermost scope on the chain that binds name"""
    self._check_scope(scope)
    while scope is not None:
      if name in self.scopes[scope].bindings:
        return scope
      scope = self.scopes[scope].parent
    return None

  def _check_scope(self, scope: int) -> None:
    if not 0 <= scope < len(self.scopes):
      raise ValueError(f"Scope {scope} is not live")

  def __repr__(self) -> str:
    return f"Environment(depth={self.depth})"
