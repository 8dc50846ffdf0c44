"""
Test configuration for Lox interpreter tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import Interpreter
from parsing import parse
from scanning import scan


class Session:
  """An interpreter whose output and diagnostics are captured in lists"""

  def __init__(self, **options):
    self.output = []
    self.errors = []
    self.interpreter = Interpreter(output=self.output.append, error_output=self.errors.append, **options)

  def run(self, source):
    return self.interpreter.run_source(source)

  def lookup(self, name):
    return self.interpreter.lookup(name)


@pytest.fixture
def session():
  """Provide a fresh capturing interpreter session for each test"""
  return Session()


@pytest.fixture
def parse_source():
  """Scan and parse source text, failing the test on lexical errors"""
  def _parse(source):
    tokens, lex_errors = scan(source)
    assert lex_errors == []
    return parse(tokens)
  return _parse
