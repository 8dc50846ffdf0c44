"""
Error taxonomy and diagnostic formatting for the Lox interpreter
Lex, parse and runtime errors are all line-tagged and reported through an injectable sink
"""

import sys
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from tokens import Token


# ============================================================================
# ERROR CLASSES
# ============================================================================

class LoxError(Exception):
    """Base class for every diagnostic the interpreter produces"""
    kind = "Error"

    def __init__(self, message: str, line: int = 0, column: int = 0, where: str = ""):
        self.message = message
        self.line = line
        self.column = column
        self.where = where
        super().__init__(message)

    def __str__(self) -> str:
        location = f" {self.where}" if self.where else ""
        return f"[line {self.line}] {self.kind}{location}: {self.message}"


class LexError(LoxError):
    """Unrecognized character, unterminated string or number"""

    def __init__(self, message: str, line: int, column: int = 0, lexeme: str = ""):
        self.lexeme = lexeme
        super().__init__(message, line, column)


def _where(token: Optional["Token"]) -> str:
    if token is None:
        return ""
    # Imported lazily: tokens -> values -> error_handling
    from tokens import TokenType
    if token.kind is TokenType.EOF:
        return "at end"
    return f"at '{token.lexeme}'"


class ParseError(LoxError):
    """Missing expected token, invalid assignment target, unterminated block, too much nesting"""

    def __init__(self, message: str, token: "Token"):
        self.token = token
        super().__init__(message, token.line, token.column, _where(token))


class LoxRuntimeError(LoxError):
    """Operator type mismatch, undefined variable or exhausted evaluation depth"""
    kind = "Runtime error"

    def __init__(self, message: str, token: Optional["Token"] = None, line: int = 0):
        self.token = token
        if token is not None:
            line = token.line
        column = token.column if token is not None else 0
        super().__init__(message, line, column)

    def __str__(self) -> str:
        if not self.line:
            return f"{self.kind}: {self.message}"
        return f"[line {self.line}] {self.kind}: {self.message}"


ErrorSink = Callable[[LoxError], None]


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int = 0, context_lines: int = 0) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    if not 1 <= line_num <= len(lines):
        return ""

    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1 and col_num > 0:  # Error line
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def format_error(error: LoxError, source_text: Optional[str] = None, filename: str = "") -> str:
    """Format a diagnostic, optionally followed by the offending source line"""
    prefix = f"{filename}:" if filename and error.line else ""
    result = f"{prefix}{error}"
    if source_text and error.line:
        context = get_context_lines(source_text, error.line, error.column)
        if context:
            result += "\n" + context
    return result


# ============================================================================
# REPORTING
# ============================================================================

class ErrorHandler:
    """Formats and reports diagnostics for one piece of source text"""

    def __init__(self, source_text: str = "", filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def format(self, error: LoxError) -> str:
        return format_error(error, self.source_text, self.filename)

    def report(self, error: LoxError) -> None:
        """Error sink: print the diagnostic with its source line"""
        print(self.format(error), file=sys.stderr)

    def __call__(self, error: LoxError) -> None:
        self.report(error)

