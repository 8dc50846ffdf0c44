"""
Lox Programming Language - Main Entry Point
Runs a script file or an interactive prompt on top of one interpreter session
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import ErrorHandler
from interpreter import Interpreter, create_debug_interpreter, create_interpreter
from parsing import MAX_NESTING_DEPTH
from syntax import pretty_print_program
from tokens import KEYWORDS
from values import stringify


VERSION = "0.1.0"

EXIT_OK = 0
EXIT_UNREADABLE = 1
EXIT_SYNTAX_ERROR = 65
EXIT_RUNTIME_ERROR = 70

PROMPT = ">> "

REPL_COMMANDS = [":tokens", ":parse", ":env", ":reset", ":help", ":quit"]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='lox',
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.lox    # Scan file and show tokens
  %(prog)s --parse script.lox     # Parse file and show AST
  %(prog)s --debug script.lox     # Run with evaluation trace on stderr
  %(prog)s --max-depth 16 x.lox   # Reject programs nested deeper than 16
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace every pipeline stage to stderr'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=MAX_NESTING_DEPTH,
      metavar='N',
      help=f'Maximum nesting depth accepted by the parser (default: {MAX_NESTING_DEPTH})'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=f'Lox v{VERSION}'
  )

  return parser


def make_session(debug: bool = False, max_depth: int = MAX_NESTING_DEPTH, filename: str = "<input>") -> Interpreter:
  if debug:
    return create_debug_interpreter(max_depth=max_depth, filename=filename)
  return create_interpreter(max_depth=max_depth, filename=filename)


def read_script(script_path: str) -> Optional[str]:
  """Read a script file, printing a diagnostic and returning None on failure"""
  try:
    return Path(script_path).read_text(encoding='utf-8')
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
    print(f"  Hint: Make sure you have read permissions for this file", file=sys.stderr)
  except IsADirectoryError:
    print(f"Error: '{script_path}' is a directory", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  return None


def dump_tokens(source: str, session: Interpreter) -> int:
  """Print one token per line, then any lexical errors"""
  tokens, errors = session.scan(source)
  for token in tokens:
    print(f"{token.line:4d}:{token.column:<3d} {token}")

  report = ErrorHandler(source, session.filename)
  for error in errors:
    report(error)
  return EXIT_SYNTAX_ERROR if errors else EXIT_OK


def dump_ast(source: str, session: Interpreter) -> int:
  """Print the parsed statements in prefix form, then any diagnostics"""
  tokens, lex_errors = session.scan(source)
  statements, parse_errors = session.parse(tokens)
  if statements:
    print(pretty_print_program(statements))

  report = ErrorHandler(source, session.filename)
  for error in [*lex_errors, *parse_errors]:
    report(error)
  return EXIT_SYNTAX_ERROR if lex_errors or parse_errors else EXIT_OK


def run_source(source: str, session: Interpreter) -> int:
  result = session.run_source(source)
  if result.had_error:
    return EXIT_SYNTAX_ERROR
  if result.had_runtime_error:
    return EXIT_RUNTIME_ERROR
  return EXIT_OK


def run_script_file(script_path: str, debug: bool = False, max_depth: int = MAX_NESTING_DEPTH,
                    tokens: bool = False, parse: bool = False) -> int:
  """Run (or dump) a Lox script file and return the process exit code"""
  source = read_script(script_path)
  if source is None:
    return EXIT_UNREADABLE

  session = make_session(debug, max_depth, filename=script_path)
  if debug:
    print(f"Running {script_path}...", file=sys.stderr)

  if tokens:
    return dump_tokens(source, session)
  if parse:
    return dump_ast(source, session)
  return run_source(source, session)


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # Setup history file
  history_file = os.path.expanduser("~/.lox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + REPL_COMMANDS

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError:
      pass

  atexit.register(save_history)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <src>     - Show scanned tokens")
  print("  :parse <src>      - Show parsed AST")
  print("  :env              - Show global variables")
  print("  :reset            - Forget every variable")
  print("  :help             - Show this help")
  print("  :quit             - Exit REPL")
  print()
  print("Language features:")
  print("  var x = 5;                  - Variable declaration")
  print("  x = x + 1;                  - Assignment")
  print("  print \"a\" + \"b\";            - Output")
  print("  { var y = x; }              - Block scope")
  print("  if (x > 3) print x;         - Conditionals")
  print("  for (var i = 0; i < 3; i = i + 1) print i;")


def show_environment(session: Interpreter) -> None:
  bindings = session.globals()
  print("Current environment:")
  if not bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in bindings.items():
    val_str = stringify(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def handle_repl_command(line: str, session: Interpreter) -> bool:
  """Run one ':' command. Returns False when the session should end"""
  command, _, argument = line.partition(' ')

  if command == ":quit":
    return False
  if command == ":tokens":
    dump_tokens(argument, session)
  elif command == ":parse":
    dump_ast(argument, session)
  elif command == ":env":
    show_environment(session)
  elif command == ":reset":
    session.reset()
    print("Environment cleared")
  elif command == ":help":
    print_repl_help()
  else:
    print(f"Unknown command '{command}'. Type ':help' for commands")
  return True


def evaluate_line(line: str, session: Interpreter) -> None:
  """Run one line against the persistent session and echo its value"""
  result = session.run_source(line)
  if result.had_error or result.had_runtime_error:
    return
  if result.value is not None:
    print(f"=> {stringify(result.value)}")


def run_interactive_mode(debug: bool = False, max_depth: int = MAX_NESTING_DEPTH) -> None:
  """Run Lox in interactive mode with one session for all lines"""
  print(f"Lox v{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()
  session = make_session(debug, max_depth, filename="<stdin>")

  while True:
    try:
      line = input(PROMPT).strip()
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if not line:
      continue

    if line.startswith(":"):
      if not handle_repl_command(line, session):
        break
      continue

    evaluate_line(line, session)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Lox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.max_depth < 1:
    arg_parser.error("--max-depth must be at least 1")

  if args.script:
    code = run_script_file(args.script, debug=args.debug, max_depth=args.max_depth,
                           tokens=args.tokens, parse=args.parse)
    if code != EXIT_OK:
      sys.exit(code)
    return

  run_interactive_mode(debug=args.debug, max_depth=args.max_depth)


if __name__ == "__main__":
  main()
