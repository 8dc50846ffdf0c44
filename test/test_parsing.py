"""
Parser tests for the Lox language
Tests precedence, desugaring, error recovery and the nesting limit
"""

import pytest
from error_handling import ParseError
from parsing import MAX_NESTING_DEPTH, Parser
from scanning import scan
from syntax import Block, Declaration, Literal, Print, While, node_line, pretty_print_ast, pretty_print_program
from tokens import TokenType
from values import NIL


class TestExpressionParsing:
  """Test precedence and associativity through the prefix printer"""

  @pytest.mark.parametrize("source, expected", [
      ("1 + 2 * 3;", "(; (+ 1 (* 2 3)))"),
      ("(1 + 2) * 3;", "(; (* (group (+ 1 2)) 3))"),
      ("1 - 2 - 3;", "(; (- (- 1 2) 3))"),
      ("8 / 4 / 2;", "(; (/ (/ 8 4) 2))"),
      ("-1 + 2;", "(; (+ (- 1) 2))"),
      ("!!true;", "(; (! (! true)))"),
      ("1 < 2 == 3 >= 4;", "(; (== (< 1 2) (>= 3 4)))"),
      ("a or b and c;", "(; (or a (and b c)))"),
      ("a and b or c;", "(; (or (and a b) c))"),
      ("a = b = 3;", "(; (= a (= b 3)))"),
      ("x = 1 + 2;", "(; (= x (+ 1 2)))"),
      ('"s" + nil;', '(; (+ "s" nil))'),
  ])
  def test_precedence(self, parse_source, source, expected):
    statements, errors = parse_source(source)
    assert errors == []
    assert pretty_print_program(statements) == expected

  def test_logical_operators_build_logical_nodes(self, parse_source):
    statements, _ = parse_source("a or b;")
    expression = statements[0].expression
    assert type(expression).__name__ == "Logical"
    assert expression.operator.kind is TokenType.OR


class TestStatementParsing:
  """Test statement forms"""

  def test_print(self, parse_source):
    statements, _ = parse_source("print 1;")
    assert isinstance(statements[0], Print)

  def test_var_without_initializer_is_nil(self, parse_source):
    statements, errors = parse_source("var x;")
    assert errors == []
    declaration = statements[0]
    assert isinstance(declaration, Declaration)
    assert isinstance(declaration.initializer, Literal)
    assert declaration.initializer.value == NIL
    assert pretty_print_ast(declaration) == "(var x nil)"

  def test_block(self, parse_source):
    statements, _ = parse_source("{ var a = 1; print a; } {}")
    assert pretty_print_program(statements) == "(block (var a 1) (print a))\n(block)"

  def test_if_else(self, parse_source):
    statements, _ = parse_source("if (a) print 1; else print 2;")
    assert pretty_print_ast(statements[0]) == "(if-else a (print 1) (print 2))"

  def test_else_binds_to_nearest_if(self, parse_source):
    statements, _ = parse_source("if (a) if (b) print 1; else print 2;")
    assert pretty_print_ast(statements[0]) == "(if a (if-else b (print 1) (print 2)))"

  def test_while(self, parse_source):
    statements, _ = parse_source("while (x < 3) x = x + 1;")
    assert pretty_print_ast(statements[0]) == "(while (< x 3) (; (= x (+ x 1))))"

  def test_statements_keep_source_order(self, parse_source):
    statements, _ = parse_source("print 1; print 2; print 3;")
    assert pretty_print_program(statements) == "(print 1)\n(print 2)\n(print 3)"

  def test_node_line_is_leftmost_token(self, parse_source):
    statements, _ = parse_source("\n\n(\n1 + 2);\n{ }\nif (x) print 1;")
    assert [node_line(statement) for statement in statements] == [4, 0, 6]


class TestForDesugaring:
  """The for loop never reaches the evaluator as its own node"""

  def test_full_for_loop(self, parse_source):
    statements, errors = parse_source("for (var i = 0; i < 3; i = i + 1) print i;")
    assert errors == []
    assert pretty_print_ast(statements[0]) == (
        "(block (var i 0) (while (< i 3) (block (print i) (; (= i (+ i 1))))))"
    )

  def test_empty_clauses_loop_forever(self, parse_source):
    statements, _ = parse_source("for (;;) print 1;")
    loop = statements[0]
    assert isinstance(loop, While)
    assert loop.condition.token.kind is TokenType.TRUE
    assert isinstance(loop.body, Print)

  def test_expression_initializer(self, parse_source):
    statements, _ = parse_source("for (i = 0; i < 2;) print i;")
    assert pretty_print_ast(statements[0]) == "(block (; (= i 0)) (while (< i 2) (print i)))"

  def test_increment_without_initializer(self, parse_source):
    statements, _ = parse_source("for (; x; x = nil) {}")
    loop = statements[0]
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    assert pretty_print_ast(loop.body) == "(block (block) (; (= x nil)))"


class TestParseErrors:
  """Test diagnostics and synchronize-and-continue recovery"""

  def parse_errors(self, parse_source, source):
    _, errors = parse_source(source)
    return [str(error) for error in errors]

  def test_missing_semicolon_at_end(self, parse_source):
    assert self.parse_errors(parse_source, "print 1") == ["[line 1] Error at end: Expect ';' after value."]

  def test_missing_semicolon_after_expression(self, parse_source):
    assert self.parse_errors(parse_source, "1 + 2\nprint 3;") == [
        "[line 2] Error at 'print': Expect ';' after expression.",
    ]

  def test_invalid_assignment_target(self, parse_source):
    assert self.parse_errors(parse_source, "1 = 2;") == ["[line 1] Error at '=': Invalid assignment target."]
    assert self.parse_errors(parse_source, "a + b = 2;") == ["[line 1] Error at '=': Invalid assignment target."]

  def test_missing_variable_name(self, parse_source):
    assert self.parse_errors(parse_source, "var 1 = 2;") == ["[line 1] Error at '1': Expect variable name."]

  def test_unterminated_block(self, parse_source):
    assert self.parse_errors(parse_source, "{ print 1;") == ["[line 1] Error at end: Expect '}' after block."]

  def test_unmatched_paren(self, parse_source):
    assert self.parse_errors(parse_source, "(1;") == ["[line 1] Error at ';': Expect ')' after expression."]

  @pytest.mark.parametrize("source, message", [
      ("if 1) print 1;", "Expect '(' after 'if'."),
      ("if (1 print 1;", "Expect ')' after if condition."),
      ("while 1) print 1;", "Expect '(' after 'while'."),
      ("while (1 print 1;", "Expect ')' after condition."),
      ("for var i = 0;;) print 1;", "Expect '(' after 'for'."),
      ("for (;; print 1;", "Expect expression."),
      ("for (; 1 print 1;", "Expect ';' after loop condition."),
      ("for (;; 1 print 1;", "Expect ')' after for clauses."),
      ("var a = 1", "Expect ';' after variable declaration."),
  ])
  def test_control_flow_errors(self, parse_source, source, message):
    _, errors = parse_source(source)
    assert errors[0].message == message

  def test_reserved_keyword_is_not_an_expression(self, parse_source):
    statements, errors = parse_source("class; print 1;")
    assert [error.message for error in errors] == ["Expect expression."]
    assert pretty_print_program(statements) == "(print 1)"

  def test_every_bad_statement_is_reported(self, parse_source):
    statements, errors = parse_source("print ;\nvar x = ;\nprint 3;\n1 = 2;")
    assert [(error.line, error.message) for error in errors] == [
        (1, "Expect expression."),
        (2, "Expect expression."),
        (4, "Invalid assignment target."),
    ]
    assert pretty_print_program(statements) == "(print 3)"

  def test_recovery_inside_block_keeps_rest_of_block(self, parse_source):
    statements, errors = parse_source("{ print ; print 2; }")
    assert len(errors) == 1
    assert pretty_print_program(statements) == "(block (print 2))"

  def test_errors_are_parse_errors_with_tokens(self, parse_source):
    _, errors = parse_source("print )")
    assert isinstance(errors[0], ParseError)
    assert errors[0].token.kind is TokenType.RIGHT_PAREN


class TestNestingLimit:
  """Deep input is rejected with a diagnostic instead of exhausting the stack"""

  def test_default_limit(self):
    assert MAX_NESTING_DEPTH == 64

  def test_deep_grouping(self, parse_source):
    source = "(" * 100 + "1" + ")" * 100 + ";"
    statements, errors = parse_source(source)
    assert statements == []
    assert [error.message for error in errors] == ["Too much nesting."]

  def test_moderate_grouping_is_fine(self, parse_source):
    source = "(" * 20 + "1" + ")" * 20 + ";"
    _, errors = parse_source(source)
    assert errors == []

  @pytest.mark.parametrize("source", [
      "!" * 200 + "true;",
      "a = " * 200 + "1;",
      "{" * 200 + "}" * 200,
      "if (true) " * 200 + "print 1;",
  ])
  def test_deep_chains(self, parse_source, source):
    _, errors = parse_source(source)
    assert "Too much nesting." in [error.message for error in errors]

  def test_custom_limit(self):
    tokens, _ = scan("{ { { print 1; } } }")
    _, errors = Parser(tokens, max_depth=3).parse()
    assert [error.message for error in errors] == ["Too much nesting."]

    _, errors = Parser(tokens, max_depth=4).parse()
    assert errors == []

  def test_limit_above_stack_capacity_is_still_a_diagnostic(self):
    source = "print " + "(" * 3000 + "1" + ")" * 3000 + ";\nprint 2;"
    tokens, _ = scan(source)
    statements, errors = Parser(tokens, max_depth=100000).parse()
    assert [error.message for error in errors] == ["Too much nesting."]
    assert pretty_print_program(statements) == "(print 2)"

  def test_parser_requires_eof(self):
    with pytest.raises(ValueError):
      Parser([])
