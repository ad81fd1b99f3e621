import pytest
from interpreter import (
    Evaluator, InterpreterError, evaluate_condition, evaluate_expression, strip_outer_parens,
)
from symbol_table import Environment


# ── Arithmetic: strictly left to right ──

def test_no_operator_precedence():
    assert evaluate_expression("3 + 4 * 2") == 14


def test_parentheses_group():
    assert evaluate_expression("(3 + 4) * 2") == 14
    assert evaluate_expression("3 + (4 * 2)") == 11


def test_nested_parentheses():
    assert evaluate_expression("((1 + 2) * (3 + 1)) - 2") == 10


def test_division_floors():
    assert evaluate_expression("7 / 2") == 3
    assert evaluate_expression("-7 / 2") == -4


def test_modulo_follows_python():
    assert evaluate_expression("7 % 3") == 1
    assert evaluate_expression("-7 % 3") == 2


def test_unary_minus():
    assert evaluate_expression("-5") == -5
    assert evaluate_expression("3 - -2") == 5


def test_variables():
    env = {"X": 5, "Name": "Ann"}
    assert evaluate_expression("X * X", env) == 25
    assert evaluate_expression('"Hi " + Name', env) == "Hi Ann"


# ── Strings ──

def test_string_concatenation_with_numbers():
    assert evaluate_expression('"a" + 1') == "a1"
    assert evaluate_expression('1 + "a"') == "1a"
    assert evaluate_expression('"Total: " + 2 + 3') == "Total: 23"


def test_numbers_added_before_string():
    assert evaluate_expression('2 + 3 + " apples"') == "5 apples"


@pytest.mark.parametrize("expr, message", [
    ('"a" - 1', "Subtraction only works with numbers"),
    ('"a" * 2', "Multiplication only works with numbers"),
    ('"a" / 2', "Division only works with numbers"),
    ('"a" % 2', "Modulo only works with numbers"),
    ('-"a"', "Negation only works with numbers"),
])
def test_arithmetic_on_strings_fails(expr, message):
    with pytest.raises(InterpreterError, match=message):
        evaluate_expression(expr)


# ── Failures ──

def test_division_by_zero_is_runtime_error():
    with pytest.raises(RuntimeError, match="Division by zero"):
        evaluate_expression("5 / 0")


def test_modulo_by_zero_is_runtime_error():
    with pytest.raises(RuntimeError, match="Modulo by zero"):
        evaluate_expression("5 % (3 - 3)")


def test_unknown_variable():
    with pytest.raises(InterpreterError, match="Unknown token or variable: Y"):
        evaluate_expression("Y + 1", {"X": 1})


def test_empty_expression():
    with pytest.raises(InterpreterError, match="Empty expression"):
        evaluate_expression("   ")


def test_dangling_operator():
    with pytest.raises(InterpreterError, match="dangling \\+"):
        evaluate_expression("3 +")


@pytest.mark.parametrize("expr", ["(3 + 4", "3 + 4)"])
def test_unbalanced_parentheses(expr):
    with pytest.raises(InterpreterError, match="Unbalanced parentheses"):
        evaluate_expression(expr)


def test_two_operands_without_operator():
    with pytest.raises(InterpreterError, match="Unsupported operator in complex expression: 4"):
        evaluate_expression("3 4")


def test_lexer_error_becomes_interpreter_error():
    with pytest.raises(InterpreterError, match="Unterminated string literal"):
        evaluate_expression('"abc')


# ── Conditions ──

@pytest.mark.parametrize("condition, expected", [
    ("(X > 0)", True),
    ("X < 3", False),
    ("X <= 3", True),
    ("X >= 4", False),
    ("X == 3", True),
    ("X != 3", False),
    ("(X + 1) == 4", True),
    ("(X * 2 > 5)", True),
])
def test_conditions(condition, expected):
    assert evaluate_condition(condition, {"X": 3}) is expected


def test_string_comparison_fails():
    with pytest.raises(InterpreterError, match="Comparison operators only work with integers"):
        evaluate_condition('"a" == "a"')


def test_condition_without_operator():
    with pytest.raises(InterpreterError, match="Invalid condition"):
        evaluate_condition("(X)", {"X": 1})


def test_strip_outer_parens():
    assert strip_outer_parens("((X > 1))") == "(X > 1)"
    assert strip_outer_parens("(A) + (B)") == "(A) + (B)"
    assert strip_outer_parens('("(" + X)') == '"(" + X'
    assert strip_outer_parens("X > 1") == "X > 1"


def test_evaluator_does_not_mutate_environment():
    env = Environment({"X": 2})
    evaluator = Evaluator(env)
    assert evaluator.evaluate_expression("X + 1") == 3
    assert env == {"X": 2}
    assert evaluator.env is env
