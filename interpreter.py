"""
Expression and condition evaluation for the step language.

Expressions are evaluated strictly left to right: the only grouping is
parentheses, so ``3 + 4 * 2`` is ``(3 + 4) * 2``. Values are integers or
strings; every operator checks the types of its two operands.
"""
import operator
from typing import Mapping, Union

from constants import COMPARISON_OPERATORS
from lexer import Lexer, LexerError, Token, TokenType, OPERATOR_TYPES
from symbol_table import DataType, Environment, Value, format_value, type_of


class InterpreterError(RuntimeError):
    pass


def _is_int(value) -> bool:
    return type_of(value) == DataType.INTEGER


# ── Binary operators (left-to-right, no precedence) ──

def _add(left: Value, right: Value) -> Value:
    if not _is_int(left) or not _is_int(right):
        return format_value(left) + format_value(right)
    return left + right


def _subtract(left: Value, right: Value) -> Value:
    if not (_is_int(left) and _is_int(right)):
        raise InterpreterError("Subtraction only works with numbers")
    return left - right


def _multiply(left: Value, right: Value) -> Value:
    if not (_is_int(left) and _is_int(right)):
        raise InterpreterError("Multiplication only works with numbers")
    return left * right


def _divide(left: Value, right: Value) -> Value:
    if not (_is_int(left) and _is_int(right)):
        raise InterpreterError("Division only works with numbers")
    if right == 0:
        raise InterpreterError("Division by zero")
    # Floors toward negative infinity: -7 / 2 is -4
    return left // right


def _modulo(left: Value, right: Value) -> Value:
    if not (_is_int(left) and _is_int(right)):
        raise InterpreterError("Modulo only works with numbers")
    if right == 0:
        raise InterpreterError("Modulo by zero")
    return left % right


_BINARY_OPS = {
    TokenType.PLUS: _add,
    TokenType.MINUS: _subtract,
    TokenType.MULTIPLY: _multiply,
    TokenType.DIVIDE: _divide,
    TokenType.MODULO: _modulo,
}

_COMPARATORS = {
    "<=": operator.le,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
}


def _as_environment(env) -> Environment:
    if isinstance(env, Environment):
        return env
    return Environment(env or {})


def strip_outer_parens(text: str) -> str:
    """Remove one pair of parentheses wrapping the whole text, if present."""
    text = text.strip()
    if not (text.startswith("(") and text.endswith(")")):
        return text
    depth = 0
    in_string = False
    for idx, ch in enumerate(text):
        if ch == '"' and (idx == 0 or text[idx - 1] != '\\'):
            in_string = not in_string
        if in_string:
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            # The opening paren closes before the end: it does not wrap everything
            if depth == 0 and idx != len(text) - 1:
                return text
    return text[1:-1].strip()


class Evaluator:
    """Evaluates expressions and conditions against one variable environment."""

    def __init__(self, env: Union[Environment, Mapping[str, Value], None] = None):
        self.env = _as_environment(env)
        self.tokens = []
        self.pos = 0

    # ── Token cursor ──

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TokenType.EOF:
            self.pos += 1
        return tok

    def check(self, *token_types: TokenType) -> bool:
        return self.current.type in token_types

    # ── Expressions ──

    def evaluate_expression(self, expr: str) -> Value:
        try:
            self.tokens = Lexer(expr.strip()).tokenize()
        except LexerError as e:
            raise InterpreterError(str(e)) from e
        self.pos = 0

        if self.check(TokenType.EOF):
            raise InterpreterError("Empty expression")
        result = self._sequence()
        if self.check(TokenType.RPAREN):
            raise InterpreterError(f"Unbalanced parentheses in expression: {expr.strip()}")
        if not self.check(TokenType.EOF):
            raise InterpreterError(
                f"Unsupported operator in complex expression: {self.current.value}")
        return result

    def _sequence(self) -> Value:
        """operand (operator operand)*, folded left to right."""
        result = self._operand()
        while self.current.type in OPERATOR_TYPES:
            op = self.advance()
            if self.check(TokenType.EOF, TokenType.RPAREN):
                raise InterpreterError(f"Invalid expression: dangling {op.value} operator")
            right = self._operand()
            result = _BINARY_OPS[op.type](result, right)
        return result

    def _operand(self) -> Value:
        tok = self.advance()
        if tok.type == TokenType.INTEGER:
            return tok.value
        if tok.type == TokenType.STRING:
            return tok.value
        if tok.type == TokenType.IDENTIFIER:
            return self._lookup(tok.value)
        if tok.type == TokenType.LPAREN:
            return self._group()
        if tok.type == TokenType.MINUS:
            value = self._operand()
            if not _is_int(value):
                raise InterpreterError("Negation only works with numbers")
            return -value
        if tok.type == TokenType.EOF:
            raise InterpreterError("Invalid expression: missing operand")
        raise InterpreterError(f"Invalid expression: unexpected {tok.value!r}")

    def _group(self) -> Value:
        """Evaluate a parenthesized sub-expression down to a single value."""
        if self.check(TokenType.RPAREN):
            raise InterpreterError("Empty parentheses in expression")
        value = self._sequence()
        if not self.check(TokenType.RPAREN):
            raise InterpreterError("Unbalanced parentheses in expression")
        self.advance()
        return value

    def _lookup(self, name: str) -> Value:
        if not self.env.is_bound(name):
            raise InterpreterError(f"Unknown token or variable: {name}")
        return self.env.get(name)

    # ── Conditions ──

    def evaluate_condition(self, condition: str) -> bool:
        text = strip_outer_parens(condition)
        for op in COMPARISON_OPERATORS:
            if op not in text:
                continue
            parts = text.split(op)
            if len(parts) != 2:
                continue
            left = self.evaluate_expression(parts[0])
            right = self.evaluate_expression(parts[1])
            if not (_is_int(left) and _is_int(right)):
                raise InterpreterError("Comparison operators only work with integers")
            return _COMPARATORS[op](left, right)
        raise InterpreterError(f"Invalid condition: {condition.strip()}")


def evaluate_expression(expr: str, env=None) -> Value:
    return Evaluator(env).evaluate_expression(expr)


def evaluate_condition(condition: str, env=None) -> bool:
    return Evaluator(env).evaluate_condition(condition)
