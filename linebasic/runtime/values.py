"""
BASIC value rules.

Values are Python int, float or str. Arithmetic that lands on a whole number
(other than division) is stored as int, which changes how it prints.
Comparisons and boolean operators produce int 0/1.
"""

import math
from typing import Union

from ..errors import EvaluationError

Number = Union[int, float]
Value = Union[int, float, str]


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize(value: Number) -> Number:
    """Turn an integral, finite float into an int."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def is_true(value: Value) -> bool:
    """0 and the empty string are false; everything else is true."""
    if isinstance(value, str):
        return value != ""
    return value != 0


def default_for(name: str) -> Value:
    """Initial value of a variable or array element: "" for $ names, else 0."""
    return "" if name.endswith('$') else 0


def require_number(value: Value, context: str = "") -> Number:
    if not is_number(value):
        where = f" in {context}" if context else ""
        raise EvaluationError(f"Type mismatch{where}: expected a number, got {value!r}")
    return value


def require_string(value: Value, context: str = "") -> str:
    if not isinstance(value, str):
        where = f" in {context}" if context else ""
        raise EvaluationError(f"Type mismatch{where}: expected a string, got {value!r}")
    return value


def format_number(value: Number) -> str:
    """Render a number without padding; whole numbers have no decimal point."""
    value = normalize(value)
    if isinstance(value, int):
        return str(value)
    return repr(value)


def str_dollar(value: Number) -> str:
    """STR$: like format_number, with a leading space for non-negative values."""
    text = format_number(value)
    return " " + text if value >= 0 else text


def print_form(value: Value) -> str:
    """How PRINT shows a value: strings as-is, numbers padded with spaces."""
    if isinstance(value, str):
        return value
    return str_dollar(value) + " "


def as_text(value: Value) -> str:
    """Operand of a string concatenation."""
    return value if isinstance(value, str) else format_number(value)


def arithmetic(op: str, left: Value, right: Value) -> Value:
    """Apply + - * / ^ with BASIC typing."""
    if op == '+' and (isinstance(left, str) or isinstance(right, str)):
        return as_text(left) + as_text(right)

    left = require_number(left, f"'{op}'")
    right = require_number(right, f"'{op}'")

    if op == '/':
        if right == 0:
            return 0.0
        return float(left) / right

    try:
        if op == '+':
            result = left + right
        elif op == '-':
            result = left - right
        elif op == '*':
            result = left * right
        elif op == '^':
            result = math.pow(left, right)
        else:
            raise EvaluationError(f"Unknown operator: {op}")
    except OverflowError:
        raise EvaluationError(f"Overflow in '{op}'") from None
    except (ValueError, ZeroDivisionError):
        raise EvaluationError(f"Illegal operands for '{op}': {left}, {right}") from None

    return normalize(result)


def negate(value: Value) -> Number:
    return normalize(-require_number(value, "unary '-'"))


def compare(op: str, left: Value, right: Value) -> int:
    """Compare numbers numerically and strings lexicographically; returns 1 or 0."""
    if isinstance(left, str) != isinstance(right, str):
        raise EvaluationError(f"Type mismatch in '{op}': {left!r}, {right!r}")

    if op == '=':
        result = left == right
    elif op == '<>':
        result = left != right
    elif op == '<':
        result = left < right
    elif op == '>':
        result = left > right
    elif op == '<=':
        result = left <= right
    elif op == '>=':
        result = left >= right
    else:
        raise EvaluationError(f"Unknown comparison: {op}")
    return 1 if result else 0
