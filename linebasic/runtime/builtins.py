"""
Built-in BASIC functions.

Each entry records how many arguments the function accepts. Numeric
functions reject strings and string functions reject numbers with a
"Type mismatch" EvaluationError.
"""

import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..errors import EvaluationError
from .values import Value, require_number, require_string, str_dollar


@dataclass(frozen=True)
class Builtin:
    """A built-in function and its accepted argument count range."""
    name: str
    min_args: int
    max_args: int
    function: Callable[[List[Value]], Value]

    def accepts(self, count: int) -> bool:
        return self.min_args <= count <= self.max_args


class Builtins:
    """The built-in function table, bound to a random number source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()
        self._table: Dict[str, Builtin] = {}

        self._register('INT', 1, 1, self._int)
        self._register('RND', 0, 1, self._rnd)
        self._register('SGN', 1, 1, self._sgn)
        self._register('ABS', 1, 1, self._abs)
        self._register('EXP', 1, 1, self._math('EXP', math.exp))
        self._register('LOG', 1, 1, self._log)
        self._register('SIN', 1, 1, self._math('SIN', math.sin))
        self._register('COS', 1, 1, self._math('COS', math.cos))
        self._register('TAN', 1, 1, self._math('TAN', math.tan))
        self._register('ATN', 1, 1, self._math('ATN', math.atan))
        self._register('SQR', 1, 1, self._sqr)
        self._register('STR$', 1, 1, self._str)
        self._register('LEN', 1, 1, self._len)
        self._register('LEFT$', 2, 2, self._left)
        self._register('RIGHT$', 2, 2, self._right)
        self._register('MID$', 2, 3, self._mid)

    def _register(self, name: str, min_args: int, max_args: int, function):
        self._table[name] = Builtin(name, min_args, max_args, function)

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._table

    def names(self) -> List[str]:
        return sorted(self._table)

    def call(self, name: str, args: List[Value]) -> Value:
        """Call a built-in by name after checking the argument count."""
        builtin = self._table.get(name.upper())
        if builtin is None:
            raise EvaluationError(f"Undefined function {name}")
        if not builtin.accepts(len(args)):
            if builtin.min_args == builtin.max_args:
                expected = str(builtin.min_args)
            else:
                expected = f"{builtin.min_args} to {builtin.max_args}"
            raise EvaluationError(
                f"{builtin.name} expects {expected} argument(s), got {len(args)}")
        return builtin.function(args)

    # ------------------------------------------------------------------
    # Numeric functions
    # ------------------------------------------------------------------

    def _int(self, args):
        value = require_number(args[0], 'INT')
        try:
            return math.floor(value)
        except OverflowError:
            raise EvaluationError("Overflow in INT") from None
        except ValueError:
            raise EvaluationError(f"Illegal argument to INT: {value}") from None

    def _rnd(self, args):
        scale = require_number(args[0], 'RND') if args else 0
        if scale <= 0:
            return self.rng.random()
        return self.rng.random() * scale

    def _sgn(self, args):
        value = require_number(args[0], 'SGN')
        return 1 if value > 0 else (-1 if value < 0 else 0)

    def _abs(self, args):
        return abs(require_number(args[0], 'ABS'))

    def _math(self, name: str, function):
        def apply(args):
            try:
                return function(require_number(args[0], name))
            except OverflowError:
                raise EvaluationError(f"Overflow in {name}") from None
            except ValueError:
                raise EvaluationError(f"Illegal argument to {name}: {args[0]}") from None
        return apply

    def _log(self, args):
        value = require_number(args[0], 'LOG')
        if value <= 0:
            raise EvaluationError(f"LOG of non-positive number: {value}")
        return math.log(value)

    def _sqr(self, args):
        value = require_number(args[0], 'SQR')
        if value < 0:
            raise EvaluationError(f"SQR of negative number: {value}")
        return math.sqrt(value)

    # ------------------------------------------------------------------
    # String functions
    # ------------------------------------------------------------------

    def _str(self, args):
        return str_dollar(require_number(args[0], 'STR$'))

    def _len(self, args):
        return len(require_string(args[0], 'LEN'))

    def _left(self, args):
        text = require_string(args[0], 'LEFT$')
        count = _clamp(int(require_number(args[1], 'LEFT$')), 0, len(text))
        return text[:count]

    def _right(self, args):
        text = require_string(args[0], 'RIGHT$')
        count = _clamp(int(require_number(args[1], 'RIGHT$')), 0, len(text))
        return text[len(text) - count:]

    def _mid(self, args):
        text = require_string(args[0], 'MID$')
        start = _clamp(int(require_number(args[1], 'MID$')) - 1, 0, len(text))
        if len(args) == 2:
            return text[start:]
        count = _clamp(int(require_number(args[2], 'MID$')), 0, len(text) - start)
        return text[start:start + count]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))
