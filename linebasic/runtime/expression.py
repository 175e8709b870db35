"""
Expression evaluator - Tokenizes and evaluates BASIC expressions.

Expressions are evaluated while they are parsed, by recursive descent.
Precedence, lowest first:

    OR
    AND
    = <> < > <= >=
    + -
    * /
    ^            (left-associative: 2^3^2 = 64)
    unary + -    (binds tighter than ^: -2^2 = 4)
    primary      number, "string", (expr), name, name(args)
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from typing import List, Optional, Tuple

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import EvaluationError
from .builtins import Builtins
from .symbols import SymbolTable, SymbolType
from .values import (
    Value, arithmetic, compare, default_for, is_true, negate, normalize, require_number,
)


class TokenType(Enum):
    """Expression token types."""
    NUMBER = auto()      # 12, 1.5, 2E3
    STRING = auto()      # "text"
    IDENT = auto()       # A, B1, C$, LEFT$, FNA
    AND = auto()
    OR = auto()
    OP = auto()          # + - * / ^ = <> < > <= >=
    LPAREN = auto()      # ( or [
    RPAREN = auto()      # ) or ]
    COMMA = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single expression token."""
    type: TokenType
    value: object
    column: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.column})"


_WORD_OPERATOR = re.compile(r'(AND|OR)(?![A-Z0-9$])', re.IGNORECASE)
_IDENT = re.compile(r'[A-Z][A-Z0-9]*\$?', re.IGNORECASE)
_NUMBER = re.compile(r'(\d+\.?\d*|\.\d+)(E[+-]?\d+)?', re.IGNORECASE)
_SCALAR_NAME = re.compile(r'^[A-Z][0-9]?\$?$')

COMPARISON_OPERATORS = ('=', '<>', '<', '>', '<=', '>=')


class ExpressionLexer:
    """Tokenizes one expression."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0

    def error(self, message: str):
        raise EvaluationError(f"{message} at column {self.pos + 1} in: {self.source}")

    def tokenize(self) -> List[Token]:
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens

    def next_token(self) -> Token:
        source = self.source
        while self.pos < len(source) and source[self.pos].isspace():
            self.pos += 1

        start = self.pos
        if start >= len(source):
            return Token(TokenType.EOF, None, start)
        ch = source[start]

        if ch == '"':
            end = source.find('"', start + 1)
            if end == -1:
                self.error("Unterminated string")
            self.pos = end + 1
            return Token(TokenType.STRING, source[start + 1:end], start)

        if ch.isdigit() or (ch == '.' and source[start + 1:start + 2].isdigit()):
            match = _NUMBER.match(source, start)
            text = match.group(0)
            self.pos = match.end()
            if self.pos < len(source) and source[self.pos] == '.':
                self.error(f"Invalid number: {text}.")
            if '.' in text:
                return Token(TokenType.NUMBER, float(text), start)
            if 'E' in text.upper():
                # 2E3 is the integer 2000; 2E-3 and overflowing 1E400 stay float
                return Token(TokenType.NUMBER, normalize(float(text)), start)
            return Token(TokenType.NUMBER, int(text), start)

        if ch.isalpha():
            match = _WORD_OPERATOR.match(source, start)
            if match:
                self.pos = match.end()
                word = match.group(1).upper()
                return Token(TokenType.AND if word == 'AND' else TokenType.OR, word, start)
            match = _IDENT.match(source, start)
            if match:
                self.pos = match.end()
                return Token(TokenType.IDENT, match.group(0).upper(), start)

        if ch in '<>':
            pair = source[start:start + 2]
            if pair in ('<=', '>=', '<>'):
                self.pos += 2
                return Token(TokenType.OP, pair, start)
            self.pos += 1
            return Token(TokenType.OP, ch, start)

        self.pos += 1
        if ch in '+-*/^=':
            return Token(TokenType.OP, ch, start)
        if ch in '([':
            return Token(TokenType.LPAREN, '(', start)
        if ch in ')]':
            return Token(TokenType.RPAREN, ')', start)
        if ch == ',':
            return Token(TokenType.COMMA, ',', start)

        self.pos = start
        self.error(f"Unexpected character {ch!r}")


@lru_cache(maxsize=4096)
def _tokens(text: str) -> Tuple[Token, ...]:
    return tuple(ExpressionLexer(text).tokenize())


def tokenize(text: str) -> List[Token]:
    """Token listing for an expression, EOF included. Useful for diagnostics."""
    return list(_tokens(text))


class _Evaluation:
    """Recursive-descent pass over one expression's tokens."""

    def __init__(self, tokens: Tuple[Token, ...], evaluator: 'ExpressionEvaluator', source: str):
        self.tokens = tokens
        self.evaluator = evaluator
        self.source = source
        self.pos = 0
        self.current_token = tokens[0]

    def error(self, message: str):
        raise EvaluationError(f"{message} in: {self.source}")

    def advance(self) -> Token:
        token = self.current_token
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
            self.current_token = self.tokens[self.pos]
        return token

    def expect(self, token_type: TokenType) -> Token:
        if self.current_token.type != token_type:
            self.error(f"Expected {token_type.name}, got {self._describe(self.current_token)}")
        return self.advance()

    def at_operator(self, *operators: str) -> bool:
        token = self.current_token
        return token.type == TokenType.OP and token.value in operators

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of expression"
        return repr(token.value)

    def evaluate(self) -> Value:
        if self.current_token.type == TokenType.EOF:
            self.error("Missing expression")
        value = self.parse_or()
        if self.current_token.type != TokenType.EOF:
            self.error(f"Unexpected {self._describe(self.current_token)}")
        return value

    def parse_or(self) -> Value:
        left = self.parse_and()
        while self.current_token.type == TokenType.OR:
            self.advance()
            right = self.parse_and()
            left = 1 if is_true(left) or is_true(right) else 0
        return left

    def parse_and(self) -> Value:
        left = self.parse_comparison()
        while self.current_token.type == TokenType.AND:
            self.advance()
            right = self.parse_comparison()
            left = 1 if is_true(left) and is_true(right) else 0
        return left

    def parse_comparison(self) -> Value:
        left = self.parse_additive()
        while self.at_operator(*COMPARISON_OPERATORS):
            op = self.advance().value
            left = compare(op, left, self.parse_additive())
        return left

    def parse_additive(self) -> Value:
        left = self.parse_multiplicative()
        while self.at_operator('+', '-'):
            op = self.advance().value
            left = arithmetic(op, left, self.parse_multiplicative())
        return left

    def parse_multiplicative(self) -> Value:
        left = self.parse_power()
        while self.at_operator('*', '/'):
            op = self.advance().value
            left = arithmetic(op, left, self.parse_power())
        return left

    def parse_power(self) -> Value:
        left = self.parse_unary()
        while self.at_operator('^'):
            self.advance()
            left = arithmetic('^', left, self.parse_unary())
        return left

    def parse_unary(self) -> Value:
        if self.at_operator('-'):
            self.advance()
            return negate(self.parse_unary())
        if self.at_operator('+'):
            self.advance()
            return require_number(self.parse_unary(), "unary '+'")
        return self.parse_primary()

    def parse_primary(self) -> Value:
        token = self.current_token

        if token.type in (TokenType.NUMBER, TokenType.STRING):
            self.advance()
            return token.value

        if token.type == TokenType.LPAREN:
            self.advance()
            value = self.parse_or()
            self.expect(TokenType.RPAREN)
            return value

        if token.type == TokenType.IDENT:
            self.advance()
            if self.current_token.type == TokenType.LPAREN:
                return self.evaluator.call(token.value, self.parse_arguments())
            return self.evaluator.variable(token.value)

        self.error(f"Unexpected {self._describe(token)}")

    def parse_arguments(self) -> List[Value]:
        self.expect(TokenType.LPAREN)
        args = []
        if self.current_token.type == TokenType.RPAREN:
            self.advance()
            return args
        args.append(self.parse_or())
        while self.current_token.type == TokenType.COMMA:
            self.advance()
            args.append(self.parse_or())
        self.expect(TokenType.RPAREN)
        return args


class ExpressionEvaluator:
    """
    Evaluates expression text against a symbol table.

    Args:
        symbols: Where variables, arrays and DEF functions are looked up
        dialect: Supplies the array subscript offset
        rng: Random source for RND; ignored when builtins is given
        builtins: Built-in function table to share with an outer evaluator
    """

    def __init__(self, symbols: SymbolTable, dialect: Optional[Dialect] = None,
                 rng=None, builtins: Optional[Builtins] = None):
        self.symbols = symbols
        self.dialect = dialect or DEFAULT_DIALECT
        self.builtins = builtins if builtins is not None else Builtins(rng)

    def evaluate(self, text: str) -> Value:
        """Evaluate an expression and return an int, float or str."""
        return _Evaluation(_tokens(text), self, text.strip()).evaluate()

    def evaluate_condition(self, text: str) -> bool:
        return is_true(self.evaluate(text))

    def variable(self, name: str) -> Value:
        """Value of a bare name."""
        if name in self.builtins:
            return self.builtins.call(name, [])
        if not _SCALAR_NAME.match(name):
            raise EvaluationError(f"Invalid variable name: {name}")
        value = self.symbols.get(name)
        if value is None:
            raise EvaluationError(f"Undefined variable: {name}")
        return value

    def call(self, name: str, args: List[Value]) -> Value:
        """name(args): a DEF function, a built-in, or an array element."""
        definition = self.symbols.get(name, SymbolType.FUNCTION)
        if definition is not None:
            return self.call_user_function(definition, args)
        if name in self.builtins:
            return self.builtins.call(name, args)
        if name.startswith('FN'):
            raise EvaluationError(f"Undefined function {name}")
        return self.array_element(name, args)

    def call_user_function(self, definition, args: List[Value]) -> Value:
        """Evaluate a DEF FN body with its parameter bound in a private scope."""
        if len(args) != 1:
            raise EvaluationError(
                f"Function {definition.name} expects 1 argument, got {len(args)}")
        scope = self.symbols.nested_scope()
        scope.put(definition.parameter, args[0])
        inner = ExpressionEvaluator(scope, self.dialect, builtins=self.builtins)
        try:
            return inner.evaluate(definition.expression)
        except RecursionError:
            raise EvaluationError(f"Function {definition.name} nests too deeply") from None

    def array_element(self, name: str, indices: List[Value]) -> Value:
        """
        Read an array element.

        An undimensioned array or an out-of-range subscript reads as the
        default value for the name.
        """
        default = default_for(name)
        element = self.symbols.get(name, SymbolType.ARRAY)
        if element is None:
            return default

        for index in indices:
            if not isinstance(element, list):
                raise EvaluationError(f"Too many subscripts for array {name}")
            position = int(require_number(index, f"subscript of {name}")) - self.dialect.array_offset
            if not 0 <= position < len(element):
                return default
            element = element[position]

        if isinstance(element, list):
            raise EvaluationError(f"Too few subscripts for array {name}")
        return element
