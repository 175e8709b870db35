"""
Test infrastructure for linebasic.

This module provides:
- run_listing(): Load a listing and run it with captured input and output
- AssertProgram: Fluent assertions over a program run
- eval_and_assert(): Evaluate an expression and check the result
- eval_and_catch(): Evaluate an expression and expect an exception
"""

import io
import random
from dataclasses import dataclass
from typing import Optional, Type

import pytest

from linebasic.dialect import Dialect
from linebasic.errors import EvaluationError
from linebasic.parser import tokenize_program
from linebasic.runtime import (
    Executor, ExpressionEvaluator, RunResult, RunStatus, SymbolTable,
)


@dataclass
class ProgramRun:
    """Everything a finished (or suspended) run left behind."""
    executor: Executor
    result: RunResult
    output: str


def make_executor(lines, dialect: Optional[Dialect] = None, input_text: str = "",
                  seed: int = 1, **kwargs) -> Executor:
    """Load a listing into an Executor wired to in-memory streams."""
    program = tokenize_program(lines)
    return Executor(program, dialect, stdin=io.StringIO(input_text),
                    stdout=io.StringIO(), rng=random.Random(seed), **kwargs)


def run_listing(lines, dialect: Optional[Dialect] = None, input_text: str = "",
                seed: int = 1) -> ProgramRun:
    """Load and run a listing to completion."""
    executor = make_executor(lines, dialect, input_text, seed)
    result = executor.run_program()
    return ProgramRun(executor, result, executor.stdout.getvalue())


class ProgramAssertion:
    """
    Fluent assertion helper for BASIC programs.

    Usage:
        AssertProgram('10 A=5', '20 PRINT A').outputs(" 5")
        AssertProgram('10 INPUT A$').with_input("hi").has_value("A$", "HI")
    """

    def __init__(self, *lines: str):
        self.lines = list(lines)
        self.dialect: Optional[Dialect] = None
        self.input_lines = []
        self._run: Optional[ProgramRun] = None

    def with_input(self, *lines: str) -> 'ProgramAssertion':
        self.input_lines.extend(lines)
        return self

    def with_dialect(self, dialect: Dialect) -> 'ProgramAssertion':
        self.dialect = dialect
        return self

    def zero_based(self) -> 'ProgramAssertion':
        return self.with_dialect(Dialect(array_offset=0))

    def run(self) -> ProgramRun:
        if self._run is None:
            input_text = ''.join(line + '\n' for line in self.input_lines)
            self._run = run_listing(self.lines, self.dialect, input_text)
        return self._run

    def outputs(self, expected: str) -> 'ProgramAssertion':
        """Assert that the program prints exactly this."""
        actual = self.run().output
        # Only strip trailing whitespace if expected doesn't end with whitespace
        if not expected.endswith(('\n', ' ')):
            actual = actual.rstrip()
        assert actual == expected, f"Expected output {expected!r}, got {actual!r}"
        return self

    def has_value(self, name: str, expected) -> 'ProgramAssertion':
        """Assert a scalar's final value, including int versus float."""
        actual = self.run().executor.get_symbol(name)
        if isinstance(expected, float):
            assert isinstance(actual, float), f"{name}: expected a float, got {actual!r}"
            assert actual == pytest.approx(expected), f"{name}: expected {expected}, got {actual}"
        else:
            assert actual == expected and type(actual) is type(expected), \
                f"{name}: expected {expected!r}, got {actual!r}"
        return self

    def has_values(self, values: dict) -> 'ProgramAssertion':
        for name, expected in values.items():
            self.has_value(name, expected)
        return self

    def ends_with(self, status: RunStatus) -> 'ProgramAssertion':
        actual = self.run().result.status
        assert actual is status, f"Expected {status.name}, got {actual.name}"
        return self

    def raises(self, exception_type: Type[Exception], match: Optional[str] = None):
        """Assert that loading or running the program raises; returns the exception."""
        with pytest.raises(exception_type, match=match) as info:
            self.run()
        return info.value


AssertProgram = ProgramAssertion


def evaluate(expression: str, symbols: Optional[SymbolTable] = None,
             dialect: Optional[Dialect] = None):
    """Evaluate an expression against a (fresh, by default) symbol table."""
    evaluator = ExpressionEvaluator(symbols or SymbolTable(), dialect, rng=random.Random(1))
    return evaluator.evaluate(expression)


def eval_and_assert(expression: str, expected, symbols: Optional[SymbolTable] = None):
    """
    Evaluate an expression and assert the result equals expected.

    int and float results are told apart: 10/5 gives 2.0, not 2.
    """
    actual = evaluate(expression, symbols)
    if isinstance(expected, float):
        assert isinstance(actual, float) and actual == pytest.approx(expected), (
            f"EvalAndAssert failed. Expected: {expected!r}. Actual: {actual!r}. "
            f"Expression was: {expression}")
    else:
        assert actual == expected and type(actual) is type(expected), (
            f"EvalAndAssert failed. Expected: {expected!r}. Actual: {actual!r}. "
            f"Expression was: {expression}")


def eval_and_catch(expression: str, exception_type: Type[Exception] = EvaluationError,
                   match: Optional[str] = None, symbols: Optional[SymbolTable] = None):
    """Evaluate an expression and expect it to raise an exception."""
    with pytest.raises(exception_type, match=match) as info:
        evaluate(expression, symbols)
    return info.value


@pytest.fixture
def symbols():
    """A fresh symbol table."""
    return SymbolTable()


@pytest.fixture
def evaluator(symbols):
    """An evaluator over the symbols fixture with a seeded RND."""
    return ExpressionEvaluator(symbols, rng=random.Random(1))
