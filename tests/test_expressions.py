"""
Tests for the expression evaluator.

These tests verify:
- Operator precedence and associativity
- int versus float results
- String operators and type mismatches
- Variables, arrays and DEF functions
- Lexing of AND/OR and brackets
"""

import pytest

from linebasic.errors import EvaluationError
from linebasic.parser.statements import DefStatement
from linebasic.runtime import SymbolType, TokenType, tokenize
from .conftest import eval_and_assert, eval_and_catch


class TestArithmetic:
    """Tests for + - * / ^."""

    def test_precedence(self):
        eval_and_assert("2+3*4", 14)
        eval_and_assert("(2+3)*4", 20)
        eval_and_assert("2*3^2", 18)
        eval_and_assert("10-4-3", 3)
        eval_and_assert("1+2*3^4-3", 160)

    def test_power_is_left_associative(self):
        eval_and_assert("2^3^2", 64)

    def test_unary_minus_binds_tighter_than_power(self):
        eval_and_assert("-2^2", 4)
        eval_and_assert("2^-1", 0.5)

    def test_unary_operators(self):
        eval_and_assert("-5", -5)
        eval_and_assert("--5", 5)
        eval_and_assert("+3", 3)
        eval_and_assert("3*-2", -6)

    def test_division_is_always_float(self):
        eval_and_assert("10/5", 2.0)
        eval_and_assert("7/2", 3.5)

    def test_division_by_zero_gives_zero(self):
        eval_and_assert("1/0", 0.0)

    def test_integral_results_become_int(self):
        eval_and_assert("2*3.5", 7)
        eval_and_assert("1.5+1.5", 3)
        eval_and_assert("2^3", 8)

    def test_fractional_results_stay_float(self):
        eval_and_assert("0.1+0.2", 0.3)
        eval_and_assert("2^0.5", 2 ** 0.5)

    def test_number_literals(self):
        eval_and_assert("42", 42)
        eval_and_assert("2.5", 2.5)
        eval_and_assert(".5", 0.5)
        eval_and_assert("2E3", 2000)
        eval_and_assert("2E-3", 0.002)

    def test_brackets_work_as_parentheses(self):
        eval_and_assert("[1+2]*2", 6)

    def test_illegal_power(self):
        eval_and_catch("(-8)^(1/3)", match="Illegal operands")


class TestStrings:
    """Tests for string operators."""

    def test_concatenation(self):
        eval_and_assert('"AB"+"CD"', "ABCD")

    def test_concatenation_with_number(self):
        eval_and_assert('"A"+1', "A1")
        eval_and_assert('2.5+"X"', "2.5X")

    def test_other_operators_reject_strings(self):
        eval_and_catch('"A"*2', match="Type mismatch")
        eval_and_catch('"A"-"B"', match="Type mismatch")
        eval_and_catch('-"A"', match="Type mismatch")

    def test_string_number_comparison(self):
        eval_and_catch('"A"<1', match="Type mismatch")


class TestLogic:
    """Tests for comparisons, AND and OR."""

    def test_comparisons(self):
        eval_and_assert("1<2", 1)
        eval_and_assert("2<1", 0)
        eval_and_assert("1<>2", 1)
        eval_and_assert("3>=3", 1)
        eval_and_assert("3<=2", 0)
        eval_and_assert("2=2.0", 1)

    def test_string_comparisons(self):
        eval_and_assert('"ABC"<"ABD"', 1)
        eval_and_assert('"X"="X"', 1)

    def test_comparison_binds_looser_than_arithmetic(self):
        eval_and_assert("1+2=3", 1)

    def test_and_or(self):
        eval_and_assert("1=1 AND 2=2", 1)
        eval_and_assert("1=2 OR 0", 0)
        eval_and_assert("1 AND 0", 0)
        eval_and_assert("5 OR 0", 1)

    def test_and_binds_tighter_than_or(self):
        eval_and_assert("1=1 OR 1=2 AND 1=2", 1)

    def test_empty_string_is_false(self):
        eval_and_assert('"" OR 0', 0)
        eval_and_assert('"X" AND 1', 1)

    def test_evaluate_condition(self, evaluator):
        assert evaluator.evaluate_condition("2>1") is True
        assert evaluator.evaluate_condition('""') is False


class TestVariables:
    """Tests for names, arrays and functions."""

    def test_scalar(self, symbols):
        symbols.put("A", 5)
        eval_and_assert("A*2", 10, symbols)
        eval_and_assert("a*2", 10, symbols)

    def test_undefined_variable(self):
        eval_and_catch("Q+1", match="Undefined variable: Q")

    def test_long_names_are_invalid(self, symbols):
        symbols.put("NUM", 1)
        eval_and_catch("NUM", match="Invalid variable name", symbols=symbols)

    def test_array_element(self, symbols):
        symbols.put("A", [10, 20, 30], SymbolType.ARRAY)
        eval_and_assert("A(2)", 20, symbols)
        eval_and_assert("A[3]", 30, symbols)

    def test_array_and_scalar_are_separate(self, symbols):
        symbols.put("A", [10, 20], SymbolType.ARRAY)
        symbols.put("A", 7)
        eval_and_assert("A+A(1)", 17, symbols)

    def test_out_of_range_reads_default(self, symbols):
        symbols.put("A", [10, 20, 30], SymbolType.ARRAY)
        eval_and_assert("A(4)", 0, symbols)
        eval_and_assert("A(0)", 0, symbols)

    def test_undimensioned_reads_default(self):
        eval_and_assert("B(1)", 0)
        eval_and_assert("B$(1)", "")

    def test_two_dimensions(self, symbols):
        symbols.put("M", [[1, 2], [3, 4]], SymbolType.ARRAY)
        eval_and_assert("M(2,1)", 3, symbols)
        eval_and_catch("M(1)", match="Too few subscripts", symbols=symbols)
        eval_and_catch("M(1,1,1)", match="Too many subscripts", symbols=symbols)

    def test_zero_based_dialect(self, symbols):
        from linebasic.dialect import Dialect
        from .conftest import evaluate
        symbols.put("A", [10, 20], SymbolType.ARRAY)
        assert evaluate("A(0)", symbols, Dialect(array_offset=0)) == 10

    def test_user_function(self, symbols):
        symbols.put("FNA", DefStatement("FNA", "X", "X*X+1"), SymbolType.FUNCTION)
        eval_and_assert("FNA(5)", 26, symbols)

    def test_parameter_does_not_leak(self, symbols):
        symbols.put("X", 7)
        symbols.put("FNA", DefStatement("FNA", "X", "X+1"), SymbolType.FUNCTION)
        eval_and_assert("FNA(2)+X", 10, symbols)
        assert symbols.get("X") == 7

    def test_function_sees_globals(self, symbols):
        symbols.put("K", 100)
        symbols.put("FNA", DefStatement("FNA", "X", "X+K"), SymbolType.FUNCTION)
        eval_and_assert("FNA(1)", 101, symbols)

    def test_nested_functions(self, symbols):
        symbols.put("FNA", DefStatement("FNA", "X", "X*X"), SymbolType.FUNCTION)
        symbols.put("FNB", DefStatement("FNB", "X", "FNA(X)+1"), SymbolType.FUNCTION)
        eval_and_assert("FNB(3)", 10, symbols)

    def test_function_argument_count(self, symbols):
        symbols.put("FNA", DefStatement("FNA", "X", "X"), SymbolType.FUNCTION)
        eval_and_catch("FNA(1,2)", match="expects 1 argument", symbols=symbols)

    def test_runaway_recursion(self, symbols):
        symbols.put("FNA", DefStatement("FNA", "X", "FNA(X)"), SymbolType.FUNCTION)
        eval_and_catch("FNA(1)", match="nests too deeply", symbols=symbols)

    def test_undefined_function(self):
        eval_and_catch("FNZ(1)", match="Undefined function FNZ")


class TestErrors:
    """Tests for malformed expressions."""

    def test_missing_expression(self):
        eval_and_catch("", match="Missing expression")
        eval_and_catch("   ", match="Missing expression")

    def test_dangling_operator(self):
        eval_and_catch("1+", match="Unexpected end of expression")

    def test_unbalanced_parentheses(self):
        eval_and_catch("(1", match="Expected RPAREN")
        eval_and_catch("1)", match="Unexpected")

    def test_trailing_garbage(self):
        eval_and_catch("1 2", match="Unexpected 2")

    def test_unterminated_string(self):
        eval_and_catch('"abc', match="Unterminated string")

    def test_bad_number(self):
        eval_and_catch("1.2.3", match="Invalid number")

    def test_bad_character(self):
        eval_and_catch("1#2", match="Unexpected character")


class TestTokenize:
    """Tests for the expression lexer."""

    def test_token_types(self):
        tokens = tokenize('A1 AND B$<>"X"')
        assert [t.type for t in tokens] == [
            TokenType.IDENT, TokenType.AND, TokenType.IDENT, TokenType.OP,
            TokenType.STRING, TokenType.EOF,
        ]
        assert [t.value for t in tokens[:-1]] == ["A1", "AND", "B$", "<>", "X"]

    def test_and_or_need_a_word_boundary(self):
        assert tokenize("ANDY")[0].type == TokenType.IDENT
        assert tokenize("ORDER")[0].type == TokenType.IDENT
        assert tokenize("or 1")[0].type == TokenType.OR

    def test_brackets(self):
        types = [t.type for t in tokenize("A[1]")]
        assert types == [TokenType.IDENT, TokenType.LPAREN, TokenType.NUMBER,
                         TokenType.RPAREN, TokenType.EOF]

    def test_numbers(self):
        tokens = tokenize("12 1.5 2E2")
        assert [t.value for t in tokens[:-1]] == [12, 1.5, 200]

    def test_columns(self):
        tokens = tokenize("A + 10")
        assert [t.column for t in tokens[:-1]] == [0, 2, 4]
