"""Tests for the BASIC line splitter."""

import pytest

from linebasic.errors import BasicSyntaxError
from linebasic.lexer import (
    find_assignment, find_unquoted, is_line_number, match_keyword, smart_split,
    split_line, split_statements,
)


class TestSplitLine:
    """Tests for separating the line number."""

    def test_number_and_text(self):
        assert split_line("100 PRINT X") == (100, "PRINT X")

    def test_space_after_number_is_optional(self):
        assert split_line("100PRINT") == (100, "PRINT")

    def test_surrounding_whitespace_is_ignored(self):
        assert split_line("  20   END  \n") == (20, "END")

    def test_empty_line_is_an_error(self):
        with pytest.raises(BasicSyntaxError, match="Empty line"):
            split_line("   ")

    def test_missing_line_number_is_an_error(self):
        with pytest.raises(BasicSyntaxError, match="Invalid line format"):
            split_line("PRINT X")

    def test_is_line_number(self):
        assert is_line_number(" 100 ")
        assert not is_line_number("100A")
        assert not is_line_number("")


class TestSplitStatements:
    """Tests for ':' statement splitting."""

    def test_colon_separates_statements(self):
        assert split_statements("A=1:B=2:PRINT A") == ["A=1", "B=2", "PRINT A"]

    def test_colon_inside_string_does_not_split(self):
        assert split_statements('PRINT "A:B":END') == ['PRINT "A:B"', "END"]

    def test_string_glued_to_keyword(self):
        assert split_statements('PRINT"A:B":PRINT"C"') == ['PRINT"A:B"', 'PRINT"C"']

    def test_then_clause_keeps_the_rest_of_the_line(self):
        assert split_statements("A=1:IF X THEN B=2:C=3") == ["A=1", "IF X THEN B=2:C=3"]

    def test_if_without_then_still_splits(self):
        assert split_statements('IF X>1:PRINT "Y"') == ["IF X>1", 'PRINT "Y"']

    def test_rem_swallows_the_rest_of_the_line(self):
        assert split_statements("REM HELLO:PRINT") == ["REM HELLO:PRINT"]
        assert split_statements("A=1:REM X:Y") == ["A=1", "REM X:Y"]

    def test_empty_fragments_are_dropped(self):
        assert split_statements("PRINT::END:") == ["PRINT", "END"]
        assert split_statements("") == []


class TestSmartSplit:
    """Tests for splitting argument lists."""

    def test_parentheses_protect_commas(self):
        assert smart_split("A(1,2),B") == ["A(1,2)", "B"]
        assert smart_split("A[1,2],B") == ["A[1,2]", "B"]

    def test_strings_protect_commas(self):
        assert smart_split('"A,B",C') == ['"A,B"', "C"]

    def test_empty_parts_are_kept(self):
        assert smart_split("1,,2") == ["1", "", "2"]

    def test_other_separator(self):
        assert smart_split('"A;B";C', ';') == ['"A;B"', "C"]


class TestKeywords:
    """Tests for keyword matching."""

    def test_keyword_glued_to_arguments(self):
        assert match_keyword("FORI=1TO8") == ("FOR", "I=1TO8")
        assert match_keyword('PRINT"HI"') == ("PRINT", '"HI"')
        assert match_keyword("GOSUB100") == ("GOSUB", "100")

    def test_keywords_are_case_insensitive(self):
        assert match_keyword("print x") == ("PRINT", "x")

    def test_longest_keyword_wins(self):
        assert match_keyword("RESTORE")[0] == "RESTORE"
        assert match_keyword("RETURN")[0] == "RETURN"
        assert match_keyword("REM RETURN")[0] == "REM"

    def test_question_mark_is_print(self):
        assert match_keyword("?X") == ("?", "X")

    def test_no_keyword(self):
        assert match_keyword("A=1") == (None, "A=1")


class TestSearching:
    """Tests for quote-aware searching."""

    def test_find_unquoted_skips_strings(self):
        assert find_unquoted('A$="TO" TO', "TO") == (8, 10)

    def test_find_unquoted_start(self):
        assert find_unquoted("TO TO", "TO", 1) == (3, 5)

    def test_find_unquoted_ignores_case(self):
        assert find_unquoted("x then y", "THEN") == (2, 6)

    def test_find_unquoted_missing(self):
        assert find_unquoted('"THEN"', "THEN") is None

    def test_find_assignment(self):
        assert find_assignment("A=5") == 1
        assert find_assignment("A(1)=5") == 4
        assert find_assignment('A$="X=Y"') == 2

    def test_comparisons_are_not_assignments(self):
        assert find_assignment("X<=5") is None
        assert find_assignment("X<>5") is None
        assert find_assignment("X==5") is None

    def test_not_an_assignment(self):
        assert find_assignment("=5") is None
        assert find_assignment("PRINT") is None
