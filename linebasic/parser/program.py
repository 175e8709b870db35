"""
Program representation and loader.

A Program is an immutable, line-number ordered table of ProgramLines with a
line-number index and the DATA pool collected from every DATA statement.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Tuple

from ..errors import BasicRuntimeError, BasicSyntaxError
from ..lexer import split_line, split_statements
from .parser import parse_statement
from .statements import DataStatement, DataValue, Statement


@dataclass(frozen=True)
class ControlLocation:
    """
    A position in a program.

    index: Index into the program's lines, or None past the end.
    offset: Index into that line's statements.
    """
    index: Optional[int]
    offset: int = 0

    @property
    def at_end(self) -> bool:
        return self.index is None


END_LOCATION = ControlLocation(None, 0)


@dataclass(frozen=True)
class ProgramLine:
    """One numbered line: "100 PRINT:PRINT:END" has three statements."""
    line: int
    statements: Tuple[Statement, ...]
    source: str = field(default="", compare=False)

    def __str__(self):
        return f"{self.line} " + ':'.join(str(s) for s in self.statements)


class Program:
    """Ordered, immutable collection of ProgramLines."""

    def __init__(self, lines: Iterable[ProgramLine]):
        self._lines = tuple(lines)

        index = {}
        for i, program_line in enumerate(self._lines):
            if program_line.line in index:
                raise BasicSyntaxError(
                    f"Duplicate line number: {program_line.line}", program_line.line)
            index[program_line.line] = i
        self._line_to_index = MappingProxyType(index)

        self._data_pool = tuple(
            value
            for program_line in self._lines
            for stmt in program_line.statements
            if isinstance(stmt, DataStatement)
            for value in stmt.values
        )

    @property
    def lines(self) -> Tuple[ProgramLine, ...]:
        return self._lines

    @property
    def data_pool(self) -> Tuple[DataValue, ...]:
        """Every DATA literal in program order."""
        return self._data_pool

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[ProgramLine]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> ProgramLine:
        return self._lines[index]

    def has_line(self, line_number: int) -> bool:
        return line_number in self._line_to_index

    def find_line_index(self, line_number: int) -> int:
        """Map a BASIC line number to its index."""
        try:
            return self._line_to_index[line_number]
        except KeyError:
            raise BasicRuntimeError(f"Line {line_number} not found") from None

    def statement_at(self, location: ControlLocation) -> Statement:
        return self._lines[location.index].statements[location.offset]

    def next_location(self, location: ControlLocation) -> ControlLocation:
        """The statement after location: same line, else next line, else END."""
        if location.at_end:
            return END_LOCATION
        program_line = self._lines[location.index]
        if location.offset + 1 < len(program_line.statements):
            return ControlLocation(location.index, location.offset + 1)
        return self.next_line_location(location)

    def next_line_location(self, location: ControlLocation) -> ControlLocation:
        """The first statement of the following line, or END."""
        if location.at_end or location.index + 1 >= len(self._lines):
            return END_LOCATION
        return ControlLocation(location.index + 1, 0)

    def lines_range(self, start_index: int = 0, count: Optional[int] = None) -> List[str]:
        """Source text of a run of lines, for listings."""
        end = len(self._lines) if count is None else min(start_index + count, len(self._lines))
        return [self._lines[i].source for i in range(start_index, end)]


def tokenize_line(line: str) -> ProgramLine:
    """
    Parse one numbered source line.

    Raises:
        BasicSyntaxError: tagged with the line number when it could be read
    """
    line_number, rest = split_line(line)
    fragments = split_statements(rest)
    if not fragments:
        raise BasicSyntaxError("Line has no statements", line_number)

    try:
        statements = tuple(parse_statement(fragment) for fragment in fragments)
    except BasicSyntaxError as e:
        raise e.with_line(line_number) from e

    return ProgramLine(line_number, statements, line.strip())


def tokenize_program(lines: Iterable[str]) -> Program:
    """
    Load a program from source lines.

    Blank lines are skipped and lines are ordered by line number. Any syntax
    error, including a repeated line number, rejects the whole listing.
    """
    program_lines = [tokenize_line(line) for line in lines if line.strip()]
    program_lines.sort(key=lambda program_line: program_line.line)
    return Program(program_lines)
