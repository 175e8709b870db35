"""
Executor - Runs a loaded Program.

The executor owns the run cursor, the GOSUB and FOR stacks, the DATA cursor
and the symbol table. run_program() executes statements until the program
ends, fails, or reaches a breakpoint; a suspended run resumes on the next
call.
"""

import sys
from collections import Counter
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import (
    BasicError, BasicInternalError, BasicRuntimeError, BasicSyntaxError, EvaluationError,
)
from ..lexer import is_line_number
from ..parser import END_LOCATION, ControlLocation, Program, ProgramLine, parse_clause
from ..parser.parser import parse_number
from ..parser.statements import *
from .builtins import Builtins
from .expression import ExpressionEvaluator
from .symbols import SymbolTable, SymbolType
from .values import Number, Value, arithmetic, default_for, print_form, require_number


class RunStatus(Enum):
    """Executor states."""
    RUN = auto()
    END_CMD = auto()             # END statement
    END_STOP = auto()            # STOP statement
    END_OF_PROGRAM = auto()      # ran off the last line
    END_ERROR_SYNTAX = auto()
    END_ERROR_RUNTIME = auto()
    END_ERROR_INTERNAL = auto()
    BREAK_CODE = auto()          # reached a breakpoint
    BREAK_DATA = auto()          # wrote a watched variable
    BREAK_STEP = auto()          # single step

    @property
    def is_suspended(self) -> bool:
        return self in (RunStatus.BREAK_CODE, RunStatus.BREAK_DATA, RunStatus.BREAK_STEP)

    @property
    def is_success(self) -> bool:
        return self in (RunStatus.END_CMD, RunStatus.END_OF_PROGRAM)

    @property
    def is_error(self) -> bool:
        return self in (RunStatus.END_ERROR_SYNTAX, RunStatus.END_ERROR_RUNTIME,
                        RunStatus.END_ERROR_INTERNAL)


@dataclass(frozen=True)
class RunResult:
    """Where and why run_program() returned."""
    status: RunStatus
    location: ControlLocation
    line_number: Optional[int] = None

    @property
    def is_suspended(self) -> bool:
        return self.status.is_suspended

    @property
    def is_success(self) -> bool:
        return self.status.is_success


@dataclass(frozen=True)
class ForRecord:
    """A live FOR loop."""
    variable: str
    limit: Number
    step: Number
    header: ControlLocation


class Executor:
    """
    Executes a Program.

    Args:
        program: Loaded program
        dialect: Array offset, INPUT case folding and PRINT zone width
        stdin: Stream INPUT reads lines from (default sys.stdin)
        stdout: Stream PRINT writes to (default sys.stdout)
        trace: Optional text stream receiving a statement trace
        verbose: Log run progress to stderr
        coverage: Count how often each statement runs
        rng: random.Random used by RND
    """

    def __init__(self, program: Program, dialect: Optional[Dialect] = None,
                 stdin=None, stdout=None, trace=None, verbose: bool = False,
                 coverage: bool = False, rng=None):
        self.program = program
        self.dialect = dialect or DEFAULT_DIALECT
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.trace = trace
        self.verbose = verbose
        self._builtins = Builtins(rng)
        self._coverage: Optional[Counter] = Counter() if coverage else None

        self._handlers: Dict[StatementKind, Callable[[Statement], None]] = {
            StatementKind.REM: self.execute_nothing,
            StatementKind.DATA: self.execute_nothing,
            StatementKind.PRINT: self.execute_print,
            StatementKind.LET: self.execute_let,
            StatementKind.GOTO: self.execute_goto,
            StatementKind.GOSUB: self.execute_gosub,
            StatementKind.RETURN: self.execute_return,
            StatementKind.FOR: self.execute_for,
            StatementKind.NEXT: self.execute_next,
            StatementKind.IF: self.execute_if,
            StatementKind.DIM: self.execute_dim,
            StatementKind.DEF: self.execute_def,
            StatementKind.INPUT: self.execute_input,
            StatementKind.READ: self.execute_read,
            StatementKind.RESTORE: self.execute_restore,
            StatementKind.CLEAR: self.execute_clear,
            StatementKind.ON: self.execute_on,
            StatementKind.END: self.execute_end,
            StatementKind.STOP: self.execute_stop,
        }

        self.restart()

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[linebasic] {message}", file=sys.stderr)

    def restart(self):
        """Reset all run state so the program can run again from the top."""
        self.symbols = SymbolTable()
        self.evaluator = ExpressionEvaluator(self.symbols, self.dialect, builtins=self._builtins)
        self.location = ControlLocation(0, 0) if len(self.program) else END_LOCATION
        self.run_status = RunStatus.RUN
        self._goto: Optional[ControlLocation] = None
        self._gosub_stack: List[ControlLocation] = []
        self._for_stack: List[ForRecord] = []
        self._data_cursor = 0
        self._column = 0
        self._paused_at: Optional[ControlLocation] = None
        self._watched: Set[str] = set()
        self._watch_hit: Optional[str] = None
        if self._coverage is not None:
            self._coverage.clear()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def gosub_stack(self) -> Tuple[ControlLocation, ...]:
        return tuple(self._gosub_stack)

    @property
    def for_stack(self) -> Tuple[ForRecord, ...]:
        return tuple(self._for_stack)

    @property
    def coverage(self) -> Optional[Counter]:
        """Executions per (line number, statement offset), or None if not enabled."""
        return self._coverage

    @property
    def data_cursor(self) -> int:
        return self._data_cursor

    def get_symbol(self, name: str, namespace: SymbolType = SymbolType.VARIABLE):
        return self.symbols.get(name, namespace)

    def put_symbol(self, name: str, value, namespace: SymbolType = SymbolType.VARIABLE):
        self.symbols.put(name, value, namespace)
        self._note_write(name)

    def symbol_count(self) -> int:
        """Number of scalars plus arrays. DEF functions are not counted."""
        return self.symbols.count(SymbolType.VARIABLE) + self.symbols.count(SymbolType.ARRAY)

    def current_line(self) -> Optional[ProgramLine]:
        if self.location.at_end:
            return None
        return self.program[self.location.index]

    def current_line_number(self) -> Optional[int]:
        program_line = self.current_line()
        return program_line.line if program_line else None

    def current_statement(self) -> Optional[Statement]:
        if self.location.at_end:
            return None
        return self.program.statement_at(self.location)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def run_program(self, breakpoints: Optional[Iterable[Tuple[int, int]]] = None,
                    data_breakpoints: Optional[Iterable[str]] = None,
                    single_step: bool = False) -> RunResult:
        """
        Run until the program finishes or is suspended.

        Args:
            breakpoints: (line number, statement offset) pairs to stop before
            data_breakpoints: Variable names to stop after writing
            single_step: Stop after every statement

        Raises:
            BasicSyntaxError: A THEN/ELSE clause or FOR/NEXT structure is malformed
            BasicRuntimeError: The program failed
            BasicInternalError: The interpreter failed
        """
        if self.run_status is not RunStatus.RUN and not self.run_status.is_suspended:
            return self._result()

        breakpoints = set(breakpoints or ())
        self._watched = {name.upper() for name in data_breakpoints or ()}
        resumed_at = self._paused_at
        self._paused_at = None
        self.run_status = RunStatus.RUN
        self.log(f"Running from {self._describe(self.location)}")

        while True:
            if self.location.at_end:
                self.run_status = RunStatus.END_OF_PROGRAM
                break

            program_line = self.program[self.location.index]
            if ((program_line.line, self.location.offset) in breakpoints
                    and self.location != resumed_at):
                self.run_status = RunStatus.BREAK_CODE
                break
            resumed_at = None

            statement = program_line.statements[self.location.offset]
            self._trace_statement(program_line, statement)
            if self._coverage is not None:
                self._coverage[(program_line.line, self.location.offset)] += 1

            self._watch_hit = None
            self._execute(statement, program_line.line)

            if self._goto is not None:
                self._trace_transfer(program_line, self._goto)
                self.location = self._goto
                self._goto = None
            elif self.run_status is RunStatus.RUN:
                self.location = self.program.next_location(self.location)
            if self.location.at_end and self.run_status is RunStatus.RUN:
                self.run_status = RunStatus.END_OF_PROGRAM

            if self.run_status is not RunStatus.RUN:
                break
            if self._watch_hit is not None:
                self.run_status = RunStatus.BREAK_DATA
                break
            if single_step:
                self.run_status = RunStatus.BREAK_STEP
                break

        if self.run_status.is_suspended:
            self._paused_at = self.location
        self.log(f"{self.run_status.name} at {self._describe(self.location)}")
        return self._result()

    def _execute(self, statement: Statement, line_number: int):
        """Dispatch one statement, attaching the line number to any error."""
        try:
            self._handlers[statement.kind](statement)
        except BasicSyntaxError as e:
            self.run_status = RunStatus.END_ERROR_SYNTAX
            raise e.with_line(line_number) from e
        except EvaluationError as e:
            self.run_status = RunStatus.END_ERROR_RUNTIME
            raise BasicRuntimeError(e.message, line_number) from e
        except BasicRuntimeError as e:
            self.run_status = RunStatus.END_ERROR_RUNTIME
            raise e.with_line(line_number) from e
        except BasicError as e:
            self.run_status = RunStatus.END_ERROR_INTERNAL
            raise BasicInternalError(e.message, line_number) from e
        except Exception as e:
            self.run_status = RunStatus.END_ERROR_INTERNAL
            raise BasicInternalError(f"Internal error: {e!r}", line_number) from e

    def _result(self) -> RunResult:
        return RunResult(self.run_status, self.location, self.current_line_number())

    def _describe(self, location: ControlLocation) -> str:
        if location.at_end:
            return "end of program"
        return f"line {self.program[location.index].line}:{location.offset}"

    def _trace_statement(self, program_line: ProgramLine, statement: Statement):
        if self.trace is None:
            return
        if self.location.offset == 0:
            self.trace.write(f">{program_line.source}\n")
        self.trace.write(f"\t{statement}\n")

    def _trace_transfer(self, program_line: ProgramLine, destination: ControlLocation):
        if self.trace is None:
            return
        self.trace.write(f"\tControl transfer from line {program_line.line} "
                         f"to {self._describe(destination)}\n")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write(self, text: str):
        self.stdout.write(text)
        newline = text.rfind('\n')
        if newline == -1:
            self._column += len(text)
        else:
            self._column = len(text) - newline - 1

    def _number(self, text: str, context: str) -> Number:
        return require_number(self.evaluator.evaluate(text), context)

    def _note_write(self, name: str):
        if name.upper() in self._watched:
            self._watch_hit = name.upper()

    def _jump(self, line_number: int):
        self._goto = ControlLocation(self.program.find_line_index(line_number), 0)

    def _destination(self, text: str) -> int:
        """A GOTO/GOSUB target: a line number literal or a numeric expression."""
        if is_line_number(text):
            return int(text)
        return int(self._number(text, "GOTO/GOSUB"))

    def _assign(self, target: Target, value: Value):
        """Store into a scalar or an array element."""
        if not target.is_array:
            self.symbols.put(target.name, value)
            self._note_write(target.name)
            return

        indices = [self.evaluator.evaluate(index) for index in target.indices]
        container = self.symbols.get(target.name, SymbolType.ARRAY)
        if container is None:
            raise BasicRuntimeError(f"Array {target.name} is not dimensioned")

        for depth, index in enumerate(indices):
            if not isinstance(container, list):
                raise BasicRuntimeError(f"Too many subscripts for array {target.name}")
            position = int(require_number(index, f"subscript of {target.name}")) - self.dialect.array_offset
            if not 0 <= position < len(container):
                raise BasicRuntimeError(f"Array index out of range: {target}")
            if depth < len(indices) - 1:
                container = container[position]
            elif isinstance(container[position], list):
                raise BasicRuntimeError(f"Too few subscripts for array {target.name}")
            else:
                container[position] = value
        self._note_write(target.name)

    @staticmethod
    def _loop_continues(value: Number, limit: Number, step: Number) -> bool:
        return value <= limit if step > 0 else value >= limit

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_nothing(self, stmt: Statement):
        pass

    def execute_print(self, stmt: PrintStatement):
        zone = self.dialect.print_zone_width
        for item in stmt.items:
            if item.expression:
                self._write(print_form(self.evaluator.evaluate(item.expression)))
            if item.separator == ',':
                self._write(' ' * (zone - self._column % zone))
        if not stmt.suppresses_newline:
            self._write('\n')

    def execute_let(self, stmt: LetStatement):
        self._assign(stmt.target, self.evaluator.evaluate(stmt.expression))

    def execute_goto(self, stmt: GotoStatement):
        self._jump(self._destination(stmt.destination))

    def execute_gosub(self, stmt: GosubStatement):
        destination = self._destination(stmt.destination)
        self._jump(destination)
        self._gosub_stack.append(self.program.next_location(self.location))

    def execute_return(self, stmt: ReturnStatement):
        if not self._gosub_stack:
            raise BasicRuntimeError("RETURN without GOSUB")
        self._goto = self._gosub_stack.pop()

    def execute_for(self, stmt: ForStatement):
        start = self._number(stmt.start, "FOR start")
        limit = self._number(stmt.limit, "FOR limit")
        step = self._number(stmt.step, "FOR step")
        if step == 0:
            raise BasicRuntimeError("FOR step cannot be zero")

        if not self._loop_continues(start, limit, step):
            self._skip_loop(stmt.variable)
            return

        self.symbols.put(stmt.variable, start)
        self._note_write(stmt.variable)
        for depth, record in enumerate(self._for_stack):
            if record.header == self.location:
                del self._for_stack[depth:]
                break
        self._for_stack.append(ForRecord(stmt.variable, limit, step, self.location))

    def _skip_loop(self, variable: str):
        """
        Continue after the NEXT that closes a loop whose body never runs.

        Loops nested in the skipped body are counted, so a bare NEXT closing
        an inner loop does not end the scan.
        """
        depth = 0
        location = self.program.next_location(self.location)
        while not location.at_end:
            stmt = self.program.statement_at(location)
            if isinstance(stmt, ForStatement):
                depth += 1
            elif isinstance(stmt, NextStatement):
                for name in stmt.variables or (None,):
                    if depth == 0 and name in (None, variable):
                        self._goto = self.program.next_location(location)
                        return
                    depth = max(depth - 1, 0)
            location = self.program.next_location(location)
        raise BasicSyntaxError(f"FOR {variable} without matching NEXT")

    def execute_next(self, stmt: NextStatement):
        for variable in stmt.variables or (None,):
            if not self._for_stack:
                raise BasicRuntimeError("NEXT without FOR")
            record = self._for_stack[-1]
            if variable is not None and variable != record.variable:
                raise BasicRuntimeError(
                    f"NEXT {variable} does not match FOR {record.variable}")

            current = self.symbols.get(record.variable)
            if current is None:
                current = 0
            candidate = arithmetic('+', current, record.step)
            if self._loop_continues(candidate, record.limit, record.step):
                self.symbols.put(record.variable, candidate)
                self._note_write(record.variable)
                self._goto = self.program.next_location(record.header)
                return
            self._for_stack.pop()

    def execute_if(self, stmt: IfStatement):
        condition = self.evaluator.evaluate_condition(stmt.condition)

        if not stmt.has_then:
            if not condition:
                self._goto = self.program.next_line_location(self.location)
            return

        clause = stmt.then_clause if condition else stmt.else_clause
        if clause is None:
            return
        for clause_stmt in parse_clause(clause):
            self._handlers[clause_stmt.kind](clause_stmt)
            if self._goto is not None or self.run_status is not RunStatus.RUN:
                break

    def execute_dim(self, stmt: DimStatement):
        for array in stmt.arrays:
            sizes = []
            for dimension in array.dimensions:
                size = int(self._number(dimension, f"DIM {array.name}")) + 1 - self.dialect.array_offset
                if size < 0:
                    raise BasicRuntimeError(f"Invalid array dimension: {array}")
                sizes.append(size)
            self.symbols.put(array.name, _make_array(sizes, default_for(array.name)), SymbolType.ARRAY)
            self._note_write(array.name)

    def execute_def(self, stmt: DefStatement):
        self.symbols.put(stmt.name, stmt, SymbolType.FUNCTION)

    def execute_input(self, stmt: InputStatement):
        self._write(stmt.prompt if stmt.has_prompt else '? ')
        if hasattr(self.stdout, 'flush'):
            self.stdout.flush()

        line = self.stdin.readline()
        if not line:
            raise BasicRuntimeError("INPUT reached end of input")
        self._column = 0

        fields = line.rstrip('\r\n').split(',')
        for position, target in enumerate(stmt.variables):
            if position >= len(fields):
                value = default_for(target.name)
            elif target.is_string:
                value = fields[position].strip()
                if self.dialect.uppercase_input:
                    value = value.upper()
            else:
                try:
                    value = parse_number(fields[position])
                except ValueError:
                    value = 0
            self._assign(target, value)

    def execute_read(self, stmt: ReadStatement):
        pool = self.program.data_pool
        for target in stmt.variables:
            if self._data_cursor >= len(pool):
                raise BasicRuntimeError("Out of data")
            value = pool[self._data_cursor]
            self._data_cursor += 1
            self._assign(target, value)

    def execute_restore(self, stmt: RestoreStatement):
        self._data_cursor = 0

    def execute_clear(self, stmt: ClearStatement):
        self.symbols.clear()

    def execute_on(self, stmt: OnStatement):
        selector = int(self._number(stmt.selector, "ON"))
        if not 1 <= selector <= len(stmt.destinations):
            return
        self._jump(stmt.destinations[selector - 1])
        if stmt.mode is StatementKind.GOSUB:
            self._gosub_stack.append(self.program.next_location(self.location))

    def execute_end(self, stmt: EndStatement):
        self.run_status = RunStatus.END_CMD

    def execute_stop(self, stmt: StopStatement):
        self.run_status = RunStatus.END_STOP


def _make_array(sizes: List[int], default: Value) -> list:
    """Nested lists sized by each dimension, filled with default."""
    if len(sizes) == 1:
        return [default] * sizes[0]
    return [_make_array(sizes[1:], default) for _ in range(sizes[0])]
