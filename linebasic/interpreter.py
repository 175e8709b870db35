"""
One-shot BASIC runner.

Loads a program from a file or a string and runs it to completion. Also
provides the command-line interface.
"""

import sys
import time
from pathlib import Path
from typing import List, Optional

from .dialect import Dialect
from .errors import BasicError, BasicInternalError, BasicRuntimeError, BasicSyntaxError
from .parser import Program, tokenize_program
from .runtime import Executor, RunResult, RunStatus, SymbolType
from .runtime.values import format_number

BASIC_FILE_EXTENSION = '.bas'

EXIT_SUCCESS = 0
EXIT_STOP = 1
EXIT_ERROR = 2


class BasicInterpreter:
    """Loads and runs BASIC programs."""

    def __init__(self, dialect: Optional[Dialect] = None, verbose: bool = False,
                 trace=None, coverage: bool = False, stdin=None, stdout=None, rng=None):
        self.dialect = dialect or Dialect()
        self.verbose = verbose
        self.trace = trace
        self.coverage = coverage
        self.stdin = stdin
        self.stdout = stdout
        self.rng = rng
        self.program: Optional[Program] = None
        self.executor: Optional[Executor] = None

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[linebasic] {message}", file=sys.stderr)

    @staticmethod
    def find_program_file(name: str) -> Path:
        """Return name as a path, adding .bas if only that file exists."""
        path = Path(name)
        if path.exists():
            return path
        with_extension = Path(name + BASIC_FILE_EXTENSION)
        if with_extension.exists():
            return with_extension
        return path

    def load_file(self, name: str) -> Program:
        """
        Load a program from disk.

        Raises:
            OSError: The file cannot be read
            BasicSyntaxError: The listing does not parse
        """
        path = self.find_program_file(name)
        self.log(f"Loading {path}...")
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.load_string(source)

    def load_string(self, source: str) -> Program:
        """Load a program from listing text."""
        self.program = tokenize_program(source.splitlines())
        self.executor = None
        self.log(f"Loaded program with {len(self.program)} lines")
        return self.program

    def run(self, program: Optional[Program] = None) -> RunResult:
        """Run the loaded program (or the one given) from the top."""
        if program is not None:
            self.program = program
        if self.program is None:
            raise BasicInternalError("No program loaded")

        self.executor = Executor(self.program, self.dialect, stdin=self.stdin,
                                 stdout=self.stdout, trace=self.trace,
                                 verbose=self.verbose, coverage=self.coverage,
                                 rng=self.rng)
        result = self.executor.run_program()
        self.log(f"Program completed with a status of {result.status.name}")
        return result

    def symbol_report(self) -> List[str]:
        """Lines describing the symbol table after a run."""
        symbols = self.executor.symbols
        lines = ["Symbol table:", f"Symbol count: {self.executor.symbol_count()}"]
        for name, value in sorted(symbols.view(SymbolType.VARIABLE).items()):
            shown = f'"{value}"' if isinstance(value, str) else format_number(value)
            lines.append(f"  {name} = {shown}")
        for name, value in sorted(symbols.view(SymbolType.ARRAY).items()):
            lines.append(f"  {name}({len(value)})")
        for name, definition in sorted(symbols.view(SymbolType.FUNCTION).items()):
            lines.append(f"  {definition}")
        return lines

    def coverage_report(self) -> List[str]:
        """Lines listing statement coverage after a run."""
        counts = self.executor.coverage or {}
        total = 0
        missed = []
        for program_line in self.program:
            for offset, statement in enumerate(program_line.statements):
                total += 1
                if not counts.get((program_line.line, offset)):
                    missed.append(f"  {program_line.line}:{offset} {statement}")
        lines = [f"Coverage: {total - len(missed)} of {total} statements executed"]
        if missed:
            lines.append("Never executed:")
            lines.extend(missed)
        return lines


def exit_code(status: RunStatus) -> int:
    """Map a final run status to the process exit code."""
    if status.is_success:
        return EXIT_SUCCESS
    if status is RunStatus.END_STOP:
        return EXIT_STOP
    return EXIT_ERROR


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the interpreter."""
    import argparse

    parser = argparse.ArgumentParser(
        description='linebasic - Run a line-numbered BASIC program'
    )
    parser.add_argument('program', help='BASIC source file (.bas may be omitted)')
    parser.add_argument('--trace', metavar='FILE',
                        help='Write a statement trace to FILE')
    parser.add_argument('--symbols', action='store_true',
                        help='Print the symbol table after the run')
    parser.add_argument('--time', action='store_true',
                        help='Print the execution time')
    parser.add_argument('--coverage', action='store_true',
                        help='Print statement coverage after the run')
    parser.add_argument('--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--zero-based', action='store_true',
                        help='Arrays start at subscript 0 instead of 1')
    parser.add_argument('--preserve-case', action='store_true',
                        help='Do not upper-case strings typed at INPUT')

    args = parser.parse_args(argv)

    dialect = Dialect(array_offset=0 if args.zero_based else 1,
                      uppercase_input=not args.preserve_case)
    trace = None
    code = EXIT_ERROR
    try:
        if args.trace:
            trace = open(args.trace, 'w', encoding='utf-8')
        interpreter = BasicInterpreter(dialect=dialect, verbose=args.verbose,
                                       trace=trace, coverage=args.coverage)
        interpreter.load_file(args.program)

        start_time = time.perf_counter()
        result = interpreter.run()
        elapsed = time.perf_counter() - start_time

        if args.time:
            print(f"Execution time: {elapsed:.5f} seconds")
        if args.symbols:
            print('\n'.join(interpreter.symbol_report()))
        if args.coverage:
            print('\n'.join(interpreter.coverage_report()))
        code = exit_code(result.status)
    except BasicSyntaxError as e:
        print(f"Syntax error: {e}", file=sys.stderr)
        _print_traceback(args.verbose)
    except BasicRuntimeError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        _print_traceback(args.verbose)
    except BasicError as e:
        print(f"Internal error: {e}", file=sys.stderr)
        _print_traceback(args.verbose)
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        _print_traceback(args.verbose)
    finally:
        if trace is not None:
            trace.close()

    sys.exit(code)


def _print_traceback(verbose: bool):
    if verbose:
        import traceback
        traceback.print_exc()


if __name__ == '__main__':
    main()
