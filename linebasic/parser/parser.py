"""
BASIC statement parser - Builds Statement records from fragment text.

Expressions are not parsed here; they are validated and evaluated by the
runtime. This module checks the shape of each statement's arguments.
"""

import re
from functools import lru_cache
from typing import List, Optional, Tuple

from ..errors import BasicSyntaxError
from ..lexer import (
    smart_split, find_unquoted, match_keyword, find_assignment, find_top_level,
    is_line_number, split_statements,
)
from .statements import *


_NAME = r'[A-Z][A-Z0-9]*\$?'
_NAME_PATTERN = re.compile(rf'^{_NAME}$', re.IGNORECASE)
_TARGET_PATTERN = re.compile(rf'^({_NAME})\s*(?:[(\[](.*)[)\]])?$', re.IGNORECASE | re.DOTALL)
_DEF_PATTERN = re.compile(
    rf'^({_NAME})\s*\(\s*([^)]*?)\s*\)\s*=(.*)$', re.IGNORECASE | re.DOTALL)
_INT_PATTERN = re.compile(r'^[+-]?\d+$')
_FLOAT_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)(E[+-]?\d+)?$', re.IGNORECASE)

# Besides letters and digits, characters that end a value. A string literal
# right after one of them starts a new PRINT item.
_PRINT_VALUE_END = '$)"'


def parse_number(text: str):
    """Parse a numeric literal: int when it has no '.' and an integral value, else float."""
    text = text.strip()
    if _INT_PATTERN.match(text):
        return int(text)
    if _FLOAT_PATTERN.match(text):
        value = float(text)
        if '.' not in text and value.is_integer():
            return int(value)
        return value
    raise ValueError(f"not a number: {text!r}")


class StatementParser:
    """Parses one statement fragment into a Statement."""

    def __init__(self):
        self._handlers = {
            'REM': self.parse_rem,
            'PRINT': self.parse_print,
            '?': self.parse_print,
            'LET': self.parse_let,
            'GOTO': self.parse_goto,
            'GOSUB': self.parse_gosub,
            'RETURN': self._no_arguments(ReturnStatement),
            'END': self._no_arguments(EndStatement),
            'STOP': self._no_arguments(StopStatement),
            'RESTORE': self.parse_restore,
            'CLEAR': self.parse_clear,
            'FOR': self.parse_for,
            'NEXT': self.parse_next,
            'IF': self.parse_if,
            'DIM': self.parse_dim,
            'DEF': self.parse_def,
            'INPUT': self.parse_input,
            'READ': self.parse_read,
            'DATA': self.parse_data,
            'ON': self.parse_on,
        }

    def error(self, message: str):
        """Raise a syntax error. The loader attaches the line number."""
        raise BasicSyntaxError(message)

    def parse_statement(self, text: str) -> Statement:
        """Parse a single statement fragment."""
        text = text.strip()
        if not text:
            self.error("Empty statement")

        # "IF X THEN 100" - a bare line number jumps there
        if is_line_number(text):
            return GotoStatement(text)

        keyword, args = match_keyword(text)
        if keyword is None:
            if find_assignment(text) is not None:
                return self.parse_let(text)
            self.error(f"Unknown statement: {text}")

        return self._handlers[keyword](args)

    def parse_clause(self, text: str) -> Tuple[Statement, ...]:
        """Parse THEN/ELSE clause text into its statements."""
        statements = tuple(self.parse_statement(part) for part in split_statements(text))
        if not statements:
            self.error("Empty THEN/ELSE clause")
        # A loop needs its own statement to return to
        if any(isinstance(stmt, ForStatement) for stmt in statements):
            self.error(f"FOR is not allowed in a THEN/ELSE clause: {text}")
        return statements

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    def _no_arguments(self, statement_class):
        def parse(args: str) -> Statement:
            if args:
                self.error(f"{statement_class.kind.name} takes no arguments: {args}")
            return statement_class()
        return parse

    def parse_target(self, text: str) -> Target:
        """Parse an assignable name: A, A$, C(I,J)."""
        text = text.strip()
        match = _TARGET_PATTERN.match(text)
        if not match:
            self.error(f"Invalid variable name: {text}")

        name = match.group(1).upper()
        if match.group(2) is None:
            return Target(name)

        indices = smart_split(match.group(2))
        if any(not index for index in indices):
            self.error(f"Missing array subscript: {text}")
        return Target(name, tuple(indices))

    def parse_targets(self, text: str, statement: str) -> Tuple[Target, ...]:
        if not text.strip():
            self.error(f"{statement} statement requires at least one variable")
        parts = smart_split(text)
        if any(not part for part in parts):
            self.error(f"Empty variable name in {statement} statement")
        return tuple(self.parse_target(part) for part in parts)

    def parse_name(self, text: str, statement: str) -> str:
        name = text.strip().upper()
        if not _NAME_PATTERN.match(name):
            self.error(f"Invalid variable name in {statement}: {text.strip()}")
        return name

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_rem(self, args: str) -> RemStatement:
        return RemStatement(args)

    def parse_print(self, args: str) -> PrintStatement:
        """
        Split PRINT arguments into items.

        ';' and ',' separate items outside strings and parentheses. A string
        literal glued to a neighbouring value (PRINT "X="X) acts like ';'.
        """
        items: List[PrintItem] = []
        current: List[str] = []
        in_string = False
        depth = 0

        def flush(separator: str):
            items.append(PrintItem(''.join(current).strip(), separator))
            current.clear()

        for ch in args:
            if in_string:
                current.append(ch)
                if ch == '"':
                    in_string = False
                continue

            pending = ''.join(current).strip()
            if ch == '"':
                if depth == 0 and pending and (pending[-1].isalnum() or pending[-1] in _PRINT_VALUE_END):
                    flush(';')
                in_string = True
                current.append(ch)
            elif ch in ';,' and depth == 0:
                flush(ch)
            else:
                if (depth == 0 and pending.endswith('"') and not ch.isspace()
                        and ch not in '+-*/^=<>)'):
                    flush(';')
                if ch in '([':
                    depth += 1
                elif ch in ')]':
                    depth -= 1
                current.append(ch)

        if in_string:
            self.error(f"Unterminated string in PRINT: {args}")
        tail = ''.join(current).strip()
        if tail:
            items.append(PrintItem(tail))
        return PrintStatement(tuple(items))

    def parse_let(self, args: str) -> LetStatement:
        # The first top-level '=' assigns; any later '=', '<>' or '<=' compares
        index = find_top_level(args, '=')
        if index is None:
            self.error(f"Invalid assignment: {args}")

        target = self.parse_target(args[:index])
        expression = args[index + 1:].strip()
        if not expression:
            self.error(f"Missing expression in assignment: {args}")
        return LetStatement(target, expression)

    def parse_goto(self, args: str) -> GotoStatement:
        if not args:
            self.error("GOTO requires a line number")
        return GotoStatement(args)

    def parse_gosub(self, args: str) -> GosubStatement:
        if not args:
            self.error("GOSUB requires a line number")
        return GosubStatement(args)

    def parse_restore(self, args: str) -> RestoreStatement:
        if args:
            self.error(f"RESTORE to a line is not supported: {args}")
        return RestoreStatement()

    def parse_clear(self, args: str) -> ClearStatement:
        # CLEAR n (memory size in some dialects) is accepted and ignored
        return ClearStatement()

    def parse_for(self, args: str) -> ForStatement:
        """Parse FOR var=start TO limit [STEP step]."""
        equals = args.find('=')
        if equals == -1:
            self.error(f"FOR requires '=': {args}")
        variable = args[:equals].strip().upper()
        if not _NAME_PATTERN.match(variable) or variable.endswith('$'):
            self.error(f"Invalid FOR variable: {args[:equals].strip()}")

        to = find_unquoted(args, 'TO', equals + 1)
        if to is None:
            self.error(f"FOR requires TO: {args}")
        start = args[equals + 1:to[0]].strip()

        step_match = find_unquoted(args, 'STEP', to[1])
        if step_match is None:
            limit = args[to[1]:].strip()
            step = "1"
        else:
            limit = args[to[1]:step_match[0]].strip()
            step = args[step_match[1]:].strip()

        if not start or not limit or not step:
            self.error(f"Incomplete FOR statement: {args}")
        return ForStatement(variable, start, limit, step)

    def parse_next(self, args: str) -> NextStatement:
        if not args:
            return NextStatement()
        return NextStatement(tuple(self.parse_name(part, 'NEXT') for part in smart_split(args)))

    def parse_if(self, args: str) -> IfStatement:
        """Parse IF cond, IF cond THEN clause, IF cond THEN clause ELSE clause."""
        then = find_unquoted(args, 'THEN')
        if then is None:
            if not args:
                self.error("IF requires a condition")
            return IfStatement(args)

        condition = args[:then[0]].strip()
        if not condition:
            self.error("IF requires a condition")

        otherwise = find_unquoted(args, 'ELSE', then[1])
        if otherwise is None:
            then_clause = args[then[1]:].strip()
            else_clause = None
        else:
            then_clause = args[then[1]:otherwise[0]].strip()
            else_clause = args[otherwise[1]:].strip()
            if not else_clause:
                self.error(f"Empty ELSE clause: {args}")

        if not then_clause:
            self.error(f"Empty THEN clause: {args}")
        return IfStatement(condition, then_clause, else_clause)

    def parse_dim(self, args: str) -> DimStatement:
        if not args:
            self.error("DIM requires at least one array")

        arrays = []
        for part in smart_split(args):
            target = self.parse_target(part) if part else None
            if target is None or not target.is_array:
                self.error(f"Invalid array declaration: {part}")
            for dimension in target.indices:
                if _INT_PATTERN.match(dimension) and int(dimension) < 0:
                    self.error(f"Invalid array dimension: {dimension}")
            arrays.append(ArrayDeclaration(target.name, target.indices))
        return DimStatement(tuple(arrays))

    def parse_def(self, args: str) -> DefStatement:
        match = _DEF_PATTERN.match(args.strip())
        if not match:
            self.error(f"Invalid DEF function syntax: {args}")

        name = match.group(1).upper()
        parameter = match.group(2).upper()
        expression = match.group(3).strip()
        if not name.startswith('FN'):
            self.error(f"User-defined function must start with FN: {name}")
        if not _NAME_PATTERN.match(parameter):
            self.error(f"Invalid parameter name: {match.group(2)}")
        if not expression:
            self.error(f"DEF {name} has no expression")
        return DefStatement(name, parameter, expression)

    def parse_input(self, args: str) -> InputStatement:
        """Parse INPUT ["prompt";] var[,var...]."""
        args = args.strip()
        prompt: Optional[str] = None

        if args.startswith('"'):
            end_quote = args.find('"', 1)
            if end_quote == -1:
                self.error("Unterminated string in INPUT statement")
            prompt = args[1:end_quote]
            args = args[end_quote + 1:].strip()
            if args[:1] in (';', ','):
                args = args[1:].strip()
            if not args:
                self.error("INPUT statement requires variable(s) after prompt")

        return InputStatement(self.parse_targets(args, 'INPUT'), prompt)

    def parse_read(self, args: str) -> ReadStatement:
        return ReadStatement(self.parse_targets(args, 'READ'))

    def parse_data(self, args: str) -> DataStatement:
        if not args.strip():
            return DataStatement()

        values = []
        for part in smart_split(args):
            if not part:
                self.error("Empty value in DATA statement")
            if len(part) >= 2 and part.startswith('"') and part.endswith('"'):
                values.append(part[1:-1])
                continue
            try:
                values.append(parse_number(part))
            except ValueError:
                self.error(f"Invalid numeric value in DATA: {part}")
        return DataStatement(tuple(values))

    def parse_on(self, args: str) -> OnStatement:
        """Parse ON expr GOTO|GOSUB line[,line...]."""
        found = [(match, kind)
                 for match, kind in ((find_unquoted(args, 'GOTO'), StatementKind.GOTO),
                                     (find_unquoted(args, 'GOSUB'), StatementKind.GOSUB))
                 if match is not None]
        if not found:
            self.error(f"ON requires GOTO or GOSUB: {args}")
        (start, end), mode = min(found, key=lambda item: item[0][0])

        selector = args[:start].strip()
        if not selector:
            self.error("ON requires a selector expression")

        destinations = []
        for part in smart_split(args[end:]):
            if not is_line_number(part):
                self.error(f"Invalid line number in ON {mode.name}: {part}")
            destinations.append(int(part))
        return OnStatement(selector, mode, tuple(destinations))


_parser = StatementParser()


def parse_statement(text: str) -> Statement:
    """Parse one statement fragment."""
    return _parser.parse_statement(text)


@lru_cache(maxsize=None)
def parse_clause(text: str) -> Tuple[Statement, ...]:
    """Parse THEN/ELSE clause text. Results are cached by text."""
    return _parser.parse_clause(text)
