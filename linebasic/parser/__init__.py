"""BASIC parser - Builds statements and programs from source lines."""

from .parser import StatementParser, parse_statement, parse_clause
from .program import (
    Program, ProgramLine, ControlLocation, END_LOCATION, tokenize_line, tokenize_program,
)
from .statements import *

__all__ = [
    'StatementParser', 'parse_statement', 'parse_clause',
    'Program', 'ProgramLine', 'ControlLocation', 'END_LOCATION',
    'tokenize_line', 'tokenize_program',
]
