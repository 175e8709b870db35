"""BASIC line splitter - Turns numbered source lines into statement fragments."""

from .splitter import (
    KEYWORDS, split_line, split_statements, smart_split, find_unquoted,
    match_keyword, find_assignment, find_top_level, is_line_number,
)

__all__ = [
    'KEYWORDS', 'split_line', 'split_statements', 'smart_split', 'find_unquoted',
    'match_keyword', 'find_assignment', 'find_top_level', 'is_line_number',
]
