"""
BASIC line splitter - Breaks numbered source lines into statement fragments.

Handles:
- The leading line number
- ':' statement separators, except inside "string literals"
- IF ... THEN, where the THEN clause runs to the end of the line
- REM, which swallows the rest of the line
- Keywords glued to their arguments (FORI=1TO8, PRINT"X", IFX>Y)
"""

import re
from typing import List, Optional, Tuple

from ..errors import BasicSyntaxError


# Statement keywords. '?' is the usual shorthand for PRINT.
KEYWORDS = (
    'CLEAR', 'DATA', 'DEF', 'DIM', 'END', 'FOR', 'GOSUB', 'GOTO', 'IF',
    'INPUT', 'LET', 'NEXT', 'ON', 'PRINT', 'READ', 'REM', 'RESTORE',
    'RETURN', 'STOP', '?',
)

# Longest first, so the longest keyword prefixing a fragment wins.
_KEYWORDS_BY_LENGTH = sorted(KEYWORDS, key=len, reverse=True)

_LINE_PATTERN = re.compile(r'^(\d+)\s*(.*)$', re.DOTALL)
_LINE_NUMBER_PATTERN = re.compile(r'^\d+$')


def split_line(line: str) -> Tuple[int, str]:
    """
    Separate the line number from the statement text.

    Args:
        line: Raw source line, e.g. '100 PRINT "HI":END'

    Returns:
        (line_number, rest) where rest has surrounding whitespace removed
    """
    text = line.strip()
    if not text:
        raise BasicSyntaxError("Empty line")

    match = _LINE_PATTERN.match(text)
    if not match:
        raise BasicSyntaxError(f"Invalid line format: {text}")

    return int(match.group(1)), match.group(2).strip()


def is_line_number(text: str) -> bool:
    """True if text is nothing but a (possibly padded) line number."""
    return bool(_LINE_NUMBER_PATTERN.match(text.strip()))


def find_unquoted(text: str, word: str, start: int = 0) -> Optional[Tuple[int, int]]:
    """
    Find a word outside string literals, ignoring case.

    Returns:
        (start, end) of the first match at or after start, or None
    """
    upper = text.upper()
    target = word.upper()
    in_string = False
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
            continue
        if in_string or i < start:
            continue
        if upper.startswith(target, i):
            return i, i + len(target)
    return None


def _absorbs_colons(fragment: str) -> bool:
    """True once a fragment has reached a point where ':' no longer splits."""
    head = fragment.lstrip().upper()
    if head.startswith('REM'):
        return True
    if head.startswith('IF') and find_unquoted(fragment, 'THEN') is not None:
        return True
    return False


def split_statements(text: str) -> List[str]:
    """
    Split the text after a line number into statement fragments.

    ':' inside a string never splits. Once a fragment is an IF that has
    reached its THEN, or is a REM, the remainder of the line belongs to it.
    """
    fragments = []
    current = []
    in_string = False

    for ch in text:
        if ch == '"':
            in_string = not in_string
            current.append(ch)
        elif ch == ':' and not in_string and not _absorbs_colons(''.join(current)):
            fragments.append(''.join(current))
            current = []
        else:
            current.append(ch)
    fragments.append(''.join(current))

    return [f.strip() for f in fragments if f.strip()]


def smart_split(text: str, separator: str = ',') -> List[str]:
    """
    Split on a separator that is outside strings and parentheses.

    Every part is returned stripped, empty parts included, so callers can
    reject argument lists such as "1,,2".
    """
    parts = []
    current = []
    in_string = False
    depth = 0

    for ch in text:
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch in '([':
                depth += 1
            elif ch in ')]':
                depth -= 1
            elif ch == separator and depth == 0:
                parts.append(''.join(current).strip())
                current = []
                continue
        current.append(ch)
    parts.append(''.join(current).strip())
    return parts


def match_keyword(fragment: str) -> Tuple[Optional[str], str]:
    """
    Find the statement keyword at the start of a fragment.

    The keyword does not have to be followed by a space: "FORI=1TO8" is
    FOR with arguments "I=1TO8".

    Returns:
        (keyword, args), or (None, fragment) if no keyword matches
    """
    upper = fragment.upper()
    for keyword in _KEYWORDS_BY_LENGTH:
        if upper.startswith(keyword):
            return keyword, fragment[len(keyword):].strip()
    return None, fragment.strip()


def find_assignment(fragment: str) -> Optional[int]:
    """
    Locate the '=' of an implicit assignment ("A=5", "B$(2)="X").

    Returns:
        Index of the top-level '=', or None if the fragment is not an
        assignment (no '=', or a comparison operator appears).
    """
    bare = []
    in_string = False
    for ch in fragment:
        if ch == '"':
            in_string = not in_string
            bare.append(' ')
        else:
            bare.append(' ' if in_string else ch)
    unquoted = ''.join(bare)

    for operator in ('==', '<=', '>=', '<>'):
        if operator in unquoted:
            return None

    index = unquoted.find('=')
    return index if index > 0 else None


def find_top_level(text: str, char: str) -> Optional[int]:
    """Index of the first char outside strings and parentheses, or None."""
    in_string = False
    depth = 0
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch in '([':
            depth += 1
        elif ch in ')]':
            depth -= 1
        elif ch == char and depth == 0:
            return i
    return None
