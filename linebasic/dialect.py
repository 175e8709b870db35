"""Dialect settings shared by the executor and the expression evaluator."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Dialect:
    """
    Configurable BASIC dialect.

    Attributes:
        array_offset: First valid array subscript. Microsoft-style BASIC uses 1.
        uppercase_input: Upper-case string fields typed at an INPUT prompt.
        print_zone_width: Column width that a ',' in PRINT advances to.
    """
    array_offset: int = 1
    uppercase_input: bool = True
    print_zone_width: int = 14


DEFAULT_DIALECT = Dialect()
