"""
Symbol environment for a running program.

Scalars, arrays and user functions live in separate namespaces, so A, A(3)
and FNA never collide. Names are case-insensitive.
"""

from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class SymbolType(Enum):
    """Symbol namespaces."""
    VARIABLE = auto()
    ARRAY = auto()
    FUNCTION = auto()


class SymbolTable:
    """Three-namespace symbol table."""

    def __init__(self, tables: Optional[Dict[SymbolType, Dict[str, Any]]] = None):
        if tables is None:
            tables = {symbol_type: {} for symbol_type in SymbolType}
        self._tables = tables

    @staticmethod
    def _key(name: str) -> str:
        return name.upper()

    def get(self, name: str, symbol_type: SymbolType = SymbolType.VARIABLE) -> Optional[Any]:
        """Look up a name; None when it is not bound."""
        return self._tables[symbol_type].get(self._key(name))

    def put(self, name: str, value: Any, symbol_type: SymbolType = SymbolType.VARIABLE):
        self._tables[symbol_type][self._key(name)] = value

    def contains(self, name: str, symbol_type: SymbolType = SymbolType.VARIABLE) -> bool:
        return self._key(name) in self._tables[symbol_type]

    def view(self, symbol_type: SymbolType) -> Mapping[str, Any]:
        """Read-only view of one namespace."""
        return MappingProxyType(self._tables[symbol_type])

    def nested_scope(self) -> 'SymbolTable':
        """
        Scope for evaluating a user function body.

        Scalars are copied so binding the parameter never leaks out; arrays
        and functions are shared with this table.
        """
        return SymbolTable({
            SymbolType.VARIABLE: self._tables[SymbolType.VARIABLE].copy(),
            SymbolType.ARRAY: self._tables[SymbolType.ARRAY],
            SymbolType.FUNCTION: self._tables[SymbolType.FUNCTION],
        })

    def clear(self):
        """CLEAR: forget scalars and arrays. DEF functions stay defined."""
        self._tables[SymbolType.VARIABLE].clear()
        self._tables[SymbolType.ARRAY].clear()

    def count(self, symbol_type: SymbolType) -> int:
        return len(self._tables[symbol_type])

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())

    def __repr__(self):
        return (f"SymbolTable(variables={self.count(SymbolType.VARIABLE)}, "
                f"arrays={self.count(SymbolType.ARRAY)}, "
                f"functions={self.count(SymbolType.FUNCTION)})")
