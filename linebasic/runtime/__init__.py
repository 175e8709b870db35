"""Runtime: expression evaluation, symbols and program execution."""

from .builtins import Builtins
from .executor import Executor, ForRecord, RunResult, RunStatus
from .expression import ExpressionEvaluator, ExpressionLexer, Token, TokenType, tokenize
from .symbols import SymbolTable, SymbolType

__all__ = [
    'Builtins', 'Executor', 'ForRecord', 'RunResult', 'RunStatus',
    'ExpressionEvaluator', 'ExpressionLexer', 'Token', 'TokenType', 'tokenize',
    'SymbolTable', 'SymbolType',
]
