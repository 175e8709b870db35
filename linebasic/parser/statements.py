"""
Statement definitions for BASIC programs.

Each statement is an immutable record tagged with a StatementKind. Argument
expressions are kept as source text and evaluated by the executor.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Optional, Tuple, Union


class StatementKind(Enum):
    """Statement types."""
    REM = auto()
    PRINT = auto()
    LET = auto()
    GOTO = auto()
    GOSUB = auto()
    RETURN = auto()
    FOR = auto()
    NEXT = auto()
    IF = auto()
    DIM = auto()
    DEF = auto()
    INPUT = auto()
    READ = auto()
    DATA = auto()
    RESTORE = auto()
    CLEAR = auto()
    ON = auto()
    END = auto()
    STOP = auto()


DataValue = Union[int, float, str]


@dataclass(frozen=True)
class Target:
    """Something a value can be stored into: A, A$, or B(I,J)."""
    name: str
    indices: Tuple[str, ...] = ()

    @property
    def is_array(self) -> bool:
        return bool(self.indices)

    @property
    def is_string(self) -> bool:
        return self.name.endswith('$')

    def __str__(self):
        if self.indices:
            return f"{self.name}({','.join(self.indices)})"
        return self.name


@dataclass(frozen=True)
class Statement:
    """Base class for all statements."""
    kind: ClassVar[StatementKind]

    @property
    def keyword(self) -> str:
        return self.kind.name


@dataclass(frozen=True)
class RemStatement(Statement):
    text: str = ""
    kind: ClassVar[StatementKind] = StatementKind.REM

    def __str__(self):
        return f"REM {self.text}" if self.text else "REM"


@dataclass(frozen=True)
class PrintItem:
    """One PRINT item and the separator that followed it ('', ';' or ',')."""
    expression: str
    separator: str = ''


@dataclass(frozen=True)
class PrintStatement(Statement):
    items: Tuple[PrintItem, ...] = ()
    kind: ClassVar[StatementKind] = StatementKind.PRINT

    @property
    def suppresses_newline(self) -> bool:
        """A trailing ';' or ',' keeps the cursor on the current line."""
        return bool(self.items) and self.items[-1].separator != ''

    def __str__(self):
        text = ''.join(item.expression + item.separator for item in self.items)
        return f"PRINT {text}" if text else "PRINT"


@dataclass(frozen=True)
class LetStatement(Statement):
    target: Target
    expression: str
    kind: ClassVar[StatementKind] = StatementKind.LET

    def __str__(self):
        return f"{self.target}={self.expression}"


@dataclass(frozen=True)
class GotoStatement(Statement):
    destination: str
    kind: ClassVar[StatementKind] = StatementKind.GOTO

    def __str__(self):
        return f"GOTO {self.destination}"


@dataclass(frozen=True)
class GosubStatement(Statement):
    destination: str
    kind: ClassVar[StatementKind] = StatementKind.GOSUB

    def __str__(self):
        return f"GOSUB {self.destination}"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    kind: ClassVar[StatementKind] = StatementKind.RETURN

    def __str__(self):
        return "RETURN"


@dataclass(frozen=True)
class ForStatement(Statement):
    """FOR var = start TO limit [STEP step]."""
    variable: str
    start: str
    limit: str
    step: str = "1"
    kind: ClassVar[StatementKind] = StatementKind.FOR

    def __str__(self):
        text = f"FOR {self.variable}={self.start} TO {self.limit}"
        if self.step != "1":
            text += f" STEP {self.step}"
        return text


@dataclass(frozen=True)
class NextStatement(Statement):
    """NEXT [var[,var...]]. No variables means the innermost loop."""
    variables: Tuple[str, ...] = ()
    kind: ClassVar[StatementKind] = StatementKind.NEXT

    def __str__(self):
        return f"NEXT {','.join(self.variables)}" if self.variables else "NEXT"


@dataclass(frozen=True)
class IfStatement(Statement):
    """
    IF condition [THEN clause [ELSE clause]].

    Without THEN, a false condition skips the rest of the line. Clause text
    is kept verbatim and parsed when it is first executed.
    """
    condition: str
    then_clause: Optional[str] = None
    else_clause: Optional[str] = None
    kind: ClassVar[StatementKind] = StatementKind.IF

    @property
    def has_then(self) -> bool:
        return self.then_clause is not None

    def __str__(self):
        text = f"IF {self.condition}"
        if self.then_clause is not None:
            text += f" THEN {self.then_clause}"
        if self.else_clause is not None:
            text += f" ELSE {self.else_clause}"
        return text


@dataclass(frozen=True)
class ArrayDeclaration:
    """One array in a DIM list. Dimensions are expression text."""
    name: str
    dimensions: Tuple[str, ...]

    @property
    def is_string(self) -> bool:
        return self.name.endswith('$')

    def __str__(self):
        return f"{self.name}({','.join(self.dimensions)})"


@dataclass(frozen=True)
class DimStatement(Statement):
    arrays: Tuple[ArrayDeclaration, ...]
    kind: ClassVar[StatementKind] = StatementKind.DIM

    def __str__(self):
        return "DIM " + ','.join(str(a) for a in self.arrays)


@dataclass(frozen=True)
class DefStatement(Statement):
    """DEF FNx(param)=expression."""
    name: str
    parameter: str
    expression: str
    kind: ClassVar[StatementKind] = StatementKind.DEF

    def __str__(self):
        return f"DEF {self.name}({self.parameter})={self.expression}"


@dataclass(frozen=True)
class InputStatement(Statement):
    variables: Tuple[Target, ...]
    prompt: Optional[str] = None
    kind: ClassVar[StatementKind] = StatementKind.INPUT

    @property
    def has_prompt(self) -> bool:
        return self.prompt is not None

    def __str__(self):
        names = ','.join(str(v) for v in self.variables)
        if self.prompt is not None:
            return f'INPUT "{self.prompt}";{names}'
        return f"INPUT {names}"


@dataclass(frozen=True)
class ReadStatement(Statement):
    variables: Tuple[Target, ...]
    kind: ClassVar[StatementKind] = StatementKind.READ

    def __str__(self):
        return "READ " + ','.join(str(v) for v in self.variables)


@dataclass(frozen=True)
class DataStatement(Statement):
    values: Tuple[DataValue, ...] = ()
    kind: ClassVar[StatementKind] = StatementKind.DATA

    def __str__(self):
        rendered = [f'"{v}"' if isinstance(v, str) else str(v) for v in self.values]
        return "DATA " + ','.join(rendered)


@dataclass(frozen=True)
class RestoreStatement(Statement):
    kind: ClassVar[StatementKind] = StatementKind.RESTORE

    def __str__(self):
        return "RESTORE"


@dataclass(frozen=True)
class ClearStatement(Statement):
    kind: ClassVar[StatementKind] = StatementKind.CLEAR

    def __str__(self):
        return "CLEAR"


@dataclass(frozen=True)
class OnStatement(Statement):
    """ON selector GOTO|GOSUB line[,line...]."""
    selector: str
    mode: StatementKind
    destinations: Tuple[int, ...]
    kind: ClassVar[StatementKind] = StatementKind.ON

    def __str__(self):
        lines = ','.join(str(d) for d in self.destinations)
        return f"ON {self.selector} {self.mode.name} {lines}"


@dataclass(frozen=True)
class EndStatement(Statement):
    kind: ClassVar[StatementKind] = StatementKind.END

    def __str__(self):
        return "END"


@dataclass(frozen=True)
class StopStatement(Statement):
    kind: ClassVar[StatementKind] = StatementKind.STOP

    def __str__(self):
        return "STOP"
