"""
Error types raised by the loader, the expression evaluator and the executor.
"""

from typing import Optional


class BasicError(Exception):
    """Base class for all BASIC interpreter errors."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def with_line(self, line_number: int) -> 'BasicError':
        """Return a copy of this error tagged with a BASIC line number."""
        return type(self)(self.message, line_number)

    def __str__(self):
        if self.line_number is None:
            return self.message
        return f"{self.message} in line {self.line_number}"


class BasicSyntaxError(BasicError):
    """Malformed source, detected while loading (or parsing a clause)."""
    pass


class BasicRuntimeError(BasicError):
    """A program defect detected while running."""
    pass


class BasicInternalError(BasicError):
    """An unexpected failure inside the interpreter itself."""
    pass


class EvaluationError(BasicError):
    """Raised by the expression evaluator; reported as a runtime error."""
    pass
