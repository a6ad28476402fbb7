"""Error types raised while interpreting a CodeSync program.

Every failure that a user program can provoke is a `ScriptError`. Each subclass
carries the Python-style `kind` name the visualizer shows (NameError,
TypeError, ...). `str(err)` renders as "<kind>: <message>", which is exactly
the text placed in the terminal error step and the top-level error string.
"""

from typing import Optional


class ScriptError(Exception):
    """Base class for errors surfaced to the user as a terminal trace step.

    Attributes:
        message: the bare message without the kind prefix
        column: optional 1-based column within the line where the error occurred
        text: optional source text the error refers to
    """

    kind = "Error"

    def __init__(self, message: str, *, column: Optional[int] = None, text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.column = column
        self.text = text

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ScriptNameError(ScriptError):
    kind = "NameError"


class ScriptTypeError(ScriptError):
    kind = "TypeError"


class ScriptZeroDivisionError(ScriptError):
    kind = "ZeroDivisionError"


class ScriptSyntaxError(ScriptError):
    kind = "SyntaxError"


class ScriptLimitError(ScriptError):
    """Raised when a run exceeds the interpreter's step or loop budget."""

    kind = "RuntimeError"


class ScriptOverflowError(ScriptError):
    """Raised when a numeric result is too large to compute or display."""

    kind = "OverflowError"
