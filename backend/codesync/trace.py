"""Trace data types returned by the interpreter.

An `ExecutorResponse` is the complete result of one interpreter call: the
ordered `ExecutionStep` list plus an optional error string. Steps serialize to
the camelCase field names the visualizer reads (`lineNumber`, `isError`, ...),
and optional flags are omitted when unset.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class ExecutionStep:
    """One observable unit of interpreted activity.

    `variables` is a deep-copied snapshot of scope after the step's effect
    (before it, for an error step). `line_number` is 1-based and always in
    the coordinates of the source text the caller passed in.
    """

    line_number: int
    description: str
    variables: Dict[str, Any]
    output: Optional[str] = None
    is_error: bool = False
    requires_input: bool = False
    input_variable: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "lineNumber": self.line_number,
            "description": self.description,
            "variables": dict(self.variables),
        }
        if self.output is not None:
            d["output"] = self.output
        if self.is_error:
            d["isError"] = True
        if self.requires_input:
            d["requiresInput"] = True
            d["inputVariable"] = self.input_variable
        return d


@dataclass
class ExecutorResponse:
    trace: List[ExecutionStep] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def status(self) -> str:
        """One of "completed", "paused" or "failed"."""
        if self.error is not None:
            return "failed"
        if self.trace and self.trace[-1].requires_input:
            return "paused"
        return "completed"

    def continuation(self) -> Optional[Tuple[Dict[str, Any], int, str]]:
        """Return (scope, start_line, input_variable) to resume a paused run.

        The paused step's 1-based line number is the 0-based index of the line
        after the input statement, which is where the next call must start.
        """
        if self.status != "paused":
            return None
        step = self.trace[-1]
        return dict(step.variables), step.line_number, step.input_variable

    def outputs(self) -> List[str]:
        return [s.output for s in self.trace if s.output is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {"trace": [s.to_dict() for s in self.trace], "error": self.error}


@dataclass
class ProvidedInput:
    """A value the caller supplies for a paused input statement."""

    variable: str
    value: str
