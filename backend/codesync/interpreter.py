"""CodeSync trace interpreter.

This module runs programs written in a tiny Python subset and records every
statement as an `ExecutionStep`, so a visualizer can replay the run one step at
a time. Supported statements are assignment, `print(...)`,
`name = input(...)` and `for name in range(n):` with an indented body.

Execution is resumable but never blocks: when an input statement is reached
the interpreter returns early with a paused step. The caller later calls `run`
again with the paused step's scope and line number plus the value the user
typed. Loop bodies are executed by recursively running the interpreter on
the body lines and remapping the resulting line numbers back to the outer
source.

Runtime budgets (total steps per call, iterations per loop) are enforced so a
runaway program produces an error step instead of an unbounded trace.
"""

import copy
import json
import logging
import math
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from .errors import ScriptError, ScriptLimitError, ScriptOverflowError, ScriptTypeError
from .expressions import Value, evaluate
from .statements import Assignment, ForRange, InputAssignment, Print, Statement, parse_statement
from .trace import ExecutionStep, ExecutorResponse, ProvidedInput

logger = logging.getLogger(__name__)

# Server-wide defaults; the HTTP layer never lets a client exceed these.
DEFAULT_MAX_STEPS = int(os.environ.get("CODESYNC_MAX_STEPS") or 10000)
DEFAULT_MAX_LOOP = int(os.environ.get("CODESYNC_MAX_LOOP") or 10000)

INPUT_PLACEHOLDER = "Awaiting user input..."

_INT_TEXT = re.compile(r"[+-]?\d+")
_FLOAT_TEXT = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")


def coerce_input(raw: str) -> Value:
    """Convert user-entered text to a number when all of it is numeric.

    Surrounding whitespace is ignored for the numeric check only; text that
    is not a number is kept exactly as typed. Numbers too large to represent
    (over-long integers, floats that overflow to inf) also stay text.
    """
    text = raw.strip()
    if _INT_TEXT.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            return raw
    if _FLOAT_TEXT.fullmatch(text):
        value = float(text)
        if math.isfinite(value):
            return value
    return raw


def _snapshot(scope: Dict[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(scope)


def _render(value: Value, fmt, **kwargs) -> str:
    # int-to-str conversion is capped by the runtime (sys.int_info)
    try:
        return fmt(value, **kwargs)
    except ValueError as e:
        raise ScriptOverflowError(str(e)) from e


def _indent(raw: str) -> int:
    return len(raw) - len(raw.lstrip())


class Interpreter:
    """Top-level trace interpreter.

    Tunable attributes (defaults are set in __init__):
    - max_steps: maximum number of trace entries a single `run` may produce,
      loop expansion included
    - max_loop: maximum iteration count of any single `for` loop

    `run` keeps no per-call state on the instance, so one Interpreter can be
    reused for any number of independent or resumed runs.
    """

    def __init__(self):
        self.max_steps = DEFAULT_MAX_STEPS
        self.max_loop = DEFAULT_MAX_LOOP

    def run(
        self,
        code: str,
        initial_scope: Optional[Dict[str, Any]] = None,
        start_line: int = 0,
        provided_input: Optional[ProvidedInput] = None,
    ) -> ExecutorResponse:
        """Interpret `code` and return its execution trace.

        Args:
            code: full program source, lines separated by newlines.
            initial_scope: variables to start with; copied, never mutated.
            start_line: 0-based index of the first line to execute. To resume
                after a pause pass the paused step's `line_number`.
            provided_input: the value for the variable a previous call paused
                on. It is assigned silently, without a trace entry.

        Returns:
            An ExecutorResponse whose last step is an error step, a paused
            input step, or the last statement of a completed run.

        Raises:
            ValueError: if `start_line` is negative or the provided input
                names an invalid identifier. Program errors never raise; they
                are reported in the response.
        """
        if start_line < 0:
            raise ValueError("start_line must be >= 0")
        scope: Dict[str, Any] = _snapshot(initial_scope or {})
        if provided_input is not None:
            if not provided_input.variable.isidentifier():
                raise ValueError(f"invalid input variable name: {provided_input.variable!r}")
            scope[provided_input.variable] = coerce_input(provided_input.value)
        response, _ = self._execute_core(code.split("\n"), scope, start_line, self.max_steps)
        return response

    def _execute_core(
        self,
        lines: List[str],
        scope: Dict[str, Any],
        start_line: int,
        budget: int,
    ) -> Tuple[ExecutorResponse, Dict[str, Any]]:
        """Walk `lines` from `start_line`, returning (response, final_scope).

        `scope` is owned by this call and mutated in place. `budget` is the
        number of trace entries this call may still append.
        """
        trace: List[ExecutionStep] = []
        i = start_line
        while i < len(lines):
            raw = lines[i]
            line = raw.strip()
            if not line or line.startswith("#"):
                i += 1
                continue
            step = ExecutionStep(
                line_number=i + 1,
                description=f"Executing line: {line}",
                variables=_snapshot(scope),
            )
            try:
                self._check_budget(trace, budget)
                trace.append(step)
                statement = parse_statement(line)
                i, stop, err = self._dispatch_statement(lines, i, statement, scope, trace, budget)
            except ScriptError as e:
                message = str(e)
                if trace and trace[-1] is step:
                    trace.pop()
                    variables = step.variables
                else:
                    variables = _snapshot(scope)
                trace.append(ExecutionStep(line_number=i + 1, description=message, variables=variables, is_error=True))
                logger.debug("run failed at line %d: %s", i + 1, message)
                return ExecutorResponse(trace, message), scope
            if stop:
                return ExecutorResponse(trace, err), scope
        return ExecutorResponse(trace, None), scope

    def _check_budget(self, trace: List[ExecutionStep], budget: int) -> None:
        if len(trace) >= budget:
            raise ScriptLimitError(f"step limit of {self.max_steps} exceeded")

    def _dispatch_statement(
        self,
        lines: List[str],
        i: int,
        statement: Statement,
        scope: Dict[str, Any],
        trace: List[ExecutionStep],
        budget: int,
    ) -> Tuple[int, bool, Optional[str]]:
        """Execute one parsed statement at line index `i`.

        The provisional step for the line is `trace[-1]` and is updated in
        place. Returns (next_index, stop, error_or_none); `stop` is set when
        the run must return now, either paused or with a propagated error.
        """
        step = trace[-1]
        if isinstance(statement, InputAssignment):
            prompt = "" if statement.prompt is None else evaluate(statement.prompt, scope)
            step.description = str(prompt) or INPUT_PLACEHOLDER
            step.requires_input = True
            step.input_variable = statement.target
            logger.debug("paused for input into %r at line %d", statement.target, i + 1)
            return i, True, None
        if isinstance(statement, ForRange):
            return self._handle_for(lines, i, statement, scope, trace, budget)
        if isinstance(statement, Assignment):
            value = evaluate(statement.value, scope)
            rendered = _render(value, json.dumps, ensure_ascii=False)
            scope[statement.target] = value
            step.description = f"Assign {rendered} to '{statement.target}'"
            step.variables = _snapshot(scope)
            return i + 1, False, None
        if isinstance(statement, Print):
            value = "" if statement.value is None else evaluate(statement.value, scope)
            step.description = "Printing output"
            step.output = _render(value, str)
            return i + 1, False, None
        raise TypeError(f"unknown statement {statement!r}")

    def _extract_loop_body(self, lines: List[str], header_idx: int) -> Tuple[List[Tuple[int, str]], int]:
        """Collect the indented body following the loop header at `header_idx`.

        Returns ([(absolute_index, raw_line), ...], index_after_body). Blank
        lines are skipped without ending the body; the first non-blank line
        indented no deeper than the header ends it.
        """
        base = _indent(lines[header_idx])
        body: List[Tuple[int, str]] = []
        j = header_idx + 1
        while j < len(lines):
            raw = lines[j]
            if not raw.strip():
                j += 1
                continue
            if _indent(raw) <= base:
                break
            body.append((j, raw))
            j += 1
        return body, j

    def _handle_for(
        self,
        lines: List[str],
        i: int,
        statement: ForRange,
        scope: Dict[str, Any],
        trace: List[ExecutionStep],
        budget: int,
    ) -> Tuple[int, bool, Optional[str]]:
        """Expand a `for var in range(n):` loop.

        Each iteration binds the loop variable, records an iteration step at
        the header line, then runs the body as an independent program seeded
        with the current scope. Sub-trace line numbers are local to the body
        and are mapped back through the body's absolute indices. The sub-run's
        final scope becomes the outer scope. A failing or pausing body stops
        the whole run immediately.
        """
        count = evaluate(statement.limit, scope)
        if isinstance(count, float) and count.is_integer():
            count = int(count)
        if not isinstance(count, int) or isinstance(count, bool):
            raise ScriptTypeError(f"'{statement.limit_text}' does not evaluate to an integer")
        if count > self.max_loop:
            raise ScriptLimitError(f"loop iteration limit of {self.max_loop} exceeded ({count} requested)")
        count = max(count, 0)
        trace[-1].description = f"Starting a loop that will run {count} times."

        body, end_idx = self._extract_loop_body(lines, i)
        body_lines = [raw for _, raw in body]
        logger.debug("expanding loop at line %d: %d iterations over %d body lines", i + 1, count, len(body))

        for k in range(count):
            scope[statement.var] = k
            self._check_budget(trace, budget)
            trace.append(
                ExecutionStep(
                    line_number=i + 1,
                    description=f"Loop iteration {k + 1}. Set '{statement.var}' to {k}.",
                    variables=_snapshot(scope),
                )
            )
            sub_res, sub_scope = self._execute_core(body_lines, dict(scope), 0, budget - len(trace))
            for sub_step in sub_res.trace:
                sub_step.line_number = body[sub_step.line_number - 1][0] + 1
                trace.append(sub_step)
            scope.clear()
            scope.update(sub_scope)
            if sub_res.error is not None:
                return i, True, sub_res.error
            if sub_res.status == "paused":
                return i, True, None
        return end_idx, False, None
