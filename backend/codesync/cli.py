"""Command-line driver for the CodeSync interpreter.

`codesync run prog.py` executes a program in the terminal. Whenever the trace
pauses on an input statement the runner takes the next `--input` value (or
asks on stdin) and resumes the interpreter from the paused step, which is the
same protocol the visualizer follows. `codesync serve` starts the HTTP API.
"""

import argparse
import json
import logging
import os
import pathlib
import sys
from typing import Callable, List, Optional

from .interpreter import Interpreter
from .trace import ExecutorResponse, ProvidedInput

logger = logging.getLogger(__name__)


def run_to_completion(
    it: Interpreter,
    code: str,
    inputs: List[str],
    ask: Optional[Callable[[str], str]] = None,
    on_chunk: Optional[Callable[[ExecutorResponse], None]] = None,
) -> ExecutorResponse:
    """Run `code`, answering input pauses until the program stops.

    Queued `inputs` are consumed first; after that `ask(prompt)` is called. If
    `ask` is None the run is left paused once the queue is empty. Returns a
    response holding the concatenated trace of every resumed call.
    """
    queue = list(inputs)
    res = it.run(code)
    steps = list(res.trace)
    if on_chunk:
        on_chunk(res)
    while res.status == "paused":
        scope, start_line, variable = res.continuation()
        prompt = res.trace[-1].description
        if queue:
            value = queue.pop(0)
        elif ask is not None:
            value = ask(prompt)
        else:
            break
        logger.debug("resuming at line %d with %s=%r", start_line, variable, value)
        res = it.run(code, scope, start_line, ProvidedInput(variable, value))
        steps.extend(res.trace)
        if on_chunk:
            on_chunk(res)
    return ExecutorResponse(steps, res.error)


def _print_outputs(res: ExecutorResponse) -> None:
    for out in res.outputs():
        print(out)


def _cmd_run(args) -> int:
    code = pathlib.Path(args.file).read_text(encoding="utf-8")
    it = Interpreter()
    if args.max_steps is not None:
        it.max_steps = args.max_steps
    if args.max_loop is not None:
        it.max_loop = args.max_loop

    if args.json:
        res = run_to_completion(it, code, args.inputs)
        print(json.dumps(res.to_dict(), indent=2))
        return 1 if res.error else 0

    try:
        res = run_to_completion(it, code, args.inputs, ask=input, on_chunk=_print_outputs)
    except EOFError:
        print("error: program is waiting for input but stdin is closed", file=sys.stderr)
        return 1
    if res.error:
        print(res.error, file=sys.stderr)
        return 1
    return 0


def _cmd_serve(args) -> int:
    import uvicorn

    from ..app.main import app

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="codesync", description="Trace-producing interpreter for a small Python subset")
    sub = ap.add_subparsers(dest="cmd", required=True)

    runp = sub.add_parser("run", help="Interpret a program in the terminal")
    runp.add_argument("file")
    runp.add_argument("--input", dest="inputs", action="append", default=[], metavar="TEXT",
                      help="value for the next input() call; may be repeated")
    runp.add_argument("--json", action="store_true", help="print the full trace as JSON instead of program output")
    runp.add_argument("--max-steps", type=int, default=None)
    runp.add_argument("--max-loop", type=int, default=None)

    servep = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    servep.add_argument("--host", default="127.0.0.1")
    servep.add_argument("--port", type=int, default=8000)

    args = ap.parse_args(argv)
    args.log_level = os.environ.get("CODESYNC_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.cmd == "run":
        return _cmd_run(args)
    return _cmd_serve(args)


if __name__ == "__main__":
    sys.exit(main())
