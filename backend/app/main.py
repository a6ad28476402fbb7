"""FastAPI application entrypoints for CodeSync.

The visualizer drives execution through `/trace`: one request to start a run,
then one request per answered input prompt, passing back the paused step's
variables and line number. Handlers stay small: each request builds a fresh
`Interpreter`, applies server-capped settings and returns the serialized
trace. The interpreter itself holds no state between requests.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict, Field

from ..codesync.interpreter import Interpreter
from ..codesync.trace import ProvidedInput

logger = logging.getLogger(__name__)

app = FastAPI(title="CodeSync API", version="0.1")


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Enforce server-side safe caps for runtime tunables.

    Clients may send a `settings` object to lower the budgets for their run.
    Values above a fresh `Interpreter()`'s defaults are clamped down to them.
    """
    defaults = Interpreter()
    safe = {
        "max_steps": defaults.max_steps,
        "max_loop": defaults.max_loop,
    }
    if not settings:
        return safe
    caps = {}
    caps["max_steps"] = min(int(settings.get("max_steps", safe["max_steps"])), safe["max_steps"])
    caps["max_loop"] = min(int(settings.get("max_loop", safe["max_loop"])), safe["max_loop"])
    return caps


class ProvidedInputModel(BaseModel):
    variable: str
    value: str


class TraceRequest(BaseModel):
    """Pydantic model for the `/trace` request body.

    Fields:
        code: full program source.
        scope: variables to start from (the paused step's `variables`).
        startLine: 0-based line to start at (the paused step's `lineNumber`).
        providedInput: the user's answer to the paused input statement.
        settings: optional `max_steps` / `max_loop`; capped server-side.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: str
    scope: Dict[str, Any] = Field(default_factory=dict)
    start_line: int = Field(0, ge=0, alias="startLine")
    provided_input: Optional[ProvidedInputModel] = Field(None, alias="providedInput")
    settings: Optional[Dict[str, Any]] = None


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/trace")
async def trace(req: TraceRequest):
    """Run (or resume) a program and return its execution trace.

    Program errors are part of a normal response (`error` plus a final
    `isError` step). Any other exception is turned into a ServerError payload
    so callers always receive the same JSON shape.
    """
    start = time.time()
    try:
        capped = _cap_settings(req.settings or {})
        it = Interpreter()
        it.max_steps = capped.get("max_steps", it.max_steps)
        it.max_loop = capped.get("max_loop", it.max_loop)
        provided = None
        if req.provided_input is not None:
            provided = ProvidedInput(req.provided_input.variable, req.provided_input.value)
        res = it.run(req.code, req.scope, req.start_line, provided)
        result = res.to_dict()
        # fail here rather than in the response renderer, which rejects nan/inf
        json.dumps(result, allow_nan=False)
    except Exception as e:
        logger.exception("trace request failed")
        return {
            "trace": [],
            "error": f"ServerError: {e}",
            "duration_ms": int((time.time() - start) * 1000),
        }
    result["duration_ms"] = int((time.time() - start) * 1000)
    return result
