"""
main.py - FastAPI application entrypoint for the Stage 2 (Building) prompt service

Purpose:
- Exposes one endpoint that turns a user's virtue-journal state into a focused
  Stage 2 writing prompt.
- Orchestrates the pipeline:
    validate body -> Stage 1 gate -> render instruction -> Vertex AI models in order -> JSON reply

Design/behavioral notes:
- Every response carries permissive CORS headers; OPTIONS short-circuits with 204.
- The model backends are built once at startup and injected into the handler,
  so tests can run the app against fake backends via `create_app(backends=...)`.
- A failed Stage 1 gate is a normal 200 outcome, not an error.
- Model failures never surface; only unexpected faults produce a 500.
"""

import os
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .gcp_clients import VERTEX_MODEL_NAMES, build_vertex_backends
from .generation import GenerationBackend, generate_with_fallback
from .prompts import build_stage2_prompt
from .validation import (
    STAGE1_REQUIRED_MESSAGE,
    PayloadError,
    stage1_gate_passes,
    validate_payload,
)

# Configure logging (configurable via LOG_LEVEL env var)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
_logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

INTERNAL_ERROR_MESSAGE = "Internal server error"

router = APIRouter()


# -------------------------
# Middleware
# -------------------------
class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Outermost boundary: adds CORS headers to every response and turns any
    exception that escaped the app into a generic 500.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        try:
            response = await call_next(request)
        except Exception:
            _logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
            response = JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})

        response.headers.update(CORS_HEADERS)
        return response


# -------------------------
# Dependencies / helpers
# -------------------------
def get_backends(request: Request) -> Sequence[GenerationBackend]:
    """
    FastAPI dependency returning the process-wide backend tuple.
    Built here if the startup hook has not run yet.
    """
    state = request.app.state
    if state.backends is None:
        state.backends = build_vertex_backends()
    return state.backends


async def _read_json_body(request: Request) -> Any:
    """Parse the JSON body; an empty or unparseable body counts as missing."""
    try:
        return await request.json()
    except ValueError:
        return None


# -------------------------
# Endpoints
# -------------------------
@router.options("/")
@router.options("/getstage2")
async def preflight():
    """CORS preflight: empty 204, no business logic."""
    return Response(status_code=204)


@router.post("/")
@router.post("/getstage2")
async def get_stage2(request: Request, backends: Sequence[GenerationBackend] = Depends(get_backends)):
    """
    Build a Stage 2 writing prompt.

    Returns:
      - 400 {"error"} when the body is missing, not an object, or lacks required fields.
      - 200 {"prompt", "requiresStage1": true} when Stage 1 is not complete.
      - 200 {"prompt", "model"} otherwise; model is "fallback" if every model failed.
      - 500 {"error"} on anything unexpected.
    """
    try:
        body = await _read_json_body(request)
        try:
            stage2 = validate_payload(body)
        except PayloadError as e:
            _logger.info("Rejected Stage 2 request: %s", e)
            return JSONResponse(status_code=400, content={"error": str(e)})

        if not stage1_gate_passes(stage2.stage1_complete, stage2.stage1_memo_content):
            _logger.info("Stage 1 incomplete for virtue '%s'; sending user back", stage2.virtue_name)
            return {"prompt": STAGE1_REQUIRED_MESSAGE, "requiresStage1": True}

        prompt = build_stage2_prompt(
            virtue_name=stage2.virtue_name,
            virtue_def=stage2.virtue_def,
            stage1_memo_content=stage2.stage1_memo_content,
            stage2_memo_content=stage2.stage2_memo_content,
            previous_prompts=stage2.previous_prompts,
        )
        result = await generate_with_fallback(prompt, backends, stage2.virtue_name)
        return {"prompt": result.text, "model": result.model}

    except Exception:
        _logger.exception("Unexpected error in getstage2 handler")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


@router.get("/health")
async def health_check(request: Request):
    """Reports liveness and the configured model order."""
    backends = request.app.state.backends
    models = [b.name for b in backends] if backends is not None else list(VERTEX_MODEL_NAMES)
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat() + "Z", "models": models}


# -------------------------
# App factory
# -------------------------
def create_app(backends: Optional[Sequence[GenerationBackend]] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        backends: Generation backends in priority order. When omitted, the
            Vertex AI backends are built once in the startup hook.
    """
    app = FastAPI(title="Virtue Coach Stage 2")
    app.state.backends = tuple(backends) if backends is not None else None
    app.add_middleware(CORSHeadersMiddleware)
    app.include_router(router)

    @app.on_event("startup")
    async def startup_event():
        """Build the Vertex AI client and backends unless they were injected."""
        _logger.info("Virtue Coach Stage 2 service starting up")
        if app.state.backends is None:
            app.state.backends = build_vertex_backends()

    return app


app = create_app()


# -------------------------
# Run with Uvicorn when executed directly
# -------------------------
if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run("virtue_coach.main:app", host="0.0.0.0", port=port)
