"""Main entrypoint for the Boardpilot FastAPI application.

This module exposes the named actions over HTTP so a hosting agent can
invoke them with structured arguments.
"""

from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import Body
from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse

from boardpilot.core.pipeline import OrchestrationPipeline
from boardpilot.core.tools import get_tool_schemas
from boardpilot.core.tools import run_action
from boardpilot.runtime import get_pipeline
from boardpilot.utils.logger import generate_request_id
from boardpilot.utils.logger import log_error


load_dotenv()

app = FastAPI(title="Boardpilot", version="0.1.0")


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict:
    """Health check endpoint to verify that the service is running."""

    return {"status": "ok"}


@app.get("/actions", status_code=status.HTTP_200_OK)
async def list_actions() -> dict:
    """Return the tool schemas for every action the agent may call."""

    return {"actions": get_tool_schemas()}


@app.post("/actions/{name}", status_code=status.HTTP_200_OK)
async def invoke_action(
    name: str,
    request: Request,
    args: Optional[Dict[str, Any]] = Body(default=None),
    pipeline: OrchestrationPipeline = Depends(get_pipeline),
) -> dict:
    """Run one action and return its narration, result data and commit flag."""

    # Correlation id so all logs for this invocation can be tied together.
    request_id = generate_request_id()
    request.state.request_id = request_id

    return await run_action(pipeline, name, args, request_id=request_id)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for uncaught exceptions.

    Returns a 500 JSON error and logs it with the request's correlation id.
    """

    request_id = getattr(request.state, "request_id", None)
    log_error("Unhandled exception", request_id=request_id, error=repr(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
