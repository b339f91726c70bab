"""
Error boundary.

Maps every failure onto a `{"message": ...}` body:
- TaskboardError subclasses → their own status code
- request parsing errors (malformed JSON...) → 400 with the issue list
- HTTPException (unknown routes, 405) → its status code
- anything else → 500 "Something went wrong", logged and reported
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.core.errors import TaskboardError
from taskboard.core.schemas import issues_from_errors
from taskboard.integrations.sentry import capture_exception

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong"


async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Body/query parsing issues: drop FastAPI's leading "body"/"query" segment
    errors = [
        {**err, "loc": tuple(err.get("loc", ()))[1:]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": issues_from_errors(errors)})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_middleware(request: Request, call_next):
    """Last line of defence: nothing escapes to the server as a traceback."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        capture_exception(e, path=request.url.path, method=request.method)
        return JSONResponse(status_code=500, content={"message": GENERIC_ERROR})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskboardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.middleware("http")(unhandled_error_middleware)
