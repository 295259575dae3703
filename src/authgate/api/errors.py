"""
authgate.api.errors

Error-handling boundary for the HTTP surface.

Responsibilities:
- Map the auth error taxonomy onto generic response bodies (401/400/404/409/500).
- Render body-validation failures as `{"message": "Validation Error", "errors": [...]}`.
- Log internal failures with full detail here, never in the response.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from authgate.auth.errors import (
    AlreadyExists,
    Conflict,
    HashingError,
    InvalidCredentials,
    NotFound,
    StoreUnavailable,
    TokenError,
    Unauthorized,
)
from authgate.observability.logging import get_logger

log = get_logger(__name__)

UNAUTHORIZED_BODY = {"message": "Unauthorized"}
INTERNAL_ERROR_BODY = {"message": "Internal Server Error"}


def _validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        errors.append(
            {
                "property": ".".join(loc),
                "constraints": {err.get("type", "invalid"): err.get("msg", "")},
            }
        )
    return errors


async def _unauthorized(_: Request, __: Exception) -> JSONResponse:
    # Same body for every auth failure so callers cannot tell which check tripped.
    return JSONResponse(status_code=HTTP_401_UNAUTHORIZED, content=UNAUTHORIZED_BODY)


async def _already_exists(_: Request, exc: AlreadyExists) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST, content={"message": f"{exc.resource} Already Exists"}
    )


async def _not_found(_: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_404_NOT_FOUND, content={"message": f"{exc.resource} Not Found"}
    )


async def _conflict(_: Request, exc: Conflict) -> JSONResponse:
    return JSONResponse(status_code=HTTP_409_CONFLICT, content={"message": exc.public_message})


async def _validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"message": "Validation Error", "errors": _validation_errors(exc)},
    )


async def _internal(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "request_failed",
        error_type=exc.__class__.__name__,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY)


def register_error_handlers(app: FastAPI) -> None:
    for exc_type in (Unauthorized, InvalidCredentials, TokenError):
        app.add_exception_handler(exc_type, _unauthorized)
    app.add_exception_handler(AlreadyExists, _already_exists)  # type: ignore[arg-type]
    app.add_exception_handler(NotFound, _not_found)  # type: ignore[arg-type]
    app.add_exception_handler(Conflict, _conflict)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation)  # type: ignore[arg-type]
    for exc_type in (HashingError, StoreUnavailable, Exception):
        app.add_exception_handler(exc_type, _internal)


# --- Module Notes -----------------------------------------------------------
# Guards and services raise; only this module decides status codes and bodies.
