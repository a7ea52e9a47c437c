"""Exception handlers: every error response is ``{"message": ...}``.

Validation failures add ``"fields"``. Unexpected errors never expose their
cause; it is logged instead.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: 415,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNEXPECTED: 500,
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Convert an AppError to its status code and JSON body."""
    status_code = STATUS_BY_KIND[exc.kind]
    headers = None

    if exc.kind is ErrorKind.UNEXPECTED:
        logger.error(
            "Unexpected error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.cause,
        )
        content = {"message": "internal server error"}
    else:
        content = {"message": exc.message}
        if exc.fields:
            content["fields"] = exc.fields
        if exc.kind is ErrorKind.UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (unknown route, wrong method) in the same body shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "invalid request", "fields": fields})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
