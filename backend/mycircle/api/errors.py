"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import asyncpg
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mycircle.api.request_id import get_request_id
from mycircle.domain.common.exceptions import CircleError, Cooldown


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CircleError)
    async def circle_exc_handler(request: Request, exc: CircleError):  # type: ignore[override]
        payload = {"detail": exc.kind, "message": exc.message, "request_id": get_request_id(request)}
        headers = None
        if isinstance(exc, Cooldown):
            payload["retry_after_seconds"] = exc.retry_after_seconds
            payload["remaining_hours"] = exc.remaining_hours
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        payload = {"detail": exc.detail, "request_id": get_request_id(request)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {"detail": "validation_error", "errors": jsonable_encoder(exc.errors()), "request_id": get_request_id(request)}
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(asyncpg.DataError)
    async def data_exc_handler(request: Request, exc: asyncpg.DataError):  # type: ignore[override]
        # ids bound to uuid columns that slipped past repository parsing
        payload = {"detail": "validation_error", "message": "Malformed identifier", "request_id": get_request_id(request)}
        return JSONResponse(status_code=400, content=payload)
