"""
wcpilot/core/errors.py

Purpose: Exception -> HTTP response mapping

Every error leaves the API as
    {"success": false, "error": str, "code": str, "details": any}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any

from wcpilot.core.config import settings
from wcpilot.core.exceptions import WCPilotError
from wcpilot.core.logging import get_logger
from wcpilot.schemas.response import ErrorResponse

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def error_response(status_code: int, error: str, code: str, details: Any = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def handle_wcpilot_error(request: Request, exc: WCPilotError) -> JSONResponse:
    # 5xx here means the provider failed us, not the client
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.code, exc.details)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(422, "Input validation failed", "VALIDATION_ERROR", exc.errors())


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        extra={"client": request.client.host if request.client else "unknown"},
        exc_info=True
    )
    message = INTERNAL_ERROR_MESSAGE if settings.is_production else str(exc)
    return error_response(500, message, "INTERNAL_ERROR")


def add_exception_handlers(app: FastAPI):
    app.add_exception_handler(WCPilotError, handle_wcpilot_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
