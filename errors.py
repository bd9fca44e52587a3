"""
Error taxonomy shared by every router.

Handlers raise these; ``register_exception_handlers`` renders them as
``{"success": false, "error": ..., "message": ...}``. The public site reads
``error`` and the admin dashboard reads ``message``, so both are sent.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong on our server"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "message": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, fields: Optional[List[str]] = None):
        self.fields = list(fields or [])
        if message is None and self.fields:
            message = "Missing or invalid fields: " + ", ".join(self.fields)
        super().__init__(message)

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.fields:
            body["fields"] = self.fields
        return body


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Access token required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 400
    default_message = "Already exists"


class InternalError(AppError):
    status_code = 500


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({_field_name(e.get("loc", ())) for e in exc.errors()})
    return await app_error_handler(request, ValidationError(fields=fields))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        err: AppError = NotFound("Endpoint not found")
    else:
        err = AppError(str(exc.detail))
        err.status_code = exc.status_code
    return JSONResponse(status_code=err.status_code, content=err.to_body())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError()
    if get_settings().is_development:
        err = InternalError(f"{err.message}: {exc}")
    return JSONResponse(status_code=500, content=err.to_body())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
