"""
Error taxonomy for the dashboard API.

Services raise these; the handlers registered in ``register_error_handlers``
render them as ``{"success": false, "message": ..., "code": ...}`` with the
matching HTTP status.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    code = "internal"
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(AppError):
    status_code = 401
    code = "not_authenticated"
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class SyncInProgress(Conflict):
    code = "sync_in_progress"
    default_message = "A sync is already in progress for this user"


class ZohoNotConnected(ValidationError):
    code = "zoho_not_connected"
    default_message = "Zoho is not connected"


class UpstreamError(AppError):
    """Base for failures talking to Zoho."""


class UpstreamAuthExpired(UpstreamError):
    status_code = 401
    code = "zoho_token_expired"
    default_message = "Zoho access token expired. Please reconnect your Zoho account."


class UpstreamUnavailable(UpstreamError):
    status_code = 502
    code = "upstream_unavailable"
    default_message = "Failed to fetch data from Zoho API. Please verify your credentials."


class Internal(AppError):
    pass


def error_body(message: str, code: str) -> dict:
    return {"success": False, "message": message, "code": code}


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
        # Upstream details stay in the server log
        message = exc.default_message
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content=error_body(message, exc.code))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid value for '{field}'" if field else "Invalid request body"
    return JSONResponse(status_code=400, content=error_body(message, ValidationError.code))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body(Internal.default_message, Internal.code))


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
