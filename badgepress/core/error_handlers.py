"""
Error handling utilities and exception handlers for the BadgePress service.
"""

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from badgepress.badges.errors import BadgeError

logger = logging.getLogger(__name__)


def get_json_error_response(
    status_code: int, detail: str | None = None, error_type: str = "api_error"
) -> Dict[str, Any]:
    """Create a standardized JSON error response."""
    error_messages = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
    }

    message = detail or error_messages.get(status_code, "An error occurred")

    return {"error": {"code": status_code, "message": message, "type": error_type}}


async def fastapi_http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTP exceptions"""
    starlette_exc = StarletteHTTPException(
        status_code=exc.status_code, detail=exc.detail
    )
    return await http_exception_handler(request, starlette_exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with JSON responses."""
    _ = request
    error_type = "api_error"
    if exc.status_code == 403 and "Nonce" in str(exc.detail):
        error_type = "nonce_error"
    error_data = get_json_error_response(exc.status_code, exc.detail, error_type)
    return JSONResponse(content=error_data, status_code=exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with a JSON response."""
    _ = request
    error_details = []
    for error in exc.errors():
        error_details.append(
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    error_data = {
        "error": {
            "code": 422,
            "message": "Validation Error",
            "type": "validation_error",
            "details": error_details,
        }
    }
    return JSONResponse(content=error_data, status_code=422)


async def badge_error_handler(request: Request, exc: BadgeError):
    """Handle badge domain errors raised outside the designer endpoint"""
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    error_data = get_json_error_response(exc.status_code, exc.message, exc.code)
    return JSONResponse(content=error_data, status_code=exc.status_code)


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(HTTPException, fastapi_http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BadgeError, badge_error_handler)
