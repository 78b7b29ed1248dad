"""
Error handling middleware
"""
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import APIError
from app.core.logging import logger


def _error_body(message: str, code: str, details=None) -> dict:
    body = {"success": False, "error": message, "code": code}
    if details:
        body["details"] = details
    return body


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render our own error taxonomy"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"API Error: {exc.error_code}",
        extra={
            "path": request.url.path,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, exc.details),
        headers=exc.headers or None,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request schema violations are 400s, not FastAPI's default 422"""
    errors = [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg"),
            "type": err.get("type")
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Validation Error",
        extra={"path": request.url.path, "details": errors}
    )
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", "validation_error", {"errors": errors}),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "http_error"),
        headers=getattr(exc, "headers", None),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors"""
    logger.exception(
        "Unexpected Error",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__
        }
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", "internal_error"),
    )


async def error_logging_middleware(request: Request, call_next):
    """
    Middleware for logging all errors
    """
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        logger.exception(
            "Unhandled Exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__
            }
        )
        raise


def setup_error_handlers(app):
    """
    Configure error handlers for FastAPI app
    """
    app.middleware("http")(error_logging_middleware)
    app.exception_handler(APIError)(api_error_handler)
    app.exception_handler(RequestValidationError)(validation_error_handler)
    app.exception_handler(StarletteHTTPException)(http_error_handler)
    app.exception_handler(Exception)(unexpected_error_handler)
