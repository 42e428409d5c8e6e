"""
Error handlers for the template advisor API
"""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import (
    AuthorizationError,
    DomainError,
    GeneratorConfigurationError,
    InputValidationError,
    NotFoundError,
    TemplateGenerationError,
    TemplateValidationFailed,
)

logger = structlog.get_logger(__name__)

DOMAIN_STATUS = (
    (InputValidationError, 400, "Invalid Request"),
    (AuthorizationError, 403, "Forbidden"),
    (NotFoundError, 404, "Not Found"),
    (TemplateValidationFailed, 422, "Template Validation Failed"),
    (TemplateGenerationError, 502, "Template Generation Failed"),
    (GeneratorConfigurationError, 503, "Template Generator Unavailable"),
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def status_for(exc: DomainError):
    for exc_type, status_code, label in DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status_code, label
    return 400, "Domain Error"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle body validation errors with flattened messages"""
    messages = []
    for error in exc.errors():
        field = ".".join(str(x) for x in error["loc"][1:])  # Skip 'body'
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "detail": messages,
            "request_id": _request_id(request),
        },
    )


async def domain_exception_handler(request: Request, exc: DomainError):
    """Map use-case rejections onto HTTP status codes"""
    status_code, label = status_for(exc)
    logger.info(
        "Request rejected",
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=status_code,
        path=request.url.path,
        request_id=_request_id(request),
    )
    content = {
        "error": label,
        "detail": exc.message,
        "status_code": status_code,
        "request_id": _request_id(request),
    }
    report = getattr(exc, "report", None)
    if report is not None:
        content["validation"] = report.model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP Error",
            "detail": exc.detail,
            "status_code": exc.status_code,
            "request_id": _request_id(request),
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=_request_id(request),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "request_id": _request_id(request),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
