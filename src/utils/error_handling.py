"""
Centralized error handling and logging
Every error leaves the API as {errorCode, errorDescription, nameMethod, uri}.
"""

import json
import logging
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from models.error import ErrorResponse
from utils.exceptions import ServiceError

# Context variable for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SANITIZE_SENSITIVE_FIELDS = True
    SENSITIVE_FIELD_PATTERNS = ['password', 'token', 'secret', 'authorization', 'api_key']

    LOG_REQUEST_BODIES = True
    MAX_BODY_LOG_SIZE = 5000  # Truncate large bodies

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively redact sensitive values and truncate long strings"""
        if not cls.SANITIZE_SENSITIVE_FIELDS:
            return data

        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_BODY_LOG_SIZE:
            return data[:cls.MAX_BODY_LOG_SIZE] + "...[TRUNCATED]"
        return data


class StructuredLogger:
    """Error records logged as one JSON document each"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = True
    ) -> str:
        """Log an error with request context and return its trace ID"""
        trace_id = request_id_var.get('') or str(uuid.uuid4())[:8]

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": "ERROR"
        }

        if request:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None
            }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception)
            }
            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        logger.error(json.dumps(log_entry, indent=2, default=str))
        return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a trace ID to each request and keep its body for error logs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)

        body = None
        if ErrorHandlingConfig.LOG_REQUEST_BODIES and request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()

        request.state.captured_body = body
        request.state.trace_id = trace_id

        try:
            response = await call_next(request)
        except Exception as exc:
            # unhandled errors still leave with the error body and the trace id
            response = await general_exception_handler(request, exc)
        response.headers["X-Trace-ID"] = trace_id
        return response


def _captured_body(request: Request) -> Optional[Any]:
    body = getattr(request.state, 'captured_body', None)
    if not body:
        return None
    try:
        return ErrorHandlingConfig.sanitize_data(json.loads(body))
    except (ValueError, UnicodeDecodeError):
        return "UNPARSEABLE_BODY"


def error_response(request: Request, status_code: int, description: str) -> JSONResponse:
    """Render the error body for this request"""
    error = ErrorResponse(
        error_code=status_code,
        error_description=description,
        name_method=request.method,
        uri=request.url.path
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(by_alias=True))


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service errors (not found, conflict, store failures) to responses"""
    status_code = exc.status_code

    if status_code >= 500:
        StructuredLogger.log_error(
            type(exc).__name__,
            str(exc),
            request=request,
            exception=exc.__cause__ or exc,
            extra_context={"request_body": _captured_body(request)}
        )
        description = "Database operation failed"
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        description = str(exc)

    return error_response(request, status_code, description)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        StructuredLogger.log_error(f"http_{exc.status_code}", str(exc.detail), request=request, exception=exc)
    return error_response(request, exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors (HTTP 422)"""
    details = [
        f"{' -> '.join(str(loc) for loc in error.get('loc', []))}: {error.get('msg', 'invalid value')}"
        for error in exc.errors()
    ]
    logger.info(f"Request validation failed for {request.method} {request.url.path}: {details}")
    return error_response(request, 422, "; ".join(details) or "Request validation failed")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions without exposing internals"""
    StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {exc}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request)}
    )
    return error_response(request, 500, "An unexpected error occurred")


def setup_error_handling(app):
    """Register middleware and exception handlers on the FastAPI app"""
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
