"""
Request logging middleware.

One log line per request: method, path, status and duration, tagged with
a request id that is echoed back in the response headers. Bodies of
mutating requests can be logged in debug mode with image payloads and
contact details redacted.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Set

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("profile_service.api")

REDACTED = "[REDACTED]"


@dataclass
class LoggingConfig:
    """Request logging options."""

    enabled: bool = True
    log_request_body: bool = False
    max_body_log_size: int = 10000
    slow_request_threshold: float = 2.0
    request_id_header: str = "X-Request-ID"

    excluded_paths: Set[str] = field(default_factory=lambda: {"/health", "/favicon.ico"})

    # Compared lowercase. profilePicture and banner carry base64 images.
    redacted_fields: Set[str] = field(default_factory=lambda: {
        "profilepicture",
        "banner",
        "email",
    })


class StructuredLogFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id
        for key in ("request", "duration_ms"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def redact_sensitive_data(data: Any, redacted_fields: Set[str]) -> Any:
    """Replace the values of `redacted_fields` anywhere in a JSON-like structure."""
    if isinstance(data, dict):
        return {
            key: REDACTED if key.lower() in redacted_fields else redact_sensitive_data(value, redacted_fields)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields) for item in data]
    return data


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status, duration and request id."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    async def _body_for_log(self, request: Request) -> Optional[str]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_log_size:
            return f"[{len(body)} bytes]"
        try:
            parsed = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "[unparseable body]"
        return json.dumps(redact_sensitive_data(parsed, self.config.redacted_fields))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.request_id_header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        path = request.url.path
        if not self.config.enabled or path in self.config.excluded_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        details = {"method": request.method, "path": path}
        if self.config.log_request_body and request.method in ("POST", "PATCH", "PUT"):
            body = await self._body_for_log(request)
            if body:
                details["body"] = body

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        duration_ms = round(elapsed * 1000, 2)

        response.headers[self.config.request_id_header] = request_id

        slow = elapsed > self.config.slow_request_threshold
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or slow:
            level = logging.WARNING
        else:
            level = logging.INFO

        message = f"{request.method} {path} -> {response.status_code} ({duration_ms}ms)"
        if slow:
            message = f"[SLOW] {message}"
        logger.log(level, message, extra={"request": details, "duration_ms": duration_ms})

        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the request logging middleware.

    Args:
        app: FastAPI application instance.
        config: Logging options; defaults to `LoggingConfig()`.
        structured: Emit JSON lines from the `profile_service` loggers.
    """
    service_logger = logging.getLogger("profile_service")

    # One handler per process, however many apps are created
    if structured and not service_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredLogFormatter())
        service_logger.addHandler(handler)
        service_logger.setLevel(logging.INFO)
        service_logger.propagate = False

    app.add_middleware(RequestLoggingMiddleware, config=config or LoggingConfig())
