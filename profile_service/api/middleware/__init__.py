"""
API middleware components.

Provides cross-cutting concerns for the API:
- Error handling
- CORS configuration
- Request/response logging
"""

from .error_handler import (
    setup_exception_handlers,
    create_error_response,
    format_validation_errors,
    status_for,
)

from .cors import (
    CORSConfig,
    get_cors_config,
    setup_cors,
)

from .logging import (
    LoggingConfig,
    StructuredLogFormatter,
    RequestLoggingMiddleware,
    setup_logging,
    redact_sensitive_data,
)


__all__ = [
    # Error handling
    "setup_exception_handlers",
    "create_error_response",
    "format_validation_errors",
    "status_for",
    # CORS
    "CORSConfig",
    "get_cors_config",
    "setup_cors",
    # Logging
    "LoggingConfig",
    "StructuredLogFormatter",
    "RequestLoggingMiddleware",
    "setup_logging",
    "redact_sensitive_data",
]
