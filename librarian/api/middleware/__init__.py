"""
API middleware components.

Provides cross-cutting concerns for the API:
- Error handling
- Request/response logging
"""

from .error_handler import (
    setup_exception_handlers,
    create_error_response,
)

from .logging import (
    AccessLogConfig,
    AccessLogMiddleware,
    StructuredLogFormatter,
    setup_logging,
    get_request_id,
    scrub,
)


__all__ = [
    # Error handling
    "setup_exception_handlers",
    "create_error_response",
    # Logging
    "AccessLogConfig",
    "AccessLogMiddleware",
    "StructuredLogFormatter",
    "setup_logging",
    "get_request_id",
    "scrub",
]
