"""
Access logging middleware.

One log line per request: correlation id, status and latency, plus the
caller once the auth gate has put it on ``request.state``. Request
bodies are only logged when enabled, with credential-like keys scrubbed.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("librarian.access")

REDACTED = "[REDACTED]"


@dataclass
class AccessLogConfig:
    """Access log settings."""

    enabled: bool = True
    log_request_body: bool = False
    max_body_bytes: int = 4096

    # Probes are not worth a line each
    quiet_paths: set[str] = field(default_factory=lambda: {"/", "/health"})

    redacted_keys: set[str] = field(default_factory=lambda: {
        "password",
        "password_hash",
        "token",
        "access_token",
        "jwt_secret",
    })

    slow_request_ms: float = 1000.0
    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """Renders records as single JSON lines tagged with the request context."""

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
        for attr in ("method", "path", "status_code", "user_id", "duration_ms", "body"):
            if hasattr(record, attr):
                entry[attr] = getattr(record, attr)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def scrub(data: Any, keys: set[str]) -> Any:
    """Replace the values of credential-like keys, at any depth."""
    if isinstance(data, dict):
        return {
            k: REDACTED if k.lower() in keys else scrub(v, keys)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [scrub(item, keys) for item in data]
    return data


def get_request_id() -> str:
    """Correlation id of the request being handled, or ``""``."""
    return request_id_var.get()


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Assigns the correlation id and writes the access line."""

    def __init__(self, app: FastAPI, config: Optional[AccessLogConfig] = None):
        super().__init__(app)
        self.config = config or AccessLogConfig()

    async def _body_for_log(self, request: Request) -> Optional[str]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_bytes:
            return f"<{len(body)} bytes>"
        try:
            return json.dumps(scrub(json.loads(body), self.config.redacted_keys))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "<non-JSON body>"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        header = self.config.request_id_header
        request_id = request.headers.get(header) or uuid.uuid4().hex[:12]
        request_id_var.set(request_id)

        quiet = not self.config.enabled or request.url.path in self.config.quiet_paths
        body = None
        if not quiet and self.config.log_request_body and request.method in ("POST", "PUT", "PATCH"):
            body = await self._body_for_log(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[header] = request_id
        if quiet:
            return response

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or duration_ms > self.config.slow_request_ms:
            level = logging.WARNING
        else:
            level = logging.INFO

        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "user_id": getattr(request.state, "user_id", None),
            "duration_ms": duration_ms,
        }
        if body is not None:
            extra["body"] = body

        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms",
            extra=extra,
        )
        return response


def setup_logging(
    app: FastAPI,
    config: Optional[AccessLogConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the access log middleware.

    With ``structured`` on, the ``librarian`` logger tree writes JSON lines.
    """
    if structured:
        root = logging.getLogger("librarian")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in root.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            root.addHandler(handler)
        root.setLevel(logging.INFO)

    app.add_middleware(AccessLogMiddleware, config=config or AccessLogConfig())
