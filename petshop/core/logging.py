"""
Structured logging with per-request correlation IDs.

Every log line is a structlog event. Inside a request the middleware binds a
short correlation id plus the route, and owner contact details are masked
before anything is rendered.
"""
import logging
import re
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import Request

CORRELATION_HEADER = "X-Correlation-ID"

# Request correlation context
request_id: ContextVar[str] = ContextVar('request_id', default="")
request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})

_CONTACT_KEYS = ("owner_email", "owner_phone", "email", "phone")
_EMAIL_RE = re.compile(r"^(.)[^@]*(@.*)$")


def mask_contact(value: Any) -> str:
    """jane@example.com -> j***@example.com, 0123456789 -> ******6789"""
    text = str(value)
    if "@" in text:
        return _EMAIL_RE.sub(r"\1***\2", text)
    return "*" * max(len(text) - 4, 0) + text[-4:]


class ContactMaskingProcessor:
    """Owner emails and phone numbers never reach the log sink in clear."""

    def __call__(self, logger, method_name, event_dict):
        for key in _CONTACT_KEYS:
            if event_dict.get(key):
                event_dict[key] = mask_contact(event_dict[key])
        return event_dict


class TruncatingProcessor:
    """Keep free-text values short."""

    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def __call__(self, logger, method_name, event_dict):
        for key in ('message', 'error', 'reason'):
            if key in event_dict:
                event_dict[key] = str(event_dict[key])[:self.max_length]
        return event_dict


class CorrelationProcessor:
    """Add the correlation ID and request route to every event."""

    def __call__(self, logger, method_name, event_dict):
        correlation_id = request_id.get("")
        if correlation_id:
            event_dict['correlation_id'] = correlation_id
        for key, value in request_context.get({}).items():
            event_dict.setdefault(key, value)
        return event_dict


def setup_logging(debug: bool = False, max_log_length: int = 200, level: str = "INFO"):
    """Console output while developing, JSON lines otherwise."""
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.stdlib.filter_by_level,
        CorrelationProcessor(),
        ContactMaskingProcessor(),
        TruncatingProcessor(max_length=max_log_length),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=log_level, format="%(message)s")


def get_logger(name: str = __name__):
    return structlog.get_logger(name)


class LoggingMiddleware:
    """
    Tags each request with a correlation ID (echoed in the X-Correlation-ID
    response header) and logs it when it is slow, fails, or logging of every
    request is switched on.
    """

    def __init__(self, log_requests: bool = False, log_responses: bool = False,
                 slow_threshold: float = 2.0):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.slow_threshold = slow_threshold
        self.logger = get_logger("petshop.http")

    async def __call__(self, request: Request, call_next):
        correlation_id = uuid.uuid4().hex[:8]
        id_token = request_id.set(correlation_id)
        ctx_token = request_context.set({"path": request.url.path, "method": request.method})
        request.state.correlation_id = correlation_id
        started = datetime.now(timezone.utc)

        if self.log_requests:
            self.logger.info("request_start", query_params=dict(request.query_params))

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration=self._elapsed(started),
            )
            raise
        finally:
            request_id.reset(id_token)
            request_context.reset(ctx_token)

        duration = self._elapsed(started)
        slow = duration > self.slow_threshold
        if self.log_responses or slow or response.status_code >= 400:
            self.logger.info(
                "request_complete",
                correlation_id=correlation_id,
                path=request.url.path,
                status_code=response.status_code,
                duration=duration,
                slow=slow,
            )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @staticmethod
    def _elapsed(started: datetime) -> float:
        return round((datetime.now(timezone.utc) - started).total_seconds(), 3)
