"""
Booking error taxonomy plus error aggregation for noise-free logging.
"""
import hashlib
import time
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

from petshop.core.config import settings

logger = structlog.get_logger(__name__)


# ---------- Domain errors ----------

class BookingError(Exception):
    """Base class for every error the booking engine surfaces to callers."""

    code = "booking_error"
    status_code = 400

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(BookingError):
    """Missing or malformed request field. Never persisted."""

    code = "validation_error"
    status_code = 422

    def __init__(self, message: str = "Invalid request", *, fields: Optional[List[Dict[str, str]]] = None):
        self.fields = fields or []
        super().__init__(message, details=self.fields or None)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(f"{field}: {message}", fields=[{"field": field, "message": message}])


class NotFound(BookingError):
    """Unknown service id, day-care type or appointment id."""

    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"Unknown {kind}: {key}", details={"kind": kind, "key": str(key)})


class CapacityExceeded(BookingError):
    """Slot full: one of the requested hours is at or over capacity."""

    code = "capacity_exceeded"
    status_code = 409

    def __init__(self, day, hour: int, booked: int, capacity: int):
        self.day = day
        self.hour = hour
        self.booked = booked
        self.capacity = capacity
        super().__init__(
            f"Time slot {hour:02d}:00 on {day} is fully booked ({booked}/{capacity} bookings)",
            details={"date": str(day), "time": f"{hour:02d}:00", "booked": booked, "capacity": capacity},
        )


class InvalidTransition(BookingError):
    """Illegal appointment status change."""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change appointment status from {current} to {requested}",
            details={"from": current, "to": requested},
        )


class StoreUnavailable(BookingError):
    """Persistence layer failure. Callers may retry with backoff."""

    code = "store_unavailable"
    status_code = 503

    def __init__(self, message: str = "Booking store is unavailable, please try again later"):
        super().__init__(message)


# ---------- Error aggregation ----------

class ErrorSeverity(Enum):
    MEDIUM = "medium"  # recoverable, e.g. an exhausted retry budget
    HIGH = "high"      # store failures


@dataclass
class ErrorPattern:
    fingerprint: str
    error_type: str
    message: str
    count: int = 0
    last_seen: float = 0.0


class ErrorAggregator:
    """
    Counts repeated errors by (type, message, operation).

    HIGH errors are logged on every occurrence. MEDIUM ones are logged the
    first time and then once every `log_threshold` occurrences, so a retry
    storm does not flood the log.
    """

    def __init__(self, log_threshold: Optional[int] = None, time_window: int = 300):
        if log_threshold is None:
            log_threshold = settings.ERROR_AGGREGATION_THRESHOLD
        self.log_threshold = max(log_threshold, 1)
        self.time_window = time_window
        self.patterns: Dict[str, ErrorPattern] = {}

    def _record(self, error: Exception, operation: str) -> ErrorPattern:
        error_type = type(error).__name__
        message = str(error)[:100]
        key = f"{error_type}:{message}:{operation}"
        fingerprint = hashlib.md5(key.encode(), usedforsecurity=False).hexdigest()[:8]
        pattern = self.patterns.setdefault(fingerprint, ErrorPattern(fingerprint, error_type, message))
        pattern.count += 1
        pattern.last_seen = time.time()
        return pattern

    def should_log(self, pattern: ErrorPattern, severity: ErrorSeverity) -> bool:
        if severity is ErrorSeverity.HIGH or pattern.count == 1:
            return True
        return pattern.count % self.log_threshold == 0

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                  severity: ErrorSeverity = ErrorSeverity.MEDIUM) -> str:
        context = context or {}
        pattern = self._record(error, str(context.get("operation", "")))
        if self.should_log(pattern, severity):
            logger.error(
                "aggregated_error",
                error_hash=pattern.fingerprint,
                error_type=pattern.error_type,
                error=str(error),
                count=pattern.count,
                severity=severity.value,
                **context
            )
        return pattern.fingerprint

    def get_error_summary(self) -> Dict[str, Any]:
        """Errors seen within the time window, reported by /readyz."""
        now = time.time()
        recent = [p for p in self.patterns.values() if now - p.last_seen < self.time_window]
        by_type = Counter()
        for p in recent:
            by_type[p.error_type] += p.count
        top = sorted(recent, key=lambda p: p.count, reverse=True)[:5]
        return {
            "total_unique_errors": len(recent),
            "total_error_count": sum(by_type.values()),
            "by_type": dict(by_type),
            "top_errors": [
                {"fingerprint": p.fingerprint, "type": p.error_type, "message": p.message, "count": p.count}
                for p in top
            ],
        }


error_aggregator = ErrorAggregator()


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: ErrorSeverity = ErrorSeverity.MEDIUM) -> str:
    return error_aggregator.log_error(error, context, severity)
