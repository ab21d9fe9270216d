# petshop/core/business.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from petshop.core.config import settings

LOCAL_TZ = ZoneInfo(settings.BUSINESS_TIMEZONE)

_SLOT_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class BusinessHours:
    """Hourly booking grid: a service may start at opening_hour and must end by closing_hour."""

    opening_hour: int = 10
    closing_hour: int = 22

    def __post_init__(self):
        if not (0 <= self.opening_hour < self.closing_hour <= 24):
            raise ValueError("opening_hour must be before closing_hour, both within 0-24")

    @classmethod
    def from_settings(cls) -> "BusinessHours":
        return cls(opening_hour=settings.OPENING_HOUR, closing_hour=settings.CLOSING_HOUR)

    def start_hours(self, duration_hours: int) -> range:
        # last offerable start is closing_hour - duration_hours
        return range(self.opening_hour, self.closing_hour - duration_hours + 1)

    def fits(self, start_hour: int, duration_hours: int) -> bool:
        return self.opening_hour <= start_hour and start_hour + duration_hours <= self.closing_hour


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)


def parse_slot_time(value: str) -> int:
    """'14:00' -> 14. Slots are hour-granular, so minutes must be zero."""
    m = _SLOT_RE.match(value.strip()) if isinstance(value, str) else None
    if not m:
        raise ValueError("time must look like HH:00")
    hour, minute = int(m.group(1)), int(m.group(2))
    if minute != 0 or not (0 <= hour <= 23):
        raise ValueError("time must be a whole hour between 00:00 and 23:00")
    return hour


def format_slot(hour: int) -> str:
    return f"{hour:02d}:00"


def slot_start(day: date, hour: int, tz: ZoneInfo = LOCAL_TZ) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


def is_past_slot(day: date, hour: int, now: datetime) -> bool:
    """A start hour is no longer offerable once the current hour has reached it."""
    local = now.astimezone(LOCAL_TZ)
    if day != local.date():
        return day < local.date()
    return hour <= local.hour
