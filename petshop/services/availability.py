# petshop/services/availability.py
from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from petshop.core.business import BusinessHours, format_slot, is_past_slot, local_now
from petshop.db.models.appointment import Appointment
from petshop.services.catalog import CatalogSnapshot


class Slot(BaseModel):
    time: str = Field(..., examples=["10:00"])
    capacity: int
    booked: int = Field(..., description="Appointments of any service covering this hour")
    available: bool = Field(..., description="Every hour of the service window is below capacity")


def hourly_load(appointments: Iterable[Appointment]) -> Counter:
    """Count, per hour, the non-cancelled appointments whose window covers it."""
    load: Counter = Counter()
    for appt in appointments:
        if not appt.occupies_capacity:
            continue
        for hour in appt.hours:
            load[hour] += 1
    return load


def first_full_hour(load: Counter, window: Iterable[int], capacity: int) -> Optional[int]:
    for hour in window:
        if load[hour] >= capacity:
            return hour
    return None


class AvailabilityCalculator:
    """
    Pure slot computation over a catalog snapshot and the day's appointments.

    Load is shared by every service: an hour counts all non-cancelled
    appointments covering it, whatever service they booked.
    """

    def __init__(self, snapshot: CatalogSnapshot, hours: Optional[BusinessHours] = None):
        self.snapshot = snapshot
        self.hours = hours or BusinessHours.from_settings()

    def compute_slots(
        self,
        day: date,
        service_id: str,
        appointments: Iterable[Appointment],
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        service = self.snapshot.get_service(service_id)
        capacity = self.snapshot.capacity_for(service)
        duration = service.duration_hours
        load = hourly_load(appointments)
        now = now or local_now()

        slots: List[Slot] = []
        for start in self.hours.start_hours(duration):
            if is_past_slot(day, start, now):
                continue
            window = range(start, start + duration)
            slots.append(
                Slot(
                    time=format_slot(start),
                    capacity=capacity,
                    booked=load[start],
                    available=first_full_hour(load, window, capacity) is None,
                )
            )
        return slots

    def check_slot(
        self,
        service_id: str,
        start_hour: int,
        appointments: Iterable[Appointment],
    ) -> Optional[int]:
        """Return the first hour of the window at capacity, or None if the start fits."""
        service = self.snapshot.get_service(service_id)
        capacity = self.snapshot.capacity_for(service)
        window = range(start_hour, start_hour + service.duration_hours)
        return first_full_hour(hourly_load(appointments), window, capacity)
