#!/usr/bin/env python3
"""
Tests for slot availability computation.
"""

from datetime import datetime

import pytest

from conftest import D, FIXED_NOW, make_snapshot
from petshop.core.business import LOCAL_TZ, BusinessHours
from petshop.core.errors import NotFound
from petshop.db.models.appointment import BOOKED, CANCELLED, Appointment
from petshop.services.availability import AvailabilityCalculator, hourly_load

pytestmark = pytest.mark.unit


def appt(time: str, duration: int = 1, status: str = BOOKED, day=D) -> Appointment:
    return Appointment(date=day, time=time, duration_hours=duration, status=status, service_id="basic")


def by_time(slots):
    return {s.time: s for s in slots}


class TestComputeSlots:

    def test_empty_day_offers_full_capacity_everywhere(self, snapshot):
        slots = AvailabilityCalculator(snapshot).compute_slots(D, "basic", [], now=FIXED_NOW)

        assert [s.time for s in slots] == [f"{h:02d}:00" for h in range(10, 22)]
        assert all(s.available and s.booked == 0 and s.capacity == 5 for s in slots)

    def test_full_hour_is_reported_unavailable(self, snapshot):
        existing = [appt("10:00") for _ in range(5)]

        slots = by_time(AvailabilityCalculator(snapshot).compute_slots(D, "basic", existing, now=FIXED_NOW))

        assert slots["10:00"].available is False
        assert (slots["10:00"].booked, slots["10:00"].capacity) == (5, 5)
        assert slots["11:00"].available is True
        assert slots["11:00"].booked == 0

    def test_multi_hour_service_needs_every_hour_of_its_window(self, snapshot):
        existing = [appt("14:00") for _ in range(5)]

        slots = by_time(AvailabilityCalculator(snapshot).compute_slots(D, "spa", existing, now=FIXED_NOW))

        # a 4-hour spa may start 10:00..18:00 and must end by 22:00
        assert list(slots) == [f"{h:02d}:00" for h in range(10, 19)]
        assert slots["10:00"].available is True          # [10, 14) stops before the full hour
        for blocked in ("11:00", "12:00", "13:00", "14:00"):
            assert slots[blocked].available is False
        for free in ("15:00", "16:00", "17:00", "18:00"):
            assert slots[free].available is True

    def test_load_is_shared_across_services(self, snapshot):
        # a 3-hour full grooming at 10:00 occupies 10, 11 and 12 for everyone
        existing = [appt("10:00", duration=3) for _ in range(5)]

        slots = by_time(AvailabilityCalculator(snapshot).compute_slots(D, "basic", existing, now=FIXED_NOW))

        assert [t for t, s in slots.items() if not s.available] == ["10:00", "11:00", "12:00"]
        assert slots["12:00"].booked == 5
        assert slots["13:00"].booked == 0

    def test_cancelled_appointments_take_no_capacity(self, snapshot):
        existing = [appt("10:00", status=CANCELLED) for _ in range(5)]

        slots = by_time(AvailabilityCalculator(snapshot).compute_slots(D, "basic", existing, now=FIXED_NOW))

        assert slots["10:00"].available is True
        assert slots["10:00"].booked == 0

    def test_service_capacity_overrides_global_default(self):
        snap = make_snapshot(capacity=5, basic={"capacity_limit": 2})
        existing = [appt("10:00"), appt("10:00")]

        slots = by_time(AvailabilityCalculator(snap).compute_slots(D, "basic", existing, now=FIXED_NOW))

        assert slots["10:00"].capacity == 2
        assert slots["10:00"].available is False

    def test_today_drops_hours_at_or_before_now(self, snapshot):
        now = datetime(2026, 6, 20, 13, 5, tzinfo=LOCAL_TZ)

        slots = AvailabilityCalculator(snapshot).compute_slots(D, "basic", [], now=now)

        assert slots[0].time == "14:00"
        assert len(slots) == 8

    def test_past_day_has_no_slots(self, snapshot):
        now = datetime(2026, 6, 21, 8, 0, tzinfo=LOCAL_TZ)

        assert AvailabilityCalculator(snapshot).compute_slots(D, "basic", [], now=now) == []

    def test_unknown_service_is_an_error_not_an_empty_list(self, snapshot):
        with pytest.raises(NotFound):
            AvailabilityCalculator(snapshot).compute_slots(D, "deluxe", [], now=FIXED_NOW)

    def test_grid_follows_configured_hours(self, snapshot):
        calc = AvailabilityCalculator(snapshot, BusinessHours(opening_hour=9, closing_hour=13))

        slots = calc.compute_slots(D, "full", [], now=FIXED_NOW)

        assert [s.time for s in slots] == ["09:00", "10:00"]


class TestCheckSlot:

    def test_returns_first_full_hour_in_window(self, snapshot):
        existing = [appt("12:00") for _ in range(5)]

        assert AvailabilityCalculator(snapshot).check_slot("full", 10, existing) == 12

    def test_returns_none_when_window_fits(self, snapshot):
        existing = [appt("12:00") for _ in range(4)]

        assert AvailabilityCalculator(snapshot).check_slot("full", 10, existing) is None


def test_hourly_load_counts_every_covered_hour():
    load = hourly_load([appt("10:00", duration=3), appt("11:00"), appt("11:00", status=CANCELLED)])

    assert load[10] == 1
    assert load[11] == 2
    assert load[12] == 1
    assert load[13] == 0
