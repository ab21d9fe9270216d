#!/usr/bin/env python3
"""
Tests for catalog seeding and the cached catalog snapshot.
"""

import pytest

from petshop.core.errors import NotFound
from petshop.crud import catalog as catalog_store
from petshop.schemas.catalog import ServiceUpdate
from petshop.services.catalog import Catalog

pytestmark = pytest.mark.essential


async def catalog_state(db):
    services = [
        (s.id, s.name, s.base_price, s.duration_hours, s.member_discount_percent, s.capacity_limit, s.recommended)
        for s in await catalog_store.list_services(db)
    ]
    options = [(o.type, o.price_per_day) for o in await catalog_store.list_day_care_options(db)]
    row = await catalog_store.get_appointment_settings(db)
    return services, options, row.max_bookings_per_time_slot


async def test_seed_inserts_defaults(session_factory):
    async with session_factory() as db:
        inserted = await Catalog().seed_defaults(db)
        services, options, capacity = await catalog_state(db)

    assert inserted == {"services": 3, "day_care_options": 2, "settings": 1}
    assert services == [
        ("basic", "Basic Grooming", 60, 1, 8, None, False),
        ("full", "Full Grooming", 120, 3, 8, None, False),
        ("spa", "Spa Treatment", 220, 4, 10, None, True),
    ]
    assert options == [("daily", 50), ("longTerm", 80)]
    assert capacity == 5


async def test_seeding_twice_equals_seeding_once(session_factory):
    catalog = Catalog()
    async with session_factory() as db:
        await catalog.seed_defaults(db)
        once = await catalog_state(db)
        second = await catalog.seed_defaults(db)
        twice = await catalog_state(db)

    assert second == {"services": 0, "day_care_options": 0, "settings": 0}
    assert once == twice


async def test_seeding_never_overwrites_admin_edits(session_factory):
    catalog = Catalog()
    async with session_factory() as db:
        await catalog.seed_defaults(db)
        await catalog_store.update_service(db, "basic", ServiceUpdate(base_price=70))
        await catalog_store.delete_service(db, "spa")
        await catalog_store.upsert_appointment_settings(db, max_bookings_per_time_slot=3)

        await catalog.seed_defaults(db)
        services, _, capacity = await catalog_state(db)

    assert [s[0] for s in services] == ["basic", "full"]
    assert services[0][2] == 70
    assert capacity == 3


async def test_snapshot_is_cached_until_ttl_expires(session_factory):
    now = [100.0]
    catalog = Catalog(ttl_seconds=60, clock=lambda: now[0])
    async with session_factory() as db:
        await catalog.seed_defaults(db)
        first = await catalog.snapshot(db)
        await catalog_store.update_service(db, "basic", ServiceUpdate(base_price=75))

        now[0] += 30
        assert (await catalog.snapshot(db)) is first

        now[0] += 31
        fresh = await catalog.snapshot(db)

    assert fresh is not first
    assert fresh.get_service("basic").base_price == 75


async def test_invalidate_forces_reload(session_factory):
    catalog = Catalog(ttl_seconds=3600)
    async with session_factory() as db:
        await catalog.seed_defaults(db)
        before = await catalog.snapshot(db)
        await catalog_store.upsert_appointment_settings(db, max_bookings_per_time_slot=2)
        catalog.invalidate()
        after = await catalog.snapshot(db)

    assert before.default_capacity == 5
    assert after.default_capacity == 2
    assert after.capacity_for(after.get_service("basic")) == 2


async def test_snapshot_lookups(session_factory):
    catalog = Catalog()
    async with session_factory() as db:
        await catalog.seed_defaults(db)
        snap = await catalog.snapshot(db)

    assert [s.id for s in snap.list_services()] == ["basic", "full", "spa"]
    assert snap.get_day_care_option("longTerm").price_per_day == 80
    with pytest.raises(NotFound):
        snap.get_service("nope")
    with pytest.raises(NotFound):
        snap.get_day_care_option("weekly")


async def test_empty_store_falls_back_to_configured_capacity(session_factory):
    async with session_factory() as db:
        snap = await Catalog().snapshot(db)

    assert snap.services == {}
    assert snap.default_capacity == 5
