#!/usr/bin/env python3
"""
Shared pytest configuration and fixtures.

Every test database is a fresh SQLite file under tmp_path, opened through
aiosqlite with NullPool so separate sessions really hold separate connections
(the concurrent-booking tests rely on SQLite's write lock).
"""

import asyncio
import os
import sys
import time
from datetime import date, datetime

import pytest
import pytest_asyncio

# Settings are read at import time, so the environment is fixed before any petshop import
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BUSINESS_TIMEZONE"] = "Asia/Kuala_Lumpur"
os.environ["OPENING_HOUR"] = "10"
os.environ["CLOSING_HOUR"] = "22"
os.environ["DEFAULT_MAX_BOOKINGS_PER_SLOT"] = "5"

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from petshop.core.business import LOCAL_TZ
from petshop.db.base import init_db
from petshop.db.session import build_engine
from petshop.schemas.appointment import AppointmentCreate
from petshop.schemas.catalog import DayCareOptionOut, ServiceDefinition
from petshop.services.booking import BookingCoordinator
from petshop.services.catalog import Catalog, CatalogSnapshot

ADMIN_KEY = "test-admin-key"

# "now" for most engine tests; the booking day D is five days later
FIXED_NOW = datetime(2026, 6, 15, 9, 30, tzinfo=LOCAL_TZ)
D = date(2026, 6, 20)


def make_snapshot(capacity: int = 5, **service_overrides) -> CatalogSnapshot:
    """Catalog with the default services; pass e.g. spa={"capacity_limit": 2} to tweak one."""
    services = {
        "basic": dict(id="basic", name="Basic Grooming", base_price=60, duration_hours=1, member_discount_percent=8),
        "full": dict(id="full", name="Full Grooming", base_price=120, duration_hours=3, member_discount_percent=8),
        "spa": dict(id="spa", name="Spa Treatment", base_price=220, duration_hours=4,
                    member_discount_percent=10, recommended=True),
    }
    for sid, changes in service_overrides.items():
        services.setdefault(sid, {"id": sid, "name": sid.title()}).update(changes)
    return CatalogSnapshot(
        services={sid: ServiceDefinition(**data) for sid, data in services.items()},
        day_care_options={
            "daily": DayCareOptionOut(type="daily", price_per_day=50),
            "longTerm": DayCareOptionOut(type="longTerm", price_per_day=80),
        },
        default_capacity=capacity,
    )


def make_booking(**overrides) -> AppointmentCreate:
    data = dict(
        pet_name="Milo",
        pet_type="dog",
        date=D,
        time="10:00",
        service_id="basic",
        owner_name="Jane Tan",
        owner_phone="012-345 6789",
        owner_email="Jane@Example.com",
    )
    data.update(overrides)
    return AppointmentCreate(**data)


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'petshop.db'}", poolclass=NullPool)
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def catalog(session_factory):
    cat = Catalog()
    async with session_factory() as s:
        await cat.seed_defaults(s)
    return cat


@pytest_asyncio.fixture
async def db(session_factory, catalog):
    async with session_factory() as session:
        yield session


@pytest.fixture
def coordinator(catalog):
    return BookingCoordinator(catalog, clock=lambda: FIXED_NOW)


@pytest.fixture
def api_session_factory(tmp_path):
    """Session factory for TestClient tests, which run the app on their own event loop."""
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    asyncio.run(init_db(eng))
    yield async_sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(eng.dispose())


@pytest.fixture(autouse=True)
def monitor_test_performance(request):
    """Warn about slow tests"""
    start_time = time.time()
    yield
    duration = time.time() - start_time

    node = request.node
    if node.get_closest_marker("unit") and duration > 1.0:
        print(f"⚠️ Unit test {node.name} took {duration:.2f}s (should be < 1s)")
    elif node.get_closest_marker("essential") and duration > 5.0:
        print(f"⚠️ Essential test {node.name} took {duration:.2f}s (should be < 5s)")
    elif not node.get_closest_marker("slow") and duration > 10.0:
        print(f"⚠️ Test {node.name} took {duration:.2f}s (consider marking as @pytest.mark.slow)")


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no database")
    config.addinivalue_line("markers", "essential: Core booking behaviour against a real database")
    config.addinivalue_line("markers", "integration: HTTP-level tests through FastAPI TestClient")
    config.addinivalue_line("markers", "slow: Long-running tests (> 30 seconds each)")


def pytest_collection_modifyitems(config, items):
    """Run fast tests first"""
    def test_priority(item):
        if item.get_closest_marker("unit"):
            return 0
        elif item.get_closest_marker("essential"):
            return 1
        elif item.get_closest_marker("integration"):
            return 2
        elif item.get_closest_marker("slow"):
            return 3
        return 1

    items[:] = sorted(items, key=test_priority)
