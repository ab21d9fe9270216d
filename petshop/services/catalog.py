# petshop/services/catalog.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from petshop.core.config import settings
from petshop.core.errors import NotFound
from petshop.core.logging import get_logger
from petshop.crud import catalog as catalog_store
from petshop.db.models.catalog import DayCareOption, GroomingService
from petshop.schemas.catalog import (
    DayCareOptionCreate, DayCareOptionOut, ServiceCreate, ServiceDefinition,
)

logger = get_logger(__name__)


DEFAULT_SERVICES = (
    ServiceCreate(
        id="basic",
        name="Basic Grooming",
        description="Bath, brushing and nail trim",
        base_price=60,
        duration_hours=1,
        member_discount_percent=8,
    ),
    ServiceCreate(
        id="full",
        name="Full Grooming",
        description="Basic grooming plus haircut and ear cleaning",
        base_price=120,
        duration_hours=3,
        member_discount_percent=8,
    ),
    ServiceCreate(
        id="spa",
        name="Spa Treatment",
        description="Full grooming with spa bath, massage and paw care",
        base_price=220,
        duration_hours=4,
        member_discount_percent=10,
        recommended=True,
    ),
)

DEFAULT_DAY_CARE = (
    DayCareOptionCreate(type="daily", price_per_day=50, description="Single day of supervised care"),
    DayCareOptionCreate(type="longTerm", price_per_day=80, description="Multi-day stay, two days minimum"),
)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the catalog used by the availability and price calculators."""

    services: Dict[str, ServiceDefinition]
    day_care_options: Dict[str, DayCareOptionOut]
    default_capacity: int = 5
    loaded_at: float = field(default=0.0, compare=False)

    def get_service(self, service_id: str) -> ServiceDefinition:
        svc = self.services.get(service_id)
        if svc is None:
            raise NotFound("service", service_id)
        return svc

    def get_day_care_option(self, option_type: str) -> DayCareOptionOut:
        opt = self.day_care_options.get(option_type)
        if opt is None:
            raise NotFound("day-care option", option_type)
        return opt

    def list_services(self) -> List[ServiceDefinition]:
        return sorted(self.services.values(), key=lambda s: (s.duration_hours, s.id))

    def capacity_for(self, service: ServiceDefinition) -> int:
        return service.capacity_limit or self.default_capacity


class Catalog:
    """
    Process-wide catalog with a short TTL cache.

    Constructed once per app and handed to the booking coordinator; admin
    writes call invalidate() so the next read reloads from the store.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.CATALOG_CACHE_TTL if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._snapshot: Optional[CatalogSnapshot] = None

    def invalidate(self) -> None:
        self._snapshot = None

    def _fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self._clock() - self._snapshot.loaded_at < self.ttl_seconds

    async def snapshot(self, db: AsyncSession) -> CatalogSnapshot:
        if self._fresh():
            return self._snapshot
        services = await catalog_store.list_services(db)
        options = await catalog_store.list_day_care_options(db)
        row = await catalog_store.get_appointment_settings(db)
        self._snapshot = CatalogSnapshot(
            services={s.id: ServiceDefinition.model_validate(s) for s in services},
            day_care_options={o.type: DayCareOptionOut.model_validate(o) for o in options},
            default_capacity=row.max_bookings_per_time_slot if row else settings.DEFAULT_MAX_BOOKINGS_PER_SLOT,
            loaded_at=self._clock(),
        )
        return self._snapshot

    async def seed_defaults(self, db: AsyncSession) -> Dict[str, int]:
        """
        Insert the default catalog. Each group is only written when its table is
        empty, so admin edits survive restarts and running this twice is a no-op.
        """
        inserted = {"services": 0, "day_care_options": 0, "settings": 0}

        if await catalog_store.count_services(db) == 0:
            for data in DEFAULT_SERVICES:
                db.add(GroomingService(**data.model_dump()))
            inserted["services"] = len(DEFAULT_SERVICES)

        if await catalog_store.count_day_care_options(db) == 0:
            for data in DEFAULT_DAY_CARE:
                db.add(DayCareOption(**data.model_dump()))
            inserted["day_care_options"] = len(DEFAULT_DAY_CARE)

        if await catalog_store.get_appointment_settings(db) is None:
            await catalog_store.upsert_appointment_settings(
                db,
                max_bookings_per_time_slot=settings.DEFAULT_MAX_BOOKINGS_PER_SLOT,
                description="Default appointment settings",
                updated_by="system",
            )
            inserted["settings"] = 1

        await db.commit()
        if any(inserted.values()):
            self.invalidate()
            logger.info("catalog_seeded", **inserted)
        return inserted
