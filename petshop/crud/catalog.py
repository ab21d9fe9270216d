# petshop/crud/catalog.py
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.db.models.appointment import Appointment
from petshop.db.models.catalog import AppointmentSettings, DayCareOption, GroomingService
from petshop.schemas.catalog import (
    DayCareOptionCreate, DayCareOptionUpdate, ServiceCreate, ServiceUpdate,
)

DEFAULT_SETTING_NAME = "default"


# ---------- Grooming services ----------

async def get_service(db: AsyncSession, service_id: str) -> Optional[GroomingService]:
    return await db.get(GroomingService, service_id)


async def list_services(db: AsyncSession) -> Sequence[GroomingService]:
    res = await db.execute(
        sa.select(GroomingService).order_by(GroomingService.duration_hours, GroomingService.id)
    )
    return res.scalars().all()


async def count_services(db: AsyncSession) -> int:
    res = await db.execute(sa.select(sa.func.count()).select_from(GroomingService))
    return res.scalar_one()


async def create_service(db: AsyncSession, data: ServiceCreate) -> GroomingService:
    obj = GroomingService(**data.model_dump())
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def update_service(db: AsyncSession, service_id: str, data: ServiceUpdate) -> Optional[GroomingService]:
    obj = await db.get(GroomingService, service_id)
    if not obj:
        return None
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj


async def service_in_use(db: AsyncSession, service_id: str) -> bool:
    """True while any appointment, whatever its status, still references the service."""
    stmt = sa.select(sa.func.count()).select_from(Appointment).where(Appointment.service_id == service_id)
    res = await db.execute(stmt)
    return res.scalar_one() > 0


async def delete_service(db: AsyncSession, service_id: str) -> bool:
    obj = await db.get(GroomingService, service_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True


# ---------- Day-care options ----------

async def get_day_care_option(db: AsyncSession, option_type: str) -> Optional[DayCareOption]:
    return await db.get(DayCareOption, option_type)


async def list_day_care_options(db: AsyncSession) -> Sequence[DayCareOption]:
    res = await db.execute(sa.select(DayCareOption).order_by(DayCareOption.type))
    return res.scalars().all()


async def count_day_care_options(db: AsyncSession) -> int:
    res = await db.execute(sa.select(sa.func.count()).select_from(DayCareOption))
    return res.scalar_one()


async def create_day_care_option(db: AsyncSession, data: DayCareOptionCreate) -> DayCareOption:
    obj = DayCareOption(**data.model_dump())
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def update_day_care_option(
    db: AsyncSession, option_type: str, data: DayCareOptionUpdate
) -> Optional[DayCareOption]:
    obj = await db.get(DayCareOption, option_type)
    if not obj:
        return None
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj


async def delete_day_care_option(db: AsyncSession, option_type: str) -> bool:
    obj = await db.get(DayCareOption, option_type)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True


# ---------- Appointment settings (singleton) ----------

async def get_appointment_settings(db: AsyncSession) -> Optional[AppointmentSettings]:
    return await db.get(AppointmentSettings, DEFAULT_SETTING_NAME)


async def upsert_appointment_settings(
    db: AsyncSession,
    *,
    max_bookings_per_time_slot: int,
    description: Optional[str] = None,
    updated_by: Optional[str] = None,
) -> AppointmentSettings:
    obj = await db.get(AppointmentSettings, DEFAULT_SETTING_NAME)
    if obj is None:
        obj = AppointmentSettings(setting_name=DEFAULT_SETTING_NAME)
        db.add(obj)
    obj.max_bookings_per_time_slot = max_bookings_per_time_slot
    obj.description = description or "Updated settings"
    obj.updated_by = updated_by
    await db.commit()
    await db.refresh(obj)
    return obj
