# petshop/crud/slot_load.py

from __future__ import annotations
from datetime import date
from typing import Iterable, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.db.models.slot_load import SlotLoad


class SlotCounterConflict(Exception):
    """Another writer created the (date, hour) counter first. The transaction must be rolled back."""

    def __init__(self, day: date, hour: int):
        super().__init__(f"slot counter {day} {hour:02d}:00 already exists")
        self.day = day
        self.hour = hour


async def try_increment(db: AsyncSession, day: date, hour: int, capacity: int) -> bool:
    """Atomically take one place in (day, hour) if it is below capacity."""
    stmt = (
        sa.update(SlotLoad)
        .where(SlotLoad.date == day, SlotLoad.hour == hour, SlotLoad.booked < capacity)
        .values(booked=SlotLoad.booked + 1)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    return res.rowcount == 1


async def get_load(db: AsyncSession, day: date, hour: int) -> Optional[int]:
    res = await db.execute(
        sa.select(SlotLoad.booked).where(SlotLoad.date == day, SlotLoad.hour == hour)
    )
    return res.scalar_one_or_none()


async def create_load(db: AsyncSession, day: date, hour: int, booked: int) -> None:
    """Insert a counter. Raises SlotCounterConflict if a concurrent writer created it first."""
    db.add(SlotLoad(date=day, hour=hour, booked=booked))
    try:
        await db.flush()
    except IntegrityError as e:
        raise SlotCounterConflict(day, hour) from e


async def release(db: AsyncSession, day: date, hours: Iterable[int]) -> None:
    hours = list(hours)
    if not hours:
        return
    stmt = (
        sa.update(SlotLoad)
        .where(SlotLoad.date == day, SlotLoad.hour.in_(hours), SlotLoad.booked > 0)
        .values(booked=SlotLoad.booked - 1)
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)


async def replace_day(db: AsyncSession, day: date, loads: Mapping[int, int]) -> None:
    """Overwrite every counter of a day with recomputed values."""
    await db.execute(sa.delete(SlotLoad).where(SlotLoad.date == day))
    for hour, booked in sorted(loads.items()):
        if booked > 0:
            db.add(SlotLoad(date=day, hour=hour, booked=booked))
    await db.flush()
