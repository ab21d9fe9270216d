# petshop/crud/appointment.py

"""Appointment store.

Writes only flush: the booking coordinator owns the transaction so that the
capacity reservation and the row change commit together.
"""
from __future__ import annotations
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.db.models.appointment import Appointment


async def find_appointments(
    db: AsyncSession,
    *,
    day: Optional[date] = None,
    user_id: Optional[int] = None,
    exclude_statuses: Optional[Iterable[str]] = None,
    exclude_id: Optional[int] = None,
) -> Sequence[Appointment]:
    q = sa.select(Appointment)
    if day is not None:
        q = q.where(Appointment.date == day)
    if user_id is not None:
        q = q.where(Appointment.user_id == user_id)
    if exclude_statuses is not None:
        q = q.where(Appointment.status.not_in(list(exclude_statuses)))
    if exclude_id is not None:
        q = q.where(Appointment.id != exclude_id)
    q = q.order_by(Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc())
    res = await db.execute(q)
    return res.scalars().all()


async def get_appointment(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    return await db.get(Appointment, appointment_id)


async def insert_appointment(db: AsyncSession, appt: Appointment) -> Appointment:
    db.add(appt)
    await db.flush()
    return appt


async def update_appointment_by_id(
    db: AsyncSession, appointment_id: int, patch: Mapping[str, Any]
) -> Optional[Appointment]:
    appt = await db.get(Appointment, appointment_id)
    if not appt:
        return None
    for k, v in patch.items():
        setattr(appt, k, v)
    await db.flush()
    return appt


async def update_many_status(
    db: AsyncSession,
    ids: Sequence[int],
    status: str,
    *,
    only_from: Optional[str] = None,
) -> int:
    """Set `status` on every listed appointment and commit. Returns rows changed."""
    if not ids:
        return 0
    stmt = sa.update(Appointment).where(Appointment.id.in_(list(ids))).values(status=status)
    if only_from is not None:
        stmt = stmt.where(Appointment.status == only_from)
    res = await db.execute(stmt)
    await db.commit()
    return res.rowcount or 0


async def delete_appointment(db: AsyncSession, appt: Appointment) -> None:
    await db.delete(appt)
    await db.flush()
