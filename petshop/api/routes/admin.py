# petshop/api/routes/admin.py
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api.dependencies import get_catalog, get_coordinator, get_db
from petshop.core.logging import get_logger
from petshop.core.security import require_admin_key
from petshop.crud import catalog as catalog_store
from petshop.crud.member import get_member, get_member_by_email
from petshop.schemas.appointment import AppointmentOut, AppointmentUpdate
from petshop.schemas.catalog import (
    AppointmentSettingsOut, AppointmentSettingsUpdate, DayCareOptionCreate, DayCareOptionOut,
    DayCareOptionUpdate, DayCareType, ServiceCreate, ServiceDefinition, ServiceUpdate,
)
from petshop.schemas.member import MemberOut
from petshop.services.booking import BookingCoordinator
from petshop.services.catalog import Catalog

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


# ---------- Appointments ----------

@router.get("/appointments", response_model=list[AppointmentOut])
async def list_all_appointments_ep(
    day: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[Literal["Booked", "Completed", "Cancelled"]] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.list_appointments(db, admin=True, day=day, status=status_filter)


@router.put("/appointments/{appointment_id}", response_model=AppointmentOut)
async def admin_update_appointment_ep(
    appointment_id: int,
    payload: AppointmentUpdate,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.update_appointment(db, appointment_id, payload, admin=True)


@router.delete("/appointments/{appointment_id}", status_code=204)
async def admin_delete_appointment_ep(
    appointment_id: int,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    await coordinator.delete_appointment(db, appointment_id, admin=True)
    return Response(status_code=204)


@router.post("/slot-loads/{day}/resync")
async def resync_slot_loads_ep(
    day: date,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    loads = await coordinator.resync_day(db, day)
    return {"date": str(day), "loads": {f"{h:02d}:00": n for h, n in sorted(loads.items())}}


# ---------- Settings ----------

@router.put("/settings/appointment", response_model=AppointmentSettingsOut)
async def update_settings_ep(
    payload: AppointmentSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    obj = await catalog_store.upsert_appointment_settings(
        db,
        max_bookings_per_time_slot=payload.max_bookings_per_time_slot,
        description=payload.description,
        updated_by="admin",
    )
    catalog.invalidate()
    logger.info("appointment_settings_updated", max_bookings_per_time_slot=obj.max_bookings_per_time_slot)
    return obj


# ---------- Grooming services ----------

@router.post("/grooming-services", response_model=ServiceDefinition, status_code=status.HTTP_201_CREATED)
async def create_service_ep(
    payload: ServiceCreate,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    if await catalog_store.get_service(db, payload.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="service id already exists")
    try:
        obj = await catalog_store.create_service(db, payload)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="service id already exists")
    catalog.invalidate()
    return obj


@router.put("/grooming-services/{service_id}", response_model=ServiceDefinition)
async def update_service_ep(
    service_id: str,
    payload: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    obj = await catalog_store.update_service(db, service_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Service not found")
    catalog.invalidate()
    return obj


@router.delete("/grooming-services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service_ep(
    service_id: str,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    in_use = HTTPException(status_code=status.HTTP_409_CONFLICT, detail="service is referenced by appointments")
    if await catalog_store.service_in_use(db, service_id):
        raise in_use
    try:
        ok = await catalog_store.delete_service(db, service_id)
    except IntegrityError:
        # booked between the check and the delete
        await db.rollback()
        raise in_use
    if not ok:
        raise HTTPException(status_code=404, detail="Service not found")
    catalog.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Day-care options ----------

@router.post("/day-care-options", response_model=DayCareOptionOut, status_code=status.HTTP_201_CREATED)
async def create_day_care_ep(
    payload: DayCareOptionCreate,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    if await catalog_store.get_day_care_option(db, payload.type):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="day-care option already exists")
    obj = await catalog_store.create_day_care_option(db, payload)
    catalog.invalidate()
    return obj


@router.put("/day-care-options/{option_type}", response_model=DayCareOptionOut)
async def update_day_care_ep(
    option_type: DayCareType,
    payload: DayCareOptionUpdate,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    obj = await catalog_store.update_day_care_option(db, option_type, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Day-care option not found")
    catalog.invalidate()
    return obj


@router.delete("/day-care-options/{option_type}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_day_care_ep(
    option_type: DayCareType,
    db: AsyncSession = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    ok = await catalog_store.delete_day_care_option(db, option_type)
    if not ok:
        raise HTTPException(status_code=404, detail="Day-care option not found")
    catalog.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Members ----------

# static route above the param route
@router.get("/members/by-email", response_model=MemberOut)
async def get_member_by_email_ep(email: str, db: AsyncSession = Depends(get_db)):
    obj = await get_member_by_email(db, email)
    if not obj:
        raise HTTPException(status_code=404, detail="Member not found")
    return obj


@router.get("/members/{member_id}", response_model=MemberOut)
async def get_member_ep(member_id: int, db: AsyncSession = Depends(get_db)):
    obj = await get_member(db, member_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Member not found")
    return obj
