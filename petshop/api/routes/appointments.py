# petshop/api/routes/appointments.py
from datetime import date

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api.dependencies import get_coordinator, get_db
from petshop.core.security import ANONYMOUS, Identity, get_current_identity, get_optional_identity
from petshop.schemas.appointment import AppointmentCreate, AppointmentOut, AppointmentUpdate
from petshop.services.availability import Slot
from petshop.services.booking import BookingCoordinator

router = APIRouter(prefix="/appointments", tags=["appointments"])


# static routes above the /{appointment_id} ones; admin-role sessions act on every appointment
@router.get("/time-slots/{day}", response_model=list[Slot])
async def time_slots_ep(
    day: date,
    service_id: str = "basic",
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.compute_slots(db, day, service_id.strip().lower())


@router.get("/availability/{day}/{time}", response_model=Slot)
async def availability_ep(
    day: date,
    time: str,
    service_id: str = "basic",
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.check_slot(db, day, time, service_id.strip().lower())


@router.get("/history", response_model=list[AppointmentOut])
async def history_ep(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.appointment_history(db, identity)


@router.post("/guest", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def create_guest_appointment_ep(
    payload: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.create_appointment(db, payload, ANONYMOUS)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def create_appointment_ep(
    payload: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_optional_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.create_appointment(db, payload, identity)


@router.get("", response_model=list[AppointmentOut])
async def list_appointments_ep(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.list_appointments(db, identity, admin=identity.is_admin)


@router.put("/{appointment_id}", response_model=AppointmentOut)
async def update_appointment_ep(
    appointment_id: int,
    payload: AppointmentUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return await coordinator.update_appointment(db, appointment_id, payload, identity, admin=identity.is_admin)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment_ep(
    appointment_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    await coordinator.delete_appointment(db, appointment_id, identity, admin=identity.is_admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
