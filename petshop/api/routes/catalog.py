# petshop/api/routes/catalog.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api.dependencies import get_coordinator, get_db
from petshop.core.security import Identity, get_optional_identity
from petshop.crud.catalog import DEFAULT_SETTING_NAME
from petshop.schemas.appointment import PriceQuoteRequest
from petshop.schemas.catalog import AppointmentSettingsOut, DayCareOptionOut, ServiceDefinition
from petshop.services.booking import BookingCoordinator
from petshop.services.pricing import PriceBreakdown

router = APIRouter(tags=["catalog"])


@router.get("/grooming-services", response_model=list[ServiceDefinition])
async def list_services_ep(
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    snap = await coordinator.snapshot(db)
    return snap.list_services()


@router.get("/grooming-services/{service_id}", response_model=ServiceDefinition)
async def get_service_ep(
    service_id: str,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    snap = await coordinator.snapshot(db)
    return snap.get_service(service_id)


@router.get("/day-care-options", response_model=list[DayCareOptionOut])
async def list_day_care_ep(
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    snap = await coordinator.snapshot(db)
    return sorted(snap.day_care_options.values(), key=lambda o: o.type)


@router.get("/day-care-options/{option_type}", response_model=DayCareOptionOut)
async def get_day_care_ep(
    option_type: str,
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    snap = await coordinator.snapshot(db)
    return snap.get_day_care_option(option_type)


@router.post("/calculate-price", response_model=PriceBreakdown)
async def calculate_price_ep(
    payload: PriceQuoteRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_optional_identity),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    is_member = payload.is_member or identity.is_authenticated
    return await coordinator.quote(db, payload.service_id, payload.day_care, is_member)


@router.get("/settings/appointment", response_model=AppointmentSettingsOut)
async def get_settings_ep(
    db: AsyncSession = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    snap = await coordinator.snapshot(db)
    return AppointmentSettingsOut(
        setting_name=DEFAULT_SETTING_NAME,
        max_bookings_per_time_slot=snap.default_capacity,
    )
