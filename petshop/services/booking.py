# petshop/services/booking.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import petshop.db.base  # noqa: F401  registers every mapped model
from petshop.core.business import (
    BusinessHours, format_slot, is_past_slot, local_now, parse_slot_time, slot_start,
)
from petshop.core.config import settings
from petshop.core.errors import (
    BookingError, CapacityExceeded, ErrorSeverity, InvalidTransition, NotFound,
    StoreUnavailable, ValidationError, log_error,
)
from petshop.core.logging import get_logger
from petshop.core.security import ANONYMOUS, Identity
from petshop.crud import appointment as appointment_store
from petshop.crud import member as member_store
from petshop.crud import slot_load as slot_store
from petshop.crud.slot_load import SlotCounterConflict
from petshop.db.models.appointment import BOOKED, CANCELLED, COMPLETED, Appointment
from petshop.schemas.appointment import AppointmentCreate, AppointmentUpdate, DayCareSelection
from petshop.services.availability import AvailabilityCalculator, Slot, first_full_hour, hourly_load
from petshop.services.catalog import Catalog, CatalogSnapshot
from petshop.services.pricing import PriceBreakdown, PriceCalculator

logger = get_logger(__name__)

# Completed and Cancelled are terminal unless an admin forces a change
LEGAL_TRANSITIONS = {(BOOKED, COMPLETED), (BOOKED, CANCELLED)}


class BookingCoordinator:
    """
    Orchestrates appointment writes.

    Every create/update/delete re-queries the day's bookings and reserves
    capacity through the per-hour slot_loads counters in the same transaction
    that writes the appointment, so two requests racing for the last place
    cannot both succeed. Booked appointments whose start has passed are
    flipped to Completed whenever they are read.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        hours: Optional[BusinessHours] = None,
        clock: Callable[[], datetime] = local_now,
        reserve_attempts: Optional[int] = None,
    ):
        self.catalog = catalog
        self.hours = hours or BusinessHours.from_settings()
        self.clock = clock
        self.reserve_attempts = reserve_attempts or settings.BOOKING_RESERVE_ATTEMPTS

    # ---------- Store plumbing ----------

    @asynccontextmanager
    async def _store_errors(self, db: AsyncSession, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            await db.rollback()
            log_error(e, {"operation": operation}, ErrorSeverity.HIGH)
            raise StoreUnavailable() from e

    async def _write(self, db: AsyncSession, operation: str, op: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run `op` and commit. A slot counter created concurrently by another
        writer rolls the whole attempt back and retries it from scratch; any
        other store error, integrity violations included, is reported once.
        """
        async with self._store_errors(db, operation):
            for attempt in range(1, self.reserve_attempts + 1):
                try:
                    result = await op()
                    await db.commit()
                    return result
                except SlotCounterConflict as e:
                    await db.rollback()
                    logger.info("slot_counter_race", operation=operation, attempt=attempt, time=format_slot(e.hour))
                except BookingError:
                    await db.rollback()
                    raise
        log_error(
            StoreUnavailable("slot reservation kept conflicting"),
            {"operation": operation},
            ErrorSeverity.MEDIUM,
        )
        raise StoreUnavailable("Could not reserve the time slot, please try again")

    async def _reserve(
        self,
        db: AsyncSession,
        day: date,
        window: range,
        capacity: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        """Take one place in every hour of `window` or raise CapacityExceeded."""
        live = await appointment_store.find_appointments(
            db, day=day, exclude_statuses=[CANCELLED], exclude_id=exclude_id
        )
        load = hourly_load(live)
        full = first_full_hour(load, window, capacity)
        if full is not None:
            raise self._slot_full(day, full, load[full], capacity)

        for hour in window:
            if await slot_store.try_increment(db, day, hour, capacity):
                continue
            current = await slot_store.get_load(db, day, hour)
            if current is not None:
                raise self._slot_full(day, hour, current, capacity)
            # first booking touching this hour: seed the counter from the live count
            await slot_store.create_load(db, day, hour, load[hour] + 1)

    def _slot_full(self, day: date, hour: int, booked: int, capacity: int) -> CapacityExceeded:
        logger.info("slot_full", date=str(day), time=format_slot(hour), booked=booked, capacity=capacity)
        return CapacityExceeded(day, hour, booked, capacity)

    async def snapshot(self, db: AsyncSession) -> CatalogSnapshot:
        async with self._store_errors(db, "catalog_snapshot"):
            return await self.catalog.snapshot(db)

    # ---------- Lazy completion ----------

    async def _complete_past(self, db: AsyncSession, appointments: Sequence[Appointment]) -> int:
        now = self.clock()
        due = [
            a.id for a in appointments
            if a.status == BOOKED and slot_start(a.date, a.start_hour) < now
        ]
        if not due:
            return 0
        async with self._store_errors(db, "auto_complete"):
            changed = await appointment_store.update_many_status(db, due, COMPLETED, only_from=BOOKED)
        logger.info("appointments_auto_completed", count=changed)
        return changed

    # ---------- Reads ----------

    async def is_member(self, db: AsyncSession, identity: Identity, email: Optional[str]) -> bool:
        if identity.is_authenticated:
            return True
        if not email:
            return False
        async with self._store_errors(db, "member_lookup"):
            return await member_store.member_exists(db, email)

    async def compute_slots(self, db: AsyncSession, day: date, service_id: str) -> List[Slot]:
        snap = await self.snapshot(db)
        async with self._store_errors(db, "compute_slots"):
            appointments = await appointment_store.find_appointments(
                db, day=day, exclude_statuses=[CANCELLED]
            )
        return AvailabilityCalculator(snap, self.hours).compute_slots(
            day, service_id, appointments, now=self.clock()
        )

    async def check_slot(self, db: AsyncSession, day: date, time: str, service_id: str) -> Slot:
        try:
            hour = parse_slot_time(time)
        except ValueError as e:
            raise ValidationError.for_field("time", str(e))
        snap = await self.snapshot(db)
        service = snap.get_service(service_id)
        capacity = snap.capacity_for(service)
        async with self._store_errors(db, "check_slot"):
            appointments = await appointment_store.find_appointments(
                db, day=day, exclude_statuses=[CANCELLED]
            )
        full = AvailabilityCalculator(snap, self.hours).check_slot(service_id, hour, appointments)
        offerable = self.hours.fits(hour, service.duration_hours) and not is_past_slot(day, hour, self.clock())
        return Slot(
            time=format_slot(hour),
            capacity=capacity,
            booked=hourly_load(appointments)[hour],
            available=offerable and full is None,
        )

    async def quote(
        self,
        db: AsyncSession,
        service_id: str,
        day_care: Optional[DayCareSelection] = None,
        is_member: bool = False,
    ) -> PriceBreakdown:
        snap = await self.snapshot(db)
        return PriceCalculator(snap).compute_total(service_id, day_care, is_member)

    async def list_appointments(
        self,
        db: AsyncSession,
        identity: Identity = ANONYMOUS,
        *,
        admin: bool = False,
        day: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Appointment]:
        """Own appointments (all of them for admins), with past bookings completed first."""
        if not admin and not identity.is_authenticated:
            return []
        async with self._store_errors(db, "list_appointments"):
            appointments = await appointment_store.find_appointments(
                db, day=day, user_id=None if admin else identity.user_id
            )
        await self._complete_past(db, appointments)
        if status is not None:
            appointments = [a for a in appointments if a.status == status]
        return list(appointments)

    async def appointment_history(self, db: AsyncSession, identity: Identity) -> List[Appointment]:
        appointments = await self.list_appointments(db, identity)
        done = [a for a in appointments if a.status in (COMPLETED, CANCELLED)]
        done.sort(key=lambda a: (a.date, a.time, a.id), reverse=True)
        return done

    async def get_appointment(
        self, db: AsyncSession, appointment_id: int, identity: Identity = ANONYMOUS, *, admin: bool = False
    ) -> Appointment:
        async with self._store_errors(db, "get_appointment"):
            appt = await appointment_store.get_appointment(db, appointment_id)
        if appt is None or not (admin or (identity.is_authenticated and appt.user_id == identity.user_id)):
            raise NotFound("appointment", appointment_id)
        await self._complete_past(db, [appt])
        return appt

    # ---------- Writes ----------

    async def _owner_contact(
        self, db: AsyncSession, request: AppointmentCreate, identity: Identity
    ) -> Dict[str, Optional[str]]:
        contact = {
            "owner_name": request.owner_name or identity.full_name,
            "owner_phone": request.owner_phone or identity.phone,
            "owner_email": request.owner_email or identity.email,
        }
        if identity.is_authenticated:
            # bookings reference the member row, so a token without one cannot book
            async with self._store_errors(db, "member_lookup"):
                member = await member_store.get_member(db, identity.user_id)
            if member is None:
                raise NotFound("member", identity.user_id)
            contact["owner_name"] = contact["owner_name"] or member.full_name
            contact["owner_phone"] = contact["owner_phone"] or member.phone
            contact["owner_email"] = contact["owner_email"] or member.email
        missing = [k for k, v in contact.items() if not v]
        if missing:
            raise ValidationError(
                "Owner contact is required for guest bookings",
                fields=[{"field": k, "message": "field required"} for k in missing],
            )
        return contact

    def _check_schedule(self, day: date, hour: int, duration: int, allow_past: bool = False) -> None:
        if not self.hours.fits(hour, duration):
            raise ValidationError.for_field(
                "time",
                f"a {duration}-hour service must start between {format_slot(self.hours.opening_hour)} "
                f"and {format_slot(self.hours.closing_hour - duration)}",
            )
        if not allow_past and is_past_slot(day, hour, self.clock()):
            raise ValidationError.for_field("time", "that time has already passed")

    async def create_appointment(
        self,
        db: AsyncSession,
        request: AppointmentCreate,
        identity: Identity = ANONYMOUS,
    ) -> Appointment:
        contact = await self._owner_contact(db, request, identity)
        snap = await self.snapshot(db)
        service = snap.get_service(request.service_id)
        hour = parse_slot_time(request.time)
        self._check_schedule(request.date, hour, service.duration_hours)

        member = await self.is_member(db, identity, contact["owner_email"])
        price = PriceCalculator(snap).compute_total(service.id, request.day_care, member)
        window = range(hour, hour + service.duration_hours)
        capacity = snap.capacity_for(service)

        async def op() -> Appointment:
            await self._reserve(db, request.date, window, capacity)
            appt = Appointment(
                user_id=identity.user_id,
                pet_name=request.pet_name,
                pet_type=request.pet_type,
                date=request.date,
                time=format_slot(hour),
                service_id=service.id,
                duration_hours=service.duration_hours,
                day_care_type=request.day_care.type if request.day_care else None,
                day_care_days=request.day_care.days if request.day_care else None,
                base_price=price.base_price,
                discount_amount=price.discount_amount,
                day_care_price=price.day_care_price,
                total_price=price.total,
                status=BOOKED,
                notes=request.notes,
                **contact,
            )
            return await appointment_store.insert_appointment(db, appt)

        appt = await self._write(db, "create_appointment", op)
        logger.info(
            "appointment_created",
            appointment_id=appt.id,
            date=str(appt.date),
            time=appt.time,
            service_id=appt.service_id,
            total_price=appt.total_price,
            member=member,
            guest=appt.user_id is None,
        )
        return appt

    async def update_appointment(
        self,
        db: AsyncSession,
        appointment_id: int,
        request: AppointmentUpdate,
        identity: Identity = ANONYMOUS,
        *,
        admin: bool = False,
    ) -> Appointment:
        appt = await self.get_appointment(db, appointment_id, identity, admin=admin)
        fields = request.model_dump(exclude_unset=True)
        day_care_given = "day_care" in fields
        fields.pop("day_care", None)
        patch: Dict[str, Any] = {k: v for k, v in fields.items() if v is not None or k == "notes"}

        old_status = appt.status
        new_status = patch.get("status", old_status)
        if new_status != old_status and not admin and (old_status, new_status) not in LEGAL_TRANSITIONS:
            raise InvalidTransition(old_status, new_status)

        old_day, old_hours = appt.date, appt.hours
        new_day = patch.get("date", appt.date)
        new_hour = parse_slot_time(patch.get("time", appt.time))
        new_service_id = patch.get("service_id", appt.service_id)
        service_changed = new_service_id != appt.service_id
        rescheduled = new_day != old_day or new_hour != appt.start_hour or service_changed

        was_occupying = old_status != CANCELLED
        will_occupy = new_status != CANCELLED
        release_old = was_occupying and (rescheduled or not will_occupy)
        reserve_new = will_occupy and (rescheduled or not was_occupying)

        # cancels and plain edits skip the lookup, so they still work once a service is retired
        snap = await self.snapshot(db)
        needs_service = service_changed or reserve_new or day_care_given
        service = snap.get_service(new_service_id) if needs_service else None
        duration = service.duration_hours if service_changed else appt.duration_hours
        if rescheduled:
            self._check_schedule(new_day, new_hour, duration, allow_past=admin)
            patch["time"] = format_slot(new_hour)
            patch["duration_hours"] = duration

        new_day_care = request.day_care if day_care_given else None
        if day_care_given:
            patch["day_care_type"] = new_day_care.type if new_day_care else None
            patch["day_care_days"] = new_day_care.days if new_day_care else None
        if service_changed or day_care_given:
            if not day_care_given and appt.day_care_type:
                new_day_care = DayCareSelection(type=appt.day_care_type, days=appt.day_care_days)
            email = patch.get("owner_email", appt.owner_email)
            member = appt.user_id is not None or await self.is_member(db, ANONYMOUS, email)
            price = PriceCalculator(snap).compute_total(new_service_id, new_day_care, member)
            patch.update(
                base_price=price.base_price,
                discount_amount=price.discount_amount,
                day_care_price=price.day_care_price,
                total_price=price.total,
            )

        window = range(new_hour, new_hour + duration)
        capacity = snap.capacity_for(service) if service is not None else None

        async def op() -> Appointment:
            if release_old:
                await slot_store.release(db, old_day, old_hours)
            if reserve_new:
                await self._reserve(db, new_day, window, capacity, exclude_id=appointment_id)
            return await appointment_store.update_appointment_by_id(db, appointment_id, patch)

        updated = await self._write(db, "update_appointment", op)
        if updated is None:
            raise NotFound("appointment", appointment_id)
        logger.info(
            "appointment_updated",
            appointment_id=appointment_id,
            fields=sorted(patch),
            status=updated.status,
            rescheduled=rescheduled,
            forced=admin and (old_status, new_status) not in LEGAL_TRANSITIONS and old_status != new_status,
        )
        return updated

    async def delete_appointment(
        self,
        db: AsyncSession,
        appointment_id: int,
        identity: Identity = ANONYMOUS,
        *,
        admin: bool = False,
    ) -> None:
        async with self._store_errors(db, "get_appointment"):
            appt = await appointment_store.get_appointment(db, appointment_id)
        if appt is None or not (admin or (identity.is_authenticated and appt.user_id == identity.user_id)):
            raise NotFound("appointment", appointment_id)
        day, hours, occupying = appt.date, appt.hours, appt.occupies_capacity

        async def op() -> None:
            if occupying:
                await slot_store.release(db, day, hours)
            target = await appointment_store.get_appointment(db, appointment_id)
            if target is not None:
                await appointment_store.delete_appointment(db, target)

        await self._write(db, "delete_appointment", op)
        logger.info("appointment_deleted", appointment_id=appointment_id, released=occupying)

    async def resync_day(self, db: AsyncSession, day: date) -> Dict[int, int]:
        """Rebuild a day's slot counters from the appointments actually stored."""

        async def op() -> Dict[int, int]:
            live = await appointment_store.find_appointments(db, day=day, exclude_statuses=[CANCELLED])
            loads = dict(hourly_load(live))
            await slot_store.replace_day(db, day, loads)
            return loads

        loads = await self._write(db, "resync_day", op)
        logger.info("slot_loads_resynced", date=str(day), hours=len(loads))
        return loads
