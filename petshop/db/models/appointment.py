# petshop/db/models/appointment.py

from __future__ import annotations
from datetime import date as _Date, datetime, timezone
from typing import Optional
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from petshop.db.session import Base

# SQLite only auto-increments INTEGER primary keys
BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

BOOKED = "Booked"
COMPLETED = "Completed"
CANCELLED = "Cancelled"
STATUSES = (BOOKED, COMPLETED, CANCELLED)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.Index("ix_appointments_date_status", "date", "status"),
        sa.Index("ix_appointments_owner_email", "owner_email"),
        sa.Index("ix_appointments_user_id", "user_id"),
        sa.Index("ix_appointments_service_id", "service_id"),
        sa.CheckConstraint("pet_type IN ('dog', 'cat')", name="ck_appointments_pet_type"),
        sa.CheckConstraint("status IN ('Booked', 'Completed', 'Cancelled')", name="ck_appointments_status"),
        sa.CheckConstraint("duration_hours > 0", name="ck_appointments_duration_positive"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    # Guest bookings have no account
    user_id: Mapped[int | None] = mapped_column(
        BigIntId, sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    pet_name: Mapped[str] = mapped_column(sa.String(80), nullable=False)
    pet_type: Mapped[str] = mapped_column(sa.String(8), nullable=False)

    # Calendar date + hour-granular start ("HH:00") in the business time zone
    date: Mapped[_Date] = mapped_column(sa.Date, nullable=False)
    time: Mapped[str] = mapped_column(sa.String(5), nullable=False)

    service_id: Mapped[str] = mapped_column(sa.String(32), sa.ForeignKey("grooming_services.id"), nullable=False)
    # Frozen from the service definition at booking time
    duration_hours: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    day_care_type: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    day_care_days: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)

    # Frozen price breakdown
    base_price: Mapped[float] = mapped_column(sa.Float, nullable=False)
    discount_amount: Mapped[float] = mapped_column(sa.Float, nullable=False, server_default="0")
    day_care_price: Mapped[float] = mapped_column(sa.Float, nullable=False, server_default="0")
    total_price: Mapped[float] = mapped_column(sa.Float, nullable=False)

    status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default=BOOKED, server_default=BOOKED)

    owner_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    owner_phone: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    owner_email: Mapped[str] = mapped_column(sa.String(254), nullable=False)
    notes: Mapped[str | None] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc)
    )

    member: Mapped[Optional["Member"]] = relationship("Member", back_populates="appointments")

    @property
    def start_hour(self) -> int:
        return int(self.time.split(":")[0])

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.start_hour + self.duration_hours)

    @property
    def occupies_capacity(self) -> bool:
        return self.status != CANCELLED
