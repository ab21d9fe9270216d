# petshop/db/models/catalog.py

from __future__ import annotations
from datetime import datetime, timezone
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from petshop.db.session import Base


class GroomingService(Base):
    """Service definition. `id` is the only key appointments reference; `name` is display text."""

    __tablename__ = "grooming_services"

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    description: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="")
    base_price: Mapped[float] = mapped_column(sa.Float, nullable=False)
    duration_hours: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    member_discount_percent: Mapped[float] = mapped_column(sa.Float, nullable=False, server_default="0")
    # NULL means "use the global maxBookingsPerTimeSlot setting"
    capacity_limit: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    recommended: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())

    __table_args__ = (
        sa.CheckConstraint("duration_hours > 0", name="ck_grooming_services_duration_positive"),
        sa.CheckConstraint(
            "member_discount_percent >= 0 AND member_discount_percent <= 100",
            name="ck_grooming_services_discount_range",
        ),
    )


class DayCareOption(Base):
    __tablename__ = "day_care_options"

    type: Mapped[str] = mapped_column(sa.String(16), primary_key=True)  # daily | longTerm
    price_per_day: Mapped[float] = mapped_column(sa.Float, nullable=False)
    description: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="")


class AppointmentSettings(Base):
    """Singleton row keyed by setting_name='default'."""

    __tablename__ = "appointment_settings"

    setting_name: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default="default")
    max_bookings_per_time_slot: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default="5")
    description: Mapped[str | None] = mapped_column(sa.Text)
    updated_by: Mapped[str | None] = mapped_column(sa.String(64))
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
