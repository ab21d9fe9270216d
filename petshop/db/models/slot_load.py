# petshop/db/models/slot_load.py

from __future__ import annotations
from datetime import date as _Date
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from petshop.db.session import Base


class SlotLoad(Base):
    """Per (date, hour) count of non-cancelled appointments covering that hour.

    Bookings increment it with a conditional UPDATE (booked < capacity), which
    makes the capacity check and the reservation a single atomic step.
    """

    __tablename__ = "slot_loads"
    __table_args__ = (
        sa.CheckConstraint("booked >= 0", name="ck_slot_loads_booked_non_negative"),
    )

    date: Mapped[_Date] = mapped_column(sa.Date, primary_key=True)
    hour: Mapped[int] = mapped_column(sa.Integer, primary_key=True)
    booked: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default="0")
