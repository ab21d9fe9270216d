# petshop/db/models/member.py

from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column, relationship
import sqlalchemy as sa

from petshop.db.session import Base
from petshop.db.models.appointment import Appointment, BigIntId


class Member(Base):
    """Registered account. Existence of a row for an email is what makes a caller a member."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    # Stored lower-cased
    email: Mapped[str] = mapped_column(sa.String(254), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    role: Mapped[str] = mapped_column(sa.String(16), nullable=False, server_default="user")
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="member")
