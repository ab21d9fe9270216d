# petshop/schemas/appointment.py

from datetime import date as _Date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from petshop.core.business import format_slot, parse_slot_time
from petshop.schemas.catalog import DayCareType
from petshop.schemas.member import clean_name, normalize_email, normalize_phone

PetType = Literal["dog", "cat"]
Status = Literal["Booked", "Completed", "Cancelled"]


class DayCareSelection(BaseModel):
    type: DayCareType
    days: Optional[int] = Field(None, ge=1, description="Number of days; long-term stays need at least 2")


class _ContactFields(BaseModel):
    owner_name: Optional[str] = Field(None, max_length=120)
    owner_phone: Optional[str] = Field(None, max_length=20)
    owner_email: Optional[str] = Field(None, max_length=254)

    @field_validator("owner_name")
    @classmethod
    def _clean_owner_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else clean_name(v)

    @field_validator("owner_phone")
    @classmethod
    def _normalize_owner_phone(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_phone(v)

    @field_validator("owner_email")
    @classmethod
    def _normalize_owner_email(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_email(v)


def _slot(v: str) -> str:
    return format_slot(parse_slot_time(v))


class AppointmentCreate(_ContactFields):
    """Booking request. Owner contact may be omitted when the caller is signed in."""

    pet_name: str = Field(..., min_length=1, max_length=80, examples=["Milo"])
    pet_type: PetType
    date: _Date = Field(..., description="Calendar date in the shop's time zone")
    time: str = Field(..., examples=["14:00"], description="Whole-hour start time")
    service_id: str = Field(..., examples=["basic"])
    day_care: Optional[DayCareSelection] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("pet_name")
    @classmethod
    def _clean_pet_name(cls, v: str) -> str:
        return clean_name(v)

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return _slot(v)

    @field_validator("service_id")
    @classmethod
    def _normalize_service_id(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("service_id cannot be empty")
        return v


class AppointmentUpdate(_ContactFields):
    """Partial update; only fields present in the payload are applied."""

    pet_name: Optional[str] = Field(None, min_length=1, max_length=80)
    pet_type: Optional[PetType] = None
    date: Optional[_Date] = None
    time: Optional[str] = None
    service_id: Optional[str] = None
    day_care: Optional[DayCareSelection] = None
    notes: Optional[str] = Field(None, max_length=2000)
    status: Optional[Status] = None

    @field_validator("pet_name")
    @classmethod
    def _clean_pet_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else clean_name(v)

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _slot(v)

    @field_validator("service_id")
    @classmethod
    def _normalize_service_id(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else v.strip().lower()


class AppointmentOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    pet_name: str
    pet_type: PetType
    date: _Date
    time: str
    service_id: str
    duration_hours: int
    day_care_type: Optional[DayCareType] = None
    day_care_days: Optional[int] = None
    base_price: float
    discount_amount: float
    day_care_price: float
    total_price: float
    status: Status
    owner_name: str
    owner_phone: str
    owner_email: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PriceQuoteRequest(BaseModel):
    service_id: str
    day_care: Optional[DayCareSelection] = None
    is_member: bool = False
