# petshop/schemas/catalog.py

import re
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

DayCareType = Literal["daily", "longTerm"]

_SERVICE_ID_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,31}$")


class ServiceDefinition(BaseModel):
    """Catalog entry as the booking engine sees it."""

    id: str
    name: str
    description: str = ""
    base_price: float
    duration_hours: int
    member_discount_percent: float = 0
    capacity_limit: Optional[int] = None
    recommended: bool = False
    model_config = ConfigDict(from_attributes=True, frozen=True)


class ServiceCreate(BaseModel):
    id: str = Field(..., examples=["basic"])
    name: str = Field(..., min_length=1, max_length=120, examples=["Basic Grooming"])
    description: str = ""
    base_price: float = Field(..., ge=0)
    duration_hours: int = Field(..., ge=1, le=24)
    member_discount_percent: float = Field(0, ge=0, le=100)
    capacity_limit: Optional[int] = Field(None, ge=1)
    recommended: bool = False

    @field_validator("id")
    @classmethod
    def _check_id(cls, v: str) -> str:
        v = v.strip().lower()
        if not _SERVICE_ID_RE.match(v):
            raise ValueError("id must be a short lowercase slug (letters, digits, '-' or '_')")
        return v


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    duration_hours: Optional[int] = Field(None, ge=1, le=24)
    member_discount_percent: Optional[float] = Field(None, ge=0, le=100)
    capacity_limit: Optional[int] = Field(None, ge=1)
    recommended: Optional[bool] = None


class DayCareOptionOut(BaseModel):
    type: DayCareType
    price_per_day: float
    description: str = ""
    model_config = ConfigDict(from_attributes=True, frozen=True)


class DayCareOptionCreate(BaseModel):
    type: DayCareType
    price_per_day: float = Field(..., ge=0)
    description: str = ""


class DayCareOptionUpdate(BaseModel):
    price_per_day: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None


class AppointmentSettingsOut(BaseModel):
    setting_name: str
    max_bookings_per_time_slot: int
    description: Optional[str] = None
    updated_by: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class AppointmentSettingsUpdate(BaseModel):
    max_bookings_per_time_slot: int = Field(..., ge=1, description="Global per-hour capacity")
    description: Optional[str] = None
