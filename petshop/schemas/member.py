# petshop/schemas/member.py
import re
from datetime import datetime as _Datetime
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_name(v: str) -> str:
    # trim + collapse internal extra spaces
    v = " ".join(v.strip().split())
    if not v:
        raise ValueError("name cannot be empty")
    return v


def normalize_phone(v: str) -> str:
    # keep leading '+', remove spaces/dashes/brackets; enforce digits length 7–15
    v = v.strip()
    for ch in (" ", "-", "(", ")"):
        v = v.replace(ch, "")
    if v.startswith("+"):
        d = v[1:]
        if not d.isdigit() or not (7 <= len(d) <= 15):
            raise ValueError("phone must be + followed by 7–15 digits")
        return "+" + d
    if not v.isdigit() or not (7 <= len(v) <= 15):
        raise ValueError("phone must be 7–15 digits")
    return v


def normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("email is not a valid address")
    return v


class MemberCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., max_length=254, examples=["jane@example.com"])
    phone: str = Field(..., min_length=7, max_length=20)

    @field_validator("full_name")
    @classmethod
    def _clean_name(cls, v: str) -> str:
        return clean_name(v)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def _normalize_phone(cls, v: str) -> str:
        return normalize_phone(v)


class MemberOut(BaseModel):
    id: int
    full_name: str
    email: str
    phone: str
    role: str
    created_at: _Datetime
    model_config = ConfigDict(from_attributes=True)
