# petshop/services/pricing.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel

from petshop.core.errors import ValidationError
from petshop.schemas.appointment import DayCareSelection
from petshop.services.catalog import CatalogSnapshot

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to cents, going through str() so 0.125 stays 0.125 before rounding."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


class PriceBreakdown(BaseModel):
    base_price: float
    day_care_price: float
    discount_amount: float
    total: float


class PriceCalculator:
    def __init__(self, snapshot: CatalogSnapshot):
        self.snapshot = snapshot

    def day_care_price(self, selection: Optional[DayCareSelection]) -> float:
        if selection is None:
            return 0.0
        option = self.snapshot.get_day_care_option(selection.type)
        if selection.type == "daily":
            return float(option.price_per_day)
        days = selection.days or 0
        if days < 2:
            raise ValidationError.for_field("day_care.days", "long-term day care needs at least 2 days")
        return float(option.price_per_day) * days

    def compute_total(
        self,
        service_id: str,
        day_care: Optional[DayCareSelection] = None,
        is_member: bool = False,
    ) -> PriceBreakdown:
        service = self.snapshot.get_service(service_id)
        base = float(service.base_price)
        day_care_price = self.day_care_price(day_care)
        # member discount never touches day care
        discount = base * service.member_discount_percent / 100 if is_member else 0.0
        return PriceBreakdown(
            base_price=round2(base),
            day_care_price=round2(day_care_price),
            discount_amount=round2(discount),
            total=round2(base - discount + day_care_price),
        )
