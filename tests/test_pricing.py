#!/usr/bin/env python3
"""
Tests for price computation.
"""

import pytest

from conftest import make_snapshot
from petshop.core.errors import NotFound, ValidationError
from petshop.schemas.appointment import DayCareSelection
from petshop.schemas.catalog import DayCareOptionOut
from petshop.services.catalog import CatalogSnapshot
from petshop.services.pricing import PriceCalculator, round2

pytestmark = pytest.mark.unit


@pytest.fixture
def calc(snapshot):
    return PriceCalculator(snapshot)


def test_member_spa_with_long_term_day_care(calc):
    price = calc.compute_total("spa", DayCareSelection(type="longTerm", days=3), is_member=True)

    assert price.base_price == 220
    assert price.day_care_price == 240
    assert price.discount_amount == 22
    assert price.total == 438.00


def test_non_member_without_day_care_pays_base_price_exactly(calc):
    price = calc.compute_total("basic", None, is_member=False)

    assert price.discount_amount == 0
    assert price.day_care_price == 0
    assert price.total == 60
    assert repr(price.total) == "60.0"


def test_member_discount_rounds_half_up(calc):
    # 8% of 60 is 4.8
    price = calc.compute_total("basic", is_member=True)

    assert price.discount_amount == 4.8
    assert price.total == 55.2


@pytest.mark.parametrize("service_id", ["basic", "full", "spa"])
@pytest.mark.parametrize(
    "day_care",
    [None, DayCareSelection(type="daily"), DayCareSelection(type="longTerm", days=2),
     DayCareSelection(type="longTerm", days=7)],
)
def test_discount_never_touches_day_care(calc, snapshot, service_id, day_care):
    member = calc.compute_total(service_id, day_care, is_member=True)
    guest = calc.compute_total(service_id, day_care, is_member=False)
    service = snapshot.get_service(service_id)

    assert member.day_care_price == guest.day_care_price
    assert member.discount_amount == round2(service.base_price * service.member_discount_percent / 100)
    assert member.total == round2(guest.total - member.discount_amount)


def test_daily_day_care_is_one_day_whatever_the_count(calc):
    price = calc.compute_total("basic", DayCareSelection(type="daily", days=5))

    assert price.day_care_price == 50
    assert price.total == 110


@pytest.mark.parametrize("days", [None, 1])
def test_long_term_needs_at_least_two_days(calc, days):
    with pytest.raises(ValidationError) as exc:
        calc.compute_total("basic", DayCareSelection(type="longTerm", days=days))

    assert exc.value.fields[0]["field"] == "day_care.days"


def test_unknown_service(calc):
    with pytest.raises(NotFound) as exc:
        calc.compute_total("deluxe")

    assert exc.value.kind == "service"


def test_unknown_day_care_option():
    snap = make_snapshot()
    snap = CatalogSnapshot(
        services=snap.services,
        day_care_options={"daily": DayCareOptionOut(type="daily", price_per_day=50)},
    )

    with pytest.raises(NotFound):
        PriceCalculator(snap).compute_total("basic", DayCareSelection(type="longTerm", days=3))


def test_fractional_prices_are_rounded_once_at_the_end():
    snap = make_snapshot(odd={"base_price": 33.335, "duration_hours": 1, "member_discount_percent": 0})

    price = PriceCalculator(snap).compute_total("odd")

    assert price.total == 33.34


@pytest.mark.parametrize("value, expected", [(0.125, 0.13), (2.675, 2.68), (1.005, 1.01), (10, 10.0), (-0.005, -0.01)])
def test_round2_is_half_up(value, expected):
    assert round2(value) == expected
