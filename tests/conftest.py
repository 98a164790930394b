"""Shared test fixtures and helpers.

All scenarios run against a fixed clock: Monday 2026-10-19 07:00 in
Europe/Zurich. The salon is closed on Sundays; Vanessa (staff-1) works
Mon-Fri 09-17 and does both services; Sarah (staff-2) works Mon-Wed
10-18 and only cuts.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from salon_booking.schemas.cart_schema import AddToCartInput, CartItemType, ProductData, ShippingMethod
from salon_booking.schemas.scheduling_schema import (
    BookableService,
    BookableStaff,
    BookingRules,
    DayOpeningHours,
    SchedulingSnapshot,
    SlotRequest,
    StaffWorkingHours,
)

TZ = ZoneInfo("Europe/Zurich")


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Local Zurich instant in October 2026."""
    return datetime(2026, 10, day, hour, minute, tzinfo=TZ)


NOW = at(19, 7, 0)

SERVICES = [
    BookableService(
        id="service-1", name="Haircut", duration_minutes=45,
        current_price=8500, category_id="cat-1",
    ),
    BookableService(
        id="service-2", name="Colouring", duration_minutes=90,
        current_price=12000, category_id="cat-1",
    ),
]

STAFF = [
    BookableStaff(id="staff-1", name="Vanessa", service_ids=["service-1", "service-2"]),
    BookableStaff(id="staff-2", name="Sarah", service_ids=["service-1"]),
]

OPENING_HOURS = [
    DayOpeningHours(day_of_week=0, open_time="09:00", close_time="18:00", is_closed=True),
    *[
        DayOpeningHours(day_of_week=dow, open_time="09:00", close_time="18:00")
        for dow in range(1, 6)
    ],
    DayOpeningHours(day_of_week=6, open_time="09:00", close_time="14:00"),
]

STAFF_WORKING_HOURS = [
    *[
        StaffWorkingHours(staff_id="staff-1", day_of_week=dow, start_time="09:00", end_time="17:00")
        for dow in range(1, 6)
    ],
    *[
        StaffWorkingHours(staff_id="staff-2", day_of_week=dow, start_time="10:00", end_time="18:00")
        for dow in range(1, 4)
    ],
]


def make_rules(**overrides) -> BookingRules:
    values = dict(
        slot_granularity_minutes=15,
        lead_time_minutes=60,
        horizon_days=30,
        buffer_between_minutes=0,
        allow_multiple_services=True,
        require_deposit=False,
        cancellation_deadline_hours=24,
    )
    values.update(overrides)
    return BookingRules(**values)


def make_snapshot(**overrides) -> SchedulingSnapshot:
    """Snapshot with the standard salon; any field can be overridden."""
    values = dict(
        services=SERVICES,
        staff=STAFF,
        opening_hours=OPENING_HOURS,
        staff_working_hours=STAFF_WORKING_HOURS,
        booking_rules=make_rules(),
        timezone="Europe/Zurich",
    )
    values.update(overrides)
    return SchedulingSnapshot(**values)


def make_request(
    start_day: int,
    end_day: Optional[int] = None,
    service_ids: Optional[list[str]] = None,
    preferred_staff_id: Optional[str] = None,
) -> SlotRequest:
    return SlotRequest(
        date_range_start=date(2026, 10, start_day),
        date_range_end=date(2026, 10, end_day if end_day is not None else start_day),
        service_ids=service_ids if service_ids is not None else ["service-1"],
        preferred_staff_id=preferred_staff_id,
    )


def product_input(product_id: str = "prod-1", quantity: int = 1,
                  variant: Optional[str] = None) -> AddToCartInput:
    return AddToCartInput(
        type=CartItemType.PRODUCT, product_id=product_id, quantity=quantity, variant=variant,
    )


def voucher_input(value: int = 5000, email: Optional[str] = "friend@example.ch") -> AddToCartInput:
    return AddToCartInput(
        type=CartItemType.VOUCHER,
        voucher_id="voucher-tpl",
        quantity=1,
        voucher_value=value,
        recipient_name="Anna",
        recipient_email=email,
    )


def product_data(price_cents: int = 2500, name: str = "Shampoo") -> ProductData:
    return ProductData(name=name, price_cents=price_cents, sku="SKU-1")


STANDARD_SHIPPING = ShippingMethod(
    id="standard", name="Standard shipping", price_cents=790, estimated_days="3-5",
)


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def now():
    return NOW
