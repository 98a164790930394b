"""CHF amounts in integer Rappen, Swiss VAT maths, and rounding."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from salon_booking.config import settings

Number = Union[int, Decimal]

VAT_RATE = settings.commerce.vat_rate
VAT_RATE_REDUCED = settings.commerce.vat_rate_reduced


def round_cents(value: Number) -> int:
    """Round to whole Rappen, halves away from zero."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_vat_from_gross(gross_cents: int, rate: Decimal = VAT_RATE) -> int:
    """VAT already contained in a gross amount: ``gross * rate / (1 + rate)``."""
    return round_cents(Decimal(gross_cents) * rate / (1 + rate))


def calculate_vat_from_net(net_cents: int, rate: Decimal = VAT_RATE) -> int:
    """VAT to add on top of a net amount."""
    return round_cents(Decimal(net_cents) * rate)


def calculate_net_amount(gross_cents: int, rate: Decimal = VAT_RATE) -> int:
    return round_cents(Decimal(gross_cents) / (1 + rate))


def calculate_gross_amount(net_cents: int, rate: Decimal = VAT_RATE) -> int:
    return round_cents(Decimal(net_cents) * (1 + rate))


def round_to_five_rappen(cents: int) -> int:
    """Cash rounding to the nearest 0.05 CHF."""
    return round_cents(Decimal(cents) / 5) * 5


def format_chf(cents: int) -> str:
    """``CHF 1'234.50`` with Swiss thousands separators."""
    sign = "-" if cents < 0 else ""
    francs, rappen = divmod(abs(cents), 100)
    return f"CHF {sign}{francs:,}.{rappen:02d}".replace(",", "'")


def parse_currency(value: str) -> int:
    """Parse user input like ``"CHF 12.50"`` or ``"12,5"`` into Rappen; 0 if unparseable."""
    cleaned = re.sub(r"[^\d.,]", "", value).replace(",", ".")
    try:
        return round_cents(Decimal(cleaned) * 100)
    except InvalidOperation:
        return 0
