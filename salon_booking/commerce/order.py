"""
Order creation, totals, vouchers, shipping options, and validation.

Pure functions over immutable ``Order`` values. Prices are VAT-inclusive;
``tax_cents`` reports the VAT contained in the final total. Orders whose
subtotal reaches the free-shipping threshold ship for free.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from salon_booking.commerce.money import VAT_RATE, calculate_vat_from_gross, calculate_vat_from_net
from salon_booking.commerce.order_status import STATUS_TEXT
from salon_booking.config import settings
from salon_booking.schemas.cart_schema import Cart, CartItemType
from salon_booking.schemas.common_schema import ValidationResult
from salon_booking.schemas.order_schema import (
    ApplyVoucherInput,
    CreateOrderInput,
    CreateOrderItemInput,
    Order,
    OrderItem,
    OrderItemType,
    OrderStatus,
    OrderStatusChange,
    OrderTotals,
    PaymentStatus,
    ShippingMethodType,
    ShippingOption,
)
from salon_booking.utils import is_valid_email

logger = logging.getLogger(__name__)

FREE_SHIPPING_THRESHOLD_CENTS = settings.commerce.free_shipping_threshold_cents

DEFAULT_SHIPPING_OPTIONS: list[ShippingOption] = [
    ShippingOption(
        type=ShippingMethodType.STANDARD,
        name="Standard shipping",
        description="3-5 working days",
        price_cents=790,
        estimated_days=5,
    ),
    ShippingOption(
        type=ShippingMethodType.EXPRESS,
        name="Express shipping",
        description="1-2 working days",
        price_cents=1490,
        estimated_days=2,
    ),
    ShippingOption(
        type=ShippingMethodType.PICKUP,
        name="Pickup at the salon",
        description="Free",
        price_cents=0,
    ),
]

DIGITAL_ITEM_TYPES = frozenset({OrderItemType.VOUCHER, OrderItemType.SERVICE})
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING})


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Order numbers ────────────────────────────────────────────────────────────

def generate_order_number_prefix(now: Optional[datetime] = None) -> str:
    """``SW-2026-``: prefix for the current year; the caller appends a sequence."""
    year = (now or _now()).year
    return f"{settings.commerce.order_number_prefix}-{year}-"


def generate_order_number(sequence: int, now: Optional[datetime] = None) -> str:
    return f"{generate_order_number_prefix(now)}{sequence:05d}"


# ── Creation ─────────────────────────────────────────────────────────────────

def create_order_item(order_id: str, item: CreateOrderItemInput) -> OrderItem:
    total = item.unit_price_cents * item.quantity - item.discount_cents
    tax_rate = item.tax_rate if item.tax_rate is not None else VAT_RATE
    return OrderItem(
        id=str(uuid.uuid4()),
        order_id=order_id,
        item_type=item.item_type,
        product_id=item.product_id,
        variant_id=item.variant_id,
        item_name=item.item_name,
        item_sku=item.item_sku,
        item_description=item.item_description,
        quantity=item.quantity,
        unit_price_cents=item.unit_price_cents,
        discount_cents=item.discount_cents,
        total_cents=total,
        tax_rate=tax_rate,
        tax_cents=calculate_vat_from_gross(total, tax_rate),
        voucher_type=item.voucher_type,
        recipient_email=item.recipient_email,
        recipient_name=item.recipient_name,
        personal_message=item.personal_message,
    )


def create_order(
    order_input: CreateOrderInput, order_number: str, now: Optional[datetime] = None,
) -> Order:
    """Build a pending order with items and totals computed from the input."""
    now = now or _now()
    order_id = str(uuid.uuid4())
    items = [create_order_item(order_id, item) for item in order_input.items]
    totals = calculate_order_totals(items, 0, get_shipping_cents(order_input.shipping_method))

    logger.info("Order %s created with %d items", order_number, len(items))
    return Order(
        id=order_id,
        salon_id=order_input.salon_id,
        customer_id=order_input.customer_id,
        order_number=order_number,
        payment_method=order_input.payment_method,
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        shipping_cents=totals.shipping_cents,
        tax_cents=totals.tax_cents,
        total_cents=totals.total_cents,
        shipping_method=order_input.shipping_method,
        shipping_address=order_input.shipping_address,
        customer_email=order_input.customer_email,
        customer_name=order_input.customer_name,
        customer_phone=order_input.customer_phone,
        customer_notes=order_input.customer_notes,
        source=order_input.source,
        created_at=now,
        updated_at=now,
        items=items,
        status_history=[OrderStatusChange(new_status=OrderStatus.PENDING, created_at=now)],
    )


def order_items_from_cart(cart: Cart) -> list[CreateOrderItemInput]:
    """Translate cart lines into order item inputs at their cart prices."""
    return [
        CreateOrderItemInput(
            item_type=OrderItemType(item.type.value),
            product_id=item.product_id,
            variant_id=item.variant,
            item_name=item.name,
            item_sku=item.sku,
            item_description=item.description,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            voucher_type="value" if item.type == CartItemType.VOUCHER else None,
            recipient_email=item.recipient_email,
            recipient_name=item.recipient_name,
            personal_message=item.personal_message,
        )
        for item in cart.items
    ]


# ── Totals ───────────────────────────────────────────────────────────────────

def calculate_tax_from_gross(gross_cents: int, rate: Decimal = VAT_RATE) -> int:
    return calculate_vat_from_gross(gross_cents, rate)


def calculate_tax_from_net(net_cents: int, rate: Decimal = VAT_RATE) -> int:
    return calculate_vat_from_net(net_cents, rate)


def calculate_order_totals(
    items: list[OrderItem],
    voucher_discount_cents: int = 0,
    shipping_cents: int = 0,
) -> OrderTotals:
    """
    Totals from line items (already net of line discounts).

    Shipping is waived once the subtotal reaches the free-shipping
    threshold. The voucher is capped at subtotal + shipping.
    """
    subtotal = sum(item.total_cents for item in items)
    discount = sum(item.discount_cents for item in items)

    shipping = 0 if subtotal >= FREE_SHIPPING_THRESHOLD_CENTS else shipping_cents
    before_voucher = subtotal + shipping
    voucher = max(0, min(voucher_discount_cents, before_voucher))
    total = before_voucher - voucher

    return OrderTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        voucher_discount_cents=voucher,
        shipping_cents=shipping,
        tax_cents=calculate_vat_from_gross(total),
        total_cents=total,
    )


# ── Vouchers ─────────────────────────────────────────────────────────────────

def apply_voucher(order: Order, voucher: ApplyVoucherInput, now: Optional[datetime] = None) -> Order:
    """
    Apply a voucher, replacing any voucher already on the order.

    The discount is capped at ``subtotal + shipping - discount``, so
    applying the same voucher twice gives the same order totals.
    """
    max_discount = max(0, order.subtotal_cents + order.shipping_cents - order.discount_cents)
    totals = calculate_order_totals(
        order.items, min(voucher.discount_cents, max_discount), order.shipping_cents,
    )
    logger.debug("Voucher %s applied to order %s", voucher.voucher_code, order.order_number)
    return order.model_copy(update={
        "voucher_id": voucher.voucher_id,
        "voucher_discount_cents": totals.voucher_discount_cents,
        "total_cents": totals.total_cents,
        "tax_cents": totals.tax_cents,
        "updated_at": now or _now(),
    })


def remove_voucher(order: Order, now: Optional[datetime] = None) -> Order:
    totals = calculate_order_totals(order.items, 0, order.shipping_cents)
    return order.model_copy(update={
        "voucher_id": None,
        "voucher_discount_cents": 0,
        "total_cents": totals.total_cents,
        "tax_cents": totals.tax_cents,
        "updated_at": now or _now(),
    })


# ── Shipping ─────────────────────────────────────────────────────────────────

def get_shipping_cents(method: Optional[ShippingMethodType]) -> int:
    if method is None or method == ShippingMethodType.NONE:
        return 0
    option = next((o for o in DEFAULT_SHIPPING_OPTIONS if o.type == method), None)
    return option.price_cents if option else 0


def get_available_shipping_options(subtotal_cents: int, is_digital_only: bool) -> list[ShippingOption]:
    """Shipping choices for checkout; delivery is free above the threshold."""
    if is_digital_only:
        return [
            ShippingOption(
                type=ShippingMethodType.NONE,
                name="No shipping",
                description="Digital products",
                price_cents=0,
            )
        ]

    free = subtotal_cents >= FREE_SHIPPING_THRESHOLD_CENTS
    options = []
    for option in DEFAULT_SHIPPING_OPTIONS:
        if free and option.type != ShippingMethodType.PICKUP:
            option = option.model_copy(update={
                "price_cents": 0,
                "description": f"Free (from CHF {FREE_SHIPPING_THRESHOLD_CENTS // 100})",
            })
        options.append(option)
    return options


# ── Validation ───────────────────────────────────────────────────────────────

def validate_order_input(order_input: CreateOrderInput) -> ValidationResult:
    errors: list[str] = []

    if not order_input.salon_id:
        errors.append("Salon ID is required.")

    if not order_input.customer_email:
        errors.append("Email address is required.")
    elif not is_valid_email(order_input.customer_email):
        errors.append("Invalid email address.")

    if not order_input.items:
        errors.append("At least one item is required.")

    for index, item in enumerate(order_input.items, start=1):
        if not item.item_name:
            errors.append(f"Item {index}: name is required.")
        if item.quantity < 1:
            errors.append(f"Item {index}: quantity must be at least 1.")
        if item.unit_price_cents < 0:
            errors.append(f"Item {index}: price must not be negative.")
        if item.item_type == OrderItemType.VOUCHER and not (item.recipient_email or item.recipient_name):
            errors.append(f"Item {index}: voucher recipient details are required.")

    if any(item.item_type == OrderItemType.PRODUCT for item in order_input.items):
        if not order_input.shipping_method:
            errors.append("Shipping method is required.")
        if order_input.shipping_method != ShippingMethodType.PICKUP and not order_input.shipping_address:
            errors.append("Shipping address is required.")
        address = order_input.shipping_address
        if address:
            if not address.name:
                errors.append("Shipping address: name is required.")
            if not address.street:
                errors.append("Shipping address: street is required.")
            if not address.zip:
                errors.append("Shipping address: postcode is required.")
            if not address.city:
                errors.append("Shipping address: city is required.")

    return ValidationResult.from_errors(errors)


def validate_order_for_payment(order: Order) -> ValidationResult:
    errors: list[str] = []

    if order.status != OrderStatus.PENDING:
        errors.append(f'Order is not pending (status: "{STATUS_TEXT[order.status]}").')
    if not order.items:
        errors.append("Order contains no items.")
    if order.total_cents <= 0:
        errors.append("Order total must be greater than zero.")

    return ValidationResult.from_errors(errors)


# ── Queries ──────────────────────────────────────────────────────────────────

def is_digital_only_order(order: Order) -> bool:
    return all(item.item_type in DIGITAL_ITEM_TYPES for item in order.items)


def has_voucher_items(order: Order) -> bool:
    return any(item.item_type == OrderItemType.VOUCHER for item in order.items)


def get_voucher_items(order: Order) -> list[OrderItem]:
    return [item for item in order.items if item.item_type == OrderItemType.VOUCHER]


def get_item_count(order: Order) -> int:
    return sum(item.quantity for item in order.items)


def is_paid(order: Order) -> bool:
    return order.payment_status == PaymentStatus.SUCCEEDED


def can_cancel(order: Order) -> bool:
    return order.status in CANCELLABLE_STATUSES


def can_refund(order: Order) -> bool:
    return is_paid(order) and order.refunded_amount_cents < order.total_cents
