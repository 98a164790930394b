"""
Cart reducers.

Every operation takes a ``Cart`` and returns a new one with ``totals``
recomputed; inputs are never mutated. Totals follow Swiss VAT-inclusive
pricing: ``tax_cents`` is the VAT already inside the discounted subtotal,
not an extra charge.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from salon_booking.commerce.money import VAT_RATE, calculate_vat_from_gross, format_chf, round_cents
from salon_booking.config import settings
from salon_booking.schemas.cart_schema import (
    AddToCartInput,
    Cart,
    CartDiscount,
    CartItem,
    CartItemType,
    CartTotals,
    DiscountType,
    ProductData,
    ShippingMethod,
    UpdateCartItemInput,
)
from salon_booking.schemas.common_schema import ValidationResult

logger = logging.getLogger(__name__)

DIGITAL_ITEM_TYPES = frozenset({CartItemType.VOUCHER, CartItemType.SERVICE})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _with_items(cart: Cart, items: list[CartItem], **changes) -> Cart:
    discounts = changes.get("discounts", cart.discounts)
    shipping = changes.get("shipping_method", cart.shipping_method)
    return cart.model_copy(update={
        **changes,
        "items": items,
        "totals": calculate_totals(items, discounts, shipping),
        "updated_at": _now(),
    })


# ── Creation ─────────────────────────────────────────────────────────────────

def create_empty_cart(now: Optional[datetime] = None) -> Cart:
    now = now or _now()
    return Cart(
        id=_new_id("cart"),
        totals=calculate_totals([], [], None),
        created_at=now,
        updated_at=now,
        expires_at=now + timedelta(days=settings.commerce.cart_lifetime_days),
    )


# ── Item operations ──────────────────────────────────────────────────────────

def add_item_to_cart(cart: Cart, item_input: AddToCartInput, product: ProductData) -> Cart:
    """
    Add a line. A product matching an existing line (same product id and
    variant) merges quantities; vouchers and services are always new lines.
    """
    if item_input.type == CartItemType.PRODUCT:
        for index, item in enumerate(cart.items):
            if (item.type == CartItemType.PRODUCT
                    and item.product_id == item_input.product_id
                    and item.variant == item_input.variant):
                quantity = item.quantity + item_input.quantity
                merged = item.model_copy(update={
                    "quantity": quantity,
                    "total_price_cents": quantity * item.unit_price_cents,
                })
                items = list(cart.items)
                items[index] = merged
                return _with_items(cart, items)

    unit_price = product.price_cents
    if item_input.type == CartItemType.VOUCHER and item_input.voucher_value:
        unit_price = item_input.voucher_value

    new_item = CartItem(
        id=_new_id("item"),
        type=item_input.type,
        product_id=item_input.product_id,
        voucher_id=item_input.voucher_id,
        service_id=item_input.service_id,
        name=product.name,
        description=product.description,
        image_url=product.image_url,
        quantity=item_input.quantity,
        unit_price_cents=unit_price,
        total_price_cents=unit_price * item_input.quantity,
        voucher_value=item_input.voucher_value,
        recipient_name=item_input.recipient_name,
        recipient_email=item_input.recipient_email,
        personal_message=item_input.personal_message,
        variant=item_input.variant,
        sku=product.sku,
    )
    return _with_items(cart, [*cart.items, new_item])


def update_cart_item(cart: Cart, update: UpdateCartItemInput) -> Cart:
    """Change quantity or variant. A quantity of zero or less removes the line."""
    if find_cart_item(cart, update.item_id) is None:
        return cart

    if update.quantity is not None and update.quantity <= 0:
        return remove_cart_item(cart, update.item_id)

    items = []
    for item in cart.items:
        if item.id == update.item_id:
            quantity = update.quantity if update.quantity is not None else item.quantity
            item = item.model_copy(update={
                "quantity": quantity,
                "variant": update.variant if update.variant is not None else item.variant,
                "total_price_cents": quantity * item.unit_price_cents,
            })
        items.append(item)
    return _with_items(cart, items)


def remove_cart_item(cart: Cart, item_id: str) -> Cart:
    return _with_items(cart, [item for item in cart.items if item.id != item_id])


def clear_cart(cart: Cart) -> Cart:
    """Drop all items and discounts; the shipping selection is kept."""
    return _with_items(cart, [], discounts=[])


# ── Discounts ────────────────────────────────────────────────────────────────

def apply_discount(cart: Cart, discount: CartDiscount) -> Cart:
    """Apply a code once. Re-applying a code already on the cart returns it unchanged."""
    if any(d.code == discount.code for d in cart.discounts):
        return cart
    logger.debug("Discount %s applied to cart %s", discount.code, cart.id)
    return _with_items(cart, cart.items, discounts=[*cart.discounts, discount])


def remove_discount(cart: Cart, code: str) -> Cart:
    return _with_items(
        cart, cart.items, discounts=[d for d in cart.discounts if d.code != code],
    )


# ── Shipping ─────────────────────────────────────────────────────────────────

def set_shipping_method(cart: Cart, shipping_method: Optional[ShippingMethod]) -> Cart:
    return _with_items(cart, cart.items, shipping_method=shipping_method)


# ── Totals ───────────────────────────────────────────────────────────────────

def _discount_amount(discount: CartDiscount, subtotal_cents: int) -> int:
    if discount.type == DiscountType.PERCENTAGE:
        return round_cents(Decimal(subtotal_cents) * discount.value / 100)
    return discount.amount_cents


def calculate_totals(
    items: list[CartItem],
    discounts: list[CartDiscount],
    shipping_method: Optional[ShippingMethod],
    vat_rate: Decimal = VAT_RATE,
) -> CartTotals:
    """
    Pure totals breakdown.

    ``total = subtotal - discount + shipping``; the discount is capped at
    the subtotal; digital-only carts never pay shipping.
    """
    subtotal = sum(item.total_price_cents for item in items)
    discount = min(sum(_discount_amount(d, subtotal) for d in discounts), subtotal)

    shipping = 0
    if shipping_method is not None and not _is_digital_only(items):
        shipping = shipping_method.price_cents

    taxable = subtotal - discount
    return CartTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        shipping_cents=shipping,
        tax_cents=calculate_vat_from_gross(taxable, vat_rate),
        total_cents=subtotal - discount + shipping,
        item_count=sum(item.quantity for item in items),
    )


# ── Validation ───────────────────────────────────────────────────────────────

def is_cart_valid_for_checkout(cart: Cart) -> ValidationResult:
    errors: list[str] = []

    if not cart.items:
        errors.append("The cart is empty.")

    for item in cart.items:
        if item.quantity <= 0:
            errors.append(f"Invalid quantity for {item.name}.")

    for item in cart.items:
        if item.type == CartItemType.VOUCHER and not item.recipient_email:
            errors.append(f'Please provide an email address for the voucher "{item.name}".')

    return ValidationResult.from_errors(errors)


# ── Queries ──────────────────────────────────────────────────────────────────

def _is_digital_only(items: list[CartItem]) -> bool:
    return all(item.type in DIGITAL_ITEM_TYPES for item in items)


def is_digital_only_cart(cart: Cart) -> bool:
    """Only vouchers and services, so nothing to ship."""
    return _is_digital_only(cart.items)


def get_item_count(cart: Cart) -> int:
    return sum(item.quantity for item in cart.items)


def has_items(cart: Cart) -> bool:
    return bool(cart.items)


def find_cart_item(cart: Cart, item_id: str) -> Optional[CartItem]:
    return next((item for item in cart.items if item.id == item_id), None)


def is_product_in_cart(cart: Cart, product_id: str, variant: Optional[str] = None) -> bool:
    return any(
        item.type == CartItemType.PRODUCT
        and item.product_id == product_id
        and (variant is None or item.variant == variant)
        for item in cart.items
    )


def format_price(cents: int) -> str:
    return format_chf(cents)
