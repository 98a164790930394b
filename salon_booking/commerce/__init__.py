from salon_booking.commerce.cart import (
    add_item_to_cart,
    apply_discount,
    calculate_totals,
    clear_cart,
    create_empty_cart,
    is_cart_valid_for_checkout,
    remove_cart_item,
    remove_discount,
    set_shipping_method,
    update_cart_item,
)
from salon_booking.commerce.order import apply_voucher, calculate_order_totals, create_order
from salon_booking.commerce.order_status import is_valid_status_transition, transition_order_status
from salon_booking.commerce.store import CartStore, InMemoryCartPersistence

__all__ = [
    "create_empty_cart",
    "add_item_to_cart",
    "update_cart_item",
    "remove_cart_item",
    "clear_cart",
    "apply_discount",
    "remove_discount",
    "set_shipping_method",
    "calculate_totals",
    "is_cart_valid_for_checkout",
    "CartStore",
    "InMemoryCartPersistence",
    "create_order",
    "calculate_order_totals",
    "apply_voucher",
    "is_valid_status_transition",
    "transition_order_status",
]
