"""
Order status state machine.

Every allowed move is listed explicitly in ``TRANSITIONS``. Requests
outside the table are rejected by returning None from
``transition_order_status``; the caller decides whether that is an error.

    pending → paid | cancelled
    paid → processing | shipped | completed | cancelled | refunded
    processing → shipped | completed | cancelled | refunded
    shipped → delivered | completed | refunded
    delivered → completed | refunded
    completed → refunded
    cancelled, refunded: terminal
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from salon_booking.schemas.order_schema import (
    Order,
    OrderStatus,
    OrderStatusChange,
    PaymentStatus,
    UpdateOrderInput,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: OrderStatus
    to_status: OrderStatus


TRANSITIONS: list[Transition] = [
    # --- Awaiting payment ---
    Transition(OrderStatus.PENDING, OrderStatus.PAID),
    Transition(OrderStatus.PENDING, OrderStatus.CANCELLED),

    # --- Paid ---
    Transition(OrderStatus.PAID, OrderStatus.PROCESSING),
    Transition(OrderStatus.PAID, OrderStatus.SHIPPED),
    Transition(OrderStatus.PAID, OrderStatus.COMPLETED),
    Transition(OrderStatus.PAID, OrderStatus.CANCELLED),
    Transition(OrderStatus.PAID, OrderStatus.REFUNDED),

    # --- Fulfilment ---
    Transition(OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    Transition(OrderStatus.PROCESSING, OrderStatus.COMPLETED),
    Transition(OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    Transition(OrderStatus.PROCESSING, OrderStatus.REFUNDED),
    Transition(OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    Transition(OrderStatus.SHIPPED, OrderStatus.COMPLETED),
    Transition(OrderStatus.SHIPPED, OrderStatus.REFUNDED),
    Transition(OrderStatus.DELIVERED, OrderStatus.COMPLETED),
    Transition(OrderStatus.DELIVERED, OrderStatus.REFUNDED),

    # --- After completion ---
    Transition(OrderStatus.COMPLETED, OrderStatus.REFUNDED),
]

STATUS_TEXT: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.PAID: "Paid",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.REFUNDED: "Refunded",
}

PAYMENT_STATUS_TEXT: dict[PaymentStatus, str] = {
    PaymentStatus.PENDING: "Pending",
    PaymentStatus.PROCESSING: "Processing",
    PaymentStatus.SUCCEEDED: "Succeeded",
    PaymentStatus.FAILED: "Failed",
    PaymentStatus.REFUNDED: "Refunded",
    PaymentStatus.PARTIALLY_REFUNDED: "Partially refunded",
}


def get_allowed_transitions(status: OrderStatus) -> list[OrderStatus]:
    """Return all statuses reachable in one step from ``status``."""
    return [t.to_status for t in TRANSITIONS if t.from_status == status]


def is_valid_status_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Staying in the same status is always allowed (a no-op)."""
    if current == new:
        return True
    return any(t.from_status == current and t.to_status == new for t in TRANSITIONS)


def is_terminal_status(status: OrderStatus) -> bool:
    return not get_allowed_transitions(status)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def update_order(order: Order, changes: UpdateOrderInput, now: Optional[datetime] = None) -> Order:
    """Apply field changes and stamp lifecycle timestamps for the new status."""
    now = now or _now()
    status = changes.status or order.status
    payment_status = changes.payment_status or order.payment_status

    return order.model_copy(update={
        "status": status,
        "payment_status": payment_status,
        "tracking_number": changes.tracking_number or order.tracking_number,
        "internal_notes": changes.internal_notes or order.internal_notes,
        "shipped_at": changes.shipped_at or order.shipped_at,
        "delivered_at": changes.delivered_at or order.delivered_at,
        "updated_at": now,
        "completed_at": now if changes.status == OrderStatus.COMPLETED else order.completed_at,
        "cancelled_at": now if changes.status == OrderStatus.CANCELLED else order.cancelled_at,
        "paid_at": now if changes.payment_status == PaymentStatus.SUCCEEDED else order.paid_at,
        "refunded_at": now if changes.payment_status == PaymentStatus.REFUNDED else order.refunded_at,
    })


def transition_order_status(
    order: Order,
    new_status: OrderStatus,
    changed_by: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[Order]:
    """
    Move an order to ``new_status``.

    Returns:
        The updated order with a status-history entry appended; the same
        order unchanged when it already has ``new_status``; None when the
        transition is not in the table.
    """
    if order.status == new_status:
        return order
    if not is_valid_status_transition(order.status, new_status):
        logger.debug(
            "Rejected order transition: %s -> %s (allowed: %s)",
            order.status.value, new_status.value,
            [s.value for s in get_allowed_transitions(order.status)],
        )
        return None

    now = now or _now()
    updated = update_order(order, UpdateOrderInput(status=new_status), now)
    change = OrderStatusChange(
        previous_status=order.status,
        new_status=new_status,
        changed_by=changed_by,
        notes=notes,
        created_at=now,
    )
    logger.debug("Order %s: %s -> %s", order.order_number, order.status.value, new_status.value)
    return updated.model_copy(update={"status_history": [*order.status_history, change]})


def get_status_text(status: OrderStatus) -> str:
    return STATUS_TEXT.get(status, status.value)


def get_payment_status_text(status: PaymentStatus) -> str:
    return PAYMENT_STATUS_TEXT.get(status, status.value)
