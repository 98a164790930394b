"""
Temporary slot holds.

A reservation holds one slot key for a single session while checkout
proceeds. Expiry is absolute from creation time and evaluated lazily:
nothing cancels a hold at ``expires_at``; an external sweep uses
``partition_expired_reservations`` to free abandoned holds.

Usage:
    key = generate_slot_key(slot.staff_id, slot.starts_at, slot.ends_at)
    if not has_conflicting_reservation(key, held, session_id):
        reservation = create_reservation(
            staff_id=slot.staff_id, starts_at=slot.starts_at,
            ends_at=slot.ends_at, session_id=session_id,
        )
"""

import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional

from salon_booking.booking.errors import SlotEngineError, SlotEngineErrorCode
from salon_booking.booking.intervals import to_iso_utc, utc_now
from salon_booking.config import settings
from salon_booking.logging_context import get_session_logger, set_session_id
from salon_booking.schemas.scheduling_schema import SlotReservation

logger = get_session_logger(__name__)

RESERVATION_TIMEOUT_MINUTES = settings.booking.reservation_timeout_minutes
MAX_RESERVATIONS_PER_SESSION = settings.booking.max_reservations_per_session


def generate_slot_key(staff_id: str, starts_at: datetime, ends_at: datetime) -> str:
    """Deterministic key for (staff, start, end); equal instants in any timezone give equal keys."""
    return f"{staff_id}:{to_iso_utc(starts_at)}:{to_iso_utc(ends_at)}"


def create_reservation(
    staff_id: str,
    starts_at: datetime,
    ends_at: datetime,
    session_id: str,
    customer_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SlotReservation:
    """Create a new hold expiring ``RESERVATION_TIMEOUT_MINUTES`` after ``now``."""
    now = now or utc_now()
    set_session_id(session_id)
    reservation = SlotReservation(
        id=str(uuid.uuid4()),
        slot_key=generate_slot_key(staff_id, starts_at, ends_at),
        staff_id=staff_id,
        starts_at=starts_at,
        ends_at=ends_at,
        customer_id=customer_id,
        session_id=session_id,
        expires_at=now + timedelta(minutes=RESERVATION_TIMEOUT_MINUTES),
        created_at=now,
    )
    logger.debug("Reservation %s created for %s", reservation.id, reservation.slot_key)
    return reservation


def is_reservation_valid(reservation: SlotReservation, now: Optional[datetime] = None) -> bool:
    return (now or utc_now()) < reservation.expires_at


def has_conflicting_reservation(
    slot_key: str,
    existing_reservations: Iterable[SlotReservation],
    current_session_id: str,
    now: Optional[datetime] = None,
) -> bool:
    """True if another session holds a still-valid reservation for ``slot_key``."""
    now = now or utc_now()
    return any(
        r.slot_key == slot_key
        and r.session_id != current_session_id
        and is_reservation_valid(r, now)
        for r in existing_reservations
    )


def has_earlier_conflicting_reservation(
    reservation: SlotReservation,
    existing_reservations: Iterable[SlotReservation],
    now: Optional[datetime] = None,
) -> bool:
    """
    True if another session holds a valid reservation for the same key
    that was created before ``reservation``.

    Holds are ordered by ``(created_at, id)``, so when two sessions hold
    the same key exactly one of them wins at commit time.
    """
    now = now or utc_now()
    rank = (reservation.created_at, reservation.id)
    return any(
        r.slot_key == reservation.slot_key
        and r.session_id != reservation.session_id
        and is_reservation_valid(r, now)
        and (r.created_at, r.id) < rank
        for r in existing_reservations
    )


def validate_reservation(
    reservation: Optional[SlotReservation],
    session_id: str,
    now: Optional[datetime] = None,
) -> None:
    """
    Commit-time check that the hold still belongs to ``session_id``.

    Raises:
        SlotEngineError: RESERVATION_EXPIRED if the reservation is missing,
            owned by another session, or past its expiry.
    """
    set_session_id(session_id)
    if reservation is None:
        raise SlotEngineError(
            SlotEngineErrorCode.RESERVATION_EXPIRED,
            "No active reservation found. Please choose a time slot again.",
        )

    if reservation.session_id != session_id:
        logger.warning("Reservation %s presented by a foreign session", reservation.id)
        raise SlotEngineError(
            SlotEngineErrorCode.RESERVATION_EXPIRED,
            "This reservation belongs to a different session.",
        )

    if not is_reservation_valid(reservation, now):
        raise SlotEngineError(
            SlotEngineErrorCode.RESERVATION_EXPIRED,
            "The reservation has expired. Please choose a time slot again.",
        )


def get_remaining_reservation_time(
    reservation: SlotReservation, now: Optional[datetime] = None,
) -> int:
    """Whole seconds left on the hold, never negative."""
    remaining = (reservation.expires_at - (now or utc_now())).total_seconds()
    return max(0, int(remaining))


def format_remaining_time(seconds: int) -> str:
    """Countdown text ``M:SS``."""
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


# ── Session and sweep helpers ────────────────────────────────────────────────

def find_active_reservation(
    reservations: Iterable[SlotReservation],
    session_id: str,
    now: Optional[datetime] = None,
) -> Optional[SlotReservation]:
    """Most recently created valid hold owned by ``session_id``."""
    now = now or utc_now()
    active = [
        r for r in reservations
        if r.session_id == session_id and is_reservation_valid(r, now)
    ]
    return max(active, key=lambda r: r.created_at, default=None)


def count_active_reservations(
    reservations: Iterable[SlotReservation],
    session_id: str,
    now: Optional[datetime] = None,
) -> int:
    now = now or utc_now()
    return sum(
        1 for r in reservations
        if r.session_id == session_id and is_reservation_valid(r, now)
    )


def can_create_reservation(
    slot_key: str,
    reservations: list[SlotReservation],
    session_id: str,
    now: Optional[datetime] = None,
) -> bool:
    """No foreign hold on the key and the session is under its hold limit."""
    now = now or utc_now()
    if has_conflicting_reservation(slot_key, reservations, session_id, now):
        return False
    return count_active_reservations(reservations, session_id, now) < MAX_RESERVATIONS_PER_SESSION


def partition_expired_reservations(
    reservations: Iterable[SlotReservation],
    now: Optional[datetime] = None,
) -> tuple[list[SlotReservation], list[SlotReservation]]:
    """Split holds into (still valid, expired) for the periodic cleanup job."""
    now = now or utc_now()
    valid: list[SlotReservation] = []
    expired: list[SlotReservation] = []
    for r in reservations:
        (valid if is_reservation_valid(r, now) else expired).append(r)
    if expired:
        logger.debug("%d expired reservations ready for cleanup", len(expired))
    return valid, expired
