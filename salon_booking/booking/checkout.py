"""
Booking commit checkpoint and customer-detail validation.

``confirm_reservation`` is the last check before a hold becomes an
appointment. Callers run it inside the same serialising transaction that
inserts the appointment (unique constraint on the slot key or equivalent);
the in-memory conflict test alone does not stop concurrent writers.
"""

from datetime import datetime
from typing import Iterable, Optional

from salon_booking.booking.errors import SlotEngineError, SlotEngineErrorCode
from salon_booking.booking.intervals import utc_now
from salon_booking.booking.reservation import has_earlier_conflicting_reservation, validate_reservation
from salon_booking.logging_context import get_session_logger
from salon_booking.schemas.common_schema import ValidationResult
from salon_booking.schemas.scheduling_schema import (
    BookingConfirmation,
    BookingRequest,
    SlotReservation,
)
from salon_booking.utils import is_valid_email, is_valid_name, is_valid_swiss_phone

logger = get_session_logger(__name__)

MAX_NOTES_LENGTH = 1000


def validate_booking_request(request: BookingRequest) -> ValidationResult:
    """Accumulate every problem with the customer's booking details."""
    errors: list[str] = []

    if not request.service_ids:
        errors.append("Please select at least one service.")
    if not is_valid_name(request.customer_name):
        errors.append("Please enter your full name.")
    if not request.customer_email:
        errors.append("An email address is required.")
    elif not is_valid_email(request.customer_email):
        errors.append("Please enter a valid email address.")
    if request.customer_phone and not is_valid_swiss_phone(request.customer_phone):
        errors.append("Please enter a valid Swiss phone number.")
    if request.ends_at <= request.starts_at:
        errors.append("The appointment must end after it starts.")
    if request.notes and len(request.notes) > MAX_NOTES_LENGTH:
        errors.append(f"Notes must be at most {MAX_NOTES_LENGTH} characters.")

    return ValidationResult.from_errors(errors)


def confirm_reservation(
    reservation: Optional[SlotReservation],
    session_id: str,
    existing_reservations: Iterable[SlotReservation] = (),
    now: Optional[datetime] = None,
) -> BookingConfirmation:
    """
    Re-validate a hold at commit time and describe the appointment to persist.

    Raises:
        SlotEngineError: RESERVATION_EXPIRED if the hold is missing, foreign,
            or expired; SLOT_NOT_AVAILABLE if another session holds a valid
            reservation for the same slot key that was created earlier. When
            two holds collide, the earliest one (by creation time, then id)
            is the one that commits.
    """
    now = now or utc_now()
    validate_reservation(reservation, session_id, now)

    if has_earlier_conflicting_reservation(reservation, existing_reservations, now):
        logger.warning("Slot %s held by another session at commit time", reservation.slot_key)
        raise SlotEngineError(
            SlotEngineErrorCode.SLOT_NOT_AVAILABLE,
            "This time slot was just taken. Please choose a different time.",
        )

    logger.info("Reservation %s confirmed", reservation.id)
    return BookingConfirmation(
        reservation_id=reservation.id,
        slot_key=reservation.slot_key,
        staff_id=reservation.staff_id,
        starts_at=reservation.starts_at,
        ends_at=reservation.ends_at,
        session_id=session_id,
        customer_id=reservation.customer_id,
        confirmed_at=now,
    )
