from salon_booking.booking.checkout import confirm_reservation, validate_booking_request
from salon_booking.booking.errors import SlotEngineError, SlotEngineErrorCode
from salon_booking.booking.reservation import (
    create_reservation,
    format_remaining_time,
    generate_slot_key,
    get_remaining_reservation_time,
    has_conflicting_reservation,
    has_earlier_conflicting_reservation,
    is_reservation_valid,
    validate_reservation,
)
from salon_booking.booking.slot_engine import (
    compute_available_slots,
    group_slots_by_date,
    search_available_slots,
    validate_slot_request,
)

__all__ = [
    "compute_available_slots",
    "search_available_slots",
    "validate_slot_request",
    "group_slots_by_date",
    "generate_slot_key",
    "create_reservation",
    "is_reservation_valid",
    "has_conflicting_reservation",
    "has_earlier_conflicting_reservation",
    "validate_reservation",
    "get_remaining_reservation_time",
    "format_remaining_time",
    "confirm_reservation",
    "validate_booking_request",
    "SlotEngineError",
    "SlotEngineErrorCode",
]
