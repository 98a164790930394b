"""
Appointment availability engine.

Enumerates every bookable (staff, start, end) slot for a requested
service combination over an inclusive calendar-day range. Pure: the
caller loads a ``SchedulingSnapshot`` and passes ``now`` (defaults to the
current UTC instant); nothing is read or written elsewhere.

Usage:
    result = search_available_slots(request, snapshot)
    if not result.valid:
        show(result.errors)
    for day in group_slots_by_date(result.slots):
        ...
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from salon_booking.booking.intervals import (
    add_minutes,
    day_of_week,
    intersect,
    iter_days,
    local_instant,
    overlaps,
    utc_now,
)
from salon_booking.schemas.common_schema import ValidationResult
from salon_booking.schemas.scheduling_schema import (
    AppointmentStatus,
    AvailableSlot,
    BookableService,
    BookableStaff,
    SchedulingSnapshot,
    ServiceSlotInfo,
    SlotRequest,
    SlotSearchResult,
    SlotsByDate,
)

logger = logging.getLogger(__name__)

Interval = tuple[datetime, datetime]


# ── Request validation ────────────────────────────────────────────────────────

def validate_slot_request(request: SlotRequest, snapshot: SchedulingSnapshot) -> ValidationResult:
    """
    Report every structural problem with a slot request at once.

    An empty service list is not an error: it simply has no slots.
    """
    errors: list[str] = []
    services = {s.id: s for s in snapshot.services}

    for service_id in request.service_ids:
        service = services.get(service_id)
        if service is None:
            errors.append(f"Unknown service: {service_id}.")
        elif not service.is_active:
            errors.append(f"Service '{service.name}' is not bookable.")

    if len(request.service_ids) > 1 and not snapshot.booking_rules.allow_multiple_services:
        errors.append("Only one service can be booked per appointment.")

    if request.date_range_end < request.date_range_start:
        errors.append("The end of the date range is before its start.")

    return ValidationResult.from_errors(errors)


# ── Snapshot resolution ──────────────────────────────────────────────────────

def _requested_services(request: SlotRequest, snapshot: SchedulingSnapshot) -> list[BookableService]:
    services = {s.id: s for s in snapshot.services if s.is_active}
    return [services[sid] for sid in request.service_ids if sid in services]


def _eligible_staff(service_ids: list[str], snapshot: SchedulingSnapshot) -> list[BookableStaff]:
    """Bookable staff skilled in every requested service, in snapshot order."""
    required = set(service_ids)
    return [
        member for member in snapshot.staff
        if member.is_bookable and required.issubset(member.service_ids)
    ]


def _busy_intervals(staff_id: str, snapshot: SchedulingSnapshot) -> list[Interval]:
    """Absences, blocked times, and live appointments (end padded by the buffer)."""
    buffer = timedelta(minutes=snapshot.booking_rules.buffer_between_minutes)
    busy: list[Interval] = []

    for absence in snapshot.staff_absences:
        if absence.staff_id == staff_id:
            busy.append((absence.starts_at, absence.ends_at))

    for blocked in snapshot.blocked_times:
        if blocked.staff_id is None or blocked.staff_id == staff_id:
            busy.append((blocked.starts_at, blocked.ends_at))

    for appointment in snapshot.existing_appointments:
        if appointment.staff_id != staff_id:
            continue
        if appointment.status == AppointmentStatus.CANCELLED:
            continue
        busy.append((appointment.starts_at, appointment.ends_at + buffer))

    return busy


def effective_window(staff_id: str, day: date,
                     snapshot: SchedulingSnapshot) -> Optional[Interval]:
    """
    Salon opening hours intersected with the staff member's working hours.

    Returns None when the salon is closed, the staff member does not work
    that weekday, or the two windows do not intersect.
    """
    dow = day_of_week(day)
    opening = next((h for h in snapshot.opening_hours if h.day_of_week == dow), None)
    if opening is None or opening.is_closed:
        return None

    hours = next(
        (h for h in snapshot.staff_working_hours
         if h.staff_id == staff_id and h.day_of_week == dow),
        None,
    )
    if hours is None:
        return None

    tz = snapshot.tz
    return intersect(
        local_instant(day, opening.open_time, tz),
        local_instant(day, opening.close_time, tz),
        local_instant(day, hours.start_time, tz),
        local_instant(day, hours.end_time, tz),
    )


# ── Core: slot generation ────────────────────────────────────────────────────

def _slots_for_staff_day(
    member: BookableStaff,
    day: date,
    snapshot: SchedulingSnapshot,
    services: list[BookableService],
    total_duration: int,
    busy: list[Interval],
    earliest: datetime,
    latest: datetime,
) -> list[AvailableSlot]:
    window = effective_window(member.id, day, snapshot)
    if window is None:
        return []

    window_start = window[0].astimezone(timezone.utc)
    window_end = window[1].astimezone(timezone.utc)
    step = timedelta(minutes=snapshot.booking_rules.slot_granularity_minutes)
    length = timedelta(minutes=total_duration)
    tz = snapshot.tz
    service_info = [
        ServiceSlotInfo(
            id=s.id, name=s.name, duration_minutes=s.duration_minutes, price=s.current_price,
        )
        for s in services
    ]

    slots = []
    start = window_start
    while start + length <= window_end:
        end = start + length

        if start > latest:
            break

        if start >= earliest and not any(overlaps(start, end, b_s, b_e) for b_s, b_e in busy):
            slots.append(AvailableSlot(
                staff_id=member.id,
                staff_name=member.name,
                starts_at=start.astimezone(tz),
                ends_at=end.astimezone(tz),
                total_duration=total_duration,
                services=service_info,
            ))

        start += step

    return slots


def search_available_slots(
    request: SlotRequest,
    snapshot: SchedulingSnapshot,
    now: Optional[datetime] = None,
) -> SlotSearchResult:
    """
    Validate the request and compute available slots.

    Slots are ordered by start; for identical starts the preferred staff
    member comes first, otherwise snapshot staff order is kept.
    """
    validation = validate_slot_request(request, snapshot)
    if not validation.valid:
        logger.debug("Slot request rejected: %s", validation.errors)
        return SlotSearchResult(valid=False, errors=validation.errors)

    services = _requested_services(request, snapshot)
    if not services:
        return SlotSearchResult(valid=True)

    staff = _eligible_staff(request.service_ids, snapshot)
    if not staff:
        logger.debug("No staff skilled in all of %s", request.service_ids)
        return SlotSearchResult(valid=True)

    now = now or utc_now()
    rules = snapshot.booking_rules
    total_duration = sum(s.duration_minutes for s in services)
    earliest = add_minutes(now, rules.lead_time_minutes)
    latest = now + timedelta(days=rules.horizon_days)

    # Only days between today and the horizon can hold a slot.
    first_day = max(request.date_range_start, now.astimezone(snapshot.tz).date())
    last_day = min(request.date_range_end, latest.astimezone(snapshot.tz).date())

    slots: list[AvailableSlot] = []
    for member in staff:
        busy = _busy_intervals(member.id, snapshot)
        for day in iter_days(first_day, last_day):
            slots.extend(_slots_for_staff_day(
                member, day, snapshot, services, total_duration, busy, earliest, latest,
            ))

    preferred = request.preferred_staff_id
    slots.sort(key=lambda s: (s.starts_at, 0 if s.staff_id == preferred else 1))

    logger.debug(
        "Computed %d slots for services %s across %d staff",
        len(slots), request.service_ids, len(staff),
    )
    return SlotSearchResult(valid=True, slots=slots)


def compute_available_slots(
    request: SlotRequest,
    snapshot: SchedulingSnapshot,
    now: Optional[datetime] = None,
) -> list[AvailableSlot]:
    """Ordered available slots; empty for an invalid request (see ``search_available_slots``)."""
    return search_available_slots(request, snapshot, now).slots


# ── Presentation grouping ────────────────────────────────────────────────────

def _display_date(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return day.strftime("%A, %d.%m.%Y")


def group_slots_by_date(
    slots: list[AvailableSlot],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> list[SlotsByDate]:
    """
    Group slots by local calendar day, earliest day first.

    Days are taken in ``tz``, defaulting to the zone the slots carry
    (the snapshot's salon timezone).
    """
    if not slots:
        return []
    tz = tz or slots[0].starts_at.tzinfo
    today = (now or utc_now()).astimezone(tz).date()

    groups: "OrderedDict[date, list[AvailableSlot]]" = OrderedDict()
    for slot in slots:
        groups.setdefault(slot.starts_at.astimezone(tz).date(), []).append(slot)

    return [
        SlotsByDate(date=day, display_date=_display_date(day, today), slots=day_slots)
        for day, day_slots in sorted(groups.items(), key=lambda item: item[0])
    ]
