"""Tests for the appointment availability engine."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from salon_booking.booking.intervals import add_minutes, minutes_between, overlaps
from salon_booking.booking.slot_engine import (
    compute_available_slots,
    effective_window,
    group_slots_by_date,
    search_available_slots,
    validate_slot_request,
)
from salon_booking.schemas.scheduling_schema import (
    AppointmentStatus,
    AvailableSlot,
    BlockedTime,
    BookableService,
    BookableStaff,
    DayOpeningHours,
    ExistingAppointment,
    SlotRequest,
    StaffAbsence,
    StaffWorkingHours,
)
from tests.conftest import (
    NOW,
    OPENING_HOURS,
    SERVICES,
    STAFF_WORKING_HOURS,
    TZ,
    at,
    make_request,
    make_rules,
    make_snapshot,
)


def _starts(slots, staff_id):
    return [s.starts_at for s in slots if s.staff_id == staff_id]


def _appointment(start, end, staff_id="staff-1", status=AppointmentStatus.CONFIRMED):
    return ExistingAppointment(
        id=f"appt-{staff_id}-{start.hour}", staff_id=staff_id,
        starts_at=start, ends_at=end, status=status,
    )


class TestRequestValidation:
    def test_valid_request(self, snapshot):
        assert validate_slot_request(make_request(20), snapshot).valid

    def test_empty_service_list_is_valid_with_no_slots(self, snapshot):
        result = search_available_slots(make_request(20, service_ids=[]), snapshot, NOW)
        assert result.valid
        assert result.slots == []

    def test_unknown_service(self, snapshot):
        result = search_available_slots(make_request(20, service_ids=["nope"]), snapshot, NOW)
        assert not result.valid
        assert "Unknown service: nope." in result.errors

    def test_inactive_service(self):
        services = [SERVICES[0].model_copy(update={"is_active": False}), SERVICES[1]]
        snapshot = make_snapshot(services=services)
        result = validate_slot_request(make_request(20), snapshot)
        assert not result.valid
        assert "Service 'Haircut' is not bookable." in result.errors

    def test_multiple_services_not_allowed(self):
        snapshot = make_snapshot(booking_rules=make_rules(allow_multiple_services=False))
        request = make_request(20, service_ids=["service-1", "service-2"])
        result = search_available_slots(request, snapshot, NOW)
        assert not result.valid
        assert "Only one service can be booked per appointment." in result.errors
        assert compute_available_slots(request, snapshot, NOW) == []

    def test_reversed_date_range(self, snapshot):
        result = validate_slot_request(make_request(21, 20), snapshot)
        assert not result.valid

    def test_errors_accumulate(self):
        snapshot = make_snapshot(booking_rules=make_rules(allow_multiple_services=False))
        request = make_request(21, 20, service_ids=["service-1", "nope"])
        result = validate_slot_request(request, snapshot)
        assert len(result.errors) == 3


class TestOpeningHours:
    def test_no_slots_on_closed_sunday(self, snapshot):
        slots = compute_available_slots(make_request(24, 26), snapshot, NOW)
        days = {s.starts_at.date() for s in slots}
        assert date(2026, 10, 25) not in days
        assert date(2026, 10, 26) in days

    def test_closed_day_wins_over_staff_hours(self):
        hours = [*STAFF_WORKING_HOURS, StaffWorkingHours(
            staff_id="staff-1", day_of_week=0, start_time="09:00", end_time="17:00",
        )]
        snapshot = make_snapshot(staff_working_hours=hours)
        assert compute_available_slots(make_request(25), snapshot, NOW) == []

    def test_no_slots_when_nobody_works(self, snapshot):
        # Saturday: salon open, no staff scheduled
        assert compute_available_slots(make_request(24), snapshot, NOW) == []

    def test_missing_opening_hours_means_closed(self):
        snapshot = make_snapshot(opening_hours=[h for h in OPENING_HOURS if h.day_of_week != 2])
        assert compute_available_slots(make_request(20), snapshot, NOW) == []

    def test_effective_window_is_intersection(self, snapshot):
        assert effective_window("staff-2", date(2026, 10, 20), snapshot) == (at(20, 10), at(20, 18))
        assert effective_window("staff-1", date(2026, 10, 20), snapshot) == (at(20, 9), at(20, 17))

    def test_effective_window_none_when_not_working(self, snapshot):
        assert effective_window("staff-2", date(2026, 10, 22), snapshot) is None

    def test_slots_stay_inside_working_window(self, snapshot):
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        staff_2 = [s for s in slots if s.staff_id == "staff-2"]
        assert staff_2[0].starts_at == at(20, 10)
        assert staff_2[-1].starts_at == at(20, 17, 15)
        assert staff_2[-1].ends_at == at(20, 18)


class TestSkills:
    def test_only_skilled_staff_offered(self, snapshot):
        slots = compute_available_slots(make_request(20, service_ids=["service-2"]), snapshot, NOW)
        assert slots
        assert {s.staff_id for s in slots} == {"staff-1"}

    def test_multi_service_requires_all_skills(self, snapshot):
        request = make_request(20, service_ids=["service-1", "service-2"])
        slots = compute_available_slots(request, snapshot, NOW)
        assert {s.staff_id for s in slots} == {"staff-1"}

    def test_non_bookable_staff_excluded(self):
        staff = [
            BookableStaff(id="staff-1", name="Vanessa",
                          service_ids=["service-1", "service-2"], is_bookable=False),
            BookableStaff(id="staff-2", name="Sarah", service_ids=["service-1"]),
        ]
        snapshot = make_snapshot(staff=staff)
        slots = compute_available_slots(make_request(20, service_ids=["service-2"]), snapshot, NOW)
        assert slots == []


class TestDurations:
    def test_combined_duration(self, snapshot):
        request = make_request(20, service_ids=["service-1", "service-2"])
        slots = compute_available_slots(request, snapshot, NOW)
        assert all(s.total_duration == 135 for s in slots)
        assert all(minutes_between(s.starts_at, s.ends_at) == 135 for s in slots)
        assert [info.id for info in slots[0].services] == ["service-1", "service-2"]

    def test_last_multi_service_start_fits_window(self, snapshot):
        request = make_request(20, service_ids=["service-1", "service-2"])
        slots = compute_available_slots(request, snapshot, NOW)
        assert slots[-1].starts_at == at(20, 14, 45)
        assert slots[-1].ends_at == at(20, 17)

    def test_slot_carries_service_details(self, snapshot):
        slot = compute_available_slots(make_request(20), snapshot, NOW)[0]
        assert slot.services[0].price == 8500
        assert slot.services[0].duration_minutes == 45
        assert slot.staff_name == "Vanessa"

    def test_service_longer_than_window_gives_no_slots(self):
        services = [BookableService(id="service-1", name="Marathon", duration_minutes=600,
                                    current_price=50000)]
        snapshot = make_snapshot(services=services)
        assert compute_available_slots(make_request(20), snapshot, NOW) == []


class TestGranularity:
    def test_fifteen_minute_grid(self, snapshot):
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        starts = _starts(slots, "staff-1")
        assert len(starts) == 30  # 09:00 .. 16:15
        assert all(s.minute % 15 == 0 for s in starts)

    def test_thirty_minute_grid(self):
        snapshot = make_snapshot(booking_rules=make_rules(slot_granularity_minutes=30))
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        assert slots
        assert all(s.starts_at.minute in (0, 30) for s in slots)

    def test_grid_anchored_at_window_start(self):
        hours = [StaffWorkingHours(staff_id="staff-1", day_of_week=2,
                                   start_time="09:10", end_time="12:00")]
        snapshot = make_snapshot(staff_working_hours=hours)
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        assert slots[0].starts_at == at(20, 9, 10)
        assert slots[1].starts_at == at(20, 9, 25)


class TestLeadTimeAndHorizon:
    def test_lead_time_skips_early_slots(self, snapshot):
        now = at(19, 11, 7)
        slots = compute_available_slots(make_request(19), snapshot, now)
        assert slots[0].starts_at == at(19, 12, 15)
        assert all(s.starts_at >= add_minutes(now, 60) for s in slots)

    def test_slot_exactly_at_lead_time_is_offered(self, snapshot):
        now = at(19, 11)
        slots = compute_available_slots(make_request(19), snapshot, now)
        assert slots[0].starts_at == at(19, 12)

    def test_horizon_limits_future_days(self):
        snapshot = make_snapshot(booking_rules=make_rules(horizon_days=1))
        slots = compute_available_slots(make_request(19, 21), snapshot, NOW)
        assert slots
        assert {s.starts_at.date() for s in slots} == {date(2026, 10, 19)}

    def test_zero_horizon_gives_nothing_ahead(self):
        snapshot = make_snapshot(booking_rules=make_rules(horizon_days=0))
        assert compute_available_slots(make_request(19, 21), snapshot, NOW) == []

    def test_past_range_gives_nothing(self, snapshot):
        assert compute_available_slots(make_request(19), snapshot, at(19, 20)) == []

    def test_open_ended_range_stops_at_horizon(self, snapshot):
        request = SlotRequest(
            date_range_start=date(2026, 10, 19), date_range_end=date.max, service_ids=["service-1"],
        )
        slots = compute_available_slots(request, snapshot, NOW)
        assert slots
        assert max(s.starts_at for s in slots) <= NOW + timedelta(days=30)

    def test_range_at_end_of_calendar(self, snapshot):
        request = SlotRequest(
            date_range_start=date(9999, 12, 30), date_range_end=date.max, service_ids=["service-1"],
        )
        assert compute_available_slots(request, snapshot, NOW) == []

    def test_range_reaching_into_the_past_is_clipped(self, snapshot):
        clipped = compute_available_slots(make_request(1, 21), snapshot, NOW)
        assert clipped == compute_available_slots(make_request(19, 21), snapshot, NOW)


class TestBusyTime:
    def test_booked_appointment_excluded(self):
        snapshot = make_snapshot(existing_appointments=[_appointment(at(20, 10), at(20, 11))])
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-1")
        assert at(20, 9, 15) in starts  # ends exactly at 10:00
        assert at(20, 11) in starts  # starts exactly at 11:00
        for blocked in (at(20, 9, 30), at(20, 10), at(20, 10, 45)):
            assert blocked not in starts

    def test_appointment_only_blocks_its_staff(self):
        snapshot = make_snapshot(existing_appointments=[_appointment(at(20, 10), at(20, 11))])
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-2")
        assert at(20, 10) in starts

    def test_cancelled_appointment_ignored(self):
        appointment = _appointment(at(20, 10), at(20, 11), status=AppointmentStatus.CANCELLED)
        snapshot = make_snapshot(existing_appointments=[appointment])
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-1")
        assert at(20, 10) in starts

    @pytest.mark.parametrize("status", [
        AppointmentStatus.RESERVED,
        AppointmentStatus.REQUESTED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    ])
    def test_non_cancelled_statuses_block(self, status):
        snapshot = make_snapshot(existing_appointments=[_appointment(at(20, 10), at(20, 11), status=status)])
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-1")
        assert at(20, 10) not in starts

    def test_buffer_after_appointment(self):
        snapshot = make_snapshot(
            existing_appointments=[_appointment(at(20, 10), at(20, 11))],
            booking_rules=make_rules(buffer_between_minutes=15),
        )
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-1")
        assert at(20, 11) not in starts
        assert at(20, 11, 15) in starts
        assert at(20, 9, 15) in starts

    def test_full_day_absence(self):
        absence = StaffAbsence(staff_id="staff-1", starts_at=at(20, 0), ends_at=at(21, 0),
                               reason="vacation")
        snapshot = make_snapshot(staff_absences=[absence])
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        assert _starts(slots, "staff-1") == []
        assert _starts(slots, "staff-2")

    def test_partial_absence(self):
        absence = StaffAbsence(staff_id="staff-1", starts_at=at(20, 12), ends_at=at(20, 14))
        snapshot = make_snapshot(staff_absences=[absence])
        starts = _starts(compute_available_slots(make_request(20), snapshot, NOW), "staff-1")
        assert at(20, 11, 15) in starts
        assert at(20, 14) in starts
        assert not any(overlaps(s, s + timedelta(minutes=45), at(20, 12), at(20, 14)) for s in starts)

    def test_salon_wide_blocked_time(self):
        blocked = BlockedTime(starts_at=at(20, 12), ends_at=at(20, 13), reason="team meeting")
        snapshot = make_snapshot(blocked_times=[blocked])
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        assert not any(overlaps(s.starts_at, s.ends_at, at(20, 12), at(20, 13)) for s in slots)

    def test_staff_blocked_time(self):
        blocked = BlockedTime(staff_id="staff-2", starts_at=at(20, 12), ends_at=at(20, 13))
        snapshot = make_snapshot(blocked_times=[blocked])
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        assert at(20, 12) in _starts(slots, "staff-1")
        assert at(20, 12) not in _starts(slots, "staff-2")


class TestOrdering:
    def test_chronological(self, snapshot):
        slots = compute_available_slots(make_request(19, 23), snapshot, NOW)
        assert [s.starts_at for s in slots] == sorted(s.starts_at for s in slots)

    def test_snapshot_order_on_ties(self, snapshot):
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        at_ten = [s.staff_id for s in slots if s.starts_at == at(20, 10)]
        assert at_ten == ["staff-1", "staff-2"]

    def test_preferred_staff_first_on_ties(self, snapshot):
        slots = compute_available_slots(make_request(20, preferred_staff_id="staff-2"), snapshot, NOW)
        at_ten = [s.staff_id for s in slots if s.starts_at == at(20, 10)]
        assert at_ten == ["staff-2", "staff-1"]
        assert slots[0].staff_id == "staff-1"  # 09:00 is still earlier

    def test_deterministic(self, snapshot):
        request = make_request(19, 23)
        assert compute_available_slots(request, snapshot, NOW) == compute_available_slots(request, snapshot, NOW)


class TestInvariants:
    def test_week_of_slots(self):
        snapshot = make_snapshot(
            existing_appointments=[
                _appointment(at(20, 10), at(20, 11)),
                _appointment(at(21, 15), at(21, 16, 30), staff_id="staff-2"),
            ],
            staff_absences=[StaffAbsence(staff_id="staff-1", starts_at=at(22, 12), ends_at=at(22, 15))],
            blocked_times=[BlockedTime(starts_at=at(23, 9), ends_at=at(23, 10))],
        )
        now = at(19, 9, 20)
        slots = compute_available_slots(make_request(19, 25), snapshot, now)
        assert slots

        seen = set()
        for slot in slots:
            assert minutes_between(slot.starts_at, slot.ends_at) == slot.total_duration == 45
            window = effective_window(slot.staff_id, slot.starts_at.date(), snapshot)
            assert window[0] <= slot.starts_at and slot.ends_at <= window[1]
            assert minutes_between(window[0], slot.starts_at) % 15 == 0
            assert slot.starts_at >= add_minutes(now, 60)
            key = (slot.staff_id, slot.starts_at)
            assert key not in seen
            seen.add(key)
            for appointment in snapshot.existing_appointments:
                if appointment.staff_id == slot.staff_id:
                    assert not overlaps(slot.starts_at, slot.ends_at,
                                        appointment.starts_at, appointment.ends_at)

    def test_slots_use_salon_timezone(self, snapshot):
        slot = compute_available_slots(make_request(20), snapshot, NOW)[0]
        assert slot.starts_at.utcoffset() == timedelta(hours=2)
        assert slot.starts_at.hour == 9


class TestDaylightSaving:
    def test_fall_back_day_keeps_real_durations(self):
        opening = [h for h in OPENING_HOURS if h.day_of_week != 0]
        opening.append(DayOpeningHours(day_of_week=0, open_time="09:00", close_time="18:00"))
        hours = [*STAFF_WORKING_HOURS, StaffWorkingHours(
            staff_id="staff-1", day_of_week=0, start_time="09:00", end_time="17:00",
        )]
        snapshot = make_snapshot(opening_hours=opening, staff_working_hours=hours)

        slots = compute_available_slots(make_request(25), snapshot, NOW)
        assert len(slots) == 30
        assert slots[0].starts_at == at(25, 9)
        assert slots[0].starts_at.utcoffset() == timedelta(hours=1)
        assert all(minutes_between(s.starts_at, s.ends_at) == 45 for s in slots)


class TestGrouping:
    def test_groups_with_relative_labels(self, snapshot):
        slots = compute_available_slots(make_request(19, 21), snapshot, NOW)
        groups = group_slots_by_date(slots, now=NOW)
        assert [g.date for g in groups] == [date(2026, 10, 19), date(2026, 10, 20), date(2026, 10, 21)]
        assert [g.display_date for g in groups] == ["Today", "Tomorrow", "Wednesday, 21.10.2026"]
        assert sum(len(g.slots) for g in groups) == len(slots)

    def test_groups_keep_slot_order(self, snapshot):
        slots = compute_available_slots(make_request(20), snapshot, NOW)
        groups = group_slots_by_date(slots, now=NOW)
        assert len(groups) == 1
        assert groups[0].slots == slots

    def test_empty(self):
        assert group_slots_by_date([], now=NOW) == []

    def test_groups_in_the_slots_own_timezone(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        # 06:00 in Tokyo on the 21st is still 23:00 on the 20th in Zurich
        start = datetime(2026, 10, 21, 6, 0, tzinfo=tokyo)
        slot = AvailableSlot(
            staff_id="staff-1", staff_name="Vanessa",
            starts_at=start, ends_at=start + timedelta(minutes=45), total_duration=45,
        )
        groups = group_slots_by_date([slot], now=NOW)
        assert groups[0].date == date(2026, 10, 21)
        assert groups[0].display_date == "Wednesday, 21.10.2026"

    def test_explicit_timezone_wins(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        start = datetime(2026, 10, 21, 6, 0, tzinfo=tokyo)
        slot = AvailableSlot(
            staff_id="staff-1", staff_name="Vanessa",
            starts_at=start, ends_at=start + timedelta(minutes=45), total_duration=45,
        )
        groups = group_slots_by_date([slot], now=NOW, tz=TZ)
        assert groups[0].date == date(2026, 10, 20)
        assert groups[0].display_date == "Tomorrow"
