"""Scheduling snapshot, slot, and reservation data models.

Every entity the slot engine consumes is an immutable pydantic model.
Instants are timezone-aware datetimes; opening and working hours are
local wall-clock times resolved against ``SchedulingSnapshot.timezone``.
"""

from datetime import date, time
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

from salon_booking.config import settings


class AppointmentStatus(str, Enum):
    RESERVED = "reserved"
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class _Interval(_Frozen):
    """Half-open ``[starts_at, ends_at)`` pair; empty or reversed ranges are rejected."""

    starts_at: AwareDatetime
    ends_at: AwareDatetime

    @model_validator(mode="after")
    def _check_order(self):
        if self.starts_at >= self.ends_at:
            raise ValueError("starts_at must be before ends_at")
        return self


class BookableService(_Frozen):
    id: str
    name: str
    duration_minutes: int = Field(gt=0)
    current_price: int = Field(ge=0, description="Price in Rappen")
    category_id: Optional[str] = None
    is_active: bool = True


class BookableStaff(_Frozen):
    id: str
    name: str
    service_ids: list[str] = Field(default_factory=list)
    is_bookable: bool = True


class DayOpeningHours(_Frozen):
    """Salon opening hours for one weekday (0=Sunday .. 6=Saturday)."""

    day_of_week: int = Field(ge=0, le=6)
    open_time: time
    close_time: time
    is_closed: bool = False


class StaffWorkingHours(_Frozen):
    staff_id: str
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time


class StaffAbsence(_Interval):
    staff_id: str
    reason: Optional[str] = None


class BlockedTime(_Interval):
    """Maintenance or closure window. ``staff_id=None`` blocks the whole salon."""

    staff_id: Optional[str] = None
    reason: Optional[str] = None


class ExistingAppointment(_Interval):
    id: str
    staff_id: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED


class BookingRules(_Frozen):
    slot_granularity_minutes: int = Field(
        default=settings.booking.slot_granularity_minutes, gt=0
    )
    lead_time_minutes: int = Field(default=settings.booking.lead_time_minutes, ge=0)
    horizon_days: int = Field(default=settings.booking.horizon_days, ge=0)
    buffer_between_minutes: int = Field(default=settings.booking.buffer_between_minutes, ge=0)
    allow_multiple_services: bool = True
    require_deposit: bool = False
    cancellation_deadline_hours: int = Field(
        default=settings.booking.cancellation_deadline_hours, ge=0
    )


class SchedulingSnapshot(_Frozen):
    """Read-only view of everything the slot engine needs, loaded by the caller."""

    services: list[BookableService] = Field(default_factory=list)
    staff: list[BookableStaff] = Field(default_factory=list)
    opening_hours: list[DayOpeningHours] = Field(default_factory=list)
    staff_working_hours: list[StaffWorkingHours] = Field(default_factory=list)
    staff_absences: list[StaffAbsence] = Field(default_factory=list)
    blocked_times: list[BlockedTime] = Field(default_factory=list)
    existing_appointments: list[ExistingAppointment] = Field(default_factory=list)
    booking_rules: BookingRules = Field(default_factory=BookingRules)
    timezone: str = settings.salon.timezone

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value!r}") from None
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class SlotRequest(_Frozen):
    """Slot search over the inclusive calendar-day range ``[date_range_start, date_range_end]``."""

    date_range_start: date
    date_range_end: date
    service_ids: list[str]
    preferred_staff_id: Optional[str] = None
    salon_id: Optional[str] = None


class ServiceSlotInfo(_Frozen):
    id: str
    name: str
    duration_minutes: int
    price: int


class AvailableSlot(_Frozen):
    staff_id: str
    staff_name: str
    starts_at: AwareDatetime
    ends_at: AwareDatetime
    total_duration: int
    services: list[ServiceSlotInfo] = Field(default_factory=list)


class SlotsByDate(_Frozen):
    date: date
    display_date: str
    slots: list[AvailableSlot]


class SlotSearchResult(_Frozen):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    slots: list[AvailableSlot] = Field(default_factory=list)


class SlotReservation(_Frozen):
    """Time-boxed hold on one slot key, owned by exactly one session."""

    id: str
    slot_key: str
    staff_id: str
    starts_at: AwareDatetime
    ends_at: AwareDatetime
    customer_id: Optional[str] = None
    session_id: str
    expires_at: AwareDatetime
    created_at: AwareDatetime


class BookingRequest(_Frozen):
    """Customer details submitted together with a held slot."""

    service_ids: list[str]
    staff_id: str
    starts_at: AwareDatetime
    ends_at: AwareDatetime
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_id: Optional[str] = None
    notes: Optional[str] = None


class BookingConfirmation(_Frozen):
    """Output of the commit checkpoint: what the caller may now persist."""

    reservation_id: str
    slot_key: str
    staff_id: str
    starts_at: AwareDatetime
    ends_at: AwareDatetime
    session_id: str
    customer_id: Optional[str] = None
    confirmed_at: AwareDatetime
