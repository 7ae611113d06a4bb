"""Domain enums for the availability engine."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PrivateEventStatus(str, Enum):
    """Private event status. Only active events block availability."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class ReasonCode(str, Enum):
    """Why a request could not be booked."""

    OUTSIDE_BOOKING_WINDOW = "outside_booking_window"
    PRIVATE_EVENT_FULL = "private_event_full"
    PRIVATE_EVENT_PARTIAL = "private_event_partial"
    FULL_DAY_CLOSURE = "full_day_closure"
    PARTIAL_CLOSURE = "partial_closure"
    NOT_OPEN_THIS_DAY = "not_open_this_day"
    OUTSIDE_HOURS = "outside_hours"
    NO_TABLE_FIT = "no_table_fit"


class DayOfWeek(int, Enum):
    """Days of the week, numbered as ``date.weekday()`` numbers them."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()
