"""Domain layer for the availability engine."""

from .enums import (
    ReservationStatus,
    PrivateEventStatus,
    ReasonCode,
    DayOfWeek,
)
from .models import (
    TimeRange,
    Interval,
    BusinessCalendar,
    ExceptionalClosure,
    ExceptionalOpen,
    PrivateEvent,
    Table,
    Reservation,
    Slot,
    Unavailability,
    HoursResolution,
    ClosureDecision,
    AlternativeTimes,
    AvailabilityResult,
)

__all__ = [
    # Enums
    "ReservationStatus",
    "PrivateEventStatus",
    "ReasonCode",
    "DayOfWeek",
    # Models
    "TimeRange",
    "Interval",
    "BusinessCalendar",
    "ExceptionalClosure",
    "ExceptionalOpen",
    "PrivateEvent",
    "Table",
    "Reservation",
    "Slot",
    "Unavailability",
    "HoursResolution",
    "ClosureDecision",
    "AlternativeTimes",
    "AvailabilityResult",
]
