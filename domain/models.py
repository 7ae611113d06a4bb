"""Domain models using Pydantic v2 for the availability engine."""

from datetime import date, time, datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from core.utils_datetime import ensure_utc
from .enums import DayOfWeek, PrivateEventStatus, ReasonCode, ReservationStatus


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open overlap test: [start, end) and [other_start, other_end) share an instant."""
    return start < other_end and end > other_start


class TimeRange(BaseModel):
    """Civil half-open range [start, end) within a single day."""

    start: time
    end: time

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_order(self) -> "TimeRange":
        if self.end <= self.start:
            raise ValueError(f"Range end {self.end} must be after start {self.start}")
        return self

    def contains(self, value: time) -> bool:
        return self.start <= value < self.end

    def intersects(self, other: "TimeRange") -> bool:
        return self.start < other.end and self.end > other.start


def normalize_ranges(ranges: List[TimeRange]) -> List[TimeRange]:
    """Sort ranges and merge any that overlap or touch."""
    merged: List[TimeRange] = []
    for current in sorted(ranges, key=lambda r: (r.start, r.end)):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)
    return merged


class Interval(BaseModel):
    """Absolute half-open interval between two UTC instants."""

    start: datetime
    end: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("start", "end")
    @classmethod
    def validate_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_order(self) -> "Interval":
        if self.end <= self.start:
            raise ValueError("Interval end must be after its start")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(self.start, self.end, start, end)


# ============================================================================
# Configuration records (read-only to the engine)
# ============================================================================

class BusinessCalendar(BaseModel):
    """Weekly opening hours keyed by weekday (Monday=0)."""

    weekly_hours: Dict[int, List[TimeRange]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("weekly_hours")
    @classmethod
    def validate_weekly_hours(cls, v: Dict[int, List[TimeRange]]) -> Dict[int, List[TimeRange]]:
        """Sort each day's ranges and reject overlaps within a day."""
        cleaned = {}
        for weekday, ranges in v.items():
            if weekday not in range(7):
                raise ValueError(f"weekday must be 0-6, got {weekday}")
            ordered = sorted(ranges, key=lambda r: r.start)
            for previous, current in zip(ordered, ordered[1:]):
                if current.start < previous.end:
                    raise ValueError(
                        f"Overlapping opening hours on {DayOfWeek(weekday).label}: "
                        f"{previous.start}-{previous.end} and {current.start}-{current.end}"
                    )
            if ordered:
                cleaned[weekday] = ordered
        return cleaned

    def ranges_for(self, weekday: int) -> List[TimeRange]:
        return list(self.weekly_hours.get(weekday, []))

    @property
    def is_configured(self) -> bool:
        return any(self.weekly_hours.values())


class ExceptionalClosure(BaseModel):
    """One-off closure of a whole date or parts of it."""

    closure_date: date
    full_day: bool = False
    time_ranges: List[TimeRange] = Field(default_factory=list)
    notification_text: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    @property
    def is_full_day(self) -> bool:
        """Full-day flag wins; a closure without ranges also closes the whole day."""
        return self.full_day or not self.time_ranges


class ExceptionalOpen(BaseModel):
    """One-off opening that replaces the weekly hours for a date."""

    open_date: date
    time_ranges: List[TimeRange] = Field(..., min_length=1)

    model_config = ConfigDict(from_attributes=True)


class PrivateEvent(BaseModel):
    """Private event that blocks the venue, or a single table when table_id is set."""

    id: str
    start: datetime
    end: datetime
    full_day: bool = False
    status: PrivateEventStatus = PrivateEventStatus.ACTIVE
    title: Optional[str] = Field(None, max_length=200)
    table_id: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    @field_validator("start", "end")
    @classmethod
    def validate_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_order(self) -> "PrivateEvent":
        if self.end <= self.start:
            raise ValueError("Event end must be after its start")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == PrivateEventStatus.ACTIVE

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(start, end, self.start, self.end)


class Table(BaseModel):
    """Dining table."""

    id: str
    capacity: int = Field(..., ge=1)
    table_number: Optional[int] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)


class Reservation(BaseModel):
    """Existing reservation holding a table for an interval."""

    id: Optional[str] = None
    table_id: str
    start: datetime
    end: datetime
    party_size: int = Field(..., ge=1)
    status: ReservationStatus = ReservationStatus.CONFIRMED

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start", "end")
    @classmethod
    def validate_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_order(self) -> "Reservation":
        if self.end <= self.start:
            raise ValueError("Reservation end must be after its start")
        return self

    @property
    def blocks_table(self) -> bool:
        return self.status != ReservationStatus.CANCELLED

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(start, end, self.start, self.end)


class Slot(BaseModel):
    """Bookable interval with the table that would seat it."""

    start: datetime
    end: datetime
    local_time: time
    table_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Unavailability reasons (tagged by ``kind``)
# ============================================================================

class OutsideBookingWindow(BaseModel):
    kind: Literal["outside_booking_window"] = "outside_booking_window"
    requested_date: date
    window_start: Optional[date] = None
    window_end: Optional[date] = None


class PrivateEventFull(BaseModel):
    kind: Literal["private_event_full"] = "private_event_full"
    closure_date: date
    event_title: Optional[str] = None


class PrivateEventPartial(BaseModel):
    kind: Literal["private_event_partial"] = "private_event_partial"
    event_start: datetime
    event_end: datetime
    event_title: Optional[str] = None


class FullDayClosure(BaseModel):
    kind: Literal["full_day_closure"] = "full_day_closure"
    closure_date: date
    notification_text: Optional[str] = None


class PartialClosure(BaseModel):
    kind: Literal["partial_closure"] = "partial_closure"
    closure_date: date
    closed_ranges: List[TimeRange]
    notification_text: Optional[str] = None


class NotOpenThisDay(BaseModel):
    kind: Literal["not_open_this_day"] = "not_open_this_day"
    weekday: int
    weekly_hours: Dict[int, List[TimeRange]] = Field(default_factory=dict)


class OutsideHours(BaseModel):
    kind: Literal["outside_hours"] = "outside_hours"
    weekday: int
    requested_time: time
    open_ranges: List[TimeRange]


class NoTableFit(BaseModel):
    kind: Literal["no_table_fit"] = "no_table_fit"
    party_size: int


Unavailability = Annotated[
    Union[
        OutsideBookingWindow,
        PrivateEventFull,
        PrivateEventPartial,
        FullDayClosure,
        PartialClosure,
        NotOpenThisDay,
        OutsideHours,
        NoTableFit,
    ],
    Field(discriminator="kind"),
]


# ============================================================================
# Stage decisions and results
# ============================================================================

class HoursResolution(BaseModel):
    """Open ranges for a date, or the reason the date has none."""

    ranges: List[TimeRange] = Field(default_factory=list)
    reason: Optional[Unavailability] = None
    closure: Optional[ExceptionalClosure] = None

    @property
    def is_open(self) -> bool:
        return bool(self.ranges)


class ClosureDecision(BaseModel):
    """Outcome of the private-event check."""

    blocked: bool = False
    reason: Optional[Unavailability] = None

    @classmethod
    def not_blocked(cls) -> "ClosureDecision":
        return cls(blocked=False)


class AlternativeTimes(BaseModel):
    """Nearest bookable slots around a rejected time."""

    requested_time: time
    before: Optional[Slot] = None
    after: Optional[Slot] = None
    message: str


class AvailabilityResult(BaseModel):
    """Structured answer returned to callers (UI, SMS responder, booking flow)."""

    available: bool
    reason: Optional[Unavailability] = None
    reason_message: Optional[str] = None
    assigned_table: Optional[Table] = None
    slot: Optional[Slot] = None
    slots: Optional[List[Slot]] = None
    alternatives: Optional[AlternativeTimes] = None

    @computed_field
    @property
    def reason_code(self) -> Optional[ReasonCode]:
        if self.reason is None:
            return None
        return ReasonCode(self.reason.kind)
