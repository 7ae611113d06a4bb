"""
DateTime utilities for converting between civil time and UTC instants.

Civil time is a calendar date plus a clock time in the venue's own IANA
timezone. Stored instants are always UTC. Conversion happens only here.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union

import pytz

from core.exceptions import ValidationError


UTC = pytz.utc

DATE_PATTERN = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
TIME_24H_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')
TIME_12H_PATTERN = re.compile(r'^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?$', re.IGNORECASE)

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


@dataclass(frozen=True)
class CivilDateTime:
    """A wall-clock date and time bound to a timezone identifier."""
    date: date
    time: time
    zone: str

    def to_instant(self) -> datetime:
        return TimeNormalizer.to_instant(self.date, self.time, self.zone)

    def as_tuple(self):
        return self.date, self.time


def get_timezone(zone: str):
    """Resolve an IANA zone identifier, raising ValidationError if unknown."""
    try:
        return pytz.timezone(zone)
    except pytz.UnknownTimeZoneError:
        raise ValidationError(f"Unknown timezone: {zone}", field="zone")


class TimeNormalizer:
    """
    Converts between civil time in a named zone and absolute UTC instants.

    Daylight-saving edge cases:
    - a civil time skipped by a spring-forward transition is shifted
      forward by the length of the gap (02:30 becomes 03:30)
    - a civil time repeated by a fall-back transition resolves to the
      earlier of its two instants
    """

    @staticmethod
    def to_instant(local_date: date, civil_time: time, zone: str) -> datetime:
        """
        Convert a civil date and time in ``zone`` to an aware UTC datetime.

        Args:
            local_date: Calendar date in the venue's timezone
            civil_time: Naive wall-clock time
            zone: IANA timezone identifier

        Returns:
            datetime in UTC
        """
        if not isinstance(local_date, date) or isinstance(local_date, datetime):
            raise ValidationError(f"Expected a date, got {local_date!r}", field="date")
        if not isinstance(civil_time, time):
            raise ValidationError(f"Expected a time, got {civil_time!r}", field="time")
        if civil_time.tzinfo is not None:
            raise ValidationError("Civil time must not carry a UTC offset", field="time")

        tz = get_timezone(zone)
        naive = datetime.combine(local_date, civil_time)

        try:
            localized = tz.localize(naive, is_dst=None)
        except pytz.AmbiguousTimeError:
            candidates = [tz.localize(naive, is_dst=flag) for flag in (True, False)]
            localized = min(candidates, key=lambda dt: dt.astimezone(UTC))
        except pytz.NonExistentTimeError:
            candidates = [tz.localize(naive, is_dst=flag) for flag in (True, False)]
            localized = max(candidates, key=lambda dt: dt.astimezone(UTC))

        return localized.astimezone(UTC)

    @staticmethod
    def to_civil(instant: datetime, zone: str) -> CivilDateTime:
        """
        Convert an aware instant to the civil date and time in ``zone``.

        Naive datetimes are rejected rather than guessed at.
        """
        if not isinstance(instant, datetime):
            raise ValidationError(f"Expected a datetime, got {instant!r}", field="instant")
        if instant.tzinfo is None or instant.utcoffset() is None:
            raise ValidationError("Instant must be timezone-aware", field="instant")

        tz = get_timezone(zone)
        local = instant.astimezone(tz)
        return CivilDateTime(date=local.date(), time=local.time().replace(tzinfo=None), zone=zone)

    @staticmethod
    def day_bounds(local_date: date, zone: str):
        """Return the UTC instants of local midnight and the following local midnight."""
        start = TimeNormalizer.to_instant(local_date, time(0, 0), zone)
        end = TimeNormalizer.to_instant(local_date + timedelta(days=1), time(0, 0), zone)
        return start, end


def ensure_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; convert an aware one to UTC."""
    if value.tzinfo is None:
        return UTC.localize(value)
    return value.astimezone(UTC)


# ============================================================================
# Parsing
# ============================================================================

def parse_local_date(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Raises:
        ValidationError: for anything that is not a real calendar date
    """
    if isinstance(value, datetime):
        raise ValidationError("Expected a calendar date, not a datetime", field="date")
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date: {value!r}", field="date")

    match = DATE_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid date format: {value!r} (expected YYYY-MM-DD)", field="date")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r} ({e})", field="date")


def parse_local_time(value: Union[str, time]) -> time:
    """
    Parse a clock time such as "19:00", "7:30pm" or "7 PM".

    Raises:
        ValidationError: for out-of-range or unrecognised input
    """
    if isinstance(value, time):
        if value.tzinfo is not None:
            raise ValidationError("Civil time must not carry a UTC offset", field="time")
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid time: {value!r}", field="time")

    text = value.strip()

    match = TIME_24H_PATTERN.match(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2))
        second = int(match.group(3) or 0)
        try:
            return time(hour, minute, second)
        except ValueError as e:
            raise ValidationError(f"Invalid time: {value!r} ({e})", field="time")

    match = TIME_12H_PATTERN.match(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        meridiem = match.group(3).lower()
        if not 1 <= hour <= 12 or not 0 <= minute <= 59:
            raise ValidationError(f"Invalid time: {value!r}", field="time")
        if meridiem == 'p' and hour != 12:
            hour += 12
        elif meridiem == 'a' and hour == 12:
            hour = 0
        return time(hour, minute)

    raise ValidationError(f"Invalid time format: {value!r} (expected HH:MM)", field="time")


# ============================================================================
# Display formatting
# ============================================================================

def format_long_date(value: date) -> str:
    """Format a date as e.g. "October 19"."""
    return f"{MONTH_NAMES[value.month - 1]} {value.day}"


def format_clock_time(value: time) -> str:
    """Format a clock time as e.g. "7:00 PM"."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {meridiem}"


def format_instant_time(instant: datetime, zone: str) -> str:
    """Format the local clock time of a UTC instant in ``zone``."""
    return format_clock_time(TimeNormalizer.to_civil(instant, zone).time)


def format_time_range(start: time, end: time) -> str:
    """Format a civil range as e.g. "6:00 PM to 11:00 PM"."""
    return f"{format_clock_time(start)} to {format_clock_time(end)}"
