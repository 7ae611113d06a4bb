"""
Business hours resolution for a single calendar date.

Merges the weekly base schedule (or a one-off exceptional opening) with any
exceptional closure for the date, subtracting closed sub-ranges.
"""
import logging
from datetime import date, time, timedelta
from typing import Iterable, List

from core.exceptions import ConfigurationError
from core.utils_datetime import TimeNormalizer
from domain.models import (
    FullDayClosure,
    HoursResolution,
    NotOpenThisDay,
    PartialClosure,
    TimeRange,
    normalize_ranges,
)
from services.stores import CalendarStore


logger = logging.getLogger(__name__)


def subtract_range(open_range: TimeRange, closed: TimeRange) -> List[TimeRange]:
    """
    Remove ``closed`` from ``open_range``.

    Example:
    Open: 18:00 - 23:00
    Closed: 19:00 - 21:00
    Result: [18:00-19:00, 21:00-23:00]
    """
    if not open_range.intersects(closed):
        return [open_range]

    remaining: List[TimeRange] = []
    if closed.start > open_range.start:
        remaining.append(TimeRange(start=open_range.start, end=closed.start))
    if closed.end < open_range.end:
        remaining.append(TimeRange(start=closed.end, end=open_range.end))
    return remaining


def subtract_ranges(open_ranges: Iterable[TimeRange], closed_ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """Subtract every closed range from every open range. Output is sorted and non-overlapping."""
    remaining = list(open_ranges)
    for closed in closed_ranges:
        remaining = [piece for open_range in remaining for piece in subtract_range(open_range, closed)]
    return sorted(remaining, key=lambda r: r.start)


def fits_in_range(on_date: date, start: time, duration_minutes: int, open_range: TimeRange, zone: str) -> bool:
    """
    Check a seating of ``duration_minutes`` starting at ``start`` ends by the range's close.

    The seating is measured in elapsed time, so on a DST change day it is held
    to the real instant of the close, not to the wall-clock sum.
    """
    if not open_range.contains(start):
        return False
    seating_end = TimeNormalizer.to_instant(on_date, start, zone) + timedelta(minutes=duration_minutes)
    return seating_end <= TimeNormalizer.to_instant(on_date, open_range.end, zone)


class BusinessHoursResolver:
    """Resolves the open time ranges of a date from the calendar store."""

    def __init__(self, calendar_store: CalendarStore):
        self.calendar_store = calendar_store

    async def resolve(self, on_date: date) -> HoursResolution:
        """
        Get the open ranges for a date.

        Args:
            on_date: Local calendar date

        Returns:
            HoursResolution with sorted, non-overlapping ranges, or an empty
            range list and the reason the date is closed

        Raises:
            ConfigurationError: the business has no base hours at all
        """
        if not await self.calendar_store.has_any_base_hours():
            raise ConfigurationError("No opening hours are configured for this business")

        closure = await self.calendar_store.get_exceptional_closure(on_date)
        if closure is not None and closure.is_full_day:
            logger.info(f"Full-day exceptional closure on {on_date.isoformat()}")
            return HoursResolution(
                reason=FullDayClosure(
                    closure_date=on_date,
                    notification_text=closure.notification_text,
                ),
                closure=closure,
            )

        weekday = on_date.weekday()
        opening = await self.calendar_store.get_exceptional_open(on_date)
        if opening is not None:
            ranges = normalize_ranges(opening.time_ranges)
        else:
            ranges = sorted(await self.calendar_store.get_base_hours(weekday), key=lambda r: r.start)

        if not ranges:
            weekly_hours = await self.calendar_store.get_weekly_hours()
            return HoursResolution(reason=NotOpenThisDay(weekday=weekday, weekly_hours=weekly_hours))

        if closure is None:
            return HoursResolution(ranges=ranges)

        remaining = subtract_ranges(ranges, closure.time_ranges)
        if not remaining:
            return HoursResolution(
                reason=PartialClosure(
                    closure_date=on_date,
                    closed_ranges=closure.time_ranges,
                    notification_text=closure.notification_text,
                ),
                closure=closure,
            )

        logger.debug(f"Partial closure on {on_date.isoformat()}: {len(ranges)} ranges became {len(remaining)}")
        return HoursResolution(ranges=remaining, closure=closure)
