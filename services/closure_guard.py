"""
Private-event closures.

Venue-wide events (no table_id) close the venue for their window, or for the
whole day when flagged full_day. Table-bound events are left to the table
allocator.
"""
import logging
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from core.utils_datetime import TimeNormalizer
from domain.models import (
    ClosureDecision,
    Interval,
    PrivateEvent,
    PrivateEventFull,
    PrivateEventPartial,
    TimeRange,
)
from services.business_hours import subtract_ranges
from services.stores import CalendarStore


logger = logging.getLogger(__name__)

END_OF_DAY = time.max


def venue_wide(events: Iterable[PrivateEvent]) -> List[PrivateEvent]:
    return [event for event in events if event.is_active and event.table_id is None]


class ClosureGuard:
    """Evaluates active private events for a date."""

    def __init__(self, calendar_store: CalendarStore, zone: str):
        self.calendar_store = calendar_store
        self.zone = zone

    def day_window(self, on_date: date, requested_interval: Optional[Interval] = None) -> Tuple[datetime, datetime]:
        """UTC window covering the local day and, if given, the requested interval."""
        start, end = TimeNormalizer.day_bounds(on_date, self.zone)
        if requested_interval is not None:
            start = min(start, requested_interval.start)
            end = max(end, requested_interval.end)
        return start, end

    async def events_for_date(self, on_date: date, requested_interval: Optional[Interval] = None) -> List[PrivateEvent]:
        start, end = self.day_window(on_date, requested_interval)
        events = await self.calendar_store.get_active_private_events(start, end)
        return [event for event in events if event.is_active]

    async def check(self, on_date: date, requested_interval: Optional[Interval] = None) -> ClosureDecision:
        """
        Check whether private events block the date or the requested window.

        Args:
            on_date: Local calendar date
            requested_interval: UTC interval of the requested seating, if any

        Returns:
            ClosureDecision
        """
        events = await self.events_for_date(on_date, requested_interval)
        return self.evaluate(on_date, events, requested_interval)

    def evaluate(
        self,
        on_date: date,
        events: Iterable[PrivateEvent],
        requested_interval: Optional[Interval] = None,
    ) -> ClosureDecision:
        """
        Pure form of ``check`` over already-fetched events.

        Full-day events only count for the date they cover. A late seating
        that runs into the next day's full-day event is left to the hours
        check rather than reported as a closure of ``on_date``.
        """
        blocking = self.blocking_events(on_date, events)

        full_day = next((event for event in blocking if event.full_day), None)
        if full_day is not None:
            logger.info(f"Full-day private event on {on_date.isoformat()}: {full_day.id}")
            return ClosureDecision(
                blocked=True,
                reason=PrivateEventFull(closure_date=on_date, event_title=full_day.title),
            )

        if requested_interval is not None:
            for event in blocking:
                if event.overlaps(requested_interval.start, requested_interval.end):
                    logger.info(f"Requested window overlaps private event {event.id}")
                    return ClosureDecision(
                        blocked=True,
                        reason=PrivateEventPartial(
                            event_start=event.start,
                            event_end=event.end,
                            event_title=event.title,
                        ),
                    )

        return ClosureDecision.not_blocked()

    def blocking_events(self, on_date: date, events: Iterable[PrivateEvent]) -> List[PrivateEvent]:
        """Venue-wide events, minus full-day events that do not touch ``on_date``."""
        day_start, day_end = TimeNormalizer.day_bounds(on_date, self.zone)
        return [
            event for event in venue_wide(events)
            if not event.full_day or event.overlaps(day_start, day_end)
        ]

    def has_full_day_event(self, on_date: date, events: Iterable[PrivateEvent]) -> bool:
        return any(event.full_day for event in self.blocking_events(on_date, events))

    def event_ranges(self, on_date: date, events: Iterable[PrivateEvent]) -> List[TimeRange]:
        """Civil ranges of ``on_date`` covered by venue-wide events, clipped to the day."""
        day_start, day_end = TimeNormalizer.day_bounds(on_date, self.zone)
        ranges: List[TimeRange] = []
        for event in venue_wide(events):
            if not event.overlaps(day_start, day_end):
                continue
            start = time(0, 0) if event.start <= day_start else TimeNormalizer.to_civil(event.start, self.zone).time
            end = END_OF_DAY if event.end >= day_end else TimeNormalizer.to_civil(event.end, self.zone).time
            if end > start:
                ranges.append(TimeRange(start=start, end=end))
        return ranges

    def subtract_events(self, on_date: date, open_ranges: List[TimeRange], events: Iterable[PrivateEvent]) -> List[TimeRange]:
        """Remove event windows from the open ranges, the same way exceptional closures are removed."""
        events = list(events)
        if self.has_full_day_event(on_date, events):
            return []
        return subtract_ranges(open_ranges, self.event_ranges(on_date, events))
