"""
Slot enumeration for a whole day.

Steps:
1. Resolve the open ranges for the date (base or exceptional hours minus closures)
2. Subtract venue-wide private events
3. Walk each range at a fixed increment, keeping starts whose seating fits
4. Keep only candidates the table allocator can seat
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional, Set

from core.restaurant_config import RestaurantConfig
from core.utils_datetime import TimeNormalizer
from domain.models import AlternativeTimes, Interval, Slot, TimeRange
from services.business_hours import BusinessHoursResolver, fits_in_range
from services.closure_guard import ClosureGuard
from services.stores import BookingStore
from services.table_allocator import TableAllocator


logger = logging.getLogger(__name__)


def candidate_starts(
    on_date: date,
    ranges: List[TimeRange],
    duration_minutes: int,
    increment_minutes: int,
    zone: str,
) -> Iterator[time]:
    """
    Yield civil start times whose seating ends by the range's close.

    Each range is walked from its own opening time. Starts are stepped in wall
    clock time; whether a seating fits is decided by ``fits_in_range``.
    """
    step = timedelta(minutes=increment_minutes)
    for open_range in ranges:
        cursor = datetime.combine(on_date, open_range.start)
        range_end = datetime.combine(on_date, open_range.end)
        while cursor < range_end:
            if fits_in_range(on_date, cursor.time(), duration_minutes, open_range, zone):
                yield cursor.time()
            cursor += step


class SlotGenerator:
    """Enumerates bookable slots for a date and party size."""

    def __init__(
        self,
        config: RestaurantConfig,
        hours_resolver: BusinessHoursResolver,
        closure_guard: ClosureGuard,
        booking_store: BookingStore,
    ):
        self.config = config
        self.hours_resolver = hours_resolver
        self.closure_guard = closure_guard
        self.booking_store = booking_store

    async def generate(self, on_date: date, party_size: int, increment_minutes: Optional[int] = None) -> List[Slot]:
        """
        Get all bookable slots for a date.

        Args:
            on_date: Local calendar date
            party_size: Number of guests
            increment_minutes: Step between candidate starts (policy default if None)

        Returns:
            Slots in chronological order, each with the table that would seat it
        """
        policy = self.config.policy
        increment = policy.validate_increment(increment_minutes)

        resolution = await self.hours_resolver.resolve(on_date)
        if not resolution.is_open:
            return []

        events = await self.closure_guard.events_for_date(on_date)
        ranges = self.closure_guard.subtract_events(on_date, resolution.ranges, events)
        if not ranges:
            return []

        tables = await self.booking_store.get_tables(party_size)
        if not tables:
            logger.info(f"No table seats a party of {party_size}")
            return []

        duration = policy.duration_for_party(party_size)
        window_start, window_end = self.closure_guard.day_window(on_date)
        window_end = window_end + timedelta(minutes=duration)
        reservations = await self.booking_store.get_reservations_for_date(window_start, window_end)

        allocator = TableAllocator(tables, reservations, events)
        slots = self.enumerate(on_date, ranges, party_size, duration, increment, allocator)

        logger.info(f"{len(slots)} slots for party of {party_size} on {on_date.isoformat()}")
        return slots

    def enumerate(
        self,
        on_date: date,
        ranges: List[TimeRange],
        party_size: int,
        duration_minutes: int,
        increment_minutes: int,
        allocator: TableAllocator,
    ) -> List[Slot]:
        """Turn candidate starts into slots the allocator can seat."""
        zone = self.config.timezone
        duration = timedelta(minutes=duration_minutes)
        seen: Set[datetime] = set()
        slots: List[Slot] = []

        for start_time in candidate_starts(on_date, ranges, duration_minutes, increment_minutes, zone):
            start = TimeNormalizer.to_instant(on_date, start_time, zone)
            # Skipped DST times snap onto an instant another candidate already has
            if start in seen:
                continue
            seen.add(start)

            interval = Interval(start=start, end=start + duration)
            table = allocator.allocate(interval, party_size)
            if table is None:
                continue

            slots.append(Slot(
                start=interval.start,
                end=interval.end,
                local_time=TimeNormalizer.to_civil(start, zone).time,
                table_id=table.id,
            ))

        slots.sort(key=lambda s: s.start)
        return slots

    async def nearest_alternatives(self, on_date: date, requested_time: time, party_size: int) -> AlternativeTimes:
        """
        Find the closest bookable slots before and after a requested time.

        Returns:
            AlternativeTimes with either side possibly empty
        """
        requested = TimeNormalizer.to_instant(on_date, requested_time, self.config.timezone)
        slots = await self.generate(on_date, party_size)

        before = next((slot for slot in reversed(slots) if slot.start < requested), None)
        after = next((slot for slot in slots if slot.start > requested), None)

        if before or after:
            message = "The requested time is not available. Here are the nearest available times:"
        else:
            message = "No alternative times available for this date."

        return AlternativeTimes(requested_time=requested_time, before=before, after=after, message=message)
