"""
Availability service.

Runs the decision pipeline for a single requested time, or enumerates the
bookable slots of a day. Both calls only read from the stores.

Pipeline order (first failing stage decides the reason):
1. Booking window
2. Private events for the exact requested interval
3. Exceptional and base hours
4. Table allocation
"""
import logging
from datetime import date, time, timedelta
from typing import List, Optional, Union

from core.restaurant_config import RestaurantConfig
from core.utils_datetime import TimeNormalizer, parse_local_date, parse_local_time
from domain.enums import ReasonCode
from domain.models import (
    AvailabilityResult,
    HoursResolution,
    Interval,
    OutsideBookingWindow,
    OutsideHours,
    PartialClosure,
    NoTableFit,
    Slot,
)
from services.business_hours import BusinessHoursResolver, fits_in_range
from services.closure_guard import ClosureGuard
from services.messages import render_reason
from services.slot_generator import SlotGenerator
from services.stores import BookingStore, CalendarStore
from services.table_allocator import TableAllocator


logger = logging.getLogger(__name__)

# Reasons after which the same day can still have other bookable times
ALTERNATIVE_REASONS = {
    ReasonCode.PRIVATE_EVENT_PARTIAL,
    ReasonCode.PARTIAL_CLOSURE,
    ReasonCode.OUTSIDE_HOURS,
    ReasonCode.NO_TABLE_FIT,
}


class AvailabilityService:
    """Availability engine entry point."""

    def __init__(
        self,
        config: RestaurantConfig,
        calendar_store: CalendarStore,
        booking_store: BookingStore,
    ):
        self.config = config
        self.calendar_store = calendar_store
        self.booking_store = booking_store

        self.hours_resolver = BusinessHoursResolver(calendar_store)
        self.closure_guard = ClosureGuard(calendar_store, config.timezone)
        self.slot_generator = SlotGenerator(config, self.hours_resolver, self.closure_guard, booking_store)

    def _unavailable(self, reason) -> AvailabilityResult:
        return AvailabilityResult(
            available=False,
            reason=reason,
            reason_message=render_reason(reason, self.config),
        )

    async def check_availability(
        self,
        local_date: Union[str, date],
        local_time: Union[str, time],
        party_size: int,
        include_alternatives: bool = False,
    ) -> AvailabilityResult:
        """
        Decide whether a party can be seated at a local date and time.

        Args:
            local_date: Date in the venue's timezone (date or "YYYY-MM-DD")
            local_time: Clock time in the venue's timezone (time or "HH:MM")
            party_size: Number of guests
            include_alternatives: Attach the nearest bookable times when the
                day still has other openings

        Returns:
            AvailabilityResult; negative outcomes carry a reason and a message

        Raises:
            ValidationError: malformed date, time or party size
            ConfigurationError: no opening hours configured at all
            TransientError: a store could not be reached
        """
        on_date = parse_local_date(local_date)
        requested_time = parse_local_time(local_time)
        party_size = self.config.policy.validate_party_size(party_size)

        result = await self._evaluate(on_date, requested_time, party_size)

        if include_alternatives and not result.available and result.reason_code in ALTERNATIVE_REASONS:
            result.alternatives = await self.slot_generator.nearest_alternatives(
                on_date, requested_time, party_size
            )

        logger.info(
            f"Availability {on_date.isoformat()} {requested_time.strftime('%H:%M')} "
            f"party={party_size}: {'available' if result.available else result.reason_code.value}"
        )
        return result

    async def _evaluate(self, on_date: date, requested_time: time, party_size: int) -> AvailabilityResult:
        duration = self.config.policy.duration_for_party(party_size)
        start = TimeNormalizer.to_instant(on_date, requested_time, self.config.timezone)
        interval = Interval(start=start, end=start + timedelta(minutes=duration))

        # 1. Booking window
        if not self.config.is_within_booking_window(on_date):
            return self._unavailable(OutsideBookingWindow(
                requested_date=on_date,
                window_start=self.config.booking_start_date,
                window_end=self.config.booking_end_date,
            ))

        # 2. Private events
        events = await self.closure_guard.events_for_date(on_date, interval)
        decision = self.closure_guard.evaluate(on_date, events, interval)
        if decision.blocked:
            return self._unavailable(decision.reason)

        # 3. Hours
        resolution = await self.hours_resolver.resolve(on_date)
        if not resolution.is_open:
            return self._unavailable(resolution.reason)

        hours_reason = self._hours_reason(on_date, requested_time, duration, resolution)
        if hours_reason is not None:
            return self._unavailable(hours_reason)

        # 4. Tables
        tables = await self.booking_store.get_tables(party_size)
        window_start, window_end = self.closure_guard.day_window(on_date, interval)
        reservations = await self.booking_store.get_reservations_for_date(window_start, window_end)

        table = TableAllocator(tables, reservations, events).allocate(interval, party_size)
        if table is None:
            return self._unavailable(NoTableFit(party_size=party_size))

        slot = Slot(start=interval.start, end=interval.end, local_time=requested_time, table_id=table.id)
        return AvailabilityResult(available=True, assigned_table=table, slot=slot)

    def _hours_reason(self, on_date: date, requested_time: time, duration: int, resolution: HoursResolution):
        """Reason the seating does not fit the open ranges, or None if it does."""
        if any(fits_in_range(on_date, requested_time, duration, r, self.config.timezone) for r in resolution.ranges):
            return None

        closure = resolution.closure
        if closure is not None and any(r.contains(requested_time) for r in closure.time_ranges):
            return PartialClosure(
                closure_date=on_date,
                closed_ranges=closure.time_ranges,
                notification_text=closure.notification_text,
            )

        return OutsideHours(
            weekday=on_date.weekday(),
            requested_time=requested_time,
            open_ranges=resolution.ranges,
        )

    async def list_available_slots(
        self,
        local_date: Union[str, date],
        party_size: int,
        increment_minutes: Optional[int] = None,
    ) -> List[Slot]:
        """
        Enumerate the bookable slots of a local date.

        Returns:
            Chronological slots; empty for closed days or dates outside the
            booking window
        """
        on_date = parse_local_date(local_date)
        party_size = self.config.policy.validate_party_size(party_size)
        increment_minutes = self.config.policy.validate_increment(increment_minutes)

        if not self.config.is_within_booking_window(on_date):
            logger.info(f"{on_date.isoformat()} is outside the booking window")
            return []

        return await self.slot_generator.generate(on_date, party_size, increment_minutes)
