"""
Reservation commit step.

The availability engine only reads. Two concurrent requests can both see the
same table as free, so the booking is committed through the store's atomic
check-and-insert, and a conflict sends the request back through the engine
for a fresh answer.
"""
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Union

from core.config import Settings
from core.exceptions import ReservationConflictError
from core.logging import LogContext
from core.restaurant_config import RestaurantConfig
from domain.models import AvailabilityResult, Reservation
from services.availability_service import AvailabilityService
from services.stores import BookingStore


logger = logging.getLogger(__name__)


@dataclass
class BookingOutcome:
    """Result of a booking attempt."""
    success: bool
    result: AvailabilityResult
    reservation: Optional[Reservation] = None
    attempts: int = 1

    @property
    def message(self) -> Optional[str]:
        return self.result.reason_message


class ReservationService:
    """Books tables using the availability engine plus an atomic insert."""

    def __init__(
        self,
        availability: AvailabilityService,
        booking_store: BookingStore,
        max_retries: int = 3,
    ):
        """
        Initialize ReservationService.

        Args:
            availability: Read-only availability engine
            booking_store: Store whose insert enforces non-overlap per table
            max_retries: Fresh engine evaluations allowed after a conflict
        """
        self.availability = availability
        self.booking_store = booking_store
        self.max_retries = max_retries

    @classmethod
    def from_settings(
        cls,
        availability: AvailabilityService,
        booking_store: BookingStore,
        settings: Settings,
    ) -> "ReservationService":
        """Build the commit step with the retry budget from application settings."""
        return cls(availability, booking_store, max_retries=settings.booking_max_retries)

    @property
    def config(self) -> RestaurantConfig:
        return self.availability.config

    async def book(
        self,
        local_date: Union[str, date],
        local_time: Union[str, time],
        party_size: int,
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BookingOutcome:
        """
        Create a reservation at a local date and time.

        Args:
            local_date: Date in the venue's timezone
            local_time: Clock time in the venue's timezone
            party_size: Number of guests
            guest_name: Guest's name
            guest_phone: Guest's phone number
            notes: Special requests

        Returns:
            BookingOutcome; on failure ``result`` explains why

        Raises:
            ReservationConflictError: every retry lost the race for a table
        """
        last_conflict: Optional[ReservationConflictError] = None
        booking_log = LogContext(logger, party_size=party_size)

        for attempt in range(1, self.max_retries + 2):
            result = await self.availability.check_availability(
                local_date, local_time, party_size, include_alternatives=True
            )
            if not result.available:
                return BookingOutcome(success=False, result=result, attempts=attempt)

            with booking_log.bind(table_id=result.assigned_table.id, attempt=attempt) as ctx:
                try:
                    reservation = await self.booking_store.insert_reservation(
                        table_id=result.assigned_table.id,
                        start=result.slot.start,
                        end=result.slot.end,
                        party_size=party_size,
                        guest_name=guest_name,
                        guest_phone=guest_phone,
                        notes=notes,
                    )
                except ReservationConflictError as e:
                    last_conflict = e
                    ctx.log("warning", f"Table {e.table_id} was taken concurrently; re-evaluating")
                    continue

                ctx.log("info", f"Booked reservation {reservation.id}")
            return BookingOutcome(success=True, result=result, reservation=reservation, attempts=attempt)

        booking_log.log("error", f"Giving up after {self.max_retries + 1} conflicting attempts")
        raise last_conflict
