"""
Store interfaces consumed by the availability engine.

Every read may suspend. Implementations raise TransientError when the
backing store cannot be reached, never an empty answer.
"""
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, runtime_checkable

from domain.models import (
    ExceptionalClosure,
    ExceptionalOpen,
    PrivateEvent,
    Reservation,
    Table,
    TimeRange,
)


@runtime_checkable
class CalendarStore(Protocol):
    """Opening hours, closures and private events."""

    async def get_base_hours(self, weekday: int) -> List[TimeRange]:
        ...

    async def get_weekly_hours(self) -> Dict[int, List[TimeRange]]:
        ...

    async def has_any_base_hours(self) -> bool:
        ...

    async def get_exceptional_closure(self, on_date: date) -> Optional[ExceptionalClosure]:
        ...

    async def get_exceptional_open(self, on_date: date) -> Optional[ExceptionalOpen]:
        ...

    async def get_active_private_events(self, start: datetime, end: datetime) -> List[PrivateEvent]:
        """Active events overlapping the UTC window [start, end)."""
        ...


@runtime_checkable
class BookingStore(Protocol):
    """Tables and reservations."""

    async def get_tables(self, min_capacity: int = 1) -> List[Table]:
        ...

    async def get_reservations_for_date(self, start: datetime, end: datetime) -> List[Reservation]:
        """Non-cancelled reservations overlapping the UTC window [start, end) of a local day."""
        ...

    async def insert_reservation(
        self,
        table_id: str,
        start: datetime,
        end: datetime,
        party_size: int,
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Reservation:
        """
        Atomically insert a reservation.

        Raises:
            ReservationConflictError: an overlapping non-cancelled reservation
                already holds the table
        """
        ...
