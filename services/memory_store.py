"""In-memory calendar and booking stores, for tests and local experiments."""
import asyncio
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from core.exceptions import ReservationConflictError
from domain.enums import ReservationStatus
from domain.models import (
    BusinessCalendar,
    ExceptionalClosure,
    ExceptionalOpen,
    PrivateEvent,
    Reservation,
    Table,
    TimeRange,
)


logger = logging.getLogger(__name__)


class InMemoryCalendarStore:
    """Calendar store backed by plain Python collections."""

    def __init__(
        self,
        calendar: Optional[BusinessCalendar] = None,
        closures: Iterable[ExceptionalClosure] = (),
        opens: Iterable[ExceptionalOpen] = (),
        events: Iterable[PrivateEvent] = (),
    ):
        self.calendar = calendar or BusinessCalendar()
        self.closures: Dict[date, ExceptionalClosure] = {c.closure_date: c for c in closures}
        self.opens: Dict[date, ExceptionalOpen] = {o.open_date: o for o in opens}
        self.events: List[PrivateEvent] = list(events)

    async def get_base_hours(self, weekday: int) -> List[TimeRange]:
        return self.calendar.ranges_for(weekday)

    async def get_weekly_hours(self) -> Dict[int, List[TimeRange]]:
        return {day: list(ranges) for day, ranges in self.calendar.weekly_hours.items()}

    async def has_any_base_hours(self) -> bool:
        return self.calendar.is_configured

    async def get_exceptional_closure(self, on_date: date) -> Optional[ExceptionalClosure]:
        return self.closures.get(on_date)

    async def get_exceptional_open(self, on_date: date) -> Optional[ExceptionalOpen]:
        return self.opens.get(on_date)

    async def get_active_private_events(self, start: datetime, end: datetime) -> List[PrivateEvent]:
        return [
            event for event in self.events
            if event.is_active and event.overlaps(start, end)
        ]


class InMemoryBookingStore:
    """
    Booking store backed by a list.

    ``insert_reservation`` checks and inserts under a lock, which plays the
    role of the storage-level exclusion constraint.
    """

    def __init__(self, tables: Iterable[Table] = (), reservations: Iterable[Reservation] = ()):
        self.tables: List[Table] = list(tables)
        self.reservations: List[Reservation] = list(reservations)
        self._lock = asyncio.Lock()

    async def get_tables(self, min_capacity: int = 1) -> List[Table]:
        return [table for table in self.tables if table.capacity >= min_capacity]

    async def get_reservations_for_date(self, start: datetime, end: datetime) -> List[Reservation]:
        return [
            reservation for reservation in self.reservations
            if reservation.blocks_table and reservation.overlaps(start, end)
        ]

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
        async with self._lock:
            for existing in self.reservations:
                if existing.table_id == table_id and existing.blocks_table and existing.overlaps(start, end):
                    raise ReservationConflictError(table_id)

            reservation = Reservation(
                id=str(uuid4()),
                table_id=table_id,
                start=start,
                end=end,
                party_size=party_size,
                status=ReservationStatus.CONFIRMED,
            )
            self.reservations.append(reservation)

        logger.info(f"Inserted reservation {reservation.id} on table {table_id}")
        return reservation
