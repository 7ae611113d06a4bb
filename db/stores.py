"""
SQLAlchemy-backed calendar and booking stores.

Rows are mapped to domain models at the boundary so the engine never sees
ORM objects. Connectivity failures surface as TransientError.
"""
import logging
from collections import defaultdict
from datetime import date, datetime
from functools import wraps
from typing import Dict, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import ReservationConflictError, TransientError
from core.utils_datetime import ensure_utc
from domain.enums import PrivateEventStatus, ReservationStatus
from domain.models import (
    ExceptionalClosure,
    ExceptionalOpen,
    PrivateEvent,
    Reservation,
    Table,
    TimeRange,
    normalize_ranges,
)
from .models_sqlalchemy import DiningTable, PrivateEventRecord, ReservationRecord, VenueHours


logger = logging.getLogger(__name__)

HOURS_BASE = "base"
HOURS_CLOSURE = "exceptional_closure"
HOURS_OPEN = "exceptional_open"


def transient_errors(func_):
    """Re-raise connectivity failures as TransientError."""

    @wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except (OperationalError, InterfaceError, OSError, TimeoutError) as e:
            logger.error(f"Store call {func_.__name__} failed: {e}")
            raise TransientError(f"Store unavailable during {func_.__name__}") from e

    return wrapper


def parse_time_ranges(raw: Optional[list]) -> List[TimeRange]:
    """Turn stored ``[{"start": "HH:MM", "end": "HH:MM"}]`` into TimeRanges."""
    return [TimeRange.model_validate(item) for item in raw or []]


def dump_time_ranges(ranges: List[TimeRange]) -> list:
    return [
        {"start": r.start.strftime("%H:%M"), "end": r.end.strftime("%H:%M")}
        for r in ranges
    ]


def to_private_event(record: PrivateEventRecord) -> PrivateEvent:
    return PrivateEvent(
        id=record.id,
        start=ensure_utc(record.start_time),
        end=ensure_utc(record.end_time),
        full_day=record.full_day,
        status=PrivateEventStatus(record.status),
        title=record.title,
        table_id=record.table_id,
    )


def to_reservation(record: ReservationRecord) -> Reservation:
    return Reservation(
        id=record.id,
        table_id=record.table_id,
        start=ensure_utc(record.start_time),
        end=ensure_utc(record.end_time),
        party_size=record.party_size,
        status=ReservationStatus(record.status),
    )


class SqlAlchemyCalendarStore:
    """Calendar store reading ``venue_hours`` and ``private_events``."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @transient_errors
    async def get_base_hours(self, weekday: int) -> List[TimeRange]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(VenueHours.time_ranges).where(
                    VenueHours.type == HOURS_BASE,
                    VenueHours.day_of_week == weekday,
                )
            )
            ranges: List[TimeRange] = []
            for raw in result.scalars().all():
                ranges.extend(parse_time_ranges(raw))
            return normalize_ranges(ranges)

    @transient_errors
    async def get_weekly_hours(self) -> Dict[int, List[TimeRange]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(VenueHours.day_of_week, VenueHours.time_ranges)
                .where(VenueHours.type == HOURS_BASE)
                .order_by(VenueHours.day_of_week)
            )
            weekly: Dict[int, List[TimeRange]] = defaultdict(list)
            for day_of_week, raw in result.all():
                weekly[day_of_week].extend(parse_time_ranges(raw))
            return {day: normalize_ranges(ranges) for day, ranges in weekly.items() if ranges}

    @transient_errors
    async def has_any_base_hours(self) -> bool:
        async with self.session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(VenueHours).where(VenueHours.type == HOURS_BASE)
            )
            return bool(count)

    @transient_errors
    async def get_exceptional_closure(self, on_date: date) -> Optional[ExceptionalClosure]:
        async with self.session_factory() as session:
            record = await session.scalar(
                select(VenueHours)
                .where(VenueHours.type == HOURS_CLOSURE, VenueHours.calendar_date == on_date)
                .order_by(VenueHours.id)
                .limit(1)
            )
            if record is None:
                return None
            return ExceptionalClosure(
                closure_date=on_date,
                full_day=record.full_day,
                time_ranges=parse_time_ranges(record.time_ranges),
                notification_text=record.sms_notification,
            )

    @transient_errors
    async def get_exceptional_open(self, on_date: date) -> Optional[ExceptionalOpen]:
        async with self.session_factory() as session:
            record = await session.scalar(
                select(VenueHours)
                .where(VenueHours.type == HOURS_OPEN, VenueHours.calendar_date == on_date)
                .order_by(VenueHours.id)
                .limit(1)
            )
            if record is None or not record.time_ranges:
                return None
            return ExceptionalOpen(open_date=on_date, time_ranges=parse_time_ranges(record.time_ranges))

    @transient_errors
    async def get_active_private_events(self, start: datetime, end: datetime) -> List[PrivateEvent]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PrivateEventRecord)
                .where(
                    PrivateEventRecord.status == PrivateEventStatus.ACTIVE.value,
                    PrivateEventRecord.start_time < ensure_utc(end),
                    PrivateEventRecord.end_time > ensure_utc(start),
                )
                .order_by(PrivateEventRecord.start_time)
            )
            return [to_private_event(record) for record in result.scalars().all()]


class SqlAlchemyBookingStore:
    """Booking store reading ``tables`` and writing ``reservations``."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @transient_errors
    async def get_tables(self, min_capacity: int = 1) -> List[Table]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(DiningTable)
                .where(DiningTable.capacity >= min_capacity)
                .order_by(DiningTable.capacity, DiningTable.id)
            )
            return [
                Table(id=record.id, capacity=record.capacity, table_number=record.table_number)
                for record in result.scalars().all()
            ]

    @transient_errors
    async def get_reservations_for_date(self, start: datetime, end: datetime) -> List[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationRecord)
                .where(
                    ReservationRecord.status != ReservationStatus.CANCELLED.value,
                    ReservationRecord.start_time < ensure_utc(end),
                    ReservationRecord.end_time > ensure_utc(start),
                )
                .order_by(ReservationRecord.start_time)
            )
            return [to_reservation(record) for record in result.scalars().all()]

    @transient_errors
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
        Insert a reservation unless the table is already held.

        The overlap check and the insert share one transaction. On PostgreSQL
        the exclusion constraint also rejects a concurrent insert that slips
        past the check.

        Raises:
            ReservationConflictError: the table is taken for an overlapping time
        """
        start = ensure_utc(start)
        end = ensure_utc(end)

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    clash = await session.scalar(
                        select(ReservationRecord.id)
                        .where(
                            and_(
                                ReservationRecord.table_id == table_id,
                                ReservationRecord.status != ReservationStatus.CANCELLED.value,
                                ReservationRecord.start_time < end,
                                ReservationRecord.end_time > start,
                            )
                        )
                        .limit(1)
                    )
                    if clash is not None:
                        raise ReservationConflictError(table_id)

                    record = ReservationRecord(
                        table_id=table_id,
                        start_time=start,
                        end_time=end,
                        party_size=party_size,
                        status=ReservationStatus.CONFIRMED.value,
                        guest_name=guest_name,
                        guest_phone=guest_phone,
                        notes=notes,
                    )
                    session.add(record)
                    await session.flush()
            except IntegrityError as e:
                raise ReservationConflictError(table_id) from e

            logger.info(f"Inserted reservation {record.id} on table {table_id}")
            return Reservation(
                id=record.id,
                table_id=table_id,
                start=start,
                end=end,
                party_size=party_size,
                status=ReservationStatus.CONFIRMED,
            )

    async def add_table(self, capacity: int, table_number: Optional[int] = None, table_id: Optional[str] = None) -> Table:
        """Register a table in the inventory."""
        async with self.session_factory() as session:
            async with session.begin():
                record = DiningTable(capacity=capacity, table_number=table_number)
                if table_id is not None:
                    record.id = table_id
                session.add(record)
                await session.flush()
            return Table(id=record.id, capacity=record.capacity, table_number=record.table_number)
