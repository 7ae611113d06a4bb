"""SQLAlchemy models for venue hours, private events, tables and reservations."""

from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from domain.enums import PrivateEventStatus, ReservationStatus


def _new_id() -> str:
    return str(uuid4())


class VenueHours(Base, TimestampMixin):
    """
    Opening-hours configuration rows.

    ``type`` is one of:
    - ``base``: weekly hours for ``day_of_week`` (Monday=0)
    - ``exceptional_closure``: closure on ``calendar_date`` (whole day or ``time_ranges``)
    - ``exceptional_open``: one-off opening on ``calendar_date`` replacing the weekly hours

    ``time_ranges`` holds a list of ``{"start": "HH:MM", "end": "HH:MM"}``.
    """

    __tablename__ = "venue_hours"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
    )

    day_of_week: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )

    calendar_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    full_day: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    time_ranges: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
    )

    sms_notification: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('base', 'exceptional_closure', 'exceptional_open')",
            name="type_valid",
        ),
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="day_of_week_range",
        ),
        Index("ix_venue_hours_type_day", "type", "day_of_week"),
        Index("ix_venue_hours_type_date", "type", "calendar_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<VenueHours(id={self.id}, type='{self.type}', "
            f"day_of_week={self.day_of_week}, calendar_date={self.calendar_date})>"
        )


class DiningTable(Base):
    """Table inventory."""

    __tablename__ = "tables"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    table_number: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )

    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<DiningTable(id={self.id}, number={self.table_number}, capacity={self.capacity})>"


class PrivateEventRecord(Base, TimestampMixin):
    """Private event; a NULL table_id blocks the whole venue."""

    __tablename__ = "private_events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    title: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )

    start_time: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
    )

    end_time: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
    )

    full_day: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PrivateEventStatus.ACTIVE.value,
        index=True,
    )

    table_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("tables.id"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="event_order"),
        Index("ix_private_events_status_start", "status", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<PrivateEventRecord(id={self.id}, title='{self.title}', "
            f"start={self.start_time}, end={self.end_time}, status='{self.status}')>"
        )


class ReservationRecord(Base, TimestampMixin):
    """Reservation holding a table for [start_time, end_time)."""

    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    table_id: Mapped[str] = mapped_column(
        ForeignKey("tables.id"),
        nullable=False,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    end_time: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    party_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.CONFIRMED.value,
        index=True,
    )

    guest_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    guest_phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="reservation_order"),
        CheckConstraint("party_size >= 1", name="party_size_positive"),
        Index("ix_reservations_table_start", "table_id", "start_time"),
        Index("ix_reservations_start_end", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReservationRecord(id={self.id}, table_id={self.table_id}, "
            f"start={self.start_time}, end={self.end_time}, status='{self.status}')>"
        )


# PostgreSQL enforces non-overlapping bookings per table; other dialects rely
# on the store's check-and-insert inside one transaction.
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)

event.listen(
    ReservationRecord.__table__,
    "after_create",
    DDL(
        "ALTER TABLE reservations ADD CONSTRAINT ex_reservations_table_time "
        "EXCLUDE USING gist (table_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
