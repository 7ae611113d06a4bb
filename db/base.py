"""
Declarative base for the venue calendar and reservation tables.

- Reservation and private-event times are absolute instants, so every
  ``datetime`` column maps to a timezone-aware type. Civil hours live in
  ``venue_hours`` as ``HH:MM`` text, never as datetimes.
- Check constraints get predictable names (``ck_reservations_reservation_order``
  and so on), matching the hand-written ``ex_reservations_table_time``
  exclusion constraint added for PostgreSQL.
- ``TimestampMixin`` stamps calendar rows, events and reservations with
  creation and update times.
"""

from datetime import datetime

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for the store's ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Row creation and last-update stamps, set by the database."""

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )
