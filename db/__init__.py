"""Database layer for the availability engine."""

from .base import Base, TimestampMixin
from .models_sqlalchemy import DiningTable, PrivateEventRecord, ReservationRecord, VenueHours
from .session import (
    create_engine,
    create_session_factory,
    get_engine,
    init_db,
    drop_db,
    close_db,
)
from .stores import SqlAlchemyBookingStore, SqlAlchemyCalendarStore

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Models
    "VenueHours",
    "DiningTable",
    "PrivateEventRecord",
    "ReservationRecord",
    # Session
    "create_engine",
    "create_session_factory",
    "get_engine",
    "init_db",
    "drop_db",
    "close_db",
    # Stores
    "SqlAlchemyCalendarStore",
    "SqlAlchemyBookingStore",
]
