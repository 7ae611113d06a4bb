"""Pytest configuration and fixtures for availability engine tests."""
import pytest
from datetime import date, datetime, time, timedelta

from core.restaurant_config import BookingPolicy, RestaurantConfig
from core.utils_datetime import TimeNormalizer
from domain.enums import DayOfWeek
from domain.models import BusinessCalendar, PrivateEvent, Reservation, Table, TimeRange
from services.availability_service import AvailabilityService
from services.memory_store import InMemoryBookingStore, InMemoryCalendarStore
from services.reservation_service import ReservationService


ZONE = "America/Chicago"

# Thursday; Chicago is on CDT (UTC-5)
THURSDAY = date(2025, 10, 16)
MONDAY = date(2025, 10, 13)


def local_instant(on_date: date, hour: int, minute: int = 0) -> datetime:
    """UTC instant of a Chicago wall-clock time."""
    return TimeNormalizer.to_instant(on_date, time(hour, minute), ZONE)


def make_reservation(table_id: str, on_date: date, hour: int, minute: int = 0, minutes: int = 90, **kwargs) -> Reservation:
    start = local_instant(on_date, hour, minute)
    return Reservation(
        id=kwargs.pop("id", f"r-{table_id}-{hour}{minute:02d}"),
        table_id=table_id,
        start=start,
        end=start + timedelta(minutes=minutes),
        party_size=kwargs.pop("party_size", 2),
        **kwargs,
    )


def make_event(on_date: date, start_hour: int, end_hour: int, **kwargs) -> PrivateEvent:
    return PrivateEvent(
        id=kwargs.pop("id", "event-1"),
        start=local_instant(on_date, start_hour),
        end=local_instant(on_date, end_hour),
        **kwargs,
    )


@pytest.fixture(scope="function")
def restaurant_config():
    """Noir in Chicago with the default booking policy and no booking window."""
    return RestaurantConfig(name="Noir", timezone=ZONE, policy=BookingPolicy())


@pytest.fixture(scope="function")
def evening_range():
    return TimeRange(start=time(18, 0), end=time(23, 0))


@pytest.fixture(scope="function")
def business_calendar(evening_range):
    """Open Thursday through Saturday, 6 PM to 11 PM."""
    return BusinessCalendar(weekly_hours={
        DayOfWeek.THURSDAY.value: [evening_range],
        DayOfWeek.FRIDAY.value: [evening_range],
        DayOfWeek.SATURDAY.value: [evening_range],
    })


@pytest.fixture(scope="function")
def tables():
    return [
        Table(id="t-2", capacity=2, table_number=1),
        Table(id="t-4", capacity=4, table_number=2),
        Table(id="t-6", capacity=6, table_number=3),
    ]


@pytest.fixture(scope="function")
def calendar_store(business_calendar):
    return InMemoryCalendarStore(calendar=business_calendar)


@pytest.fixture(scope="function")
def booking_store(tables):
    return InMemoryBookingStore(tables=tables)


@pytest.fixture(scope="function")
def availability_service(restaurant_config, calendar_store, booking_store):
    return AvailabilityService(restaurant_config, calendar_store, booking_store)


@pytest.fixture(scope="function")
def reservation_service(availability_service, booking_store):
    return ReservationService(availability_service, booking_store, max_retries=3)
