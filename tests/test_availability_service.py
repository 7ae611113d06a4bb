"""
Tests for the availability service.
Covers the decision pipeline order, every unavailability reason and its
guest-facing message, slot listing and input validation.
"""

import pytest
from datetime import date, datetime, time, timedelta

from core.exceptions import ConfigurationError, ValidationError
from core.restaurant_config import RestaurantConfig
from core.utils_datetime import UTC
from domain.enums import ReasonCode
from domain.models import BusinessCalendar, ExceptionalClosure, ExceptionalOpen, PrivateEvent, Table, TimeRange
from services.availability_service import AvailabilityService
from services.memory_store import InMemoryBookingStore, InMemoryCalendarStore

from tests.conftest import MONDAY, THURSDAY, ZONE, local_instant, make_event, make_reservation


def service_with(config, business_calendar, tables, closures=(), opens=(), events=(), reservations=()):
    calendar_store = InMemoryCalendarStore(
        calendar=business_calendar,
        closures=closures,
        opens=opens,
        events=events,
    )
    booking_store = InMemoryBookingStore(tables=tables, reservations=reservations)
    return AvailabilityService(config, calendar_store, booking_store)


def friday_buyout() -> PrivateEvent:
    """Full-day private event covering all of Friday, October 17."""
    friday = date(2025, 10, 17)
    return PrivateEvent(
        id="friday-buyout",
        title="Friday buyout",
        start=local_instant(friday, 0),
        end=local_instant(friday + timedelta(days=1), 0),
        full_day=True,
    )


# ============================================================================
# Available Outcomes
# ============================================================================

@pytest.mark.unit
class TestAvailable:
    """Tests for requests that can be seated."""

    async def test_available_assigns_smallest_table(self, availability_service):
        """Test a party of two at 7 PM on an open Thursday."""
        result = await availability_service.check_availability("2025-10-16", "19:00", 2)

        assert result.available is True
        assert result.reason is None
        assert result.reason_code is None
        assert result.assigned_table.id == "t-2"
        assert result.slot.start == datetime(2025, 10, 17, 0, 0, tzinfo=UTC)
        assert result.slot.end == datetime(2025, 10, 17, 1, 30, tzinfo=UTC)
        assert result.slot.local_time == time(19, 0)

    async def test_available_larger_party(self, availability_service):
        result = await availability_service.check_availability(THURSDAY, time(19, 0), 5)
        assert result.available
        assert result.assigned_table.id == "t-6"
        assert (result.slot.end - result.slot.start).total_seconds() == 120 * 60

    async def test_twelve_hour_input(self, availability_service):
        result = await availability_service.check_availability("2025-10-16", "7:30pm", 2)
        assert result.available
        assert result.slot.local_time == time(19, 30)

    async def test_last_seating_that_fits(self, availability_service):
        """Test a 9:30 PM seating of 90 minutes ends exactly at close."""
        result = await availability_service.check_availability(THURSDAY, "21:30", 2)
        assert result.available

    async def test_idempotent(self, availability_service):
        """Test repeated checks over unchanged data give the same answer."""
        first = await availability_service.check_availability(THURSDAY, "19:00", 4)
        second = await availability_service.check_availability(THURSDAY, "19:00", 4)
        assert first == second

    async def test_exceptional_open(self, restaurant_config, business_calendar, tables):
        """Test a one-off lunch opening on a normally closed Monday."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            opens=[ExceptionalOpen(open_date=MONDAY, time_ranges=[TimeRange(start=time(12, 0), end=time(15, 0))])],
        )
        result = await service.check_availability(MONDAY, "12:30", 2)
        assert result.available

    async def test_table_bound_event_uses_other_table(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 18, 23, table_id="t-2")],
        )
        result = await service.check_availability(THURSDAY, "19:00", 2)
        assert result.available
        assert result.assigned_table.id == "t-4"

    async def test_booked_small_table_moves_party_to_next_size(self, restaurant_config, business_calendar):
        """Test a 7-9 PM booking on the 2-top sends a 7 PM party of two to the 4-top."""
        service = service_with(
            restaurant_config, business_calendar,
            [Table(id="t-2", capacity=2), Table(id="t-4", capacity=4)],
            reservations=[make_reservation("t-2", THURSDAY, 19, minutes=120)],
        )
        result = await service.check_availability(THURSDAY, "19:00", 2)

        assert result.available is True
        assert result.assigned_table.id == "t-4"


# ============================================================================
# Unavailable Outcomes
# ============================================================================

@pytest.mark.unit
class TestUnavailable:
    """Tests for each unavailability reason."""

    async def test_not_open_this_day(self, availability_service):
        """Test a Monday request lists the weekly hours."""
        result = await availability_service.check_availability(MONDAY, "19:00", 2)

        assert result.available is False
        assert result.reason_code == ReasonCode.NOT_OPEN_THIS_DAY
        assert result.reason_message == (
            "Thank you for your reservation request. Noir is currently available for "
            "reservations on Thursdays (6:00 PM to 11:00 PM), Fridays (6:00 PM to 11:00 PM), "
            "Saturdays (6:00 PM to 11:00 PM). Please resubmit your reservation within these "
            "windows. Thank you."
        )

    async def test_outside_hours_too_early(self, availability_service):
        result = await availability_service.check_availability(THURSDAY, "17:00", 2)
        assert result.reason_code == ReasonCode.OUTSIDE_HOURS
        assert "Thursdays (6:00 PM to 11:00 PM)" in result.reason_message

    async def test_outside_hours_afternoon(self, availability_service):
        """Test a 2 PM request on an evening-only Thursday."""
        result = await availability_service.check_availability(THURSDAY, "14:00", 2)

        assert result.available is False
        assert result.reason_code == ReasonCode.OUTSIDE_HOURS
        assert result.reason.kind == "outside_hours"

    async def test_outside_hours_runs_past_close(self, availability_service):
        """Test a seating that would end after closing is rejected."""
        result = await availability_service.check_availability(THURSDAY, "22:00", 2)
        assert result.reason_code == ReasonCode.OUTSIDE_HOURS

    async def test_private_event_full_day(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 0, 23, full_day=True)],
        )
        result = await service.check_availability(THURSDAY, "19:00", 2)

        assert result.reason_code == ReasonCode.PRIVATE_EVENT_FULL
        assert result.reason_message == (
            "Thank you for your reservation request. Noir will be closed on "
            "October 16 for a private event."
        )

    async def test_private_event_partial(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 19, 21)],
        )
        result = await service.check_availability(THURSDAY, "18:00", 2)

        assert result.reason_code == ReasonCode.PRIVATE_EVENT_PARTIAL
        assert result.reason_message.startswith(
            "Thank you for your reservation request. Noir will be closed from "
            "7:00 PM to 9:00 PM for a private event."
        )

    async def test_private_event_ends_before_request(self, restaurant_config, business_calendar, tables):
        """Test a seating that starts exactly when the event ends is allowed."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 19, 21)],
        )
        result = await service.check_availability(THURSDAY, "21:00", 2)
        assert result.available

    async def test_private_event_checked_before_hours(self, restaurant_config, business_calendar, tables):
        """Test a full-day event wins over the day being closed anyway."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(MONDAY, 0, 23, full_day=True)],
        )
        result = await service.check_availability(MONDAY, "19:00", 2)
        assert result.reason_code == ReasonCode.PRIVATE_EVENT_FULL

    async def test_next_day_full_day_event_is_not_a_closure(self, restaurant_config, business_calendar, tables):
        """Test a late seating running into Friday's buyout is judged on Thursday's hours."""
        service = service_with(restaurant_config, business_calendar, tables, events=[friday_buyout()])

        late = await service.check_availability(THURSDAY, "22:45", 2)
        assert late.reason_code == ReasonCode.OUTSIDE_HOURS

        evening = await service.check_availability(THURSDAY, "19:00", 2)
        assert evening.available

        friday = await service.check_availability(date(2025, 10, 17), "19:00", 2)
        assert friday.reason_code == ReasonCode.PRIVATE_EVENT_FULL

    async def test_full_day_closure_custom_text(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            closures=[ExceptionalClosure(
                closure_date=THURSDAY,
                full_day=True,
                notification_text="We are closed for a staff holiday.",
            )],
        )
        result = await service.check_availability(THURSDAY, "19:00", 2)
        assert result.reason_code == ReasonCode.FULL_DAY_CLOSURE
        assert result.reason_message == "We are closed for a staff holiday."

    async def test_full_day_closure_default_text(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            closures=[ExceptionalClosure(closure_date=THURSDAY, full_day=True)],
        )
        result = await service.check_availability(THURSDAY, "19:00", 2)
        assert result.reason_message == "Noir is closed on October 16."

    async def test_partial_closure(self, restaurant_config, business_calendar, tables):
        """Test a request inside a closed sub-range is a partial closure."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            closures=[ExceptionalClosure(
                closure_date=THURSDAY,
                time_ranges=[TimeRange(start=time(19, 0), end=time(21, 0))],
            )],
        )
        closed = await service.check_availability(THURSDAY, "19:30", 2)
        assert closed.reason_code == ReasonCode.PARTIAL_CLOSURE
        assert closed.reason_message == "Noir is closed from 7:00 PM to 9:00 PM on October 16."

        reopened = await service.check_availability(THURSDAY, "21:00", 2)
        assert reopened.available

    async def test_no_table_fit(self, availability_service):
        result = await availability_service.check_availability(THURSDAY, "19:00", 7)
        assert result.reason_code == ReasonCode.NO_TABLE_FIT
        assert result.reason_message == "No table is available for 7 guests at this time."

    async def test_all_tables_booked(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            reservations=[make_reservation(table.id, THURSDAY, 19, id=f"r-{table.id}") for table in tables],
        )
        result = await service.check_availability(THURSDAY, "19:30", 2)
        assert result.reason_code == ReasonCode.NO_TABLE_FIT
        assert result.alternatives is None

    async def test_alternatives_attached(self, restaurant_config, business_calendar, tables):
        """Test nearest slots are offered when the day still has openings."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            reservations=[make_reservation(table.id, THURSDAY, 20, id=f"r-{table.id}") for table in tables],
        )
        result = await service.check_availability(THURSDAY, "20:00", 2, include_alternatives=True)

        assert result.reason_code == ReasonCode.NO_TABLE_FIT
        assert result.alternatives.before.local_time == time(18, 30)
        assert result.alternatives.after.local_time == time(21, 30)

    async def test_no_alternatives_for_closed_day(self, availability_service):
        result = await availability_service.check_availability(MONDAY, "19:00", 2, include_alternatives=True)
        assert result.alternatives is None

    async def test_booking_window(self, business_calendar, tables):
        """Test dates outside the booking window are rejected before anything else."""
        config = RestaurantConfig(
            timezone=ZONE,
            booking_start_date=date(2025, 10, 1),
            booking_end_date=date(2025, 10, 31),
        )
        service = service_with(
            config, business_calendar, tables,
            events=[make_event(date(2025, 11, 6), 0, 23, full_day=True)],
        )
        result = await service.check_availability("2025-11-06", "19:00", 2)

        assert result.reason_code == ReasonCode.OUTSIDE_BOOKING_WINDOW
        assert result.reason_message == "Reservations are not available for this date."
        assert await service.list_available_slots("2025-11-06", 2) == []


# ============================================================================
# Errors
# ============================================================================

@pytest.mark.unit
class TestErrors:
    """Tests for inputs and configuration that raise."""

    @pytest.mark.parametrize("party_size", [0, -1, 21, "2", 2.5, True])
    async def test_invalid_party_size(self, availability_service, party_size):
        with pytest.raises(ValidationError) as exc_info:
            await availability_service.check_availability(THURSDAY, "19:00", party_size)
        assert exc_info.value.field == "party_size"

    async def test_invalid_date(self, availability_service):
        with pytest.raises(ValidationError):
            await availability_service.check_availability("2025-13-01", "19:00", 2)

    async def test_invalid_time(self, availability_service):
        with pytest.raises(ValidationError):
            await availability_service.check_availability(THURSDAY, "25:00", 2)

    async def test_no_hours_configured(self, restaurant_config, tables):
        service = service_with(restaurant_config, BusinessCalendar(), tables)
        with pytest.raises(ConfigurationError):
            await service.check_availability(THURSDAY, "19:00", 2)

    @pytest.mark.parametrize("increment", [0, -15, 7.5, "15", True])
    async def test_invalid_increment(self, availability_service, increment):
        """Test a bad slot step is rejected rather than replaced by the default."""
        with pytest.raises(ValidationError) as exc_info:
            await availability_service.list_available_slots(THURSDAY, 2, increment_minutes=increment)
        assert exc_info.value.field == "increment_minutes"

    async def test_invalid_increment_outside_booking_window(self, business_calendar, tables):
        """Test the step is validated before the booking window short-circuits."""
        config = RestaurantConfig(timezone=ZONE, booking_end_date=date(2025, 10, 1))
        service = service_with(config, business_calendar, tables)
        with pytest.raises(ValidationError):
            await service.list_available_slots(THURSDAY, 2, increment_minutes=0)


# ============================================================================
# Slot Listing
# ============================================================================

@pytest.mark.unit
class TestListAvailableSlots:
    """Tests for list_available_slots."""

    async def test_open_day(self, availability_service):
        slots = await availability_service.list_available_slots("2025-10-16", 2)
        assert len(slots) == 15
        assert slots[0].local_time == time(18, 0)

    async def test_custom_increment(self, availability_service):
        slots = await availability_service.list_available_slots(THURSDAY, 2, increment_minutes=30)
        assert [slot.local_time for slot in slots] == [
            time(18, 0), time(18, 30), time(19, 0), time(19, 30),
            time(20, 0), time(20, 30), time(21, 0), time(21, 30),
        ]

    async def test_full_day_event(self, restaurant_config, business_calendar, tables):
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 0, 23, full_day=True)],
        )
        assert await service.list_available_slots(THURSDAY, 2) == []

    async def test_next_day_full_day_event(self, restaurant_config, business_calendar, tables):
        """Test Friday's buyout leaves Thursday's slots untouched."""
        service = service_with(restaurant_config, business_calendar, tables, events=[friday_buyout()])
        assert len(await service.list_available_slots(THURSDAY, 2)) == 15
        assert await service.list_available_slots(date(2025, 10, 17), 2) == []

    async def test_every_listed_slot_is_available(self, restaurant_config, business_calendar, tables):
        """Test each listed slot passes check_availability."""
        service = service_with(
            restaurant_config, business_calendar, tables,
            events=[make_event(THURSDAY, 20, 21)],
            reservations=[make_reservation("t-2", THURSDAY, 18)],
        )
        slots = await service.list_available_slots(THURSDAY, 2)
        assert slots

        for slot in slots:
            result = await service.check_availability(THURSDAY, slot.local_time, 2)
            assert result.available, slot.local_time
            assert result.assigned_table.id == slot.table_id
