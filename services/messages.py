"""
Guest-facing text for unavailability reasons.

The messages are plain sentences suitable for direct display or an SMS
reply. Dates and times are rendered in the venue's timezone.
"""
from typing import Dict, List

from core.restaurant_config import RestaurantConfig
from core.utils_datetime import (
    format_instant_time,
    format_long_date,
    format_time_range,
)
from domain.enums import DayOfWeek
from domain.models import (
    FullDayClosure,
    NoTableFit,
    NotOpenThisDay,
    OutsideBookingWindow,
    OutsideHours,
    PartialClosure,
    PrivateEventFull,
    PrivateEventPartial,
    TimeRange,
)


def describe_day_hours(weekday: int, ranges: List[TimeRange]) -> str:
    """E.g. "Thursdays (6:00 PM to 11:00 PM and 11:30 PM to 11:59 PM)"."""
    formatted = " and ".join(format_time_range(r.start, r.end) for r in ranges)
    return f"{DayOfWeek(weekday).label}s ({formatted})"


def describe_weekly_hours(weekly_hours: Dict[int, List[TimeRange]]) -> str:
    return ", ".join(
        describe_day_hours(weekday, weekly_hours[weekday])
        for weekday in sorted(weekly_hours)
        if weekly_hours[weekday]
    )


def render_reason(reason, config: RestaurantConfig) -> str:
    """
    Render the message for an unavailability reason.

    Args:
        reason: One of the tagged unavailability models
        config: Engine configuration (venue name and timezone)

    Returns:
        Message text
    """
    name = config.name

    if isinstance(reason, OutsideBookingWindow):
        return "Reservations are not available for this date."

    if isinstance(reason, PrivateEventFull):
        return (
            f"Thank you for your reservation request. {name} will be closed on "
            f"{format_long_date(reason.closure_date)} for a private event."
        )

    if isinstance(reason, PrivateEventPartial):
        start = format_instant_time(reason.event_start, config.timezone)
        end = format_instant_time(reason.event_end, config.timezone)
        return (
            f"Thank you for your reservation request. {name} will be closed from "
            f"{start} to {end} for a private event. If you'd like, please resubmit "
            f"your reservation request for a time outside of this window. Thank you."
        )

    if isinstance(reason, FullDayClosure):
        if reason.notification_text:
            return reason.notification_text
        return f"{name} is closed on {format_long_date(reason.closure_date)}."

    if isinstance(reason, PartialClosure):
        if reason.notification_text:
            return reason.notification_text
        closed = " and ".join(format_time_range(r.start, r.end) for r in reason.closed_ranges)
        return f"{name} is closed from {closed} on {format_long_date(reason.closure_date)}."

    if isinstance(reason, NotOpenThisDay):
        descriptor = describe_weekly_hours(reason.weekly_hours)
        if not descriptor:
            return f"{name} is not open on {DayOfWeek(reason.weekday).label}s."
        return (
            f"Thank you for your reservation request. {name} is currently available "
            f"for reservations on {descriptor}. Please resubmit your reservation "
            f"within these windows. Thank you."
        )

    if isinstance(reason, OutsideHours):
        descriptor = describe_day_hours(reason.weekday, reason.open_ranges)
        return (
            f"Thank you for your reservation request. {name} is currently available "
            f"for reservations on {descriptor}. Please resubmit your reservation "
            f"within these windows. Thank you."
        )

    if isinstance(reason, NoTableFit):
        guests = "guest" if reason.party_size == 1 else "guests"
        return f"No table is available for {reason.party_size} {guests} at this time."

    raise TypeError(f"Unknown unavailability reason: {type(reason).__name__}")
