"""
Restaurant configuration for booking policy, timezone and booking window.

Passed explicitly into the engine at construction; nothing in the engine
reads ambient settings.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from core.config import Settings
from core.exceptions import ValidationError
from core.utils_datetime import get_timezone


@dataclass(frozen=True)
class BookingPolicy:
    """Slot enumeration and seating-duration rules."""
    slot_increment_minutes: int = 15
    small_party_max_size: int = 2
    small_party_duration_minutes: int = 90
    large_party_duration_minutes: int = 120
    min_party_size: int = 1
    max_party_size: int = 20

    def __post_init__(self):
        if self.slot_increment_minutes <= 0:
            raise ValueError("slot_increment_minutes must be positive")
        if self.small_party_duration_minutes <= 0 or self.large_party_duration_minutes <= 0:
            raise ValueError("durations must be positive")

    def duration_for_party(self, party_size: int) -> int:
        """Seating duration in minutes for a party of this size."""
        if party_size <= self.small_party_max_size:
            return self.small_party_duration_minutes
        return self.large_party_duration_minutes

    def validate_party_size(self, party_size) -> int:
        """Return the party size, or raise ValidationError if it is unusable."""
        if isinstance(party_size, bool) or not isinstance(party_size, int):
            raise ValidationError(f"Party size must be a whole number, got {party_size!r}", field="party_size")
        if party_size < self.min_party_size:
            raise ValidationError(f"Party size must be at least {self.min_party_size}", field="party_size")
        if party_size > self.max_party_size:
            raise ValidationError(f"Party size cannot exceed {self.max_party_size} guests", field="party_size")
        return party_size

    def validate_increment(self, increment_minutes=None) -> int:
        """Return the slot step to use; None falls back to the policy default."""
        if increment_minutes is None:
            return self.slot_increment_minutes
        if isinstance(increment_minutes, bool) or not isinstance(increment_minutes, int):
            raise ValidationError(
                f"Slot increment must be a whole number of minutes, got {increment_minutes!r}",
                field="increment_minutes",
            )
        if increment_minutes <= 0:
            raise ValidationError("Slot increment must be positive", field="increment_minutes")
        return increment_minutes


@dataclass(frozen=True)
class RestaurantConfig:
    """Complete engine configuration."""

    name: str = "Noir"
    timezone: str = "America/Chicago"
    policy: BookingPolicy = field(default_factory=BookingPolicy)

    # Booking window (inclusive); None leaves that side open
    booking_start_date: Optional[date] = None
    booking_end_date: Optional[date] = None

    def __post_init__(self):
        # Fail at construction rather than on the first request
        get_timezone(self.timezone)

    def is_within_booking_window(self, check_date: date) -> bool:
        """Check if a local date falls inside the configured booking window."""
        if self.booking_start_date and check_date < self.booking_start_date:
            return False
        if self.booking_end_date and check_date > self.booking_end_date:
            return False
        return True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestaurantConfig":
        """Build the engine configuration from application settings."""
        policy = BookingPolicy(
            slot_increment_minutes=settings.slot_increment_minutes,
            small_party_max_size=settings.small_party_max_size,
            small_party_duration_minutes=settings.small_party_duration_minutes,
            large_party_duration_minutes=settings.large_party_duration_minutes,
            max_party_size=settings.max_party_size,
        )
        return cls(
            name=settings.business_name,
            timezone=settings.business_timezone,
            policy=policy,
            booking_start_date=settings.booking_start_date,
            booking_end_date=settings.booking_end_date,
        )
