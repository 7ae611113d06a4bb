"""
Exception hierarchy for the availability engine.

Only unexpected or store-level failures are raised. Every expected
"can't book this" outcome is returned as an AvailabilityResult instead.
"""


class BookingEngineError(Exception):
    """Base class for all engine-level errors."""


class ValidationError(BookingEngineError):
    """Raised for a malformed date, time or party size before any stage runs."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ConfigurationError(BookingEngineError):
    """Raised when the business has no opening hours configured at all."""


class TransientError(BookingEngineError):
    """Raised when the calendar or booking store cannot be reached. Retryable."""


class ReservationConflictError(BookingEngineError):
    """Raised when a reservation insert collides with an overlapping booking on the same table."""

    def __init__(self, table_id: str, message: str = None):
        super().__init__(message or f"Table {table_id} is already booked for an overlapping time")
        self.table_id = table_id
