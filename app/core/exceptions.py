"""Domain errors raised by the scheduling services.

Each error carries the HTTP status it maps to; ``app.main`` registers a single
handler that renders ``{"detail": message}`` with that status.
"""


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input: bad date/time, non-positive fee, window outside hours."""

    status_code = 422


class InvalidFee(ValidationError):
    """Fee amount is not a positive monetary value."""


class ProviderClosed(SchedulingError):
    """Provider does not operate on the requested date."""

    status_code = 422


class SlotUnavailable(SchedulingError):
    """Slot was taken or blocked, or the reservation lock timed out.

    Callers should re-fetch availability and pick another time.
    """

    status_code = 409


class InvalidTransition(SchedulingError):
    """Booking state machine misuse."""

    status_code = 409


class AlreadyReviewed(SchedulingError):
    """A booking can carry at most one review."""

    status_code = 409


class AvailabilityUnknown(SchedulingError):
    """Bookings or blocked ranges could not be loaded."""

    status_code = 503


class NotFoundError(SchedulingError):
    status_code = 404
