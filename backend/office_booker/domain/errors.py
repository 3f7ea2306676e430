class BookingError(Exception):
    """Base class for every definitive (or retryable) booking outcome other than success."""

    code = "booking_error"
    default_message = "booking request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class DateNotBookableError(BookingError):
    code = "date_not_bookable"
    default_message = "date is outside the bookable window"


class InvalidDateRangeError(BookingError):
    code = "invalid_date_range"
    default_message = "start date must not be after end date"


class ParkingNotAvailableError(BookingError):
    code = "parking_not_available"
    default_message = "office has no parking"


class QuotaExceededError(BookingError):
    code = "quota_exceeded"
    default_message = "weekly booking quota reached"


class AlreadyBookedError(BookingError):
    code = "already_booked"
    default_message = "already booked at this office on this date"


class CapacityError(BookingError):
    code = "capacity_exceeded"
    default_message = "no capacity left"


class DeskFullError(CapacityError):
    code = "desk_full"
    default_message = "no desks left at this office on this date"


class ParkingFullError(CapacityError):
    code = "parking_full"
    default_message = "no parking spaces left at this office on this date"


class NotFoundError(BookingError):
    code = "not_found"
    default_message = "not found"


class ForbiddenError(BookingError):
    code = "forbidden"
    default_message = "booking belongs to another user"


class CancellationWindowClosedError(BookingError):
    code = "cancellation_window_closed"
    default_message = "booking can no longer be cancelled"


class BusyError(BookingError):
    """Transient contention on the slot counters; the caller may retry."""

    code = "busy"
    default_message = "too many concurrent requests, try again"


class StorageUnavailableError(BookingError):
    code = "storage_unavailable"
    default_message = "booking store unavailable"


# Store-level signals, mapped by the allocation use cases.


class DuplicateBookingError(BookingError):
    code = "duplicate_booking"
    default_message = "booking already exists for this office, date and user"


class LedgerNotFoundError(NotFoundError):
    code = "ledger_not_found"
    default_message = "no slot counters for this office and date"
