from dataclasses import dataclass
from datetime import date

from .entities import Office
from .errors import (
    AlreadyBookedError,
    CancellationWindowClosedError,
    DateNotBookableError,
    ParkingNotAvailableError,
    QuotaExceededError,
)
from .window import is_date_bookable


@dataclass(frozen=True)
class BookingRequestSnapshot:
    day: date
    today: date
    advance_days: int
    office: Office
    wants_parking: bool
    remaining_quota: int
    user_has_booking: bool


def validate_booking_request(snapshot: BookingRequestSnapshot) -> None:
    """
    Pure validation of every gate that runs before any slot is consumed.
    Checks run in order (date window, parking, quota, duplicate) and the first
    failing gate raises its domain error.
    """
    if not is_date_bookable(snapshot.day, snapshot.today, snapshot.advance_days):
        raise DateNotBookableError(
            f"{snapshot.day.isoformat()} is not bookable, "
            f"bookings open {snapshot.advance_days} days ahead"
        )
    if snapshot.wants_parking and snapshot.office.parking_quota <= 0:
        raise ParkingNotAvailableError(f"{snapshot.office.name} has no parking")
    if snapshot.remaining_quota <= 0:
        raise QuotaExceededError()
    if snapshot.user_has_booking:
        raise AlreadyBookedError()


def validate_cancellation(day: date, today: date, *, allow_same_day: bool) -> None:
    if day < today:
        raise CancellationWindowClosedError("past bookings cannot be cancelled")
    if day == today and not allow_same_day:
        raise CancellationWindowClosedError("bookings for today cannot be cancelled")


@dataclass(frozen=True)
class BookingPolicy:
    advance_days: int = 14
    week_starts_on: int = 0
    allow_same_day_cancellation: bool = False
    retention_days: int = 30
