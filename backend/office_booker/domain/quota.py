from datetime import date, timedelta
from typing import Iterable, Protocol

MONDAY = 0


class _Dated(Protocol):
    user_email: str
    date: date


def week_start(day: date, week_starts_on: int = MONDAY) -> date:
    """Return the first day of the week containing `day`.

    The start date identifies the week; it is unambiguous across year
    boundaries, unlike ISO week numbers.
    """
    offset = (day.weekday() - week_starts_on) % 7
    return day - timedelta(days=offset)


def week_days(start: date) -> list[date]:
    return [start + timedelta(days=offset) for offset in range(7)]


def same_week(a: date, b: date, week_starts_on: int = MONDAY) -> bool:
    return week_start(a, week_starts_on) == week_start(b, week_starts_on)


def weekly_booking_count(
    user_email: str,
    reference_date: date,
    bookings: Iterable[_Dated],
    *,
    week_starts_on: int = MONDAY,
) -> int:
    email = user_email.lower()
    return sum(
        1
        for booking in bookings
        if booking.user_email.lower() == email and same_week(booking.date, reference_date, week_starts_on)
    )


def remaining_quota(
    user_email: str,
    reference_date: date,
    weekly_quota: int,
    bookings: Iterable[_Dated],
    *,
    week_starts_on: int = MONDAY,
) -> int:
    used = weekly_booking_count(user_email, reference_date, bookings, week_starts_on=week_starts_on)
    return max(weekly_quota - used, 0)
