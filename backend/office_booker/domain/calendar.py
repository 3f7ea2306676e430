from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Union

from ..models import Booking
from .entities import Office, SlotCounts
from .quota import MONDAY, week_days, week_start, weekly_booking_count
from .window import bookable_dates


@dataclass(frozen=True)
class BookableDay:
    date: date
    desks_available: int
    parking_available: int
    user_can_book: bool
    booking: Booking | None = None


@dataclass(frozen=True)
class UnbookableDay:
    date: date
    booking: Booking | None = None


Day = Union[BookableDay, UnbookableDay]


@dataclass(frozen=True)
class CalendarWeek:
    start: date
    bookings: int
    remaining_quota: int
    days: list[Day] = field(default_factory=list)

    @property
    def end(self) -> date:
        return self.days[-1].date if self.days else self.start


def build_office_calendar(
    *,
    office: Office,
    user_email: str,
    weekly_quota: int,
    user_bookings: Iterable[Booking],
    counts: Mapping[date, SlotCounts],
    today: date,
    advance_days: int,
    week_starts_on: int = MONDAY,
) -> list[CalendarWeek]:
    """Lay the bookable window out as whole weeks for one user and one office."""
    bookings = list(user_bookings)
    in_window = set(bookable_dates(today, advance_days))
    here = {b.date: b for b in bookings if b.office_id == office.id}
    booked_days = {b.date for b in bookings}

    starts = sorted({week_start(d, week_starts_on) for d in in_window})
    weeks: list[CalendarWeek] = []
    for start in starts:
        used = weekly_booking_count(user_email, start, bookings, week_starts_on=week_starts_on)
        days: list[Day] = []
        for d in week_days(start):
            booking = here.get(d)
            if d not in in_window:
                days.append(UnbookableDay(date=d, booking=booking))
                continue
            slot = counts.get(d) or SlotCounts(office_id=office.id, date=d)
            desks = slot.desks_available(office)
            days.append(
                BookableDay(
                    date=d,
                    desks_available=desks,
                    parking_available=slot.parking_available(office),
                    user_can_book=desks > 0 and used < weekly_quota and d not in booked_days,
                    booking=booking,
                )
            )
        weeks.append(
            CalendarWeek(start=start, bookings=used, remaining_quota=max(weekly_quota - used, 0), days=days)
        )
    return weeks
