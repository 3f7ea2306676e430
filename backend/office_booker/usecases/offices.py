from datetime import date, timedelta
from typing import List, Sequence

from ..domain.calendar import CalendarWeek, build_office_calendar
from ..domain.entities import DayAvailability, Office, SlotCounts, normalize_email
from ..domain.errors import InvalidDateRangeError, NotFoundError
from ..domain.repositories import BookingRepository, CapacityLedger, OfficeDirectory, UserDirectory
from ..domain.services import BookingPolicy
from ..domain.window import last_bookable_date


async def list_offices(offices: OfficeDirectory) -> Sequence[Office]:
    return await offices.list()


async def office_availability(
    ledger: CapacityLedger,
    offices: OfficeDirectory,
    *,
    office_id: str,
    start: date,
    end: date,
) -> List[DayAvailability]:
    if start > end:
        raise InvalidDateRangeError()
    office = await offices.get(office_id)
    if office is None:
        raise NotFoundError("office not found")

    counts = await ledger.counts(office_id, start, end)
    items: List[DayAvailability] = []
    day = start
    while day <= end:
        slot = counts.get(day) or SlotCounts(office_id=office_id, date=day)
        items.append(
            DayAvailability(
                date=day,
                desks_available=slot.desks_available(office),
                parking_available=slot.parking_available(office),
            )
        )
        day += timedelta(days=1)
    return items


async def office_calendar(
    ledger: CapacityLedger,
    bookings: BookingRepository,
    offices: OfficeDirectory,
    users: UserDirectory,
    *,
    office_id: str,
    user_email: str,
    today: date,
    policy: BookingPolicy,
) -> List[CalendarWeek]:
    office = await offices.get(office_id)
    if office is None:
        raise NotFoundError("office not found")
    email = normalize_email(user_email)
    user = await users.get(email)
    user_bookings = await bookings.find_by_user(email)
    counts = await ledger.counts(office_id, today, last_bookable_date(today, policy.advance_days))
    return build_office_calendar(
        office=office,
        user_email=email,
        weekly_quota=user.weekly_quota,
        user_bookings=user_bookings,
        counts=counts,
        today=today,
        advance_days=policy.advance_days,
        week_starts_on=policy.week_starts_on,
    )
