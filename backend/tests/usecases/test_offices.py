from datetime import date, datetime
from typing import Dict, List, Optional

import pytest
from office_booker.domain.calendar import BookableDay
from office_booker.domain.entities import Office, SlotCounts, UserQuota
from office_booker.domain.errors import InvalidDateRangeError, NotFoundError
from office_booker.domain.services import BookingPolicy
from office_booker.models import Booking
from office_booker.usecases import offices as uc

TODAY = date(2026, 10, 19)
OFFICE = Office(id="office-a", name="Office A", desk_quota=3, parking_quota=1)


class FakeLedger:
    def __init__(self, counts: Dict[date, SlotCounts]) -> None:
        self._counts = counts
        self.requested: Optional[tuple[str, date, date]] = None

    async def counts(self, office_id: str, start: date, end: date) -> Dict[date, SlotCounts]:
        self.requested = (office_id, start, end)
        return {d: c for d, c in self._counts.items() if start <= d <= end}


class FakeOffices:
    async def get(self, office_id: str) -> Optional[Office]:
        return OFFICE if office_id == OFFICE.id else None

    async def list(self) -> List[Office]:
        return [OFFICE]


class FakeUsers:
    async def get(self, email: str) -> UserQuota:
        return UserQuota(email=email, weekly_quota=1)


class FakeBookingRepo:
    def __init__(self, rows: List[Booking]) -> None:
        self.rows = rows

    async def find_by_user(self, user_email: str) -> List[Booking]:
        return [b for b in self.rows if b.user_email == user_email]


@pytest.mark.asyncio
async def test_availability_fills_days_without_counters() -> None:
    ledger = FakeLedger({date(2026, 10, 20): SlotCounts("office-a", date(2026, 10, 20), 3, 1)})
    items = await uc.office_availability(
        ledger, FakeOffices(), office_id="office-a", start=date(2026, 10, 19), end=date(2026, 10, 21)
    )
    assert [(i.date.day, i.desks_available, i.parking_available) for i in items] == [
        (19, 3, 1),
        (20, 0, 0),
        (21, 3, 1),
    ]


@pytest.mark.asyncio
async def test_availability_unknown_office() -> None:
    with pytest.raises(NotFoundError):
        await uc.office_availability(FakeLedger({}), FakeOffices(), office_id="x", start=TODAY, end=TODAY)


@pytest.mark.asyncio
async def test_availability_rejects_reversed_range() -> None:
    with pytest.raises(InvalidDateRangeError):
        await uc.office_availability(
            FakeLedger({}), FakeOffices(), office_id="office-a", start=date(2026, 10, 21), end=TODAY
        )


@pytest.mark.asyncio
async def test_calendar_reads_counters_for_booking_window() -> None:
    booking = Booking(
        id="b1",
        office_id="office-a",
        date=date(2026, 10, 21),
        user_email="a@example.com",
        parking=False,
        created_at=datetime(2026, 10, 1),
    )
    ledger = FakeLedger({})
    weeks = await uc.office_calendar(
        ledger,
        FakeBookingRepo([booking]),
        FakeOffices(),
        FakeUsers(),
        office_id="office-a",
        user_email="A@example.com",
        today=TODAY,
        policy=BookingPolicy(advance_days=7),
    )
    assert ledger.requested == ("office-a", TODAY, date(2026, 10, 26))
    assert [w.start for w in weeks] == [date(2026, 10, 19), date(2026, 10, 26)]
    wednesday = weeks[0].days[2]
    assert isinstance(wednesday, BookableDay)
    assert wednesday.booking is booking
    assert weeks[0].remaining_quota == 0


@pytest.mark.asyncio
async def test_list_offices() -> None:
    assert await uc.list_offices(FakeOffices()) == [OFFICE]
