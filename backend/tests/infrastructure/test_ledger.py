import asyncio
from datetime import date
from typing import Any, AsyncIterator, Dict, List

import pytest
import pytest_asyncio
from office_booker.database import build_engine, build_session_factory, create_all
from office_booker.domain.entities import Office, SlotCounts, SlotRelease
from office_booker.domain.errors import DeskFullError, LedgerNotFoundError, ParkingFullError
from office_booker.infrastructure import ledger as ledger_module
from office_booker.infrastructure.ledger import SqlAlchemyCapacityLedger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

DAY = date(2026, 10, 21)
OFFICE = Office(id="office-a", name="Office A", desk_quota=2, parking_quota=1)


@pytest_asyncio.fixture
async def sessions(tmp_path: Any) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await create_all(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def events(monkeypatch: pytest.MonkeyPatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr(ledger_module, "emit_booking_event", lambda **kwargs: calls.append(kwargs))
    return calls


@pytest.mark.asyncio
async def test_reserve_creates_counters_lazily(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    counts = await ledger.reserve(OFFICE, DAY, True)
    assert counts == SlotCounts("office-a", DAY, 1, 1)


@pytest.mark.asyncio
async def test_reserve_refuses_beyond_desk_quota(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, DAY, False)
    await ledger.reserve(OFFICE, DAY, False)
    with pytest.raises(DeskFullError):
        await ledger.reserve(OFFICE, DAY, False)
    assert (await ledger.counts("office-a", DAY, DAY))[DAY].desks_booked == 2


@pytest.mark.asyncio
async def test_parking_full_is_all_or_nothing(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, DAY, True)
    with pytest.raises(ParkingFullError):
        await ledger.reserve(OFFICE, DAY, True)

    counts = (await ledger.counts("office-a", DAY, DAY))[DAY]
    assert (counts.desks_booked, counts.parking_booked) == (1, 1)


@pytest.mark.asyncio
async def test_release_decrements_both_counters(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, DAY, True)
    await ledger.reserve(OFFICE, DAY, False)
    assert await ledger.release("office-a", DAY, True) == SlotRelease(desk=True, parking=True)

    counts = (await ledger.counts("office-a", DAY, DAY))[DAY]
    assert (counts.desks_booked, counts.parking_booked) == (1, 0)


@pytest.mark.asyncio
async def test_release_without_counters_is_not_found(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    with pytest.raises(LedgerNotFoundError):
        await ledger.release("office-a", DAY, False)


@pytest.mark.asyncio
async def test_release_at_floor_clamps_and_reports(
    sessions: async_sessionmaker[AsyncSession], events: List[Dict[str, Any]]
) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, DAY, False)
    assert await ledger.release("office-a", DAY, False) == SlotRelease(desk=True)
    assert events == []

    released = await ledger.release("office-a", DAY, True)
    assert released == SlotRelease(desk=False, parking=False)
    assert not released.freed_anything
    counts = (await ledger.counts("office-a", DAY, DAY))[DAY]
    assert (counts.desks_booked, counts.parking_booked) == (0, 0)
    assert events[0]["action"] == "ledger.invariant_violation"


@pytest.mark.asyncio
async def test_restore_puts_slot_back(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.restore("office-a", DAY, SlotRelease(desk=True, parking=True))
    counts = (await ledger.counts("office-a", DAY, DAY))[DAY]
    assert (counts.desks_booked, counts.parking_booked) == (1, 1)


@pytest.mark.asyncio
async def test_restore_only_puts_back_what_was_freed(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, DAY, False)
    released = await ledger.release("office-a", DAY, True)
    assert released == SlotRelease(desk=True, parking=False)

    await ledger.restore("office-a", DAY, released)
    counts = (await ledger.counts("office-a", DAY, DAY))[DAY]
    assert (counts.desks_booked, counts.parking_booked) == (1, 0)


@pytest.mark.asyncio
async def test_racing_reserves_never_exceed_quota(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    office = Office(id="office-a", name="Office A", desk_quota=1, parking_quota=0)

    results = await asyncio.gather(*(ledger.reserve(office, DAY, False) for _ in range(5)), return_exceptions=True)

    granted = [r for r in results if isinstance(r, SlotCounts)]
    refused = [r for r in results if isinstance(r, DeskFullError)]
    assert len(granted) == 1
    assert len(refused) == 4
    assert (await ledger.counts("office-a", DAY, DAY))[DAY].desks_booked == 1


@pytest.mark.asyncio
async def test_counts_and_purge(sessions: async_sessionmaker[AsyncSession]) -> None:
    ledger = SqlAlchemyCapacityLedger(sessions)
    await ledger.reserve(OFFICE, date(2026, 10, 1), False)
    await ledger.reserve(OFFICE, DAY, False)

    assert list(await ledger.counts("office-a", date(2026, 10, 1), DAY)) == [date(2026, 10, 1), DAY]
    assert await ledger.counts("office-b", date(2026, 10, 1), DAY) == {}

    assert await ledger.purge_before(date(2026, 10, 2)) == 1
    assert list(await ledger.counts("office-a", date(2026, 10, 1), DAY)) == [DAY]
