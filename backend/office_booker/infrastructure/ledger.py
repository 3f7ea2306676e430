from __future__ import annotations

import logging
from datetime import date
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.entities import Office, SlotCounts, SlotRelease
from ..domain.errors import BusyError, DeskFullError, LedgerNotFoundError, ParkingFullError, StorageUnavailableError
from ..domain.repositories import CapacityLedger
from ..models import SlotCounter
from ..utils.booking_log import emit_booking_event

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyCapacityLedger(CapacityLedger):
    """Slot counters per (office, date), changed only through conditional UPDATEs.

    Each call is its own transaction; the database is the only serialization
    point, so any number of processes can share it.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession], *, max_attempts: int = 3) -> None:
        self.sessions = sessions
        self.max_attempts = max_attempts

    async def reserve(self, office: Office, day: date, wants_parking: bool) -> SlotCounts:
        parking = 1 if wants_parking else 0

        async def work(session: AsyncSession) -> SlotCounts:
            await self._ensure_row(session, office.id, day)
            result = await session.execute(
                update(SlotCounter)
                .where(
                    SlotCounter.office_id == office.id,
                    SlotCounter.date == day,
                    SlotCounter.desks_booked < office.desk_quota,
                    SlotCounter.parking_booked + parking <= office.parking_quota,
                )
                .values(
                    desks_booked=SlotCounter.desks_booked + 1,
                    parking_booked=SlotCounter.parking_booked + parking,
                )
                .execution_options(synchronize_session=False)
            )
            current = await self._read(session, office.id, day)
            if current is None:
                raise LedgerNotFoundError()
            if result.rowcount == 1:
                return current
            if current.desks_booked >= office.desk_quota:
                raise DeskFullError()
            raise ParkingFullError()

        return await self._run("reserve", work)

    async def release(self, office_id: str, day: date, had_parking: bool) -> SlotRelease:
        parking = 1 if had_parking else 0

        async def work(session: AsyncSession) -> SlotCounts:
            current = await self._read(session, office_id, day, for_update=True)
            if current is None:
                raise LedgerNotFoundError(f"no slot counters for {office_id} on {day.isoformat()}")
            await session.execute(
                update(SlotCounter)
                .where(SlotCounter.office_id == office_id, SlotCounter.date == day)
                .values(
                    desks_booked=case((SlotCounter.desks_booked > 0, SlotCounter.desks_booked - 1), else_=0),
                    parking_booked=case(
                        (SlotCounter.parking_booked >= parking, SlotCounter.parking_booked - parking), else_=0
                    ),
                )
                .execution_options(synchronize_session=False)
            )
            return current

        before = await self._run("release", work)
        released = SlotRelease(desk=before.desks_booked >= 1, parking=had_parking and before.parking_booked >= 1)
        if not released.desk or released.parking != had_parking:
            emit_booking_event(
                action="ledger.invariant_violation",
                office_id=office_id,
                day=day,
                parking=had_parking,
                reason="release clamped at zero",
                extra={"desks_booked": before.desks_booked, "parking_booked": before.parking_booked},
            )
        return released

    async def restore(self, office_id: str, day: date, released: SlotRelease) -> None:
        """Put back exactly what `release` reported freeing, without quota checks."""
        desks = 1 if released.desk else 0
        parking = 1 if released.parking else 0

        async def work(session: AsyncSession) -> None:
            await self._ensure_row(session, office_id, day)
            await session.execute(
                update(SlotCounter)
                .where(SlotCounter.office_id == office_id, SlotCounter.date == day)
                .values(
                    desks_booked=SlotCounter.desks_booked + desks,
                    parking_booked=SlotCounter.parking_booked + parking,
                )
                .execution_options(synchronize_session=False)
            )

        await self._run("restore", work)

    async def counts(self, office_id: str, start: date, end: date) -> dict[date, SlotCounts]:
        async with self.sessions() as session:
            try:
                rows = await session.execute(
                    select(SlotCounter.office_id, SlotCounter.date, SlotCounter.desks_booked, SlotCounter.parking_booked)
                    .where(SlotCounter.office_id == office_id, SlotCounter.date >= start, SlotCounter.date <= end)
                    .order_by(SlotCounter.date)
                )
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc
            return {row.date: SlotCounts(*row) for row in rows.all()}

    async def purge_before(self, cutoff: date) -> int:
        async def work(session: AsyncSession) -> int:
            result = await session.execute(delete(SlotCounter).where(SlotCounter.date < cutoff))
            return int(result.rowcount or 0)

        return await self._run("purge", work)

    async def _run(self, action: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.sessions() as session, session.begin():
                    return await work(session)
            except IntegrityError as exc:
                # Two writers created the same counter row; the next attempt sees it.
                logger.warning("slot counter %s conflict (attempt %d/%d): %s", action, attempt, self.max_attempts, exc.orig)
            except OperationalError as exc:
                if exc.connection_invalidated:
                    raise StorageUnavailableError() from exc
                logger.warning("slot counter %s contention (attempt %d/%d): %s", action, attempt, self.max_attempts, exc.orig)
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc
        raise BusyError()

    async def _ensure_row(self, session: AsyncSession, office_id: str, day: date) -> None:
        existing = await session.scalar(
            select(SlotCounter.office_id).where(SlotCounter.office_id == office_id, SlotCounter.date == day)
        )
        if existing is None:
            session.add(SlotCounter(office_id=office_id, date=day, desks_booked=0, parking_booked=0))
            await session.flush()

    async def _read(
        self,
        session: AsyncSession,
        office_id: str,
        day: date,
        *,
        for_update: bool = False,
    ) -> SlotCounts | None:
        stmt = select(
            SlotCounter.office_id, SlotCounter.date, SlotCounter.desks_booked, SlotCounter.parking_booked
        ).where(SlotCounter.office_id == office_id, SlotCounter.date == day)
        if for_update:
            stmt = stmt.with_for_update()
        row = (await session.execute(stmt)).first()
        return SlotCounts(*row) if row is not None else None
