from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.errors import DuplicateBookingError, NotFoundError, StorageUnavailableError
from ..domain.repositories import BookingRepository
from ..models import Booking


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self.sessions = sessions

    async def find_by_user(self, user_email: str) -> List[Booking]:
        stmt = select(Booking).where(Booking.user_email == user_email.lower()).order_by(Booking.date, Booking.office_id)
        return await self._all(stmt)

    async def find_by_office_and_date(self, office_id: str, day: date) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.office_id == office_id, Booking.date == day)
            .order_by(Booking.created_at)
        )
        return await self._all(stmt)

    async def find_one(self, office_id: str, day: date, user_email: str) -> Optional[Booking]:
        stmt = select(Booking).where(
            Booking.office_id == office_id,
            Booking.date == day,
            Booking.user_email == user_email.lower(),
        )
        async with self.sessions() as session:
            try:
                return await session.scalar(stmt)
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc

    async def get(self, booking_id: str) -> Optional[Booking]:
        async with self.sessions() as session:
            try:
                return await session.get(Booking, booking_id)
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc

    async def insert(self, booking: Booking) -> Booking:
        """Persist a new booking; the unique (office, date, user) key rejects duplicates."""
        try:
            async with self.sessions() as session, session.begin():
                session.add(booking)
        except IntegrityError as exc:
            raise DuplicateBookingError() from exc
        except SQLAlchemyError as exc:
            raise StorageUnavailableError() from exc
        return booking

    async def delete(self, booking_id: str) -> None:
        try:
            async with self.sessions() as session, session.begin():
                result = await session.execute(delete(Booking).where(Booking.id == booking_id))
                deleted = result.rowcount
        except SQLAlchemyError as exc:
            raise StorageUnavailableError() from exc
        if not deleted:
            raise NotFoundError("booking not found")

    async def delete_before(self, cutoff: date) -> int:
        try:
            async with self.sessions() as session, session.begin():
                result = await session.execute(delete(Booking).where(Booking.date < cutoff))
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise StorageUnavailableError() from exc

    async def _all(self, stmt) -> List[Booking]:
        async with self.sessions() as session:
            try:
                rows = await session.scalars(stmt)
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc
            return list(rows.all())
