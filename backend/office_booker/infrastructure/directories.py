from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import OfficeQuota
from ..domain.entities import Office, UserQuota, normalize_email
from ..domain.errors import StorageUnavailableError
from ..domain.repositories import OfficeDirectory, UserDirectory
from ..models import User


class ConfiguredOfficeDirectory(OfficeDirectory):
    """Offices declared in configuration (`OFFICE_QUOTAS`)."""

    def __init__(self, offices: Iterable[OfficeQuota]) -> None:
        self._offices = {
            o.id: Office(id=o.id, name=o.name, desk_quota=o.quota, parking_quota=o.parking_quota) for o in offices
        }

    async def get(self, office_id: str) -> Optional[Office]:
        return self._offices.get(office_id)

    async def list(self) -> List[Office]:
        return sorted(self._offices.values(), key=lambda office: office.name)


class SqlAlchemyUserDirectory(UserDirectory):
    """Weekly quotas per user; users without an override get the configured default."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession], *, default_weekly_quota: int) -> None:
        self.sessions = sessions
        self.default_weekly_quota = default_weekly_quota

    async def get(self, email: str) -> UserQuota:
        email = normalize_email(email)
        async with self.sessions() as session:
            try:
                quota = await session.scalar(select(User.weekly_quota).where(User.email == email))
            except SQLAlchemyError as exc:
                raise StorageUnavailableError() from exc
        return UserQuota(email=email, weekly_quota=quota or self.default_weekly_quota)
