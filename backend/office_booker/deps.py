import re

from fastapi import Header, HTTPException, status

from .config import get_settings
from .database import async_session
from .domain.services import BookingPolicy
from .infrastructure.directories import ConfiguredOfficeDirectory, SqlAlchemyUserDirectory
from .infrastructure.ledger import SqlAlchemyCapacityLedger
from .infrastructure.repositories import SqlAlchemyBookingRepository
from .utils.time import ZonedClock

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


async def get_current_user_email(x_user_email: str | None = Header(default=None)) -> str:
    if x_user_email is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Email header required")
    email = x_user_email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-User-Email")
    return email


def get_policy() -> BookingPolicy:
    settings = get_settings()
    return BookingPolicy(
        advance_days=settings.advance_booking_days,
        week_starts_on=settings.week_starts_on,
        allow_same_day_cancellation=settings.allow_same_day_cancellation,
        retention_days=settings.data_retention_days,
    )


def get_clock() -> ZonedClock:
    return ZonedClock(get_settings().zone)


def get_ledger() -> SqlAlchemyCapacityLedger:
    return SqlAlchemyCapacityLedger(async_session, max_attempts=get_settings().reserve_max_attempts)


def get_booking_repo() -> SqlAlchemyBookingRepository:
    return SqlAlchemyBookingRepository(async_session)


def get_office_directory() -> ConfiguredOfficeDirectory:
    return ConfiguredOfficeDirectory(get_settings().offices)


def get_user_directory() -> SqlAlchemyUserDirectory:
    return SqlAlchemyUserDirectory(async_session, default_weekly_quota=get_settings().default_weekly_quota)
