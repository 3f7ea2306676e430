from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import (
    get_booking_repo,
    get_clock,
    get_current_user_email,
    get_ledger,
    get_office_directory,
    get_policy,
    get_user_directory,
)
from ..domain.errors import BookingError
from ..domain.services import BookingPolicy
from ..domain.window import last_bookable_date
from ..infrastructure.directories import ConfiguredOfficeDirectory, SqlAlchemyUserDirectory
from ..infrastructure.ledger import SqlAlchemyCapacityLedger
from ..infrastructure.repositories import SqlAlchemyBookingRepository
from ..schemas import CalendarWeekRead, DayAvailabilityRead, OfficeRead
from ..usecases import offices as office_usecase
from ..utils.time import ZonedClock
from .errors import to_http_exception

MAX_AVAILABILITY_DAYS = 62

router = APIRouter(prefix="/offices", tags=["offices"])


@router.get("", response_model=List[OfficeRead])
async def list_offices(
    offices: ConfiguredOfficeDirectory = Depends(get_office_directory),
) -> list[OfficeRead]:
    return [OfficeRead.from_domain(office) for office in await office_usecase.list_offices(offices)]


@router.get("/{office_id}/availability", response_model=List[DayAvailabilityRead])
async def office_availability(
    office_id: str,
    start: Optional[date] = Query(default=None, description="first day (defaults to today)"),
    end: Optional[date] = Query(default=None, description="last day (defaults to the end of the booking window)"),
    ledger: SqlAlchemyCapacityLedger = Depends(get_ledger),
    offices: ConfiguredOfficeDirectory = Depends(get_office_directory),
    clock: ZonedClock = Depends(get_clock),
    policy: BookingPolicy = Depends(get_policy),
) -> list[DayAvailabilityRead]:
    today = clock.today()
    start = start or today
    end = end or last_bookable_date(today, policy.advance_days)
    if (end - start).days + 1 > MAX_AVAILABILITY_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"range must not exceed {MAX_AVAILABILITY_DAYS} days",
        )
    try:
        items = await office_usecase.office_availability(ledger, offices, office_id=office_id, start=start, end=end)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return [DayAvailabilityRead.from_domain(item) for item in items]


@router.get("/{office_id}/calendar", response_model=List[CalendarWeekRead])
async def office_calendar(
    office_id: str,
    user_email: str = Depends(get_current_user_email),
    ledger: SqlAlchemyCapacityLedger = Depends(get_ledger),
    bookings: SqlAlchemyBookingRepository = Depends(get_booking_repo),
    offices: ConfiguredOfficeDirectory = Depends(get_office_directory),
    users: SqlAlchemyUserDirectory = Depends(get_user_directory),
    clock: ZonedClock = Depends(get_clock),
    policy: BookingPolicy = Depends(get_policy),
) -> list[CalendarWeekRead]:
    try:
        weeks = await office_usecase.office_calendar(
            ledger,
            bookings,
            offices,
            users,
            office_id=office_id,
            user_email=user_email,
            today=clock.today(),
            policy=policy,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return [CalendarWeekRead.from_domain(week) for week in weeks]
