from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

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
from ..infrastructure.directories import ConfiguredOfficeDirectory, SqlAlchemyUserDirectory
from ..infrastructure.ledger import SqlAlchemyCapacityLedger
from ..infrastructure.repositories import SqlAlchemyBookingRepository
from ..schemas import BookingCreate, BookingRead
from ..usecases import bookings as booking_usecase
from ..utils.time import ZonedClock
from .errors import to_http_exception

router = APIRouter(prefix="", tags=["bookings"])


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    user_email: str = Depends(get_current_user_email),
    ledger: SqlAlchemyCapacityLedger = Depends(get_ledger),
    bookings: SqlAlchemyBookingRepository = Depends(get_booking_repo),
    offices: ConfiguredOfficeDirectory = Depends(get_office_directory),
    users: SqlAlchemyUserDirectory = Depends(get_user_directory),
    clock: ZonedClock = Depends(get_clock),
    policy: BookingPolicy = Depends(get_policy),
) -> BookingRead:
    try:
        booking = await booking_usecase.create_booking(
            ledger,
            bookings,
            offices,
            users,
            user_email=user_email,
            office_id=payload.office_id,
            day=payload.date,
            wants_parking=payload.parking,
            today=clock.today(),
            policy=policy,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return BookingRead.from_db(booking=booking)


@router.get("/me/bookings", response_model=List[BookingRead])
async def list_my_bookings(
    user_email: str = Depends(get_current_user_email),
    bookings: SqlAlchemyBookingRepository = Depends(get_booking_repo),
) -> list[BookingRead]:
    try:
        rows = await booking_usecase.list_user_bookings(bookings, user_email=user_email)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return [BookingRead.from_db(booking=booking) for booking in rows]


@router.get("/me/bookings/{booking_id}", response_model=BookingRead)
async def get_my_booking(
    booking_id: str = Path(..., min_length=1),
    user_email: str = Depends(get_current_user_email),
    bookings: SqlAlchemyBookingRepository = Depends(get_booking_repo),
) -> BookingRead:
    try:
        booking = await booking_usecase.get_user_booking(bookings, booking_id=booking_id, user_email=user_email)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
    return BookingRead.from_db(booking=booking)


@router.post("/me/bookings/{booking_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(
    booking_id: str = Path(..., min_length=1),
    user_email: str = Depends(get_current_user_email),
    ledger: SqlAlchemyCapacityLedger = Depends(get_ledger),
    bookings: SqlAlchemyBookingRepository = Depends(get_booking_repo),
    clock: ZonedClock = Depends(get_clock),
    policy: BookingPolicy = Depends(get_policy),
) -> Response:
    try:
        await booking_usecase.cancel_booking(
            ledger,
            bookings,
            booking_id=booking_id,
            user_email=user_email,
            today=clock.today(),
            policy=policy,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
