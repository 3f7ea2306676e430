"""Allocation engine: create, cancel and list bookings against the capacity ledger."""

import asyncio
import logging
import uuid
from datetime import date, timedelta
from typing import Sequence

from ..domain.entities import SlotRelease, normalize_email
from ..domain.errors import (
    AlreadyBookedError,
    BookingError,
    DateNotBookableError,
    DuplicateBookingError,
    ForbiddenError,
    LedgerNotFoundError,
    NotFoundError,
    StorageUnavailableError,
)
from ..domain.quota import remaining_quota
from ..domain.repositories import BookingRepository, CapacityLedger, OfficeDirectory, UserDirectory
from ..domain.services import BookingPolicy, BookingRequestSnapshot, validate_booking_request, validate_cancellation
from ..domain.window import is_date_bookable
from ..models import Booking, BookingState
from ..utils.booking_log import emit_booking_event
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)


async def create_booking(
    ledger: CapacityLedger,
    bookings: BookingRepository,
    offices: OfficeDirectory,
    users: UserDirectory,
    *,
    user_email: str,
    office_id: str,
    day: date,
    wants_parking: bool,
    today: date,
    policy: BookingPolicy,
) -> Booking:
    email = normalize_email(user_email)
    try:
        if not is_date_bookable(day, today, policy.advance_days):
            raise DateNotBookableError(f"{day.isoformat()} is not bookable")
        office = await offices.get(office_id)
        if office is None:
            raise NotFoundError("office not found")
        user = await users.get(email)
        existing = await bookings.find_by_user(email)
        validate_booking_request(
            BookingRequestSnapshot(
                day=day,
                today=today,
                advance_days=policy.advance_days,
                office=office,
                wants_parking=wants_parking,
                remaining_quota=remaining_quota(
                    email, day, user.weekly_quota, existing, week_starts_on=policy.week_starts_on
                ),
                user_has_booking=any(b.office_id == office_id and b.date == day for b in existing),
            )
        )
        # Validated: from here on the request consumes shared capacity.
        await ledger.reserve(office, day, wants_parking)
    except BookingError as exc:
        _reject(exc, office_id=office_id, day=day, user_email=email, parking=wants_parking)
        raise

    booking = Booking(
        id=uuid.uuid4().hex,
        office_id=office_id,
        date=day,
        user_email=email,
        parking=wants_parking,
        created_at=utc_now_naive(),
    )
    try:
        await bookings.insert(booking)
    except DuplicateBookingError:
        await _compensate(ledger, booking)
        error = AlreadyBookedError()
        _reject(
            error,
            office_id=office_id,
            day=day,
            user_email=email,
            parking=wants_parking,
            status_from=BookingState.RESERVED,
        )
        raise error from None
    except BaseException:
        await _compensate(ledger, booking)
        raise

    emit_booking_event(
        action="booking.created",
        booking_id=booking.id,
        office_id=office_id,
        day=day,
        user_email=email,
        parking=wants_parking,
        status_from=BookingState.REQUESTED,
        status_to=BookingState.PERSISTED,
    )
    return booking


async def cancel_booking(
    ledger: CapacityLedger,
    bookings: BookingRepository,
    *,
    booking_id: str,
    user_email: str,
    today: date,
    policy: BookingPolicy,
) -> Booking:
    booking = await bookings.get(booking_id)
    if booking is None:
        raise NotFoundError("booking not found")
    if booking.user_email != normalize_email(user_email):
        raise ForbiddenError()
    validate_cancellation(booking.date, today, allow_same_day=policy.allow_same_day_cancellation)

    try:
        released = await ledger.release(booking.office_id, booking.date, booking.parking)
    except LedgerNotFoundError:
        # Missing counters never block removing the record.
        released = SlotRelease(desk=False)
        emit_booking_event(
            action="ledger.invariant_violation",
            booking_id=booking.id,
            office_id=booking.office_id,
            day=booking.date,
            user_email=booking.user_email,
            parking=booking.parking,
            reason="no slot counters for a persisted booking",
        )

    try:
        await bookings.delete(booking.id)
    except NotFoundError:
        # A concurrent cancel removed it first and released its own slot.
        if released.freed_anything:
            await _restore(ledger, booking, released)
        raise NotFoundError("booking not found") from None

    emit_booking_event(
        action="booking.cancelled",
        booking_id=booking.id,
        office_id=booking.office_id,
        day=booking.date,
        user_email=booking.user_email,
        parking=booking.parking,
        status_from=BookingState.PERSISTED,
        status_to=BookingState.REMOVED,
    )
    return booking


async def list_user_bookings(bookings: BookingRepository, *, user_email: str) -> Sequence[Booking]:
    return await bookings.find_by_user(normalize_email(user_email))


async def get_user_booking(bookings: BookingRepository, *, booking_id: str, user_email: str) -> Booking | None:
    booking = await bookings.get(booking_id)
    if booking is None or booking.user_email != normalize_email(user_email):
        return None
    return booking


async def purge_expired_bookings(
    ledger: CapacityLedger,
    bookings: BookingRepository,
    *,
    today: date,
    retention_days: int,
) -> int:
    """Delete bookings (and their counters) older than the retention period."""
    cutoff = today - timedelta(days=retention_days)
    removed = await bookings.delete_before(cutoff)
    counters = await ledger.purge_before(cutoff)
    emit_booking_event(
        action="bookings.purged",
        day=cutoff,
        extra={"bookings_removed": removed, "counters_removed": counters},
    )
    return removed


def _reject(
    exc: BaseException,
    *,
    office_id: str,
    day: date,
    user_email: str,
    parking: bool,
    status_from: BookingState = BookingState.REQUESTED,
) -> None:
    emit_booking_event(
        action="booking.rejected",
        office_id=office_id,
        day=day,
        user_email=user_email,
        parking=parking,
        status_from=status_from,
        status_to=BookingState.REJECTED,
        reason=getattr(exc, "code", type(exc).__name__),
    )


async def _compensate(ledger: CapacityLedger, booking: Booking) -> None:
    """Give back the slot reserved for a booking that was never persisted.

    Shielded so that cancelling the caller cannot leave the reservation orphaned.
    """
    logger.info("releasing slot for unpersisted booking %s (%s on %s)", booking.id, booking.office_id, booking.date)
    try:
        await asyncio.shield(ledger.release(booking.office_id, booking.date, booking.parking))
    except BookingError as exc:
        emit_booking_event(
            action="ledger.reconciliation_required",
            booking_id=booking.id,
            office_id=booking.office_id,
            day=booking.date,
            user_email=booking.user_email,
            parking=booking.parking,
            status_from=BookingState.RESERVED,
            reason=f"compensating release failed: {exc.code}",
        )
        raise StorageUnavailableError("booking could not be completed, slot needs reconciliation") from exc


async def _restore(ledger: CapacityLedger, booking: Booking, released: SlotRelease) -> None:
    try:
        await asyncio.shield(ledger.restore(booking.office_id, booking.date, released))
    except BookingError as exc:
        emit_booking_event(
            action="ledger.reconciliation_required",
            booking_id=booking.id,
            office_id=booking.office_id,
            day=booking.date,
            user_email=booking.user_email,
            parking=booking.parking,
            status_from=BookingState.RELEASED,
            reason=f"restoring a duplicate release failed: {exc.code}",
        )
        raise StorageUnavailableError() from exc
