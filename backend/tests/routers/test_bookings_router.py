from datetime import date, datetime
from typing import Any, Dict, List

import pytest
from fastapi import HTTPException
from office_booker.domain.errors import DeskFullError, ForbiddenError
from office_booker.domain.services import BookingPolicy
from office_booker.models import Booking
from office_booker.routers import bookings as router
from office_booker.schemas import BookingCreate

TODAY = date(2026, 10, 19)


class FixedClock:
    def today(self) -> date:
        return TODAY


def _booking() -> Booking:
    return Booking(
        id="b1",
        office_id="office-a",
        date=date(2026, 10, 21),
        user_email="a@example.com",
        parking=True,
        created_at=datetime(2026, 10, 19, 8, 30),
    )


@pytest.mark.asyncio
async def test_create_booking_passes_request_through(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []

    async def fake_create(*args: object, **kwargs: Any) -> Booking:
        calls.append(kwargs)
        return _booking()

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)
    result = await router.create_booking(
        payload=BookingCreate(office_id="office-a", date=date(2026, 10, 21), parking=True),
        user_email="a@example.com",
        ledger=None,  # type: ignore[arg-type]
        bookings=None,  # type: ignore[arg-type]
        offices=None,  # type: ignore[arg-type]
        users=None,  # type: ignore[arg-type]
        clock=FixedClock(),  # type: ignore[arg-type]
        policy=BookingPolicy(),
    )

    assert result.booking_id == "b1"
    assert result.parking is True
    assert calls[0]["today"] == TODAY
    assert calls[0]["wants_parking"] is True
    assert calls[0]["day"] == date(2026, 10, 21)


@pytest.mark.asyncio
async def test_create_booking_maps_desk_full_to_409(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(*args: object, **kwargs: object) -> Booking:
        raise DeskFullError()

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)
    with pytest.raises(HTTPException) as excinfo:
        await router.create_booking(
            payload=BookingCreate(office_id="office-a", date=date(2026, 10, 21)),
            user_email="a@example.com",
            ledger=None,  # type: ignore[arg-type]
            bookings=None,  # type: ignore[arg-type]
            offices=None,  # type: ignore[arg-type]
            users=None,  # type: ignore[arg-type]
            clock=FixedClock(),  # type: ignore[arg-type]
            policy=BookingPolicy(),
        )
    assert excinfo.value.status_code == 409
    assert excinfo.value.headers == {"X-Error-Code": "desk_full"}


@pytest.mark.asyncio
async def test_cancel_returns_204(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_cancel(*args: object, **kwargs: object) -> Booking:
        return _booking()

    monkeypatch.setattr(router.booking_usecase, "cancel_booking", fake_cancel)
    response = await router.cancel_booking(
        booking_id="b1",
        user_email="a@example.com",
        ledger=None,  # type: ignore[arg-type]
        bookings=None,  # type: ignore[arg-type]
        clock=FixedClock(),  # type: ignore[arg-type]
        policy=BookingPolicy(),
    )
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking_is_403(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_cancel(*args: object, **kwargs: object) -> Booking:
        raise ForbiddenError()

    monkeypatch.setattr(router.booking_usecase, "cancel_booking", fake_cancel)
    with pytest.raises(HTTPException) as excinfo:
        await router.cancel_booking(
            booking_id="b1",
            user_email="m@example.com",
            ledger=None,  # type: ignore[arg-type]
            bookings=None,  # type: ignore[arg-type]
            clock=FixedClock(),  # type: ignore[arg-type]
            policy=BookingPolicy(),
        )
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_get_my_booking_hides_missing_and_foreign(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(*args: object, **kwargs: object) -> None:
        return None

    monkeypatch.setattr(router.booking_usecase, "get_user_booking", fake_get)
    with pytest.raises(HTTPException) as excinfo:
        await router.get_my_booking(booking_id="b1", user_email="a@example.com", bookings=None)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_list_my_bookings(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_list(*args: object, **kwargs: object) -> List[Booking]:
        return [_booking()]

    monkeypatch.setattr(router.booking_usecase, "list_user_bookings", fake_list)
    result = await router.list_my_bookings(user_email="a@example.com", bookings=None)  # type: ignore[arg-type]
    assert [r.booking_id for r in result] == ["b1"]
    assert result[0].model_dump(mode="json")["created_at"] == "2026-10-19T08:30:00Z"
