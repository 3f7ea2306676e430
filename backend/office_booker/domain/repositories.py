from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from ..models import Booking
from .entities import Office, SlotCounts, SlotRelease, UserQuota


class CapacityLedger(Protocol):
    async def reserve(self, office: Office, day: date, wants_parking: bool) -> SlotCounts: ...

    async def release(self, office_id: str, day: date, had_parking: bool) -> SlotRelease: ...

    async def restore(self, office_id: str, day: date, released: SlotRelease) -> None: ...

    async def counts(self, office_id: str, start: date, end: date) -> dict[date, SlotCounts]: ...

    async def purge_before(self, cutoff: date) -> int: ...


class BookingRepository(Protocol):
    async def find_by_user(self, user_email: str) -> Sequence[Booking]: ...

    async def find_by_office_and_date(self, office_id: str, day: date) -> Sequence[Booking]: ...

    async def find_one(self, office_id: str, day: date, user_email: str) -> Booking | None: ...

    async def get(self, booking_id: str) -> Booking | None: ...

    async def insert(self, booking: Booking) -> Booking: ...

    async def delete(self, booking_id: str) -> None: ...

    async def delete_before(self, cutoff: date) -> int: ...


class OfficeDirectory(Protocol):
    async def get(self, office_id: str) -> Office | None: ...

    async def list(self) -> Sequence[Office]: ...


class UserDirectory(Protocol):
    async def get(self, email: str) -> UserQuota: ...
