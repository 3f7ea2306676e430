from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Office:
    id: str
    name: str
    desk_quota: int
    parking_quota: int


@dataclass(frozen=True)
class UserQuota:
    email: str
    weekly_quota: int


@dataclass(frozen=True)
class SlotCounts:
    office_id: str
    date: date
    desks_booked: int = 0
    parking_booked: int = 0

    def desks_available(self, office: Office) -> int:
        return max(office.desk_quota - self.desks_booked, 0)

    def parking_available(self, office: Office) -> int:
        return max(office.parking_quota - self.parking_booked, 0)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class DayAvailability:
    date: date
    desks_available: int
    parking_available: int


@dataclass(frozen=True)
class SlotRelease:
    """Which counters a release actually decremented; a counter already at zero is left alone."""

    desk: bool
    parking: bool = False

    @property
    def freed_anything(self) -> bool:
        return self.desk or self.parking
