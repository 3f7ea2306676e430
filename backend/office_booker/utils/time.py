from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def today(self) -> date: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ZonedClock:
    """Calendar "today" in the reference time zone."""

    def __init__(self, zone: ZoneInfo, source: Optional[Callable[[], datetime]] = None) -> None:
        self.zone = zone
        self._source = source or _utc_now

    def today(self) -> date:
        return local_date(self._source(), self.zone)


def local_date(moment: datetime, zone: ZoneInfo) -> date:
    if moment.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return moment.astimezone(zone).date()


def utc_now_naive() -> datetime:
    return _utc_now().replace(tzinfo=None)
