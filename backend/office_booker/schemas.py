from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_serializer

from .domain.calendar import BookableDay, CalendarWeek, UnbookableDay
from .domain.entities import DayAvailability, Office
from .models import Booking


class BookingCreate(BaseModel):
    office_id: str = Field(min_length=1)
    date: date
    parking: bool = False


class BookingRead(BaseModel):
    booking_id: str
    office_id: str
    date: date
    user_email: str
    parking: bool
    created_at: datetime

    @field_serializer("created_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return dt.isoformat() + "Z" if dt.tzinfo is None else dt.isoformat()

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            office_id=booking.office_id,
            date=booking.date,
            user_email=booking.user_email,
            parking=booking.parking,
            created_at=booking.created_at,
        )


class OfficeRead(BaseModel):
    office_id: str
    name: str
    desk_quota: int
    parking_quota: int

    @classmethod
    def from_domain(cls, office: Office) -> "OfficeRead":
        return cls(
            office_id=office.id,
            name=office.name,
            desk_quota=office.desk_quota,
            parking_quota=office.parking_quota,
        )


class DayAvailabilityRead(BaseModel):
    date: date
    desks_available: int
    parking_available: int

    @classmethod
    def from_domain(cls, item: DayAvailability) -> "DayAvailabilityRead":
        return cls(date=item.date, desks_available=item.desks_available, parking_available=item.parking_available)


class BookableDayRead(BaseModel):
    kind: Literal["bookable"] = "bookable"
    date: date
    desks_available: int
    parking_available: int
    user_can_book: bool
    booking: Optional[BookingRead] = None


class UnbookableDayRead(BaseModel):
    kind: Literal["unbookable"] = "unbookable"
    date: date
    booking: Optional[BookingRead] = None


DayRead = Annotated[Union[BookableDayRead, UnbookableDayRead], Field(discriminator="kind")]


class CalendarWeekRead(BaseModel):
    start: date
    end: date
    bookings: int
    remaining_quota: int
    days: List[DayRead]

    @classmethod
    def from_domain(cls, week: CalendarWeek) -> "CalendarWeekRead":
        days: List[DayRead] = []
        for day in week.days:
            booking = BookingRead.from_db(booking=day.booking) if day.booking is not None else None
            if isinstance(day, BookableDay):
                days.append(
                    BookableDayRead(
                        date=day.date,
                        desks_available=day.desks_available,
                        parking_available=day.parking_available,
                        user_can_book=day.user_can_book,
                        booking=booking,
                    )
                )
            elif isinstance(day, UnbookableDay):
                days.append(UnbookableDayRead(date=day.date, booking=booking))
        return cls(
            start=week.start,
            end=week.end,
            bookings=week.bookings,
            remaining_quota=week.remaining_quota,
            days=days,
        )
