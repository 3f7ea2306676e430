from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Optional

from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Boolean, Date, DateTime, Integer, String


class Base(DeclarativeBase):
    pass


class BookingState(StrEnum):
    REQUESTED = "requested"
    VALIDATED = "validated"
    RESERVED = "reserved"
    PERSISTED = "persisted"
    REJECTED = "rejected"
    RELEASED = "released"
    REMOVED = "removed"


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    weekly_quota: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("office_id", "date", "user_email", name="uq_bookings_office_date_user"),
        Index("idx_bookings_user", "user_email"),
        Index("idx_bookings_office_date", "office_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    office_id: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    parking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class SlotCounter(Base):
    __tablename__ = "slot_counters"
    __table_args__ = (
        CheckConstraint("desks_booked >= 0", name="chk_counters_desks"),
        CheckConstraint("parking_booked >= 0", name="chk_counters_parking"),
    )

    office_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    desks_booked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parking_booked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
