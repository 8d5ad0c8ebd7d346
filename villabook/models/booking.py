from __future__ import annotations
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional
from enum import Enum as PyEnum
from sqlalchemy import CheckConstraint, Integer, String, ForeignKey, Date, Numeric, Text, Enum, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .configuration import Configuration
    from .resource import Resource


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class BookingKind(str, PyEnum):
    GUEST = "guest"
    BLOCK = "block"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    kind: Mapped[BookingKind] = mapped_column(
        Enum(BookingKind, values_callable=lambda e: [m.value for m in e]), default=BookingKind.GUEST, nullable=False
    )
    # Null for manual blocks
    guest_id: Mapped[str | None] = mapped_column(String(100), index=True)
    guest_email: Mapped[str | None] = mapped_column(String(255))
    guest_name: Mapped[str | None] = mapped_column(String(200))
    # Identity that created the row (the guest, or the host for manual blocks)
    created_by: Mapped[str | None] = mapped_column(String(100))
    # Exactly one target: a physical resource or a configuration
    resource_id: Mapped[int | None] = mapped_column(ForeignKey("resources.id"), index=True)
    configuration_id: Mapped[int | None] = mapped_column(ForeignKey("configurations.id"), index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, values_callable=lambda e: [m.value for m in e]), default=BookingStatus.PENDING, nullable=False, index=True
    )
    total_price: Mapped[float | None] = mapped_column(Numeric(10, 2))
    decision_note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime)

    resource: Mapped[Optional[Resource]] = relationship(back_populates="bookings")
    configuration: Mapped[Optional[Configuration]] = relationship()
    locks: Mapped[list["OccupancyLock"]] = relationship(back_populates="booking", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_bookings_range"),
        CheckConstraint(
            "(resource_id IS NULL) <> (configuration_id IS NULL)", name="ck_bookings_single_target"
        ),
    )

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, kind={self.kind.value}, status={self.status.value}, {self.start_date}..{self.end_date})>"


class OccupancyLock(Base):
    """Materialized occupancy of one resource by a confirmed booking or a manual block."""

    __tablename__ = "booking_locks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("resources.id"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)

    booking: Mapped[Booking] = relationship(back_populates="locks")

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_booking_locks_range"),
    )
