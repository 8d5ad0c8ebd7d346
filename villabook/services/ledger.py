from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..models import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    OccupancyLock,
    Resource,
    configuration_resources,
)


@dataclass(frozen=True)
class Occupancy:
    resource_id: int | None
    start_date: date
    end_date: date
    booking_id: int
    source: str  # "lock" or "booking"
    resource_slug: str | None = None


class BookingLedger:
    """
    Reads and writes against bookings and booking_locks for a single unit of work.
    All methods run inside the caller's session/transaction; nothing here commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: int, for_update: bool = False) -> Optional[Booking]:
        q = self.db.query(Booking).filter(Booking.id == booking_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    def lock_resources(self, resource_ids: Iterable[int]) -> list[int]:
        """
        Row-lock the resources of a conflict set in id order so concurrent
        admissions touching any shared resource serialize behind each other.
        SQLite renders no FOR UPDATE; there the whole transaction already holds
        the database write lock.
        """
        ids = sorted(set(resource_ids))
        if not ids:
            return []
        stmt = select(Resource.id).where(Resource.id.in_(ids)).order_by(Resource.id).with_for_update()
        return list(self.db.execute(stmt).scalars())

    def _configurations_touching(self, resource_ids: Iterable[int]):
        return select(configuration_resources.c.configuration_id).where(
            configuration_resources.c.resource_id.in_(list(resource_ids))
        )

    def find_conflicts(
        self,
        resource_ids: Iterable[int],
        start: date,
        end: date,
        exclude_booking_id: int | None = None,
    ) -> list[Occupancy]:
        """Active bookings and locks over `resource_ids` whose range overlaps [start, end)."""
        ids = list(set(resource_ids))
        if not ids:
            return []
        found: list[Occupancy] = []

        bookings = self.db.query(Booking).filter(
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_date < end,
            Booking.end_date > start,
            or_(
                Booking.resource_id.in_(ids),
                Booking.configuration_id.in_(self._configurations_touching(ids)),
            ),
        )
        if exclude_booking_id is not None:
            bookings = bookings.filter(Booking.id != exclude_booking_id)
        for b in bookings.order_by(Booking.start_date.asc()).all():
            found.append(Occupancy(b.resource_id, b.start_date, b.end_date, b.id, "booking"))

        locks = self.db.query(OccupancyLock).filter(
            OccupancyLock.resource_id.in_(ids),
            OccupancyLock.start_date < end,
            OccupancyLock.end_date > start,
        )
        if exclude_booking_id is not None:
            locks = locks.filter(OccupancyLock.booking_id != exclude_booking_id)
        for lock in locks.order_by(OccupancyLock.start_date.asc()).all():
            found.append(Occupancy(lock.resource_id, lock.start_date, lock.end_date, lock.booking_id, "lock"))
        return found

    def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def add_locks(self, booking: Booking, resource_ids: Iterable[int]) -> list[OccupancyLock]:
        locks = [
            OccupancyLock(
                resource_id=rid,
                start_date=booking.start_date,
                end_date=booking.end_date,
                booking_id=booking.id,
            )
            for rid in sorted(set(resource_ids))
        ]
        self.db.add_all(locks)
        self.db.flush()
        return locks

    def delete_locks(self, booking_id: int) -> int:
        deleted = (
            self.db.query(OccupancyLock)
            .filter(OccupancyLock.booking_id == booking_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return int(deleted or 0)

    def count_locks(self, booking_id: int) -> int:
        return self.db.query(OccupancyLock).filter(OccupancyLock.booking_id == booking_id).count()

    def occupied_resources(self, booking: Booking) -> list[int]:
        """Physical resources a booking holds: its resource, or every resource of its configuration."""
        if booking.resource_id is not None:
            return [booking.resource_id]
        rows = self.db.execute(
            select(configuration_resources.c.resource_id).where(
                configuration_resources.c.configuration_id == booking.configuration_id
            )
        )
        return sorted(rows.scalars())

    def occupancy(
        self,
        resource_ids: Iterable[int],
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[Occupancy]:
        """
        Calendar view over `resource_ids`: every lock, plus pending bookings
        expanded to the resources they occupy. Confirmed bookings are covered
        by their locks. Sorted by start date.
        """
        ids = set(resource_ids)
        if not ids:
            return []
        slugs = dict(self.db.query(Resource.id, Resource.slug).filter(Resource.id.in_(ids)).all())
        rows: list[Occupancy] = []

        locks = self.db.query(OccupancyLock).filter(OccupancyLock.resource_id.in_(ids))
        if to_date is not None:
            locks = locks.filter(OccupancyLock.start_date < to_date)
        if from_date is not None:
            locks = locks.filter(OccupancyLock.end_date > from_date)
        for lock in locks.all():
            rows.append(Occupancy(lock.resource_id, lock.start_date, lock.end_date, lock.booking_id, "lock", slugs.get(lock.resource_id)))

        pending = self.db.query(Booking).filter(
            Booking.status == BookingStatus.PENDING,
            or_(
                Booking.resource_id.in_(ids),
                Booking.configuration_id.in_(self._configurations_touching(ids)),
            ),
        )
        if to_date is not None:
            pending = pending.filter(Booking.start_date < to_date)
        if from_date is not None:
            pending = pending.filter(Booking.end_date > from_date)
        for b in pending.all():
            for rid in self.occupied_resources(b):
                if rid in ids:
                    rows.append(Occupancy(rid, b.start_date, b.end_date, b.id, "booking", slugs.get(rid)))

        rows.sort(key=lambda o: (o.start_date, o.resource_id or 0, o.booking_id))
        return rows
