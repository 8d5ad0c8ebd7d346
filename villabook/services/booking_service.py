from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from ..db import Database
from ..errors import InvalidRange, NotFound, Result
from ..models import Booking, BookingKind, Configuration
from .admission import AdmissionRequest, admit
from .blocks import create_manual_block
from .dates import parse_date_only
from .hierarchy import resolve_target
from .ledger import BookingLedger, Occupancy
from .lifecycle import BookingPolicy, apply_transition
from .notifications import NotificationDispatcher, build_dispatcher
from .unit_of_work import run_atomic, run_read

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Guest:
    """Identity handed over by the identity provider; trusted as-is."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class BookingService:
    """
    Entry point for every booking operation. Holds the database handle, the
    booking policy and the notification dispatcher; keeps no per-request state,
    so one instance serves concurrent requests.
    """

    def __init__(self, database: Database, policy: BookingPolicy | None = None, notifier: NotificationDispatcher | None = None):
        self.database = database
        self.policy = policy or BookingPolicy()
        self.notifier = notifier or NotificationDispatcher([])

    @classmethod
    def from_settings(cls, database: Database, settings: Settings) -> "BookingService":
        return cls(
            database,
            policy=BookingPolicy.from_value(settings.BOOKING_INITIAL_STATUS),
            notifier=build_dispatcher(settings),
        )

    def _run(self, work) -> Result:
        return run_atomic(self.database, work, on_commit=self.notifier.publish)

    # ---- writes ----

    def create_booking(self, guest: Guest, target: str, start_date, end_date) -> Result[Booking]:
        request = AdmissionRequest(
            target=target,
            start_date=start_date,
            end_date=end_date,
            guest_id=guest.id,
            guest_email=guest.email,
            guest_name=guest.name,
        )
        return self._run(lambda db: admit(db, request, self.policy.initial_status))

    def transition_booking(self, booking_id: int, action: str, note: Optional[str] = None) -> Result[Booking]:
        """Host action on any booking or block."""
        return self._run(lambda db: apply_transition(db, booking_id, action, note=note))

    def cancel_own_booking(self, guest: Guest, booking_id: int) -> Result[Booking]:
        return self._run(lambda db: apply_transition(db, booking_id, "cancel", guest_id=guest.id))

    def create_manual_block(self, host_id: str, target: str, start_date, end_date, note: Optional[str] = None) -> Result[Booking]:
        return self._run(lambda db: create_manual_block(db, host_id, target, start_date, end_date, note=note))

    # ---- reads ----

    def list_availability(self, target: str, from_date=None, to_date=None) -> list[Occupancy]:
        """Occupied ranges over the target's conflict set, ascending by start date."""
        start = parse_date_only(from_date) if from_date else None
        end = parse_date_only(to_date) if to_date else None
        if start and end and end <= start:
            raise InvalidRange("to must be after from")

        def work(db):
            resolved = resolve_target(db, target)
            return BookingLedger(db).occupancy(resolved.conflict_set, start, end)

        return run_read(self.database, work)

    def get_booking(self, booking_id: int) -> Booking:
        def work(db):
            booking = BookingLedger(db).get(booking_id)
            if booking is None:
                raise NotFound("Booking not found", details={"booking_id": booking_id})
            return booking

        return run_read(self.database, work)

    def list_guest_bookings(self, guest_id: str) -> list[Booking]:
        return run_read(self.database, lambda db: (
            db.query(Booking)
            .filter(Booking.guest_id == guest_id, Booking.kind == BookingKind.GUEST)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        ))

    def list_all_bookings(self, include_blocks: bool = True) -> list[Booking]:
        def work(db):
            q = db.query(Booking)
            if not include_blocks:
                q = q.filter(Booking.kind == BookingKind.GUEST)
            return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

        return run_read(self.database, work)

    def list_configurations(self) -> list[Configuration]:
        def work(db):
            configs = (
                db.query(Configuration)
                .filter(Configuration.active == True)  # noqa: E712
                .order_by(Configuration.price_per_night.asc())
                .all()
            )
            for config in configs:
                config.resources  # load before the session closes
            return configs

        return run_read(self.database, work)
