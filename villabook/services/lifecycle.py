from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import Conflict, InvalidTransition, NotFound, Result
from ..models import Booking, BookingKind, BookingStatus, Resource, utcnow
from .hierarchy import resolve_conflict_set
from .ledger import BookingLedger
from .notifications import NotificationEvent, booking_snapshot

logger = logging.getLogger(__name__)

ACTIONS = ("confirm", "reject", "cancel")

# (current status, action) -> next status. Anything missing is illegal.
TRANSITIONS: dict[tuple[BookingStatus, str], BookingStatus] = {
    (BookingStatus.PENDING, "confirm"): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, "reject"): BookingStatus.REJECTED,
    (BookingStatus.PENDING, "cancel"): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, "cancel"): BookingStatus.CANCELLED,
}

TEMPLATE_FOR_ACTION = {
    "confirm": "booking_confirmed",
    "reject": "booking_rejected",
    "cancel": "booking_cancelled",
}


@dataclass(frozen=True)
class BookingPolicy:
    """Where new guest bookings start. Pending bookings occupy dates in either mode."""

    initial_status: BookingStatus = BookingStatus.PENDING

    @classmethod
    def from_value(cls, value: str) -> "BookingPolicy":
        status = BookingStatus((value or "pending").lower())
        if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise ValueError(f"Bookings cannot start as {status.value!r}")
        return cls(initial_status=status)


def validate_transition(current: BookingStatus, action: str) -> BookingStatus:
    """Return the status `action` leads to from `current`, or raise InvalidTransition."""
    if action not in ACTIONS:
        raise InvalidTransition(f"Unknown action {action!r}", details={"action": action})
    nxt = TRANSITIONS.get((current, action))
    if nxt is None:
        raise InvalidTransition(
            f"Cannot {action} a {current.value} booking",
            details={"status": current.value, "action": action},
        )
    return nxt


def _conflict_set_for(db: Session, ledger: BookingLedger, booking: Booking) -> tuple[list[int], set[int]]:
    occupied = ledger.occupied_resources(booking)
    conflict_set: set[int] = set()
    for resource in db.query(Resource).filter(Resource.id.in_(occupied)).all():
        conflict_set |= resolve_conflict_set(resource)
    return occupied, conflict_set


def _confirm(db: Session, ledger: BookingLedger, booking: Booking) -> Optional[Conflict]:
    occupied, conflict_set = _conflict_set_for(db, ledger, booking)
    ledger.lock_resources(conflict_set)
    conflicts = ledger.find_conflicts(conflict_set, booking.start_date, booking.end_date, exclude_booking_id=booking.id)
    if conflicts:
        logger.info(
            "Confirm refused for booking #%s: overlaps booking(s) %s",
            booking.id, sorted({c.booking_id for c in conflicts}),
        )
        return Conflict(
            "Booking overlaps an existing reservation",
            details={"booking_id": booking.id, "conflicts": sorted({c.booking_id for c in conflicts})},
        )
    ledger.add_locks(booking, occupied)
    booking.status = BookingStatus.CONFIRMED
    booking.confirmed_at = utcnow()
    return None


def apply_transition(
    db: Session,
    booking_id: int,
    action: str,
    note: Optional[str] = None,
    guest_id: Optional[str] = None,
) -> Result[Booking]:
    """
    Move a booking along the lifecycle inside the caller's transaction.
    With `guest_id` set the caller is a guest acting on their own booking:
    only guest bookings owned by that id are visible.
    """
    ledger = BookingLedger(db)
    booking = ledger.get(booking_id, for_update=True)
    if booking is None or (
        guest_id is not None and (booking.kind != BookingKind.GUEST or booking.guest_id != guest_id)
    ):
        return Result.failure(NotFound("Booking not found", details={"booking_id": booking_id}))

    previous = booking.status
    try:
        validate_transition(previous, action)
    except InvalidTransition as exc:
        logger.info("Booking #%s: %s", booking_id, exc.message)
        return Result.failure(exc)

    if action == "confirm":
        conflict = _confirm(db, ledger, booking)
        if conflict is not None:
            return Result.failure(conflict)
        if note:
            booking.decision_note = note
    elif action == "reject":
        booking.status = BookingStatus.REJECTED
        booking.decision_note = note
    else:
        if previous == BookingStatus.CONFIRMED:
            removed = ledger.delete_locks(booking.id)
            logger.debug("Released %s lock(s) held by booking #%s", removed, booking.id)
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = utcnow()
        if note:
            booking.decision_note = note
    db.flush()

    logger.info("Booking #%s %s -> %s", booking.id, previous.value, booking.status.value)
    event = NotificationEvent(
        recipient_address=booking.guest_email,
        template_kind=TEMPLATE_FOR_ACTION[action],
        booking_snapshot=booking_snapshot(booking),
    )
    return Result.success(booking, events=[event])
