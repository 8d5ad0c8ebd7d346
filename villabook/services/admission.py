from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from ..errors import BookingError, Conflict, Result
from ..models import Booking, BookingKind, BookingStatus, utcnow
from .dates import validate_range
from .hierarchy import resolve_target
from .ledger import BookingLedger

logger = logging.getLogger(__name__)


@dataclass
class AdmissionRequest:
    target: str
    start_date: date | str | Any
    end_date: date | str | Any
    guest_id: str | None = None
    guest_email: str | None = None
    guest_name: str | None = None
    kind: BookingKind = BookingKind.GUEST
    note: str | None = None
    created_by: str | None = None


def admit(db: Session, request: AdmissionRequest, initial_status: BookingStatus) -> Result[Booking]:
    """
    Check-then-insert for a new booking or manual block, inside the caller's transaction.

    1. validate the range and resolve the target's conflict set
    2. lock the conflict set and look for overlapping bookings/locks
    3. on overlap return a Conflict failure; the caller rolls back
    4. otherwise insert the booking priced at nights x rate, plus its locks
       when it starts out confirmed
    """
    try:
        start, end, nights = validate_range(request.start_date, request.end_date)
        target = resolve_target(db, request.target)
    except BookingError as exc:
        return Result.failure(exc)

    ledger = BookingLedger(db)
    ledger.lock_resources(target.conflict_set)
    conflicts = ledger.find_conflicts(target.conflict_set, start, end)
    if conflicts:
        logger.info(
            "Admission refused for %s [%s, %s): overlaps booking(s) %s",
            target.key, start, end, sorted({c.booking_id for c in conflicts}),
        )
        return Result.failure(
            Conflict(details={"target": target.key, "start_date": start.isoformat(), "end_date": end.isoformat()})
        )

    is_block = request.kind == BookingKind.BLOCK
    booking = Booking(
        kind=request.kind,
        guest_id=None if is_block else request.guest_id,
        guest_email=None if is_block else request.guest_email,
        guest_name=None if is_block else request.guest_name,
        created_by=request.created_by or request.guest_id,
        resource_id=target.resource_id,
        configuration_id=target.configuration_id,
        start_date=start,
        end_date=end,
        status=initial_status,
        total_price=None if is_block else target.nightly_rate * nights,
        decision_note=request.note,
        created_at=utcnow(),
    )
    ledger.add_booking(booking)
    if initial_status == BookingStatus.CONFIRMED:
        booking.confirmed_at = booking.created_at
        ledger.add_locks(booking, target.occupied)

    logger.info(
        "Admitted %s #%s on %s [%s, %s) status=%s nights=%s",
        booking.kind.value, booking.id, target.key, start, end, initial_status.value, nights,
    )
    return Result.success(booking)
