from sqlalchemy.orm import Session

from ..errors import Result
from ..models import Booking, BookingKind, BookingStatus
from .admission import AdmissionRequest, admit


def create_manual_block(
    db: Session,
    host_id: str,
    target: str,
    start_date,
    end_date,
    note: str | None = None,
) -> Result[Booking]:
    """
    Host-created occupancy with no guest and no price. It goes through the
    same admission check as a guest booking and starts out confirmed, so it
    holds locks exactly like a confirmed reservation and is released by the
    regular cancel transition.
    """
    request = AdmissionRequest(
        target=target,
        start_date=start_date,
        end_date=end_date,
        kind=BookingKind.BLOCK,
        note=note,
        created_by=host_id,
    )
    return admit(db, request, BookingStatus.CONFIRMED)
