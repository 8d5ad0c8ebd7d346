from typing import Literal, Optional, List
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..security import Identity, require_host
from ..services.booking_service import BookingService
from .bookings_api import BookingOut, get_service

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

# ==== Schemas ====

class AdminBookingOut(BookingOut):
    guest_email: Optional[str] = None
    created_by: Optional[str] = None

class TransitionIn(BaseModel):
    action: Literal["confirm", "reject", "cancel"]
    note: Optional[str] = Field(default=None, max_length=2000)

class BlockCreateIn(BaseModel):
    target: str = Field(min_length=1, max_length=100)
    start_date: str
    end_date: str
    note: Optional[str] = Field(default=None, max_length=2000)

# ==== Endpoints ====

@router.get("/bookings", response_model=List[AdminBookingOut])
def admin_bookings(include_blocks: bool = True, host: Identity = Depends(require_host), service: BookingService = Depends(get_service)):
    return service.list_all_bookings(include_blocks=include_blocks)

@router.get("/bookings/{booking_id}", response_model=AdminBookingOut)
def admin_booking_detail(booking_id: int, host: Identity = Depends(require_host), service: BookingService = Depends(get_service)):
    return service.get_booking(booking_id)

@router.patch("/bookings/{booking_id}", response_model=AdminBookingOut)
def admin_transition_booking(booking_id: int, payload: TransitionIn, host: Identity = Depends(require_host), service: BookingService = Depends(get_service)):
    return service.transition_booking(booking_id, payload.action, payload.note).unwrap()

@router.post("/blocks", response_model=AdminBookingOut, status_code=201)
def admin_create_block(payload: BlockCreateIn, host: Identity = Depends(require_host), service: BookingService = Depends(get_service)):
    result = service.create_manual_block(host.user_id, payload.target, payload.start_date, payload.end_date, payload.note)
    return result.unwrap()
