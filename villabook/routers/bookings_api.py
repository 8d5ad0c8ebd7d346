from datetime import date, datetime
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from ..config import settings
from ..limiter import limiter
from ..models import BookingKind, BookingStatus
from ..security import Identity, require_guest
from ..services.booking_service import BookingService, Guest

router = APIRouter(prefix="/api/v1", tags=["bookings"])

# ==== Schemas ====

class BookingOut(BaseModel):
    id: int
    kind: BookingKind
    status: BookingStatus
    guest_id: Optional[str] = None
    guest_name: Optional[str] = None
    resource_id: Optional[int] = None
    configuration_id: Optional[int] = None
    start_date: date
    end_date: date
    nights: int
    total_price: Optional[float] = None
    decision_note: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        from_attributes = True

class BookingCreateIn(BaseModel):
    # Configuration slug or resource slug
    target: str = Field(min_length=1, max_length=100)
    start_date: str
    end_date: str
    guest_name: Optional[str] = Field(default=None, max_length=200)

class ConfigurationOut(BaseModel):
    slug: str
    label: str
    price_per_night: float
    resources: List[str]

class OccupancyOut(BaseModel):
    resource_id: int
    resource_slug: Optional[str] = None
    start_date: date
    end_date: date
    booking_id: int

# ==== Helpers ====

def get_service(request: Request) -> BookingService:
    return request.app.state.booking_service

def as_guest(identity: Identity, name: Optional[str] = None) -> Guest:
    return Guest(id=identity.user_id, email=identity.email, name=name or identity.name)

# ==== Catalog & availability (public) ====

@router.get("/configurations", response_model=List[ConfigurationOut])
def api_configurations(service: BookingService = Depends(get_service)):
    return [
        ConfigurationOut(
            slug=c.slug,
            label=c.label,
            price_per_night=float(c.price_per_night),
            resources=[r.slug for r in c.resources],
        )
        for c in service.list_configurations()
    ]

@router.get("/availability", response_model=List[OccupancyOut])
def api_availability(
    target: str,
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    service: BookingService = Depends(get_service),
):
    """Occupied, half-open date ranges for a configuration or resource. No guest data."""
    return [
        OccupancyOut(
            resource_id=o.resource_id,
            resource_slug=o.resource_slug,
            start_date=o.start_date,
            end_date=o.end_date,
            booking_id=o.booking_id,
        )
        for o in service.list_availability(target, from_date, to_date)
    ]

# ==== Guest bookings ====

@router.get("/bookings", response_model=List[BookingOut])
def api_my_bookings(identity: Identity = Depends(require_guest), service: BookingService = Depends(get_service)):
    return service.list_guest_bookings(identity.user_id)

@router.post("/bookings", response_model=BookingOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_BOOKING)
def api_create_booking(request: Request, payload: BookingCreateIn, identity: Identity = Depends(require_guest), service: BookingService = Depends(get_service)):
    result = service.create_booking(
        as_guest(identity, payload.guest_name),
        payload.target,
        payload.start_date,
        payload.end_date,
    )
    return result.unwrap()

@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
def api_cancel_my_booking(booking_id: int, identity: Identity = Depends(require_guest), service: BookingService = Depends(get_service)):
    return service.cancel_own_booking(as_guest(identity), booking_id).unwrap()
