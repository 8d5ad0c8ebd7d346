from .resource import Resource
from .configuration import Configuration, configuration_resources
from .booking import Booking, BookingKind, BookingStatus, OccupancyLock, ACTIVE_STATUSES, utcnow
