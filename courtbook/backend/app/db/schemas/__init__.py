from .user import User, UserCreate
from .court import Court, CourtCreate, CourtSlots, BookedWindow
from .resource import Coach, Equipment
from .booking import (
    Booking,
    BookingCreate,
    BookingEquipmentItem,
    EquipmentRequestIn,
    PriceQuote,
    RuleAdjustment,
)
