from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .resource_repository import (
    CoachRepository,
    CourtRepository,
    EquipmentRepository,
    PricingRuleRepository,
    UserRepository,
)

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CoachRepository",
    "CourtRepository",
    "EquipmentRepository",
    "PricingRuleRepository",
    "UserRepository",
]
