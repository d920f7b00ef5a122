from . import (
    admin,
    availability_service,
    booking_service,
    pricing_service,
    seed,
)
__all__ = [
    "admin",
    "availability_service",
    "booking_service",
    "pricing_service",
    "seed",
]
