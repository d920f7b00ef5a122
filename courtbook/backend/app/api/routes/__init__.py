from . import (
    admin,
    auth,
    bookings,
    courts,
    misc,
)

__all__ = [
    "admin",
    "auth",
    "bookings",
    "courts",
    "misc",
]
