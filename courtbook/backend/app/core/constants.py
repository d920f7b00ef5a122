"""Common application-wide constants."""

from datetime import timedelta
from decimal import Decimal

# Coaches are charged for at least this long, however short the booking
COACH_MINIMUM_CHARGE = timedelta(hours=1)

MONEY_QUANT = Decimal("0.01")

DEFAULT_RULE_PRIORITY = 100

# Key under Court.meta stamped after every committed booking
LAST_BOOKING_META_KEY = "last_booking_at"


__all__ = [
    "COACH_MINIMUM_CHARGE",
    "MONEY_QUANT",
    "DEFAULT_RULE_PRIORITY",
    "LAST_BOOKING_META_KEY",
]
