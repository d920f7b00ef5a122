from .user import User, UserRole
from .court import Court
from .coach import Coach
from .equipment import Equipment
from .pricing_rule import PricingRule, RuleKind
from .booking import Booking, BookingEquipment, BookingStatus
