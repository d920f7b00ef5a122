from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column
from ..session import Base
from ...core.constants import DEFAULT_RULE_PRIORITY


class RuleKind(str, PyEnum):
    multiplier = "multiplier"
    fixed = "fixed"


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    kind: Mapped[RuleKind] = mapped_column(Enum(RuleKind), default=RuleKind.multiplier)
    value: Mapped[float] = mapped_column(Numeric(10, 4), nullable=False)
    court_types: Mapped[list | None] = mapped_column(JSON)
    court_ids: Mapped[list | None] = mapped_column(JSON)
    # "HH:MM", compared with the UTC time of day of the booking start
    window_start: Mapped[str | None] = mapped_column(String(5))
    window_end: Mapped[str | None] = mapped_column(String(5))
    priority: Mapped[int] = mapped_column(Integer, default=DEFAULT_RULE_PRIORITY)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
