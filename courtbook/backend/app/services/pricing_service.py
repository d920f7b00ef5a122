"""Rule-based court pricing.

``compute_price`` is pure: given the same court, start time and rules it always
returns the same quote, adjustments in the same order. Both the price preview
endpoint and the booking transaction go through it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from ..core.clock import ensure_utc, round2
from ..core.exceptions import NotFoundError, ValidationError
from ..db import models
from ..db.models.pricing_rule import RuleKind
from ..repositories import CourtRepository, PricingRuleRepository


@dataclass(frozen=True, slots=True)
class RuleAdjustment:
    rule_name: str
    kind: str
    value: Decimal
    applied_amount: Decimal

    def as_dict(self) -> dict:
        return {
            "rule_name": self.rule_name,
            "kind": self.kind,
            "value": float(self.value),
            "applied_amount": float(self.applied_amount),
        }


@dataclass(frozen=True, slots=True)
class PriceQuote:
    base_price: Decimal
    price_after_rules: Decimal
    adjustments: tuple[RuleAdjustment, ...] = field(default_factory=tuple)


def _to_decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def _minutes(clock: str) -> int:
    hours, _, minutes = clock.partition(":")
    return int(hours) * 60 + int(minutes or 0)


def _within_window(rule, start_minutes: int) -> bool:
    if not rule.window_start or not rule.window_end:
        return True
    # No wraparound: a window whose end is not after its start never matches
    return _minutes(rule.window_start) <= start_minutes < _minutes(rule.window_end)


def _in_scope(rule, court) -> bool:
    if rule.court_types and court.court_type not in rule.court_types:
        return False
    if rule.court_ids and str(court.id) not in {str(court_id) for court_id in rule.court_ids}:
        return False
    return True


def compute_price(
    base_price: Decimal | float | int,
    court,
    start_time: datetime,
    rules: Iterable,
) -> PriceQuote:
    """Apply the matching rules to ``base_price``, highest priority first.

    Rules compound: each one sees the price left by the rules before it. A
    multiplier records ``price * (value - 1)`` as its applied amount, a fixed
    rule records its value.
    """
    start = ensure_utc(start_time)
    start_minutes = start.hour * 60 + start.minute
    base = _to_decimal(base_price)
    price = base
    adjustments: list[RuleAdjustment] = []

    for rule in sorted(rules, key=lambda r: -(r.priority or 0)):
        if not rule.is_active:
            continue
        if not _in_scope(rule, court):
            continue
        if not _within_window(rule, start_minutes):
            continue

        value = _to_decimal(rule.value)
        kind = RuleKind(rule.kind)
        if kind == RuleKind.multiplier:
            applied = price * (value - 1)
            price = price * value
        else:
            applied = value
            price = price + value
        adjustments.append(
            RuleAdjustment(
                rule_name=rule.name or "rule",
                kind=kind.value,
                value=value,
                applied_amount=applied,
            )
        )

    return PriceQuote(
        base_price=base,
        price_after_rules=round2(price),
        adjustments=tuple(adjustments),
    )


class PricingService:
    def __init__(
        self,
        courts: CourtRepository | None = None,
        rules: PricingRuleRepository | None = None,
    ) -> None:
        self.courts = courts or CourtRepository()
        self.rules = rules or PricingRuleRepository()

    def quote_for_court(self, db: Session, court: models.Court, start_time: datetime) -> PriceQuote:
        active_rules: Sequence[models.PricingRule] = self.rules.list_active(db)
        return compute_price(court.base_price, court, start_time, active_rules)

    def quote(
        self, db: Session, court_id: int, start_time: datetime, end_time: datetime
    ) -> PriceQuote:
        """Price preview for a court and window; reads only."""
        if ensure_utc(end_time) <= ensure_utc(start_time):
            raise ValidationError("End time must be after start time")
        court = self.courts.get(db, court_id)
        if court is None:
            raise NotFoundError("Court not found", details={"court_id": court_id})
        return self.quote_for_court(db, court, start_time)
