from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.clock import ensure_utc, round2, utc_now
from ..core.constants import COACH_MINIMUM_CHARGE, LAST_BOOKING_META_KEY
from ..core.exceptions import (
    ConflictError,
    DomainException,
    ForbiddenError,
    NotFoundError,
    TransactionFailure,
    ValidationError,
)
from ..db import models
from ..db.models.booking import BookingStatus
from ..repositories import (
    BookingRepository,
    CoachRepository,
    CourtRepository,
    EquipmentRepository,
    PricingRuleRepository,
    UserRepository,
)
from .availability_service import AvailabilityChecker
from .pricing_service import PricingService

logger = logging.getLogger(__name__)

# Session.info key holding bookings whose hooks wait for the caller's commit
PENDING_BOOKINGS_KEY = "courtbook.pending_bookings"


@dataclass(frozen=True, slots=True)
class EquipmentRequest:
    equipment_id: int
    quantity: int


@dataclass(frozen=True, slots=True)
class BookingRequest:
    user_id: int
    court_id: int
    start_time: datetime
    end_time: datetime
    equipment: tuple[EquipmentRequest, ...] = ()
    coach_id: int | None = None


@dataclass(frozen=True, slots=True)
class CommittedBooking:
    booking_id: int
    user_id: int
    court_id: int
    committed_at: datetime | None = None


AfterCommitHook = Callable[[Session, CommittedBooking], None]


def touch_court_last_booking(db: Session, event: CommittedBooking) -> None:
    court = db.get(models.Court, event.court_id)
    if court is None:
        return
    meta = dict(court.meta or {})
    meta[LAST_BOOKING_META_KEY] = event.committed_at.isoformat()
    court.meta = meta


def _merge_equipment(requests: Iterable[EquipmentRequest]) -> dict[int, int]:
    """Sum quantities per item; lines with nothing requested are dropped."""
    merged: dict[int, int] = {}
    for item in requests:
        if item.quantity <= 0:
            continue
        merged[item.equipment_id] = merged.get(item.equipment_id, 0) + item.quantity
    return merged


def _coach_fee(hourly_rate, start: datetime, end: datetime) -> Decimal:
    duration = max(end - start, COACH_MINIMUM_CHARGE)
    hours = Decimal(str(duration.total_seconds())) / Decimal(3600)
    return round2(Decimal(str(hourly_rate or 0)) * hours)


def _transaction(db: Session):
    return db.begin_nested() if db.in_transaction() else db.begin()


def _store_error(exc: IntegrityError | OperationalError, log_extra: dict) -> DomainException:
    if isinstance(exc, IntegrityError):
        constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", "")
        logger.warning(
            "Booking hit a store constraint", extra={**log_extra, "constraint": constraint}
        )
        if constraint == "ex_booking_coach_overlap":
            return ConflictError("Coach not available for selected time")
        return ConflictError("Court not available for selected time")
    logger.warning("Booking transaction aborted by the store", extra=log_extra)
    return TransactionFailure("Booking could not be completed, please retry")


class BookingCoordinator:
    """Creates and cancels bookings, one store transaction per operation.

    Resource rows are locked court first, then coach, then equipment by id, so
    two requests for the same resource queue behind each other and the second
    one sees the first one's booking in its overlap and capacity checks.
    """

    def __init__(
        self,
        bookings: BookingRepository | None = None,
        courts: CourtRepository | None = None,
        coaches: CoachRepository | None = None,
        equipment: EquipmentRepository | None = None,
        rules: PricingRuleRepository | None = None,
        users: UserRepository | None = None,
        *,
        tx_timeout_ms: int | None = None,
        after_commit: Sequence[AfterCommitHook] | None = None,
    ) -> None:
        self.bookings = bookings or BookingRepository()
        self.courts = courts or CourtRepository()
        self.coaches = coaches or CoachRepository()
        self.equipment = equipment or EquipmentRepository()
        self.rules = rules or PricingRuleRepository()
        self.users = users or UserRepository()
        self.availability = AvailabilityChecker(
            bookings=self.bookings,
            courts=self.courts,
            coaches=self.coaches,
            equipment=self.equipment,
        )
        self.pricing = PricingService(courts=self.courts, rules=self.rules)
        if tx_timeout_ms is None:
            tx_timeout_ms = get_settings().booking_tx_timeout_ms
        self.tx_timeout_ms = tx_timeout_ms
        self.after_commit = (
            list(after_commit) if after_commit is not None else [touch_court_last_booking]
        )

    def create_booking(self, db: Session, request: BookingRequest) -> models.Booking:
        start = ensure_utc(request.start_time)
        end = ensure_utc(request.end_time)
        if end <= start:
            raise ValidationError("End time must be after start time")
        for item in request.equipment:
            if item.quantity < 0:
                raise ValidationError(
                    "Equipment quantity cannot be negative",
                    details={"equipment_id": item.equipment_id},
                )

        log_extra = {"court_id": request.court_id, "user_id": request.user_id}
        nested = db.in_transaction()
        try:
            with _transaction(db):
                self._apply_timeouts(db)
                booking = self._reserve(db, request, start, end)
                event = CommittedBooking(
                    booking_id=booking.id,
                    user_id=booking.user_id,
                    court_id=booking.court_id,
                )
        except DomainException as exc:
            logger.info("Booking rejected: %s", exc.message, extra={**log_extra, "code": exc.code})
            raise
        except (IntegrityError, OperationalError) as exc:
            raise _store_error(exc, log_extra) from exc

        logger.info("Booking created", extra={**log_extra, "booking_id": event.booking_id})
        if nested:
            # Only a savepoint was released; the caller's commit makes it durable
            db.info.setdefault(PENDING_BOOKINGS_KEY, []).append(event)
        else:
            self._run_after_commit(db, event)
        return booking

    def commit(self, db: Session) -> None:
        """Commit the caller's transaction, then run hooks for bookings made inside it.

        Store aborts at commit time surface as domain errors, like aborts inside
        :meth:`create_booking`. Queued hooks of a failed commit are dropped.
        """
        try:
            db.commit()
        except (IntegrityError, OperationalError) as exc:
            db.rollback()
            db.info.pop(PENDING_BOOKINGS_KEY, None)
            raise _store_error(exc, {}) from exc
        for event in db.info.pop(PENDING_BOOKINGS_KEY, []):
            self._run_after_commit(db, event)

    def cancel_booking(
        self,
        db: Session,
        booking_id: int,
        requester_id: int,
        requester_is_admin: bool = False,
    ) -> models.Booking:
        log_extra = {"booking_id": booking_id, "actor_id": requester_id}
        try:
            with _transaction(db):
                booking = self._owned_booking(db, booking_id, requester_id, requester_is_admin)
                if booking.status != BookingStatus.confirmed:
                    raise ValidationError(
                        "Cannot cancel", details={"status": booking.status.value}
                    )
                booking.status = BookingStatus.cancelled
                booking.cancelled_at = utc_now()
                booking.cancelled_by = requester_id
        except (IntegrityError, OperationalError) as exc:
            raise _store_error(exc, log_extra) from exc
        logger.info("Booking cancelled", extra=log_extra)
        return booking

    def delete_booking(
        self,
        db: Session,
        booking_id: int,
        requester_id: int,
        requester_is_admin: bool = False,
    ) -> None:
        log_extra = {"booking_id": booking_id, "actor_id": requester_id}
        try:
            with _transaction(db):
                booking = self._owned_booking(db, booking_id, requester_id, requester_is_admin)
                self.bookings.delete(db, booking)
        except (IntegrityError, OperationalError) as exc:
            raise _store_error(exc, log_extra) from exc
        logger.info("Booking deleted", extra=log_extra)

    def _owned_booking(
        self, db: Session, booking_id: int, requester_id: int, requester_is_admin: bool
    ) -> models.Booking:
        booking = self.bookings.get_for_update(db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", details={"booking_id": booking_id})
        if not requester_is_admin and booking.user_id != requester_id:
            raise ForbiddenError("Access denied")
        return booking

    def _apply_timeouts(self, db: Session) -> None:
        if db.get_bind().dialect.name != "postgresql":
            return
        timeout = int(self.tx_timeout_ms)
        db.execute(text(f"SET LOCAL lock_timeout = {timeout}"))
        db.execute(text(f"SET LOCAL statement_timeout = {timeout}"))

    def _reserve(
        self, db: Session, request: BookingRequest, start: datetime, end: datetime
    ) -> models.Booking:
        if self.users.get(db, request.user_id) is None:
            raise NotFoundError("User not found", details={"user_id": request.user_id})

        court = self.courts.get_for_update(db, request.court_id)
        if court is None:
            raise NotFoundError(
                f"Court not found: {request.court_id}", details={"court_id": request.court_id}
            )
        if not court.is_active:
            raise ConflictError("Court not available for selected time")

        coach = None
        if request.coach_id is not None:
            coach = self.coaches.get_for_update(db, request.coach_id)
            if coach is None:
                raise NotFoundError(
                    f"Coach not found: {request.coach_id}", details={"coach_id": request.coach_id}
                )
            if not coach.is_active:
                raise ConflictError("Coach not available for selected time")

        quantities = _merge_equipment(request.equipment)
        locked = {item.id: item for item in self.equipment.lock_many(db, quantities)}
        for equipment_id in quantities:
            item = locked.get(equipment_id)
            if item is None:
                raise NotFoundError(
                    f"Equipment not found: {equipment_id}",
                    details={"equipment_id": equipment_id},
                )
            if not item.is_active:
                raise ConflictError(
                    "Requested equipment not available", details={"equipment_id": equipment_id}
                )

        if not self.availability.is_court_free(db, court.id, start, end):
            raise ConflictError(
                "Court not available for selected time", details={"court_id": court.id}
            )
        if coach is not None and not self.availability.is_coach_free(db, coach.id, start, end):
            raise ConflictError(
                "Coach not available for selected time", details={"coach_id": coach.id}
            )
        for equipment_id, quantity in quantities.items():
            if not self.availability.has_capacity(db, equipment_id, quantity, start, end):
                raise ConflictError(
                    "Requested equipment not available", details={"equipment_id": equipment_id}
                )

        quote = self.pricing.quote_for_court(db, court, start)
        # Unit prices come from the locked rows, never from the request
        equipment_fee = Decimal(0)
        for equipment_id, quantity in quantities.items():
            equipment_fee += Decimal(str(locked[equipment_id].price_per_unit or 0)) * quantity
        equipment_fee = round2(equipment_fee)
        coach_fee = _coach_fee(coach.hourly_rate, start, end) if coach is not None else Decimal("0.00")
        total = round2(quote.price_after_rules + equipment_fee + coach_fee)

        booking = models.Booking(
            user_id=request.user_id,
            court_id=court.id,
            coach_id=coach.id if coach is not None else None,
            start_time=start,
            end_time=end,
            status=BookingStatus.confirmed,
            base_price=round2(quote.base_price),
            price_after_rules=quote.price_after_rules,
            rule_adjustments=[adjustment.as_dict() for adjustment in quote.adjustments],
            equipment_fee=equipment_fee,
            coach_fee=coach_fee,
            total=total,
            equipment_items=[
                models.BookingEquipment(equipment_id=equipment_id, quantity=quantity)
                for equipment_id, quantity in quantities.items()
            ],
        )
        return self.bookings.add(db, booking)

    def _run_after_commit(self, db: Session, event: CommittedBooking) -> None:
        event = replace(event, committed_at=utc_now())
        for hook in self.after_commit:
            try:
                with _transaction(db):
                    hook(db, event)
            except Exception:
                # Advisory bookkeeping only; the booking is already committed
                logger.exception(
                    "After-commit hook failed",
                    extra={
                        "booking_id": event.booking_id,
                        "hook": getattr(hook, "__name__", repr(hook)),
                    },
                )
