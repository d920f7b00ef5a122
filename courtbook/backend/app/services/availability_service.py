from datetime import datetime

from sqlalchemy.orm import Session

from ..core.clock import ensure_utc
from ..core.exceptions import NotFoundError
from ..repositories import (
    BookingRepository,
    CoachRepository,
    CourtRepository,
    EquipmentRepository,
)


class AvailabilityChecker:
    """Answers whether a court, coach or equipment item is free for a window.

    Only confirmed bookings count. Every query runs on the session it is given,
    so inside a booking transaction the answers reflect that transaction's view.
    """

    def __init__(
        self,
        bookings: BookingRepository | None = None,
        courts: CourtRepository | None = None,
        coaches: CoachRepository | None = None,
        equipment: EquipmentRepository | None = None,
    ) -> None:
        self.bookings = bookings or BookingRepository()
        self.courts = courts or CourtRepository()
        self.coaches = coaches or CoachRepository()
        self.equipment = equipment or EquipmentRepository()

    def is_court_free(self, db: Session, court_id: int, start: datetime, end: datetime) -> bool:
        if self.courts.get(db, court_id) is None:
            raise NotFoundError(f"Court not found: {court_id}", details={"court_id": court_id})
        return not self.bookings.court_has_overlap(db, court_id, start, end)

    def is_coach_free(self, db: Session, coach_id: int, start: datetime, end: datetime) -> bool:
        if self.coaches.get(db, coach_id) is None:
            raise NotFoundError(f"Coach not found: {coach_id}", details={"coach_id": coach_id})
        return not self.bookings.coach_has_overlap(db, coach_id, start, end)

    def has_capacity(
        self,
        db: Session,
        equipment_id: int,
        quantity: int,
        start: datetime,
        end: datetime,
    ) -> bool:
        if quantity <= 0:
            return True
        item = self.equipment.get(db, equipment_id)
        if item is None:
            raise NotFoundError(
                f"Equipment not found: {equipment_id}",
                details={"equipment_id": equipment_id},
            )
        used = self.bookings.equipment_in_use(db, equipment_id, start, end)
        return (item.total_count or 0) - used >= quantity

    def booked_windows(
        self, db: Session, court_id: int, start: datetime, end: datetime
    ) -> list[tuple[datetime, datetime]]:
        """Confirmed (start, end) windows on a court that touch ``[start, end)``."""
        if self.courts.get(db, court_id) is None:
            raise NotFoundError(f"Court not found: {court_id}", details={"court_id": court_id})
        return [
            (ensure_utc(booking.start_time), ensure_utc(booking.end_time))
            for booking in self.bookings.confirmed_for_court(db, court_id, start, end)
        ]
