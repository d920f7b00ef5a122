from datetime import datetime
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..db import models
from ..db.models.booking import BookingStatus
from .base_repository import BaseRepository


def _overlapping(start: datetime, end: datetime):
    # Half-open intervals: [a, b) and [c, d) intersect iff a < d and b > c
    return (
        models.Booking.status == BookingStatus.confirmed,
        models.Booking.start_time < end,
        models.Booking.end_time > start,
    )


class BookingRepository(BaseRepository[models.Booking]):
    model = models.Booking

    def court_has_overlap(self, db: Session, court_id: int, start: datetime, end: datetime) -> bool:
        stmt = (
            select(models.Booking.id)
            .where(models.Booking.court_id == court_id, *_overlapping(start, end))
            .limit(1)
        )
        return db.execute(stmt).first() is not None

    def coach_has_overlap(self, db: Session, coach_id: int, start: datetime, end: datetime) -> bool:
        stmt = (
            select(models.Booking.id)
            .where(models.Booking.coach_id == coach_id, *_overlapping(start, end))
            .limit(1)
        )
        return db.execute(stmt).first() is not None

    def equipment_in_use(self, db: Session, equipment_id: int, start: datetime, end: datetime) -> int:
        """Units of one equipment item held by confirmed bookings overlapping the window."""
        stmt = (
            select(func.coalesce(func.sum(models.BookingEquipment.quantity), 0))
            .join(models.Booking, models.Booking.id == models.BookingEquipment.booking_id)
            .where(models.BookingEquipment.equipment_id == equipment_id, *_overlapping(start, end))
        )
        return int(db.scalar(stmt) or 0)

    def list_for_user(self, db: Session, user_id: int) -> List[models.Booking]:
        stmt = (
            select(models.Booking)
            .options(
                selectinload(models.Booking.court),
                selectinload(models.Booking.coach),
                selectinload(models.Booking.equipment_items).selectinload(
                    models.BookingEquipment.equipment
                ),
            )
            .where(models.Booking.user_id == user_id)
            .order_by(models.Booking.start_time.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def confirmed_for_court(
        self, db: Session, court_id: int, start: datetime, end: datetime
    ) -> List[models.Booking]:
        stmt = (
            select(models.Booking)
            .where(models.Booking.court_id == court_id, *_overlapping(start, end))
            .order_by(models.Booking.start_time)
        )
        return list(db.execute(stmt).scalars().all())

    def delete(self, db: Session, booking: models.Booking) -> None:
        db.delete(booking)
        db.flush()
