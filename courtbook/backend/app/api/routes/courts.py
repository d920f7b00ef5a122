from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ...core.exceptions import DomainException
from ...db.session import get_db
from ...db import models, schemas
from ...repositories import CoachRepository, CourtRepository, EquipmentRepository
from ...services.availability_service import AvailabilityChecker

router = APIRouter(tags=["courts"])


@router.get("/courts", response_model=list[schemas.Court])
def list_courts(db: Session = Depends(get_db)):
    return CourtRepository().list(db)


@router.get("/courts/{court_id}", response_model=schemas.Court)
def get_court(court_id: int, db: Session = Depends(get_db)):
    court = db.get(models.Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")
    return court


@router.get("/public/courts/{court_id}/slots", response_model=schemas.CourtSlots)
def court_slots(
    court_id: int,
    day: date | None = Query(default=None, description="UTC day, defaults to today"),
    db: Session = Depends(get_db),
):
    day = day or datetime.now(timezone.utc).date()
    day_start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    try:
        windows = AvailabilityChecker().booked_windows(
            db, court_id, day_start, day_start + timedelta(days=1)
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return schemas.CourtSlots(
        court_id=court_id,
        day=day.isoformat(),
        booked=[schemas.BookedWindow(start_time=start, end_time=end) for start, end in windows],
    )


@router.get("/public/equipment", response_model=list[schemas.Equipment])
def list_equipment(db: Session = Depends(get_db)):
    return EquipmentRepository().list(db)


@router.get("/public/coaches", response_model=list[schemas.Coach])
def list_coaches(db: Session = Depends(get_db)):
    return CoachRepository().list(db)
