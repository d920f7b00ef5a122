from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.exceptions import DomainException
from ...db.session import get_db
from ...db import models, schemas
from ...repositories import BookingRepository
from ...services.booking_service import BookingCoordinator, BookingRequest, EquipmentRequest
from ...services.pricing_service import PricingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/price", response_model=schemas.PriceQuote)
def price_preview(
    court_id: int = Query(...),
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    db: Session = Depends(get_db),
    pricing: PricingService = Depends(deps.get_pricing_service),
):
    try:
        quote = pricing.quote(db, court_id, start_time, end_time)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return schemas.PriceQuote(
        court_id=court_id,
        base_price=float(quote.base_price),
        price_after_rules=float(quote.price_after_rules),
        rule_adjustments=[adjustment.as_dict() for adjustment in quote.adjustments],
    )


@router.post("", response_model=schemas.Booking, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
    coordinator: BookingCoordinator = Depends(deps.get_booking_coordinator),
):
    user_id = payload.user_id or current.id
    if user_id != current.id and not current.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    request = BookingRequest(
        user_id=user_id,
        court_id=payload.court_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        equipment=tuple(
            EquipmentRequest(equipment_id=item.equipment_id, quantity=item.quantity)
            for item in payload.equipment_requests
        ),
        coach_id=payload.coach_id,
    )
    try:
        booking = coordinator.create_booking(db, request)
        # The auth lookup may have opened the request transaction; the booking then
        # went into a savepoint and its hooks wait for this commit.
        coordinator.commit(db)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return booking


@router.get("/user/{user_id}", response_model=list[schemas.Booking])
def list_user_bookings(
    user_id: int,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    if user_id != current.id and not current.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return BookingRepository().list_for_user(db, user_id)


@router.post("/{booking_id}/cancel", response_model=schemas.Booking)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
    coordinator: BookingCoordinator = Depends(deps.get_booking_coordinator),
):
    try:
        booking = coordinator.cancel_booking(
            db, booking_id, requester_id=current.id, requester_is_admin=current.is_admin
        )
        coordinator.commit(db)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return booking


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
    coordinator: BookingCoordinator = Depends(deps.get_booking_coordinator),
):
    try:
        coordinator.delete_booking(
            db, booking_id, requester_id=current.id, requester_is_admin=current.is_admin
        )
        coordinator.commit(db)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return {"status": "deleted"}
