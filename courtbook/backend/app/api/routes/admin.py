import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.post("/courts", response_model=schemas.Court, status_code=status.HTTP_201_CREATED)
def create_court(
    payload: schemas.CourtCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    court = models.Court(**payload.model_dump())
    db.add(court)
    db.commit()
    db.refresh(court)
    logger.info("Court created", extra={"court_id": court.id, "actor_id": admin.id})
    return court
