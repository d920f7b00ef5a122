from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import models
from .base_repository import BaseRepository


class CourtRepository(BaseRepository[models.Court]):
    model = models.Court

    def list_active(self, db: Session) -> List[models.Court]:
        stmt = select(models.Court).where(models.Court.is_active.is_(True)).order_by(models.Court.id)
        return list(db.execute(stmt).scalars().all())


class CoachRepository(BaseRepository[models.Coach]):
    model = models.Coach


class EquipmentRepository(BaseRepository[models.Equipment]):
    model = models.Equipment


class PricingRuleRepository(BaseRepository[models.PricingRule]):
    model = models.PricingRule

    def list_active(self, db: Session) -> List[models.PricingRule]:
        """Active rules, highest priority first; ties keep insertion order."""
        stmt = (
            select(models.PricingRule)
            .where(models.PricingRule.is_active.is_(True))
            .order_by(models.PricingRule.priority.desc(), models.PricingRule.id)
        )
        return list(db.execute(stmt).scalars().all())


class UserRepository(BaseRepository[models.User]):
    model = models.User

    def get_by_email(self, db: Session, email: str) -> models.User | None:
        stmt = select(models.User).where(models.User.email == email.strip().lower())
        return db.execute(stmt).scalars().first()
