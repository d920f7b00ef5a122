import logging

from sqlalchemy.orm import Session
from ..db.session import SessionLocal
from ..db import models
from ..config import get_settings
from .admin import ensure_admin_exists

logger = logging.getLogger(__name__)


def seed(session: Session) -> None:
    settings = get_settings()
    ensure_admin_exists(session, settings.default_admin_email, settings.default_admin_password)
    if session.query(models.Court).count() == 0:
        session.add_all(
            [
                models.Court(
                    name="Centre Court",
                    short_name="C1",
                    court_type="Indoor",
                    base_price=1000,
                    dimensions="13.4m x 6.1m",
                ),
                models.Court(
                    name="Garden Court",
                    short_name="G1",
                    court_type="Outdoor",
                    base_price=800,
                    dimensions="13.4m x 6.1m",
                ),
            ]
        )
    if session.query(models.Equipment).count() == 0:
        session.add_all(
            [
                models.Equipment(name="Racket", sku="RKT-01", total_count=10, price_per_unit=100),
                models.Equipment(name="Ball Machine", sku="BMC-01", total_count=2, price_per_unit=300),
            ]
        )
    if session.query(models.Coach).count() == 0:
        session.add(models.Coach(name="Asha Rao", experience_years=6, hourly_rate=500))
    if session.query(models.PricingRule).count() == 0:
        session.add_all(
            [
                models.PricingRule(
                    name="Evening peak",
                    kind=models.RuleKind.multiplier,
                    value=1.2,
                    window_start="18:00",
                    window_end="21:00",
                    priority=100,
                ),
                models.PricingRule(
                    name="Outdoor lighting",
                    kind=models.RuleKind.fixed,
                    value=150,
                    court_types=["Outdoor"],
                    window_start="18:00",
                    window_end="22:00",
                    priority=50,
                ),
            ]
        )
    session.commit()


if __name__ == "__main__":
    logging.basicConfig(level=get_settings().log_level)
    with SessionLocal() as session:
        seed(session)
        logger.info("Seed data created")
