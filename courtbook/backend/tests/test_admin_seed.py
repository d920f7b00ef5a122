from app.core import security
from app.db import models
from app.services.admin import ensure_admin_exists
from app.services.seed import seed


def test_creates_default_admin(db_session):
    ensure_admin_exists(db_session, "Admin@Courtbook.local", "strong_password")

    created = db_session.query(models.User).filter_by(email="admin@courtbook.local").one()

    assert created.role == models.UserRole.admin
    assert security.verify_password("strong_password", created.password_hash)


def test_updates_password_and_role_for_existing_user(db_session):
    db_session.add(models.User(name="Someone", email="admin@courtbook.local"))
    db_session.commit()

    ensure_admin_exists(db_session, "admin@courtbook.local", "new_password")

    admins = db_session.query(models.User).filter_by(email="admin@courtbook.local").all()
    assert len(admins) == 1
    assert admins[0].role == models.UserRole.admin
    assert security.verify_password("new_password", admins[0].password_hash)


def test_seed_is_idempotent(db_session):
    seed(db_session)
    seed(db_session)

    assert db_session.query(models.Court).count() == 2
    assert db_session.query(models.Equipment).count() == 2
    assert db_session.query(models.Coach).count() == 1
    assert db_session.query(models.PricingRule).count() == 2
    assert db_session.query(models.User).filter_by(role=models.UserRole.admin).count() == 1
