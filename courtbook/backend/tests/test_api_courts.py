import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.routes import admin, auth, bookings, courts, misc
from app.core.constants import LAST_BOOKING_META_KEY
from app.db import models
from app.db.session import Base, create_db_engine, get_db
from app.services.booking_service import BookingCoordinator, BookingRequest
from app.services.admin import ensure_admin_exists
from factories import at, create_coach, create_court, create_equipment, create_user


@pytest.fixture()
def courts_api_client():
    engine = create_db_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    test_app = FastAPI()
    for module in (misc, auth, courts, bookings, admin):
        test_app.include_router(module.router, prefix="/api/v1")
    test_app.dependency_overrides[get_db] = override_get_db

    with TestClient(test_app) as client:
        yield client, TestingSessionLocal

    test_app.dependency_overrides.clear()
    engine.dispose()


def login(client, email, password):
    response = client.post("/api/v1/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health(courts_api_client):
    client, _ = courts_api_client
    assert client.get("/api/v1/health").json() == {"status": "ok"}


def test_public_catalogue(courts_api_client):
    client, SessionLocal = courts_api_client
    with SessionLocal() as db:
        court = create_court(db, base_price=1000)
        create_equipment(db, name="Racket", total_count=10, price_per_unit=100)
        create_coach(db, hourly_rate=500)

    assert [c["name"] for c in client.get("/api/v1/courts").json()] == ["Court A"]
    assert client.get(f"/api/v1/courts/{court.id}").json()["base_price"] == 1000.0
    assert client.get("/api/v1/courts/999").status_code == 404
    assert client.get("/api/v1/public/equipment").json()[0]["total_count"] == 10
    assert client.get("/api/v1/public/coaches").json()[0]["hourly_rate"] == 500.0


def test_court_slots_lists_confirmed_windows_of_the_day(courts_api_client):
    client, SessionLocal = courts_api_client
    with SessionLocal() as db:
        user = create_user(db)
        court = create_court(db)
        coordinator = BookingCoordinator()
        for start, end in ((at(9), at(10)), (at(14), at(15)), (at(9, day=2), at(10, day=2))):
            coordinator.create_booking(
                db,
                BookingRequest(user_id=user.id, court_id=court.id, start_time=start, end_time=end),
            )
        cancelled = coordinator.create_booking(
            db,
            BookingRequest(user_id=user.id, court_id=court.id, start_time=at(16), end_time=at(17)),
        )
        coordinator.cancel_booking(db, cancelled.id, requester_id=user.id)
        db.commit()

    response = client.get(f"/api/v1/public/courts/{court.id}/slots", params={"day": "2030-06-01"})

    assert response.status_code == 200
    body = response.json()
    assert body["day"] == "2030-06-01"
    assert [window["start_time"][11:16] for window in body["booked"]] == ["09:00", "14:00"]
    assert client.get("/api/v1/public/courts/999/slots").status_code == 404


def test_register_login_and_me(courts_api_client):
    client, _ = courts_api_client

    registered = client.post(
        "/api/v1/auth/register",
        json={"name": "Priya", "email": "Priya@Example.com", "password": "secret1"},
    )
    assert registered.status_code == 201
    assert registered.json()["email"] == "priya@example.com"
    assert registered.json()["role"] == "user"

    duplicate = client.post(
        "/api/v1/auth/register",
        json={"name": "Priya", "email": "priya@example.com", "password": "secret1"},
    )
    assert duplicate.status_code == 400

    bad = client.post("/api/v1/auth/login", data={"username": "priya@example.com", "password": "nope"})
    assert bad.status_code == 401

    headers = login(client, "priya@example.com", "secret1")
    assert client.get("/api/v1/auth/me", headers=headers).json()["name"] == "Priya"
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_only_admin_creates_courts(courts_api_client):
    client, SessionLocal = courts_api_client
    with SessionLocal() as db:
        ensure_admin_exists(db, "admin@example.com", "admin-pass")
    client.post(
        "/api/v1/auth/register",
        json={"name": "Player", "email": "player@example.com", "password": "player-pass"},
    )
    payload = {"name": "Court B", "court_type": "Outdoor", "base_price": 800}

    player_headers = login(client, "player@example.com", "player-pass")
    assert client.post("/api/v1/admin/courts", json=payload, headers=player_headers).status_code == 403

    admin_headers = login(client, "admin@example.com", "admin-pass")
    created = client.post("/api/v1/admin/courts", json=payload, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["court_type"] == "Outdoor"
    with SessionLocal() as db:
        assert db.query(models.Court).count() == 1


def test_booking_with_a_real_token_commits_before_stamping_the_court(courts_api_client):
    client, SessionLocal = courts_api_client
    with SessionLocal() as db:
        court = create_court(db)
    client.post(
        "/api/v1/auth/register",
        json={"name": "Player", "email": "player@example.com", "password": "player-pass"},
    )
    headers = login(client, "player@example.com", "player-pass")

    created = client.post(
        "/api/v1/bookings",
        json={
            "court_id": court.id,
            "start_time": "2030-06-01T10:00:00Z",
            "end_time": "2030-06-01T11:00:00Z",
        },
        headers=headers,
    )

    assert created.status_code == 201
    with SessionLocal() as db:
        booking = db.get(models.Booking, created.json()["id"])
        assert booking.status == models.BookingStatus.confirmed
        assert LAST_BOOKING_META_KEY in db.get(models.Court, court.id).meta

    taken = client.post(
        "/api/v1/bookings",
        json={
            "court_id": court.id,
            "start_time": "2030-06-01T10:30:00Z",
            "end_time": "2030-06-01T11:30:00Z",
        },
        headers=headers,
    )
    assert taken.status_code == 409
