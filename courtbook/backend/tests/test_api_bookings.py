from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.api.routes import admin, auth, bookings, courts, misc
from app.db import models
from app.db.session import Base, create_db_engine, get_db
from factories import create_court, create_equipment, create_rule, create_user


@pytest.fixture()
def api_client():
    engine = create_db_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    acting = SimpleNamespace(user=None)

    def override_get_current_user():
        if acting.user is None:
            from fastapi import HTTPException

            raise HTTPException(status_code=401, detail="Could not validate credentials")
        return acting.user

    test_app = FastAPI()
    for module in (misc, auth, courts, bookings, admin):
        test_app.include_router(module.router, prefix="/api/v1")
    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[deps.get_current_user] = override_get_current_user

    with TestClient(test_app) as client:
        yield client, TestingSessionLocal, acting

    test_app.dependency_overrides.clear()
    engine.dispose()


def seed_court(SessionLocal):
    with SessionLocal() as db:
        player = create_user(db, "player@example.com")
        other = create_user(db, "other@example.com")
        court = create_court(db, base_price=1000)
        machine = create_equipment(db, total_count=1, price_per_unit=300)
        create_rule(db, window_start="18:00", window_end="21:00")
        return player, other, court, machine


def booking_payload(court, start="2030-06-01T19:00:00Z", end="2030-06-01T20:00:00Z", **extra):
    payload = {"court_id": court.id, "start_time": start, "end_time": end}
    payload.update(extra)
    return payload


def test_price_preview_matches_booking_total(api_client):
    client, SessionLocal, acting = api_client
    player, _, court, _ = seed_court(SessionLocal)
    acting.user = player

    preview = client.get(
        "/api/v1/bookings/price",
        params={
            "court_id": court.id,
            "start_time": "2030-06-01T19:00:00Z",
            "end_time": "2030-06-01T20:00:00Z",
        },
    )
    assert preview.status_code == 200
    quote = preview.json()
    assert quote["price_after_rules"] == 1200.0
    assert quote["rule_adjustments"][0]["applied_amount"] == 200.0

    created = client.post("/api/v1/bookings", json=booking_payload(court))
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "confirmed"
    assert body["user_id"] == player.id
    assert body["price_after_rules"] == quote["price_after_rules"]
    assert body["total"] == 1200.0


def test_price_preview_unknown_court(api_client):
    client, _, _ = api_client

    response = client.get(
        "/api/v1/bookings/price",
        params={
            "court_id": 42,
            "start_time": "2030-06-01T19:00:00Z",
            "end_time": "2030-06-01T20:00:00Z",
        },
    )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "not_found"


def test_conflict_is_reported_with_code(api_client):
    client, SessionLocal, acting = api_client
    player, other, court, _ = seed_court(SessionLocal)

    acting.user = player
    assert client.post("/api/v1/bookings", json=booking_payload(court)).status_code == 201

    acting.user = other
    response = client.post("/api/v1/bookings", json=booking_payload(court))

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "message": "Court not available for selected time",
        "code": "conflict",
        "details": {"court_id": court.id},
    }


def test_equipment_shortage_is_a_conflict(api_client):
    client, SessionLocal, acting = api_client
    player, _, court, machine = seed_court(SessionLocal)
    acting.user = player

    response = client.post(
        "/api/v1/bookings",
        json=booking_payload(
            court, equipment_requests=[{"equipment_id": machine.id, "quantity": 2}]
        ),
    )

    assert response.status_code == 409
    assert response.json()["detail"]["message"] == "Requested equipment not available"


def test_request_shape_is_validated(api_client):
    client, SessionLocal, acting = api_client
    player, _, court, machine = seed_court(SessionLocal)
    acting.user = player

    backwards = client.post(
        "/api/v1/bookings",
        json=booking_payload(court, start="2030-06-01T20:00:00Z", end="2030-06-01T19:00:00Z"),
    )
    negative = client.post(
        "/api/v1/bookings",
        json=booking_payload(
            court, equipment_requests=[{"equipment_id": machine.id, "quantity": -1}]
        ),
    )

    assert backwards.status_code == 422
    assert negative.status_code == 422


def test_only_admin_books_for_someone_else(api_client):
    client, SessionLocal, acting = api_client
    player, other, court, _ = seed_court(SessionLocal)
    acting.user = player

    response = client.post("/api/v1/bookings", json=booking_payload(court, user_id=other.id))
    assert response.status_code == 403

    with SessionLocal() as db:
        acting.user = create_user(db, "boss@example.com", role=models.UserRole.admin)
    response = client.post("/api/v1/bookings", json=booking_payload(court, user_id=other.id))
    assert response.status_code == 201
    assert response.json()["user_id"] == other.id


def test_cancel_then_rebook_same_window(api_client):
    client, SessionLocal, acting = api_client
    player, other, court, _ = seed_court(SessionLocal)
    acting.user = player
    booking_id = client.post("/api/v1/bookings", json=booking_payload(court)).json()["id"]

    acting.user = other
    assert client.post(f"/api/v1/bookings/{booking_id}/cancel").status_code == 403

    acting.user = player
    cancelled = client.post(f"/api/v1/bookings/{booking_id}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    again = client.post(f"/api/v1/bookings/{booking_id}/cancel")
    assert again.status_code == 400
    assert again.json()["detail"]["message"] == "Cannot cancel"

    acting.user = other
    assert client.post("/api/v1/bookings", json=booking_payload(court)).status_code == 201


def test_delete_and_list_user_bookings(api_client):
    client, SessionLocal, acting = api_client
    player, other, court, _ = seed_court(SessionLocal)
    acting.user = player
    booking_id = client.post("/api/v1/bookings", json=booking_payload(court)).json()["id"]

    listed = client.get(f"/api/v1/bookings/user/{player.id}")
    assert [item["id"] for item in listed.json()] == [booking_id]

    acting.user = other
    assert client.get(f"/api/v1/bookings/user/{player.id}").status_code == 403
    assert client.delete(f"/api/v1/bookings/{booking_id}").status_code == 403

    acting.user = player
    assert client.delete(f"/api/v1/bookings/{booking_id}").json() == {"status": "deleted"}
    assert client.delete(f"/api/v1/bookings/{booking_id}").status_code == 404
    assert client.get(f"/api/v1/bookings/user/{player.id}").json() == []


def test_booking_requires_authentication(api_client):
    client, SessionLocal, _ = api_client
    _, _, court, _ = seed_court(SessionLocal)

    response = client.post("/api/v1/bookings", json=booking_payload(court))

    assert response.status_code == 401
