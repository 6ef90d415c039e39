"""Shared fixtures: in-memory database, API client and a logged-in organizer."""

import os

# Must be set before guestlist is imported: settings and engine read them once
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["LOG_FILE"] = ""
os.environ["SMTP_SERVER"] = ""

import pytest
from fastapi.testclient import TestClient

from guestlist.db.base import Base
from guestlist.db.session import SessionLocal, engine
from guestlist.main import app
from guestlist.models.gig import Gig
from guestlist.models.guest import Guest
from guestlist.services.auth import seed_admin

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin(db_session):
    return seed_admin(db_session, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def auth_client(client, admin):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def make_gig(db_session):
    """Insert a gig row directly; keyword overrides are passed to the model"""
    counter = {"n": 0}

    def _make(**overrides):
        import datetime as dt

        counter["n"] += 1
        fields = {
            "slug": f"testgig{counter['n']:03d}",
            "date": dt.date(2030, 5, 17),
            "dj_name": "DJ Test",
            "guest_cap": None,
            "max_per_signup": 10,
            "is_closed": False,
        }
        fields.update(overrides)
        gig = Gig(**fields)
        db_session.add(gig)
        db_session.commit()
        db_session.refresh(gig)
        return gig

    return _make


@pytest.fixture
def add_guest(db_session):
    def _add(gig, name="Guest", email=None, quantity=1):
        guest = Guest(gig_id=gig.id, name=name, email=email or f"{name.lower()}@example.com", quantity=quantity)
        db_session.add(guest)
        db_session.commit()
        db_session.refresh(guest)
        return guest

    return _add
