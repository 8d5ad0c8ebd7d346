"""Shared fixtures.

Every test gets its own SQLite file under tmp_path so that concurrent tests
can open several connections against the same database.
"""

import os

# Must be set before villabook is imported: the limiter reads it at import time.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date

import pytest
from fastapi.testclient import TestClient

from villabook.config import Settings
from villabook.db import Database
from villabook.main import create_app
from villabook.models import BookingStatus, OccupancyLock, Resource
from villabook.security import issue_identity_token
from villabook.services.booking_service import BookingService, Guest
from villabook.services.catalog import add_configuration, add_resource
from villabook.services.lifecycle import BookingPolicy
from villabook.services.notifications import NotificationDispatcher


class RecordingSink:
    def __init__(self):
        self.events = []

    def send(self, event):
        self.events.append(event)


class FailingSink:
    def __init__(self):
        self.calls = 0

    def send(self, event):
        self.calls += 1
        raise RuntimeError("mail provider down")


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'villabook-test.db'}", busy_timeout=30)
    db.ensure_schema()
    yield db
    db.dispose()


@pytest.fixture
def catalog(database):
    """villa (500/night) with room1 (200) and room2 (150); standalone cabin (100)."""
    with database.unit_of_work() as db:
        add_resource(db, "villa", "Entire Villa", 500)
        add_resource(db, "room1", "Room 1", 200, parent_slug="villa")
        add_resource(db, "room2", "Room 2", 150, parent_slug="villa")
        add_resource(db, "cabin", "Garden cabin", 100)
        add_configuration(db, "two-rooms", "Both rooms", 300, ["room1", "room2"])
        add_configuration(db, "retired", "Old cabin deal", 50, ["cabin"], active=False)
    return database


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def service(catalog, sink):
    return BookingService(
        catalog,
        policy=BookingPolicy(BookingStatus.PENDING),
        notifier=NotificationDispatcher([sink], fallback_address="host@villa.test"),
    )


@pytest.fixture
def direct_service(catalog, sink):
    return BookingService(
        catalog,
        policy=BookingPolicy(BookingStatus.CONFIRMED),
        notifier=NotificationDispatcher([sink], fallback_address="host@villa.test"),
    )


@pytest.fixture
def guest():
    return Guest(id="guest-1", email="asha@example.com", name="Asha")


@pytest.fixture
def other_guest():
    return Guest(id="guest-2", email="ravi@example.com", name="Ravi")


def resource_id(database, slug):
    db = database.session()
    try:
        return db.query(Resource.id).filter(Resource.slug == slug).scalar()
    finally:
        db.close()


def lock_count(database, slug=None, start=None, end=None, booking_id=None):
    db = database.session()
    try:
        q = db.query(OccupancyLock)
        if slug is not None:
            q = q.filter(OccupancyLock.resource_id == resource_id(database, slug))
        if booking_id is not None:
            q = q.filter(OccupancyLock.booking_id == booking_id)
        if start is not None and end is not None:
            q = q.filter(OccupancyLock.start_date < end, OccupancyLock.end_date > start)
        return q.count()
    finally:
        db.close()


D = date.fromisoformat


# ---- HTTP ----

@pytest.fixture
def api_settings(tmp_path):
    s = Settings()
    s.DATABASE_URL = f"sqlite:///{tmp_path / 'villabook-api.db'}"
    s.SECRET_KEY = "test-secret"
    s.SEED_DEFAULT_CATALOG = True
    s.BOOKING_INITIAL_STATUS = "pending"
    s.MAILGUN_API_KEY = ""
    s.MAILGUN_DOMAIN = ""
    s.HOST_NOTIFICATION_EMAIL = ""
    return s


@pytest.fixture
def client(api_settings):
    app = create_app(api_settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth(api_settings):
    def _headers(uid, role="guest", email=None, name=None):
        token = issue_identity_token(api_settings, uid, role=role, email=email, name=name)
        return {"Authorization": f"Bearer {token}"}

    return _headers
