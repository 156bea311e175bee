"""Pytest fixtures for storefront tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.celery_worker import celery_app
from storefront.data.database import Base
from storefront.data.models import UserModel, ProductModel
from storefront.services.order_service import OrderService

OWNER_ID = 1
OTHER_ID = 2
ADMIN_ID = 3

ADDRESS = {
    "address": "1 Main St",
    "city": "Springfield",
    "postal_code": "12345",
    "country": "US",
}


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifications:
    def __init__(self):
        self.created = []
        self.events = []

    def order_created(self, order: dict):
        self.created.append(order["id"])

    def order_status_changed(self, order: dict, event: str):
        self.events.append((order["id"], event))


@pytest.fixture(autouse=True, scope="session")
def eager_celery():
    celery_app.conf.task_always_eager = True
    yield


def make_schema(engine):
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    db.add_all(
        [
            UserModel(id=OWNER_ID, name="Owner", email="owner@example.com", is_admin=False),
            UserModel(id=OTHER_ID, name="Other", email="other@example.com", is_admin=False),
            UserModel(id=ADMIN_ID, name="Admin", email="admin@example.com", is_admin=True),
            ProductModel(id=1, name="Mug", image="/img/mug.jpg", price=Decimal("10.00"), count_in_stock=5),
            ProductModel(id=2, name="Lamp", image="/img/lamp.jpg", price=Decimal("60.00"), count_in_stock=10),
            ProductModel(id=3, name="Poster", image="/img/poster.jpg", price=Decimal("5.00"), count_in_stock=0),
        ]
    )
    db.commit()
    db.close()
    return TestingSession


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_schema(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def service(db, clock, notifications):
    return OrderService(db, notification_service=notifications, clock=clock)


def stock(db, product_id: int) -> int:
    db.expire_all()
    return db.get(ProductModel, product_id).count_in_stock


def place(service, items, payment_method="Credit Card", owner_id=OWNER_ID, address=None):
    return service.create_order(
        owner_id=owner_id,
        line_items=[{"product_id": p, "quantity": q} for p, q in items],
        shipping_address=address if address is not None else ADDRESS,
        payment_method=payment_method,
    )
