"""Concurrent order creation against a shared product row."""

import threading

import pytest
from sqlalchemy import create_engine

from storefront.domain.errors import InsufficientStock
from storefront.services.order_service import OrderService

from conftest import ADDRESS, OWNER_ID, OTHER_ID, RecordingNotifications, make_schema, stock


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'orders.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield make_schema(engine)
    engine.dispose()


def test_two_buyers_cannot_oversell(file_session_factory):
    barrier = threading.Barrier(2)
    results = {}

    def buy(user_id):
        db = file_session_factory()
        try:
            service = OrderService(db, notification_service=RecordingNotifications())
            barrier.wait()
            try:
                results[user_id] = service.create_order(
                    owner_id=user_id,
                    line_items=[{"product_id": 1, "quantity": 3}],
                    shipping_address=ADDRESS,
                    payment_method="Credit Card",
                )
            except InsufficientStock as e:
                results[user_id] = e
        finally:
            db.close()

    threads = [threading.Thread(target=buy, args=(uid,)) for uid in (OWNER_ID, OTHER_ID)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    outcomes = list(results.values())
    assert len(outcomes) == 2
    assert sum(isinstance(o, dict) for o in outcomes) == 1
    assert sum(isinstance(o, InsufficientStock) for o in outcomes) == 1

    db = file_session_factory()
    try:
        assert stock(db, 1) == 2
    finally:
        db.close()


def test_many_buyers_never_drive_stock_negative(file_session_factory):
    buyers = 6
    barrier = threading.Barrier(buyers)
    successes = []
    failures = []
    lock = threading.Lock()

    def buy():
        db = file_session_factory()
        try:
            service = OrderService(db, notification_service=RecordingNotifications())
            barrier.wait()
            try:
                order = service.create_order(
                    owner_id=OWNER_ID,
                    line_items=[{"product_id": 2, "quantity": 3}],
                    shipping_address=ADDRESS,
                    payment_method="Cash on Delivery",
                )
                with lock:
                    successes.append(order["id"])
            except InsufficientStock:
                with lock:
                    failures.append(1)
        finally:
            db.close()

    threads = [threading.Thread(target=buy) for _ in range(buyers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    # product 2 starts with 10 units
    assert len(successes) == 3
    assert len(failures) == 3

    db = file_session_factory()
    try:
        assert stock(db, 2) == 1
    finally:
        db.close()
