"""Change hub delivery and the realtime WebSocket feeds."""
import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from khatabook.api.deps import get_db
from khatabook.core.security import get_password_hash
from khatabook.db.init_db import init_db
from khatabook.main import app
from khatabook.models.user import User
from khatabook.services.subscriptions import CUSTOMERS, TRANSACTIONS, ChangeEvent, ChangeHub
from conftest import TEST_PASSWORD, login, money


def test_publish_reaches_only_matching_subscriptions():
    async def scenario():
        hub = ChangeHub()
        mine = hub.subscribe(1, CUSTOMERS)
        someone_else = hub.subscribe(2, CUSTOMERS)
        one_customer = hub.subscribe(1, TRANSACTIONS, customer_id=5)
        all_transactions = hub.subscribe(1, TRANSACTIONS)

        assert hub.publish(ChangeEvent(1, CUSTOMERS, "create", 5, 5)) == 1
        event = await asyncio.wait_for(mine.next_event(), timeout=1)
        assert event.action == "create" and event.customer_id == 5

        assert hub.publish(ChangeEvent(1, TRANSACTIONS, "create", 6, 60)) == 1
        assert hub.publish(ChangeEvent(1, TRANSACTIONS, "create", 5, 61)) == 2
        await asyncio.sleep(0)

        assert someone_else.queue.empty()
        assert one_customer.queue.qsize() == 1
        assert all_transactions.queue.qsize() == 2
        assert (await one_customer.next_event()).resource_id == 61

    asyncio.run(scenario())


def test_publish_from_worker_thread():
    async def scenario():
        hub = ChangeHub()
        sub = hub.subscribe(7, TRANSACTIONS)
        delivered = await asyncio.to_thread(hub.publish, ChangeEvent(7, TRANSACTIONS, "delete", 3, 9))
        assert delivered == 1
        event = await asyncio.wait_for(sub.next_event(), timeout=1)
        assert event.action == "delete"

    asyncio.run(scenario())


def test_closed_subscription_stops_receiving():
    async def scenario():
        hub = ChangeHub()
        with hub.subscribe(1, CUSTOMERS) as sub:
            assert hub.subscriber_count() == 1
        assert sub.closed
        assert hub.subscriber_count() == 0
        assert hub.publish(ChangeEvent(1, CUSTOMERS, "update", 1, 1)) == 0
        sub.close()  # idempotent

    asyncio.run(scenario())


def test_subscription_on_dead_loop_is_dropped():
    hub = ChangeHub()

    async def subscribe():
        return hub.subscribe(1, CUSTOMERS)

    asyncio.run(subscribe())
    assert hub.subscriber_count() == 1
    assert hub.publish(ChangeEvent(1, CUSTOMERS, "update", 1, 1)) == 0
    assert hub.subscriber_count() == 0


def test_unknown_collection_is_rejected():
    async def scenario():
        with pytest.raises(ValueError):
            ChangeHub().subscribe(1, "invoices")

    asyncio.run(scenario())


def test_subscribe_needs_running_loop():
    with pytest.raises(RuntimeError):
        ChangeHub().subscribe(1, CUSTOMERS)


# ==============================================================================
# WEBSOCKETS
# ==============================================================================

def _token(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_customers_feed_sends_snapshot_then_updates(client, auth_headers, customer):
    with client.websocket_connect(f"/ws/customers?token={_token(auth_headers)}") as ws:
        first = ws.receive_json()
        assert first["collection"] == "customers"
        assert [c["name"] for c in first["items"]] == ["Ravi Kumar"]
        assert money(first["items"][0]["balance"]) == 0

        resp = client.post(
            f"/customers/{customer.id}/transactions",
            json={"type": "credit", "amount": "250"},
            headers=auth_headers,
        )
        assert resp.status_code == 201

        update = ws.receive_json()
        assert money(update["items"][0]["total_credit"]) == 250
        assert money(update["items"][0]["balance"]) == -250


def test_transactions_feed_for_one_customer(client, auth_headers, customer):
    url = f"/ws/transactions?token={_token(auth_headers)}&customer_id={customer.id}"
    with client.websocket_connect(url) as ws:
        first = ws.receive_json()
        assert first == {"collection": "transactions", "customer_id": customer.id, "items": []}

        created = client.post(
            f"/customers/{customer.id}/transactions",
            json={"type": "debit", "amount": "40", "payment_method": "upi"},
            headers=auth_headers,
        ).json()

        update = ws.receive_json()
        assert [t["id"] for t in update["items"]] == [created["id"]]

        client.delete(f"/customers/{customer.id}/transactions/{created['id']}", headers=auth_headers)
        assert ws.receive_json()["items"] == []


def test_feed_rejects_missing_or_bad_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/customers") as ws:
            ws.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/transactions?token=garbage") as ws:
            ws.receive_json()


def test_open_feed_does_not_pin_a_pooled_connection(tmp_path):
    # One pooled connection, no overflow: an idle feed must not keep it checked out
    engine = create_engine(
        f"sqlite:///{tmp_path / 'pooled.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=5,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with factory() as session:
        session.add(User(email="pool@shop.in", name="Pool", hashed_password=get_password_hash(TEST_PASSWORD)))
        session.commit()

    def override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        client = TestClient(app)
        headers = login(client, "pool@shop.in")
        with client.websocket_connect(f"/ws/customers?token={_token(headers)}") as ws:
            assert ws.receive_json()["items"] == []
            assert engine.pool.checkedout() == 0

            created = client.post("/customers", json={"name": "Asha", "phone": "9000000001"}, headers=headers)
            assert created.status_code == 201
            assert [c["name"] for c in ws.receive_json()["items"]] == ["Asha"]
            assert client.get("/customers", headers=headers).status_code == 200
    finally:
        app.dependency_overrides.clear()
        engine.dispose()
