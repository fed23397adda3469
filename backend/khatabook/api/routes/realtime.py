"""
Realtime views over WebSockets.

On connect the client gets a full snapshot; after that, a fresh snapshot
every time a matching change is published. Disconnecting closes the
subscription handle.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_ws_user
from khatabook.models.user import User
from khatabook.schemas.customer import CustomerResponse
from khatabook.schemas.transaction import TransactionResponse
from khatabook.services.query_service import LedgerSnapshot, sort_by_recency
from khatabook.services.subscriptions import CUSTOMERS, TRANSACTIONS, change_hub

router = APIRouter()
logger = logging.getLogger(__name__)


def _customers_message(db: Session, user_id: int) -> dict:
    try:
        snapshot = LedgerSnapshot.load(db, user_id)
        return {
            "collection": CUSTOMERS,
            "items": [CustomerResponse.model_validate(c).model_dump(mode="json") for c in snapshot.customers],
        }
    finally:
        # Feeds live for minutes; hand the connection back between pushes
        db.close()


def _transactions_message(db: Session, user_id: int, customer_id: Optional[int]) -> dict:
    try:
        snapshot = LedgerSnapshot.load(db, user_id, customer_id=customer_id)
        return {
            "collection": TRANSACTIONS,
            "customer_id": customer_id,
            "items": [
                TransactionResponse.model_validate(t).model_dump(mode="json")
                for t in sort_by_recency(snapshot.transactions)
            ],
        }
    finally:
        db.close()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Clients only listen; anything they send is ignored."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _stream(websocket: WebSocket, subscription, build_message) -> None:
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        await websocket.send_json(await run_in_threadpool(build_message))
        while True:
            getter = asyncio.create_task(subscription.next_event())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                getter.cancel()
                break
            event = getter.result()
            logger.debug(f"Pushing {event.collection} snapshot to user {event.user_id}")
            await websocket.send_json(await run_in_threadpool(build_message))
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        subscription.close()
        logger.info(f"Realtime client for user {subscription.user_id} disconnected")


@router.websocket("/customers")
async def customers_feed(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_ws_user),
):
    await websocket.accept()
    user_id = current_user.id
    subscription = change_hub.subscribe(user_id, CUSTOMERS)
    await _stream(websocket, subscription, lambda: _customers_message(db, user_id))


@router.websocket("/transactions")
async def transactions_feed(
    websocket: WebSocket,
    customer_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_ws_user),
):
    await websocket.accept()
    user_id = current_user.id
    subscription = change_hub.subscribe(user_id, TRANSACTIONS, customer_id)
    await _stream(websocket, subscription, lambda: _transactions_message(db, user_id, customer_id))
