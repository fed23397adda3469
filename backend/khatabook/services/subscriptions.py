"""
In-process change feed for realtime views.

A subscription is an explicit handle filtered by owner and, optionally,
customer. Mutating services publish a ChangeEvent after their commit;
every matching subscription gets it on its own asyncio queue. Publishers
run in FastAPI's threadpool, so delivery hops onto the subscriber's loop
with call_soon_threadsafe.

Last writer wins: subscribers re-read state on each event, nothing is merged.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

CUSTOMERS = "customers"
TRANSACTIONS = "transactions"


@dataclass(frozen=True)
class ChangeEvent:
    user_id: int
    collection: str  # CUSTOMERS or TRANSACTIONS
    action: str  # "create", "update", "delete"
    customer_id: Optional[int] = None
    resource_id: Optional[int] = None


class Subscription:
    """Handle returned by ChangeHub.subscribe. Close it to detach."""

    def __init__(self, hub: "ChangeHub", user_id: int, collection: str,
                 customer_id: Optional[int], loop: asyncio.AbstractEventLoop):
        self.user_id = user_id
        self.collection = collection
        self.customer_id = customer_id
        self.queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()
        self._hub = hub
        self._loop = loop
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        if event.user_id != self.user_id or event.collection != self.collection:
            return False
        return self.customer_id is None or event.customer_id == self.customer_id

    def _deliver(self, event: ChangeEvent) -> None:
        self._loop.call_soon_threadsafe(self.queue.put_nowait, event)

    async def next_event(self) -> ChangeEvent:
        return await self.queue.get()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._hub._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ChangeHub:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []

    def subscribe(self, user_id: int, collection: str, customer_id: Optional[int] = None) -> Subscription:
        """Must be called from inside a running event loop."""
        if collection not in (CUSTOMERS, TRANSACTIONS):
            raise ValueError(f"Unknown collection: {collection}")
        sub = Subscription(self, user_id, collection, customer_id, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug(f"Subscribed user {user_id} to {collection} (customer={customer_id})")
        return sub

    def publish(self, event: ChangeEvent) -> int:
        """Fan out to matching subscriptions. Returns how many were notified."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        delivered = 0
        for sub in targets:
            try:
                sub._deliver(event)
                delivered += 1
            except RuntimeError:
                # Subscriber's loop already closed
                logger.warning(f"Dropping stale subscription for user {sub.user_id} on {sub.collection}")
                sub.close()
        return delivered

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)


# Global hub instance
change_hub = ChangeHub()


def publish_ledger_change(user_id: int, customer_id: int, action: str,
                          transaction_id: Optional[int] = None) -> None:
    """A transaction write changes both the transaction list and the customer's totals."""
    change_hub.publish(ChangeEvent(user_id, TRANSACTIONS, action, customer_id, transaction_id))
    change_hub.publish(ChangeEvent(user_id, CUSTOMERS, "update", customer_id, customer_id))
