"""
Remote Data Service interface and realtime event delivery.

The matching core only talks to storage through RemoteDataService, so the
backing store (PostgreSQL, SQLite, a hosted backend) stays replaceable.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from swipeology.models.match import Context
from swipeology.schemas.match import MatchRecord, MessageRecord, ReportRecord, SwipeRecord
from swipeology.schemas.user import Profile


logger = logging.getLogger(__name__)

MATCHES = "matches"
MESSAGES = "messages"
COLLECTIONS = (MATCHES, MESSAGES)


@dataclass(frozen=True)
class ChangeEvent:
    """Realtime notification; only inserts are pushed."""
    collection: str
    record: Any
    type: str = "insert"


EventHandler = Callable[[ChangeEvent], None]


class Subscription:
    """Cancellable handle returned by subscribe()."""

    def __init__(self, hub: "EventHub", collection: str, filters: Dict[str, str], handler: EventHandler):
        self._hub = hub
        self.collection = collection
        self.filters = dict(filters)
        self.handler = handler
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        if event.collection != self.collection:
            return False
        record = event.record
        for key, value in self.filters.items():
            if key == "user_id":
                # participant filter for matches
                if value not in (getattr(record, "user1", None), getattr(record, "user2", None)):
                    return False
            elif getattr(record, key, None) != value:
                return False
        return True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._hub.remove(self)


class EventHub:
    """
    In-process fan-out of insert events.
    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def subscribe(self, collection: str, filters: Optional[Dict[str, str]], handler: EventHandler) -> Subscription:
        if collection not in COLLECTIONS:
            raise ValueError(f"Cannot subscribe to {collection!r}. Expected one of {COLLECTIONS}.")
        subscription = Subscription(self, collection, filters or {}, handler)
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s %s", collection, subscription.filters)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("Unsubscribed from %s %s", subscription.collection, subscription.filters)

    def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.active or not subscription.matches(event):
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.exception("Realtime handler failed for %s event", event.collection)

    def __len__(self) -> int:
        return len(self._subscriptions)


class RemoteDataService(Protocol):
    """Operations the matching core needs from storage."""

    async def list_profiles(self) -> List[Profile]: ...

    async def get_profile(self, user_id: str) -> Optional[Profile]: ...

    async def upsert_swipe(self, user_from: str, user_to: str, context: Context, liked: bool) -> SwipeRecord: ...

    async def find_swipe(
        self, user_from: str, user_to: str, context: Context, liked: Optional[bool] = True
    ) -> Optional[SwipeRecord]: ...

    async def list_swipes(self, user_from: str, context: Optional[Context] = None) -> List[SwipeRecord]: ...

    async def find_match(self, user_a: str, user_b: str, context: Context) -> Optional[MatchRecord]: ...

    async def get_match(self, match_id: str) -> Optional[MatchRecord]: ...

    async def insert_match(self, user1: str, user2: str, context: Context) -> MatchRecord: ...

    async def delete_match(self, match_id: str) -> bool: ...

    async def list_matches(self, user_id: str, context: Optional[Context] = None) -> List[MatchRecord]: ...

    async def list_messages(self, match_id: str) -> List[MessageRecord]: ...

    async def insert_message(self, match_id: str, sender_id: str, text: str) -> MessageRecord: ...

    async def update_blocked_users(self, user_id: str, blocked_users: List[str]) -> None: ...

    async def mark_phone_verified(self, user_id: str, phone_number: str) -> Profile: ...

    async def insert_report(
        self, reporter_id: str, reported_id: str, reason: str, match_id: Optional[str] = None
    ) -> ReportRecord: ...

    async def delete_account(self, user_id: str) -> None: ...

    def subscribe(
        self, collection: str, filters: Optional[Dict[str, str]], on_event: EventHandler
    ) -> Subscription: ...
