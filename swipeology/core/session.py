"""
Viewer Session
State owned by one logged-in viewer: their profile, the roster, their own
swipes, their matches and the messages of those matches. Realtime inserts
are merged by id, so a pushed event for something already loaded is a no-op.
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from swipeology.core.data_service import ChangeEvent, MATCHES, MESSAGES, RemoteDataService, Subscription
from swipeology.core.engine import SwipeMatchEngine, SwipeOutcome
from swipeology.core.filtering import filter_candidates, parse_context
from swipeology.models.match import Context
from swipeology.schemas.match import MatchRecord, MessageRecord, SwipeRecord
from swipeology.schemas.user import Profile


logger = logging.getLogger(__name__)


class ViewerSession:
    def __init__(self, data_service: RemoteDataService, viewer_id: str, engine: Optional[SwipeMatchEngine] = None):
        self.data = data_service
        self.viewer_id = viewer_id
        self.engine = engine or SwipeMatchEngine(data_service)

        self.viewer: Optional[Profile] = None
        self.roster: List[Profile] = []
        self.swipes: Dict[Tuple[str, str, Context], SwipeRecord] = {}
        self.matches: Dict[str, MatchRecord] = {}
        self.messages: Dict[str, List[MessageRecord]] = {}

        self._match_subscription: Optional[Subscription] = None
        self._message_subscriptions: Dict[str, Subscription] = {}

    # ==================== Loading ====================

    async def refresh(self) -> None:
        """Reload roster, viewer profile, own swipes and matches."""
        self.roster = await self.data.list_profiles()
        self.viewer = next((p for p in self.roster if p.id == self.viewer_id), None)
        self.swipes = {swipe.key: swipe for swipe in await self.data.list_swipes(self.viewer_id)}
        for match in await self.data.list_matches(self.viewer_id):
            self.merge_match(match)

    async def load_messages(self, match_id: str) -> List[MessageRecord]:
        for message in await self.data.list_messages(match_id):
            self.merge_message(message)
        return self.messages_for(match_id)

    # ==================== Deck ====================

    def candidates(self, context: Union[Context, str]) -> List[Profile]:
        return filter_candidates(self.viewer, self.roster, self.swipes.values(), context)

    async def swipe(self, to_id: str, context: Union[Context, str], liked: bool) -> SwipeOutcome:
        context = parse_context(context)
        outcome = await self.engine.record_swipe(self.viewer_id, to_id, context, liked)
        self.swipes[outcome.swipe.key] = outcome.swipe
        if outcome.match:
            self.merge_match(outcome.match)
        return outcome

    # ==================== Matches & messages ====================

    def matches_for(self, context: Union[Context, str]) -> List[MatchRecord]:
        context = parse_context(context)
        return [m for m in self.matches.values() if m.context == context]

    def messages_for(self, match_id: str) -> List[MessageRecord]:
        return list(self.messages.get(match_id, []))

    def merge_match(self, match: MatchRecord) -> bool:
        """Add a match unless one with the same id is present."""
        if not match.involves(self.viewer_id) or match.id in self.matches:
            return False
        self.matches[match.id] = match
        self.messages.setdefault(match.id, [])
        if self._match_subscription is not None:
            self._watch_messages(match.id)
        return True

    def merge_message(self, message: MessageRecord) -> bool:
        """Add a message unless one with the same id is present; keeps created_at order."""
        thread = self.messages.setdefault(message.match_id, [])
        if any(existing.id == message.id for existing in thread):
            return False
        thread.append(message)
        if all(m.created_at is not None for m in thread):
            thread.sort(key=lambda m: m.created_at)
        return True

    def drop_match(self, match_id: str) -> None:
        self.matches.pop(match_id, None)
        self.messages.pop(match_id, None)
        subscription = self._message_subscriptions.pop(match_id, None)
        if subscription:
            subscription.cancel()

    async def unmatch(self, match_id: str) -> bool:
        deleted = await self.engine.remove_match(match_id)
        self.drop_match(match_id)
        return deleted

    async def send_message(self, match_id: str, text: str) -> MessageRecord:
        message = await self.engine.send_message(match_id, self.viewer_id, text)
        self.merge_message(message)
        return message

    # ==================== Realtime ====================

    def _on_match(self, event: ChangeEvent) -> None:
        if self.merge_match(event.record):
            logger.info("[Realtime] New match received: %s", event.record.id)

    def _on_message(self, event: ChangeEvent) -> None:
        self.merge_message(event.record)

    def _watch_messages(self, match_id: str) -> None:
        if match_id not in self._message_subscriptions:
            self._message_subscriptions[match_id] = self.data.subscribe(
                MESSAGES, {"match_id": match_id}, self._on_message
            )

    def start(self) -> None:
        """Subscribe to match inserts for the viewer and messages of known matches."""
        if self._match_subscription is None:
            self._match_subscription = self.data.subscribe(
                MATCHES, {"user_id": self.viewer_id}, self._on_match
            )
        for match_id in self.matches:
            self._watch_messages(match_id)

    def close(self) -> None:
        if self._match_subscription is not None:
            self._match_subscription.cancel()
            self._match_subscription = None
        for subscription in self._message_subscriptions.values():
            subscription.cancel()
        self._message_subscriptions.clear()
