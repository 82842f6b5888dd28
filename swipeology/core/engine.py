"""
Swipe/Match Engine

State per (unordered pair, context):
    untouched -> one-sided like -> matched (until explicit unmatch)
    untouched -> passed (for that direction only)

Recording a swipe always completes before the mutual check runs, since the
check reads the opposite direction. Best-effort steps (mutual check, match
lookup) log failures and report "no match"; steps that need confirmation
(recording a swipe, sending a message, unmatching) raise.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from swipeology.core.data_service import RemoteDataService
from swipeology.core.exceptions import (
    BlockedProfileError,
    DuplicateMatchError,
    MatchNotFoundError,
    NotAParticipantError,
    ProfileNotFoundError,
    RemoteServiceError,
    ValidationError,
)
from swipeology.core.filtering import is_blocked_either_way, parse_context
from swipeology.models.match import Context
from swipeology.schemas.match import MatchRecord, MessageRecord, ReportRecord, SwipeRecord


logger = logging.getLogger(__name__)


@dataclass
class SwipeOutcome:
    swipe: SwipeRecord
    match: Optional[MatchRecord] = None

    @property
    def is_match(self) -> bool:
        return self.match is not None


def _require_id(value: str, name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{name} is required.")
    return str(value).strip()


class SwipeMatchEngine:
    """
    Records swipes and creates/destroys matches through a RemoteDataService.
    An optional chat mirror (FirebaseService) receives chat rooms and
    messages; mirror failures never fail the operation.
    """

    def __init__(self, data_service: RemoteDataService, chat_mirror=None):
        self.data = data_service
        self.chat_mirror = chat_mirror

    # ==================== Swipes ====================

    async def record_swipe(
        self,
        from_id: str,
        to_id: str,
        context: Union[Context, str],
        liked: bool,
    ) -> SwipeOutcome:
        """
        Upsert a swipe and create the match on mutual like.
        Both profiles must exist and neither may have blocked the other.
        """
        context = parse_context(context)
        from_id = _require_id(from_id, "from_id")
        to_id = _require_id(to_id, "to_id")
        if from_id == to_id:
            raise ValidationError("Cannot swipe on yourself.")

        viewer = await self.data.get_profile(from_id)
        if viewer is None:
            raise ProfileNotFoundError(from_id)
        target = await self.data.get_profile(to_id)
        if target is None:
            raise ProfileNotFoundError(to_id)
        if is_blocked_either_way(viewer, target):
            raise BlockedProfileError(to_id)

        swipe = await self.data.upsert_swipe(from_id, to_id, context, bool(liked))
        logger.info(
            "[Swipe] %s -> %s (%s) %s", from_id, to_id, context.value, "LIKE" if liked else "PASS"
        )

        if not liked:
            return SwipeOutcome(swipe=swipe)

        if not await self.check_mutual_swipe(from_id, to_id, context):
            return SwipeOutcome(swipe=swipe)

        match = await self.create_match(from_id, to_id, context)
        return SwipeOutcome(swipe=swipe, match=match)

    async def check_mutual_swipe(self, from_id: str, to_id: str, context: Context) -> bool:
        """True if to_id already liked from_id in this context."""
        try:
            reverse = await self.data.find_swipe(to_id, from_id, context, liked=True)
        except RemoteServiceError as e:
            logger.warning("[Swipe] Mutual check failed for %s/%s: %s", from_id, to_id, e)
            return False
        return reverse is not None

    # ==================== Matches ====================

    async def create_match(
        self, user_a: str, user_b: str, context: Union[Context, str]
    ) -> Optional[MatchRecord]:
        """
        Duplicate-proof match creation.
        Returns the existing match for the pair when there is one; a
        uniqueness violation from storage means another writer won the race,
        so the stored match is fetched and returned. A pair where either
        user blocked the other never matches.
        """
        context = parse_context(context)

        try:
            profile_a = await self.data.get_profile(user_a)
            profile_b = await self.data.get_profile(user_b)
        except RemoteServiceError as e:
            logger.warning("[Match] Profile lookup failed for %s/%s: %s", user_a, user_b, e)
            return None

        if profile_a and profile_b and is_blocked_either_way(profile_a, profile_b):
            logger.info("[Match] Skipped blocked pair %s/%s", user_a, user_b)
            return None

        try:
            existing = await self.data.find_match(user_a, user_b, context)
        except RemoteServiceError as e:
            logger.warning("[Match] Lookup failed for %s/%s: %s", user_a, user_b, e)
            return None

        if existing:
            logger.info("[Match] Match already exists: %s", existing.id)
            return existing

        try:
            match = await self.data.insert_match(user_a, user_b, context)
        except DuplicateMatchError:
            logger.info("[Match] Concurrent match for %s/%s, fetching it", user_a, user_b)
            try:
                return await self.data.find_match(user_a, user_b, context)
            except RemoteServiceError as e:
                logger.warning("[Match] Refetch failed for %s/%s: %s", user_a, user_b, e)
                return None
        except RemoteServiceError as e:
            logger.warning("[Match] Create failed for %s/%s: %s", user_a, user_b, e)
            return None

        self._mirror("create_chat_room", match.id, match.user1, match.user2, match.context.value)
        return match

    async def remove_match(self, match_id: str) -> bool:
        """Delete a match and its messages; swipes stay as they are."""
        match_id = _require_id(match_id, "match_id")
        deleted = await self.data.delete_match(match_id)
        if deleted:
            logger.info("[Match] Match removed: %s", match_id)
            self._mirror("delete_chat_room", match_id)
        return deleted

    # ==================== Messages ====================

    async def send_message(self, match_id: str, sender_id: str, text: str) -> MessageRecord:
        """Append a message; the sender must be one of the match's two users."""
        match_id = _require_id(match_id, "match_id")
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text cannot be empty.")

        match = await self.data.get_match(match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        if not match.involves(sender_id):
            raise NotAParticipantError(f"User {sender_id} is not part of match {match_id}.")

        message = await self.data.insert_message(match_id, sender_id, text)
        self._mirror("push_message", match_id, message.id, sender_id, text)
        return message

    # ==================== Safety ====================

    async def block_user(self, viewer_id: str, target_id: str) -> int:
        """
        Add target to the viewer's blocked set and remove every match
        between the two, in both contexts. Returns the number removed.
        """
        viewer_id = _require_id(viewer_id, "viewer_id")
        target_id = _require_id(target_id, "target_id")
        if viewer_id == target_id:
            raise ValidationError("Cannot block yourself.")

        viewer = await self.data.get_profile(viewer_id)
        if viewer is None:
            raise ValidationError(f"Profile {viewer_id} not found.")

        blocked = sorted(viewer.blocked_users | {target_id})
        await self.data.update_blocked_users(viewer_id, blocked)

        removed = 0
        for context in Context:
            match = await self.data.find_match(viewer_id, target_id, context)
            if match and await self.remove_match(match.id):
                removed += 1

        logger.info("[Block] %s blocked %s (%d matches removed)", viewer_id, target_id, removed)
        return removed

    async def report_user(
        self, reporter_id: str, reported_id: str, reason: str, match_id: Optional[str] = None
    ) -> ReportRecord:
        reporter_id = _require_id(reporter_id, "reporter_id")
        reported_id = _require_id(reported_id, "reported_id")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A report needs a reason.")
        report = await self.data.insert_report(reporter_id, reported_id, reason, match_id)
        logger.info("[Report] %s reported %s: %s", reporter_id, reported_id, reason)
        return report

    # ==================== Chat mirror ====================

    def _mirror(self, method: str, *args) -> None:
        if self.chat_mirror is None or not getattr(self.chat_mirror, "enabled", True):
            return
        try:
            getattr(self.chat_mirror, method)(*args)
        except Exception as e:
            # Log error but don't fail the operation
            logger.warning("[Firebase] %s failed: %s", method, e)
