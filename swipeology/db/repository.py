"""
SQLAlchemy-backed Remote Data Service.
Each operation runs in its own session and commits before returning, then
pushes realtime insert events for matches and messages.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, and_, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swipeology.core.data_service import ChangeEvent, EventHub, MATCHES, MESSAGES, Subscription
from swipeology.core.exceptions import DuplicateMatchError, ProfileConflictError, RemoteServiceError
from swipeology.core.normalization import profile_from_record
from swipeology.models.match import Context, Match, Message, Report, Swipe, make_pair_key, utcnow
from swipeology.models.user import User, new_id
from swipeology.schemas.match import MatchRecord, MessageRecord, ReportRecord, SwipeRecord
from swipeology.schemas.user import Profile


logger = logging.getLogger(__name__)

UNIQUE_PROFILE_FIELDS = ("phone_number", "school_email")


def _dialect_insert(session: AsyncSession):
    """INSERT construct with ON CONFLICT support for the bound dialect."""
    if session.get_bind().dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert


def user_row_to_profile(row: User) -> Profile:
    """Run a users row through the normalization boundary."""
    record = {column.key: getattr(row, column.key) for column in User.__table__.columns}
    return profile_from_record(record)


class SqlDataService:
    """Remote Data Service over an async SQLAlchemy session factory."""

    def __init__(self, session_maker: async_sessionmaker, events: Optional[EventHub] = None):
        self._session_maker = session_maker
        self.events = events if events is not None else EventHub()

    @asynccontextmanager
    async def _session(self, action: str):
        async with self._session_maker() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning("[DB] %s failed: %s", action, e)
                raise RemoteServiceError(f"{action} failed: {e.__class__.__name__}") from e

    # ==================== Profiles ====================

    async def list_profiles(self) -> List[Profile]:
        async with self._session("list profiles") as session:
            result = await session.execute(select(User).order_by(User.created_at, User.id))
            return [user_row_to_profile(row) for row in result.scalars().all()]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        async with self._session("get profile") as session:
            row = await session.get(User, user_id)
            return user_row_to_profile(row) if row else None

    async def save_profile(self, user_id: str, fields: Dict[str, Any]) -> Profile:
        """
        Create the users row if missing, then apply the given fields.
        Raises ProfileConflictError when a phone number or school email
        already belongs to another user.
        """
        async with self._session("save profile") as session:
            row = await session.get(User, user_id)
            if row is None:
                row = User(id=user_id)
                session.add(row)
            for key, value in fields.items():
                setattr(row, key, value)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                taken = [name for name in UNIQUE_PROFILE_FIELDS if fields.get(name)]
                raise ProfileConflictError(
                    f"{' or '.join(taken) or 'Profile field'} is already in use by another account."
                ) from e
            await session.refresh(row)
            return user_row_to_profile(row)

    async def mark_phone_verified(self, user_id: str, phone_number: str) -> Profile:
        """Record a confirmed phone number for the user."""
        profile = await self.save_profile(user_id, {"phone_number": phone_number, "phone_verified": True})
        logger.info("[DB] Phone verified for %s", user_id)
        return profile

    async def update_blocked_users(self, user_id: str, blocked_users: List[str]) -> None:
        async with self._session("update blocked users") as session:
            await session.execute(
                update(User).where(User.id == user_id).values(blocked_users=list(blocked_users))
            )
            await session.commit()

    async def delete_account(self, user_id: str) -> None:
        """Delete a user and everything owned by or referencing them."""
        async with self._session("delete account") as session:
            match_ids = select(Match.id).where(or_(Match.user1 == user_id, Match.user2 == user_id))
            await session.execute(
                delete(Message).where(or_(Message.match_id.in_(match_ids), Message.sender_id == user_id))
            )
            await session.execute(delete(Match).where(or_(Match.user1 == user_id, Match.user2 == user_id)))
            await session.execute(delete(Swipe).where(or_(Swipe.user_from == user_id, Swipe.user_to == user_id)))
            await session.execute(delete(Report).where(Report.reporter_id == user_id))
            await session.execute(delete(User).where(User.id == user_id))
            await session.commit()
        logger.info("[DB] Account deleted: %s", user_id)

    # ==================== Swipes ====================

    async def upsert_swipe(self, user_from: str, user_to: str, context: Context, liked: bool) -> SwipeRecord:
        """Insert or overwrite the swipe keyed by (from, to, context)."""
        async with self._session("upsert swipe") as session:
            insert = _dialect_insert(session)
            stmt = insert(Swipe).values(
                id=new_id(),
                user_from=user_from,
                user_to=user_to,
                context=Context(context).value,
                liked=liked,
                created_at=utcnow(),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_from", "user_to", "context"],
                set_={"liked": stmt.excluded.liked, "created_at": stmt.excluded.created_at},
            )
            await session.execute(stmt)
            await session.commit()

            result = await session.execute(
                select(Swipe).where(
                    and_(
                        Swipe.user_from == user_from,
                        Swipe.user_to == user_to,
                        Swipe.context == Context(context).value,
                    )
                )
            )
            return SwipeRecord.model_validate(result.scalar_one())

    async def find_swipe(
        self, user_from: str, user_to: str, context: Context, liked: Optional[bool] = True
    ) -> Optional[SwipeRecord]:
        async with self._session("find swipe") as session:
            conditions = [
                Swipe.user_from == user_from,
                Swipe.user_to == user_to,
                Swipe.context == Context(context).value,
            ]
            if liked is not None:
                conditions.append(Swipe.liked == liked)
            result = await session.execute(select(Swipe).where(and_(*conditions)).limit(1))
            row = result.scalar_one_or_none()
            return SwipeRecord.model_validate(row) if row else None

    async def list_swipes(self, user_from: str, context: Optional[Context] = None) -> List[SwipeRecord]:
        async with self._session("list swipes") as session:
            query = select(Swipe).where(Swipe.user_from == user_from)
            if context is not None:
                query = query.where(Swipe.context == Context(context).value)
            result = await session.execute(query.order_by(Swipe.created_at))
            return [SwipeRecord.model_validate(row) for row in result.scalars().all()]

    # ==================== Matches ====================

    async def find_match(self, user_a: str, user_b: str, context: Context) -> Optional[MatchRecord]:
        """Existing match for the unordered pair, in either orientation."""
        async with self._session("find match") as session:
            result = await session.execute(
                select(Match)
                .where(
                    and_(
                        or_(
                            and_(Match.user1 == user_a, Match.user2 == user_b),
                            and_(Match.user1 == user_b, Match.user2 == user_a),
                        ),
                        Match.context == Context(context).value,
                    )
                )
                .order_by(Match.created_at)
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return MatchRecord.model_validate(row) if row else None

    async def get_match(self, match_id: str) -> Optional[MatchRecord]:
        async with self._session("get match") as session:
            row = await session.get(Match, match_id)
            return MatchRecord.model_validate(row) if row else None

    async def insert_match(self, user1: str, user2: str, context: Context) -> MatchRecord:
        """
        Insert a match row.
        Raises DuplicateMatchError when the pair already has a match in this
        context (unique on pair_key, context).
        """
        async with self._session("insert match") as session:
            row = Match(
                user1=user1,
                user2=user2,
                pair_key=make_pair_key(user1, user2),
                context=Context(context).value,
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateMatchError(
                    f"Match already exists for {user1}/{user2} in {Context(context).value}"
                ) from e
            await session.refresh(row)
            record = MatchRecord.model_validate(row)

        logger.info("[DB] Match created: %s", record.id)
        self.events.publish(ChangeEvent(collection=MATCHES, record=record))
        return record

    async def delete_match(self, match_id: str) -> bool:
        """Delete a match and its messages. Returns False if it did not exist."""
        async with self._session("delete match") as session:
            await session.execute(delete(Message).where(Message.match_id == match_id))
            result = await session.execute(delete(Match).where(Match.id == match_id))
            await session.commit()
            return result.rowcount > 0

    async def list_matches(self, user_id: str, context: Optional[Context] = None) -> List[MatchRecord]:
        async with self._session("list matches") as session:
            query = select(Match).where(or_(Match.user1 == user_id, Match.user2 == user_id))
            if context is not None:
                query = query.where(Match.context == Context(context).value)
            result = await session.execute(query.order_by(Match.created_at.desc()))
            return [MatchRecord.model_validate(row) for row in result.scalars().all()]

    # ==================== Messages ====================

    async def list_messages(self, match_id: str) -> List[MessageRecord]:
        async with self._session("list messages") as session:
            result = await session.execute(
                select(Message).where(Message.match_id == match_id).order_by(Message.created_at.asc())
            )
            return [MessageRecord.model_validate(row) for row in result.scalars().all()]

    async def insert_message(self, match_id: str, sender_id: str, text: str) -> MessageRecord:
        async with self._session("insert message") as session:
            row = Message(match_id=match_id, sender_id=sender_id, message_text=text)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            record = MessageRecord.model_validate(row)

        self.events.publish(ChangeEvent(collection=MESSAGES, record=record))
        return record

    # ==================== Reports ====================

    async def insert_report(
        self, reporter_id: str, reported_id: str, reason: str, match_id: Optional[str] = None
    ) -> ReportRecord:
        async with self._session("insert report") as session:
            row = Report(reporter_id=reporter_id, reported_id=reported_id, reason=reason, match_id=match_id)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return ReportRecord.model_validate(row)

    # ==================== Realtime ====================

    def subscribe(self, collection: str, filters: Optional[Dict[str, str]], on_event) -> Subscription:
        return self.events.subscribe(collection, filters, on_event)
