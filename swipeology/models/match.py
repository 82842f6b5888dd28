from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from datetime import datetime, timezone
import enum

from swipeology.db.session import Base
from swipeology.models.user import new_id


class Context(str, enum.Enum):
    """The two independent relationship pools."""

    FRIENDS = "friends"
    DATING = "dating"


class ReportReason(str, enum.Enum):
    HARASSMENT = "Harassment"
    FAKE_PROFILE = "Fake Profile"
    INAPPROPRIATE = "Inappropriate"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered pair of user ids."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Swipe(Base):
    """Directed swipe decision, one row per (from, to, context)."""

    __tablename__ = "swipes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_from = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_to = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    context = Column(String(10), nullable=False)  # friends, dating
    liked = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_from", "user_to", "context", name="unique_swipe"),
    )


class Match(Base):
    """Undirected pairing of two users within one context."""

    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=new_id)
    user1 = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user2 = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pair_key = Column(String(80), nullable=False)  # sorted "low:high"
    context = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("pair_key", "context", name="unique_match_pair"),
    )


class Message(Base):
    """Chat message, append-only, owned by one match."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    match_id = Column(String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class Report(Base):
    """User report submitted from a chat or profile."""

    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=new_id)
    reporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reported_id = Column(String(36), nullable=False, index=True)
    match_id = Column(String(36), nullable=True)
    reason = Column(String(200), nullable=False)
    reported_at = Column(DateTime(timezone=True), default=utcnow)
