from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from swipeology.models.match import Context
from swipeology.schemas.user import ProfileResponse


# ==================== Core Records ====================

class SwipeRecord(BaseModel):
    """Directed swipe decision."""
    id: str
    user_from: str
    user_to: str
    context: Context
    liked: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def key(self) -> tuple:
        return (self.user_from, self.user_to, self.context)


class MatchRecord(BaseModel):
    """Undirected pairing within one context."""
    id: str
    user1: str
    user2: str
    context: Context
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1, self.user2)

    def other_user(self, user_id: str) -> str:
        return self.user2 if self.user1 == user_id else self.user1


class MessageRecord(BaseModel):
    """Chat message owned by one match."""
    id: str
    match_id: str
    sender_id: str
    message_text: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReportRecord(BaseModel):
    id: str
    reporter_id: str
    reported_id: str
    match_id: Optional[str] = None
    reason: str
    reported_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ==================== Swipe Schemas ====================

class SwipeCreate(BaseModel):
    """Schema for creating a swipe."""
    user_to: str = Field(..., min_length=1)
    context: Context
    liked: bool


class SwipeResponse(BaseModel):
    """Schema for swipe response."""
    swipe: SwipeRecord
    is_match: bool = False  # True if this swipe created or found a match
    match: Optional[MatchRecord] = None


# ==================== Match Schemas ====================

class MatchWithProfile(BaseModel):
    """Match with the other user's profile info."""
    match_id: str
    context: Context
    created_at: Optional[datetime]
    matched_user: ProfileResponse


class MatchListResponse(BaseModel):
    """List of matches."""
    matches: List[MatchWithProfile]
    total: int


# ==================== Discover Schemas ====================

class DiscoverProfile(BaseModel):
    """Profile shown in discover/swipe deck."""
    profile: ProfileResponse
    compatibility_score: int
    compatibility_label: str
    shared_interests: List[str]


class DiscoverResponse(BaseModel):
    """Response for discover endpoint."""
    context: Context
    profiles: List[DiscoverProfile]
    remaining_swipes: Optional[int]


# ==================== Chat Schemas ====================

class MessageCreate(BaseModel):
    message_text: str = Field(..., min_length=1, max_length=2000)


class MessageListResponse(BaseModel):
    match_id: str
    messages: List[MessageRecord]


class ReportCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)
    match_id: Optional[str] = None
