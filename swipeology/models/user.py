from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, JSON
from sqlalchemy.sql import func
import uuid
import enum

from swipeology.db.session import Base


class Gender(str, enum.Enum):
    MAN = "man"
    WOMAN = "woman"
    NON_BINARY = "non-binary"
    PREFER_NOT_TO_SAY = "prefer not to say"


class DatingPreference(str, enum.Enum):
    MEN = "men"
    WOMEN = "women"
    BOTH = "both"


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User account and public matching profile."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    phone_number = Column(String(20), unique=True, nullable=True)
    school_email = Column(String(255), unique=True, nullable=True)
    university = Column(String(120), nullable=True)

    # Verification
    is_verified_esu = Column(Boolean, default=False)
    phone_verified = Column(Boolean, default=False)

    # Basic Info
    first_name = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(40), nullable=True)  # man, woman, non-binary, prefer not to say
    pronouns = Column(String(40), nullable=True)
    dating_preference = Column(String(20), nullable=True)  # men, women, both

    # Intent
    wants_friends = Column(Boolean, default=True)
    wants_dating = Column(Boolean, default=True)

    # Content
    bio = Column(Text, nullable=True)
    major = Column(String(100), nullable=True)
    class_year = Column(String(20), nullable=True)
    interests = Column(Text, nullable=True)  # comma-separated
    photos = Column(JSON, default=list)  # up to 6 photo URLs
    icebreaker_answers = Column(JSON, default=dict)  # question id -> answer
    personality_badges = Column(JSON, default=list)  # badge ids

    # Relationship state
    blocked_users = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
