from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Set
import re

from swipeology.constants import (
    BADGE_IDS,
    ICEBREAKER_IDS,
    MAX_BADGES,
    MAX_PHOTOS,
    MIN_AGE,
)
from swipeology.models.user import Gender, DatingPreference


# ==================== Core Profile ====================

class Profile(BaseModel):
    """
    Strict matching profile.
    Built only through normalization.profile_from_record, so gender and
    dating_preference are already canonical.
    """
    id: str
    first_name: str = ""
    age: Optional[int] = None
    gender: str = Gender.PREFER_NOT_TO_SAY.value
    dating_preference: str = DatingPreference.BOTH.value
    pronouns: str = ""
    wants_friends: bool = True
    wants_dating: bool = True
    bio: str = ""
    major: str = ""
    class_year: str = ""
    interests: str = ""
    photos: List[str] = Field(default_factory=list)
    icebreaker_answers: Dict[str, str] = Field(default_factory=dict)
    personality_badges: List[str] = Field(default_factory=list)
    blocked_users: Set[str] = Field(default_factory=set)
    is_verified_esu: bool = False
    phone_verified: bool = False

    def has_blocked(self, user_id: str) -> bool:
        return user_id in self.blocked_users


# ==================== Profile Write Schemas ====================

def _check_photos(v):
    if v is not None and len(v) > MAX_PHOTOS:
        raise ValueError(f"At most {MAX_PHOTOS} photos are allowed.")
    return v


def _check_badges(v):
    if v is None:
        return v
    if len(set(v)) > MAX_BADGES:
        raise ValueError(f"At most {MAX_BADGES} personality badges are allowed.")
    unknown = set(v) - BADGE_IDS
    if unknown:
        raise ValueError(f"Unknown personality badges: {', '.join(sorted(unknown))}")
    # dedupe, keep order
    return list(dict.fromkeys(v))


def _check_icebreakers(v):
    if v is None:
        return v
    unknown = set(v) - ICEBREAKER_IDS
    if unknown:
        raise ValueError(f"Unknown icebreaker questions: {', '.join(sorted(unknown))}")
    return v


class ProfileBase(BaseModel):
    """Fields the client may edit."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    gender: Optional[str] = Field(None, max_length=40)
    pronouns: Optional[str] = Field(None, max_length=40)
    dating_preference: Optional[str] = Field(None, max_length=20)
    wants_friends: Optional[bool] = None
    wants_dating: Optional[bool] = None
    bio: Optional[str] = Field(None, max_length=1000)
    major: Optional[str] = Field(None, max_length=100)
    class_year: Optional[str] = Field(None, max_length=20)
    interests: Optional[str] = Field(None, max_length=500)
    photos: Optional[List[str]] = None
    icebreaker_answers: Optional[Dict[str, str]] = None
    personality_badges: Optional[List[str]] = None

    @validator("photos")
    def validate_photos(cls, v):
        return _check_photos(v)

    @validator("personality_badges")
    def validate_badges(cls, v):
        return _check_badges(v)

    @validator("icebreaker_answers")
    def validate_icebreakers(cls, v):
        return _check_icebreakers(v)


class ProfileCreate(ProfileBase):
    """Registration completion: name, age and gender are required."""
    first_name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=MIN_AGE, le=120)
    gender: str = Field(..., min_length=1, max_length=40)
    university: Optional[str] = Field(None, max_length=120)
    school_email: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)


class ProfileUpdate(ProfileBase):
    """Partial profile edit."""
    pass


# ==================== Phone Verification ====================

def normalize_phone(v: str) -> str:
    # Remove spaces and dashes
    cleaned = re.sub(r"[\s\-]", "", v)
    if not cleaned.startswith("+"):
        cleaned = "+" + cleaned
    if not re.match(r"^\+\d{10,15}$", cleaned):
        raise ValueError("Invalid phone number format. Use international format: +1234567890")
    return cleaned


class PhoneCodeRequest(BaseModel):
    """Ask for a verification code sent to this number."""
    phone_number: str = Field(..., min_length=10, max_length=20)

    @validator("phone_number")
    def validate_phone(cls, v):
        return normalize_phone(v)


class PhoneVerify(PhoneCodeRequest):
    """Confirm the code sent to the number."""
    code: str = Field(..., min_length=6, max_length=6)


class PhoneCodeResponse(BaseModel):
    message: str
    code_sent: bool
    debug_code: Optional[str] = None


# ==================== Responses ====================

class ProfileResponse(BaseModel):
    """Profile as returned to clients."""
    id: str
    first_name: str
    age: Optional[int]
    gender: str
    pronouns: str
    dating_preference: str
    wants_friends: bool
    wants_dating: bool
    bio: str
    major: str
    class_year: str
    interests: str
    photos: List[str]
    icebreaker_answers: Dict[str, str]
    personality_badges: List[str]
    is_verified_esu: bool


class MyProfileResponse(ProfileResponse):
    """Own profile, including private relationship state."""
    blocked_users: List[str]
    phone_verified: bool


class CompatibilityResponse(BaseModel):
    """Compatibility between the current user and another profile."""
    user_id: str
    score: int
    label: str
    color: str
    shared_interests: List[str]
    same_major: bool
    icebreaker_matches: int
    badge_overlap: int


class BlockResponse(BaseModel):
    blocked_user_id: str
    removed_matches: int


class PronounOption(BaseModel):
    id: str
    label: str
    value: str
