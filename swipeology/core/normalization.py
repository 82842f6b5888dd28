"""
Normalization Layer
Maps free-form gender, dating preference and intent fields onto the fixed
vocabulary used by matching, and decodes untyped records into Profiles.

Every function here is pure: the same raw record normalized at two call
sites must always produce the same result.
"""

from typing import Any, Mapping, Optional, Tuple

from swipeology.constants import MAX_BADGES, MAX_PHOTOS
from swipeology.core.exceptions import ProfileDecodeError
from swipeology.models.user import Gender, DatingPreference
from swipeology.schemas.user import Profile


_GENDER_ALIASES = {
    "male": Gender.MAN,
    "man": Gender.MAN,
    "m": Gender.MAN,
    "female": Gender.WOMAN,
    "woman": Gender.WOMAN,
    "f": Gender.WOMAN,
    "non-binary": Gender.NON_BINARY,
    "nonbinary": Gender.NON_BINARY,
    "nb": Gender.NON_BINARY,
    "prefer not to say": Gender.PREFER_NOT_TO_SAY,
    "prefer-not-to-say": Gender.PREFER_NOT_TO_SAY,
}

_PREFERENCE_ALIASES = {
    "male": DatingPreference.MEN,
    "men": DatingPreference.MEN,
    "man": DatingPreference.MEN,
    "m": DatingPreference.MEN,
    "female": DatingPreference.WOMEN,
    "women": DatingPreference.WOMEN,
    "woman": DatingPreference.WOMEN,
    "f": DatingPreference.WOMEN,
    "everyone": DatingPreference.BOTH,
    "all": DatingPreference.BOTH,
    "both": DatingPreference.BOTH,
    "no preference": DatingPreference.BOTH,
    "": DatingPreference.BOTH,
}

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0"}

_MODE_KEYS = ("mode", "intent", "looking_for")


def normalize_gender(raw: Optional[str]) -> str:
    """Canonical gender; unknown non-empty values pass through trimmed."""
    if raw is None:
        return Gender.PREFER_NOT_TO_SAY.value
    value = str(raw).strip()
    if not value:
        return Gender.PREFER_NOT_TO_SAY.value
    alias = _GENDER_ALIASES.get(value.lower())
    return alias.value if alias else value


def normalize_dating_preference(raw: Optional[str]) -> str:
    """Canonical dating preference; unknown values pass through trimmed."""
    value = "" if raw is None else str(raw).strip()
    alias = _PREFERENCE_ALIASES.get(value.lower())
    return alias.value if alias else value


def parse_bool_like(value: Any) -> Optional[bool]:
    """
    Read true/false/1/0 in any representation.
    Returns None when the value is absent or cannot be read as a boolean.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def _mode_of(record: Mapping[str, Any]) -> Optional[str]:
    for key in _MODE_KEYS:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


def resolve_intent_flags(record: Mapping[str, Any]) -> Tuple[bool, bool]:
    """
    Derive (wants_friends, wants_dating).

    Explicit boolean-like fields win per flag; otherwise a mode/intent string
    decides; with no source the flag defaults to True. A profile must be
    visible in at least one pool, so (False, False) becomes (True, True).
    """
    mode = _mode_of(record)

    def derive(flag_key: str, pool: str) -> bool:
        explicit = parse_bool_like(record.get(flag_key))
        if explicit is not None:
            return explicit
        if mode is not None:
            return mode in (pool, "both")
        return True

    wants_friends = derive("wants_friends", "friends")
    wants_dating = derive("wants_dating", "dating")

    if not wants_friends and not wants_dating:
        return True, True
    return wants_friends, wants_dating


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _photos_of(record: Mapping[str, Any]) -> list:
    photos = record.get("photos")
    if not photos:
        # legacy photo1_url..photo6_url columns
        photos = [record.get(f"photo{i}_url") for i in range(1, MAX_PHOTOS + 1)]
    return [p.strip() for p in photos if isinstance(p, str) and p.strip()][:MAX_PHOTOS]


def _interests_of(record: Mapping[str, Any]) -> str:
    interests = record.get("interests")
    if isinstance(interests, (list, tuple, set)):
        return ", ".join(_text(i) for i in interests if _text(i))
    return _text(interests)


def _age_of(record: Mapping[str, Any]) -> Optional[int]:
    age = record.get("age")
    if age is None or age == "":
        return None
    try:
        return int(age)
    except (TypeError, ValueError):
        raise ProfileDecodeError(f"Invalid age {age!r} for profile {record.get('id')!r}")


def profile_from_record(record: Mapping[str, Any]) -> Profile:
    """
    Decode an untyped key-value record into a strict Profile.
    Raises ProfileDecodeError when the record has no identity.
    """
    if record is None:
        raise ProfileDecodeError("Cannot decode an empty record.")

    profile_id = _text(record.get("id"))
    if not profile_id:
        raise ProfileDecodeError("Profile record is missing its id.")

    wants_friends, wants_dating = resolve_intent_flags(record)

    answers = record.get("icebreaker_answers") or {}
    badges = list(dict.fromkeys(record.get("personality_badges") or []))
    blocked = _first(record, "blocked_users", "blocked_ids") or []

    return Profile(
        id=profile_id,
        first_name=_text(_first(record, "first_name", "name")),
        age=_age_of(record),
        gender=normalize_gender(record.get("gender")),
        dating_preference=normalize_dating_preference(
            _first(record, "dating_preference", "preference", "interested_in")
        ),
        pronouns=_text(record.get("pronouns")),
        wants_friends=wants_friends,
        wants_dating=wants_dating,
        bio=_text(record.get("bio")),
        major=_text(record.get("major")),
        class_year=_text(record.get("class_year")),
        interests=_interests_of(record),
        photos=_photos_of(record),
        icebreaker_answers={str(k): str(v) for k, v in answers.items() if v},
        personality_badges=[str(b) for b in badges][:MAX_BADGES],
        blocked_users={str(b) for b in blocked if b},
        is_verified_esu=bool(parse_bool_like(_first(record, "is_verified_esu", "school_verified"))),
        phone_verified=bool(parse_bool_like(record.get("phone_verified"))),
    )
