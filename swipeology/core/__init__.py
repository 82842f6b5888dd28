# Swipeology matching core
# Pure filtering/scoring plus the swipe/match engine over a RemoteDataService

from .normalization import (
    normalize_gender,
    normalize_dating_preference,
    resolve_intent_flags,
    profile_from_record,
)
from .compatibility import calculate_compatibility, compatibility_label
from .filtering import filter_candidates, is_eligible, parse_context
from .engine import SwipeMatchEngine, SwipeOutcome
from .session import ViewerSession

__all__ = [
    "normalize_gender",
    "normalize_dating_preference",
    "resolve_intent_flags",
    "profile_from_record",
    "calculate_compatibility",
    "compatibility_label",
    "filter_candidates",
    "is_eligible",
    "parse_context",
    "SwipeMatchEngine",
    "SwipeOutcome",
    "ViewerSession",
]
