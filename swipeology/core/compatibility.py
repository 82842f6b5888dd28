"""
Compatibility Scorer
Explainable 0-100 similarity between two profiles, shown next to a card.
The score never gates or orders the swipe deck.

Weights are only counted when the signal exists, so missing data does not
drag a score down:
- Shared interests (35): Jaccard overlap of interest tokens
- Same major (15): always counted
- Icebreakers (10 each): per question answered by both
- Personality badges (20): Jaccard overlap of badge ids
- Same class year (10): always counted
"""

import math
from dataclasses import dataclass, field
from typing import List

from swipeology.constants import (
    BADGE_WEIGHT,
    CLASS_YEAR_WEIGHT,
    COMPATIBILITY_TIERS,
    ICEBREAKER_QUESTIONS,
    ICEBREAKER_WEIGHT,
    INTEREST_WEIGHT,
    MAJOR_WEIGHT,
)
from swipeology.schemas.user import Profile


@dataclass
class CompatibilityResult:
    score: int
    shared_interests: List[str] = field(default_factory=list)
    same_major: bool = False
    icebreaker_matches: int = 0
    badge_overlap: int = 0


@dataclass(frozen=True)
class CompatibilityLabel:
    label: str
    color: str


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python rounds to even)."""
    return int(math.floor(value + 0.5))


def interest_tokens(interests: str) -> List[str]:
    """Lowercased, trimmed, deduplicated tokens of a comma-separated string."""
    tokens = (token.strip().lower() for token in (interests or "").split(","))
    return list(dict.fromkeys(token for token in tokens if token))


def _jaccard_points(a: List[str], b: List[str], weight: int):
    """(points, weight or 0, shared) for two token lists."""
    union = set(a) | set(b)
    if not union:
        return 0, 0, []
    shared = [item for item in a if item in set(b)]
    return round_half_up(weight * len(shared) / len(union)), weight, shared


def calculate_compatibility(profile_a: Profile, profile_b: Profile) -> CompatibilityResult:
    """
    Score two profiles.

    Args:
        profile_a: First profile
        profile_b: Second profile

    Returns:
        CompatibilityResult with the score and the details behind it
    """
    total_points = 0
    max_points = 0

    # Interests
    points, weight, shared_interests = _jaccard_points(
        interest_tokens(profile_a.interests),
        interest_tokens(profile_b.interests),
        INTEREST_WEIGHT,
    )
    total_points += points
    max_points += weight

    # Major
    major_a = profile_a.major.strip().lower()
    major_b = profile_b.major.strip().lower()
    same_major = bool(major_a) and major_a == major_b
    max_points += MAJOR_WEIGHT
    if same_major:
        total_points += MAJOR_WEIGHT

    # Icebreakers
    icebreaker_matches = 0
    for question in ICEBREAKER_QUESTIONS:
        answer_a = profile_a.icebreaker_answers.get(question.id)
        answer_b = profile_b.icebreaker_answers.get(question.id)
        if answer_a and answer_b:
            max_points += ICEBREAKER_WEIGHT
            if answer_a == answer_b:
                total_points += ICEBREAKER_WEIGHT
                icebreaker_matches += 1

    # Badges
    points, weight, shared_badges = _jaccard_points(
        list(dict.fromkeys(profile_a.personality_badges)),
        list(dict.fromkeys(profile_b.personality_badges)),
        BADGE_WEIGHT,
    )
    total_points += points
    max_points += weight

    # Class year
    year_a = profile_a.class_year.strip()
    year_b = profile_b.class_year.strip()
    max_points += CLASS_YEAR_WEIGHT
    if year_a and year_a == year_b:
        total_points += CLASS_YEAR_WEIGHT

    score = round_half_up(100 * total_points / max_points) if max_points > 0 else 0

    return CompatibilityResult(
        score=max(0, min(score, 100)),
        shared_interests=shared_interests,
        same_major=same_major,
        icebreaker_matches=icebreaker_matches,
        badge_overlap=len(shared_badges),
    )


def compatibility_label(score: int) -> CompatibilityLabel:
    """Tier label for a score; lower bounds are inclusive."""
    for lower_bound, label, color in COMPATIBILITY_TIERS:
        if score >= lower_bound:
            return CompatibilityLabel(label=label, color=color)
    _, label, color = COMPATIBILITY_TIERS[-1]
    return CompatibilityLabel(label=label, color=color)
