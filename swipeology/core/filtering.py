"""
Candidate Filter
Decides which profiles a viewer may see next in the swipe deck for one
context. Output keeps roster order; compatibility never reorders it.
"""

from typing import Iterable, List, Optional, Union

from swipeology.core.exceptions import InvalidContextError
from swipeology.models.match import Context
from swipeology.models.user import Gender, DatingPreference
from swipeology.schemas.match import SwipeRecord
from swipeology.schemas.user import Profile


def parse_context(value: Union[Context, str]) -> Context:
    """Accept a Context or its literal; reject anything else."""
    if isinstance(value, Context):
        return value
    try:
        return Context(value)
    except (TypeError, ValueError):
        raise InvalidContextError(value) from None


def _preference_allows(preference: str, gender: str) -> bool:
    if preference == DatingPreference.MEN.value:
        return gender == Gender.MAN.value
    if preference == DatingPreference.WOMEN.value:
        return gender == Gender.WOMAN.value
    return True


def is_eligible(viewer: Profile, candidate: Profile, context: Union[Context, str]) -> bool:
    """Context-specific eligibility of one candidate for one viewer."""
    context = parse_context(context)

    if context is Context.FRIENDS:
        return candidate.wants_friends

    if not (viewer.wants_dating and candidate.wants_dating):
        return False
    # both directions of the gender preference must hold
    return _preference_allows(viewer.dating_preference, candidate.gender) and _preference_allows(
        candidate.dating_preference, viewer.gender
    )


def is_blocked_either_way(viewer: Profile, candidate: Profile) -> bool:
    return viewer.has_blocked(candidate.id) or candidate.has_blocked(viewer.id)


def filter_candidates(
    viewer: Optional[Profile],
    roster: Iterable[Profile],
    swipes: Iterable[SwipeRecord],
    context: Union[Context, str],
) -> List[Profile]:
    """
    Swipeable candidates for a viewer.

    Excludes, per candidate:
    - The viewer themself
    - Anyone the viewer already swiped on in this context
    - Anyone the viewer blocked, or who blocked the viewer
    - Anyone not eligible for the context
    """
    context = parse_context(context)

    if viewer is None:
        return []

    # context-level gate: a viewer not dating sees no dating deck
    if context is Context.DATING and not viewer.wants_dating:
        return []

    swiped_ids = {
        swipe.user_to
        for swipe in swipes
        if swipe.user_from == viewer.id and swipe.context == context
    }

    candidates = []
    for candidate in roster:
        if candidate.id == viewer.id:
            continue
        if candidate.id in swiped_ids:
            continue
        if is_blocked_either_way(viewer, candidate):
            continue
        if not is_eligible(viewer, candidate, context):
            continue
        candidates.append(candidate)

    return candidates
