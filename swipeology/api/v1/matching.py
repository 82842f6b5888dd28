from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
import logging

from swipeology.core.compatibility import calculate_compatibility, compatibility_label
from swipeology.core.dependencies import (
    get_current_user,
    get_current_verified_user,
    get_data_service,
    get_engine,
    get_redis_service,
)
from swipeology.core.engine import SwipeMatchEngine
from swipeology.core.exceptions import (
    BlockedProfileError,
    ProfileNotFoundError,
    RemoteServiceError,
    ValidationError,
)
from swipeology.core.filtering import filter_candidates
from swipeology.db.redis import RedisService
from swipeology.db.repository import SqlDataService
from swipeology.models.match import Context
from swipeology.schemas.match import (
    SwipeCreate,
    SwipeResponse,
    MatchWithProfile,
    MatchListResponse,
    DiscoverProfile,
    DiscoverResponse,
)
from swipeology.schemas.user import Profile, ProfileResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matching", tags=["Matching"])


def to_public(profile: Profile) -> ProfileResponse:
    """Public view of a profile (no blocked list or phone state)."""
    return ProfileResponse(**profile.model_dump(exclude={"blocked_users", "phone_verified"}))


def service_unavailable(e: RemoteServiceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Data service unavailable: {e}",
    )


@router.get("/discover", response_model=DiscoverResponse)
async def discover_profiles(
    context: Context = Query(...),
    limit: int = Query(10, ge=1, le=50),
    current_user: Profile = Depends(get_current_verified_user),
    data: SqlDataService = Depends(get_data_service),
    redis: RedisService = Depends(get_redis_service),
):
    """
    Get profiles to swipe on (discover deck) for one context.
    Excludes:
    - Own profile
    - Profiles already swiped in this context
    - Blocked users, in either direction
    - Profiles not eligible for the context
    """
    try:
        roster = await data.list_profiles()
        swipes = await data.list_swipes(current_user.id, context)
    except RemoteServiceError as e:
        raise service_unavailable(e)

    candidates = filter_candidates(current_user, roster, swipes, context)[:limit]

    profiles = []
    for candidate in candidates:
        result = calculate_compatibility(current_user, candidate)
        profiles.append(
            DiscoverProfile(
                profile=to_public(candidate),
                compatibility_score=result.score,
                compatibility_label=compatibility_label(result.score).label,
                shared_interests=result.shared_interests,
            )
        )

    return DiscoverResponse(
        context=context,
        profiles=profiles,
        remaining_swipes=await redis.remaining_swipes(current_user.id),
    )


@router.post("/swipe", response_model=SwipeResponse)
async def swipe(
    swipe_data: SwipeCreate,
    current_user: Profile = Depends(get_current_verified_user),
    engine: SwipeMatchEngine = Depends(get_engine),
    redis: RedisService = Depends(get_redis_service),
):
    """
    Record a swipe (like or pass) in one context.
    Re-swiping the same profile overwrites the earlier decision.
    If mutual like, creates (or returns) the match.
    """
    # Prevent swiping on self
    if swipe_data.user_to == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot swipe on yourself.",
        )

    # Check swipe limit
    can_swipe, _ = await redis.check_swipe_limit(current_user.id)
    if not can_swipe:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Daily swipe limit reached. Try again tomorrow.",
        )

    try:
        outcome = await engine.record_swipe(
            current_user.id, swipe_data.user_to, swipe_data.context, swipe_data.liked
        )
    except (ProfileNotFoundError, BlockedProfileError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RemoteServiceError as e:
        raise service_unavailable(e)

    return SwipeResponse(swipe=outcome.swipe, is_match=outcome.is_match, match=outcome.match)


@router.get("/matches", response_model=MatchListResponse)
async def get_matches(
    context: Optional[Context] = Query(None),
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Get matches for current user, newest first, optionally for one context."""
    try:
        matches = await data.list_matches(current_user.id, context)
    except RemoteServiceError as e:
        raise service_unavailable(e)

    # Build response with matched user profiles
    match_list = []
    for match in matches:
        other = await data.get_profile(match.other_user(current_user.id))
        if other is None:
            continue
        match_list.append(
            MatchWithProfile(
                match_id=match.id,
                context=match.context,
                created_at=match.created_at,
                matched_user=to_public(other),
            )
        )

    return MatchListResponse(
        matches=match_list,
        total=len(match_list),
    )


@router.delete("/matches/{match_id}")
async def unmatch(
    match_id: str,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
    engine: SwipeMatchEngine = Depends(get_engine),
):
    """Unmatch from a user. Messages of the match are deleted with it."""
    match = await data.get_match(match_id)

    if not match or not match.involves(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )

    try:
        await engine.remove_match(match_id)
    except RemoteServiceError as e:
        raise service_unavailable(e)

    return {"message": "Successfully unmatched."}
