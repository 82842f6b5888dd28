from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import logging

from swipeology.api.v1.matching import to_public
from swipeology.config import settings
from swipeology.constants import PRONOUN_OPTIONS
from swipeology.core.compatibility import calculate_compatibility, compatibility_label
from swipeology.core.dependencies import (
    get_current_user,
    get_current_user_id,
    get_data_service,
    get_engine,
    get_redis_service,
)
from swipeology.core.engine import SwipeMatchEngine
from swipeology.core.exceptions import ProfileConflictError, ValidationError
from swipeology.core.filtering import is_blocked_either_way
from swipeology.core.normalization import (
    normalize_dating_preference,
    normalize_gender,
    resolve_intent_flags,
)
from swipeology.core.security import generate_otp
from swipeology.db.redis import RedisService
from swipeology.db.repository import SqlDataService
from swipeology.schemas.match import ReportCreate, ReportRecord
from swipeology.schemas.user import (
    BlockResponse,
    CompatibilityResponse,
    MyProfileResponse,
    PhoneCodeRequest,
    PhoneCodeResponse,
    PhoneVerify,
    Profile,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    PronounOption,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def to_private(profile: Profile) -> MyProfileResponse:
    data = profile.model_dump()
    data["blocked_users"] = sorted(profile.blocked_users)
    return MyProfileResponse(**data)


def normalized_fields(update: dict, current: Profile = None) -> dict:
    """Canonicalize gender, preference and intent flags before storage."""
    if "gender" in update:
        update["gender"] = normalize_gender(update["gender"])
    if "dating_preference" in update:
        update["dating_preference"] = normalize_dating_preference(update["dating_preference"])
    if "wants_friends" in update or "wants_dating" in update:
        merged = {
            "wants_friends": current.wants_friends if current else None,
            "wants_dating": current.wants_dating if current else None,
        }
        merged.update({k: v for k, v in update.items() if k in merged})
        update["wants_friends"], update["wants_dating"] = resolve_intent_flags(merged)
    return update


@router.get("/me", response_model=MyProfileResponse)
async def get_my_profile(current_user: Profile = Depends(get_current_user)):
    """Get current user's profile."""
    return to_private(current_user)


@router.post("/me", response_model=MyProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    user_id: str = Depends(get_current_user_id),
    data: SqlDataService = Depends(get_data_service),
):
    """Complete registration by creating the current user's profile (18+ only)."""
    if await data.get_profile(user_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile already exists. Use PUT to update.",
        )

    fields = normalized_fields(profile_data.model_dump(exclude_none=True))
    fields.setdefault("dating_preference", normalize_dating_preference(None))
    fields["wants_friends"], fields["wants_dating"] = resolve_intent_flags(fields)
    fields["blocked_users"] = []

    try:
        profile = await data.save_profile(user_id, fields)
    except ProfileConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.info("[Profile] Registration completed for %s", user_id)
    return to_private(profile)


@router.put("/me", response_model=MyProfileResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Update current user's profile. Only provided fields change."""
    update_data = normalized_fields(profile_data.model_dump(exclude_unset=True), current_user)
    profile = await data.save_profile(current_user.id, update_data)
    return to_private(profile)


@router.delete("/me")
async def delete_account(
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Delete the account with its swipes, matches and messages."""
    await data.delete_account(current_user.id)
    return {"message": "Account deleted."}


@router.get("/pronouns", response_model=List[PronounOption])
async def list_pronouns():
    """Pronoun choices for the profile editor, ordered by label."""
    return [PronounOption(id=o.id, label=o.label, value=o.value) for o in PRONOUN_OPTIONS]


@router.post("/me/phone/send-code", response_model=PhoneCodeResponse)
async def send_phone_code(
    phone_data: PhoneCodeRequest,
    current_user: Profile = Depends(get_current_user),
    redis: RedisService = Depends(get_redis_service),
):
    """
    Send a 6-digit verification code to a phone number.
    Rate limited: 3 sends per 30 minutes per user.
    """
    if not redis.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Phone verification is not available right now.",
        )

    is_allowed, _, reset_seconds = await redis.check_otp_resend_rate_limit(current_user.id)
    if not is_allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many codes requested. Try again in {reset_seconds // 60} minutes.",
            headers={"Retry-After": str(reset_seconds)},
        )

    otp = generate_otp()
    await redis.store_otp(current_user.id, phone_data.phone_number, otp)
    logger.info("[Phone] Code issued for %s", current_user.id)

    response = PhoneCodeResponse(message="Verification code sent.", code_sent=True)

    # Only include debug code in development mode
    if settings.DEBUG and settings.ENVIRONMENT == "development":
        response.debug_code = otp

    return response


@router.post("/me/phone/verify", response_model=MyProfileResponse)
async def verify_phone(
    verify_data: PhoneVerify,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
    redis: RedisService = Depends(get_redis_service),
):
    """
    Confirm the code and mark the phone number as verified.
    Rate limited: OTP_MAX_ATTEMPTS attempts per 10 minutes per user.
    """
    if not redis.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Phone verification is not available right now.",
        )

    is_allowed, remaining, reset_seconds = await redis.check_otp_rate_limit(current_user.id)
    if not is_allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many verification attempts. Try again in {reset_seconds // 60} minutes.",
            headers={"Retry-After": str(reset_seconds)},
        )

    if not await redis.verify_otp(current_user.id, verify_data.phone_number, verify_data.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid or expired code. {remaining} attempts remaining.",
        )

    try:
        profile = await data.mark_phone_verified(current_user.id, verify_data.phone_number)
    except ProfileConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return to_private(profile)


@router.post("/{user_id}/block", response_model=BlockResponse)
async def block_user(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    engine: SwipeMatchEngine = Depends(get_engine),
):
    """Block a user: hides both profiles from each other and removes matches."""
    try:
        removed = await engine.block_user(current_user.id, user_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return BlockResponse(blocked_user_id=user_id, removed_matches=removed)


@router.post("/{user_id}/report", response_model=ReportRecord, status_code=status.HTTP_201_CREATED)
async def report_user(
    user_id: str,
    report_data: ReportCreate,
    current_user: Profile = Depends(get_current_user),
    engine: SwipeMatchEngine = Depends(get_engine),
):
    """Report a user for review."""
    try:
        return await engine.report_user(
            current_user.id, user_id, report_data.reason, report_data.match_id
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{user_id}/compatibility", response_model=CompatibilityResponse)
async def get_compatibility(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Explainable compatibility score between the current user and another profile."""
    other = await data.get_profile(user_id)

    if other is None or is_blocked_either_way(current_user, other):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )

    result = calculate_compatibility(current_user, other)
    label = compatibility_label(result.score)

    return CompatibilityResponse(
        user_id=other.id,
        score=result.score,
        label=label.label,
        color=label.color,
        shared_interests=result.shared_interests,
        same_major=result.same_major,
        icebreaker_matches=result.icebreaker_matches,
        badge_overlap=result.badge_overlap,
    )


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Get another user's public profile."""
    other = await data.get_profile(user_id)

    if other is None or is_blocked_either_way(current_user, other):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )

    return to_public(other)
