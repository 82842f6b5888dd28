from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from swipeology.core.data_service import EventHub
from swipeology.core.engine import SwipeMatchEngine
from swipeology.core.firebase import firebase_service
from swipeology.core.security import verify_access_token
from swipeology.db.redis import RedisService
from swipeology.db.repository import SqlDataService
from swipeology.db.session import async_session_maker
from swipeology.schemas.user import Profile


# Security scheme
security = HTTPBearer()

# One hub per process so realtime subscribers see every insert
event_hub = EventHub()


def get_data_service() -> SqlDataService:
    """Dependency to get the data service."""
    return SqlDataService(async_session_maker, event_hub)


def get_engine(data: SqlDataService = Depends(get_data_service)) -> SwipeMatchEngine:
    """Dependency to get the swipe/match engine."""
    return SwipeMatchEngine(data, chat_mirror=firebase_service)


def get_redis_service() -> RedisService:
    """Dependency to get Redis service."""
    return RedisService()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Validate the bearer token and return the user id it carries."""
    return verify_access_token(credentials.credentials).user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    data: SqlDataService = Depends(get_data_service),
) -> Profile:
    """
    Dependency to get the current authenticated user's profile.
    Users without a profile must complete registration first.
    """
    profile = await data.get_profile(user_id)

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found. Please complete registration first.",
        )

    return profile


async def get_current_verified_user(
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    """
    Dependency to get the current user who has verified their phone.
    """
    if not current_user.phone_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Phone verification required",
        )
    return current_user
