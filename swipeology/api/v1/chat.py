from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from swipeology.core.dependencies import (
    get_current_user,
    get_current_verified_user,
    get_data_service,
    get_engine,
)
from swipeology.core.engine import SwipeMatchEngine
from swipeology.core.exceptions import MatchNotFoundError, NotAParticipantError, ValidationError
from swipeology.core.firebase import firebase_service
from swipeology.db.repository import SqlDataService
from swipeology.schemas.match import MessageCreate, MessageListResponse, MessageRecord
from swipeology.schemas.user import Profile


router = APIRouter(prefix="/chat", tags=["Chat"])


# ==================== Schemas ====================

class FirebaseTokenResponse(BaseModel):
    """Firebase custom token for client authentication."""
    token: str
    expires_in: int = 3600  # 1 hour


# ==================== Endpoints ====================

@router.get("/token", response_model=FirebaseTokenResponse)
async def get_firebase_token(
    current_user: Profile = Depends(get_current_user),
):
    """
    Get a Firebase custom token for client-side authentication.
    Use this token to listen to mirrored chat rooms in Firebase Realtime Database.
    """
    if not firebase_service.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Realtime chat is not configured.",
        )
    try:
        token = firebase_service.get_custom_token(current_user.id)
        return FirebaseTokenResponse(token=token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate Firebase token: {str(e)}",
        )


@router.get("/{match_id}/messages", response_model=MessageListResponse)
async def get_messages(
    match_id: str,
    current_user: Profile = Depends(get_current_user),
    data: SqlDataService = Depends(get_data_service),
):
    """Get messages of a match, oldest first."""
    # Verify user is part of this match
    match = await data.get_match(match_id)

    if not match or not match.involves(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )

    messages = await data.list_messages(match_id)
    return MessageListResponse(match_id=match_id, messages=messages)


@router.post("/{match_id}/messages", response_model=MessageRecord, status_code=status.HTTP_201_CREATED)
async def send_message(
    match_id: str,
    message_data: MessageCreate,
    current_user: Profile = Depends(get_current_verified_user),
    engine: SwipeMatchEngine = Depends(get_engine),
):
    """Send a message to a match."""
    try:
        return await engine.send_message(match_id, current_user.id, message_data.message_text)
    except MatchNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )
    except NotAParticipantError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not part of this match.",
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
