"""
Firebase chat mirror.

SQL storage is the source of truth for matches and messages. When Firebase
is configured, each match also gets a room under ``chats/{match_id}`` in the
Realtime Database so mobile clients can listen for new messages directly.
"""

import firebase_admin
from firebase_admin import credentials, db, auth, exceptions
from typing import Optional
import logging

from swipeology.config import settings


logger = logging.getLogger(__name__)

CHAT_ROOT = "chats"

# Global Firebase app instance
firebase_app: Optional[firebase_admin.App] = None


def _database_url() -> str:
    if settings.FIREBASE_DATABASE_URL:
        return settings.FIREBASE_DATABASE_URL
    return f"https://{settings.FIREBASE_PROJECT_ID}-default-rtdb.firebaseio.com"


def init_firebase() -> Optional[firebase_admin.App]:
    """Initialize the Admin SDK once; returns None when not configured."""
    global firebase_app

    if firebase_app is not None:
        return firebase_app

    if not settings.FIREBASE_PROJECT_ID or not settings.FIREBASE_CLIENT_EMAIL:
        logger.info("Firebase credentials not configured - chat mirroring disabled")
        return None

    service_account = {
        "type": "service_account",
        "project_id": settings.FIREBASE_PROJECT_ID,
        "private_key": settings.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
        "client_email": settings.FIREBASE_CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    }

    try:
        firebase_app = firebase_admin.initialize_app(
            credentials.Certificate(service_account),
            {"databaseURL": _database_url()},
        )
    except (ValueError, exceptions.FirebaseError):
        logger.exception("Firebase initialization failed - chat mirroring disabled")
        return None

    logger.info("Firebase initialized for project %s", settings.FIREBASE_PROJECT_ID)
    return firebase_app


class FirebaseService:
    """Chat rooms and custom tokens; every call assumes `enabled`."""

    @property
    def enabled(self) -> bool:
        return firebase_app is not None

    @staticmethod
    def _room(match_id: str, *path: str):
        return db.reference("/".join((CHAT_ROOT, match_id) + path))

    def create_chat_room(self, match_id: str, user1_id: str, user2_id: str, context: str) -> str:
        """Open the room for a new match. `members` backs the client read rules."""
        self._room(match_id).set(
            {
                "metadata": {
                    "context": context,
                    "members": {user1_id: True, user2_id: True},
                    "created_at": {".sv": "timestamp"},
                },
                "messages": {},
            }
        )
        logger.debug("Chat room opened for match %s", match_id)
        return match_id

    def delete_chat_room(self, match_id: str) -> None:
        self._room(match_id).delete()

    def push_message(self, match_id: str, message_id: str, sender_id: str, text: str) -> None:
        """Write a stored message under its SQL id, so a retry overwrites instead of duplicating."""
        self._room(match_id, "messages", message_id).set(
            {
                "sender_id": sender_id,
                "message_text": text,
                "created_at": {".sv": "timestamp"},
            }
        )

    def get_custom_token(self, user_id: str) -> str:
        """
        Custom auth token for the mobile client.
        Older Admin SDK releases return bytes.
        """
        token = auth.create_custom_token(user_id)
        return token.decode("utf-8") if isinstance(token, bytes) else token


# Singleton instance
firebase_service = FirebaseService()
