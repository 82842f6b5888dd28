"""
Exception hierarchy for the matching core.
Validation errors are raised before any remote call; remote errors wrap
failures of the data service.
"""


class SwipeologyError(Exception):
    """Base class for all matching core errors."""


class ValidationError(SwipeologyError):
    """Input rejected before reaching the data service."""


class InvalidContextError(ValidationError):
    """Context is not one of the two relationship pools."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid context {value!r}. Expected 'friends' or 'dating'.")


class ProfileDecodeError(ValidationError):
    """Record could not be converted into a Profile."""


class NotAParticipantError(ValidationError):
    """User is not one of the two members of a match."""


class MatchNotFoundError(SwipeologyError):
    """Match id does not exist."""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found.")


class RemoteServiceError(SwipeologyError):
    """The data service failed (network, timeout, permission denial)."""


class DuplicateMatchError(RemoteServiceError):
    """Storage rejected a second match for the same pair and context."""


class ProfileNotFoundError(SwipeologyError):
    """User id has no profile."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Profile {user_id} not found.")


class BlockedProfileError(ValidationError):
    """One of the two users has blocked the other."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Profile {user_id} is not available.")


class ProfileConflictError(ValidationError):
    """A unique profile field (phone number, school email) belongs to another user."""
