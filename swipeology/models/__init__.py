# Export all models for easy importing
from swipeology.models.user import User, Gender, DatingPreference
from swipeology.models.match import Swipe, Match, Message, Report, Context, ReportReason

__all__ = [
    "User",
    "Gender",
    "DatingPreference",
    "Swipe",
    "Match",
    "Message",
    "Report",
    "Context",
    "ReportReason",
]
