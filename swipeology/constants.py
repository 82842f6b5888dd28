"""
Icebreaker questions, personality badges, pronoun options and compatibility
tiers shared across the core and the API.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class IcebreakerQuestion:
    id: str
    question: str
    options: List[str]


@dataclass(frozen=True)
class PersonalityBadge:
    id: str
    label: str
    emoji: str
    color: str


ICEBREAKER_QUESTIONS: List[IcebreakerQuestion] = [
    IcebreakerQuestion(
        id="weekend",
        question="Perfect weekend looks like...",
        options=["Netflix & chill", "Outdoor adventure", "Party with friends", "Quiet reading time", "Exploring new places"],
    ),
    IcebreakerQuestion(
        id="study_style",
        question="My study style is...",
        options=["Library all day", "Study groups", "Last-minute cramming", "Coffee shop vibes", "Late night sessions"],
    ),
    IcebreakerQuestion(
        id="food",
        question="Go-to comfort food?",
        options=["Pizza", "Sushi", "Tacos", "Ramen", "Mac & cheese"],
    ),
    IcebreakerQuestion(
        id="social_battery",
        question="My social battery is...",
        options=["Always charged", "Selective socializer", "Small groups only", "Recharge alone", "Depends on the day"],
    ),
    IcebreakerQuestion(
        id="music",
        question="Music that defines me:",
        options=["Hip-hop/R&B", "Pop", "Rock/Indie", "EDM", "A bit of everything"],
    ),
]

ICEBREAKER_IDS = frozenset(q.id for q in ICEBREAKER_QUESTIONS)

PERSONALITY_BADGES: List[PersonalityBadge] = [
    PersonalityBadge("introvert", "Introvert", "🌙", "#6366F1"),
    PersonalityBadge("extrovert", "Extrovert", "☀️", "#F59E0B"),
    PersonalityBadge("adventurer", "Adventurer", "🏔️", "#10B981"),
    PersonalityBadge("night_owl", "Night Owl", "🦉", "#8B5CF6"),
    PersonalityBadge("early_bird", "Early Bird", "🐦", "#F97316"),
    PersonalityBadge("study_buddy", "Study Buddy", "📚", "#3B82F6"),
    PersonalityBadge("foodie", "Foodie", "🍕", "#EF4444"),
    PersonalityBadge("gym_rat", "Gym Rat", "💪", "#14B8A6"),
    PersonalityBadge("creative", "Creative", "🎨", "#EC4899"),
    PersonalityBadge("gamer", "Gamer", "🎮", "#7C3AED"),
    PersonalityBadge("music_lover", "Music Lover", "🎵", "#D946EF"),
    PersonalityBadge("chill_vibes", "Chill Vibes", "✌️", "#06B6D4"),
]

BADGE_IDS = frozenset(b.id for b in PERSONALITY_BADGES)

@dataclass(frozen=True)
class PronounOption:
    id: str
    label: str
    value: str


PRONOUN_OPTIONS: List[PronounOption] = sorted(
    [
        PronounOption(id="he-him", label="He/Him", value="he/him"),
        PronounOption(id="she-her", label="She/Her", value="she/her"),
        PronounOption(id="they-them", label="They/Them", value="they/them"),
        PronounOption(id="he-they", label="He/They", value="he/they"),
        PronounOption(id="she-they", label="She/They", value="she/they"),
        PronounOption(id="ze-zir", label="Ze/Zir", value="ze/zir"),
        PronounOption(id="prefer-not-to-say", label="Prefer not to say", value="prefer not to say"),
    ],
    key=lambda option: option.label,
)

MAX_BADGES = 4
MAX_PHOTOS = 6
MIN_AGE = 18

# Compatibility weights (points)
INTEREST_WEIGHT = 35
MAJOR_WEIGHT = 15
ICEBREAKER_WEIGHT = 10
BADGE_WEIGHT = 20
CLASS_YEAR_WEIGHT = 10

# (lower bound, label, color), highest tier first
COMPATIBILITY_TIERS = [
    (80, "Amazing Match", "#10B981"),
    (60, "Great Match", "#3B82F6"),
    (40, "Good Match", "#F59E0B"),
    (20, "Some Common Ground", "#F97316"),
    (0, "New Discovery", "#8B5CF6"),
]
