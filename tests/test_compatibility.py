import pytest

from swipeology.core.compatibility import (
    calculate_compatibility,
    compatibility_label,
    interest_tokens,
    round_half_up,
)
from tests.conftest import make_profile


def test_interest_tokens_are_trimmed_lowercased_and_unique():
    assert interest_tokens(" Hiking, coffee ,,COFFEE, ") == ["hiking", "coffee"]
    assert interest_tokens("") == []


def test_round_half_up():
    assert round_half_up(11.5) == 12
    assert round_half_up(12.5) == 13
    assert round_half_up(11.49) == 11


def test_shared_interest_example():
    a = make_profile("a", interests="hiking, coffee")
    b = make_profile("b", interests="coffee, gaming")

    result = calculate_compatibility(a, b)

    assert result.shared_interests == ["coffee"]
    # 12 interest points of 35 + 15 (major) + 10 (class year)
    assert result.score == 20
    assert result.same_major is False


def test_identical_profiles_score_100():
    fields = dict(
        interests="chess, tea",
        major="Biology",
        class_year="2026",
        icebreaker_answers={"weekend": "Hiking", "food": "Pizza"},
        personality_badges=["gamer", "foodie"],
    )
    result = calculate_compatibility(make_profile("a", **fields), make_profile("b", **fields))

    assert result.score == 100
    assert result.same_major is True
    assert result.icebreaker_matches == 2
    assert result.badge_overlap == 2


def test_empty_profiles_score_zero():
    result = calculate_compatibility(make_profile("a"), make_profile("b"))
    assert result.score == 0
    assert result.shared_interests == []


def test_icebreakers_only_count_when_both_answered():
    a = make_profile("a", icebreaker_answers={"weekend": "Hiking", "music": "Jazz"})
    b = make_profile("b", icebreaker_answers={"weekend": "Hiking"})

    result = calculate_compatibility(a, b)

    # 10 of (15 major + 10 icebreaker + 10 class year)
    assert result.icebreaker_matches == 1
    assert result.score == round_half_up(100 * 10 / 35)


def test_major_comparison_ignores_case():
    a = make_profile("a", major="Computer Science ")
    b = make_profile("b", major="computer science")
    assert calculate_compatibility(a, b).same_major is True


@pytest.mark.parametrize(
    "fields_a, fields_b",
    [
        ({"interests": "hiking, coffee"}, {"interests": "coffee, gaming, reading"}),
        ({"major": "Art", "class_year": "2025"}, {"major": "art", "class_year": "2026"}),
        (
            {"personality_badges": ["gamer", "foodie", "creative"], "icebreaker_answers": {"food": "Tacos"}},
            {"personality_badges": ["foodie"], "icebreaker_answers": {"food": "Sushi", "weekend": "Sleep"}},
        ),
    ],
)
def test_score_is_symmetric_and_bounded(fields_a, fields_b):
    a = make_profile("a", **fields_a)
    b = make_profile("b", **fields_b)

    forward = calculate_compatibility(a, b).score
    backward = calculate_compatibility(b, a).score

    assert forward == backward
    assert 0 <= forward <= 100


@pytest.mark.parametrize(
    "score, label, color",
    [
        (100, "Amazing Match", "#10B981"),
        (80, "Amazing Match", "#10B981"),
        (79, "Great Match", "#3B82F6"),
        (60, "Great Match", "#3B82F6"),
        (40, "Good Match", "#F59E0B"),
        (20, "Some Common Ground", "#F97316"),
        (19, "New Discovery", "#8B5CF6"),
        (0, "New Discovery", "#8B5CF6"),
    ],
)
def test_compatibility_label(score, label, color):
    tier = compatibility_label(score)
    assert (tier.label, tier.color) == (label, color)
