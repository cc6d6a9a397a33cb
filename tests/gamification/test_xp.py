import pytest

from flashcore.exceptions import InvalidInputError
from flashcore.gamification import StudyMode, difficulty_multiplier, xp_for_answer


def test_new_word_quiz_awards_base_xp():
    assert xp_for_answer(StudyMode.QUIZ, 0, 0, 2.5, 0) == 15


@pytest.mark.parametrize("mode, expected", [("practice", 10), ("quiz", 15), ("typing", 20)])
def test_base_xp_per_mode(mode, expected):
    assert xp_for_answer(mode, 0, 0, 2.5, 1) == expected


def test_hard_word_after_long_interval():
    # 20 * 1.375 * 1.2 * 1.15 = 37.95
    assert xp_for_answer(StudyMode.TYPING, 1, 3, 1.8, 10) == 38


def test_multiplier_needs_more_than_one_prior_attempt():
    assert difficulty_multiplier(0, 0) == 1.0
    assert difficulty_multiplier(0, 1) == 1.0
    assert difficulty_multiplier(1, 1) == 1.25
    assert difficulty_multiplier(1, 3) == 1.375


def test_bonus_boundaries():
    # ease exactly 2.0 gets no hard-word bonus, interval exactly 7 gets the retention bonus
    assert xp_for_answer(StudyMode.PRACTICE, 0, 0, 2.0, 6) == 10
    assert xp_for_answer(StudyMode.PRACTICE, 0, 0, 1.99, 6) == 12
    assert xp_for_answer(StudyMode.TYPING, 0, 0, 2.5, 7) == 23
    assert xp_for_answer(StudyMode.TYPING, 0, 0, 2.5, 6) == 20


@pytest.mark.parametrize("hint", [0, 5, 15, 16, 100])
def test_client_hint_is_a_floor(hint):
    xp = xp_for_answer(StudyMode.QUIZ, 0, 0, 2.5, 0, client_suggested_xp=hint)
    assert xp == max(15, hint)
    assert xp >= hint


def test_negative_hint_rejected():
    with pytest.raises(InvalidInputError):
        xp_for_answer(StudyMode.QUIZ, 0, 0, 2.5, 0, client_suggested_xp=-1)


def test_unknown_mode_rejected():
    with pytest.raises(InvalidInputError) as exc:
        xp_for_answer("speedrun", 0, 0, 2.5, 0)
    assert exc.value.details[0]["field"] == "mode"
