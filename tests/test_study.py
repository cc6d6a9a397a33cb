from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from flashcore import database, srs, study
from flashcore.exceptions import InvalidInputError, SessionNotFoundError
from flashcore.gamification import ProgressionState, persistence


def answer(word_id="w1", correct=True, mode="quiz", hint=0, **extra):
    return {"word_id": word_id, "correct": correct, "mode": mode, "client_xp_hint": hint, **extra}


def seed_progression(db, user_id="u1", **fields):
    persistence.save_progression(db, ProgressionState(user_id=user_id, **fields))


# ---- submit_answer ----

def test_first_correct_answer(db, now):
    result = study.submit_answer(db, "u1", answer(), now)

    assert result.xp_earned == 15
    assert result.new_achievement_ids == ["first_correct"]
    assert result.achievement_xp == 50
    assert result.total_xp == 65
    assert result.current_streak == 1
    assert result.new_level == 1
    assert not result.leveled_up
    assert result.interval == 1
    assert result.ease_factor == 2.5
    assert result.next_review_date == now + timedelta(days=1)

    state = srs.load_review_state(db, "u1", "w1")
    assert state.review_count == 1 and state.is_known


def test_incorrect_answer_earns_nothing(db, now):
    result = study.submit_answer(db, "u1", answer(correct=False, hint=40), now)

    assert result.xp_earned == 0
    assert result.new_achievement_ids == []
    assert result.interval == 0
    assert result.ease_factor == 1.96
    assert result.current_streak == 1


def test_xp_uses_history_before_the_answer(db, now):
    state = srs.initialize_new_review("u1", "w1", now)
    state.ease_factor = 1.8
    state.review_interval = 10
    state.review_count = 4
    state.correct_count = 1
    state.incorrect_count = 3
    srs.save_review_state(db, state)

    result = study.submit_answer(db, "u1", answer(mode="typing"), now)

    assert result.xp_earned == 38


def test_client_hint_wins_when_larger(db, now):
    result = study.submit_answer(db, "u1", answer(hint=25), now)
    assert result.xp_earned == 25


def test_response_time_escalates_quality(db, now):
    result = study.submit_answer(db, "u1", answer(response_time_ms=1500), now)
    assert result.ease_factor == 2.6


@pytest.mark.parametrize(
    "payload",
    [
        answer(mode="speedrun"),
        answer(correct="yes"),
        answer(word_id=""),
        answer(hint=-5),
        {"correct": True, "mode": "quiz"},
    ],
)
def test_invalid_answer_changes_nothing(db, now, payload):
    with pytest.raises(InvalidInputError):
        study.submit_answer(db, "u1", payload, now)

    assert srs.get_all_review_states(db, "u1") == []
    assert persistence.load_progression(db, "u1") is None


def test_invalid_user_id(db, now):
    with pytest.raises(InvalidInputError):
        study.submit_answer(db, "", answer(), now)


def test_level_up_reported(db, now):
    seed_progression(db, total_xp=90)

    result = study.submit_answer(db, "u1", answer(mode="practice"), now)

    # 90 + 10 + first_correct 50
    assert result.total_xp == 150
    assert result.leveled_up
    assert result.new_level == 2


def test_xp_jump_unlocks_tier_once(db, now):
    seed_progression(db, total_xp=250)

    result = study.submit_answer(db, "u1", answer(hint=1250), now)

    assert result.xp_earned == 1250
    assert result.new_achievement_ids == ["first_correct", "xp_1k"]
    assert result.total_xp == 250 + 1250 + 50 + 100

    again = study.submit_answer(db, "u1", answer(word_id="w2", mode="practice"), now)
    assert again.new_achievement_ids == []
    assert again.total_xp == result.total_xp + 10


def test_achievement_rewards_reach_fixed_point(db, now):
    seed_progression(db, total_xp=960)

    result = study.submit_answer(db, "u1", answer(mode="practice"), now)

    # 970 + 50 (first_correct) crosses 1000, which unlocks xp_1k in the same call
    assert result.new_achievement_ids == ["first_correct", "xp_1k"]
    assert result.achievement_xp == 150
    assert result.total_xp == 1120
    assert persistence.load_progression(db, "u1").unlocked_achievements == {"first_correct", "xp_1k"}


def test_streak_across_days(db, now):
    assert study.submit_answer(db, "u1", answer("w1"), now).current_streak == 1
    assert study.submit_answer(db, "u1", answer("w2"), now + timedelta(hours=2)).current_streak == 1
    assert study.submit_answer(db, "u1", answer("w3"), now + timedelta(days=1)).current_streak == 2
    assert study.submit_answer(db, "u1", answer("w1"), now + timedelta(days=4)).current_streak == 1


def test_third_streak_day_unlocks_streak_achievement(db, now):
    study.submit_answer(db, "u1", answer("w1"), now)
    study.submit_answer(db, "u1", answer("w2"), now + timedelta(days=1))
    result = study.submit_answer(db, "u1", answer("w3"), now + timedelta(days=2))

    assert result.current_streak == 3
    assert result.new_achievement_ids == ["streak_3"]


def test_storage_failure_rolls_back_whole_answer(sqlite_url, now, monkeypatch):
    database.init_db()
    with database.session_scope() as db:
        seed_progression(db, total_xp=500)

    def fail(*_args, **_kwargs):
        raise OperationalError("INSERT INTO unlocked_achievements", {}, Exception("disk I/O error"))

    monkeypatch.setattr(study.persistence, "add_unlocked_achievements", fail)
    with pytest.raises(OperationalError):
        with database.session_scope() as db:
            study.submit_answer(db, "u1", answer(), now)

    with database.session_scope() as db:
        assert srs.load_review_state(db, "u1", "w1") is None
        progression = persistence.load_progression(db, "u1")
        assert progression.total_xp == 500
        assert progression.last_visit_date is None
        assert progression.unlocked_achievements == set()


# ---- get_due_words ----

def test_due_words_ordered_and_hydrated(db, now):
    study.submit_answer(db, "u1", answer("w1", correct=False), now - timedelta(days=2))
    study.submit_answer(db, "u1", answer("w2", correct=False), now - timedelta(days=1))
    study.submit_answer(db, "u1", answer("w3", correct=True), now - timedelta(hours=12))
    study.submit_answer(db, "u1", answer("unknown", correct=False), now - timedelta(hours=1))

    due = study.get_due_words(db, "u1", now)

    assert [d.word_id for d in due] == ["w1", "w2", "unknown"]
    assert due[0].overdue_days == 2
    assert due[0].entry["lemma"] == "huis"
    assert due[2].entry is None


def test_due_words_without_hydration(db, now, monkeypatch):
    study.submit_answer(db, "u1", answer("w1", correct=False), now)

    def fail(_ids):
        raise AssertionError("catalog should not be queried")

    monkeypatch.setattr(study.lexicon_repo, "get_words_by_ids", fail)
    due = study.get_due_words(db, "u1", now, hydrate=False)
    assert [d.word_id for d in due] == ["w1"]


def test_no_due_words(db, now):
    assert study.get_due_words(db, "u1", now) == []


# ---- Sessions ----

def test_start_session_is_idempotent(db, now):
    first = study.start_session(db, "u1", "quiz", now)
    second = study.start_session(db, "u1", "typing", now + timedelta(minutes=1))

    assert first == second
    assert study.get_active_session(db, "u1", now).session.mode.value == "quiz"


def test_start_session_default_mode(db, now):
    session_id = study.start_session(db, "u1", now=now)
    assert persistence.load_session(db, session_id).mode.value == "practice"


def test_answers_are_recorded_on_active_session(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    study.submit_answer(db, "u1", answer("w1"), now + timedelta(minutes=1))
    study.submit_answer(db, "u1", answer("w2", correct=False), now + timedelta(minutes=2))

    session = persistence.load_session(db, session_id)
    assert session.cards_reviewed == 2
    assert session.correct_answers == 1
    assert session.xp_earned == 15
    assert session.last_interaction_at == now + timedelta(minutes=2)


def test_end_session(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    study.submit_answer(db, "u1", answer("w1"), now + timedelta(minutes=1))

    result = study.end_session(db, "u1", session_id, now=now + timedelta(minutes=5))

    assert result.session_id == session_id
    assert result.xp_earned == 15
    assert not result.perfect
    assert result.new_achievement_ids == []
    assert study.get_active_session(db, "u1", now + timedelta(minutes=5)).session is None
    assert persistence.load_session(db, session_id).ended_at == now + timedelta(minutes=5)


def test_perfect_session(db, now):
    session_id = study.start_session(db, "u1", "practice", now)
    for i in range(10):
        study.submit_answer(db, "u1", answer(f"p{i}", mode="practice"), now + timedelta(seconds=i))

    result = study.end_session(db, "u1", session_id, now=now + timedelta(minutes=2))

    assert result.perfect
    assert result.new_achievement_ids == ["perfect_1"]
    assert persistence.load_progression(db, "u1").perfect_session_count == 1


def test_nine_cards_is_not_perfect(db, now):
    session_id = study.start_session(db, "u1", "practice", now)
    for i in range(9):
        study.submit_answer(db, "u1", answer(f"p{i}", mode="practice"), now + timedelta(seconds=i))

    result = study.end_session(db, "u1", session_id, now=now + timedelta(minutes=2))

    assert not result.perfect
    assert persistence.load_progression(db, "u1").perfect_session_count == 0


def test_client_totals_used_for_empty_session(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    result = study.end_session(
        db, "u1", session_id,
        {"cards_reviewed": 10, "correct_answers": 10, "xp_earned": 150},
        now=now + timedelta(minutes=3),
    )
    assert result.perfect
    assert result.xp_earned == 150


def test_invalid_final_totals(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    with pytest.raises(InvalidInputError):
        study.end_session(db, "u1", session_id, {"cards_reviewed": 3, "correct_answers": 4}, now=now)
    assert study.get_active_session(db, "u1", now).session.id == session_id


def test_end_session_twice_is_noop(db, now):
    session_id = study.start_session(db, "u1", "practice", now)
    for i in range(10):
        study.submit_answer(db, "u1", answer(f"p{i}", mode="practice"), now + timedelta(seconds=i))
    study.end_session(db, "u1", session_id, now=now + timedelta(minutes=1))

    again = study.end_session(db, "u1", session_id, now=now + timedelta(minutes=2))

    assert again.already_ended
    assert again.new_achievement_ids == []
    assert persistence.load_progression(db, "u1").perfect_session_count == 1


def test_end_unknown_session(db, now):
    with pytest.raises(SessionNotFoundError):
        study.end_session(db, "u1", 9999, now=now)


def test_end_other_users_session(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    with pytest.raises(SessionNotFoundError):
        study.end_session(db, "u2", session_id, now=now)
    assert study.get_active_session(db, "u1", now).session.id == session_id


# ---- Staleness ----

def test_fresh_session_returned(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    lookup = study.get_active_session(db, "u1", now + timedelta(minutes=29))
    assert lookup.session.id == session_id
    assert not lookup.timed_out


def test_stale_session_is_closed(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    study.submit_answer(db, "u1", answer("w1"), now + timedelta(minutes=2))

    lookup = study.get_active_session(db, "u1", now + timedelta(minutes=40))

    assert lookup.session is None
    assert not lookup.timed_out
    assert lookup.closed_session_id == session_id
    closed = persistence.load_session(db, session_id)
    assert closed.ended_at == now + timedelta(minutes=2)
    assert closed.timed_out
    assert closed.cards_reviewed == 1


def test_long_idle_session_signals_timeout(db, now):
    study.start_session(db, "u1", "quiz", now)
    lookup = study.get_active_session(db, "u1", now + timedelta(minutes=60))
    assert lookup.session is None
    assert lookup.timed_out


def test_start_after_stale_session_opens_new_one(db, now):
    first = study.start_session(db, "u1", "quiz", now)
    second = study.start_session(db, "u1", "quiz", now + timedelta(minutes=45))

    assert second != first
    assert persistence.load_session(db, first).ended_at == now


def test_answer_after_idle_closes_session_without_counting(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)

    result = study.submit_answer(db, "u1", answer("w1"), now + timedelta(minutes=35))

    assert result.xp_earned == 15
    session = persistence.load_session(db, session_id)
    assert not session.is_active
    assert session.cards_reviewed == 0


def test_ending_idle_session_stops_at_last_interaction(db, now):
    session_id = study.start_session(db, "u1", "quiz", now)
    study.submit_answer(db, "u1", answer("w1"), now + timedelta(minutes=1))

    study.end_session(db, "u1", session_id, now=now + timedelta(hours=3))

    session = persistence.load_session(db, session_id)
    assert session.ended_at == now + timedelta(minutes=1)
    assert session.timed_out


# ---- Progress ----

def test_get_achievements_and_level_progress(db, now):
    study.submit_answer(db, "u1", answer("w1"), now)

    progress = study.get_level_progress(db, "u1")
    assert progress.total_xp == 65
    assert progress.level == 1

    status = {s.type: s for s in study.get_achievements(db, "u1")}
    assert status["one_off"].unlocked
    assert status["vocab_builder"].current_value == 1
    assert not status["vocab_builder"].unlocked
