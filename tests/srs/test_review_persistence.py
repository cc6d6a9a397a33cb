from datetime import timedelta

from flashcore import srs


def _save(db, user_id, word_id, next_review_date, review_count=0, correct=0, incorrect=0, known=False):
    state = srs.initialize_new_review(user_id, word_id, next_review_date)
    state.review_count = review_count
    state.correct_count = correct
    state.incorrect_count = incorrect
    state.is_known = known
    srs.save_review_state(db, state)
    return state


def test_save_and_load_round_trip(db, now):
    state = srs.initialize_new_review("u1", "w1", now)
    state, _ = srs.process_answer(state, True, timestamp=now)
    srs.save_review_state(db, state)
    db.commit()
    db.expunge_all()

    loaded = srs.load_review_state(db, "u1", "w1")
    assert loaded == state
    assert loaded.next_review_date.tzinfo is not None


def test_save_updates_existing_row(db, now):
    state = _save(db, "u1", "w1", now)
    state.review_count = 7
    srs.save_review_state(db, state)

    assert srs.load_review_state(db, "u1", "w1").review_count == 7
    assert len(srs.get_all_review_states(db, "u1")) == 1


def test_load_missing_returns_none(db):
    assert srs.load_review_state(db, "u1", "nope") is None


def test_due_ordering(db, now):
    _save(db, "u1", "later", now - timedelta(hours=1), review_count=0)
    _save(db, "u1", "oldest", now - timedelta(days=3), review_count=4)
    _save(db, "u1", "tie_many", now - timedelta(days=1), review_count=5)
    _save(db, "u1", "tie_few", now - timedelta(days=1), review_count=1)
    _save(db, "u1", "future", now + timedelta(days=2))
    _save(db, "u2", "other_user", now - timedelta(days=9))

    due = srs.get_due_review_states(db, "u1", now)

    assert [s.word_id for s in due] == ["oldest", "tie_few", "tie_many", "later"]


def test_due_limit(db, now):
    for i in range(5):
        _save(db, "u1", f"w{i}", now - timedelta(days=i))

    due = srs.get_due_review_states(db, "u1", now, limit=2)
    assert [s.word_id for s in due] == ["w4", "w3"]


def test_counts(db, now):
    _save(db, "u1", "w1", now, correct=3, incorrect=1, known=True)
    _save(db, "u1", "w2", now, correct=2, incorrect=2, known=False)
    _save(db, "u2", "w1", now, correct=9, known=True)

    assert srs.count_known_words(db, "u1") == 1
    assert srs.count_correct_answers(db, "u1") == 5
    assert srs.count_correct_answers(db, "nobody") == 0
    assert srs.get_user_ids(db) == ["u1", "u2"]
