from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flashcore import database, lexicon_repo
from flashcore.models import Base

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

VOCABULARY = {
    "w1": {"word_id": "w1", "lemma": "huis", "translation": "house"},
    "w2": {"word_id": "w2", "lemma": "boom", "translation": "tree"},
    "w3": {"word_id": "w3", "lemma": "fiets", "translation": "bicycle"},
}


@pytest.fixture
def engine():
    """In-memory SQLite database with the full schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture(autouse=True)
def fake_lexicon(monkeypatch):
    """Stand-in for the MongoDB vocabulary catalog."""

    def get_words_by_ids(word_ids):
        return {w: dict(VOCABULARY[w]) for w in word_ids if w in VOCABULARY}

    monkeypatch.setattr(lexicon_repo, "get_words_by_ids", get_words_by_ids)
    monkeypatch.setattr(lexicon_repo, "count_words", lambda: len(VOCABULARY))
    return VOCABULARY


@pytest.fixture
def sqlite_url(tmp_path, monkeypatch):
    """File-backed SQLite database behind `database.session_scope()`."""
    url = f"sqlite:///{tmp_path / 'flashcore.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.delenv("TEST_MODE", raising=False)
    database.dispose_engine()
    yield url
    database.dispose_engine()
