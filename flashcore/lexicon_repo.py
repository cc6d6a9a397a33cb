"""
MongoDB repository for the vocabulary catalog.

Used to hydrate word listings (due words, difficult words) and catalog-wide
counts. Review scheduling itself never needs the catalog.
"""

from __future__ import annotations

import os
from typing import Iterable, Optional

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.collection import Collection

# Load environment
load_dotenv()

# Configuration
DEFAULT_DB_NAME = "flashcore"
DEFAULT_COLLECTION_NAME = "vocabulary"
WORD_ID_FIELD = "word_id"

# Global connection pool (reused across requests)
_client: Optional[MongoClient] = None
_collection: Optional[Collection] = None


# ---- Connection Management ----

def get_collection() -> Collection:
    """
    Get the vocabulary collection.

    Uses a persistent connection pool that's reused across requests.

    Returns:
        MongoDB collection object
    """
    global _client, _collection

    # Return cached collection if it exists
    if _collection is not None:
        return _collection

    mongo_uri = os.getenv("MONGO_URI")
    if not mongo_uri:
        raise ValueError("MONGO_URI not found in environment variables")

    _client = MongoClient(
        mongo_uri,
        maxPoolSize=10,  # Connection pool size
        minPoolSize=1,   # Keep at least 1 connection alive
        maxIdleTimeMS=60000  # Keep connections alive for 60 seconds
    )
    db = _client[os.getenv("LEXICON_DB_NAME", DEFAULT_DB_NAME)]
    _collection = db[os.getenv("LEXICON_COLLECTION", DEFAULT_COLLECTION_NAME)]

    return _collection


def close() -> None:
    """Close the cached client."""
    global _client, _collection
    if _client is not None:
        _client.close()
    _client = None
    _collection = None


# ---- Query Functions ----

def get_words_by_ids(word_ids: Iterable[str]) -> dict[str, dict]:
    """
    Fetch vocabulary entries by id.

    Args:
        word_ids: Word identifiers

    Returns:
        Mapping word_id -> document (missing ids are simply absent)
    """
    ids = list(dict.fromkeys(word_ids))
    if not ids:
        return {}

    collection = get_collection()
    cursor = collection.find({WORD_ID_FIELD: {"$in": ids}}, {"_id": 0})
    return {doc[WORD_ID_FIELD]: doc for doc in cursor}


def count_words() -> int:
    """Total vocabulary entries in the catalog."""
    return get_collection().count_documents({})
