"""
MongoDB connection helper.

Provides a single client and database handle for the document store
(community feed, chat feedback).
"""

import os
from functools import lru_cache
from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection


FEED_COLLECTION = "communityFeed"
FEEDBACK_COLLECTION = "chatFeedback"


@lru_cache(maxsize=1)
def get_mongo_client() -> MongoClient:
    uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    return MongoClient(uri, serverSelectionTimeoutMS=5000)


@lru_cache(maxsize=1)
def get_db() -> Any:
    client = get_mongo_client()
    db_name = os.getenv("MONGO_DB_NAME", "horizon")
    return client[db_name]


def get_feed_collection() -> Collection:
    return get_db()[FEED_COLLECTION]


def get_feedback_collection() -> Collection:
    return get_db()[FEEDBACK_COLLECTION]
