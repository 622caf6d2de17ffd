from functools import lru_cache
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from app.core.config import get_settings


@lru_cache(maxsize=1)
def _get_client() -> MongoClient:
    settings = get_settings()
    mongo_uri = getattr(settings, "mongo_uri", None)
    if not mongo_uri:
        raise RuntimeError("MONGO_URI is not set")
    return MongoClient(
        mongo_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        socketTimeoutMS=settings.mongo_timeout_ms,
    )


def ensure_submission_indexes(col: Collection) -> None:
    col.create_index("submission_id", unique=True)
    col.create_index([("status", ASCENDING), ("submitted_at", DESCENDING)])
    col.create_index("email")
    col.create_index("phone_number")


@lru_cache(maxsize=1)
def _indexed_submission_collection() -> Collection:
    settings = get_settings()
    col = _get_client()[settings.mongo_db][settings.mongo_collection_submissions]
    ensure_submission_indexes(col)
    return col


def get_submission_collection() -> Collection:
    return _indexed_submission_collection()
