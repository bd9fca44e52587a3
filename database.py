"""
MongoDB access for the AMIZERO API.

One ``MongoClient`` per process; its connection pool is the only state shared
between requests. Routers receive the database through the ``get_db``
dependency so tests can swap in an in-memory database.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import get_settings
from errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

ADMINS = "admins"
PROPERTIES = "properties"
TEAM = "team"
PORTFOLIO = "portfolio"
SCHEDULE_VISITS = "schedule_visits"
CONTACTS = "contacts"
NEWSLETTER = "newsletter"
ACTIVITIES = "activities"
ACHIEVEMENTS = "achievements"
VISITOR_STATS = "visitor_stats"

client: Optional[MongoClient] = None
db: Optional[Database] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def connect() -> Database:
    global client, db
    settings = get_settings()
    client = MongoClient(settings.mongodb_uri, tz_aware=True)
    db = client[settings.database_name]
    logger.info("Connected to MongoDB database %s", settings.database_name)
    return db


def close() -> None:
    global client, db
    if client is not None:
        client.close()
    client = None
    db = None


def get_db() -> Database:
    if db is None:
        raise InternalError("Database not available")
    return db


def ensure_indexes(database: Database) -> None:
    database[ADMINS].create_index([("email", ASCENDING)], unique=True)
    database[NEWSLETTER].create_index([("email", ASCENDING)], unique=True)
    database[PROPERTIES].create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
    database[ACTIVITIES].create_index([("timestamp", DESCENDING)])
    database[ACHIEVEMENTS].create_index([("lastUpdated", DESCENDING)])


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = dict(doc)
    for k, v in d.items():
        if isinstance(v, ObjectId):
            d[k] = str(v)
        elif isinstance(v, datetime):
            d[k] = v.isoformat()
    return d


def parse_object_id(value: str, label: str = "record") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {label} ID")
    return ObjectId(value)


def create_document(database: Database, collection_name: str, data: Any) -> str:
    """Insert ``data`` (dict or pydantic model) stamped with createdAt/updatedAt."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict.setdefault("createdAt", now)
    data_dict.setdefault("updatedAt", now)
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    skip: int = 0,
    sort_field: str = "createdAt",
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {}).sort(
        [(sort_field, DESCENDING), ("_id", DESCENDING)]
    )
    if skip:
        cursor = cursor.skip(int(skip))
    if limit:
        cursor = cursor.limit(int(limit))
    return list(cursor)
