import logging
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import ACTIVITIES, serialize_doc, utcnow
from schemas import ActivityType

logger = logging.getLogger(__name__)


def log_activity(
    db: Database,
    action: str,
    description: str,
    type: ActivityType,
    user_id: Optional[str] = None,
) -> None:
    """Append one audit record. A failed write is logged, never raised."""
    try:
        db[ACTIVITIES].insert_one(
            {
                "action": action,
                "description": description,
                "type": type,
                "userId": user_id,
                "timestamp": utcnow(),
            }
        )
    except PyMongoError:
        logger.exception("Failed to record activity %r", action, extra={"entity": type})


def recent_activity(db: Database, limit: int = 20) -> List[Dict[str, Any]]:
    cursor = db[ACTIVITIES].find({}).sort([("timestamp", DESCENDING), ("_id", DESCENDING)]).limit(int(limit))
    return [serialize_doc(x) for x in cursor]
