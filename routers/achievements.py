from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pymongo import DESCENDING
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, require_admin
from database import ACHIEVEMENTS, get_db, serialize_doc, utcnow
from errors import ValidationError
from schemas import ACHIEVEMENT_FIELDS, AchievementFieldUpdate, AchievementUpdate

router = APIRouter(prefix="/achievements", tags=["achievements"])


def latest_achievements(db: Database) -> Optional[Dict[str, Any]]:
    return db[ACHIEVEMENTS].find_one({}, sort=[("lastUpdated", DESCENDING), ("_id", DESCENDING)])


def _current_counters(db: Database) -> Dict[str, int]:
    latest = latest_achievements(db) or {}
    return {f: int(latest.get(f) or 0) for f in ACHIEVEMENT_FIELDS}


def _record(db: Database, counters: Dict[str, int], updated_by: Optional[str]) -> Dict[str, Any]:
    doc = {f: int(counters.get(f) or 0) for f in ACHIEVEMENT_FIELDS}
    doc["lastUpdated"] = utcnow()
    doc["updatedBy"] = updated_by
    doc["_id"] = db[ACHIEVEMENTS].insert_one(doc).inserted_id
    return doc


@router.get("")
def get_achievements(db: Database = Depends(get_db)):
    latest = latest_achievements(db)
    if latest is None:
        latest = _record(db, {}, None)
    return {"success": True, "achievements": serialize_doc(latest)}


@router.get("/history")
def achievement_history(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    rows = db[ACHIEVEMENTS].find({}).sort([("lastUpdated", DESCENDING), ("_id", DESCENDING)])
    return {"success": True, "history": [serialize_doc(x) for x in rows]}


@router.api_route("", methods=["POST", "PUT"])
def save_achievements(
    body: AchievementUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    counters = _current_counters(db)
    counters.update(body.model_dump(exclude_none=True))
    doc = _record(db, counters, admin.email)

    log_activity(db, "Achievements Updated", "Updated achievement counters", "admin", admin.id)
    return {"success": True, "message": "Achievements updated successfully", "achievements": serialize_doc(doc)}


@router.put("/{field}")
def update_achievement_field(
    field: str,
    body: AchievementFieldUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    if field not in ACHIEVEMENT_FIELDS:
        raise ValidationError(f"Unknown achievement field: {field}", fields=[field])

    counters = _current_counters(db)
    counters[field] = body.value
    doc = _record(db, counters, admin.email)

    log_activity(db, "Achievement Updated", f"Set {field} to {body.value}", "admin", admin.id)
    return {"success": True, "message": f"{field} updated successfully", "achievements": serialize_doc(doc)}
