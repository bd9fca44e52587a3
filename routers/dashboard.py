from fastapi import APIRouter, Depends, Query
from pymongo import ReturnDocument
from pymongo.database import Database

from activity import recent_activity
from auth import AdminIdentity, require_admin
from database import (
    CONTACTS,
    NEWSLETTER,
    PORTFOLIO,
    PROPERTIES,
    SCHEDULE_VISITS,
    TEAM,
    VISITOR_STATS,
    get_db,
    utcnow,
)

router = APIRouter(tags=["dashboard"])

TOTAL_KEY = "total"


def _today_key() -> str:
    return utcnow().strftime("%Y-%m-%d")


def _visits(db: Database, key: str) -> int:
    doc = db[VISITOR_STATS].find_one({"_id": key})
    return int(doc.get("visits", 0)) if doc else 0


def record_visit(db: Database) -> int:
    """Bump the lifetime and daily counters; returns the new lifetime total."""
    now = utcnow()
    update = {"$inc": {"visits": 1}, "$set": {"lastVisitAt": now}}
    db[VISITOR_STATS].update_one({"_id": now.strftime("%Y-%m-%d")}, update, upsert=True)
    total = db[VISITOR_STATS].find_one_and_update(
        {"_id": TOTAL_KEY}, update, upsert=True, return_document=ReturnDocument.AFTER
    )
    return int(total["visits"])


@router.get("/activity")
def list_activity(
    limit: int = Query(20, ge=1, le=200),
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    return {"success": True, "activities": recent_activity(db, limit)}


@router.get("/stats")
def dashboard_stats(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return {
        "success": True,
        "stats": {
            "properties": db[PROPERTIES].count_documents({}),
            "team": db[TEAM].count_documents({}),
            "portfolio": db[PORTFOLIO].count_documents({}),
            "scheduleVisits": db[SCHEDULE_VISITS].count_documents({}),
            "pendingVisits": db[SCHEDULE_VISITS].count_documents({"status": "pending"}),
            "contacts": db[CONTACTS].count_documents({}),
            "newsletter": db[NEWSLETTER].count_documents({}),
        },
    }


@router.post("/analytics/visit")
def track_visit(db: Database = Depends(get_db)):
    return {"success": True, "totalVisitors": record_visit(db)}


@router.get("/analytics/overview")
def analytics_overview(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    visits = db[SCHEDULE_VISITS]
    return {
        "success": True,
        "overview": {
            "visitors": {"total": _visits(db, TOTAL_KEY), "today": _visits(db, _today_key())},
            "properties": {
                "total": db[PROPERTIES].count_documents({}),
                "active": db[PROPERTIES].count_documents({"status": "active"}),
            },
            "scheduleVisits": {
                "total": visits.count_documents({}),
                "pending": visits.count_documents({"status": "pending"}),
                "confirmed": visits.count_documents({"status": "confirmed"}),
            },
            "contacts": {
                "total": db[CONTACTS].count_documents({}),
                "new": db[CONTACTS].count_documents({"status": "new"}),
            },
            "newsletter": db[NEWSLETTER].count_documents({"status": "active"}),
        },
    }
