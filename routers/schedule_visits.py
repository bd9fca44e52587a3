import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, require_admin
from database import (
    PROPERTIES,
    SCHEDULE_VISITS,
    create_document,
    get_db,
    get_documents,
    parse_object_id,
    serialize_doc,
    utcnow,
)
from errors import NotFound, ValidationError
from forms import Payload, clean, read_payload, validate
from routers.common import find_or_404
from schemas import ScheduleVisit, ScheduleVisitUpdate, VisitStatus, VisitStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule-visits", tags=["schedule-visits"])

VISIT_FIELDS = list(ScheduleVisit.model_fields)
UPDATE_FIELDS = list(ScheduleVisitUpdate.model_fields)


def _visitor_name(doc: Dict[str, Any]) -> str:
    return f"{doc.get('firstName', '')} {doc.get('lastName', '')}".strip()


@router.post("", status_code=201)
def create_schedule_visit(payload: Payload = Depends(read_payload), db: Database = Depends(get_db)):
    data = clean(payload.data, VISIT_FIELDS)
    data.pop("status", None)
    visit = validate(ScheduleVisit, data)

    try:
        property_oid = parse_object_id(visit.propertyId, "property")
    except ValidationError as e:
        raise ValidationError(e.message, fields=["propertyId"])
    prop = db[PROPERTIES].find_one({"_id": property_oid, "status": "active"})
    if prop is None:
        raise NotFound("Property not found")

    doc = visit.model_dump(mode="json")
    doc["propertyId"] = property_oid
    doc["propertyTitle"] = prop.get("title")
    _id = create_document(db, SCHEDULE_VISITS, doc)
    logger.info("Visit request %s for property %s", _id, visit.propertyId)

    return {
        "success": True,
        "message": "Visit scheduled successfully! We will contact you to confirm.",
        "visit": serialize_doc(db[SCHEDULE_VISITS].find_one({"_id": parse_object_id(_id)})),
    }


@router.get("")
def list_schedule_visits(
    status: Optional[VisitStatus] = None,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    f = {"status": status} if status else {}
    return [serialize_doc(x) for x in get_documents(db, SCHEDULE_VISITS, f)]


@router.get("/{visit_id}")
def get_schedule_visit(visit_id: str, admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return serialize_doc(find_or_404(db, SCHEDULE_VISITS, visit_id, "visit"))


@router.put("/{visit_id}")
def update_schedule_visit(
    visit_id: str,
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
):
    current = find_or_404(db, SCHEDULE_VISITS, visit_id, "visit")
    changes = validate(ScheduleVisitUpdate, clean(payload.data, UPDATE_FIELDS)).model_dump(
        mode="json", exclude_unset=True
    )
    changes["updatedAt"] = utcnow()
    db[SCHEDULE_VISITS].update_one({"_id": current["_id"]}, {"$set": changes})

    log_activity(db, "Visit Updated", f"Updated visit request from {_visitor_name(current)}", "schedule_visit", admin.id)
    visit = db[SCHEDULE_VISITS].find_one({"_id": current["_id"]})
    return {"success": True, "message": "Visit updated successfully", "visit": serialize_doc(visit)}


@router.patch("/{visit_id}")
def update_schedule_visit_status(
    visit_id: str,
    body: VisitStatusUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    current = find_or_404(db, SCHEDULE_VISITS, visit_id, "visit")
    db[SCHEDULE_VISITS].update_one(
        {"_id": current["_id"]}, {"$set": {"status": body.status, "updatedAt": utcnow()}}
    )

    log_activity(
        db,
        "Visit Status Changed",
        f"Visit request from {_visitor_name(current)} marked {body.status}",
        "schedule_visit",
        admin.id,
    )
    visit = db[SCHEDULE_VISITS].find_one({"_id": current["_id"]})
    return {"success": True, "message": f"Visit {body.status}", "visit": serialize_doc(visit)}


@router.delete("/{visit_id}")
def delete_schedule_visit(visit_id: str, admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    current = find_or_404(db, SCHEDULE_VISITS, visit_id, "visit")
    db[SCHEDULE_VISITS].delete_one({"_id": current["_id"]})
    log_activity(db, "Visit Deleted", f"Deleted visit request from {_visitor_name(current)}", "schedule_visit", admin.id)
    return {"success": True, "message": "Visit deleted successfully"}
