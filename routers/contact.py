import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Request
from pymongo.database import Database

from auth import AdminIdentity, require_admin
from database import CONTACTS, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import NotFound, ValidationError
from forms import Payload, read_payload
from notifications import NotificationDispatcher, contact_emails, get_dispatcher
from schemas import ContactStatusUpdate, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


@router.post("/contact")
def submit_contact(
    request: Request,
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    name = _text(payload.data.get("name"))
    email = _text(payload.data.get("email")).lower()
    message = _text(payload.data.get("message"))
    phone = _text(payload.data.get("phone"))
    service = _text(payload.data.get("service"))

    if not name or not email or not message:
        raise ValidationError("Name, email, and message are required fields")
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address", fields=["email"])

    contact = {
        "name": name,
        "email": email,
        "phone": phone or None,
        "service": service or "General Inquiry",
        "message": message,
        "timestamp": utcnow(),
        "status": "new",
        "source": "website",
        "ipAddress": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
    }
    contact_id = str(db[CONTACTS].insert_one(contact).inserted_id)
    logger.info("Contact request %s from %s", contact_id, email)

    for job in contact_emails(contact, contact_id):
        dispatcher.enqueue(job)

    return {
        "success": True,
        "message": "Thank you for your message! We will get back to you soon.",
        "contactId": contact_id,
    }


@router.get("/contacts")
def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    total = db[CONTACTS].count_documents({})
    contacts = get_documents(db, CONTACTS, limit=limit, skip=(page - 1) * limit, sort_field="timestamp")
    return {
        "success": True,
        "contacts": [serialize_doc(x) for x in contacts],
        "pagination": {
            "currentPage": page,
            "totalPages": -(-total // limit),
            "totalContacts": total,
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
    }


@router.put("/contacts/{contact_id}/status")
def update_contact_status(
    contact_id: str,
    body: ContactStatusUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(contact_id, "contact")
    result = db[CONTACTS].update_one({"_id": oid}, {"$set": {"status": body.status, "lastUpdated": utcnow()}})
    if result.matched_count == 0:
        raise NotFound("Contact not found")
    return {"success": True, "message": "Contact status updated successfully"}


@router.get("/analytics")
def contact_analytics(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    collection = db[CONTACTS]
    now = utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    six_months_ago = now - timedelta(days=183)

    service_stats = list(
        collection.aggregate(
            [
                {"$group": {"_id": "$service", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ]
        )
    )
    monthly_trend = list(
        collection.aggregate(
            [
                {"$match": {"timestamp": {"$gte": six_months_ago}}},
                {
                    "$group": {
                        "_id": {"year": {"$year": "$timestamp"}, "month": {"$month": "$timestamp"}},
                        "count": {"$sum": 1},
                    }
                },
                {"$sort": {"_id.year": 1, "_id.month": 1}},
            ]
        )
    )

    return {
        "success": True,
        "analytics": {
            "totalContacts": collection.count_documents({}),
            "newContacts": collection.count_documents({"status": "new"}),
            "monthlyContacts": collection.count_documents({"timestamp": {"$gte": month_start}}),
            "serviceStats": service_stats,
            "monthlyTrend": monthly_trend,
        },
    }
