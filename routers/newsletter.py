import logging

from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AdminIdentity, require_admin
from database import NEWSLETTER, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import Conflict, NotFound, ValidationError
from forms import Payload, read_payload
from schemas import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletter", tags=["newsletter"])

DUPLICATE_MESSAGE = "Email is already subscribed to our newsletter"


@router.post("")
def subscribe(payload: Payload = Depends(read_payload), db: Database = Depends(get_db)):
    raw_email = payload.data.get("email")
    email = raw_email.strip().lower() if isinstance(raw_email, str) else ""
    name = payload.data.get("name")

    if not email:
        raise ValidationError("Email is required", fields=["email"])
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address", fields=["email"])

    collection = db[NEWSLETTER]
    if collection.find_one({"email": email}) is not None:
        raise Conflict(DUPLICATE_MESSAGE)

    try:
        collection.insert_one(
            {
                "email": email,
                "name": name.strip() if isinstance(name, str) and name.strip() else None,
                "subscribedAt": utcnow(),
                "status": "active",
                "source": "website",
            }
        )
    except DuplicateKeyError:
        raise Conflict(DUPLICATE_MESSAGE)

    logger.info("New newsletter subscriber %s", email)
    return {"success": True, "message": "Successfully subscribed to newsletter!"}


@router.get("")
def list_subscribers(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    subscribers = get_documents(db, NEWSLETTER, sort_field="subscribedAt")
    return {"success": True, "subscribers": [serialize_doc(x) for x in subscribers]}


@router.delete("/{subscriber_id}")
def unsubscribe(subscriber_id: str, admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    result = db[NEWSLETTER].delete_one({"_id": parse_object_id(subscriber_id, "subscriber")})
    if result.deleted_count == 0:
        raise NotFound("Subscriber not found")
    return {"success": True, "message": "Subscriber removed"}
