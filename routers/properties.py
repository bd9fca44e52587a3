import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, require_admin
from database import (
    PROPERTIES,
    create_document,
    get_db,
    get_documents,
    parse_object_id,
    serialize_doc,
    utcnow,
)
from errors import NotFound
from forms import Payload, clean, read_payload, string_list, validate
from projections import public_property
from routers.common import find_or_404, merge_images, purge_images, upload_images
from schemas import ListingType, Property, PropertyKind, PropertyStatusUpdate, PropertyUpdate
from storage import MediaStore, get_media_store

router = APIRouter(prefix="/properties", tags=["properties"])
public_router = APIRouter(prefix="/public/properties", tags=["public"])

PROPERTY_FIELDS = [f for f in Property.model_fields if f != "images"]
MEDIA_FOLDER = "properties"


# ----------------------- Admin -----------------------
@router.get("")
def list_properties(
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    return [serialize_doc(x) for x in get_documents(db, PROPERTIES)]


@router.get("/{property_id}")
def get_property(
    property_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    return serialize_doc(find_or_404(db, PROPERTIES, property_id, "property"))


@router.post("", status_code=201)
def create_property(
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    prop = validate(Property, clean(payload.data, PROPERTY_FIELDS))
    linked = string_list(payload.data.get("images"), "images") or []

    data = prop.model_dump(mode="json")
    data["images"] = linked + upload_images(store, payload, MEDIA_FOLDER)
    _id = create_document(db, PROPERTIES, data)

    log_activity(db, "Property Added", f"Added property: {prop.title}", "property", admin.id)
    return serialize_doc(db[PROPERTIES].find_one({"_id": parse_object_id(_id)}))


@router.put("/{property_id}")
def update_property(
    property_id: str,
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, PROPERTIES, property_id, "property")
    changes = validate(PropertyUpdate, clean(payload.data, PROPERTY_FIELDS)).model_dump(
        mode="json", exclude_unset=True
    )
    images, removed = merge_images(store, payload, current.get("images") or [], MEDIA_FOLDER)
    changes["images"] = images
    changes["updatedAt"] = utcnow()

    db[PROPERTIES].update_one({"_id": current["_id"]}, {"$set": changes})
    purge_images(store, removed)

    title = changes.get("title") or current.get("title")
    log_activity(db, "Property Updated", f"Updated property: {title}", "property", admin.id)
    return serialize_doc(db[PROPERTIES].find_one({"_id": current["_id"]}))


@router.patch("/{property_id}/status")
def update_property_status(
    property_id: str,
    body: PropertyStatusUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    current = find_or_404(db, PROPERTIES, property_id, "property")
    db[PROPERTIES].update_one(
        {"_id": current["_id"]}, {"$set": {"status": body.status, "updatedAt": utcnow()}}
    )
    log_activity(
        db,
        "Property Status Changed",
        f"Marked property {current.get('title')} as {body.status}",
        "property",
        admin.id,
    )
    return serialize_doc(db[PROPERTIES].find_one({"_id": current["_id"]}))


@router.delete("/{property_id}")
def delete_property(
    property_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, PROPERTIES, property_id, "property")
    db[PROPERTIES].delete_one({"_id": current["_id"]})
    log_activity(db, "Property Deleted", f"Deleted property: {current.get('title')}", "property", admin.id)
    purge_images(store, current.get("images") or [])
    return {"success": True, "message": "Property deleted successfully"}


# ----------------------- Public -----------------------
def public_filter(
    type: Optional[str] = None,
    location: Optional[str] = None,
    propertyType: Optional[str] = None,
    bedrooms: Optional[int] = None,
    minPrice: Optional[float] = None,
    maxPrice: Optional[float] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    f: Dict[str, Any] = {"status": "active"}
    if type:
        f["type"] = type
    if propertyType:
        f["propertyType"] = propertyType
    if location:
        f["location"] = {"$regex": re.escape(location.strip()), "$options": "i"}
    if bedrooms is not None:
        f["bedrooms"] = {"$gte": bedrooms}
    if minPrice is not None or maxPrice is not None:
        price_filter: Dict[str, Any] = {}
        if minPrice is not None:
            price_filter["$gte"] = float(minPrice)
        if maxPrice is not None:
            price_filter["$lte"] = float(maxPrice)
        f["price"] = price_filter
    if q:
        pattern = re.escape(q.strip())
        f["$or"] = [{k: {"$regex": pattern, "$options": "i"}} for k in ("title", "location", "description")]
    return f


@public_router.get("")
def list_public_properties(
    type: Optional[ListingType] = None,
    location: Optional[str] = None,
    propertyType: Optional[PropertyKind] = None,
    bedrooms: Optional[int] = Query(None, ge=0),
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Database = Depends(get_db),
) -> List[Dict[str, Any]]:
    f = public_filter(type, location, propertyType, bedrooms, minPrice, maxPrice, q)
    items = get_documents(db, PROPERTIES, f, limit=limit, skip=(page - 1) * limit)
    return [public_property(x) for x in items]


@public_router.get("/{property_id}")
def get_public_property(property_id: str, db: Database = Depends(get_db)):
    doc = find_or_404(db, PROPERTIES, property_id, "property")
    if doc.get("status") != "active":
        raise NotFound("Property not found")
    return public_property(doc)