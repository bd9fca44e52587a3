from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, require_admin
from database import PORTFOLIO, create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from forms import Payload, clean, read_payload, string_list, validate
from projections import public_portfolio_item
from routers.common import find_or_404, merge_images, purge_images, upload_images
from schemas import PortfolioCategory, PortfolioItem, PortfolioStatus, PortfolioUpdate
from storage import MediaStore, get_media_store

router = APIRouter(prefix="/portfolio", tags=["portfolio"])
public_router = APIRouter(prefix="/public/portfolio", tags=["public"])

PORTFOLIO_FIELDS = [f for f in PortfolioItem.model_fields if f != "images"]
MEDIA_FOLDER = "portfolio"


@router.get("")
def list_portfolio(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return [serialize_doc(x) for x in get_documents(db, PORTFOLIO)]


@router.get("/{item_id}")
def get_portfolio_item(item_id: str, admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return serialize_doc(find_or_404(db, PORTFOLIO, item_id, "portfolio item"))


@router.post("", status_code=201)
def create_portfolio_item(
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    item = validate(PortfolioItem, clean(payload.data, PORTFOLIO_FIELDS))
    linked = string_list(payload.data.get("images"), "images") or []

    data = item.model_dump(mode="json")
    data["images"] = linked + upload_images(store, payload, MEDIA_FOLDER)
    _id = create_document(db, PORTFOLIO, data)

    log_activity(db, "Portfolio Item Added", f"Added portfolio item: {item.title}", "portfolio", admin.id)
    return serialize_doc(db[PORTFOLIO].find_one({"_id": parse_object_id(_id)}))


@router.put("/{item_id}")
def update_portfolio_item(
    item_id: str,
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, PORTFOLIO, item_id, "portfolio item")
    changes = validate(PortfolioUpdate, clean(payload.data, PORTFOLIO_FIELDS)).model_dump(
        mode="json", exclude_unset=True
    )
    images, removed = merge_images(store, payload, current.get("images") or [], MEDIA_FOLDER)
    changes["images"] = images
    changes["updatedAt"] = utcnow()

    db[PORTFOLIO].update_one({"_id": current["_id"]}, {"$set": changes})
    purge_images(store, removed)

    title = changes.get("title") or current.get("title")
    log_activity(db, "Portfolio Item Updated", f"Updated portfolio item: {title}", "portfolio", admin.id)
    return serialize_doc(db[PORTFOLIO].find_one({"_id": current["_id"]}))


@router.delete("/{item_id}")
def delete_portfolio_item(
    item_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, PORTFOLIO, item_id, "portfolio item")
    db[PORTFOLIO].delete_one({"_id": current["_id"]})
    log_activity(
        db, "Portfolio Item Deleted", f"Deleted portfolio item: {current.get('title')}", "portfolio", admin.id
    )
    purge_images(store, current.get("images") or [])
    return {"success": True, "message": "Portfolio item deleted successfully"}


@public_router.get("")
def list_public_portfolio(
    category: Optional[PortfolioCategory] = None,
    status: Optional[PortfolioStatus] = None,
    db: Database = Depends(get_db),
):
    f: Dict[str, Any] = {}
    if category:
        f["category"] = category
    if status:
        f["status"] = status
    return [public_portfolio_item(x) for x in get_documents(db, PORTFOLIO, f, sort_field="date")]
