import logging
from typing import Any, Dict, List, Tuple

from pymongo.database import Database

from database import parse_object_id
from errors import AppError, NotFound
from forms import Payload, string_list
from storage import MediaStore

logger = logging.getLogger(__name__)


def find_or_404(db: Database, collection: str, record_id: str, label: str) -> Dict[str, Any]:
    oid = parse_object_id(record_id, label)
    doc = db[collection].find_one({"_id": oid})
    if doc is None:
        raise NotFound(f"{label.capitalize()} not found")
    return doc


def upload_images(store: MediaStore, payload: Payload, folder: str, *fields: str) -> List[str]:
    """Upload every file in ``fields``; if one is rejected, the ones already stored are removed."""
    urls: List[str] = []
    try:
        for upload in payload.uploads(*(fields or ("images",))):
            urls.append(store.upload(upload, folder))
    except AppError:
        purge_images(store, urls)
        raise
    return urls


def merge_images(store: MediaStore, payload: Payload, current: List[str], folder: str) -> Tuple[List[str], List[str]]:
    """
    Combine retained and newly uploaded images for an update.

    ``existingImages`` names the current URLs the client keeps; anything else
    currently on the record is returned as removed. Without ``existingImages``
    new uploads are appended to the current list.
    Returns ``(images, removed)``.
    """
    keep = string_list(payload.data.get("existingImages"), "existingImages")
    new_urls = upload_images(store, payload, folder)

    if keep is None:
        return list(current) + new_urls, []

    kept = [u for u in keep if u in current]
    removed = [u for u in current if u not in kept]
    return kept + new_urls, removed


def purge_images(store: MediaStore, urls: List[str]) -> None:
    """Best-effort delete; missing objects are fine, store outages propagate."""
    if urls:
        store.delete_many(urls)
        logger.info("Deleted %s image(s) from media store", len(urls))
