"""
Public (unauthenticated) views of stored documents.

Each projection whitelists the fields the marketing site renders, exposes the
ObjectId as ``id`` and fills absent optional fields with explicit sentinels
so the frontend always sees the same shape.
"""
from datetime import datetime
from typing import Any, Dict, List

NOT_AVAILABLE = "N/A"


def _text(doc: Dict[str, Any], key: str) -> str:
    value = doc.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_AVAILABLE
    return str(value)


def _number(doc: Dict[str, Any], key: str):
    value = doc.get(key)
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0


def _list(doc: Dict[str, Any], key: str) -> List[Any]:
    value = doc.get(key)
    return list(value) if isinstance(value, list) else []


def _timestamp(doc: Dict[str, Any], key: str) -> str:
    value = doc.get(key)
    if isinstance(value, datetime):
        return value.isoformat()
    return _text(doc, key)


def public_property(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "title": _text(doc, "title"),
        "location": _text(doc, "location"),
        "price": _number(doc, "price"),
        "type": _text(doc, "type"),
        "propertyType": _text(doc, "propertyType"),
        "bedrooms": _number(doc, "bedrooms"),
        "bathrooms": _number(doc, "bathrooms"),
        "area": _number(doc, "area"),
        "description": _text(doc, "description"),
        "images": _list(doc, "images"),
        "createdAt": _timestamp(doc, "createdAt"),
    }


def public_team_member(doc: Dict[str, Any]) -> Dict[str, Any]:
    links = doc.get("socialLinks") or {}
    return {
        "id": str(doc["_id"]),
        "name": _text(doc, "name"),
        "position": _text(doc, "position"),
        "email": _text(doc, "email"),
        "phone": _text(doc, "phone"),
        "bio": _text(doc, "bio"),
        "image": _text(doc, "image"),
        "skills": _list(doc, "skills"),
        "socialLinks": {k: _text(links, k) for k in ("linkedin", "twitter", "email")},
    }


def public_portfolio_item(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "title": _text(doc, "title"),
        "category": _text(doc, "category"),
        "description": _text(doc, "description"),
        "value": _text(doc, "value"),
        "date": _text(doc, "date"),
        "client": _text(doc, "client"),
        "location": _text(doc, "location"),
        "duration": _text(doc, "duration"),
        "status": _text(doc, "status"),
        "images": _list(doc, "images"),
    }
