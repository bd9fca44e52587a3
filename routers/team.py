from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, require_admin
from database import TEAM, create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import ValidationError
from forms import Payload, clean, json_object, normalize_skills, read_payload, validate
from projections import public_team_member
from routers.common import find_or_404, purge_images, upload_images
from schemas import TeamMember, TeamMemberUpdate
from storage import MediaStore, get_media_store

router = APIRouter(prefix="/team", tags=["team"])
public_router = APIRouter(prefix="/public/team", tags=["public"])

TEAM_FIELDS = ["name", "position", "email", "phone", "bio", "image"]
SOCIAL_KEYS = ("linkedin", "twitter")
MEDIA_FOLDER = "team"


def _team_input(payload: Payload) -> Dict[str, Any]:
    """Flatten the dashboard form into TeamMember fields."""
    raw = payload.data
    data = clean(raw, TEAM_FIELDS)

    if "skills" in raw:
        data["skills"] = normalize_skills(raw.get("skills"))

    links = json_object(raw.get("socialLinks"), "socialLinks")
    flat = clean({k: raw.get(k) for k in SOCIAL_KEYS})
    if links is not None or flat:
        data["socialLinks"] = clean({**(links or {}), **flat})
    return data


def _single_image(store: MediaStore, payload: Payload) -> Optional[str]:
    uploads = payload.uploads("image")
    if len(uploads) > 1:
        raise ValidationError("Only one image per team member", fields=["image"])
    urls = upload_images(store, payload, MEDIA_FOLDER, "image")
    return urls[0] if urls else None


# ----------------------- Admin -----------------------
@router.get("")
def list_team(admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return [serialize_doc(x) for x in get_documents(db, TEAM)]


@router.get("/{member_id}")
def get_team_member(member_id: str, admin: AdminIdentity = Depends(require_admin), db: Database = Depends(get_db)):
    return serialize_doc(find_or_404(db, TEAM, member_id, "team member"))


@router.post("", status_code=201)
def create_team_member(
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    member = validate(TeamMember, _team_input(payload))
    data = member.model_dump(mode="json")
    data["image"] = _single_image(store, payload) or member.image
    _id = create_document(db, TEAM, data)

    log_activity(db, "Team Member Added", f"Added team member: {member.name}", "team", admin.id)
    return serialize_doc(db[TEAM].find_one({"_id": parse_object_id(_id)}))


@router.put("/{member_id}")
def update_team_member(
    member_id: str,
    admin: AdminIdentity = Depends(require_admin),
    payload: Payload = Depends(read_payload),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, TEAM, member_id, "team member")
    changes = validate(TeamMemberUpdate, _team_input(payload)).model_dump(mode="json", exclude_unset=True)
    # set links one by one so the ones not sent are kept
    links = changes.pop("socialLinks", None) or {}
    changes.update({f"socialLinks.{k}": v for k, v in links.items()})

    new_image = _single_image(store, payload)
    replaced = []
    if new_image:
        changes["image"] = new_image
        if current.get("image"):
            replaced.append(current["image"])
    changes["updatedAt"] = utcnow()

    db[TEAM].update_one({"_id": current["_id"]}, {"$set": changes})
    purge_images(store, replaced)

    name = changes.get("name") or current.get("name")
    log_activity(db, "Team Member Updated", f"Updated team member: {name}", "team", admin.id)
    return serialize_doc(db[TEAM].find_one({"_id": current["_id"]}))


@router.delete("/{member_id}")
def delete_team_member(
    member_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: Database = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    current = find_or_404(db, TEAM, member_id, "team member")
    db[TEAM].delete_one({"_id": current["_id"]})
    log_activity(db, "Team Member Deleted", f"Deleted team member: {current.get('name')}", "team", admin.id)
    purge_images(store, [current["image"]] if current.get("image") else [])
    return {"success": True, "message": "Team member deleted successfully"}


# ----------------------- Public -----------------------
@public_router.get("")
def list_public_team(db: Database = Depends(get_db)):
    return [public_team_member(x) for x in get_documents(db, TEAM)]
