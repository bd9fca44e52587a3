from fastapi import APIRouter, Depends
from pymongo.database import Database

from activity import log_activity
from auth import AdminIdentity, authenticate, create_access_token, current_admin_doc
from database import get_db
from schemas import LoginRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(body: LoginRequest, db: Database = Depends(get_db)):
    admin = authenticate(db, body.email, body.password)
    token = create_access_token(admin)
    log_activity(db, "Admin Login", f"{admin.name or admin.email} logged in", "admin", admin.id)
    return {"success": True, "token": token, "admin": admin.to_dict()}


@router.get("/verify")
def verify(admin: AdminIdentity = Depends(current_admin_doc)):
    return {"success": True, "admin": admin.to_dict()}
