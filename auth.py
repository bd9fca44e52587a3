import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt
from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from config import get_settings
from database import ADMINS, get_db, utcnow
from errors import Forbidden, InvalidCredentials, Unauthorized
from schemas import Admin

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminIdentity:
    id: str
    email: str
    name: str
    role: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# -------------------------
# JWT helpers
# -------------------------
def create_access_token(admin: AdminIdentity) -> str:
    settings = get_settings()
    now = utcnow()
    payload: Dict[str, Any] = {
        "sub": admin.id,
        "adminId": admin.id,
        "email": admin.email,
        "name": admin.name,
        "role": admin.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=int(settings.jwt_expires_minutes))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AdminIdentity:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Forbidden("Token expired")
    except jwt.InvalidTokenError:
        raise Forbidden("Invalid token")

    admin_id = str(claims.get("adminId") or claims.get("sub") or "")
    if not admin_id:
        raise Forbidden("Invalid token")
    return AdminIdentity(
        id=admin_id,
        email=str(claims.get("email") or ""),
        name=str(claims.get("name") or ""),
        role=str(claims.get("role") or "admin"),
    )


def _identity_from_doc(doc: Dict[str, Any]) -> AdminIdentity:
    return AdminIdentity(
        id=str(doc["_id"]),
        email=str(doc["email"]),
        name=str(doc.get("name") or ""),
        role=str(doc.get("role") or "admin"),
    )


# -------------------------
# Login + bootstrap
# -------------------------
def authenticate(db: Database, email: str, password: str) -> AdminIdentity:
    email = (email or "").strip().lower()
    doc = db[ADMINS].find_one({"email": email})
    if doc is None or not verify_password(password or "", str(doc.get("passwordHash") or "")):
        logger.warning("Failed login attempt for %s", email)
        raise InvalidCredentials()

    db[ADMINS].update_one({"_id": doc["_id"]}, {"$set": {"lastLoginAt": utcnow()}})
    return _identity_from_doc(doc)


def ensure_default_admin(db: Database) -> bool:
    """Insert the configured default admin unless that email already exists.

    Returns True when a new account was created.
    """
    settings = get_settings()
    email = settings.default_admin_email.strip().lower()
    if db[ADMINS].find_one({"email": email}) is not None:
        return False

    admin = Admin(
        email=email,
        passwordHash=hash_password(settings.default_admin_password),
        name=settings.default_admin_name,
    )
    db[ADMINS].insert_one({**admin.model_dump(), "createdAt": utcnow()})
    logger.info("Created default admin account %s", email)
    return True


# -------------------------
# Dependency
# -------------------------
def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AdminIdentity:
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    admin = decode_access_token(credentials.credentials)
    request.state.admin = admin
    return admin


def current_admin_doc(db: Database = Depends(get_db), admin: AdminIdentity = Depends(require_admin)) -> AdminIdentity:
    """Like ``require_admin`` but also checks the account still exists."""
    if not ObjectId.is_valid(admin.id):
        raise Forbidden("Invalid token")
    doc = db[ADMINS].find_one({"_id": ObjectId(admin.id)})
    if doc is None:
        raise Forbidden("Admin account no longer exists")
    return _identity_from_doc(doc)
