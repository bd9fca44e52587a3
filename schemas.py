"""
Database Schemas for AMIZERO Real Estate

Each Pydantic model below validates the documents stored in one MongoDB
collection. Field names match the stored (camelCase) document keys.

Collections:
- Admin -> "admins"
- Property -> "properties"
- TeamMember -> "team"
- PortfolioItem -> "portfolio"
- ScheduleVisit -> "schedule_visits"
- AchievementUpdate -> "achievements" (one new row per write)

The ``*Update`` variants make every field optional for partial updates.
"""
import re
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ListingType = Literal["sale", "rent"]
PropertyKind = Literal["house", "apartment", "villa", "office", "land", "commercial"]
PropertyStatus = Literal["active", "inactive", "sold", "rented"]
PortfolioCategory = Literal["valuation", "management", "brokerage", "survey", "development"]
PortfolioStatus = Literal["completed", "ongoing", "planned"]
VisitStatus = Literal["pending", "confirmed", "completed", "cancelled"]
ContactStatus = Literal["new", "contacted", "in-progress", "completed", "closed"]
ActivityType = Literal["property", "team", "portfolio", "admin", "schedule_visit"]

ACHIEVEMENT_FIELDS = ("listings", "propertiesManaged", "transactions", "projects")


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(EMAIL_RE.match(value))


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if not is_valid_email(value):
        raise ValueError("invalid email address")
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", allow_inf_nan=False)


# ----------------------- Admin -----------------------
class LoginRequest(_Schema):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Admin(_Schema):
    email: str
    passwordHash: str
    name: str
    role: Literal["admin"] = "admin"


# ----------------------- Properties -----------------------
class Property(_Schema):
    title: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    type: ListingType
    propertyType: PropertyKind
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: float = Field(default=0, ge=0)
    area: float = Field(default=0, ge=0)
    description: Optional[str] = None
    status: PropertyStatus = "active"
    images: List[str] = []


class PropertyUpdate(_Schema):
    title: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    type: Optional[ListingType] = None
    propertyType: Optional[PropertyKind] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    area: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    status: Optional[PropertyStatus] = None


class PropertyStatusUpdate(_Schema):
    status: PropertyStatus


# ----------------------- Team -----------------------
class SocialLinks(_Schema):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    email: Optional[str] = None

    normalize_email = field_validator("email")(_check_email)


class TeamMember(_Schema):
    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    skills: List[str] = []
    socialLinks: SocialLinks = Field(default_factory=SocialLinks)

    normalize_email = field_validator("email")(_check_email)


class TeamMemberUpdate(_Schema):
    name: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    socialLinks: Optional[SocialLinks] = None

    normalize_email = field_validator("email")(_check_email)


# ----------------------- Portfolio -----------------------
class PortfolioItem(_Schema):
    title: str = Field(..., min_length=1)
    category: PortfolioCategory
    date: dt.date
    description: Optional[str] = None
    value: Optional[str] = None
    client: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    status: PortfolioStatus = "completed"
    images: List[str] = []


class PortfolioUpdate(_Schema):
    title: Optional[str] = Field(None, min_length=1)
    category: Optional[PortfolioCategory] = None
    date: Optional[dt.date] = None
    description: Optional[str] = None
    value: Optional[str] = None
    client: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    status: Optional[PortfolioStatus] = None


# ----------------------- Schedule visits -----------------------
class ScheduleVisit(_Schema):
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: str
    phone: str = Field(..., min_length=1)
    propertyId: str = Field(..., min_length=1)
    preferredDate: dt.date
    preferredTime: str = Field(..., min_length=1)
    message: Optional[str] = None
    status: VisitStatus = "pending"

    normalize_email = field_validator("email")(_check_email)


class ScheduleVisitUpdate(_Schema):
    firstName: Optional[str] = Field(None, min_length=1)
    lastName: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=1)
    preferredDate: Optional[dt.date] = None
    preferredTime: Optional[str] = Field(None, min_length=1)
    message: Optional[str] = None
    status: Optional[VisitStatus] = None

    normalize_email = field_validator("email")(_check_email)


class VisitStatusUpdate(_Schema):
    status: VisitStatus


# ----------------------- Contacts -----------------------
class ContactStatusUpdate(_Schema):
    status: ContactStatus


# ----------------------- Achievements -----------------------
class AchievementUpdate(_Schema):
    listings: Optional[int] = Field(None, ge=0)
    propertiesManaged: Optional[int] = Field(None, ge=0)
    transactions: Optional[int] = Field(None, ge=0)
    projects: Optional[int] = Field(None, ge=0)


class AchievementFieldUpdate(_Schema):
    value: int = Field(..., ge=0)
