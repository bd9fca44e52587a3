"""
Request-body helpers shared by the admin CRUD routers.

Admin forms arrive either as JSON or as multipart form data (when images are
attached). ``read_payload`` turns both into one ``Payload``; the routers then
validate ``payload.data`` with the pydantic models in ``schemas``, which
coerces numeric form strings ("50000000") into numbers.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic
from fastapi import Request
from starlette.datastructures import UploadFile

from errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class Payload:
    data: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, List[UploadFile]] = field(default_factory=dict)

    def uploads(self, *names: str) -> List[UploadFile]:
        out: List[UploadFile] = []
        for name in names:
            out.extend(self.files.get(name, []))
        return out


async def read_payload(request: Request) -> Payload:
    content_type = (request.headers.get("content-type") or "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        values: Dict[str, List[Any]] = {}
        files: Dict[str, List[UploadFile]] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    files.setdefault(key, []).append(value)
            else:
                values.setdefault(key, []).append(value)
        data = {k: v[0] if len(v) == 1 else v for k, v in values.items()}
        return Payload(data=data, files=files)

    body = await request.body()
    if not body.strip():
        return Payload()
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError("Request body is not valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return Payload(data=data)


def clean(data: Dict[str, Any], allowed: Optional[List[str]] = None) -> Dict[str, Any]:
    """Drop unknown keys, None and blank strings (blank form inputs mean "not supplied")."""
    out: Dict[str, Any] = {}
    for k, v in data.items():
        if allowed is not None and k not in allowed:
            continue
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        out[k] = v
    return out


def validate(model: Type[M], data: Dict[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "body" for err in e.errors()})
        raise ValidationError(fields=fields)


def _parse_json_list(value: str, field_name: str) -> List[Any]:
    try:
        parsed = json.loads(value)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid JSON array", fields=[field_name])
    if not isinstance(parsed, list):
        raise ValidationError(f"{field_name} must be a JSON array", fields=[field_name])
    return parsed


def normalize_skills(value: Any) -> List[str]:
    """
    Canonical skills list: ordered, stripped, non-empty, de-duplicated strings.

    Accepts a list of strings, a JSON array string ('["Sales", "Valuation"]')
    or a comma-separated string ("Sales, Valuation"). Anything that looks like
    JSON but is not an array of strings is rejected rather than guessed at.
    """
    if value is None:
        return []

    if isinstance(value, str):
        text = value.strip()
        if text[:1] in ("[", "{", '"'):
            items = _parse_json_list(text, "skills")
        else:
            items = text.split(",")
    elif isinstance(value, list):
        items = value
    else:
        raise ValidationError("skills must be a list of strings", fields=["skills"])

    skills: List[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError("skills must be a list of strings", fields=["skills"])
        s = item.strip()
        if s and s not in skills:
            skills.append(s)
    return skills


def string_list(value: Any, field_name: str) -> Optional[List[str]]:
    """Repeated form field, JSON array string or list -> list of strings. None stays None."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        items = _parse_json_list(text, field_name) if text.startswith("[") else [text]
    elif isinstance(value, list):
        items = value
    else:
        raise ValidationError(f"{field_name} must be a list of strings", fields=[field_name])

    out: List[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(f"{field_name} must be a list of strings", fields=[field_name])
        if item.strip():
            out.append(item.strip())
    return out


def json_object(value: Any, field_name: str) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            raise ValidationError(f"{field_name} is not valid JSON", fields=[field_name])
        if isinstance(parsed, dict):
            return parsed
    raise ValidationError(f"{field_name} must be an object", fields=[field_name])
