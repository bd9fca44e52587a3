"""Shared fixtures for the API test suite.

- db: in-memory mongomock database wired in through ``get_db``
- media_store: records uploads/deletes instead of talking to S3
- dispatcher: records queued emails instead of sending them
- client: TestClient against ``main.app`` with the above overrides
- admin_headers: bearer header for the seeded default admin
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import ensure_default_admin
from config import get_settings
from database import ensure_indexes, get_db
from errors import ValidationError
from main import app
from notifications import get_dispatcher
from storage import get_media_store


class FakeMediaStore:
    def __init__(self):
        self.uploaded = []
        self.deleted = []

    def upload(self, upload, folder):
        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError(f"Only image uploads are allowed ({upload.filename})", fields=["images"])
        url = f"https://media.test/{folder}/{len(self.uploaded) + 1}-{upload.filename}"
        self.uploaded.append(url)
        return url

    def delete_many(self, urls):
        self.deleted.extend(u for u in urls if u)


class RecordingDispatcher:
    def __init__(self):
        self.jobs = []

    def enqueue(self, job):
        self.jobs.append(job)
        return True


@pytest.fixture
def db():
    database = mongomock.MongoClient(tz_aware=True)["amizero_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(db, media_store, dispatcher):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_media_store] = lambda: media_store
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    # no context manager: the lifespan would connect to a real MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client, db):
    ensure_default_admin(db)
    settings = get_settings()
    r = client.post(
        "/api/auth/login",
        json={"email": settings.default_admin_email, "password": settings.default_admin_password},
    )
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def make_property(client, admin_headers):
    def _make(**overrides):
        body = {
            "title": "Villa A",
            "location": "Kigali",
            "price": 50000000,
            "type": "sale",
            "propertyType": "villa",
            "bedrooms": 4,
        }
        body.update(overrides)
        r = client.post("/api/properties", json=body, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
