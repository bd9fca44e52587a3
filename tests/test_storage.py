import io

import pytest
from botocore.stub import Stubber
from starlette.datastructures import Headers, UploadFile

from errors import InternalError, ValidationError
from storage import MediaStore

KEY = "amizero/properties/abc.jpg"
URL = f"https://cdn.test/{KEY}"


@pytest.fixture
def store(monkeypatch):
    s = MediaStore()
    monkeypatch.setattr(s, "bucket", "amizero-media")
    monkeypatch.setattr(s, "public_base_url", "https://cdn.test")
    monkeypatch.setattr(s, "endpoint_url", None)
    monkeypatch.setattr(s, "prefix", "amizero")
    return s


def _upload(name, content_type):
    return UploadFile(io.BytesIO(b"data"), filename=name, headers=Headers({"content-type": content_type}))


def test_media_store_is_a_singleton():
    assert MediaStore() is MediaStore()


def test_urls_map_to_keys(store, monkeypatch):
    assert store.public_url(KEY) == URL
    assert store.key_from_url(URL) == KEY

    monkeypatch.setattr(store, "public_base_url", None)
    monkeypatch.setattr(store, "endpoint_url", "https://fra1.digitaloceanspaces.com")
    url = store.public_url(KEY)
    assert url == f"https://fra1.digitaloceanspaces.com/amizero-media/{KEY}"
    assert store.key_from_url(url) == KEY


def test_upload_rejects_non_images(store):
    with pytest.raises(ValidationError) as exc:
        store.upload(_upload("notes.txt", "text/plain"), "properties")
    assert exc.value.fields == ["images"]


def test_upload_without_bucket_is_internal_error(store, monkeypatch):
    monkeypatch.setattr(store, "bucket", "")
    with pytest.raises(InternalError):
        store.upload(_upload("a.jpg", "image/jpeg"), "properties")


def test_delete_treats_missing_object_as_success(store):
    with Stubber(store.client) as stub:
        stub.add_response("delete_object", {}, {"Bucket": "amizero-media", "Key": KEY})
        assert store.delete(URL) is True

        stub.add_client_error("delete_object", service_error_code="NoSuchKey", http_status_code=404)
        assert store.delete(URL) is True


def test_delete_store_outage_propagates(store):
    with Stubber(store.client) as stub:
        stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(InternalError):
            store.delete_many([URL])
