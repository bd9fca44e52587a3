import logging
import mimetypes
import os
import uuid
from typing import Iterable, Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.datastructures import UploadFile

from config import get_settings
from errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


class MediaStore:
    """
    S3-compatible object storage for uploaded images.

    Documents only ever hold the public URLs returned by ``upload``; the
    bucket owns the bytes. Works against AWS S3 or any S3 API (Spaces, MinIO).
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.setup()
        return cls._instance

    def setup(self):
        settings = get_settings()
        self.bucket = settings.media_bucket
        self.prefix = settings.media_prefix.strip("/")
        self.region = settings.media_region
        self.endpoint_url = settings.media_endpoint_url
        self.public_base_url = settings.media_public_base_url
        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=settings.media_access_key_id,
            aws_secret_access_key=settings.media_secret_access_key,
            region_name=self.region,
            config=Config(signature_version="s3v4"),
        )
        if not self.bucket:
            logger.warning("[MEDIA] MEDIA_BUCKET not set; image uploads will fail")

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        if self.public_base_url and url.startswith(self.public_base_url.rstrip("/") + "/"):
            return url[len(self.public_base_url.rstrip("/")) + 1:]
        path = urlparse(url).path.lstrip("/")
        if self.endpoint_url and path.startswith(f"{self.bucket}/"):
            path = path[len(self.bucket) + 1:]
        return path or None

    def upload(self, upload: UploadFile, folder: str) -> str:
        content_type = upload.content_type or mimetypes.guess_type(upload.filename or "")[0] or ""
        if not content_type.startswith("image/"):
            raise ValidationError(f"Only image uploads are allowed ({upload.filename})", fields=["images"])
        if not self.bucket:
            raise InternalError("Media store not configured")

        ext = os.path.splitext(upload.filename or "")[1].lower() or mimetypes.guess_extension(content_type) or ""
        key = "/".join(p for p in (self.prefix, folder, f"{uuid.uuid4().hex}{ext}") if p)
        try:
            upload.file.seek(0)
            self.client.upload_fileobj(
                upload.file,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type, "ACL": "public-read"},
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception("[MEDIA] Upload of %s failed", upload.filename)
            raise InternalError("Failed to upload image") from e

        url = self.public_url(key)
        logger.info("[MEDIA] Uploaded %s -> %s", upload.filename, url)
        return url

    def delete(self, url: str) -> bool:
        """Delete the object behind ``url``. A missing object counts as deleted."""
        key = self.key_from_url(url)
        if not key:
            return True
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in MISSING_OBJECT_CODES:
                logger.info("[MEDIA] %s already gone", key)
                return True
            logger.exception("[MEDIA] Delete of %s failed", key)
            raise InternalError("Failed to delete image") from e
        except BotoCoreError as e:
            logger.exception("[MEDIA] Delete of %s failed", key)
            raise InternalError("Failed to delete image") from e
        return True

    def delete_many(self, urls: Iterable[str]) -> None:
        for url in urls:
            if url:
                self.delete(url)


def get_media_store() -> MediaStore:
    return MediaStore()
