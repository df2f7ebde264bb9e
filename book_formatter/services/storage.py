"""S3 artifact storage.

Originals and rendered PDFs are written under a folder prefix with a
caller-supplied key, so the same key always lands on the same object.
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from book_formatter.errors import StorageError

logger = logging.getLogger(__name__)

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ArtifactKind(enum.Enum):
    RAW = "raw"
    DOCUMENT = "document"


_CONTENT_TYPES = {
    ArtifactKind.RAW: (DOCX_MIMETYPE, ".docx"),
    ArtifactKind.DOCUMENT: ("application/pdf", ".pdf"),
}


@dataclass(frozen=True)
class StoredArtifact:
    key: str
    url: str
    secure_url: str


def s3_uri(bucket: str, key: str) -> str:
    return f"s3://{bucket}/{key}"


def artifact_key(book_id: int) -> str:
    return f"book-{book_id}-{int(time.time() * 1000)}"


class ArtifactStore:
    def __init__(self, bucket: str, region: str, endpoint_url: Optional[str] = None,
                 public_base_url: str = "", client=None):
        self.bucket = (bucket or "").strip()
        self.region = (region or "").strip()
        self.endpoint_url = endpoint_url
        self.public_base_url = (public_base_url or "").rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.region or None, endpoint_url=self.endpoint_url)
        return self._client

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, data: bytes, folder: str, kind: ArtifactKind, key: str) -> StoredArtifact:
        if not self.bucket:
            raise StorageError("AWS_S3_BUCKET not set")

        content_type, suffix = _CONTENT_TYPES[kind]
        object_key = f"{folder.strip('/')}/{key}{suffix}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload of {object_key} failed: {exc}") from exc

        logger.info("Stored %s artifact %s (%d bytes)", kind.value, object_key, len(data))
        return StoredArtifact(
            key=object_key,
            url=s3_uri(self.bucket, object_key),
            secure_url=self.public_url(object_key),
        )
