"""Artifact store receiving signatures and public keys.

The store contract is a single ``put(bucket, key, body)``. ``S3ArtifactStore``
uploads through boto3; ``MockArtifactStore`` keeps objects in memory.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from relm.core.result import Err, Ok, Result
from relm.signing.errors import SigningError

__all__ = [
    "ArtifactStore",
    "MockArtifactStore",
    "S3ArtifactStore",
    "StoredObject",
    "content_type_for",
]

DEFAULT_REGION = "us-east-2"
CACHE_CONTROL = "public, max-age=31536000"
CERTIFICATE_CONTENT_TYPE = "application/x-x509-ca-cert"
BINARY_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class StoredObject:
    """Descriptor returned by a successful upload."""

    bucket: str
    key: str
    etag: str | None = None


def content_type_for(key: str) -> str:
    if key.endswith(".crt"):
        return CERTIFICATE_CONTENT_TYPE
    return BINARY_CONTENT_TYPE


@runtime_checkable
class ArtifactStore(Protocol):
    def put(self, bucket: str, key: str, body: str | bytes) -> Result[StoredObject, SigningError]: ...


class S3ArtifactStore:
    """Upload artifacts to S3."""

    def __init__(self, region: str = DEFAULT_REGION, client: Any = None) -> None:
        self._region = region
        self._client = client

    def _s3(self) -> Any:
        if self._client is None:
            # Import boto3 lazily; only signing needs it
            import boto3

            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def put(self, bucket: str, key: str, body: str | bytes) -> Result[StoredObject, SigningError]:
        from botocore.exceptions import BotoCoreError, ClientError

        data = body.encode("utf-8") if isinstance(body, str) else body
        try:
            response = self._s3().put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type_for(key),
                CacheControl=CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as e:
            return Err(
                SigningError(
                    kind="upload_failed",
                    message=f"failed to upload s3://{bucket}/{key}: {e}",
                    hint="check AWS credentials and the signing bucket",
                )
            )
        etag = response.get("ETag") if isinstance(response, dict) else None
        return Ok(StoredObject(bucket=bucket, key=key, etag=etag))


class MockArtifactStore:
    """In-memory artifact store for tests."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self._failures: dict[str, SigningError] = {}
        self._lock = threading.Lock()

    def fail_on(self, key: str, message: str = "upload failed (mock)") -> None:
        self._failures[key] = SigningError(kind="upload_failed", message=message)

    def get(self, bucket: str, key: str) -> bytes | None:
        return self.objects.get((bucket, key))

    def put(self, bucket: str, key: str, body: str | bytes) -> Result[StoredObject, SigningError]:
        failure = self._failures.get(key)
        if failure is not None:
            return Err(failure)
        data = body.encode("utf-8") if isinstance(body, str) else body
        with self._lock:
            self.objects[(bucket, key)] = data
        return Ok(StoredObject(bucket=bucket, key=key))
