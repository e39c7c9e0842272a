"""Tests for relm.signing.store module."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

from relm.core.result import Err, Ok
from relm.signing.store import (
    ArtifactStore,
    MockArtifactStore,
    S3ArtifactStore,
    StoredObject,
    content_type_for,
)


class _FakeS3:
    def __init__(self, error: Exception | None = None) -> None:
        self.requests: list[dict[str, Any]] = []
        self._error = error

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(kwargs)
        if self._error is not None:
            raise self._error
        return {"ETag": '"abc123"'}


def test_content_types() -> None:
    assert content_type_for("signatures/pkg/1.0.0.crt") == "application/x-x509-ca-cert"
    assert content_type_for("signatures/pkg/1.0.0.sig") == "application/octet-stream"


def test_stores_satisfy_protocol() -> None:
    assert isinstance(MockArtifactStore(), ArtifactStore)
    assert isinstance(S3ArtifactStore(client=_FakeS3()), ArtifactStore)


class TestS3ArtifactStore:
    def test_put(self) -> None:
        client = _FakeS3()
        store = S3ArtifactStore(client=client)

        result = store.put("artifacts", "signatures/pkg/1.0.0.crt", "-----BEGIN PUBLIC KEY-----")

        assert result == Ok(StoredObject("artifacts", "signatures/pkg/1.0.0.crt", '"abc123"'))
        (request,) = client.requests
        assert request["Bucket"] == "artifacts"
        assert request["Body"] == b"-----BEGIN PUBLIC KEY-----"
        assert request["ContentType"] == "application/x-x509-ca-cert"
        assert request["CacheControl"] == "public, max-age=31536000"

    def test_client_error(self) -> None:
        error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        store = S3ArtifactStore(client=_FakeS3(error))

        result = store.put("artifacts", "signatures/pkg/1.0.0.sig", b"sig")

        assert isinstance(result, Err)
        assert result.error.kind == "upload_failed"
        assert "s3://artifacts/signatures/pkg/1.0.0.sig" in result.error.message


class TestMockArtifactStore:
    def test_put_and_get(self) -> None:
        store = MockArtifactStore()

        store.put("b", "k.sig", "text")

        assert store.get("b", "k.sig") == b"text"
        assert store.get("b", "missing") is None

    def test_fail_on(self) -> None:
        store = MockArtifactStore()
        store.fail_on("k.crt")

        result = store.put("b", "k.crt", "x")

        assert isinstance(result, Err)
        assert store.objects == {}
