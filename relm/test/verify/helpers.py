"""In-memory npm tarballs and registry documents for verify tests."""

from __future__ import annotations

import io
import json
import tarfile

REGISTRY = "https://registry.npmjs.org/"
TARBALL_URL = "https://registry.npmjs.org/pkg/-/pkg-1.0.0.tgz"
SIG_URL = "https://cdn.example.com/signatures/pkg/1.0.0.sig"
KEY_URL = "https://cdn.example.com/signatures/pkg/1.0.0.crt"


def make_tarball(manifest: dict[str, object] | None) -> bytes:
    """Gzipped tarball with ``package/package.json`` (or just a README)."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        if manifest is None:
            name, content = "package/README.md", b"# pkg\n"
        else:
            name, content = "package/package.json", json.dumps(manifest).encode("utf-8")
        info = tarfile.TarInfo(name)
        info.size = len(content)
        archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def signatures_block() -> dict[str, str]:
    return {"signatureUrl": SIG_URL, "publicKeyUrl": KEY_URL}


def registry_document(
    version_extra: dict[str, object] | None = None,
    tarball_url: str | None = TARBALL_URL,
) -> dict[str, object]:
    version: dict[str, object] = {"name": "pkg", "version": "1.0.0"}
    if tarball_url is not None:
        version["dist"] = {"tarball": tarball_url}
    version.update(version_extra or {})
    return {"name": "pkg", "versions": {"1.0.0": version}}
