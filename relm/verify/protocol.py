"""Verify the detached signature of a published npm package.

Steps:
1. Parse ``name@version`` (scoped: ``@scope/name@version``)
2. Fetch the registry document and pick the version entry
3. Download the tarball into memory
4. Read ``package/package.json`` from the tarball (best effort)
5. Locate the signature/public key URLs, registry metadata first:
   registry ``signatures``, registry ``sfdx``, tarball ``signatures``,
   tarball ``sfdx``
6. Download signature and public key concurrently
7. Check the RSA-SHA256 signature over the tarball bytes

A package without any signature block is reported as not signed; that is a
normal result, not an error.
"""

from __future__ import annotations

import tempfile
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from relm.core.config import DEFAULT_REGISTRY, is_github_packages
from relm.core.result import Err, Ok, Result
from relm.core.structured import StrDict, as_str_dict, get_str, get_table
from relm.net.http import HttpClient, HttpError
from relm.output.console import ConsoleProtocol, Style
from relm.package.manifest import LEGACY_SIGNATURES_KEY, SIGNATURES_KEY, signature_urls
from relm.signing.crypto import verify_file_signature
from relm.verify.errors import VerifyError
from relm.verify.tarball import read_manifest_from_tarball

__all__ = [
    "NOT_SIGNED_MESSAGE",
    "PackageIdentifier",
    "SignatureBundle",
    "Verifier",
    "VerifyResponse",
    "auth_headers",
    "parse_identifier",
    "resolve_bundle",
]

NOT_SIGNED_MESSAGE = "This package is not digitally signed."
FAILED_MESSAGE = "Failed to verify the digital signature of this package."

_SCRATCH_PREFIX = "npm-verify-"


@dataclass(frozen=True, slots=True)
class PackageIdentifier:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True, slots=True)
class SignatureBundle:
    """Signature and public key locations, plus their contents once fetched.

    Attributes:
        signature_url: URL of the base64 signature (``.sig``)
        public_key_url: URL of the PEM public key (``.crt``)
        source: Where the URLs were found (e.g. ``registry signatures``)
        signature: Downloaded signature text
        public_key: Downloaded public key text
    """

    signature_url: str
    public_key_url: str
    source: str
    signature: str | None = None
    public_key: str | None = None


@dataclass(frozen=True, slots=True)
class VerifyResponse:
    verified: bool
    message: str


def parse_identifier(text: str) -> Result[PackageIdentifier, VerifyError]:
    """Split ``name@version`` / ``@scope/name@version``."""
    parts = text.strip().split("@")
    if text.startswith("@"):
        if len(parts) != 3 or not parts[1] or not parts[2]:
            return Err(
                VerifyError(
                    kind="invalid_input",
                    message=f"Invalid package format. Expected @scope/package@version but got {text}",
                )
            )
        return Ok(PackageIdentifier(name=f"@{parts[1]}", version=parts[2]))

    if len(parts) != 2 or not parts[0] or not parts[1]:
        return Err(
            VerifyError(
                kind="invalid_input",
                message=f"Invalid package format. Expected package@version but got {text}",
            )
        )
    return Ok(PackageIdentifier(name=parts[0], version=parts[1]))


def auth_headers(url: str, token: str | None) -> dict[str, str]:
    """``Bearer`` auth for GitHub Packages, ``token`` auth elsewhere."""
    if not token:
        return {}
    if is_github_packages(url):
        return {"authorization": f"Bearer {token}"}
    return {"authorization": f"token {token}"}


def resolve_bundle(
    version_data: Mapping[str, object],
    tarball_manifest: Mapping[str, object] | None,
) -> SignatureBundle | None:
    """First signature block found, registry metadata before the tarball."""
    sources: list[tuple[str, Mapping[str, object] | None, str]] = [
        ("registry", version_data, SIGNATURES_KEY),
        ("registry", version_data, LEGACY_SIGNATURES_KEY),
        ("tarball", tarball_manifest, SIGNATURES_KEY),
        ("tarball", tarball_manifest, LEGACY_SIGNATURES_KEY),
    ]
    for origin, document, key in sources:
        if document is None:
            continue
        urls = signature_urls(document.get(key))
        if urls is not None:
            return SignatureBundle(
                signature_url=urls.signature_url,
                public_key_url=urls.public_key_url,
                source=f"{origin} {key}",
            )
    return None


def _classify(error: HttpError, what: str, github: bool) -> VerifyError:
    if error.status == 404:
        return VerifyError(
            kind="not_found",
            message=f"{what} not found - URL: {error.url}",
            status=404,
        )
    if error.status in (401, 403):
        if github:
            message = (
                "Authentication failed for GitHub Packages. Make sure NPM_TOKEN contains a "
                "valid GitHub Personal Access Token with package read permissions. "
                f"URL: {error.url} - Status: {error.status}"
            )
        else:
            message = (
                "Authentication failed. Make sure NPM_TOKEN is properly set. "
                f"URL: {error.url} - Status: {error.status}"
            )
        return VerifyError(kind="auth_failed", message=message, status=error.status)
    return VerifyError(
        kind="fetch_failed",
        message=f"Failed to fetch {what}: {error.message} - URL: {error.url} - Status: {error.status}",
        status=error.status,
    )


class Verifier:
    """Runs the verification protocol against one registry."""

    def __init__(
        self,
        http: HttpClient,
        console: ConsoleProtocol,
        token: str | None = None,
    ) -> None:
        self._http = http
        self._console = console
        self._token = token

    def _get_json(self, url: str, what: str) -> Result[dict[str, Any], VerifyError]:
        result = self._http.get_json(url, auth_headers(url, self._token))
        if isinstance(result, Err):
            return Err(_classify(result.error, what, is_github_packages(url)))
        return result

    def _get_bytes(self, url: str, what: str) -> Result[bytes, VerifyError]:
        result = self._http.get_bytes(url, auth_headers(url, self._token))
        if isinstance(result, Err):
            return Err(_classify(result.error, what, is_github_packages(url)))
        return result

    def _get_text(self, url: str, what: str) -> Result[str, VerifyError]:
        result = self._http.get_text(url, auth_headers(url, self._token))
        if isinstance(result, Err):
            return Err(_classify(result.error, what, is_github_packages(url)))
        return result

    def fetch_version_data(
        self, package: PackageIdentifier, registry_url: str
    ) -> Result[StrDict, VerifyError]:
        """Registry document entry for the requested version."""
        registry = registry_url if registry_url.endswith("/") else registry_url + "/"
        metadata = self._get_json(f"{registry}{package.name}", f"package {package.name}")
        if isinstance(metadata, Err):
            return metadata

        versions = get_table(metadata.value, "versions")
        if not versions:
            return Err(
                VerifyError(
                    kind="not_found",
                    message=f"No versions found for package {package.name} in registry {registry_url}",
                )
            )

        data = as_str_dict(versions.get(package.version))
        if data is None:
            return Err(
                VerifyError(
                    kind="not_found",
                    message=(
                        f"Version {package.version} not found for package {package.name}. "
                        f"Available versions: {', '.join(versions)}"
                    ),
                )
            )
        return Ok(data)

    def download_bundle(self, bundle: SignatureBundle) -> Result[SignatureBundle, VerifyError]:
        """Fetch signature and public key concurrently."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            sig_future = pool.submit(self._get_text, bundle.signature_url, "signature")
            key_future = pool.submit(self._get_text, bundle.public_key_url, "public key")
            signature = sig_future.result()
            public_key = key_future.result()

        if isinstance(signature, Err):
            return signature
        if isinstance(public_key, Err):
            return public_key
        return Ok(replace(bundle, signature=signature.value, public_key=public_key.value))

    def check_signature(self, tarball: bytes, bundle: SignatureBundle) -> bool:
        """Write the tarball to a scratch directory and verify it from disk."""
        if bundle.signature is None or bundle.public_key is None:
            return False
        with tempfile.TemporaryDirectory(prefix=_SCRATCH_PREFIX) as scratch:
            path = Path(scratch) / "package.tgz"
            path.write_bytes(tarball)
            return verify_file_signature(path, bundle.public_key, bundle.signature)

    def verify(
        self, identifier: str, registry_url: str = DEFAULT_REGISTRY
    ) -> Result[VerifyResponse, VerifyError]:
        self._console.print("Checking for digital signature.")

        parsed = parse_identifier(identifier)
        if isinstance(parsed, Err):
            return parsed
        package = parsed.value

        if is_github_packages(registry_url) and not self._token:
            self._console.warning(
                "GitHub Packages requires authentication. NPM_TOKEN environment variable is not set."
            )

        version_data = self.fetch_version_data(package, registry_url)
        if isinstance(version_data, Err):
            return version_data

        dist = get_table(version_data.value, "dist")
        tarball_url = get_str(dist, "tarball") if dist is not None else None
        if tarball_url is None:
            return Err(
                VerifyError(
                    kind="not_found",
                    message=f"No tarball URL in registry metadata for {package}",
                )
            )

        tarball = self._get_bytes(tarball_url, "tarball")
        if isinstance(tarball, Err):
            return tarball
        self._console.print(f"downloaded tarball ({len(tarball.value)} bytes)", Style.DIM)

        tarball_manifest: StrDict | None = None
        extracted = read_manifest_from_tarball(tarball.value)
        if isinstance(extracted, Err):
            self._console.print(
                f"could not read package.json from tarball: {extracted.error.message}", Style.DIM
            )
        else:
            tarball_manifest = extracted.value

        bundle = resolve_bundle(version_data.value, tarball_manifest)
        if bundle is None:
            self._console.info(NOT_SIGNED_MESSAGE)
            return Ok(VerifyResponse(verified=False, message=NOT_SIGNED_MESSAGE))
        self._console.print(f"signature URLs from {bundle.source}", Style.DIM)

        downloaded = self.download_bundle(bundle)
        if isinstance(downloaded, Err):
            return downloaded

        if not self.check_signature(tarball.value, downloaded.value):
            return Err(VerifyError(kind="verification_failed", message=FAILED_MESSAGE))

        message = f"Successfully verified digital signature for {package}."
        self._console.success(message)
        return Ok(VerifyResponse(verified=True, message=message))
