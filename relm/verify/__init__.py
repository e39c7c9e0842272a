"""Detached signature verification for published npm packages."""

from .errors import VerifyError
from .protocol import (
    NOT_SIGNED_MESSAGE,
    PackageIdentifier,
    SignatureBundle,
    Verifier,
    VerifyResponse,
    auth_headers,
    parse_identifier,
    resolve_bundle,
)
from .tarball import TarballError, read_manifest_from_tarball

__all__ = [
    "NOT_SIGNED_MESSAGE",
    "PackageIdentifier",
    "SignatureBundle",
    "TarballError",
    "Verifier",
    "VerifyError",
    "VerifyResponse",
    "auth_headers",
    "parse_identifier",
    "read_manifest_from_tarball",
    "resolve_bundle",
]
