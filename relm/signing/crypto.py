"""RSA-SHA256 (PKCS#1 v1.5) detached signatures over package tarballs.

Signatures travel as base64 text and public keys as PEM, matching the
``.sig`` / ``.crt`` artifacts published next to each package version.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

__all__ = ["KeyPair", "generate_key_pair", "sign_bytes", "verify_file_signature", "verify_signature"]

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class KeyPair:
    """PEM-encoded RSA key pair."""

    private_key_pem: bytes
    public_key_pem: str


def generate_key_pair() -> KeyPair:
    """Generate a fresh RSA-2048 key pair."""
    key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(private_key_pem=private_pem, public_key_pem=public_pem.decode("ascii"))


def sign_bytes(data: bytes, private_key_pem: bytes) -> str:
    """Sign ``data`` and return the base64 signature."""
    key = serialization.load_pem_private_key(private_key_pem, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise TypeError("signing requires an RSA private key")
    signature = key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode("ascii")


def _load_verification(
    public_key_pem: str, signature_b64: str
) -> tuple[rsa.RSAPublicKey, bytes] | None:
    try:
        key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
        signature = base64.b64decode(signature_b64.strip(), validate=True)
    except (ValueError, TypeError, UnsupportedAlgorithm, binascii.Error):
        return None

    if not isinstance(key, rsa.RSAPublicKey):
        return None
    return key, signature


def verify_signature(data: bytes, public_key_pem: str, signature_b64: str) -> bool:
    """Return True when ``signature_b64`` is a valid signature of ``data``.

    Mismatches, corrupt signatures and unusable keys all return False.
    """
    loaded = _load_verification(public_key_pem, signature_b64)
    if loaded is None:
        return False
    key, signature = loaded

    try:
        key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


def verify_file_signature(path: Path, public_key_pem: str, signature_b64: str) -> bool:
    """Like ``verify_signature``, hashing the file at ``path`` in chunks."""
    loaded = _load_verification(public_key_pem, signature_b64)
    if loaded is None:
        return False
    key, signature = loaded

    digest = hashes.Hash(hashes.SHA256())
    with path.open("rb") as stream:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            digest.update(chunk)

    try:
        key.verify(
            signature,
            digest.finalize(),
            padding.PKCS1v15(),
            utils.Prehashed(hashes.SHA256()),
        )
    except InvalidSignature:
        return False
    return True
