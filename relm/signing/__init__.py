"""Package signing: RSA-SHA256 signatures uploaded next to each published version."""

from .crypto import KeyPair, generate_key_pair, sign_bytes, verify_file_signature, verify_signature
from .errors import SigningError
from .signer import Signer, SigningResponse, artifact_key
from .store import ArtifactStore, MockArtifactStore, S3ArtifactStore, StoredObject

__all__ = [
    "ArtifactStore",
    "KeyPair",
    "MockArtifactStore",
    "S3ArtifactStore",
    "Signer",
    "SigningError",
    "SigningResponse",
    "StoredObject",
    "artifact_key",
    "generate_key_pair",
    "sign_bytes",
    "verify_file_signature",
    "verify_signature",
]
