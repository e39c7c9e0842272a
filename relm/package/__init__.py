"""Package metadata: manifest, registry records, versions and dependency edits."""

from .errors import PackageError
from .manifest import MANIFEST_FILE, Manifest, SignatureUrls, read_manifest, signature_urls
from .package import DependencyInfo, Package, PinnedPackage
from .registry import Registry, RegistryRecord
from .versions import increment_version, is_greater, parse_bump_output, parse_version

__all__ = [
    "MANIFEST_FILE",
    "DependencyInfo",
    "Manifest",
    "Package",
    "PackageError",
    "PinnedPackage",
    "Registry",
    "RegistryRecord",
    "SignatureUrls",
    "increment_version",
    "is_greater",
    "parse_bump_output",
    "parse_version",
    "read_manifest",
    "signature_urls",
]
