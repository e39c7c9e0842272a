"""Pack, sign and upload a package.

Signing rewrites package.json (adding the ``signatures`` block) before the
tarball is packed so that the published manifest points at its own
signature. The original manifest is backed up and restored by
``revert_changes``.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from relm.core.config import SigningConfig
from relm.core.result import Err, Ok, Result
from relm.output.console import ConsoleProtocol, Style
from relm.package.manifest import MANIFEST_FILE, SignatureUrls, read_manifest
from relm.platform.process import run as run_process
from relm.signing.crypto import generate_key_pair, sign_bytes, verify_signature
from relm.signing.errors import SigningError
from relm.signing.store import ArtifactStore

__all__ = ["BACKUP_FILE", "Signer", "SigningResponse", "artifact_key"]

BACKUP_FILE = "package.json.bak"

_PACK_TIMEOUT_SECONDS = 600.0


@dataclass(frozen=True, slots=True)
class SigningResponse:
    """Result of signing one package.

    Attributes:
        tarball: Packed tarball that was signed (published as-is)
        name: Package name
        version: Package version
        public_key: PEM public key uploaded as ``.crt``
        signature: Base64 signature uploaded as ``.sig``
        urls: Block written to package.json
    """

    tarball: Path
    name: str
    version: str
    public_key: str
    signature: str
    urls: SignatureUrls


def artifact_key(prefix: str, name: str, version: str, extension: str) -> str:
    """``<prefix>/<name>/<version>.<extension>``."""
    return f"{prefix}/{name}/{version}.{extension}"


class Signer:
    """Signs packages against one signing configuration."""

    def __init__(
        self,
        config: SigningConfig,
        store: ArtifactStore,
        console: ConsoleProtocol,
    ) -> None:
        self._config = config
        self._store = store
        self._console = console
        self._backup: tuple[Path, Path] | None = None

    def signature_urls(self, name: str, version: str) -> SignatureUrls:
        base = f"{self._config.base_url}/{self._config.security_prefix}/{name}/{version}"
        return SignatureUrls(signature_url=f"{base}.sig", public_key_url=f"{base}.crt")

    def _check_config(self) -> Result[tuple[str, str], SigningError]:
        bucket = self._config.bucket
        base_url = self._config.base_url
        if not bucket or not base_url:
            return Err(
                SigningError(
                    kind="config_error",
                    message="signing requires an artifact bucket and a public base URL",
                    hint="set RELM_SIGNING_BUCKET and RELM_SIGNING_BASE_URL",
                )
            )
        return Ok((bucket, base_url))

    def _rewrite_manifest(self, package_dir: Path) -> Result[tuple[str, str, SignatureUrls], SigningError]:
        manifest = read_manifest(package_dir)
        if isinstance(manifest, Err):
            return Err(SigningError(kind="manifest_error", message=manifest.error.message))
        m = manifest.value

        original = package_dir / MANIFEST_FILE
        backup = package_dir / BACKUP_FILE
        try:
            shutil.copyfile(original, backup)
        except OSError as e:
            return Err(SigningError(kind="manifest_error", message=f"cannot back up {original}: {e}"))
        self._backup = (backup, original)

        urls = self.signature_urls(m.name, m.version)
        m.set_signatures(urls)
        try:
            m.write()
        except OSError as e:
            return Err(SigningError(kind="manifest_error", message=f"cannot write {original}: {e}"))
        return Ok((m.name, m.version, urls))

    def _pack(self, package_dir: Path) -> Result[Path, SigningError]:
        cmd = ["npm", "pack"]
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_process(cmd, package_dir, timeout=_PACK_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                SigningError(
                    kind="pack_failed",
                    message=result.error.stderr.strip() or str(result.error),
                )
            )
        lines = [line.strip() for line in result.value.splitlines() if line.strip()]
        if not lines:
            return Err(SigningError(kind="pack_failed", message="npm pack produced no tarball"))
        tarball = package_dir / lines[-1]
        if not tarball.is_file():
            return Err(SigningError(kind="pack_failed", message=f"tarball not found: {tarball}"))
        return Ok(tarball)

    def sign(self, package_dir: Path) -> Result[SigningResponse, SigningError]:
        """Rewrite the manifest, pack, sign, verify and upload."""
        checked = self._check_config()
        if isinstance(checked, Err):
            return checked
        bucket, _ = checked.value

        rewritten = self._rewrite_manifest(package_dir)
        if isinstance(rewritten, Err):
            return rewritten
        name, version, urls = rewritten.value

        packed = self._pack(package_dir)
        if isinstance(packed, Err):
            return packed
        tarball = packed.value

        try:
            data = tarball.read_bytes()
        except OSError as e:
            return Err(SigningError(kind="signing_failed", message=f"cannot read {tarball}: {e}"))

        keys = generate_key_pair()
        signature = sign_bytes(data, keys.private_key_pem)
        if not verify_signature(data, keys.public_key_pem, signature):
            return Err(
                SigningError(kind="signing_failed", message=f"local verification of {tarball.name} failed")
            )
        self._console.info(f"signed {tarball.name}")

        prefix = self._config.security_prefix
        for extension, body in (("sig", signature), ("crt", keys.public_key_pem)):
            key = artifact_key(prefix, name, version, extension)
            uploaded = self._store.put(bucket, key, body)
            if isinstance(uploaded, Err):
                return uploaded
            self._console.print(f"uploaded {key}", Style.DIM)

        return Ok(
            SigningResponse(
                tarball=tarball,
                name=name,
                version=version,
                public_key=keys.public_key_pem,
                signature=signature,
                urls=urls,
            )
        )

    def revert_changes(self) -> bool:
        """Restore the backed-up package.json. Returns False when there was none."""
        if self._backup is None:
            return False
        backup, original = self._backup
        if not backup.exists():
            self._backup = None
            return False
        shutil.move(str(backup), str(original))
        self._backup = None
        return True
