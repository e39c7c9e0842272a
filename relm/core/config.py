"""Typed configuration resolved from the process environment.

All environment reads happen here, once, at command entry. The resulting
``Config`` is passed down explicitly so that release and verify code never
touches ``os.environ`` and tests can build configs directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .result import Err, Ok, Result

__all__ = [
    "Config",
    "ConfigError",
    "SigningConfig",
    "load_config",
    "DEFAULT_REGISTRY",
    "DEFAULT_SECURITY_PREFIX",
    "GITHUB_PACKAGES_HOST",
    "is_github_packages",
]

DEFAULT_REGISTRY = "https://registry.npmjs.org/"
DEFAULT_SECURITY_PREFIX = "signatures"
GITHUB_PACKAGES_HOST = "pkg.github.com"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the environment holds an unusable value."""

    message: str
    variable: str | None = None


@dataclass(frozen=True, slots=True)
class SigningConfig:
    """Where signatures and public keys are uploaded and served from.

    Attributes:
        bucket: Artifact store bucket receiving ``.sig``/``.crt`` files
        base_url: Public URL the bucket is served from
        security_prefix: Key prefix under which artifacts are stored
    """

    bucket: str | None = None
    base_url: str | None = None
    security_prefix: str = DEFAULT_SECURITY_PREFIX

    @property
    def is_complete(self) -> bool:
        return bool(self.bucket and self.base_url)


@dataclass(frozen=True, slots=True)
class Config:
    """Resolved runtime configuration.

    Attributes:
        npm_token: Registry auth token (NPM_TOKEN), None when unset
        registry_url: Registry used for install/publish/view (NPM_REGISTRY)
        ci: True when running non-interactively (CI or CIRCLECI)
        signing: Artifact locations for package signing
    """

    npm_token: str | None = None
    registry_url: str = DEFAULT_REGISTRY
    ci: bool = False
    signing: SigningConfig = field(default_factory=SigningConfig)


def is_github_packages(url: str) -> bool:
    """Return True when url points at GitHub Packages."""
    return GITHUB_PACKAGES_HOST in url


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY


def _optional(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


def load_config(environ: Mapping[str, str] | None = None) -> Result[Config, ConfigError]:
    """Build a Config from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Ok(Config), or Err(ConfigError) when a URL variable is malformed.
    """
    env = os.environ if environ is None else environ

    registry_url = _optional(env, "NPM_REGISTRY") or DEFAULT_REGISTRY
    parsed = urlparse(registry_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return Err(
            ConfigError(message=f"invalid registry URL: {registry_url}", variable="NPM_REGISTRY")
        )
    if not registry_url.endswith("/"):
        registry_url += "/"

    base_url = _optional(env, "RELM_SIGNING_BASE_URL")
    if base_url is not None:
        if not urlparse(base_url).netloc:
            return Err(
                ConfigError(
                    message=f"invalid signing base URL: {base_url}",
                    variable="RELM_SIGNING_BASE_URL",
                )
            )
        base_url = base_url.rstrip("/")

    signing = SigningConfig(
        bucket=_optional(env, "RELM_SIGNING_BUCKET"),
        base_url=base_url,
        security_prefix=(_optional(env, "RELM_SIGNING_PREFIX") or DEFAULT_SECURITY_PREFIX).strip(
            "/"
        ),
    )

    return Ok(
        Config(
            npm_token=_optional(env, "NPM_TOKEN"),
            registry_url=registry_url,
            ci=_flag(env, "CI") or _flag(env, "CIRCLECI"),
            signing=signing,
        )
    )
