"""Semantic version helpers.

Every version string is parsed with ``semver`` before it is compared or
incremented. Helpers that accept untrusted text return None instead of
raising when the text is not a version.
"""

from __future__ import annotations

import re

import semver

__all__ = [
    "parse_version",
    "is_greater",
    "parse_bump_output",
    "increment_version",
    "next_rc_version",
    "parse_aliased_package_name",
    "parse_package_version",
    "clean_range",
]

# standard-version announces: "bumping version in package.json from 1.0.0 to 1.1.0"
_BUMP_RE = re.compile(r"bumping version in .* from .* to (\S+)\s*$", re.MULTILINE)

_ALIAS_VERSION_RE = re.compile(r"@(\^|~)?[0-9]{1,3}(?:[.][0-9]{1,3})?(?:[.][0-9]{1,3})?(.*?)$")
_VERSION_TAIL_RE = re.compile(r"[0-9]+(?:[.][0-9]+){0,2}.*$")


def parse_version(text: str) -> semver.Version | None:
    """Parse ``text`` (tolerating a leading ``v`` or ``=``), or None."""
    candidate = text.strip().lstrip("=v")
    try:
        return semver.Version.parse(candidate)
    except (ValueError, TypeError):
        return None


def is_greater(left: str, right: str) -> bool:
    """True when ``left`` > ``right``. Unparsable versions are never greater."""
    lv = parse_version(left)
    rv = parse_version(right)
    if lv is None or rv is None:
        return False
    return lv > rv


def parse_bump_output(stdout: str) -> str | None:
    """Extract the target version from standard-version's dry-run output.

    Handles plain (``1.1.0``), default prerelease (``1.1.0-0``) and named
    prerelease (``1.1.0-beta.0``) targets. Returns None when the announcement
    is missing or the target is not a valid version.
    """
    match = _BUMP_RE.search(stdout)
    if match is None:
        return None
    target = match.group(1)
    if parse_version(target) is None:
        return None
    return target


def increment_version(current: str, prerelease: str | None = None) -> str | None:
    """Increment the lowest applicable segment of ``current``.

    - ``prerelease`` given (``""`` means an unnamed prerelease): bump the
      existing prerelease counter when it carries the same identifier, else
      start a prerelease on the next patch (``1.0.1-beta.0`` / ``1.0.1-0``).
    - current is a prerelease: bump its counter (``1.1.0-beta.0`` -> ``.1``).
    - otherwise: bump the patch.
    """
    version = parse_version(current)
    if version is None:
        return None

    if prerelease is not None:
        existing = version.prerelease
        same_id = existing is not None and (
            prerelease == "" or existing == prerelease or existing.startswith(prerelease + ".")
        )
        if same_id:
            return str(version.bump_prerelease())
        base = version.finalize_version() if existing else version.bump_patch()
        suffix = f"{prerelease}.0" if prerelease else "0"
        return f"{base}-{suffix}"

    if version.prerelease:
        return str(version.bump_prerelease())

    return str(version.bump_patch())


def next_rc_version(current: str, is_patch: bool = False) -> str | None:
    """Next release candidate base: minor bump (patch reset) or patch bump."""
    version = parse_version(current)
    if version is None:
        return None
    if is_patch:
        return f"{version.major}.{version.minor}.{version.patch + 1}"
    return f"{version.major}.{version.minor + 1}.0"


def parse_aliased_package_name(alias: str) -> str:
    """Real package name of an npm alias spec.

    ``npm:@scope/real@^1.2.3-beta.1`` -> ``@scope/real``
    """
    return _ALIAS_VERSION_RE.sub("", alias.replace("npm:", "", 1), count=1)


def parse_package_version(alias: str) -> str:
    """Version text of an npm alias spec, without the range operator.

    ``npm:@scope/real@^1.2.3-beta.1`` -> ``1.2.3-beta.1``
    """
    spec = alias.rsplit("@", 1)[-1]
    match = _VERSION_TAIL_RE.search(spec)
    return match.group(0) if match else spec


def clean_range(spec: str) -> str:
    """Strip an alias prefix and ``^``/``~`` from a dependency spec."""
    return spec.rsplit("@", 1)[-1].replace("^", "").replace("~", "")
