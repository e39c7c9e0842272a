"""Helpers for safely working with dynamic (untyped) structures.

Use these at boundaries where we ingest JSON: package.json files, `npm view`
output and registry metadata documents.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value from a mapping, stripping whitespace.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested object (dict with string keys) from a mapping."""
    return as_str_dict(table.get(key))


def get_str_map(table: Mapping[str, object], key: str) -> dict[str, str]:
    """Get a ``{str: str}`` map, dropping entries whose value is not a string.

    npm uses this shape for dependencies, scripts, resolutions and dist-tags.
    """
    nested = get_table(table, key)
    if nested is None:
        return {}
    return {k: v for k, v in nested.items() if isinstance(v, str)}


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a list of strings, or None when the key is absent or not a list."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    return [item for item in items if isinstance(item, str)]
