"""
Small pure helpers shared across features.
"""

from __future__ import annotations

import re
import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic_core import PydanticUndefined

# \w is ASCII-only here, \s stays unicode-aware.
_DISALLOWED_SLUG_CHARS = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_EDGE_HYPHENS = re.compile(r"^-+|-+$")
_HYPHEN_RUN = re.compile(r"-+")


def normalize_slug(slug: str | None) -> str:
    """
    Normalize a user-typed slug / search term.

    Lowercases, drops punctuation, collapses whitespace and hyphen runs and
    trims hyphens at the ends. Spaces are kept as spaces.
    """
    if not slug or not slug.strip():
        return ""

    normalized = slug.lower().strip()
    normalized = _DISALLOWED_SLUG_CHARS.sub("", normalized)
    normalized = _WHITESPACE_RUN.sub(" ", normalized)
    normalized = _EDGE_HYPHENS.sub("", normalized)
    normalized = _HYPHEN_RUN.sub("-", normalized)
    return normalized.strip()


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _empty_value(annotation: Any) -> Any:
    if _is_model(annotation):
        return schema_defaults(annotation)
    if annotation is str:
        return ""
    if annotation is list:
        return []

    origin = get_origin(annotation)
    if origin is list:
        return []
    if origin is Union or origin is types.UnionType:
        # Optional[X] / X | None: look through to the wrapped type.
        inner = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(inner) == 1:
            return _empty_value(inner[0])
    return None


def schema_defaults(model_cls: type[BaseModel]) -> dict[str, Any]:
    """
    Build a dict of initial form values for a pydantic model.

    Declared defaults win; otherwise strings start empty, lists start empty,
    nested models recurse and anything else is None.
    """
    values: dict[str, Any] = {}
    for name, field in model_cls.model_fields.items():
        if field.default is not PydanticUndefined:
            values[name] = field.default
        elif field.default_factory is not None:
            values[name] = field.default_factory()
        else:
            values[name] = _empty_value(field.annotation)
    return values


_WINDOWS_UA = re.compile(r"\bwin(dows|32|64)\b", re.IGNORECASE)
_MAC_UA = re.compile(r"\bmac(intosh|\s?os)?\b", re.IGNORECASE)


def detect_platform(user_agent: str | None, platform_hint: str | None = None) -> dict[str, bool]:
    """
    Best-effort desktop platform detection.

    `platform_hint` is the `Sec-CH-UA-Platform` client hint (e.g. '"macOS"'),
    preferred over User-Agent sniffing when present.
    """
    hint = (platform_hint or "").strip().strip('"').lower()
    if hint:
        return {"mac": hint.startswith("mac"), "windows": hint.startswith("win")}

    ua = user_agent or ""
    if "iphone" in ua.lower() or "ipad" in ua.lower():
        return {"mac": False, "windows": False}
    return {
        "mac": bool(_MAC_UA.search(ua)),
        "windows": bool(_WINDOWS_UA.search(ua)),
    }
