"""
Helpers for mapping loosely-shaped collaborator payloads into records.

Knowledge sources hand back dicts (snake_case or camelCase keys) or pydantic
models; research results and cache entries use ``title/content/url`` plus a
relevance under one of several names.
"""

from __future__ import annotations

import uuid
from typing import Any, List, Mapping, Optional


def field_of(item: Any, *names: str, default: Any = None) -> Any:
    """First non-empty value among ``names`` on a mapping or object."""
    for name in names:
        if isinstance(item, Mapping):
            value = item.get(name)
        else:
            value = getattr(item, name, None)
        if value not in (None, "", []):
            return value
    return default


def relevance_of(item: Any) -> Optional[float]:
    raw = field_of(item, "relevance", "relevanceScore", "relevance_score")
    if raw is None:
        return None
    try:
        return max(0.0, min(1.0, float(raw)))
    except (TypeError, ValueError):
        return None


def tags_of(item: Any) -> List[str]:
    tags = field_of(item, "tags", default=[])
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return [str(t) for t in tags]


def references_of(item: Any) -> List[str]:
    refs = field_of(item, "references", "urls", default=None)
    if refs:
        return [str(r) for r in refs]
    url = field_of(item, "url")
    return [url] if url else []


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def enum_or_none(enum_cls, value: Any):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return None


def count_of(item: Any, *names: str) -> Optional[int]:
    """Non-negative integer count, or None when absent or malformed."""
    raw = field_of(item, *names)
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None
