"""Total coercion helpers for untrusted model output.

Every function here accepts any decoded JSON value and never raises; the
normalizers only read candidate fields through these helpers.
"""

from __future__ import annotations

import json
import math
import re
import unicodedata
from typing import Any, Iterable, Mapping

NUMERIC_TEXT_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def as_mapping(value: Any) -> Mapping[str, Any]:
    """Return ``value`` when it is a mapping, otherwise an empty one."""

    if isinstance(value, Mapping):
        return value
    return {}


def pick_first(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Read the first non-null value among key aliases.

    Exact keys win; a second pass matches keys case- and separator-insensitively
    so ``correct_index`` finds ``correctIndex``.
    """

    keys = tuple(keys)
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value

    normalized_map: dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(key, str) and value is not None:
            normalized_map.setdefault(normalize_identifier(key), value)

    for key in keys:
        value = normalized_map.get(normalize_identifier(key))
        if value is not None:
            return value
    return None


def normalize_identifier(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value.strip().lower())
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "", normalized)


def scalar_text(value: Any) -> str | None:
    """Trimmed string form of a scalar, ``None`` for null and empty text."""

    if value is None:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (str, int, float)):
        text = str(value)
    elif isinstance(value, (Mapping, list, tuple)):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value)
    text = text.strip()
    return text or None


def to_string_array(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        values: list[str] = []
        for entry in value:
            text = scalar_text(entry)
            if text is not None:
                values.append(text)
        return values
    if isinstance(value, (str, int, float)):
        text = scalar_text(value)
        return [text] if text is not None else []
    return []


def to_number(value: Any) -> int | float | None:
    """Finite numbers and numeric strings; everything else is ``None``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not NUMERIC_TEXT_PATTERN.match(text):
            return None
        try:
            return int(text)
        except ValueError:
            parsed = float(text)
            return parsed if math.isfinite(parsed) else None
    return None


def to_boolean(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        return None
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
    return None


def to_text(value: Any) -> str | None:
    """String or number as trimmed text; containers and null give ``None``."""

    if isinstance(value, (Mapping, list, tuple)):
        return None
    return scalar_text(value)


TEXT_WRAPPER_KEYS: tuple[str, ...] = ("text", "value", "content", "label")


def unwrap_text(value: Any) -> str | None:
    """Like :func:`to_text`, but reads ``{"text": ...}``-style wrapper objects."""

    if isinstance(value, Mapping):
        for key in TEXT_WRAPPER_KEYS:
            text = to_text(value.get(key))
            if text:
                return text
        return None
    return to_text(value)


def unique_strings(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def round_half_up(value: float) -> int:
    """Round .5 away from zero on the positive side, like a JSON producer would."""

    return math.floor(value + 0.5)
