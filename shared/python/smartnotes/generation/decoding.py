"""Recover JSON payloads and item lists from raw model responses."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

QUESTION_LIST_KEYS: tuple[str, ...] = ("questions", "quiz", "items", "results", "data")
FLASHCARD_LIST_KEYS: tuple[str, ...] = ("flashcards", "cards", "items", "results", "data")
MAX_SEARCH_DEPTH = 32


def decode_json_response(raw: str | None) -> Any | None:
    """Parse ``raw`` as JSON, falling back to the outermost ``{...}`` then ``[...]``.

    Returns ``None`` when nothing parses. Never raises: oversized integer
    literals and pathologically deep nesting count as unparseable.
    """

    if not isinstance(raw, str) or not raw.strip():
        return None

    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = raw.find(opener)
        end = raw.rfind(closer)
        if start < 0 or end <= start:
            continue
        try:
            return json.loads(raw[start : end + 1])
        except (ValueError, RecursionError):
            continue
    return None


def locate_item_list(value: Any, candidate_keys: Iterable[str]) -> list[Any]:
    """Find the list of generated items inside an arbitrarily wrapped payload."""

    keys = tuple(candidate_keys)
    if isinstance(value, list):
        return value
    if not isinstance(value, Mapping):
        return []

    for key in keys:
        candidate = value.get(key)
        if isinstance(candidate, list):
            return candidate

    found = _find_first_list(value)
    return found if found is not None else []


def _find_first_list(payload: Mapping[str, Any], depth: int = 0) -> list[Any] | None:
    # Breadth at each level first, then depth-first into nested objects.
    if depth >= MAX_SEARCH_DEPTH:
        return None
    for candidate in payload.values():
        if isinstance(candidate, list):
            return candidate
    for candidate in payload.values():
        if isinstance(candidate, Mapping):
            found = _find_first_list(candidate, depth + 1)
            if found is not None:
                return found
    return None
