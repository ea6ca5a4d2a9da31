"""Normalize generated flashcards."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from smartnotes.generation.coercion import unwrap_text
from smartnotes.schemas import GeneratedFlashcard

FRONT_KEYS: tuple[str, ...] = ("front", "question", "prompt", "term", "title")
BACK_KEYS: tuple[str, ...] = ("back", "answer", "definition", "explanation", "description")


def _first_text(payload: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    # Falls through empty values, unlike a plain alias lookup.
    for key in keys:
        text = unwrap_text(payload.get(key))
        if text:
            return text
    return None


def normalize_flashcard(candidate: Any) -> GeneratedFlashcard | None:
    if not isinstance(candidate, Mapping):
        return None
    front = _first_text(candidate, FRONT_KEYS)
    back = _first_text(candidate, BACK_KEYS)
    if not front or not back:
        return None
    return GeneratedFlashcard(front=front, back=back)


def normalize_flashcards(candidates: Iterable[Any]) -> list[GeneratedFlashcard]:
    """Keep every candidate with a usable front and back, in source order."""

    flashcards: list[GeneratedFlashcard] = []
    for candidate in candidates:
        flashcard = normalize_flashcard(candidate)
        if flashcard is not None:
            flashcards.append(flashcard)
    return flashcards
