"""Resolve list references that may be 0- or 1-based."""

from __future__ import annotations

from typing import Any, Sequence

from smartnotes.generation.coercion import round_half_up, scalar_text, to_number


def detect_one_based_indexing(raw_pairs: Sequence[Any], position: int, list_length: int) -> bool:
    """Decide the index base of one tuple position across all pairs.

    One-based only when every numeric value lies in ``[1, list_length]`` and
    none is ``0``; a single zero settles it as 0-based.
    """

    if list_length <= 0:
        return False

    numeric_values: list[int] = []
    for entry in raw_pairs:
        if not isinstance(entry, (list, tuple)) or len(entry) <= position:
            continue
        number = to_number(entry[position])
        if number is not None:
            numeric_values.append(round_half_up(number))

    if not numeric_values:
        return False
    if any(value == 0 for value in numeric_values):
        return False
    return all(1 <= value <= list_length for value in numeric_values)


def resolve_list_index(value: Any, list_length: int, prefer_one_based: bool) -> int | None:
    number = to_number(value)
    if number is None or list_length <= 0:
        return None

    rounded = round_half_up(number)
    if prefer_one_based and 1 <= rounded <= list_length:
        return rounded - 1
    if 0 <= rounded < list_length:
        return rounded
    if 1 <= rounded <= list_length:
        return rounded - 1
    return None


def resolve_list_value(value: Any, values: Sequence[str], prefer_one_based: bool) -> str | None:
    """Look ``value`` up by index, or keep it as literal text."""

    index = resolve_list_index(value, len(values), prefer_one_based)
    if index is not None:
        return values[index]
    if isinstance(value, (dict, list, tuple)):
        return None
    return scalar_text(value)
