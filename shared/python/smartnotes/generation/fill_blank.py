"""Fill-in-the-blank template placeholders.

Templates mark blanks as ``{{id}}``. Generators also emit the unscoped
``{{blank}}`` form, which is mapped onto blank ids in order of appearance.
"""

from __future__ import annotations

import re
from typing import Sequence

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
GENERIC_BLANK_TOKEN = "blank"


def _is_generic(token: str) -> bool:
    return token.strip().lower() == GENERIC_BLANK_TOKEN


def extract_fill_blank_ids(template: str, known_ids: Sequence[str] = ()) -> list[str]:
    """Blank ids referenced by ``template``, in order, without repeats.

    The n-th generic placeholder takes the n-th of ``known_ids`` when there
    is one, else ``blank_<n>``.
    """

    ordered: list[str] = []
    generic_index = 0
    for match in PLACEHOLDER_PATTERN.finditer(template or ""):
        token = match.group(1).strip()
        if not token:
            continue
        if _is_generic(token):
            blank_id = (
                known_ids[generic_index]
                if generic_index < len(known_ids) and known_ids[generic_index]
                else f"blank_{generic_index}"
            )
            generic_index += 1
        else:
            blank_id = token
        if blank_id not in ordered:
            ordered.append(blank_id)
    return ordered


def qualify_placeholders(template: str, known_ids: Sequence[str] = ()) -> str:
    """Rewrite ``{{blank}}`` into ``{{<id>}}`` and trim padded ids.

    Generic placeholders map onto ids exactly as in :func:`extract_fill_blank_ids`.
    """

    generic_index = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal generic_index
        token = match.group(1).strip()
        if not token:
            return match.group(0)
        if _is_generic(token):
            blank_id = (
                known_ids[generic_index]
                if generic_index < len(known_ids) and known_ids[generic_index]
                else f"blank_{generic_index}"
            )
            generic_index += 1
            return "{{" + blank_id + "}}"
        return "{{" + token + "}}"

    return PLACEHOLDER_PATTERN.sub(replace, template)

