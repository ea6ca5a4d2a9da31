"""Source text preparation before it is sent to the generator."""

from __future__ import annotations

ELISION_MARKER = "\n\n[... content truncated ...]\n\n"


def truncate_source_text(text: str, max_chars: int) -> str:
    """Keep the head and tail of ``text`` within ``max_chars``.

    The first and last halves of the budget survive around a literal
    elision marker; text within budget is returned unchanged.
    """

    if max_chars <= 0 or len(text) <= max_chars:
        return text
    head_chars = max_chars // 2
    tail_chars = max_chars - head_chars
    return text[:head_chars] + ELISION_MARKER + text[-tail_chars:]
