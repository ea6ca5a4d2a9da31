"""Normalize generated interactive lessons and improved lesson steps."""

from __future__ import annotations

import re
from typing import Any, Mapping

from smartnotes.enums import LessonStepType
from smartnotes.generation.coercion import as_mapping, pick_first, to_text, unwrap_text
from smartnotes.generation.decoding import locate_item_list
from smartnotes.schemas import GeneratedLesson, GeneratedLessonStep

LESSON_STEP_LIST_KEYS: tuple[str, ...] = ("steps", "lessonSteps", "items", "data")
STEP_TYPE_KEYS = ("stepType", "type")
STEP_CONTENT_KEYS = ("content", "stepContent")
STEP_ANSWER_KEYS = ("answerData", "correctAnswerData", "answer")
DEFAULT_LESSON_TITLE = "Untitled Lesson"

LESSON_STEP_TYPE_ALIASES: dict[str, LessonStepType] = {
    **{member.value: member for member in LessonStepType},
    "markdown": LessonStepType.EXPLANATION,
    "key_concept": LessonStepType.CONCEPT,
    "progressive_reveal": LessonStepType.REVEAL,
    "mcq": LessonStepType.MULTIPLE_CHOICE,
    "single_choice": LessonStepType.MULTIPLE_CHOICE,
    "true/false": LessonStepType.TRUE_FALSE,
    "boolean": LessonStepType.TRUE_FALSE,
    "ordering": LessonStepType.DRAG_SORT,
    "sort": LessonStepType.DRAG_SORT,
    "sequence": LessonStepType.DRAG_SORT,
    "matching": LessonStepType.DRAG_MATCH,
    "match": LessonStepType.DRAG_MATCH,
    "categorize": LessonStepType.DRAG_CATEGORIZE,
    "categorization": LessonStepType.DRAG_CATEGORIZE,
    "fill_blank": LessonStepType.FILL_BLANKS,
    "fill_in_the_blank": LessonStepType.FILL_BLANKS,
    "cloze": LessonStepType.FILL_BLANKS,
    "text_input": LessonStepType.TYPE_ANSWER,
    "short_answer": LessonStepType.TYPE_ANSWER,
    "free_text": LessonStepType.TYPE_ANSWER,
    "multi_select": LessonStepType.SELECT_MANY,
    "select_all": LessonStepType.SELECT_MANY,
}


def normalize_step_type(raw_value: Any) -> LessonStepType | None:
    text = to_text(raw_value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in LESSON_STEP_TYPE_ALIASES:
        return LESSON_STEP_TYPE_ALIASES[lowered]
    return LESSON_STEP_TYPE_ALIASES.get(re.sub(r"[\s\-]+", "_", lowered))


def normalize_lesson_step(candidate: Any) -> GeneratedLessonStep | None:
    """Repair one generated step; ``None`` without a content object or a known type.

    The step type may also come from ``content.type``. Answer data, explanation
    and hint default to ``None``.
    """

    payload = as_mapping(candidate)
    content = pick_first(payload, STEP_CONTENT_KEYS)
    if not isinstance(content, Mapping):
        return None

    step_type = normalize_step_type(pick_first(payload, STEP_TYPE_KEYS)) or normalize_step_type(
        content.get("type")
    )
    if step_type is None:
        return None

    answer_data = pick_first(payload, STEP_ANSWER_KEYS)
    return GeneratedLessonStep(
        step_type=step_type,
        content={**content, "type": step_type.value},
        answer_data=dict(answer_data) if isinstance(answer_data, Mapping) else None,
        explanation=unwrap_text(payload.get("explanation")),
        hint=unwrap_text(payload.get("hint")),
    )


def normalize_lesson(decoded: Any, *, title: str | None = None) -> GeneratedLesson:
    """Build a lesson from a decoded response, keeping usable steps in order.

    The title falls back to the requested one, then to a fixed default.
    """

    payload = as_mapping(decoded)
    steps: list[GeneratedLessonStep] = []
    for candidate in locate_item_list(decoded, LESSON_STEP_LIST_KEYS):
        step = normalize_lesson_step(candidate)
        if step is not None:
            steps.append(step)

    return GeneratedLesson(
        title=unwrap_text(payload.get("title")) or to_text(title) or DEFAULT_LESSON_TITLE,
        description=unwrap_text(payload.get("description")) or "",
        steps=steps,
    )


def merge_improved_step(original: GeneratedLessonStep, decoded: Any) -> GeneratedLessonStep:
    """Overlay an improved step on the original, field by field.

    Fields missing or unusable in the response keep their original value;
    an unusable response returns the original step unchanged.
    """

    payload = as_mapping(decoded)
    nested = payload.get("step")
    if isinstance(nested, Mapping):
        payload = nested
    if not payload:
        return original

    content = pick_first(payload, STEP_CONTENT_KEYS)
    answer_data = pick_first(payload, STEP_ANSWER_KEYS)
    return GeneratedLessonStep(
        step_type=normalize_step_type(pick_first(payload, STEP_TYPE_KEYS)) or original.step_type,
        content=dict(content) if isinstance(content, Mapping) else original.content,
        answer_data=(
            dict(answer_data) if isinstance(answer_data, Mapping) else original.answer_data
        ),
        explanation=unwrap_text(payload.get("explanation")) or original.explanation,
        hint=unwrap_text(payload.get("hint")) or original.hint,
    )
