"""Generation entry points: prompt the provider, then decode and normalize."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Callable, Iterable, TypeVar

from smartnotes.config import get_settings
from smartnotes.enums import ContentKind, QuestionMix, QuestionType
from smartnotes.generation.decoding import (
    FLASHCARD_LIST_KEYS,
    QUESTION_LIST_KEYS,
    decode_json_response,
    locate_item_list,
)
from smartnotes.generation.flashcards import normalize_flashcards
from smartnotes.generation.lessons import merge_improved_step, normalize_lesson
from smartnotes.generation.preprocess import truncate_source_text
from smartnotes.generation.prompts import (
    EXTENDED_QUIZ_SYSTEM_PROMPT,
    FLASHCARD_STRICT_SYSTEM_PROMPT,
    FLASHCARD_SYSTEM_PROMPT,
    LESSON_IMPROVE_SYSTEM_PROMPT,
    LESSON_SYSTEM_PROMPT,
    QUIZ_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_extended_quiz_prompt,
    build_flashcard_prompt,
    build_improve_step_prompt,
    build_lesson_prompt,
    build_quiz_prompt,
    build_summary_prompt,
    language_instruction,
)
from smartnotes.generation.questions import normalize_question_type, normalize_questions
from smartnotes.llm.providers import LLMProvider, LLMProviderError
from smartnotes.schemas import (
    GeneratedFlashcard,
    GeneratedLesson,
    GeneratedLessonStep,
    GenerationResult,
    MultipleChoiceQuestion,
    NormalizedQuestion,
    TokenUsageData,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class GenerationPolicy:
    max_tokens: int
    json_mode: bool
    retries: int = 0


GENERATION_POLICIES: dict[ContentKind, GenerationPolicy] = {
    ContentKind.SUMMARY: GenerationPolicy(max_tokens=2000, json_mode=False),
    ContentKind.FLASHCARDS: GenerationPolicy(max_tokens=3000, json_mode=True, retries=1),
    ContentKind.QUIZ: GenerationPolicy(max_tokens=3000, json_mode=True),
    ContentKind.EXTENDED_QUIZ: GenerationPolicy(max_tokens=4000, json_mode=True),
    ContentKind.LESSON: GenerationPolicy(max_tokens=6000, json_mode=True),
    ContentKind.LESSON_STEP: GenerationPolicy(max_tokens=2000, json_mode=True),
}


def prepare_source(content: str) -> str:
    return truncate_source_text(content, get_settings().max_source_chars)


def generate_summary(
    *, provider: LLMProvider, content: str, locale: str | None = None
) -> GenerationResult[str]:
    policy = GENERATION_POLICIES[ContentKind.SUMMARY]
    completion = provider.generate(
        system_prompt=SUMMARY_SYSTEM_PROMPT + language_instruction(locale),
        user_prompt=build_summary_prompt(prepare_source(content)),
        max_tokens=policy.max_tokens,
        json_mode=policy.json_mode,
    )
    return GenerationResult[str](result=completion.text.strip(), usage=completion.usage)


def generate_flashcards(
    *, provider: LLMProvider, content: str, count: int = 10, locale: str | None = None
) -> GenerationResult[list[GeneratedFlashcard]]:
    """Generate flashcards, escalating to a strict-shape prompt when none survive."""

    source = prepare_source(content)
    user_prompt = build_flashcard_prompt(source, count)
    system_prompts = [FLASHCARD_SYSTEM_PROMPT, FLASHCARD_STRICT_SYSTEM_PROMPT]
    flashcards, usage = _run_with_policy(
        kind=ContentKind.FLASHCARDS,
        provider=provider,
        system_prompts=system_prompts,
        user_prompt=user_prompt,
        locale=locale,
        list_keys=FLASHCARD_LIST_KEYS,
        normalize=normalize_flashcards,
    )
    return GenerationResult[list[GeneratedFlashcard]](result=flashcards[:count], usage=usage)


def generate_quiz_questions(
    *, provider: LLMProvider, content: str, count: int = 5, locale: str | None = None
) -> GenerationResult[list[NormalizedQuestion]]:
    """Generate multiple-choice questions only."""

    def normalize(candidates: list[Any]) -> list[NormalizedQuestion]:
        return normalize_questions(
            {**candidate, "questionType": QuestionType.MULTIPLE_CHOICE.value}
            for candidate in candidates
            if isinstance(candidate, dict)
        )

    questions, usage = _run_with_policy(
        kind=ContentKind.QUIZ,
        provider=provider,
        system_prompts=[QUIZ_SYSTEM_PROMPT],
        user_prompt=build_quiz_prompt(prepare_source(content), count),
        locale=locale,
        list_keys=QUESTION_LIST_KEYS,
        normalize=normalize,
    )
    return GenerationResult[list[NormalizedQuestion]](result=questions[:count], usage=usage)


def generate_extended_quiz_questions(
    *,
    provider: LLMProvider,
    content: str,
    count: int = 10,
    question_types: str = QuestionMix.MIXED,
    locale: str | None = None,
) -> GenerationResult[list[NormalizedQuestion]]:
    """Generate questions across all question types, or one requested type."""

    questions, usage = _run_with_policy(
        kind=ContentKind.EXTENDED_QUIZ,
        provider=provider,
        system_prompts=[EXTENDED_QUIZ_SYSTEM_PROMPT],
        user_prompt=build_extended_quiz_prompt(
            prepare_source(content), count, resolve_question_type_filter(question_types)
        ),
        locale=locale,
        list_keys=QUESTION_LIST_KEYS,
        normalize=normalize_questions,
    )
    return GenerationResult[list[NormalizedQuestion]](result=questions[:count], usage=usage)


def generate_lesson(
    *,
    provider: LLMProvider,
    content: str,
    step_count: int = 14,
    title: str | None = None,
    flashcards: Iterable[GeneratedFlashcard] = (),
    quiz_questions: Iterable[str] = (),
    locale: str | None = None,
) -> GenerationResult[GeneratedLesson]:
    """Generate an interactive lesson, optionally grounded on existing study material."""

    policy = GENERATION_POLICIES[ContentKind.LESSON]
    completion = provider.generate(
        system_prompt=LESSON_SYSTEM_PROMPT + language_instruction(locale),
        user_prompt=build_lesson_prompt(
            prepare_source(content),
            step_count,
            title=title,
            flashcards=[(card.front, card.back) for card in flashcards],
            quiz_questions=list(quiz_questions),
        ),
        max_tokens=policy.max_tokens,
        json_mode=policy.json_mode,
    )

    decoded = _decode_or_log(ContentKind.LESSON, completion.text)
    lesson = normalize_lesson(decoded, title=title)
    if not lesson.steps:
        logger.warning("lesson has no usable steps", extra={"kind": ContentKind.LESSON.value})
    return GenerationResult[GeneratedLesson](result=lesson, usage=completion.usage)


def improve_lesson_step(
    *,
    provider: LLMProvider,
    step: GeneratedLessonStep,
    content: str | None = None,
    locale: str | None = None,
) -> GenerationResult[GeneratedLessonStep]:
    """Ask for a better version of ``step``; the original survives an unusable reply."""

    policy = GENERATION_POLICIES[ContentKind.LESSON_STEP]
    step_json = json.dumps(step.model_dump(mode="json", by_alias=True), ensure_ascii=False)
    completion = provider.generate(
        system_prompt=LESSON_IMPROVE_SYSTEM_PROMPT + language_instruction(locale),
        user_prompt=build_improve_step_prompt(step_json, content),
        max_tokens=policy.max_tokens,
        json_mode=policy.json_mode,
    )

    decoded = _decode_or_log(ContentKind.LESSON_STEP, completion.text)
    return GenerationResult[GeneratedLessonStep](
        result=merge_improved_step(step, decoded), usage=completion.usage
    )


def resolve_question_type_filter(question_types: str | None) -> str:
    """``all``/``mixed`` stay as-is; anything else is read as a question type."""

    raw = (question_types or "").strip().lower()
    if not raw or raw in {QuestionMix.ALL, QuestionMix.MIXED}:
        return raw or QuestionMix.MIXED.value
    return str(normalize_question_type(raw))


def convert_to_extended_format(
    questions: Iterable[MultipleChoiceQuestion],
) -> list[MultipleChoiceQuestion]:
    """Re-wrap legacy multiple-choice questions with extended-quiz defaults."""

    converted: list[MultipleChoiceQuestion] = []
    for question in questions:
        converted.append(
            question.model_copy(
                update={
                    "question_config": question.question_config.model_copy(
                        update={"shuffle_options": False}
                    ),
                    "points": 1,
                },
                deep=True,
            )
        )
    return converted


def _run_with_policy(
    *,
    kind: ContentKind,
    provider: LLMProvider,
    system_prompts: list[str],
    user_prompt: str,
    locale: str | None,
    list_keys: tuple[str, ...],
    normalize: Callable[[list[Any]], list[T]],
) -> tuple[list[T], TokenUsageData | None]:
    """Call the provider up to ``1 + retries`` times until something normalizes.

    Attempt ``n`` uses ``system_prompts[n]`` (the last one repeats). Provider
    errors on a non-final attempt are logged and retried; on the final attempt
    they propagate.
    """

    policy = GENERATION_POLICIES[kind]
    attempts = policy.retries + 1
    usage: TokenUsageData | None = None

    for attempt in range(attempts):
        system_prompt = system_prompts[min(attempt, len(system_prompts) - 1)]
        is_final = attempt == attempts - 1
        try:
            completion = provider.generate(
                system_prompt=system_prompt + language_instruction(locale),
                user_prompt=user_prompt,
                max_tokens=policy.max_tokens,
                json_mode=policy.json_mode,
            )
        except LLMProviderError:
            if is_final:
                raise
            logger.warning(
                "generation attempt failed, escalating",
                exc_info=True,
                extra={"kind": kind.value, "attempt": attempt + 1},
            )
            continue

        usage = completion.usage
        items = _normalize_response(
            kind=kind, raw=completion.text, list_keys=list_keys, normalize=normalize
        )
        if items:
            return items, usage
        if not is_final:
            logger.warning(
                "generation produced no usable items, escalating",
                extra={"kind": kind.value, "attempt": attempt + 1},
            )

    return [], usage


def _normalize_response(
    *,
    kind: ContentKind,
    raw: str,
    list_keys: tuple[str, ...],
    normalize: Callable[[list[Any]], list[T]],
) -> list[T]:
    decoded = _decode_or_log(kind, raw)
    if decoded is None:
        return []

    candidates = locate_item_list(decoded, list_keys)
    if not candidates:
        logger.warning("model response holds no item list", extra={"kind": kind.value})
        return []

    items = normalize(candidates)
    if len(items) < len(candidates):
        logger.info(
            "dropped unusable candidates",
            extra={"kind": kind.value, "candidates": len(candidates), "kept": len(items)},
        )
    return items


def _decode_or_log(kind: ContentKind, raw: str) -> Any | None:
    decoded = decode_json_response(raw)
    if decoded is None:
        logger.warning(
            "model response is not recoverable JSON",
            extra={"kind": kind.value, "excerpt": raw[:200]},
        )
    return decoded
