import json

import pytest

from smartnotes.config import get_settings
from smartnotes.enums import LessonStepType
from smartnotes.generation.lessons import (
    DEFAULT_LESSON_TITLE,
    merge_improved_step,
    normalize_lesson,
    normalize_lesson_step,
    normalize_step_type,
)
from smartnotes.generation.pipeline import generate_lesson, improve_lesson_step
from smartnotes.llm.providers import LLMProvider, LLMProviderError
from smartnotes.schemas import (
    GeneratedFlashcard,
    GeneratedLessonStep,
    LLMCompletion,
    TokenUsageData,
)

USAGE = TokenUsageData(total_tokens=300)


class RecordingProvider(LLMProvider):
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls: list[dict] = []

    def generate(
        self, *, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool = False
    ) -> LLMCompletion:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        return LLMCompletion(text=self.text, usage=USAGE)


class BrokenProvider(LLMProvider):
    def generate(
        self, *, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool = False
    ) -> LLMCompletion:
        raise LLMProviderError("openai_request_failed")


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _step(**overrides) -> GeneratedLessonStep:
    fields = {
        "step_type": LessonStepType.TRUE_FALSE,
        "content": {"type": "true_false", "statement": "Water boils at 100C."},
        "answer_data": {"correctValue": True},
        "explanation": "At sea level.",
        "hint": None,
    }
    fields.update(overrides)
    return GeneratedLessonStep(**fields)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("explanation", LessonStepType.EXPLANATION),
        ("Drag Sort", LessonStepType.DRAG_SORT),
        ("True/False", LessonStepType.TRUE_FALSE),
        ("fill-in-the-blank", LessonStepType.FILL_BLANKS),
        ("matching", LessonStepType.DRAG_MATCH),
        ("video", None),
        (None, None),
    ],
)
def test_normalize_step_type(raw, expected) -> None:
    assert normalize_step_type(raw) == expected


def test_step_defaults_and_type_from_content() -> None:
    step = normalize_lesson_step(
        {"content": {"type": "concept", "title": "Osmosis", "description": "Water moves."}}
    )

    assert step is not None
    assert step.step_type == LessonStepType.CONCEPT
    assert step.answer_data is None
    assert step.explanation is None
    assert step.hint is None


def test_step_type_is_mirrored_into_content() -> None:
    step = normalize_lesson_step(
        {
            "stepType": "mcq",
            "content": {"question": "Pick", "options": [{"id": "a", "text": "A"}]},
            "answerData": {"correctOptionId": "a"},
            "hint": "  Think. ",
        }
    )

    assert step.step_type == LessonStepType.MULTIPLE_CHOICE
    assert step.content["type"] == "multiple_choice"
    assert step.answer_data == {"correctOptionId": "a"}
    assert step.hint == "Think."


def test_unusable_steps_are_dropped() -> None:
    assert normalize_lesson_step({"stepType": "explanation", "content": "text only"}) is None
    assert normalize_lesson_step({"stepType": "hologram", "content": {}}) is None
    assert normalize_lesson_step("explanation") is None


def test_normalize_lesson_title_fallbacks() -> None:
    lesson = normalize_lesson({"steps": []}, title="Cells")
    assert lesson.title == "Cells"

    untitled = normalize_lesson(None)
    assert untitled.title == DEFAULT_LESSON_TITLE
    assert untitled.description == ""
    assert untitled.steps == []


def test_normalize_lesson_keeps_step_order() -> None:
    lesson = normalize_lesson(
        {
            "title": "Photosynthesis",
            "description": "How plants eat light.",
            "data": {
                "steps": [
                    {"stepType": "explanation", "content": {"markdown": "# Intro"}},
                    {"stepType": "unknown", "content": {}},
                    {"stepType": "type_answer", "content": {"question": "Gas released?"}},
                ]
            },
        }
    )

    assert lesson.title == "Photosynthesis"
    assert [step.step_type for step in lesson.steps] == [
        LessonStepType.EXPLANATION,
        LessonStepType.TYPE_ANSWER,
    ]


def test_merge_improved_step_overlays_usable_fields() -> None:
    original = _step()

    merged = merge_improved_step(
        original,
        {
            "step": {
                "content": {"type": "true_false", "statement": "Pure water boils at 100C."},
                "answerData": None,
                "explanation": "",
                "hint": "Think about pressure.",
            }
        },
    )

    assert merged.step_type == LessonStepType.TRUE_FALSE
    assert merged.content["statement"] == "Pure water boils at 100C."
    assert merged.answer_data == {"correctValue": True}
    assert merged.explanation == "At sea level."
    assert merged.hint == "Think about pressure."


def test_merge_improved_step_keeps_original_for_unusable_reply() -> None:
    original = _step()
    assert merge_improved_step(original, None) == original
    assert merge_improved_step(original, ["not", "a", "step"]) == original


def test_generate_lesson_builds_prompt_with_context() -> None:
    reply = {
        "title": "Cells",
        "description": "Basics",
        "steps": [{"stepType": "explanation", "content": {"markdown": "Cells are small."}}],
    }
    provider = RecordingProvider("Here you go: " + json.dumps(reply))
    flashcards = [GeneratedFlashcard(front=f"F{index}", back="B") for index in range(12)]

    generated = generate_lesson(
        provider=provider,
        content="Cell biology notes",
        step_count=8,
        title="Cells 101",
        flashcards=flashcards,
        quiz_questions=["What is a cell?"],
        locale="hu",
    )

    assert generated.result.title == "Cells"
    assert len(generated.result.steps) == 1
    assert generated.usage == USAGE
    call = provider.calls[0]
    assert call["max_tokens"] == 6000
    assert call["json_mode"] is True
    assert "Hungarian" in call["system_prompt"]
    assert "approximately 8 steps" in call["user_prompt"]
    assert 'Lesson title: "Cells 101"' in call["user_prompt"]
    assert "Q: F9 A: B" in call["user_prompt"]
    assert "Q: F10 A: B" not in call["user_prompt"]
    assert "What is a cell?" in call["user_prompt"]


def test_generate_lesson_with_refusal() -> None:
    provider = RecordingProvider("I cannot help with that.")

    generated = generate_lesson(provider=provider, content="notes", title="Cells")

    assert generated.result.title == "Cells"
    assert generated.result.steps == []
    assert generated.usage == USAGE


def test_improve_lesson_step_sends_step_and_clipped_source() -> None:
    improved = {"stepType": "true_false", "content": {"statement": "Better."}, "hint": "Pressure"}
    provider = RecordingProvider(json.dumps(improved))

    generated = improve_lesson_step(provider=provider, step=_step(), content="x" * 5000)

    assert generated.result.content == {"statement": "Better."}
    assert generated.result.hint == "Pressure"
    assert generated.result.explanation == "At sea level."
    call = provider.calls[0]
    assert call["max_tokens"] == 2000
    assert '"stepType": "true_false"' in call["user_prompt"]
    assert "x" * 2000 in call["user_prompt"]
    assert "x" * 2001 not in call["user_prompt"]


def test_improve_lesson_step_falls_back_to_original() -> None:
    original = _step()
    generated = improve_lesson_step(provider=RecordingProvider("no json"), step=original)
    assert generated.result == original


def test_lesson_provider_error_propagates() -> None:
    with pytest.raises(LLMProviderError):
        generate_lesson(provider=BrokenProvider(), content="notes")
