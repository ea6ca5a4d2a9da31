import json

import pytest

from smartnotes.config import get_settings
from smartnotes.generation.pipeline import (
    convert_to_extended_format,
    generate_extended_quiz_questions,
    generate_flashcards,
    generate_quiz_questions,
    generate_summary,
    resolve_question_type_filter,
)
from smartnotes.generation.preprocess import ELISION_MARKER
from smartnotes.generation.prompts import FLASHCARD_STRICT_SYSTEM_PROMPT, FLASHCARD_SYSTEM_PROMPT
from smartnotes.generation.questions import normalize_question
from smartnotes.llm.providers import LLMProvider, LLMProviderError
from smartnotes.schemas import (
    LLMCompletion,
    MultipleChoiceQuestion,
    TokenUsageData,
    TrueFalseQuestion,
)

USAGE = TokenUsageData(total_tokens=120, prompt_tokens=100, completion_tokens=20)


class ScriptedProvider(LLMProvider):
    """Replays responses in order; an exception instance is raised instead."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
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
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return LLMCompletion(text=response, usage=USAGE)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_summary_uses_plain_text_policy() -> None:
    provider = ScriptedProvider("  # Photosynthesis\n\n- Light becomes sugar.  ")

    generated = generate_summary(provider=provider, content="Plants convert light.", locale="hu")

    assert generated.result == "# Photosynthesis\n\n- Light becomes sugar."
    assert generated.usage == USAGE
    call = provider.calls[0]
    assert call["max_tokens"] == 2000
    assert call["json_mode"] is False
    assert "Generate ALL content in Hungarian." in call["system_prompt"]
    assert "Plants convert light." in call["user_prompt"]


def test_unknown_locale_falls_back_to_english() -> None:
    provider = ScriptedProvider("Summary")
    generate_summary(provider=provider, content="text", locale="xx")
    assert "Generate ALL content in English." in provider.calls[0]["system_prompt"]


def test_long_source_is_truncated_before_prompting(monkeypatch) -> None:
    monkeypatch.setenv("MAX_SOURCE_CHARS", "100")
    provider = ScriptedProvider("Summary")
    content = "H" * 80 + "M" * 200 + "T" * 80

    generate_summary(provider=provider, content=content)

    user_prompt = provider.calls[0]["user_prompt"]
    assert ELISION_MARKER in user_prompt
    assert "H" * 50 in user_prompt
    assert "T" * 50 in user_prompt
    assert "M" not in user_prompt


def test_extended_quiz_recovers_json_from_prose() -> None:
    raw = (
        'Sure! Here is the JSON: {"questions":[{"question":"Q1","questionType":"true_false"}]}'
        " Hope that helps."
    )
    provider = ScriptedProvider(raw)

    generated = generate_extended_quiz_questions(provider=provider, content="notes", count=5)

    assert len(generated.result) == 1
    question = generated.result[0]
    assert isinstance(question, TrueFalseQuestion)
    assert question.question == "Q1"
    assert question.correct_answer_data.correct_value is True
    assert question.points == 1
    assert question.explanation == ""
    assert generated.usage == USAGE
    assert provider.calls[0]["max_tokens"] == 4000
    assert provider.calls[0]["json_mode"] is True


def test_refusal_yields_empty_result_with_usage() -> None:
    provider = ScriptedProvider("I cannot help with that.")

    generated = generate_extended_quiz_questions(provider=provider, content="notes")

    assert generated.result == []
    assert generated.usage == USAGE
    assert len(provider.calls) == 1


def test_unparseable_number_literal_yields_empty_result() -> None:
    raw = '{"questions": [{"question": "Q", "points": ' + "9" * 5000 + "}]}"
    provider = ScriptedProvider(raw)

    generated = generate_extended_quiz_questions(provider=provider, content="notes")

    assert generated.result == []
    assert generated.usage == USAGE


def test_extended_quiz_type_filter_reaches_prompt() -> None:
    provider = ScriptedProvider('{"questions": []}')

    generate_extended_quiz_questions(
        provider=provider, content="notes", question_types="fill-in-the-blank"
    )

    assert 'Generate ONLY "fill_blank" type questions.' in provider.calls[0]["user_prompt"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, "mixed"), ("ALL", "all"), ("mixed", "mixed"), ("True/False", "true_false")],
)
def test_resolve_question_type_filter(raw, expected) -> None:
    assert resolve_question_type_filter(raw) == expected


def test_flashcards_escalate_to_strict_prompt_once() -> None:
    cards = {"flashcards": [{"term": "ATP", "definition": "Energy carrier"}]}
    provider = ScriptedProvider("I cannot help with that.", json.dumps(cards))

    generated = generate_flashcards(provider=provider, content="notes", count=5)

    assert [(card.front, card.back) for card in generated.result] == [("ATP", "Energy carrier")]
    assert len(provider.calls) == 2
    assert provider.calls[0]["system_prompt"].startswith(FLASHCARD_SYSTEM_PROMPT)
    assert provider.calls[1]["system_prompt"].startswith(FLASHCARD_STRICT_SYSTEM_PROMPT)
    assert all(call["max_tokens"] == 3000 for call in provider.calls)


def test_flashcards_give_up_after_one_retry() -> None:
    provider = ScriptedProvider('{"flashcards": []}', '{"cards": [{"front": "only front"}]}')

    generated = generate_flashcards(provider=provider, content="notes")

    assert generated.result == []
    assert generated.usage == USAGE
    assert len(provider.calls) == 2


def test_flashcards_retry_after_provider_error() -> None:
    provider = ScriptedProvider(
        LLMProviderError("openai_request_failed"),
        '[{"front": "Q", "back": "A"}, {"front": "Q2", "back": "A2"}]',
    )

    generated = generate_flashcards(provider=provider, content="notes")

    assert len(generated.result) == 2
    assert len(provider.calls) == 2


def test_provider_error_on_final_attempt_propagates() -> None:
    provider = ScriptedProvider(LLMProviderError("openai_request_failed"))

    with pytest.raises(LLMProviderError):
        generate_quiz_questions(provider=provider, content="notes")


def test_flashcards_are_capped_to_count() -> None:
    cards = [{"front": f"Q{index}", "back": f"A{index}"} for index in range(5)]
    provider = ScriptedProvider(json.dumps({"flashcards": cards}))

    generated = generate_flashcards(provider=provider, content="notes", count=3)

    assert [card.front for card in generated.result] == ["Q0", "Q1", "Q2"]


def test_legacy_quiz_forces_multiple_choice() -> None:
    payload = {
        "questions": [
            {
                "question": "Capital of France?",
                "questionType": "true_false",
                "options": ["Paris", "Berlin", "Rome", "Madrid"],
                "correctAnswer": 0,
                "explanation": "Paris is the capital.",
            },
            "garbage",
            {"question": "Largest planet?", "options": ["Mars", "Jupiter"], "correctAnswer": 1},
        ]
    }
    provider = ScriptedProvider(json.dumps(payload))

    generated = generate_quiz_questions(provider=provider, content="notes", count=5)

    assert all(isinstance(question, MultipleChoiceQuestion) for question in generated.result)
    assert [question.correct_answer_data.correct_index for question in generated.result] == [0, 1]
    assert provider.calls[0]["max_tokens"] == 3000


def test_convert_to_extended_format() -> None:
    question = normalize_question(
        {
            "question": "Pick",
            "questionConfig": {"options": ["A", "B"], "shuffleOptions": True},
            "correctAnswerData": {"correctIndex": 1},
            "points": 3,
        }
    )

    converted = convert_to_extended_format([question])

    assert converted[0].question_config.shuffle_options is False
    assert converted[0].points == 1
    assert converted[0].correct_answer_data.correct_index == 1
    assert question.points == 3
