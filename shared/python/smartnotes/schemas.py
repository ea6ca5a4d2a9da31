"""Pydantic schemas for generated study material and API contracts."""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from smartnotes.enums import LessonStepType, QuestionType, ToleranceType

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake-case fields, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenUsageData(BaseModel):
    """Usage accounting as reported by the model provider."""

    total_tokens: int
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class LLMCompletion(BaseModel):
    text: str
    usage: TokenUsageData | None = None


class GeneratedFlashcard(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)


# ---- per-variant configs and answers ----


class MultipleChoiceConfig(CamelModel):
    options: list[str] = Field(default_factory=list)
    shuffle_options: bool = False


class MultipleChoiceAnswer(CamelModel):
    correct_index: int = 0


class TrueFalseConfig(CamelModel):
    true_label: str | None = None
    false_label: str | None = None


class TrueFalseAnswer(CamelModel):
    correct_value: bool


class TextInputConfig(CamelModel):
    case_sensitive: bool = False
    trim_whitespace: bool | None = None
    max_length: int | None = Field(default=None, gt=0)
    placeholder: str | None = None


class TextInputAnswer(CamelModel):
    accepted_answers: list[str] = Field(default_factory=list)
    keywords: list[str] | None = None


class YearRangeConfig(CamelModel):
    min_year: int | None = None
    max_year: int | None = None
    tolerance: int | None = Field(default=None, ge=0)
    placeholder: str | None = None


class YearRangeAnswer(CamelModel):
    correct_year: int


class NumericRangeConfig(CamelModel):
    min: int | float | None = None
    max: int | float | None = None
    step: int | float | None = Field(default=None, gt=0)
    unit: str | None = None
    tolerance: int | float | None = Field(default=None, ge=0)
    tolerance_type: ToleranceType = ToleranceType.ABSOLUTE
    placeholder: str | None = None


class NumericRangeAnswer(CamelModel):
    correct_value: int | float = 0


class MatchingConfig(CamelModel):
    left_column: list[str] = Field(default_factory=list)
    right_column: list[str] = Field(default_factory=list)
    shuffle_right: bool = True
    left_column_label: str | None = None
    right_column_label: str | None = None


class MatchingAnswer(CamelModel):
    correct_pairs: dict[str, str] = Field(default_factory=dict)


class FillBlankDefinition(CamelModel):
    id: str
    accepted_answers: list[str] = Field(default_factory=list)


class FillBlankConfig(CamelModel):
    template: str
    blanks: list[FillBlankDefinition] = Field(default_factory=list)
    case_sensitive: bool = False


class FillBlankAnswer(CamelModel):
    blanks: dict[str, list[str]] = Field(default_factory=dict)


class MultiSelectConfig(CamelModel):
    options: list[str] = Field(default_factory=list)
    shuffle_options: bool | None = None
    min_selections: int | None = Field(default=None, ge=0)
    max_selections: int | None = Field(default=None, ge=1)


class MultiSelectAnswer(CamelModel):
    correct_indices: list[int] = Field(default_factory=list)


# ---- normalized questions ----


class QuestionBase(CamelModel):
    question: str = Field(min_length=1)
    points: int = Field(default=1, ge=1, le=3)
    explanation: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optional fields."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MultipleChoiceQuestion(QuestionBase):
    question_type: Literal[QuestionType.MULTIPLE_CHOICE] = QuestionType.MULTIPLE_CHOICE
    question_config: MultipleChoiceConfig
    correct_answer_data: MultipleChoiceAnswer


class TrueFalseQuestion(QuestionBase):
    question_type: Literal[QuestionType.TRUE_FALSE] = QuestionType.TRUE_FALSE
    question_config: TrueFalseConfig
    correct_answer_data: TrueFalseAnswer


class TextInputQuestion(QuestionBase):
    question_type: Literal[QuestionType.TEXT_INPUT] = QuestionType.TEXT_INPUT
    question_config: TextInputConfig
    correct_answer_data: TextInputAnswer


class YearRangeQuestion(QuestionBase):
    question_type: Literal[QuestionType.YEAR_RANGE] = QuestionType.YEAR_RANGE
    question_config: YearRangeConfig
    correct_answer_data: YearRangeAnswer


class NumericRangeQuestion(QuestionBase):
    question_type: Literal[QuestionType.NUMERIC_RANGE] = QuestionType.NUMERIC_RANGE
    question_config: NumericRangeConfig
    correct_answer_data: NumericRangeAnswer


class MatchingQuestion(QuestionBase):
    question_type: Literal[QuestionType.MATCHING] = QuestionType.MATCHING
    question_config: MatchingConfig
    correct_answer_data: MatchingAnswer


class FillBlankQuestion(QuestionBase):
    question_type: Literal[QuestionType.FILL_BLANK] = QuestionType.FILL_BLANK
    question_config: FillBlankConfig
    correct_answer_data: FillBlankAnswer


class MultiSelectQuestion(QuestionBase):
    question_type: Literal[QuestionType.MULTI_SELECT] = QuestionType.MULTI_SELECT
    question_config: MultiSelectConfig
    correct_answer_data: MultiSelectAnswer


class CustomQuestion(QuestionBase):
    """Passthrough for question types outside the known variants."""

    question_type: str
    question_config: dict[str, Any] = Field(default_factory=dict)
    correct_answer_data: dict[str, Any] | None = None


NormalizedQuestion = Union[
    MultipleChoiceQuestion,
    TrueFalseQuestion,
    TextInputQuestion,
    YearRangeQuestion,
    NumericRangeQuestion,
    MatchingQuestion,
    FillBlankQuestion,
    MultiSelectQuestion,
    CustomQuestion,
]


# ---- lessons ----


class GeneratedLessonStep(CamelModel):
    step_type: LessonStepType
    content: dict[str, Any]
    answer_data: dict[str, Any] | None = None
    explanation: str | None = None
    hint: str | None = None


class GeneratedLesson(CamelModel):
    title: str = Field(min_length=1)
    description: str = ""
    steps: list[GeneratedLessonStep] = Field(default_factory=list)


class GenerationResult(BaseModel, Generic[T]):
    """Orchestrator output: normalized result plus provider usage."""

    result: T
    usage: TokenUsageData | None = None


# ---- API contracts ----


class GenerateContentRequest(CamelModel):
    content: str = Field(min_length=1)
    count: int = Field(default=10, ge=1, le=50)
    locale: str | None = None
    question_types: str = "mixed"


class GenerateLessonRequest(CamelModel):
    content: str = Field(min_length=1)
    step_count: int = Field(default=14, ge=4, le=30)
    title: str | None = None
    locale: str | None = None
    flashcards: list[GeneratedFlashcard] = Field(default_factory=list)
    quiz_questions: list[str] = Field(default_factory=list)


class ImproveLessonStepRequest(CamelModel):
    step: GeneratedLessonStep
    content: str | None = None
    locale: str | None = None


class SummaryResponse(BaseModel):
    result: str
    usage: TokenUsageData | None = None


class FlashcardsResponse(BaseModel):
    result: list[GeneratedFlashcard]
    usage: TokenUsageData | None = None


class QuestionsResponse(BaseModel):
    result: list[dict[str, Any]]
    usage: TokenUsageData | None = None


class LessonResponse(BaseModel):
    result: GeneratedLesson
    usage: TokenUsageData | None = None


class LessonStepResponse(BaseModel):
    result: GeneratedLessonStep
    usage: TokenUsageData | None = None
