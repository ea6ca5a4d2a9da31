"""Generation service exposing summary, flashcard and quiz generation."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, status
from smartnotes.config import get_settings
from smartnotes.correlation import CorrelationIdMiddleware
from smartnotes.generation.pipeline import (
    generate_extended_quiz_questions,
    generate_flashcards,
    generate_lesson,
    generate_quiz_questions,
    generate_summary,
    improve_lesson_step,
)
from smartnotes.llm.providers import LLMProvider, LLMProviderError, get_provider
from smartnotes.logging import configure_logging
from smartnotes.otel import init_otel
from smartnotes.rate_limit import rate_limit_dependency
from smartnotes.schemas import (
    FlashcardsResponse,
    GenerateContentRequest,
    GenerateLessonRequest,
    ImproveLessonStepRequest,
    LessonResponse,
    LessonStepResponse,
    QuestionsResponse,
    SummaryResponse,
)

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="SmartNotes Generate Service", version="0.1.0")
app.add_middleware(CorrelationIdMiddleware)


@app.on_event("startup")
def startup() -> None:
    init_otel("generate-service")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "generate"}


def _locale(locale: str | None) -> str:
    return locale or get_settings().default_locale


def _generation_failed(operation: str, exc: LLMProviderError) -> HTTPException:
    logger.error("generation failed", extra={"operation": operation, "error": str(exc)})
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="generation_failed")


@app.post(
    "/v1/summary",
    response_model=SummaryResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def create_summary(
    payload: GenerateContentRequest, provider: LLMProvider = Depends(get_provider)
) -> SummaryResponse:
    try:
        generated = generate_summary(
            provider=provider, content=payload.content, locale=_locale(payload.locale)
        )
    except LLMProviderError as exc:
        raise _generation_failed("summary", exc) from exc
    return SummaryResponse(result=generated.result, usage=generated.usage)


@app.post(
    "/v1/flashcards",
    response_model=FlashcardsResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def create_flashcards(
    payload: GenerateContentRequest, provider: LLMProvider = Depends(get_provider)
) -> FlashcardsResponse:
    try:
        generated = generate_flashcards(
            provider=provider,
            content=payload.content,
            count=payload.count,
            locale=_locale(payload.locale),
        )
    except LLMProviderError as exc:
        raise _generation_failed("flashcards", exc) from exc
    return FlashcardsResponse(result=generated.result, usage=generated.usage)


@app.post(
    "/v1/quiz",
    response_model=QuestionsResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def create_quiz(
    payload: GenerateContentRequest, provider: LLMProvider = Depends(get_provider)
) -> QuestionsResponse:
    try:
        generated = generate_quiz_questions(
            provider=provider,
            content=payload.content,
            count=payload.count,
            locale=_locale(payload.locale),
        )
    except LLMProviderError as exc:
        raise _generation_failed("quiz", exc) from exc
    return QuestionsResponse(
        result=[question.to_payload() for question in generated.result], usage=generated.usage
    )


@app.post(
    "/v1/quiz/extended",
    response_model=QuestionsResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def create_extended_quiz(
    payload: GenerateContentRequest, provider: LLMProvider = Depends(get_provider)
) -> QuestionsResponse:
    try:
        generated = generate_extended_quiz_questions(
            provider=provider,
            content=payload.content,
            count=payload.count,
            question_types=payload.question_types,
            locale=_locale(payload.locale),
        )
    except LLMProviderError as exc:
        raise _generation_failed("extended_quiz", exc) from exc
    return QuestionsResponse(
        result=[question.to_payload() for question in generated.result], usage=generated.usage
    )


@app.post(
    "/v1/lessons",
    response_model=LessonResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def create_lesson(
    payload: GenerateLessonRequest, provider: LLMProvider = Depends(get_provider)
) -> LessonResponse:
    try:
        generated = generate_lesson(
            provider=provider,
            content=payload.content,
            step_count=payload.step_count,
            title=payload.title,
            flashcards=payload.flashcards,
            quiz_questions=payload.quiz_questions,
            locale=_locale(payload.locale),
        )
    except LLMProviderError as exc:
        raise _generation_failed("lesson", exc) from exc
    return LessonResponse(result=generated.result, usage=generated.usage)


@app.post(
    "/v1/lessons/steps/improve",
    response_model=LessonStepResponse,
    dependencies=[Depends(rate_limit_dependency)],
)
def improve_step(
    payload: ImproveLessonStepRequest, provider: LLMProvider = Depends(get_provider)
) -> LessonStepResponse:
    try:
        generated = improve_lesson_step(
            provider=provider,
            step=payload.step,
            content=payload.content,
            locale=_locale(payload.locale),
        )
    except LLMProviderError as exc:
        raise _generation_failed("lesson_step", exc) from exc
    return LessonStepResponse(result=generated.result, usage=generated.usage)
