"""Normalize generated quiz questions into the canonical question variants.

Candidates come straight from model output: field names drift, indices may be
1-based, lists arrive as scalars and type tags are spelled a dozen ways. Each
variant normalizer repairs what it can and falls back to a usable default;
only a candidate without question text is dropped.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import re
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from smartnotes.enums import QuestionType, ToleranceType
from smartnotes.generation.coercion import (
    as_mapping,
    pick_first,
    round_half_up,
    scalar_text,
    to_boolean,
    to_number,
    to_string_array,
    to_text,
    unique_strings,
    unwrap_text,
)
from smartnotes.generation.fill_blank import extract_fill_blank_ids, qualify_placeholders
from smartnotes.generation.indexing import detect_one_based_indexing, resolve_list_value
from smartnotes.schemas import (
    CustomQuestion,
    FillBlankAnswer,
    FillBlankConfig,
    FillBlankDefinition,
    FillBlankQuestion,
    MatchingAnswer,
    MatchingConfig,
    MatchingQuestion,
    MultipleChoiceAnswer,
    MultipleChoiceConfig,
    MultipleChoiceQuestion,
    MultiSelectAnswer,
    MultiSelectConfig,
    MultiSelectQuestion,
    NormalizedQuestion,
    NumericRangeAnswer,
    NumericRangeConfig,
    NumericRangeQuestion,
    QuestionBase,
    TextInputAnswer,
    TextInputConfig,
    TextInputQuestion,
    TrueFalseAnswer,
    TrueFalseConfig,
    TrueFalseQuestion,
    YearRangeAnswer,
    YearRangeConfig,
    YearRangeQuestion,
)

logger = logging.getLogger(__name__)

QUESTION_TYPE_ALIASES: dict[str, QuestionType] = {
    "multiple_choice": QuestionType.MULTIPLE_CHOICE,
    "multiple choice": QuestionType.MULTIPLE_CHOICE,
    "multiple-choice": QuestionType.MULTIPLE_CHOICE,
    "multi_choice": QuestionType.MULTIPLE_CHOICE,
    "multichoice": QuestionType.MULTIPLE_CHOICE,
    "single_choice": QuestionType.MULTIPLE_CHOICE,
    "mcq": QuestionType.MULTIPLE_CHOICE,
    "true_false": QuestionType.TRUE_FALSE,
    "truefalse": QuestionType.TRUE_FALSE,
    "true/false": QuestionType.TRUE_FALSE,
    "boolean": QuestionType.TRUE_FALSE,
    "text_input": QuestionType.TEXT_INPUT,
    "text": QuestionType.TEXT_INPUT,
    "free_text": QuestionType.TEXT_INPUT,
    "short_answer": QuestionType.TEXT_INPUT,
    "shortanswer": QuestionType.TEXT_INPUT,
    "year_range": QuestionType.YEAR_RANGE,
    "year": QuestionType.YEAR_RANGE,
    "numeric_range": QuestionType.NUMERIC_RANGE,
    "number": QuestionType.NUMERIC_RANGE,
    "numeric": QuestionType.NUMERIC_RANGE,
    "number_range": QuestionType.NUMERIC_RANGE,
    "matching": QuestionType.MATCHING,
    "match": QuestionType.MATCHING,
    "matching_pairs": QuestionType.MATCHING,
    "fill_blank": QuestionType.FILL_BLANK,
    "fill_blanks": QuestionType.FILL_BLANK,
    "fill_in_blank": QuestionType.FILL_BLANK,
    "fill_in_the_blank": QuestionType.FILL_BLANK,
    "fill-in-the-blank": QuestionType.FILL_BLANK,
    "cloze": QuestionType.FILL_BLANK,
    "multi_select": QuestionType.MULTI_SELECT,
    "multi-select": QuestionType.MULTI_SELECT,
    "multi select": QuestionType.MULTI_SELECT,
    "multiple_select": QuestionType.MULTI_SELECT,
    "select_all": QuestionType.MULTI_SELECT,
}

QUESTION_TEXT_KEYS = ("question", "questionText", "prompt", "text")
QUESTION_TYPE_KEYS = ("questionType", "question_type", "type")
QUESTION_CONFIG_KEYS = ("questionConfig", "config")
ANSWER_DATA_KEYS = ("correctAnswerData", "answerData", "answer")
LEGACY_ANSWER_KEY = "correctAnswer"

MIN_POINTS = 1
MAX_POINTS = 3

VariantNormalizer = Callable[
    [Mapping[str, Any], Mapping[str, Any], Mapping[str, Any]], tuple[BaseModel, BaseModel]
]


def normalize_question_type(raw_value: Any) -> QuestionType | str:
    """Map a type tag onto a known variant; unknown tags pass through lowercased."""

    text = to_text(raw_value)
    if text is None:
        return QuestionType.MULTIPLE_CHOICE

    lowered = text.lower()
    if lowered in QUESTION_TYPE_ALIASES:
        return QUESTION_TYPE_ALIASES[lowered]
    collapsed = re.sub(r"[\s\-]+", "_", lowered)
    if collapsed in QUESTION_TYPE_ALIASES:
        return QUESTION_TYPE_ALIASES[collapsed]
    if collapsed.endswith("s") and collapsed[:-1] in QUESTION_TYPE_ALIASES:
        return QUESTION_TYPE_ALIASES[collapsed[:-1]]
    return lowered


def normalize_points(raw_value: Any) -> int:
    number = to_number(raw_value)
    if number is None:
        return MIN_POINTS
    return max(MIN_POINTS, min(MAX_POINTS, round_half_up(number)))


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _option_slots(value: Any) -> list[str | None]:
    """Option texts by raw position; blank or null entries keep their slot as ``None``."""

    if isinstance(value, (list, tuple)):
        return [scalar_text(entry) for entry in value]
    return list(to_string_array(value))


def _remap_deduplicated_index(
    index: int, slots: list[str | None], options: list[str]
) -> int | None:
    """Follow an index into the raw option slots over to the cleaned list.

    ``None`` when the index lands on a blank slot; out-of-range indices pass
    through unchanged for the caller to clamp or drop.
    """

    if 0 <= index < len(slots):
        text = slots[index]
        return options.index(text) if text is not None else None
    return index


def _option_index(options: list[str], text: str) -> int | None:
    if text in options:
        return options.index(text)
    folded = text.casefold()
    for index, option in enumerate(options):
        if option.casefold() == folded:
            return index
    return None


def _normalize_multiple_choice(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[MultipleChoiceConfig, MultipleChoiceAnswer]:
    slots = _option_slots(
        _first_present(
            pick_first(config, ("options", "choices", "answers")),
            pick_first(candidate, ("options", "choices")),
        )
    )
    options = unique_strings(slot for slot in slots if slot is not None)

    raw_answer = _first_present(
        pick_first(answer_data, ("correctIndex", "correctAnswer", "answerIndex")),
        candidate.get(LEGACY_ANSWER_KEY),
    )
    correct_index: int | None = None
    number = to_number(raw_answer)
    if number is not None:
        correct_index = _remap_deduplicated_index(round_half_up(number), slots, options)
    elif isinstance(raw_answer, str):
        correct_index = _option_index(options, raw_answer.strip())
    if correct_index is None:
        correct_option = to_text(pick_first(answer_data, ("correctOption",)))
        if correct_option is not None:
            correct_index = _option_index(options, correct_option)

    if options:
        correct_index = max(0, min(len(options) - 1, correct_index or 0))
    else:
        correct_index = 0

    return (
        MultipleChoiceConfig(
            options=options,
            shuffle_options=_first_present(to_boolean(config.get("shuffleOptions")), False),
        ),
        MultipleChoiceAnswer(correct_index=correct_index),
    )


def _normalize_true_false(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[TrueFalseConfig, TrueFalseAnswer]:
    correct_value = _first_present(
        to_boolean(
            pick_first(answer_data, ("correctValue", "isTrue", "answer", "correctAnswer", "value"))
        ),
        to_boolean(candidate.get(LEGACY_ANSWER_KEY)),
        True,
    )
    return (
        TrueFalseConfig(
            true_label=_optional_text(config.get("trueLabel")) or "True",
            false_label=_optional_text(config.get("falseLabel")) or "False",
        ),
        TrueFalseAnswer(correct_value=correct_value),
    )


def _normalize_text_input(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[TextInputConfig, TextInputAnswer]:
    accepted_answers = unique_strings(
        to_string_array(
            _first_present(
                pick_first(answer_data, ("acceptedAnswers", "answers", "correctAnswers")),
                _optional_text(answer_data.get("exactMatch")),
                _optional_text(candidate.get(LEGACY_ANSWER_KEY)),
                _optional_text(candidate.get("answer")),
            )
        )
    )
    keywords = unique_strings(
        to_string_array(
            _first_present(answer_data.get("keywords"), config.get("acceptedKeywords"))
        )
    )

    max_length = to_number(config.get("maxLength"))
    return (
        TextInputConfig(
            case_sensitive=_first_present(to_boolean(config.get("caseSensitive")), False),
            trim_whitespace=_first_present(to_boolean(config.get("trimWhitespace")), True),
            max_length=(
                round_half_up(max_length)
                if max_length is not None and round_half_up(max_length) > 0
                else None
            ),
            placeholder=_optional_text(config.get("placeholder")),
        ),
        TextInputAnswer(accepted_answers=accepted_answers, keywords=keywords or None),
    )


def _normalize_year_range(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[YearRangeConfig, YearRangeAnswer]:
    min_year = to_number(pick_first(config, ("minYear", "min")))
    max_year = to_number(pick_first(config, ("maxYear", "max")))
    tolerance = to_number(
        _first_present(
            pick_first(config, ("tolerance", "toleranceYears")),
            answer_data.get("toleranceYears"),
        )
    )
    correct_year = _first_present(
        to_number(pick_first(answer_data, ("correctYear", "exactYear", "year"))),
        to_number(candidate.get(LEGACY_ANSWER_KEY)),
        datetime.now(timezone.utc).year,
    )

    return (
        YearRangeConfig(
            min_year=round_half_up(min_year) if min_year is not None else None,
            max_year=round_half_up(max_year) if max_year is not None else None,
            tolerance=max(0, round_half_up(tolerance)) if tolerance is not None else None,
            placeholder=_optional_text(config.get("placeholder")),
        ),
        YearRangeAnswer(correct_year=round_half_up(correct_year)),
    )


def _normalize_numeric_range(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[NumericRangeConfig, NumericRangeAnswer]:
    tolerance = to_number(config.get("tolerance"))
    raw_tolerance_type = (to_text(config.get("toleranceType")) or "").lower()
    tolerance_type = (
        ToleranceType(raw_tolerance_type)
        if raw_tolerance_type in {member.value for member in ToleranceType}
        else ToleranceType.ABSOLUTE
    )
    tolerance_percent = to_number(
        _first_present(config.get("tolerancePercent"), answer_data.get("tolerancePercent"))
    )
    if tolerance is None and tolerance_percent is not None:
        tolerance = tolerance_percent
        tolerance_type = ToleranceType.PERCENTAGE

    step = to_number(config.get("step"))
    correct_value = _first_present(
        to_number(pick_first(answer_data, ("correctValue", "exactValue", "value"))),
        to_number(candidate.get(LEGACY_ANSWER_KEY)),
        0,
    )

    return (
        NumericRangeConfig(
            min=to_number(pick_first(config, ("min", "minValue"))),
            max=to_number(pick_first(config, ("max", "maxValue"))),
            step=step if step is not None and step > 0 else None,
            unit=_optional_text(config.get("unit")),
            tolerance=max(0, tolerance) if tolerance is not None else None,
            tolerance_type=tolerance_type,
            placeholder=_optional_text(config.get("placeholder")),
        ),
        NumericRangeAnswer(correct_value=correct_value),
    )


def _append_missing(column: list[str], value: str | None) -> None:
    if value and value not in column:
        column.append(value)


def _normalize_matching(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[MatchingConfig, MatchingAnswer]:
    left_column = unique_strings(
        to_string_array(pick_first(config, ("leftColumn", "leftItems", "left")))
    )
    right_column = unique_strings(
        to_string_array(pick_first(config, ("rightColumn", "rightItems", "right")))
    )

    config_pairs = config.get("pairs")
    for pair in config_pairs if isinstance(config_pairs, list) else []:
        if isinstance(pair, (list, tuple)) and len(pair) >= 2:
            _append_missing(left_column, to_text(pair[0]))
            _append_missing(right_column, to_text(pair[1]))
            continue
        raw_pair = as_mapping(pair)
        _append_missing(left_column, to_text(pick_first(raw_pair, ("left", "term"))))
        _append_missing(
            right_column, to_text(pick_first(raw_pair, ("right", "match", "definition")))
        )

    raw_correct_pairs = pick_first(answer_data, ("correctPairs", "pairs", "matches"))
    correct_pairs: dict[str, str] = {}

    if isinstance(raw_correct_pairs, list):
        one_based_left = detect_one_based_indexing(raw_correct_pairs, 0, len(left_column))
        one_based_right = detect_one_based_indexing(raw_correct_pairs, 1, len(right_column))
        for entry in raw_correct_pairs:
            if isinstance(entry, (list, tuple)):
                if len(entry) < 2:
                    continue
                raw_left, raw_right = entry[0], entry[1]
            else:
                pair = as_mapping(entry)
                raw_left = pick_first(pair, ("left", "leftItem", "from", "term"))
                raw_right = pick_first(pair, ("right", "rightItem", "to", "match", "definition"))
            left = resolve_list_value(raw_left, left_column, one_based_left)
            right = resolve_list_value(raw_right, right_column, one_based_right)
            if left and right:
                correct_pairs[left] = right
    elif isinstance(raw_correct_pairs, Mapping):
        for raw_left, raw_right in raw_correct_pairs.items():
            left = resolve_list_value(raw_left, left_column, False)
            right = resolve_list_value(raw_right, right_column, False)
            if left and right:
                correct_pairs[left] = right

    if not correct_pairs and len(left_column) == len(right_column):
        correct_pairs = dict(zip(left_column, right_column))

    for left, right in correct_pairs.items():
        _append_missing(left_column, left)
        _append_missing(right_column, right)

    return (
        MatchingConfig(
            left_column=left_column,
            right_column=right_column,
            shuffle_right=_first_present(to_boolean(config.get("shuffleRight")), True),
            left_column_label=_optional_text(config.get("leftColumnLabel")),
            right_column_label=_optional_text(config.get("rightColumnLabel")),
        ),
        MatchingAnswer(correct_pairs=correct_pairs),
    )


def _clean_blank_id(value: Any, index: int) -> str:
    text = to_text(value) or ""
    text = re.sub(r"[{}]", "", text).strip()
    return text or f"blank_{index}"


def _collect_blank_definitions(raw_blanks: Any) -> list[tuple[str, list[str]]]:
    """Read ``[{id, acceptedAnswers}]`` lists or ``{id: answers}`` maps."""

    definitions: list[tuple[str, list[str]]] = []
    if isinstance(raw_blanks, Mapping):
        for index, (blank_id, answers) in enumerate(raw_blanks.items()):
            definitions.append(
                (_clean_blank_id(blank_id, index), unique_strings(to_string_array(answers)))
            )
    elif isinstance(raw_blanks, list):
        for index, blank in enumerate(raw_blanks):
            if isinstance(blank, Mapping):
                blank_id = _clean_blank_id(blank.get("id"), index)
                answers = pick_first(blank, ("acceptedAnswers", "answers", "answer"))
            else:
                blank_id = f"blank_{index}"
                answers = blank
            definitions.append((blank_id, unique_strings(to_string_array(answers))))
    return definitions


def _normalize_fill_blank(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[FillBlankConfig, FillBlankAnswer]:
    raw_template = to_text(_first_present(config.get("template"), candidate.get("template"))) or ""

    config_blanks = _collect_blank_definitions(config.get("blanks"))
    answer_blanks = _collect_blank_definitions(pick_first(answer_data, ("blanks", "correctBlanks")))
    accepted_by_id: dict[str, list[str]] = dict(config_blanks)
    accepted_by_id.update(answer_blanks)

    config_ids = [blank_id for blank_id, _ in config_blanks]
    blank_ids = extract_fill_blank_ids(raw_template, config_ids)
    if blank_ids:
        template = qualify_placeholders(raw_template, config_ids)
    else:
        blank_ids = unique_strings(config_ids) or list(accepted_by_id) or ["blank_0"]
        placeholders = " ".join("{{" + blank_id + "}}" for blank_id in blank_ids)
        template = f"{raw_template} {placeholders}" if raw_template else placeholders

    blanks: list[FillBlankDefinition] = []
    for index, blank_id in enumerate(blank_ids):
        accepted = accepted_by_id.get(blank_id)
        if accepted is None:
            positional = config_blanks if index < len(config_blanks) else answer_blanks
            accepted = positional[index][1] if index < len(positional) else []
        blanks.append(FillBlankDefinition(id=blank_id, accepted_answers=accepted))

    return (
        FillBlankConfig(
            template=template,
            blanks=blanks,
            case_sensitive=_first_present(to_boolean(config.get("caseSensitive")), False),
        ),
        FillBlankAnswer(blanks={blank.id: blank.accepted_answers for blank in blanks}),
    )


def _normalize_multi_select(
    config: Mapping[str, Any],
    answer_data: Mapping[str, Any],
    candidate: Mapping[str, Any],
) -> tuple[MultiSelectConfig, MultiSelectAnswer]:
    slots = _option_slots(
        _first_present(
            pick_first(config, ("options", "choices")),
            pick_first(candidate, ("options", "choices")),
        )
    )
    options = unique_strings(slot for slot in slots if slot is not None)

    correct_indices: list[int] = []
    raw_indices = pick_first(answer_data, ("correctIndices", "indices"))
    for value in raw_indices if isinstance(raw_indices, list) else []:
        number = to_number(value)
        if number is None:
            continue
        index = _remap_deduplicated_index(round_half_up(number), slots, options)
        if index is not None and 0 <= index < len(options) and index not in correct_indices:
            correct_indices.append(index)

    if not correct_indices:
        for answer in to_string_array(answer_data.get("correctAnswers")):
            index = _option_index(options, answer)
            if index is not None and index not in correct_indices:
                correct_indices.append(index)

    min_selections = to_number(config.get("minSelections"))
    max_selections = to_number(config.get("maxSelections"))
    return (
        MultiSelectConfig(
            options=options,
            shuffle_options=to_boolean(config.get("shuffleOptions")),
            min_selections=(
                max(0, round_half_up(min_selections)) if min_selections is not None else None
            ),
            max_selections=(
                max(1, round_half_up(max_selections)) if max_selections is not None else None
            ),
        ),
        MultiSelectAnswer(correct_indices=correct_indices),
    )


VARIANTS: dict[QuestionType, tuple[type[QuestionBase], VariantNormalizer]] = {
    QuestionType.MULTIPLE_CHOICE: (MultipleChoiceQuestion, _normalize_multiple_choice),
    QuestionType.TRUE_FALSE: (TrueFalseQuestion, _normalize_true_false),
    QuestionType.TEXT_INPUT: (TextInputQuestion, _normalize_text_input),
    QuestionType.YEAR_RANGE: (YearRangeQuestion, _normalize_year_range),
    QuestionType.NUMERIC_RANGE: (NumericRangeQuestion, _normalize_numeric_range),
    QuestionType.MATCHING: (MatchingQuestion, _normalize_matching),
    QuestionType.FILL_BLANK: (FillBlankQuestion, _normalize_fill_blank),
    QuestionType.MULTI_SELECT: (MultiSelectQuestion, _normalize_multi_select),
}

_uncovered = set(QuestionType) - set(VARIANTS)
if _uncovered:
    raise RuntimeError(f"question types without a normalizer: {sorted(_uncovered)}")


def normalize_question(candidate: Any) -> NormalizedQuestion | None:
    """Normalize one candidate record; ``None`` only when it has no question text."""

    payload = as_mapping(candidate)
    question = unwrap_text(pick_first(payload, QUESTION_TEXT_KEYS))
    if not question:
        return None

    question_type = normalize_question_type(pick_first(payload, QUESTION_TYPE_KEYS))
    config = as_mapping(pick_first(payload, QUESTION_CONFIG_KEYS))
    answer_data = as_mapping(pick_first(payload, ANSWER_DATA_KEYS))
    points = normalize_points(payload.get("points"))
    explanation = to_text(payload.get("explanation")) or ""

    variant = VARIANTS.get(question_type)
    if variant is None:
        return CustomQuestion(
            question=question,
            question_type=str(question_type),
            question_config=dict(config),
            correct_answer_data=dict(answer_data) or None,
            points=points,
            explanation=explanation,
        )

    model_cls, normalizer = variant
    question_config, correct_answer_data = normalizer(config, answer_data, payload)
    return model_cls(
        question=question,
        question_config=question_config,
        correct_answer_data=correct_answer_data,
        points=points,
        explanation=explanation,
    )


def normalize_questions(candidates: Iterable[Any]) -> list[NormalizedQuestion]:
    """Normalize candidates item-by-item, keeping source order."""

    questions: list[NormalizedQuestion] = []
    for position, candidate in enumerate(candidates):
        try:
            normalized = normalize_question(candidate)
        except ValidationError as exc:
            logger.warning(
                "question candidate failed validation after repair",
                extra={"position": position, "errors": exc.error_count()},
            )
            continue
        if normalized is not None:
            questions.append(normalized)
    return questions
