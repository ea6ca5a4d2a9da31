"""Domain enumerations."""

from enum import StrEnum


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    TEXT_INPUT = "text_input"
    YEAR_RANGE = "year_range"
    NUMERIC_RANGE = "numeric_range"
    MATCHING = "matching"
    FILL_BLANK = "fill_blank"
    MULTI_SELECT = "multi_select"


class ContentKind(StrEnum):
    SUMMARY = "summary"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    EXTENDED_QUIZ = "extended_quiz"
    LESSON = "lesson"
    LESSON_STEP = "lesson_step"


class ToleranceType(StrEnum):
    ABSOLUTE = "absolute"
    PERCENTAGE = "percentage"


class QuestionMix(StrEnum):
    """Type filters that ask for a variety of question types."""

    ALL = "all"
    MIXED = "mixed"


class LessonStepType(StrEnum):
    EXPLANATION = "explanation"
    CONCEPT = "concept"
    REVEAL = "reveal"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    DRAG_SORT = "drag_sort"
    DRAG_MATCH = "drag_match"
    DRAG_CATEGORIZE = "drag_categorize"
    FILL_BLANKS = "fill_blanks"
    TYPE_ANSWER = "type_answer"
    SELECT_MANY = "select_many"
