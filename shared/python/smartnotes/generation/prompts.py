"""Prompts sent to the generator for each content kind."""

from __future__ import annotations

from textwrap import dedent
from typing import Sequence

from smartnotes.enums import QuestionMix

LANGUAGE_NAMES: dict[str, str] = {"en": "English", "hu": "Hungarian"}
DEFAULT_LANGUAGE = "English"

SUMMARY_SYSTEM_PROMPT = dedent(
    """
    You are an expert educator. Generate a clear, well-organized summary of the provided content.
    Focus on key concepts, main ideas, and important details.
    Use markdown formatting for better readability (headings, bullet points, etc.).
    Keep the summary concise but comprehensive.
    """
).strip()

FLASHCARD_SYSTEM_PROMPT = dedent(
    """
    You are an expert educator creating flashcards for spaced repetition learning.
    Generate flashcards that test understanding of key concepts.
    Each flashcard should have:
    - A clear, specific question or prompt on the front
    - A concise, accurate answer on the back
    Make sure the questions vary in difficulty and cover different aspects of the material.
    Return a JSON object with a "flashcards" array of objects containing "front" and "back" fields.
    """
).strip()

FLASHCARD_STRICT_SYSTEM_PROMPT = dedent(
    """
    You create study flashcards.
    Return ONLY a JSON object of exactly this shape, with no prose and no markdown:
    {"flashcards": [{"front": "question or term", "back": "answer or definition"}]}
    Both "front" and "back" must be non-empty strings.
    """
).strip()

QUIZ_SYSTEM_PROMPT = dedent(
    """
    You are an expert educator creating multiple-choice quiz questions.
    Generate questions that test understanding, not just memorization.
    Each question should have:
    - A clear question
    - 4 answer options (one correct, three plausible distractors)
    - An explanation of why the correct answer is right
    Return a JSON object with a "questions" array of objects containing:
    - "question": the question text
    - "options": array of 4 answer strings
    - "correctAnswer": index (0-3) of the correct option
    - "explanation": brief explanation of the answer
    """
).strip()

EXTENDED_QUIZ_SYSTEM_PROMPT = dedent(
    """
    You are an expert educator creating diverse quiz questions.
    Generate questions that test understanding using various question types.

    Available question types:
    1. multiple_choice - Traditional multiple choice with 4 options
    2. true_false - Binary true/false questions
    3. text_input - Free text answers with keywords to match
    4. year_range - Questions asking for a year (with tolerance for partial credit)
    5. numeric_range - Questions asking for a number (with tolerance)
    6. matching - Match items from two columns
    7. fill_blank - Complete sentences with missing words
    8. multi_select - Select ALL correct answers from options

    Return a JSON object with "questions" array. Each question object MUST have:
    - "question": the question text
    - "questionType": one of the types above
    - "questionConfig": type-specific configuration
    - "correctAnswerData": the correct answer(s)
    - "points": point value (1-3 based on difficulty)
    - "explanation": brief explanation

    Type-specific formats:

    multiple_choice:
      questionConfig: { options: ["A", "B", "C", "D"], shuffleOptions: true }
      correctAnswerData: { correctIndex: 0 }

    true_false:
      questionConfig: { trueLabel: "True", falseLabel: "False" }
      correctAnswerData: { correctValue: true }

    text_input:
      questionConfig: { caseSensitive: false, acceptedKeywords: ["keyword1", "keyword2"] }
      correctAnswerData: { acceptedAnswers: ["correct answer"], keywords: ["key", "words"] }

    year_range:
      questionConfig: { minYear: 1900, maxYear: 2024, tolerance: 5 }
      correctAnswerData: { correctYear: 1969 }

    numeric_range:
      questionConfig: { min: 0, max: 1000, tolerance: 10, toleranceType: "percentage", unit: "km" }
      correctAnswerData: { correctValue: 384400 }

    matching:
      questionConfig: { leftColumn: ["Term1", "Term2"], rightColumn: ["Def1", "Def2"], shuffleRight: true }
      correctAnswerData: { correctPairs: [[0, 0], [1, 1]] }

    fill_blank:
      question: "Fill in the blank to complete the sentence:"
      questionConfig: { template: "The {{blank_0}} is the capital of France.", blanks: [{ id: "blank_0", acceptedAnswers: ["Paris", "paris"] }], caseSensitive: false }
      correctAnswerData: { blanks: { "blank_0": ["Paris", "paris"] } }
      NOTE: Use {{id}} placeholders in the template, NOT ___ or other formats. The question field holds the instructions; the template goes in questionConfig.

    multi_select:
      questionConfig: { options: ["A", "B", "C", "D"], minSelections: 1, maxSelections: 4 }
      correctAnswerData: { correctIndices: [0, 2] }
    """
).strip()

MIXED_TYPES_INSTRUCTION = dedent(
    """
    Use a VARIETY of question types to make the quiz engaging. Include at least 3 different types.
    Aim for this distribution:
    - 30% multiple_choice
    - 15% true_false
    - 15% text_input or fill_blank
    - 15% numeric_range or year_range (if content contains numbers/dates)
    - 15% matching (if content has related concepts)
    - 10% multi_select
    """
).strip()


LESSON_SYSTEM_PROMPT = dedent(
    """
    You are an expert instructional designer creating interactive lessons.
    Generate a structured lesson with a mix of content and interactive steps.

    Step types available:
    - explanation: Rich markdown content. content: { type: "explanation", markdown: "..." }
    - concept: Key concept highlight. content: { type: "concept", title: "...", description: "...", highlightStyle: "info"|"warning"|"success"|"default" }
    - multiple_choice: 2-4 options. content: { type: "multiple_choice", question: "...", options: [{ id: "a", text: "...", explanation: "..." }] }. answerData: { correctOptionId: "a" }
    - true_false: Statement. content: { type: "true_false", statement: "...", trueExplanation: "...", falseExplanation: "..." }. answerData: { correctValue: true }
    - drag_sort: Order items. content: { type: "drag_sort", instruction: "...", items: [{ id: "1", text: "..." }] }. answerData: { correctOrder: ["1", "2", "3"] }
    - drag_match: Match pairs. content: { type: "drag_match", instruction: "...", pairs: [{ id: "1", left: "...", right: "..." }] }. answerData: { correctPairs: { "1": "right text" } }
    - drag_categorize: Sort into categories. content: { type: "drag_categorize", instruction: "...", categories: [{ id: "cat1", name: "..." }], items: [{ id: "1", text: "...", categoryId: "cat1" }] }. answerData: { correctMapping: { "1": "cat1" } }
    - fill_blanks: Fill blanks in a template. content: { type: "fill_blanks", template: "The {{b1}} is ...", blanks: [{ id: "b1", acceptedAnswers: ["answer"] }] }. answerData: { correctBlanks: { "b1": ["answer"] } }
    - type_answer: Free text. content: { type: "type_answer", question: "..." }. answerData: { acceptedAnswers: ["answer"] }
    - select_many: Select all correct. content: { type: "select_many", question: "...", options: [{ id: "a", text: "..." }] }. answerData: { correctOptionIds: ["a", "c"] }
    - reveal: Progressive disclosure. content: { type: "reveal", title: "...", steps: [{ id: "1", content: "..." }] }. answerData: null

    Guidelines:
    - Start with an explanation or concept step
    - Alternate between content and interactive steps
    - Build difficulty progressively
    - Use at least 4 different step types
    - Provide explanations and hints for interactive steps
    - End with a challenging question or summary concept
    - About 40% content steps, 60% interactive steps

    Return JSON: { "title": "...", "description": "...", "steps": [{ "stepType": "...", "content": {...}, "answerData": {...} or null, "explanation": "..." or null, "hint": "..." or null }] }
    """
).strip()

LESSON_IMPROVE_SYSTEM_PROMPT = dedent(
    """
    You are an expert instructional designer. Improve the given lesson step to be more
    engaging, clear and educationally effective. Keep the same step type and structure,
    but enhance the content quality. Return the improved step in the same JSON format.
    """
).strip()

LESSON_FLASHCARD_CONTEXT_LIMIT = 10
LESSON_QUESTION_CONTEXT_LIMIT = 5
IMPROVE_SOURCE_CONTEXT_CHARS = 2000


def language_instruction(locale: str | None) -> str:
    """One-line directive appended to every system prompt."""

    language = LANGUAGE_NAMES.get((locale or "").strip().lower(), DEFAULT_LANGUAGE)
    return f"\nIMPORTANT: Generate ALL content in {language}."


def question_type_instruction(question_types: str) -> str:
    if question_types in {QuestionMix.ALL, QuestionMix.MIXED}:
        return MIXED_TYPES_INSTRUCTION
    return f'Generate ONLY "{question_types}" type questions.'


def build_summary_prompt(content: str) -> str:
    return f"Please summarize the following content:\n\n{content}"


def build_flashcard_prompt(content: str, count: int) -> str:
    return (
        f"Generate {count} flashcards from the following content. "
        f"Return ONLY JSON, no other text:\n\n{content}"
    )


def build_quiz_prompt(content: str, count: int) -> str:
    return (
        f"Generate {count} multiple-choice quiz questions from the following content. "
        f"Return ONLY JSON, no other text:\n\n{content}"
    )


def build_extended_quiz_prompt(content: str, count: int, question_types: str) -> str:
    return dedent(
        """
        Generate {count} quiz questions from the following content.

        {type_instruction}

        Important:
        - Questions should test understanding, not just memorization
        - Vary difficulty (mix of easy, medium, hard questions)
        - Assign points based on difficulty (1=easy, 2=medium, 3=hard)
        - Provide clear explanations for each answer
        - For matching questions, use 3-5 pairs maximum
        - For fill_blank, use 1-2 blanks per question

        Content to generate questions from:
        """
    ).strip().format(
        count=count, type_instruction=question_type_instruction(question_types)
    ) + f"\n{content}"


def build_lesson_prompt(
    content: str,
    step_count: int,
    *,
    title: str | None = None,
    flashcards: Sequence[tuple[str, str]] = (),
    quiz_questions: Sequence[str] = (),
) -> str:
    context = f"Source material:\n{content}"
    if flashcards:
        lines = "\n".join(
            f"Q: {front} A: {back}" for front, back in flashcards[:LESSON_FLASHCARD_CONTEXT_LIMIT]
        )
        context += f"\n\nExisting flashcards for reference (use these concepts):\n{lines}"
    if quiz_questions:
        lines = "\n".join(quiz_questions[:LESSON_QUESTION_CONTEXT_LIMIT])
        context += f"\n\nExisting quiz questions for reference:\n{lines}"

    title_hint = f' Lesson title: "{title}"' if title else ""
    return (
        f"Create a lesson with approximately {step_count} steps from this material.{title_hint}\n\n"
        "Also provide a title and short description for the lesson.\n\n"
        'Return JSON: { "title": "...", "description": "...", "steps": [...] }\n\n'
        f"{context}"
    )


def build_improve_step_prompt(step_json: str, content: str | None = None) -> str:
    prompt = f"Improve this lesson step:\n{step_json}"
    if content:
        prompt += (
            "\n\nOriginal source material for context:\n"
            f"{content[:IMPROVE_SOURCE_CONTEXT_CHARS]}"
        )
    return prompt + "\n\nReturn the improved step as JSON with the same structure."
