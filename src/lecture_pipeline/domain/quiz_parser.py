"""Extraction and validation of quiz questions from free-form model output."""

import json
import re
from typing import Any

from pydantic import ValidationError

from lecture_pipeline.exceptions import ParseError, QuestionValidationError
from lecture_pipeline.logging import setup_logging

from .models import QuizQuestion

logger = setup_logging(__name__)

MIN_QUESTION_LENGTH = 10
DEFAULT_EXPLANATION = "No explanation provided."
_DIFFICULTIES = ("easy", "medium", "hard")
_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def parse_quiz_response(text: str, default_points: int = 10) -> list[QuizQuestion]:
    """
    Parses model output into validated quiz questions.

    Each element of the extracted array is validated on its own; elements
    that fail are dropped, and the survivors are numbered 1..N.

    Args:
        text: Raw model response, possibly wrapped in prose or code fences.
        default_points: Point value for questions that omit one.

    Returns:
        The non-empty list of valid questions.

    Raises:
        ParseError: If no JSON array is found or no element survives.
    """
    items = extract_json_array(text)

    questions: list[QuizQuestion] = []
    for index, item in enumerate(items):
        try:
            questions.append(
                validate_question(item, len(questions) + 1, default_points)
            )
        except QuestionValidationError as e:
            logger.warning(
                "Dropping invalid question",
                extra={"index": index, "reason": e.reason},
            )

    if not questions:
        raise ParseError("No valid questions in model response")

    logger.info(
        "Quiz response parsed",
        extra={"received": len(items), "valid": len(questions)},
    )
    return questions


def extract_json_array(text: str) -> list[Any]:
    """
    Finds the first JSON array in `text` and decodes it.

    Arrays that contain objects win over arrays of scalars, so a bracketed
    aside in the surrounding prose does not hide the real payload.

    Raises:
        ParseError: If no decodable array exists.
    """
    cleaned = _CODE_FENCE.sub("", text or "")
    decoder = json.JSONDecoder()
    first_array: list[Any] | None = None

    for match in re.finditer(r"\[", cleaned):
        try:
            value, _ = decoder.raw_decode(cleaned, match.start())
        except json.JSONDecodeError:
            continue
        if not isinstance(value, list):
            continue
        if any(isinstance(item, dict) for item in value):
            return value
        if first_array is None:
            first_array = value

    if first_array is not None:
        return first_array
    raise ParseError("No JSON array found in model response")


def validate_question(item: Any, position: int, default_points: int = 10) -> QuizQuestion:
    """
    Validates one parsed element and builds a `QuizQuestion`.

    Question text and option count are hard requirements. `correct` must be an
    integer and is clamped into [0, 3]; an unknown difficulty becomes
    `medium` and a missing point value becomes `default_points`.

    Raises:
        QuestionValidationError: If a hard requirement fails.
    """
    if not isinstance(item, dict):
        raise QuestionValidationError("element is not an object")

    question = item.get("question")
    if not isinstance(question, str) or len(question.strip()) <= MIN_QUESTION_LENGTH:
        raise QuestionValidationError("question text missing or too short")

    options = item.get("options")
    if not isinstance(options, list) or len(options) != 4:
        raise QuestionValidationError("options must be a list of exactly 4 entries")
    if not all(isinstance(opt, str) and opt.strip() for opt in options):
        raise QuestionValidationError("options must be non-empty strings")

    correct = _as_int(item.get("correct"))
    if correct is None:
        raise QuestionValidationError("correct index is not an integer")

    explanation = item.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        explanation = DEFAULT_EXPLANATION

    difficulty = item.get("difficulty")
    if isinstance(difficulty, str):
        difficulty = difficulty.strip().lower()
    if difficulty not in _DIFFICULTIES:
        difficulty = "medium"

    points = _as_int(item.get("points"))
    if points is None or points <= 0:
        points = default_points

    try:
        return QuizQuestion(
            question=question.strip(),
            options=tuple(opt.strip() for opt in options),
            correct=max(0, min(3, correct)),
            explanation=explanation.strip(),
            difficulty=difficulty,
            points=points,
            position=position,
        )
    except ValidationError as e:
        raise QuestionValidationError(str(e)) from e


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
