"""
Parse and validate raw generation output into exactly 10 QuizQuestion objects.
The output is untrusted: each element is checked field by field and the first failure is reported
with its 1-based position. Pure; no I/O.
"""
import json
import logging
import re
from typing import Any

import json_repair

from app.errors import MalformedResponseError, ResponseValidationError
from app.schemas.quiz import QuizQuestion
from app.services.prompt_helpers import OPTIONS_PER_QUESTION, QUESTIONS_PER_QUIZ

logger = logging.getLogger(__name__)

# ```json ... ``` or ``` ... ```; language tag optional
_CODE_FENCE_RE = re.compile(r"```[\w+-]*\s*(.*?)\s*```", re.DOTALL)
_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

RAW_LOG_SAMPLE = 500


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.search(text)
    return match.group(1).strip() if match else text


def _load_candidate(raw: str) -> Any:
    """
    Fence stripped; if what remains is not a bare array, the first [...] span is the candidate.
    Candidates that are not strict JSON go through json_repair (trailing commas, unescaped quotes);
    anything but a non-empty list from the repair re-raises the original error.
    """
    text = _strip_code_fence(raw.strip())
    if not (text.startswith("[") and text.endswith("]")):
        match = _JSON_ARRAY_RE.search(text)
        if match:
            text = match.group(0)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        repaired = json_repair.loads(text)
        if isinstance(repaired, list) and repaired:
            logger.info("Quiz response was not strict JSON; parsed after repair")
            return repaired
        raise


def _coerce_correct(value: Any) -> int | None:
    """Index as int; numeric strings and integral floats are accepted. None when not an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            return None
        return int(f) if f.is_integer() else None
    return None


def _is_filled_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_question(item: Any, position: int) -> QuizQuestion:
    def fail(field: str, message: str) -> ResponseValidationError:
        return ResponseValidationError(f"Question {position} {message}", question_index=position, field=field)

    if not isinstance(item, dict):
        raise fail("question", "must be an object")
    if not _is_filled_string(item.get("question")):
        raise fail("question", "is missing or invalid 'question' field")

    options = item.get("options")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        raise fail("options", f"must have exactly {OPTIONS_PER_QUESTION} options")
    if not all(isinstance(o, str) for o in options):
        raise fail("options", "options must all be strings")
    if not all(o.strip() for o in options):
        raise fail("options", "options must not be empty")

    correct = _coerce_correct(item.get("correct"))
    if correct is None or not 0 <= correct < OPTIONS_PER_QUESTION:
        raise fail("correct", f"must have 'correct' as a number between 0 and {OPTIONS_PER_QUESTION - 1}")

    if not _is_filled_string(item.get("explanation")):
        raise fail("explanation", "is missing or invalid 'explanation' field")

    return QuizQuestion(
        question=item["question"].strip(),
        options=[o.strip() for o in options],
        correct=correct,
        explanation=item["explanation"].strip(),
    )


def parse_quiz_response(raw: str) -> list[QuizQuestion]:
    """
    Turn the model's free-form text into validated questions.
    Raises MalformedResponseError when no JSON array can be parsed,
    ResponseValidationError for the first invalid question or a count other than 10.
    """
    try:
        data = _load_candidate(raw or "")
    except json.JSONDecodeError as e:
        logger.warning("Quiz response is not valid JSON: %s. raw (first %s chars): %s", e, RAW_LOG_SAMPLE, (raw or "")[:RAW_LOG_SAMPLE])
        raise MalformedResponseError(f"Failed to parse AI response: {e}") from e

    if not isinstance(data, list):
        raise MalformedResponseError("AI response is not an array")

    questions = [_validate_question(item, i + 1) for i, item in enumerate(data)]

    if len(questions) != QUESTIONS_PER_QUIZ:
        raise ResponseValidationError(
            f"Expected exactly {QUESTIONS_PER_QUIZ} questions, but got {len(questions)}",
            field="questions",
        )
    return questions
