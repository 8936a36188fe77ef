"""
Score a submitted answers array against a stored quiz.
The whole array is checked (length, then every index) before anything is scored.
"""
from app.errors import ValidationError


def _answer_index(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def grade_answers(questions: list[dict], answers) -> dict:
    """
    questions: stored question dicts ({question, options, correct, explanation}).
    answers: one option index per question, in question order.
    Returns {score, total, percentage, results}; percentage rounded to 2 decimals.
    """
    if not isinstance(answers, list):
        raise ValidationError("answers must be an array", stage="grading")
    if len(answers) != len(questions):
        raise ValidationError(
            f"Number of answers ({len(answers)}) does not match number of questions ({len(questions)})",
            stage="grading",
        )

    selected = []
    for i, (answer, q) in enumerate(zip(answers, questions)):
        idx = _answer_index(answer)
        if idx is None or not 0 <= idx < len(q.get("options") or []):
            raise ValidationError(f"Invalid answer index {answer} for question {i + 1}", stage="grading")
        selected.append(idx)

    results = []
    for i, (idx, q) in enumerate(zip(selected, questions)):
        correct = q.get("correct")
        results.append({
            "question_index": i,
            "selected": idx,
            "correct": correct,
            "is_correct": idx == correct,
            "explanation": q.get("explanation") or "",
        })

    total = len(questions)
    score = sum(1 for r in results if r["is_correct"])
    percentage = round(score / total * 100, 2) if total else 0.0
    return {"score": score, "total": total, "percentage": percentage, "results": results}
