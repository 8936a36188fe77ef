"""
Quiz request/response schemas.
QuizQuestion is the validated shape; raw model output only becomes one via app.services.quiz_parser.
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator


class QuizQuestion(BaseModel):
    question: str
    options: list[str]  # exactly 4
    correct: int  # 0-3, index into options
    explanation: str


class QuizGenerateRequest(BaseModel):
    course_id: str | None = None
    material_ids: list[str] | None = None


class QuizResponse(BaseModel):
    id: str | None = None  # None when generated but not saved
    user_id: str
    course_id: str | None = None
    title: str
    questions: list[QuizQuestion]
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class QuizGenerateResponse(BaseModel):
    success: bool = True
    message: str = "Quiz generated successfully"
    quiz: QuizResponse
    warnings: list[str] = []
    saved: bool = True
    persistence_error: str | None = None


class QuizListResponse(BaseModel):
    items: list[QuizResponse]
    total: int


class QuizSubmitRequest(BaseModel):
    answers: Any = None  # validated in app.services.grading so the error says which answer is wrong


class QuestionResult(BaseModel):
    question_index: int
    selected: int
    correct: int
    is_correct: bool
    explanation: str


class QuizSubmitResponse(BaseModel):
    success: bool = True
    score: int
    total: int
    percentage: float
    results: list[QuestionResult]
    attempt_id: str | None = None

    @field_validator("percentage")
    @classmethod
    def percentage_range(cls, v: float) -> float:
        if v < 0 or v > 100:
            raise ValueError("percentage must be between 0 and 100")
        return v
