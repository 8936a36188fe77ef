"""
Quizzes API: generate from course materials, list, get, submit answers (graded), export .docx.
All scoped by current user id. Pipeline failures map to HTTP errors whose detail names the failed stage.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import PersistenceError, QuizPipelineError
from app.models.quiz import Quiz
from app.models.user import User
from app.schemas.quiz import (
    QuestionResult,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizListResponse,
    QuizQuestion,
    QuizResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
)
from app.api.deps import get_current_user, get_quiz_generation_service, pipeline_http_error
from app.services.export_docx import build_quiz_docx
from app.services.grading import grade_answers
from app.services.quiz_generation_service import GenerationResult, QuizGenerationService
from app.services.repositories import QuizRepository

router = APIRouter(prefix="/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _quiz_to_response(q: Quiz) -> QuizResponse:
    return QuizResponse(
        id=str(q.id),
        user_id=str(q.user_id),
        course_id=str(q.course_id) if q.course_id else None,
        title=q.title,
        questions=[QuizQuestion(**item) for item in q.questions or []],
        created_at=q.created_at,
    )


def _result_to_response(result: GenerationResult, user: User) -> QuizGenerateResponse:
    if result.saved:
        quiz = _quiz_to_response(result.quiz)
        message = "Quiz generated successfully"
    else:
        quiz = QuizResponse(
            user_id=str(user.id),
            course_id=str(result.course_id) if result.course_id else None,
            title=result.title,
            questions=result.questions,
        )
        message = "Quiz generated but could not be saved"
    return QuizGenerateResponse(
        message=message,
        quiz=quiz,
        warnings=result.warnings,
        saved=result.saved,
        persistence_error=result.persistence_error,
    )


def _get_quiz_or_404(db: Session, quiz_id: uuid.UUID, user: User) -> Quiz:
    quiz = QuizRepository(db).get_quiz(quiz_id, user.id)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


@router.post("/generate", response_model=QuizGenerateResponse, status_code=status.HTTP_201_CREATED)
def generate_quiz(
    data: QuizGenerateRequest,
    current_user: User = Depends(get_current_user),
    service: QuizGenerationService = Depends(get_quiz_generation_service),
):
    """
    Generate a 10-question quiz from the given course materials (processed in the given order).
    201 when saved; 200 with saved=false and persistence_error when generation succeeded but saving failed.
    """
    logger.info(
        "POST /quizzes/generate user_id=%s course_id=%s materials=%s",
        current_user.id, data.course_id, len(data.material_ids or []),
    )
    try:
        result = service.generate(current_user.id, data.course_id, data.material_ids)
    except QuizPipelineError as e:
        logger.warning("Quiz generation failed at %s: %s", e.stage, e.message)
        raise pipeline_http_error(e) from e

    body = _result_to_response(result, current_user)
    if not result.saved:
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))
    logger.info("Quiz generated id=%s warnings=%s", result.quiz.id, len(result.warnings))
    return body


@router.get("", response_model=QuizListResponse)
def list_quizzes(
    course_id: uuid.UUID | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, total = QuizRepository(db).list_quizzes(current_user.id, course_id=course_id, limit=limit, offset=offset)
    return QuizListResponse(items=[_quiz_to_response(q) for q in items], total=total)


@router.get("/{quiz_id}", response_model=QuizResponse)
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _quiz_to_response(_get_quiz_or_404(db, quiz_id, current_user))


@router.post("/{quiz_id}/submit", response_model=QuizSubmitResponse)
def submit_quiz(
    quiz_id: uuid.UUID,
    data: QuizSubmitRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Grade answers (one option index per question). The whole array is validated before scoring."""
    quiz = _get_quiz_or_404(db, quiz_id, current_user)
    try:
        graded = grade_answers(quiz.questions or [], data.answers)
    except QuizPipelineError as e:
        raise pipeline_http_error(e) from e

    attempt_id = None
    try:
        attempt = QuizRepository(db).create_attempt(
            current_user.id,
            quiz.id,
            score=graded["score"],
            total=graded["total"],
            percentage=graded["percentage"],
            answers=data.answers,
            results=graded["results"],
        )
        attempt_id = str(attempt.id)
    except PersistenceError as e:
        logger.error("Could not store attempt for quiz %s: %s", quiz.id, e.message)

    return QuizSubmitResponse(
        score=graded["score"],
        total=graded["total"],
        percentage=graded["percentage"],
        results=[QuestionResult(**r) for r in graded["results"]],
        attempt_id=attempt_id,
    )


@router.post("/{quiz_id}/export")
def export_quiz_docx(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Export quiz to .docx: questions, answer key, explanations."""
    quiz = _get_quiz_or_404(db, quiz_id, current_user)
    buf = build_quiz_docx(quiz)
    return StreamingResponse(
        buf,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=quiz-{quiz_id}.docx"},
    )
