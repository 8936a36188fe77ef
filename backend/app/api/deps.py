"""
Shared dependencies: current user from Bearer token, repositories, storage, generation service.
Routes depend on these so tests can swap any of them through app.dependency_overrides.
"""
import logging
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import ConfigurationError, QuizPipelineError
from app.llm import get_generation_client
from app.models.user import User
from app.services.auth import decode_access_token
from app.services.quiz_generation_service import QuizGenerationService
from app.services.repositories import CourseRepository, MaterialRepository, QuizRepository
from app.services.storage import LocalStorage

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Require valid Bearer token; return User or 401."""
    if not credentials or not (credentials.credentials or "").strip():
        logger.debug("Auth failed: no Bearer token in request")
        raise _unauthorized("Not authenticated. Send header: Authorization: Bearer <token>")
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        logger.debug("Auth failed: invalid or expired token")
        raise _unauthorized("Invalid or expired token")
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise _unauthorized("Invalid or expired token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthorized("User not found")
    return user


def pipeline_http_error(e: QuizPipelineError) -> HTTPException:
    """HTTP error whose detail names the failed stage, the reason, and any per-material warnings."""
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def get_storage() -> LocalStorage:
    return LocalStorage(settings.upload_dir)


def get_quiz_generation_service(
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
) -> QuizGenerationService:
    """Build the pipeline for one request. Missing API key fails here, before the body is looked at."""
    try:
        client = get_generation_client(settings)
    except ConfigurationError as e:
        logger.error("Quiz generation requested but %s", e.message)
        raise pipeline_http_error(e) from e
    return QuizGenerationService(
        courses=CourseRepository(db),
        materials=MaterialRepository(db),
        quizzes=QuizRepository(db),
        storage=storage,
        client=client,
        max_input_tokens=settings.max_input_tokens,
    )
