"""
Repositories over a SQLAlchemy Session: courses, materials + extracted text, quizzes + attempts.
Lookups return None when the row does not exist or belongs to someone else; writes raise PersistenceError.
"""
import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import PersistenceError
from app.models.course import Course
from app.models.course_material import CourseMaterial
from app.models.extracted_text import ExtractedText
from app.models.quiz import Quiz, QuizAttempt
from app.schemas.quiz import QuizQuestion
from app.services.text_extraction import EXTRACTION_METHODS, count_words

logger = logging.getLogger(__name__)


def as_uuid(value) -> uuid.UUID | None:
    """Parse a UUID from str/UUID; None for anything malformed (treated as not found)."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class CourseRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_course(self, course_id, owner_id) -> Course | None:
        cid = as_uuid(course_id)
        if cid is None:
            return None
        return self.db.query(Course).filter(Course.id == cid, Course.user_id == owner_id).first()

    def list_courses(self, owner_id) -> list[Course]:
        return self.db.query(Course).filter(Course.user_id == owner_id).order_by(Course.created_at.desc()).all()

    def create_course(self, owner_id, name: str) -> Course:
        course = Course(user_id=owner_id, name=name)
        self.db.add(course)
        self.db.commit()
        self.db.refresh(course)
        return course


class MaterialRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_material(self, material_id, owner_id) -> CourseMaterial | None:
        mid = as_uuid(material_id)
        if mid is None:
            return None
        return self.db.query(CourseMaterial).filter(
            CourseMaterial.id == mid,
            CourseMaterial.user_id == owner_id,
        ).first()

    def list_course_materials(self, course_id, owner_id) -> list[CourseMaterial]:
        return (
            self.db.query(CourseMaterial)
            .filter(CourseMaterial.course_id == course_id, CourseMaterial.user_id == owner_id)
            .order_by(CourseMaterial.created_at.desc())
            .all()
        )

    def create_material(self, owner_id, course_id, *, filename: str, original_filename: str | None,
                        file_path: str, mime_type: str | None, file_size_bytes: int) -> CourseMaterial:
        material = CourseMaterial(
            user_id=owner_id,
            course_id=course_id,
            filename=filename,
            original_filename=original_filename,
            file_path=file_path,
            mime_type=mime_type,
            file_size_bytes=file_size_bytes,
        )
        self.db.add(material)
        self.db.commit()
        self.db.refresh(material)
        return material

    def get_extracted_text(self, material_id, owner_id) -> ExtractedText | None:
        mid = as_uuid(material_id)
        if mid is None:
            return None
        return self.db.query(ExtractedText).filter(
            ExtractedText.course_material_id == mid,
            ExtractedText.user_id == owner_id,
        ).first()

    def create_extracted_text(self, material_id, owner_id, text: str, method: str) -> ExtractedText:
        """
        Insert the ExtractedText row for a material. If another request already inserted one
        (unique course_material_id), that row is returned unchanged.
        """
        if method not in EXTRACTION_METHODS:
            raise ValueError(f"Unknown extraction method: {method}")
        if not text:
            raise ValueError("text is required")
        row = ExtractedText(
            course_material_id=as_uuid(material_id),
            user_id=owner_id,
            extracted_text=text,
            text_length=len(text),
            word_count=count_words(text),
            extraction_method=method,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            existing = self.get_extracted_text(material_id, owner_id)
            if existing is not None:
                logger.info("ExtractedText for material %s already exists; keeping the first one", material_id)
                return existing
            raise PersistenceError(f"Failed to store extracted text: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to store extracted text: {e}") from e
        self.db.refresh(row)
        return row


class QuizRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_quiz(self, owner_id, title: str, questions: list[QuizQuestion], course_id=None) -> Quiz:
        if not title or not questions:
            raise PersistenceError("Missing required fields: title and questions are required")
        quiz = Quiz(
            user_id=owner_id,
            course_id=as_uuid(course_id) if course_id else None,
            title=title,
            questions=[q.model_dump() for q in questions],
        )
        try:
            self.db.add(quiz)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to create quiz: {e}") from e
        self.db.refresh(quiz)
        return quiz

    def get_quiz(self, quiz_id, owner_id) -> Quiz | None:
        qid = as_uuid(quiz_id)
        if qid is None:
            return None
        return self.db.query(Quiz).filter(Quiz.id == qid, Quiz.user_id == owner_id).first()

    def list_quizzes(self, owner_id, course_id=None, limit: int = 20, offset: int = 0) -> tuple[list[Quiz], int]:
        q = self.db.query(Quiz).filter(Quiz.user_id == owner_id)
        if course_id is not None:
            q = q.filter(Quiz.course_id == course_id)
        total = q.count()
        items = q.order_by(Quiz.created_at.desc()).offset(offset).limit(limit).all()
        return items, total

    def create_attempt(self, owner_id, quiz_id, *, score: int, total: int, percentage: float,
                       answers: list, results: list[dict]) -> QuizAttempt:
        attempt = QuizAttempt(
            user_id=owner_id,
            quiz_id=quiz_id,
            score=score,
            total_questions=total,
            percentage=percentage,
            answers=answers,
            results=results,
        )
        try:
            self.db.add(attempt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to create quiz attempt: {e}") from e
        self.db.refresh(attempt)
        return attempt
