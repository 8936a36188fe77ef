"""
Quiz generation pipeline: materials -> extracted text -> first token-bounded chunk -> prompt
-> generation service -> validated 10 questions -> persisted quiz.

Materials are processed sequentially in caller order. A material that cannot be resolved or extracted
becomes a warning and the batch continues; only when every material fails does the request fail.
Collaborators (course/material/quiz stores, document storage, generation client) are injected.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Protocol

from app.errors import (
    ExtractionError,
    NoUsableContentError,
    NotFoundError,
    PersistenceError,
    QuizPipelineError,
    ValidationError,
)
from app.llm.base import GenerationClient
from app.schemas.quiz import QuizQuestion
from app.services.chunking_service import DEFAULT_MAX_TOKENS, chunk_text
from app.services.prompt_helpers import build_quiz_prompt
from app.services.quiz_parser import parse_quiz_response
from app.services.storage import cleanup_file
from app.services.text_extraction import ExtractionResult, extract_text

logger = logging.getLogger(__name__)

# Separates materials in the combined text; also a paragraph boundary for the chunker.
MATERIAL_DELIMITER = "\n\n---\n\n"
TITLE_MAX_NAMES = 3


class CourseStore(Protocol):
    def get_course(self, course_id, owner_id): ...


class MaterialStore(Protocol):
    def get_material(self, material_id, owner_id): ...

    def get_extracted_text(self, material_id, owner_id): ...

    def create_extracted_text(self, material_id, owner_id, text: str, method: str): ...


class QuizStore(Protocol):
    def create_quiz(self, owner_id, title: str, questions: list[QuizQuestion], course_id=None): ...


class DocumentStore(Protocol):
    def download_to_local(self, storage_path: str) -> str: ...


class ExtractionOutcome(NamedTuple):
    """Per-material result: text on success, error (reason) on failure."""

    material_id: str
    filename: str | None
    text: str | None = None
    error: str | None = None

    @property
    def warning(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.error or 'No text content available'}"
        return f"Material {self.material_id}: {self.error or 'not found'}"


@dataclass
class GenerationResult:
    title: str
    questions: list[QuizQuestion]
    course_id: object
    warnings: list[str] = field(default_factory=list)
    quiz: object | None = None  # persisted row; None when saving failed
    persistence_error: str | None = None

    @property
    def saved(self) -> bool:
        return self.quiz is not None


def partition_outcomes(outcomes: list[ExtractionOutcome]) -> tuple[list[ExtractionOutcome], list[str]]:
    """Split outcomes into (usable sources, warnings), both in input order."""
    sources = [o for o in outcomes if o.text]
    warnings = [o.warning for o in outcomes if not o.text]
    return sources, warnings


def build_quiz_title(course_name: str, filenames: list[str]) -> str:
    """'Quiz: <course> - a, b, c and N more'."""
    names = ", ".join(filenames[:TITLE_MAX_NAMES])
    extra = len(filenames) - TITLE_MAX_NAMES
    suffix = f" and {extra} more" if extra > 0 else ""
    return f"Quiz: {course_name} - {names}{suffix}"


class QuizGenerationService:
    def __init__(
        self,
        courses: CourseStore,
        materials: MaterialStore,
        quizzes: QuizStore,
        storage: DocumentStore,
        client: GenerationClient,
        max_input_tokens: int = DEFAULT_MAX_TOKENS,
        extractor: Callable[..., ExtractionResult] = extract_text,
    ):
        self.courses = courses
        self.materials = materials
        self.quizzes = quizzes
        self.storage = storage
        self.client = client
        self.max_input_tokens = max_input_tokens
        self.extractor = extractor

    def generate(self, owner_id, course_id, material_ids) -> GenerationResult:
        if not course_id:
            raise ValidationError("course_id is required")
        if not isinstance(material_ids, list) or not material_ids:
            raise ValidationError("material_ids must be a non-empty array")

        course = self.courses.get_course(course_id, owner_id)
        if course is None:
            raise NotFoundError("Course not found", stage="course")

        outcomes = [self.material_text(mid, owner_id) for mid in material_ids]
        sources, warnings = partition_outcomes(outcomes)
        if not sources:
            raise NoUsableContentError(
                "Could not extract text from any materials. Errors: " + "; ".join(warnings),
                warnings=warnings,
            )

        combined = MATERIAL_DELIMITER.join(o.text for o in sources)
        try:
            questions = self.generate_questions(combined)
        except QuizPipelineError as e:
            e.warnings = warnings
            raise

        title = build_quiz_title(course.name, [o.filename for o in sources])
        result = GenerationResult(title=title, questions=questions, course_id=course.id, warnings=warnings)
        try:
            result.quiz = self.quizzes.create_quiz(owner_id, title, questions, course_id=course.id)
        except PersistenceError as e:
            logger.error("Generated quiz could not be saved (owner=%s course=%s): %s", owner_id, course.id, e.message)
            result.persistence_error = e.message
        return result

    def generate_questions(self, text: str) -> list[QuizQuestion]:
        """Chunk, prompt with the first chunk only, call the service, parse."""
        chunks = chunk_text(text, self.max_input_tokens)
        if len(chunks) > 1:
            # TODO: later chunks are dropped; decide whether to generate per chunk and merge.
            logger.warning(
                "Material text split into %s chunks (max_input_tokens=%s); only the first is sent for generation",
                len(chunks), self.max_input_tokens,
            )
        prompt = build_quiz_prompt(chunks[0])
        raw = self.client.complete(prompt)
        return parse_quiz_response(raw)

    def material_text(self, material_id, owner_id) -> ExtractionOutcome:
        """Cached ExtractedText if present, else extract now and cache. Never raises for one material."""
        material = self.materials.get_material(material_id, owner_id)
        if material is None:
            return ExtractionOutcome(str(material_id), None, error="not found")
        name = material.display_name

        cached = self.materials.get_extracted_text(material_id, owner_id)
        if cached is not None and cached.extracted_text:
            return ExtractionOutcome(str(material_id), name, text=cached.extracted_text)

        logger.info("Extracting text for material %s (%s)", material_id, name)
        try:
            result = self.extract_material(material)
        except ExtractionError as e:
            logger.warning("Extraction failed for material %s (%s): %s", material_id, name, e.message)
            return ExtractionOutcome(str(material_id), name, error=e.message)
        except Exception as e:
            logger.exception("Unexpected error processing material %s", material_id)
            return ExtractionOutcome(str(material_id), name, error=f"Failed to extract text: {e}")

        try:
            self.materials.create_extracted_text(material.id, owner_id, result.text, result.method)
        except PersistenceError as e:
            # Text is still usable for this request
            logger.warning("Failed to store extracted text for material %s: %s", material_id, e.message)
        return ExtractionOutcome(str(material_id), name, text=result.text)

    def extract_material(self, material) -> ExtractionResult:
        """Download to a temp file, extract, and always remove the temp file before returning."""
        local_path = self.storage.download_to_local(material.file_path)
        try:
            return self.extractor(local_path, material.mime_type)
        finally:
            cleanup_file(local_path)
