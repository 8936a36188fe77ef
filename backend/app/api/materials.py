"""
Course materials API: upload (any file type; format is judged at extraction time), list per course,
and on-demand extraction. Extracted text is stored once per material and reused by quiz generation.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import ExtractionError, PersistenceError
from app.models.course_material import CourseMaterial
from app.models.user import User
from app.schemas.material import MaterialExtractResponse, MaterialListResponse, MaterialResponse
from app.api.deps import get_current_user, get_storage, pipeline_http_error
from app.services.repositories import CourseRepository, MaterialRepository
from app.services.storage import LocalStorage, cleanup_file
from app.services.text_extraction import count_words, extract_text

router = APIRouter(tags=["materials"])
logger = logging.getLogger(__name__)


def _material_to_response(m: CourseMaterial) -> MaterialResponse:
    return MaterialResponse(
        id=str(m.id),
        course_id=str(m.course_id) if m.course_id else None,
        filename=m.filename,
        original_filename=m.original_filename,
        mime_type=m.mime_type,
        file_size_bytes=m.file_size_bytes,
        has_extracted_text=m.extracted_text is not None,
        created_at=m.created_at,
    )


@router.post(
    "/courses/{course_id}/materials",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_material(
    course_id: uuid.UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Store the uploaded file and register it as a material of the course."""
    course = CourseRepository(db).get_course(course_id, current_user.id)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    contents = file.file.read()
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(contents) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB upload limit",
        )
    original_name = file.filename or "file"
    storage_path, stored_name = storage.save(current_user.id, original_name, contents)
    material = MaterialRepository(db).create_material(
        current_user.id,
        course.id,
        filename=stored_name,
        original_filename=original_name,
        file_path=storage_path,
        mime_type=file.content_type,
        file_size_bytes=len(contents),
    )
    logger.info(
        "Material uploaded id=%s course_id=%s size=%s mime=%s",
        material.id, course.id, len(contents), file.content_type,
    )
    return _material_to_response(material)


@router.get("/courses/{course_id}/materials", response_model=MaterialListResponse)
def list_materials(
    course_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not CourseRepository(db).get_course(course_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    materials = MaterialRepository(db).list_course_materials(course_id, current_user.id)
    return MaterialListResponse(items=[_material_to_response(m) for m in materials], total=len(materials))


@router.get("/materials/{material_id}/extract", response_model=MaterialExtractResponse)
def extract_material_text(
    material_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Return the material's text: the stored extraction if any, else extract now and store it."""
    repo = MaterialRepository(db)
    material = repo.get_material(material_id, current_user.id)
    if not material:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")

    stored = repo.get_extracted_text(material_id, current_user.id)
    if stored is not None:
        return MaterialExtractResponse(
            material_id=str(material.id),
            filename=material.display_name,
            extraction_method=stored.extraction_method,
            extracted_text=stored.extracted_text,
            character_count=stored.text_length,
            word_count=stored.word_count,
            cached=True,
        )

    local_path = None
    try:
        local_path = storage.download_to_local(material.file_path)
        result = extract_text(local_path, material.mime_type)
    except ExtractionError as e:
        logger.warning("Extraction failed for material %s: %s", material_id, e.message)
        raise pipeline_http_error(e) from e
    finally:
        cleanup_file(local_path)

    try:
        repo.create_extracted_text(material.id, current_user.id, result.text, result.method)
    except PersistenceError as e:
        logger.warning("Failed to store extracted text for material %s: %s", material_id, e.message)

    return MaterialExtractResponse(
        material_id=str(material.id),
        filename=material.display_name,
        extraction_method=result.method,
        extracted_text=result.text,
        character_count=len(result.text),
        word_count=count_words(result.text),
    )
