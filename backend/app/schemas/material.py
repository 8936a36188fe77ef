"""
Course material schemas. Upload returns MaterialResponse; extraction is on demand (GET .../extract)
or lazily during quiz generation.
"""
from datetime import datetime

from pydantic import BaseModel


class MaterialResponse(BaseModel):
    id: str
    course_id: str | None = None
    filename: str
    original_filename: str | None = None
    mime_type: str | None = None
    file_size_bytes: int | None = None
    has_extracted_text: bool = False
    created_at: datetime | None = None


class MaterialListResponse(BaseModel):
    items: list[MaterialResponse]
    total: int


class MaterialExtractResponse(BaseModel):
    """Response for GET /materials/{id}/extract."""
    material_id: str
    filename: str | None = None
    extraction_method: str
    extracted_text: str
    character_count: int = 0
    word_count: int = 0
    cached: bool = False  # True when served from the stored ExtractedText
