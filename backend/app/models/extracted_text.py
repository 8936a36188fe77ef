"""
ExtractedText: normalized text derived from one CourseMaterial, created on first extraction.
One row per material (unique course_material_id); concurrent writers race and the first insert wins.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.types import UuidType


class ExtractedText(Base):
    __tablename__ = "extracted_texts"

    id: Mapped[uuid.UUID] = mapped_column(UuidType(), primary_key=True, default=uuid.uuid4)
    course_material_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("course_materials.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    extracted_text: Mapped[str] = mapped_column(Text, nullable=False)
    text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    word_count: Mapped[int] = mapped_column(Integer, nullable=False)
    extraction_method: Mapped[str] = mapped_column(String(20), nullable=False)  # pdf | docx | plain-text | migration
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "extraction_method IN ('pdf', 'docx', 'plain-text', 'migration')",
            name="extracted_texts_method_check",
        ),
    )

    material = relationship("CourseMaterial", back_populates="extracted_text")
