#!/usr/bin/env python3
"""
Backfill extracted_texts for materials that have none yet. Safe to re-run: rows that already exist are kept.
Run from backend: python scripts/backfill_extracted_texts.py [--method migration]
"""
import argparse
import logging
import sys
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

logger = logging.getLogger("backfill_extracted_texts")


def backfill(db, storage, method_override: str | None = None) -> tuple[int, int]:
    """Extract and store text for every material without an ExtractedText row. Returns (migrated, errors)."""
    from app.errors import QuizPipelineError
    from app.models.course_material import CourseMaterial
    from app.models.extracted_text import ExtractedText
    from app.services.repositories import MaterialRepository
    from app.services.storage import cleanup_file
    from app.services.text_extraction import extract_text

    repo = MaterialRepository(db)
    pending = (
        db.query(CourseMaterial)
        .outerjoin(ExtractedText, ExtractedText.course_material_id == CourseMaterial.id)
        .filter(ExtractedText.id.is_(None))
        .order_by(CourseMaterial.created_at)
        .all()
    )
    logger.info("Found %s materials without extracted text", len(pending))
    migrated = errors = 0
    for material in pending:
        local_path = None
        try:
            local_path = storage.download_to_local(material.file_path)
            result = extract_text(local_path, material.mime_type)
            repo.create_extracted_text(material.id, material.user_id, result.text, method_override or result.method)
            migrated += 1
        except QuizPipelineError as e:
            logger.warning("Material %s (%s): %s", material.id, material.display_name, e.message)
            errors += 1
        finally:
            cleanup_file(local_path)
    return migrated, errors


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill extracted_texts for existing materials.")
    parser.add_argument("--method", choices=["migration"], default=None,
                        help="tag rows with this extraction method instead of the detected one")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    from app.database import SessionLocal, init_sqlite_db
    from app.services.storage import LocalStorage

    init_sqlite_db()
    db = SessionLocal()
    try:
        migrated, errors = backfill(db, LocalStorage(), args.method)
    finally:
        db.close()
    print(f"Successfully migrated: {migrated} records")
    if errors:
        print(f"Errors encountered: {errors} records")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
