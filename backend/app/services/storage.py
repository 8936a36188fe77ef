"""
Local-disk object storage for course materials, rooted at settings.upload_dir.
Storage paths look like "<user_id>/<unique>-<sanitized filename>". Extraction works on a temporary
local copy that the caller must remove with cleanup_file, on every exit path.
"""
import logging
import os
import re
import shutil
import tempfile
import time
import uuid
from pathlib import Path

from app.config import settings
from app.errors import ExtractionError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", name or "file")


class LocalStorage:
    def __init__(self, root: Path | str | None = None):
        base = Path(root) if root is not None else settings.upload_dir
        if not base.is_absolute():
            base = Path(__file__).resolve().parent.parent.parent / base
        self.root = base.resolve()

    def _resolve(self, storage_path: str) -> Path:
        path = (self.root / storage_path).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Storage path escapes storage root: {storage_path}")
        return path

    def save(self, owner_id, original_filename: str, contents: bytes) -> tuple[str, str]:
        """Store bytes; return (storage_path, storage filename)."""
        filename = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}-{sanitize_filename(original_filename)}"
        storage_path = f"{owner_id}/{filename}"
        path = self._resolve(storage_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(contents)
        return storage_path, filename

    def download_to_local(self, storage_path: str) -> str:
        """Copy the stored object to a temp file (same extension, so format fallback works)."""
        try:
            source = self._resolve(storage_path)
        except ValueError as e:
            raise ExtractionError(f"Failed to download file: {e}", stage="storage") from e
        if not source.is_file():
            raise ExtractionError("Failed to download file", stage="storage")
        fd, tmp_path = tempfile.mkstemp(prefix="material-", suffix=source.suffix)
        try:
            with os.fdopen(fd, "wb") as out, source.open("rb") as src:
                shutil.copyfileobj(src, out)
        except OSError as e:
            cleanup_file(tmp_path)
            raise ExtractionError(f"Failed to download file: {e}", stage="storage") from e
        return tmp_path


def cleanup_file(path: str | None) -> None:
    """Remove a temp file. Failures are logged, never raised."""
    if not path:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temp file %s: %s", path, e)
