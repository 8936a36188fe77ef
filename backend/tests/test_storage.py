"""Local storage: sanitized paths, temp copies with the original extension, cleanup never raises."""
import os
import uuid

import pytest

from app.errors import ExtractionError
from app.services.storage import LocalStorage, cleanup_file, sanitize_filename


def test_sanitize_filename():
    assert sanitize_filename("Week 1: intro (v2).pdf") == "Week_1__intro__v2_.pdf"


def test_save_and_download_roundtrip(tmp_path):
    storage = LocalStorage(tmp_path)
    owner = uuid.uuid4()
    storage_path, filename = storage.save(owner, "My Notes.txt", b"hello")
    assert storage_path == f"{owner}/{filename}"
    assert filename.endswith("-My_Notes.txt")

    local = storage.download_to_local(storage_path)
    try:
        assert local.endswith(".txt")
        with open(local, "rb") as f:
            assert f.read() == b"hello"
    finally:
        cleanup_file(local)
    assert not os.path.exists(local)


def test_download_missing_object(tmp_path):
    with pytest.raises(ExtractionError) as exc:
        LocalStorage(tmp_path).download_to_local("nobody/none.txt")
    assert exc.value.stage == "storage"


def test_download_rejects_paths_outside_root(tmp_path):
    with pytest.raises(ExtractionError):
        LocalStorage(tmp_path / "root").download_to_local("../escape.txt")


def test_cleanup_tolerates_missing_and_none(tmp_path):
    cleanup_file(None)
    cleanup_file(str(tmp_path / "never-existed.txt"))
