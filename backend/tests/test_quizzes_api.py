"""
API tests: courses -> material upload -> extract -> quiz generate -> get/list -> submit -> export.
FastAPI TestClient with dependency overrides; real SQLite (see conftest) and a fake generation client.
"""
import io
import json
import uuid

import docx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.main import app
from app.api.deps import get_current_user, get_quiz_generation_service, get_storage
from app.config import settings
from app.database import SessionLocal, get_db, init_sqlite_db
from app.errors import PersistenceError
from app.models.user import User
from app.services.auth import hash_password
from app.services.quiz_generation_service import QuizGenerationService
from app.services.repositories import CourseRepository, MaterialRepository, QuizRepository
from app.services.storage import LocalStorage


def _ten_questions() -> list[dict]:
    return [
        {
            "question": f"Which statement about topic {i} is true?",
            "options": ["First", "Second", "Third", "Fourth"],
            "correct": i % 4,
            "explanation": f"Topic {i} is covered in the notes.",
        }
        for i in range(10)
    ]


class FakeClient:
    model = "fake-model"

    def __init__(self, response: str):
        self.response = response
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


class BrokenQuizRepository(QuizRepository):
    def create_quiz(self, *args, **kwargs):
        raise PersistenceError("Failed to create quiz: disk full")


def _make_user() -> User:
    db = SessionLocal()
    try:
        init_sqlite_db()
        user = User(email=f"test-{uuid.uuid4().hex[:8]}@tests.example.com", password_hash=hash_password("testpass123"))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


@pytest.fixture
def test_user():
    return _make_user()


@pytest.fixture
def fake_client():
    return FakeClient("```json\n" + json.dumps(_ten_questions()) + "\n```")


@pytest.fixture
def client(test_user, fake_client):
    """TestClient as test_user, with the generation service wired to real repositories and a fake client."""

    def override_get_current_user():
        db = SessionLocal()
        try:
            return db.query(User).filter(User.id == test_user.id).first()
        finally:
            db.close()

    def override_service(db: Session = Depends(get_db), storage: LocalStorage = Depends(get_storage)):
        return QuizGenerationService(
            courses=CourseRepository(db),
            materials=MaterialRepository(db),
            quizzes=QuizRepository(db),
            storage=storage,
            client=fake_client,
        )

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_quiz_generation_service] = override_service
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_current_user, None)
        app.dependency_overrides.pop(get_quiz_generation_service, None)


def _create_course(client, name="Biology 101") -> str:
    r = client.post("/courses", json={"name": name})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _upload(client, course_id, filename, content: bytes, mime_type) -> str:
    r = client.post(f"/courses/{course_id}/materials", files={"file": (filename, content, mime_type)})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for p in paragraphs:
        document.add_paragraph(p)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def test_health():
    with TestClient(app) as c:
        r = c.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_course_create_list_get(client):
    course_id = _create_course(client, "Chemistry")
    r = client.get("/courses")
    assert r.status_code == 200
    assert course_id in [c["id"] for c in r.json()["items"]]
    assert client.get(f"/courses/{course_id}").json()["name"] == "Chemistry"
    assert client.get(f"/courses/{uuid.uuid4()}").status_code == 404


def test_upload_and_extract_material(client):
    course_id = _create_course(client)
    material_id = _upload(
        client, course_id, "lecture.docx",
        _docx_bytes("Plants make glucose.", "Light reactions happen in thylakoids."),
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )

    listing = client.get(f"/courses/{course_id}/materials").json()
    assert listing["total"] == 1
    assert listing["items"][0]["has_extracted_text"] is False

    r = client.get(f"/materials/{material_id}/extract")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["extraction_method"] == "docx"
    assert "thylakoids" in data["extracted_text"]
    assert data["word_count"] == len(data["extracted_text"].split())
    assert data["cached"] is False

    again = client.get(f"/materials/{material_id}/extract").json()
    assert again["cached"] is True
    assert again["extracted_text"] == data["extracted_text"]


def test_extract_unsupported_material_is_422(client):
    course_id = _create_course(client)
    material_id = _upload(client, course_id, "scan.png", b"\x89PNG\r\n\x1a\n", "image/png")
    r = client.get(f"/materials/{material_id}/extract")
    assert r.status_code == 422
    assert r.json()["detail"]["stage"] == "extraction"


def test_generate_get_submit_export(client, fake_client):
    course_id = _create_course(client)
    notes_id = _upload(client, course_id, "notes.txt", b"Photosynthesis converts light to chemical energy.", "text/plain")
    image_id = _upload(client, course_id, "diagram.png", b"\x89PNG\r\n\x1a\n", "image/png")

    r = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [notes_id, image_id]})
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["saved"] is True
    assert len(data["warnings"]) == 1
    assert data["warnings"][0].startswith("diagram.png: ")
    quiz = data["quiz"]
    assert quiz["title"] == "Quiz: Biology 101 - notes.txt"
    assert quiz["course_id"] == course_id
    assert [q["correct"] for q in quiz["questions"]] == [i % 4 for i in range(10)]
    assert "Photosynthesis converts light" in fake_client.prompts[0]

    quiz_id = quiz["id"]
    assert client.get(f"/quizzes/{quiz_id}").json()["title"] == quiz["title"]
    listing = client.get("/quizzes", params={"course_id": course_id}).json()
    assert [q["id"] for q in listing["items"]] == [quiz_id]

    answers = [i % 4 for i in range(10)]
    answers[0] = 3
    r = client.post(f"/quizzes/{quiz_id}/submit", json={"answers": answers})
    assert r.status_code == 200, r.text
    graded = r.json()
    assert graded["score"] == 9
    assert graded["percentage"] == 90.0
    assert graded["results"][0]["is_correct"] is False
    assert graded["attempt_id"]

    r = client.post(f"/quizzes/{quiz_id}/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/vnd.openxmlformats")
    exported = docx.Document(io.BytesIO(r.content))
    text = "\n".join(p.text for p in exported.paragraphs)
    assert "Answer key" in text
    assert "Topic 0 is covered in the notes." in text


def test_submit_wrong_answer_count_rejected(client):
    course_id = _create_course(client)
    notes_id = _upload(client, course_id, "notes.txt", b"Mitosis produces two identical cells.", "text/plain")
    quiz_id = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [notes_id]}).json()["quiz"]["id"]

    r = client.post(f"/quizzes/{quiz_id}/submit", json={"answers": [0] * 9})
    assert r.status_code == 400
    assert r.json()["detail"]["message"] == "Number of answers (9) does not match number of questions (10)"


def test_generate_validation_errors(client):
    course_id = _create_course(client)
    r = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": []})
    assert r.status_code == 400
    r = client.post("/quizzes/generate", json={"material_ids": [str(uuid.uuid4())]})
    assert r.status_code == 400
    r = client.post("/quizzes/generate", json={"course_id": str(uuid.uuid4()), "material_ids": [str(uuid.uuid4())]})
    assert r.status_code == 404


def test_generate_all_materials_unusable(client):
    course_id = _create_course(client)
    image_id = _upload(client, course_id, "photo.jpg", b"\xff\xd8\xff", "image/jpeg")
    r = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [image_id]})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["stage"] == "extraction"
    assert detail["warnings"][0].startswith("photo.jpg: ")


def test_generate_invalid_model_output_is_502(client, fake_client):
    fake_client.response = json.dumps(_ten_questions()[:8])
    course_id = _create_course(client)
    notes_id = _upload(client, course_id, "notes.txt", b"Some notes.", "text/plain")
    r = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [notes_id]})
    assert r.status_code == 502
    detail = r.json()["detail"]
    assert detail["stage"] == "parse"
    assert detail["message"] == "Expected exactly 10 questions, but got 8"


def test_generate_unsaved_quiz_returns_200(client, fake_client):
    def override_service(db: Session = Depends(get_db), storage: LocalStorage = Depends(get_storage)):
        return QuizGenerationService(
            courses=CourseRepository(db),
            materials=MaterialRepository(db),
            quizzes=BrokenQuizRepository(db),
            storage=storage,
            client=fake_client,
        )

    app.dependency_overrides[get_quiz_generation_service] = override_service
    course_id = _create_course(client)
    notes_id = _upload(client, course_id, "notes.txt", b"Some notes.", "text/plain")
    r = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [notes_id]})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["saved"] is False
    assert data["quiz"]["id"] is None
    assert "disk full" in data["persistence_error"]
    assert len(data["quiz"]["questions"]) == 10


def test_generate_without_api_key_is_configuration_error(client, monkeypatch):
    monkeypatch.setattr(settings, "openrouter_api_key", "")
    app.dependency_overrides.pop(get_quiz_generation_service, None)
    # Even an invalid body fails on configuration first
    r = client.post("/quizzes/generate", json={"material_ids": []})
    assert r.status_code == 500
    detail = r.json()["detail"]
    assert detail["stage"] == "configuration"
    assert "OPENROUTER_API_KEY" in detail["message"]


def test_quiz_of_another_user_is_not_found(client):
    course_id = _create_course(client)
    notes_id = _upload(client, course_id, "notes.txt", b"Some notes.", "text/plain")
    quiz_id = client.post("/quizzes/generate", json={"course_id": course_id, "material_ids": [notes_id]}).json()["quiz"]["id"]

    other = _make_user()
    app.dependency_overrides[get_current_user] = lambda: other
    assert client.get(f"/quizzes/{quiz_id}").status_code == 404
