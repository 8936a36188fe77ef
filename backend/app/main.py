"""
FastAPI application entrypoint. Run with: uvicorn app.main:app --reload --port 8000

Routes are mounted at root (no /api/v1 prefix):
  - Auth:      POST /auth/register, POST /auth/login, GET /auth/me
  - Courses:   POST /courses, GET /courses, GET /courses/{id}
  - Materials: POST /courses/{id}/materials, GET /courses/{id}/materials, GET /materials/{id}/extract
  - Quizzes:   POST /quizzes/generate, GET /quizzes, GET /quizzes/{id}, POST /quizzes/{id}/submit,
               POST /quizzes/{id}/export

Quiz generation calls the OpenRouter chat completions API once per request (no retries).
Set OPENROUTER_API_KEY in backend/.env.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.auth import router as auth_router
from app.api.courses import router as courses_router
from app.api.materials import router as materials_router
from app.api.quizzes import router as quizzes_router

app = FastAPI(
    title="Quiz Engine API",
    description="Course materials -> extracted text -> 10-question multiple-choice quizzes.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(courses_router)
app.include_router(materials_router)
app.include_router(quizzes_router)


@app.on_event("startup")
def startup():
    """Configure logging, check SECRET_KEY in production, report generation key status, init SQLite."""
    logging.basicConfig(
        level=getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    _log = logging.getLogger("app.main")
    if settings.is_production and settings.uses_default_secret:
        _log.critical("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
        raise RuntimeError("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
    if settings.generation_configured:
        _log.info(
            "Generation: API key loaded (len=%s), model=%s, base_url=%s",
            len(settings.openrouter_api_key.strip()), settings.generation_model, settings.generation_base_url,
        )
    else:
        _log.warning("Generation: no API key. Set OPENROUTER_API_KEY in backend/.env; /quizzes/generate will fail.")
    from app.database import init_sqlite_db
    init_sqlite_db()


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {
        "status": "ok",
        "message": "Quiz Engine API",
        "generation_configured": settings.generation_configured,
    }
