"""
Application configuration from environment variables.
Loads .env from the backend directory so API keys are found regardless of cwd.
Resolved once at import; the generation client receives these values explicitly.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Small, cost-efficient chat model; served through the OpenRouter OpenAI-compatible API.
_DEFAULT_GENERATION_MODEL = "openai/gpt-4o-mini"
_DEFAULT_GENERATION_BASE_URL = "https://openrouter.ai/api/v1"
_DEFAULT_SECRET_KEY = "change-me-in-production"

# .env next to backend/ (parent of app/); loaded explicitly so the key is found when running from the repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)


def _normalize_model(v: str) -> str:
    """Blank GENERATION_MODEL (e.g. `GENERATION_MODEL=` in .env) means the default model."""
    s = (v or "").strip()
    return s or _DEFAULT_GENERATION_MODEL


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs and tests, postgresql for production
    database_url: str = "sqlite:///./quiz_engine.db"

    # Set ENV=production in production; used to enforce SECRET_KEY.
    env: str = ""

    secret_key: str = _DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Generation service (OpenAI-compatible chat completions). Empty key = not configured.
    openrouter_api_key: str = ""
    generation_model: str = _DEFAULT_GENERATION_MODEL
    generation_base_url: str = _DEFAULT_GENERATION_BASE_URL
    generation_http_referer: str = "https://quizai.app"
    generation_app_title: str = "QuizAI Quiz Generator"
    generation_temperature: float = 0.7
    # Enough for 10 questions with explanations
    generation_max_tokens: int = 4000
    # Chunker budget (estimated input tokens); leaves room for the prompt and the response.
    max_input_tokens: int = 100_000

    @field_validator("generation_model", mode="before")
    @classmethod
    def _resolve_generation_model(cls, v: str) -> str:
        return _normalize_model(v) if isinstance(v, str) else _DEFAULT_GENERATION_MODEL

    # Local object storage for uploaded course materials
    upload_dir: Path = Path("./uploads")
    max_upload_bytes: int = 20 * 1024 * 1024

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    log_level: str = "INFO"
    debug: bool = False

    @property
    def generation_configured(self) -> bool:
        return bool((self.openrouter_api_key or "").strip())

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"

    @property
    def uses_default_secret(self) -> bool:
        return (self.secret_key or "").strip() == _DEFAULT_SECRET_KEY


settings = Settings()
