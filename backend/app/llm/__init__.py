"""
Generation client factory. Config is passed in explicitly (defaults to the process-wide settings).
Missing credential is a ConfigurationError raised before any client or network call exists.
"""
import logging

import httpx

from app.config import Settings, settings
from app.errors import ConfigurationError
from app.llm.base import GenerationClient
from app.llm.openai_impl import OpenAIGenerationClient

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OPENROUTER_API_KEY is not configured. Please add it to your backend .env file."


def require_generation_credentials(cfg: Settings = settings) -> str:
    """Return the API key or raise ConfigurationError."""
    key = (cfg.openrouter_api_key or "").strip()
    if not key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    return key


def get_generation_client(cfg: Settings = settings, http_client: httpx.Client | None = None) -> GenerationClient:
    """Return the configured generation client."""
    key = require_generation_credentials(cfg)
    return OpenAIGenerationClient(
        api_key=key,
        model=cfg.generation_model,
        base_url=cfg.generation_base_url,
        temperature=cfg.generation_temperature,
        max_tokens=cfg.generation_max_tokens,
        default_headers={
            "HTTP-Referer": cfg.generation_http_referer,
            "X-Title": cfg.generation_app_title,
        },
        http_client=http_client,
    )


__all__ = ["GenerationClient", "get_generation_client", "require_generation_credentials"]
