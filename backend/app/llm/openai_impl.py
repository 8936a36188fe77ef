"""
OpenAI-compatible chat completions client (OpenRouter by default) for quiz generation.
Single user message, fixed temperature and output cap. No automatic retry: max_retries=0.
"""
import logging

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI

from app.errors import EmptyResponseError, GenerationServiceError

logger = logging.getLogger(__name__)


def _service_message(exc: APIStatusError) -> str:
    """Pull the provider's error message out of the error body, whatever its shape."""
    body = exc.body
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error") or ""
        return msg if isinstance(msg, str) else str(msg)
    if isinstance(body, str):
        return body.strip()
    return ""


class OpenAIGenerationClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        default_headers: dict[str, str] | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=0,
            default_headers=default_headers,
            http_client=http_client,
        )

    def complete(self, prompt: str) -> str:
        logger.info("Generation request: model=%s prompt_chars=%s", self.model, len(prompt))
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except APIStatusError as e:
            reason = getattr(e.response, "reason_phrase", "") or ""
            service_msg = _service_message(e)
            logger.warning("Generation service returned %s: %s", e.status_code, service_msg or reason)
            raise GenerationServiceError(
                f"Generation service error: {e.status_code} {reason}. {service_msg}".strip(),
                status=e.status_code,
                service_message=service_msg,
            ) from e
        except APIConnectionError as e:
            logger.warning("Generation service unreachable: %s", e)
            raise GenerationServiceError(f"Generation service error: {e}", status=None) from e

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) if message else None
        if not content or not content.strip():
            raise EmptyResponseError("No response content from AI")
        usage = getattr(response, "usage", None)
        if usage:
            logger.info(
                "Generation usage: prompt_tokens=%s completion_tokens=%s",
                usage.prompt_tokens, usage.completion_tokens,
            )
        return content
