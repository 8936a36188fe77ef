"""
Generation client tests. The OpenAI SDK talks to an httpx.MockTransport, so no network is used.
"""
import json

import httpx
import pytest

from app.config import Settings
from app.errors import ConfigurationError, EmptyResponseError, GenerationServiceError
from app.llm import MISSING_KEY_MESSAGE, get_generation_client, require_generation_credentials


def _completion(content):
    return {
        "id": "gen-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "openai/gpt-4o-mini",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 120, "completion_tokens": 800, "total_tokens": 920},
    }


def _client(handler, **overrides):
    cfg = Settings(openrouter_api_key="test-key", **overrides)
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return get_generation_client(cfg, http_client=http_client)


def test_sends_single_user_message_with_configured_parameters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("[ ... ]"))

    client = _client(handler)
    assert client.complete("Make a quiz about cells") == "[ ... ]"

    assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer test-key"
    assert seen["headers"]["http-referer"] == "https://quizai.app"
    assert seen["headers"]["x-title"] == "QuizAI Quiz Generator"
    body = seen["body"]
    assert body["model"] == "openai/gpt-4o-mini"
    assert body["messages"] == [{"role": "user", "content": "Make a quiz about cells"}]
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 4000


def test_model_override_and_blank_model_falls_back_to_default():
    models = []

    def handler(request):
        models.append(json.loads(request.content)["model"])
        return httpx.Response(200, json=_completion("ok"))

    _client(handler, generation_model="anthropic/claude-3-haiku").complete("p")
    _client(handler, generation_model="  ").complete("p")
    assert models == ["anthropic/claude-3-haiku", "openai/gpt-4o-mini"]


def test_error_status_is_surfaced_with_service_message_and_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"error": {"message": "Invalid API key", "code": 401}})

    with pytest.raises(GenerationServiceError) as exc:
        _client(handler).complete("p")
    err = exc.value
    assert err.service_status == 401
    assert err.service_message == "Invalid API key"
    assert err.message == "Generation service error: 401 Unauthorized. Invalid API key"
    assert err.stage == "generation"
    assert len(calls) == 1


def test_server_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={"error": {"message": "Upstream overloaded"}})

    with pytest.raises(GenerationServiceError) as exc:
        _client(handler).complete("p")
    assert exc.value.service_status == 503
    assert len(calls) == 1


def test_connection_failure_has_no_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationServiceError) as exc:
        _client(handler).complete("p")
    assert exc.value.service_status is None


@pytest.mark.parametrize("content", [None, "", "   "])
def test_missing_content_is_empty_response(content):
    def handler(request):
        return httpx.Response(200, json=_completion(content))

    with pytest.raises(EmptyResponseError) as exc:
        _client(handler).complete("p")
    assert exc.value.message == "No response content from AI"


def test_no_choices_is_empty_response():
    def handler(request):
        payload = _completion("x")
        payload["choices"] = []
        return httpx.Response(200, json=payload)

    with pytest.raises(EmptyResponseError):
        _client(handler).complete("p")


def test_missing_key_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_completion("x"))

    cfg = Settings(openrouter_api_key="  ")
    with pytest.raises(ConfigurationError) as exc:
        get_generation_client(cfg, http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert exc.value.message == MISSING_KEY_MESSAGE
    assert exc.value.stage == "configuration"
    with pytest.raises(ConfigurationError):
        require_generation_credentials(cfg)
    assert calls == []
