from __future__ import annotations

import httpx
import pytest

from smartnotes.config import get_settings
import smartnotes.llm.providers as providers


class _FakeResponse:
    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        return self._payload


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_get_provider_selects_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mistral")
    get_settings.cache_clear()
    assert isinstance(providers.get_provider(), providers.MistralProvider)

    monkeypatch.setenv("LLM_PROVIDER", "local_vllm")
    get_settings.cache_clear()
    assert isinstance(providers.get_provider(), providers.LocalVLLMProvider)

    monkeypatch.setenv("LLM_PROVIDER", "openai")
    get_settings.cache_clear()
    assert isinstance(providers.get_provider(), providers.OpenAIProvider)


def test_openai_provider_sends_prompts_and_passes_usage_through(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("OPENAI_MODEL", "o4-mini")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://api.openai.com/v1/")

    captured: dict = {}

    def fake_post(url: str, *, headers: dict, json: dict, timeout):
        captured["url"] = url
        captured["headers"] = headers
        captured["json"] = json
        return _FakeResponse(
            {
                "choices": [{"message": {"content": '{"flashcards": []}'}}],
                "usage": {"total_tokens": 42, "prompt_tokens": 30, "completion_tokens": 12},
            }
        )

    monkeypatch.setattr(providers.httpx, "post", fake_post)

    completion = providers.OpenAIProvider().generate(
        system_prompt="system", user_prompt="user", max_tokens=3000, json_mode=True
    )

    assert completion.text == '{"flashcards": []}'
    assert completion.usage is not None
    assert completion.usage.total_tokens == 42
    assert completion.usage.prompt_tokens == 30
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer test-key"
    assert captured["json"]["model"] == "o4-mini"
    assert captured["json"]["max_completion_tokens"] == 3000
    assert captured["json"]["response_format"] == {"type": "json_object"}
    assert [message["role"] for message in captured["json"]["messages"]] == ["system", "user"]


def test_mistral_provider_omits_json_mode_when_not_requested(monkeypatch) -> None:
    monkeypatch.setenv("MISTRAL_API_KEY", "test-key")

    captured: dict = {}

    def fake_post(url: str, *, headers: dict, json: dict, timeout):
        captured["json"] = json
        return _FakeResponse({"choices": [{"message": {"content": [{"text": "# Summary"}]}}]})

    monkeypatch.setattr(providers.httpx, "post", fake_post)

    completion = providers.MistralProvider().generate(
        system_prompt="system", user_prompt="user", max_tokens=2000
    )

    assert completion.text == "# Summary"
    assert completion.usage is None
    assert "response_format" not in captured["json"]
    assert captured["json"]["max_tokens"] == 2000
    assert captured["json"]["temperature"] == 0.2


def test_provider_raises_after_retries(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("LLM_MAX_ATTEMPTS", "2")

    calls: list[str] = []

    def failing_post(url: str, *, headers: dict, json: dict, timeout):
        calls.append(url)
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(providers.httpx, "post", failing_post)
    monkeypatch.setattr(providers.time, "sleep", lambda seconds: None)

    with pytest.raises(providers.LLMProviderError) as excinfo:
        providers.OpenAIProvider().generate(
            system_prompt="system", user_prompt="user", max_tokens=100
        )

    assert len(calls) == 2
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_provider_without_api_key_fails_fast(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(
        providers.httpx, "post", lambda *args, **kwargs: pytest.fail("no request expected")
    )

    with pytest.raises(providers.LLMProviderError, match="api_key_missing"):
        providers.OpenAIProvider().generate(
            system_prompt="system", user_prompt="user", max_tokens=100
        )
