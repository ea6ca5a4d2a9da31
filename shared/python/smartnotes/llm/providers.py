"""Provider abstractions for text generation."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import time
from typing import Any

import httpx

from smartnotes.config import get_settings
from smartnotes.schemas import LLMCompletion, TokenUsageData

logger = logging.getLogger(__name__)


class LLMProviderError(RuntimeError):
    """The model call failed; nothing usable came back."""


class LLMProvider(ABC):
    """Abstract language model provider."""

    @abstractmethod
    def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        json_mode: bool = False,
    ) -> LLMCompletion:
        """Generate text for a system/user prompt pair."""


class ChatCompletionsProvider(LLMProvider):
    """Provider speaking the OpenAI-compatible chat completions protocol."""

    name = "chat_completions"

    def __init__(self, *, api_key: str | None, base_url: str, model: str) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model

    def _build_payload(
        self, *, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        json_mode: bool = False,
    ) -> LLMCompletion:
        if not self.api_key:
            raise LLMProviderError(f"{self.name}_api_key_missing")

        settings = get_settings()
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=max_tokens,
            json_mode=json_mode,
        )
        timeout = httpx.Timeout(
            timeout=settings.request_timeout_seconds,
            connect=min(10.0, float(settings.request_timeout_seconds)),
        )

        last_error: Exception | None = None
        for attempt in range(1, settings.llm_max_attempts + 1):
            try:
                response = httpx.post(url, headers=headers, json=payload, timeout=timeout)
                response.raise_for_status()
                body = response.json()
                return LLMCompletion(
                    text=_extract_chat_completion_content(body) or "",
                    usage=_extract_usage(body),
                )
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning(
                    "%s call failed: %s",
                    self.name,
                    str(exc)[:300],
                    extra={"attempt": attempt},
                )
                if attempt < settings.llm_max_attempts:
                    time.sleep(1.5 * attempt)

        raise LLMProviderError(f"{self.name}_request_failed") from last_error


class OpenAIProvider(ChatCompletionsProvider):
    name = "openai"

    def __init__(self) -> None:
        settings = get_settings()
        super().__init__(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
        )

    def _build_payload(
        self, *, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool
    ) -> dict[str, Any]:
        payload = super()._build_payload(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=max_tokens,
            json_mode=json_mode,
        )
        # Reasoning models reject max_tokens.
        payload["max_completion_tokens"] = payload.pop("max_tokens")
        return payload


class MistralProvider(ChatCompletionsProvider):
    """Mistral API provider via chat completions."""

    name = "mistral"

    def __init__(self) -> None:
        settings = get_settings()
        super().__init__(
            api_key=settings.mistral_api_key,
            base_url=settings.mistral_base_url,
            model=settings.mistral_model,
        )

    def _build_payload(
        self, *, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool
    ) -> dict[str, Any]:
        payload = super()._build_payload(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=max_tokens,
            json_mode=json_mode,
        )
        payload["temperature"] = 0.2
        return payload


class LocalVLLMProvider(LLMProvider):
    """Local vLLM ``/generate`` endpoint; reports no usage."""

    def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        json_mode: bool = False,
    ) -> LLMCompletion:
        settings = get_settings()
        url = f"{settings.local_vllm_base_url.rstrip('/')}/generate"
        try:
            response = httpx.post(
                url,
                json={"prompt": f"{system_prompt}\n\n{user_prompt}", "max_tokens": max_tokens},
                timeout=settings.request_timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMProviderError("local_vllm_request_failed") from exc

        text = data.get("text") if isinstance(data, dict) else None
        if isinstance(text, list):
            text = "".join(part for part in text if isinstance(part, str))
        return LLMCompletion(text=text if isinstance(text, str) else "")


def get_provider() -> LLMProvider:
    """Select provider implementation from env."""

    settings = get_settings()
    if settings.llm_provider == "mistral":
        return MistralProvider()
    if settings.llm_provider == "local_vllm":
        return LocalVLLMProvider()
    return OpenAIProvider()


def _extract_chat_completion_content(payload: dict) -> str | None:
    """Extract text content from chat completion response payload."""

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return None

    content = message.get("content")
    if isinstance(content, str):
        return content.strip() or None
    if isinstance(content, list):
        chunks: list[str] = []
        for part in content:
            if isinstance(part, dict):
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    chunks.append(text.strip())
            elif isinstance(part, str) and part.strip():
                chunks.append(part.strip())
        combined = "\n".join(chunks).strip()
        return combined or None
    return None


def _extract_usage(payload: dict) -> TokenUsageData | None:
    """Pass the provider's own token accounting through, if any."""

    usage = payload.get("usage")
    if not isinstance(usage, dict) or not isinstance(usage.get("total_tokens"), int):
        return None

    def count(key: str) -> int | None:
        value = usage.get(key)
        return value if isinstance(value, int) else None

    return TokenUsageData(
        total_tokens=usage["total_tokens"],
        prompt_tokens=count("prompt_tokens"),
        completion_tokens=count("completion_tokens"),
    )
