from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import openai
from openai import AsyncOpenAI

from studykit.core.config import Settings
from studykit.core.errors import ConfigurationError, ExternalServiceError, InvalidModelError
from studykit.core.logger import get_logger
from studykit.services.llm.catalogue import GEMINI, GROQ, NVIDIA, OPENROUTER

logger = get_logger(__name__)


class ChatCapability(Protocol):
    name: str

    async def chat(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str: ...

    async def aclose(self) -> None: ...


def is_invalid_model_response(status: int | None, body_text: str) -> bool:
    text = (body_text or "").lower()
    if status == 400:
        return "not a valid model id" in text
    if status == 404:
        return "model" in text
    return False


class ChatProvider:
    """
    One OpenAI-compatible chat-completions endpoint (Groq, OpenRouter, NVIDIA NIM, Gemini).

    Stateless apart from the lazily-built SDK client. The SDK's own retries are disabled:
    the only automatic retry is the invalid-model fallback in ModelSelectionPolicy.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str | None,
        *,
        default_headers: dict[str, str] | None = None,
        timeout_s: float = 180.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.name = name
        self.base_url = base_url
        self.api_key = api_key
        self.default_headers = default_headers or {}
        self.timeout_s = timeout_s
        self._http_client = http_client
        self._client: AsyncOpenAI | None = None

    def _build_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError(f"API key for provider '{self.name}' is not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers=self.default_headers or None,
                timeout=self.timeout_s,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def aclose(self) -> None:
        """Release the SDK client; the next call builds a new one on the running loop."""
        client, self._client = self._client, None
        # an injected http client belongs to the caller
        if client is not None and self._http_client is None:
            await client.close()

    async def chat(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        client = self._build_client()

        kwargs: dict[str, Any] = {"model": model_id, "messages": messages, "temperature": temperature}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if response_format is not None:
            kwargs["response_format"] = response_format

        try:
            completion = await client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            msg = f"{self.name} request failed ({e.status_code}): {body[:500]}"
            if is_invalid_model_response(e.status_code, body):
                raise InvalidModelError(msg, status_code=e.status_code) from e
            raise ExternalServiceError(msg, status_code=e.status_code) from e
        except openai.APIError as e:
            raise ExternalServiceError(f"{self.name} request failed: {e}") from e

        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()


@dataclass
class ProviderRegistry:
    providers: dict[str, ChatCapability] = field(default_factory=dict)

    def get(self, name: str) -> ChatCapability:
        provider = self.providers.get(name)
        if provider is None:
            raise ConfigurationError(f"No provider configured for '{name}'")
        return provider

    async def aclose(self) -> None:
        for provider in self.providers.values():
            await provider.aclose()


def build_providers(cfg: Settings, http_client: httpx.AsyncClient | None = None) -> ProviderRegistry:
    """Construct every provider once from configuration."""
    return ProviderRegistry(
        providers={
            GROQ: ChatProvider(GROQ, cfg.groq_base_url, cfg.groq_api_key, http_client=http_client),
            OPENROUTER: ChatProvider(
                OPENROUTER,
                cfg.openrouter_base_url,
                cfg.openrouter_api_key,
                default_headers={"HTTP-Referer": cfg.openrouter_site_url, "X-Title": cfg.openrouter_app_name},
                http_client=http_client,
            ),
            NVIDIA: ChatProvider(NVIDIA, cfg.nvidia_base_url, cfg.nvidia_api_key, http_client=http_client),
            GEMINI: ChatProvider(GEMINI, cfg.gemini_base_url, cfg.gemini_api_key, http_client=http_client),
        }
    )
