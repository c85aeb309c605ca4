"""Completion backends.

Each backend does one thing: turn a system prompt and a user prompt into
text plus token usage. The fallback loop in ``infra.llm.client`` never
looks at which concrete backend it is driving.
"""
import abc
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from domain.errors import ProviderHTTPError
from domain.models import CompletionResponse, TokenUsage

logger = logging.getLogger(__name__)


class CompletionBackend(abc.ABC):
    name: str
    model: str

    @abc.abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> CompletionResponse:
        ...


@dataclass
class BackendRegistration:
    backend: CompletionBackend
    priority: int
    rpm: int

    @property
    def name(self) -> str:
        return self.backend.name


class _HTTPBackend(CompletionBackend):
    def __init__(self, timeout: float = 60, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    async def _post(self, url: str, headers: Dict[str, str], payload: Dict, params: Optional[Dict] = None) -> Dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=payload, params=params)
        if response.status_code >= 400:
            raise ProviderHTTPError(
                response.status_code,
                f"{self.name} returned HTTP {response.status_code}: {response.text[:200]}",
            )
        return response.json()


class OpenAIChatBackend(_HTTPBackend):
    """OpenAI-compatible chat completions (OpenAI itself, OpenRouter)."""

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        extra_headers: Optional[Dict[str, str]] = None,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.name = name
        self.model = model
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.extra_headers = extra_headers or {}

    async def complete(self, system_prompt, user_prompt, *, temperature, max_tokens):
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        data = await self._post(f"{self.base_url}/chat/completions", headers, payload)
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"{self.name} response had no message content") from exc
        usage = data.get("usage") or {}
        return CompletionResponse(
            content=content,
            provider=self.name,
            model=data.get("model") or self.model,
            tokens_used=TokenUsage(
                prompt=usage.get("prompt_tokens") or 0,
                completion=usage.get("completion_tokens") or 0,
                total=usage.get("total_tokens") or 0,
            ),
        )


class GeminiBackend(_HTTPBackend):
    """Google Gemini ``generateContent``; system and user prompts are sent combined."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.name = name
        self.model = model
        self.api_key = api_key

    async def complete(self, system_prompt, user_prompt, *, temperature, max_tokens):
        payload = {
            "contents": [{"role": "user", "parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        data = await self._post(
            f"{self.BASE_URL}/models/{self.model}:generateContent",
            {"Content-Type": "application/json"},
            payload,
            params={"key": self.api_key},
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"{self.name} response had no candidates") from exc
        usage = data.get("usageMetadata") or {}
        return CompletionResponse(
            content="".join(p.get("text", "") for p in parts),
            provider=self.name,
            model=self.model,
            tokens_used=TokenUsage(
                prompt=usage.get("promptTokenCount") or 0,
                completion=usage.get("candidatesTokenCount") or 0,
                total=usage.get("totalTokenCount") or 0,
            ),
        )


def build_backends_from_settings(settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> List[BackendRegistration]:
    """One registration per backend whose API key is configured."""
    registrations: List[BackendRegistration] = []
    timeout = settings.LLM_TIMEOUT_SECONDS
    if settings.GEMINI_API_KEY:
        registrations.append(BackendRegistration(
            backend=GeminiBackend("gemini", settings.GEMINI_API_KEY, settings.GEMINI_MODEL,
                                  timeout=timeout, transport=transport),
            priority=settings.GEMINI_PRIORITY,
            rpm=settings.GEMINI_RPM,
        ))
    if settings.OPENAI_API_KEY:
        registrations.append(BackendRegistration(
            backend=OpenAIChatBackend("openai", settings.OPENAI_API_KEY, settings.OPENAI_MODEL,
                                      timeout=timeout, transport=transport),
            priority=settings.OPENAI_PRIORITY,
            rpm=settings.OPENAI_RPM,
        ))
    if settings.OPENROUTER_API_KEY:
        registrations.append(BackendRegistration(
            backend=OpenAIChatBackend(
                "openrouter",
                settings.OPENROUTER_API_KEY,
                settings.OPENROUTER_MODEL,
                base_url="https://openrouter.ai/api/v1",
                extra_headers={"HTTP-Referer": "http://localhost", "X-Title": settings.APP_NAME},
                timeout=timeout,
                transport=transport,
            ),
            priority=settings.OPENROUTER_PRIORITY,
            rpm=settings.OPENROUTER_RPM,
        ))
    if not registrations:
        logger.warning("No LLM providers configured; set GEMINI_API_KEY, OPENAI_API_KEY or OPENROUTER_API_KEY")
    else:
        logger.info("Configured LLM providers: %s", ", ".join(r.name for r in registrations))
    return registrations
