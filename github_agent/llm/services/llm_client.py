"""Chat completion client backed by the OpenAI SDK."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from openai import APIError as OpenAIError
from openai import AsyncOpenAI

from ...core.config import AgentSettings, get_settings
from ...core.exceptions import ConfigurationError, ExternalServiceError
from ...core.logging_config import get_logger
from ..schemas.chat import ChatMessage

logger = get_logger(__name__)


class LLMClient:
    """Thin wrapper around an OpenAI-compatible chat API."""

    def __init__(self, settings: AgentSettings) -> None:
        if settings.llm_api_key is None:
            raise ConfigurationError("LLM_API_KEY must be set for the llm intent strategy")

        api_key = settings.llm_api_key.get_secret_value()
        base_url = str(settings.llm_api_base).rstrip("/")
        logger.info(
            "llm_client_init",
            base_url=base_url,
            model=settings.llm_model,
            api_key_masked=f"{api_key[:4]}***{api_key[-4:]}",
        )
        self._model = settings.llm_model
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def complete(
        self,
        messages: Iterable[ChatMessage],
        *,
        temperature: float = 0.0,
        max_tokens: int = 1000,
    ) -> str:
        """Return the assistant text for a single chat completion."""

        payload_messages = [message.model_dump() for message in messages]
        logger.info(
            "llm_request",
            model=self._model,
            message_count=len(payload_messages),
            temperature=temperature,
        )

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=payload_messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:  # pragma: no cover - network path
            logger.error(
                "llm_sdk_error",
                error_type=type(exc).__name__,
                message=str(exc),
            )
            raise ExternalServiceError(f"LLM SDK error: {exc}") from exc

        choices = response.choices or []
        content = choices[0].message.content if choices else None
        return content or ""


@lru_cache
def get_llm_client() -> LLMClient:
    """Return a cached LLMClient built from the application settings."""

    return LLMClient(get_settings())
