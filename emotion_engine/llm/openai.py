"""OpenAI completion adapter."""

from typing import Optional

import structlog
from openai import AsyncOpenAI

from ..config import LLMConfig
from .base import LLMAdapter, LLMResponse, Message

logger = structlog.get_logger()


class OpenAIAdapter(LLMAdapter):
    """
    OpenAI adapter using the official SDK.

    Any OpenAI-compatible endpoint works by setting ``base_url``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required")

        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

        self.logger = logger.bind(adapter="openai")

    @classmethod
    def from_config(cls, config: LLMConfig, timeout: float = 10.0) -> "OpenAIAdapter":
        return cls(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            timeout=timeout,
        )

    @property
    def name(self) -> str:
        return "openai"

    async def generate(
        self,
        messages: list[Message],
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion from OpenAI."""
        request_params = {
            "model": kwargs.get("model", self.model),
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "max_tokens": kwargs.get("max_tokens", 500),
            "temperature": kwargs.get("temperature", 0.3),
        }

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as e:
            self.logger.error("openai_request_failed", error=str(e))
            raise

        choice = response.choices[0]

        self.logger.debug(
            "openai_completion",
            model=request_params["model"],
            tokens=response.usage.total_tokens if response.usage else 0,
        )

        return LLMResponse(
            text=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            } if response.usage else None,
        )

    async def close(self) -> None:
        await self.client.close()
