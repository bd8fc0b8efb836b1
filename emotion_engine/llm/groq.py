"""Groq completion adapter over the OpenAI-compatible HTTP API."""

import time
from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import LLMConfig
from .base import LLMAdapter, LLMResponse, Message

logger = structlog.get_logger()


class GroqAdapter(LLMAdapter):
    """
    Groq adapter for low-latency inference.

    Talks to ``/chat/completions`` with httpx; non-2xx responses raise
    ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.1-8b-instant",
        base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("Groq API key is required")

        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None

        # Statistics
        self._total_requests = 0
        self._total_latency = 0.0

        self.logger = logger.bind(adapter="groq")

    @classmethod
    def from_config(cls, config: LLMConfig, timeout: float = 10.0) -> "GroqAdapter":
        return cls(
            api_key=config.groq_api_key,
            model=config.groq_model,
            base_url=config.groq_base_url,
            timeout=timeout,
        )

    @property
    def name(self) -> str:
        return "groq"

    async def connect(self) -> None:
        """Initialize HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        self.logger.debug("groq_adapter_connected", model=self.model)

    async def generate(
        self,
        messages: list[Message],
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion from Groq."""
        if not self._client:
            await self.connect()

        start_time = time.perf_counter()
        self._total_requests += 1

        request_body: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": kwargs.get("temperature", 0.3),
            "max_tokens": kwargs.get("max_tokens", 500),
        }

        try:
            response = await self._client.post("/chat/completions", json=request_body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "groq_http_error",
                status_code=e.response.status_code,
                error=e.response.text,
            )
            raise
        except httpx.HTTPError as e:
            self.logger.error("groq_request_failed", error=str(e))
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        self._total_latency += latency_ms

        choice = data["choices"][0]

        self.logger.debug("groq_completion", model=request_body["model"], latency_ms=latency_ms)

        return LLMResponse(
            text=choice["message"].get("content") or "",
            finish_reason=choice.get("finish_reason") or "stop",
            usage=data.get("usage"),
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get adapter statistics."""
        return {
            "total_requests": self._total_requests,
            "avg_latency_ms": (
                self._total_latency / self._total_requests
                if self._total_requests > 0
                else 0
            ),
        }

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
