"""Mock completion adapter for testing."""

import asyncio
import json
from typing import Optional

import structlog

from .base import LLMAdapter, LLMResponse, Message

logger = structlog.get_logger()


class MockLLMAdapter(LLMAdapter):
    """
    Mock adapter for running without API costs.

    Returns a canned reply, or raises ``error`` when one is set. The default
    reply is a well-formed emotion analysis wrapped in a sentence of prose.
    """

    DEFAULT_REPLY = "Here is the analysis: " + json.dumps({
        "primaryEmotion": "helpful",
        "secondaryEmotions": ["confident"],
        "confidence": 0.75,
        "sentiment": "neutral",
        "intensity": "medium",
        "reasoning": "Mock analysis",
    })

    def __init__(
        self,
        reply: Optional[str] = None,
        error: Optional[Exception] = None,
        latency_ms: int = 0,
    ) -> None:
        self.reply = reply if reply is not None else self.DEFAULT_REPLY
        self.error = error
        self.latency_ms = latency_ms
        self.calls: list[list[Message]] = []
        self.logger = logger.bind(adapter="mock")

    @property
    def name(self) -> str:
        return "mock"

    async def generate(
        self,
        messages: list[Message],
        **kwargs,
    ) -> LLMResponse:
        self.calls.append(list(messages))

        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)

        if self.error is not None:
            raise self.error

        self.logger.debug("mock_completion", reply_length=len(self.reply))
        return LLMResponse(text=self.reply)
