"""Adapter selection from configuration."""

from typing import Optional

import structlog

from ..config import LLMConfig, LLMProvider
from .base import LLMAdapter
from .groq import GroqAdapter
from .mock import MockLLMAdapter
from .openai import OpenAIAdapter

logger = structlog.get_logger()


def create_adapter(config: LLMConfig, timeout: float = 10.0) -> Optional[LLMAdapter]:
    """Create the configured adapter, or None when AI classification is disabled."""
    provider = config.provider

    if provider == LLMProvider.OPENAI:
        adapter: Optional[LLMAdapter] = OpenAIAdapter.from_config(config, timeout=timeout)
    elif provider == LLMProvider.GROQ:
        adapter = GroqAdapter.from_config(config, timeout=timeout)
    elif provider == LLMProvider.MOCK:
        adapter = MockLLMAdapter()
    else:
        adapter = None

    logger.info("llm_adapter_selected", provider=provider.value)
    return adapter
