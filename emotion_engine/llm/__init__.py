"""Completion-provider adapters."""

from .base import LLMAdapter, LLMResponse, Message
from .factory import create_adapter
from .groq import GroqAdapter
from .mock import MockLLMAdapter
from .openai import OpenAIAdapter

__all__ = [
    "LLMAdapter",
    "LLMResponse",
    "Message",
    "OpenAIAdapter",
    "GroqAdapter",
    "MockLLMAdapter",
    "create_adapter",
]
