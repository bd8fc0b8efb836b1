"""Base completion-provider adapter interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class Message:
    """A chat message."""
    role: str  # system, user, assistant
    content: str


@dataclass
class LLMResponse:
    """Response from a completion provider."""
    text: str
    finish_reason: str = "stop"
    usage: Optional[dict] = None


class LLMAdapter(ABC):
    """Abstract base class for completion-provider adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get adapter name."""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: Conversation messages, system prompt first
            **kwargs: Provider-specific options (temperature, max_tokens, model)

        Returns:
            LLMResponse with the completion text

        Raises:
            Any provider or transport error; callers decide how to recover.
        """
        pass

    async def close(self) -> None:
        """Clean up resources."""
        pass
