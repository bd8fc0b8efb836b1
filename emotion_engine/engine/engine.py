"""
Emotion Engine.

Main orchestrator that combines emotion classification, voice mapping,
SSML generation and conversational consistency tracking.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import structlog

from ..config import EmotionKind, Settings, get_settings
from ..llm.base import LLMAdapter
from ..llm.factory import create_adapter
from ..logging_setup import configure_logging
from ..models import (
    ConversationState,
    ConversationTurnResult,
    EmotionalStats,
    EmotionAnalysis,
    SSMLOptions,
    TurnMetadata,
    VoiceParameters,
)
from .cache import ClassificationCache
from .classifier import EmotionClassifier, coerce_text
from .consistency import ConversationStore, EmotionalConsistencyTracker
from .ssml import SSMLGenerator
from .voice_mapper import map_to_voice_parameters

logger = structlog.get_logger()


@dataclass
class EngineMetrics:
    """Metrics for conversation turn processing."""

    total_turns: int = 0
    avg_processing_time_ms: float = 0.0
    min_processing_time_ms: float = float("inf")
    max_processing_time_ms: float = 0.0

    # Response emotion distribution
    emotion_counts: Dict[str, int] = field(default_factory=dict)

    def record_turn(self, processing_time_ms: float, emotion: EmotionKind) -> None:
        self.total_turns += 1

        self.min_processing_time_ms = min(self.min_processing_time_ms, processing_time_ms)
        self.max_processing_time_ms = max(self.max_processing_time_ms, processing_time_ms)

        # Running average
        if self.total_turns == 1:
            self.avg_processing_time_ms = processing_time_ms
        else:
            alpha = 0.1
            self.avg_processing_time_ms = (
                alpha * processing_time_ms + (1 - alpha) * self.avg_processing_time_ms
            )

        key = emotion.value
        self.emotion_counts[key] = self.emotion_counts.get(key, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_turns": self.total_turns,
            "avg_processing_time_ms": round(self.avg_processing_time_ms, 2),
            "min_processing_time_ms": (
                round(self.min_processing_time_ms, 2) if self.total_turns else 0.0
            ),
            "max_processing_time_ms": round(self.max_processing_time_ms, 2),
            "emotion_counts": dict(self.emotion_counts),
        }


class EmotionEngine:
    """
    Emotion-driven speech markup engine.

    Each engine owns its classification cache and conversation store, so
    independent engines never share state.

    Usage:
        engine = EmotionEngine()

        result = await engine.process_conversation_turn(
            "session-1",
            "How does this work?",
            "Let me show you how it works.",
        )
        print(result.ssml)
        print(result.voice_params.rate)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[LLMAdapter] = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm

        self.cache = ClassificationCache(
            ttl_seconds=self.settings.classifier.cache_ttl_seconds,
            max_entries=self.settings.classifier.cache_max_entries,
        )
        self.classifier = EmotionClassifier(
            config=self.settings.classifier,
            llm=llm,
            cache=self.cache,
        )
        self.ssml_generator = SSMLGenerator(self.settings.ssml)
        self.conversations = ConversationStore()
        self.tracker = EmotionalConsistencyTracker(self.settings.conversation)

        self._metrics = EngineMetrics()
        self.logger = logger.bind(component="engine")

    # -------------------------------------------------------------------------
    # Single-text operations
    # -------------------------------------------------------------------------

    async def analyze(self, text: Any, use_ai: bool = True) -> EmotionAnalysis:
        """Classify the emotional content of text."""
        return await self.classifier.analyze(text, use_ai=use_ai)

    def map_to_voice_parameters(self, analysis: EmotionAnalysis) -> VoiceParameters:
        """Voice settings for an analysis."""
        return map_to_voice_parameters(analysis)

    def generate_ssml(
        self,
        text: Any,
        analysis: EmotionAnalysis,
        options: Optional[SSMLOptions] = None,
    ) -> str:
        """SSML for text spoken with the analyzed emotion."""
        return self.ssml_generator.generate(text, analysis, options)

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def process_conversation_turn(
        self,
        session_id: str,
        user_input: Any,
        response_text: Any,
        user_id: Optional[str] = None,
    ) -> ConversationTurnResult:
        """
        Process one conversation turn.

        Args:
            session_id: Conversation session ID
            user_input: What the user said
            response_text: What the assistant is about to say
            user_id: Optional user the session belongs to

        Returns:
            ConversationTurnResult with SSML, voice parameters and emotions

        Turns for the same session must not run concurrently.
        """
        start_time = time.perf_counter()
        user_input = coerce_text(user_input)
        response_text = coerce_text(response_text)

        state = self.conversations.get_or_create(session_id, user_id)
        strategy = state.adaptation_strategy

        user_emotion = await self.classifier.analyze(user_input, use_ai=True)
        natural_emotion = await self.classifier.analyze(response_text, use_ai=False)

        response_emotion = self.tracker.determine_response_emotion(
            user_emotion, natural_emotion, state
        )

        ssml = self.ssml_generator.generate(response_text, response_emotion)
        voice_params = map_to_voice_parameters(response_emotion)

        self.tracker.record_turn(state, user_emotion, response_emotion)

        metadata = TurnMetadata(
            key_phrases=self.tracker.extract_key_phrases(response_text),
            emotional_markers=self.classifier.identify_emotional_markers(response_text),
            context_factors=self.tracker.context_factors(state, user_emotion),
            user_emotion=user_emotion,
            strategy_applied=strategy,
        )

        processing_time_ms = (time.perf_counter() - start_time) * 1000
        self._metrics.record_turn(processing_time_ms, response_emotion.primary)

        self.logger.info(
            "turn_processed",
            session_id=session_id,
            user_emotion=user_emotion.primary.value,
            response_emotion=response_emotion.primary.value,
            strategy=strategy.value,
            next_strategy=state.adaptation_strategy.value,
            processing_time_ms=round(processing_time_ms, 2),
        )

        return ConversationTurnResult(
            ssml=ssml,
            voice_params=voice_params,
            emotions=response_emotion,
            processing_time_ms=processing_time_ms,
            metadata=metadata,
            original_text=response_text,
        )

    def get_conversation_state(self, session_id: str) -> Optional[ConversationState]:
        return self.conversations.get(session_id)

    def clear_conversation(self, session_id: str) -> None:
        if self.conversations.delete(session_id):
            self.logger.info("conversation_cleared", session_id=session_id)

    def get_emotional_stats(self) -> EmotionalStats:
        return self.conversations.stats()

    def get_session_summary(self, session_id: str) -> Optional[Dict[str, Any]]:
        state = self.conversations.get(session_id)
        if state is None:
            return None
        return self.tracker.session_summary(state)

    def prune_idle_conversations(self, max_idle_seconds: Optional[float] = None) -> int:
        """Drop sessions idle longer than the configured timeout."""
        if max_idle_seconds is None:
            max_idle_seconds = self.settings.conversation.session_idle_timeout_seconds
        return self.conversations.prune_idle(max_idle_seconds)

    # -------------------------------------------------------------------------
    # Cache and metrics
    # -------------------------------------------------------------------------

    def clear_classification_cache(self) -> None:
        self.classifier.clear_cache()

    def cache_stats(self) -> Dict[str, Any]:
        return self.classifier.get_cache_stats()

    def get_metrics(self) -> Dict[str, Any]:
        """Get engine metrics."""
        return {
            **self._metrics.to_dict(),
            "active_conversations": len(self.conversations),
            "ai_enabled": self.llm is not None,
            "cache": self.cache_stats(),
        }

    async def close(self) -> None:
        """Release the completion provider and drop in-memory state."""
        if self.llm is not None:
            await self.llm.close()
        self.conversations.clear()
        self.cache.clear()
        self.logger.info("engine_closed")


def create_engine(settings: Optional[Settings] = None) -> EmotionEngine:
    """Build an engine with logging and the completion provider from settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    llm = create_adapter(settings.llm, timeout=settings.classifier.ai_timeout_seconds)
    return EmotionEngine(settings=settings, llm=llm)


__all__ = ["EmotionEngine", "EngineMetrics", "create_engine"]
