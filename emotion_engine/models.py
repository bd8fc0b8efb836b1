"""
Data Models for the Emotion Engine.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import (
    AdaptationStrategy,
    BreakStrength,
    EmotionKind,
    EmphasisLevel,
    Intensity,
    PerformanceMode,
    Sentiment,
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Emotion Analysis
# =============================================================================


@dataclass(frozen=True)
class EmotionAnalysis:
    """Classified emotional state of a piece of text."""

    primary: EmotionKind
    secondary: Tuple[EmotionKind, ...] = ()
    confidence: float = 0.6
    sentiment: Sentiment = Sentiment.NEUTRAL
    intensity: Intensity = Intensity.MEDIUM
    reasoning: str = ""

    @classmethod
    def create(
        cls,
        primary: EmotionKind,
        secondary: Iterable[EmotionKind] = (),
        confidence: float = 0.6,
        sentiment: Sentiment = Sentiment.NEUTRAL,
        intensity: Intensity = Intensity.MEDIUM,
        reasoning: str = "",
    ) -> "EmotionAnalysis":
        """Build an analysis, enforcing the secondary/confidence invariants."""
        cleaned: List[EmotionKind] = []
        for emotion in secondary:
            if emotion != primary and emotion not in cleaned:
                cleaned.append(emotion)

        return cls(
            primary=primary,
            secondary=tuple(cleaned[:2]),
            confidence=clamp(float(confidence)),
            sentiment=sentiment,
            intensity=intensity,
            reasoning=reasoning,
        )

    def with_changes(self, **changes: Any) -> "EmotionAnalysis":
        """Copy with changes, re-applying the invariants."""
        merged = replace(self, **changes)
        return EmotionAnalysis.create(
            primary=merged.primary,
            secondary=merged.secondary,
            confidence=merged.confidence,
            sentiment=merged.sentiment,
            intensity=merged.intensity,
            reasoning=merged.reasoning,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.value,
            "secondary": [e.value for e in self.secondary],
            "confidence": round(self.confidence, 3),
            "sentiment": self.sentiment.value,
            "intensity": self.intensity.value,
            "reasoning": self.reasoning,
        }


@dataclass
class SentimentScore:
    """Sentiment polarity and strength."""

    score: float  # -1.0 to 1.0
    sentiment: Sentiment
    confidence: float  # 0.0 to 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": round(self.score, 3),
            "sentiment": self.sentiment.value,
            "confidence": round(self.confidence, 3),
        }


@dataclass
class EmotionalMarker:
    """A located keyword or pattern hit."""

    start: int
    end: int
    text: str
    emotion: EmotionKind
    intensity: float  # 0.0 to 1.0
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "emotion": self.emotion.value,
            "intensity": round(self.intensity, 3),
            "reason": self.reason,
        }


# =============================================================================
# Voice Parameters
# =============================================================================


@dataclass
class VoiceParameters:
    """Voice modulation handed to the speech synthesizer."""

    rate: str  # e.g. "1.1"
    pitch: str  # e.g. "+10%" or "medium"
    volume: str  # e.g. "+5dB" or "medium"
    stability: float  # 0.0 to 1.0
    similarity_boost: float  # 0.0 to 1.0
    emphasis: Optional[EmphasisLevel] = None
    pause_before: Optional[str] = None
    pause_after: Optional[str] = None

    def copy(self) -> "VoiceParameters":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rate": self.rate,
            "pitch": self.pitch,
            "volume": self.volume,
            "stability": round(self.stability, 3),
            "similarity_boost": round(self.similarity_boost, 3),
            "emphasis": self.emphasis.value if self.emphasis else None,
            "pause_before": self.pause_before,
            "pause_after": self.pause_after,
        }


@dataclass(frozen=True)
class ProsodyAttributes:
    """SSML prosody attribute preset."""

    rate: str
    pitch: str
    volume: str


@dataclass(frozen=True)
class EmotionConfig:
    """Voice and SSML presets for one emotion."""

    emotion: EmotionKind
    voice_params: VoiceParameters
    prosody: ProsodyAttributes
    emphasis_level: EmphasisLevel
    break_time: str
    break_strength: BreakStrength


# =============================================================================
# SSML
# =============================================================================


@dataclass
class SSMLOptions:
    """Switches for SSML generation."""

    include_prosody: bool = True
    include_breaks: bool = True
    include_emphasis: bool = True
    include_emotions: bool = True
    optimize_for_voice: Optional[str] = None
    performance: PerformanceMode = PerformanceMode.QUALITY


@dataclass
class SSMLValidationResult:
    """Outcome of validating generated SSML."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    tag_count: int = 0
    complexity: str = "low"  # low, medium, high
    estimated_duration_s: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "suggestions": self.suggestions,
            "tag_count": self.tag_count,
            "complexity": self.complexity,
            "estimated_duration_s": round(self.estimated_duration_s, 2),
        }


# =============================================================================
# Conversation State
# =============================================================================


@dataclass
class ConversationState:
    """Emotional state of one conversation session."""

    session_id: str
    user_id: Optional[str] = None

    # Rolling history of user and response emotions
    emotional_journey: List[EmotionAnalysis] = field(default_factory=list)

    dominant_emotion: EmotionKind = EmotionKind.HELPFUL
    emotional_stability: float = 1.0  # 0 to 1, higher = more consistent
    user_engagement: float = 0.5  # 0 to 1
    adaptation_strategy: AdaptationStrategy = AdaptationStrategy.MIRROR

    turn_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_interaction: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "dominant_emotion": self.dominant_emotion.value,
            "emotional_stability": round(self.emotional_stability, 3),
            "user_engagement": round(self.user_engagement, 3),
            "adaptation_strategy": self.adaptation_strategy.value,
            "conversation_length": len(self.emotional_journey),
            "turn_count": self.turn_count,
            "last_interaction": self.last_interaction.isoformat(),
            "recent_emotions": [e.to_dict() for e in self.emotional_journey[-5:]],
        }


@dataclass
class TurnMetadata:
    """Explanatory data attached to a processed turn."""

    key_phrases: List[str] = field(default_factory=list)
    emotional_markers: List[EmotionalMarker] = field(default_factory=list)
    context_factors: List[str] = field(default_factory=list)
    user_emotion: Optional[EmotionAnalysis] = None
    strategy_applied: AdaptationStrategy = AdaptationStrategy.MIRROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_phrases": self.key_phrases,
            "emotional_markers": [m.to_dict() for m in self.emotional_markers],
            "context_factors": self.context_factors,
            "user_emotion": self.user_emotion.to_dict() if self.user_emotion else None,
            "strategy_applied": self.strategy_applied.value,
        }


@dataclass
class ConversationTurnResult:
    """Complete result of processing one conversation turn."""

    ssml: str
    voice_params: VoiceParameters
    emotions: EmotionAnalysis
    processing_time_ms: float
    metadata: TurnMetadata
    original_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "ssml": self.ssml,
            "voice_params": self.voice_params.to_dict(),
            "emotions": self.emotions.to_dict(),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class EmotionalStats:
    """Aggregate statistics over active conversations."""

    active_conversations: int = 0
    average_stability: float = 0.0
    average_engagement: float = 0.0
    emotion_distribution: Dict[EmotionKind, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_conversations": self.active_conversations,
            "average_stability": round(self.average_stability, 3),
            "average_engagement": round(self.average_engagement, 3),
            "emotion_distribution": {
                k.value: v for k, v in self.emotion_distribution.items()
            },
        }


# =============================================================================
# Completion Provider Payload
# =============================================================================


DEFAULT_AI_CONFIDENCE = 0.7
DEFAULT_AI_REASONING = "AI-generated emotion analysis"


def _parse_emotion(value: Any) -> Optional[EmotionKind]:
    if isinstance(value, str):
        try:
            return EmotionKind(value.strip().lower())
        except ValueError:
            return None
    return None


class AIEmotionPayload(BaseModel):
    """
    Emotion analysis as returned by a completion provider.

    Every field is checked against its closed vocabulary. An invalid or
    missing field is replaced by its default instead of rejecting the
    whole payload.
    """

    primary_emotion: EmotionKind = Field(default=EmotionKind.HELPFUL, alias="primaryEmotion")
    secondary_emotions: List[EmotionKind] = Field(
        default_factory=list, alias="secondaryEmotions"
    )
    confidence: float = DEFAULT_AI_CONFIDENCE
    sentiment: Sentiment = Sentiment.NEUTRAL
    intensity: Intensity = Intensity.MEDIUM
    reasoning: str = DEFAULT_AI_REASONING

    model_config = {"populate_by_name": True}

    @field_validator("primary_emotion", mode="before")
    @classmethod
    def _valid_primary(cls, value: Any) -> EmotionKind:
        return _parse_emotion(value) or EmotionKind.HELPFUL

    @field_validator("secondary_emotions", mode="before")
    @classmethod
    def _valid_secondary(cls, value: Any) -> List[EmotionKind]:
        if not isinstance(value, (list, tuple)):
            return []
        emotions = [_parse_emotion(v) for v in value]
        return [e for e in emotions if e is not None]

    @field_validator("confidence", mode="before")
    @classmethod
    def _valid_confidence(cls, value: Any) -> float:
        if isinstance(value, bool):
            return DEFAULT_AI_CONFIDENCE
        try:
            number = float(value)
        except (TypeError, ValueError):
            return DEFAULT_AI_CONFIDENCE
        if math.isnan(number):
            return DEFAULT_AI_CONFIDENCE
        return clamp(number)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _valid_sentiment(cls, value: Any) -> Sentiment:
        if isinstance(value, str) and value.strip().lower() in Sentiment._value2member_map_:
            return Sentiment(value.strip().lower())
        return Sentiment.NEUTRAL

    @field_validator("intensity", mode="before")
    @classmethod
    def _valid_intensity(cls, value: Any) -> Intensity:
        if isinstance(value, str) and value.strip().lower() in Intensity._value2member_map_:
            return Intensity(value.strip().lower())
        return Intensity.MEDIUM

    @field_validator("reasoning", mode="before")
    @classmethod
    def _valid_reasoning(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_AI_REASONING

    @model_validator(mode="after")
    def _secondary_excludes_primary(self) -> "AIEmotionPayload":
        cleaned: List[EmotionKind] = []
        for emotion in self.secondary_emotions:
            if emotion != self.primary_emotion and emotion not in cleaned:
                cleaned.append(emotion)
        self.secondary_emotions = cleaned[:2]
        return self

    def to_analysis(self) -> EmotionAnalysis:
        return EmotionAnalysis.create(
            primary=self.primary_emotion,
            secondary=self.secondary_emotions,
            confidence=self.confidence,
            sentiment=self.sentiment,
            intensity=self.intensity,
            reasoning=self.reasoning,
        )


# =============================================================================
# Exceptions
# =============================================================================


class EmotionEngineError(Exception):
    """Base exception for emotion engine errors."""
    pass


class ProviderError(EmotionEngineError):
    """Completion provider call failed or timed out."""
    pass


class PayloadParseError(EmotionEngineError):
    """Completion provider reply holds no decodable JSON object."""
    pass


class MarkupError(EmotionEngineError):
    """Generated SSML could not be repaired."""
    pass


__all__ = [
    "clamp",
    "EmotionAnalysis",
    "SentimentScore",
    "EmotionalMarker",
    "VoiceParameters",
    "ProsodyAttributes",
    "EmotionConfig",
    "SSMLOptions",
    "SSMLValidationResult",
    "ConversationState",
    "TurnMetadata",
    "ConversationTurnResult",
    "EmotionalStats",
    "AIEmotionPayload",
    "EmotionEngineError",
    "ProviderError",
    "PayloadParseError",
    "MarkupError",
]
