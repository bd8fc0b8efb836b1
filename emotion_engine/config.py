"""
Configuration for the Emotion Engine.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmotionKind(str, Enum):
    """Emotions the assistant can speak with."""

    HAPPY = "happy"
    EXCITED = "excited"
    CURIOUS = "curious"
    HELPFUL = "helpful"
    CALM = "calm"
    ENTHUSIASTIC = "enthusiastic"
    CONFIDENT = "confident"
    SURPRISED = "surprised"
    THOUGHTFUL = "thoughtful"
    ENCOURAGING = "encouraging"


class Sentiment(str, Enum):
    """Sentiment polarity."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Intensity(str, Enum):
    """Emotional intensity bucket."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AdaptationStrategy(str, Enum):
    """How the response emotion is chosen relative to the user's."""

    MIRROR = "mirror"          # Follow the user's emotion
    COMPLEMENT = "complement"  # Balance it with an opposing energy
    GUIDE = "guide"            # Steer toward positive/helpful emotions
    STABILIZE = "stabilize"    # Hold the conversation's dominant emotion


class EmphasisLevel(str, Enum):
    """SSML emphasis levels."""

    STRONG = "strong"
    MODERATE = "moderate"
    REDUCED = "reduced"


class BreakStrength(str, Enum):
    """SSML break strengths."""

    NONE = "none"
    X_WEAK = "x-weak"
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    X_STRONG = "x-strong"


class PerformanceMode(str, Enum):
    """SSML output optimization target."""

    SPEED = "speed"      # Prosody only, no breaks or emphasis
    QUALITY = "quality"  # Keep all emotional markup


class LLMProvider(str, Enum):
    """Completion providers usable for AI-assisted classification."""

    OPENAI = "openai"
    GROQ = "groq"
    MOCK = "mock"
    NONE = "none"


class ClassifierConfig(BaseSettings):
    """Configuration for emotion classification."""

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_")

    # Result cache
    cache_ttl_seconds: float = Field(
        default=300.0,
        description="Lifetime of a cached classification",
    )
    cache_max_entries: int = Field(
        default=1024,
        ge=0,
        description="Maximum cached classifications (0 = unbounded)",
    )

    # AI-assisted path
    ai_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the completion provider call",
    )
    ai_temperature: float = Field(default=0.3, description="Sampling temperature")
    ai_max_tokens: int = Field(default=500, description="Max completion tokens")


class ConversationConfig(BaseSettings):
    """Configuration for conversational consistency tracking."""

    model_config = SettingsConfigDict(env_prefix="CONVERSATION_")

    max_journey_length: int = Field(
        default=20,
        ge=2,
        le=20,
        description="Emotions kept in a session's rolling journey",
    )
    session_idle_timeout_seconds: float = Field(
        default=3600.0,
        description="Idle time after which a session may be pruned",
    )


class SSMLConfig(BaseSettings):
    """Configuration for SSML generation."""

    model_config = SettingsConfigDict(env_prefix="SSML_")

    chars_per_second: float = Field(
        default=15.0,
        gt=0,
        description="Speaking speed used for duration estimates",
    )
    max_repair_passes: int = Field(
        default=2,
        ge=1,
        description="Repair attempts before falling back to minimal SSML",
    )


class LLMConfig(BaseSettings):
    """Configuration for the completion provider."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    provider: LLMProvider = Field(
        default=LLMProvider.NONE,
        description="Provider used for AI-assisted classification",
    )

    # OpenAI settings
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None

    # Groq settings
    groq_api_key: str = Field(default="", description="Groq API key")
    groq_model: str = "llama-3.1-8b-instant"
    groq_base_url: str = "https://api.groq.com/openai/v1"


class Settings(BaseSettings):
    """Main engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="emotion-engine", description="Service name")
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="json or console")

    # Sub-configurations
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    ssml: SSMLConfig = Field(default_factory=SSMLConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
