"""Shared pytest fixtures for testing."""

from typing import Callable, Iterable

import pytest

from emotion_engine.config import (
    ClassifierConfig,
    ConversationConfig,
    EmotionKind,
    Intensity,
    LLMConfig,
    LLMProvider,
    Sentiment,
    Settings,
    SSMLConfig,
)
from emotion_engine.engine import (
    EmotionClassifier,
    EmotionEngine,
    EmotionalConsistencyTracker,
    SSMLGenerator,
)
from emotion_engine.models import EmotionAnalysis


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's provider choice."""
    return Settings(
        classifier=ClassifierConfig(cache_ttl_seconds=300.0, cache_max_entries=1024),
        conversation=ConversationConfig(max_journey_length=20),
        ssml=SSMLConfig(chars_per_second=15.0, max_repair_passes=2),
        llm=LLMConfig(provider=LLMProvider.NONE),
    )


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def classifier(settings: Settings) -> EmotionClassifier:
    return EmotionClassifier(config=settings.classifier)


@pytest.fixture
def generator(settings: Settings) -> SSMLGenerator:
    return SSMLGenerator(settings.ssml)


@pytest.fixture
def tracker(settings: Settings) -> EmotionalConsistencyTracker:
    return EmotionalConsistencyTracker(settings.conversation)


@pytest.fixture
def engine(settings: Settings) -> EmotionEngine:
    return EmotionEngine(settings=settings)


@pytest.fixture
def make_analysis() -> Callable[..., EmotionAnalysis]:
    """Factory for hand-built analyses."""

    def _make(
        primary: EmotionKind = EmotionKind.HELPFUL,
        secondary: Iterable[EmotionKind] = (),
        confidence: float = 0.7,
        sentiment: Sentiment = Sentiment.NEUTRAL,
        intensity: Intensity = Intensity.MEDIUM,
    ) -> EmotionAnalysis:
        return EmotionAnalysis.create(
            primary=primary,
            secondary=secondary,
            confidence=confidence,
            sentiment=sentiment,
            intensity=intensity,
            reasoning="test",
        )

    return _make
