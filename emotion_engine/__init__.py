"""
Emotion Engine - Expressive Speech for Conversational Assistants.

Turns assistant response text into a classified emotional state, voice
modulation parameters and SSML markup, keeping the assistant's tone
coherent across a multi-turn conversation.

Key Features:
- Rule-based emotion classification with optional LLM assistance
- Sentiment scoring from lexicon hits
- Voice parameter presets and emotion blending
- SSML with prosody, pauses, emphasis and emotion tags
- Validation, repair and fallback for generated markup
- Conversation-level adaptation (mirror, complement, guide, stabilize)

Architecture:
    User Input + Response Text
         │
         ▼
    ┌────────────────┐
    │ Emotion        │
    │ Classifier     │──► Emotion + Confidence + Sentiment
    └────────────────┘
         │
         ▼
    ┌────────────────┐
    │ Consistency    │
    │ Tracker        │──► Response Emotion + Session State
    └────────────────┘
         │
         ▼
    ┌────────────────┐
    │ Voice Mapper   │──► Rate, Pitch, Volume, Stability
    └────────────────┘
         │
         ▼
    ┌────────────────┐
    │ SSML           │
    │ Generator      │──► <speak> markup for the synthesizer
    └────────────────┘

Emotions:
- Happy, Excited, Curious, Helpful, Calm
- Enthusiastic, Confident, Surprised, Thoughtful, Encouraging
"""

from .config import (
    AdaptationStrategy,
    EmotionKind,
    Intensity,
    PerformanceMode,
    Sentiment,
    Settings,
    get_settings,
)
from .engine import EmotionEngine, create_engine
from .models import (
    ConversationState,
    ConversationTurnResult,
    EmotionAnalysis,
    EmotionalStats,
    SSMLOptions,
    VoiceParameters,
)

__version__ = "1.0.0"
__author__ = "Builder Engine Team"

__all__ = [
    "AdaptationStrategy",
    "EmotionKind",
    "Intensity",
    "PerformanceMode",
    "Sentiment",
    "Settings",
    "get_settings",
    "EmotionEngine",
    "create_engine",
    "ConversationState",
    "ConversationTurnResult",
    "EmotionAnalysis",
    "EmotionalStats",
    "SSMLOptions",
    "VoiceParameters",
]
