"""Emotion engine core components."""

from .cache import ClassificationCache
from .classifier import EmotionClassifier
from .consistency import ConversationStore, EmotionalConsistencyTracker
from .engine import EmotionEngine, EngineMetrics, create_engine
from .ssml import SSMLGenerator, render_template, strip_markup
from .voice_mapper import blend_emotions, map_to_voice_parameters

__all__ = [
    "ClassificationCache",
    "EmotionClassifier",
    "ConversationStore",
    "EmotionalConsistencyTracker",
    "EmotionEngine",
    "EngineMetrics",
    "create_engine",
    "SSMLGenerator",
    "render_template",
    "strip_markup",
    "blend_emotions",
    "map_to_voice_parameters",
]
