"""
Static emotion vocabulary.

Voice presets, keyword lists, trigger patterns and the conversational
transition rules. Every table keyed by emotion covers all of EmotionKind.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Pattern, Tuple

from .config import BreakStrength, EmotionKind, EmphasisLevel
from .models import EmotionConfig, ProsodyAttributes, VoiceParameters


def _preset(
    emotion: EmotionKind,
    rate: str,
    pitch: str,
    volume: str,
    stability: float,
    similarity_boost: float,
    emphasis: EmphasisLevel,
    pause_after: str,
    prosody_rate: str,
    prosody_volume: str,
    break_strength: BreakStrength,
) -> EmotionConfig:
    return EmotionConfig(
        emotion=emotion,
        voice_params=VoiceParameters(
            rate=rate,
            pitch=pitch,
            volume=volume,
            stability=stability,
            similarity_boost=similarity_boost,
            emphasis=emphasis,
            pause_after=pause_after,
        ),
        prosody=ProsodyAttributes(rate=prosody_rate, pitch=pitch, volume=prosody_volume),
        emphasis_level=emphasis,
        break_time=pause_after,
        break_strength=break_strength,
    )


# =============================================================================
# Voice Presets
# =============================================================================

EMOTION_CONFIGS: Mapping[EmotionKind, EmotionConfig] = MappingProxyType({
    EmotionKind.HAPPY: _preset(
        EmotionKind.HAPPY, "1.1", "+10%", "+5dB", 0.6, 0.8,
        EmphasisLevel.MODERATE, "200ms", "110%", "loud", BreakStrength.WEAK,
    ),
    EmotionKind.EXCITED: _preset(
        EmotionKind.EXCITED, "1.2", "+15%", "+8dB", 0.7, 0.9,
        EmphasisLevel.STRONG, "150ms", "120%", "x-loud", BreakStrength.WEAK,
    ),
    EmotionKind.CURIOUS: _preset(
        EmotionKind.CURIOUS, "0.9", "+5%", "medium", 0.5, 0.7,
        EmphasisLevel.MODERATE, "300ms", "90%", "medium", BreakStrength.MEDIUM,
    ),
    EmotionKind.HELPFUL: _preset(
        EmotionKind.HELPFUL, "1.0", "medium", "medium", 0.8, 0.8,
        EmphasisLevel.MODERATE, "250ms", "100%", "medium", BreakStrength.WEAK,
    ),
    EmotionKind.CALM: _preset(
        EmotionKind.CALM, "0.85", "-5%", "-2dB", 0.9, 0.6,
        EmphasisLevel.REDUCED, "400ms", "85%", "soft", BreakStrength.MEDIUM,
    ),
    EmotionKind.ENTHUSIASTIC: _preset(
        EmotionKind.ENTHUSIASTIC, "1.15", "+12%", "+6dB", 0.6, 0.85,
        EmphasisLevel.STRONG, "180ms", "115%", "loud", BreakStrength.WEAK,
    ),
    EmotionKind.CONFIDENT: _preset(
        EmotionKind.CONFIDENT, "1.05", "+3%", "+3dB", 0.8, 0.9,
        EmphasisLevel.MODERATE, "200ms", "105%", "medium", BreakStrength.WEAK,
    ),
    EmotionKind.SURPRISED: _preset(
        EmotionKind.SURPRISED, "1.1", "+20%", "+4dB", 0.5, 0.7,
        EmphasisLevel.STRONG, "300ms", "110%", "loud", BreakStrength.MEDIUM,
    ),
    EmotionKind.THOUGHTFUL: _preset(
        EmotionKind.THOUGHTFUL, "0.8", "-3%", "medium", 0.9, 0.6,
        EmphasisLevel.REDUCED, "500ms", "80%", "medium", BreakStrength.STRONG,
    ),
    EmotionKind.ENCOURAGING: _preset(
        EmotionKind.ENCOURAGING, "1.0", "+8%", "+4dB", 0.7, 0.85,
        EmphasisLevel.MODERATE, "250ms", "100%", "loud", BreakStrength.WEAK,
    ),
})


# =============================================================================
# Classification Vocabulary
# =============================================================================

EMOTION_KEYWORDS: Mapping[EmotionKind, Tuple[str, ...]] = MappingProxyType({
    EmotionKind.HAPPY: (
        "great", "wonderful", "awesome", "fantastic", "love", "enjoy", "delighted",
        "pleased", "thrilled", "amazing", "brilliant", "excellent", "perfect",
        "smile", "laugh", "joy", "cheerful", "positive",
    ),
    EmotionKind.EXCITED: (
        "wow", "incredible", "unbelievable", "amazing", "spectacular", "revolutionary",
        "breakthrough", "extraordinary", "phenomenal", "outstanding", "remarkable",
        "astonishing", "mind-blowing", "epic", "super", "ultra", "mega",
    ),
    EmotionKind.CURIOUS: (
        "interesting", "how", "why", "what", "when", "where", "tell me more",
        "i wonder", "curious", "explore", "discover", "learn", "understand",
        "fascinating", "intriguing", "puzzling", "mysterious",
    ),
    EmotionKind.HELPFUL: (
        "help", "assist", "support", "guide", "show you", "let me", "i can",
        "here to", "happy to help", "glad to", "pleasure", "service",
        "recommend", "suggest", "advise", "tips", "solution",
    ),
    EmotionKind.CALM: (
        "relax", "peaceful", "tranquil", "serene", "gentle", "soft", "quiet",
        "slow down", "take time", "breathe", "rest", "comfort", "soothing",
        "no worries", "it's okay", "don't worry", "easy", "simple",
    ),
    EmotionKind.ENTHUSIASTIC: (
        "let's go", "absolutely", "definitely", "certainly", "for sure",
        "no doubt", "without question", "of course", "right on", "yes",
        "totally", "completely", "entirely", "extremely", "highly",
    ),
    EmotionKind.CONFIDENT: (
        "certain", "sure", "confident", "positive", "definite", "clear",
        "obvious", "evident", "undoubtedly", "absolutely", "precisely",
        "exactly", "specifically", "indeed", "truly", "really",
    ),
    EmotionKind.SURPRISED: (
        "really", "seriously", "no way", "oh my", "wow", "incredible",
        "unbelievable", "shocking", "unexpected", "sudden", "surprising",
        "astonishing", "remarkable", "extraordinary", "unusual",
    ),
    EmotionKind.THOUGHTFUL: (
        "hmm", "let me think", "consider", "ponder", "reflect", "contemplate",
        "analyze", "examine", "evaluate", "assess", "review", "study",
        "deep", "complex", "intricate", "nuanced", "sophisticated",
    ),
    EmotionKind.ENCOURAGING: (
        "you can do it", "keep going", "don't give up", "believe", "trust",
        "have faith", "stay strong", "persevere", "continue", "try again",
        "almost there", "getting close", "making progress", "doing well",
    ),
})


@dataclass(frozen=True)
class PatternGroup:
    """Trigger patterns signalling one emotion."""

    name: str
    emotion: EmotionKind
    patterns: Tuple[Pattern[str], ...]


# Checked in this order; the first matching pattern decides the primary emotion.
EMOTION_PATTERNS: Tuple[PatternGroup, ...] = (
    PatternGroup(
        name="questions",
        emotion=EmotionKind.CURIOUS,
        patterns=(
            re.compile(r"\?$"),
            re.compile(r"^(what|how|why|when|where|who)", re.IGNORECASE),
            re.compile(r"tell me about", re.IGNORECASE),
        ),
    ),
    PatternGroup(
        name="exclamations",
        emotion=EmotionKind.EXCITED,
        patterns=(
            re.compile(r"!$"),
            re.compile(r"^wow", re.IGNORECASE),
            re.compile(r"amazing", re.IGNORECASE),
            re.compile(r"incredible", re.IGNORECASE),
        ),
    ),
    PatternGroup(
        name="instructions",
        emotion=EmotionKind.HELPFUL,
        patterns=(
            re.compile(r"^(let me|I'll|I can)", re.IGNORECASE),
            re.compile(r"here's how", re.IGNORECASE),
            re.compile(r"follow these", re.IGNORECASE),
        ),
    ),
    PatternGroup(
        name="reassurance",
        emotion=EmotionKind.CALM,
        patterns=(
            re.compile(r"don't worry", re.IGNORECASE),
            re.compile(r"it's okay", re.IGNORECASE),
            re.compile(r"no problem", re.IGNORECASE),
            re.compile(r"easy", re.IGNORECASE),
        ),
    ),
    PatternGroup(
        name="agreement",
        emotion=EmotionKind.CONFIDENT,
        patterns=(
            re.compile(r"^(yes|absolutely|definitely|certainly)", re.IGNORECASE),
            re.compile(r"I agree", re.IGNORECASE),
            re.compile(r"exactly", re.IGNORECASE),
        ),
    ),
)

EMPHASIS_WORDS: FrozenSet[str] = frozenset(
    {"very", "really", "extremely", "super", "absolutely", "completely"}
)

# Sentiment lexicons, matched by substring against each token
POSITIVE_WORDS: Tuple[str, ...] = (
    "good", "great", "excellent", "amazing", "wonderful", "fantastic", "love", "like",
    "happy", "pleased", "satisfied", "perfect", "brilliant", "awesome", "super",
    "best", "better", "improved", "success", "win", "achieve", "accomplish",
)

NEGATIVE_WORDS: Tuple[str, ...] = (
    "bad", "terrible", "awful", "horrible", "hate", "dislike", "sad", "angry",
    "frustrated", "disappointed", "fail", "failure", "problem", "issue", "wrong",
    "difficult", "hard", "impossible", "annoying", "irritating", "upset",
)

NEUTRAL_WORDS: Tuple[str, ...] = (
    "okay", "fine", "normal", "average", "standard", "typical", "usual", "regular",
)


# =============================================================================
# SSML Vocabulary
# =============================================================================

PUNCTUATION_MARKS: Tuple[str, ...] = (".", "!", "?", ",", ";", ":")


def _breaks(
    sentence: int, exclamation: int, question: int, comma: int, semicolon: int, colon: int
) -> Mapping[str, str]:
    return MappingProxyType({
        ".": f"{sentence}ms",
        "!": f"{exclamation}ms",
        "?": f"{question}ms",
        ",": f"{comma}ms",
        ";": f"{semicolon}ms",
        ":": f"{colon}ms",
    })


# Pause after each punctuation mark, per emotion
BREAK_TIMES: Mapping[EmotionKind, Mapping[str, str]] = MappingProxyType({
    EmotionKind.HAPPY: _breaks(250, 150, 200, 100, 150, 200),
    EmotionKind.EXCITED: _breaks(200, 100, 150, 100, 150, 200),
    EmotionKind.CURIOUS: _breaks(300, 200, 250, 150, 200, 250),
    EmotionKind.HELPFUL: _breaks(300, 200, 250, 150, 200, 250),
    EmotionKind.CALM: _breaks(500, 300, 400, 200, 300, 400),
    EmotionKind.ENTHUSIASTIC: _breaks(220, 120, 170, 100, 150, 200),
    EmotionKind.CONFIDENT: _breaks(250, 150, 200, 100, 150, 200),
    EmotionKind.SURPRISED: _breaks(300, 150, 250, 150, 200, 250),
    EmotionKind.THOUGHTFUL: _breaks(550, 350, 450, 250, 350, 450),
    EmotionKind.ENCOURAGING: _breaks(300, 200, 250, 150, 200, 250),
})

EMPHASIS_KEYWORDS: Mapping[EmotionKind, Tuple[str, ...]] = MappingProxyType({
    EmotionKind.HAPPY: ("great", "wonderful", "love", "perfect"),
    EmotionKind.EXCITED: ("amazing", "incredible", "fantastic", "wow", "awesome"),
    EmotionKind.CURIOUS: ("interesting", "how", "why", "what", "discover"),
    EmotionKind.HELPFUL: ("help", "assist", "support", "guide", "show"),
    EmotionKind.CALM: ("relax", "gently", "slowly", "breathe"),
    EmotionKind.ENTHUSIASTIC: ("absolutely", "definitely", "totally", "love"),
    EmotionKind.CONFIDENT: ("definitely", "certainly", "absolutely", "sure", "confident"),
    EmotionKind.SURPRISED: ("really", "seriously", "unexpected", "wow"),
    EmotionKind.THOUGHTFUL: ("consider", "perhaps", "carefully", "important"),
    EmotionKind.ENCOURAGING: ("can", "keep", "progress", "believe"),
})

# Words preceded by a short pause when intensity is high
CHARGED_WORDS: Tuple[str, ...] = (
    "amazing", "incredible", "fantastic", "absolutely", "definitely",
)
CHARGED_WORD_BREAK = "100ms"

INTENSITY_TAG_LABELS: Mapping[str, str] = MappingProxyType({
    "low": "low",
    "medium": "medium",
    "high": "high",
})


@dataclass(frozen=True)
class VoiceAdjustment:
    """Multiplicative tuning for a specific synthesizer voice."""

    rate_factor: float
    break_factor: float


VOICE_ADJUSTMENTS: Mapping[str, VoiceAdjustment] = MappingProxyType({
    "pNInz6obpgDQGcFmaJgB": VoiceAdjustment(rate_factor=0.95, break_factor=1.1),
    "21m00Tcm4TlvDq8ikWAM": VoiceAdjustment(rate_factor=1.0, break_factor=0.9),
    "EXAVITQu4vr4xnSDxMaL": VoiceAdjustment(rate_factor=1.05, break_factor=1.0),
})

SSML_TEMPLATES: Mapping[str, str] = MappingProxyType({
    "greeting": (
        '<speak><prosody rate="105%" pitch="+5%">'
        '<emotion name="happy" intensity="medium">{content}</emotion>'
        "</prosody></speak>"
    ),
    "explanation": '<speak><prosody rate="95%" pitch="medium">{content}</prosody></speak>',
    "question": (
        '<speak><prosody rate="100%" pitch="+3%">{content}</prosody>'
        '<break time="300ms"/></speak>'
    ),
    "excitement": (
        '<speak><prosody rate="115%" pitch="+12%" volume="loud">'
        '<emotion name="excited" intensity="high">{content}</emotion>'
        "</prosody></speak>"
    ),
})


# =============================================================================
# Conversation Dynamics
# =============================================================================

NATURAL_TRANSITIONS: Mapping[EmotionKind, FrozenSet[EmotionKind]] = MappingProxyType({
    EmotionKind.CURIOUS: frozenset(
        {EmotionKind.EXCITED, EmotionKind.SURPRISED, EmotionKind.THOUGHTFUL}
    ),
    EmotionKind.EXCITED: frozenset(
        {EmotionKind.HAPPY, EmotionKind.ENTHUSIASTIC, EmotionKind.SURPRISED}
    ),
    EmotionKind.HAPPY: frozenset(
        {EmotionKind.EXCITED, EmotionKind.ENTHUSIASTIC, EmotionKind.CONFIDENT}
    ),
    EmotionKind.CALM: frozenset(
        {EmotionKind.THOUGHTFUL, EmotionKind.HELPFUL, EmotionKind.CONFIDENT}
    ),
    EmotionKind.SURPRISED: frozenset(
        {EmotionKind.EXCITED, EmotionKind.CURIOUS, EmotionKind.HAPPY}
    ),
    EmotionKind.THOUGHTFUL: frozenset(
        {EmotionKind.CURIOUS, EmotionKind.CALM, EmotionKind.CONFIDENT}
    ),
    EmotionKind.CONFIDENT: frozenset(
        {EmotionKind.HELPFUL, EmotionKind.ENTHUSIASTIC, EmotionKind.HAPPY}
    ),
    EmotionKind.HELPFUL: frozenset(
        {EmotionKind.ENCOURAGING, EmotionKind.CALM, EmotionKind.CONFIDENT}
    ),
    EmotionKind.ENTHUSIASTIC: frozenset(
        {EmotionKind.EXCITED, EmotionKind.HAPPY, EmotionKind.CONFIDENT}
    ),
    EmotionKind.ENCOURAGING: frozenset(
        {EmotionKind.HELPFUL, EmotionKind.CONFIDENT, EmotionKind.HAPPY}
    ),
})

COMPLEMENTARY_EMOTIONS: Mapping[EmotionKind, EmotionKind] = MappingProxyType({
    EmotionKind.EXCITED: EmotionKind.CALM,
    EmotionKind.CALM: EmotionKind.ENTHUSIASTIC,
    EmotionKind.CURIOUS: EmotionKind.CONFIDENT,
    EmotionKind.CONFIDENT: EmotionKind.CURIOUS,
    EmotionKind.HAPPY: EmotionKind.THOUGHTFUL,
    EmotionKind.THOUGHTFUL: EmotionKind.ENCOURAGING,
    EmotionKind.SURPRISED: EmotionKind.HELPFUL,
    EmotionKind.HELPFUL: EmotionKind.EXCITED,
    EmotionKind.ENCOURAGING: EmotionKind.HAPPY,
    EmotionKind.ENTHUSIASTIC: EmotionKind.THOUGHTFUL,
})

ENGAGEMENT_EMOTIONS: FrozenSet[EmotionKind] = frozenset({
    EmotionKind.CURIOUS,
    EmotionKind.EXCITED,
    EmotionKind.SURPRISED,
    EmotionKind.ENTHUSIASTIC,
})

# Dominant emotions that call for a balancing response
SUBDUED_EMOTIONS: FrozenSet[EmotionKind] = frozenset({
    EmotionKind.THOUGHTFUL,
    EmotionKind.CALM,
})

# Stability scores for consecutive journey entries
SAME_EMOTION_SCORE = 1.0
NATURAL_TRANSITION_SCORE = 0.7
ABRUPT_TRANSITION_SCORE = 0.3


def is_natural_transition(previous: EmotionKind, current: EmotionKind) -> bool:
    return current in NATURAL_TRANSITIONS.get(previous, frozenset())


__all__ = [
    "EMOTION_CONFIGS",
    "EMOTION_KEYWORDS",
    "PatternGroup",
    "EMOTION_PATTERNS",
    "EMPHASIS_WORDS",
    "POSITIVE_WORDS",
    "NEGATIVE_WORDS",
    "NEUTRAL_WORDS",
    "PUNCTUATION_MARKS",
    "BREAK_TIMES",
    "EMPHASIS_KEYWORDS",
    "CHARGED_WORDS",
    "CHARGED_WORD_BREAK",
    "INTENSITY_TAG_LABELS",
    "VoiceAdjustment",
    "VOICE_ADJUSTMENTS",
    "SSML_TEMPLATES",
    "NATURAL_TRANSITIONS",
    "COMPLEMENTARY_EMOTIONS",
    "ENGAGEMENT_EMOTIONS",
    "SUBDUED_EMOTIONS",
    "SAME_EMOTION_SCORE",
    "NATURAL_TRANSITION_SCORE",
    "ABRUPT_TRANSITION_SCORE",
    "is_natural_transition",
]
