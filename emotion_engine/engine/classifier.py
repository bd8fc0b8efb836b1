"""
Emotion Classifier.

Maps response text to one of the ten speaking emotions. Trigger patterns
are checked first and pre-empt keyword scoring; keyword markers then supply
secondary emotions, confidence and intensity. An optional completion
provider can classify instead, with the rule-based path as fallback.
"""

import asyncio
import json
import string
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import structlog

from ..config import ClassifierConfig, EmotionKind, Intensity, Sentiment
from ..llm.base import LLMAdapter, Message
from ..models import (
    AIEmotionPayload,
    EmotionEngineError,
    EmotionAnalysis,
    EmotionalMarker,
    PayloadParseError,
    ProviderError,
    SentimentScore,
)
from ..tables import (
    EMOTION_KEYWORDS,
    EMOTION_PATTERNS,
    EMPHASIS_WORDS,
    NEGATIVE_WORDS,
    NEUTRAL_WORDS,
    POSITIVE_WORDS,
    PatternGroup,
)
from .cache import ClassificationCache

logger = structlog.get_logger()


# Keyword marker intensity
BASE_KEYWORD_INTENSITY = 0.6
EMPHASIS_BOOST = 0.2
EXCLAMATION_BOOST = 0.1
CAPITALIZATION_BOOST = 0.15
PATTERN_INTENSITY = 0.8

# Used when no markers are found
DEFAULT_CONFIDENCE = 0.6
DEFAULT_AVG_INTENSITY = 0.5

EMOTION_ANALYSIS_PROMPT = """You are an expert emotion analysis AI for conversational voice synthesis. Analyze the text sent by the user and identify:

1. Primary emotion (one of: happy, excited, curious, helpful, calm, enthusiastic, confident, surprised, thoughtful, encouraging)
2. Secondary emotions (up to 2, from the same list)
3. Confidence level (0.0 to 1.0)
4. Sentiment (positive, neutral, negative)
5. Intensity (low, medium, high)
6. Brief reasoning for your analysis

The analysis drives emotionally expressive text-to-speech for a voice assistant.

Respond ONLY in this JSON format:
{
  "primaryEmotion": "emotion_name",
  "secondaryEmotions": ["emotion1", "emotion2"],
  "confidence": 0.85,
  "sentiment": "positive",
  "intensity": "medium",
  "reasoning": "Brief explanation of the emotional analysis"
}"""


def coerce_text(text: Any) -> str:
    """Turn arbitrary input into analyzable text."""
    if text is None:
        return ""
    if isinstance(text, str):
        return text
    return str(text)


def intensity_bucket(avg_intensity: float) -> Intensity:
    if avg_intensity > 0.7:
        return Intensity.HIGH
    if avg_intensity > 0.4:
        return Intensity.MEDIUM
    return Intensity.LOW


def extract_json_object(reply: str) -> Dict[str, Any]:
    """
    Decode the first balanced ``{...}`` object in a free-text reply.

    Braces inside JSON strings are ignored while matching.

    Raises:
        PayloadParseError: No balanced object, or it is not valid JSON.
    """
    start = reply.find("{")
    if start == -1:
        raise PayloadParseError("No JSON object found in reply")

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(reply)):
        char = reply[i]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                candidate = reply[start:i + 1]
                try:
                    data = json.loads(candidate)
                except json.JSONDecodeError as e:
                    raise PayloadParseError(f"Invalid JSON object: {e}") from e
                if not isinstance(data, dict):
                    raise PayloadParseError("JSON value is not an object")
                return data

    raise PayloadParseError("Unbalanced JSON object in reply")


class EmotionClassifier:
    """
    Text emotion classifier.

    Usage:
        classifier = EmotionClassifier(config, llm=adapter)
        analysis = await classifier.analyze("Wow, that's amazing!")
        print(analysis.primary, analysis.intensity)
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        llm: Optional[LLMAdapter] = None,
        cache: Optional[ClassificationCache] = None,
    ):
        self.config = config or ClassifierConfig()
        self.llm = llm
        self.cache = cache if cache is not None else ClassificationCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
        )
        self.logger = logger.bind(component="classifier")

    @property
    def ai_available(self) -> bool:
        return self.llm is not None

    async def analyze(self, text: Any, use_ai: bool = True) -> EmotionAnalysis:
        """
        Classify text, consulting the cache first.

        Never raises: any failure degrades to the rule-based result.
        """
        text = coerce_text(text)
        use_ai = bool(use_ai)

        cached = self.cache.get(text, use_ai)
        if cached is not None:
            return cached

        method = "ai" if use_ai and self.ai_available else "rules"
        try:
            if method == "ai":
                analysis = await self._analyze_with_ai(text)
            else:
                analysis = self.analyze_with_rules(text)
        except Exception as e:
            self.logger.warning("analysis_failed", error=str(e), method=method)
            analysis = self._safe_rules(text)

        self.cache.set(text, use_ai, analysis)

        self.logger.debug(
            "analysis_completed",
            text_length=len(text),
            primary=analysis.primary.value,
            confidence=round(analysis.confidence, 3),
            method=method,
        )

        return analysis

    # -------------------------------------------------------------------------
    # Rule-based path
    # -------------------------------------------------------------------------

    def analyze_with_rules(self, text: Any) -> EmotionAnalysis:
        """Classify using trigger patterns and keyword markers."""
        text = coerce_text(text)

        sentiment = self.detect_sentiment(text)
        markers = self.identify_emotional_markers(text)
        pattern_hit = self.match_pattern(text)

        scores = self._score_markers(markers)

        if pattern_hit is not None:
            primary = pattern_hit.emotion
            decided_by = f'pattern group "{pattern_hit.name}"'
        else:
            primary = self._top_emotion(scores)
            decided_by = "keyword scoring"

        ranked = sorted(
            (e for e, s in scores.items() if e != primary and s > 0),
            key=lambda e: scores[e],
            reverse=True,
        )
        secondary = ranked[:2]

        if markers:
            avg_intensity = float(np.mean([m.intensity for m in markers]))
            confidence = float(np.clip(avg_intensity, 0.4, 0.95))
        else:
            avg_intensity = DEFAULT_AVG_INTENSITY
            confidence = DEFAULT_CONFIDENCE

        return EmotionAnalysis.create(
            primary=primary,
            secondary=secondary,
            confidence=confidence,
            sentiment=sentiment.sentiment,
            intensity=intensity_bucket(avg_intensity),
            reasoning=(
                f"Rule-based analysis found {len(markers)} emotional markers. "
                f'Primary emotion "{primary.value}" chosen by {decided_by} '
                f"with {confidence * 100:.1f}% confidence."
            ),
        )

    def match_pattern(self, text: str) -> Optional[PatternGroup]:
        """Return the group of the first matching trigger pattern, in priority order."""
        for group in EMOTION_PATTERNS:
            for pattern in group.patterns:
                if pattern.search(text):
                    return group
        return None

    def _score_markers(self, markers: List[EmotionalMarker]) -> Dict[EmotionKind, float]:
        scores: Dict[EmotionKind, float] = {}
        for marker in markers:
            scores[marker.emotion] = scores.get(marker.emotion, 0.0) + marker.intensity
        # Canonical order keeps ranking deterministic between equal scores
        return {e: scores[e] for e in EmotionKind if e in scores}

    def _top_emotion(self, scores: Dict[EmotionKind, float]) -> EmotionKind:
        if not scores:
            return EmotionKind.HELPFUL

        values = np.array(list(scores.values()))
        best = values.max()
        if int(np.isclose(values, best).sum()) > 1:
            return EmotionKind.HELPFUL

        return max(scores, key=scores.get)

    def identify_emotional_markers(self, text: Any) -> List[EmotionalMarker]:
        """
        Locate keyword and pattern hits.

        Every occurrence of every keyword counts, so a phrase that contains
        a shorter keyword is scored more than once. Hits covering the same
        span are kept once: the first in keyword order, then pattern order.
        """
        text = coerce_text(text)
        lowered = text.lower()
        aligned = len(lowered) == len(text)
        tokens = [t.strip(string.punctuation) for t in lowered.split()]

        markers: List[EmotionalMarker] = []

        for emotion in EmotionKind:
            for keyword in EMOTION_KEYWORDS[emotion]:
                start = lowered.find(keyword)
                while start != -1:
                    end = start + len(keyword)
                    matched = text[start:end] if aligned else keyword
                    markers.append(
                        EmotionalMarker(
                            start=start,
                            end=end,
                            text=matched,
                            emotion=emotion,
                            intensity=self._keyword_intensity(
                                matched, text, lowered, tokens, start
                            ),
                            reason=f'Keyword match: "{keyword}"',
                        )
                    )
                    start = lowered.find(keyword, end)

        for group in EMOTION_PATTERNS:
            for pattern in group.patterns:
                match = pattern.search(text)
                if match:
                    markers.append(
                        EmotionalMarker(
                            start=match.start(),
                            end=match.end(),
                            text=match.group(0),
                            emotion=group.emotion,
                            intensity=PATTERN_INTENSITY,
                            reason=f"Pattern match: {group.name}",
                        )
                    )

        seen = set()
        unique: List[EmotionalMarker] = []
        for marker in markers:
            span = (marker.start, marker.end)
            if span not in seen:
                seen.add(span)
                unique.append(marker)

        unique.sort(key=lambda m: m.start)
        return unique

    def _keyword_intensity(
        self,
        matched: str,
        text: str,
        lowered: str,
        tokens: List[str],
        start: int,
    ) -> float:
        intensity = BASE_KEYWORD_INTENSITY

        prefix = lowered[:start]
        index = len(prefix.split())
        if prefix and not prefix[-1].isspace():
            # Match begins inside a token that started earlier
            index -= 1
        nearby = tokens[max(0, index - 2):index + 3]
        if any(token in EMPHASIS_WORDS for token in nearby):
            intensity += EMPHASIS_BOOST

        if "!" in text:
            intensity += EXCLAMATION_BOOST

        if len(matched) > 2 and matched.isupper():
            intensity += CAPITALIZATION_BOOST

        return min(1.0, intensity)

    def detect_sentiment(self, text: Any) -> SentimentScore:
        """Score sentiment polarity from lexicon hits."""
        tokens = coerce_text(text).lower().split()
        if not tokens:
            return SentimentScore(score=0.0, sentiment=Sentiment.NEUTRAL, confidence=0.5)

        positive = negative = neutral = 0
        for token in tokens:
            if any(word in token for word in POSITIVE_WORDS):
                positive += 1
            elif any(word in token for word in NEGATIVE_WORDS):
                negative += 1
            elif any(word in token for word in NEUTRAL_WORDS):
                neutral += 1

        hits = positive + negative + neutral
        if hits == 0:
            return SentimentScore(score=0.0, sentiment=Sentiment.NEUTRAL, confidence=0.5)

        net = (positive - negative) / len(tokens)
        if net > 0.05:
            sentiment = Sentiment.POSITIVE
        elif net < -0.05:
            sentiment = Sentiment.NEGATIVE
        else:
            sentiment = Sentiment.NEUTRAL

        return SentimentScore(
            score=float(np.clip(net * 5, -1.0, 1.0)),
            sentiment=sentiment,
            confidence=min(0.95, hits / len(tokens) + 0.3),
        )

    def _safe_rules(self, text: str) -> EmotionAnalysis:
        try:
            return self.analyze_with_rules(text)
        except Exception as e:
            self.logger.error("rule_analysis_failed", error=str(e))
            return EmotionAnalysis.create(
                primary=EmotionKind.HELPFUL,
                reasoning="Default analysis after classifier failure",
            )

    # -------------------------------------------------------------------------
    # AI-assisted path
    # -------------------------------------------------------------------------

    async def _analyze_with_ai(self, text: str) -> EmotionAnalysis:
        try:
            reply = await self._request_analysis(text)
            payload = self.parse_ai_reply(reply)
        except EmotionEngineError as e:
            self.logger.warning("ai_analysis_failed", adapter=self.llm.name, error=str(e))
            return self._safe_rules(text)

        return payload.to_analysis()

    async def _request_analysis(self, text: str) -> str:
        """
        Ask the provider for an analysis.

        Raises:
            ProviderError: The call failed or timed out.
        """
        messages = [
            Message(role="system", content=EMOTION_ANALYSIS_PROMPT),
            Message(role="user", content=text),
        ]

        try:
            response = await asyncio.wait_for(
                self.llm.generate(
                    messages,
                    temperature=self.config.ai_temperature,
                    max_tokens=self.config.ai_max_tokens,
                ),
                timeout=self.config.ai_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"{self.llm.name} timed out after {self.config.ai_timeout_seconds}s"
            ) from e
        except Exception as e:
            raise ProviderError(f"{self.llm.name} request failed: {e}") from e

        return response.text

    @staticmethod
    def parse_ai_reply(reply: str) -> AIEmotionPayload:
        """Locate, decode and field-validate the provider's JSON object."""
        data = extract_json_object(reply or "")
        return AIEmotionPayload.model_validate(data)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()
        self.logger.info("classification_cache_cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()


__all__ = [
    "EmotionClassifier",
    "EMOTION_ANALYSIS_PROMPT",
    "extract_json_object",
    "coerce_text",
    "intensity_bucket",
]
