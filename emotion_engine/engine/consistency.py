"""
Emotional Consistency Tracker.

Keeps a conversation's voice coherent across turns: picks the response
emotion from the user's emotion, the response's natural emotion and the
session's adaptation strategy, then updates the session's journey,
stability, engagement and next strategy.
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

import numpy as np
import structlog

from ..config import (
    AdaptationStrategy,
    ConversationConfig,
    EmotionKind,
    Intensity,
    Sentiment,
)
from ..models import ConversationState, EmotionalStats, EmotionAnalysis, utcnow
from ..tables import (
    ABRUPT_TRANSITION_SCORE,
    COMPLEMENTARY_EMOTIONS,
    ENGAGEMENT_EMOTIONS,
    NATURAL_TRANSITION_SCORE,
    SAME_EMOTION_SCORE,
    SUBDUED_EMOTIONS,
    is_natural_transition,
)

logger = structlog.get_logger()

Clock = Callable[[], datetime]

MIRROR_BLEND_RATIO = 0.7
GUIDANCE_STRENGTH = 0.3
GUIDANCE_TARGET_CONFIDENCE = 0.8
STABILIZE_THRESHOLD = 0.7

_INTENSITY_VALUES: Dict[Intensity, int] = {
    Intensity.LOW: 1,
    Intensity.MEDIUM: 2,
    Intensity.HIGH: 3,
}
_VALUE_INTENSITIES: Dict[int, Intensity] = {v: k for k, v in _INTENSITY_VALUES.items()}


def blend_intensity(first: Intensity, second: Intensity, ratio: float) -> Intensity:
    """Ordinal blend of two intensity buckets, rounding half up."""
    blended = _INTENSITY_VALUES[first] * ratio + _INTENSITY_VALUES[second] * (1 - ratio)
    return _VALUE_INTENSITIES.get(int(np.floor(blended + 0.5)), Intensity.MEDIUM)


class ConversationStore:
    """In-memory table of conversation states, keyed by session id."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utcnow
        self._states: Dict[str, ConversationState] = {}

    def get(self, session_id: str) -> Optional[ConversationState]:
        return self._states.get(session_id)

    def get_or_create(
        self, session_id: str, user_id: Optional[str] = None
    ) -> ConversationState:
        state = self._states.get(session_id)
        if state is None:
            now = self._clock()
            state = ConversationState(
                session_id=session_id,
                user_id=user_id,
                created_at=now,
                last_interaction=now,
            )
            self._states[session_id] = state
            logger.debug("conversation_created", session_id=session_id)
        elif user_id and not state.user_id:
            state.user_id = user_id
        return state

    def delete(self, session_id: str) -> bool:
        return self._states.pop(session_id, None) is not None

    def prune_idle(self, max_idle_seconds: float) -> int:
        """Remove sessions idle longer than ``max_idle_seconds``."""
        now = self._clock()
        stale = [
            session_id
            for session_id, state in self._states.items()
            if (now - state.last_interaction).total_seconds() > max_idle_seconds
        ]
        for session_id in stale:
            del self._states[session_id]

        if stale:
            logger.info("conversations_pruned", count=len(stale))
        return len(stale)

    def stats(self) -> EmotionalStats:
        """Averages and dominant-emotion distribution over all sessions."""
        states = list(self._states.values())
        if not states:
            return EmotionalStats()

        distribution: Dict[EmotionKind, int] = {}
        for state in states:
            distribution[state.dominant_emotion] = distribution.get(state.dominant_emotion, 0) + 1

        return EmotionalStats(
            active_conversations=len(states),
            average_stability=float(np.mean([s.emotional_stability for s in states])),
            average_engagement=float(np.mean([s.user_engagement for s in states])),
            emotion_distribution=distribution,
        )

    def clear(self) -> None:
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._states

    def __iter__(self) -> Iterator[ConversationState]:
        return iter(list(self._states.values()))


class EmotionalConsistencyTracker:
    """
    Chooses response emotions and tracks conversational dynamics.

    Strategies:
    - mirror: speak with the user's emotion
    - complement: balance the user's energy
    - guide: steer toward encouraging/confident/helpful
    - stabilize: hold the session's dominant emotion
    """

    def __init__(
        self,
        config: Optional[ConversationConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or ConversationConfig()
        self._clock = clock or utcnow
        self.logger = logger.bind(component="consistency")

    # -------------------------------------------------------------------------
    # Response emotion
    # -------------------------------------------------------------------------

    def determine_response_emotion(
        self,
        user: EmotionAnalysis,
        natural: EmotionAnalysis,
        state: ConversationState,
    ) -> EmotionAnalysis:
        """Combine user and natural emotions under the session's current strategy."""
        strategy = state.adaptation_strategy

        if strategy == AdaptationStrategy.MIRROR:
            return self._mirror(user, natural)
        if strategy == AdaptationStrategy.COMPLEMENT:
            return self._complement(user, natural)
        if strategy == AdaptationStrategy.GUIDE:
            return self._guide(user, natural)
        if strategy == AdaptationStrategy.STABILIZE:
            return self._stabilize(natural, state)
        return natural

    def _mirror(self, user: EmotionAnalysis, natural: EmotionAnalysis) -> EmotionAnalysis:
        return EmotionAnalysis.create(
            primary=user.primary,
            secondary=[natural.primary, *user.secondary[:1]],
            confidence=min(user.confidence, natural.confidence),
            sentiment=user.sentiment,
            intensity=blend_intensity(user.intensity, natural.intensity, MIRROR_BLEND_RATIO),
            reasoning=(
                f"Mirroring user emotion ({user.primary.value}) "
                f"with natural response ({natural.primary.value})"
            ),
        )

    def _complement(self, user: EmotionAnalysis, natural: EmotionAnalysis) -> EmotionAnalysis:
        complementary = COMPLEMENTARY_EMOTIONS.get(user.primary, EmotionKind.HELPFUL)
        return EmotionAnalysis.create(
            primary=complementary,
            secondary=[user.primary, natural.primary],
            confidence=(user.confidence + natural.confidence) / 2,
            sentiment=natural.sentiment,
            intensity=Intensity.MEDIUM,
            reasoning=(
                f"Complementing user emotion ({user.primary.value}) "
                f"with {complementary.value}"
            ),
        )

    def _guide(self, user: EmotionAnalysis, natural: EmotionAnalysis) -> EmotionAnalysis:
        if user.sentiment == Sentiment.NEGATIVE:
            guided = EmotionKind.ENCOURAGING
        elif user.primary == EmotionKind.CURIOUS:
            guided = EmotionKind.CONFIDENT
        else:
            guided = EmotionKind.HELPFUL

        return EmotionAnalysis.create(
            primary=guided,
            secondary=[natural.primary, user.primary],
            confidence=(
                natural.confidence * (1 - GUIDANCE_STRENGTH)
                + GUIDANCE_TARGET_CONFIDENCE * GUIDANCE_STRENGTH
            ),
            sentiment=Sentiment.POSITIVE,
            intensity=natural.intensity,
            reasoning=f"Guiding conversation toward {guided.value} from {user.primary.value}",
        )

    def _stabilize(self, natural: EmotionAnalysis, state: ConversationState) -> EmotionAnalysis:
        if state.emotional_stability > STABILIZE_THRESHOLD:
            return natural.with_changes(
                primary=state.dominant_emotion,
                secondary=(natural.primary,),
                reasoning=(
                    f"Stabilizing to dominant emotion ({state.dominant_emotion.value}) "
                    "for consistency"
                ),
            )
        return natural

    # -------------------------------------------------------------------------
    # State update
    # -------------------------------------------------------------------------

    def record_turn(
        self,
        state: ConversationState,
        user: EmotionAnalysis,
        response: EmotionAnalysis,
    ) -> ConversationState:
        """Fold one turn into the session state."""
        state.emotional_journey.extend((user, response))

        state.dominant_emotion = self.calculate_dominant_emotion(state.emotional_journey)
        state.emotional_stability = self.calculate_stability(state.emotional_journey)
        state.user_engagement = self.estimate_engagement(user, state)

        previous_strategy = state.adaptation_strategy
        state.adaptation_strategy = self.determine_strategy(state)

        state.last_interaction = self._clock()
        state.turn_count += 1

        # Scores above see the untrimmed journey
        if len(state.emotional_journey) > self.config.max_journey_length:
            state.emotional_journey = state.emotional_journey[-self.config.max_journey_length:]

        if state.adaptation_strategy != previous_strategy:
            self.logger.info(
                "strategy_changed",
                session_id=state.session_id,
                previous=previous_strategy.value,
                current=state.adaptation_strategy.value,
                stability=round(state.emotional_stability, 3),
                engagement=round(state.user_engagement, 3),
            )

        return state

    def calculate_dominant_emotion(self, journey: List[EmotionAnalysis]) -> EmotionKind:
        """Most frequent primary emotion; a tie yields helpful."""
        counts = Counter(entry.primary for entry in journey)
        if not counts:
            return EmotionKind.HELPFUL

        (top, top_count), *rest = counts.most_common()
        if rest and rest[0][1] == top_count:
            return EmotionKind.HELPFUL
        return top

    def calculate_stability(self, journey: List[EmotionAnalysis]) -> float:
        """Average transition score over consecutive journey entries."""
        if len(journey) < 2:
            return 1.0

        scores = []
        for previous, current in zip(journey, journey[1:]):
            if previous.primary == current.primary:
                scores.append(SAME_EMOTION_SCORE)
            elif is_natural_transition(previous.primary, current.primary):
                scores.append(NATURAL_TRANSITION_SCORE)
            else:
                scores.append(ABRUPT_TRANSITION_SCORE)

        return float(np.clip(np.mean(scores), 0.0, 1.0))

    def estimate_engagement(self, user: EmotionAnalysis, state: ConversationState) -> float:
        engagement = 0.5

        if user.sentiment == Sentiment.POSITIVE:
            engagement += 0.2
        if user.intensity == Intensity.HIGH:
            engagement += 0.2
        if user.primary in ENGAGEMENT_EMOTIONS:
            engagement += 0.3

        length = len(state.emotional_journey)
        if length > 10:
            engagement += 0.1
        if length > 20:
            engagement += 0.1

        return float(np.clip(engagement, 0.0, 1.0))

    def determine_strategy(self, state: ConversationState) -> AdaptationStrategy:
        """Strategy for the next turn."""
        stability = state.emotional_stability
        engagement = state.user_engagement

        if engagement > 0.7 and stability > 0.7:
            return AdaptationStrategy.MIRROR
        if engagement < 0.4:
            return AdaptationStrategy.GUIDE
        if stability < 0.4:
            return AdaptationStrategy.STABILIZE
        if state.dominant_emotion in SUBDUED_EMOTIONS:
            return AdaptationStrategy.COMPLEMENT
        return AdaptationStrategy.MIRROR

    # -------------------------------------------------------------------------
    # Turn metadata
    # -------------------------------------------------------------------------

    @staticmethod
    def extract_key_phrases(text: str, limit: int = 5) -> List[str]:
        """Adjacent pairs of words longer than four characters."""
        words = text.lower().split()
        phrases = [
            f"{first} {second}"
            for first, second in zip(words, words[1:])
            if len(first) > 4 and len(second) > 4
        ]
        return phrases[:limit]

    @staticmethod
    def context_factors(state: ConversationState, user: EmotionAnalysis) -> List[str]:
        return [
            f"Conversation length: {len(state.emotional_journey)} entries",
            f"Emotional stability: {state.emotional_stability * 100:.1f}%",
            f"User engagement: {state.user_engagement * 100:.1f}%",
            f"Strategy: {state.adaptation_strategy.value}",
            f"User emotion: {user.primary.value} ({user.confidence:.2f})",
        ]

    def session_summary(self, state: ConversationState) -> Dict:
        """Summary of a session's emotional course."""
        counts = Counter(entry.primary for entry in state.emotional_journey)
        return {
            "session_id": state.session_id,
            "user_id": state.user_id,
            "duration_seconds": (self._clock() - state.created_at).total_seconds(),
            "total_turns": state.turn_count,
            "dominant_emotion": state.dominant_emotion.value,
            "emotional_stability": round(state.emotional_stability, 3),
            "user_engagement": round(state.user_engagement, 3),
            "adaptation_strategy": state.adaptation_strategy.value,
            "emotion_counts": [
                {"emotion": emotion.value, "count": count}
                for emotion, count in counts.most_common()
            ],
            "trajectory": [entry.primary.value for entry in state.emotional_journey],
        }


__all__ = [
    "ConversationStore",
    "EmotionalConsistencyTracker",
    "blend_intensity",
]
