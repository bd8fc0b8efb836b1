"""Unit tests for conversational consistency tracking."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from emotion_engine.config import (
    AdaptationStrategy,
    ConversationConfig,
    EmotionKind,
    Intensity,
    Sentiment,
)
from emotion_engine.engine.consistency import (
    ConversationStore,
    EmotionalConsistencyTracker,
    blend_intensity,
)
from emotion_engine.models import ConversationState


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class TestBlendIntensity:
    """Tests for the ordinal intensity blend."""

    @pytest.mark.parametrize(
        "first,second,expected",
        [
            (Intensity.HIGH, Intensity.LOW, Intensity.MEDIUM),
            (Intensity.HIGH, Intensity.MEDIUM, Intensity.HIGH),
            (Intensity.LOW, Intensity.HIGH, Intensity.MEDIUM),
            (Intensity.LOW, Intensity.MEDIUM, Intensity.LOW),
            (Intensity.MEDIUM, Intensity.MEDIUM, Intensity.MEDIUM),
        ],
    )
    def test_blend(self, first, second, expected):
        assert blend_intensity(first, second, 0.7) == expected


class TestResponseEmotion:
    """Tests for strategy combination rules."""

    def test_mirror(self, tracker, make_analysis):
        user = make_analysis(
            primary=EmotionKind.EXCITED,
            secondary=[EmotionKind.HAPPY],
            confidence=0.9,
            sentiment=Sentiment.POSITIVE,
            intensity=Intensity.HIGH,
        )
        natural = make_analysis(
            primary=EmotionKind.HELPFUL,
            confidence=0.6,
            sentiment=Sentiment.NEUTRAL,
            intensity=Intensity.LOW,
        )
        state = ConversationState(session_id="s")

        result = tracker.determine_response_emotion(user, natural, state)

        assert result.primary == EmotionKind.EXCITED
        assert result.secondary == (EmotionKind.HELPFUL, EmotionKind.HAPPY)
        assert result.confidence == pytest.approx(0.6)
        assert result.sentiment == Sentiment.POSITIVE
        assert result.intensity == Intensity.MEDIUM

    def test_mirror_drops_primary_from_secondary(self, tracker, make_analysis):
        user = make_analysis(primary=EmotionKind.CURIOUS)
        natural = make_analysis(primary=EmotionKind.CURIOUS)
        state = ConversationState(session_id="s")

        result = tracker.determine_response_emotion(user, natural, state)

        assert result.primary == EmotionKind.CURIOUS
        assert EmotionKind.CURIOUS not in result.secondary

    def test_complement(self, tracker, make_analysis):
        user = make_analysis(primary=EmotionKind.EXCITED, confidence=0.9)
        natural = make_analysis(
            primary=EmotionKind.HELPFUL,
            confidence=0.5,
            sentiment=Sentiment.POSITIVE,
            intensity=Intensity.HIGH,
        )
        state = ConversationState(
            session_id="s", adaptation_strategy=AdaptationStrategy.COMPLEMENT
        )

        result = tracker.determine_response_emotion(user, natural, state)

        assert result.primary == EmotionKind.CALM
        assert result.secondary == (EmotionKind.EXCITED, EmotionKind.HELPFUL)
        assert result.confidence == pytest.approx(0.7)
        assert result.sentiment == Sentiment.POSITIVE
        assert result.intensity == Intensity.MEDIUM

    @pytest.mark.parametrize(
        "user_primary,expected",
        [
            (EmotionKind.CALM, EmotionKind.ENTHUSIASTIC),
            (EmotionKind.HAPPY, EmotionKind.THOUGHTFUL),
            (EmotionKind.SURPRISED, EmotionKind.HELPFUL),
            (EmotionKind.ENCOURAGING, EmotionKind.HAPPY),
            (EmotionKind.ENTHUSIASTIC, EmotionKind.THOUGHTFUL),
        ],
    )
    def test_complement_table(self, tracker, make_analysis, user_primary, expected):
        state = ConversationState(
            session_id="s", adaptation_strategy=AdaptationStrategy.COMPLEMENT
        )

        result = tracker.determine_response_emotion(
            make_analysis(primary=user_primary), make_analysis(), state
        )

        assert result.primary == expected

    @pytest.mark.parametrize(
        "user_primary,sentiment,expected",
        [
            (EmotionKind.CURIOUS, Sentiment.NEGATIVE, EmotionKind.ENCOURAGING),
            (EmotionKind.CURIOUS, Sentiment.NEUTRAL, EmotionKind.CONFIDENT),
            (EmotionKind.CALM, Sentiment.POSITIVE, EmotionKind.HELPFUL),
        ],
    )
    def test_guide(self, tracker, make_analysis, user_primary, sentiment, expected):
        user = make_analysis(primary=user_primary, sentiment=sentiment)
        natural = make_analysis(
            primary=EmotionKind.THOUGHTFUL,
            confidence=0.5,
            sentiment=Sentiment.NEGATIVE,
            intensity=Intensity.LOW,
        )
        state = ConversationState(session_id="s", adaptation_strategy=AdaptationStrategy.GUIDE)

        result = tracker.determine_response_emotion(user, natural, state)

        assert result.primary == expected
        assert result.secondary[0] == EmotionKind.THOUGHTFUL
        assert result.confidence == pytest.approx(0.5 * 0.7 + 0.8 * 0.3)
        assert result.sentiment == Sentiment.POSITIVE
        assert result.intensity == Intensity.LOW

    def test_stabilize_holds_dominant_when_stable(self, tracker, make_analysis):
        natural = make_analysis(primary=EmotionKind.EXCITED, confidence=0.65)
        state = ConversationState(
            session_id="s",
            adaptation_strategy=AdaptationStrategy.STABILIZE,
            dominant_emotion=EmotionKind.CALM,
            emotional_stability=0.8,
        )

        result = tracker.determine_response_emotion(make_analysis(), natural, state)

        assert result.primary == EmotionKind.CALM
        assert result.secondary == (EmotionKind.EXCITED,)
        assert result.confidence == pytest.approx(0.65)

    def test_stabilize_passes_natural_through_when_unstable(self, tracker, make_analysis):
        natural = make_analysis(primary=EmotionKind.EXCITED)
        state = ConversationState(
            session_id="s",
            adaptation_strategy=AdaptationStrategy.STABILIZE,
            dominant_emotion=EmotionKind.CALM,
            emotional_stability=0.3,
        )

        result = tracker.determine_response_emotion(make_analysis(), natural, state)

        assert result is natural


class TestRecordTurn:
    """Tests for session state updates."""

    def test_first_turn(self, tracker, make_analysis):
        state = ConversationState(session_id="s")
        user = make_analysis(
            primary=EmotionKind.EXCITED,
            sentiment=Sentiment.POSITIVE,
            intensity=Intensity.HIGH,
        )

        tracker.record_turn(state, user, make_analysis(primary=EmotionKind.EXCITED))

        assert len(state.emotional_journey) == 2
        assert state.dominant_emotion == EmotionKind.EXCITED
        assert state.emotional_stability == 1.0
        assert state.user_engagement == 1.0
        assert state.adaptation_strategy == AdaptationStrategy.MIRROR
        assert state.turn_count == 1

    def test_journey_is_capped(self, tracker, make_analysis):
        state = ConversationState(session_id="s")

        for _ in range(1000):
            tracker.record_turn(state, make_analysis(), make_analysis())

        assert len(state.emotional_journey) == 20
        assert state.turn_count == 1000

    def test_custom_journey_length(self, make_analysis):
        tracker = EmotionalConsistencyTracker(ConversationConfig(max_journey_length=6))
        state = ConversationState(session_id="s")

        for _ in range(10):
            tracker.record_turn(state, make_analysis(), make_analysis())

        assert len(state.emotional_journey) == 6

    def test_engagement_sees_untrimmed_journey(self, tracker, make_analysis):
        state = ConversationState(
            session_id="s", emotional_journey=[make_analysis()] * 20
        )

        tracker.record_turn(state, make_analysis(), make_analysis())

        # 22 entries before trimming: both length bonuses apply
        assert state.user_engagement == pytest.approx(0.7)
        assert len(state.emotional_journey) == 20

    @pytest.mark.parametrize("length", [1, 21])
    def test_journey_length_is_bounded(self, length):
        with pytest.raises(ValidationError):
            ConversationConfig(max_journey_length=length)

    def test_alternating_user_emotions_flip_to_stabilize(self, tracker, make_analysis):
        state = ConversationState(session_id="s")
        cycle = [EmotionKind.HAPPY, EmotionKind.THOUGHTFUL]

        for turn in range(10):
            user = make_analysis(primary=cycle[turn % 2])
            tracker.record_turn(state, user, make_analysis(primary=EmotionKind.HELPFUL))

        assert state.emotional_stability < 0.5
        assert state.adaptation_strategy == AdaptationStrategy.STABILIZE

    def test_last_interaction_is_updated(self, make_analysis):
        clock = FakeClock()
        tracker = EmotionalConsistencyTracker(clock=clock)
        state = ConversationState(session_id="s")
        clock.advance(30)

        tracker.record_turn(state, make_analysis(), make_analysis())

        assert state.last_interaction == clock.now


class TestDynamics:
    """Tests for dominant emotion, stability, engagement and strategy."""

    def test_dominant_emotion_is_mode(self, tracker, make_analysis):
        journey = [
            make_analysis(primary=EmotionKind.CALM),
            make_analysis(primary=EmotionKind.CALM),
            make_analysis(primary=EmotionKind.HAPPY),
        ]

        assert tracker.calculate_dominant_emotion(journey) == EmotionKind.CALM

    def test_dominant_emotion_tie_is_helpful(self, tracker, make_analysis):
        journey = [
            make_analysis(primary=EmotionKind.CALM),
            make_analysis(primary=EmotionKind.HAPPY),
        ]

        assert tracker.calculate_dominant_emotion(journey) == EmotionKind.HELPFUL

    def test_stability_scores(self, tracker, make_analysis):
        journey = [
            make_analysis(primary=EmotionKind.CURIOUS),
            make_analysis(primary=EmotionKind.CURIOUS),    # same: 1.0
            make_analysis(primary=EmotionKind.EXCITED),    # natural: 0.7
            make_analysis(primary=EmotionKind.THOUGHTFUL), # abrupt: 0.3
        ]

        assert tracker.calculate_stability(journey) == pytest.approx(2.0 / 3)

    def test_stability_of_short_journey(self, tracker, make_analysis):
        assert tracker.calculate_stability([]) == 1.0
        assert tracker.calculate_stability([make_analysis()]) == 1.0

    def test_engagement_baseline(self, tracker, make_analysis):
        state = ConversationState(session_id="s")

        assert tracker.estimate_engagement(make_analysis(), state) == pytest.approx(0.5)

    def test_engagement_long_conversation_bonus(self, tracker, make_analysis):
        state = ConversationState(
            session_id="s", emotional_journey=[make_analysis()] * 12
        )

        assert tracker.estimate_engagement(make_analysis(), state) == pytest.approx(0.6)

    def test_engagement_is_clamped(self, tracker, make_analysis):
        state = ConversationState(
            session_id="s", emotional_journey=[make_analysis()] * 12
        )
        user = make_analysis(
            primary=EmotionKind.CURIOUS,
            sentiment=Sentiment.POSITIVE,
            intensity=Intensity.HIGH,
        )

        assert tracker.estimate_engagement(user, state) == 1.0

    @pytest.mark.parametrize(
        "engagement,stability,dominant,expected",
        [
            (0.8, 0.8, EmotionKind.CALM, AdaptationStrategy.MIRROR),
            (0.3, 0.9, EmotionKind.HAPPY, AdaptationStrategy.GUIDE),
            (0.3, 0.2, EmotionKind.HAPPY, AdaptationStrategy.GUIDE),
            (0.5, 0.3, EmotionKind.CALM, AdaptationStrategy.STABILIZE),
            (0.5, 0.6, EmotionKind.THOUGHTFUL, AdaptationStrategy.COMPLEMENT),
            (0.5, 0.6, EmotionKind.HAPPY, AdaptationStrategy.MIRROR),
        ],
    )
    def test_strategy_rules(self, tracker, engagement, stability, dominant, expected):
        state = ConversationState(
            session_id="s",
            user_engagement=engagement,
            emotional_stability=stability,
            dominant_emotion=dominant,
        )

        assert tracker.determine_strategy(state) == expected


class TestMetadataHelpers:
    """Tests for key phrases, context factors and summaries."""

    def test_key_phrases(self, tracker):
        phrases = tracker.extract_key_phrases(
            "Let me explain these powerful features quickly"
        )

        assert phrases == [
            "explain these",
            "these powerful",
            "powerful features",
            "features quickly",
        ]

    def test_key_phrases_limited_to_five(self, tracker):
        text = " ".join(["wonderful"] * 10)

        assert len(tracker.extract_key_phrases(text)) == 5

    def test_context_factors(self, tracker, make_analysis):
        state = ConversationState(session_id="s", emotional_stability=0.5)

        factors = tracker.context_factors(state, make_analysis(confidence=0.75))

        assert "Emotional stability: 50.0%" in factors
        assert "Strategy: mirror" in factors
        assert "User emotion: helpful (0.75)" in factors

    def test_session_summary(self, tracker, make_analysis):
        state = ConversationState(session_id="s")
        tracker.record_turn(
            state,
            make_analysis(primary=EmotionKind.CURIOUS),
            make_analysis(primary=EmotionKind.CURIOUS),
        )

        summary = tracker.session_summary(state)

        assert summary["session_id"] == "s"
        assert summary["total_turns"] == 1
        assert summary["dominant_emotion"] == "curious"
        assert summary["trajectory"] == ["curious", "curious"]


class TestConversationStore:
    """Tests for ConversationStore."""

    def test_get_or_create_initial_state(self):
        store = ConversationStore()

        state = store.get_or_create("s", user_id="u")

        assert state.dominant_emotion == EmotionKind.HELPFUL
        assert state.emotional_stability == 1.0
        assert state.user_engagement == 0.5
        assert state.adaptation_strategy == AdaptationStrategy.MIRROR
        assert state.user_id == "u"
        assert store.get_or_create("s") is state

    def test_get_missing(self):
        assert ConversationStore().get("missing") is None

    def test_delete(self):
        store = ConversationStore()
        store.get_or_create("s")

        assert store.delete("s") is True
        assert store.delete("s") is False
        assert "s" not in store

    def test_prune_idle(self):
        clock = FakeClock()
        store = ConversationStore(clock=clock)
        store.get_or_create("old")
        clock.advance(600)
        store.get_or_create("new")
        clock.advance(100)

        removed = store.prune_idle(max_idle_seconds=300)

        assert removed == 1
        assert "old" not in store
        assert "new" in store

    def test_stats_empty(self):
        stats = ConversationStore().stats()

        assert stats.active_conversations == 0
        assert stats.average_stability == 0.0
        assert stats.emotion_distribution == {}

    def test_stats(self):
        store = ConversationStore()
        first = store.get_or_create("a")
        second = store.get_or_create("b")
        first.emotional_stability, first.user_engagement = 1.0, 0.5
        second.emotional_stability, second.user_engagement = 0.5, 1.0
        second.dominant_emotion = EmotionKind.CALM

        stats = store.stats()

        assert stats.active_conversations == 2
        assert stats.average_stability == pytest.approx(0.75)
        assert stats.average_engagement == pytest.approx(0.75)
        assert stats.emotion_distribution == {
            EmotionKind.HELPFUL: 1,
            EmotionKind.CALM: 1,
        }
