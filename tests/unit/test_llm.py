"""Unit tests for completion adapters and AI payload validation."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from emotion_engine.config import EmotionKind, Intensity, LLMConfig, LLMProvider, Sentiment
from emotion_engine.llm import (
    GroqAdapter,
    Message,
    MockLLMAdapter,
    OpenAIAdapter,
    create_adapter,
)
from emotion_engine.models import AIEmotionPayload


class TestAIEmotionPayload:
    """Tests for per-field validation of provider replies."""

    def test_valid_payload(self):
        payload = AIEmotionPayload.model_validate({
            "primaryEmotion": "Curious",
            "secondaryEmotions": ["thoughtful", "excited"],
            "confidence": 0.9,
            "sentiment": "positive",
            "intensity": "high",
            "reasoning": "Asking a question",
        })

        analysis = payload.to_analysis()

        assert analysis.primary == EmotionKind.CURIOUS
        assert analysis.secondary == (EmotionKind.THOUGHTFUL, EmotionKind.EXCITED)
        assert analysis.confidence == pytest.approx(0.9)
        assert analysis.sentiment == Sentiment.POSITIVE
        assert analysis.intensity == Intensity.HIGH
        assert analysis.reasoning == "Asking a question"

    def test_empty_payload_uses_defaults(self):
        payload = AIEmotionPayload.model_validate({})

        assert payload.primary_emotion == EmotionKind.HELPFUL
        assert payload.secondary_emotions == []
        assert payload.confidence == pytest.approx(0.7)
        assert payload.sentiment == Sentiment.NEUTRAL
        assert payload.intensity == Intensity.MEDIUM
        assert payload.reasoning == "AI-generated emotion analysis"

    def test_invalid_fields_fall_back_individually(self):
        payload = AIEmotionPayload.model_validate({
            "primaryEmotion": "furious",
            "secondaryEmotions": "calm",
            "confidence": "very",
            "sentiment": "ecstatic",
            "intensity": 3,
            "reasoning": "   ",
        })

        assert payload.primary_emotion == EmotionKind.HELPFUL
        assert payload.secondary_emotions == []
        assert payload.confidence == pytest.approx(0.7)
        assert payload.sentiment == Sentiment.NEUTRAL
        assert payload.intensity == Intensity.MEDIUM
        assert payload.reasoning == "AI-generated emotion analysis"

    @pytest.mark.parametrize(
        "raw,expected",
        [(1.7, 1.0), (-0.2, 0.0), ("0.45", 0.45), (True, 0.7), (float("nan"), 0.7)],
    )
    def test_confidence_is_clamped(self, raw, expected):
        payload = AIEmotionPayload.model_validate({"confidence": raw})

        assert payload.confidence == pytest.approx(expected)

    def test_secondary_is_cleaned(self):
        payload = AIEmotionPayload.model_validate({
            "primaryEmotion": "happy",
            "secondaryEmotions": ["happy", "calm", "bogus", "calm", "curious", "excited"],
        })

        assert payload.secondary_emotions == [EmotionKind.CALM, EmotionKind.CURIOUS]


class TestMockAdapter:
    """Tests for MockLLMAdapter."""

    @pytest.mark.asyncio
    async def test_default_reply(self):
        adapter = MockLLMAdapter()

        response = await adapter.generate([Message(role="user", content="Hi")])

        assert "primaryEmotion" in response.text
        assert adapter.calls[0][0].content == "Hi"
        assert adapter.name == "mock"

    @pytest.mark.asyncio
    async def test_configured_error(self):
        adapter = MockLLMAdapter(error=RuntimeError("down"))

        with pytest.raises(RuntimeError):
            await adapter.generate([Message(role="user", content="Hi")])

        assert len(adapter.calls) == 1


def _completion(content: str) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


class TestGroqAdapter:
    """Tests for GroqAdapter against a mocked transport."""

    @pytest.mark.asyncio
    async def test_generate(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"primaryEmotion": "calm"}'))

        adapter = GroqAdapter(
            api_key="test-key",
            base_url="https://groq.test/openai/v1",
            transport=httpx.MockTransport(handler),
        )

        response = await adapter.generate(
            [Message(role="system", content="sys"), Message(role="user", content="Hi")],
            temperature=0.3,
            max_tokens=500,
        )
        await adapter.close()

        assert response.text == '{"primaryEmotion": "calm"}'
        assert response.usage["total_tokens"] == 15
        assert seen["path"] == "/openai/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["messages"][1] == {"role": "user", "content": "Hi"}
        assert seen["body"]["max_tokens"] == 500
        assert adapter.get_stats()["total_requests"] == 1

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        adapter = GroqAdapter(
            api_key="test-key",
            base_url="https://groq.test/openai/v1",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(httpx.HTTPStatusError):
            await adapter.generate([Message(role="user", content="Hi")])

        await adapter.close()

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GroqAdapter(api_key="")


class TestOpenAIAdapter:
    """Tests for OpenAIAdapter construction."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            OpenAIAdapter(api_key="")

    def test_from_config(self):
        adapter = OpenAIAdapter.from_config(
            LLMConfig(provider=LLMProvider.OPENAI, openai_api_key="sk-test", openai_model="gpt-test")
        )

        assert adapter.name == "openai"
        assert adapter.model == "gpt-test"

    @pytest.mark.asyncio
    async def test_generate(self):
        adapter = OpenAIAdapter(api_key="sk-test")
        completion = SimpleNamespace(
            choices=[SimpleNamespace(
                message=SimpleNamespace(content="reply"), finish_reason="stop"
            )],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=2, total_tokens=5),
        )
        adapter.client = MagicMock()
        adapter.client.chat.completions.create = AsyncMock(return_value=completion)

        response = await adapter.generate(
            [Message(role="user", content="Hi")], temperature=0.3, max_tokens=500
        )

        assert response.text == "reply"
        assert response.usage == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
        kwargs = adapter.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_generate_propagates_errors(self):
        adapter = OpenAIAdapter(api_key="sk-test")
        adapter.client = MagicMock()
        adapter.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("quota"))

        with pytest.raises(RuntimeError):
            await adapter.generate([Message(role="user", content="Hi")])


class TestCreateAdapter:
    """Tests for adapter selection."""

    def test_none(self):
        assert create_adapter(LLMConfig(provider=LLMProvider.NONE)) is None

    def test_mock(self):
        assert isinstance(create_adapter(LLMConfig(provider=LLMProvider.MOCK)), MockLLMAdapter)

    def test_groq(self):
        adapter = create_adapter(
            LLMConfig(provider=LLMProvider.GROQ, groq_api_key="gsk-test"), timeout=5.0
        )

        assert isinstance(adapter, GroqAdapter)
        assert adapter.timeout == 5.0

    def test_groq_without_key(self):
        with pytest.raises(ValueError):
            create_adapter(LLMConfig(provider=LLMProvider.GROQ, groq_api_key=""))
