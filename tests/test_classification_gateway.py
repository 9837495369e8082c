"""Tests for the classification gateway with a mocked AsyncOpenAI client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from groupwarden.ai.classification_gateway import ClassificationGateway, _as_dict, _frame_content
from groupwarden.configuration.ai_settings import AISettings
from groupwarden.datatypes.classification_datatypes import ClassificationErrorKind, Err, Ok
from groupwarden.datatypes.verdict_datatypes import MediaKind


def moderation_response(flagged=False, categories=None, scores=None):
    result = SimpleNamespace(flagged=flagged, categories=categories or {}, category_scores=scores or {})
    return SimpleNamespace(results=[result])


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client():
    mock = MagicMock()
    mock.moderations.create = AsyncMock()
    mock.chat.completions.create = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def gateway(client):
    settings = AISettings({"api_key": "sk-test", "chat_model": "test-chat", "moderation_model": "test-mod"})
    return ClassificationGateway(settings, client=client)


class TestHelpers:
    def test_as_dict_accepts_mappings_and_models(self):
        assert _as_dict(None) == {}
        assert _as_dict({"a": 1}) == {"a": 1}

        model = MagicMock()
        model.model_dump.return_value = {"self-harm": True}
        assert _as_dict(model) == {"self-harm": True}
        model.model_dump.assert_called_once_with(by_alias=True)

    def test_frame_content_builds_data_urls(self):
        content = _frame_content([b"\xff\xd8jpeg"])
        assert content[0]["type"] == "image_url"
        assert content[0]["image_url"]["url"].startswith("data:image/jpeg;base64,")
        assert content[0]["image_url"]["detail"] == "low"


class TestAvailability:
    def test_unconfigured_gateway(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        gateway = ClassificationGateway(AISettings({}))
        assert gateway.is_available is False

    @pytest.mark.asyncio
    async def test_unconfigured_calls_return_not_configured(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        gateway = ClassificationGateway(AISettings({}))

        text = await gateway.classify_text("hello there")
        topic = await gateway.classify_topic("hello there")
        media = await gateway.classify_media([b"img"])

        for result in (text, topic, media):
            assert isinstance(result, Err)
            assert result.kind is ClassificationErrorKind.NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_close_releases_client(self, gateway, client):
        await gateway.close()
        client.close.assert_awaited_once()


class TestClassifyText:
    @pytest.mark.asyncio
    async def test_empty_input(self, gateway, client):
        result = await gateway.classify_text("   ")
        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.EMPTY_INPUT
        client.moderations.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flagged_returns_every_flagged_category(self, gateway, client):
        client.moderations.create.return_value = moderation_response(
            flagged=True,
            categories={"harassment": True, "violence": True, "sexual": False},
            scores={"harassment": 0.91, "violence": 0.55, "sexual": 0.01},
        )

        result = await gateway.classify_text("you are terrible")

        assert isinstance(result, Ok)
        assert result.value.flagged is True
        assert result.value.violation is True
        assert result.value.categories == ("harassment", "violence")
        assert result.value.scores["harassment"] == pytest.approx(0.91)
        client.moderations.create.assert_awaited_once_with(model="test-mod", input="you are terrible")

    @pytest.mark.asyncio
    async def test_single_high_score_without_flag(self, gateway, client):
        client.moderations.create.return_value = moderation_response(
            flagged=False,
            categories={"harassment": False, "hate": False},
            scores={"harassment": 0.2, "hate": 0.8},
        )

        result = await gateway.classify_text("borderline text")

        assert isinstance(result, Ok)
        assert result.value.flagged is False
        assert result.value.violation is True
        assert result.value.categories == ("hate",)

    @pytest.mark.asyncio
    async def test_score_at_threshold_is_not_a_violation(self, gateway, client):
        client.moderations.create.return_value = moderation_response(scores={"hate": 0.75})

        result = await gateway.classify_text("borderline text")

        assert isinstance(result, Ok)
        assert result.value.violation is False

    @pytest.mark.asyncio
    async def test_transport_error(self, gateway, client):
        client.moderations.create.side_effect = RuntimeError("connection reset")

        result = await gateway.classify_text("hello there")

        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.TRANSPORT
        assert "connection reset" in result.detail


class TestClassifyTopic:
    @pytest.mark.asyncio
    async def test_parses_fenced_json(self, gateway, client):
        client.chat.completions.create.return_value = completion(
            '```json\n{"flagged": true, "topic": "Politics", "confidence": 0.9}\n```'
        )

        result = await gateway.classify_topic("who should win the election this year?")

        assert isinstance(result, Ok)
        assert result.value.flagged is True
        assert result.value.topic == "Politics"
        assert result.value.confidence == pytest.approx(0.9)

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "test-chat"
        assert kwargs["max_tokens"] == 100
        assert kwargs["messages"][0]["role"] == "system"
        assert kwargs["messages"][1]["content"] == "who should win the election this year?"

    @pytest.mark.asyncio
    async def test_malformed_answer(self, gateway, client):
        client.chat.completions.create.return_value = completion("I cannot help with that.")

        result = await gateway.classify_topic("some long enough message here")

        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.MALFORMED

    @pytest.mark.asyncio
    async def test_schema_violation_is_malformed(self, gateway, client):
        client.chat.completions.create.return_value = completion('{"flagged": "yes", "confidence": 2}')

        result = await gateway.classify_topic("some long enough message here")

        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.MALFORMED

    @pytest.mark.asyncio
    async def test_empty_completion(self, gateway, client):
        client.chat.completions.create.return_value = completion(None)

        result = await gateway.classify_topic("some long enough message here")

        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.MALFORMED

    @pytest.mark.asyncio
    async def test_no_choices(self, gateway, client):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        result = await gateway.classify_topic("some long enough message here")

        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.MALFORMED


class TestClassifyMedia:
    @pytest.mark.asyncio
    async def test_empty_frames(self, gateway, client):
        result = await gateway.classify_media([])
        assert isinstance(result, Err)
        assert result.kind is ClassificationErrorKind.EMPTY_INPUT
        client.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_image_classification(self, gateway, client):
        client.chat.completions.create.return_value = completion(
            'Sure: {"flagged": true, "topic": "Medical/graphic", '
            '"description": "close-up of a bleeding wound", "confidence": 0.8}'
        )

        result = await gateway.classify_media([b"jpeg"], MediaKind.IMAGE)

        assert isinstance(result, Ok)
        assert result.value.description == "close-up of a bleeding wound"
        user_content = client.chat.completions.create.await_args.kwargs["messages"][1]["content"]
        assert user_content[-1] == {"type": "text", "text": "Analyze this image for sensitive content."}

    @pytest.mark.asyncio
    async def test_video_frames_are_sent_together(self, gateway, client):
        client.chat.completions.create.return_value = completion(
            '{"flagged": false, "topic": null, "description": null, "confidence": 0.1}'
        )

        result = await gateway.classify_media([b"a", b"b", b"c"], MediaKind.VIDEO)

        assert isinstance(result, Ok)
        assert result.value.flagged is False
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["max_tokens"] == 200
        content = kwargs["messages"][1]["content"]
        assert len([part for part in content if part["type"] == "image_url"]) == 3
        assert "3 frames extracted from a video" in content[-1]["text"]
