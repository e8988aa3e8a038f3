"""Unit tests for WhatsAppCloudClient."""

import json

import httpx
import pytest

from app.schemas.message import AudioContent, ImageContent, TextContent
from app.services.whatsapp_client import WhatsAppCloudClient, WhatsAppSendError


class TestBuildPayload:
    """Tests for the Cloud API request body."""

    def test_text_payload(self):
        payload = WhatsAppCloudClient.build_payload("+55 (11) 99999-0000", TextContent(body="Hi"))

        assert payload == {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": "5511999990000",
            "type": "text",
            "text": {"body": "Hi"},
        }

    def test_image_payload_with_link_and_caption(self):
        content = ImageContent(link="https://cdn.test/a.png", caption="Look")

        payload = WhatsAppCloudClient.build_payload("+15551234567", content)

        assert payload["type"] == "image"
        assert payload["image"] == {"link": "https://cdn.test/a.png", "caption": "Look"}

    def test_media_id_wins_over_link(self):
        content = ImageContent(link="https://cdn.test/a.png", media_id="987")

        payload = WhatsAppCloudClient.build_payload("+15551234567", content)

        assert payload["image"] == {"id": "987"}

    def test_audio_payload_has_no_caption(self):
        payload = WhatsAppCloudClient.build_payload(
            "+15551234567", AudioContent(media_id="555")
        )

        assert payload["type"] == "audio"
        assert payload["audio"] == {"id": "555"}


class TestSendMessage:
    """Tests for WhatsAppCloudClient.send_message."""

    async def test_returns_provider_id(self, graph_api):
        graph_api.queue(200, {"messages": [{"id": "wamid.ABC"}]})
        client = graph_api.client("1098765", "secret-token")

        provider_id = await client.send_message("+15551234567", TextContent(body="Hello"))

        assert provider_id == "wamid.ABC"
        request = graph_api.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://graph.test/v18.0/1098765/messages"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content)["to"] == "15551234567"

    async def test_missing_id_is_unknown(self, graph_api):
        graph_api.queue(200, {"messages": []})

        provider_id = await graph_api.client().send_message(
            "+15551234567", TextContent(body="Hello")
        )

        assert provider_id == "unknown"

    async def test_error_message_from_body(self, graph_api):
        graph_api.queue(400, {"error": {"message": "Invalid parameter", "code": 100}})

        with pytest.raises(WhatsAppSendError) as exc_info:
            await graph_api.client().send_message("+15551234567", TextContent(body="Hello"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid parameter"

    async def test_error_message_falls_back_to_text(self, graph_api):
        graph_api.queue(503, text="Service Unavailable")

        with pytest.raises(WhatsAppSendError) as exc_info:
            await graph_api.client().send_message("+15551234567", TextContent(body="Hello"))

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Service Unavailable"

    async def test_error_message_falls_back_to_status(self, graph_api):
        graph_api.queue(500, text="")

        with pytest.raises(WhatsAppSendError) as exc_info:
            await graph_api.client().send_message("+15551234567", TextContent(body="Hello"))

        assert exc_info.value.message == "HTTP 500"

    async def test_network_error_has_no_status(self, graph_api):
        graph_api.queue_error(httpx.ConnectError("connection refused"))

        with pytest.raises(WhatsAppSendError) as exc_info:
            await graph_api.client().send_message("+15551234567", TextContent(body="Hello"))

        assert exc_info.value.status_code is None
        assert "connection refused" in exc_info.value.message


class TestSendWithRetry:
    """Tests for WhatsAppCloudClient.send_with_retry."""

    async def test_retries_server_errors(self, graph_api, sleeps):
        graph_api.queue(502, {"error": {"message": "Bad gateway"}})
        graph_api.queue(200, {"messages": [{"id": "wamid.2"}]})

        outcome = await graph_api.client().send_with_retry(
            "+15551234567", TextContent(body="Hello"), max_attempts=3, sleep=sleeps
        )

        assert outcome.ok
        assert outcome.value == "wamid.2"
        assert outcome.attempts == 2
        assert len(graph_api.requests) == 2
        assert sleeps.delays == [1.0]

    async def test_does_not_retry_unauthorized(self, graph_api, sleeps):
        graph_api.queue(401, {"error": {"message": "Invalid OAuth access token"}})

        outcome = await graph_api.client().send_with_retry(
            "+15551234567", TextContent(body="Hello"), max_attempts=3, sleep=sleeps
        )

        assert not outcome.ok
        assert outcome.status_code == 401
        assert len(graph_api.requests) == 1
        assert sleeps.delays == []
