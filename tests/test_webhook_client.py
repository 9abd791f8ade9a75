"""
Tests for the Home Assistant webhook client.
"""

import json

import httpx
import pytest

from homebot.services.webhook_client import WebhookCallError, WebhookClient


def _client(handler, secret: str = "", secret_header: str = "X-Webhook-Secret") -> WebhookClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookClient(
        base_url="http://ha.test/api/",
        secret=secret,
        secret_header=secret_header,
        timeout=2,
        client=http,
    )


class TestTrigger:
    """Tests for WebhookClient.trigger()."""

    def test_url_for(self):
        client = WebhookClient(base_url="http://ha.test/api/", timeout=2)

        assert client.url_for("area_control") == "http://ha.test/api/webhook/area_control"

    @pytest.mark.asyncio
    async def test_posts_json_payload(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["content_type"] = request.headers["content-type"]
            return httpx.Response(200)

        body = await _client(handler).trigger("scene", {"scene": "movie"})

        assert body == {}
        assert seen["url"] == "http://ha.test/api/webhook/scene"
        assert seen["body"] == {"scene": "movie"}
        assert seen["content_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_none_payload_posts_empty_object(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200)

        await _client(handler).trigger("scene")

        assert seen["body"] == {}

    @pytest.mark.asyncio
    async def test_json_body_is_returned(self):
        client = _client(lambda request: httpx.Response(200, json={"message": "22°C"}))

        assert await client.trigger("sensor_report", {}) == {"message": "22°C"}

    @pytest.mark.asyncio
    async def test_text_body_is_wrapped(self):
        client = _client(lambda request: httpx.Response(200, text="ok"))

        assert await client.trigger("scene", {}) == {"text": "ok"}

    @pytest.mark.asyncio
    async def test_non_object_json_is_wrapped(self):
        client = _client(lambda request: httpx.Response(200, json=[1, 2]))

        assert await client.trigger("scene", {}) == {"data": [1, 2]}

    @pytest.mark.asyncio
    async def test_secret_header_is_sent(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(200)

        await _client(handler, secret="s3cr3t", secret_header="Authorization").trigger("scene", {})

        assert seen["headers"]["authorization"] == "s3cr3t"

    @pytest.mark.asyncio
    async def test_no_secret_no_header(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(200)

        await _client(handler).trigger("scene", {})

        assert "x-webhook-secret" not in seen["headers"]


class TestErrors:
    """Everything but a 2xx answer is a WebhookCallError."""

    @pytest.mark.asyncio
    async def test_non_2xx(self):
        client = _client(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(WebhookCallError) as exc_info:
            await client.trigger("scene", {})

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(WebhookCallError) as exc_info:
            await _client(handler).trigger("scene", {})

        assert "timed out after 2s" in str(exc_info.value)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(WebhookCallError) as exc_info:
            await _client(handler).trigger("scene", {})

        assert "Could not reach Home Assistant" in str(exc_info.value)
