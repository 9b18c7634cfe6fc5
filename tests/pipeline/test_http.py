# SPDX-License-Identifier: MIT
"""Tests for the provider HTTP helpers."""

import httpx
import pytest

from pipeline.config import settings
from pipeline.utils.http import (
    GatewayError,
    HTTPError,
    RateLimitError,
    fetch_json,
    fetch_with_retry,
)


def client_for(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def no_sleep(mocker):
    """Skip tenacity's backoff waits."""
    return mocker.patch("tenacity.nap.time.sleep")


class TestFetchWithRetry:
    """Test status handling and retries."""

    def test_sends_bot_user_agent(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={})

        fetch_with_retry("https://api.example/x", headers={"Accept": "text/html"}, client=client_for(handler))

        assert seen["user-agent"] == settings.pipeline.user_agent
        assert seen["accept"] == "text/html"

    def test_client_error_not_retried(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, text="missing")

        with pytest.raises(HTTPError) as exc:
            fetch_with_retry("https://api.example/x", client=client_for(handler))

        assert exc.value.status_code == 404
        assert len(calls) == 1

    def test_rate_limit(self):
        handler = lambda request: httpx.Response(429, headers={"Retry-After": "30"})

        with pytest.raises(RateLimitError) as exc:
            fetch_with_retry("https://api.example/x", client=client_for(handler))

        assert exc.value.retry_after == 30
        assert exc.value.status_code == 429

    def test_gateway_error_retried(self, no_sleep):
        responses = iter([httpx.Response(503), httpx.Response(200, json={"ok": True})])

        response = fetch_with_retry("https://api.example/x", client=client_for(lambda r: next(responses)))

        assert response.json() == {"ok": True}

    def test_gateway_error_gives_up(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(502)

        with pytest.raises(GatewayError):
            fetch_with_retry("https://api.example/x", client=client_for(handler))

        assert len(calls) == settings.pipeline.http_max_retries


class TestFetchJson:
    """Test JSON decoding."""

    def test_decodes(self):
        handler = lambda request: httpx.Response(200, json={"results": []})
        assert fetch_json("https://api.example/x", client=client_for(handler)) == {"results": []}

    def test_html_body_is_http_error(self):
        handler = lambda request: httpx.Response(200, text="<html>Service overloaded</html>")

        with pytest.raises(HTTPError, match="Invalid JSON"):
            fetch_json("https://api.example/x", client=client_for(handler))
