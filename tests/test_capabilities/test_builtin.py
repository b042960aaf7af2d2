"""Tests for built-in capabilities."""

import pytest
import requests

from taskrun.capabilities import ClockCapability, EchoCapability, HttpGetCapability


class FakeResponse:
    def __init__(self, status_code=200, text="hello", content_type="text/plain"):
        self.status_code = status_code
        self.text = text
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class TestEcho:
    """Tests for echo."""

    @pytest.mark.asyncio
    async def test_echo(self):
        """Echo returns its input as data."""
        assert await EchoCapability().invoke({"msg": "hi"}) == {"data": {"msg": "hi"}}


class TestClock:
    """Tests for clock."""

    @pytest.mark.asyncio
    async def test_iso(self):
        """Default format is ISO 8601."""
        output = await ClockCapability().invoke({})
        assert output["data"]["timezone"] == "UTC"
        assert "T" in output["data"]["current_time"]

    @pytest.mark.asyncio
    async def test_unix(self):
        """Unix format is an integer string."""
        output = await ClockCapability().invoke({"format": "unix"})
        assert output["data"]["current_time"].isdigit()


class TestHttpGet:
    """Tests for http_get."""

    @pytest.mark.asyncio
    async def test_missing_url(self):
        """Missing url is an error output."""
        output = await HttpGetCapability().invoke({})
        assert output == {"error": "Missing required parameter: url"}

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        """Successful fetch returns content."""
        monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse())
        output = await HttpGetCapability().invoke({"url": "https://example.com"})

        assert output["data"]["status_code"] == 200
        assert output["data"]["content"] == "hello"

    @pytest.mark.asyncio
    async def test_http_error(self, monkeypatch):
        """HTTP errors become error outputs and an error sub-action."""
        monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(status_code=500))
        actions = []
        output = await HttpGetCapability(on_sub_action=actions.append).invoke(
            {"url": "https://example.com"}
        )

        assert output["error"].startswith("HTTP error")
        assert [a.action_type for a in actions] == ["request", "error"]
