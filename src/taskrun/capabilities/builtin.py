"""
Built-in Capabilities — Small general-purpose capabilities.

Domain capabilities (document classification, profile lookup, outbound
calls, ...) are registered by the host application.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

import requests

from taskrun.capabilities.base import (
    BaseCapability,
    CapabilityResult,
    SubActionCallback,
    SubActionEmitter,
)
from taskrun.capabilities.registry import CapabilityRegistry


class EchoCapability(BaseCapability):
    """Return the input unchanged."""

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Return the given input unchanged"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "additionalProperties": True}

    async def execute(self, params: dict[str, Any]) -> CapabilityResult:
        return CapabilityResult.ok(dict(params))


class ClockCapability(BaseCapability):
    """
    Get current time.

    Params:
        format: 'iso' (default), 'unix' or a strftime pattern
    """

    @property
    def name(self) -> str:
        return "clock"

    @property
    def description(self) -> str:
        return "Get current date and time (UTC)"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"format": {"type": "string"}},
        }

    async def execute(self, params: dict[str, Any]) -> CapabilityResult:
        fmt = params.get("format", "iso")
        now = datetime.now(timezone.utc)

        if fmt == "iso":
            time_str = now.isoformat()
        elif fmt == "unix":
            time_str = str(int(now.timestamp()))
        else:
            time_str = now.strftime(fmt)

        return CapabilityResult.ok({"current_time": time_str, "timezone": "UTC"})


class HttpGetCapability(BaseCapability):
    """
    Fetch content from a URL via HTTP GET.

    Emits 'request' and 'response' sub-actions when bound to a callback.

    Params:
        url: URL to fetch
        timeout: Request timeout in seconds (default: 10)
    """

    def __init__(self, on_sub_action: SubActionCallback | None = None):
        self._on_sub_action = on_sub_action

    @property
    def name(self) -> str:
        return "http_get"

    @property
    def description(self) -> str:
        return "Fetch content from a URL"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string"},
                "timeout": {"type": "number"},
            },
            "required": ["url"],
        }

    async def execute(self, params: dict[str, Any]) -> CapabilityResult:
        url = params.get("url")
        if not url:
            return CapabilityResult.fail("Missing required parameter: url")

        timeout = params.get("timeout", 10)
        emitter = SubActionEmitter(self._on_sub_action)
        emitter.emit("request", f"Fetching {url}", url)

        try:
            response = await asyncio.to_thread(requests.get, url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            emitter.emit("error", f"Request failed: {e}")
            return CapabilityResult.fail(f"HTTP error: {e}")

        emitter.emit(
            "response",
            f"Received {response.status_code}",
            response.headers.get("Content-Type", ""),
        )
        return CapabilityResult.ok({
            "url": url,
            "status_code": response.status_code,
            "content_type": response.headers.get("Content-Type", ""),
            "content": response.text[:10000],
            "content_length": len(response.text),
        })


class HttpGetFactory:
    """Builds an HttpGetCapability bound to a run's sub-action callback."""

    name = "http_get"
    description = "Fetch content from a URL"

    def bind(self, callback: SubActionCallback | None) -> HttpGetCapability:
        return HttpGetCapability(on_sub_action=callback)


def create_default_registry() -> CapabilityRegistry:
    """Create registry with all built-in capabilities."""
    registry = CapabilityRegistry()
    registry.register(EchoCapability())
    registry.register(ClockCapability())
    registry.register_factory(HttpGetFactory())
    return registry
