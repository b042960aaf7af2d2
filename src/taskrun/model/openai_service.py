"""
OpenAI Model Service — Model invocation over OpenAI chat completions.

Runs a tool-calling loop: one completion per round, capability calls
executed locally and fed back as tool messages until the model answers
without calling anything.
"""

import asyncio
import json
import os
from dataclasses import dataclass
from typing import Any

from openai import APIError, AsyncOpenAI, RateLimitError

from taskrun.model.messages import (
    CapabilityCall,
    CapabilityOutcome,
    InvocationRequest,
    ModelEvent,
    ModelUsage,
)
from taskrun.model.service import invoke_capability
from taskrun.observability import get_logger

logger = get_logger("model.openai")


@dataclass
class OpenAIConfig:
    """Configuration for the OpenAI model service."""
    api_key: str | None = None  # Falls back to OPENAI_API_KEY env var
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 2000
    max_retries: int = 3
    retry_delay: float = 1.0


def _tool_declaration(name: str, capability: Any) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": capability.description,
            "parameters": capability.input_schema,
        },
    }


class OpenAISession:
    """One tool-calling conversation."""

    def __init__(self, client: AsyncOpenAI, config: OpenAIConfig, request: InvocationRequest):
        self._client = client
        self._config = config
        self._request = request
        self._messages: list[dict[str, Any]] = [
            {"role": "system", "content": request.prompt},
            {"role": "user", "content": request.seed_message},
        ]
        self._tools = [
            _tool_declaration(name, capability)
            for name, capability in request.capabilities.items()
        ]
        self._usage = ModelUsage()
        self._done = False

    @property
    def usage(self) -> ModelUsage:
        return self._usage

    def __aiter__(self) -> "OpenAISession":
        return self

    async def __anext__(self) -> ModelEvent:
        if self._done:
            raise StopAsyncIteration

        response = await self._complete()
        if response.usage:
            self._usage = self._usage + ModelUsage(
                input_units=response.usage.prompt_tokens,
                output_units=response.usage.completion_tokens,
                total_units=response.usage.total_tokens,
            )

        message = response.choices[0].message
        tool_calls = message.tool_calls or []
        self._messages.append({
            "role": "assistant",
            "content": message.content,
            **({"tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                }
                for tc in tool_calls
            ]} if tool_calls else {}),
        })

        calls = []
        results = []
        for tc in tool_calls:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError:
                arguments = {}
            call = CapabilityCall(call_id=tc.id, name=tc.function.name, input=arguments)
            calls.append(call)

            output = await invoke_capability(self._request.capabilities, call.name, arguments)
            results.append(CapabilityOutcome(call_id=call.call_id, output=output))
            self._messages.append({
                "role": "tool",
                "tool_call_id": call.call_id,
                "content": json.dumps(output, default=str),
            })

        if not tool_calls:
            self._done = True

        return ModelEvent(
            capability_calls=calls,
            capability_results=results,
            text=message.content or "",
        )

    async def _complete(self) -> Any:
        """Create a completion, retrying transient failures."""
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": self._messages,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "timeout": self._request.chunk_timeout_millis / 1000,
        }
        if self._tools:
            kwargs["tools"] = self._tools

        last_error: Exception | None = None
        for attempt in range(self._config.max_retries):
            try:
                return await self._client.chat.completions.create(**kwargs)

            except RateLimitError as e:
                last_error = e
                wait_time = self._config.retry_delay * (2 ** attempt)
                logger.warning(f"Rate limited, retrying in {wait_time:.1f}s")
                await asyncio.sleep(wait_time)
                continue

            except APIError as e:
                last_error = e
                if attempt < self._config.max_retries - 1:
                    await asyncio.sleep(self._config.retry_delay)
                    continue
                raise

        raise last_error or Exception("Max retries exceeded")

    async def aclose(self) -> None:
        self._done = True


class OpenAIModelService:
    """
    Model invocation service backed by OpenAI.

    Usage:
        service = OpenAIModelService()  # Uses OPENAI_API_KEY env var
        engine = ExecutionEngine(service, store, registry)
    """

    def __init__(
        self,
        config: OpenAIConfig | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.config = config or OpenAIConfig()

        if client is None:
            api_key = self.config.api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OpenAI API key not found. "
                    "Set OPENAI_API_KEY environment variable or pass api_key in config."
                )
            client = AsyncOpenAI(api_key=api_key)
        self._client = client

    @property
    def model_identifier(self) -> str:
        return self.config.model

    def open_session(self, request: InvocationRequest) -> OpenAISession:
        return OpenAISession(self._client, self.config, request)


def create_openai_service(
    model: str = "gpt-4o-mini",
    **kwargs: Any
) -> OpenAIModelService:
    """Factory for OpenAI model service."""
    config = OpenAIConfig(model=model, **kwargs)
    return OpenAIModelService(config)
