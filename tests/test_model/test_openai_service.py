"""Tests for the OpenAI model service using a fake client."""

import json
from types import SimpleNamespace

import pytest

from taskrun.capabilities import EchoCapability
from taskrun.model import InvocationRequest, OpenAIConfig, OpenAIModelService


def _tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments)),
    )


def _response(content=None, tool_calls=None, tokens=(10, 5)):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))],
        usage=SimpleNamespace(
            prompt_tokens=tokens[0],
            completion_tokens=tokens[1],
            total_tokens=sum(tokens),
        ),
    )


class FakeCompletions:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(json.loads(json.dumps(kwargs, default=str)))
        return self.responses.pop(0)


class FakeClient:
    def __init__(self, responses):
        self.chat = SimpleNamespace(completions=FakeCompletions(responses))


def _request(capabilities):
    return InvocationRequest(
        prompt="You are an agent.",
        seed_message="Execute it.",
        capabilities=capabilities,
        max_steps=5,
        max_execution_millis=60_000,
        chunk_timeout_millis=30_000,
    )


class TestOpenAIModelService:
    """Tests for the tool-calling loop."""

    def test_requires_api_key(self, monkeypatch):
        """Without a key or client the service refuses to start."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="API key"):
            OpenAIModelService()

    def test_model_identifier(self):
        """The configured model is the identifier."""
        service = OpenAIModelService(OpenAIConfig(model="gpt-4o"), client=FakeClient([]))
        assert service.model_identifier == "gpt-4o"

    @pytest.mark.asyncio
    async def test_tool_loop(self):
        """Tool calls are executed and fed back until the model stops."""
        client = FakeClient([
            _response(tool_calls=[_tool_call("call_a", "echo", {"msg": "hi"})]),
            _response(content="Echo said hi."),
        ])
        service = OpenAIModelService(client=client)
        session = service.open_session(_request({"echo": EchoCapability()}))

        events = [event async for event in session]

        assert len(events) == 2
        assert events[0].capability_calls[0].name == "echo"
        assert events[0].result_for("call_a").output == {"data": {"msg": "hi"}}
        assert events[1].text == "Echo said hi."
        assert session.usage.total_units == 30

        first, second = client.chat.completions.calls
        assert first["tools"][0]["function"]["name"] == "echo"
        assert first["timeout"] == 30.0
        assert [m["role"] for m in second["messages"]] == ["system", "user", "assistant", "tool"]
        assert json.loads(second["messages"][3]["content"]) == {"data": {"msg": "hi"}}

    @pytest.mark.asyncio
    async def test_no_tools_declared(self):
        """Requests without capabilities omit the tools parameter."""
        client = FakeClient([_response(content="Nothing to do.")])
        session = OpenAIModelService(client=client).open_session(_request({}))
        [event async for event in session]

        assert "tools" not in client.chat.completions.calls[0]
