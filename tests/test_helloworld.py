"""Tests for the Hello World sample agent."""

import json

import pytest
from fastapi.testclient import TestClient

from a2a_agents.helloworld import HelloWorldAgent
from a2a_core.errors import InvalidParamsError, MalformedMessageError
from a2a_core.models import Message
from a2a_core.server import A2AServer


@pytest.fixture
def agent():
    return HelloWorldAgent()


@pytest.fixture
def client(agent):
    return TestClient(A2AServer(agent).get_fastapi_app())


class TestHelloWorldAgent:
    """Test the handlers directly."""

    def test_agent_card_includes_greeting_skill(self, agent):
        capability = agent.registry.get("greet").capability

        assert capability.id == "greeting"
        assert "greeting" in capability.description
        assert "greeting" in capability.tags

    @pytest.mark.asyncio
    async def test_greet_uses_given_name(self, agent):
        result = await agent.greet({"name": "Ruby"})

        assert result["message"] == "Hello Ruby!"
        assert result["agent"] == "Hello World Agent"
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_greet_rejects_positional_params(self, agent):
        with pytest.raises(InvalidParamsError):
            await agent.greet(["Ruby"])

    @pytest.mark.asyncio
    async def test_send_message_echoes_text(self, agent):
        message = Message.user_text("Hello agent!", context_id="ctx-1")

        reply = await agent.send_message({"message": message.to_wire()})

        assert reply.role == "agent"
        assert reply.context_id == "ctx-1"
        assert reply.text() == "Hello World! You said: 'Hello agent!'"

    @pytest.mark.asyncio
    async def test_send_message_without_parts_uses_fallback(self, agent):
        reply = await agent.send_message({"message": {"messageId": "m", "role": "user", "parts": []}})
        assert reply.text() == "Hello World! You said: 'there'"

    @pytest.mark.asyncio
    async def test_send_message_rejects_malformed_message(self, agent):
        with pytest.raises(MalformedMessageError):
            await agent.send_message({"message": {"messageId": "m", "role": "robot", "parts": []}})


class TestHelloWorldOverHTTP:
    """Test the agent behind the JSON-RPC endpoint."""

    def test_greet_defaults_to_world(self, client):
        response = client.post("/rpc", content=json.dumps({"jsonrpc": "2.0", "method": "greet", "id": 1}))

        assert response.status_code == 200
        assert response.json()["result"]["message"] == "Hello World!"

    def test_message_send(self, client):
        payload = {
            "jsonrpc": "2.0",
            "method": "message/send",
            "params": {"message": Message.user_text("Hello agent!").to_wire()},
            "id": "msg-1",
        }

        body = client.post("/rpc", content=json.dumps(payload)).json()

        assert body["id"] == "msg-1"
        assert body["result"]["role"] == "agent"
        assert body["result"]["parts"][0]["text"] == "Hello World! You said: 'Hello agent!'"

    def test_message_send_with_bad_role_is_invalid_params(self, client):
        payload = {
            "jsonrpc": "2.0",
            "method": "message/send",
            "params": {"message": {"messageId": "m", "role": "system", "parts": []}},
            "id": 2,
        }

        error = client.post("/rpc", content=json.dumps(payload)).json()["error"]

        assert error["code"] == -32602
        assert error["message"] == "Malformed message"
