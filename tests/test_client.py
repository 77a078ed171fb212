"""
Tests for the A2A client.

The client talks to an in-process server through ``httpx.ASGITransport``;
malformed or failing remotes are simulated with ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from a2a_agents.helloworld import HelloWorldAgent
from a2a_core.client import A2AClient
from a2a_core.errors import (
    ProtocolError,
    RemoteMethodError,
    TransportError,
    TransportErrorKind,
)
from a2a_core.models import Message, TextPart
from a2a_core.server import A2AServer

BASE_URL = "http://testserver"


def _client_for(app, **kwargs):
    return A2AClient(BASE_URL, transport=httpx.ASGITransport(app=app), **kwargs)


def _mock_client(handler, **kwargs):
    return A2AClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def hello_app():
    return A2AServer(HelloWorldAgent()).get_fastapi_app()


class TestClientAgainstServer:
    """Round trips against a real server app."""

    @pytest.mark.asyncio
    async def test_get_card(self, hello_app):
        async with _client_for(hello_app) as client:
            card = await client.get_card()

        assert card.name == "Hello World Agent"
        assert [skill.id for skill in card.skills] == ["greeting", "message"]

    @pytest.mark.asyncio
    async def test_send_message(self, hello_app):
        async with _client_for(hello_app) as client:
            reply = await client.send_message(Message.user_text("Hello agent!"))

        assert reply.role == "agent"
        assert reply.parts[0].text == "Hello World! You said: 'Hello agent!'"

    @pytest.mark.asyncio
    async def test_call_method(self, hello_app):
        async with _client_for(hello_app) as client:
            result = await client.call_method("greet", {"name": "Ruby"})

        assert result["message"] == "Hello Ruby!"

    @pytest.mark.asyncio
    async def test_unknown_method_raises_remote_error(self, hello_app):
        async with _client_for(hello_app) as client:
            with pytest.raises(RemoteMethodError) as exc_info:
                await client.call_method("nope")

        assert exc_info.value.code == -32601
        assert exc_info.value.message == "Method not found"

    @pytest.mark.asyncio
    async def test_invalid_params_raise_remote_error(self, hello_app):
        async with _client_for(hello_app) as client:
            with pytest.raises(RemoteMethodError) as exc_info:
                await client.call_method("message/send", {})

        assert exc_info.value.code == -32602

    @pytest.mark.asyncio
    async def test_notify(self, hello_app):
        async with _client_for(hello_app) as client:
            assert await client.notify("greet", {"name": "Ruby"}) is None

    @pytest.mark.asyncio
    async def test_request_ids_increase(self):
        seen = []

        def handler(request):
            body = json.loads(request.content)
            seen.append(body["id"])
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": None})

        async with _mock_client(handler) as client:
            await client.call_method("a")
            await client.call_method("b")

        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_slow_handler_times_out(self, sample_agent):
        server = A2AServer(sample_agent, host="127.0.0.1", port=0)
        server.start()
        try:
            async with A2AClient(server.url, timeout=0.1) as client:
                with pytest.raises(TransportError) as exc_info:
                    await client.call_method("slow", {"delay": 1.0})
                # The connection is still usable after a timed-out call
                assert await client.call_method("echo", {"ok": True}) == {"ok": True}
        finally:
            server.stop()

        assert exc_info.value.kind is TransportErrorKind.TIMEOUT


class TestClientFailures:
    """Failure classification."""

    @pytest.mark.asyncio
    async def test_mismatched_id_is_protocol_error(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 999, "result": "x"})

        async with _mock_client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.call_method("greet")

    @pytest.mark.asyncio
    async def test_error_with_null_id_is_remote_error(self):
        def handler(request):
            return httpx.Response(400, json={
                "jsonrpc": "2.0",
                "id": None,
                "error": {"code": -32700, "message": "Parse error"},
            })

        async with _mock_client(handler) as client:
            with pytest.raises(RemoteMethodError) as exc_info:
                await client.call_method("greet")

        assert exc_info.value.code == -32700

    @pytest.mark.asyncio
    async def test_non_json_body_is_protocol_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>hello</html>")

        async with _mock_client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.call_method("greet")

    @pytest.mark.asyncio
    async def test_missing_result_is_protocol_error(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1})

        async with _mock_client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.call_method("greet")

    @pytest.mark.asyncio
    async def test_http_error_status_is_transport_error(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.call_method("greet")

        assert exc_info.value.kind is TransportErrorKind.HTTP_STATUS
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_card_http_error_is_transport_error(self):
        def handler(request):
            return httpx.Response(404, json={"error": "Not Found"})

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_card()

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_card_is_protocol_error(self):
        def handler(request):
            return httpx.Response(200, json={"name": "missing everything else"})

        async with _mock_client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.get_card()

    @pytest.mark.asyncio
    async def test_malformed_message_result_is_protocol_error(self):
        def handler(request):
            return httpx.Response(200, json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"messageId": "m", "role": "robot", "parts": []},
            })

        async with _mock_client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.send_message(Message(message_id="m", role="user", parts=[TextPart(text="hi")]))

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _mock_client(handler, timeout=0.1) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.call_method("greet")

        assert exc_info.value.kind is TransportErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_refused_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_card()

        assert exc_info.value.kind is TransportErrorKind.CONNECTION

    @pytest.mark.asyncio
    async def test_other_network_failure_is_transport_error(self):
        def handler(request):
            raise httpx.RemoteProtocolError("peer closed connection", request=request)

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.call_method("greet")

        assert exc_info.value.kind is TransportErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_client_requires_context_manager(self):
        client = A2AClient(BASE_URL)
        with pytest.raises(RuntimeError):
            await client.get_card()
