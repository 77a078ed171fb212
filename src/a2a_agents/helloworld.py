"""Hello World agent: a greeting method plus a plain ``message/send`` echo."""

from __future__ import annotations

import logging
from typing import Any, Dict

from a2a_core.agent import A2AAgent
from a2a_core.errors import InvalidParamsError
from a2a_core.models import Message, current_timestamp
from a2a_core.registry import MethodRegistry

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "there"


def _require_named(params: Any) -> None:
    if not isinstance(params, dict):
        raise InvalidParamsError("Expected named params (a JSON object)")


class HelloWorldAgent(A2AAgent):
    name = "Hello World Agent"
    description = "Simple greeting agent demonstrating A2A agent-card discovery and JSON-RPC dispatch"
    version = "1.0.0"

    def register(self, registry: MethodRegistry) -> None:
        registry.register(
            "greet",
            self.greet,
            {
                "id": "greeting",
                "name": "greeting",
                "description": "Simple greeting functionality that responds with hello messages",
                "tags": ["greeting", "hello", "basic", "demo"],
                "examples": ["Hello there!", "Say hello", "Greet me"],
                "input_schema": {
                    "type": "object",
                    "properties": {"name": {"type": "string", "default": "World"}},
                },
            },
        )
        registry.register(
            "message/send",
            self.send_message,
            {
                "id": "message",
                "name": "message",
                "description": "Replies to any text message with a hello",
                "tags": ["message", "chat"],
                "examples": ["Hello agent!"],
                "input_schema": {
                    "type": "object",
                    "properties": {"message": {"type": "object"}},
                    "required": ["message"],
                },
            },
        )

    async def greet(self, params: Dict[str, Any]) -> Dict[str, Any]:
        _require_named(params)
        name = params.get("name") or "World"
        return {
            "message": f"Hello {name}!",
            "timestamp": current_timestamp(),
            "agent": self.name,
        }

    async def send_message(self, params: Dict[str, Any]) -> Message:
        _require_named(params)
        message = Message.from_wire(params["message"])
        user_text = message.text(default=FALLBACK_TEXT)
        logger.debug("Greeting message received", extra={"message_id": message.message_id})
        return Message.agent_text(
            f"Hello World! You said: '{user_text}'",
            context_id=message.context_id,
        )
