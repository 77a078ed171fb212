"""
A2A (Agent-to-Agent) Protocol Core

A minimal A2A protocol server and client over JSON-RPC 2.0/HTTP: message and
agent card models, the JSON-RPC codec, a method registry with dispatcher, a
FastAPI-based server and an httpx-based client.
"""

from .agent import A2AAgent
from .client import A2AClient
from .models import AgentCard, AgentSkill, Capability, Message, TextPart
from .registry import Dispatcher, MethodRegistry
from .server import A2AServer, ServerState

__version__ = "0.1.0"
__protocol_version__ = "0.3.0"

__all__ = [
    "A2AAgent",
    "A2AClient",
    "A2AServer",
    "AgentCard",
    "AgentSkill",
    "Capability",
    "Dispatcher",
    "Message",
    "MethodRegistry",
    "ServerState",
    "TextPart",
]
