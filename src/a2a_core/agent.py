"""
A2A Agent base class for agents served by :class:`~a2a_core.server.A2AServer`.

An agent owns its handler state and registers its methods on construction,
before any traffic is accepted. Subclasses implement :meth:`register`:

    class EchoAgent(A2AAgent):
        name = "Echo Agent"

        def register(self, registry: MethodRegistry) -> None:
            registry.register("echo", self.echo, {"description": "Echo params back"})

        async def echo(self, params):
            return params
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .registry import MethodRegistry


class A2AAgent(ABC):
    """
    Base A2A agent.

    Subclasses MUST implement:
    - register(registry)  → bind handlers on the registry

    Subclasses MAY override:
    - on_startup()        → acquire resources when the server starts
    - on_shutdown()       → release them when the server stops

    State shared between concurrent requests belongs on the instance and is
    guarded by the subclass's own lock.
    """

    name: str = "A2A Agent"
    description: str = ""
    version: str = "1.0.0"
    streaming: bool = False

    def __init__(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        version: Optional[str] = None,
    ):
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if version is not None:
            self.version = version

        self.registry = MethodRegistry()
        self.register(self.registry)

    @abstractmethod
    def register(self, registry: MethodRegistry) -> None:
        """Register this agent's JSON-RPC methods."""
        ...

    async def on_startup(self) -> None:
        """Called when the server starts. Override for setup logic."""
        pass

    async def on_shutdown(self) -> None:
        """Called when the server stops. Override for cleanup logic."""
        pass
