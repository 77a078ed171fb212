"""Shared fixtures: a small agent exercising every kind of handler outcome."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from a2a_core.agent import A2AAgent
from a2a_core.errors import ApplicationError
from a2a_core.registry import MethodRegistry, validate_params
from a2a_core.server import A2AServer


class _Point(BaseModel):
    x: int
    y: int


class SampleAgent(A2AAgent):
    """Agent with one method per dispatch outcome the tests care about."""

    name = "Sample Agent"
    description = "Agent used by the test suite"

    def __init__(self, **kwargs):
        self.calls = []
        self.started = False
        self.stopped = False
        super().__init__(**kwargs)

    def register(self, registry: MethodRegistry) -> None:
        registry.register("greet", self.greet, {"id": "greeting", "description": "Say hello"})
        registry.register("echo", self.echo)
        registry.register("record", self.record)
        registry.register("slow", self.slow)
        registry.register("boom", self.boom)
        registry.register("fail", self.fail)
        registry.register("point", self.point)
        registry.register("opaque", self.opaque)

    async def on_startup(self) -> None:
        self.started = True

    async def on_shutdown(self) -> None:
        self.stopped = True

    async def greet(self, params):
        return {"message": "Hello " + params.get("name", "World") + "!"}

    async def echo(self, params):
        return params

    def record(self, params):
        self.calls.append(params)
        return len(self.calls)

    async def slow(self, params):
        await asyncio.sleep(params.get("delay", 0.05))
        return "slow"

    async def boom(self, params):
        raise RuntimeError("boom")

    async def fail(self, params):
        raise ApplicationError(-32001, "Task not found", {"taskId": params.get("taskId")})

    async def point(self, params):
        return validate_params(_Point, params).model_dump()

    async def opaque(self, params):
        return object()


@pytest.fixture
def sample_agent():
    return SampleAgent()


@pytest.fixture
def sample_server(sample_agent):
    return A2AServer(sample_agent, port=9999)


@pytest.fixture
def http_client(sample_server):
    """TestClient for the sample agent's FastAPI app."""
    return TestClient(sample_server.get_fastapi_app())
