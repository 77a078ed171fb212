"""
Entry points for serving the sample Hello World agent.

    uvicorn a2a_agents.main:create_app --factory
    python -m a2a_agents.main
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from a2a_core.agent import A2AAgent
from a2a_core.server import A2AServer

from .helloworld import HelloWorldAgent
from .logging_config import configure_logging
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_server(
    settings: Optional[Settings] = None,
    agent: Optional[A2AAgent] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> A2AServer:
    """Wire an agent (Hello World by default) into an :class:`A2AServer`."""
    settings = settings or get_settings()
    if agent is None:
        agent = HelloWorldAgent(
            name=settings.agent_name,
            description=settings.agent_description,
            version=settings.agent_version,
        )

    return A2AServer(
        agent,
        host=host or settings.host,
        port=settings.port if port is None else port,
        base_path=settings.base_path,
        url=settings.agent_url,
        error_profile=settings.error_profile,
        cors_origins=settings.cors_origins,
    )


def create_app(settings: Optional[Settings] = None, agent: Optional[A2AAgent] = None) -> FastAPI:
    """
    Create the FastAPI application serving one A2A agent.

    Returns:
        Configured FastAPI application with the agent card, JSON-RPC and
        health routes mounted
    """
    server = build_server(settings, agent)
    logger.info("A2A application created", extra={
        "agent_name": server.agent.name,
        "methods": server.agent.registry.methods(),
    })
    return server.get_fastapi_app()


# Convenience function for running the server
def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the Hello World agent server in the foreground."""
    settings = get_settings()
    configure_logging(agent_name=settings.agent_name)
    server = build_server(settings, host=host, port=port)
    server.run()


if __name__ == "__main__":
    run_server()
