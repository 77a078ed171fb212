"""
A2A JSON-RPC 2.0 HTTP Server Implementation

Serves one :class:`~a2a_core.agent.A2AAgent` over HTTP:

- GET  /agent-card                    → Agent Card (discovery)
- GET  /.well-known/agent-card.json   → same card at the well-known location
- POST /rpc                           → JSON-RPC endpoint (single or batch)
- GET  /health                        → health check

JSON-RPC errors are payload-level: a request that parses is always answered
with HTTP 200, even when the envelope carries an ``error``. Only bodies that
fail to parse as JSON-RPC get HTTP 400.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncGenerator, Callable, Dict, Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .agent import A2AAgent
from .agent_card import AgentCardGenerator, AgentIdentity
from .error_profiles import ErrorProfile
from .errors import JSONRPCException
from .jsonrpc import build_response, encode_batch, encode_response, parse_request
from .models import current_timestamp
from .registry import Dispatcher

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


class ServerState(str, Enum):
    """Lifecycle states of an :class:`A2AServer`."""
    STOPPED = "stopped"
    RUNNING = "running"


class _ForegroundServer(uvicorn.Server):
    """uvicorn server that reports back once its sockets are listening."""

    def __init__(self, config: uvicorn.Config, on_started: Callable[[uvicorn.Server], None]):
        super().__init__(config)
        self._on_started = on_started

    async def startup(self, sockets: Optional[list] = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self._on_started(self)


class A2AServer:
    """
    A2A JSON-RPC 2.0 server implementation.

    Handles HTTP requests, parses JSON-RPC messages, dispatches to the agent's
    registered methods, and returns the matching responses. ``start()`` and
    ``stop()`` move the server between STOPPED and RUNNING; ``run()`` serves
    in the foreground.
    """

    def __init__(
        self,
        agent: A2AAgent,
        *,
        host: str = "0.0.0.0",
        port: int = 9999,
        base_path: str = "",
        url: Optional[str] = None,
        error_profile: ErrorProfile = ErrorProfile.BASIC,
        cors_origins: Sequence[str] = ("*",),
    ):
        self.agent = agent
        self.host = host
        self._configured_port = port
        self.base_path = base_path.rstrip("/")
        self.cors_origins = list(cors_origins)
        self._card_url = url

        self.dispatcher = Dispatcher(agent.registry, error_profile=error_profile)
        self.state = ServerState.STOPPED
        self._state_lock = threading.Lock()
        self._uvicorn: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._bound_port: Optional[int] = None

        self.card_generator = AgentCardGenerator(agent.registry, self._card_identity())

        self.app = self._build_app()

    # ------------------------------------------------------------------
    # FastAPI app construction
    # ------------------------------------------------------------------

    def _build_app(self) -> FastAPI:
        """Create the FastAPI application with all A2A routes."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            logger.info("Starting A2A agent", extra={"agent_name": self.agent.name})
            await self.agent.on_startup()
            try:
                yield
            finally:
                logger.info("Shutting down A2A agent", extra={"agent_name": self.agent.name})
                await self.agent.on_shutdown()

        app = FastAPI(
            title=f"A2A Agent: {self.agent.name}",
            description=self.agent.description,
            version=self.agent.version,
            lifespan=lifespan,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @app.exception_handler(StarletteHTTPException)
        async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
            return JSONResponse(
                {"error": exc.detail},
                status_code=exc.status_code,
                headers=getattr(exc, "headers", None),
            )

        prefix = self.base_path

        @app.get(f"{prefix}/agent-card")
        async def get_agent_card() -> Response:
            """Serve the Agent Card for discovery."""
            return self._agent_card_response()

        @app.get("/.well-known/agent-card.json")
        async def get_agent_card_well_known() -> Response:
            """Well-known discovery location for the same card."""
            return self._agent_card_response()

        @app.post(f"{prefix}/rpc")
        async def handle_jsonrpc(request: Request) -> Response:
            """Main JSON-RPC 2.0 endpoint."""
            body = await request.body()
            try:
                parsed = parse_request(body)
            except JSONRPCException as exc:
                logger.warning("Rejected JSON-RPC request", extra={
                    "code": exc.code,
                    "error": exc.message,
                })
                return JSONResponse(build_response(exc, id=None), status_code=400)

            outcome = await self.dispatcher.handle(parsed)

            if isinstance(outcome, list):
                if not outcome:
                    return Response(status_code=204)
                return Response(content=encode_batch(outcome), media_type=JSON_MEDIA_TYPE)

            if outcome is None:
                # Notification: nothing to send back
                return Response(status_code=204)
            return Response(content=encode_response(outcome), media_type=JSON_MEDIA_TYPE)

        @app.get("/health")
        async def health_check() -> Dict[str, Any]:
            """Simple health check endpoint."""
            return {
                "status": "healthy",
                "timestamp": current_timestamp(),
                "agent": self.agent.name,
            }

        return app

    def _card_identity(self) -> AgentIdentity:
        # Without an explicit url the card follows the port actually bound.
        return AgentIdentity(
            name=self.agent.name,
            description=self.agent.description,
            version=self.agent.version,
            url=self._card_url or f"http://localhost:{self.port}{self.base_path}",
            streaming=self.agent.streaming,
        )

    def _agent_card_response(self) -> Response:
        try:
            card = self.card_generator.get_agent_card()
        except Exception as exc:
            logger.exception("Error generating agent card", extra={"error": str(exc)})
            return JSONResponse(
                {"error": f"Failed to generate agent card: {exc}"},
                status_code=500,
            )
        return JSONResponse(card.to_wire())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def port(self) -> int:
        """The bound port while running (useful with port 0), else the configured one."""
        if self._bound_port is not None:
            return self._bound_port
        return self._configured_port

    @property
    def url(self) -> str:
        host = "127.0.0.1" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}{self.base_path}"

    def _uvicorn_config(self) -> uvicorn.Config:
        # log_config=None keeps the application's logging configuration intact.
        return uvicorn.Config(
            self.app,
            host=self.host,
            port=self._configured_port,
            log_config=None,
            lifespan="on",
        )

    def start(self, timeout: float = 10.0) -> None:
        """Bind the listening socket on a background thread and return once serving."""
        with self._state_lock:
            if self.state is ServerState.RUNNING:
                raise RuntimeError("A2A server is already running")

            server = uvicorn.Server(self._uvicorn_config())
            thread = threading.Thread(target=server.run, name=f"a2a-server-{self.agent.name}", daemon=True)
            thread.start()

            deadline = time.monotonic() + timeout
            while not server.started:
                if not thread.is_alive():
                    raise RuntimeError(f"A2A server failed to start on {self.host}:{self._configured_port}")
                if time.monotonic() > deadline:
                    server.should_exit = True
                    thread.join(timeout)
                    raise RuntimeError("Timed out waiting for the A2A server to start")
                time.sleep(0.01)

            self._uvicorn = server
            self._thread = thread
            self._mark_running(server)

        logger.info("A2A server running", extra={"url": self.url})

    def stop(self, timeout: float = 10.0) -> None:
        """Close the listening socket and wait for the server thread to finish."""
        with self._state_lock:
            if self.state is ServerState.STOPPED:
                raise RuntimeError("A2A server is not running")

            assert self._uvicorn is not None and self._thread is not None
            self._uvicorn.should_exit = True
            self._thread.join(timeout)

            self._uvicorn = None
            self._thread = None
            self._bound_port = None
            self.card_generator.update_identity(self._card_identity())
            self.state = ServerState.STOPPED

        logger.info("A2A server stopped", extra={"agent_name": self.agent.name})

    def _mark_running(self, server: uvicorn.Server) -> None:
        self._bound_port = server.servers[0].sockets[0].getsockname()[1]
        self.card_generator.update_identity(self._card_identity())
        self.state = ServerState.RUNNING

    def run(self) -> None:
        """Serve in the foreground until interrupted.

        The state turns RUNNING only once the socket is bound; a failed bind
        leaves the server STOPPED.
        """
        with self._state_lock:
            if self.state is ServerState.RUNNING:
                raise RuntimeError("A2A server is already running")

        logger.info("Serving A2A agent", extra={
            "agent_name": self.agent.name,
            "host": self.host,
            "port": self._configured_port,
        })
        try:
            _ForegroundServer(self._uvicorn_config(), on_started=self._mark_running).run()
        finally:
            self._bound_port = None
            self.card_generator.update_identity(self._card_identity())
            self.state = ServerState.STOPPED

    def __enter__(self) -> "A2AServer":
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        if self.state is ServerState.RUNNING:
            self.stop()

    def get_fastapi_app(self) -> FastAPI:
        """Get the underlying FastAPI application."""
        return self.app
