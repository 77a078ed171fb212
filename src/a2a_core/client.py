"""A2AClient: discovers and calls a remote agent over JSON-RPC 2.0/HTTP."""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .errors import (
    MalformedMessageError,
    ProtocolError,
    RemoteMethodError,
    TransportError,
    TransportErrorKind,
)
from .jsonrpc import JSONRPC_VERSION, to_jsonable
from .models import AgentCard, JSONRPCError, Message

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class A2AClient:
    """Communicates with a remote A2A-compatible agent.

    Every call carries a timeout and is tried exactly once; retrying is up to
    the caller. Cancelling a call does not stop work already running on the
    server.

    Usage::

        async with A2AClient("http://localhost:9999") as client:
            card = await client.get_card()
            reply = await client.send_message(Message.user_text("Hello!"))
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        card_path: str = "/agent-card",
        rpc_path: str = "/rpc",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._card_path = card_path
        self._rpc_path = rpc_path
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> A2AClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "A2AClient must be used as an async context manager"
            raise RuntimeError(msg)
        return self._client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_card(self) -> AgentCard:
        """GET the agent card and parse it into an :class:`AgentCard`."""
        response = await self._request("GET", self._card_path)
        if response.status_code != 200:
            raise TransportError(
                TransportErrorKind.HTTP_STATUS,
                f"GET {self._card_path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return AgentCard.from_wire(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProtocolError(f"Invalid agent card: {exc}") from exc

    async def send_message(self, message: Message) -> Message:
        """Send ``message`` via ``message/send`` and return the agent's reply."""
        result = await self.call_method("message/send", {"message": message.to_wire()})
        try:
            return Message.from_wire(result)
        except MalformedMessageError as exc:
            raise ProtocolError(f"message/send result is not a Message: {exc.data}") from exc

    async def call_method(self, name: str, params: Any = None) -> Any:
        """Call any registered method and return its ``result``."""
        request_id = next(self._ids)
        payload = self._build_request(name, params, request_id)

        logger.debug("Calling A2A method", extra={"method": name, "id": request_id})
        response = await self._request("POST", self._rpc_path, json=payload)
        body = self._decode_envelope(response)

        # Errors raised before the server could read the id come back with id null.
        error = body.get("error")
        if error is not None and body.get("id") in (request_id, None):
            raise RemoteMethodError.from_error(self._parse_error(error))

        if body.get("id") != request_id:
            raise ProtocolError(
                f"Response id {body.get('id')!r} does not match request id {request_id!r}"
            )
        if "result" not in body:
            raise ProtocolError("JSON-RPC response has neither result nor error")
        return body["result"]

    async def notify(self, name: str, params: Any = None) -> None:
        """Send a notification; the server executes it and sends nothing back."""
        payload = self._build_request(name, params, None)
        response = await self._request("POST", self._rpc_path, json=payload)
        if response.status_code == 400:
            body = self._decode_envelope(response)
            raise RemoteMethodError.from_error(self._parse_error(body.get("error")))
        if response.status_code not in (200, 204):
            raise TransportError(
                TransportErrorKind.HTTP_STATUS,
                f"POST {self._rpc_path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_request(name: str, params: Any, request_id: Optional[int]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": name}
        if params is not None:
            payload["params"] = to_jsonable(params)
        if request_id is not None:
            payload["id"] = request_id
        return payload

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http().request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(TransportErrorKind.TIMEOUT, str(exc) or "request timed out") from exc
        except httpx.ConnectError as exc:
            raise TransportError(TransportErrorKind.CONNECTION, str(exc) or "connection failed") from exc
        except httpx.HTTPError as exc:
            raise TransportError(TransportErrorKind.NETWORK, str(exc) or exc.__class__.__name__) from exc

    def _decode_envelope(self, response: httpx.Response) -> Dict[str, Any]:
        """Return the JSON-RPC envelope, or raise when the body is not one."""
        try:
            body = response.json()
        except ValueError as exc:
            if response.status_code != 200:
                raise TransportError(
                    TransportErrorKind.HTTP_STATUS,
                    f"HTTP {response.status_code} from {response.request.url}",
                    status_code=response.status_code,
                ) from exc
            raise ProtocolError(f"Response body is not JSON: {exc}") from exc

        if not isinstance(body, dict) or body.get("jsonrpc") != JSONRPC_VERSION:
            if response.status_code != 200:
                raise TransportError(
                    TransportErrorKind.HTTP_STATUS,
                    f"HTTP {response.status_code} from {response.request.url}",
                    status_code=response.status_code,
                )
            raise ProtocolError("Response is not a JSON-RPC 2.0 envelope")
        return body

    @staticmethod
    def _parse_error(value: Any) -> JSONRPCError:
        try:
            return JSONRPCError.model_validate(value)
        except ValidationError as exc:
            raise ProtocolError(f"Malformed JSON-RPC error object: {value!r}") from exc
