"""
Method registry and JSON-RPC dispatcher.

The registry is filled once while an agent is set up and is only read while
requests are served. The dispatcher turns every request into exactly one
response (or none, for notifications); handler failures never escape it.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .error_profiles import ErrorProfile, build_error_data
from .errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    JSONRPCException,
    MethodNotFoundError,
)
from .jsonrpc import BatchItem, ParsedRequest, dump_json, error_from_exception, to_jsonable
from .models import (
    Capability,
    JSONRPCErrorResponse,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCSuccessResponse,
    describe_validation_errors,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class RegisteredMethod:
    """A handler bound to a method name together with its capability metadata."""

    name: str
    handler: Handler
    capability: Capability


class MethodRegistry:
    """
    Maps JSON-RPC method names to handlers and capability metadata.

    Registering a name that already exists replaces the earlier binding
    (last registration wins); the method keeps its original position in
    registration order, which is also the skill order on the agent card.
    """

    def __init__(self) -> None:
        self._methods: Dict[str, RegisteredMethod] = {}

    def register(
        self,
        method_name: str,
        handler: Handler,
        capability: Union[Capability, Mapping[str, Any], None] = None,
    ) -> RegisteredMethod:
        """Bind ``method_name`` to ``handler``.

        ``capability`` may be a Capability, a mapping of Capability fields,
        or omitted, in which case one is derived from the method name.
        """
        if not method_name:
            raise ValueError("Method name must be a non-empty string")
        if not callable(handler):
            raise TypeError(f"Handler for {method_name!r} is not callable")

        if capability is None:
            capability = Capability(method=method_name)
        elif isinstance(capability, Mapping):
            capability = Capability(**{**capability, "method": method_name})
        elif capability.method != method_name:
            capability = capability.model_copy(update={"method": method_name})

        if method_name in self._methods:
            logger.warning("Replacing registered A2A method", extra={"method": method_name})

        entry = RegisteredMethod(name=method_name, handler=handler, capability=capability)
        self._methods[method_name] = entry
        logger.debug("Registered A2A method handler", extra={"method": method_name})
        return entry

    def method(self, method_name: Optional[str] = None, **capability_fields: Any) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`; defaults the name to the function name."""

        def decorator(handler: Handler) -> Handler:
            name = method_name or handler.__name__
            self.register(name, handler, capability_fields or None)
            return handler

        return decorator

    def get(self, method_name: str) -> Optional[RegisteredMethod]:
        return self._methods.get(method_name)

    def methods(self) -> List[str]:
        return list(self._methods)

    def capabilities(self) -> List[Capability]:
        """Capabilities in registration order."""
        return [entry.capability for entry in self._methods.values()]

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._methods

    def __len__(self) -> int:
        return len(self._methods)


def normalize_params(params: Any, capability: Capability) -> Any:
    """Bring ``params`` into the single shape handlers receive.

    Positional (list) params pass through. Mappings are copied and filled from
    ``input_schema`` property defaults. Anything else becomes an empty mapping.
    """
    if isinstance(params, list):
        return params
    if not isinstance(params, dict):
        params = {}
    else:
        params = dict(params)

    schema = capability.input_schema or {}
    properties = schema.get("properties") or {}
    for key, prop in properties.items():
        if key not in params and isinstance(prop, dict) and "default" in prop:
            params[key] = copy.deepcopy(prop["default"])

    missing = [key for key in schema.get("required") or [] if key not in params]
    if missing:
        raise InvalidParamsError(
            f"Missing required parameter: {', '.join(missing)}",
            data={"missing": missing},
        )
    return params


def validate_params(model: Type[ModelT], params: Any) -> ModelT:
    """Validate request params against ``model``, raising InvalidParamsError on failure.

    Handlers use this for their incoming params; a pydantic ValidationError
    raised anywhere else in a handler is an internal error.
    """
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        raise InvalidParamsError(data=describe_validation_errors(exc)) from exc


class Dispatcher:
    """Executes JSON-RPC requests against a :class:`MethodRegistry`."""

    def __init__(self, registry: MethodRegistry, error_profile: ErrorProfile = ErrorProfile.BASIC):
        self.registry = registry
        self.error_profile = error_profile

    async def dispatch(self, request: JSONRPCRequest) -> Optional[JSONRPCResponse]:
        """Run one request. Returns ``None`` for notifications."""
        logger.info("Processing A2A request", extra={
            "method": request.method,
            "id": request.id,
            "notification": request.is_notification,
        })

        entry = self.registry.get(request.method)
        if entry is None:
            logger.warning("Method not found", extra={"method": request.method})
            return self._reply(request, error=MethodNotFoundError())

        try:
            params = normalize_params(request.params, entry.capability)
            result = await self._invoke(entry.handler, params)
            result = to_jsonable(result)
            # Unserializable results (including NaN) must fail here, not in the transport.
            dump_json(result)
        except JSONRPCException as exc:
            logger.info("A2A method returned a protocol error", extra={
                "method": request.method,
                "code": exc.code,
                "error": exc.message,
            })
            return self._reply(request, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error in method handler", extra={
                "method": request.method,
                "error": str(exc),
            })
            return self._reply(
                request,
                error=InternalError(data=build_error_data(exc, self.error_profile)),
            )

        return self._reply(request, result=result)

    async def dispatch_batch(self, requests: List[BatchItem]) -> List[JSONRPCResponse]:
        """Run a batch concurrently; responses keep input order, notifications drop out.

        Elements rejected by the codec answer with their Invalid Request error
        and a null id.
        """
        responses = await asyncio.gather(*(self._dispatch_item(item) for item in requests))
        return [response for response in responses if response is not None]

    async def _dispatch_item(self, item: BatchItem) -> Optional[JSONRPCResponse]:
        if isinstance(item, InvalidRequestError):
            return JSONRPCErrorResponse(id=None, error=error_from_exception(item))
        return await self.dispatch(item)

    async def handle(self, parsed: ParsedRequest) -> Union[JSONRPCResponse, List[JSONRPCResponse], None]:
        if isinstance(parsed, list):
            return await self.dispatch_batch(parsed)
        return await self.dispatch(parsed)

    @staticmethod
    async def _invoke(handler: Handler, params: Any) -> Any:
        if inspect.iscoroutinefunction(handler):
            return await handler(params)
        # Plain functions run off the event loop.
        result = await asyncio.to_thread(handler, params)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _reply(
        request: JSONRPCRequest,
        result: Any = None,
        error: Optional[JSONRPCException] = None,
    ) -> Optional[JSONRPCResponse]:
        if request.is_notification:
            return None
        if error is not None:
            return JSONRPCErrorResponse(id=request.id, error=error_from_exception(error))
        return JSONRPCSuccessResponse(id=request.id, result=result)
