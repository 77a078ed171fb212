"""
JSON-RPC 2.0 codec.

Translates raw request bodies into typed requests and typed results/errors
back into response text. Transport independent.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ValidationError

from .errors import InvalidRequestError, JSONRPCException, ParseError
from .models import (
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCRequest,
    JSONRPCSuccessResponse,
    describe_validation_errors,
)

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

# Marks "no id supplied" so that an explicit ``id=None`` can still be emitted as null.
_NO_ID: Any = object()

# A rejected batch element stays in place as the error it raised.
BatchItem = Union[JSONRPCRequest, InvalidRequestError]
ParsedRequest = Union[JSONRPCRequest, List[BatchItem]]


def dump_json(payload: Any) -> str:
    """Serialize to compact JSON text. NaN and the infinities are rejected with ValueError."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def to_jsonable(obj: Any) -> Any:
    """Convert Pydantic models (and nested structures) into JSON-serializable values.

    Models drop unset optional fields; plain mappings are kept verbatim.
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_jsonable(value) for key, value in obj.items()}
    if isinstance(obj, Enum):
        return obj.value
    return obj


def error_from_exception(exc: JSONRPCException) -> JSONRPCError:
    return JSONRPCError(code=exc.code, message=exc.message, data=exc.data)


def _validate_request(value: Any, index: Optional[int] = None) -> JSONRPCRequest:
    data: Dict[str, Any] = {}
    if index is not None:
        data["index"] = index

    if not isinstance(value, dict):
        raise InvalidRequestError("Invalid Request: expected a JSON object", data=data or None)

    try:
        return JSONRPCRequest.model_validate(value)
    except ValidationError as exc:
        data["errors"] = describe_validation_errors(exc)
        raise InvalidRequestError("Invalid Request", data=data) from exc


def _validate_batch_item(value: Any, index: int) -> BatchItem:
    try:
        return _validate_request(value, index)
    except InvalidRequestError as exc:
        logger.warning("Rejected JSON-RPC batch element", extra={"index": index, "error": exc.message})
        return exc


def parse_request(raw_text: Union[str, bytes]) -> ParsedRequest:
    """Parse a request body into a single request or a batch.

    Raises:
        ParseError: the payload is not valid UTF-8 JSON.
        InvalidRequestError: the payload is JSON but not a JSON-RPC request,
            or it is an empty batch.

    An invalid element of a batch does not fail the batch: it is returned in
    its slot as the InvalidRequestError it raised.
    """
    if isinstance(raw_text, (bytes, bytearray)):
        try:
            raw_text = raw_text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("Parse error: body is not valid UTF-8") from exc

    try:
        payload = json.loads(raw_text, parse_constant=_reject_constant)
    except (ValueError, TypeError) as exc:
        logger.debug("Rejected unparseable JSON-RPC payload", extra={"error": str(exc)})
        raise ParseError("Parse error") from exc

    if isinstance(payload, list):
        if not payload:
            raise InvalidRequestError("Invalid Request: empty batch")
        return [_validate_batch_item(item, index) for index, item in enumerate(payload)]

    return _validate_request(payload)


def build_response(result_or_error: Any, id: Any = _NO_ID) -> Dict[str, Any]:
    """Build the dict form of a response carrying ``result`` xor ``error``."""
    response: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
    if id is not _NO_ID:
        response["id"] = id

    if isinstance(result_or_error, JSONRPCException):
        result_or_error = error_from_exception(result_or_error)

    if isinstance(result_or_error, JSONRPCError):
        response["error"] = result_or_error.to_wire()
    else:
        response["result"] = to_jsonable(result_or_error)
    return response


def encode_response(result_or_error: Any, id: Any = _NO_ID) -> str:
    """Encode one response. ``id`` is omitted only when none is passed."""
    if isinstance(result_or_error, (JSONRPCSuccessResponse, JSONRPCErrorResponse)):
        return dump_json(result_or_error.to_wire())
    return dump_json(build_response(result_or_error, id))


def encode_batch(
    responses: Iterable[Union[JSONRPCSuccessResponse, JSONRPCErrorResponse, Dict[str, Any], None]],
) -> str:
    """Encode responses as a JSON array in input order, dropping notification entries."""
    items: List[Dict[str, Any]] = []
    for response in responses:
        if response is None:
            continue
        if isinstance(response, BaseModel):
            response = response.to_wire()
        if "id" not in response:
            continue
        items.append(response)
    return dump_json(items)
