"""
A2A error taxonomy.

Server-side protocol errors carry a JSON-RPC code and are rendered into the
``error`` member of a response. Client-side errors describe what went wrong
while talking to a remote agent.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .models import JSONRPCError


# ===== JSON-RPC 2.0 RESERVED CODES =====

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RESERVED_CODE_RANGE = range(-32768, -31999)
# Implementation-defined server errors; A2A uses -32001..-32007 from here.
SERVER_ERROR_RANGE = range(-32099, -31999)


# ===== SERVER-SIDE PROTOCOL ERRORS =====

class JSONRPCException(Exception):
    """Base class for failures that map onto a JSON-RPC error object."""

    code: int = INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ParseError(JSONRPCException):
    """The payload is not valid JSON."""
    code = PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(JSONRPCException):
    """The payload is JSON but not a valid JSON-RPC request."""
    code = INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFoundError(JSONRPCException):
    code = METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParamsError(JSONRPCException):
    code = INVALID_PARAMS
    default_message = "Invalid params"


class InternalError(JSONRPCException):
    code = INTERNAL_ERROR
    default_message = "Internal error"


class MalformedMessageError(InvalidParamsError):
    """A Message wire payload has an unknown role or an unrecognized part kind."""
    default_message = "Malformed message"


class ApplicationError(JSONRPCException):
    """Handler-defined error with its own code outside the reserved range."""

    def __init__(self, code: int, message: str, data: Any = None):
        if code in RESERVED_CODE_RANGE and code not in SERVER_ERROR_RANGE:
            raise ValueError(f"Application error code {code} is reserved by JSON-RPC")
        self.code = code
        super().__init__(message, data)


# ===== CLIENT-SIDE ERRORS =====

class TransportErrorKind(str, Enum):
    """Classification of transport-level failures."""
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http-status"


class A2AClientError(Exception):
    """Base class for errors raised by the A2A client."""


class TransportError(A2AClientError):
    """The remote agent could not be reached or did not answer in time."""

    def __init__(self, kind: TransportErrorKind, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.status_code = status_code
        super().__init__(f"{kind.value}: {message}")


class ProtocolError(A2AClientError):
    """The remote agent answered with something that is not valid A2A/JSON-RPC."""


class RemoteMethodError(A2AClientError):
    """The remote agent answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")

    @classmethod
    def from_error(cls, error: JSONRPCError) -> "RemoteMethodError":
        return cls(code=error.code, message=error.message, data=error.data)
