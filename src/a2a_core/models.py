"""
A2A (Agent-to-Agent) Protocol Data Models

Pydantic models for the message envelope, agent discovery documents and the
JSON-RPC 2.0 envelope. Wire keys are camelCase; Python attributes are
snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import MalformedMessageError


class A2ABaseModel(BaseModel):
    """Immutable model serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ===== FOUNDATIONAL TYPES =====

class TransportProtocol(str, Enum):
    """Supported A2A transport protocols."""
    JSONRPC = "JSONRPC"
    GRPC = "GRPC"
    HTTP_JSON = "HTTP+JSON"


Role = Literal["user", "agent"]


# ===== CONTENT PARTS =====

class PartBase(A2ABaseModel):
    """Defines base properties common to all message parts."""
    metadata: Optional[Dict[str, Any]] = None


class TextPart(PartBase):
    """Represents a text segment within a message."""
    kind: Literal["text"] = "text"
    text: str


class FileWithBytes(A2ABaseModel):
    """A file with its content inlined as a base64-encoded string."""
    bytes: str
    name: Optional[str] = None
    mime_type: Optional[str] = None


class FileWithUri(A2ABaseModel):
    """A file whose content lives at a URI."""
    uri: str
    name: Optional[str] = None
    mime_type: Optional[str] = None


class FilePart(PartBase):
    """Represents a file segment within a message."""
    kind: Literal["file"] = "file"
    file: Union[FileWithBytes, FileWithUri]


class DataPart(PartBase):
    """Represents a structured data segment within a message."""
    kind: Literal["data"] = "data"
    data: Dict[str, Any]


Part = Annotated[Union[TextPart, FilePart, DataPart], Field(discriminator="kind")]


# ===== MESSAGES =====

class Message(A2ABaseModel):
    """A single unit of communication between a user and an agent.

    Messages are never mutated; build a new one for any change.
    """
    message_id: str
    role: Role
    parts: List[Part] = Field(default_factory=list)
    context_id: Optional[str] = None
    task_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_wire(cls, value: Any) -> "Message":
        """Parse the wire form, raising MalformedMessageError on bad role or part kind."""
        try:
            return cls.model_validate(value)
        except ValidationError as exc:
            raise MalformedMessageError(
                "Malformed message",
                data=describe_validation_errors(exc),
            ) from exc

    @classmethod
    def user_text(cls, text: str, **fields: Any) -> "Message":
        return cls(message_id=create_message_id(), role="user", parts=[TextPart(text=text)], **fields)

    @classmethod
    def agent_text(cls, text: str, **fields: Any) -> "Message":
        return cls(message_id=create_message_id(), role="agent", parts=[TextPart(text=text)], **fields)

    def with_parts(self, parts: Iterable[Part]) -> "Message":
        """Return a copy of this message carrying ``parts`` instead."""
        return self.model_copy(update={"parts": list(parts)})

    def text(self, default: str = "") -> str:
        """Join the text parts; ``default`` stands in when there are none."""
        texts = [part.text for part in self.parts if isinstance(part, TextPart)]
        if not texts:
            return default
        return "\n".join(texts)


# ===== AGENT CARD COMPONENTS =====

class AgentCapabilities(A2ABaseModel):
    """Optional protocol features supported by an agent."""
    streaming: bool = False
    push_notifications: bool = False
    state_transition_history: bool = False


class AgentSkill(A2ABaseModel):
    """A distinct capability an agent advertises for discovery."""
    id: str
    name: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    input_modes: Optional[List[str]] = None
    output_modes: Optional[List[str]] = None


class Capability(A2ABaseModel):
    """Server-side registration metadata for one JSON-RPC method.

    ``id`` becomes the skill id on the agent card and defaults to the method
    name; ``name`` defaults to the id.
    """
    id: str
    method: str
    name: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    input_schema: Optional[Dict[str, Any]] = None
    output_schema: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _default_identity(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is None:
                data["id"] = data.get("method")
            if data.get("name") is None:
                data["name"] = data["id"]
        return data

    def to_skill(self) -> AgentSkill:
        return AgentSkill(
            id=self.id,
            name=self.name,
            description=self.description,
            tags=list(self.tags),
            examples=list(self.examples),
        )


class AgentCard(A2ABaseModel):
    """The self-describing manifest clients fetch before talking to an agent."""
    protocol_version: str = "0.3.0"
    name: str
    description: str
    version: str
    url: str
    preferred_transport: Union[TransportProtocol, str] = TransportProtocol.JSONRPC
    default_input_modes: List[str] = Field(default_factory=lambda: ["text/plain"])
    default_output_modes: List[str] = Field(default_factory=lambda: ["text/plain"])
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    skills: List[AgentSkill] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_skill_ids(self) -> "AgentCard":
        seen = set()
        for skill in self.skills:
            if skill.id in seen:
                raise ValueError(f"Duplicate skill id on agent card: {skill.id}")
            seen.add(skill.id)
        return self

    @classmethod
    def from_capabilities(
        cls,
        capabilities: Iterable[Capability],
        *,
        name: str,
        description: str,
        version: str,
        url: str,
        streaming: bool = False,
        **fields: Any,
    ) -> "AgentCard":
        """Build a card with one skill per capability, in the given order."""
        return cls(
            name=name,
            description=description,
            version=version,
            url=url,
            capabilities=AgentCapabilities(streaming=streaming),
            skills=[capability.to_skill() for capability in capabilities],
            **fields,
        )

    @classmethod
    def from_wire(cls, value: Any) -> "AgentCard":
        return cls.model_validate(value)


# ===== JSON-RPC 2.0 TYPES =====

RequestId = Union[StrictInt, StrictFloat, StrictStr]


class JSONRPCRequest(BaseModel):
    """Represents a JSON-RPC 2.0 Request object.

    A request without an ``id`` (or with ``id: null``) is a notification.
    """
    jsonrpc: Literal["2.0"]
    method: str = Field(min_length=1)
    params: Any = None
    id: Optional[RequestId] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JSONRPCError(BaseModel):
    """Represents a JSON-RPC 2.0 Error object."""
    code: int
    message: str
    data: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class JSONRPCSuccessResponse(BaseModel):
    """Represents a successful JSON-RPC 2.0 Response object."""
    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[RequestId] = None
    result: Any = None

    def to_wire(self) -> Dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}


class JSONRPCErrorResponse(BaseModel):
    """Represents a JSON-RPC 2.0 Error Response object."""
    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[RequestId] = None
    error: JSONRPCError

    def to_wire(self) -> Dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "error": self.error.to_wire()}


JSONRPCResponse = Union[JSONRPCSuccessResponse, JSONRPCErrorResponse]


# ===== UTILITY FUNCTIONS =====

def _describe_validation_error(err: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "loc": [str(part) for part in err.get("loc", ())],
        "msg": err.get("msg", ""),
    }


def describe_validation_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    """Reduce a pydantic ValidationError to JSON-safe location/message pairs."""
    return [_describe_validation_error(err) for err in exc.errors()]


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID for A2A entities."""
    return f"{prefix}{uuid4()}" if prefix else str(uuid4())


def create_message_id() -> str:
    """Generate a unique message ID."""
    return generate_id()


def current_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
