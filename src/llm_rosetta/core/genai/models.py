"""Canonical intermediate representation (IR) for chat conversations.

Every provider adapter converts its wire format to and from these models, so
no adapter ever needs to know about another provider's shapes.  Parts form a
closed set of well-known variants plus an open ``GenericPart`` fallback, which
guarantees that the IR never rejects an unrecognized provider concept.

All models are frozen value objects: two IR values are equal when their fields
(including any extra fields on open variants) are equal.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_validator,
)

from llm_rosetta.core.keys import PROVIDER_METADATA, normalize_entity


class Role:
    """Canonical role names.  Any other string is accepted as a role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Modality:
    """Canonical modality names for blob, file and uri parts."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class FinishReason:
    """Canonical finish reasons."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    TOOL_CALL = "tool_call"
    ERROR = "error"


class _Entity(BaseModel):
    """Base for every IR entity that can carry a metadata bag."""

    model_config = ConfigDict(extra="allow", frozen=True)

    provider_metadata: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices(PROVIDER_METADATA, "provider_metadata"),
        serialization_alias=PROVIDER_METADATA,
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_reserved(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_entity(data)
        return data


# ---------------------------------------------------------------------------
# Parts: tagged content units
# ---------------------------------------------------------------------------


class TextPart(_Entity):
    """Plain text content."""

    type: Literal["text"] = "text"
    content: str


class BlobPart(_Entity):
    """Inline binary payload, base64 encoded."""

    type: Literal["blob"] = "blob"
    mime_type: str | None = None
    modality: str
    content: str


class FilePart(_Entity):
    """Reference to a file by an opaque, provider-issued id."""

    type: Literal["file"] = "file"
    mime_type: str | None = None
    modality: str
    file_id: str


class UriPart(_Entity):
    """Reference to content by URL."""

    type: Literal["uri"] = "uri"
    mime_type: str | None = None
    modality: str
    uri: str


class ReasoningPart(_Entity):
    """Model "thinking" text."""

    type: Literal["reasoning"] = "reasoning"
    content: str


class ToolCallPart(_Entity):
    """A tool invocation.  ``arguments`` has no fixed shape."""

    type: Literal["tool_call"] = "tool_call"
    id: str | None = None
    name: str
    arguments: Any = None


class ToolCallResponsePart(_Entity):
    """The result of a tool invocation.  ``response`` has no fixed shape."""

    type: Literal["tool_call_response"] = "tool_call_response"
    id: str | None = None
    response: Any = None


class GenericPart(_Entity):
    """Any part whose ``type`` is not a well-known tag.  Keeps all its fields."""

    type: str


_KNOWN_PART_TYPES = frozenset(
    {"text", "blob", "file", "uri", "reasoning", "tool_call", "tool_call_response"}
)


def _part_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if isinstance(tag, str) and tag in _KNOWN_PART_TYPES else "generic"


Part = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[BlobPart, Tag("blob")],
        Annotated[FilePart, Tag("file")],
        Annotated[UriPart, Tag("uri")],
        Annotated[ReasoningPart, Tag("reasoning")],
        Annotated[ToolCallPart, Tag("tool_call")],
        Annotated[ToolCallResponsePart, Tag("tool_call_response")],
        Annotated[GenericPart, Tag("generic")],
    ],
    Discriminator(_part_tag),
]


# ---------------------------------------------------------------------------
# Messages and conversations
# ---------------------------------------------------------------------------


class Message(_Entity):
    """A single conversation turn.  Part order is significant."""

    role: str
    parts: list[Part]
    name: str | None = None
    finish_reason: str | None = None

    @property
    def text(self) -> str:
        """Concatenated content of all text parts."""
        return "".join(part.content for part in self.parts if isinstance(part, TextPart))

    @classmethod
    def system(cls, text: str, **fields: Any) -> Message:
        return cls(role=Role.SYSTEM, parts=[TextPart(content=text)], **fields)

    @classmethod
    def user(cls, text: str, **fields: Any) -> Message:
        return cls(role=Role.USER, parts=[TextPart(content=text)], **fields)

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCallPart] | None = None,
        **fields: Any,
    ) -> Message:
        parts: list[Any] = [TextPart(content=text)] if text else []
        parts.extend(tool_calls or [])
        return cls(role=Role.ASSISTANT, parts=parts, **fields)

    @classmethod
    def tool(cls, response: Any, id: str | None = None, **fields: Any) -> Message:
        part = ToolCallResponsePart(id=id, response=response)
        return cls(role=Role.TOOL, parts=[part], **fields)


class Conversation(BaseModel):
    """A canonical translation result.

    When ``system`` is set, no message in ``messages`` has the system role.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[Message] = []
    system: list[Part] | None = None


# ---------------------------------------------------------------------------
# Parsing and dumping
# ---------------------------------------------------------------------------

PART_ADAPTER: TypeAdapter[Any] = TypeAdapter(Part)
PARTS_ADAPTER: TypeAdapter[list[Any]] = TypeAdapter(list[Part])
MESSAGES_ADAPTER: TypeAdapter[list[Message]] = TypeAdapter(list[Message])


def parse_part(data: Any) -> Any:
    """Validate a single raw part into its IR variant."""
    return PART_ADAPTER.validate_python(data)


def parse_messages(data: Any) -> list[Message]:
    """Validate a list of raw canonical messages."""
    return MESSAGES_ADAPTER.validate_python(data)


def parse_parts(data: Any) -> list[Any]:
    """Validate a list of raw parts."""
    return PARTS_ADAPTER.validate_python(data)


def dump(entity: BaseModel) -> dict[str, Any]:
    """Dump an IR entity to a JSON-ready dict using the reserved field names."""
    return entity.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_messages(messages: list[Message]) -> list[dict[str, Any]]:
    return [dump(message) for message in messages]


def dump_parts(parts: list[Any]) -> list[dict[str, Any]]:
    return [dump(part) for part in parts]
